"""
Line accumulation for the Kestrel shell.

A session owns the pending buffer, the bracket tracker and the input mode.
In single-line mode a line is run as soon as its brackets balance; in
multi-line mode lines are collected verbatim until an empty line. Whenever a
buffer is consumed or discarded, buffer and tracker are cleared together so
no bracket depth leaks into the next command.
"""

from __future__ import annotations

import re
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from .brackets import BracketTracker, Status
from .command_parser import parse_buffer
from .commands import CommandNode
from .errors import ErrorManager, ParseError
from .lexer_rd import LexError, tokenize
from .utils import debug_py_trace_enabled, multiline_default, set_debug_py_trace

# Zero-width and invisible characters to strip from input.
_INVISIBLE_RE = re.compile("[\u200b\u200c\u200d\ufeff\u00a0\r]")

# Session commands: name => (description, aliases).
SESSION_COMMANDS: Dict[str, Tuple[str, Tuple[str, ...]]] = {
    "/multiline": ("Toggle between single-line and multi-line input", ("/ml",)),
    "/clear": ("Clear the terminal screen", ("/cls",)),
    "/status": ("Show input mode and diagnostic counts", ("/st",)),
    "/py-traceback": ("Toggle Python traceback on errors", ()),
    "/help": ("List shell commands", ("/h", "/?")),
    "/quit": ("Leave the shell", ("/q", "/exit")),
}

_COMMAND_NAMES = {
    spelling: name
    for name, (_, aliases) in SESSION_COMMANDS.items()
    for spelling in (name,) + aliases
}

PROMPT = ">>> "
CONTINUATION_PROMPT = "... "

ParseFn = Callable[[str, ErrorManager], Iterable[CommandNode]]


class Mode(Enum):
    SINGLE = "single-line"
    MULTI = "multi-line"


def normalize(text: str) -> str:
    """Strip invisible characters from input."""
    return _INVISIBLE_RE.sub("", text)


def resolve_command(line: str) -> Optional[str]:
    """Return the canonical session command for an exact match, else None."""
    return _COMMAND_NAMES.get(line.strip())


class ReplSession:
    """One interactive session: feed it lines, it prints what they parse to."""

    def __init__(self, printer, mode: Optional[Mode] = None,
                 parse: Optional[ParseFn] = None):
        self.printer = printer
        if mode is None:
            mode = Mode.MULTI if multiline_default() else Mode.SINGLE
        self.mode = mode
        self.parse = parse if parse is not None else parse_buffer
        self.pending: List[str] = []
        self.tracker = BracketTracker()
        self.errors = ErrorManager(listener=printer.diagnostic)
        self.running = True

    @property
    def prompt(self) -> str:
        return CONTINUATION_PROMPT if self.pending else PROMPT

    def feed(self, line: str) -> bool:
        """Process one input line. Returns False once the session should end."""
        line = normalize(line)

        if not self.pending and self.handle_command(line):
            return self.running

        if self.mode is Mode.MULTI:
            self._feed_multi(line)
        else:
            self._feed_single(line)

        return self.running

    def finish(self) -> None:
        """End of input: run whatever is still pending."""
        if self.pending:
            self.consume("\n".join(self.pending))

    def reset(self) -> None:
        self.pending.clear()
        self.tracker.reset()

    # ========================================================================
    # Accumulation
    # ========================================================================

    def _feed_single(self, line: str) -> None:
        if not self.pending and not line.strip():
            return

        try:
            tokens = tokenize(line)
        except LexError as exc:
            self.reset()
            self.errors.flush()
            self._report_fatal(exc)
            return

        outcome = self.tracker.feed(tokens)

        if outcome.status is Status.MALFORMED:
            # Drop the buffer but parse the offending line for a real diagnostic.
            self.consume(line)
        elif outcome.status is Status.NEEDS_MORE:
            self.pending.append(line)
        else:
            self.pending.append(line)
            self.consume("\n".join(self.pending))

    def _feed_multi(self, line: str) -> None:
        if line.strip():
            self.pending.append(line)
            return

        if self.pending:
            self.consume("\n".join(self.pending))

    def consume(self, source: str) -> None:
        """Parse source and print each command; the buffer is gone either way."""
        self.reset()
        self.errors.flush()
        try:
            for node in self.parse(source, self.errors):
                self.printer.command(node)
        except (ParseError, LexError) as exc:
            self._report_fatal(exc)

    def _report_fatal(self, exc: Exception) -> None:
        self.errors.add_fatal(exc)
        if debug_py_trace_enabled():
            self.printer.py_traceback(exc)

    # ========================================================================
    # Session Commands
    # ========================================================================

    def handle_command(self, line: str) -> bool:
        """Handle session commands. Returns True if the line was a command."""
        cmd = resolve_command(line)
        if cmd is None:
            return False

        if cmd == "/multiline":
            self.reset()
            self.mode = Mode.SINGLE if self.mode is Mode.MULTI else Mode.MULTI
            hint = " (empty line runs the buffer)" if self.mode is Mode.MULTI else ""
            self.printer.message(f"Input mode: {self.mode.value}{hint}")
        elif cmd == "/clear":
            self.printer.clear()
        elif cmd == "/status":
            self.printer.message(
                f"mode: {self.mode.value}, "
                f"errors: {self.errors.error_count}, "
                f"warnings: {self.errors.warning_count}"
            )
        elif cmd == "/py-traceback":
            set_debug_py_trace(not debug_py_trace_enabled())
            state = "on" if debug_py_trace_enabled() else "off"
            self.printer.message(f"Python traceback: {state}")
        elif cmd == "/help":
            for name, (desc, aliases) in SESSION_COMMANDS.items():
                spelled = ", ".join((name,) + aliases)
                self.printer.message(f"{spelled:<24} {desc}")
        elif cmd == "/quit":
            self.running = False

        return True
