from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

from .printer import ConsolePrinter
from .session import Mode, ReplSession


def run(source: str, mode: Optional[Mode] = None, printer=None) -> ReplSession:
    """Feed source through a session line by line, as if typed at the shell."""
    shell = ReplSession(printer if printer is not None else ConsolePrinter(), mode=mode)

    for line in source.splitlines():
        if not shell.feed(line):
            return shell

    shell.finish()
    return shell


def _load_source(arg: Optional[str]) -> str:
    """
    Resolve CLI input into source text.
    - None or "-" => read stdin.
    - Existing file => read file contents.
    - Otherwise treat the argument as literal source.
    """

    if arg is None or arg == "-":
        data = sys.stdin.read()
        if not data:
            raise SystemExit("No input provided on stdin")
        return data

    candidate = Path(arg)
    try:
        is_file = candidate.is_file()
    except (OSError, ValueError):
        # Too long or otherwise not a usable path name: treat as source.
        is_file = False
    if is_file:
        return candidate.read_text(encoding="utf-8")

    return arg


def main() -> None:
    mode = None
    arg = None

    for token in sys.argv[1:]:
        if token == "--multiline":
            mode = Mode.MULTI
            continue

        if arg is None:
            arg = token
        else:
            raise SystemExit(f"Unexpected argument: {token}")

    source = _load_source(arg or "-")
    shell = run(source, mode=mode)

    if shell.errors.has_errors:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
