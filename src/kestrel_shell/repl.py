"""Interactive Kestrel shell, powered by prompt_toolkit."""

from __future__ import annotations

from prompt_toolkit import PromptSession
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.key_binding import KeyBindings

from .printer import ConsolePrinter
from .session import SESSION_COMMANDS, Mode, ReplSession


class _SlashCompleter(Completer):
    """Autocomplete session commands while nothing is pending."""

    def __init__(self, shell: ReplSession | None = None):
        self.shell = shell

    def get_completions(self, document, complete_event):
        if self.shell is not None and self.shell.pending:
            return

        text = document.text_before_cursor
        if not text.startswith("/"):
            return

        for cmd, (desc, aliases) in SESSION_COMMANDS.items():
            if cmd.startswith(text):
                yield Completion(
                    cmd,
                    start_position=-len(text),
                    display_meta=desc,
                )


def _make_bindings() -> KeyBindings:
    bindings = KeyBindings()

    @bindings.add("backspace")
    def _backspace(event):
        buf = event.app.current_buffer
        buf.delete_before_cursor(1)
        if buf.text.startswith("/"):
            buf.start_completion()

    return bindings


def repl(mode: Mode | None = None) -> None:
    """Read lines until Ctrl-D or /quit, printing each parsed command."""
    shell = ReplSession(ConsolePrinter(), mode=mode)

    session: PromptSession[str] = PromptSession(
        history=InMemoryHistory(),
        completer=_SlashCompleter(shell),
        complete_while_typing=True,
        key_bindings=_make_bindings(),
    )

    print("kestrel shell: Ctrl-D to exit, /help for commands")

    while True:
        try:
            line = session.prompt(shell.prompt)
        except EOFError:
            print()
            break
        except KeyboardInterrupt:
            # Ctrl-C drops the pending buffer, like an empty command.
            shell.reset()
            print("KeyboardInterrupt")
            continue

        if not shell.feed(line):
            break


def main() -> None:
    repl()


if __name__ == "__main__":
    main()
