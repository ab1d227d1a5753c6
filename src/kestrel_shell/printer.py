"""Rendering of parsed commands and diagnostics for the console."""

from __future__ import annotations

import sys
import traceback
from typing import Optional, TextIO

from lark import Tree, Token
from prompt_toolkit.shortcuts import clear

from .commands import (
    CommandNode,
    CompoundAssignment,
    ExpressionCommand,
    ParallelAssignment,
    SimpleAssignment,
    StatementCommand,
)
from .errors import Diagnostic


def command_tree(node: CommandNode) -> Tree:
    match node:
        case StatementCommand(statement=stmt):
            return Tree('statement', [stmt])
        case ExpressionCommand(expression=expr, terminated=True):
            return Tree('expression_statement', [expr])
        case ExpressionCommand(expression=expr):
            return Tree('value', [expr])
        case SimpleAssignment(target=target, value=value):
            return Tree('simple_assignment', [
                Tree('target', [target]),
                Tree('value', [value]),
            ])
        case CompoundAssignment(target=target, operator=op, value=value):
            return Tree('compound_assignment', [
                Tree('target', [target]),
                Token('OPERATOR', op.value),
                Tree('value', [value]),
            ])
        case ParallelAssignment(targets=targets, values=values):
            return Tree('parallel_assignment', [
                Tree('targets', list(targets)),
                Tree('values', list(values)),
            ])
    raise TypeError(f"not a command node: {node!r}")


def render_command(node: CommandNode) -> str:
    return f"{type(node).__name__} [{node.span}]\n{command_tree(node).pretty()}"


class ConsolePrinter:
    """Writes commands to stdout and diagnostics to stderr as they arrive."""

    def __init__(self, out: Optional[TextIO] = None, err: Optional[TextIO] = None):
        self.out = out if out is not None else sys.stdout
        self.err = err if err is not None else sys.stderr

    def command(self, node: CommandNode) -> None:
        print(render_command(node), file=self.out, end="")

    def diagnostic(self, diag: Diagnostic) -> None:
        print(str(diag), file=self.err)

    def message(self, text: str) -> None:
        print(text, file=self.out)

    def py_traceback(self, exc: BaseException) -> None:
        print("\nPython traceback:", file=self.err)
        print("".join(traceback.format_exception(exc)), file=self.err, end="")

    def clear(self) -> None:
        clear()
