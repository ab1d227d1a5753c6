"""Command nodes: the closed set of things one REPL command can parse to."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from lark import Tree, Token

from .operators import BinOp
from .token_types import Tok

Node = Union[Tree, Token]


@dataclass(frozen=True)
class Span:
    start_line: int
    start_column: int
    end_line: int
    end_column: int

    @classmethod
    def between(cls, start: Tok, end: Tok) -> Span:
        return cls(start.line, start.column, end.end_line, end.end_column)

    def __str__(self) -> str:
        return f"{self.start_line}:{self.start_column}-{self.end_line}:{self.end_column}"


@dataclass(frozen=True)
class StatementCommand:
    statement: Tree
    span: Span


@dataclass(frozen=True)
class ExpressionCommand:
    """An expression statement, or a value command when not terminated."""

    expression: Node
    span: Span
    terminated: bool = True

    @property
    def is_value_command(self) -> bool:
        return not self.terminated


@dataclass(frozen=True)
class SimpleAssignment:
    target: Node
    value: Node
    span: Span


@dataclass(frozen=True)
class CompoundAssignment:
    target: Node
    operator: BinOp
    value: Node
    span: Span


@dataclass(frozen=True)
class ParallelAssignment:
    targets: Tuple[Node, ...]
    values: Tuple[Node, ...]
    span: Span


CommandNode = Union[
    StatementCommand,
    ExpressionCommand,
    SimpleAssignment,
    CompoundAssignment,
    ParallelAssignment,
]
