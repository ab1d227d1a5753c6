"""
Statement/expression disambiguation for one command.

Decides from at most two tokens of look-ahead whether the command starting
at a position must be parsed as a statement or as something expression-like
(a bare expression, an expression statement, or one of the assignments).
Labeled statements and constructor forwarding look like expressions
lexically, so they are caught before the fallback.
"""

from __future__ import annotations

from enum import Enum

from .lexer_rd import TokenStream
from .token_types import TT


class Classification(Enum):
    STATEMENT_START = "statement"
    EXPRESSION_LIKE = "expression"


# Tokens that can only begin a statement.
STATEMENT_START = frozenset({
    # declarations
    TT.VAR,
    TT.CONST,
    TT.FN,
    # loops
    TT.WHILE,
    TT.DO,
    TT.FOR,
    # conditionals
    TT.IF,
    # control flow
    TT.BREAK,
    TT.CONTINUE,
    TT.RETURN,
    # exception handling
    TT.THROW,
    TT.TRY,
    # empty statement and blocks
    TT.SEMI,
    TT.LBRACE,
})

# Receivers that turn `new` into constructor forwarding.
CTOR_RECEIVERS = frozenset({TT.THIS, TT.BASE})


def classify(stream: TokenStream, pos: int) -> Classification:
    first = stream.token_at(pos).type

    if first in STATEMENT_START:
        return Classification.STATEMENT_START

    if first == TT.IDENT and stream.token_at(pos + 1).type == TT.COLON:
        return Classification.STATEMENT_START

    if first == TT.NEW and stream.token_at(pos + 1).type in CTOR_RECEIVERS:
        return Classification.STATEMENT_START

    return Classification.EXPRESSION_LIKE
