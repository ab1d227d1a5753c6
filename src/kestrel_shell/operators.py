"""Binary operators and the compound-assignment table."""

from __future__ import annotations

from enum import Enum
from typing import Dict

from .token_types import TT


class BinOp(Enum):
    ADD = "+"
    SUB = "-"
    MUL = "*"
    DIV = "/"
    MOD = "%"
    POW = "**"
    BIT_AND = "&"
    BIT_OR = "|"
    BIT_XOR = "^"
    SHL = "<<"
    SHR = ">>"
    CONCAT = "~"


# Compound assignment token => underlying binary operator.
COMPOUND_ASSIGN_OPS: Dict[TT, BinOp] = {
    TT.PLUSEQ: BinOp.ADD,
    TT.MINUSEQ: BinOp.SUB,
    TT.STAREQ: BinOp.MUL,
    TT.SLASHEQ: BinOp.DIV,
    TT.MODEQ: BinOp.MOD,
    TT.POWEQ: BinOp.POW,
    TT.AMPEQ: BinOp.BIT_AND,
    TT.PIPEEQ: BinOp.BIT_OR,
    TT.CARETEQ: BinOp.BIT_XOR,
    TT.SHLEQ: BinOp.SHL,
    TT.SHREQ: BinOp.SHR,
    TT.TILDEEQ: BinOp.CONCAT,
}


def binary_operator_for(token_type: TT) -> BinOp:
    """Map a compound assignment token kind to its binary operator.

    Raises KeyError for any other token kind.
    """
    return COMPOUND_ASSIGN_OPS[token_type]


def is_compound_assign(token_type: TT) -> bool:
    return token_type in COMPOUND_ASSIGN_OPS
