"""
Token Types for the Kestrel shell

Shared between lexer, grammar and the command recognizer to avoid circular
dependencies.
"""

from typing import Any
from dataclasses import dataclass
from enum import Enum, auto


class TT(Enum):
    """Token Types - mirrors grammar terminals"""

    # Literals
    NUMBER = auto()
    STRING = auto()
    IDENT = auto()

    # Declarations
    VAR = auto()
    CONST = auto()
    FN = auto()

    # Control flow
    IF = auto()
    ELSE = auto()
    WHILE = auto()
    DO = auto()
    FOR = auto()
    IN = auto()
    BREAK = auto()
    CONTINUE = auto()
    RETURN = auto()
    THROW = auto()
    TRY = auto()
    CATCH = auto()
    FINALLY = auto()

    # Objects
    NEW = auto()
    THIS = auto()
    BASE = auto()

    # Literals
    TRUE = auto()
    FALSE = auto()
    NULL = auto()

    # Arithmetic
    PLUS = auto()
    MINUS = auto()
    STAR = auto()
    SLASH = auto()
    MOD = auto()
    POW = auto()
    TILDE = auto()  # ~ string concatenation

    # Bitwise
    AMP = auto()
    PIPE = auto()
    CARET = auto()
    SHL = auto()
    SHR = auto()

    # Comparison
    EQ = auto()
    NEQ = auto()
    LT = auto()
    LTE = auto()
    GT = auto()
    GTE = auto()

    # Logical
    AND = auto()  # &&
    OR = auto()  # ||
    NEG = auto()  # !

    NULLISH = auto()  # ??
    QMARK = auto()

    # Increment/Decrement
    INCR = auto()  # ++
    DECR = auto()  # --

    # Assignment
    ASSIGN = auto()  # =
    PLUSEQ = auto()
    MINUSEQ = auto()
    STAREQ = auto()
    SLASHEQ = auto()
    MODEQ = auto()
    POWEQ = auto()
    AMPEQ = auto()
    PIPEEQ = auto()
    CARETEQ = auto()
    SHLEQ = auto()
    SHREQ = auto()
    TILDEEQ = auto()

    # Punctuation
    LPAR = auto()
    SAFE_LPAR = auto()  # ?(
    RPAR = auto()
    LSQB = auto()
    SAFE_LSQB = auto()  # ?[
    RSQB = auto()
    LBRACE = auto()
    RBRACE = auto()
    DOT = auto()
    SAFE_DOT = auto()  # ?.
    COMMA = auto()
    COLON = auto()
    SEMI = auto()

    # Special
    EOF = auto()


@dataclass(frozen=True)
class Tok:
    """Token with position info (1-based line and start column)"""

    type: TT
    value: Any
    line: int = 0
    column: int = 0

    @property
    def end_line(self) -> int:
        return self.line

    @property
    def end_column(self) -> int:
        if self.value is None:
            return self.column
        return self.column + len(str(self.value))

    def __repr__(self):
        return f"Tok({self.type.name}, {self.value!r}, {self.line}:{self.column})"
