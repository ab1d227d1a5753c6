"""Bracket-depth tracking that decides whether a line needs continuation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterable, List, Optional

from .token_types import TT, Tok

# Opener kind => closer kind. Safe-navigation openers close like plain ones.
BRACKET_PAIRS: Dict[TT, TT] = {
    TT.LPAR: TT.RPAR,
    TT.SAFE_LPAR: TT.RPAR,
    TT.LSQB: TT.RSQB,
    TT.SAFE_LSQB: TT.RSQB,
    TT.LBRACE: TT.RBRACE,
}

CLOSERS = frozenset(BRACKET_PAIRS.values())


class Status(Enum):
    BALANCED = "balanced"
    NEEDS_MORE = "needs-more"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class Outcome:
    status: Status
    unexpected: Optional[Tok] = None


class BracketTracker:
    """
    Stack of expected closers, kept across the lines of one command.

    A closer that does not match the top of the stack stops the scan at once:
    the caller should then parse what it has so the grammar reports the
    precise error instead of waiting for more input.
    """

    def __init__(self) -> None:
        self.stack: List[TT] = []

    @property
    def depth(self) -> int:
        return len(self.stack)

    @property
    def expected(self) -> Optional[TT]:
        return self.stack[-1] if self.stack else None

    def feed(self, tokens: Iterable[Tok]) -> Outcome:
        for tok in tokens:
            closer = BRACKET_PAIRS.get(tok.type)
            if closer is not None:
                self.stack.append(closer)
                continue

            if tok.type in CLOSERS:
                if not self.stack or self.stack[-1] != tok.type:
                    return Outcome(Status.MALFORMED, tok)
                self.stack.pop()

        if self.stack:
            return Outcome(Status.NEEDS_MORE)
        return Outcome(Status.BALANCED)

    def reset(self) -> None:
        self.stack.clear()
