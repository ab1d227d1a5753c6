"""Token navigation shared by the grammar and the command parser."""

from typing import Optional

from .errors import Code, ParseError
from .lexer_rd import TokenStream
from .token_types import TT, Tok


class TokenCursor:
    """Position over a TokenStream with the usual look-ahead helpers."""

    def __init__(self, stream: TokenStream):
        self.stream = stream
        self.pos = 0

    # ========================================================================
    # Token Navigation
    # ========================================================================

    @property
    def current(self) -> Tok:
        return self.stream.token_at(self.pos)

    @property
    def previous(self) -> Optional[Tok]:
        if self.pos == 0:
            return None
        return self.stream.token_at(self.pos - 1)

    def peek(self, offset: int = 0) -> Tok:
        """Look ahead at token"""
        return self.stream.token_at(self.pos + offset)

    def advance(self) -> Tok:
        """Consume current token and move to next"""
        prev = self.current
        if prev.type != TT.EOF:
            self.pos += 1
        return prev

    def check(self, *types: TT) -> bool:
        """Check if current token matches any of the given types"""
        return self.current.type in types

    def match(self, *types: TT) -> bool:
        """Check and consume if current token matches"""
        if self.check(*types):
            self.advance()
            return True
        return False

    def expect(self, token_type: TT, message: Optional[str] = None) -> Tok:
        """Consume token of expected type or raise error"""
        if not self.check(token_type):
            raise self.unexpected(
                message or f"Expected {token_type.name}, got {self.current.type.name}",
                Code.EXPECTED_TOKEN,
            )
        return self.advance()

    def expect_terminator(self) -> Tok:
        """Consume the ';' that ends a statement"""
        if not self.check(TT.SEMI):
            tok = self.current
            found = "end of input" if tok.type == TT.EOF else f"'{tok.value}'"
            raise ParseError(
                Code.EXPECTED_TERMINATOR,
                f"Expected ';' to end the statement, found {found}",
                tok,
            )
        return self.advance()

    def unexpected(self, message: Optional[str] = None,
                   code: Code = Code.UNEXPECTED_TOKEN) -> ParseError:
        """Build the error for the current token; EOF gets its own code"""
        tok = self.current
        if tok.type == TT.EOF:
            return ParseError(Code.UNEXPECTED_EOF, "Unexpected end of input", tok)
        return ParseError(code, message or f"Unexpected token '{tok.value}'", tok)
