"""
Lexer for Kestrel - feeds the command recognizer and the grammar

Tokenizes Kestrel source text into a stream of tokens.

Features:
- Single-pass, on-demand tokenization (one token per call)
- Position tracking (line, column) at token start
- Whitespace and newlines are insignificant; // starts a line comment
- Safe-navigation openers ?( ?[ ?. only when glued to an operand
"""

from typing import List, Optional

from .token_types import TT, Tok


class LexError(Exception):
    """Lexical analysis error"""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        self.message = message
        self.line = line
        self.column = column
        super().__init__(f"{message} at line {line}, col {column}")


# ============================================================================
# Lexer Implementation
# ============================================================================

class Lexer:
    """
    Kestrel lexer.

    `?(`, `?[` and `?.` become safe-navigation tokens only when the `?` is
    glued to the end of an operand on the same line. So `ok?(a):b` is a safe
    call followed by a stray `:`; a conditional needs a space, `ok ? (a) : b`.
    """

    # Keyword mapping
    KEYWORDS = {
        'var': TT.VAR,
        'const': TT.CONST,
        'fn': TT.FN,
        'if': TT.IF,
        'else': TT.ELSE,
        'while': TT.WHILE,
        'do': TT.DO,
        'for': TT.FOR,
        'in': TT.IN,
        'break': TT.BREAK,
        'continue': TT.CONTINUE,
        'return': TT.RETURN,
        'throw': TT.THROW,
        'try': TT.TRY,
        'catch': TT.CATCH,
        'finally': TT.FINALLY,
        'new': TT.NEW,
        'this': TT.THIS,
        'base': TT.BASE,
        'true': TT.TRUE,
        'false': TT.FALSE,
        'null': TT.NULL,
    }

    # Operator mapping: longest matches first to handle prefixes correctly
    OPERATORS = [
        # Three-character operators
        ('**=', TT.POWEQ),
        ('<<=', TT.SHLEQ),
        ('>>=', TT.SHREQ),

        # Two-character operators
        ('**', TT.POW),
        ('<<', TT.SHL),
        ('>>', TT.SHR),
        ('==', TT.EQ),
        ('!=', TT.NEQ),
        ('<=', TT.LTE),
        ('>=', TT.GTE),
        ('&&', TT.AND),
        ('||', TT.OR),
        ('??', TT.NULLISH),
        ('++', TT.INCR),
        ('--', TT.DECR),
        ('+=', TT.PLUSEQ),
        ('-=', TT.MINUSEQ),
        ('*=', TT.STAREQ),
        ('/=', TT.SLASHEQ),
        ('%=', TT.MODEQ),
        ('&=', TT.AMPEQ),
        ('|=', TT.PIPEEQ),
        ('^=', TT.CARETEQ),
        ('~=', TT.TILDEEQ),

        # Single-character operators
        ('+', TT.PLUS),
        ('-', TT.MINUS),
        ('*', TT.STAR),
        ('/', TT.SLASH),
        ('%', TT.MOD),
        ('~', TT.TILDE),
        ('&', TT.AMP),
        ('|', TT.PIPE),
        ('^', TT.CARET),
        ('<', TT.LT),
        ('>', TT.GT),
        ('!', TT.NEG),
        ('?', TT.QMARK),
        ('=', TT.ASSIGN),
        ('(', TT.LPAR),
        (')', TT.RPAR),
        ('[', TT.LSQB),
        (']', TT.RSQB),
        ('{', TT.LBRACE),
        ('}', TT.RBRACE),
        ('.', TT.DOT),
        (',', TT.COMMA),
        (':', TT.COLON),
        (';', TT.SEMI),
    ]

    # Safe-navigation forms: '?' glued to the operand before it
    SAFE_FORMS = {
        '(': TT.SAFE_LPAR,
        '[': TT.SAFE_LSQB,
        '.': TT.SAFE_DOT,
    }

    # Tokens that can end an operand
    OPERAND_END = {
        TT.IDENT, TT.NUMBER, TT.STRING, TT.THIS, TT.BASE,
        TT.TRUE, TT.FALSE, TT.NULL, TT.RPAR, TT.RSQB,
    }

    def __init__(self, source: str):
        self.source = source
        self.pos = 0
        self.line = 1
        self.column = 1
        self.last: Optional[Tok] = None

    # ========================================================================
    # Main Tokenization
    # ========================================================================

    def tokenize(self) -> List[Tok]:
        """Tokenize entire source, return token list ending with EOF"""
        tokens = []
        while True:
            tok = self.next_token()
            tokens.append(tok)
            if tok.type == TT.EOF:
                return tokens

    def next_token(self) -> Tok:
        """Scan and return the next token; EOF repeats once reached"""
        self.skip_trivia()

        if self.pos >= len(self.source):
            return self.make(TT.EOF, None, self.line, self.column)

        line, column = self.line, self.column
        ch = self.peek()

        if ch in ('"', "'"):
            return self.scan_string(line, column)

        if ch.isdigit():
            return self.scan_number(line, column)

        if ch.isalpha() or ch == '_':
            return self.scan_identifier(line, column)

        if ch == '?' and self.is_glued() and self.peek(1) in self.SAFE_FORMS:
            text = self.advance(2)
            return self.make(self.SAFE_FORMS[text[1]], text, line, column)

        return self.scan_operator(line, column)

    # ========================================================================
    # Token Scanners
    # ========================================================================

    def scan_string(self, line: int, column: int) -> Tok:
        """Scan string literal: "..." or '...' (single line)"""
        quote = self.advance()
        value = quote  # Keep opening quote

        while self.pos < len(self.source) and self.peek() not in (quote, '\n'):
            if self.peek() == '\\':
                # Keep escape sequence as-is
                value += self.advance()
                if self.pos < len(self.source) and self.peek() != '\n':
                    value += self.advance()
            else:
                value += self.advance()

        if self.pos >= len(self.source) or self.peek() == '\n':
            raise LexError("Unterminated string", line, column)

        value += self.advance()  # Closing quote
        return self.make(TT.STRING, value, line, column)

    def scan_number(self, line: int, column: int) -> Tok:
        """Scan number literal"""
        value = ''

        while self.peek().isdigit():
            value += self.advance()

        # Decimal part
        if self.peek() == '.' and self.peek(1).isdigit():
            value += self.advance()
            while self.peek().isdigit():
                value += self.advance()

        # Scientific notation
        if self.peek() in ('e', 'E') and (
            self.peek(1).isdigit()
            or (self.peek(1) in ('+', '-') and self.peek(2).isdigit())
        ):
            value += self.advance()
            if self.peek() in ('+', '-'):
                value += self.advance()
            while self.peek().isdigit():
                value += self.advance()

        if self.peek().isalpha() or self.peek() == '_':
            raise LexError("Invalid number suffix", line, column)

        return self.make(TT.NUMBER, value, line, column)

    def scan_identifier(self, line: int, column: int) -> Tok:
        """Scan identifier or keyword"""
        value = ''

        while self.peek().isalnum() or self.peek() == '_':
            value += self.advance()

        token_type = self.KEYWORDS.get(value, TT.IDENT)
        return self.make(token_type, value, line, column)

    def scan_operator(self, line: int, column: int) -> Tok:
        """Scan operators and punctuation"""
        for op_str, op_type in self.OPERATORS:
            if self.source.startswith(op_str, self.pos):
                self.advance(len(op_str))
                return self.make(op_type, op_str, line, column)

        raise LexError(f"Unexpected character '{self.peek()}'", line, column)

    # ========================================================================
    # Utilities
    # ========================================================================

    def is_glued(self) -> bool:
        """True if the previous token is an operand ending right before pos"""
        last = self.last
        if last is None or last.type not in self.OPERAND_END:
            return False
        return last.line == self.line and last.end_column == self.column

    def peek(self, offset: int = 0) -> str:
        """Look ahead at character"""
        idx = self.pos + offset
        if idx < len(self.source):
            return self.source[idx]
        return '\0'

    def advance(self, n: int = 1) -> str:
        """Consume n characters and return them as a string"""
        result = ''
        for _ in range(n):
            ch = self.source[self.pos] if self.pos < len(self.source) else '\0'
            result += ch
            self.pos += 1
            if ch == '\n':
                self.line += 1
                self.column = 1
            else:
                self.column += 1
        return result

    def skip_trivia(self) -> None:
        """Skip whitespace, newlines and // comments"""
        while self.pos < len(self.source):
            ch = self.peek()
            if ch in (' ', '\t', '\r', '\n'):
                self.advance()
            elif ch == '/' and self.peek(1) == '/':
                while self.peek() not in ('\n', '\0'):
                    self.advance()
            else:
                return

    def make(self, token_type: TT, value, line: int, column: int) -> Tok:
        """Build a token and remember it for the glue rule"""
        tok = Tok(type=token_type, value=value, line=line, column=column)
        self.last = tok
        return tok


class TokenStream:
    """
    Random-access view over a lexer.

    Tokens are produced on demand and memoized, so peeking at the same index
    again is cheap and has no side effects. Any index past the end yields the
    EOF token.
    """

    def __init__(self, source: str):
        self.source = source
        self.lexer = Lexer(source)
        self.tokens: List[Tok] = []

    def token_at(self, index: int) -> Tok:
        if index < 0:
            raise IndexError(f"token index must be >= 0, got {index}")

        while len(self.tokens) <= index:
            if self.tokens and self.tokens[-1].type == TT.EOF:
                return self.tokens[-1]
            self.tokens.append(self.lexer.next_token())

        return self.tokens[index]

    def __iter__(self):
        idx = 0
        while True:
            tok = self.token_at(idx)
            yield tok
            if tok.type == TT.EOF:
                return
            idx += 1


def tokenize(source: str) -> List[Tok]:
    """Convenience function to tokenize source"""
    return Lexer(source).tokenize()


if __name__ == '__main__':
    for tok in tokenize('total, count = sum(xs) ?? 0, len(xs);'):
        print(tok)
