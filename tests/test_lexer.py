from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pytest

from kestrel_shell.lexer_rd import LexError, Lexer, TokenStream, tokenize
from kestrel_shell.token_types import TT, Tok


@dataclass(frozen=True)
class Case:
    """Unified lexer case payload."""

    name: str
    source: str
    expected: Optional[Tuple[Tuple[TT, object], ...]] = None
    expected_types: Optional[Tuple[TT, ...]] = None
    msg: Optional[str] = None
    err_line: Optional[int] = None
    err_col: Optional[int] = None


BASIC_TOKEN_CASES: List[Case] = [
    Case("number-int", "123", expected=((TT.NUMBER, "123"),)),
    Case("number-float", "3.14", expected=((TT.NUMBER, "3.14"),)),
    Case("number-exp", "1e10", expected=((TT.NUMBER, "1e10"),)),
    Case("number-signed-exp", "2.5E-3", expected=((TT.NUMBER, "2.5E-3"),)),
    Case("ident-single", "x", expected=((TT.IDENT, "x"),)),
    Case("ident-snake", "foo_bar2", expected=((TT.IDENT, "foo_bar2"),)),
    Case("ident-underscore", "_tmp", expected=((TT.IDENT, "_tmp"),)),
    Case("string-double", '"hello"', expected=((TT.STRING, '"hello"'),)),
    Case("string-single", "'world'", expected=((TT.STRING, "'world'"),)),
    Case("string-escape", r'"a\"b"', expected=((TT.STRING, r'"a\"b"'),)),
    Case("bool-true", "true", expected=((TT.TRUE, "true"),)),
    Case("bool-false", "false", expected=((TT.FALSE, "false"),)),
    Case("null-literal", "null", expected=((TT.NULL, "null"),)),
    Case("member-on-number", "1.x", expected=((TT.NUMBER, "1"), (TT.DOT, "."), (TT.IDENT, "x"))),
]

OPERATOR_CASES: List[Case] = [
    Case("plus", "+", expected_types=(TT.PLUS,)),
    Case("minus", "-", expected_types=(TT.MINUS,)),
    Case("star", "*", expected_types=(TT.STAR,)),
    Case("slash", "/", expected_types=(TT.SLASH,)),
    Case("mod", "%", expected_types=(TT.MOD,)),
    Case("pow", "**", expected_types=(TT.POW,)),
    Case("concat", "~", expected_types=(TT.TILDE,)),
    Case("shl", "<<", expected_types=(TT.SHL,)),
    Case("shr", ">>", expected_types=(TT.SHR,)),
    Case("eq", "==", expected_types=(TT.EQ,)),
    Case("neq", "!=", expected_types=(TT.NEQ,)),
    Case("lte", "<=", expected_types=(TT.LTE,)),
    Case("gte", ">=", expected_types=(TT.GTE,)),
    Case("lt", "<", expected_types=(TT.LT,)),
    Case("gt", ">", expected_types=(TT.GT,)),
    Case("and", "&&", expected_types=(TT.AND,)),
    Case("or", "||", expected_types=(TT.OR,)),
    Case("not", "!", expected_types=(TT.NEG,)),
    Case("nullish", "??", expected_types=(TT.NULLISH,)),
    Case("incr", "++", expected_types=(TT.INCR,)),
    Case("decr", "--", expected_types=(TT.DECR,)),
    Case("assign", "=", expected_types=(TT.ASSIGN,)),
    Case("pluseq", "+=", expected_types=(TT.PLUSEQ,)),
    Case("minuseq", "-=", expected_types=(TT.MINUSEQ,)),
    Case("stareq", "*=", expected_types=(TT.STAREQ,)),
    Case("slasheq", "/=", expected_types=(TT.SLASHEQ,)),
    Case("modeq", "%=", expected_types=(TT.MODEQ,)),
    Case("poweq", "**=", expected_types=(TT.POWEQ,)),
    Case("ampeq", "&=", expected_types=(TT.AMPEQ,)),
    Case("pipeeq", "|=", expected_types=(TT.PIPEEQ,)),
    Case("careteq", "^=", expected_types=(TT.CARETEQ,)),
    Case("shleq", "<<=", expected_types=(TT.SHLEQ,)),
    Case("shreq", ">>=", expected_types=(TT.SHREQ,)),
    Case("tildeeq", "~=", expected_types=(TT.TILDEEQ,)),
    Case("punctuation", "()[]{}.,:;", expected_types=(
        TT.LPAR, TT.RPAR, TT.LSQB, TT.RSQB, TT.LBRACE, TT.RBRACE,
        TT.DOT, TT.COMMA, TT.COLON, TT.SEMI,
    )),
]

KEYWORD_CASES: List[Case] = [
    Case(kw, kw, expected_types=(tt,)) for kw, tt in sorted(Lexer.KEYWORDS.items())
] + [
    Case("keyword-prefix-ident", "format", expected_types=(TT.IDENT,)),
    Case("keyword-suffix-ident", "myvar", expected_types=(TT.IDENT,)),
]

SAFE_NAVIGATION_CASES: List[Case] = [
    Case("safe-member", "a?.b", expected_types=(TT.IDENT, TT.SAFE_DOT, TT.IDENT)),
    Case(
        "safe-call",
        "f?(1)",
        expected_types=(TT.IDENT, TT.SAFE_LPAR, TT.NUMBER, TT.RPAR),
    ),
    Case(
        "safe-index",
        "xs?[0]",
        expected_types=(TT.IDENT, TT.SAFE_LSQB, TT.NUMBER, TT.RSQB),
    ),
    Case(
        "safe-after-closer",
        "f()?.x",
        expected_types=(TT.IDENT, TT.LPAR, TT.RPAR, TT.SAFE_DOT, TT.IDENT),
    ),
    Case(
        "ternary-spaced",
        "a ? (b) : c",
        expected_types=(TT.IDENT, TT.QMARK, TT.LPAR, TT.IDENT, TT.RPAR, TT.COLON, TT.IDENT),
    ),
    Case(
        "ternary-glued-ident",
        "a?b:c",
        expected_types=(TT.IDENT, TT.QMARK, TT.IDENT, TT.COLON, TT.IDENT),
    ),
    Case(
        "ternary-after-operator",
        "x = ?(1)",
        expected_types=(TT.IDENT, TT.ASSIGN, TT.QMARK, TT.LPAR, TT.NUMBER, TT.RPAR),
    ),
    Case(
        "glued-paren-is-safe-call",
        "ok?(a):b",
        expected_types=(TT.IDENT, TT.SAFE_LPAR, TT.IDENT, TT.RPAR, TT.COLON, TT.IDENT),
    ),
    Case("nullish-glued", "a??b", expected_types=(TT.IDENT, TT.NULLISH, TT.IDENT)),
]

COMPOSITE_CASES: List[Case] = [
    Case(
        "parallel-assignment",
        "a, b = 1, 2;",
        expected_types=(
            TT.IDENT, TT.COMMA, TT.IDENT, TT.ASSIGN,
            TT.NUMBER, TT.COMMA, TT.NUMBER, TT.SEMI,
        ),
    ),
    Case(
        "ctor-forward",
        "new base(x);",
        expected_types=(TT.NEW, TT.BASE, TT.LPAR, TT.IDENT, TT.RPAR, TT.SEMI),
    ),
    Case("label", "outer: x", expected_types=(TT.IDENT, TT.COLON, TT.IDENT)),
    Case(
        "compound-no-spaces",
        "x**=2",
        expected_types=(TT.IDENT, TT.POWEQ, TT.NUMBER),
    ),
    Case(
        "postfix-incr",
        "i++;",
        expected_types=(TT.IDENT, TT.INCR, TT.SEMI),
    ),
]

LEX_ERROR_CASES: List[Case] = [
    Case("unterminated-string", '"abc', msg="Unterminated string", err_line=1, err_col=1),
    Case(
        "string-across-newline",
        "'ab\ncd'",
        msg="Unterminated string",
        err_line=1,
        err_col=1,
    ),
    Case(
        "unterminated-string-line2",
        'x = 1;\ny = "abc',
        msg="Unterminated string",
        err_line=2,
        err_col=5,
    ),
    Case("unexpected-char", "x = @", msg="Unexpected character '@'", err_line=1, err_col=5),
    Case("hash-is-not-comment", "# nope", msg="Unexpected character '#'", err_line=1, err_col=1),
    Case("invalid-suffix", "123abc", msg="Invalid number suffix", err_line=1, err_col=1),
]


def _non_eof_tokens(source: str) -> List[Tok]:
    return [token for token in tokenize(source) if token.type != TT.EOF]


@pytest.mark.parametrize("case", BASIC_TOKEN_CASES, ids=lambda case: case.name)
def test_basic_tokens(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)

    assert case.expected is not None
    assert len(tokens) == len(case.expected)
    for token, (expected_type, expected_value) in zip(tokens, case.expected):
        assert token.type == expected_type
        assert token.value == expected_value


@pytest.mark.parametrize(
    "case",
    OPERATOR_CASES + KEYWORD_CASES + SAFE_NAVIGATION_CASES + COMPOSITE_CASES,
    ids=lambda case: case.name,
)
def test_token_kinds(case: Case) -> None:
    tokens = _non_eof_tokens(case.source)
    assert case.expected_types is not None
    assert [token.type for token in tokens] == list(case.expected_types)


def test_comments_and_newlines_are_trivia() -> None:
    source = "x = 5; // trailing note\n// whole line\ny"
    expected_types = [TT.IDENT, TT.ASSIGN, TT.NUMBER, TT.SEMI, TT.IDENT]
    assert [token.type for token in _non_eof_tokens(source)] == expected_types


def test_position_tracking() -> None:
    tokens = tokenize("x\n  yy = 'z'")
    positions = {token.value: (token.line, token.column) for token in tokens}

    assert positions["x"] == (1, 1)
    assert positions["yy"] == (2, 3)
    assert positions["'z'"] == (2, 8)
    assert tokens[-1].type == TT.EOF


def test_token_end_column() -> None:
    name, _, string, _ = tokenize("foo + 'ab'")
    assert (name.end_line, name.end_column) == (1, 4)
    assert string.end_column == 11


def test_safe_navigation_requires_glue_across_lines() -> None:
    # An operand on the previous line does not glue.
    types = [token.type for token in _non_eof_tokens("a\n?.b")]
    assert types == [TT.IDENT, TT.QMARK, TT.DOT, TT.IDENT]


@pytest.mark.parametrize("case", LEX_ERROR_CASES, ids=lambda case: case.name)
def test_lex_errors(case: Case) -> None:
    assert case.msg is not None
    with pytest.raises(LexError) as exc_info:
        tokenize(case.source)

    err = exc_info.value
    assert case.msg in str(err)

    if case.err_line is not None:
        assert (
            err.line == case.err_line
        ), f"expected line {case.err_line}, got {err.line}"
    if case.err_col is not None:
        assert (
            err.column == case.err_col
        ), f"expected col {case.err_col}, got {err.column}"


def test_eof_repeats() -> None:
    lexer = Lexer("x")
    assert lexer.next_token().type == TT.IDENT
    assert lexer.next_token().type == TT.EOF
    assert lexer.next_token().type == TT.EOF


class TestTokenStream:
    def test_memoizes_tokens(self) -> None:
        stream = TokenStream("a + b")
        first = stream.token_at(2)
        assert stream.token_at(2) is first
        assert stream.token_at(0).value == "a"

    def test_lexes_lazily(self) -> None:
        stream = TokenStream("a @")
        assert stream.token_at(0).value == "a"
        assert len(stream.tokens) == 1
        with pytest.raises(LexError):
            stream.token_at(1)

    def test_past_end_is_eof(self) -> None:
        stream = TokenStream("a")
        eof = stream.token_at(1)
        assert eof.type == TT.EOF
        assert stream.token_at(50) is eof

    def test_negative_index(self) -> None:
        with pytest.raises(IndexError):
            TokenStream("a").token_at(-1)

    def test_iteration_stops_after_eof(self) -> None:
        kinds = [token.type for token in TokenStream("f(x)")]
        assert kinds == [TT.IDENT, TT.LPAR, TT.IDENT, TT.RPAR, TT.EOF]
