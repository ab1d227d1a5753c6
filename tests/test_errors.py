from __future__ import annotations

import pytest

from kestrel_shell.errors import Code, Diagnostic, ErrorManager, ParseError, Severity
from kestrel_shell.lexer_rd import LexError
from kestrel_shell.token_types import TT, Tok


def test_codes_are_distinct() -> None:
    values = [code.value for code in Code]
    assert len(values) == len(set(values))
    assert Code.EXPECTED_TERMINATOR.value == "KS1002"
    assert Code.UNEXPECTED_TOKEN.value == "KS1001"


def test_parse_error_position() -> None:
    tok = Tok(TT.IDENT, "y", line=2, column=5)
    err = ParseError(Code.EXPECTED_TERMINATOR, "Expected ';'", tok)

    assert (err.line, err.column) == (2, 5)
    assert str(err) == "Expected ';' at line 2, col 5"

    diag = err.to_diagnostic()
    assert diag.severity is Severity.FATAL
    assert (diag.code, diag.line, diag.column) == (Code.EXPECTED_TERMINATOR, 2, 5)


def test_parse_error_without_token() -> None:
    err = ParseError(Code.UNEXPECTED_EOF, "Unexpected end of input")
    assert str(err) == "Unexpected end of input"
    assert (err.line, err.column) == (0, 0)


def test_diagnostic_at_token() -> None:
    tok = Tok(TT.NUMBER, "1", line=1, column=3)
    diag = Diagnostic.at(Code.INVALID_ASSIGNMENT_TARGET, "bad", tok)
    assert (diag.line, diag.column, diag.severity) == (1, 3, Severity.ERROR)
    assert Diagnostic.at(Code.INVALID_ASSIGNMENT_TARGET, "bad", None).line == 0


class TestErrorManager:
    def test_listener_sees_each_diagnostic(self) -> None:
        seen = []
        errors = ErrorManager(listener=seen.append)

        errors.add_error(Diagnostic(Code.INVALID_ASSIGNMENT_TARGET, "a"))
        errors.add_warning(Diagnostic(Code.EMPTY_STATEMENT, "b"))

        assert [d.message for d in seen] == ["a", "b"]
        assert seen == errors.diagnostics

    def test_warnings_do_not_count_as_errors(self) -> None:
        errors = ErrorManager()
        errors.add_warning(Diagnostic(Code.EMPTY_STATEMENT, "w"))

        assert not errors.has_errors
        assert errors.errors == []
        assert len(errors.warnings) == 1

    def test_add_warning_forces_severity(self) -> None:
        errors = ErrorManager()
        errors.add_warning(Diagnostic(Code.EMPTY_STATEMENT, "w", severity=Severity.ERROR))
        assert errors.diagnostics[0].severity is Severity.WARNING

    def test_add_fatal_parse_error(self) -> None:
        errors = ErrorManager()
        tok = Tok(TT.RPAR, ")", line=1, column=1)
        diag = errors.add_fatal(ParseError(Code.UNEXPECTED_TOKEN, "Unexpected token ')'", tok))

        assert diag.severity is Severity.FATAL
        assert diag.message == "Unexpected token ')'"
        assert errors.has_errors

    def test_add_fatal_lex_error(self) -> None:
        errors = ErrorManager()
        diag = errors.add_fatal(LexError("Unterminated string", 3, 7))

        assert diag.code is Code.LEX_ERROR
        assert (diag.line, diag.column) == (3, 7)
        assert diag.message == "Unterminated string"

    def test_add_fatal_rejects_other_exceptions(self) -> None:
        errors = ErrorManager()
        with pytest.raises(TypeError):
            errors.add_fatal(ValueError("nope"))
        assert errors.diagnostics == []

    def test_clear(self) -> None:
        errors = ErrorManager()
        errors.add_error(Diagnostic(Code.ASSIGNMENT_ARITY, "x"))
        errors.clear()
        assert not errors.has_errors

    def test_counts_survive_flush(self) -> None:
        errors = ErrorManager()
        errors.add_error(Diagnostic(Code.INVALID_ASSIGNMENT_TARGET, "a"))
        errors.add_warning(Diagnostic(Code.EMPTY_STATEMENT, "b"))
        errors.add_fatal(ParseError(Code.EXPECTED_TERMINATOR, "c"))
        errors.flush()

        assert errors.diagnostics == []
        assert (errors.error_count, errors.warning_count) == (2, 1)
        assert errors.has_errors

    def test_clear_resets_counts(self) -> None:
        errors = ErrorManager()
        errors.add_warning(Diagnostic(Code.EMPTY_STATEMENT, "w"))
        errors.clear()
        assert (errors.error_count, errors.warning_count) == (0, 0)
