"""Diagnostics for the Kestrel shell: codes, severities and the error sink."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from .lexer_rd import LexError
from .token_types import Tok


class Code(Enum):
    LEX_ERROR = "KS0001"
    UNEXPECTED_TOKEN = "KS1001"
    EXPECTED_TERMINATOR = "KS1002"
    UNEXPECTED_EOF = "KS1003"
    EXPECTED_TOKEN = "KS1004"
    NESTING_TOO_DEEP = "KS1005"
    INVALID_ASSIGNMENT_TARGET = "KS1010"
    INVALID_STATEMENT_EXPRESSION = "KS1011"
    ASSIGNMENT_ARITY = "KS1012"
    EMPTY_STATEMENT = "KS2001"


class Severity(Enum):
    WARNING = "warning"
    ERROR = "error"
    FATAL = "fatal"


@dataclass(frozen=True)
class Diagnostic:
    code: Code
    message: str
    line: int = 0
    column: int = 0
    severity: Severity = Severity.ERROR

    @classmethod
    def at(cls, code: Code, message: str, token: Optional[Tok],
           severity: Severity = Severity.ERROR) -> Diagnostic:
        if token is None:
            return cls(code, message, severity=severity)
        return cls(code, message, token.line, token.column, severity)

    def __str__(self) -> str:
        return (
            f"{self.severity.value} {self.code.value} "
            f"({self.line}:{self.column}): {self.message}"
        )


class ParseError(Exception):
    """Fatal parse error with position info"""

    def __init__(self, code: Code, message: str, token: Optional[Tok] = None):
        self.code = code
        self.message = message
        self.token = token
        self.line = token.line if token else 0
        self.column = token.column if token else 0
        super().__init__(
            f"{message} at line {token.line}, col {token.column}" if token else message
        )

    def to_diagnostic(self) -> Diagnostic:
        return Diagnostic.at(self.code, self.message, self.token, Severity.FATAL)


class ErrorManager:
    """
    Sink for every diagnostic raised while recognizing commands.

    Recoverable errors and warnings are added by the parser as it goes; fatal
    errors are added by the session when it catches a ParseError or LexError.
    The listener, when set, sees each diagnostic as soon as it is recorded.

    `diagnostics` holds what was recorded since the last `flush()`; the
    counts cover the whole lifetime of the manager.
    """

    def __init__(self, listener: Optional[Callable[[Diagnostic], None]] = None):
        self.listener = listener
        self.diagnostics: List[Diagnostic] = []
        self.error_count = 0
        self.warning_count = 0

    def add_error(self, diag: Diagnostic) -> None:
        self._record(diag)

    def add_warning(self, diag: Diagnostic) -> None:
        if diag.severity is not Severity.WARNING:
            diag = Diagnostic(diag.code, diag.message, diag.line, diag.column,
                              Severity.WARNING)
        self._record(diag)

    def add_fatal(self, exc: Exception) -> Diagnostic:
        if isinstance(exc, ParseError):
            diag = exc.to_diagnostic()
        elif isinstance(exc, LexError):
            diag = Diagnostic(Code.LEX_ERROR, exc.message, exc.line, exc.column,
                              Severity.FATAL)
        else:
            raise TypeError(f"not a parse or lex error: {exc!r}")
        self._record(diag)
        return diag

    @property
    def errors(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is not Severity.WARNING]

    @property
    def warnings(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.severity is Severity.WARNING]

    @property
    def has_errors(self) -> bool:
        return self.error_count > 0

    def flush(self) -> None:
        """Forget recorded diagnostics, keeping the counts."""
        self.diagnostics.clear()

    def clear(self) -> None:
        self.diagnostics.clear()
        self.error_count = 0
        self.warning_count = 0

    def _record(self, diag: Diagnostic) -> None:
        if diag.severity is Severity.WARNING:
            self.warning_count += 1
        else:
            self.error_count += 1
        self.diagnostics.append(diag)
        if self.listener is not None:
            self.listener(diag)
