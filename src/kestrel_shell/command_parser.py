"""
Command Parser for the Kestrel shell

Builds one command node per top-level unit of a buffer. Statements go
straight to the grammar; everything else is parsed as an expression first
and the token after it picks the final form:

    ;          expression statement
    =          simple assignment
    op=        compound assignment
    ,          parallel assignment
    EOF        value command (bare expression, no terminator)
"""

from typing import Iterator, List, Optional

from .commands import (
    CommandNode,
    CompoundAssignment,
    ExpressionCommand,
    Node,
    ParallelAssignment,
    SimpleAssignment,
    Span,
    StatementCommand,
)
from .cursor import TokenCursor
from .disambiguator import Classification, classify
from .errors import Code, Diagnostic, ErrorManager
from .grammar_rd import Grammar
from .lexer_rd import TokenStream
from .operators import binary_operator_for, is_compound_assign
from .token_types import TT, Tok


class CommandParser(TokenCursor):
    """Top-level command recognizer; delegates sub-parsing to a Grammar."""

    def __init__(self, stream: TokenStream, errors: ErrorManager,
                 grammar: Optional[Grammar] = None):
        super().__init__(stream)
        self.errors = errors
        self.grammar = grammar if grammar is not None else Grammar(stream, errors)

    # ========================================================================
    # Top-Level Parsing
    # ========================================================================

    def iter_commands(self) -> Iterator[CommandNode]:
        """Yield commands until end of input"""
        while not self.check(TT.EOF):
            yield self.parse_command()

    def parse_commands(self) -> List[CommandNode]:
        return list(self.iter_commands())

    def parse_command(self) -> CommandNode:
        start = self.current

        if classify(self.stream, self.pos) is Classification.STATEMENT_START:
            stmt, self.pos = self.grammar.parse_statement(self.pos)
            return StatementCommand(stmt, self._span_from(start))

        return self.parse_expression_like(start)

    def parse_expression_like(self, start: Tok) -> CommandNode:
        expr = self._expression()

        if self.check(TT.SEMI):
            self.grammar.require_statement_expression(expr)
            self.advance()
            return ExpressionCommand(expr, self._span_from(start))

        if self.check(TT.ASSIGN):
            return self._simple_assignment(start, expr)

        if is_compound_assign(self.current.type):
            return self._compound_assignment(start, expr)

        if self.check(TT.COMMA):
            return self._parallel_assignment(start, expr)

        if self.check(TT.EOF):
            return ExpressionCommand(expr, self._span_from(start), terminated=False)

        raise self.unexpected()

    # ========================================================================
    # Assignments
    # ========================================================================

    def _simple_assignment(self, start: Tok, target: Node) -> SimpleAssignment:
        self.expect(TT.ASSIGN)
        self.grammar.require_assignable(target)
        value = self._expression()
        self.expect_terminator()
        return SimpleAssignment(target, value, self._span_from(start))

    def _compound_assignment(self, start: Tok, target: Node) -> CompoundAssignment:
        op = binary_operator_for(self.advance().type)
        self.grammar.require_assignable(target)
        value = self._expression()
        self.expect_terminator()
        return CompoundAssignment(target, op, value, self._span_from(start))

    def _parallel_assignment(self, start: Tok, first: Node) -> ParallelAssignment:
        targets = [first]
        while self.match(TT.COMMA):
            targets.append(self._expression())

        eq_tok = self.expect(TT.ASSIGN, "Expected '=' after assignment targets")

        # Assignability is checked only once the whole target list is known.
        for target in targets:
            self.grammar.require_assignable(target)

        values = [self._expression()]
        while self.match(TT.COMMA):
            values.append(self._expression())

        if len(values) not in (1, len(targets)):
            self.errors.add_error(Diagnostic.at(
                Code.ASSIGNMENT_ARITY,
                f"Cannot assign {len(values)} values to {len(targets)} targets",
                eq_tok,
            ))

        self.expect_terminator()
        return ParallelAssignment(tuple(targets), tuple(values), self._span_from(start))

    # ========================================================================
    # Helpers
    # ========================================================================

    def _expression(self) -> Node:
        expr, self.pos = self.grammar.parse_expression(self.pos)
        return expr

    def _span_from(self, start: Tok) -> Span:
        end = self.previous
        return Span.between(start, end if end is not None else start)


def parse_buffer(source: str, errors: ErrorManager) -> Iterator[CommandNode]:
    """Tokenize and parse a command buffer, yielding commands as they complete."""
    parser = CommandParser(TokenStream(source), errors)
    return parser.iter_commands()
