"""
Recursive Descent Grammar for Kestrel

The statement and expression grammar that the command parser delegates to.
It owns no command-level decisions: it parses one statement or one
expression starting at a token position and reports where it stopped.

Structure:
- Statements: keyword dispatch, blocks, labels, constructor forwarding
- Expressions: precedence climbing, lowest to highest
- AST: lark Tree/Token nodes
"""

from typing import Dict, List, Optional, Tuple, Union

from lark import Tree, Token

from .cursor import TokenCursor
from .disambiguator import CTOR_RECEIVERS, Classification, classify
from .errors import Code, Diagnostic, ErrorManager, ParseError, Severity
from .lexer_rd import TokenStream
from .operators import is_compound_assign
from .token_types import TT, Tok

Node = Union[Tree, Token]

# Binding power of the left-associative binary operators above ?? (higher
# binds tighter). ** is handled separately because it binds to the right.
BINARY_PRECEDENCE: Dict[TT, int] = {
    TT.OR: 1,
    TT.AND: 2,
    TT.PIPE: 3,
    TT.CARET: 4,
    TT.AMP: 5,
    TT.EQ: 6, TT.NEQ: 6,
    TT.LT: 7, TT.LTE: 7, TT.GT: 7, TT.GTE: 7,
    TT.SHL: 8, TT.SHR: 8,
    TT.PLUS: 9, TT.MINUS: 9, TT.TILDE: 9,
    TT.STAR: 10, TT.SLASH: 10, TT.MOD: 10,
}

CLOSER_TEXT = {TT.RPAR: ')', TT.RSQB: ']', TT.RBRACE: '}'}

DESIGNATORS = frozenset({'member', 'index'})

STATEMENT_EXPRESSIONS = frozenset({
    'call', 'safe_call', 'new', 'pre_incr', 'pre_decr', 'post_incr', 'post_decr',
})

# Bodies where a lone ';' is almost always a typo.
_EMPTY_BODY_OWNERS = {TT.IF: 'if', TT.ELSE: 'else', TT.WHILE: 'while', TT.FOR: 'for'}


def to_token(tok: Tok) -> Token:
    """Convert a lexer token into a lark Token, keeping its position."""
    return Token(
        tok.type.name,
        tok.value,
        line=tok.line,
        column=tok.column,
        end_line=tok.end_line,
        end_column=tok.end_column,
    )


def first_token(node: Node) -> Optional[Token]:
    if isinstance(node, Token):
        return node
    return next(node.scan_values(lambda v: isinstance(v, Token)), None)


def is_assignable(expr: Node) -> bool:
    """Designators: variables, member access and indexers."""
    if isinstance(expr, Token):
        return expr.type == 'IDENT'
    if expr.data == 'group':
        return is_assignable(expr.children[0])
    return expr.data in DESIGNATORS


def is_statement_expression(expr: Node) -> bool:
    """Expressions whose evaluation is useful on its own."""
    return isinstance(expr, Tree) and expr.data in STATEMENT_EXPRESSIONS


class Grammar(TokenCursor):
    """
    Recursive descent grammar for Kestrel statements and expressions.

    Expression precedence (lowest to highest):
    1. ternary (? :)
    2. nullish (??), right associative
    3. or (||)
    4. and (&&)
    5. bitwise or, xor, and (| ^ &)
    6. equality (== !=)
    7. relational (< <= > >=)
    8. shift (<< >>)
    9. additive and concat (+ - ~)
    10. multiplicative (* / %)
    11. unary (- + ! ++x --x)
    12. power (**), right associative
    13. postfix (.name ?.name (args) ?(args) [idx] ?[idx] x++ x--)
    14. primary (literals, identifiers, parens, arrays, new, fn)
    """

    def __init__(self, stream: TokenStream, errors: ErrorManager):
        super().__init__(stream)
        self.errors = errors

    # ========================================================================
    # Entry Points
    # ========================================================================

    def parse_expression(self, pos: int) -> Tuple[Node, int]:
        self.pos = pos
        start = self.current
        try:
            node = self.parse_expr()
        except RecursionError as exc:
            raise self.too_deep(start) from exc
        return node, self.pos

    def parse_statement(self, pos: int) -> Tuple[Tree, int]:
        self.pos = pos
        start = self.current
        try:
            node = self.parse_stmt()
        except RecursionError as exc:
            raise self.too_deep(start) from exc
        return node, self.pos

    def parse_primary_expression(self, pos: int) -> Tuple[Node, int]:
        self.pos = pos
        start = self.current
        try:
            node = self.parse_primary()
        except RecursionError as exc:
            raise self.too_deep(start) from exc
        return node, self.pos

    @staticmethod
    def too_deep(start: Tok) -> ParseError:
        return ParseError(Code.NESTING_TOO_DEEP, "Input is nested too deeply to parse", start)

    # ========================================================================
    # Semantic Checks (recoverable)
    # ========================================================================

    def require_assignable(self, expr: Node) -> bool:
        if is_assignable(expr):
            return True
        self._report(Code.INVALID_ASSIGNMENT_TARGET,
                     "The left-hand side of an assignment must be a variable, "
                     "member access or indexer", expr)
        return False

    def require_statement_expression(self, expr: Node) -> bool:
        if is_statement_expression(expr):
            return True
        self._report(Code.INVALID_STATEMENT_EXPRESSION,
                     "Only call, new, increment and decrement expressions "
                     "can be used as a statement", expr)
        return False

    def _report(self, code: Code, message: str, node: Node,
                severity: Severity = Severity.ERROR) -> None:
        tok = first_token(node)
        line = tok.line if tok is not None else 0
        column = tok.column if tok is not None else 0
        diag = Diagnostic(code, message, line, column, severity)
        if severity is Severity.WARNING:
            self.errors.add_warning(diag)
        else:
            self.errors.add_error(diag)

    # ========================================================================
    # Statements
    # ========================================================================

    def parse_stmt(self) -> Tree:
        """
        Parse a single statement.

        Keyword statements dispatch on the first token; labels and
        constructor forwarding need the second one. Everything else is an
        expression statement or an assignment.
        """
        if classify(self.stream, self.pos) is Classification.EXPRESSION_LIKE:
            return self.parse_expression_stmt()

        if self.check(TT.LBRACE):
            return self.parse_block()
        if self.match(TT.SEMI):
            return Tree('empty_stmt', [])

        # Declarations
        if self.check(TT.VAR, TT.CONST):
            return self.parse_var_decl()
        if self.check(TT.FN):
            return self.parse_fn_decl()

        # Control flow
        if self.check(TT.IF):
            return self.parse_if_stmt()
        if self.check(TT.WHILE):
            return self.parse_while_stmt()
        if self.check(TT.DO):
            return self.parse_do_stmt()
        if self.check(TT.FOR):
            return self.parse_for_stmt()
        if self.check(TT.BREAK, TT.CONTINUE):
            return self.parse_jump_stmt()
        if self.check(TT.RETURN, TT.THROW):
            return self.parse_value_jump_stmt()
        if self.check(TT.TRY):
            return self.parse_try_stmt()

        if self.check(TT.IDENT) and self.peek(1).type == TT.COLON:
            return self.parse_labeled_stmt()
        if self.check(TT.NEW) and self.peek(1).type in CTOR_RECEIVERS:
            return self.parse_ctor_forward()

        raise self.unexpected()

    def parse_block(self) -> Tree:
        """Parse block: { stmt* }"""
        self.expect(TT.LBRACE)
        stmts = []
        while not self.check(TT.RBRACE, TT.EOF):
            stmts.append(self.parse_stmt())
        self.expect(TT.RBRACE, self._expected_closer(TT.RBRACE))
        return Tree('block', stmts)

    def parse_body(self, owner: Tok) -> Tree:
        """Parse the statement governed by if/else/while/for"""
        body = self.parse_stmt()
        if body.data == 'empty_stmt':
            self._report(
                Code.EMPTY_STATEMENT,
                f"Possible mistaken empty statement after '{_EMPTY_BODY_OWNERS[owner.type]}'",
                to_token(self.previous or owner),
                Severity.WARNING,
            )
        return body

    def parse_var_decl(self) -> Tree:
        """Parse declaration: (var|const) name [= expr] (, name [= expr])* ;"""
        kind = self.advance()
        declarators = [self._parse_declarator(kind)]
        while self.match(TT.COMMA):
            declarators.append(self._parse_declarator(kind))
        self.expect_terminator()
        return Tree('var_decl', [to_token(kind)] + declarators)

    def _parse_declarator(self, kind: Tok) -> Tree:
        name = self.expect(TT.IDENT, "Expected variable name")
        if self.match(TT.ASSIGN):
            return Tree('declarator', [to_token(name), self.parse_expr()])
        if kind.type == TT.CONST:
            raise ParseError(Code.EXPECTED_TOKEN,
                             f"Constant '{name.value}' requires an initializer", name)
        return Tree('declarator', [to_token(name)])

    def parse_fn_decl(self) -> Tree:
        """Parse function declaration: fn name(params) block"""
        self.expect(TT.FN)
        name = self.expect(TT.IDENT, "Expected function name")
        params = self.parse_params()
        body = self.parse_block()
        return Tree('fn_decl', [to_token(name), params, body])

    def parse_params(self) -> Tree:
        self.expect(TT.LPAR)
        params = []
        if not self.check(TT.RPAR):
            params.append(to_token(self.expect(TT.IDENT, "Expected parameter name")))
            while self.match(TT.COMMA):
                params.append(to_token(self.expect(TT.IDENT, "Expected parameter name")))
        self.expect(TT.RPAR, self._expected_closer(TT.RPAR))
        return Tree('params', params)

    def parse_if_stmt(self) -> Tree:
        """Parse if statement: if expr stmt [else stmt]"""
        if_tok = self.expect(TT.IF)
        cond = self.parse_expr()
        children = [cond, self.parse_body(if_tok)]

        if self.check(TT.ELSE):
            else_tok = self.advance()
            children.append(self.parse_body(else_tok))

        return Tree('if_stmt', children)

    def parse_while_stmt(self) -> Tree:
        """Parse while loop: while expr stmt"""
        while_tok = self.expect(TT.WHILE)
        cond = self.parse_expr()
        return Tree('while_stmt', [cond, self.parse_body(while_tok)])

    def parse_do_stmt(self) -> Tree:
        """Parse do loop: do stmt while expr ;"""
        self.expect(TT.DO)
        body = self.parse_stmt()
        self.expect(TT.WHILE, "Expected 'while' after do body")
        cond = self.parse_expr()
        self.expect_terminator()
        return Tree('do_stmt', [body, cond])

    def parse_for_stmt(self) -> Tree:
        """Parse for loop: for name in expr stmt"""
        for_tok = self.expect(TT.FOR)
        var = self.expect(TT.IDENT, "Expected loop variable")
        self.expect(TT.IN, "Expected 'in' after loop variable")
        iterable = self.parse_expr()
        return Tree('for_stmt', [to_token(var), iterable, self.parse_body(for_tok)])

    def parse_jump_stmt(self) -> Tree:
        """Parse break/continue with an optional label"""
        tok = self.advance()
        children = []
        if self.check(TT.IDENT):
            children.append(to_token(self.advance()))
        self.expect_terminator()
        return Tree('break_stmt' if tok.type == TT.BREAK else 'continue_stmt', children)

    def parse_value_jump_stmt(self) -> Tree:
        """Parse return/throw with an optional value"""
        tok = self.advance()
        children = []
        if not self.check(TT.SEMI):
            children.append(self.parse_expr())
        self.expect_terminator()
        return Tree('return_stmt' if tok.type == TT.RETURN else 'throw_stmt', children)

    def parse_try_stmt(self) -> Tree:
        """
        Parse try statement:
        try block (catch [name | (Type [name])] block)* [finally block]
        """
        try_tok = self.expect(TT.TRY)
        children = [self.parse_block()]

        while self.match(TT.CATCH):
            clause = []
            if self.match(TT.LPAR):
                clause.append(Tree('catch_type', [to_token(self.expect(TT.IDENT, "Expected exception type"))]))
                if self.check(TT.IDENT):
                    clause.append(Tree('catch_name', [to_token(self.advance())]))
                self.expect(TT.RPAR, self._expected_closer(TT.RPAR))
            elif self.check(TT.IDENT):
                clause.append(Tree('catch_name', [to_token(self.advance())]))
            clause.append(self.parse_block())
            children.append(Tree('catch_clause', clause))

        if self.match(TT.FINALLY):
            children.append(Tree('finally_clause', [self.parse_block()]))

        if len(children) == 1:
            raise ParseError(Code.EXPECTED_TOKEN,
                             "try requires a catch or finally clause", try_tok)

        return Tree('try_stmt', children)

    def parse_labeled_stmt(self) -> Tree:
        """Parse labeled statement: name : stmt"""
        label = self.expect(TT.IDENT)
        self.expect(TT.COLON)
        return Tree('labeled_stmt', [to_token(label), self.parse_stmt()])

    def parse_ctor_forward(self) -> Tree:
        """Parse constructor forwarding: new (this|base)(args) ;"""
        self.expect(TT.NEW)
        receiver = self.advance()
        self.expect(TT.LPAR, "Expected '(' after constructor receiver")
        args = self.parse_args(TT.RPAR)
        self.expect_terminator()
        return Tree('ctor_forward', [to_token(receiver), args])

    def parse_expression_stmt(self) -> Tree:
        """
        Parse an expression-shaped statement inside a block:
        expr ; | target = expr ; | target op= expr ;
        """
        expr = self.parse_expr()

        if self.match(TT.ASSIGN):
            self.require_assignable(expr)
            value = self.parse_expr()
            self.expect_terminator()
            return Tree('assign_stmt', [expr, value])

        if is_compound_assign(self.current.type):
            op = self.advance()
            self.require_assignable(expr)
            value = self.parse_expr()
            self.expect_terminator()
            return Tree('compound_assign_stmt', [expr, to_token(op), value])

        self.expect_terminator()
        self.require_statement_expression(expr)
        return Tree('expr_stmt', [expr])

    # ========================================================================
    # Expressions - Precedence Climbing
    # ========================================================================

    def parse_expr(self) -> Node:
        return self.parse_ternary_expr()

    def parse_ternary_expr(self) -> Node:
        cond = self.parse_nullish_expr()
        if self.match(TT.QMARK):
            then = self.parse_expr()
            self.expect(TT.COLON, "Expected ':' in conditional expression")
            other = self.parse_ternary_expr()
            return Tree('ternary', [cond, then, other])
        return cond

    def parse_nullish_expr(self) -> Node:
        lhs = self.parse_binary_expr()
        if self.check(TT.NULLISH):
            op = self.advance()
            rhs = self.parse_nullish_expr()
            return Tree('binary', [lhs, to_token(op), rhs])
        return lhs

    def parse_binary_expr(self, min_prec: int = 1) -> Node:
        """Precedence climbing over BINARY_PRECEDENCE, left associative."""
        lhs = self.parse_unary_expr()
        while True:
            prec = BINARY_PRECEDENCE.get(self.current.type)
            if prec is None or prec < min_prec:
                return lhs
            op = self.advance()
            rhs = self.parse_binary_expr(prec + 1)
            lhs = Tree('binary', [lhs, to_token(op), rhs])

    def parse_unary_expr(self) -> Node:
        if self.check(TT.MINUS, TT.PLUS, TT.NEG):
            op = self.advance()
            return Tree('unary', [to_token(op), self.parse_unary_expr()])

        if self.check(TT.INCR, TT.DECR):
            op = self.advance()
            operand = self.parse_unary_expr()
            self.require_assignable(operand)
            return Tree('pre_incr' if op.type == TT.INCR else 'pre_decr', [operand])

        return self.parse_pow_expr()

    def parse_pow_expr(self) -> Node:
        base = self.parse_postfix_expr()
        if self.check(TT.POW):
            op = self.advance()
            exponent = self.parse_unary_expr()
            return Tree('binary', [base, to_token(op), exponent])
        return base

    def parse_postfix_expr(self) -> Node:
        expr = self.parse_primary()

        while True:
            if self.check(TT.DOT, TT.SAFE_DOT):
                op = self.advance()
                name = self.expect(TT.IDENT, f"Expected member name after '{op.value}'")
                label = 'member' if op.type == TT.DOT else 'safe_member'
                expr = Tree(label, [expr, to_token(name)])

            elif self.check(TT.LPAR, TT.SAFE_LPAR):
                op = self.advance()
                args = self.parse_args(TT.RPAR)
                expr = Tree('call' if op.type == TT.LPAR else 'safe_call', [expr, args])

            elif self.check(TT.LSQB, TT.SAFE_LSQB):
                op = self.advance()
                if self.check(TT.RSQB):
                    raise ParseError(Code.EXPECTED_TOKEN, "Expected index expression", self.current)
                args = self.parse_args(TT.RSQB)
                expr = Tree('index' if op.type == TT.LSQB else 'safe_index', [expr, args])

            elif self.check(TT.INCR, TT.DECR):
                op = self.advance()
                self.require_assignable(expr)
                expr = Tree('post_incr' if op.type == TT.INCR else 'post_decr', [expr])

            else:
                return expr

    def parse_primary(self) -> Node:
        """
        Parse primary expressions:
        - Literals (numbers, strings, true, false, null)
        - Identifiers, this, base
        - Parenthesized expressions
        - Arrays
        - new Type(args)
        - fn(params) block
        """
        if self.check(TT.NUMBER, TT.STRING, TT.TRUE, TT.FALSE, TT.NULL,
                      TT.IDENT, TT.THIS, TT.BASE):
            return to_token(self.advance())

        if self.match(TT.LPAR):
            expr = self.parse_expr()
            self.expect(TT.RPAR, self._expected_closer(TT.RPAR))
            return Tree('group', [expr])

        if self.match(TT.LSQB):
            return Tree('array', self.parse_args(TT.RSQB).children)

        if self.check(TT.NEW):
            return self.parse_new_expr()

        if self.check(TT.FN):
            self.advance()
            params = self.parse_params()
            return Tree('lambda', [params, self.parse_block()])

        raise self.unexpected()

    def parse_new_expr(self) -> Tree:
        """Parse object creation: new Name(.Name)*(args)"""
        new_tok = self.expect(TT.NEW)
        if self.check(*CTOR_RECEIVERS):
            raise ParseError(
                Code.UNEXPECTED_TOKEN,
                f"Constructor forwarding 'new {self.current.value}' is only valid as a statement",
                new_tok,
            )

        parts = [to_token(self.expect(TT.IDENT, "Expected type name after 'new'"))]
        while self.match(TT.DOT):
            parts.append(to_token(self.expect(TT.IDENT, "Expected type name after '.'")))

        self.expect(TT.LPAR, "Expected '(' after type name")
        args = self.parse_args(TT.RPAR)
        return Tree('new', [Tree('type_name', parts), args])

    # ========================================================================
    # Helper Parsers
    # ========================================================================

    def parse_args(self, closer: TT) -> Tree:
        """Parse comma-separated expressions up to and including closer"""
        items: List[Node] = []
        if not self.check(closer):
            items.append(self.parse_expr())
            while self.match(TT.COMMA):
                items.append(self.parse_expr())
        self.expect(closer, self._expected_closer(closer))
        return Tree('args', items)

    def _expected_closer(self, closer: TT) -> str:
        tok = self.current
        found = "end of input" if tok.type == TT.EOF else f"'{tok.value}'"
        return f"Expected '{CLOSER_TEXT[closer]}', found {found}"
