"""
Kaleidoscope Recursive Descent Parser

Builds AST nodes from a Lexer's token stream with one token of lookahead.
Grammar productions are plain recursive descent; binary operators are
resolved by precedence climbing over the fixed BINOP_PRECEDENCE table.

Grammar:
    toplevel       ::= definition | external | expression
    definition     ::= 'def' prototype expression
    external       ::= 'extern' prototype
    prototype      ::= identifier '(' identifier* ')'
    expression     ::= primary (binop primary)*
    primary        ::= identifierexpr | numberexpr | parenexpr
    identifierexpr ::= identifier | identifier '(' (expression (',' expression)*)? ')'
    numberexpr     ::= number
    parenexpr      ::= '(' expression ')'

Delimiters are checked by default. With ``strict=False`` the parser
falls back to the classic lenient behaviour: an expected ')', ',' or '('
is consumed without looking at it, which can desynchronize parsing of
malformed input.
"""

from typing import Optional

from ..lexer.lexer import Lexer
from ..lexer.tokens import Token, TokenType, SourceLocation, token_precedence
from .ast_nodes import (
    SourceSpan, Expression, NumberLiteral, VariableRef, BinaryOp, Call,
    Prototype, Function, anonymous_function
)
from .errors import (
    create_unexpected_token_error, create_invalid_expression_error, create_nesting_too_deep_error
)


# Nesting limit for parenthesized expressions and call arguments. Each level
# costs a handful of Python frames, so this stays well inside the default
# recursion limit.
DEFAULT_MAX_DEPTH = 100


class Parser:
    """
    Kaleidoscope parser.

    Holds the current lookahead token and exposes one method per grammar
    production. Every production either returns a complete node or raises
    ParseError (LexerError from the lexer passes through unchanged);
    nothing is returned partially built.
    """

    def __init__(self, lexer: Lexer, strict: bool = True, max_depth: int = DEFAULT_MAX_DEPTH):
        """
        Initialize the parser over a lexer.

        Args:
            lexer: Token source
            strict: Raise ParseError on missing '(' / ')' / ',' instead of
                consuming whatever token is there
            max_depth: How deeply expressions may nest before ParseError
        """
        self.lexer = lexer
        self.strict = strict
        self.max_depth = max_depth
        self._depth = 0
        self._current: Optional[Token] = None
        self._previous: Optional[Token] = None

    @classmethod
    def from_string(cls, source: str, filename: str = "<string>", strict: bool = True,
                    strict_numbers: bool = True, max_depth: int = DEFAULT_MAX_DEPTH) -> 'Parser':
        """Create a parser over an in-memory source string."""
        return cls(Lexer(source, filename, strict_numbers=strict_numbers), strict=strict,
                   max_depth=max_depth)

    @property
    def current_token(self) -> Token:
        """The lookahead token. The first access reads it from the lexer."""
        if self._current is None:
            self.next_token()
        return self._current

    def next_token(self) -> Token:
        """Advance the lookahead to the next token and return it."""
        self._previous = self._current
        # Cleared first so a LexerError leaves no stale lookahead behind
        self._current = None
        self._current = self.lexer.next_token()
        return self._current

    @property
    def at_end(self) -> bool:
        return self.current_token.type == TokenType.EOF

    def current_precedence(self) -> int:
        """Binary operator precedence of the lookahead token, -1 if none."""
        return token_precedence(self.current_token)

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def parse_expression(self) -> Expression:
        """expression ::= primary (binop primary)*"""
        if self._depth >= self.max_depth:
            raise create_nesting_too_deep_error(self.current_token, self.max_depth)

        self._depth += 1
        try:
            lhs = self.parse_primary()
            return self.parse_binop_rhs(0, lhs)
        finally:
            self._depth -= 1

    def parse_primary(self) -> Expression:
        """Dispatch on the lookahead to the matching primary production."""
        token = self.current_token
        if token.type == TokenType.IDENTIFIER:
            return self.parse_identifier_expr()
        if token.type == TokenType.NUMBER:
            return self.parse_number_expr()
        if token.is_symbol("("):
            return self.parse_paren_expr()
        raise create_invalid_expression_error(token)

    def parse_number_expr(self) -> NumberLiteral:
        token = self.current_token
        self.next_token()
        return NumberLiteral(token.value, self._span(token.location))

    def parse_paren_expr(self) -> Expression:
        """parenexpr ::= '(' expression ')'; the parentheses leave no node behind."""
        self.next_token()  # eat (
        expr = self.parse_expression()
        self._expect(")")
        return expr

    def parse_identifier_expr(self) -> Expression:
        """
        identifierexpr ::= identifier
                         | identifier '(' (expression (',' expression)*)? ')'
        """
        token = self.current_token
        name = token.value
        self.next_token()  # eat identifier

        if not self.current_token.is_symbol("("):
            return VariableRef(name, self._span(token.location))

        self.next_token()  # eat (
        args = []
        while not self.current_token.is_symbol(")"):
            args.append(self.parse_expression())
            if self.current_token.is_symbol(")"):
                break
            self._expect(",", "',' or ')'")
            if self.strict and self.current_token.is_symbol(")"):
                # Trailing comma: an argument must follow every ','
                raise create_invalid_expression_error(self.current_token)
        self.next_token()  # eat )

        return Call(name, tuple(args), self._span(token.location))

    def parse_binop_rhs(self, min_precedence: int, lhs: Expression) -> Expression:
        """
        Fold trailing binary operators into lhs by precedence climbing.

        Operators binding less tightly than min_precedence are left for the
        caller. When the operator after the right operand binds tighter than
        the one just consumed, that suffix is parsed first and becomes the
        right operand; equal precedence associates to the left.
        """
        while True:
            precedence = self.current_precedence()
            if precedence < min_precedence:
                return lhs

            operator = self.current_token.lexeme
            self.next_token()  # eat binop

            rhs = self.parse_primary()

            if precedence < self.current_precedence():
                rhs = self.parse_binop_rhs(precedence + 1, rhs)

            start = lhs.span.start if lhs.span else rhs.span.start
            lhs = BinaryOp(operator, lhs, rhs, self._span(start))

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def parse_prototype(self) -> Prototype:
        """prototype ::= identifier '(' identifier* ')'"""
        name_token = self.current_token
        if name_token.type != TokenType.IDENTIFIER:
            raise create_unexpected_token_error("function name", name_token)
        self.next_token()  # eat name

        self._expect("(")

        params = []
        while self.current_token.type == TokenType.IDENTIFIER:
            params.append(self.current_token.value)
            self.next_token()

        self._expect(")")

        return Prototype(name_token.value, tuple(params), self._span(name_token.location))

    def parse_definition(self) -> Function:
        """definition ::= 'def' prototype expression"""
        def_token = self.current_token
        self.next_token()  # eat def
        prototype = self.parse_prototype()
        body = self.parse_expression()
        return Function(prototype, body, self._span(def_token.location))

    def parse_extern(self) -> Prototype:
        """external ::= 'extern' prototype"""
        self.next_token()  # eat extern
        return self.parse_prototype()

    def parse_top_level_expr(self) -> Function:
        """Wrap a bare expression in an anonymous, parameterless Function."""
        start = self.current_token.location
        body = self.parse_expression()
        return anonymous_function(body, self._span(start))

    # ------------------------------------------------------------------
    # Utility methods
    # ------------------------------------------------------------------

    def _expect(self, char: str, expected: Optional[str] = None) -> Token:
        """
        Consume the symbol ``char``.

        In lenient mode the current token is consumed whatever it is.
        """
        token = self.current_token
        if self.strict and not token.is_symbol(char):
            raise create_unexpected_token_error(expected or f"'{char}'", token)
        self.next_token()
        return token

    def _span(self, start: SourceLocation) -> SourceSpan:
        """Span from ``start`` to the most recently consumed token."""
        end = self._previous.location if self._previous is not None else start
        return SourceSpan(start, end)
