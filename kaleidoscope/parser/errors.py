"""
Error handling for the Kaleidoscope parser.

Parse failures are raised as ParseError from the failing production and
propagate through every recursive caller; the driver decides whether to
skip the construct and keep going.
"""

from typing import Optional, List

from ..lexer.tokens import Token, TokenType, SourceLocation
from ..lexer.errors import Diagnostic


class ParseError(Exception):
    """
    Exception raised when the parser encounters a syntax error.

    Contains detailed diagnostic information and the offending token.
    """

    def __init__(
        self,
        message: str,
        location: SourceLocation,
        token: Optional[Token] = None,
        code: Optional[str] = None,
        help_text: Optional[str] = None,
        suggestions: Optional[List[str]] = None
    ):
        super().__init__(message)
        self.diagnostic = Diagnostic(
            message=message,
            location=location,
            severity="error",
            code=code,
            help_text=help_text,
            suggestions=suggestions
        )
        self.token = token

    @property
    def location(self) -> SourceLocation:
        return self.diagnostic.location

    @property
    def code(self) -> Optional[str]:
        return self.diagnostic.code

    def __str__(self) -> str:
        return str(self.diagnostic)


# Common parser error codes for categorization
PARSER_ERROR_CODES = {
    "P001": "Unexpected token",
    "P005": "Invalid expression",
    "P010": "Unexpected end of input",
    "P011": "Expression nested too deeply",
}


def _missing_token_suggestions(expected: str) -> List[str]:
    suggestions = {
        "')'": ["Add a closing parenthesis ')'"],
        "'('": ["Add an opening parenthesis '(' before the parameter list"],
        "',' or ')'": ["Separate call arguments with ','", "Close the argument list with ')'"],
        "function name": ["Name the function: def name(args) body"],
    }
    return suggestions.get(expected, [])


def create_unexpected_token_error(expected: str, found: Token) -> ParseError:
    """Create an error for an unexpected token."""
    if found.type == TokenType.EOF:
        return create_unexpected_eof_error(expected, found)

    found_str = found.describe()
    return ParseError(
        message=f"Expected {expected}, found {found_str}",
        location=found.location,
        token=found,
        code="P001",
        help_text=f"The parser expected to see {expected} at this position, but found {found_str} instead.",
        suggestions=_missing_token_suggestions(expected)
    )


def create_invalid_expression_error(found: Token) -> ParseError:
    """Create an error for a token that cannot start an expression."""
    if found.type == TokenType.EOF:
        return create_unexpected_eof_error("an expression", found)

    return ParseError(
        message=f"Unknown token {found.describe()} when expecting an expression",
        location=found.location,
        token=found,
        code="P005",
        help_text="An expression starts with a number, an identifier or '('.",
        suggestions=["Check the expression syntax", "Ensure all operators have operands"]
    )


def create_unexpected_eof_error(expected: str, found: Token) -> ParseError:
    """Create an error for unexpected end of input."""
    return ParseError(
        message=f"Unexpected end of input, expected {expected}",
        location=found.location,
        token=found,
        code="P010",
        help_text=f"The parser reached the end of the input while expecting {expected}.",
        suggestions=[f"Add the missing {expected}", "Check for incomplete definitions"]
    )


def create_nesting_too_deep_error(found: Token, max_depth: int) -> ParseError:
    """Create an error for an expression nested past the parser's depth limit."""
    return ParseError(
        message=f"Expression nested more than {max_depth} levels deep",
        location=found.location,
        token=found,
        code="P011",
        help_text="Parenthesized expressions and call arguments can only nest so far.",
        suggestions=["Split the expression into helper functions"]
    )
