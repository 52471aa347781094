"""
Token definitions for the Kaleidoscope lexer.

Kaleidoscope has a deliberately tiny token set:
- Two keywords (def, extern)
- Identifiers and numeric literals (the only tokens with a payload)
- Single-character symbols, which cover every operator and delimiter
- End of input
"""

from enum import Enum, auto
from dataclasses import dataclass
from typing import Any, Optional


class TokenType(Enum):
    """Enumeration of all token types in Kaleidoscope."""

    EOF = auto()                    # End of input

    # Keywords
    DEF = auto()                    # def
    EXTERN = auto()                 # extern

    # Tokens with a payload
    IDENTIFIER = auto()             # foo, x1
    NUMBER = auto()                 # 42, 3.14, .5

    # Everything else: operators, parentheses, commas, unknown characters
    SYMBOL = auto()                 # + - * < ( ) , ; ...


@dataclass(frozen=True)
class SourceLocation:
    """
    Represents a location in the source code.

    Lines and columns are 1-based, the offset is a 0-based character index.
    """
    filename: str
    line: int
    column: int
    offset: int

    def __str__(self) -> str:
        return f"{self.filename}:{self.line}:{self.column}"

    def __repr__(self) -> str:
        return f"SourceLocation({self.filename!r}, {self.line}, {self.column}, {self.offset})"


@dataclass(frozen=True)
class Token:
    """
    A single lexical token.

    Only IDENTIFIER (the name) and NUMBER (the float) carry a value;
    keywords, symbols and EOF have ``value=None``.
    """
    type: TokenType
    lexeme: str                     # Raw text from source
    value: Any                      # Parsed/semantic value
    location: SourceLocation

    def __str__(self) -> str:
        if self.type == TokenType.EOF:
            return "EOF"
        if self.value is not None and self.value != self.lexeme:
            return f"{self.type.name}({self.lexeme!r} -> {self.value!r})"
        return f"{self.type.name}({self.lexeme!r})"

    def __repr__(self) -> str:
        return (f"Token({self.type.name}, {self.lexeme!r}, "
                f"{self.value!r}, {self.location!r})")

    @property
    def is_keyword(self) -> bool:
        """Check if this token is a reserved word."""
        return self.type in (TokenType.DEF, TokenType.EXTERN)

    @property
    def is_identifier(self) -> bool:
        return self.type == TokenType.IDENTIFIER

    @property
    def is_eof(self) -> bool:
        return self.type == TokenType.EOF

    def is_symbol(self, char: str) -> bool:
        """Check if this token is the symbol ``char``."""
        return self.type == TokenType.SYMBOL and self.lexeme == char

    def describe(self) -> str:
        """Human readable description used in diagnostics."""
        if self.type == TokenType.EOF:
            return "end of input"
        if self.type == TokenType.SYMBOL:
            return f"'{self.lexeme}'"
        if self.is_keyword:
            return f"keyword '{self.lexeme}'"
        return f"{self.type.name.lower()} '{self.lexeme}'"


# Reserved words, compared case-sensitively
KEYWORDS = {
    "def": TokenType.DEF,
    "extern": TokenType.EXTERN,
}

# Binary operator precedence. Not user-extensible; anything missing from
# this table is not a binary operator.
BINOP_PRECEDENCE = {
    "<": 10,
    "+": 20,
    "-": 20,
    "*": 40,
}

# Precedence reported for tokens that are not binary operators
NO_PRECEDENCE = -1

# Characters that end a '#' line comment
COMMENT_TERMINATORS = ("\n", "\r")


def token_precedence(token: Optional[Token]) -> int:
    """Look up the binary operator precedence of a token (-1 if none)."""
    if token is None or token.type != TokenType.SYMBOL:
        return NO_PRECEDENCE
    return BINOP_PRECEDENCE.get(token.lexeme, NO_PRECEDENCE)
