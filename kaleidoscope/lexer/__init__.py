"""
Kaleidoscope Lexer Package

Hand-rolled, pull-based lexical analyzer for the Kaleidoscope language.

Key Features:
- One character of lookahead, one token per call
- '#' line comments
- def/extern keywords, identifiers, decimal numbers, single-character symbols
- Source location tracking for diagnostics
- Pluggable character sources (in-memory string, file)
"""

from .tokens import Token, TokenType, SourceLocation, BINOP_PRECEDENCE
from .lexer import Lexer, tokenize_string, tokenize_file
from .sources import CharacterSource, StringSource, FileSource, EOF_CHAR
from .errors import Diagnostic, LexerError

__all__ = [
    "Lexer",
    "Token",
    "TokenType",
    "SourceLocation",
    "BINOP_PRECEDENCE",
    "CharacterSource",
    "StringSource",
    "FileSource",
    "EOF_CHAR",
    "Diagnostic",
    "LexerError",
    "tokenize_string",
    "tokenize_file",
]
