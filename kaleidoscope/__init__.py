"""
Kaleidoscope Front End Package

Lexer and recursive-descent parser for the Kaleidoscope language: a tiny
expression language with one numeric type, function definitions and
extern declarations.

Architecture:
    kaleidoscope/
    ├── lexer/           # Character sources and tokenization
    ├── parser/          # AST, precedence-climbing parser, source printer
    ├── driver.py        # Top-level parse loop with per-construct recovery
    └── backend/         # Optional LLVM IR generation (llvmlite)

License: MIT
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from .lexer import Lexer, Token, TokenType, StringSource, FileSource, LexerError
from .parser import Parser, ParseError, to_source
from .driver import Driver, DriverResult, TopLevelItem, parse_string, parse_file

__all__ = [
    # Core classes
    "Lexer",
    "Parser",
    "Driver",

    # Data
    "Token",
    "TokenType",
    "TopLevelItem",
    "DriverResult",

    # Sources
    "StringSource",
    "FileSource",

    # Errors
    "LexerError",
    "ParseError",

    # Convenience
    "parse_string",
    "parse_file",
    "to_source",

    # Version info
    "__version__",
    "__license__",
]
