"""
Kaleidoscope Lexer - turns characters into tokens, one at a time.

The lexer is pull-based: the parser calls next_token() whenever it needs
a new lookahead token, and the lexer pulls exactly as many characters as
it needs from its CharacterSource. One character of lookahead
(last_char) is carried between calls.

Character classes are ASCII only, matching the C library classification
the language was defined against: a non-ASCII letter is just a symbol.
"""

import re
import string
from typing import Iterator, List, Union

from .tokens import Token, TokenType, SourceLocation, KEYWORDS, COMMENT_TERMINATORS
from .errors import create_invalid_number_error
from .sources import CharacterSource, StringSource, FileSource, EOF_CHAR


WHITESPACE = frozenset(string.whitespace)
IDENTIFIER_START = frozenset(string.ascii_letters)
IDENTIFIER_CONTINUE = frozenset(string.ascii_letters + string.digits)
NUMBER_CHARS = frozenset(string.digits + ".")

# Well-formed decimal literal: digits with at most one '.', at least one digit
_DECIMAL_PATTERN = re.compile(r'\d+\.?\d*|\.\d+')


class Lexer:
    """
    Kaleidoscope lexical analyzer.

    Produces one Token per next_token() call. All scanning state (the
    lookahead character and the current source position) lives on the
    instance, so any number of lexers can run independently.
    """

    def __init__(self, source: Union[CharacterSource, str], filename: str = None,
                 strict_numbers: bool = True):
        """
        Initialize the lexer.

        Args:
            source: A CharacterSource, or a plain string to wrap in a StringSource
            filename: Name used in source locations (defaults to the source's name)
            strict_numbers: Reject malformed numeric literals such as ``1.2.3``
                instead of converting their longest valid prefix
        """
        if isinstance(source, str):
            source = StringSource(source, filename or "<string>")
        self.source = source
        self.filename = filename or getattr(source, "name", "<unknown>")
        self.strict_numbers = strict_numbers

        # Location of last_char
        self.line = 1
        self.column = 1
        self.offset = 0

        self.last_char = None
        self._advance()

    @property
    def position(self) -> SourceLocation:
        """Source location of the lookahead character."""
        return SourceLocation(self.filename, self.line, self.column, self.offset)

    def next_token(self) -> Token:
        """Scan and return the next token from the source."""
        while True:
            while self.last_char in WHITESPACE:
                self._advance()

            start = self.position

            if self.last_char in IDENTIFIER_START:
                return self._tokenize_identifier_or_keyword(start)

            if self.last_char in NUMBER_CHARS:
                return self._tokenize_number(start)

            if self.last_char == "#":
                self._skip_comment()
                continue

            if self.last_char == EOF_CHAR:
                return Token(TokenType.EOF, "", None, start)

            char = self.last_char
            self._advance()
            return Token(TokenType.SYMBOL, char, None, start)

    def tokens(self) -> Iterator[Token]:
        """Yield tokens up to and including EOF."""
        while True:
            token = self.next_token()
            yield token
            if token.type == TokenType.EOF:
                return

    def _tokenize_identifier_or_keyword(self, start: SourceLocation) -> Token:
        """Tokenize an identifier or one of the reserved words."""
        chars = [self.last_char]
        while self._advance() in IDENTIFIER_CONTINUE:
            chars.append(self.last_char)

        lexeme = "".join(chars)
        token_type = KEYWORDS.get(lexeme, TokenType.IDENTIFIER)
        value = lexeme if token_type == TokenType.IDENTIFIER else None

        return Token(token_type, lexeme, value, start)

    def _tokenize_number(self, start: SourceLocation) -> Token:
        """Tokenize a numeric literal (digits and dots, no sign or exponent)."""
        chars = []
        while self.last_char in NUMBER_CHARS:
            chars.append(self.last_char)
            self._advance()

        lexeme = "".join(chars)
        return Token(TokenType.NUMBER, lexeme, self._convert_number(lexeme, start), start)

    def _convert_number(self, lexeme: str, start: SourceLocation) -> float:
        if self.strict_numbers:
            if _DECIMAL_PATTERN.fullmatch(lexeme) is None:
                reason = ("A number needs at least one digit"
                          if lexeme.count(".") == len(lexeme)
                          else "A number may contain at most one '.'")
                raise create_invalid_number_error(lexeme, start, reason)
            return float(lexeme)

        # Lenient: take the longest valid decimal prefix, like strtod
        match = _DECIMAL_PATTERN.match(lexeme)
        if match is None:
            return 0.0
        return float(match.group(0))

    def _skip_comment(self):
        """Discard a '#' comment up to, not including, the line break."""
        while True:
            char = self._advance()
            if char == EOF_CHAR or char in COMMENT_TERMINATORS:
                return

    def _advance(self) -> str:
        """Read the next character into last_char, updating line/column."""
        previous = self.last_char
        if previous == EOF_CHAR:
            return previous

        self.last_char = self.source.next_char()

        if previous is not None:
            self.offset += 1
            if previous == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1

        return self.last_char


def tokenize_string(source: str, filename: str = "<string>", strict_numbers: bool = True) -> List[Token]:
    """
    Convenience function to tokenize a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting

    Returns:
        List of tokens ending with EOF

    Raises:
        LexerError: If a numeric literal is malformed (strict mode)
    """
    lexer = Lexer(StringSource(source, filename), strict_numbers=strict_numbers)
    return list(lexer.tokens())


def tokenize_file(filepath: str, strict_numbers: bool = True) -> List[Token]:
    """
    Convenience function to tokenize a source file.

    Raises:
        LexerError: If a numeric literal is malformed (strict mode)
        OSError: If the file cannot be opened
    """
    with FileSource(filepath) as source:
        lexer = Lexer(source, strict_numbers=strict_numbers)
        return list(lexer.tokens())
