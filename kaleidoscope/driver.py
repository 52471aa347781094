"""
Top-level driver loop.

Repeatedly looks at the parser's current token and runs the matching
top-level production:

    EOF     -> stop
    def     -> definition
    extern  -> extern declaration
    other   -> anonymous top-level expression

A failed construct is recorded and skipped; parsing resumes with the
next construct, so one typo does not hide every later diagnostic.
"""

from dataclasses import dataclass, field
from typing import Any, Iterator, List, Optional, Union

from .lexer.errors import LexerError
from .lexer.sources import FileSource
from .lexer.lexer import Lexer
from .lexer.tokens import TokenType
from .parser.ast_nodes import Function, Prototype
from .parser.errors import ParseError
from .parser.parser import Parser


FrontendError = Union[LexerError, ParseError]

DEFINITION = "definition"
EXTERN = "extern"
EXPRESSION = "expression"

# ParseError code raised when an expression nests past Parser.max_depth
NESTING_TOO_DEEP = "P011"


@dataclass(frozen=True)
class TopLevelItem:
    """One parsed top-level construct."""
    kind: str                               # DEFINITION, EXTERN or EXPRESSION
    node: Union[Function, Prototype]


@dataclass
class DriverResult:
    """Everything a driver run produced."""
    items: List[TopLevelItem] = field(default_factory=list)
    errors: List[FrontendError] = field(default_factory=list)

    def has_errors(self) -> bool:
        return len(self.errors) > 0

    def of_kind(self, kind: str) -> List[Union[Function, Prototype]]:
        return [item.node for item in self.items if item.kind == kind]


class Driver:
    """
    Runs the top-level loop over a parser.

    The optional handler receives each construct as it is parsed. It may
    define any of on_definition(function), on_extern(prototype),
    on_top_level_expr(function) and on_error(error); missing methods are
    simply not called.
    """

    _CALLBACKS = {
        DEFINITION: "on_definition",
        EXTERN: "on_extern",
        EXPRESSION: "on_top_level_expr",
    }

    def __init__(self, parser: Parser, handler: Optional[Any] = None):
        self.parser = parser
        self.handler = handler
        self.errors: List[FrontendError] = []

    def run(self) -> DriverResult:
        """Parse until end of input."""
        items = list(self.iter_items())
        return DriverResult(items, list(self.errors))

    def iter_items(self) -> Iterator[TopLevelItem]:
        """Generator form of run(): yields each construct as it is parsed."""
        while True:
            try:
                item = self._parse_next()
            except ParseError as error:
                self._record(error)
                if error.code == NESTING_TOO_DEEP:
                    self._skip_nested()
                else:
                    self._skip_token()
                continue
            except LexerError as error:
                # The lexer has already moved past the bad text
                self._record(error)
                continue

            if item is None:
                return

            self._notify(self._CALLBACKS[item.kind], item.node)
            yield item

    def _parse_next(self) -> Optional[TopLevelItem]:
        token = self.parser.current_token
        if token.type == TokenType.EOF:
            return None
        if token.type == TokenType.DEF:
            return TopLevelItem(DEFINITION, self.parser.parse_definition())
        if token.type == TokenType.EXTERN:
            return TopLevelItem(EXTERN, self.parser.parse_extern())
        return TopLevelItem(EXPRESSION, self.parser.parse_top_level_expr())

    def _skip_token(self):
        """Skip one token for error recovery (never past EOF)."""
        try:
            if not self.parser.at_end:
                self.parser.next_token()
        except LexerError as error:
            self._record(error)

    def _skip_nested(self):
        """
        Skip the rest of an over-deep expression, through its closing ')'.

        The parser gives up with max_depth '(' still open (one per
        enclosing parenthesis or call plus the one just consumed).
        """
        open_parens = self.parser.max_depth
        while open_parens > 0:
            try:
                if self.parser.at_end:
                    return
                token = self.parser.current_token
                if token.is_symbol("("):
                    open_parens += 1
                elif token.is_symbol(")"):
                    open_parens -= 1
                self.parser.next_token()
            except LexerError as error:
                self._record(error)

    def _record(self, error: FrontendError):
        self.errors.append(error)
        self._notify("on_error", error)

    def _notify(self, callback_name: str, payload: Any):
        callback = getattr(self.handler, callback_name, None)
        if callback is not None:
            callback(payload)


def parse_source(parser: Parser) -> List[TopLevelItem]:
    """
    Parse every top-level construct from a parser.

    Raises:
        ParseError / LexerError: The first error encountered, after the
            whole input has been scanned
    """
    result = Driver(parser).run()

    # If we have errors, raise the first one
    if result.has_errors():
        raise result.errors[0]

    return result.items


def parse_string(source: str, filename: str = "<string>", strict: bool = True,
                 strict_numbers: bool = True) -> List[TopLevelItem]:
    """
    Convenience function to parse a source string.

    Args:
        source: Source code string
        filename: Filename for error reporting
        strict: Check delimiters (see Parser)
        strict_numbers: Reject malformed numeric literals (see Lexer)

    Returns:
        List of parsed top-level items

    Raises:
        ParseError / LexerError: If parsing fails
    """
    parser = Parser.from_string(source, filename, strict=strict, strict_numbers=strict_numbers)
    return parse_source(parser)


def parse_file(filepath: str, strict: bool = True, strict_numbers: bool = True) -> List[TopLevelItem]:
    """
    Convenience function to parse a source file.

    Raises:
        ParseError / LexerError: If parsing fails
        OSError: If the file cannot be opened
    """
    with FileSource(filepath) as source:
        parser = Parser(Lexer(source, strict_numbers=strict_numbers), strict=strict)
        return parse_source(parser)
