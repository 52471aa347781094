"""
Character sources feeding the lexer.

A source hands out one character per call and signals exhaustion with
EOF_CHAR. There is no rewind and no buffering contract beyond that.
"""

from abc import ABC, abstractmethod
from typing import Optional, TextIO


# Returned by next_char() once the input is exhausted
EOF_CHAR = ""


class CharacterSource(ABC):
    """Abstract sequential character source."""

    name: str = "<unknown>"

    @abstractmethod
    def next_char(self) -> str:
        """Return the next character, or EOF_CHAR when exhausted."""
        pass

    def close(self):
        """Release any underlying resource."""
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()
        return False


class StringSource(CharacterSource):
    """Character source over an in-memory string."""

    def __init__(self, text: str, name: str = "<string>"):
        self.text = text
        self.name = name
        self.index = 0

    def next_char(self) -> str:
        if self.index >= len(self.text):
            return EOF_CHAR
        char = self.text[self.index]
        self.index += 1
        return char


class FileSource(CharacterSource):
    """
    Character source reading a text file one character at a time.

    Opening happens eagerly, so a bad path raises OSError (usually
    FileNotFoundError) from the constructor rather than looking like an
    empty file. Undecodable bytes are read as U+FFFD, which the lexer
    turns into a symbol token for the parser to report. The handle is
    closed at end of input or on close().
    """

    def __init__(self, path: str, encoding: str = "utf-8", errors: str = "replace"):
        self.path = path
        self.name = str(path)
        self._file: Optional[TextIO] = open(path, "r", encoding=encoding, errors=errors, newline="")

    def next_char(self) -> str:
        if self._file is None:
            return EOF_CHAR
        char = self._file.read(1)
        if char == EOF_CHAR:
            self.close()
        return char

    def close(self):
        if self._file is not None:
            self._file.close()
            self._file = None

    @property
    def closed(self) -> bool:
        return self._file is None
