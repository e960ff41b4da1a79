"""
Error types and source locations for condfold.

Evaluation itself never raises: an expression that cannot be proven
constant simply evaluates to ``None``. The exceptions here cover the
host side only (reading, tokenizing and parsing source, and loading
configuration).
"""

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class SourceLocation:
    """
    A position in a source file.

    Attributes:
        line: 1-based line number
        column: 1-based column (in characters)
        offset: 0-based character offset into the analysed text
        filename: Optional filename for reporting
    """

    line: int
    column: int
    offset: int = 0
    filename: Optional[str] = None

    def __str__(self) -> str:
        if self.filename:
            return f"{self.filename}:{self.line}:{self.column}"
        return f"{self.line}:{self.column}"


class CondFoldError(Exception):
    """Base class for all condfold errors."""

    def __init__(
        self,
        message: str,
        location: Optional[SourceLocation] = None,
        source_line: Optional[str] = None,
    ) -> None:
        self.message = message
        self.location = location
        self.source_line = source_line
        super().__init__(self._format())

    def _format(self) -> str:
        if self.location is not None:
            return f"{self.location}: {self.message}"
        return self.message


class LexerError(CondFoldError):
    """Raised when an expression cannot be tokenized."""


class ParserError(CondFoldError):
    """Raised when source code cannot be parsed."""


class ConfigurationError(CondFoldError):
    """Raised for invalid or unreadable configuration."""
