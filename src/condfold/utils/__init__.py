"""
condfold Utilities Package.

Error types and source locations shared by the compiler front end,
the linter and the command-line and LSP surfaces.
"""

from condfold.utils.errors import (
    CondFoldError,
    ConfigurationError,
    LexerError,
    ParserError,
    SourceLocation,
)

__all__ = [
    "CondFoldError",
    "LexerError",
    "ParserError",
    "ConfigurationError",
    "SourceLocation",
]
