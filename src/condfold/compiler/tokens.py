"""
Token definitions for the condfold expression lexer.

The lexer only needs to understand Python *expressions* (the text of an
``if``/``elif`` condition), so statement keywords are not tokens here.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Any

from condfold.utils.errors import SourceLocation


class TokenType(Enum):
    """Enumeration of all token types in a Python expression."""

    # End of input
    EOF = auto()

    # Literals
    INTEGER = auto()
    FLOAT = auto()      # floats and imaginary numbers
    STRING = auto()

    # Identifiers
    IDENTIFIER = auto()

    # Keywords
    TRUE = auto()
    FALSE = auto()
    NONE = auto()
    AND = auto()
    OR = auto()
    NOT = auto()
    IS = auto()
    IN = auto()
    IF = auto()
    ELSE = auto()
    FOR = auto()
    LAMBDA = auto()
    AWAIT = auto()
    YIELD = auto()

    # Arithmetic operators
    PLUS = auto()           # +
    MINUS = auto()          # -
    STAR = auto()           # *
    DOUBLE_STAR = auto()    # **
    SLASH = auto()          # /
    DOUBLE_SLASH = auto()   # //
    PERCENT = auto()        # %
    AT = auto()             # @

    # Bitwise operators
    TILDE = auto()          # ~
    AMPERSAND = auto()      # &
    PIPE = auto()           # |
    CARET = auto()          # ^
    LSHIFT = auto()         # <<
    RSHIFT = auto()         # >>

    # Comparison operators
    LT = auto()             # <
    LE = auto()             # <=
    GT = auto()             # >
    GE = auto()             # >=
    EQ = auto()             # ==
    NE = auto()             # !=
    NE_OLD = auto()         # <>

    # Delimiters
    LPAREN = auto()
    RPAREN = auto()
    LBRACKET = auto()
    RBRACKET = auto()
    LBRACE = auto()
    RBRACE = auto()
    COMMA = auto()
    COLON = auto()
    DOT = auto()
    ELLIPSIS = auto()       # ...
    WALRUS = auto()         # :=
    ASSIGN = auto()         # = (keyword arguments)
    ARROW = auto()          # ->
    SEMICOLON = auto()


KEYWORDS: dict[str, TokenType] = {
    "True": TokenType.TRUE,
    "False": TokenType.FALSE,
    "None": TokenType.NONE,
    "and": TokenType.AND,
    "or": TokenType.OR,
    "not": TokenType.NOT,
    "is": TokenType.IS,
    "in": TokenType.IN,
    "if": TokenType.IF,
    "else": TokenType.ELSE,
    "for": TokenType.FOR,
    "lambda": TokenType.LAMBDA,
    "await": TokenType.AWAIT,
    "yield": TokenType.YIELD,
}

# Longest operators first; the lexer tries three, two, then one character
TRIPLE_CHAR_TOKENS: dict[str, TokenType] = {
    "...": TokenType.ELLIPSIS,
}

DOUBLE_CHAR_TOKENS: dict[str, TokenType] = {
    "**": TokenType.DOUBLE_STAR,
    "//": TokenType.DOUBLE_SLASH,
    "<<": TokenType.LSHIFT,
    ">>": TokenType.RSHIFT,
    "<=": TokenType.LE,
    ">=": TokenType.GE,
    "==": TokenType.EQ,
    "!=": TokenType.NE,
    "<>": TokenType.NE_OLD,
    ":=": TokenType.WALRUS,
    "->": TokenType.ARROW,
}

SINGLE_CHAR_TOKENS: dict[str, TokenType] = {
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.STAR,
    "/": TokenType.SLASH,
    "%": TokenType.PERCENT,
    "@": TokenType.AT,
    "~": TokenType.TILDE,
    "&": TokenType.AMPERSAND,
    "|": TokenType.PIPE,
    "^": TokenType.CARET,
    "<": TokenType.LT,
    ">": TokenType.GT,
    "(": TokenType.LPAREN,
    ")": TokenType.RPAREN,
    "[": TokenType.LBRACKET,
    "]": TokenType.RBRACKET,
    "{": TokenType.LBRACE,
    "}": TokenType.RBRACE,
    ",": TokenType.COMMA,
    ":": TokenType.COLON,
    ".": TokenType.DOT,
    "=": TokenType.ASSIGN,
    ";": TokenType.SEMICOLON,
}

OPENING_BRACKETS: dict[TokenType, TokenType] = {
    TokenType.LPAREN: TokenType.RPAREN,
    TokenType.LBRACKET: TokenType.RBRACKET,
    TokenType.LBRACE: TokenType.RBRACE,
}


@dataclass
class Token:
    """
    Represents a single token from the source code.

    Attributes:
        type: The type of this token
        value: The literal value (for literals) or lexeme text
        location: Source location of this token
        end_offset: Character offset just past the token
    """

    type: TokenType
    value: Any
    location: SourceLocation
    end_offset: int = 0

    def __repr__(self) -> str:
        if self.value is not None:
            return f"Token({self.type.name}, {self.value!r}, {self.location})"
        return f"Token({self.type.name}, {self.location})"

    @property
    def is_literal(self) -> bool:
        """Check if this token represents a literal value."""
        return self.type in {
            TokenType.INTEGER,
            TokenType.FLOAT,
            TokenType.STRING,
            TokenType.TRUE,
            TokenType.FALSE,
            TokenType.NONE,
        }
