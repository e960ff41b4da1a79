"""
condfold Lexer (Tokenizer).

Transforms the source text of a Python expression into a stream of
tokens. Integer literals are converted to exact ``int`` values; any
other numeric literal (float, imaginary) is kept as text only.
"""

from typing import Iterator, Optional

from condfold.compiler.tokens import (
    DOUBLE_CHAR_TOKENS,
    KEYWORDS,
    SINGLE_CHAR_TOKENS,
    TRIPLE_CHAR_TOKENS,
    Token,
    TokenType,
)
from condfold.utils.errors import LexerError, SourceLocation

STRING_PREFIXES: frozenset[str] = frozenset({
    "r", "u", "b", "f", "br", "rb", "fr", "rf",
})


class Lexer:
    """
    Tokenizer for Python expressions.

    The lexer supports:
    - Identifiers and expression keywords
    - Integer literals in any base, with underscore separators
    - Float and imaginary literals
    - String literals with prefixes and triple quotes
    - Every Python operator, plus the legacy ``<>``
    - Comments, newlines and backslash continuations (all whitespace)

    Usage:
        lexer = Lexer("x < 10")
        tokens = lexer.tokenize()

    ``line`` and ``column`` give the position of the first character, so
    an expression cut out of a larger file reports file coordinates.
    """

    def __init__(
        self,
        source: str,
        filename: Optional[str] = None,
        line: int = 1,
        column: int = 1,
    ) -> None:
        """
        Initialize the lexer with source code.

        Args:
            source: The expression source text to tokenize
            filename: Optional filename for error reporting
            line: Line number of the first character
            column: Column number of the first character
        """
        self.source = source
        self.filename = filename
        self.pos = 0
        self.line = line
        self.column = column
        self.tokens: list[Token] = []

        self._line_start = 0

    @property
    def _current_char(self) -> Optional[str]:
        """Return the current character or None if at end."""
        if self.pos >= len(self.source):
            return None
        return self.source[self.pos]

    @property
    def _peek_char(self) -> Optional[str]:
        """Return the next character without consuming it."""
        return self._peek_ahead(1)

    def _peek_ahead(self, n: int) -> Optional[str]:
        """Return the character n positions ahead."""
        peek_pos = self.pos + n
        if peek_pos >= len(self.source):
            return None
        return self.source[peek_pos]

    def _location(self) -> SourceLocation:
        """Create a SourceLocation for the current position."""
        return SourceLocation(
            line=self.line,
            column=self.column,
            offset=self.pos,
            filename=self.filename,
        )

    def _current_line_text(self) -> str:
        """Extract the current line of source for error messages."""
        end = self.source.find("\n", self._line_start)
        if end == -1:
            end = len(self.source)
        return self.source[self._line_start:end]

    def _error(self, message: str, location: Optional[SourceLocation] = None) -> LexerError:
        return LexerError(message, location or self._location(), self._current_line_text())

    def _advance(self) -> str:
        """Consume and return the current character."""
        char = self.source[self.pos]
        self.pos += 1

        if char == "\n":
            self.line += 1
            self.column = 1
            self._line_start = self.pos
        else:
            self.column += 1

        return char

    def _skip_whitespace_and_comments(self) -> None:
        """Skip whitespace, newlines, comments and line continuations."""
        while self._current_char is not None:
            char = self._current_char
            if char in " \t\r\n\f":
                self._advance()
            elif char == "#":
                while self._current_char is not None and self._current_char != "\n":
                    self._advance()
            elif char == "\\" and self._peek_char in ("\n", "\r"):
                self._advance()
            else:
                break

    def _make_token(self, token_type: TokenType, value, start: SourceLocation) -> Token:
        return Token(token_type, value, start, end_offset=self.pos)

    def _read_number(self) -> Token:
        """
        Read a numeric literal.

        Integers (decimal, hex, octal, binary, with ``_`` separators)
        become INTEGER tokens holding an exact int. Anything with a
        fraction, exponent or ``j`` suffix becomes a FLOAT token holding
        its text.
        """
        start_loc = self._location()
        start = self.pos

        if self._current_char == "0" and self._peek_char is not None and self._peek_char in "xXoObB":
            self._advance()
            self._advance()
            while self._current_char is not None and (
                self._current_char.isalnum() or self._current_char == "_"
            ):
                self._advance()
            return self._integer_token(self.source[start:self.pos], start_loc)

        is_float = False
        self._read_digits()

        if self._current_char == "." and self._peek_char != ".":
            is_float = True
            self._advance()
            self._read_digits()

        if self._current_char is not None and self._current_char in "eE":
            next_char = self._peek_char
            if next_char is not None and (
                next_char.isdigit()
                or (next_char in "+-" and (self._peek_ahead(2) or "").isdigit())
            ):
                is_float = True
                self._advance()  # e
                if self._current_char in ("+", "-"):
                    self._advance()
                self._read_digits()

        if self._current_char is not None and self._current_char in "jJ":
            is_float = True
            self._advance()

        text = self.source[start:self.pos]
        if is_float:
            return self._make_token(TokenType.FLOAT, text, start_loc)
        return self._integer_token(text, start_loc)

    def _read_digits(self) -> None:
        while self._current_char is not None and (
            self._current_char.isdigit() or self._current_char == "_"
        ):
            self._advance()

    def _integer_token(self, text: str, start_loc: SourceLocation) -> Token:
        try:
            value = int(text, 0)
        except ValueError:
            raise self._error(f"Invalid integer literal '{text}'", start_loc) from None
        return self._make_token(TokenType.INTEGER, value, start_loc)

    def _read_string(self, start: int, start_loc: SourceLocation) -> Token:
        """
        Read a string literal whose prefix (if any) is already consumed.

        Args:
            start: Offset of the first prefix character or quote
            start_loc: Location of the first prefix character or quote

        Returns:
            A STRING token holding the literal's source text
        """
        quote = self._current_char
        triple = self._peek_char == quote and self._peek_ahead(2) == quote
        delimiter = quote * 3 if triple else quote
        for _ in delimiter:
            self._advance()

        while True:
            char = self._current_char
            if char is None:
                raise self._error("Unterminated string literal", start_loc)
            if char == "\\":
                self._advance()
                if self._current_char is not None:
                    self._advance()
                continue
            if char == "\n" and not triple:
                raise self._error("Unterminated string literal", start_loc)
            if self.source.startswith(delimiter, self.pos):
                for _ in delimiter:
                    self._advance()
                break
            self._advance()

        return self._make_token(TokenType.STRING, self.source[start:self.pos], start_loc)

    def _read_identifier_or_keyword(self) -> Token:
        """Read an identifier, keyword, or prefixed string literal."""
        start_loc = self._location()
        start = self.pos

        while self._current_char is not None and (
            self._current_char.isalnum() or self._current_char == "_"
        ):
            self._advance()

        text = self.source[start:self.pos]

        if self._current_char in ("'", '"') and text.lower() in STRING_PREFIXES:
            return self._read_string(start, start_loc)

        token_type = KEYWORDS.get(text, TokenType.IDENTIFIER)
        if token_type == TokenType.TRUE:
            return self._make_token(token_type, True, start_loc)
        if token_type == TokenType.FALSE:
            return self._make_token(token_type, False, start_loc)
        return self._make_token(token_type, text, start_loc)

    def _read_operator(self) -> Optional[Token]:
        """Read an operator or delimiter, longest match first."""
        start_loc = self._location()

        for length, table in (
            (3, TRIPLE_CHAR_TOKENS),
            (2, DOUBLE_CHAR_TOKENS),
            (1, SINGLE_CHAR_TOKENS),
        ):
            text = self.source[self.pos:self.pos + length]
            token_type = table.get(text)
            if token_type is not None:
                for _ in range(length):
                    self._advance()
                return self._make_token(token_type, text, start_loc)

        return None

    def _next_token(self) -> Optional[Token]:
        """Read the next token, or None at end of input."""
        self._skip_whitespace_and_comments()

        char = self._current_char
        if char is None:
            return None

        if char.isdigit() or (char == "." and (self._peek_char or "").isdigit()):
            return self._read_number()

        if char in ("'", '"'):
            return self._read_string(self.pos, self._location())

        if char.isalpha() or char == "_":
            return self._read_identifier_or_keyword()

        token = self._read_operator()
        if token is not None:
            return token

        raise self._error(f"Unexpected character '{char}'")

    def tokenize(self) -> list[Token]:
        """
        Tokenize the entire source.

        Returns:
            The list of tokens, always ending with an EOF token

        Raises:
            LexerError: On malformed input
        """
        self.tokens = []
        while True:
            token = self._next_token()
            if token is None:
                break
            self.tokens.append(token)

        eof_loc = self._location()
        self.tokens.append(Token(TokenType.EOF, None, eof_loc, end_offset=self.pos))
        return self.tokens

    def __iter__(self) -> Iterator[Token]:
        """Iterate over tokens."""
        if not self.tokens:
            self.tokenize()
        return iter(self.tokens)


def tokenize(source: str, filename: Optional[str] = None) -> list[Token]:
    """
    Convenience function to tokenize source code.

    Args:
        source: The expression source text
        filename: Optional filename for error reporting

    Returns:
        List of tokens
    """
    return Lexer(source, filename).tokenize()
