"""
Unit tests for the condfold expression lexer.
"""

import pytest

from condfold.compiler.lexer import Lexer, tokenize
from condfold.compiler.tokens import TokenType
from condfold.utils.errors import LexerError


def token_types(tokens):
    return [token.type for token in tokens]


class TestIntegers:
    """Tests for integer literals."""

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("0", 0),
            ("42", 42),
            ("1_000_000", 1_000_000),
            ("0x_ff", 255),
            ("0XFF", 255),
            ("0o17", 15),
            ("0b1010", 10),
            ("100000000000000000000000000000", 10**29),
        ],
    )
    def test_integer_values(self, tokenize, source, expected):
        tokens = tokenize(source)
        assert tokens[0].type == TokenType.INTEGER
        assert tokens[0].value == expected

    def test_invalid_integer_raises(self, tokenize):
        with pytest.raises(LexerError) as exc_info:
            tokenize("0b12")
        assert "Invalid integer literal" in exc_info.value.message

    def test_leading_zero_decimal_is_invalid(self, tokenize):
        with pytest.raises(LexerError):
            tokenize("007")


class TestFloats:
    """Tests for non-integer numeric literals."""

    @pytest.mark.parametrize("source", ["3.14", "1.", ".5", "1e10", "1E-3", "2j", "1.5J"])
    def test_float_tokens_keep_text(self, tokenize, source):
        tokens = tokenize(source)
        assert tokens[0].type == TokenType.FLOAT
        assert tokens[0].value == source

    def test_ellipsis_in_subscript(self, tokenize):
        """Three dots after a colon form an ellipsis, not a float."""
        tokens = tokenize("x[1:...]")
        assert TokenType.ELLIPSIS in token_types(tokens)


class TestStrings:
    """Tests for string literals."""

    @pytest.mark.parametrize(
        "source",
        ["'a'", '"b"', "r'\\d'", "b'x'", "f'{x}'", "Rb'y'", "'''multi\nline'''", '"esc\\"aped"'],
    )
    def test_string_literals(self, tokenize, source):
        tokens = tokenize(source)
        assert tokens[0].type == TokenType.STRING
        assert tokens[0].value == source
        assert tokens[1].type == TokenType.EOF

    def test_unterminated_string(self, tokenize):
        with pytest.raises(LexerError) as exc_info:
            tokenize("'abc")
        assert "Unterminated" in exc_info.value.message

    def test_newline_in_single_quoted_string(self, tokenize):
        with pytest.raises(LexerError):
            tokenize("'abc\ndef'")

    def test_prefix_like_name_is_identifier(self, tokenize):
        tokens = tokenize("rb + 1")
        assert tokens[0].type == TokenType.IDENTIFIER
        assert tokens[0].value == "rb"


class TestKeywordsAndOperators:
    """Tests for keywords, operators and delimiters."""

    def test_boolean_keywords_carry_values(self, tokenize):
        tokens = tokenize("True False")
        assert tokens[0].type == TokenType.TRUE and tokens[0].value is True
        assert tokens[1].type == TokenType.FALSE and tokens[1].value is False

    def test_keywords(self, tokenize):
        tokens = tokenize("not x and y or z is None in w")
        assert token_types(tokens) == [
            TokenType.NOT,
            TokenType.IDENTIFIER,
            TokenType.AND,
            TokenType.IDENTIFIER,
            TokenType.OR,
            TokenType.IDENTIFIER,
            TokenType.IS,
            TokenType.NONE,
            TokenType.IN,
            TokenType.IDENTIFIER,
            TokenType.EOF,
        ]

    def test_legacy_not_equal(self, tokenize):
        tokens = tokenize("1 <> 2")
        assert tokens[1].type == TokenType.NE_OLD

    @pytest.mark.parametrize(
        "source,expected",
        [
            ("**", TokenType.DOUBLE_STAR),
            ("//", TokenType.DOUBLE_SLASH),
            ("<=", TokenType.LE),
            (">=", TokenType.GE),
            ("==", TokenType.EQ),
            ("!=", TokenType.NE),
            ("<<", TokenType.LSHIFT),
            (">>", TokenType.RSHIFT),
            (":=", TokenType.WALRUS),
            ("...", TokenType.ELLIPSIS),
            ("%", TokenType.PERCENT),
            ("@", TokenType.AT),
            ("~", TokenType.TILDE),
        ],
    )
    def test_longest_operator_match(self, tokenize, source, expected):
        tokens = tokenize(source)
        assert tokens[0].type == expected
        assert len(tokens) == 2

    def test_unexpected_character(self, tokenize):
        with pytest.raises(LexerError) as exc_info:
            tokenize("1 $ 2")
        assert exc_info.value.location.column == 3


class TestWhitespaceAndLocations:
    """Tests for skipped text and source positions."""

    def test_comments_and_newlines_are_skipped(self, tokenize):
        tokens = tokenize("(1 <  # first\n 2)")
        assert token_types(tokens) == [
            TokenType.LPAREN,
            TokenType.INTEGER,
            TokenType.LT,
            TokenType.INTEGER,
            TokenType.RPAREN,
            TokenType.EOF,
        ]

    def test_backslash_continuation(self, tokenize):
        tokens = tokenize("1 + \\\n 2")
        assert token_types(tokens) == [
            TokenType.INTEGER,
            TokenType.PLUS,
            TokenType.INTEGER,
            TokenType.EOF,
        ]

    def test_locations(self, tokenize):
        tokens = tokenize("a +\n  b")
        assert (tokens[0].location.line, tokens[0].location.column) == (1, 1)
        assert (tokens[1].location.line, tokens[1].location.column) == (1, 3)
        assert (tokens[2].location.line, tokens[2].location.column) == (2, 3)

    def test_starting_position_offsets_locations(self):
        tokens = Lexer("x < 1", "mod.py", line=10, column=4).tokenize()
        assert tokens[0].location.line == 10
        assert tokens[0].location.column == 4
        assert tokens[2].location.column == 8
        assert str(tokens[0].location) == "mod.py:10:4"

    def test_offsets_and_end_offsets(self, tokenize):
        tokens = tokenize("foo == 12")
        assert tokens[0].location.offset == 0
        assert tokens[0].end_offset == 3
        assert tokens[2].location.offset == 7
        assert tokens[2].end_offset == 9

    def test_module_level_tokenize(self):
        tokens = tokenize("1")
        assert token_types(tokens) == [TokenType.INTEGER, TokenType.EOF]

    def test_iteration(self):
        assert [t.type for t in Lexer("x")] == [TokenType.IDENTIFIER, TokenType.EOF]
