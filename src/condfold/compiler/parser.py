"""
condfold Parser.

A recursive descent parser that turns the token stream of a Python
expression into the condfold expression tree. It implements Python's
operator precedence with precedence climbing and, unlike Python's own
``ast`` module, keeps parentheses as ``Grouping`` nodes.

Constructs the constant evaluators never fold (calls, subscripts,
attribute access, strings, containers, lambdas, conditional expressions
and so on) are not modelled in detail: they become ``OpaqueExpression``
nodes holding their source text.
"""

from typing import Optional

from condfold.compiler.ast_nodes import (
    Binary,
    BinaryOperator,
    BoolLiteral,
    Expression,
    Grouping,
    IntLiteral,
    Name,
    OpaqueExpression,
    Prefix,
    PrefixOperator,
)
from condfold.compiler.lexer import Lexer
from condfold.compiler.tokens import OPENING_BRACKETS, Token, TokenType
from condfold.utils.errors import ParserError, SourceLocation


# Operator precedence levels (higher = tighter binding)
class Precedence:
    """Operator precedence levels."""

    NONE = 0
    OR = 1              # or
    AND = 2             # and
    NOT = 3             # not (prefix)
    COMPARISON = 4      # < <= > >= == != <> in, not in, is, is not
    BITWISE_OR = 5      # |
    BITWISE_XOR = 6     # ^
    BITWISE_AND = 7     # &
    SHIFT = 8           # << >>
    ADDITIVE = 9        # + -
    MULTIPLICATIVE = 10 # * / // % @
    UNARY = 11          # + - ~ (prefix)
    POWER = 12          # **


# Map token types to binary operators
BINARY_OP_MAP: dict[TokenType, BinaryOperator] = {
    # Logical
    TokenType.OR: BinaryOperator.OR,
    TokenType.AND: BinaryOperator.AND,
    # Comparison
    TokenType.LT: BinaryOperator.LT,
    TokenType.LE: BinaryOperator.LE,
    TokenType.GT: BinaryOperator.GT,
    TokenType.GE: BinaryOperator.GE,
    TokenType.EQ: BinaryOperator.EQ,
    TokenType.NE: BinaryOperator.NE,
    TokenType.NE_OLD: BinaryOperator.NE_OLD,
    TokenType.IN: BinaryOperator.IN,
    TokenType.IS: BinaryOperator.IS,
    # Bitwise
    TokenType.PIPE: BinaryOperator.BIT_OR,
    TokenType.CARET: BinaryOperator.BIT_XOR,
    TokenType.AMPERSAND: BinaryOperator.BIT_AND,
    TokenType.LSHIFT: BinaryOperator.LSHIFT,
    TokenType.RSHIFT: BinaryOperator.RSHIFT,
    # Arithmetic
    TokenType.PLUS: BinaryOperator.ADD,
    TokenType.MINUS: BinaryOperator.SUB,
    TokenType.STAR: BinaryOperator.MUL,
    TokenType.SLASH: BinaryOperator.DIV,
    TokenType.DOUBLE_SLASH: BinaryOperator.FLOOR_DIV,
    TokenType.PERCENT: BinaryOperator.MOD,
    TokenType.AT: BinaryOperator.MATMUL,
    TokenType.DOUBLE_STAR: BinaryOperator.POW,
}

# Map token types to their precedence
PRECEDENCE_MAP: dict[TokenType, int] = {
    TokenType.OR: Precedence.OR,
    TokenType.AND: Precedence.AND,
    TokenType.LT: Precedence.COMPARISON,
    TokenType.LE: Precedence.COMPARISON,
    TokenType.GT: Precedence.COMPARISON,
    TokenType.GE: Precedence.COMPARISON,
    TokenType.EQ: Precedence.COMPARISON,
    TokenType.NE: Precedence.COMPARISON,
    TokenType.NE_OLD: Precedence.COMPARISON,
    TokenType.IN: Precedence.COMPARISON,
    TokenType.IS: Precedence.COMPARISON,
    TokenType.PIPE: Precedence.BITWISE_OR,
    TokenType.CARET: Precedence.BITWISE_XOR,
    TokenType.AMPERSAND: Precedence.BITWISE_AND,
    TokenType.LSHIFT: Precedence.SHIFT,
    TokenType.RSHIFT: Precedence.SHIFT,
    TokenType.PLUS: Precedence.ADDITIVE,
    TokenType.MINUS: Precedence.ADDITIVE,
    TokenType.STAR: Precedence.MULTIPLICATIVE,
    TokenType.SLASH: Precedence.MULTIPLICATIVE,
    TokenType.DOUBLE_SLASH: Precedence.MULTIPLICATIVE,
    TokenType.PERCENT: Precedence.MULTIPLICATIVE,
    TokenType.AT: Precedence.MULTIPLICATIVE,
    TokenType.DOUBLE_STAR: Precedence.POWER,
}

PREFIX_OP_MAP: dict[TokenType, PrefixOperator] = {
    TokenType.PLUS: PrefixOperator.PLUS,
    TokenType.MINUS: PrefixOperator.MINUS,
    TokenType.TILDE: PrefixOperator.INVERT,
}

BRACKET_KINDS: dict[TokenType, str] = {
    TokenType.LPAREN: "call",
    TokenType.LBRACKET: "subscript",
}


class Parser:
    """
    Recursive descent parser for Python expressions.

    Usage:
        parser = Parser(tokens, source=text)
        expr = parser.parse()
    """

    def __init__(self, tokens: list[Token], source: str = "",
                 filename: str = "<input>") -> None:
        """
        Initialize the parser.

        Args:
            tokens: List of tokens from the lexer (ending with EOF)
            source: The text the tokens were read from, for opaque nodes
            filename: Optional filename for error reporting
        """
        self.tokens = tokens
        self.pos = 0
        self._source = source
        self._source_lines: list[str] = source.splitlines() if source else []
        self._filename = filename

    @property
    def _current(self) -> Token:
        """Get the current token."""
        if self.pos >= len(self.tokens):
            return self.tokens[-1]  # Return EOF
        return self.tokens[self.pos]

    @property
    def _previous(self) -> Token:
        """Get the previous token."""
        return self.tokens[self.pos - 1] if self.pos > 0 else self.tokens[0]

    def _peek(self, offset: int = 1) -> Token:
        """Peek at a token ahead of the current position."""
        pos = self.pos + offset
        if pos >= len(self.tokens):
            return self.tokens[-1]
        return self.tokens[pos]

    def _is_at_end(self) -> bool:
        """Check if we've reached the end of tokens."""
        return self._current.type == TokenType.EOF

    def _check(self, *types: TokenType) -> bool:
        """Check if the current token is one of the given types."""
        return self._current.type in types

    def _advance(self) -> Token:
        """Consume and return the current token."""
        token = self._current
        if not self._is_at_end():
            self.pos += 1
        return token

    def _match(self, *types: TokenType) -> bool:
        """Consume current token if it matches one of the given types."""
        if self._check(*types):
            self._advance()
            return True
        return False

    def _error(self, message: str, token: Optional[Token] = None) -> ParserError:
        token = token or self._current
        location = token.location
        source_line = None
        relative_line = location.line - self.tokens[0].location.line
        if 0 <= relative_line < len(self._source_lines):
            source_line = self._source_lines[relative_line]
        return ParserError(message, location, source_line)

    def _expect(self, token_type: TokenType, message: str) -> Token:
        """Consume a token of the given type or raise a ParserError."""
        if self._check(token_type):
            return self._advance()
        raise self._error(message)

    def _text_from(self, start: int) -> str:
        """Source text from token index ``start`` up to the last consumed token."""
        first = self.tokens[start]
        last = self._previous
        if self._source:
            return self._source[first.location.offset:last.end_offset]
        return " ".join(str(token.value) for token in self.tokens[start:self.pos])

    def _opaque(self, start: int, kind: str) -> OpaqueExpression:
        return OpaqueExpression(
            text=self._text_from(start),
            kind=kind,
            location=self.tokens[start].location,
        )

    def _skip_balanced(self) -> Token:
        """
        Skip a bracketed group starting at the current opening bracket.

        Returns:
            The closing bracket token
        """
        opening = self._advance()
        expected = [OPENING_BRACKETS[opening.type]]

        while expected:
            token = self._current
            if token.type == TokenType.EOF:
                raise self._error(f"Unclosed '{opening.value}'", opening)
            if token.type in OPENING_BRACKETS:
                expected.append(OPENING_BRACKETS[token.type])
            elif token.type in (TokenType.RPAREN, TokenType.RBRACKET, TokenType.RBRACE):
                if token.type != expected[-1]:
                    raise self._error(f"Mismatched '{token.value}'", token)
                expected.pop()
            self._advance()

        return self._previous

    # =========================================================================
    # Entry Point
    # =========================================================================

    def parse(self) -> Expression:
        """
        Parse a complete expression.

        Returns:
            The expression tree

        Raises:
            ParserError: If the tokens do not form a single expression
        """
        expr = self._parse_test()
        if not self._is_at_end():
            raise self._error(f"Unexpected '{self._current.value}' after expression")
        return expr

    # =========================================================================
    # Expressions
    # =========================================================================

    def _parse_test(self) -> Expression:
        """
        Parse a full expression including lambdas, conditional
        expressions and unparenthesized assignment expressions.
        """
        start = self.pos

        if self._match(TokenType.LAMBDA):
            while not self._check(TokenType.COLON):
                if self._is_at_end():
                    raise self._error("Expected ':' in lambda")
                if self._current.type in OPENING_BRACKETS:
                    self._skip_balanced()
                else:
                    self._advance()
            self._advance()  # :
            self._parse_test()
            return self._opaque(start, "lambda")

        expr = self._parse_expression()

        if self._match(TokenType.IF):
            self._parse_expression()
            self._expect(TokenType.ELSE, "Expected 'else' in conditional expression")
            self._parse_test()
            return self._opaque(start, "conditional")

        if isinstance(expr, Name) and self._match(TokenType.WALRUS):
            self._parse_test()
            return self._opaque(start, "assignment")

        return expr

    def _infix_precedence(self) -> int:
        """Precedence of the operator at the current position."""
        if self._check(TokenType.NOT) and self._peek().type == TokenType.IN:
            return Precedence.COMPARISON
        return PRECEDENCE_MAP.get(self._current.type, Precedence.NONE)

    def _parse_expression(self, min_precedence: int = Precedence.NONE) -> Expression:
        """
        Parse an expression using precedence climbing.

        Binary operators are left associative except ``**``.
        """
        left = self._parse_prefix()

        while True:
            precedence = self._infix_precedence()
            if precedence <= min_precedence:
                break

            if self._check(TokenType.DOUBLE_STAR):
                self._advance()
                right = self._parse_expression(precedence - 1)  # Right assoc
                left = Binary(
                    left=left,
                    operator=BinaryOperator.POW,
                    right=right,
                    location=left.location,
                )
            else:
                left = self._parse_infix(left, precedence)

        return left

    def _parse_infix(self, left: Expression, precedence: int) -> Expression:
        """Parse the operator at the current position and its right operand."""
        token = self._advance()

        if token.type == TokenType.NOT:
            self._advance()  # in
            operator = BinaryOperator.NOT_IN
        elif token.type == TokenType.IS and self._match(TokenType.NOT):
            operator = BinaryOperator.IS_NOT
        else:
            operator = BINARY_OP_MAP[token.type]

        right = self._parse_expression(precedence)
        return Binary(left=left, operator=operator, right=right, location=left.location)

    def _parse_prefix(self) -> Expression:
        """Parse a prefix expression (unary operators, literals, etc.)."""
        token = self._current
        start = self.pos

        # Logical not binds looser than comparisons
        if self._match(TokenType.NOT):
            operand = self._parse_expression(Precedence.NOT)
            return Prefix(
                operator=PrefixOperator.NOT,
                operand=operand,
                location=token.location,
            )

        # Unary + - ~ bind looser than **
        if token.type in PREFIX_OP_MAP:
            self._advance()
            operand = self._parse_expression(Precedence.UNARY)
            return Prefix(
                operator=PREFIX_OP_MAP[token.type],
                operand=operand,
                location=token.location,
            )

        if self._match(TokenType.AWAIT):
            self._parse_postfix()
            return self._opaque(start, "await")

        return self._parse_postfix()

    def _parse_postfix(self) -> Expression:
        """Parse a primary followed by calls, subscripts and attribute access."""
        start = self.pos
        expr = self._parse_primary()

        while True:
            if self._match(TokenType.DOT):
                self._expect(TokenType.IDENTIFIER, "Expected attribute name after '.'")
                expr = self._opaque(start, "attribute")
            elif self._check(TokenType.LPAREN, TokenType.LBRACKET):
                kind = BRACKET_KINDS[self._current.type]
                self._skip_balanced()
                expr = self._opaque(start, kind)
            else:
                break

        return expr

    def _parse_primary(self) -> Expression:
        """Parse a primary expression (literals, names, brackets)."""
        token = self._current
        start = self.pos

        if self._match(TokenType.INTEGER):
            return IntLiteral(value=token.value, text=self._text_from(start), location=token.location)

        if self._match(TokenType.FLOAT):
            return IntLiteral(value=None, text=token.value, location=token.location)

        if self._match(TokenType.TRUE, TokenType.FALSE):
            return BoolLiteral(value=token.value, location=token.location)

        if self._match(TokenType.IDENTIFIER):
            return Name(name=token.value, location=token.location)

        if self._match(TokenType.NONE):
            return self._opaque(start, "none")

        if self._match(TokenType.ELLIPSIS):
            return self._opaque(start, "ellipsis")

        if self._match(TokenType.STRING):
            # Implicit concatenation
            while self._match(TokenType.STRING):
                pass
            return self._opaque(start, "string")

        if self._check(TokenType.LPAREN):
            return self._parse_parenthesized()

        if self._check(TokenType.LBRACKET):
            self._skip_balanced()
            return self._opaque(start, "list")

        if self._check(TokenType.LBRACE):
            self._skip_balanced()
            return self._opaque(start, "dict")

        if self._is_at_end():
            raise self._error("Unexpected end of expression")
        raise self._error(f"Expected expression, found '{token.value}'")

    def _parse_parenthesized(self) -> Expression:
        """
        Parse a parenthesized expression.

        Handles:
            (expr)            -> Grouping
            ()                -> empty tuple (opaque)
            (a, b)            -> tuple (opaque)
            (x for x in y)    -> generator (opaque)
            (x := f())        -> assignment expression (opaque)
        """
        start = self.pos
        opening = self._advance()

        if self._match(TokenType.RPAREN):
            return self._opaque(start, "tuple")

        try:
            inner = self._parse_test()
        except ParserError:
            inner = None

        if inner is not None and self._match(TokenType.RPAREN):
            return Grouping(inner=inner, location=opening.location)

        # Not a plain group: skip the whole bracket
        self.pos = start
        self._skip_balanced()
        return self._opaque(start, "parenthesized")


def parse_expression(
    source: str,
    filename: Optional[str] = None,
    line: int = 1,
    column: int = 1,
) -> Expression:
    """
    Convenience function to parse the source text of an expression.

    Args:
        source: The expression text
        filename: Optional filename for error reporting
        line: Line number of the first character
        column: Column number of the first character

    Returns:
        The expression tree

    Raises:
        LexerError: If the text cannot be tokenized
        ParserError: If the tokens do not form an expression
    """
    tokens = Lexer(source, filename, line=line, column=column).tokenize()
    return Parser(tokens, source=source, filename=filename or "<input>").parse()


__all__ = [
    "Parser",
    "Precedence",
    "BINARY_OP_MAP",
    "PRECEDENCE_MAP",
    "parse_expression",
]
