"""
Expression tree node definitions for condfold.

The constant evaluators work over a small, closed set of node types.
Anything the evaluators cannot reason about is kept as a ``Name`` (a
free variable) or an ``OpaqueExpression`` (any other syntax), both of
which always evaluate to "unknown". Every node is immutable and carries
source location information for reporting.
"""

from dataclasses import dataclass
from enum import Enum, auto
from typing import Optional, Union

from condfold.utils.errors import SourceLocation


class PrefixOperator(Enum):
    """Prefix (unary) operator types."""

    NOT = auto()      # not
    PLUS = auto()     # +
    MINUS = auto()    # -
    INVERT = auto()   # ~


class BinaryOperator(Enum):
    """Binary operator types."""

    # Comparison
    LT = auto()
    LE = auto()
    GT = auto()
    GE = auto()
    EQ = auto()
    NE = auto()
    NE_OLD = auto()     # <>

    # Logical
    AND = auto()
    OR = auto()

    # Arithmetic
    ADD = auto()
    SUB = auto()
    MUL = auto()
    FLOOR_DIV = auto()
    MOD = auto()

    # Never folded
    DIV = auto()
    POW = auto()
    MATMUL = auto()
    LSHIFT = auto()
    RSHIFT = auto()
    BIT_AND = auto()
    BIT_OR = auto()
    BIT_XOR = auto()
    IS = auto()
    IS_NOT = auto()
    IN = auto()
    NOT_IN = auto()


COMPARISON_OPERATORS: frozenset[BinaryOperator] = frozenset({
    BinaryOperator.LT,
    BinaryOperator.LE,
    BinaryOperator.GT,
    BinaryOperator.GE,
    BinaryOperator.EQ,
    BinaryOperator.NE,
    BinaryOperator.NE_OLD,
})

LOGICAL_OPERATORS: frozenset[BinaryOperator] = frozenset({
    BinaryOperator.AND,
    BinaryOperator.OR,
})

ARITHMETIC_OPERATORS: frozenset[BinaryOperator] = frozenset({
    BinaryOperator.ADD,
    BinaryOperator.SUB,
    BinaryOperator.MUL,
    BinaryOperator.FLOOR_DIV,
    BinaryOperator.MOD,
})

# Source spelling, used when printing trees
OPERATOR_SYMBOLS: dict[Union[BinaryOperator, PrefixOperator], str] = {
    BinaryOperator.LT: "<",
    BinaryOperator.LE: "<=",
    BinaryOperator.GT: ">",
    BinaryOperator.GE: ">=",
    BinaryOperator.EQ: "==",
    BinaryOperator.NE: "!=",
    BinaryOperator.NE_OLD: "<>",
    BinaryOperator.AND: "and",
    BinaryOperator.OR: "or",
    BinaryOperator.ADD: "+",
    BinaryOperator.SUB: "-",
    BinaryOperator.MUL: "*",
    BinaryOperator.FLOOR_DIV: "//",
    BinaryOperator.MOD: "%",
    BinaryOperator.DIV: "/",
    BinaryOperator.POW: "**",
    BinaryOperator.MATMUL: "@",
    BinaryOperator.LSHIFT: "<<",
    BinaryOperator.RSHIFT: ">>",
    BinaryOperator.BIT_AND: "&",
    BinaryOperator.BIT_OR: "|",
    BinaryOperator.BIT_XOR: "^",
    BinaryOperator.IS: "is",
    BinaryOperator.IS_NOT: "is not",
    BinaryOperator.IN: "in",
    BinaryOperator.NOT_IN: "not in",
    PrefixOperator.NOT: "not",
    PrefixOperator.PLUS: "+",
    PrefixOperator.MINUS: "-",
    PrefixOperator.INVERT: "~",
}


# -----------------------------------------------------------------------------
# Expressions
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class BoolLiteral:
    """A boolean literal (True/False)."""

    value: bool
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class IntLiteral:
    """
    A numeric literal.

    ``value`` holds the exact integer for integer literals and is None
    for any other numeric kind (floats, imaginary numbers), which marks
    the literal as unsupported by the evaluators.

    Example:
        42, 0x_ff, 1_000_000, 3.14 (value=None)
    """

    value: Optional[int]
    text: str = ""
    location: Optional[SourceLocation] = None

    @property
    def is_integer(self) -> bool:
        return self.value is not None


@dataclass(frozen=True, slots=True)
class Grouping:
    """
    A parenthesized expression.

    Example:
        (a + b)
    """

    inner: "Expression"
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Prefix:
    """
    A prefix operation.

    Example:
        not flag, -x, ~mask
    """

    operator: PrefixOperator
    operand: "Expression"
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Binary:
    """
    A binary operation.

    Example:
        a + b, x < y, p and q
    """

    left: "Expression"
    operator: BinaryOperator
    right: "Expression"
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class Name:
    """A variable reference."""

    name: str
    location: Optional[SourceLocation] = None


@dataclass(frozen=True, slots=True)
class OpaqueExpression:
    """
    Syntax the evaluators do not model.

    Calls, attribute access, subscripts, strings, containers, lambdas,
    conditional expressions and the like are kept as their source text.

    Attributes:
        text: The source text of the expression
        kind: Short description of the construct (e.g. "call", "string")
    """

    text: str
    kind: str = "expression"
    location: Optional[SourceLocation] = None


Expression = Union[
    BoolLiteral,
    IntLiteral,
    Grouping,
    Prefix,
    Binary,
    Name,
    OpaqueExpression,
]


# -----------------------------------------------------------------------------
# Conditional chains
# -----------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class ConditionalChain:
    """
    The branch conditions of one if/elif statement.

    Example:
        if a:        # conditions[0]
            ...
        elif b:      # conditions[1]
            ...
        else:
            ...
    """

    conditions: tuple[Expression, ...]
    location: Optional[SourceLocation] = None


def format_expression(expr: Expression) -> str:
    """Render an expression tree back to (normalized) Python source."""
    if isinstance(expr, BoolLiteral):
        return "True" if expr.value else "False"
    if isinstance(expr, IntLiteral):
        return expr.text or str(expr.value)
    if isinstance(expr, Grouping):
        return f"({format_expression(expr.inner)})"
    if isinstance(expr, Prefix):
        symbol = OPERATOR_SYMBOLS[expr.operator]
        separator = " " if expr.operator == PrefixOperator.NOT else ""
        return f"{symbol}{separator}{format_expression(expr.operand)}"
    if isinstance(expr, Binary):
        return (
            f"{format_expression(expr.left)} "
            f"{OPERATOR_SYMBOLS[expr.operator]} "
            f"{format_expression(expr.right)}"
        )
    if isinstance(expr, Name):
        return expr.name
    return expr.text


__all__ = [
    "PrefixOperator",
    "BinaryOperator",
    "COMPARISON_OPERATORS",
    "LOGICAL_OPERATORS",
    "ARITHMETIC_OPERATORS",
    "OPERATOR_SYMBOLS",
    "BoolLiteral",
    "IntLiteral",
    "Grouping",
    "Prefix",
    "Binary",
    "Name",
    "OpaqueExpression",
    "Expression",
    "ConditionalChain",
    "format_expression",
]
