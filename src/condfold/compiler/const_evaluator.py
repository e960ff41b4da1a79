"""
Compile-time Constant Evaluator for condfold.

This module decides whether an expression has a value that can be
proven without running the program. Two mutually recursive evaluators
walk the expression tree:

- ``evaluate_bool`` reduces an expression to ``True``/``False``
- ``evaluate_int`` reduces an expression to an exact integer

Both return None ("unknown") whenever any part of the expression is not
reducible to literals: a variable, an unsupported operator, a float
literal, a type mismatch, or a division by zero. Unknown is the normal
outcome for most real conditions and is never reported as an error.

Logical ``and``/``or`` are folded only when *both* operands are known,
so ``False and x`` stays unknown. Only what every operand proves is
reported.
"""

from __future__ import annotations

from typing import Optional, Union

from condfold.compiler.ast_nodes import (
    ARITHMETIC_OPERATORS,
    COMPARISON_OPERATORS,
    LOGICAL_OPERATORS,
    Binary,
    BinaryOperator,
    BoolLiteral,
    Expression,
    Grouping,
    IntLiteral,
    Prefix,
    PrefixOperator,
)


def unwrap(expr: Optional[Expression]) -> Optional[Expression]:
    """
    Strip any number of enclosing parentheses.

    Args:
        expr: The expression to unwrap (may be None)

    Returns:
        The innermost non-grouping expression, or None
    """
    while isinstance(expr, Grouping):
        expr = expr.inner
    return expr


# =============================================================================
# Numeric Evaluator
# =============================================================================


def evaluate_int(expr: Optional[Expression]) -> Optional[int]:
    """
    Evaluate an expression to an exact integer.

    Args:
        expr: The expression to evaluate

    Returns:
        The integer value, or None if it cannot be proven constant
    """
    node = unwrap(expr)

    if isinstance(node, IntLiteral):
        return node.value

    if isinstance(node, Prefix):
        return _evaluate_int_prefix(node)

    if isinstance(node, Binary):
        if node.operator in ARITHMETIC_OPERATORS:
            return _evaluate_int_binary(node)
        return None

    # BoolLiteral, Name and OpaqueExpression never fold to an integer
    return None


def _evaluate_int_prefix(node: Prefix) -> Optional[int]:
    if node.operator not in (PrefixOperator.PLUS, PrefixOperator.MINUS):
        return None

    value = evaluate_int(node.operand)
    if value is None:
        return None

    if node.operator == PrefixOperator.MINUS:
        return -value
    return value


def _evaluate_int_binary(node: Binary) -> Optional[int]:
    left = evaluate_int(node.left)
    if left is None:
        return None
    right = evaluate_int(node.right)
    if right is None:
        return None

    op = node.operator

    if op == BinaryOperator.ADD:
        return left + right
    if op == BinaryOperator.SUB:
        return left - right
    if op == BinaryOperator.MUL:
        return left * right

    # Division by zero is left unresolved
    if op == BinaryOperator.FLOOR_DIV:
        if right == 0:
            return None
        return left // right
    if op == BinaryOperator.MOD:
        if right == 0:
            return None
        return left % right

    return None


# =============================================================================
# Boolean Evaluator
# =============================================================================


def evaluate_bool(expr: Optional[Expression]) -> Optional[bool]:
    """
    Evaluate an expression to a boolean.

    Args:
        expr: The expression to evaluate

    Returns:
        The boolean value, or None if it cannot be proven constant
    """
    node = unwrap(expr)

    if isinstance(node, BoolLiteral):
        return node.value

    if isinstance(node, Prefix):
        if node.operator != PrefixOperator.NOT:
            return None
        operand = evaluate_bool(node.operand)
        if operand is None:
            return None
        return not operand

    if isinstance(node, Binary):
        if node.operator in COMPARISON_OPERATORS:
            return _evaluate_comparison(node)
        if node.operator in LOGICAL_OPERATORS:
            return _evaluate_logical(node)
        return None

    # IntLiteral, Name and OpaqueExpression never fold to a boolean
    return None


def _evaluate_comparison(node: Binary) -> Optional[bool]:
    left = evaluate_int(node.left)
    if left is None:
        return None
    right = evaluate_int(node.right)
    if right is None:
        return None

    op = node.operator

    if op == BinaryOperator.LT:
        return left < right
    if op == BinaryOperator.LE:
        return left <= right
    if op == BinaryOperator.GT:
        return left > right
    if op == BinaryOperator.GE:
        return left >= right
    if op == BinaryOperator.EQ:
        return left == right
    if op in (BinaryOperator.NE, BinaryOperator.NE_OLD):
        return left != right

    return None


def _evaluate_logical(node: Binary) -> Optional[bool]:
    # Both sides must be proven; no short circuit
    left = evaluate_bool(node.left)
    right = evaluate_bool(node.right)
    if left is None or right is None:
        return None

    if node.operator == BinaryOperator.AND:
        return left and right
    if node.operator == BinaryOperator.OR:
        return left or right

    return None


# =============================================================================
# Convenience Functions
# =============================================================================


def evaluate(expr: Optional[Expression]) -> Union[bool, int, None]:
    """
    Evaluate an expression as a boolean, falling back to an integer.

    Args:
        expr: The expression to evaluate

    Returns:
        The boolean or integer value, or None if neither can be proven
    """
    value = evaluate_bool(expr)
    if value is not None:
        return value
    return evaluate_int(expr)


def is_constant(expr: Optional[Expression]) -> bool:
    """Check whether a condition has a provable boolean value."""
    return evaluate_bool(expr) is not None


__all__ = [
    "unwrap",
    "evaluate_int",
    "evaluate_bool",
    "evaluate",
    "is_constant",
]
