"""
condfold - constant condition detection for Python.

condfold finds ``if``/``elif`` conditions whose value is known without
running the program, such as ``if 1 < 2:`` or ``elif not (2 + 2 == 4):``,
using a constant-folding evaluator over literals and pure operators.
"""

from condfold.compiler import (
    classify_chain,
    evaluate_bool,
    evaluate_int,
    lint_file,
    lint_source,
    parse_expression,
    unwrap,
)

__version__ = "0.1.0"
__all__ = [
    "unwrap",
    "evaluate_int",
    "evaluate_bool",
    "classify_chain",
    "parse_expression",
    "lint_source",
    "lint_file",
]
