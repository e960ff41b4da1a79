"""
condfold Compiler Package.

This package contains the analysis components:
- AST: Node definitions for the expression tree
- Lexer: Tokenizes Python expression source
- Parser: Produces an expression tree from tokens, keeping parentheses
- ConstEvaluator: Boolean and integer constant folding
- Linter: Classifies if/elif conditions and reports constant ones
"""

from condfold.compiler.ast_nodes import (
    Binary,
    BinaryOperator,
    BoolLiteral,
    ConditionalChain,
    Expression,
    Grouping,
    IntLiteral,
    Name,
    OpaqueExpression,
    Prefix,
    PrefixOperator,
)
from condfold.compiler.const_evaluator import (
    evaluate,
    evaluate_bool,
    evaluate_int,
    is_constant,
    unwrap,
)
from condfold.compiler.linter import (
    ConstantCondition,
    Linter,
    LintConfiguration,
    LintLevel,
    LintViolation,
    classify_chain,
    classify_conditions,
    lint_file,
    lint_source,
)
from condfold.compiler.parser import Parser, parse_expression

__all__ = [
    # Expression tree
    "Expression",
    "BoolLiteral",
    "IntLiteral",
    "Grouping",
    "Prefix",
    "Binary",
    "Name",
    "OpaqueExpression",
    "PrefixOperator",
    "BinaryOperator",
    "ConditionalChain",
    # Evaluation
    "unwrap",
    "evaluate_int",
    "evaluate_bool",
    "evaluate",
    "is_constant",
    # Parsing
    "Parser",
    "parse_expression",
    # Classification and linting
    "ConstantCondition",
    "classify_chain",
    "classify_conditions",
    "Linter",
    "LintConfiguration",
    "LintLevel",
    "LintViolation",
    "lint_source",
    "lint_file",
]
