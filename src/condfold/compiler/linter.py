"""
condfold Linter - constant condition detection.

This module reports ``if``/``elif`` conditions whose value can be proven
at compile time:

- ``if 1 < 2:``         -> condition is always True
- ``elif not (3 > 4):`` -> condition is always True
- ``if 2 + 2 == 5:``    -> condition is always False

It has two layers. The condition classifier (``classify_chain``) runs
the boolean constant evaluator over each condition of a conditional
chain and returns one finding per provable condition. The ``Linter``
walks a Python module with the standard ``ast`` module, builds the
chains, and turns findings into configurable lint violations.

Example:
    violations = lint_source("if 1 < 2:\\n    pass\\n")
    for v in violations:
        print(f"{v.location}: [{v.rule.code}] {v.message}")
"""

from __future__ import annotations

import ast
import io
import logging
import re
import tokenize
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence, Union

from condfold.compiler.ast_nodes import ConditionalChain, Expression, OpaqueExpression
from condfold.compiler.const_evaluator import evaluate_bool
from condfold.compiler.parser import parse_expression
from condfold.utils.errors import LexerError, ParserError, SourceLocation

logger = logging.getLogger(__name__)


# =============================================================================
# Condition Classifier
# =============================================================================


@dataclass(frozen=True)
class ConstantCondition:
    """
    A condition whose value is known at compile time.

    Attributes:
        condition: The condition expression
        value: The value the condition always has
        index: Position in the chain (0 is the ``if``, then each ``elif``)
    """

    condition: Expression
    value: bool
    index: int = 0


def classify_conditions(conditions: Sequence[Expression]) -> list[ConstantCondition]:
    """
    Evaluate each condition on its own and keep the provable ones.

    Conditions that cannot be proven are skipped. No reasoning crosses
    from one condition to another.
    """
    findings: list[ConstantCondition] = []
    for index, condition in enumerate(conditions):
        value = evaluate_bool(condition)
        if value is not None:
            findings.append(ConstantCondition(condition=condition, value=value, index=index))
    return findings


def classify_chain(chain: ConditionalChain) -> list[ConstantCondition]:
    """
    Classify every condition of an if/elif chain.

    Args:
        chain: The conditional chain

    Returns:
        One finding per condition with a provable value, in chain order
    """
    return classify_conditions(chain.conditions)


# =============================================================================
# Lint Rule Configuration
# =============================================================================


class LintLevel(Enum):
    """
    Severity level for lint rules.

    ALLOW: Rule is disabled, no diagnostic produced
    WARN: Rule produces a warning
    DENY: Rule produces an error (non-zero exit status)
    """

    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"


class LintCategory(Enum):
    """
    Categories of lint rules for organization and filtering.
    """

    UNREACHABLE = "unreachable"    # Branches that can never run
    REDUNDANT = "redundant"        # Tests that can never fail


@dataclass(frozen=True)
class LintRule:
    """
    Definition of a single lint rule.

    Attributes:
        code: Unique rule identifier (e.g., "W0012")
        name: Human-readable rule name (e.g., "always-true-condition")
        category: The category this rule belongs to
        message: Message reported for the violation
        level: Default severity level
        suggestion: Optional fix suggestion
    """

    code: str
    name: str
    category: LintCategory
    message: str
    level: LintLevel = LintLevel.WARN
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        return f"{self.code} ({self.name})"


@dataclass
class LintViolation:
    """
    A detected lint violation in the source code.

    Attributes:
        rule: The lint rule that was violated
        location: Start of the offending condition
        message: Formatted message describing the issue
        level: Effective level the rule was reported at
        end_location: End of the offending condition
        suggestion: Optional suggestion for fixing the issue
    """

    rule: LintRule
    location: Optional[SourceLocation]
    message: str
    level: LintLevel = LintLevel.WARN
    end_location: Optional[SourceLocation] = None
    suggestion: Optional[str] = None

    def __str__(self) -> str:
        loc_str = f"{self.location}" if self.location else "<unknown>"
        return f"[{self.rule.code}] {loc_str}: {self.message}"

    def format_full(self) -> str:
        """Format the violation with its suggestion."""
        lines = [str(self)]
        if self.suggestion:
            lines.append(f"  suggestion: {self.suggestion}")
        return "\n".join(lines)


# =============================================================================
# Lint Rules
# =============================================================================

ALWAYS_TRUE_CONDITION = LintRule(
    code="W0012",
    name="always-true-condition",
    category=LintCategory.REDUNDANT,
    message="condition is always True",
    suggestion="remove the test; any later elif/else branches never run",
)

ALWAYS_FALSE_CONDITION = LintRule(
    code="W0013",
    name="always-false-condition",
    category=LintCategory.UNREACHABLE,
    message="condition is always False",
    suggestion="remove the unreachable branch",
)


# =============================================================================
# Rule Registry
# =============================================================================


ALL_RULES: dict[str, LintRule] = {
    ALWAYS_TRUE_CONDITION.code: ALWAYS_TRUE_CONDITION,
    ALWAYS_FALSE_CONDITION.code: ALWAYS_FALSE_CONDITION,
}

# Also index by name
RULES_BY_NAME: dict[str, LintRule] = {
    rule.name: rule for rule in ALL_RULES.values()
}


# =============================================================================
# Lint Configuration
# =============================================================================


@dataclass
class LintConfiguration:
    """
    Configuration for the linter specifying rule levels.

    Example:
        config = LintConfiguration()
        config.set_level("always-true-condition", LintLevel.ALLOW)
        config.set_level_by_category(LintCategory.UNREACHABLE, LintLevel.DENY)
    """

    rule_levels: dict[str, LintLevel] = field(default_factory=dict)

    def get_level(self, rule: LintRule) -> LintLevel:
        """Get the effective level for a rule."""
        # Check by code first, then by name
        if rule.code in self.rule_levels:
            return self.rule_levels[rule.code]
        if rule.name in self.rule_levels:
            return self.rule_levels[rule.name]
        return rule.level

    def set_level(self, rule_id: str, level: LintLevel) -> None:
        """Set the level for a rule by code or name."""
        rule = get_rule(rule_id)
        if rule is None:
            raise ValueError(f"Unknown lint rule: {rule_id}")
        # Store by code so a later code/name setting replaces it
        self.rule_levels.pop(rule.name, None)
        self.rule_levels[rule.code] = level

    def set_level_by_category(self, category: LintCategory, level: LintLevel) -> None:
        """Set the level for all rules in a category."""
        for rule in get_rules_by_category(category):
            self.set_level(rule.code, level)

    def allow(self, rule_id: str) -> None:
        """Disable a rule."""
        self.set_level(rule_id, LintLevel.ALLOW)

    def warn(self, rule_id: str) -> None:
        """Set a rule to warning level."""
        self.set_level(rule_id, LintLevel.WARN)

    def deny(self, rule_id: str) -> None:
        """Set a rule to error level."""
        self.set_level(rule_id, LintLevel.DENY)

    def allow_all(self) -> None:
        """Disable all rules."""
        for code in ALL_RULES:
            self.set_level(code, LintLevel.ALLOW)

    def warn_all(self) -> None:
        """Set all rules to warning level."""
        for code in ALL_RULES:
            self.set_level(code, LintLevel.WARN)

    def deny_all(self) -> None:
        """Set all rules to error level."""
        for code in ALL_RULES:
            self.set_level(code, LintLevel.DENY)

    def copy(self) -> LintConfiguration:
        """Return an independent copy of this configuration."""
        return LintConfiguration(rule_levels=dict(self.rule_levels))

    @classmethod
    def parse_directive(cls, directive: str) -> tuple[str, str, LintLevel]:
        """
        Parse a lint directive comment.

        Formats:
            # condfold: allow(rule-name)
            # condfold: warn(W0012)
            # condfold: deny(rule-name)

        Returns:
            Tuple of (action, rule_name, level)

        Raises:
            ValueError: If directive format is invalid
        """
        match = DIRECTIVE_PATTERN.match(directive.strip())
        if not match:
            raise ValueError(f"Invalid lint directive: {directive}")

        action = match.group(1)
        rule_name = match.group(2)
        return action, rule_name, LintLevel(action)


DIRECTIVE_PATTERN = re.compile(
    r"#\s*condfold:\s*(allow|warn|deny)\(([A-Za-z0-9_-]+)\)\s*$"
)
NOQA_PATTERN = re.compile(
    r"#\s*noqa(?::\s*(?P<codes>[\w-]+(?:\s*,\s*[\w-]+)*))?", re.IGNORECASE
)
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


# =============================================================================
# Main Linter Implementation
# =============================================================================


class Linter(ast.NodeVisitor):
    """
    Finds if/elif conditions with a constant value in Python source.

    Each ``if`` statement and its ``elif`` continuations form one
    conditional chain. An ``else:`` block whose only statement is an
    ``if`` starts a new chain. Condition text is re-parsed with the
    condfold parser (which keeps parentheses) and classified.

    Example:
        linter = Linter()
        violations = linter.lint(source)
        for v in violations:
            print(v)
    """

    def __init__(
        self,
        config: Optional[LintConfiguration] = None,
        filename: Optional[str] = None,
    ) -> None:
        """
        Initialize the linter.

        Args:
            config: Optional lint configuration for customizing rule levels
            filename: Filename used in reported locations
        """
        self.config = config or LintConfiguration()
        self.filename = filename
        self.violations: list[LintViolation] = []
        self.chains: list[ConditionalChain] = []

        self._config = self.config
        self._source = ""
        self._lines: list[str] = []
        self._comments: dict[int, str] = {}
        self._elif_nodes: set[int] = set()

    def lint(self, source: str) -> list[LintViolation]:
        """
        Run all lint checks on Python source code.

        Args:
            source: The module source text

        Returns:
            List of lint violations found

        Raises:
            ParserError: If the source is not valid Python
        """
        self.violations = []
        self.chains = []
        self._source = source
        self._lines = _LINE_BREAK.split(source)
        self._elif_nodes = set()

        try:
            tree = ast.parse(source, filename=self.filename or "<unknown>")
        except SyntaxError as e:
            location = SourceLocation(
                line=e.lineno or 1,
                column=e.offset or 1,
                filename=self.filename,
            )
            raise ParserError(e.msg, location, e.text) from e

        self._comments = self._collect_comments(source)
        self._config = self._apply_directives()

        self.visit(tree)
        return self.violations

    def _collect_comments(self, source: str) -> dict[int, str]:
        """Map line numbers to the comment on that line."""
        comments: dict[int, str] = {}
        try:
            for token in tokenize.generate_tokens(io.StringIO(source).readline):
                if token.type == tokenize.COMMENT:
                    comments[token.start[0]] = token.string
        except (tokenize.TokenError, SyntaxError) as e:
            logger.debug("Cannot read comments of %s: %s", self.filename or "<unknown>", e)
        return comments

    def _apply_directives(self) -> LintConfiguration:
        """Apply ``# condfold: allow(...)`` style directives to a copy of the config."""
        config = self.config.copy()
        for comment in self._comments.values():
            match = DIRECTIVE_PATTERN.match(comment)
            if match is None:
                continue
            _, rule_id, level = LintConfiguration.parse_directive(match.group(0))
            if get_rule(rule_id) is None:
                logger.warning("Ignoring directive for unknown lint rule '%s'", rule_id)
                continue
            config.set_level(rule_id, level)
        return config

    def _emit(
        self,
        rule: LintRule,
        location: Optional[SourceLocation],
        end_location: Optional[SourceLocation] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Emit a lint violation if the rule is enabled and not suppressed.

        Args:
            rule: The lint rule being violated
            location: Source location of the violation
            end_location: End of the offending source span
            suggestion: Optional fix suggestion
        """
        level = self._config.get_level(rule)
        if level == LintLevel.ALLOW:
            return
        if location is not None and self._is_suppressed(rule, location.line):
            logger.debug("Suppressed %s at %s", rule.code, location)
            return

        self.violations.append(LintViolation(
            rule=rule,
            location=location,
            message=rule.message,
            level=level,
            end_location=end_location,
            suggestion=suggestion if suggestion is not None else rule.suggestion,
        ))

    def _is_suppressed(self, rule: LintRule, line: int) -> bool:
        """Check for a ``# noqa`` comment on the given line."""
        comment = self._comments.get(line)
        if comment is None:
            return False
        match = NOQA_PATTERN.search(comment)
        if match is None:
            return False
        codes = match.group("codes")
        if not codes:
            return True
        listed = {code.strip() for code in codes.split(",")}
        return rule.code in listed or rule.name in listed

    # =========================================================================
    # Traversal
    # =========================================================================

    def visit_If(self, node: ast.If) -> None:
        """Visit an if statement, checking the whole chain once."""
        if id(node) not in self._elif_nodes:
            self._check_chain(self._collect_chain(node))
        self.generic_visit(node)

    def _collect_chain(self, node: ast.If) -> list[ast.If]:
        """Collect an if statement and its elif continuations."""
        nodes = [node]
        current = node
        while (
            len(current.orelse) == 1
            and isinstance(current.orelse[0], ast.If)
            and self._is_elif(current.orelse[0])
        ):
            current = current.orelse[0]
            self._elif_nodes.add(id(current))
            nodes.append(current)
        return nodes

    def _is_elif(self, node: ast.If) -> bool:
        """An elif node starts at the ``elif`` keyword; a nested if at ``if``."""
        if not 1 <= node.lineno <= len(self._lines):
            return False
        line = self._lines[node.lineno - 1].encode("utf-8")
        return line[node.col_offset:].startswith(b"elif")

    def _check_chain(self, nodes: list[ast.If]) -> None:
        """Classify the conditions of one chain and report constant ones."""
        chain = ConditionalChain(
            conditions=tuple(self._convert_condition(n.test) for n in nodes),
            location=self._location(nodes[0].lineno, nodes[0].col_offset),
        )
        self.chains.append(chain)

        try:
            findings = classify_chain(chain)
        except RecursionError:
            logger.warning(
                "%s:%d: condition is nested too deeply to analyse",
                self.filename or "<unknown>",
                nodes[0].lineno,
            )
            return

        for finding in findings:
            test = nodes[finding.index].test
            rule = ALWAYS_TRUE_CONDITION if finding.value else ALWAYS_FALSE_CONDITION
            self._emit(
                rule,
                self._location(test.lineno, test.col_offset),
                end_location=self._end_location(test),
            )

    def _convert_condition(self, test: ast.expr) -> Expression:
        """
        Re-parse the source text of a condition into a condfold tree.

        Conditions that cannot be parsed become opaque (never constant).
        """
        location = self._location(test.lineno, test.col_offset)
        segment = ast.get_source_segment(self._source, test)
        if segment is None:
            return OpaqueExpression(text="", kind="unparsed", location=location)

        try:
            return parse_expression(
                segment,
                filename=self.filename,
                line=location.line,
                column=location.column,
            )
        except (LexerError, ParserError) as e:
            logger.debug("Skipping condition at %s: %s", location, e.message)
        except RecursionError:
            logger.warning("%s: condition is nested too deeply to analyse", location)
        return OpaqueExpression(text=segment, kind="unparsed", location=location)

    def _location(self, line: int, byte_offset: int) -> SourceLocation:
        """Convert an ``ast`` position (UTF-8 byte column) to a SourceLocation."""
        return SourceLocation(
            line=line,
            column=self._char_column(line, byte_offset) + 1,
            filename=self.filename,
        )

    def _end_location(self, node: ast.expr) -> Optional[SourceLocation]:
        if node.end_lineno is None or node.end_col_offset is None:
            return None
        return self._location(node.end_lineno, node.end_col_offset)

    def _char_column(self, line: int, byte_offset: int) -> int:
        if not 1 <= line <= len(self._lines):
            return byte_offset
        encoded = self._lines[line - 1].encode("utf-8")
        return len(encoded[:byte_offset].decode("utf-8", errors="replace"))


# =============================================================================
# Utility Functions
# =============================================================================


def lint_source(
    source: str,
    config: Optional[LintConfiguration] = None,
    filename: Optional[str] = None,
) -> list[LintViolation]:
    """
    Lint Python source code.

    Args:
        source: Python source code string
        config: Optional lint configuration
        filename: Optional filename for reported locations

    Returns:
        List of lint violations found

    Raises:
        ParserError: If the source code cannot be parsed
    """
    linter = Linter(config, filename=filename)
    return linter.lint(source)


def lint_file(
    path: Union[str, Path],
    config: Optional[LintConfiguration] = None,
) -> list[LintViolation]:
    """
    Lint a Python file.

    Args:
        path: Path to the file
        config: Optional lint configuration

    Returns:
        List of lint violations found
    """
    path = Path(path)
    source = path.read_text(encoding="utf-8")
    return lint_source(source, config, filename=str(path))


def get_rule(rule_id: str) -> Optional[LintRule]:
    """Get a lint rule by code or name."""
    return ALL_RULES.get(rule_id) or RULES_BY_NAME.get(rule_id)


def get_rule_by_name(name: str) -> Optional[LintRule]:
    """Get a lint rule by its name."""
    return RULES_BY_NAME.get(name)


def get_rule_by_code(code: str) -> Optional[LintRule]:
    """Get a lint rule by its code."""
    return ALL_RULES.get(code)


def get_rules_by_category(category: LintCategory) -> list[LintRule]:
    """Get all lint rules in a category."""
    return [rule for rule in ALL_RULES.values() if rule.category == category]


# =============================================================================
# Exports
# =============================================================================


__all__ = [
    # Classifier
    "ConstantCondition",
    "classify_conditions",
    "classify_chain",
    # Enums
    "LintLevel",
    "LintCategory",
    # Data classes
    "LintRule",
    "LintViolation",
    "LintConfiguration",
    # Main linter
    "Linter",
    # Utility functions
    "lint_source",
    "lint_file",
    "get_rule",
    "get_rule_by_name",
    "get_rule_by_code",
    "get_rules_by_category",
    # Rule registry
    "ALL_RULES",
    "RULES_BY_NAME",
    "ALWAYS_TRUE_CONDITION",
    "ALWAYS_FALSE_CONDITION",
]
