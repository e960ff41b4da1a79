"""
Unit tests for the condfold linter and condition classifier.

Tests cover:
- Classifying the conditions of a chain
- Building if/elif chains from Python source
- Rule configuration, noqa comments and file directives
- Error handling for invalid source
"""

import logging

import pytest

from condfold.compiler import linter as linter_module
from condfold.compiler.ast_nodes import ConditionalChain, OpaqueExpression
from condfold.compiler.linter import (
    ALWAYS_FALSE_CONDITION,
    ALWAYS_TRUE_CONDITION,
    ConstantCondition,
    LintCategory,
    LintConfiguration,
    Linter,
    LintLevel,
    classify_chain,
    classify_conditions,
    get_rule,
    get_rule_by_code,
    get_rule_by_name,
    get_rules_by_category,
    lint_file,
    lint_source,
)
from condfold.utils.errors import ParserError


CHAIN_SOURCE = """\
if 1 < 2:
    pass
elif x > 0:
    pass
elif 5 == 5:
    pass
"""


class TestClassifier:
    """Tests for classify_chain and classify_conditions."""

    def test_chain_findings(self, parse):
        """[1 < 2, x > 0, 5 == 5] reports the first and third conditions."""
        conditions = (parse("1 < 2"), parse("x > 0"), parse("5 == 5"))
        findings = classify_chain(ConditionalChain(conditions=conditions))

        assert [f.index for f in findings] == [0, 2]
        assert all(f.value is True for f in findings)
        assert findings[0].condition is conditions[0]
        assert findings[1].condition is conditions[2]

    def test_arithmetic_condition(self, parse):
        """(2 + 2) == 4 is always True."""
        findings = classify_conditions([parse("(2 + 2) == 4")])
        assert findings == [ConstantCondition(condition=findings[0].condition, value=True, index=0)]

    def test_negated_condition(self, parse):
        """not (1 > 2) is always True."""
        findings = classify_conditions([parse("not (1 > 2)")])
        assert len(findings) == 1
        assert findings[0].value is True

    def test_always_false(self, parse):
        findings = classify_conditions([parse("2 + 2 == 5")])
        assert findings[0].value is False

    def test_no_cross_condition_reasoning(self, parse):
        """A constant True earlier in the chain does not make later conditions constant."""
        findings = classify_conditions([parse("True"), parse("x")])
        assert [f.index for f in findings] == [0]

    def test_empty_chain(self):
        assert classify_chain(ConditionalChain(conditions=())) == []

    def test_unknown_conditions_are_skipped(self, parse):
        assert classify_conditions([parse("x"), parse("f() < 1"), parse("1.5 < 2")]) == []


class TestChainCollection:
    """Tests for building chains from Python source."""

    def test_elif_chain(self, lint):
        violations = lint(CHAIN_SOURCE)

        assert len(violations) == 2
        assert all(v.rule is ALWAYS_TRUE_CONDITION for v in violations)
        assert (violations[0].location.line, violations[0].location.column) == (1, 4)
        assert (violations[1].location.line, violations[1].location.column) == (5, 6)

    def test_chain_structure(self, linter_factory):
        linter = linter_factory()
        linter.lint(CHAIN_SOURCE)

        assert len(linter.chains) == 1
        assert len(linter.chains[0].conditions) == 3
        assert linter.chains[0].location.line == 1

    def test_else_if_starts_new_chain(self, linter_factory):
        source = (
            "if x:\n"
            "    pass\n"
            "else:\n"
            "    if 1 > 2:\n"
            "        pass\n"
            "    elif y:\n"
            "        pass\n"
        )
        linter = linter_factory()
        violations = linter.lint(source)

        assert [len(chain.conditions) for chain in linter.chains] == [1, 2]
        assert len(violations) == 1
        assert violations[0].rule is ALWAYS_FALSE_CONDITION
        assert (violations[0].location.line, violations[0].location.column) == (4, 8)

    def test_nested_statements(self, lint):
        source = (
            "def f(x):\n"
            "    if True:\n"
            "        return 1\n"
            "    while x:\n"
            "        if False:\n"
            "            pass\n"
        )
        violations = lint(source)

        assert [(v.rule.code, v.location.line) for v in violations] == [
            ("W0012", 2),
            ("W0013", 5),
        ]

    def test_other_conditionals_are_ignored(self, lint):
        source = (
            "y = 1 if True else 2\n"
            "while True:\n"
            "    break\n"
            "z = [i for i in range(3) if 1 < 2]\n"
            "assert 1 < 2\n"
        )
        assert lint(source) == []

    def test_multiline_condition(self, lint):
        source = (
            "if (1 <\n"
            "        2):\n"
            "    pass\n"
        )
        violations = lint(source)

        assert len(violations) == 1
        assert (violations[0].location.line, violations[0].location.column) == (1, 5)
        assert (violations[0].end_location.line, violations[0].end_location.column) == (2, 10)

    def test_end_location(self, lint):
        violations = lint("if not (3 > 4):\n    pass\n")
        assert violations[0].rule is ALWAYS_TRUE_CONDITION
        assert violations[0].end_location.column == 15

    def test_non_constant_code(self, lint):
        source = (
            "import os\n"
            "if os.environ.get('DEBUG'):\n"
            "    pass\n"
            "elif len(os.sep) == 1:\n"
            "    pass\n"
        )
        assert lint(source) == []


class TestLintConfiguration:
    """Tests for rule levels."""

    def test_default_level_is_warn(self, lint):
        violations = lint("if 1 < 2:\n    pass\n")
        assert violations[0].level == LintLevel.WARN

    def test_deny_by_code(self, lint):
        config = LintConfiguration()
        config.deny("W0012")
        violations = lint("if 1 < 2:\n    pass\n", config)
        assert violations[0].level == LintLevel.DENY

    def test_allow_by_name(self, lint):
        config = LintConfiguration()
        config.allow("always-true-condition")
        assert lint("if 1 < 2:\n    pass\n", config) == []

    def test_level_by_category(self, lint):
        config = LintConfiguration()
        config.set_level_by_category(LintCategory.UNREACHABLE, LintLevel.ALLOW)
        source = "if 1 > 2:\n    pass\nelif 1 < 2:\n    pass\n"
        violations = lint(source, config)
        assert [v.rule for v in violations] == [ALWAYS_TRUE_CONDITION]

    def test_later_setting_wins(self):
        config = LintConfiguration()
        config.allow("always-true-condition")
        config.deny("W0012")
        assert config.get_level(ALWAYS_TRUE_CONDITION) == LintLevel.DENY

    def test_all_levels(self):
        config = LintConfiguration()
        config.deny_all()
        assert config.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.DENY
        config.allow_all()
        assert config.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.ALLOW
        config.warn_all()
        assert config.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.WARN

    def test_unknown_rule(self):
        with pytest.raises(ValueError):
            LintConfiguration().set_level("no-such-rule", LintLevel.DENY)

    def test_copy_is_independent(self):
        config = LintConfiguration()
        clone = config.copy()
        clone.deny("W0013")
        assert config.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.WARN


class TestSuppression:
    """Tests for noqa comments and file directives."""

    @pytest.mark.parametrize(
        "comment",
        ["# noqa", "#noqa", "# noqa: W0012", "# noqa: W0013, W0012", "# NOQA:always-true-condition"],
    )
    def test_noqa_suppresses(self, lint, comment):
        assert lint(f"if 1 < 2:  {comment}\n    pass\n") == []

    def test_noqa_for_other_rule(self, lint):
        violations = lint("if 1 < 2:  # noqa: W0013\n    pass\n")
        assert len(violations) == 1

    def test_noqa_on_elif_line_only(self, lint):
        violations = lint(CHAIN_SOURCE.replace("elif 5 == 5:", "elif 5 == 5:  # noqa"))
        assert [v.location.line for v in violations] == [1]

    def test_noqa_inside_string_is_ignored(self, lint):
        violations = lint('if 1 < 2: s = "# noqa"\n')
        assert [v.rule.code for v in violations] == ["W0012"]

    def test_directive_inside_string_is_ignored(self, lint):
        source = (
            'DOC = """\n'
            "# condfold: allow(always-true-condition)\n"
            '"""\n'
            "if 1 < 2:\n"
            "    pass\n"
        )
        violations = lint(source)
        assert [v.location.line for v in violations] == [4]

    def test_trailing_directive_comment(self, lint):
        source = "x = 1  # condfold: allow(W0012)\nif 1 < 2:\n    pass\n"
        assert lint(source) == []

    def test_allow_directive(self, lint):
        source = "# condfold: allow(always-true-condition)\nif 1 < 2:\n    pass\n"
        assert lint(source) == []

    def test_deny_directive(self, lint):
        source = "# condfold: deny(W0013)\nif 1 > 2:\n    pass\n"
        violations = lint(source)
        assert violations[0].level == LintLevel.DENY

    def test_directive_does_not_change_caller_config(self, linter_factory):
        config = LintConfiguration()
        linter = linter_factory(config)
        linter.lint("# condfold: allow(W0012)\nif 1 < 2:\n    pass\n")

        assert config.rule_levels == {}
        assert len(linter.lint("if 1 < 2:\n    pass\n")) == 1

    def test_unknown_directive_rule(self, lint, caplog):
        with caplog.at_level(logging.WARNING, logger="condfold.compiler.linter"):
            violations = lint("# condfold: allow(no-such-rule)\nif 1 < 2:\n    pass\n")

        assert len(violations) == 1
        assert "no-such-rule" in caplog.text

    def test_parse_directive(self):
        assert LintConfiguration.parse_directive("# condfold: warn(W0012)") == (
            "warn",
            "W0012",
            LintLevel.WARN,
        )

    def test_parse_invalid_directive(self):
        with pytest.raises(ValueError):
            LintConfiguration.parse_directive("# condfold: ignore(W0012)")


class TestErrorHandling:
    """Tests for invalid input and analysis limits."""

    def test_syntax_error(self, lint):
        with pytest.raises(ParserError) as exc_info:
            lint("if :\n    pass\n")
        assert exc_info.value.location.line == 1
        assert exc_info.value.location.filename == "test.py"

    def test_unparsable_condition_is_skipped(self, linter_factory, monkeypatch):
        def fail(*args, **kwargs):
            raise ParserError("unsupported syntax")

        monkeypatch.setattr(linter_module, "parse_expression", fail)
        linter = linter_factory()

        assert linter.lint("if 1 < 2:\n    pass\n") == []
        condition = linter.chains[0].conditions[0]
        assert isinstance(condition, OpaqueExpression)
        assert condition.kind == "unparsed"
        assert condition.text == "1 < 2"

    def test_recursion_limit_is_skipped(self, lint, monkeypatch, caplog):
        def too_deep(chain):
            raise RecursionError

        monkeypatch.setattr(linter_module, "classify_chain", too_deep)
        with caplog.at_level(logging.WARNING, logger="condfold.compiler.linter"):
            assert lint("if 1 < 2:\n    pass\n") == []
        assert "nested too deeply" in caplog.text


class TestHelpers:
    """Tests for the module-level helpers."""

    def test_lint_source(self):
        violations = lint_source("if 1 < 2:\n    pass\n", filename="mod.py")
        assert str(violations[0]) == "[W0012] mod.py:1:4: condition is always True"

    def test_format_full(self):
        violations = lint_source("if 1 > 2:\n    pass\n")
        assert violations[0].format_full().splitlines() == [
            str(violations[0]),
            "  suggestion: remove the unreachable branch",
        ]
        assert violations[0].message == ALWAYS_FALSE_CONDITION.message

    def test_lint_file(self, tmp_path):
        path = tmp_path / "module.py"
        path.write_text("if 5 == 5:\n    pass\n", encoding="utf-8")

        violations = lint_file(path)

        assert len(violations) == 1
        assert violations[0].location.filename == str(path)

    def test_rule_lookup(self):
        assert get_rule("W0012") is ALWAYS_TRUE_CONDITION
        assert get_rule("always-false-condition") is ALWAYS_FALSE_CONDITION
        assert get_rule("missing") is None
        assert get_rule_by_code("W0013") is ALWAYS_FALSE_CONDITION
        assert get_rule_by_name("always-true-condition") is ALWAYS_TRUE_CONDITION
        assert get_rules_by_category(LintCategory.REDUNDANT) == [ALWAYS_TRUE_CONDITION]

    def test_linter_reuse(self):
        linter = Linter()
        assert len(linter.lint("if True:\n    pass\n")) == 1
        assert linter.lint("x = 1\n") == []
        assert linter.chains == []
