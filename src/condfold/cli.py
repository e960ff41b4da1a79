"""
condfold Command-Line Interface.

Provides commands to find constant if/elif conditions in Python code.

Usage:
    condfold lint src/ tests/test_x.py   # Lint files and directories
    condfold lint --list-rules           # Show available rules
    condfold eval "not (2 + 2 == 5)"     # Fold a single expression
    condfold ast "(1 < 2) and x"         # Show the parsed expression tree
"""

import argparse
import dataclasses
import json
import logging
import os
import sys
from enum import Enum
from pathlib import Path
from typing import Any, Optional

from condfold import __version__
from condfold.compiler.ast_nodes import format_expression
from condfold.compiler.const_evaluator import evaluate
from condfold.compiler.linter import (
    ALL_RULES,
    LintCategory,
    LintConfiguration,
    LintLevel,
    LintViolation,
    get_rule,
    lint_source,
)
from condfold.compiler.parser import parse_expression
from condfold.config import ProjectConfiguration, load_configuration
from condfold.utils.errors import CondFoldError

logger = logging.getLogger(__name__)


# =============================================================================
# ANSI Color Codes for Terminal Output
# =============================================================================


class Colors:
    """ANSI escape codes for colored terminal output."""

    # Text colors
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    BLUE = "\033[94m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"

    # Styles
    BOLD = "\033[1m"

    # Reset
    RESET = "\033[0m"

    @classmethod
    def disable(cls) -> None:
        """Disable all colors (for non-TTY output)."""
        cls.RED = ""
        cls.GREEN = ""
        cls.YELLOW = ""
        cls.BLUE = ""
        cls.CYAN = ""
        cls.GRAY = ""
        cls.BOLD = ""
        cls.RESET = ""


def _init_colors() -> None:
    """Initialize colors based on terminal capabilities."""
    # Disable colors if not a TTY or if NO_COLOR is set
    if not sys.stdout.isatty() or os.environ.get("NO_COLOR"):
        Colors.disable()


# Initialize on module load
_init_colors()


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="condfold",
        description="condfold - find if/elif conditions that are always True or always False",
    )

    parser.add_argument(
        "-V",
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Lint command
    lint_parser = subparsers.add_parser(
        "lint",
        aliases=["l"],
        help="Lint Python files or directories",
    )
    lint_parser.add_argument(
        "paths",
        type=Path,
        nargs="*",  # Empty is allowed with --list-rules
        help="Python files or directories to lint",
    )
    lint_parser.add_argument(
        "--warn-all",
        action="store_true",
        help="Enable all rules as warnings",
    )
    lint_parser.add_argument(
        "--deny",
        type=str,
        action="append",
        default=[],
        metavar="CATEGORY",
        help="Treat warnings in CATEGORY as errors (unreachable, redundant)",
    )
    lint_parser.add_argument(
        "--allow",
        type=str,
        action="append",
        default=[],
        metavar="RULE",
        help="Disable a specific rule (e.g., 'always-true-condition' or 'W0012')",
    )
    lint_parser.add_argument(
        "--config",
        type=Path,
        default=None,
        metavar="FILE",
        help="Read settings from FILE instead of searching for pyproject.toml/condfold.toml",
    )
    lint_parser.add_argument(
        "--json",
        action="store_true",
        help="Output lint results as JSON",
    )
    lint_parser.add_argument(
        "--list-rules",
        action="store_true",
        help="List all available lint rules",
    )

    # Eval command
    eval_parser = subparsers.add_parser(
        "eval",
        aliases=["e"],
        help="Fold a single expression to its constant value",
    )
    eval_parser.add_argument(
        "expression",
        type=str,
        help="Python expression, e.g. '10 // 3 == 3'",
    )

    # AST command
    ast_parser = subparsers.add_parser(
        "ast",
        help="Show the parsed expression tree (debug)",
    )
    ast_parser.add_argument(
        "expression",
        type=str,
        help="Python expression",
    )

    return parser


# =============================================================================
# Lint Command
# =============================================================================


def cmd_lint(args: argparse.Namespace) -> int:
    """Handle the lint command."""
    # Handle --list-rules flag
    if args.list_rules:
        _print_lint_rules()
        return 0

    if not args.paths:
        print("Error: At least one path is required (or use --list-rules)", file=sys.stderr)
        return 1

    try:
        settings = load_configuration(start=args.paths[0], path=args.config)
    except CondFoldError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    config = settings.lint
    try:
        _apply_lint_options(config, args)
    except ValueError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1

    files, missing = _collect_files(args.paths, settings)
    failed = bool(missing)
    for path in missing:
        print(f"{Colors.RED}Error:{Colors.RESET} File not found: {path}", file=sys.stderr)

    results: list[tuple[Path, list[LintViolation]]] = []
    for path in files:
        try:
            source = path.read_text(encoding="utf-8")
            violations = lint_source(source, config, filename=str(path))
        except CondFoldError as e:
            print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
            failed = True
            continue
        except (OSError, UnicodeDecodeError) as e:
            print(f"{Colors.RED}Error:{Colors.RESET} Cannot read {path}: {e}", file=sys.stderr)
            failed = True
            continue

        results.append((path, violations))
        if not args.json:
            _print_lint_report(path, violations, source)

    if args.json:
        _print_lint_json(results)
    else:
        _print_lint_summary(results)

    # Count errors (deny level)
    error_count = sum(
        1 for _, violations in results for v in violations if v.level == LintLevel.DENY
    )
    if error_count > 0 or failed:
        return 1

    return 0


def _apply_lint_options(config: LintConfiguration, args: argparse.Namespace) -> None:
    """Apply command-line rule levels on top of the project settings."""
    if args.warn_all:
        config.warn_all()

    for name in args.deny:
        try:
            category = LintCategory(name.lower())
        except ValueError:
            valid = ", ".join(c.value for c in LintCategory)
            raise ValueError(f"Unknown category '{name}' (valid categories: {valid})") from None
        config.set_level_by_category(category, LintLevel.DENY)

    for rule_id in args.allow:
        if get_rule(rule_id) is None:
            raise ValueError(f"Unknown rule '{rule_id}'")
        config.allow(rule_id)


def _collect_files(
    paths: list[Path],
    settings: ProjectConfiguration,
) -> tuple[list[Path], list[Path]]:
    """
    Expand the command-line paths into the Python files to lint.

    Directories are searched recursively for ``*.py`` files; files named
    explicitly are always linted. Exclude patterns apply to both.

    Returns:
        Tuple of (files to lint, paths that do not exist)
    """
    files: list[Path] = []
    missing: list[Path] = []

    for path in paths:
        if path.is_dir():
            candidates = sorted(path.rglob("*.py"))
        elif path.exists():
            candidates = [path]
        else:
            missing.append(path)
            continue

        for candidate in candidates:
            if settings.is_excluded(candidate):
                logger.debug("Excluded %s", candidate)
                continue
            if candidate not in files:
                files.append(candidate)

    return files, missing


def _print_lint_report(
    input_path: Path,
    violations: list[LintViolation],
    source: Optional[str] = None,
) -> None:
    """
    Print a Rust-style formatted lint report with source context.

    Example output:
        warning[W0012]: condition is always True
          --> example.py:5:4
           |
          5 | if 1 < 2:
           |    ^^^^^
           |
           = help: remove the test; any later elif/else branches never run
    """
    if not violations:
        return

    source_lines = source.splitlines() if source else []

    for violation in violations:
        level_color = Colors.RED if violation.level == LintLevel.DENY else Colors.YELLOW
        level_str = "error" if violation.level == LintLevel.DENY else "warning"

        # Header: warning[W0012]: condition is always True
        print(
            f"{level_color}{Colors.BOLD}{level_str}[{violation.rule.code}]{Colors.RESET}: "
            f"{Colors.BOLD}{violation.message}{Colors.RESET}"
        )

        loc = violation.location
        if loc:
            print(f"  {Colors.BLUE}-->{Colors.RESET} {input_path}:{loc.line}:{loc.column}")

            # Source context with underline
            if source_lines and 1 <= loc.line <= len(source_lines):
                print(f"   {Colors.BLUE}|{Colors.RESET}")

                source_line = source_lines[loc.line - 1]
                line_num_str = f"{loc.line:3}"
                print(f"{Colors.BLUE}{line_num_str} |{Colors.RESET} {source_line}")

                underline_length = _span_length(violation, source_line)
                padding = " " * (loc.column - 1)
                underline = "^" * underline_length
                print(
                    f"   {Colors.BLUE}|{Colors.RESET} {padding}{level_color}{underline}{Colors.RESET}"
                )

                print(f"   {Colors.BLUE}|{Colors.RESET}")
        else:
            print(f"  {Colors.BLUE}-->{Colors.RESET} {input_path}:<unknown>")
            print(f"   {Colors.BLUE}|{Colors.RESET}")

        # Help/suggestion
        if violation.suggestion:
            print(
                f"   {Colors.BLUE}={Colors.RESET} {Colors.GREEN}help:{Colors.RESET} {violation.suggestion}"
            )

        print()


def _span_length(violation: LintViolation, source_line: str) -> int:
    """Length of the condition on its first line, for underlining."""
    start = violation.location.column
    end = violation.end_location
    if end is not None and end.line == violation.location.line:
        return max(1, end.column - start)
    # Multi-line condition: underline to the end of the first line
    return max(1, len(source_line.rstrip()) - start + 1)


def _print_lint_summary(results: list[tuple[Path, list[LintViolation]]]) -> None:
    """Print the totals for a lint run."""
    violations = [v for _, file_violations in results for v in file_violations]
    if not violations:
        print(f"{Colors.GREEN}[ok]{Colors.RESET} {len(results)} file(s): No lint issues found")
        return

    errors = sum(1 for v in violations if v.level == LintLevel.DENY)
    warnings = sum(1 for v in violations if v.level == LintLevel.WARN)
    print(f"Found {errors} error(s) and {warnings} warning(s) in {len(results)} file(s)")


def _print_lint_json(results: list[tuple[Path, list[LintViolation]]]) -> None:
    """Print lint results as JSON."""
    output: dict[str, Any] = {
        "files": [
            {
                "file": str(path),
                "violations": [_violation_to_json(v) for v in violations],
            }
            for path, violations in results
        ],
        "summary": {
            "total": 0,
            "by_category": {},
        },
    }

    # Count by category
    for _, violations in results:
        for v in violations:
            cat = v.rule.category.value
            output["summary"]["total"] += 1
            output["summary"]["by_category"][cat] = output["summary"]["by_category"].get(cat, 0) + 1

    print(json.dumps(output, indent=2))


def _violation_to_json(v: LintViolation) -> dict[str, Any]:
    return {
        "rule": {
            "code": v.rule.code,
            "name": v.rule.name,
            "category": v.rule.category.value,
        },
        "level": v.level.value,
        "location": {
            "line": v.location.line if v.location else None,
            "column": v.location.column if v.location else None,
        },
        "end_location": {
            "line": v.end_location.line if v.end_location else None,
            "column": v.end_location.column if v.end_location else None,
        },
        "message": v.message,
        "suggestion": v.suggestion,
    }


def _print_lint_rules() -> None:
    """Print all available lint rules."""
    print(f"\n{Colors.BOLD}Available Lint Rules{Colors.RESET}")
    print("=" * 60)

    for category in LintCategory:
        rules = [rule for rule in ALL_RULES.values() if rule.category == category]
        if not rules:
            continue

        print(f"\n{Colors.CYAN}{category.value.upper()}{Colors.RESET}")
        for rule in sorted(rules, key=lambda r: r.code):
            level_str = (
                f"{Colors.YELLOW}warn{Colors.RESET}"
                if rule.level == LintLevel.WARN
                else f"{Colors.RED}deny{Colors.RESET}"
            )
            print(f"  {rule.code} {rule.name:30s} [{level_str}]")
            print(f"    {Colors.GRAY}{rule.message}{Colors.RESET}")

    print()


# =============================================================================
# Expression Commands
# =============================================================================


def cmd_eval(args: argparse.Namespace) -> int:
    """Handle the eval command."""
    try:
        expr = parse_expression(args.expression, filename="<expression>")
        value = evaluate(expr)
    except CondFoldError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1
    except RecursionError:
        print(f"{Colors.RED}Error:{Colors.RESET} expression is nested too deeply", file=sys.stderr)
        return 1

    if value is None:
        print(f"{Colors.GRAY}unknown{Colors.RESET}")
    else:
        print(value)
    return 0


def cmd_ast(args: argparse.Namespace) -> int:
    """Handle the ast command (debug)."""
    try:
        expr = parse_expression(args.expression, filename="<expression>")
        print(format_expression(expr))
        _print_ast(expr)
    except CondFoldError as e:
        print(f"{Colors.RED}Error:{Colors.RESET} {e}", file=sys.stderr)
        return 1
    except RecursionError:
        print(f"{Colors.RED}Error:{Colors.RESET} expression is nested too deeply", file=sys.stderr)
        return 1
    return 0


def _print_ast(node, indent: int = 0) -> None:
    """Pretty print an expression tree."""
    prefix = "  " * indent
    node_name = type(node).__name__

    attrs = {
        f.name: getattr(node, f.name)
        for f in dataclasses.fields(node)
        if f.name != "location"
    }

    print(f"{prefix}{node_name}:")
    for key, value in attrs.items():
        if dataclasses.is_dataclass(value):
            print(f"{prefix}  {key}:")
            _print_ast(value, indent + 2)
        elif isinstance(value, Enum):
            print(f"{prefix}  {key}: {value.name}")
        else:
            print(f"{prefix}  {key}: {value!r}")


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command is None:
        parser.print_help()
        return 0

    command_handlers = {
        "lint": cmd_lint,
        "l": cmd_lint,
        "eval": cmd_eval,
        "e": cmd_eval,
        "ast": cmd_ast,
    }

    handler = command_handlers.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
