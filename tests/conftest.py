"""
Pytest configuration and shared fixtures for condfold tests.
"""

from pathlib import Path
from typing import Optional

import pytest

from condfold.compiler.ast_nodes import Expression
from condfold.compiler.lexer import Lexer
from condfold.compiler.linter import LintConfiguration, Linter, LintViolation
from condfold.compiler.parser import Parser
from condfold.compiler.tokens import Token


@pytest.fixture
def lexer_factory():
    """Factory fixture for creating lexers."""

    def _create_lexer(source: str, filename: str = "test.py") -> Lexer:
        return Lexer(source, filename)

    return _create_lexer


@pytest.fixture
def parser_factory(lexer_factory):
    """Factory fixture for creating parsers from expression source."""

    def _create_parser(source: str) -> Parser:
        lexer = lexer_factory(source)
        tokens = lexer.tokenize()
        return Parser(tokens, source=source)

    return _create_parser


@pytest.fixture
def tokenize(lexer_factory):
    """Fixture to tokenize expression source."""

    def _tokenize(source: str) -> list[Token]:
        lexer = lexer_factory(source)
        return lexer.tokenize()

    return _tokenize


@pytest.fixture
def parse(parser_factory):
    """Fixture to parse expression source into a tree."""

    def _parse(source: str) -> Expression:
        parser = parser_factory(source)
        return parser.parse()

    return _parse


@pytest.fixture
def linter_factory():
    """Factory fixture for creating linters."""

    def _create_linter(config: Optional[LintConfiguration] = None) -> Linter:
        return Linter(config, filename="test.py")

    return _create_linter


@pytest.fixture
def lint(linter_factory):
    """Fixture to lint Python module source."""

    def _lint(source: str, config: Optional[LintConfiguration] = None) -> list[LintViolation]:
        return linter_factory(config).lint(source)

    return _lint


@pytest.fixture
def make_project(tmp_path):
    """
    Fixture to lay out a project directory.

    Takes a mapping of relative paths to file contents and returns the
    project root.
    """

    def _make(files: dict[str, str]) -> Path:
        for relative, content in files.items():
            path = tmp_path / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return tmp_path

    return _make
