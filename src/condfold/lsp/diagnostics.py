"""
Diagnostic generation for condfold LSP.

This module converts syntax errors and constant-condition lint
violations into LSP-compatible diagnostic messages for display in
editors.
"""

import logging
from typing import Optional

from lsprotocol import types

from condfold.compiler.linter import (
    LintCategory,
    LintConfiguration,
    Linter,
    LintLevel,
    LintViolation,
)
from condfold.utils.errors import CondFoldError

logger = logging.getLogger(__name__)

DIAGNOSTIC_SOURCE = "condfold"

SEVERITY_MAP = {
    LintLevel.WARN: types.DiagnosticSeverity.Warning,
    LintLevel.DENY: types.DiagnosticSeverity.Error,
}


class DiagnosticProvider:
    """
    Generates LSP diagnostics from Python source code.

    A document that does not parse produces a single error diagnostic;
    otherwise every lint violation becomes one diagnostic.
    """

    def __init__(
        self,
        source: str,
        uri: str,
        config: Optional[LintConfiguration] = None,
    ) -> None:
        """
        Initialize the diagnostic provider.

        Args:
            source: The Python source code to analyze
            uri: The document URI for location information
            config: Optional lint configuration for rule levels
        """
        self.source = source
        self.uri = uri
        self.config = config
        self._diagnostics: list[types.Diagnostic] = []

    def get_diagnostics(self) -> list[types.Diagnostic]:
        """
        Get all diagnostics for the document.

        Returns:
            List of LSP diagnostic objects
        """
        self._diagnostics = []

        try:
            violations = Linter(self.config, filename=self.uri).lint(self.source)
        except CondFoldError as e:
            logger.debug("%s: %s", self.uri, e)
            self._add_condfold_error(e)
            return self._diagnostics

        for violation in violations:
            self._add_lint_violation(violation)

        logger.debug("%s: %d diagnostic(s)", self.uri, len(self._diagnostics))
        return self._diagnostics

    def _add_condfold_error(self, error: CondFoldError) -> None:
        """
        Add a syntax error as an LSP diagnostic.

        Args:
            error: The condfold error
        """
        line = 0
        character = 0

        if error.location:
            line = max(0, error.location.line - 1)  # Convert to 0-indexed
            character = max(0, error.location.column - 1)

        diagnostic = types.Diagnostic(
            range=types.Range(
                start=types.Position(line=line, character=character),
                end=types.Position(line=line, character=character + 1),
            ),
            message=error.message,
            severity=types.DiagnosticSeverity.Error,
            source=DIAGNOSTIC_SOURCE,
        )

        self._diagnostics.append(diagnostic)

    def _add_lint_violation(self, violation: LintViolation) -> None:
        """
        Add a lint violation as an LSP diagnostic.

        Args:
            violation: The lint violation
        """
        severity = SEVERITY_MAP.get(violation.level)
        if severity is None:
            return  # Allowed rules are never reported

        line = 0
        character = 0
        if violation.location:
            line = max(0, violation.location.line - 1)
            character = max(0, violation.location.column - 1)

        end_line = line
        end_character = character + 1
        if violation.end_location:
            end_line = max(0, violation.end_location.line - 1)
            end_character = max(0, violation.end_location.column - 1)

        message = violation.message
        if violation.suggestion:
            message = f"{message}\n\nhint: {violation.suggestion}"

        diagnostic = types.Diagnostic(
            range=types.Range(
                start=types.Position(line=line, character=character),
                end=types.Position(line=end_line, character=end_character),
            ),
            message=message,
            severity=severity,
            source=DIAGNOSTIC_SOURCE,
            code=violation.rule.code,
            tags=self._get_diagnostic_tags(violation),
        )

        self._diagnostics.append(diagnostic)

    def _get_diagnostic_tags(self, violation: LintViolation) -> list[types.DiagnosticTag]:
        """Tag conditions guarding dead branches so editors can fade them."""
        if violation.rule.category == LintCategory.UNREACHABLE:
            return [types.DiagnosticTag.Unnecessary]
        return []


def get_diagnostics_for_document(
    source: str,
    uri: str,
    config: Optional[LintConfiguration] = None,
) -> list[types.Diagnostic]:
    """
    Convenience function to get diagnostics for a document.

    Args:
        source: The Python source code
        uri: The document URI
        config: Optional lint configuration

    Returns:
        List of LSP diagnostics
    """
    provider = DiagnosticProvider(source, uri, config)
    return provider.get_diagnostics()
