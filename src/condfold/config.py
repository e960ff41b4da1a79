"""
Project configuration for condfold.

Settings are read from the ``[tool.condfold]`` table of a
``pyproject.toml``, or from the top level of a ``condfold.toml``, found
in the starting directory or one of its parents:

    [tool.condfold]
    allow = ["always-true-condition"]
    deny = ["unreachable"]          # rule codes, names or categories
    exclude = ["build/*", "*_pb2.py"]
"""

from __future__ import annotations

import fnmatch
import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from condfold.compiler.linter import (
    LintCategory,
    LintConfiguration,
    LintLevel,
    get_rule,
)
from condfold.utils.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_FILENAMES = ("condfold.toml", "pyproject.toml")
LEVEL_KEYS: dict[str, LintLevel] = {
    "allow": LintLevel.ALLOW,
    "warn": LintLevel.WARN,
    "deny": LintLevel.DENY,
}


class ConfigTable(BaseModel):
    """Raw contents of a condfold configuration table."""

    model_config = ConfigDict(extra="allow")

    allow: list[str] = Field(default_factory=list)
    warn: list[str] = Field(default_factory=list)
    deny: list[str] = Field(default_factory=list)
    exclude: list[str] = Field(default_factory=list)

    @field_validator("allow", "warn", "deny", "exclude", mode="before")
    @classmethod
    def accept_single_string(cls, value: Any) -> Any:
        """Allow ``deny = "W0013"`` as shorthand for a one-item list."""
        if isinstance(value, str):
            return [value]
        return value


@dataclass
class ProjectConfiguration:
    """
    Settings for one project.

    Attributes:
        lint: Rule levels for the linter
        exclude: Glob patterns for files that are never linted
        path: The file the settings were read from, if any
    """

    lint: LintConfiguration = field(default_factory=LintConfiguration)
    exclude: list[str] = field(default_factory=list)
    path: Optional[Path] = None

    def is_excluded(self, file_path: Path) -> bool:
        """Check a file against the exclude patterns."""
        candidates = {file_path.as_posix(), file_path.name}
        if self.path is not None:
            try:
                candidates.add(file_path.resolve().relative_to(self.path.parent.resolve()).as_posix())
            except ValueError:
                pass  # outside the project root
        return any(
            fnmatch.fnmatch(candidate, pattern)
            for pattern in self.exclude
            for candidate in candidates
        )


def find_config_file(start: Optional[Path] = None) -> Optional[Path]:
    """
    Find the nearest configuration file.

    A ``pyproject.toml`` only counts when it has a ``[tool.condfold]``
    table.
    """
    start = (start or Path.cwd()).resolve()
    if start.is_file():
        start = start.parent

    for directory in (start, *start.parents):
        for name in CONFIG_FILENAMES:
            candidate = directory / name
            if not candidate.is_file():
                continue
            if name == "pyproject.toml" and _read_table(candidate) is None:
                continue
            return candidate
    return None


def load_configuration(
    start: Optional[Path] = None,
    path: Optional[Path] = None,
) -> ProjectConfiguration:
    """
    Load project settings.

    Args:
        start: Directory (or file) to start searching from
        path: Explicit configuration file, skipping the search

    Returns:
        The settings, or defaults when no configuration file exists

    Raises:
        ConfigurationError: If the file is unreadable or invalid
    """
    config_path = path or find_config_file(start)
    if config_path is None:
        logger.debug("No configuration file found, using defaults")
        return ProjectConfiguration()

    table = _read_table(config_path)
    logger.debug("Loaded configuration from %s", config_path)
    return parse_configuration(table or {}, config_path)


def parse_configuration(table: dict[str, Any], path: Optional[Path] = None) -> ProjectConfiguration:
    """
    Build settings from a parsed configuration table.

    Raises:
        ConfigurationError: For unknown rules or badly typed values
    """
    try:
        parsed = ConfigTable.model_validate(table)
    except ValidationError as e:
        first_error = e.errors()[0]
        key = ".".join(str(loc) for loc in first_error["loc"][:1])
        raise ConfigurationError(
            f"'{key}' must be a list of strings in {path}: {first_error['msg']}"
        ) from e

    for key in parsed.model_extra or {}:
        logger.warning("Ignoring unknown configuration key '%s' in %s", key, path)

    settings = ProjectConfiguration(path=path, exclude=parsed.exclude)
    for key, level in LEVEL_KEYS.items():
        for rule_id in getattr(parsed, key):
            _set_level(settings.lint, rule_id, level, path)
    return settings


def _set_level(config: LintConfiguration, rule_id: str, level: LintLevel, path: Optional[Path]) -> None:
    if get_rule(rule_id) is not None:
        config.set_level(rule_id, level)
        return
    try:
        category = LintCategory(rule_id.lower())
    except ValueError:
        raise ConfigurationError(f"Unknown rule or category '{rule_id}' in {path}") from None
    config.set_level_by_category(category, level)


def _read_table(path: Path) -> Optional[dict[str, Any]]:
    """Read the condfold table of a configuration file."""
    try:
        with path.open("rb") as f:
            data = tomllib.load(f)
    except OSError as e:
        raise ConfigurationError(f"Cannot read {path}: {e}") from e
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Invalid TOML in {path}: {e}") from e

    if path.name == "pyproject.toml":
        table = data.get("tool", {}).get("condfold")
        if table is not None and not isinstance(table, dict):
            raise ConfigurationError(f"[tool.condfold] must be a table in {path}")
        return table
    return data
