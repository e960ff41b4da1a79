"""
Unit tests for condfold project configuration.
"""

from pathlib import Path

import pytest

from condfold.compiler.linter import (
    ALWAYS_FALSE_CONDITION,
    ALWAYS_TRUE_CONDITION,
    LintLevel,
)
from condfold.config import (
    ProjectConfiguration,
    find_config_file,
    load_configuration,
    parse_configuration,
)
from condfold.utils.errors import ConfigurationError


class TestFindConfigFile:
    """Tests for locating the configuration file."""

    def test_pyproject_with_table(self, make_project):
        root = make_project({"pyproject.toml": "[tool.condfold]\nallow = []\n"})
        assert find_config_file(root) == (root / "pyproject.toml").resolve()

    def test_pyproject_without_table_is_skipped(self, make_project):
        root = make_project({
            "condfold.toml": "deny = ['unreachable']\n",
            "pkg/pyproject.toml": "[project]\nname = 'pkg'\n",
        })
        assert find_config_file(root / "pkg") == (root / "condfold.toml").resolve()

    def test_condfold_toml_preferred(self, make_project):
        root = make_project({
            "condfold.toml": "allow = []\n",
            "pyproject.toml": "[tool.condfold]\nallow = []\n",
        })
        assert find_config_file(root) == (root / "condfold.toml").resolve()

    def test_search_from_file(self, make_project):
        root = make_project({
            "pyproject.toml": "[tool.condfold]\n",
            "src/module.py": "x = 1\n",
        })
        assert find_config_file(root / "src" / "module.py") == (root / "pyproject.toml").resolve()


class TestLoadConfiguration:
    """Tests for reading settings."""

    def test_levels_from_pyproject(self, make_project):
        root = make_project({
            "pyproject.toml": (
                "[tool.condfold]\n"
                "allow = ['always-true-condition']\n"
                "deny = ['W0013']\n"
            ),
        })
        settings = load_configuration(start=root)

        assert settings.lint.get_level(ALWAYS_TRUE_CONDITION) == LintLevel.ALLOW
        assert settings.lint.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.DENY
        assert settings.path == (root / "pyproject.toml").resolve()

    def test_levels_by_category(self, make_project):
        root = make_project({"condfold.toml": "deny = ['Unreachable']\n"})
        settings = load_configuration(start=root)

        assert settings.lint.get_level(ALWAYS_FALSE_CONDITION) == LintLevel.DENY
        assert settings.lint.get_level(ALWAYS_TRUE_CONDITION) == LintLevel.WARN

    def test_explicit_path(self, make_project):
        root = make_project({"settings/custom.toml": "allow = ['W0012']\nexclude = ['gen/*']\n"})
        settings = load_configuration(path=root / "settings" / "custom.toml")

        assert settings.lint.get_level(ALWAYS_TRUE_CONDITION) == LintLevel.ALLOW
        assert settings.exclude == ["gen/*"]

    def test_single_string_value(self):
        settings = parse_configuration({"warn": "W0012"})
        assert settings.lint.get_level(ALWAYS_TRUE_CONDITION) == LintLevel.WARN

    def test_defaults_without_file(self, tmp_path, monkeypatch):
        monkeypatch.setattr("condfold.config.find_config_file", lambda start=None: None)
        settings = load_configuration(start=tmp_path)

        assert settings.path is None
        assert settings.exclude == []
        assert settings.lint.rule_levels == {}

    def test_unknown_rule(self, make_project):
        root = make_project({"condfold.toml": "allow = ['no-such-rule']\n"})
        with pytest.raises(ConfigurationError) as exc_info:
            load_configuration(start=root)
        assert "no-such-rule" in exc_info.value.message

    def test_bad_value_type(self):
        with pytest.raises(ConfigurationError):
            parse_configuration({"deny": [1, 2]})

    def test_bad_value_names_key(self):
        with pytest.raises(ConfigurationError) as exc_info:
            parse_configuration({"exclude": {"build": True}}, Path("condfold.toml"))
        assert "'exclude' must be a list" in exc_info.value.message

    def test_invalid_toml(self, make_project):
        root = make_project({"condfold.toml": "allow = [\n"})
        with pytest.raises(ConfigurationError) as exc_info:
            load_configuration(start=root)
        assert "Invalid TOML" in exc_info.value.message

    def test_missing_explicit_file(self, tmp_path):
        with pytest.raises(ConfigurationError):
            load_configuration(path=tmp_path / "missing.toml")

    def test_table_must_be_a_table(self, make_project):
        root = make_project({"pyproject.toml": "[tool]\ncondfold = 3\n"})
        with pytest.raises(ConfigurationError):
            load_configuration(path=root / "pyproject.toml")

    def test_unknown_key_is_logged(self, caplog):
        settings = parse_configuration({"colour": True}, Path("condfold.toml"))
        assert isinstance(settings, ProjectConfiguration)
        assert "colour" in caplog.text


class TestExclude:
    """Tests for exclude patterns."""

    def test_relative_to_project_root(self, tmp_path):
        settings = ProjectConfiguration(exclude=["build/*"], path=tmp_path / "pyproject.toml")
        assert settings.is_excluded(tmp_path / "build" / "gen.py")
        assert not settings.is_excluded(tmp_path / "src" / "gen.py")

    def test_file_name_pattern(self):
        settings = ProjectConfiguration(exclude=["*_pb2.py"])
        assert settings.is_excluded(Path("pkg/service_pb2.py"))
        assert not settings.is_excluded(Path("pkg/service.py"))

    def test_no_patterns(self):
        assert not ProjectConfiguration().is_excluded(Path("anything.py"))
