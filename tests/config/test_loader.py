"""Tests for config/loader.py module.

Covers:
- _load_yaml() function
- _deep_merge() function
- load_config() precedence: defaults < global < project < env < kwargs
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any
from unittest.mock import patch

import pytest

from laraindex.config.loader import (
    GLOBAL_CONFIG_PATH,
    _deep_merge,
    _load_yaml,
    load_config,
)
from laraindex.core.errors import ConfigError, ErrorCode


class TestLoadYaml:
    """Tests for _load_yaml function."""

    def test_returns_empty_dict_for_missing_file(self, tmp_path: Path) -> None:
        assert _load_yaml(tmp_path / "nonexistent.yaml") == {}

    def test_loads_valid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "config.yaml"
        yaml_file.write_text("layout:\n  routes_dir: routes\n")

        assert _load_yaml(yaml_file) == {"layout": {"routes_dir": "routes"}}

    def test_returns_empty_for_empty_file(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "empty.yaml"
        yaml_file.write_text("")

        assert _load_yaml(yaml_file) == {}

    def test_raises_config_error_for_invalid_yaml(self, tmp_path: Path) -> None:
        yaml_file = tmp_path / "broken.yaml"
        yaml_file.write_text("layout: [unclosed\n")

        with pytest.raises(ConfigError) as exc_info:
            _load_yaml(yaml_file)
        assert exc_info.value.code == ErrorCode.CONFIG_PARSE_ERROR

    def test_raises_config_error_for_non_mapping(self, tmp_path: Path) -> None:
        """A YAML list at the top level is not a config."""
        yaml_file = tmp_path / "list.yaml"
        yaml_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError):
            _load_yaml(yaml_file)


class TestDeepMerge:
    """Tests for _deep_merge function."""

    def test_merges_nested_dicts(self) -> None:
        base: dict[str, Any] = {"layout": {"routes_dir": "routes", "views_dir": "resources/views"}}
        override: dict[str, Any] = {"layout": {"views_dir": "views"}}

        assert _deep_merge(base, override) == {"layout": {"routes_dir": "routes", "views_dir": "views"}}

    def test_override_replaces_non_dict(self) -> None:
        base: dict[str, Any] = {"a": {"nested": 1}}
        override: dict[str, Any] = {"a": "simple"}
        assert _deep_merge(base, override) == {"a": "simple"}

    def test_does_not_mutate_base(self) -> None:
        base = {"a": 1}
        _deep_merge(base, {"b": 2})
        assert base == {"a": 1}


class TestLoadConfig:
    """Tests for load_config function."""

    def test_returns_default_config_when_no_files(self, tmp_path: Path) -> None:
        with patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.logging.level == "INFO"
        assert config.layout.routes_dir == "routes"
        assert config.layout.lang_dirs == ["lang", "resources/lang"]
        assert config.validation.similarity_threshold == 0.6

    def test_loads_project_config(self, tmp_path: Path) -> None:
        """Loads .laraindex.yaml from the project root."""
        (tmp_path / ".laraindex.yaml").write_text("layout:\n  views_dir: resources/templates\n")

        with patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path)

        assert config.layout.views_dir == "resources/templates"
        assert config.layout.routes_dir == "routes"

    def test_project_config_overrides_global(self, tmp_path: Path) -> None:
        # Given
        global_file = tmp_path / "global.yaml"
        global_file.write_text("validation:\n  max_suggestions: 5\n  default_table: accounts\n")
        project = tmp_path / "project"
        project.mkdir()
        (project / ".laraindex.yaml").write_text("validation:\n  max_suggestions: 2\n")

        # When
        with patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", global_file):
            config = load_config(project)

        # Then
        assert config.validation.max_suggestions == 2
        assert config.validation.default_table == "accounts"

    def test_env_vars_override_yaml(self, tmp_path: Path) -> None:
        (tmp_path / ".laraindex.yaml").write_text("logging:\n  level: INFO\n")

        with (
            patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            patch.dict(os.environ, {"LARAINDEX__LOGGING__LEVEL": "WARNING"}),
        ):
            config = load_config(tmp_path)

        assert config.logging.level == "WARNING"

    def test_kwargs_override_all(self, tmp_path: Path) -> None:
        from laraindex.config.models import LayoutConfig

        with patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"):
            config = load_config(tmp_path, layout=LayoutConfig(routes_dir="app/routes"))

        assert config.layout.routes_dir == "app/routes"

    def test_raises_config_error_for_invalid_value(self, tmp_path: Path) -> None:
        (tmp_path / ".laraindex.yaml").write_text("validation:\n  similarity_threshold: 1.5\n")

        with (
            patch("laraindex.config.loader.GLOBAL_CONFIG_PATH", tmp_path / "none.yaml"),
            pytest.raises(ConfigError) as exc_info,
        ):
            load_config(tmp_path)
        assert exc_info.value.code == ErrorCode.CONFIG_INVALID_VALUE


class TestGlobalConfigPath:
    """Tests for GLOBAL_CONFIG_PATH constant."""

    def test_is_in_user_config(self) -> None:
        assert isinstance(GLOBAL_CONFIG_PATH, Path)
        assert "laraindex" in str(GLOBAL_CONFIG_PATH)
