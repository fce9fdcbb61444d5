"""Tests for config/models.py module."""

from __future__ import annotations

import pytest
from pydantic import ValidationError

from laraindex.config.models import (
    LaraIndexConfig,
    LayoutConfig,
    LogOutputConfig,
    ValidationConfig,
    WatcherConfig,
)


class TestLogOutputConfig:
    """Tests for LogOutputConfig model."""

    def test_defaults(self) -> None:
        config = LogOutputConfig()
        assert config.format == "console"
        assert config.destination == "stderr"
        assert config.level is None

    def test_relative_file_destination_rejected(self) -> None:
        with pytest.raises(ValidationError):
            LogOutputConfig(destination="logs/index.log")

    def test_absolute_file_destination_accepted(self) -> None:
        config = LogOutputConfig(destination="/var/log/laraindex.log")
        assert config.destination == "/var/log/laraindex.log"


class TestLayoutConfig:
    """Conventional Laravel directories."""

    def test_defaults_follow_laravel_layout(self) -> None:
        layout = LayoutConfig()

        assert layout.routes_dir == "routes"
        assert layout.model_dirs == ["app/Models", "app"]
        assert layout.migrations_dir == "database/migrations"
        assert layout.views_dir == "resources/views"
        assert layout.config_dir == "config"
        assert layout.env_files == [".env", ".env.example", ".env.local"]
        assert layout.excluded_dirs is None

    def test_max_file_size_must_be_positive(self) -> None:
        with pytest.raises(ValidationError):
            LayoutConfig(max_file_size_kb=0)


class TestValidationConfig:
    """Validation diagnostics settings."""

    def test_defaults(self) -> None:
        config = ValidationConfig()
        assert config.similarity_threshold == 0.6
        assert config.max_suggestions == 3
        assert config.default_table == "users"

    @pytest.mark.parametrize("threshold", [-0.1, 1.01])
    def test_threshold_out_of_range_rejected(self, threshold: float) -> None:
        with pytest.raises(ValidationError):
            ValidationConfig(similarity_threshold=threshold)


class TestLaraIndexConfig:
    """Root config model."""

    def test_all_sections_present(self) -> None:
        config = LaraIndexConfig()
        assert isinstance(config.layout, LayoutConfig)
        assert isinstance(config.watcher, WatcherConfig)
        assert config.watcher.debounce_sec < config.watcher.max_debounce_wait_sec
