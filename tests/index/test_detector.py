"""Tests for Laravel project detection."""

from __future__ import annotations

import json
from pathlib import Path

from laraindex.index.detector import (
    FEATURE_DIRS,
    detect_features,
    detect_laravel_project,
    is_laravel_project,
    laravel_version,
)


def _composer(root: Path, require: dict[str, str]) -> None:
    (root / "composer.json").write_text(json.dumps({"require": require}))


class TestIsLaravelProject:
    def test_full_project(self, laravel_project: Path) -> None:
        assert is_laravel_project(laravel_project) is True

    def test_artisan_required(self, tmp_path: Path) -> None:
        _composer(tmp_path, {"laravel/framework": "^11.0"})

        assert is_laravel_project(tmp_path) is False

    def test_conventional_dirs_without_framework_requirement(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("")
        _composer(tmp_path, {"php": "^8.2"})
        for name in ("app", "config", "routes"):
            (tmp_path / name).mkdir()

        assert is_laravel_project(tmp_path) is True

    def test_too_few_conventional_dirs(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("")
        _composer(tmp_path, {"php": "^8.2"})
        (tmp_path / "app").mkdir()

        assert is_laravel_project(tmp_path) is False

    def test_broken_composer_json(self, tmp_path: Path) -> None:
        (tmp_path / "artisan").write_text("")
        (tmp_path / "composer.json").write_text("{not json")

        assert is_laravel_project(tmp_path) is False


class TestDetect:
    def test_version_constraint(self, laravel_project: Path) -> None:
        assert laravel_version(laravel_project) == "^10.10"

    def test_version_absent(self, tmp_path: Path) -> None:
        _composer(tmp_path, {"php": "^8.2"})

        assert laravel_version(tmp_path) is None

    def test_features(self, tmp_path: Path) -> None:
        (tmp_path / "resources" / "views").mkdir(parents=True)
        (tmp_path / "resources" / "lang").mkdir()

        features = detect_features(tmp_path)

        assert features["views"] is True
        assert features["translations"] is True
        assert features["migrations"] is False

    def test_detect_laravel_project(self, laravel_project: Path) -> None:
        info = detect_laravel_project(laravel_project)

        assert info.is_laravel is True
        assert info.version == "^10.10"
        assert all(info.features.values())

    def test_not_laravel(self, tmp_path: Path) -> None:
        info = detect_laravel_project(tmp_path)

        assert info.is_laravel is False
        assert info.version is None
        assert set(info.features) == set(FEATURE_DIRS)
        assert not any(info.features.values())
