"""Laravel project detection."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

logger = structlog.get_logger()

_FRAMEWORK_PACKAGES = ("laravel/framework", "laravel/laravel")
_CONVENTIONAL_DIRS = ("app", "config", "database", "routes")
_MIN_CONVENTIONAL_DIRS = 3

FEATURE_DIRS: dict[str, tuple[str, ...]] = {
    "models": ("app/Models", "app"),
    "controllers": ("app/Http/Controllers",),
    "migrations": ("database/migrations",),
    "views": ("resources/views",),
    "routes": ("routes",),
    "translations": ("lang", "resources/lang"),
    "requests": ("app/Http/Requests",),
}


@dataclass(frozen=True)
class ProjectInfo:
    root: Path
    is_laravel: bool
    version: str | None = None
    features: dict[str, bool] = field(default_factory=dict)


def _read_composer(root: Path) -> dict[str, Any] | None:
    path = root / "composer.json"
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, json.JSONDecodeError) as e:
        logger.warning("composer_json_unreadable", path=str(path), error=str(e))
        return None
    return data if isinstance(data, dict) else None


def is_laravel_project(root: Path) -> bool:
    """An artisan script plus composer.json requiring the framework.

    Without the framework requirement, three of the four conventional
    top-level directories are enough.
    """
    if not (root / "artisan").exists():
        return False
    composer = _read_composer(root)
    if composer is None:
        return False
    require = composer.get("require") or {}
    if any(package in require for package in _FRAMEWORK_PACKAGES):
        return True
    present = [d for d in _CONVENTIONAL_DIRS if (root / d).exists()]
    return len(present) >= _MIN_CONVENTIONAL_DIRS


def laravel_version(root: Path) -> str | None:
    """Version constraint of laravel/framework as declared in composer.json."""
    composer = _read_composer(root)
    if composer is None:
        return None
    version = (composer.get("require") or {}).get("laravel/framework")
    return version if isinstance(version, str) else None


def detect_features(root: Path) -> dict[str, bool]:
    return {name: any((root / d).exists() for d in dirs) for name, dirs in FEATURE_DIRS.items()}


def detect_laravel_project(root: Path) -> ProjectInfo:
    if not is_laravel_project(root):
        return ProjectInfo(root=root, is_laravel=False, features=dict.fromkeys(FEATURE_DIRS, False))
    return ProjectInfo(
        root=root,
        is_laravel=True,
        version=laravel_version(root),
        features=detect_features(root),
    )
