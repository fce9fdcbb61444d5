"""Configuration constants.

This module contains truly constant values that should NOT be user-configurable.
These are Laravel conventions and implementation details.

For configurable values, see models.py (LayoutConfig, WatcherConfig, etc.).
"""

# =============================================================================
# Files
# =============================================================================

PROJECT_CONFIG_NAME = ".laraindex.yaml"
"""Per-project config file, read from the project root."""

BLADE_SUFFIX = ".blade.php"
"""Template files carry this dual extension."""

VENDOR_LOCALE_DIR = "vendor"
"""Package translation overrides live here; not a locale."""

# =============================================================================
# Naming Conventions
# =============================================================================

CONTROLLER_SUFFIX = "Controller"
"""Conventional controller class-name suffix used for binding keys."""

RESOURCE_METHODS: tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")
"""Method set of a resource/apiResource route."""

ALL_HTTP_METHODS: tuple[str, ...] = ("GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS")
"""Method set of Route::any()."""

# =============================================================================
# Heuristics
# =============================================================================

ROUTE_NAME_WINDOW_LINES = 2
"""A ->name() call attaches to the last route declared at most this many lines above."""

TABLE_SUGGESTION_FALLBACK_COUNT = 5
"""Known tables offered when no table is similar to an unknown one."""
