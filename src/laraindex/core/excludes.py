"""Directories that are never walked while scanning a project.

Tier 0 (HARDCODED_DIRS): VCS internals and our own data. Never traversed.

Tier 1 (DEFAULT_PRUNABLE_DIRS): dependency trees, caches and build output of a
typical Laravel project. Excluded by default; the ``layout.excluded_dirs``
setting replaces this tier.
"""

from __future__ import annotations

HARDCODED_DIRS: frozenset[str] = frozenset(
    (
        ".git",
        ".svn",
        ".hg",
        ".bzr",
        ".laraindex",
    )
)

DEFAULT_PRUNABLE_DIRS: frozenset[str] = frozenset(
    (
        # Composer / PHP
        "vendor",
        # Laravel runtime output (compiled views, cache, logs)
        "storage",
        "bootstrap",
        # JavaScript/Node.js
        "node_modules",
        ".npm",
        ".yarn",
        "bower_components",
        # Frontend build output
        "public",
        "dist",
        "build",
        # Tooling caches
        ".idea",
        ".vscode",
        ".phpunit.cache",
        ".php-cs-fixer.cache",
        "coverage",
    )
)

PRUNABLE_DIRS: frozenset[str] = HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


def should_prune_dir(name: str, prunable: frozenset[str] = DEFAULT_PRUNABLE_DIRS) -> bool:
    """Return True if a directory with this name must not be traversed."""
    return name in HARDCODED_DIRS or name in prunable
