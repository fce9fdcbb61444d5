"""Tests for core/excludes.py module."""

from __future__ import annotations

from laraindex.core.excludes import (
    DEFAULT_PRUNABLE_DIRS,
    HARDCODED_DIRS,
    PRUNABLE_DIRS,
    should_prune_dir,
)


class TestPrunableDirs:
    """Tests for the directory tiers."""

    def test_hardcoded_contains_vcs_and_own_data(self) -> None:
        assert {".git", ".svn", ".hg", ".laraindex"}.issubset(HARDCODED_DIRS)

    def test_default_tier_contains_laravel_dependency_dirs(self) -> None:
        """vendor and node_modules hold third-party code, storage holds compiled views."""
        assert {"vendor", "node_modules", "storage"}.issubset(DEFAULT_PRUNABLE_DIRS)

    def test_union(self) -> None:
        assert PRUNABLE_DIRS == HARDCODED_DIRS | DEFAULT_PRUNABLE_DIRS


class TestShouldPruneDir:
    """Tests for should_prune_dir()."""

    def test_prunes_default_dirs(self) -> None:
        assert should_prune_dir("vendor") is True

    def test_keeps_source_dirs(self) -> None:
        assert should_prune_dir("app") is False
        assert should_prune_dir("routes") is False

    def test_given_custom_tier_when_checked_then_hardcoded_still_pruned(self) -> None:
        # Given
        custom = frozenset({"legacy"})

        # When / Then
        assert should_prune_dir("legacy", custom) is True
        assert should_prune_dir(".git", custom) is True
        assert should_prune_dir("vendor", custom) is False
