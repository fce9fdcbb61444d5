"""Tests for the debounced project file watcher.

Tests cover:
- _summarize_changes_by_type() log summaries
- FileWatcher debouncing state
- watch filter pruning of dependency and VCS directories
- translation of raw watchfiles events into project-relative paths
"""

from __future__ import annotations

import asyncio
import time
from collections.abc import Generator
from pathlib import Path

import pytest
from watchfiles import Change

from laraindex.daemon.watcher import (
    DEBOUNCE_WINDOW_SEC,
    MAX_DEBOUNCE_WAIT_SEC,
    FileWatcher,
    _summarize_changes_by_type,
)


class TestSummarizeChangesByType:
    """Tests for _summarize_changes_by_type function."""

    def test_single_php_file(self) -> None:
        """Single file uses singular form."""
        assert _summarize_changes_by_type([Path("app/Models/User.php")]) == "1 PHP file"

    def test_mixed_file_kinds(self) -> None:
        """Blade templates are counted apart from plain PHP."""
        paths = [
            Path("routes/web.php"),
            Path("routes/api.php"),
            Path("resources/views/welcome.blade.php"),
        ]
        assert _summarize_changes_by_type(paths) == "2 PHP files, 1 Blade file"

    def test_env_json_and_other(self) -> None:
        """Env files, JSON catalogs and anything else."""
        summary = _summarize_changes_by_type([Path(".env"), Path(".env.local"), Path("lang/fr.json"), Path("README.md")])

        assert "2 env files" in summary
        assert "1 JSON file" in summary
        assert "1 other file" in summary

    def test_empty_list(self) -> None:
        """Empty list returns empty summary."""
        assert _summarize_changes_by_type([]) == ""


class TestFileWatcherDebouncing:
    """Tests for FileWatcher debouncing behavior."""

    @pytest.fixture
    def received(self) -> list[list[Path]]:
        return []

    @pytest.fixture
    def watcher(self, tmp_path: Path, received: list[list[Path]]) -> Generator[FileWatcher, None, None]:
        """Create a FileWatcher for testing."""
        watcher = FileWatcher(
            project_root=tmp_path,
            on_change=received.append,
            debounce_window=0.1,
            max_debounce_wait=0.5,
        )
        yield watcher

    def test_constants(self) -> None:
        """Max wait always exceeds the sliding window."""
        assert 0 < DEBOUNCE_WINDOW_SEC < MAX_DEBOUNCE_WAIT_SEC < 10.0

    def test_queue_change_adds_to_pending(self, watcher: FileWatcher) -> None:
        """_queue_change adds path to pending set."""
        path = Path("routes/web.php")
        watcher._queue_change(path)
        assert path in watcher._pending_changes

    def test_first_change_time_kept_while_batching(self, watcher: FileWatcher) -> None:
        """Later changes slide the window but keep the batch start."""
        watcher._queue_change(Path("a.php"))
        first = watcher._first_change_time
        watcher._queue_change(Path("b.php"))

        assert watcher._first_change_time == first
        assert watcher._last_change_time >= first

    def test_should_flush_after_window(self, watcher: FileWatcher) -> None:
        """_should_flush returns True after debounce window."""
        watcher._queue_change(Path("a.php"))
        watcher._last_change_time = time.monotonic() - watcher.debounce_window - 0.01
        assert watcher._should_flush() is True

    def test_should_not_flush_during_window(self, watcher: FileWatcher) -> None:
        """_should_flush returns False during debounce window."""
        watcher._queue_change(Path("a.php"))
        assert watcher._should_flush() is False

    def test_should_flush_after_max_wait(self, watcher: FileWatcher) -> None:
        """Continuous changes still flush once max wait is exceeded."""
        watcher._queue_change(Path("a.php"))
        watcher._first_change_time = time.monotonic() - watcher.max_debounce_wait - 0.01
        assert watcher._should_flush() is True

    def test_nothing_pending_never_flushes(self, watcher: FileWatcher) -> None:
        assert watcher._should_flush() is False

    def test_flush_pending_delivers_sorted_batch(self, watcher: FileWatcher, received: list[list[Path]]) -> None:
        """_flush_pending hands one sorted batch to the callback and clears state."""
        watcher._queue_change(Path("routes/web.php"))
        watcher._queue_change(Path(".env"))
        watcher._queue_change(Path("routes/web.php"))

        watcher._flush_pending()

        assert received == [[Path(".env"), Path("routes/web.php")]]
        assert len(watcher._pending_changes) == 0
        assert watcher._first_change_time == 0.0
        assert watcher._last_change_time == 0.0

    def test_flush_with_nothing_pending_is_noop(self, watcher: FileWatcher, received: list[list[Path]]) -> None:
        watcher._flush_pending()
        assert received == []


class TestWatchFilter:
    """Tests for directory pruning before events are batched."""

    @pytest.fixture
    def watcher(self, tmp_path: Path) -> FileWatcher:
        return FileWatcher(project_root=tmp_path, on_change=lambda _: None)

    @pytest.mark.parametrize(
        ("rel", "expected"),
        [
            ("routes/web.php", True),
            ("resources/views/welcome.blade.php", True),
            (".env", True),
            ("vendor/laravel/framework/src/helpers.php", False),
            ("node_modules/pkg/index.js", False),
            ("storage/framework/views/abc.php", False),
            (".git/HEAD", False),
            ("app/.laraindex/cache", False),
        ],
    )
    def test_pruned_directories(self, watcher: FileWatcher, tmp_path: Path, rel: str, expected: bool) -> None:
        assert watcher._watch_filter(Change.modified, str(tmp_path / rel)) is expected

    def test_outside_project_rejected(self, watcher: FileWatcher, tmp_path: Path) -> None:
        assert watcher._watch_filter(Change.added, str(tmp_path.parent / "other.php")) is False

    def test_custom_prunable_dirs(self, tmp_path: Path) -> None:
        watcher = FileWatcher(project_root=tmp_path, on_change=lambda _: None, prunable_dirs=frozenset({"legacy"}))

        assert watcher._watch_filter(Change.modified, str(tmp_path / "legacy" / "old.php")) is False
        assert watcher._watch_filter(Change.modified, str(tmp_path / "vendor" / "x.php")) is True
        # VCS internals stay excluded whatever the configured list says
        assert watcher._watch_filter(Change.modified, str(tmp_path / ".git" / "index")) is False


class TestHandleChanges:
    """Raw watchfiles events to queued relative paths."""

    def test_relative_paths_queued(self, tmp_path: Path) -> None:
        # Given
        watcher = FileWatcher(project_root=tmp_path, on_change=lambda _: None)
        (tmp_path / "routes").mkdir()
        (tmp_path / "routes" / "web.php").write_text("<?php\n")

        # When
        watcher._handle_changes(
            {
                (Change.modified, str(tmp_path / "routes" / "web.php")),
                (Change.deleted, str(tmp_path / "lang" / "fr" / "messages.php")),
                (Change.added, str(tmp_path.parent / "elsewhere.php")),
            }
        )

        # Then
        assert watcher._pending_changes == {Path("routes/web.php"), Path("lang/fr/messages.php")}

    def test_directories_skipped_unless_deleted(self, tmp_path: Path) -> None:
        watcher = FileWatcher(project_root=tmp_path, on_change=lambda _: None)
        (tmp_path / "app").mkdir()

        watcher._handle_changes({(Change.added, str(tmp_path / "app"))})
        assert watcher._pending_changes == set()

        watcher._handle_changes({(Change.deleted, str(tmp_path / "old"))})
        assert watcher._pending_changes == {Path("old")}


class TestFileWatcherLifecycle:
    """Start and stop with the real watchfiles backend."""

    @pytest.mark.asyncio
    async def test_stop_cancels_tasks(self, tmp_path: Path) -> None:
        """stop() cancels all background tasks."""
        watcher = FileWatcher(
            project_root=tmp_path,
            on_change=lambda _: None,
            debounce_window=0.05,
            max_debounce_wait=0.2,
        )

        await watcher.start()
        await asyncio.sleep(0.1)
        await watcher.stop()

        assert watcher._watch_task is None
        assert watcher._debounce_task is None

    @pytest.mark.asyncio
    async def test_stop_flushes_pending(self, tmp_path: Path) -> None:
        """Changes still buffered at stop time are delivered."""
        received: list[list[Path]] = []
        watcher = FileWatcher(project_root=tmp_path, on_change=received.append, debounce_window=10.0)

        await watcher.start()
        watcher._queue_change(Path("routes/web.php"))
        await watcher.stop()

        assert received == [[Path("routes/web.php")]]

    @pytest.mark.asyncio
    async def test_start_twice_is_noop(self, tmp_path: Path) -> None:
        watcher = FileWatcher(project_root=tmp_path, on_change=lambda _: None)

        await watcher.start()
        task = watcher._watch_task
        await watcher.start()
        try:
            assert watcher._watch_task is task
        finally:
            await watcher.stop()
