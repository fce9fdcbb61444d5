"""File watcher using watchfiles for async filesystem monitoring.

Design:
- awatch watches the project root recursively
- a watch filter drops VCS, dependency and cache directories before events
  reach Python-side batching
- a sliding-window debounce batches rapid saves into one callback
"""

from __future__ import annotations

import asyncio
import contextlib
import time
from collections import Counter
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path

import structlog
from watchfiles import Change, awatch

from laraindex.config.constants import BLADE_SUFFIX
from laraindex.core.excludes import DEFAULT_PRUNABLE_DIRS, should_prune_dir

logger = structlog.get_logger()

# Debouncing configuration
DEBOUNCE_WINDOW_SEC = 0.5  # Sliding window for batching rapid changes
MAX_DEBOUNCE_WAIT_SEC = 2.0  # Maximum wait before forcing flush


def _kind(path: Path) -> str:
    name = path.name
    if name.endswith(BLADE_SUFFIX):
        return "Blade"
    if name == ".env" or name.startswith(".env."):
        return "env"
    return {".php": "PHP", ".json": "JSON"}.get(path.suffix.lower(), "other")


def _summarize_changes_by_type(paths: list[Path]) -> str:
    """Summarize file changes by kind: "2 PHP files, 1 Blade file"."""
    counts: Counter[str] = Counter(_kind(p) for p in paths)
    parts: list[str] = []
    for kind, count in counts.most_common():
        word = "file" if count == 1 else "files"
        parts.append(f"{count} {kind} {word}")
    return ", ".join(parts)


@dataclass
class FileWatcher:
    """
    Async file watcher with sliding-window debouncing.

    Changes are buffered until ``debounce_window`` of quiet time, or at most
    ``max_debounce_wait`` after the first buffered change, then handed to
    ``on_change`` as project-relative paths.
    """

    project_root: Path
    on_change: Callable[[list[Path]], None]
    debounce_window: float = DEBOUNCE_WINDOW_SEC
    max_debounce_wait: float = MAX_DEBOUNCE_WAIT_SEC
    prunable_dirs: frozenset[str] = DEFAULT_PRUNABLE_DIRS

    _watch_task: asyncio.Task[None] | None = field(default=None, init=False)
    _stop_event: asyncio.Event = field(default_factory=asyncio.Event, init=False)
    # Debouncing state
    _pending_changes: set[Path] = field(default_factory=set, init=False)
    _last_change_time: float = field(default=0.0, init=False)
    _first_change_time: float = field(default=0.0, init=False)
    _debounce_task: asyncio.Task[None] | None = field(default=None, init=False)

    async def start(self) -> None:
        """Start watching for file changes."""
        if self._watch_task is not None:
            return

        self._stop_event.clear()
        self._watch_task = asyncio.create_task(self._watch_loop())
        logger.info(
            "file_watcher_started",
            project_root=str(self.project_root),
            debounce_window=self.debounce_window,
        )

    async def stop(self) -> None:
        """Stop watching for file changes."""
        self._stop_event.set()

        if self._debounce_task is not None and not self._debounce_task.done():
            self._debounce_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._debounce_task
            self._debounce_task = None

        # Flush any pending changes before stopping
        if self._pending_changes:
            self._flush_pending()

        if self._watch_task is not None:
            self._watch_task.cancel()
            with contextlib.suppress(asyncio.CancelledError, asyncio.TimeoutError):
                await asyncio.wait_for(self._watch_task, timeout=2.0)
            self._watch_task = None

        logger.info("file_watcher_stopped")

    def _watch_filter(self, _change: Change, path: str) -> bool:
        try:
            rel_path = Path(path).relative_to(self.project_root)
        except ValueError:
            return False
        return not any(should_prune_dir(part, self.prunable_dirs) for part in rel_path.parts[:-1])

    def _queue_change(self, path: Path) -> None:
        """Queue a change for debounced delivery."""
        now = time.monotonic()

        if not self._pending_changes:
            self._first_change_time = now

        self._pending_changes.add(path)
        self._last_change_time = now

    def _should_flush(self) -> bool:
        if not self._pending_changes:
            return False

        now = time.monotonic()
        time_since_last = now - self._last_change_time
        time_since_first = now - self._first_change_time

        # Flush if quiet window elapsed OR max wait exceeded
        return time_since_last >= self.debounce_window or time_since_first >= self.max_debounce_wait

    def _flush_pending(self) -> None:
        """Flush pending changes to callback."""
        if not self._pending_changes:
            return

        paths = sorted(self._pending_changes)
        self._pending_changes.clear()
        self._first_change_time = 0.0
        self._last_change_time = 0.0

        logger.info("changes_detected", count=len(paths), summary=_summarize_changes_by_type(paths))
        self.on_change(paths)

    async def _debounce_flush_loop(self) -> None:
        """Background task that flushes when debounce window elapses."""
        try:
            while not self._stop_event.is_set():
                await asyncio.sleep(0.1)

                if self._should_flush():
                    self._flush_pending()
        except asyncio.CancelledError:
            pass

    def _handle_changes(self, changes: set[tuple[Change, str]]) -> None:
        for change_type, path_str in changes:
            path = Path(path_str)
            try:
                rel_path = path.relative_to(self.project_root)
            except ValueError:
                continue
            # Directories themselves don't get queued as file changes
            if change_type != Change.deleted and path.is_dir():
                continue
            self._queue_change(rel_path)
            logger.debug("path_queued", path=rel_path.as_posix(), change_type=change_type.name)

    async def _watch_loop(self) -> None:
        self._debounce_task = asyncio.create_task(self._debounce_flush_loop())
        try:
            while not self._stop_event.is_set():
                try:
                    async for changes in awatch(
                        self.project_root,
                        watch_filter=self._watch_filter,
                        step=100,
                        rust_timeout=10_000,
                        stop_event=self._stop_event,
                        ignore_permission_denied=True,
                    ):
                        self._handle_changes(changes)
                except asyncio.CancelledError:
                    raise
                except Exception as e:
                    if self._stop_event.is_set():
                        return
                    logger.error("watcher_error", error=str(e))
                    # Brief backoff before retry
                    await asyncio.sleep(1.0)
        except asyncio.CancelledError:
            pass
        finally:
            if self._debounce_task:
                self._debounce_task.cancel()
