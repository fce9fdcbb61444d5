"""Change-event queue driving domain rebuilds.

File changes are messages on an asyncio queue. A single consumer maps each
batch of paths to the affected domains and rebuilds them one at a time, in
canonical order, synchronously. Nothing else rebuilds while it runs, so
rebuilds never interleave.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

import structlog

from laraindex.index.models import RebuildStats
from laraindex.index.ops import IndexCoordinator

logger = structlog.get_logger()


class InvalidationState(Enum):
    IDLE = "idle"
    REBUILDING = "rebuilding"
    STOPPED = "stopped"


@dataclass
class InvalidationStatus:
    state: InvalidationState
    queue_size: int
    rebuilds: int
    last_stats: list[RebuildStats] = field(default_factory=list)


@dataclass
class InvalidationController:
    """
    Single consumer of file-change events.

    Usage::

        controller = InvalidationController(coordinator)
        watcher = FileWatcher(root, on_change=controller.submit)
        task = asyncio.create_task(controller.run())
        ...
        controller.stop()
        await task
    """

    coordinator: IndexCoordinator
    on_rebuilt: Callable[[list[RebuildStats]], None] | None = None

    _queue: asyncio.Queue[list[Path] | None] = field(default_factory=asyncio.Queue, init=False)
    _state: InvalidationState = field(default=InvalidationState.IDLE, init=False)
    _rebuilds: int = field(default=0, init=False)
    _last_stats: list[RebuildStats] = field(default_factory=list, init=False)

    def submit(self, paths: Iterable[Path | str]) -> None:
        """Enqueue changed paths. Safe to call from watcher callbacks."""
        batch = [Path(p) for p in paths]
        if batch:
            self._queue.put_nowait(batch)
            logger.debug("changes_submitted", count=len(batch), queue_size=self._queue.qsize())

    def stop(self) -> None:
        """Ask run() to return after the batches already queued."""
        self._queue.put_nowait(None)

    async def run(self) -> None:
        """Consume change batches until stop() is called."""
        logger.info("invalidation_loop_started")
        try:
            while True:
                batch = await self._queue.get()
                if batch is None:
                    break
                paths, stopping = self._coalesce(batch)
                self._dispatch(paths)
                if stopping:
                    break
        finally:
            self._state = InvalidationState.STOPPED
            logger.info("invalidation_loop_stopped", rebuilds=self._rebuilds)

    async def process_pending(self) -> list[RebuildStats]:
        """Drain whatever is queued right now and rebuild once for all of it."""
        if self._queue.empty():
            return []
        first = self._queue.get_nowait()
        if first is None:
            return []
        paths, stopping = self._coalesce(first)
        if stopping:
            self._queue.put_nowait(None)
        return self._dispatch(paths)

    def _coalesce(self, first: list[Path]) -> tuple[list[Path], bool]:
        """Merge every batch already waiting behind first. True if a stop was seen."""
        paths = dict.fromkeys(first)
        stopping = False
        while not self._queue.empty():
            batch = self._queue.get_nowait()
            if batch is None:
                stopping = True
                break
            paths.update(dict.fromkeys(batch))
        return list(paths), stopping

    def _dispatch(self, paths: list[Path]) -> list[RebuildStats]:
        domains = self.coordinator.domains_for_paths(paths)
        if not domains:
            logger.debug("changes_ignored", count=len(paths))
            return []

        logger.info("invalidating_domains", domains=[d.value for d in domains], paths=len(paths))
        self._state = InvalidationState.REBUILDING
        try:
            results = [self.coordinator.rebuild(domain) for domain in domains]
        finally:
            self._state = InvalidationState.IDLE
        self._rebuilds += len(results)
        self._last_stats = results
        if self.on_rebuilt is not None:
            self.on_rebuilt(results)
        return results

    @property
    def status(self) -> InvalidationStatus:
        return InvalidationStatus(
            state=self._state,
            queue_size=self._queue.qsize(),
            rebuilds=self._rebuilds,
            last_stats=list(self._last_stats),
        )
