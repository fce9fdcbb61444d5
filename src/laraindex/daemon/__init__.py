"""laraindex daemon - file watching and queued domain rebuilds."""

from laraindex.daemon.invalidation import InvalidationController
from laraindex.daemon.watcher import FileWatcher

__all__ = [
    "FileWatcher",
    "InvalidationController",
]
