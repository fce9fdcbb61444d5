"""Read-only access to project files.

Every extractor goes through a SourceReader so that size limits, decoding and
unreadable-file handling are uniform. Paths handed to entities are always
POSIX paths relative to the project root.
"""

from __future__ import annotations

import os
from pathlib import Path

import structlog

from laraindex.core.errors import ExtractionError
from laraindex.core.excludes import DEFAULT_PRUNABLE_DIRS, should_prune_dir

logger = structlog.get_logger()


class SourceReader:
    """Reads project files and enumerates directories with pruning."""

    def __init__(
        self,
        root: Path,
        max_file_size_kb: int = 1024,
        prunable_dirs: frozenset[str] = DEFAULT_PRUNABLE_DIRS,
    ) -> None:
        self.root = root
        self.max_bytes = max_file_size_kb * 1024
        self.prunable_dirs = prunable_dirs
        self.files_read = 0
        self.files_skipped = 0

    def reset_counters(self) -> None:
        self.files_read = 0
        self.files_skipped = 0

    def rel(self, path: Path) -> str:
        """Project-relative POSIX path (absolute path if outside the root)."""
        try:
            return path.relative_to(self.root).as_posix()
        except ValueError:
            return path.as_posix()

    def read(self, path: Path) -> str | None:
        """Return file text, or None if it cannot be read.

        Undecodable bytes are replaced rather than failing the file.
        """
        try:
            size = path.stat().st_size
            if size > self.max_bytes:
                self.files_skipped += 1
                logger.warning("file_too_large", path=self.rel(path), size=size)
                return None
            text = path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            self.files_skipped += 1
            error = ExtractionError.unreadable(self.rel(path), str(e))
            logger.warning("file_unreadable", code=error.error_name, **error.details)
            return None
        self.files_read += 1
        return text

    def list_files(
        self,
        directory: Path,
        suffix: str = ".php",
        *,
        recursive: bool = True,
    ) -> list[Path]:
        """Files under directory ending with suffix, sorted by path.

        A missing directory yields an empty list.
        """
        if not directory.is_dir():
            return []
        if not recursive:
            return sorted(p for p in directory.iterdir() if p.is_file() and p.name.endswith(suffix))

        results: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(directory):
            dirnames[:] = sorted(d for d in dirnames if not should_prune_dir(d, self.prunable_dirs))
            for filename in filenames:
                if filename.endswith(suffix):
                    results.append(Path(dirpath) / filename)
        return sorted(results)

    def subdirectories(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(p for p in directory.iterdir() if p.is_dir())
