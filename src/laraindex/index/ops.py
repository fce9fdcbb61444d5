"""High-level orchestration of the convention index.

This module implements the IndexCoordinator - the entry point for building
and rebuilding the index. It enforces two invariants:

- rebuilds never interleave: one domain is rebuilt at a time, to completion
- a domain is published whole or not at all: a failed rebuild leaves the
  previously published tables in place

Each domain owns one extractor pipeline:
schema -> routes -> translations -> config -> views -> validation
"""

from __future__ import annotations

import fnmatch
import threading
import time
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

import structlog

from laraindex.config.models import LaraIndexConfig, LayoutConfig
from laraindex.core.errors import ExtractionError
from laraindex.core.excludes import DEFAULT_PRUNABLE_DIRS, should_prune_dir
from laraindex.core.logging import clear_rebuild_id, set_rebuild_id
from laraindex.index._internal.extraction.config_keys import (
    collect_config_keys,
    collect_env_keys,
    discover_env_files,
)
from laraindex.index._internal.extraction.routes import build_controller_index, collect_routes
from laraindex.index._internal.extraction.schema import collect_models, collect_tables
from laraindex.index._internal.extraction.translations import collect_catalog, collect_usages, mark_used
from laraindex.index._internal.extraction.validation_usage import collect_validation
from laraindex.index._internal.extraction.views import collect_views
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import Domain, RebuildStats
from laraindex.index.store import IndexSnapshot, IndexStore

logger = structlog.get_logger()

_BuildResult = tuple[dict[str, Any], int]


def _matches_glob(rel_path: str, pattern: str) -> bool:
    """Check if a path matches a glob pattern, with ** support.

    Without ``**`` a pattern only matches at its own depth.
    """
    if "**" not in pattern:
        return rel_path.count("/") == pattern.count("/") and fnmatch.fnmatch(rel_path, pattern)
    if fnmatch.fnmatch(rel_path, pattern):
        return True
    if pattern.startswith("**/") and fnmatch.fnmatch(rel_path, pattern[3:]):
        return True
    return "/**/" in pattern and fnmatch.fnmatch(rel_path, pattern.replace("/**/", "/"))


def domain_globs(layout: LayoutConfig) -> dict[Domain, tuple[str, ...]]:
    """Watched globs per domain, relative to the project root."""
    schema = [f"{layout.migrations_dir}/**/*.php"]
    for index, directory in enumerate(layout.model_dirs):
        schema.append(f"{directory}/**/*.php" if index == 0 else f"{directory}/*.php")
    translations = [f"{d}/**" for d in layout.lang_dirs] + ["**/*.php"]
    config = [f"{layout.config_dir}/*.php", *layout.env_files, ".env.*"]
    return {
        Domain.SCHEMA: tuple(schema),
        Domain.ROUTES: (f"{layout.routes_dir}/**/*.php",),
        Domain.TRANSLATIONS: tuple(translations),
        Domain.CONFIG: tuple(dict.fromkeys(config)),
        Domain.VIEWS: (f"{layout.views_dir}/**/*.blade.php",),
        Domain.VALIDATION: (f"{layout.http_dir}/**/*.php",),
    }


def parse_domain(value: Domain | str) -> Domain:
    if isinstance(value, Domain):
        return value
    try:
        return Domain(value)
    except ValueError:
        raise ExtractionError.unknown_domain(value) from None


class IndexCoordinator:
    """
    Owns configuration, reader and store for one Laravel project.

    Usage::

        coordinator = IndexCoordinator(project_root, load_config(project_root))
        coordinator.initialize()

        # Queries read the published snapshot
        snapshot = coordinator.snapshot

        # Rebuild whatever a change touched
        coordinator.rebuild_for_paths([Path("routes/web.php")])
    """

    def __init__(
        self,
        project_root: Path,
        config: LaraIndexConfig | None = None,
        *,
        store: IndexStore | None = None,
    ) -> None:
        self.project_root = project_root
        self.config = config or LaraIndexConfig()
        layout = self.config.layout
        prunable = DEFAULT_PRUNABLE_DIRS if layout.excluded_dirs is None else frozenset(layout.excluded_dirs)
        self.reader = SourceReader(project_root, layout.max_file_size_kb, prunable)
        self.store = store or IndexStore()
        self.globs = domain_globs(layout)

        self._rebuild_lock = threading.Lock()
        self._builders: dict[Domain, Callable[[], _BuildResult]] = {
            Domain.SCHEMA: self._build_schema,
            Domain.ROUTES: self._build_routes,
            Domain.TRANSLATIONS: self._build_translations,
            Domain.CONFIG: self._build_config,
            Domain.VIEWS: self._build_views,
            Domain.VALIDATION: self._build_validation,
        }
        self._initialized = False

    @property
    def snapshot(self) -> IndexSnapshot:
        return self.store.snapshot

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> list[RebuildStats]:
        """Build every domain in canonical order."""
        start = time.perf_counter()
        results = [self.rebuild(domain) for domain in Domain.rebuild_order()]
        self._initialized = True
        logger.info(
            "index_initialized",
            root=str(self.project_root),
            version=self.store.version,
            failed=[s.domain.value for s in results if not s.ok],
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return results

    def rebuild(self, domain: Domain | str) -> RebuildStats:
        """Re-extract one domain in full and publish it."""
        domain = parse_domain(domain)
        with self._rebuild_lock:
            set_rebuild_id()
            self.reader.reset_counters()
            stats = RebuildStats(domain=domain)
            start = time.perf_counter()
            try:
                tables, stats.entity_count = self._builders[domain]()
                self.store.publish(domain, **tables)
            except Exception as e:
                # Previously published tables stay in place
                stats.errors.append(str(e))
                logger.exception("domain_rebuild_failed", domain=domain.value, error=str(e))
            finally:
                stats.files_scanned = self.reader.files_read
                stats.files_skipped = self.reader.files_skipped
                stats.duration_ms = round((time.perf_counter() - start) * 1000, 1)
            if stats.ok:
                logger.info(
                    "domain_rebuilt",
                    domain=domain.value,
                    entities=stats.entity_count,
                    files_scanned=stats.files_scanned,
                    files_skipped=stats.files_skipped,
                    duration_ms=stats.duration_ms,
                    version=self.store.version,
                )
            clear_rebuild_id()
            return stats

    def domains_for_path(self, path: Path | str) -> list[Domain]:
        """Domains whose globs match a changed path, in rebuild order."""
        rel = self._relative(path)
        if rel is None or any(should_prune_dir(part, self.reader.prunable_dirs) for part in rel.split("/")[:-1]):
            return []
        return [
            domain
            for domain in Domain.rebuild_order()
            if any(_matches_glob(rel, pattern) for pattern in self.globs[domain])
        ]

    def domains_for_paths(self, paths: Iterable[Path | str]) -> list[Domain]:
        affected: set[Domain] = set()
        for path in paths:
            affected.update(self.domains_for_path(path))
        return [d for d in Domain.rebuild_order() if d in affected]

    def rebuild_for_paths(self, paths: Iterable[Path | str]) -> list[RebuildStats]:
        return [self.rebuild(domain) for domain in self.domains_for_paths(paths)]

    def _relative(self, path: Path | str) -> str | None:
        candidate = Path(path)
        if not candidate.is_absolute():
            return candidate.as_posix()
        try:
            return candidate.relative_to(self.project_root).as_posix()
        except ValueError:
            return None

    def _path(self, rel: str) -> Path:
        return self.project_root / rel

    # =========================================================================
    # Domain builders
    # =========================================================================

    def _build_schema(self) -> _BuildResult:
        layout = self.config.layout
        tables = collect_tables(self.reader, self._path(layout.migrations_dir))
        models = collect_models(self.reader, [self._path(d) for d in layout.model_dirs], tables)
        return {"tables": tables, "models": models}, len(tables) + len(models)

    def _build_routes(self) -> _BuildResult:
        routes_by_file = collect_routes(self.reader, self._path(self.config.layout.routes_dir))
        count = sum(len(routes) for routes in routes_by_file.values())
        return {
            "routes_by_file": routes_by_file,
            "controller_index": build_controller_index(routes_by_file),
        }, count

    def _build_translations(self) -> _BuildResult:
        entries = collect_catalog(self.reader, [self._path(d) for d in self.config.layout.lang_dirs])
        usages = collect_usages(self.reader, self.project_root)
        return {"translations": mark_used(entries, usages), "translation_usages": usages}, len(entries)

    def _build_config(self) -> _BuildResult:
        layout = self.config.layout
        config_keys = collect_config_keys(self.reader, self._path(layout.config_dir))
        env_keys = collect_env_keys(self.reader, discover_env_files(self.project_root, layout.env_files))
        return {"config_keys": config_keys, "env_keys": env_keys}, len(config_keys) + len(env_keys)

    def _build_views(self) -> _BuildResult:
        views = collect_views(self.reader, self._path(self.config.layout.views_dir))
        return {"views": views}, len(views)

    def _build_validation(self) -> _BuildResult:
        form_requests, usages = collect_validation(self.reader, self._path(self.config.layout.http_dir))
        return {"form_requests": form_requests, "rule_usages": usages}, len(usages)
