"""Versioned, immutable index snapshots.

Every domain owns a fixed set of tables. A rebuild computes fresh tables off
to the side and hands them to ``IndexStore.publish``, which swaps a new
snapshot in under a lock. Readers hold on to whatever snapshot they got and
never observe a half-built domain.
"""

from __future__ import annotations

import threading
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Any

from laraindex.core.errors import InternalError
from laraindex.index.models import (
    ConfigKey,
    DatabaseTable,
    Domain,
    EnvKey,
    FormRequest,
    Model,
    Route,
    RuleUsage,
    TranslationEntry,
    TranslationUsage,
    View,
)


def _empty() -> Mapping[str, Any]:
    return MappingProxyType({})


# Which snapshot fields each domain is allowed to replace.
DOMAIN_TABLES: dict[Domain, tuple[str, ...]] = {
    Domain.SCHEMA: ("tables", "models"),
    Domain.ROUTES: ("routes_by_file", "controller_index"),
    Domain.TRANSLATIONS: ("translations", "translation_usages"),
    Domain.CONFIG: ("config_keys", "env_keys"),
    Domain.VIEWS: ("views",),
    Domain.VALIDATION: ("form_requests", "rule_usages"),
}


def _freeze(value: Any) -> Any:
    if isinstance(value, MappingProxyType):
        return value
    if isinstance(value, Mapping):
        return MappingProxyType(dict(value))
    if isinstance(value, list):
        return tuple(value)
    return value


@dataclass(frozen=True)
class IndexSnapshot:
    """One consistent view of every domain table."""

    version: int = 0
    # schema
    tables: Mapping[str, DatabaseTable] = field(default_factory=_empty)
    models: Mapping[str, Model] = field(default_factory=_empty)
    # routes
    routes_by_file: Mapping[str, tuple[Route, ...]] = field(default_factory=_empty)
    controller_index: Mapping[str, tuple[Route, ...]] = field(default_factory=_empty)
    # translations
    translations: tuple[TranslationEntry, ...] = ()
    translation_usages: tuple[TranslationUsage, ...] = ()
    # config
    config_keys: Mapping[str, ConfigKey] = field(default_factory=_empty)
    env_keys: Mapping[str, EnvKey] = field(default_factory=_empty)
    # views
    views: Mapping[str, View] = field(default_factory=_empty)
    # validation
    form_requests: Mapping[str, FormRequest] = field(default_factory=_empty)
    rule_usages: tuple[RuleUsage, ...] = ()

    @property
    def routes(self) -> list[Route]:
        return [route for routes in self.routes_by_file.values() for route in routes]

    def counts(self) -> dict[str, int]:
        return {
            "tables": len(self.tables),
            "models": len(self.models),
            "routes": sum(len(r) for r in self.routes_by_file.values()),
            "translations": len(self.translations),
            "translation_usages": len(self.translation_usages),
            "config_keys": len(self.config_keys),
            "env_keys": len(self.env_keys),
            "views": len(self.views),
            "form_requests": len(self.form_requests),
            "rule_usages": len(self.rule_usages),
        }


@dataclass
class IndexStore:
    """Holds the current snapshot; publishing replaces it atomically.

    The lock only guards the reference swap, so readers never wait on a rebuild.
    """

    _snapshot: IndexSnapshot = field(default_factory=IndexSnapshot)
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    def publish(self, domain: Domain, **tables: Any) -> IndexSnapshot:
        """Replace the given domain's tables and bump the version."""
        allowed = DOMAIN_TABLES[domain]
        unexpected = set(tables) - set(allowed)
        if unexpected:
            raise InternalError.unexpected(
                f"domain {domain.value} cannot publish {sorted(unexpected)}",
                domain=domain.value,
            )
        frozen = {name: _freeze(value) for name, value in tables.items()}
        with self._lock:
            self._snapshot = replace(self._snapshot, version=self._snapshot.version + 1, **frozen)
            return self._snapshot
