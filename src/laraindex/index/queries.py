"""Read-only queries over an IndexSnapshot.

Every function takes the snapshot explicitly and never mutates it, so a
caller holding an older snapshot keeps getting answers about that version.
"""

from __future__ import annotations

from dataclasses import dataclass

from laraindex.index._internal.extraction.routes import lookup_keys
from laraindex.index._internal.extraction.translations import scan_usages
from laraindex.index.models import (
    ConfigKey,
    DatabaseTable,
    Diagnostic,
    EnvKey,
    FormRequest,
    Model,
    Route,
    RuleUsage,
    Severity,
    TranslationEntry,
    TranslationUsage,
    View,
)
from laraindex.index.store import IndexSnapshot
from laraindex.validation.registry import RuleRegistry

# =============================================================================
# Routes
# =============================================================================


def routes_in_file(snapshot: IndexSnapshot, file: str) -> tuple[Route, ...]:
    return snapshot.routes_by_file.get(file, ())


def routes_for_controller(snapshot: IndexSnapshot, controller: str, method: str) -> list[Route]:
    """Routes bound to controller@method, trying the naming variants in turn."""
    for key in lookup_keys(controller, method):
        routes = snapshot.controller_index.get(key)
        if routes:
            return list(routes)
    return []


def route_by_name(snapshot: IndexSnapshot, name: str) -> Route | None:
    for route in snapshot.routes:
        if route.name == name:
            return route
    return None


def route_names(snapshot: IndexSnapshot) -> list[str]:
    return sorted({route.name for route in snapshot.routes if route.name})


def search_routes(snapshot: IndexSnapshot, prefix: str) -> list[Route]:
    """Routes whose name or URI starts with prefix."""
    uri_prefix = prefix.lstrip("/")
    return [
        route
        for route in snapshot.routes
        if (route.name and route.name.startswith(prefix)) or route.uri.lstrip("/").startswith(uri_prefix)
    ]


# =============================================================================
# Schema
# =============================================================================


def get_model(snapshot: IndexSnapshot, name: str) -> Model | None:
    model = snapshot.models.get(name)
    if model is None and "\\" in name:
        model = snapshot.models.get(name.rsplit("\\", 1)[-1])
    return model


def model_for_table(snapshot: IndexSnapshot, table: str) -> Model | None:
    for model in snapshot.models.values():
        if model.table == table:
            return model
    return None


def search_models(snapshot: IndexSnapshot, prefix: str) -> list[Model]:
    return [model for name, model in sorted(snapshot.models.items()) if name.startswith(prefix)]


def get_table(snapshot: IndexSnapshot, name: str) -> DatabaseTable | None:
    return snapshot.tables.get(name)


def table_names(snapshot: IndexSnapshot) -> list[str]:
    return list(snapshot.tables)


# =============================================================================
# Translations
# =============================================================================


@dataclass(frozen=True)
class TranslationReport:
    total_keys: int
    used_keys: int
    unused_keys: int
    missing_keys: int
    locales: tuple[str, ...]

    @property
    def usage_rate(self) -> float:
        """Percentage of catalog keys used somewhere in the project."""
        if self.total_keys == 0:
            return 0.0
        return round(self.used_keys / self.total_keys * 100, 1)


def locales(snapshot: IndexSnapshot) -> list[str]:
    return sorted({entry.locale for entry in snapshot.translations})


def translation_keys(snapshot: IndexSnapshot) -> list[str]:
    return sorted({entry.key for entry in snapshot.translations})


def get_translation(snapshot: IndexSnapshot, key: str, locale: str | None = None) -> TranslationEntry | None:
    """Entry for key in locale, falling back to the first entry for key."""
    first: TranslationEntry | None = None
    for entry in snapshot.translations:
        if entry.key != key:
            continue
        if locale is None or entry.locale == locale:
            return entry
        if first is None:
            first = entry
    return first


def translations_for_key(snapshot: IndexSnapshot, key: str) -> list[TranslationEntry]:
    return [entry for entry in snapshot.translations if entry.key == key]


def search_translations(snapshot: IndexSnapshot, prefix: str) -> list[TranslationEntry]:
    return [entry for entry in snapshot.translations if entry.key.startswith(prefix)]


def usages_for_key(snapshot: IndexSnapshot, key: str) -> list[TranslationUsage]:
    return [usage for usage in snapshot.translation_usages if usage.key == key]


def unused_translations(snapshot: IndexSnapshot) -> list[TranslationEntry]:
    return [entry for entry in snapshot.translations if not entry.is_used]


def missing_translations(snapshot: IndexSnapshot) -> list[str]:
    """Keys used in source with no catalog entry in any locale."""
    known = {entry.key for entry in snapshot.translations}
    return sorted({usage.key for usage in snapshot.translation_usages if usage.key not in known})


def _locales_by_key(snapshot: IndexSnapshot) -> dict[str, set[str]]:
    by_key: dict[str, set[str]] = {}
    for entry in snapshot.translations:
        by_key.setdefault(entry.key, set()).add(entry.locale)
    return by_key


def incomplete_translations(snapshot: IndexSnapshot) -> dict[str, list[str]]:
    """key -> locales lacking it, measured against every observed locale."""
    observed = locales(snapshot)
    result: dict[str, list[str]] = {}
    for key, present in sorted(_locales_by_key(snapshot).items()):
        missing = [locale for locale in observed if locale not in present]
        if missing:
            result[key] = missing
    return result


def translation_report(snapshot: IndexSnapshot) -> TranslationReport:
    keys = _locales_by_key(snapshot)
    used = {entry.key for entry in snapshot.translations if entry.is_used}
    return TranslationReport(
        total_keys=len(keys),
        used_keys=len(used),
        unused_keys=len(keys) - len(used),
        missing_keys=len(missing_translations(snapshot)),
        locales=tuple(locales(snapshot)),
    )


def diagnose_translations(text: str, file: str, snapshot: IndexSnapshot) -> list[Diagnostic]:
    """Missing and incomplete translation keys referenced in text."""
    observed = locales(snapshot)
    by_key = _locales_by_key(snapshot)
    diagnostics: list[Diagnostic] = []
    for usage in scan_usages(text, file):
        present = by_key.get(usage.key)
        end_column = usage.column + len(usage.key)
        if present is None:
            diagnostics.append(
                Diagnostic(
                    code="missing-translation",
                    message=f"Translation key '{usage.key}' not found",
                    severity=Severity.WARNING,
                    file=file,
                    line=usage.line,
                    column=usage.column,
                    end_column=end_column,
                )
            )
            continue
        missing = [locale for locale in observed if locale not in present]
        if missing:
            diagnostics.append(
                Diagnostic(
                    code="incomplete-translation",
                    message=f"Translation '{usage.key}' missing in locales: {', '.join(missing)}",
                    severity=Severity.INFORMATION,
                    file=file,
                    line=usage.line,
                    column=usage.column,
                    end_column=end_column,
                    suggestions=tuple(missing),
                )
            )
    return diagnostics


# =============================================================================
# Config / env
# =============================================================================


def get_config_key(snapshot: IndexSnapshot, key: str) -> ConfigKey | None:
    return snapshot.config_keys.get(key)


def search_config_keys(snapshot: IndexSnapshot, prefix: str) -> list[ConfigKey]:
    return [entry for key, entry in sorted(snapshot.config_keys.items()) if key.startswith(prefix)]


def get_env_key(snapshot: IndexSnapshot, key: str) -> EnvKey | None:
    return snapshot.env_keys.get(key)


def search_env_keys(snapshot: IndexSnapshot, prefix: str) -> list[EnvKey]:
    return [entry for key, entry in sorted(snapshot.env_keys.items()) if key.startswith(prefix)]


# =============================================================================
# Views
# =============================================================================


def get_view(snapshot: IndexSnapshot, name: str) -> View | None:
    return snapshot.views.get(name)


def search_views(snapshot: IndexSnapshot, prefix: str) -> list[View]:
    return [view for name, view in sorted(snapshot.views.items()) if name.startswith(prefix)]


def views_extending(snapshot: IndexSnapshot, layout: str) -> list[View]:
    return [view for _, view in sorted(snapshot.views.items()) if view.extends == layout]


# =============================================================================
# Validation
# =============================================================================


def get_form_request(snapshot: IndexSnapshot, name: str) -> FormRequest | None:
    return snapshot.form_requests.get(name)


def rule_usages_in_file(snapshot: IndexSnapshot, file: str) -> list[RuleUsage]:
    return [usage for usage in snapshot.rule_usages if usage.file == file]


def validation_diagnostics(snapshot: IndexSnapshot, registry: RuleRegistry | None = None) -> list[Diagnostic]:
    """Check every rule used in the project against the catalog and the schema."""
    registry = registry or RuleRegistry()
    return registry.check_usages(snapshot.rule_usages, snapshot.tables)


def diagnose_validation_text(
    text: str,
    file: str,
    snapshot: IndexSnapshot,
    registry: RuleRegistry | None = None,
) -> list[Diagnostic]:
    registry = registry or RuleRegistry()
    return registry.diagnose_text(text, snapshot.tables, file)
