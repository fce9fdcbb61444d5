"""Index module - convention index over a Laravel project tree.

This module provides:
- Entity extraction per domain: schema, routes, translations, config, views, validation
- Versioned immutable snapshots with atomic per-domain publish
- Read-only queries over a snapshot

Public API is in `laraindex.index.ops`:
- IndexCoordinator: builds and rebuilds domains

Queries live in `laraindex.index.queries`; extractors in
`laraindex.index._internal/`.
"""

from laraindex.index.detector import ProjectInfo, detect_laravel_project
from laraindex.index.models import (
    ConfigKey,
    DatabaseTable,
    Diagnostic,
    Domain,
    EnvKey,
    Field,
    FieldSource,
    FieldType,
    FormRequest,
    MigrationColumn,
    Model,
    RebuildStats,
    Relationship,
    RelationKind,
    RequestField,
    Route,
    RuleUsage,
    Severity,
    TranslationEntry,
    TranslationUsage,
    UsageForm,
    ValidationParameter,
    ValidationRule,
    View,
)
from laraindex.index.ops import IndexCoordinator
from laraindex.index.store import IndexSnapshot, IndexStore

__all__ = [
    # Public API (ops.py)
    "IndexCoordinator",
    "IndexSnapshot",
    "IndexStore",
    # Detection
    "ProjectInfo",
    "detect_laravel_project",
    # Models
    "ConfigKey",
    "DatabaseTable",
    "Diagnostic",
    "Domain",
    "EnvKey",
    "Field",
    "FieldSource",
    "FieldType",
    "FormRequest",
    "MigrationColumn",
    "Model",
    "RebuildStats",
    "Relationship",
    "RelationKind",
    "RequestField",
    "Route",
    "RuleUsage",
    "Severity",
    "TranslationEntry",
    "TranslationUsage",
    "UsageForm",
    "ValidationParameter",
    "ValidationRule",
    "View",
]
