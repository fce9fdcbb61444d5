"""Entity definitions for the convention index.

Every entity is a frozen dataclass. A snapshot never mutates an entity in
place: rebuilding a domain produces fresh entities and the store swaps them
in wholesale.

Positions: lines are 1-based, columns are 0-based.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# ============================================================================
# ENUMS
# ============================================================================


class Domain(str, Enum):
    """Slice of the index owned by exactly one extractor."""

    SCHEMA = "schema"
    ROUTES = "routes"
    TRANSLATIONS = "translations"
    CONFIG = "config"
    VIEWS = "views"
    VALIDATION = "validation"

    @classmethod
    def rebuild_order(cls) -> tuple[Domain, ...]:
        """Schema first: later domains read the migration-derived tables."""
        return (
            cls.SCHEMA,
            cls.ROUTES,
            cls.TRANSLATIONS,
            cls.CONFIG,
            cls.VIEWS,
            cls.VALIDATION,
        )


class FieldType(str, Enum):
    """Semantic column/attribute types."""

    INTEGER = "integer"
    STRING = "string"
    BOOLEAN = "boolean"
    FLOAT = "float"
    DECIMAL = "decimal"
    DATE = "date"
    DATETIME = "datetime"
    TIMESTAMP = "timestamp"
    JSON = "json"
    ARRAY = "array"
    COLLECTION = "collection"
    OBJECT = "object"
    BINARY = "binary"


class FieldSource(str, Enum):
    """Where the effective shape of a model field last came from."""

    FILLABLE = "fillable"
    HIDDEN = "hidden"
    CAST = "cast"
    MIGRATION = "migration"
    IMPLICIT = "implicit"


class RelationKind(str, Enum):
    HAS_ONE = "has_one"
    HAS_MANY = "has_many"
    BELONGS_TO = "belongs_to"
    BELONGS_TO_MANY = "belongs_to_many"
    HAS_ONE_THROUGH = "has_one_through"
    HAS_MANY_THROUGH = "has_many_through"
    MORPH_TO = "morph_to"
    MORPH_ONE = "morph_one"
    MORPH_MANY = "morph_many"
    MORPH_TO_MANY = "morph_to_many"
    MORPHED_BY_MANY = "morphed_by_many"

    @property
    def is_polymorphic(self) -> bool:
        return self.value.startswith("morph")


class UsageForm(str, Enum):
    """Recognized translation-invocation syntaxes."""

    TRANS = "trans"
    UNDERSCORE = "__"
    TRANS_CHOICE = "trans_choice"
    LANG_DIRECTIVE = "@lang"


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFORMATION = "information"


# ============================================================================
# ROUTES
# ============================================================================

_PARAM_RE = re.compile(r"\{([^}]+?)\??\}")


@dataclass(frozen=True)
class Route:
    """A binding of HTTP method(s) and a URI pattern to an action."""

    methods: tuple[str, ...]
    uri: str
    action: str
    file: str
    line: int
    column: int = 0
    name: str | None = None
    controller: str | None = None
    controller_method: str | None = None
    middleware: tuple[str, ...] = ()
    is_closure: bool = False

    @property
    def parameters(self) -> list[str]:
        """Placeholder names in the URI, optional marker stripped."""
        return _PARAM_RE.findall(self.uri)

    def example_urls(self) -> list[str]:
        """Sample URLs with placeholders filled in.

        When the URI has optional placeholders a second example omits them.
        """
        if "{" not in self.uri:
            return [self.uri]
        example = re.sub(r"\{id\??\}", "123", self.uri)
        example = re.sub(r"\{slug\??\}", "example-slug", example)
        example = re.sub(r"\{[^}]+\}", "value", example)
        examples = [example]
        if "?}" in self.uri:
            without_optional = re.sub(r"\{[^}]*\?\}", "", self.uri).rstrip("/")
            if without_optional and without_optional != example:
                examples.append(without_optional)
        return examples

    def example_url(self) -> str:
        return self.example_urls()[0]


# ============================================================================
# SCHEMA
# ============================================================================


@dataclass(frozen=True)
class MigrationColumn:
    table: str
    name: str
    type: FieldType
    file: str
    line: int
    nullable: bool = False
    default: str | None = None
    comment: str | None = None
    length: int | None = None


@dataclass(frozen=True)
class DatabaseTable:
    """A table as declared by the project's migrations."""

    name: str
    columns: tuple[MigrationColumn, ...] = ()

    def column(self, name: str) -> MigrationColumn | None:
        for col in self.columns:
            if col.name == name:
                return col
        return None


@dataclass(frozen=True)
class Field:
    name: str
    type: FieldType = FieldType.STRING
    nullable: bool = False
    source: FieldSource = FieldSource.FILLABLE
    default: str | None = None
    comment: str | None = None


@dataclass(frozen=True)
class Relationship:
    name: str
    kind: RelationKind
    related: str | None = None  # None for morphTo()

    @property
    def is_polymorphic(self) -> bool:
        return self.kind.is_polymorphic


@dataclass(frozen=True)
class Model:
    """An Eloquent model with its effective field list."""

    name: str
    table: str
    file: str
    fields: tuple[Field, ...] = ()
    relationships: tuple[Relationship, ...] = ()

    def field(self, name: str) -> Field | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


# ============================================================================
# TRANSLATIONS
# ============================================================================


@dataclass(frozen=True)
class TranslationEntry:
    key: str
    locale: str
    value: str
    file: str
    line: int | None = None
    is_used: bool = False


@dataclass(frozen=True)
class TranslationUsage:
    key: str
    file: str
    line: int
    column: int
    form: UsageForm
    interpolated: bool = False


# ============================================================================
# VALIDATION
# ============================================================================


@dataclass(frozen=True)
class ValidationParameter:
    name: str
    type: str  # string, integer, table, column, field, value, format, date, regex
    required: bool = True
    description: str = ""
    examples: tuple[str, ...] = ()


@dataclass(frozen=True)
class ValidationRule:
    """Reference definition of a built-in validation rule."""

    name: str
    category: str
    description: str
    parameters: tuple[ValidationParameter, ...] = ()
    examples: tuple[str, ...] = ()
    doc_url: str = ""

    @property
    def required_parameter_count(self) -> int:
        return sum(1 for p in self.parameters if p.required)


@dataclass(frozen=True)
class RuleUsage:
    """One rule applied to one field somewhere in project source."""

    field: str
    rule: str  # raw text, e.g. "max:255"
    file: str
    line: int
    column: int = 0

    @property
    def rule_name(self) -> str:
        return self.rule.split(":", 1)[0].strip()

    @property
    def arguments(self) -> list[str]:
        if ":" not in self.rule:
            return []
        raw = self.rule.split(":", 1)[1]
        # regex:/a,b/ keeps its commas
        if self.rule_name in ("regex", "not_regex"):
            return [raw]
        return [arg.strip() for arg in raw.split(",") if arg.strip()]


@dataclass(frozen=True)
class RequestField:
    field: str
    rules: tuple[str, ...] = ()


@dataclass(frozen=True)
class FormRequest:
    name: str
    file: str
    fields: tuple[RequestField, ...] = ()


# ============================================================================
# VIEWS / CONFIG
# ============================================================================


@dataclass(frozen=True)
class View:
    name: str  # dotted path under the views root, e.g. "layouts.app"
    file: str
    extends: str | None = None
    sections: tuple[str, ...] = ()
    includes: tuple[str, ...] = ()
    variables: tuple[str, ...] = ()


@dataclass(frozen=True)
class ConfigKey:
    key: str  # "<file>.<path>", e.g. "app.name"
    file: str | None = None  # None for well-known seeded keys
    line: int | None = None

    @property
    def is_seeded(self) -> bool:
        return self.file is None


@dataclass(frozen=True)
class EnvKey:
    key: str
    file: str | None = None
    line: int | None = None

    @property
    def is_seeded(self) -> bool:
        return self.file is None


# ============================================================================
# DIAGNOSTICS / STATS
# ============================================================================


@dataclass(frozen=True)
class Diagnostic:
    code: str  # unknown-rule, missing-parameters, table-not-found, ...
    message: str
    severity: Severity
    file: str | None = None
    line: int = 1
    column: int = 0
    end_column: int = 0
    suggestions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "severity": self.severity.value,
            "file": self.file,
            "line": self.line,
            "column": self.column,
            "end_column": self.end_column,
            "suggestions": list(self.suggestions),
        }


@dataclass
class RebuildStats:
    """Outcome of one domain rebuild."""

    domain: Domain
    entity_count: int = 0
    files_scanned: int = 0
    files_skipped: int = 0
    duration_ms: float = 0.0
    errors: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors
