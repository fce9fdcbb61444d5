"""Validation rule registry.

Owns the static rule catalog and the services derived from it:

- compatibility filtering (symmetric mutual exclusion)
- ordered completion candidates with pre-filled parameters
- rule diagnostics: unknown rules with near-matches, missing parameters,
  ``exists``/``unique`` tables missing from the migrations
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from laraindex.config.constants import TABLE_SUGGESTION_FALLBACK_COUNT
from laraindex.config.models import ValidationConfig
from laraindex.index._internal.extraction.schema import pluralize
from laraindex.index._internal.extraction.validation_usage import extract_rule_usages
from laraindex.index.models import (
    DatabaseTable,
    Diagnostic,
    RuleUsage,
    Severity,
    ValidationParameter,
    ValidationRule,
)
from laraindex.validation.rules import (
    BUILTIN_RULES,
    DEFAULT_PRIORITY,
    MUTUALLY_EXCLUSIVE,
    RULE_PRIORITIES,
)

_TABLE_RULES = ("exists", "unique")
_MANAGED_COLUMNS = frozenset({"id", "created_at", "updated_at", "deleted_at", "remember_token"})


def levenshtein(a: str, b: str) -> int:
    if len(a) < len(b):
        a, b = b, a
    previous = list(range(len(b) + 1))
    for i, ca in enumerate(a, 1):
        current = [i]
        for j, cb in enumerate(b, 1):
            current.append(
                min(
                    previous[j] + 1,
                    current[j - 1] + 1,
                    previous[j - 1] + (ca != cb),
                )
            )
        previous = current
    return previous[-1]


def similarity(a: str, b: str) -> float:
    """(len(longer) - distance) / len(longer); 1.0 for two empty strings."""
    longer = max(len(a), len(b))
    if longer == 0:
        return 1.0
    return (longer - levenshtein(a, b)) / longer


def rule_name(rule: str) -> str:
    return rule.split(":", 1)[0].strip()


def _arguments(rule: str) -> list[str]:
    if ":" not in rule:
        return []
    raw = rule.split(":", 1)[1]
    if rule_name(rule) in ("regex", "not_regex"):
        return [raw] if raw.strip() else []
    return [arg.strip() for arg in raw.split(",") if arg.strip()]


@dataclass(frozen=True)
class RuleSuggestion:
    rule: ValidationRule
    insert_text: str
    priority: int

    @property
    def sort_text(self) -> str:
        return f"{self.priority:02d}"


class RuleRegistry:
    """Catalog of built-in rules plus the checks and suggestions built on it."""

    def __init__(
        self,
        rules: Iterable[ValidationRule] = BUILTIN_RULES,
        *,
        similarity_threshold: float = 0.6,
        max_suggestions: int = 3,
        default_table: str = "users",
    ) -> None:
        self._rules: dict[str, ValidationRule] = {rule.name: rule for rule in rules}
        self.similarity_threshold = similarity_threshold
        self.max_suggestions = max_suggestions
        self.default_table = default_table

    @classmethod
    def from_config(cls, config: ValidationConfig) -> RuleRegistry:
        return cls(
            similarity_threshold=config.similarity_threshold,
            max_suggestions=config.max_suggestions,
            default_table=config.default_table,
        )

    # =========================================================================
    # Lookup
    # =========================================================================

    def get(self, name: str) -> ValidationRule | None:
        return self._rules.get(rule_name(name))

    def all(self) -> list[ValidationRule]:
        return list(self._rules.values())

    def search(self, prefix: str) -> list[ValidationRule]:
        return [rule for name, rule in self._rules.items() if name.startswith(prefix)]

    def by_category(self) -> dict[str, list[ValidationRule]]:
        grouped: dict[str, list[ValidationRule]] = {}
        for rule in self._rules.values():
            grouped.setdefault(rule.category, []).append(rule)
        return grouped

    # =========================================================================
    # Compatibility & completion
    # =========================================================================

    @staticmethod
    def conflicts(a: str, b: str) -> bool:
        """True if a and b exclude each other, whichever way the table declares it."""
        return b in MUTUALLY_EXCLUSIVE.get(a, frozenset()) or a in MUTUALLY_EXCLUSIVE.get(b, frozenset())

    def is_compatible(self, candidate: str, applied: Iterable[str]) -> bool:
        name = rule_name(candidate)
        return not any(self.conflicts(name, rule_name(existing)) for existing in applied)

    def priority(self, name: str, field: str = "") -> int:
        priority = RULE_PRIORITIES.get(name, DEFAULT_PRIORITY)
        if field:
            if "email" in field and name == "email":
                priority = 1
            if "password" in field and name == "confirmed":
                priority = 2
            if field.endswith("_id") and name in ("exists", "integer"):
                priority = 2
        return priority

    def suggest_parameter(
        self,
        rule: ValidationRule,
        param: ValidationParameter,
        field: str = "",
        tables: Mapping[str, DatabaseTable] | None = None,
    ) -> str:
        """Pre-filled value for one rule parameter, tuned to the field name.

        With known tables, a default table the migrations never declare gives
        way to the first declared one.
        """
        if param.name == "table":
            if field.endswith("_id") and len(field) > 3:
                return pluralize(field[:-3])
            if tables and self.default_table not in tables:
                return next(iter(tables))
            return self.default_table
        if param.name == "column":
            return field if rule.name == "unique" and field else "id"
        if param.name == "value" and param.type == "integer":
            if "password" in field:
                return "8"
            if "name" in field or "email" in field:
                return "255"
            return "100"
        if param.examples:
            return param.examples[0]
        return "_".join(param.description.lower().split())

    def insert_text(
        self,
        rule: ValidationRule,
        field: str = "",
        *,
        array_context: bool = False,
        tables: Mapping[str, DatabaseTable] | None = None,
    ) -> str:
        text = rule.name
        required = [p for p in rule.parameters if p.required]
        if required:
            text += ":" + ",".join(self.suggest_parameter(rule, p, field, tables) for p in required)
        return f"'{text}'" if array_context else text

    def candidate_rules(
        self,
        applied: Iterable[str],
        field: str = "",
        *,
        array_context: bool = False,
        tables: Mapping[str, DatabaseTable] | None = None,
    ) -> list[RuleSuggestion]:
        """Rules still worth offering for a field, best first.

        Excludes rules already applied and rules conflicting with any applied rule.
        """
        applied_names = {rule_name(r) for r in applied if rule_name(r)}
        suggestions = [
            RuleSuggestion(
                rule=rule,
                insert_text=self.insert_text(rule, field, array_context=array_context, tables=tables),
                priority=self.priority(rule.name, field),
            )
            for rule in self._rules.values()
            if rule.name not in applied_names and self.is_compatible(rule.name, applied_names)
        ]
        suggestions.sort(key=lambda s: (s.priority, s.rule.name))
        return suggestions

    # =========================================================================
    # Diagnostics
    # =========================================================================

    def near_matches(self, name: str, candidates: Iterable[str] | None = None) -> list[str]:
        pool = self._rules.keys() if candidates is None else candidates
        scored = [(similarity(name, other), other) for other in pool]
        ranked = sorted((s for s in scored if s[0] > self.similarity_threshold), key=lambda s: (-s[0], s[1]))
        return [other for _, other in ranked[: self.max_suggestions]]

    def _table_suggestions(self, table: str, tables: Mapping[str, DatabaseTable]) -> list[str]:
        similar = self.near_matches(table, tables.keys())
        return similar or list(tables.keys())[:TABLE_SUGGESTION_FALLBACK_COUNT]

    def check_rule(
        self,
        rule: str,
        tables: Mapping[str, DatabaseTable] | None = None,
        *,
        file: str | None = None,
        line: int = 1,
        column: int = 0,
    ) -> list[Diagnostic]:
        """Diagnostics for one rule string such as 'exists:users,id'.

        Table checks need schema knowledge: they are skipped when no tables are known.
        """
        name = rule_name(rule)
        if not name:
            return []
        end_column = column + len(rule)

        def diagnostic(code: str, message: str, severity: Severity, suggestions: list[str] | None = None) -> Diagnostic:
            return Diagnostic(
                code=code,
                message=message,
                severity=severity,
                file=file,
                line=line,
                column=column,
                end_column=end_column,
                suggestions=tuple(suggestions or ()),
            )

        definition = self._rules.get(name)
        if definition is None:
            return [
                diagnostic(
                    "unknown-rule",
                    f"Unknown validation rule: {name}",
                    Severity.ERROR,
                    self.near_matches(name),
                )
            ]

        issues: list[Diagnostic] = []
        args = _arguments(rule)
        expected = definition.required_parameter_count
        if len(args) < expected:
            issues.append(
                diagnostic(
                    "missing-parameters",
                    f"Rule '{name}' requires {expected} parameter(s), got {len(args)}",
                    Severity.ERROR,
                )
            )

        if name in _TABLE_RULES and args and tables:
            table = args[0]
            # Model class references and connection-qualified tables are not checked
            if "\\" not in table and "." not in table and table not in tables:
                issues.append(
                    diagnostic(
                        "table-not-found",
                        f"Table '{table}' not found in database schema",
                        Severity.WARNING,
                        self._table_suggestions(table, tables),
                    )
                )
        return issues

    def check_usages(
        self,
        usages: Iterable[RuleUsage],
        tables: Mapping[str, DatabaseTable] | None = None,
    ) -> list[Diagnostic]:
        diagnostics: list[Diagnostic] = []
        for usage in usages:
            diagnostics.extend(
                self.check_rule(usage.rule, tables, file=usage.file, line=usage.line, column=usage.column)
            )
        return diagnostics

    def diagnose_text(
        self,
        text: str,
        tables: Mapping[str, DatabaseTable] | None = None,
        file: str | None = None,
    ) -> list[Diagnostic]:
        """Check every rule found in rules() arrays, validate() and Validator::make() calls."""
        return self.check_usages(extract_rule_usages(text, file or "<text>"), tables)

    # =========================================================================
    # Generation
    # =========================================================================

    @staticmethod
    def rules_for_column(column: str) -> list[str]:
        """Starter rule set for a column, guessed from its name."""
        if column.endswith("_id"):
            return ["required", "integer", f"exists:{pluralize(column[:-3])},id"]
        if column == "email":
            return ["required", "string", "email", "max:255"]
        if "password" in column:
            return ["required", "string", "min:8"]
        if "phone" in column:
            return ["required", "string", "regex:/^\\+?[1-9]\\d{1,14}$/"]
        if "url" in column or "website" in column:
            return ["required", "string", "url"]
        if "date" in column or column.endswith("_at"):
            return ["required", "date"]
        return ["required", "string", "max:255"]

    def rules_for_table(self, table: DatabaseTable) -> dict[str, list[str]]:
        return {col.name: self.rules_for_column(col.name) for col in table.columns if col.name not in _MANAGED_COLUMNS}
