"""Validation rule catalog and registry."""

from laraindex.validation.registry import RuleRegistry, RuleSuggestion, levenshtein, similarity
from laraindex.validation.rules import BUILTIN_RULES, MUTUALLY_EXCLUSIVE

__all__ = [
    "BUILTIN_RULES",
    "MUTUALLY_EXCLUSIVE",
    "RuleRegistry",
    "RuleSuggestion",
    "levenshtein",
    "similarity",
]
