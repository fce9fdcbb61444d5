"""PHP array-literal parsing for declarative Laravel files."""

from laraindex.index._internal.parsing.php_array import (
    PhpArray,
    PhpArrayItem,
    PhpExpr,
    parse_array_at,
    parse_return_array,
    tokenize,
    unescape,
)

__all__ = [
    "PhpArray",
    "PhpArrayItem",
    "PhpExpr",
    "parse_array_at",
    "parse_return_array",
    "tokenize",
    "unescape",
]
