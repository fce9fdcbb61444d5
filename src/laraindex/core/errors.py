"""laraindex error types with typed error codes.

Error code ranges:
- 2xxx: Config
- 3xxx: Extraction
- 9xxx: Internal

Extraction errors never escape a rebuild. They are raised by parsers and
caught per file (or per domain) by the coordinator, which logs them and
carries on with the remaining work.
"""

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any


class ErrorCode(IntEnum):
    """Typed error codes for programmatic handling."""

    # Config (2xxx)
    CONFIG_PARSE_ERROR = 2001
    CONFIG_INVALID_VALUE = 2002

    # Extraction (3xxx)
    MALFORMED_CONTENT = 3001
    FILE_UNREADABLE = 3002
    UNKNOWN_DOMAIN = 3003

    # Internal (9xxx)
    INTERNAL_ERROR = 9001


@dataclass(frozen=True, slots=True)
class LaraIndexError(Exception):
    """Base error with structured context."""

    code: ErrorCode
    message: str
    details: dict[str, Any] = field(default_factory=dict)

    @property
    def error_name(self) -> str:
        """String identifier for logging (e.g., 'CONFIG_PARSE_ERROR')."""
        return self.code.name

    def to_dict(self) -> dict[str, Any]:
        """Serialize for JSON output."""
        return {
            "code": self.code.value,
            "error": self.error_name,
            "message": self.message,
            "details": self.details,
        }

    def __str__(self) -> str:
        return f"[{self.code.value}] {self.error_name}: {self.message}"


class ConfigError(LaraIndexError):
    """Configuration-related errors."""

    @classmethod
    def parse_error(cls, path: str, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message=f"Failed to parse config at {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def invalid_value(cls, field: str, value: Any, reason: str) -> "ConfigError":
        return cls(
            code=ErrorCode.CONFIG_INVALID_VALUE,
            message=f"Invalid value for '{field}': {reason}",
            details={"field": field, "value": str(value), "reason": reason},
        )


class ExtractionError(LaraIndexError):
    """Errors raised while turning source text into entities."""

    @classmethod
    def unreadable(cls, path: str, reason: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.FILE_UNREADABLE,
            message=f"Cannot read {path}: {reason}",
            details={"path": path, "reason": reason},
        )

    @classmethod
    def unknown_domain(cls, domain: str) -> "ExtractionError":
        return cls(
            code=ErrorCode.UNKNOWN_DOMAIN,
            message=f"Unknown index domain: {domain}",
            details={"domain": domain},
        )


class MalformedContentError(ExtractionError):
    """Structured content (JSON, PHP array literal) could not be parsed."""

    @classmethod
    def at(cls, reason: str, line: int | None = None, path: str | None = None) -> "MalformedContentError":
        location = f" (line {line})" if line is not None else ""
        return cls(
            code=ErrorCode.MALFORMED_CONTENT,
            message=f"Malformed content{location}: {reason}",
            details={"path": path, "line": line, "reason": reason},
        )


class InternalError(LaraIndexError):
    """Internal/unexpected errors."""

    @classmethod
    def unexpected(cls, reason: str, **details: Any) -> "InternalError":
        return cls(
            code=ErrorCode.INTERNAL_ERROR,
            message=f"Internal error: {reason}",
            details=details,
        )
