"""Core module exports."""

from laraindex.core.errors import (
    ConfigError,
    ErrorCode,
    ExtractionError,
    InternalError,
    LaraIndexError,
    MalformedContentError,
)
from laraindex.core.logging import (
    clear_rebuild_id,
    configure_logging,
    get_logger,
    get_rebuild_id,
    set_rebuild_id,
)

__all__ = [
    # Errors
    "ConfigError",
    "ErrorCode",
    "ExtractionError",
    "InternalError",
    "LaraIndexError",
    "MalformedContentError",
    # Logging
    "clear_rebuild_id",
    "configure_logging",
    "get_logger",
    "get_rebuild_id",
    "set_rebuild_id",
]
