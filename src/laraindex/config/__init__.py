"""Config module exports."""

from laraindex.config.loader import load_config
from laraindex.config.models import (
    LaraIndexConfig,
    LayoutConfig,
    LoggingConfig,
    ValidationConfig,
    WatcherConfig,
)

__all__ = [
    "load_config",
    "LaraIndexConfig",
    "LayoutConfig",
    "LoggingConfig",
    "ValidationConfig",
    "WatcherConfig",
]
