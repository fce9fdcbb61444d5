"""Pydantic configuration models with env var support.

Configuration Hierarchy (highest to lowest precedence):
1. Direct kwargs to load_config()
2. Environment variables (LARAINDEX__SECTION__KEY)
3. Project YAML (.laraindex.yaml at the project root)
4. Global YAML (~/.config/laraindex/config.yaml)
5. Built-in defaults (this file)

Environment Variable Format:
    LARAINDEX__<SECTION>__<KEY>=<VALUE>

Examples:
    LARAINDEX__LOGGING__LEVEL=DEBUG
    LARAINDEX__LAYOUT__ROUTES_DIR=routes
    LARAINDEX__WATCHER__DEBOUNCE_SEC=0.5
    LARAINDEX__VALIDATION__SIMILARITY_THRESHOLD=0.7
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LogOutputConfig(BaseModel):
    """Single logging output configuration.

    Env vars: Not directly configurable via env (use YAML for multi-output).
    """

    format: Literal["json", "console"] = "console"
    destination: str = "stderr"  # stderr, stdout, or absolute file path
    level: LogLevel | None = None  # Inherits from parent if None

    @field_validator("destination")
    @classmethod
    def validate_destination(cls, v: str) -> str:
        if v in ("stderr", "stdout"):
            return v
        path = Path(v).expanduser()
        if not path.is_absolute():
            raise ValueError(f"File destination must be absolute path: {v}")
        return str(path)


class LoggingConfig(BaseModel):
    """Logging configuration.

    Env vars:
        LARAINDEX__LOGGING__LEVEL: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """

    level: LogLevel = Field(
        default="INFO",
        description="Root log level. DEBUG logs every file read during a rebuild.",
    )
    outputs: list[LogOutputConfig] = Field(default_factory=lambda: [LogOutputConfig()])


class LayoutConfig(BaseModel):
    """Where the conventional project directories live, relative to the root.

    Env vars:
        LARAINDEX__LAYOUT__ROUTES_DIR: Route declaration directory
        LARAINDEX__LAYOUT__MIGRATIONS_DIR: Schema migration directory
        LARAINDEX__LAYOUT__VIEWS_DIR: Blade template root
        LARAINDEX__LAYOUT__MAX_FILE_SIZE_KB: Skip files larger than this
    """

    routes_dir: str = "routes"
    model_dirs: list[str] = Field(
        default_factory=lambda: ["app/Models", "app"],
        description="Model candidate directories. The first is scanned recursively, "
        "the rest only at the top level.",
    )
    migrations_dir: str = "database/migrations"
    lang_dirs: list[str] = Field(
        default_factory=lambda: ["lang", "resources/lang"],
        description="Translation roots. Each subdirectory is one locale.",
    )
    views_dir: str = "resources/views"
    config_dir: str = "config"
    http_dir: str = Field(
        default="app/Http",
        description="Scanned for form requests and inline validation calls.",
    )
    env_files: list[str] = Field(default_factory=lambda: [".env", ".env.example", ".env.local"])
    excluded_dirs: list[str] | None = Field(
        default=None,
        description="Directory names pruned while scanning for translation usages. "
        "None keeps the built-in list (vendor, node_modules, storage, ...).",
    )
    max_file_size_kb: int = Field(
        default=1024,
        description="Skip files larger than this (KB). Generated PHP can be huge.",
    )

    @field_validator("max_file_size_kb")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"max_file_size_kb must be positive, got {v}")
        return v


class WatcherConfig(BaseModel):
    """File watcher configuration.

    Env vars:
        LARAINDEX__WATCHER__DEBOUNCE_SEC: Quiet period before flushing changes
        LARAINDEX__WATCHER__MAX_DEBOUNCE_WAIT_SEC: Upper bound on batching
    """

    debounce_sec: float = Field(
        default=0.5,
        description="Sliding debounce window. Resets on each new change.",
    )
    max_debounce_wait_sec: float = Field(
        default=2.0,
        description="Flush a batch after this long even if changes keep arriving.",
    )


class ValidationConfig(BaseModel):
    """Validation rule diagnostics configuration.

    Env vars:
        LARAINDEX__VALIDATION__SIMILARITY_THRESHOLD: Near-match cutoff (0-1)
        LARAINDEX__VALIDATION__MAX_SUGGESTIONS: Max near-matches per diagnostic
        LARAINDEX__VALIDATION__DEFAULT_TABLE: Fallback table suggestion
    """

    similarity_threshold: float = Field(
        default=0.6,
        description="Minimum normalized edit-distance similarity for a near-match.",
    )
    max_suggestions: int = 3
    default_table: str = "users"

    @field_validator("similarity_threshold")
    @classmethod
    def validate_threshold(cls, v: float) -> float:
        if not (0.0 <= v <= 1.0):
            raise ValueError(f"similarity_threshold must be 0-1, got {v}")
        return v


class LaraIndexConfig(BaseModel):
    """Root configuration for laraindex.

    All settings can be configured via:
    1. Environment variables: LARAINDEX__SECTION__KEY
    2. YAML config files (project or global)
    3. Direct kwargs to load_config()
    """

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    layout: LayoutConfig = Field(default_factory=LayoutConfig)
    watcher: WatcherConfig = Field(default_factory=WatcherConfig)
    validation: ValidationConfig = Field(default_factory=ValidationConfig)
