"""Config and environment key collection.

Both key sets are seeded with well-known Laravel keys before the project is
scanned, so that completion works even in a near-empty project. A key the
project declares itself replaces its seed and carries a location.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from laraindex.core.errors import MalformedContentError
from laraindex.index._internal.parsing.php_array import parse_return_array
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import ConfigKey, EnvKey

logger = structlog.get_logger()

WELL_KNOWN_CONFIG_KEYS: dict[str, tuple[str, ...]] = {
    "app": (
        "name",
        "env",
        "debug",
        "url",
        "timezone",
        "locale",
        "fallback_locale",
        "faker_locale",
        "key",
        "cipher",
        "providers",
        "aliases",
    ),
    "database": ("default", "connections", "migrations", "redis"),
    "cache": ("default", "stores", "prefix"),
    "mail": ("default", "mailers", "from", "from.address", "from.name"),
    "session": (
        "driver",
        "lifetime",
        "expire_on_close",
        "encrypt",
        "files",
        "connection",
        "table",
        "store",
        "lottery",
        "cookie",
        "path",
        "domain",
        "secure",
        "http_only",
        "same_site",
    ),
    "queue": ("default", "connections", "failed"),
    "auth": ("defaults", "guards", "providers", "passwords"),
    "services": ("mailgun", "postmark", "ses"),
}

WELL_KNOWN_ENV_KEYS: tuple[str, ...] = (
    "APP_NAME",
    "APP_ENV",
    "APP_KEY",
    "APP_DEBUG",
    "APP_URL",
    "LOG_CHANNEL",
    "LOG_DEPRECATIONS_CHANNEL",
    "LOG_LEVEL",
    "DB_CONNECTION",
    "DB_HOST",
    "DB_PORT",
    "DB_DATABASE",
    "DB_USERNAME",
    "DB_PASSWORD",
    "BROADCAST_DRIVER",
    "CACHE_DRIVER",
    "FILESYSTEM_DISK",
    "QUEUE_CONNECTION",
    "SESSION_DRIVER",
    "SESSION_LIFETIME",
    "MEMCACHED_HOST",
    "REDIS_HOST",
    "REDIS_PASSWORD",
    "REDIS_PORT",
    "MAIL_MAILER",
    "MAIL_HOST",
    "MAIL_PORT",
    "MAIL_USERNAME",
    "MAIL_PASSWORD",
    "MAIL_ENCRYPTION",
    "MAIL_FROM_ADDRESS",
    "MAIL_FROM_NAME",
    "AWS_ACCESS_KEY_ID",
    "AWS_SECRET_ACCESS_KEY",
    "AWS_DEFAULT_REGION",
    "AWS_BUCKET",
    "PUSHER_APP_ID",
    "PUSHER_APP_KEY",
    "PUSHER_APP_SECRET",
    "PUSHER_HOST",
    "PUSHER_PORT",
    "PUSHER_SCHEME",
    "PUSHER_APP_CLUSTER",
    "VITE_PUSHER_APP_KEY",
    "VITE_PUSHER_HOST",
    "VITE_PUSHER_PORT",
    "VITE_PUSHER_SCHEME",
    "VITE_PUSHER_APP_CLUSTER",
)

_ENV_LINE_RE = re.compile(r"^(?:export\s+)?([A-Za-z_][A-Za-z0-9_.]*)\s*=")


def seed_config_keys() -> dict[str, ConfigKey]:
    return {
        f"{name}.{key}": ConfigKey(key=f"{name}.{key}")
        for name, keys in WELL_KNOWN_CONFIG_KEYS.items()
        for key in keys
    }


def seed_env_keys() -> dict[str, EnvKey]:
    return {key: EnvKey(key=key) for key in WELL_KNOWN_ENV_KEYS}


def parse_config_file(content: str, file: str, name: str) -> list[ConfigKey]:
    """Dot paths of a config/*.php file, intermediate levels included.

    Raises MalformedContentError if the returned array does not parse.
    """
    array = parse_return_array(content)
    if array is None:
        return []
    return [ConfigKey(key=f"{name}.{path}", file=file, line=line) for path, line in array.key_paths()]


def parse_env_file(content: str, file: str) -> list[EnvKey]:
    keys: list[EnvKey] = []
    for index, raw in enumerate(content.splitlines()):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue
        m = _ENV_LINE_RE.match(line)
        if m:
            keys.append(EnvKey(key=m.group(1), file=file, line=index + 1))
    return keys


def _declare(table: dict, key: str, entry: ConfigKey | EnvKey) -> None:
    existing = table.get(key)
    # first project declaration wins; any declaration beats a seed
    if existing is None or existing.is_seeded:
        table[key] = entry


def collect_config_keys(reader: SourceReader, config_dir: Path) -> dict[str, ConfigKey]:
    keys = seed_config_keys()
    for path in reader.list_files(config_dir, recursive=False):
        content = reader.read(path)
        if content is None:
            continue
        rel = reader.rel(path)
        try:
            declared = parse_config_file(content, rel, path.stem)
        except MalformedContentError as e:
            reader.files_skipped += 1
            logger.error("config_file_malformed", path=rel, error=e.message)
            continue
        for entry in declared:
            _declare(keys, entry.key, entry)
    return keys


def collect_env_keys(reader: SourceReader, env_files: list[Path]) -> dict[str, EnvKey]:
    keys = seed_env_keys()
    for path in env_files:
        if not path.is_file():
            continue
        content = reader.read(path)
        if content is None:
            continue
        for entry in parse_env_file(content, reader.rel(path)):
            _declare(keys, entry.key, entry)
    return keys


def discover_env_files(root: Path, configured: list[str]) -> list[Path]:
    """Configured env files, then every other ``.env.*`` variant at the root, by name."""
    names = list(dict.fromkeys(configured))
    names += sorted(p.name for p in root.glob(".env.*") if p.is_file() and p.name not in names)
    return [root / name for name in names]
