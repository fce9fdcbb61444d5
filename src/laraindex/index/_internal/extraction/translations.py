"""Translation catalog building and usage scanning.

Catalog: every ``<lang root>/<locale>/*.php`` file (a returned array literal,
keys namespaced by file stem) and ``*.json`` file (flattened, no namespace),
plus ``<lang root>/<locale>.json``.

Usages: every PHP/Blade file in the project is scanned for ``trans()``,
``__()``, ``trans_choice()`` and ``@lang()`` calls with a literal key.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import replace
from pathlib import Path
from typing import Any

import structlog

from laraindex.config.constants import VENDOR_LOCALE_DIR
from laraindex.core.errors import MalformedContentError
from laraindex.index._internal.parsing.php_array import parse_return_array
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import TranslationEntry, TranslationUsage, UsageForm

logger = structlog.get_logger()

_USAGE_RE = re.compile(
    r"(?P<interp>(?:\{\{|\{!!)\s*)?"
    r"(?P<call>\btrans_choice|\btrans|\b__|@lang)"
    r"\s*\(\s*(?P<q>['\"`])(?P<key>[^'\"`]+)(?P=q)"
)

_FORMS = {
    "trans": UsageForm.TRANS,
    "__": UsageForm.UNDERSCORE,
    "trans_choice": UsageForm.TRANS_CHOICE,
    "@lang": UsageForm.LANG_DIRECTIVE,
}


def parse_php_catalog(content: str, file: str, locale: str, namespace: str) -> list[TranslationEntry]:
    """Entries of a PHP translation file. Raises MalformedContentError."""
    try:
        array = parse_return_array(content)
    except MalformedContentError as e:
        raise MalformedContentError.at(e.details.get("reason", e.message), e.details.get("line"), file) from e
    if array is None:
        return []
    return [
        TranslationEntry(key=f"{namespace}.{key}", locale=locale, value=value, file=file, line=line)
        for key, value, line in array.flatten()
    ]


def _flatten_json(obj: dict[str, Any], prefix: str = "") -> Iterator[tuple[str, str]]:
    for key, value in obj.items():
        path = f"{prefix}.{key}" if prefix else str(key)
        if isinstance(value, str):
            yield path, value
        elif isinstance(value, dict):
            yield from _flatten_json(value, path)


def parse_json_catalog(content: str, file: str, locale: str) -> list[TranslationEntry]:
    """Entries of a JSON translation file. Raises MalformedContentError."""
    try:
        data = json.loads(content)
    except json.JSONDecodeError as e:
        raise MalformedContentError.at(e.msg, line=e.lineno, path=file) from e
    if not isinstance(data, dict):
        raise MalformedContentError.at("top level must be an object", path=file)
    return [TranslationEntry(key=key, locale=locale, value=value, file=file) for key, value in _flatten_json(data)]


def scan_usages(content: str, file: str) -> list[TranslationUsage]:
    """Translation calls with a literal key, in source order."""
    usages: list[TranslationUsage] = []
    line = 1
    line_start = 0
    pos = 0
    for m in _USAGE_RE.finditer(content):
        start = m.start("call")
        newlines = content.count("\n", pos, start)
        if newlines:
            line += newlines
            line_start = content.rfind("\n", pos, start) + 1
        pos = start
        usages.append(
            TranslationUsage(
                key=m.group("key"),
                file=file,
                line=line,
                column=start - line_start,
                form=_FORMS[m.group("call")],
                interpolated=m.group("interp") is not None,
            )
        )
    return usages


def _read_catalog_file(reader: SourceReader, path: Path, locale: str) -> list[TranslationEntry]:
    content = reader.read(path)
    if content is None:
        return []
    rel = reader.rel(path)
    try:
        if path.suffix == ".json":
            return parse_json_catalog(content, rel, locale)
        return parse_php_catalog(content, rel, locale, path.stem)
    except MalformedContentError as e:
        reader.files_skipped += 1
        logger.error("translation_file_malformed", path=rel, locale=locale, error=e.message)
        return []


def collect_catalog(reader: SourceReader, lang_dirs: list[Path]) -> list[TranslationEntry]:
    entries: list[TranslationEntry] = []
    for root in lang_dirs:
        for path in reader.list_files(root, ".json", recursive=False):
            entries.extend(_read_catalog_file(reader, path, path.stem))
        for locale_dir in reader.subdirectories(root):
            if locale_dir.name == VENDOR_LOCALE_DIR:
                continue
            for suffix in (".php", ".json"):
                for path in reader.list_files(locale_dir, suffix, recursive=False):
                    entries.extend(_read_catalog_file(reader, path, locale_dir.name))
    return entries


def collect_usages(reader: SourceReader, project_root: Path) -> list[TranslationUsage]:
    usages: list[TranslationUsage] = []
    for path in reader.list_files(project_root, ".php"):
        content = reader.read(path)
        if content is not None:
            usages.extend(scan_usages(content, reader.rel(path)))
    return usages


def mark_used(entries: list[TranslationEntry], usages: list[TranslationUsage]) -> list[TranslationEntry]:
    """Flag every entry whose key is used anywhere, across all locales."""
    used = {u.key for u in usages}
    return [replace(e, is_used=True) if e.key in used else e for e in entries]
