"""Blade template extraction."""

from __future__ import annotations

import re
from pathlib import Path

from laraindex.config.constants import BLADE_SUFFIX
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import View

_EXTENDS_RE = re.compile(r"@extends\s*\(\s*['\"`]([^'\"`]+)['\"`]")
_SECTION_RE = re.compile(r"@(?:section|yield)\s*\(\s*['\"`]([^'\"`]+)['\"`]")
_INCLUDE_RE = re.compile(r"@(?:include|includeIf|includeWhen|includeFirst|each|component)\s*\(\s*(?:[^,'\"`]*,\s*)?['\"`]([^'\"`]+)['\"`]")
_VARIABLE_RE = re.compile(r"(?:\{\{|\{!!)\s*\$([A-Za-z_]\w*)")


def view_name(views_root: Path, path: Path) -> str:
    """resources/views/layouts/app.blade.php -> layouts.app"""
    rel = path.relative_to(views_root).as_posix()
    return rel[: -len(BLADE_SUFFIX)].replace("/", ".")


def parse_view(content: str, name: str, file: str) -> View:
    extends = _EXTENDS_RE.search(content)
    return View(
        name=name,
        file=file,
        extends=extends.group(1) if extends else None,
        sections=tuple(dict.fromkeys(_SECTION_RE.findall(content))),
        includes=tuple(dict.fromkeys(_INCLUDE_RE.findall(content))),
        variables=tuple(dict.fromkeys(_VARIABLE_RE.findall(content))),
    )


def collect_views(reader: SourceReader, views_dir: Path) -> dict[str, View]:
    views: dict[str, View] = {}
    for path in reader.list_files(views_dir, BLADE_SUFFIX):
        content = reader.read(path)
        if content is None:
            continue
        name = view_name(views_dir, path)
        views[name] = parse_view(content, name, reader.rel(path))
    return views
