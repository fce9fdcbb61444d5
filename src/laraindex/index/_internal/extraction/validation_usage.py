"""Validation rule usage extraction.

Rule arrays are found in four places:

- the array returned by a ``rules()`` method (form requests)
- ``$request->validate([...])``
- ``$this->validate($request, [...])``
- ``Validator::make($data, [...])``

Each ``'field' => 'required|max:255'`` entry yields one RuleUsage per pipe
segment; ``'field' => ['required', 'max:255']`` yields one per string item.
Rule objects (``Rule::unique(...)``, closures) are not string literals and
are ignored.
"""

from __future__ import annotations

import re
from pathlib import Path

import structlog

from laraindex.core.errors import MalformedContentError
from laraindex.index._internal.parsing.php_array import (
    PhpArray,
    PhpArrayItem,
    block_end,
    parse_array_at,
)
from laraindex.index._internal.reader import SourceReader
from laraindex.index.models import FormRequest, RequestField, RuleUsage

logger = structlog.get_logger()

_RULES_METHOD_RE = re.compile(r"function\s+rules\s*\([^)]*\)\s*(?::\s*[\w\\?]+\s*)?\{")
_RETURN_RE = re.compile(r"\breturn\s*(?=\[|array\s*\()")
_INLINE_BLOCK_RES = (
    re.compile(r"\$this->validate\s*\(\s*[^,\[]+,\s*(?=\[|array\s*\()"),
    re.compile(r"(?:->|::)validate(?:WithBag)?\s*\(\s*(?:['\"]\w+['\"]\s*,\s*)?(?=\[|array\s*\()"),
    re.compile(r"Validator::make\s*\(\s*[^,\[]+,\s*(?=\[|array\s*\()"),
)
_FORM_REQUEST_RE = re.compile(r"class\s+(\w+)\s+extends\s+(?:[\w\\]*\\)?FormRequest\b")


def _rules_of_item(item: PhpArrayItem, field: str, file: str) -> list[RuleUsage]:
    usages: list[RuleUsage] = []
    if isinstance(item.value, str):
        offset = 0
        for segment in item.value.split("|"):
            rule = segment.strip()
            if rule:
                column = item.value_column + 1 + offset + (len(segment) - len(segment.lstrip()))
                usages.append(RuleUsage(field=field, rule=rule, file=file, line=item.value_line, column=column))
            offset += len(segment) + 1
    elif isinstance(item.value, PhpArray):
        for sub in item.value.items:
            if isinstance(sub.value, str) and sub.value.strip():
                usages.append(
                    RuleUsage(
                        field=field,
                        rule=sub.value.strip(),
                        file=file,
                        line=sub.value_line,
                        column=sub.value_column + 1,
                    )
                )
    return usages


def usages_from_array(array: PhpArray, file: str) -> list[RuleUsage]:
    usages: list[RuleUsage] = []
    for item in array.items:
        if item.key is not None:
            usages.extend(_rules_of_item(item, item.key, file))
    return usages


def _rules_return(content: str, method: re.Match[str], file: str) -> re.Match[str] | None:
    """``return [`` inside the rules() body; None when it returns anything else."""
    try:
        body_end = block_end(content, method.end() - 1)
    except MalformedContentError as e:
        logger.error("validation_block_malformed", path=file, error=e.message)
        return None
    return _RETURN_RE.search(content, method.end(), body_end)


def _block_offsets(content: str, file: str) -> list[int]:
    offsets: list[int] = []
    for method in _RULES_METHOD_RE.finditer(content):
        ret = _rules_return(content, method, file)
        if ret:
            offsets.append(ret.end())
    for pattern in _INLINE_BLOCK_RES:
        offsets.extend(m.end() for m in pattern.finditer(content))
    return sorted(set(offsets))


def rule_arrays(content: str, file: str) -> list[PhpArray]:
    """Every validation rule array in content, in source order.

    A block that fails to parse is logged and dropped; the others survive.
    """
    arrays: list[PhpArray] = []
    for offset in _block_offsets(content, file):
        try:
            arrays.append(parse_array_at(content, offset))
        except MalformedContentError as e:
            logger.error("validation_block_malformed", path=file, error=e.message)
    return arrays


def extract_rule_usages(content: str, file: str) -> list[RuleUsage]:
    usages: list[RuleUsage] = []
    for array in rule_arrays(content, file):
        usages.extend(usages_from_array(array, file))
    return usages


def parse_form_request(content: str, file: str) -> FormRequest | None:
    m = _FORM_REQUEST_RE.search(content)
    if m is None:
        return None
    fields: dict[str, list[str]] = {}
    method = _RULES_METHOD_RE.search(content)
    ret = _rules_return(content, method, file) if method else None
    if ret is not None:
        try:
            array = parse_array_at(content, ret.end())
        except MalformedContentError as e:
            logger.error("validation_block_malformed", path=file, error=e.message)
        else:
            for usage in usages_from_array(array, file):
                fields.setdefault(usage.field, []).append(usage.rule)
    return FormRequest(
        name=m.group(1),
        file=file,
        fields=tuple(RequestField(field=name, rules=tuple(rules)) for name, rules in fields.items()),
    )


def collect_validation(
    reader: SourceReader,
    http_dir: Path,
) -> tuple[dict[str, FormRequest], list[RuleUsage]]:
    form_requests: dict[str, FormRequest] = {}
    usages: list[RuleUsage] = []
    for path in reader.list_files(http_dir):
        content = reader.read(path)
        if content is None:
            continue
        rel = reader.rel(path)
        request = parse_form_request(content, rel)
        if request is not None:
            form_requests.setdefault(request.name, request)
        usages.extend(extract_rule_usages(content, rel))
    return form_requests, usages
