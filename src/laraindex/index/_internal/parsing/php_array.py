"""Tokenizer and recursive-descent parser for PHP array literals.

Laravel keeps most of its declarative data in array literals: translation
files and config files ``return [...]``, models declare ``$fillable = [...]``,
form requests return rule arrays. This module parses just enough PHP to walk
those literals:

- ``[...]`` and ``array(...)`` with optional ``key =>`` entries, nested freely
- single- and double-quoted string literals (unescaped)
- comments (``//``, ``#``, ``/* */``) anywhere between tokens

Anything else in value position (function calls, constants, concatenations,
closures) is kept as an opaque ``PhpExpr`` holding its raw text. Brackets
must balance; an unterminated literal raises ``MalformedContentError``.
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import NamedTuple, Union

from laraindex.core.errors import MalformedContentError

_TOKEN_RE = re.compile(
    r"""
    (?P<ws>\s+)
    |(?P<comment>//[^\n]*|\#(?!\[)[^\n]*|/\*.*?\*/)
    |(?P<sq>'(?:[^'\\]|\\.)*')
    |(?P<dq>"(?:[^"\\]|\\.)*")
    |(?P<arrow>=>)
    |(?P<open>[\[({])
    |(?P<close>[\])}])
    |(?P<comma>,)
    |(?P<semi>;)
    |(?P<number>\d+(?:\.\d+)?)
    |(?P<word>[A-Za-z_\\$][\w\\$]*)
    |(?P<other>.)
    """,
    re.VERBOSE | re.DOTALL,
)

_PAIRS = {"[": "]", "(": ")", "{": "}"}

_DQ_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "v": "\v", "f": "\f", "0": "\0", "$": "$", '"': '"', "\\": "\\"}

_RETURN_ARRAY_RE = re.compile(r"\breturn\s*(?=\[|array\s*\()", re.IGNORECASE)


class Token(NamedTuple):
    kind: str
    text: str
    line: int
    column: int


@dataclass(frozen=True)
class PhpExpr:
    """A value the parser does not interpret (call, constant, concatenation)."""

    text: str


PhpValue = Union[str, "PhpArray", PhpExpr]


@dataclass
class PhpArrayItem:
    key: str | None  # None for list-style entries
    value: PhpValue
    line: int
    value_line: int
    value_column: int


@dataclass
class PhpArray:
    line: int
    items: list[PhpArrayItem] = field(default_factory=list)

    def get(self, key: str) -> PhpValue | None:
        for item in self.items:
            if item.key == key:
                return item.value
        return None

    def string_values(self) -> list[str]:
        """Literal string values of the top level, in order."""
        return [item.value for item in self.items if isinstance(item.value, str)]

    def keyed_items(self) -> Iterator[tuple[str, PhpArrayItem]]:
        """Items with their effective key; list entries get PHP's implicit indexes."""
        next_index = 0
        for item in self.items:
            if item.key is None:
                yield str(next_index), item
                next_index += 1
            else:
                if item.key.isdigit():
                    next_index = max(next_index, int(item.key) + 1)
                yield item.key, item

    def flatten(self, prefix: str = "") -> Iterator[tuple[str, str, int]]:
        """Yield (dotted_key, string_value, line) for every string leaf."""
        for key, item in self.keyed_items():
            path = f"{prefix}.{key}" if prefix else key
            if isinstance(item.value, PhpArray):
                yield from item.value.flatten(path)
            elif isinstance(item.value, str):
                yield path, item.value, item.line

    def key_paths(self, prefix: str = "") -> Iterator[tuple[str, int]]:
        """Yield (dotted_key, line) for every explicitly keyed entry, nested ones included."""
        for item in self.items:
            if item.key is None:
                continue
            path = f"{prefix}.{item.key}" if prefix else item.key
            yield path, item.line
            if isinstance(item.value, PhpArray):
                yield from item.value.key_paths(path)


def unescape(literal: str) -> str:
    """Decode a quoted PHP string literal (quotes included)."""
    quote, body = literal[0], literal[1:-1]
    if quote == "'":
        return re.sub(r"\\([\\'])", r"\1", body)

    def _replace(m: re.Match[str]) -> str:
        return _DQ_ESCAPES.get(m.group(1), m.group(0))

    return re.sub(r"\\(.)", _replace, body)


def tokenize(content: str, offset: int = 0) -> Iterator[Token]:
    """Yield significant tokens from offset on. Whitespace and comments are dropped."""
    line = content.count("\n", 0, offset) + 1
    line_start = content.rfind("\n", 0, offset) + 1
    pos = offset
    for m in _TOKEN_RE.finditer(content, offset):
        start = m.start()
        newlines = content.count("\n", pos, start)
        if newlines:
            line += newlines
            line_start = content.rfind("\n", pos, start) + 1
        pos = start
        kind = m.lastgroup or "other"
        text = m.group()
        if kind == "other":
            if text in ("'", '"'):
                raise MalformedContentError.at("unterminated string literal", line=line)
            if content.startswith("/*", start):
                raise MalformedContentError.at("unterminated comment", line=line)
        if kind not in ("ws", "comment"):
            yield Token(kind, text, line, start - line_start)


class _Parser:
    def __init__(self, tokens: Iterator[Token]) -> None:
        self._tokens = tokens
        self._pending: Token | None = None

    def next(self) -> Token | None:
        if self._pending is not None:
            tok, self._pending = self._pending, None
            return tok
        return next(self._tokens, None)

    def peek(self) -> Token | None:
        if self._pending is None:
            self._pending = next(self._tokens, None)
        return self._pending

    def parse_literal_start(self) -> PhpArray:
        tok = self.next()
        if tok is None:
            raise MalformedContentError.at("expected array literal, found end of input")
        if tok.kind == "open" and tok.text == "[":
            return self.parse_array(tok, "]")
        if tok.kind == "word" and tok.text.lower() == "array":
            paren = self.next()
            if paren is not None and paren.text == "(":
                return self.parse_array(tok, ")")
        raise MalformedContentError.at(f"expected array literal, found {tok.text!r}", line=tok.line)

    def parse_array(self, opener: Token, close: str) -> PhpArray:
        result = PhpArray(line=opener.line)
        while True:
            tok = self.next()
            if tok is None:
                raise MalformedContentError.at(f"unclosed array opened here, expected {close!r}", line=opener.line)
            if tok.kind == "close":
                if tok.text != close:
                    raise MalformedContentError.at(f"expected {close!r}, found {tok.text!r}", line=tok.line)
                return result

            first = self.parse_value(tok, stop_at_arrow=True)
            after = self.next()
            if after is not None and after.kind == "arrow":
                value_tok = self.next()
                if value_tok is None:
                    raise MalformedContentError.at("missing value after '=>'", line=after.line)
                value = self.parse_value(value_tok, stop_at_arrow=False)
                key = first if isinstance(first, str) else first.text if isinstance(first, PhpExpr) else None
                result.items.append(PhpArrayItem(key, value, tok.line, value_tok.line, value_tok.column))
                after = self.next()
            else:
                result.items.append(PhpArrayItem(None, first, tok.line, tok.line, tok.column))

            if after is None:
                raise MalformedContentError.at(f"unclosed array opened here, expected {close!r}", line=opener.line)
            if after.kind == "comma":
                continue
            if after.kind == "close" and after.text == close:
                return result
            raise MalformedContentError.at(f"unexpected {after.text!r} in array", line=after.line)

    def parse_value(self, tok: Token, *, stop_at_arrow: bool) -> PhpValue:
        value: PhpValue | None = None
        if tok.kind in ("sq", "dq"):
            value = unescape(tok.text)
        elif tok.kind == "open" and tok.text == "[":
            value = self.parse_array(tok, "]")
        elif tok.kind == "word" and tok.text.lower() == "array":
            nxt = self.peek()
            if nxt is not None and nxt.text == "(":
                self.next()
                value = self.parse_array(tok, ")")

        if value is not None and self._at_value_end(stop_at_arrow):
            return value
        if value is not None:
            # literal followed by more expression, e.g. 'a' . $b
            return self.skip_expression([tok.text], stop_at_arrow)
        if tok.kind == "close":
            raise MalformedContentError.at(f"unexpected {tok.text!r}", line=tok.line)
        if tok.kind == "open":
            return self.skip_expression([tok.text, self.skip_balanced(tok)], stop_at_arrow)
        return self.skip_expression([tok.text], stop_at_arrow)

    def _at_value_end(self, stop_at_arrow: bool) -> bool:
        nxt = self.peek()
        if nxt is None:
            return True
        return nxt.kind in ("comma", "close") or (stop_at_arrow and nxt.kind == "arrow")

    def skip_balanced(self, opener: Token) -> str:
        """Consume tokens up to and including the matching closer; return their text."""
        parts: list[str] = []
        expected = [_PAIRS[opener.text]]
        while expected:
            tok = self.next()
            if tok is None:
                raise MalformedContentError.at(f"unbalanced {opener.text!r}", line=opener.line)
            parts.append(tok.text)
            if tok.kind == "open":
                expected.append(_PAIRS[tok.text])
            elif tok.kind == "close":
                if tok.text != expected[-1]:
                    raise MalformedContentError.at(f"expected {expected[-1]!r}, found {tok.text!r}", line=tok.line)
                expected.pop()
        return " ".join(parts)

    def skip_expression(self, parts: list[str], stop_at_arrow: bool) -> PhpExpr:
        while not self._at_value_end(stop_at_arrow):
            tok = self.next()
            assert tok is not None
            parts.append(tok.text)
            if tok.kind == "open":
                parts.append(self.skip_balanced(tok))
        return PhpExpr(" ".join(parts))


def parse_array_at(content: str, offset: int) -> PhpArray:
    """Parse the array literal starting at offset (``[`` or ``array(``).

    Raises:
        MalformedContentError: If the literal is unbalanced or malformed.
    """
    return _Parser(tokenize(content, offset)).parse_literal_start()


def parse_return_array(content: str) -> PhpArray | None:
    """Parse the first ``return [...]`` literal, or None if there is none."""
    m = _RETURN_ARRAY_RE.search(content)
    if m is None:
        return None
    return parse_array_at(content, m.end())


def block_end(content: str, offset: int) -> int:
    """Offset just past the bracket that closes the one at offset.

    Brackets inside strings and comments do not count.

    Raises:
        MalformedContentError: If offset is not at an opening bracket or the block never closes.
    """
    expected: list[str] = []
    for m in _TOKEN_RE.finditer(content, offset):
        kind = m.lastgroup
        if kind in ("ws", "comment"):
            continue
        text = m.group()
        if kind == "open":
            expected.append(_PAIRS[text])
        elif not expected:
            raise MalformedContentError.at(f"expected opening bracket, found {text!r}", line=_line_of(content, m.start()))
        elif kind == "close":
            if text != expected[-1]:
                raise MalformedContentError.at(
                    f"expected {expected[-1]!r}, found {text!r}", line=_line_of(content, m.start())
                )
            expected.pop()
            if not expected:
                return m.end()
    raise MalformedContentError.at("unbalanced block", line=_line_of(content, offset))


def _line_of(content: str, offset: int) -> int:
    return content.count("\n", 0, offset) + 1
