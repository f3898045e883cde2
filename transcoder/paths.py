"""
Field path expressions and their resolution against a document.

Supported subset of JSONPath:

    $.name        direct member
    $['na me']    quoted member (single or double quotes)
    $.list[2]     array index (non-negative)
    $.list[*]     every array element (or every object value)
    $.obj.*       same wildcard in dotted form

Resolution returns every match together with a writable location so callers
can rewrite values in place on their own copy of the document.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Union

from errors import InvalidPathError

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_$][A-Za-z0-9_$]*$")
_DOT_MEMBER_RE = re.compile(r"\.([^.\[\]]+)")
_BRACKET_RE = re.compile(r"""\[\s*(?:(\*)|(\d+)|'((?:[^'\\]|\\.)*)'|"((?:[^"\\]|\\.)*)")\s*\]""")


@dataclass(frozen=True)
class Member:
    name: str


@dataclass(frozen=True)
class Index:
    position: int


@dataclass(frozen=True)
class Wildcard:
    pass


Segment = Union[Member, Index, Wildcard]


@dataclass(frozen=True)
class FieldPath:
    expression: str
    segments: tuple[Segment, ...]

    @property
    def fans_out(self) -> bool:
        return any(isinstance(s, Wildcard) for s in self.segments)

    def __str__(self) -> str:
        return self.expression


@dataclass
class ObjectLocation:
    container: dict[str, Any]
    key: str

    def get(self) -> Any:
        return self.container[self.key]

    def assign(self, value: Any) -> None:
        self.container[self.key] = value

    def remove(self) -> None:
        self.container.pop(self.key, None)


@dataclass
class ArrayLocation:
    container: list[Any]
    index: int

    def get(self) -> Any:
        return self.container[self.index]

    def assign(self, value: Any) -> None:
        self.container[self.index] = value


Location = Union[ObjectLocation, ArrayLocation]


@dataclass
class PathMatch:
    value: Any
    location: Location

    @property
    def parent(self) -> dict[str, Any] | list[Any]:
        return self.location.container

    @property
    def in_array(self) -> bool:
        return isinstance(self.location, ArrayLocation)


def default_path(field_name: str) -> str:
    if _IDENTIFIER_RE.match(field_name):
        return f"$.{field_name}"
    escaped = field_name.replace("\\", "\\\\").replace("'", "\\'")
    return f"$['{escaped}']"


def _unescape(text: str) -> str:
    return re.sub(r"\\(.)", r"\1", text)


@lru_cache(maxsize=1024)
def parse_path(expression: str) -> FieldPath:
    text = expression.strip()
    if not text.startswith("$"):
        raise InvalidPathError(expression, "must start with '$'")

    segments: list[Segment] = []
    pos = 1
    while pos < len(text):
        if text.startswith("..", pos):
            raise InvalidPathError(expression, "recursive descent is not supported")
        if text[pos] == ".":
            m = _DOT_MEMBER_RE.match(text, pos)
            if m is None:
                raise InvalidPathError(expression, f"expected a member name at offset {pos}")
            name = m.group(1).strip()
            segments.append(Wildcard() if name == "*" else Member(name))
            pos = m.end()
        elif text[pos] == "[":
            m = _BRACKET_RE.match(text, pos)
            if m is None:
                raise InvalidPathError(expression, f"unsupported bracket expression at offset {pos}")
            star, number, single, double = m.groups()
            if star:
                segments.append(Wildcard())
            elif number is not None:
                segments.append(Index(int(number)))
            else:
                segments.append(Member(_unescape(single if single is not None else double)))
            pos = m.end()
        else:
            raise InvalidPathError(expression, f"unexpected character {text[pos]!r} at offset {pos}")

    if not segments:
        raise InvalidPathError(expression, "path must select a field below the root")
    return FieldPath(expression=expression, segments=tuple(segments))


def _step(segment: Segment, value: Any) -> list[Location]:
    if isinstance(segment, Member):
        if isinstance(value, dict) and segment.name in value:
            return [ObjectLocation(value, segment.name)]
        return []
    if isinstance(segment, Index):
        if isinstance(value, list) and segment.position < len(value):
            return [ArrayLocation(value, segment.position)]
        return []
    if isinstance(value, list):
        return [ArrayLocation(value, i) for i in range(len(value))]
    if isinstance(value, dict):
        return [ObjectLocation(value, k) for k in value]
    return []


def resolve(path: FieldPath | str, document: Any) -> list[PathMatch]:
    """
    All matches of `path` in `document`, in document order.
    """
    if isinstance(path, str):
        path = parse_path(path)

    frontier: list[Any] = [document]
    locations: list[Location] = []
    for i, segment in enumerate(path.segments):
        locations = [loc for value in frontier for loc in _step(segment, value)]
        if i < len(path.segments) - 1:
            frontier = [loc.get() for loc in locations]
    return [PathMatch(value=loc.get(), location=loc) for loc in locations]
