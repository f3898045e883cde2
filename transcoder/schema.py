from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

from .paths import FieldPath, default_path, parse_path

FieldType = Literal["boolean", "number", "date", "point", "string", "text", "string[]"]

STRING_ARRAY: FieldType = "string[]"


class FieldDefinition(BaseModel):
    """
    One schema entry: declared type plus an optional JSON path into the document.

    `default` and `defaults_to_absence` are carried for the object-construction
    layer; conversion never reads them. `separator` only applies to string[]
    fields stored in flat records: elements containing it are rejected, and an
    empty hash value reads back as [] (so [""] does not round-trip).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    type: FieldType
    path: str | None = None
    default: Any = None
    defaults_to_absence: bool = False
    separator: str = Field(default="|", min_length=1)

    def path_for(self, field_name: str) -> str:
        return self.path if self.path is not None else default_path(field_name)


class Schema(Mapping[str, FieldDefinition]):
    """
    Read-only mapping of field name -> FieldDefinition, iterated in definition order.

    Paths are parsed once on construction so a bad expression fails early.
    """

    def __init__(self, definition: Mapping[str, FieldDefinition | Mapping[str, Any]]):
        fields: dict[str, FieldDefinition] = {}
        paths: dict[str, FieldPath] = {}
        for name, raw in definition.items():
            field_def = raw if isinstance(raw, FieldDefinition) else FieldDefinition.model_validate(raw)
            fields[str(name)] = field_def
            paths[str(name)] = parse_path(field_def.path_for(str(name)))
        self._fields = MappingProxyType(fields)
        self._paths = MappingProxyType(paths)

    @property
    def definition(self) -> Mapping[str, FieldDefinition]:
        return self._fields

    def path_of(self, field_name: str) -> FieldPath:
        return self._paths[field_name]

    def __getitem__(self, field_name: str) -> FieldDefinition:
        return self._fields[field_name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"Schema({dict(self._fields)!r})"
