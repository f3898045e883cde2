from __future__ import annotations

import re
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from errors import NullInArrayError, TypeMismatchError, UndefinedInArrayError

from .document import STORE, to_string
from .schema import STRING_ARRAY, FieldDefinition, Schema
from .values import (
    date_to_epoch,
    epoch_to_date,
    format_number,
    is_array,
    is_boolean,
    is_date,
    is_null,
    is_number,
    is_point,
    is_point_string,
    is_string,
    is_undefined,
    iso_date_to_epoch,
    point_to_string,
    string_to_point,
)

_NUMERIC_RE = re.compile(r"^\s*-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?\s*$")


def to_flat_record(schema: Schema, data: Mapping[str, Any] | BaseModel) -> dict[str, str]:
    """
    Convert application data into the field -> string map stored as a hash.

    Flat records are keyed by field name; schema paths do not apply. Absent,
    None and UNDEFINED values are omitted. Unknown fields survive when they are
    scalars or dates.
    """
    if isinstance(data, BaseModel):
        data = data.model_dump()
    if not isinstance(data, Mapping):
        raise TypeMismatchError("an object", data)

    record: dict[str, str] = {}
    for key, value in data.items():
        if is_null(value) or is_undefined(value):
            continue
        field_def = schema.get(key)
        if field_def is not None:
            record[key] = _encode_field(field_def, value)
        elif is_date(value):
            record[key] = format_number(date_to_epoch(value))
        elif is_boolean(value) or is_number(value) or is_string(value):
            record[key] = to_string(value)
    return record


def _encode_field(field_def: FieldDefinition, value: Any) -> str:
    field_type = field_def.type
    if field_type == "boolean":
        if is_boolean(value):
            return "1" if value else "0"
        raise TypeMismatchError("a boolean", value)
    if field_type == "number":
        if is_number(value):
            return format_number(value)
        raise TypeMismatchError("a number", value)
    if field_type == "date":
        if is_date(value):
            return format_number(date_to_epoch(value))
        if is_string(value):
            epoch = iso_date_to_epoch(value)
            if epoch is not None:
                return format_number(epoch)
        elif is_number(value):
            return format_number(value)
        raise TypeMismatchError("a date", value)
    if field_type == "point":
        if is_point(value):
            return point_to_string(value)
        raise TypeMismatchError("a point", value)
    if field_type == STRING_ARRAY:
        if not is_array(value):
            raise TypeMismatchError("a string[]", value)
        parts: list[str] = []
        for element in value:
            if is_null(element):
                raise NullInArrayError(value)
            if is_undefined(element):
                raise UndefinedInArrayError(value)
            text = to_string(element)
            if field_def.separator in text:
                raise TypeMismatchError(f"a string[] element without the separator {field_def.separator!r}", value)
            parts.append(text)
        return field_def.separator.join(parts)
    return to_string(value)


def from_flat_record(schema: Schema, fields: Mapping[str, str]) -> dict[str, Any]:
    """
    Convert a stored hash back into typed application data. Unknown fields are
    returned as the strings the store holds.
    """
    data: dict[str, Any] = {}
    for key, raw in fields.items():
        field_def = schema.get(key)
        data[key] = raw if field_def is None else _decode_field(field_def, raw)
    return data


def _decode_field(field_def: FieldDefinition, raw: Any) -> Any:
    if not is_string(raw):
        raise TypeMismatchError("a string", raw, source=STORE)

    field_type = field_def.type
    if field_type == "boolean":
        if raw in ("1", "0"):
            return raw == "1"
        raise TypeMismatchError('"1" or "0" for a boolean', raw, source=STORE)
    if field_type == "number":
        if _NUMERIC_RE.match(raw):
            return _parse_number(raw)
        raise TypeMismatchError("a numeric string", raw, source=STORE)
    if field_type == "date":
        if _NUMERIC_RE.match(raw):
            when = epoch_to_date(_parse_number(raw))
            if when is not None:
                return when
        raise TypeMismatchError("a numeric string containing an epoch date", raw, source=STORE)
    if field_type == "point":
        if is_point_string(raw):
            return string_to_point(raw)
        raise TypeMismatchError("a point string", raw, source=STORE)
    if field_type == STRING_ARRAY:
        return raw.split(field_def.separator) if raw else []
    return raw


def _parse_number(raw: str) -> int | float:
    text = raw.strip()
    if re.fullmatch(r"-?\d+", text):
        return int(text)
    return float(text)
