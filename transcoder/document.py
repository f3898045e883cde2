from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel

from errors import CardinalityError, NullInArrayError, TypeMismatchError, UndefinedInArrayError

from .paths import FieldPath, PathMatch, resolve
from .schema import STRING_ARRAY, FieldType, Schema
from .values import (
    Point,
    date_to_epoch,
    epoch_to_date,
    format_boolean,
    format_number,
    is_array,
    is_boolean,
    is_date,
    is_null,
    is_number,
    is_object,
    is_point,
    is_point_string,
    is_string,
    is_undefined,
    iso_date_to_epoch,
    point_to_object,
    point_to_string,
    string_to_point,
)

STORE = "the store"


def _copy_input(data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    if isinstance(data, BaseModel):
        return _tuples_to_lists(data.model_dump())
    if not isinstance(data, Mapping):
        raise TypeMismatchError("an object", data)
    return _tuples_to_lists(copy.deepcopy(dict(data)))


def _tuples_to_lists(value: Any, seen: dict[int, Any] | None = None) -> Any:
    # Paths rewrite array slots in place, so every array must be a list.
    # `seen` keeps shared and circular references intact.
    if seen is None:
        seen = {}
    if id(value) in seen:
        return seen[id(value)]
    if isinstance(value, dict):
        seen[id(value)] = value
        for key, item in value.items():
            value[key] = _tuples_to_lists(item, seen)
        return value
    if isinstance(value, list):
        seen[id(value)] = value
        for i, item in enumerate(value):
            value[i] = _tuples_to_lists(item, seen)
        return value
    if isinstance(value, tuple):
        converted: list[Any] = []
        seen[id(value)] = converted
        converted.extend(_tuples_to_lists(item, seen) for item in value)
        return converted
    return value


def _fans_out(field_type: FieldType, path: FieldPath, matches: list[PathMatch]) -> bool:
    if field_type == STRING_ARRAY and path.fans_out:
        return True
    return len(matches) > 1


def to_store_document(schema: Schema, data: Mapping[str, Any] | BaseModel) -> dict[str, Any]:
    """
    Convert application data into the JSON document stored for it.

    Works on a deep copy; the caller's object is never modified.
    """
    doc = _copy_input(data)
    _encode_known(schema, doc)
    return _encode_unknown(doc)


def _encode_known(schema: Schema, doc: dict[str, Any]) -> None:
    for field_name, field_def in schema.items():
        path = schema.path_of(field_name)
        matches = resolve(path, doc)
        if not matches:
            continue
        if _fans_out(field_def.type, path, matches):
            _encode_many(field_def.type, path, matches)
        else:
            _encode_one(field_def.type, matches[0])


def _encode_one(field_type: FieldType, match: PathMatch) -> None:
    if is_undefined(match.value):
        if not match.in_array:
            match.location.remove()
        elif field_type == STRING_ARRAY:
            raise UndefinedInArrayError(match.parent)
        # Other array slots stay as they are; the unknown-field scan nulls them.
        return
    match.location.assign(encode_value(field_type, match.value))


def _encode_many(field_type: FieldType, path: FieldPath, matches: list[PathMatch]) -> None:
    if field_type != STRING_ARRAY:
        raise CardinalityError(path.expression)
    for match in matches:
        if is_null(match.value):
            raise NullInArrayError(match.parent)
        if is_undefined(match.value):
            if match.in_array:
                raise UndefinedInArrayError(match.parent)
            match.location.remove()
            continue
        match.location.assign(to_string(match.value))


def _encode_unknown(doc: dict[str, Any]) -> dict[str, Any]:
    for key, value in list(doc.items()):
        if is_undefined(value):
            del doc[key]
        elif is_object(value):
            doc[key] = _encode_unknown(value)
        elif isinstance(value, list):
            doc[key] = _null_undefined(value)
        elif is_date(value):
            doc[key] = date_to_epoch(value)
        elif isinstance(value, Point):
            doc[key] = point_to_object(value)
    return doc


def _null_undefined(value: Any) -> Any:
    """
    Arrays are otherwise left alone, but an UNDEFINED slot is written as null
    and UNDEFINED keys of objects inside arrays are dropped, as JSON text would.
    """
    if is_undefined(value):
        return None
    if isinstance(value, list):
        return [_null_undefined(item) for item in value]
    if isinstance(value, dict):
        return {k: _null_undefined(v) for k, v in value.items() if not is_undefined(v)}
    return value


def encode_value(field_type: FieldType, value: Any) -> Any:
    """Coerce one application value to its stored JSON form."""
    if is_null(value):
        return value

    if field_type == "boolean":
        if is_boolean(value):
            return value
        raise TypeMismatchError("a boolean", value)
    if field_type == "number":
        if is_number(value):
            return value
        raise TypeMismatchError("a number", value)
    if field_type == "date":
        if is_date(value):
            return date_to_epoch(value)
        if is_string(value):
            epoch = iso_date_to_epoch(value)
            if epoch is not None:
                return epoch
        elif is_number(value):
            return value
        raise TypeMismatchError("a date", value)
    if field_type == "point":
        if is_point(value):
            return point_to_string(value)
        raise TypeMismatchError("a point", value)
    if field_type in ("string", "text"):
        return to_string(value)
    if field_type == STRING_ARRAY:
        if is_array(value):
            return _array_to_strings(value)
        raise TypeMismatchError("a string[]", value)
    raise TypeMismatchError(f"a known field type (got {field_type!r})", value)


def to_string(value: Any) -> str:
    if is_boolean(value):
        return format_boolean(value)
    if is_number(value):
        return format_number(value)
    if is_string(value):
        return value
    raise TypeMismatchError("a string", value)


def _array_to_strings(array: list[Any] | tuple[Any, ...]) -> list[str]:
    strings: list[str] = []
    for value in array:
        if is_null(value):
            raise NullInArrayError(array)
        if is_undefined(value):
            raise UndefinedInArrayError(array)
        strings.append(to_string(value))
    return strings


def from_store_document(schema: Schema, document: Mapping[str, Any]) -> dict[str, Any]:
    """
    Convert a stored JSON document back into typed application data.

    Fields outside the schema are returned untouched.
    """
    if not isinstance(document, Mapping):
        raise TypeMismatchError("an object", document, source=STORE)
    data = copy.deepcopy(dict(document))
    for field_name, field_def in schema.items():
        path = schema.path_of(field_name)
        matches = resolve(path, data)
        if not matches:
            continue
        if field_def.type == STRING_ARRAY and _fans_out(field_def.type, path, matches):
            for match in matches:
                if is_null(match.value):
                    raise NullInArrayError(match.parent, source=STORE)
                match.location.assign(_stored_to_string(match.value))
        else:
            # Only the first match is rewritten; stored documents are trusted
            # to be schema-consistent, so no cardinality check here.
            first = matches[0]
            first.location.assign(decode_value(field_def.type, first.value))
    return data


def decode_value(field_type: FieldType, value: Any) -> Any:
    """Convert one stored JSON value to its application form."""
    if is_null(value):
        return value

    if field_type == "boolean":
        if is_boolean(value):
            return value
        raise TypeMismatchError("a value of true, false, or null for a boolean", value, source=STORE)
    if field_type == "number":
        if is_number(value):
            return value
        raise TypeMismatchError("a number", value, source=STORE)
    if field_type == "date":
        if is_number(value):
            when = epoch_to_date(value)
            if when is not None:
                return when
        raise TypeMismatchError("a number containing an epoch date", value, source=STORE)
    if field_type == "point":
        if is_point_string(value):
            return string_to_point(value)
        raise TypeMismatchError("a point string", value, source=STORE)
    if field_type in ("string", "text"):
        return _stored_to_string(value)
    if field_type == STRING_ARRAY:
        if not isinstance(value, list):
            raise TypeMismatchError("a string[]", value, source=STORE)
        strings: list[str] = []
        for element in value:
            if is_null(element):
                raise NullInArrayError(value, source=STORE)
            strings.append(_stored_to_string(element))
        return strings
    raise TypeMismatchError(f"a known field type (got {field_type!r})", value, source=STORE)


def _stored_to_string(value: Any) -> str:
    if is_string(value):
        return value
    if is_boolean(value):
        return format_boolean(value)
    if is_number(value):
        return format_number(value)
    raise TypeMismatchError("a string", value, source=STORE)
