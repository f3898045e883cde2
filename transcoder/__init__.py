from __future__ import annotations

from .document import decode_value, encode_value, from_store_document, to_store_document
from .flat import from_flat_record, to_flat_record
from .paths import FieldPath, PathMatch, default_path, parse_path, resolve
from .schema import FieldDefinition, FieldType, Schema
from .values import UNDEFINED, Point

__all__ = [
    "to_store_document",
    "from_store_document",
    "encode_value",
    "decode_value",
    "to_flat_record",
    "from_flat_record",
    "FieldPath",
    "PathMatch",
    "default_path",
    "parse_path",
    "resolve",
    "FieldDefinition",
    "FieldType",
    "Schema",
    "Point",
    "UNDEFINED",
]
