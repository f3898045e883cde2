from __future__ import annotations

import json
from typing import Any


def dump_document(doc: Any) -> str:
    """
    Serialize a store document to the compact JSON text sent to the store.
    """
    return json.dumps(doc, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def load_document(raw: str | bytes | None) -> Any | None:
    """
    Parse JSON text returned by the store.

    Returns None for a missing reply or blank text. Invalid JSON raises.
    """
    if raw is None:
        return None
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    if not raw.strip():
        return None
    return json.loads(raw)


def safe_dumps(value: Any) -> str:
    """
    Render any value for an error message. Never raises: circular or non-JSON
    values fall back to repr().
    """
    try:
        return json.dumps(value, default=repr, sort_keys=True)
    except (TypeError, ValueError, RecursionError):
        try:
            return repr(value)
        except RecursionError:
            return f"<{type(value).__name__}>"
