from __future__ import annotations

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any


class _Undefined:
    """
    Marker for a key that is present but holds no value. Encoding drops such
    keys instead of writing null.
    """

    _instance: "_Undefined | None" = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __copy__(self) -> "_Undefined":
        return self

    def __deepcopy__(self, memo: dict[int, Any]) -> "_Undefined":
        return self

    def __reduce__(self) -> str:
        return "UNDEFINED"


UNDEFINED = _Undefined()


@dataclass(frozen=True)
class Point:
    longitude: float
    latitude: float


_NUMBER = r"-?\d+(?:\.\d+)?(?:[eE][-+]?\d+)?"
POINT_STRING_RE = re.compile(rf"^({_NUMBER}),({_NUMBER})$")


def is_undefined(value: Any) -> bool:
    return value is UNDEFINED


def is_null(value: Any) -> bool:
    return value is None


def is_defined(value: Any) -> bool:
    return value is not UNDEFINED


def is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


def is_number(value: Any) -> bool:
    # bool is an int subclass in Python but never a number here.
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_string(value: Any) -> bool:
    return isinstance(value, str)


def is_date(value: Any) -> bool:
    return isinstance(value, (datetime, date))


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def is_object(value: Any) -> bool:
    return isinstance(value, dict)


def is_point(value: Any) -> bool:
    if isinstance(value, Point):
        return is_number(value.longitude) and is_number(value.latitude)
    if isinstance(value, Mapping) and set(value.keys()) == {"longitude", "latitude"}:
        return is_number(value["longitude"]) and is_number(value["latitude"])
    return False


def is_point_string(value: Any) -> bool:
    return isinstance(value, str) and POINT_STRING_RE.match(value) is not None


def format_number(value: int | float) -> str:
    """
    Render a number the way JSON text does: integral floats lose their ".0".
    """
    if isinstance(value, float):
        if math.isfinite(value) and value.is_integer():
            return str(int(value))
        return repr(value)
    return str(value)


def format_boolean(value: bool) -> str:
    return "true" if value else "false"


def _compact(seconds: float) -> int | float:
    return int(seconds) if float(seconds).is_integer() else seconds


def date_to_epoch(value: date) -> int | float:
    """
    Seconds since the Unix epoch. Naive datetimes and plain dates are read as UTC.
    """
    if not isinstance(value, datetime):
        value = datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return _compact(value.timestamp())


def iso_date_to_epoch(value: str) -> int | float | None:
    """Returns None when the text is not an ISO-8601 date."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except ValueError:
        return None
    return date_to_epoch(parsed)


def epoch_to_date(value: int | float) -> datetime | None:
    """Returns None when the epoch is outside the range datetime can hold."""
    try:
        return datetime.fromtimestamp(value, tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        return None


def point_to_string(value: Point | Mapping[str, Any]) -> str:
    if isinstance(value, Point):
        longitude, latitude = value.longitude, value.latitude
    else:
        longitude, latitude = value["longitude"], value["latitude"]
    return f"{format_number(longitude)},{format_number(latitude)}"


def string_to_point(value: str) -> Point:
    match = POINT_STRING_RE.match(value)
    if match is None:
        raise ValueError(f"not a point string: {value!r}")
    return Point(longitude=float(match.group(1)), latitude=float(match.group(2)))


def point_to_object(value: Point) -> dict[str, float]:
    return {"longitude": value.longitude, "latitude": value.latitude}
