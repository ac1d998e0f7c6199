"""Scalar conversion table.

Conversions are deliberately narrow: text, numbers, bools, durations and
dates convert between each other where the meaning is unambiguous, and
everything else raises `ConversionError`.
"""

import datetime
import re
from typing import Any, get_origin

from layerconf.exceptions import ConversionError

_DURATION_UNITS = {
    "ns": 0.001,
    "us": 1.0,
    "µs": 1.0,
    "ms": 1_000.0,
    "s": 1_000_000.0,
    "m": 60_000_000.0,
    "h": 3_600_000_000.0,
}

_DURATION_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|ms|s|m|h)")

_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def type_name(tp: Any) -> str:
    """Readable name of a type for error messages."""
    return getattr(tp, "__name__", None) or str(tp)


def parse_duration(text: str) -> datetime.timedelta:
    """Parse a duration such as `300ms`, `1h30m` or `-1.5s`.

    Args:
        text: Duration text. Units are ns, us (or µs), ms, s, m and h.

    Returns:
        The duration as a timedelta.

    Raises:
        ValueError: If the text is not a valid duration.
    """
    s = text.strip()
    sign = 1
    if s[:1] in ("-", "+"):
        sign = -1 if s[0] == "-" else 1
        s = s[1:]

    if s == "0":
        return datetime.timedelta(0)
    if not s:
        raise ValueError(f"invalid duration {text!r}")

    micros = 0.0
    pos = 0
    while pos < len(s):
        match = _DURATION_PART.match(s, pos)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        micros += _DURATION_UNITS[unit] * float(number)
        pos = match.end()

    return datetime.timedelta(microseconds=sign * micros)


def format_scalar(value: Any) -> str:
    """Text form of a scalar, with YAML-style bools."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, bytes):
        return value.decode()
    if isinstance(value, (datetime.date, datetime.time)):
        return value.isoformat()
    return str(value)


def zero_scalar(target: type) -> Any:
    """Zero value of a scalar type."""
    if target is datetime.timedelta:
        return datetime.timedelta(0)
    if issubclass(target, (str, int, float, bytes)):
        try:
            return target()
        except TypeError:
            return None
    return None


def _to_int(value: Any) -> int:
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return int(value.strip(), 10)
    raise TypeError


def _to_float(value: Any) -> float:
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        return float(value.strip())
    raise TypeError


def _to_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        text = value.strip()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValueError(f"invalid boolean {value!r}")
    raise TypeError


def _to_timedelta(value: Any) -> datetime.timedelta:
    if isinstance(value, datetime.timedelta):
        return value
    if isinstance(value, bool):
        raise TypeError
    if isinstance(value, (int, float)):
        return datetime.timedelta(seconds=value)
    if isinstance(value, str):
        return parse_duration(value)
    raise TypeError


def _to_datetime(value: Any) -> datetime.datetime:
    if isinstance(value, datetime.datetime):
        return value
    if isinstance(value, str):
        return datetime.datetime.fromisoformat(value.strip())
    raise TypeError


def _to_date(value: Any) -> datetime.date:
    if isinstance(value, datetime.datetime):
        raise TypeError
    if isinstance(value, datetime.date):
        return value
    if isinstance(value, str):
        return datetime.date.fromisoformat(value.strip())
    raise TypeError


def _to_bytes(value: Any) -> bytes:
    if isinstance(value, bytes):
        return value
    if isinstance(value, str):
        return value.encode()
    raise TypeError


# Checked in order: bool before int, datetime before date
_CONVERTERS = (
    (bool, _to_bool),
    (str, format_scalar),
    (int, _to_int),
    (float, _to_float),
    (bytes, _to_bytes),
    (datetime.timedelta, _to_timedelta),
    (datetime.datetime, _to_datetime),
    (datetime.date, _to_date),
)


def is_scalar_type(target: Any) -> bool:
    """Check whether the conversion table covers `target`."""
    if not isinstance(target, type) or get_origin(target) is not None:
        return False
    return any(
        issubclass(target, base) for base, _ in _CONVERTERS
    )


def convert_scalar(value: Any, target: Any) -> Any:
    """Convert a scalar to `target`.

    Args:
        value: A primitive value or None.
        target: The destination type.

    Returns:
        The converted value. None converts to the zero value of target.

    Raises:
        ConversionError: If the conversion is not covered or fails.
    """
    if target is Any or target is object:
        return value
    if not is_scalar_type(target):
        raise ConversionError(type_name(type(value)), type_name(target))
    if value is None:
        return zero_scalar(target)
    if type(value) is target:
        return value

    for base, converter in _CONVERTERS:
        if not issubclass(target, base):
            continue
        try:
            converted = converter(value)
            if target is not base:
                converted = target(converted)
        except TypeError:
            raise ConversionError(type_name(type(value)), type_name(target)) from None
        except ValueError as e:
            raise ConversionError(
                type_name(type(value)), type_name(target), str(e)
            ) from e
        return converted

    raise ConversionError(type_name(type(value)), type_name(target))
