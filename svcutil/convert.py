"""Helpers for optional values: defaults for missing values and epoch conversions."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta, timezone
from typing import TypeVar

T = TypeVar("T")
K = TypeVar("K")

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)
ZERO_DURATION = timedelta(0)


def _trunc_div(a: int, b: int) -> int:
    """Integer division rounding toward zero."""
    q = abs(a) // abs(b)
    return q if (a >= 0) == (b >= 0) else -q


def string_value(v: str | None) -> str:
    """Return ``v``, or an empty string when it is missing."""
    return v if v is not None else ""


def bool_value(v: bool | None) -> bool:
    """Return ``v``, or ``False`` when it is missing."""
    return v if v is not None else False


def int_value(v: int | None) -> int:
    """Return ``v``, or ``0`` when it is missing."""
    return v if v is not None else 0


def float_value(v: float | None) -> float:
    """Return ``v``, or ``0.0`` when it is missing."""
    return v if v is not None else 0.0


def time_value(v: datetime | None) -> datetime:
    """Return ``v``, or the zero time when it is missing."""
    return v if v is not None else ZERO_TIME


def duration_value(v: timedelta | None) -> timedelta:
    """Return ``v``, or a zero duration when it is missing."""
    return v if v is not None else ZERO_DURATION


def value_list(src: Iterable[T | None], zero: T) -> list[T]:
    """Return the items of ``src`` with every missing item replaced by ``zero``."""
    return [zero if item is None else item for item in src]


def value_map(src: Mapping[K, T | None]) -> dict[K, T]:
    """Return a copy of ``src`` without the entries whose value is missing."""
    return {key: val for key, val in src.items() if val is not None}


def seconds_time_value(v: int | None) -> datetime:
    """Turn a millisecond timestamp into a time truncated to whole seconds.

    A missing value gives the zero time.
    """
    if v is None:
        return ZERO_TIME
    return EPOCH + timedelta(seconds=_trunc_div(v, 1000))


def milliseconds_time_value(v: int | None) -> datetime:
    """Turn a millisecond timestamp into a time; a missing value gives the zero time."""
    if v is None:
        return ZERO_TIME
    return EPOCH + timedelta(milliseconds=v)


def time_unix_milli(t: datetime) -> int:
    """Return milliseconds since the Unix epoch; naive times are taken as UTC."""
    if t.tzinfo is None:
        t = t.replace(tzinfo=timezone.utc)
    micros = (t - EPOCH) // timedelta(microseconds=1)
    return _trunc_div(micros, 1000)


def bool_to_int(v: bool) -> int:
    """Return 1 for a true value and 0 otherwise."""
    return int(bool(v))