"""
Driver value normalization.

Maps raw DBAPI scalars onto the closed, JSON-safe Scalar variant.
"""

from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from typing import Any, Union

Scalar = Union[None, str, int, float, bool]


def format_timestamp(value: datetime) -> str:
    """
    Render a timestamp as UTC RFC 3339 text with nanosecond precision.

    Trailing fractional zeros are trimmed and the fraction is omitted when
    zero, e.g. ``2025-01-02T03:04:05.000006Z``. Naive values are taken as UTC.
    """
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)

    text = (
        f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
        f"T{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
    )
    nanos = value.microsecond * 1000
    if nanos:
        text += "." + f"{nanos:09d}".rstrip("0")
    return text + "Z"


def format_time_of_day(value: timedelta) -> str:
    """Render a MySQL TIME value (returned as timedelta) as [-]HH:MM:SS[.ffffff]."""
    sign = "-" if value < timedelta(0) else ""
    value = abs(value)
    hours, remainder = divmod(value.days * 86400 + value.seconds, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = f"{sign}{hours:02d}:{minutes:02d}:{seconds:02d}"
    if value.microseconds:
        text += f".{value.microseconds:06d}"
    return text


def normalize_value(value: Any) -> Scalar:
    if value is None:
        return None
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).decode("utf-8", errors="replace")
    if isinstance(value, datetime):
        return format_timestamp(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, timedelta):
        return format_time_of_day(value)
    if isinstance(value, Decimal):
        return str(value)
    return value
