"""Temporal kinds and their ISO-8601 textual convention.

Four temporal kinds can be held by a primitive:

- ``datetime.datetime`` — a generic instant, always timezone-aware
  (naive values are taken as UTC), printed in UTC:
  ``YYYY-MM-DDTHH:MM:SS[.fff]Z``
- ``datetime.date`` — date only: ``YYYY-MM-DD``
- ``datetime.time`` — time only: ``HH:MM:SS[.fff][+HH:MM|Z]``
- ``Timestamp`` — a datetime tagged as a full-precision timestamp; printed
  like a generic instant but kept distinct through the XML type tags.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time, timedelta, timezone

_DATE_RE = re.compile(r"^(\d{4}-\d{2}-\d{2})(Z|[+-]\d{2}:?\d{2})?$")


class Timestamp(datetime):
    """A datetime carrying full timestamp precision."""

    @classmethod
    def from_datetime(cls, value: datetime) -> Timestamp:
        return cls(
            value.year,
            value.month,
            value.day,
            value.hour,
            value.minute,
            value.second,
            value.microsecond,
            tzinfo=value.tzinfo,
            fold=value.fold,
        )

    def __repr__(self) -> str:
        return f"Timestamp({print_datetime(self)!r})"


TEMPORAL_TYPES = (datetime, date, time)


def is_temporal(value: object) -> bool:
    return isinstance(value, TEMPORAL_TYPES)


def ensure_aware(value: datetime) -> datetime:
    """Return *value* with UTC attached when it carries no timezone."""
    if value.tzinfo is None or value.utcoffset() is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ---------------------------------------------------------------------------
# Printing
# ---------------------------------------------------------------------------

def _fraction(microsecond: int) -> str:
    if microsecond == 0:
        return ""
    if microsecond % 1000 == 0:
        return f".{microsecond // 1000:03d}"
    return f".{microsecond:06d}"


def _offset(delta: timedelta | None) -> str:
    if delta is None:
        return ""
    if not delta:
        return "Z"
    sign = "-" if delta < timedelta(0) else "+"
    minutes = abs(int(delta.total_seconds())) // 60
    return f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def print_datetime(value: datetime) -> str:
    utc = ensure_aware(value).astimezone(timezone.utc)
    return (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}"
        f"T{utc.hour:02d}:{utc.minute:02d}:{utc.second:02d}"
        f"{_fraction(utc.microsecond)}Z"
    )


def print_date(value: date) -> str:
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def print_time(value: time) -> str:
    return (
        f"{value.hour:02d}:{value.minute:02d}:{value.second:02d}"
        f"{_fraction(value.microsecond)}{_offset(value.utcoffset())}"
    )


def print_temporal(value: date | time) -> str:
    """Print any temporal kind using its own convention."""
    # datetime before date: every datetime is also a date
    if isinstance(value, datetime):
        return print_datetime(value)
    if isinstance(value, date):
        return print_date(value)
    return print_time(value)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def parse_datetime(text: str) -> datetime:
    """Parse an ISO-8601 date-time (or bare date) as an aware datetime.

    Raises ``ValueError`` on malformed text.
    """
    return ensure_aware(datetime.fromisoformat(text.strip()))


def parse_date(text: str) -> date:
    """Parse a date, accepting a trailing zone or a full date-time."""
    text = text.strip()
    match = _DATE_RE.match(text)
    if match:
        return date.fromisoformat(match.group(1))
    return parse_datetime(text).date()


def parse_time(text: str) -> time:
    """Parse a time of day, or take the time part of a full date-time."""
    text = text.strip()
    if "T" in text:
        return parse_datetime(text).timetz()
    return time.fromisoformat(text)


def parse_timestamp(text: str) -> Timestamp:
    return Timestamp.from_datetime(parse_datetime(text))
