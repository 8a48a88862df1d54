"""Canonical day keys and instants for heterogeneous timestamp values."""

from __future__ import annotations

import re
from datetime import date, datetime, timezone

DAY_KEY_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_DATE_TIME_SEPARATORS = ("T", " ")


def normalize_day_key(value: object) -> str | None:
    """Return the ``YYYY-MM-DD`` day key for ``value`` or ``None``.

    Only ISO-8601 prefixed values are understood. Date objects are formatted
    from their literal calendar fields, without any timezone conversion.
    """
    if value is None:
        return None

    if isinstance(value, date):
        candidate = f"{value.year:04d}-{value.month:02d}-{value.day:02d}"
    elif isinstance(value, str):
        candidate = _date_prefix(value)
    else:
        candidate = _date_prefix(str(value))

    if candidate and DAY_KEY_PATTERN.match(candidate):
        return candidate
    return None


def parse_instant(value: object) -> datetime | None:
    """Parse ``value`` into a timezone-aware instant for display and ordering."""
    if value is None:
        return None
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, date):
        instant = datetime(value.year, value.month, value.day)
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            instant = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def day_label(day_key: str) -> str:
    """Short ``MM-DD`` axis label for a canonical day key."""
    return day_key[5:]


def _date_prefix(text: str) -> str:
    text = text.strip()
    for separator in _DATE_TIME_SEPARATORS:
        if separator in text:
            return text.split(separator, 1)[0]
    return text
