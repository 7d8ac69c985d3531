"""Calendar helpers.

Stored dates are canonical ``YYYY-MM-DD`` strings so that lexical and
chronological order agree.
"""

from __future__ import annotations

import re
from datetime import date, datetime, timedelta, timezone
from typing import Iterator, Optional

_LOOSE_DATE = re.compile(r"^\s*(\d{4})-(\d{1,2})-(\d{1,2})\s*$")


def parse_date(value: object) -> Optional[date]:
    """Parse a ``Y-M-D`` date, accepting non-zero-padded month/day. Returns None if invalid."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    match = _LOOSE_DATE.match(str(value or ""))
    if not match:
        return None
    year, month, day = (int(part) for part in match.groups())
    try:
        return date(year, month, day)
    except ValueError:
        return None


def normalize_date_iso(value: object) -> Optional[str]:
    parsed = parse_date(value)
    return parsed.isoformat() if parsed else None


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def to_timestamp_iso(moment: datetime) -> str:
    """UTC ISO-8601 timestamp with millisecond precision and a ``Z`` suffix."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> Optional[datetime]:
    raw = (value or "").strip()
    if not raw:
        return None
    if raw.endswith("Z"):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def iso_weekday(value: str) -> int:
    """ISO weekday (Monday=1 .. Sunday=7) of a date string."""
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return parsed.isoweekday()


def add_days_iso(value: str, days: int) -> str:
    parsed = parse_date(value)
    if parsed is None:
        raise ValueError(f"Invalid date: {value!r}")
    return (parsed + timedelta(days=days)).isoformat()


def date_range(start: str, end: str) -> Iterator[str]:
    """Yield every date from ``start`` to ``end`` inclusive."""
    cursor = parse_date(start)
    last = parse_date(end)
    if cursor is None or last is None:
        raise ValueError(f"Invalid date range: {start!r}..{end!r}")
    while cursor <= last:
        yield cursor.isoformat()
        cursor += timedelta(days=1)
