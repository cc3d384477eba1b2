"""Timestamp helpers.

All timestamps are stored as ISO 8601 strings in UTC.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def ensure_utc(moment: datetime) -> datetime:
    """Attach UTC to naive datetimes, convert aware ones."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def to_iso(moment: datetime) -> str:
    return ensure_utc(moment).isoformat()


def parse_iso(value: str) -> datetime:
    return ensure_utc(datetime.fromisoformat(value))


def to_epoch_ms(moment: datetime) -> int:
    """Milliseconds since the Unix epoch."""
    return int(ensure_utc(moment).timestamp() * 1000)


def add_days(moment: datetime, days: int) -> datetime:
    return moment + timedelta(days=days)
