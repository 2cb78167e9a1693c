"""UTC time helpers for the service layer."""

from __future__ import annotations

from datetime import UTC, datetime


def now_utc() -> datetime:
    return datetime.now(UTC)


def ensure_aware(value: datetime) -> datetime:
    """Label naive datetimes as UTC.

    SQLite drops the offset of ``DateTime(timezone=True)`` columns; every
    timestamp in this project is written in UTC, so the label is exact.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
