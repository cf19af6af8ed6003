"""Clock helpers — timezone-aware UTC timestamps.

Invariants:
    - Every timestamp the domain compares is timezone-aware UTC

Design Decisions:
    - as_utc() exists because SQLite hands back naive datetimes even for
      DateTime(timezone=True) columns; Postgres returns aware ones
"""

from datetime import datetime, timezone


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes; convert aware ones to UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
