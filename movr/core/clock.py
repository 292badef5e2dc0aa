"""Clock helpers — timezone-aware UTC timestamps.

Invariants:
    - Every timestamp written by the core is timezone-aware UTC
    - Naive datetimes read back from stores that drop tzinfo (SQLite) are UTC
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to a naive datetime; convert an aware one."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
