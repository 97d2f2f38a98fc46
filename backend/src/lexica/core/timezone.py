"""UTC time helpers.

Every timestamp written to or compared against the database is an aware UTC
datetime. SQLModel stores them without offset in SQLite and hands them back
as UTC, so ordering and retry gating compare like with like.
"""

from datetime import datetime, timedelta, timezone


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def utc_after(seconds: float) -> datetime:
    """Return the aware UTC time ``seconds`` from now (negative for the past)."""
    return utcnow() + timedelta(seconds=seconds)
