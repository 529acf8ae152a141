from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_expired(expires_at: Optional[datetime], now: Optional[datetime] = None) -> bool:
    if expires_at is None:
        return False
    return as_utc(expires_at) <= (now or utcnow())


def next_after(previous: Optional[datetime]) -> datetime:
    """Current time, nudged forward so it is strictly later than `previous`."""
    now = utcnow()
    previous = as_utc(previous)
    if previous is not None and now <= previous:
        return previous + timedelta(microseconds=1)
    return now
