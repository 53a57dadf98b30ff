# course_chat/core/freshness.py
from datetime import datetime, timezone


def as_utc(ts: datetime) -> datetime:
    # sqlite drops tzinfo, everything we store is UTC
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def is_fresh(timestamp: datetime | None, threshold_seconds: float, now: datetime) -> bool:
    """True when `timestamp` is strictly younger than `threshold_seconds`.

    Used for presence (staleness floor) and typing indicators (TTL); a missing
    timestamp is never fresh.
    """
    if timestamp is None:
        return False
    age = (as_utc(now) - as_utc(timestamp)).total_seconds()
    return age < threshold_seconds
