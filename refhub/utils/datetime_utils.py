# refhub/utils/datetime_utils.py
from datetime import datetime, timedelta, timezone
from typing import Optional


def now_utc() -> datetime:
    return datetime.now(timezone.utc)


def to_utc_aware(dt):
    # Mongo hands back naive UTC datetimes
    if dt is None:
        return None
    return dt if dt.tzinfo else dt.replace(tzinfo=timezone.utc)


def days_from_now(days: Optional[int]) -> Optional[datetime]:
    if not days:
        return None
    return now_utc() + timedelta(days=days)


def is_past(dt) -> bool:
    """True when ``dt`` is set and already behind the current UTC time."""
    dt = to_utc_aware(dt)
    return dt is not None and dt < now_utc()


def utc_day_start(dt: Optional[datetime] = None) -> datetime:
    dt = to_utc_aware(dt) or now_utc()
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)
