# wheelbot/utils/dates.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo


def as_utc(dt: datetime) -> datetime:
    # naive values coming back from the DB are UTC
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def to_naive_utc(dt: datetime) -> datetime:
    return as_utc(dt).replace(tzinfo=None)


def local_day(dt: datetime, tz: ZoneInfo) -> date:
    return as_utc(dt).astimezone(tz).date()


def start_of_local_day(d: date, tz: ZoneInfo) -> datetime:
    """Midnight of `d` in `tz`, returned as aware UTC."""
    return datetime.combine(d, time.min, tzinfo=tz).astimezone(timezone.utc)


def next_local_day_start(dt: datetime, tz: ZoneInfo) -> datetime:
    return start_of_local_day(local_day(dt, tz) + timedelta(days=1), tz)


def epoch_millis(dt: datetime) -> int:
    return int(as_utc(dt).timestamp() * 1000)


def format_wait(delta: timedelta) -> str:
    total_minutes = max(0, int(delta.total_seconds() // 60))
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours}h {minutes}m"
