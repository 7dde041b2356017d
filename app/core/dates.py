"""
Date helpers shared by models, lifecycle rules and metrics.
All calendar windows are computed in UTC.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utcnow() -> datetime:
    """Timezone-aware current UTC time"""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite returns them without tzinfo)"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def month_start(now: datetime) -> datetime:
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def previous_month_start(now: datetime) -> datetime:
    start = month_start(now)
    return month_start(start - timedelta(days=1))


def quarter_start(now: datetime) -> datetime:
    first_month = ((now.month - 1) // 3) * 3 + 1
    return month_start(now).replace(month=first_month)


def year_start(now: datetime) -> datetime:
    return month_start(now).replace(month=1)


def week_start(now: datetime) -> datetime:
    """Monday 00:00 of the ISO week containing ``now``"""
    day = now.replace(hour=0, minute=0, second=0, microsecond=0)
    return day - timedelta(days=day.weekday())


def add_days(value: datetime, days: int) -> datetime:
    return value + timedelta(days=days)
