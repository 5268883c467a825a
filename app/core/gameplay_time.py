from __future__ import annotations

from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from app.core.config import get_settings


def gameplay_zone() -> ZoneInfo:
    return ZoneInfo(get_settings().gameplay_timezone)


def gameplay_local_date(now_utc: datetime) -> date:
    """Converts a UTC instant to the calendar date of the gameplay timezone."""
    return now_utc.astimezone(gameplay_zone()).date()


def local_midnight_utc(local_date: date) -> datetime:
    return datetime.combine(local_date, time.min, tzinfo=gameplay_zone()).astimezone(timezone.utc)


def local_day_bounds_utc(now_utc: datetime) -> tuple[datetime, datetime]:
    """Returns the [start, end) UTC bounds of the gameplay-local day containing now_utc."""
    local_date = gameplay_local_date(now_utc)
    return local_midnight_utc(local_date), local_midnight_utc(local_date + timedelta(days=1))
