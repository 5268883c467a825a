from __future__ import annotations

from datetime import date, datetime, timedelta

from app.core.gameplay_time import gameplay_local_date, local_midnight_utc
from app.game.leaderboards.constants import (
    ALLTIME_OPEN_WINDOW,
    ALLTIME_PERIOD_START,
    PERIOD_ALLTIME,
    PERIOD_DAILY,
    PERIOD_MONTHLY,
    PERIOD_TYPES,
    PERIOD_WEEKLY,
)
from app.game.leaderboards.errors import LeaderboardPeriodError
from app.game.leaderboards.types import PeriodWindow


def _next_month_start(local_date: date) -> date:
    if local_date.month == 12:
        return date(local_date.year + 1, 1, 1)
    return date(local_date.year, local_date.month + 1, 1)


def resolve_period(period_type: str, *, now_utc: datetime) -> PeriodWindow:
    """Returns the UTC window of the gameplay-local period containing now_utc.

    The all-time window is open ended: it starts at the Unix epoch and its end
    moves with now_utc, so entries are keyed by period_start only.
    """
    if period_type == PERIOD_ALLTIME:
        return PeriodWindow(
            period_type=period_type,
            start_utc=ALLTIME_PERIOD_START,
            end_utc=now_utc + ALLTIME_OPEN_WINDOW,
        )

    local_date = gameplay_local_date(now_utc)
    if period_type == PERIOD_DAILY:
        start_date = local_date
        end_date = local_date + timedelta(days=1)
    elif period_type == PERIOD_WEEKLY:
        start_date = local_date - timedelta(days=local_date.weekday())
        end_date = start_date + timedelta(days=7)
    elif period_type == PERIOD_MONTHLY:
        start_date = local_date.replace(day=1)
        end_date = _next_month_start(local_date)
    else:
        raise LeaderboardPeriodError(f"unknown period_type {period_type!r}")

    return PeriodWindow(
        period_type=period_type,
        start_utc=local_midnight_utc(start_date),
        end_utc=local_midnight_utc(end_date),
    )


def parse_period_types(raw: str) -> tuple[str, ...]:
    period_types: list[str] = []
    for chunk in raw.split(","):
        period_type = chunk.strip().lower()
        if not period_type:
            continue
        if period_type not in PERIOD_TYPES:
            raise LeaderboardPeriodError(f"unknown period_type {period_type!r}")
        if period_type not in period_types:
            period_types.append(period_type)
    return tuple(period_types)
