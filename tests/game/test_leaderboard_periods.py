from __future__ import annotations

from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from app.game.leaderboards.errors import LeaderboardPeriodError
from app.game.leaderboards.periods import parse_period_types, resolve_period

UTC = timezone.utc
NOW_UTC = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)


def _use_timezone(monkeypatch, name: str) -> None:
    monkeypatch.setattr(
        "app.core.gameplay_time.get_settings",
        lambda: SimpleNamespace(gameplay_timezone=name),
    )


def test_resolve_period_daily_weekly_monthly_in_utc(monkeypatch) -> None:
    _use_timezone(monkeypatch, "UTC")

    daily = resolve_period("daily", now_utc=NOW_UTC)
    weekly = resolve_period("weekly", now_utc=NOW_UTC)
    monthly = resolve_period("monthly", now_utc=NOW_UTC)

    assert (daily.start_utc, daily.end_utc) == (
        datetime(2026, 10, 14, tzinfo=UTC),
        datetime(2026, 10, 15, tzinfo=UTC),
    )
    assert (weekly.start_utc, weekly.end_utc) == (
        datetime(2026, 10, 12, tzinfo=UTC),
        datetime(2026, 10, 19, tzinfo=UTC),
    )
    assert (monthly.start_utc, monthly.end_utc) == (
        datetime(2026, 10, 1, tzinfo=UTC),
        datetime(2026, 11, 1, tzinfo=UTC),
    )


def test_resolve_period_follows_gameplay_timezone(monkeypatch) -> None:
    _use_timezone(monkeypatch, "Europe/Berlin")

    daily = resolve_period("daily", now_utc=datetime(2026, 10, 14, 23, 30, tzinfo=UTC))

    assert daily.start_utc == datetime(2026, 10, 14, 22, 0, tzinfo=UTC)
    assert daily.end_utc == datetime(2026, 10, 15, 22, 0, tzinfo=UTC)


def test_resolve_period_monthly_rolls_over_year(monkeypatch) -> None:
    _use_timezone(monkeypatch, "UTC")

    monthly = resolve_period("monthly", now_utc=datetime(2026, 12, 31, 23, 59, tzinfo=UTC))

    assert monthly.start_utc == datetime(2026, 12, 1, tzinfo=UTC)
    assert monthly.end_utc == datetime(2027, 1, 1, tzinfo=UTC)


def test_resolve_period_alltime_has_stable_start() -> None:
    first = resolve_period("alltime", now_utc=NOW_UTC)
    later = resolve_period("alltime", now_utc=datetime(2031, 1, 1, tzinfo=UTC))

    assert first.start_utc == later.start_utc == datetime(1970, 1, 1, tzinfo=UTC)
    assert first.end_utc > NOW_UTC


def test_resolve_period_rejects_unknown_type() -> None:
    with pytest.raises(LeaderboardPeriodError):
        resolve_period("hourly", now_utc=NOW_UTC)


def test_parse_period_types_normalizes_and_deduplicates() -> None:
    assert parse_period_types(" Daily, alltime,,daily ") == ("daily", "alltime")
    assert parse_period_types("") == ()

    with pytest.raises(LeaderboardPeriodError):
        parse_period_types("daily,yearly")
