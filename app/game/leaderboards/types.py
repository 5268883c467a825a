from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class PeriodWindow:
    period_type: str
    start_utc: datetime
    end_utc: datetime


@dataclass(slots=True)
class LeaderboardEntrySnapshot:
    entry_id: int
    merchant_id: str
    customer_id: str
    game_type: str
    period_type: str
    period_start: datetime
    period_end: datetime
    rank_position: int
    best_score: int
    games_played: int
    total_points: int


@dataclass(slots=True)
class LeaderboardRecordResult:
    entry: LeaderboardEntrySnapshot
    created: bool


@dataclass(slots=True)
class StandingView:
    standing: int
    customer_id: str
    best_score: int
    games_played: int
    total_points: int
    rank_position: int
