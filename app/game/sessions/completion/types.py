from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.economy.points.types import LedgerEntrySnapshot
from app.game.challenges.types import ChallengeProgressDelta
from app.game.leaderboards.types import LeaderboardEntrySnapshot


class ProcessingStage(str, Enum):
    RECEIVED = "received"
    LEDGER_APPLIED = "ledger_applied"
    STATS_UPDATED = "stats_updated"
    CHALLENGES_EVALUATED = "challenges_evaluated"
    LEADERBOARD_UPDATED = "leaderboard_updated"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class GameSessionCompleted:
    session_id: str
    customer_id: str
    merchant_id: str
    game_type: str
    score: int | None
    points_earned: int
    was_completed: bool
    difficulty_level: str
    session_duration: int
    prize_won: str | None = None


@dataclass(frozen=True, slots=True)
class EventValidationResult:
    event: GameSessionCompleted | None
    errors: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors


@dataclass(slots=True)
class CustomerSummary:
    customer_id: str
    merchant_id: str
    total_points: int
    games_played: int
    total_session_duration: int
    average_session_duration: Decimal
    first_play_date: datetime | None
    last_play_date: datetime | None
    engagement_score: Decimal
    segment: str
    version: int


@dataclass(slots=True)
class SessionProcessingResult:
    session_id: str
    idempotent_replay: bool
    customer: CustomerSummary
    ledger_entry: LedgerEntrySnapshot | None
    challenge_deltas: list[ChallengeProgressDelta] = field(default_factory=list)
    leaderboard_entries: list[LeaderboardEntrySnapshot] = field(default_factory=list)
    stage: ProcessingStage = ProcessingStage.DONE
