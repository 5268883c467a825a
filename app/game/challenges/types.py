from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class ChallengeActivity:
    game_type: str
    score: int | None
    points_earned: int
    occurred_at: datetime
    session_id: str


@dataclass(slots=True)
class ChallengeProgressDelta:
    challenge_id: str
    user_challenge_id: str
    challenge_type: str
    old_progress: int
    new_progress: int
    target_value: int
    completed: bool
    reward_points_awarded: int
    reward_entry_id: int | None


@dataclass(slots=True)
class ChallengeParticipantView:
    user_challenge_id: str
    customer_id: str
    current_progress: int
    target_value: int
    is_completed: bool
    completed_at: datetime | None
    started_at: datetime


@dataclass(slots=True)
class ChallengeJoinResult:
    user_challenge_id: str
    challenge_id: str
    customer_id: str
    current_participants: int
    started_at: datetime


@dataclass(slots=True)
class ChallengeCompletionResult:
    user_challenge_id: str
    challenge_id: str
    customer_id: str
    current_progress: int
    target_value: int
    completed_at: datetime
    reward_points_awarded: int
    reward_entry_id: int | None
