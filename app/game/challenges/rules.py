from __future__ import annotations

from datetime import datetime

from app.db.models.challenges import Challenge
from app.game.challenges.constants import (
    CHALLENGE_DAILY_STREAK,
    CHALLENGE_GAME_MASTER,
    CHALLENGE_POINTS_COLLECTOR,
)
from app.game.challenges.types import ChallengeActivity


def progress_increment(
    *,
    challenge_type: str,
    target_game_type: str | None,
    activity: ChallengeActivity,
    first_session_today: bool,
) -> int:
    if challenge_type == CHALLENGE_GAME_MASTER:
        if target_game_type is None or target_game_type == activity.game_type:
            return 1
        return 0
    if challenge_type == CHALLENGE_POINTS_COLLECTOR:
        return max(0, activity.points_earned)
    if challenge_type == CHALLENGE_DAILY_STREAK:
        return 1 if first_session_today else 0
    # social challenges progress outside of gameplay
    return 0


def clamp_progress(*, current_progress: int, increment: int, target_value: int) -> int:
    return min(current_progress + increment, target_value)


def has_free_slot(challenge: Challenge) -> bool:
    if challenge.max_participants is None:
        return True
    return challenge.current_participants < challenge.max_participants


def is_challenge_joinable(challenge: Challenge, *, now_utc: datetime) -> bool:
    return challenge.is_active and challenge.end_date >= now_utc


def is_challenge_running(challenge: Challenge, *, now_utc: datetime) -> bool:
    return challenge.is_active and challenge.start_date <= now_utc <= challenge.end_date
