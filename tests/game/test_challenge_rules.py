from __future__ import annotations

from datetime import timedelta

import pytest

from app.game.challenges.rules import (
    clamp_progress,
    has_free_slot,
    is_challenge_joinable,
    progress_increment,
)
from app.game.challenges.types import ChallengeActivity
from tests.gamification_fakes import NOW_UTC, FakeStore


def _activity(*, game_type: str = "spin-win", points_earned: int = 30) -> ChallengeActivity:
    return ChallengeActivity(
        game_type=game_type,
        score=120,
        points_earned=points_earned,
        occurred_at=NOW_UTC,
        session_id="gs_1",
    )


@pytest.mark.parametrize(
    ("challenge_type", "target_game_type", "activity_game_type", "first_today", "expected"),
    [
        ("game_master", None, "spin-win", False, 1),
        ("game_master", "spin-win", "spin-win", False, 1),
        ("game_master", "memory", "spin-win", False, 0),
        ("points_collector", None, "spin-win", False, 30),
        ("points_collector", "memory", "spin-win", False, 30),
        ("daily_streak", None, "spin-win", True, 1),
        ("daily_streak", None, "spin-win", False, 0),
        ("social", None, "spin-win", True, 0),
    ],
)
def test_progress_increment_by_challenge_type(
    challenge_type: str,
    target_game_type: str | None,
    activity_game_type: str,
    first_today: bool,
    expected: int,
) -> None:
    increment = progress_increment(
        challenge_type=challenge_type,
        target_game_type=target_game_type,
        activity=_activity(game_type=activity_game_type),
        first_session_today=first_today,
    )

    assert increment == expected


def test_clamp_progress_never_exceeds_target() -> None:
    assert clamp_progress(current_progress=480, increment=30, target_value=500) == 500
    assert clamp_progress(current_progress=10, increment=5, target_value=500) == 15


def test_has_free_slot_respects_participant_cap() -> None:
    store = FakeStore()

    assert has_free_slot(store.add_challenge(max_participants=None, current_participants=999)) is True
    assert has_free_slot(store.add_challenge(max_participants=2, current_participants=1)) is True
    assert has_free_slot(store.add_challenge(max_participants=2, current_participants=2)) is False


def test_is_challenge_joinable_requires_active_and_not_ended() -> None:
    store = FakeStore()

    assert is_challenge_joinable(store.add_challenge(), now_utc=NOW_UTC) is True
    assert is_challenge_joinable(store.add_challenge(is_active=False), now_utc=NOW_UTC) is False
    assert (
        is_challenge_joinable(
            store.add_challenge(end_date=NOW_UTC - timedelta(seconds=1)),
            now_utc=NOW_UTC,
        )
        is False
    )
