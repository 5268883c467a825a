from __future__ import annotations

import pytest

from app.game.sessions.completion.errors import EventValidationError
from app.game.sessions.completion.types import GameSessionCompleted
from app.game.sessions.completion.validation import (
    parse_session_completed,
    require_valid,
    validate_session_completed,
)


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "session_id": "gs_1",
        "customer_id": "cus_1",
        "merchant_id": "m_1",
        "game_type": "spin-win",
        "score": 120,
        "points_earned": 50,
        "was_completed": True,
        "difficulty_level": "hard",
        "session_duration": 95,
        "prize_won": None,
    }
    payload.update(overrides)
    return payload


def test_parse_session_completed_accepts_valid_payload() -> None:
    result = parse_session_completed(_payload())

    assert result.is_valid is True
    assert result.event == GameSessionCompleted(
        session_id="gs_1",
        customer_id="cus_1",
        merchant_id="m_1",
        game_type="spin-win",
        score=120,
        points_earned=50,
        was_completed=True,
        difficulty_level="hard",
        session_duration=95,
    )


def test_parse_session_completed_defaults_difficulty_to_medium() -> None:
    payload = _payload()
    del payload["difficulty_level"]

    result = parse_session_completed(payload)

    assert result.event is not None
    assert result.event.difficulty_level == "medium"


def test_parse_session_completed_reports_every_missing_field() -> None:
    result = parse_session_completed({"session_id": "gs_1", "game_type": "spin-win"})

    assert result.is_valid is False
    assert result.event is None
    assert set(result.errors) == {
        "customer_id is required",
        "merchant_id is required",
        "points_earned is required",
        "was_completed is required",
        "session_duration is required",
    }


@pytest.mark.parametrize(
    ("overrides", "expected_error"),
    [
        ({"points_earned": -1}, "points_earned must be a non-negative integer"),
        ({"points_earned": True}, "points_earned must be a non-negative integer"),
        ({"score": -5}, "score must be a non-negative integer"),
        ({"session_duration": "95"}, "session_duration must be a non-negative integer"),
        ({"was_completed": "yes"}, "was_completed must be a boolean"),
        ({"difficulty_level": "expert"}, "difficulty_level must be one of easy, medium, hard"),
        ({"customer_id": "  "}, "customer_id is required"),
        ({"game_type": "g" * 33}, "game_type must not exceed 32 characters"),
    ],
)
def test_parse_session_completed_rejects_malformed_values(
    overrides: dict[str, object],
    expected_error: str,
) -> None:
    result = parse_session_completed(_payload(**overrides))

    assert expected_error in result.errors


def test_score_may_be_absent_for_abandoned_sessions() -> None:
    result = parse_session_completed(_payload(score=None, was_completed=False))

    assert result.is_valid is True


def test_require_valid_raises_with_errors() -> None:
    invalid = validate_session_completed(
        GameSessionCompleted(
            session_id="",
            customer_id="cus_1",
            merchant_id="m_1",
            game_type="spin-win",
            score=None,
            points_earned=0,
            was_completed=False,
            difficulty_level="medium",
            session_duration=0,
        )
    )

    with pytest.raises(EventValidationError) as exc_info:
        require_valid(invalid)

    assert exc_info.value.errors == ("session_id is required",)
