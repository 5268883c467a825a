from __future__ import annotations

from collections.abc import Mapping

from app.game.sessions.completion.constants import (
    DIFFICULTY_LEVELS,
    MAX_GAME_TYPE_LENGTH,
    MAX_IDENTIFIER_LENGTH,
    MAX_PRIZE_LENGTH,
)
from app.game.sessions.completion.errors import EventValidationError
from app.game.sessions.completion.types import EventValidationResult, GameSessionCompleted


def _is_int(value: object) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _identifier_error(name: str, value: object, *, max_length: int) -> str | None:
    if not isinstance(value, str) or not value.strip():
        return f"{name} is required"
    if len(value) > max_length:
        return f"{name} must not exceed {max_length} characters"
    return None


def validate_session_completed(event: GameSessionCompleted) -> EventValidationResult:
    errors: list[str] = []
    for name, value, max_length in (
        ("session_id", event.session_id, MAX_IDENTIFIER_LENGTH),
        ("customer_id", event.customer_id, MAX_IDENTIFIER_LENGTH),
        ("merchant_id", event.merchant_id, MAX_IDENTIFIER_LENGTH),
        ("game_type", event.game_type, MAX_GAME_TYPE_LENGTH),
    ):
        error = _identifier_error(name, value, max_length=max_length)
        if error is not None:
            errors.append(error)

    if event.score is not None and (not _is_int(event.score) or event.score < 0):
        errors.append("score must be a non-negative integer")
    if not _is_int(event.points_earned) or event.points_earned < 0:
        errors.append("points_earned must be a non-negative integer")
    if not _is_int(event.session_duration) or event.session_duration < 0:
        errors.append("session_duration must be a non-negative integer")
    if not isinstance(event.was_completed, bool):
        errors.append("was_completed must be a boolean")
    if event.difficulty_level not in DIFFICULTY_LEVELS:
        errors.append("difficulty_level must be one of easy, medium, hard")
    if event.prize_won is not None and (
        not isinstance(event.prize_won, str) or len(event.prize_won) > MAX_PRIZE_LENGTH
    ):
        errors.append(f"prize_won must be a string of at most {MAX_PRIZE_LENGTH} characters")

    if errors:
        return EventValidationResult(event=None, errors=tuple(errors))
    return EventValidationResult(event=event)


def parse_session_completed(payload: Mapping[str, object]) -> EventValidationResult:
    """Builds an event from a loosely typed payload (task arguments, request bodies)."""
    missing = [
        name
        for name in (
            "session_id",
            "customer_id",
            "merchant_id",
            "game_type",
            "points_earned",
            "was_completed",
            "session_duration",
        )
        if payload.get(name) is None
    ]
    if missing:
        return EventValidationResult(
            event=None,
            errors=tuple(f"{name} is required" for name in missing),
        )

    event = GameSessionCompleted(
        session_id=payload["session_id"],  # type: ignore[arg-type]
        customer_id=payload["customer_id"],  # type: ignore[arg-type]
        merchant_id=payload["merchant_id"],  # type: ignore[arg-type]
        game_type=payload["game_type"],  # type: ignore[arg-type]
        score=payload.get("score"),  # type: ignore[arg-type]
        points_earned=payload["points_earned"],  # type: ignore[arg-type]
        was_completed=payload["was_completed"],  # type: ignore[arg-type]
        difficulty_level=payload.get("difficulty_level") or "medium",  # type: ignore[arg-type]
        session_duration=payload["session_duration"],  # type: ignore[arg-type]
        prize_won=payload.get("prize_won"),  # type: ignore[arg-type]
    )
    return validate_session_completed(event)


def require_valid(result: EventValidationResult) -> GameSessionCompleted:
    if result.event is None:
        raise EventValidationError(result.errors)
    return result.event
