from __future__ import annotations

import asyncio

import pytest

from app.core.errors import ConsistencyConflictError
from app.game.sessions.completion.errors import CustomerNotFoundError
from app.game.sessions.completion.types import GameSessionCompleted
from app.workers.tasks import session_completion


def _payload(**overrides: object) -> dict[str, object]:
    payload: dict[str, object] = {
        "session_id": "gs_1",
        "customer_id": "cus_1",
        "merchant_id": "m_1",
        "game_type": "spin-win",
        "score": 120,
        "points_earned": 50,
        "was_completed": True,
        "difficulty_level": "medium",
        "session_duration": 75,
    }
    payload.update(overrides)
    return payload


def test_task_returns_invalid_for_malformed_payload() -> None:
    result = session_completion.process_session_completed_task(_payload(points_earned=-1))
    assert result == "invalid"


def test_task_passes_parsed_event_to_async_job(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def fake_process_async(event: GameSessionCompleted) -> str:
        captured["event"] = event
        return "processed"

    monkeypatch.setattr(session_completion, "process_session_completed_async", fake_process_async)

    result = session_completion.process_session_completed_task(_payload())

    assert result == "processed"
    event = captured["event"]
    assert isinstance(event, GameSessionCompleted)
    assert event.session_id == "gs_1"
    assert event.points_earned == 50


def test_task_drops_events_that_can_never_succeed(monkeypatch) -> None:
    async def fake_process_async(event: GameSessionCompleted) -> str:
        raise CustomerNotFoundError(event.customer_id)

    monkeypatch.setattr(session_completion, "process_session_completed_async", fake_process_async)

    assert session_completion.process_session_completed_task(_payload()) == "dropped"


def test_task_schedules_retry_on_consistency_conflict(monkeypatch) -> None:
    captured: dict[str, object] = {}

    async def fake_process_async(event: GameSessionCompleted) -> str:
        raise ConsistencyConflictError(event.session_id)

    class _RetryScheduled(Exception):
        pass

    def fake_retry(*, exc, countdown, max_retries):
        captured["exc"] = exc
        captured["countdown"] = countdown
        captured["max_retries"] = max_retries
        return _RetryScheduled()

    monkeypatch.setattr(session_completion, "process_session_completed_async", fake_process_async)
    monkeypatch.setattr(session_completion.process_session_completed_task, "retry", fake_retry)

    with pytest.raises(_RetryScheduled):
        session_completion.process_session_completed_task(_payload())

    assert isinstance(captured["exc"], ConsistencyConflictError)
    assert captured["countdown"] == 1
    assert captured["max_retries"] == session_completion.TASK_MAX_RETRIES


def test_retry_backoff_seconds_doubles_and_caps() -> None:
    assert session_completion._retry_backoff_seconds(next_retry_attempt=1, backoff_max_seconds=60) == 1
    assert 4 <= session_completion._retry_backoff_seconds(next_retry_attempt=3, backoff_max_seconds=60) <= 5
    assert session_completion._retry_backoff_seconds(next_retry_attempt=12, backoff_max_seconds=60) == 60


def test_process_async_reports_duplicates(monkeypatch) -> None:
    class _Result:
        idempotent_replay = True

    async def fake_runner(event: GameSessionCompleted, *, now_utc) -> _Result:
        return _Result()

    monkeypatch.setattr(session_completion, "process_session_completed", fake_runner)

    event = GameSessionCompleted(
        session_id="gs_1",
        customer_id="cus_1",
        merchant_id="m_1",
        game_type="spin-win",
        score=None,
        points_earned=0,
        was_completed=False,
        difficulty_level="medium",
        session_duration=10,
    )

    assert asyncio.run(session_completion.process_session_completed_async(event)) == "duplicate"
