from __future__ import annotations

import asyncio
from types import SimpleNamespace

import pytest
from sqlalchemy.exc import DBAPIError
from sqlalchemy.orm.exc import StaleDataError

from app.core.errors import ConsistencyConflictError
from app.game.sessions.completion import runner
from app.game.sessions.completion.service import SessionCompletionService
from app.game.sessions.completion.types import GameSessionCompleted
from tests.gamification_fakes import NOW_UTC, FakeSessionLocal, FakeStore


class _DriverError(Exception):
    def __init__(self, sqlstate: str) -> None:
        super().__init__(f"sqlstate {sqlstate}")
        self.sqlstate = sqlstate


def _db_error(sqlstate: str) -> DBAPIError:
    return DBAPIError("UPDATE customers SET total_points = $1", {}, _DriverError(sqlstate))


def _event(session_id: str = "gs_1", *, points_earned: int = 10) -> GameSessionCompleted:
    return GameSessionCompleted(
        session_id=session_id,
        customer_id="cus_1",
        merchant_id="m_1",
        game_type="spin-win",
        score=100,
        points_earned=points_earned,
        was_completed=True,
        difficulty_level="easy",
        session_duration=60,
    )


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake_store = FakeStore()
    fake_store.install(monkeypatch)
    monkeypatch.setattr(runner, "SessionLocal", FakeSessionLocal(fake_store))
    monkeypatch.setattr(
        runner,
        "get_settings",
        lambda: SimpleNamespace(
            session_completion_max_attempts=3,
            session_completion_retry_backoff_base_ms=50,
            session_completion_retry_backoff_max_ms=1000,
        ),
    )
    monkeypatch.setattr(runner, "retry_backoff_ms", lambda **kwargs: 0)
    return fake_store


def test_retry_backoff_ms_grows_and_caps() -> None:
    first = runner.retry_backoff_ms(attempt=1, base_ms=50, max_ms=1000)
    third = runner.retry_backoff_ms(attempt=3, base_ms=50, max_ms=1000)
    capped = runner.retry_backoff_ms(attempt=12, base_ms=50, max_ms=1000)

    assert 50 <= first <= 62
    assert 200 <= third <= 250
    assert capped == 1000


@pytest.mark.parametrize(
    ("exc", "expected"),
    [
        (_db_error("40001"), True),
        (_db_error("40P01"), True),
        (_db_error("23505"), True),
        (_db_error("23503"), False),
        (StaleDataError("version mismatch"), True),
        (ValueError("boom"), False),
    ],
)
def test_is_transient_conflict(exc: BaseException, expected: bool) -> None:
    assert runner.is_transient_conflict(exc) is expected


async def test_process_retries_transient_conflict_then_succeeds(store: FakeStore, monkeypatch) -> None:
    customer = store.add_customer()
    store.add_game_session()
    original_complete = SessionCompletionService.complete
    calls = {"count": 0}

    async def _flaky_complete(session, *, event, now_utc):
        calls["count"] += 1
        if calls["count"] == 1:
            raise _db_error("40001")
        return await original_complete(session, event=event, now_utc=now_utc)

    monkeypatch.setattr(SessionCompletionService, "complete", _flaky_complete)

    result = await runner.process_session_completed(_event(), now_utc=NOW_UTC)

    assert calls["count"] == 2
    assert result.idempotent_replay is False
    assert customer.total_points == 10


async def test_process_raises_consistency_conflict_after_max_attempts(
    store: FakeStore,
    monkeypatch,
) -> None:
    calls = {"count": 0}

    async def _always_conflicting(session, *, event, now_utc):
        calls["count"] += 1
        raise _db_error("40P01")

    monkeypatch.setattr(SessionCompletionService, "complete", _always_conflicting)

    with pytest.raises(ConsistencyConflictError):
        await runner.process_session_completed(_event(), now_utc=NOW_UTC)

    assert calls["count"] == 3


async def test_process_does_not_retry_permanent_database_errors(store: FakeStore, monkeypatch) -> None:
    calls = {"count": 0}

    async def _broken(session, *, event, now_utc):
        calls["count"] += 1
        raise _db_error("23503")

    monkeypatch.setattr(SessionCompletionService, "complete", _broken)

    with pytest.raises(DBAPIError):
        await runner.process_session_completed(_event(), now_utc=NOW_UTC)

    assert calls["count"] == 1


async def test_concurrent_sessions_for_same_customer_are_serialized(store: FakeStore) -> None:
    customer = store.add_customer()
    store.add_game_session("gs_1")
    store.add_game_session("gs_2")

    await asyncio.gather(
        runner.process_session_completed(_event("gs_1"), now_utc=NOW_UTC),
        runner.process_session_completed(_event("gs_2"), now_utc=NOW_UTC),
    )

    entries = sorted(store.ledger_for("cus_1"), key=lambda entry: entry.id)
    assert customer.total_points == 20
    assert customer.games_played == 2
    assert [(entry.balance_before, entry.balance_after) for entry in entries] == [(0, 10), (10, 20)]
    assert store.ledger_sum("cus_1") == 20
