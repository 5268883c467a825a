from __future__ import annotations

import asyncio
from datetime import timedelta

import pytest

from app.core.errors import ConflictAlreadyCompletedError
from app.game.achievements.errors import (
    AchievementAlreadyUnlockedError,
    AchievementCustomerNotFoundError,
    AchievementNotFoundError,
)
from app.game.achievements.service import AchievementService
from tests.gamification_fakes import NOW_UTC, FakeSession, FakeSessionLocal, FakeStore


@pytest.fixture
def store(monkeypatch) -> FakeStore:
    fake_store = FakeStore()
    fake_store.install(monkeypatch)
    return fake_store


async def test_unlock_records_unlock_and_pays_bonus(store: FakeStore) -> None:
    customer = store.add_customer(total_points=20)
    store.add_achievement(tier="gold", points_reward=75)

    result = await AchievementService.unlock(
        FakeSession(store),
        achievement_id="ach_1",
        customer_id="cus_1",
        progress_data={"games_played": 10},
        now_utc=NOW_UTC,
    )

    assert result.achievement_id == "ach_1"
    assert result.tier == "gold"
    assert result.points_awarded == 75
    assert result.unlocked_at == NOW_UTC
    assert result.reward_entry_id is not None
    assert customer.total_points == 95
    assert store.ledger_sum("cus_1") == 95

    unlock = store.user_achievements[result.user_achievement_id]
    assert unlock.progress_data == {"games_played": 10}

    bonus = store.ledger[-1]
    assert bonus.transaction_type == "bonus"
    assert bonus.reference_id == "achievement:ach_1"
    assert bonus.balance_before == 20
    assert bonus.balance_after == 95


async def test_unlock_twice_is_a_conflict_and_pays_once(store: FakeStore) -> None:
    customer = store.add_customer()
    store.add_achievement(points_reward=50)

    await AchievementService.unlock(
        FakeSession(store),
        achievement_id="ach_1",
        customer_id="cus_1",
        now_utc=NOW_UTC,
    )
    with pytest.raises(AchievementAlreadyUnlockedError) as exc_info:
        await AchievementService.unlock(
            FakeSession(store),
            achievement_id="ach_1",
            customer_id="cus_1",
            now_utc=NOW_UTC + timedelta(hours=1),
        )

    assert isinstance(exc_info.value, ConflictAlreadyCompletedError)
    assert len(store.user_achievements) == 1
    assert customer.total_points == 50
    assert store.ledger_sum("cus_1") == 50


async def test_concurrent_unlock_pays_once(store: FakeStore) -> None:
    customer = store.add_customer()
    store.add_achievement(points_reward=50)
    session_local = FakeSessionLocal(store)

    async def attempt() -> str:
        try:
            async with session_local.begin() as session:
                await AchievementService.unlock(
                    session,
                    achievement_id="ach_1",
                    customer_id="cus_1",
                    now_utc=NOW_UTC,
                )
        except AchievementAlreadyUnlockedError:
            return "conflict"
        return "unlocked"

    outcomes = await asyncio.gather(attempt(), attempt())

    assert sorted(outcomes) == ["conflict", "unlocked"]
    assert len(store.user_achievements) == 1
    assert customer.total_points == 50


async def test_unlock_without_reward_writes_no_ledger_entry(store: FakeStore) -> None:
    customer = store.add_customer()
    store.add_achievement(points_reward=0)

    result = await AchievementService.unlock(
        FakeSession(store),
        achievement_id="ach_1",
        customer_id="cus_1",
        now_utc=NOW_UTC,
    )

    assert result.points_awarded == 0
    assert result.reward_entry_id is None
    assert store.ledger == []
    assert customer.total_points == 0


async def test_unlock_rejects_inactive_unknown_and_foreign_customer(store: FakeStore) -> None:
    store.add_customer()
    store.add_customer("cus_other", merchant_id="m_2")
    store.add_achievement()
    store.add_achievement("ach_off", is_active=False)

    with pytest.raises(AchievementNotFoundError):
        await AchievementService.unlock(
            FakeSession(store),
            achievement_id="ach_off",
            customer_id="cus_1",
            now_utc=NOW_UTC,
        )
    with pytest.raises(AchievementNotFoundError):
        await AchievementService.unlock(
            FakeSession(store),
            achievement_id="ach_missing",
            customer_id="cus_1",
            now_utc=NOW_UTC,
        )
    with pytest.raises(AchievementCustomerNotFoundError):
        await AchievementService.unlock(
            FakeSession(store),
            achievement_id="ach_1",
            customer_id="cus_other",
            now_utc=NOW_UTC,
        )

    assert store.user_achievements == {}
    assert store.ledger == []


async def test_list_for_customer_returns_newest_first(store: FakeStore) -> None:
    store.add_customer()
    store.add_achievement("ach_1", tier="bronze", points_reward=0)
    store.add_achievement("ach_2", tier="silver", points_reward=0)

    await AchievementService.unlock(
        FakeSession(store),
        achievement_id="ach_1",
        customer_id="cus_1",
        now_utc=NOW_UTC - timedelta(days=1),
    )
    await AchievementService.unlock(
        FakeSession(store),
        achievement_id="ach_2",
        customer_id="cus_1",
        now_utc=NOW_UTC,
    )

    views = await AchievementService.list_for_customer(FakeSession(store), customer_id="cus_1")

    assert [view.achievement_id for view in views] == ["ach_2", "ach_1"]
    assert views[0].tier == "silver"
    assert views[1].unlocked_at == NOW_UTC - timedelta(days=1)
