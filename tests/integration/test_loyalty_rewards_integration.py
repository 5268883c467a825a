from __future__ import annotations

import asyncio
from datetime import datetime

import pytest

from app.db.models.customers import Customer
from app.db.models.loyalty_rewards import LoyaltyReward
from app.db.repo.points_ledger_repo import PointsLedgerRepo
from app.db.session import SessionLocal
from app.economy.points.errors import PointsInsufficientBalanceError
from app.economy.rewards.errors import RewardUnavailableError
from app.economy.rewards.service import LoyaltyRewardsService
from tests.integration.gamification_fixtures import UTC, _create_customer, _create_reward


async def _redeem(customer_id: str, reward_id: str, *, idempotency_key: str, now_utc: datetime):
    async with SessionLocal.begin() as session:
        return await LoyaltyRewardsService.redeem(
            session,
            customer_id=customer_id,
            reward_id=reward_id,
            idempotency_key=idempotency_key,
            now_utc=now_utc,
        )


@pytest.mark.asyncio
async def test_redeem_reward_is_idempotent_per_key() -> None:
    now_utc = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)
    customer_id = await _create_customer("redeem-idempotent", starting_points=250, now_utc=now_utc)
    reward_id = await _create_reward("rw_coffee", now_utc=now_utc, points_cost=100, stock_quantity=5)

    first = await _redeem(customer_id, reward_id, idempotency_key="order-1", now_utc=now_utc)
    replay = await _redeem(customer_id, reward_id, idempotency_key="order-1", now_utc=now_utc)

    assert first.idempotent_replay is False
    assert replay.idempotent_replay is True
    assert replay.ledger_entry.entry_id == first.ledger_entry.entry_id

    async with SessionLocal.begin() as session:
        customer = await session.get(Customer, customer_id)
        reward = await session.get(LoyaltyReward, reward_id)

    assert customer is not None
    assert customer.total_points == 150
    assert reward is not None
    assert reward.total_redemptions == 1
    assert reward.stock_quantity == 4


@pytest.mark.asyncio
async def test_concurrent_redemptions_never_oversell_last_item() -> None:
    now_utc = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)
    first_customer = await _create_customer("redeem-race-1", starting_points=500, now_utc=now_utc)
    second_customer = await _create_customer("redeem-race-2", starting_points=500, now_utc=now_utc)
    reward_id = await _create_reward("rw_last", now_utc=now_utc, points_cost=100, stock_quantity=1)

    outcomes = await asyncio.gather(
        _redeem(first_customer, reward_id, idempotency_key="race-1", now_utc=now_utc),
        _redeem(second_customer, reward_id, idempotency_key="race-2", now_utc=now_utc),
        return_exceptions=True,
    )

    successes = [outcome for outcome in outcomes if not isinstance(outcome, BaseException)]
    failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], RewardUnavailableError)

    async with SessionLocal.begin() as session:
        reward = await session.get(LoyaltyReward, reward_id)

    assert reward is not None
    assert reward.stock_quantity == 0
    assert reward.total_redemptions == 1


@pytest.mark.asyncio
async def test_redeem_reward_rejects_insufficient_balance() -> None:
    now_utc = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)
    customer_id = await _create_customer("redeem-poor", starting_points=40, now_utc=now_utc)
    reward_id = await _create_reward("rw_expensive", now_utc=now_utc, points_cost=100, stock_quantity=None)

    with pytest.raises(PointsInsufficientBalanceError):
        await _redeem(customer_id, reward_id, idempotency_key="order-poor", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        customer = await session.get(Customer, customer_id)

    assert customer is not None
    assert customer.total_points == 40


@pytest.mark.asyncio
async def test_concurrent_redemptions_of_different_rewards_keep_balance_consistent() -> None:
    now_utc = datetime(2026, 10, 14, 12, 0, tzinfo=UTC)
    customer_id = await _create_customer("redeem-two-rewards", starting_points=100, now_utc=now_utc)
    coffee_id = await _create_reward("rw_coffee_30", now_utc=now_utc, points_cost=30, stock_quantity=None)
    cookie_id = await _create_reward("rw_cookie_30", now_utc=now_utc, points_cost=30, stock_quantity=None)

    outcomes = await asyncio.gather(
        _redeem(customer_id, coffee_id, idempotency_key="two-rewards-1", now_utc=now_utc),
        _redeem(customer_id, cookie_id, idempotency_key="two-rewards-2", now_utc=now_utc),
    )

    assert all(outcome.idempotent_replay is False for outcome in outcomes)
    balances = sorted(outcome.ledger_entry.balance_after for outcome in outcomes)
    assert balances == [40, 70]

    async with SessionLocal.begin() as session:
        customer = await session.get(Customer, customer_id)
        ledger_sum = await PointsLedgerRepo.sum_points_change_for_customer(
            session,
            customer_id=customer_id,
        )

    assert customer is not None
    assert customer.total_points == 40
    assert ledger_sum == 40
