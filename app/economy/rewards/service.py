from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.loyalty_rewards import LoyaltyReward
from app.db.repo.customers_repo import CustomersRepo
from app.db.repo.loyalty_rewards_repo import LoyaltyRewardsRepo
from app.economy.points.constants import TRANSACTION_REDEEMED
from app.economy.points.service import PointsLedgerService
from app.economy.rewards.errors import (
    RewardCustomerNotFoundError,
    RewardNotFoundError,
    RewardUnavailableError,
)
from app.economy.rewards.types import RewardRedeemResult

logger = structlog.get_logger(__name__)


def reward_unavailable_reason(reward: LoyaltyReward, *, now_utc: datetime) -> str | None:
    if not reward.is_active:
        return "reward is not active"
    if reward.start_date is not None and now_utc < reward.start_date:
        return "reward is not available yet"
    if reward.end_date is not None and now_utc > reward.end_date:
        return "reward has expired"
    if reward.stock_quantity is not None and reward.stock_quantity <= 0:
        return "reward is out of stock"
    return None


class LoyaltyRewardsService:
    @staticmethod
    async def redeem(
        session: AsyncSession,
        *,
        customer_id: str,
        reward_id: str,
        idempotency_key: str,
        now_utc: datetime,
    ) -> RewardRedeemResult:
        reward = await LoyaltyRewardsRepo.get_by_id_for_update(session, reward_id)
        if reward is None:
            raise RewardNotFoundError(reward_id)

        customer = await CustomersRepo.get_by_id(session, customer_id)
        if customer is None or customer.merchant_id != reward.merchant_id:
            raise RewardCustomerNotFoundError(customer_id)

        existing_entry = await PointsLedgerService.get_by_reference(
            session,
            customer_id=customer_id,
            transaction_type=TRANSACTION_REDEEMED,
            reference_id=idempotency_key,
        )
        if existing_entry is None:
            unavailable_reason = reward_unavailable_reason(reward, now_utc=now_utc)
            if unavailable_reason is not None:
                raise RewardUnavailableError(unavailable_reason)

        recorded = await PointsLedgerService.record(
            session,
            customer_id=customer_id,
            merchant_id=reward.merchant_id,
            points_change=-reward.points_cost,
            transaction_type=TRANSACTION_REDEEMED,
            reference_id=idempotency_key,
            description=f"Redeemed reward: {reward.reward_name}"[:500],
            now_utc=now_utc,
            metadata={"reward_id": reward.id, "reward_type": reward.reward_type},
        )

        if not recorded.idempotent_replay:
            reward.total_redemptions += 1
            if reward.stock_quantity is not None:
                reward.stock_quantity -= 1
            reward.updated_at = now_utc
            await session.flush()
            logger.info(
                "loyalty_reward_redeemed",
                reward_id=reward.id,
                customer_id=customer_id,
                points_cost=reward.points_cost,
                balance_after=recorded.entry.balance_after,
            )

        return RewardRedeemResult(
            reward_id=reward.id,
            customer_id=customer_id,
            points_cost=-recorded.entry.points_change,
            balance_after=recorded.entry.balance_after,
            total_redemptions=reward.total_redemptions,
            stock_remaining=reward.stock_quantity,
            ledger_entry=recorded.entry,
            idempotent_replay=recorded.idempotent_replay,
        )
