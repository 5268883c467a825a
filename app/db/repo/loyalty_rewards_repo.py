from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.loyalty_rewards import LoyaltyReward


class LoyaltyRewardsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, reward_id: str) -> LoyaltyReward | None:
        return await session.get(LoyaltyReward, reward_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, reward_id: str) -> LoyaltyReward | None:
        stmt = (
            select(LoyaltyReward)
            .where(LoyaltyReward.id == reward_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()
