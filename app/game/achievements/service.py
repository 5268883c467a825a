from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.achievements_repo import AchievementsRepo
from app.db.repo.customers_repo import CustomersRepo
from app.economy.points.constants import TRANSACTION_BONUS
from app.economy.points.service import PointsLedgerService
from app.game.achievements.constants import ACHIEVEMENT_REFERENCE_PREFIX
from app.game.achievements.errors import (
    AchievementAlreadyUnlockedError,
    AchievementCustomerNotFoundError,
    AchievementNotFoundError,
)
from app.game.achievements.types import AchievementUnlockResult, UnlockedAchievementView

logger = structlog.get_logger(__name__)


class AchievementService:
    @staticmethod
    async def unlock(
        session: AsyncSession,
        *,
        achievement_id: str,
        customer_id: str,
        now_utc: datetime,
        progress_data: dict[str, object] | None = None,
    ) -> AchievementUnlockResult:
        """Unlocks an achievement once per customer and pays its bonus.

        The customer row lock serializes concurrent unlocks; the ledger
        reference keeps the bonus single even if that lock is bypassed.
        """
        achievement = await AchievementsRepo.get_by_id(session, achievement_id)
        if achievement is None or not achievement.is_active:
            raise AchievementNotFoundError(achievement_id)

        customer = await CustomersRepo.get_by_id_for_update(session, customer_id)
        if customer is None or customer.merchant_id != achievement.merchant_id:
            raise AchievementCustomerNotFoundError(customer_id)

        existing = await AchievementsRepo.get_unlock(
            session,
            customer_id=customer_id,
            achievement_id=achievement_id,
        )
        if existing is not None:
            raise AchievementAlreadyUnlockedError(achievement_id)

        unlock = await AchievementsRepo.create_unlock(
            session,
            customer_id=customer_id,
            achievement_id=achievement_id,
            progress_data=dict(progress_data or {}),
            now_utc=now_utc,
        )

        reward_entry_id: int | None = None
        if achievement.points_reward > 0:
            recorded = await PointsLedgerService.record(
                session,
                customer_id=customer_id,
                merchant_id=achievement.merchant_id,
                points_change=achievement.points_reward,
                transaction_type=TRANSACTION_BONUS,
                reference_id=f"{ACHIEVEMENT_REFERENCE_PREFIX}{achievement_id}",
                description=f"Achievement unlocked: {achievement.title}"[:500],
                now_utc=now_utc,
                metadata={"achievement_id": achievement_id, "tier": achievement.tier},
            )
            reward_entry_id = recorded.entry.entry_id

        logger.info(
            "achievement_unlocked",
            achievement_id=achievement_id,
            customer_id=customer_id,
            tier=achievement.tier,
            points_reward=achievement.points_reward,
            reward_entry_id=reward_entry_id,
        )
        return AchievementUnlockResult(
            user_achievement_id=unlock.id,
            achievement_id=achievement_id,
            customer_id=customer_id,
            title=achievement.title,
            tier=achievement.tier,
            points_awarded=achievement.points_reward,
            reward_entry_id=reward_entry_id,
            unlocked_at=unlock.unlocked_at,
        )

    @staticmethod
    async def list_for_customer(
        session: AsyncSession,
        *,
        customer_id: str,
    ) -> list[UnlockedAchievementView]:
        rows = await AchievementsRepo.list_unlocks_for_customer(session, customer_id=customer_id)
        return [
            UnlockedAchievementView(
                achievement_id=achievement.id,
                title=achievement.title,
                tier=achievement.tier,
                points_reward=achievement.points_reward,
                unlocked_at=unlock.unlocked_at,
            )
            for unlock, achievement in rows
        ]
