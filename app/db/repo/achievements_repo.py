from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.record_ids import generate_record_id
from app.db.models.achievements import Achievement, UserAchievement


class AchievementsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, achievement_id: str) -> Achievement | None:
        return await session.get(Achievement, achievement_id)

    @staticmethod
    async def get_unlock(
        session: AsyncSession,
        *,
        customer_id: str,
        achievement_id: str,
    ) -> UserAchievement | None:
        stmt = select(UserAchievement).where(
            UserAchievement.customer_id == customer_id,
            UserAchievement.achievement_id == achievement_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_unlocks_for_customer(
        session: AsyncSession,
        *,
        customer_id: str,
    ) -> list[tuple[UserAchievement, Achievement]]:
        stmt = (
            select(UserAchievement, Achievement)
            .join(Achievement, Achievement.id == UserAchievement.achievement_id)
            .where(UserAchievement.customer_id == customer_id)
            .order_by(UserAchievement.unlocked_at.desc(), UserAchievement.id.asc())
        )
        result = await session.execute(stmt)
        return [(unlock, achievement) for unlock, achievement in result.all()]

    @staticmethod
    async def create_unlock(
        session: AsyncSession,
        *,
        customer_id: str,
        achievement_id: str,
        progress_data: dict[str, object],
        now_utc: datetime,
    ) -> UserAchievement:
        unlock = UserAchievement(
            id=generate_record_id("uach"),
            customer_id=customer_id,
            achievement_id=achievement_id,
            unlocked_at=now_utc,
            progress_data=progress_data,
            created_at=now_utc,
        )
        session.add(unlock)
        await session.flush()
        return unlock
