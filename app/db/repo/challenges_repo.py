from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.challenges import Challenge


class ChallengesRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, challenge_id: str) -> Challenge | None:
        return await session.get(Challenge, challenge_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, challenge_id: str) -> Challenge | None:
        stmt = (
            select(Challenge)
            .where(Challenge.id == challenge_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, challenge: Challenge) -> Challenge:
        session.add(challenge)
        await session.flush()
        return challenge
