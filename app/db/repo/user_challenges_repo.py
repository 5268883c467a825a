from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.record_ids import generate_record_id
from app.db.models.challenges import Challenge
from app.db.models.user_challenges import UserChallenge


class UserChallengesRepo:
    @staticmethod
    async def get_by_customer_and_challenge(
        session: AsyncSession,
        *,
        customer_id: str,
        challenge_id: str,
    ) -> UserChallenge | None:
        stmt = select(UserChallenge).where(
            UserChallenge.customer_id == customer_id,
            UserChallenge.challenge_id == challenge_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_customer_and_challenge_for_update(
        session: AsyncSession,
        *,
        customer_id: str,
        challenge_id: str,
    ) -> UserChallenge | None:
        stmt = (
            select(UserChallenge)
            .where(
                UserChallenge.customer_id == customer_id,
                UserChallenge.challenge_id == challenge_id,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def list_active_by_customer_for_update(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        now_utc: datetime,
    ) -> list[tuple[UserChallenge, Challenge]]:
        stmt = (
            select(UserChallenge, Challenge)
            .join(Challenge, Challenge.id == UserChallenge.challenge_id)
            .where(
                UserChallenge.customer_id == customer_id,
                UserChallenge.is_completed.is_(False),
                Challenge.merchant_id == merchant_id,
                Challenge.is_active.is_(True),
                Challenge.start_date <= now_utc,
                Challenge.end_date >= now_utc,
            )
            .order_by(UserChallenge.started_at.asc(), UserChallenge.id.asc())
            .with_for_update(of=UserChallenge)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return [(user_challenge, challenge) for user_challenge, challenge in result.all()]

    @staticmethod
    async def list_by_challenge(
        session: AsyncSession,
        *,
        challenge_id: str,
        limit: int,
    ) -> list[UserChallenge]:
        resolved_limit = max(1, min(1000, int(limit)))
        stmt = (
            select(UserChallenge)
            .where(UserChallenge.challenge_id == challenge_id)
            .order_by(UserChallenge.current_progress.desc(), UserChallenge.started_at.asc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        customer_id: str,
        challenge_id: str,
        now_utc: datetime,
    ) -> UserChallenge:
        user_challenge = UserChallenge(
            id=generate_record_id("uch"),
            customer_id=customer_id,
            challenge_id=challenge_id,
            current_progress=0,
            is_completed=False,
            completed_at=None,
            reward_claimed=False,
            claimed_at=None,
            started_at=now_utc,
        )
        session.add(user_challenge)
        await session.flush()
        return user_challenge
