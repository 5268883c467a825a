from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.record_ids import generate_record_id
from app.db.models.game_sessions import GameSession


class GameSessionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, session_id: str) -> GameSession | None:
        return await session.get(GameSession, session_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, session_id: str) -> GameSession | None:
        stmt = (
            select(GameSession)
            .where(GameSession.id == session_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_started(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        game_type: str,
        started_at: datetime,
        difficulty_level: str = "medium",
        session_id: str | None = None,
    ) -> GameSession:
        game_session = GameSession(
            id=session_id or generate_record_id("gs"),
            customer_id=customer_id,
            merchant_id=merchant_id,
            game_type=game_type,
            score=None,
            points_earned=0,
            session_duration=None,
            difficulty_level=difficulty_level,
            was_completed=False,
            prize_won=None,
            started_at=started_at,
            completed_at=None,
            processed_at=None,
        )
        session.add(game_session)
        await session.flush()
        return game_session

    @staticmethod
    async def count_completed_between(
        session: AsyncSession,
        *,
        customer_id: str,
        start_utc: datetime,
        end_utc: datetime,
    ) -> int:
        stmt = select(func.count(GameSession.id)).where(
            GameSession.customer_id == customer_id,
            GameSession.completed_at.is_not(None),
            GameSession.completed_at >= start_utc,
            GameSession.completed_at < end_utc,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
