from __future__ import annotations

from datetime import datetime

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.leaderboard_entries import LeaderboardEntry


def _group_lock_key(
    *,
    merchant_id: str,
    game_type: str,
    period_type: str,
    period_start: datetime,
) -> str:
    return f"leaderboard:{merchant_id}:{game_type}:{period_type}:{period_start.isoformat()}"


class LeaderboardRepo:
    @staticmethod
    async def lock_group(
        session: AsyncSession,
        *,
        merchant_id: str,
        game_type: str,
        period_type: str,
        period_start: datetime,
    ) -> None:
        lock_key = _group_lock_key(
            merchant_id=merchant_id,
            game_type=game_type,
            period_type=period_type,
            period_start=period_start,
        )
        await session.execute(select(func.pg_advisory_xact_lock(func.hashtext(lock_key))))

    @staticmethod
    async def get_entry_for_update(
        session: AsyncSession,
        *,
        merchant_id: str,
        customer_id: str,
        game_type: str,
        period_type: str,
        period_start: datetime,
    ) -> LeaderboardEntry | None:
        stmt = (
            select(LeaderboardEntry)
            .where(
                LeaderboardEntry.merchant_id == merchant_id,
                LeaderboardEntry.customer_id == customer_id,
                LeaderboardEntry.game_type == game_type,
                LeaderboardEntry.period_type == period_type,
                LeaderboardEntry.period_start == period_start,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_max_rank(
        session: AsyncSession,
        *,
        merchant_id: str,
        game_type: str,
        period_type: str,
        period_start: datetime,
    ) -> int:
        stmt = select(func.coalesce(func.max(LeaderboardEntry.rank_position), 0)).where(
            LeaderboardEntry.merchant_id == merchant_id,
            LeaderboardEntry.game_type == game_type,
            LeaderboardEntry.period_type == period_type,
            LeaderboardEntry.period_start == period_start,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)

    @staticmethod
    async def create(session: AsyncSession, *, entry: LeaderboardEntry) -> LeaderboardEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_group(
        session: AsyncSession,
        *,
        merchant_id: str,
        game_type: str,
        period_type: str,
        period_start: datetime,
        limit: int,
    ) -> list[LeaderboardEntry]:
        resolved_limit = max(1, min(500, int(limit)))
        stmt = (
            select(LeaderboardEntry)
            .where(
                LeaderboardEntry.merchant_id == merchant_id,
                LeaderboardEntry.game_type == game_type,
                LeaderboardEntry.period_type == period_type,
                LeaderboardEntry.period_start == period_start,
            )
            .order_by(
                LeaderboardEntry.best_score.desc(),
                LeaderboardEntry.rank_position.asc(),
            )
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
