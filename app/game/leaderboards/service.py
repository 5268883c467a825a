from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.leaderboard_entries import LeaderboardEntry
from app.db.repo.leaderboard_repo import LeaderboardRepo
from app.game.leaderboards.constants import STANDINGS_DEFAULT_LIMIT
from app.game.leaderboards.periods import resolve_period
from app.game.leaderboards.types import (
    LeaderboardEntrySnapshot,
    LeaderboardRecordResult,
    StandingView,
)

logger = structlog.get_logger(__name__)


def _snapshot(entry: LeaderboardEntry) -> LeaderboardEntrySnapshot:
    return LeaderboardEntrySnapshot(
        entry_id=entry.id,
        merchant_id=entry.merchant_id,
        customer_id=entry.customer_id,
        game_type=entry.game_type,
        period_type=entry.period_type,
        period_start=entry.period_start,
        period_end=entry.period_end,
        rank_position=entry.rank_position,
        best_score=entry.best_score,
        games_played=entry.games_played,
        total_points=entry.total_points,
    )


class LeaderboardRanker:
    @staticmethod
    async def record_score(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        game_type: str,
        score: int,
        period_type: str,
        now_utc: datetime,
    ) -> LeaderboardRecordResult:
        window = resolve_period(period_type, now_utc=now_utc)
        await LeaderboardRepo.lock_group(
            session,
            merchant_id=merchant_id,
            game_type=game_type,
            period_type=period_type,
            period_start=window.start_utc,
        )

        entry = await LeaderboardRepo.get_entry_for_update(
            session,
            merchant_id=merchant_id,
            customer_id=customer_id,
            game_type=game_type,
            period_type=period_type,
            period_start=window.start_utc,
        )
        if entry is not None:
            entry.best_score = max(entry.best_score, score)
            entry.games_played += 1
            entry.total_points += score
            entry.updated_at = now_utc
            await session.flush()
            return LeaderboardRecordResult(entry=_snapshot(entry), created=False)

        # Ranks are handed out in arrival order; standings are sorted on read.
        max_rank = await LeaderboardRepo.get_max_rank(
            session,
            merchant_id=merchant_id,
            game_type=game_type,
            period_type=period_type,
            period_start=window.start_utc,
        )
        entry = await LeaderboardRepo.create(
            session,
            entry=LeaderboardEntry(
                merchant_id=merchant_id,
                customer_id=customer_id,
                game_type=game_type,
                period_type=period_type,
                period_start=window.start_utc,
                period_end=window.end_utc,
                rank_position=max_rank + 1,
                best_score=score,
                games_played=1,
                total_points=score,
                created_at=now_utc,
                updated_at=now_utc,
            ),
        )
        logger.info(
            "leaderboard_entry_created",
            merchant_id=merchant_id,
            customer_id=customer_id,
            game_type=game_type,
            period_type=period_type,
            rank_position=entry.rank_position,
        )
        return LeaderboardRecordResult(entry=_snapshot(entry), created=True)

    @staticmethod
    async def list_standings(
        session: AsyncSession,
        *,
        merchant_id: str,
        game_type: str,
        period_type: str,
        now_utc: datetime,
        limit: int = STANDINGS_DEFAULT_LIMIT,
    ) -> list[StandingView]:
        window = resolve_period(period_type, now_utc=now_utc)
        entries = await LeaderboardRepo.list_group(
            session,
            merchant_id=merchant_id,
            game_type=game_type,
            period_type=period_type,
            period_start=window.start_utc,
            limit=limit,
        )
        return [
            StandingView(
                standing=index,
                customer_id=entry.customer_id,
                best_score=entry.best_score,
                games_played=entry.games_played,
                total_points=entry.total_points,
                rank_position=entry.rank_position,
            )
            for index, entry in enumerate(entries, start=1)
        ]
