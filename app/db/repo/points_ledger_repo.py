from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.points_ledger_entries import PointsLedgerEntry


class PointsLedgerRepo:
    @staticmethod
    async def get_by_reference(
        session: AsyncSession,
        *,
        customer_id: str,
        transaction_type: str,
        reference_id: str,
    ) -> PointsLedgerEntry | None:
        stmt = select(PointsLedgerEntry).where(
            PointsLedgerEntry.customer_id == customer_id,
            PointsLedgerEntry.transaction_type == transaction_type,
            PointsLedgerEntry.reference_id == reference_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, entry: PointsLedgerEntry) -> PointsLedgerEntry:
        session.add(entry)
        await session.flush()
        return entry

    @staticmethod
    async def list_for_customer(
        session: AsyncSession,
        *,
        customer_id: str,
        merchant_id: str,
        limit: int,
    ) -> list[PointsLedgerEntry]:
        resolved_limit = max(1, min(500, int(limit)))
        stmt = (
            select(PointsLedgerEntry)
            .where(
                PointsLedgerEntry.customer_id == customer_id,
                PointsLedgerEntry.merchant_id == merchant_id,
            )
            .order_by(PointsLedgerEntry.created_at.desc(), PointsLedgerEntry.id.desc())
            .limit(resolved_limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def sum_points_change_for_customer(session: AsyncSession, *, customer_id: str) -> int:
        stmt = select(func.coalesce(func.sum(PointsLedgerEntry.points_change), 0)).where(
            PointsLedgerEntry.customer_id == customer_id,
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
