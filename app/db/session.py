from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.db.models.points_ledger_entries import PointsLedgerEntry

settings = get_settings()

engine = create_async_engine(
    settings.database_url,
    pool_pre_ping=True,
)

SessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def dispose_engine() -> None:
    await engine.dispose()


@event.listens_for(Session, "before_flush")
def _guard_points_ledger_append_only(session: Session, flush_context, instances) -> None:  # noqa: ANN001
    del flush_context, instances
    for instance in session.deleted:
        if isinstance(instance, PointsLedgerEntry):
            raise ValueError("points_ledger_entries is append-only")
    for instance in session.dirty:
        if isinstance(instance, PointsLedgerEntry) and session.is_modified(instance):
            raise ValueError("points_ledger_entries is append-only")
