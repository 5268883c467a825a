from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.record_ids import generate_record_id
from app.db.models.customers import Customer


class CustomersRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, customer_id: str) -> Customer | None:
        return await session.get(Customer, customer_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, customer_id: str) -> Customer | None:
        stmt = (
            select(Customer)
            .where(Customer.id == customer_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(
        session: AsyncSession,
        *,
        merchant_id: str,
        name: str,
        phone: str,
        now_utc: datetime,
        email: str | None = None,
        instagram: str | None = None,
        age_group: str | None = None,
        gender: str | None = None,
        location: str | None = None,
        customer_id: str | None = None,
    ) -> Customer:
        customer = Customer(
            id=customer_id or generate_record_id("cus"),
            merchant_id=merchant_id,
            name=name,
            phone=phone,
            email=email,
            instagram=instagram,
            age_group=age_group,
            gender=gender,
            location=location,
            total_points=0,
            games_played=0,
            total_session_duration=0,
            average_session_duration=Decimal("0"),
            first_play_date=None,
            last_play_date=None,
            engagement_score=Decimal("0"),
            segment="new",
            is_active=True,
            version=0,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(customer)
        await session.flush()
        return customer
