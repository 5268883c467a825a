from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, Numeric, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Customer(Base):
    __tablename__ = "customers"
    __table_args__ = (
        CheckConstraint("total_points >= 0", name="ck_customers_total_points_non_negative"),
        CheckConstraint("games_played >= 0", name="ck_customers_games_played_non_negative"),
        CheckConstraint(
            "total_session_duration >= 0",
            name="ck_customers_total_session_duration_non_negative",
        ),
        CheckConstraint(
            "segment IN ('new','active','loyal','at_risk','inactive')",
            name="ck_customers_segment",
        ),
        Index("idx_customers_merchant", "merchant_id"),
        Index("idx_customers_merchant_segment", "merchant_id", "segment"),
        Index("idx_customers_merchant_points", "merchant_id", "total_points"),
        Index("idx_customers_last_play", "last_play_date"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(String(32), nullable=False)
    email: Mapped[str | None] = mapped_column(Text, nullable=True)
    instagram: Mapped[str | None] = mapped_column(Text, nullable=True)
    age_group: Mapped[str | None] = mapped_column(String(32), nullable=True)
    gender: Mapped[str | None] = mapped_column(String(32), nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    games_played: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    total_session_duration: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    average_session_duration: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        server_default=text("0"),
    )
    first_play_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_play_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    engagement_score: Mapped[Decimal] = mapped_column(
        Numeric(10, 2),
        nullable=False,
        server_default=text("0"),
    )
    segment: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'new'"))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    version: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
