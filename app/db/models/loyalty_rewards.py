from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class LoyaltyReward(Base):
    __tablename__ = "loyalty_rewards"
    __table_args__ = (
        CheckConstraint("points_cost > 0", name="ck_loyalty_rewards_points_cost_positive"),
        CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0",
            name="ck_loyalty_rewards_stock_non_negative",
        ),
        CheckConstraint(
            "total_redemptions >= 0",
            name="ck_loyalty_rewards_total_redemptions_non_negative",
        ),
        Index("idx_loyalty_rewards_merchant_active", "merchant_id", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    reward_name: Mapped[str] = mapped_column(Text, nullable=False)
    reward_type: Mapped[str] = mapped_column(String(32), nullable=False)
    points_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    stock_quantity: Mapped[int | None] = mapped_column(Integer, nullable=True)
    total_redemptions: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    start_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
