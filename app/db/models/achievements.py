from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Achievement(Base):
    __tablename__ = "achievements"
    __table_args__ = (
        CheckConstraint("points_reward >= 0", name="ck_achievements_points_reward_non_negative"),
        CheckConstraint(
            "tier IN ('bronze','silver','gold','platinum')",
            name="ck_achievements_tier",
        ),
        Index("idx_achievements_merchant_active", "merchant_id", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    icon: Mapped[str] = mapped_column(String(100), nullable=False)
    category: Mapped[str | None] = mapped_column(String(50), nullable=True)
    tier: Mapped[str] = mapped_column(String(16), nullable=False, server_default=text("'bronze'"))
    points_reward: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    criteria: Mapped[dict[str, object]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)


class UserAchievement(Base):
    __tablename__ = "user_achievements"
    __table_args__ = (
        UniqueConstraint(
            "customer_id",
            "achievement_id",
            name="uq_user_achievements_customer_achievement",
        ),
        Index("idx_user_achievements_customer_unlocked", "customer_id", "unlocked_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), ForeignKey("customers.id"), nullable=False)
    achievement_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("achievements.id"),
        nullable=False,
    )
    unlocked_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    progress_data: Mapped[dict[str, object]] = mapped_column(
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
