from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, Index, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Challenge(Base):
    __tablename__ = "challenges"
    __table_args__ = (
        CheckConstraint(
            "challenge_type IN ('game_master','points_collector','daily_streak','social')",
            name="ck_challenges_type",
        ),
        CheckConstraint("target_value > 0", name="ck_challenges_target_value_positive"),
        CheckConstraint("reward_points >= 0", name="ck_challenges_reward_points_non_negative"),
        CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="ck_challenges_max_participants_positive",
        ),
        CheckConstraint(
            "current_participants >= 0",
            name="ck_challenges_current_participants_non_negative",
        ),
        CheckConstraint("completion_count >= 0", name="ck_challenges_completion_count_non_negative"),
        CheckConstraint("end_date > start_date", name="ck_challenges_window"),
        Index("idx_challenges_merchant_active", "merchant_id", "is_active"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    challenge_type: Mapped[str] = mapped_column(String(32), nullable=False)
    target_game_type: Mapped[str | None] = mapped_column(String(32), nullable=True)
    target_value: Mapped[int] = mapped_column(Integer, nullable=False)
    reward_points: Mapped[int] = mapped_column(Integer, nullable=False)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    current_participants: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        server_default=text("0"),
    )
    completion_count: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    start_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("true"))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
