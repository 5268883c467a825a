from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, CheckConstraint, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class GameSession(Base):
    __tablename__ = "game_sessions"
    __table_args__ = (
        CheckConstraint("points_earned >= 0", name="ck_game_sessions_points_earned_non_negative"),
        CheckConstraint(
            "session_duration IS NULL OR session_duration >= 0",
            name="ck_game_sessions_duration_non_negative",
        ),
        Index("idx_game_sessions_customer_completed", "customer_id", "completed_at"),
        Index("idx_game_sessions_merchant_started", "merchant_id", "started_at"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), ForeignKey("customers.id"), nullable=False)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    game_type: Mapped[str] = mapped_column(String(32), nullable=False)
    score: Mapped[int | None] = mapped_column(Integer, nullable=True)
    points_earned: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    session_duration: Mapped[int | None] = mapped_column(Integer, nullable=True)
    difficulty_level: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        server_default=text("'medium'"),
    )
    was_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    prize_won: Mapped[str | None] = mapped_column(String(64), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
