from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class LeaderboardEntry(Base):
    __tablename__ = "leaderboard_entries"
    __table_args__ = (
        UniqueConstraint(
            "merchant_id",
            "customer_id",
            "game_type",
            "period_type",
            "period_start",
            name="uq_leaderboard_entries_customer_period",
        ),
        CheckConstraint(
            "period_type IN ('daily','weekly','monthly','alltime')",
            name="ck_leaderboard_entries_period_type",
        ),
        CheckConstraint("rank_position > 0", name="ck_leaderboard_entries_rank_positive"),
        CheckConstraint("games_played >= 0", name="ck_leaderboard_entries_games_non_negative"),
        Index(
            "idx_leaderboard_group_best_score",
            "merchant_id",
            "game_type",
            "period_type",
            "period_start",
            "best_score",
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_id: Mapped[str] = mapped_column(String(64), ForeignKey("customers.id"), nullable=False)
    game_type: Mapped[str] = mapped_column(String(32), nullable=False)
    period_type: Mapped[str] = mapped_column(String(16), nullable=False)
    period_start: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    period_end: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    rank_position: Mapped[int] = mapped_column(Integer, nullable=False)
    best_score: Mapped[int] = mapped_column(Integer, nullable=False)
    games_played: Mapped[int] = mapped_column(Integer, nullable=False)
    total_points: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
