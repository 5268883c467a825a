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
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class UserChallenge(Base):
    __tablename__ = "user_challenges"
    __table_args__ = (
        UniqueConstraint("customer_id", "challenge_id", name="uq_user_challenges_customer_challenge"),
        CheckConstraint("current_progress >= 0", name="ck_user_challenges_progress_non_negative"),
        CheckConstraint(
            "(is_completed = false) OR (completed_at IS NOT NULL)",
            name="ck_user_challenges_completed_at_set",
        ),
        Index(
            "idx_user_challenges_customer_open",
            "customer_id",
            postgresql_where=text("is_completed = false"),
        ),
        Index("idx_user_challenges_challenge_progress", "challenge_id", "current_progress"),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), ForeignKey("customers.id"), nullable=False)
    challenge_id: Mapped[str] = mapped_column(String(64), ForeignKey("challenges.id"), nullable=False)
    current_progress: Mapped[int] = mapped_column(Integer, nullable=False, server_default=text("0"))
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reward_claimed: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
    claimed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
