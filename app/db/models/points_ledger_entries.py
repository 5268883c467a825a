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
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PointsLedgerEntry(Base):
    __tablename__ = "points_ledger_entries"
    __table_args__ = (
        CheckConstraint("points_change <> 0", name="ck_points_ledger_points_change_non_zero"),
        CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_after_non_negative"),
        CheckConstraint(
            "balance_after = balance_before + points_change",
            name="ck_points_ledger_balance_arithmetic",
        ),
        CheckConstraint(
            "transaction_type IN ('earned','redeemed','adjustment','bonus','refund')",
            name="ck_points_ledger_transaction_type",
        ),
        Index("idx_points_ledger_customer_created", "customer_id", "created_at"),
        Index("idx_points_ledger_merchant_created", "merchant_id", "created_at"),
        Index(
            "uq_points_ledger_customer_type_reference",
            "customer_id",
            "transaction_type",
            "reference_id",
            unique=True,
            postgresql_where=text("reference_id IS NOT NULL"),
        ),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    customer_id: Mapped[str] = mapped_column(String(64), ForeignKey("customers.id"), nullable=False)
    merchant_id: Mapped[str] = mapped_column(String(64), nullable=False)
    transaction_type: Mapped[str] = mapped_column(String(16), nullable=False)
    points_change: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_before: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_id: Mapped[str | None] = mapped_column(String(96), nullable=True)
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
