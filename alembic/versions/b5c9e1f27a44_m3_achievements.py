"""m3_achievements

Revision ID: b5c9e1f27a44
Revises: 7d2e4b6a8c13
Create Date: 2026-10-18 10:15:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "b5c9e1f27a44"
down_revision: str | None = "7d2e4b6a8c13"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "achievements",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("icon", sa.String(100), nullable=False),
        sa.Column("category", sa.String(50), nullable=True),
        sa.Column("tier", sa.String(16), nullable=False, server_default=sa.text("'bronze'")),
        sa.Column("points_reward", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "criteria",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_reward >= 0", name="ck_achievements_points_reward_non_negative"),
        sa.CheckConstraint(
            "tier IN ('bronze','silver','gold','platinum')",
            name="ck_achievements_tier",
        ),
    )
    op.create_index(
        "idx_achievements_merchant_active",
        "achievements",
        ["merchant_id", "is_active"],
    )

    op.create_table(
        "user_achievements",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("achievement_id", sa.String(64), nullable=False),
        sa.Column("unlocked_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "progress_data",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["achievement_id"], ["achievements.id"]),
        sa.UniqueConstraint(
            "customer_id",
            "achievement_id",
            name="uq_user_achievements_customer_achievement",
        ),
    )
    op.create_index(
        "idx_user_achievements_customer_unlocked",
        "user_achievements",
        ["customer_id", "unlocked_at"],
    )


def downgrade() -> None:
    op.drop_index("idx_user_achievements_customer_unlocked", table_name="user_achievements")
    op.drop_table("user_achievements")

    op.drop_index("idx_achievements_merchant_active", table_name="achievements")
    op.drop_table("achievements")
