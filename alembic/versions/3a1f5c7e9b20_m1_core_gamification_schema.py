"""m1_core_gamification_schema

Revision ID: 3a1f5c7e9b20
Revises:
Create Date: 2026-10-05 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3a1f5c7e9b20"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("phone", sa.String(32), nullable=False),
        sa.Column("email", sa.Text(), nullable=True),
        sa.Column("instagram", sa.Text(), nullable=True),
        sa.Column("age_group", sa.String(32), nullable=True),
        sa.Column("gender", sa.String(32), nullable=True),
        sa.Column("location", sa.Text(), nullable=True),
        sa.Column("total_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("games_played", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_session_duration", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column(
            "average_session_duration",
            sa.Numeric(10, 2),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("first_play_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_play_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("engagement_score", sa.Numeric(10, 2), nullable=False, server_default=sa.text("0")),
        sa.Column("segment", sa.String(16), nullable=False, server_default=sa.text("'new'")),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("total_points >= 0", name="ck_customers_total_points_non_negative"),
        sa.CheckConstraint("games_played >= 0", name="ck_customers_games_played_non_negative"),
        sa.CheckConstraint(
            "total_session_duration >= 0",
            name="ck_customers_total_session_duration_non_negative",
        ),
        sa.CheckConstraint(
            "segment IN ('new','active','loyal','at_risk','inactive')",
            name="ck_customers_segment",
        ),
    )
    op.create_index("idx_customers_merchant", "customers", ["merchant_id"])
    op.create_index("idx_customers_merchant_segment", "customers", ["merchant_id", "segment"])
    op.create_index("idx_customers_merchant_points", "customers", ["merchant_id", "total_points"])
    op.create_index("idx_customers_last_play", "customers", ["last_play_date"])

    op.create_table(
        "game_sessions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("game_type", sa.String(32), nullable=False),
        sa.Column("score", sa.Integer(), nullable=True),
        sa.Column("points_earned", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("session_duration", sa.Integer(), nullable=True),
        sa.Column("difficulty_level", sa.String(20), nullable=False, server_default=sa.text("'medium'")),
        sa.Column("was_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("prize_won", sa.String(64), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint("points_earned >= 0", name="ck_game_sessions_points_earned_non_negative"),
        sa.CheckConstraint(
            "session_duration IS NULL OR session_duration >= 0",
            name="ck_game_sessions_duration_non_negative",
        ),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
    )
    op.create_index(
        "idx_game_sessions_customer_completed",
        "game_sessions",
        ["customer_id", "completed_at"],
    )
    op.create_index(
        "idx_game_sessions_merchant_started",
        "game_sessions",
        ["merchant_id", "started_at"],
    )

    op.create_table(
        "challenges",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("challenge_type", sa.String(32), nullable=False),
        sa.Column("target_game_type", sa.String(32), nullable=True),
        sa.Column("target_value", sa.Integer(), nullable=False),
        sa.Column("reward_points", sa.Integer(), nullable=False),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("current_participants", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("completion_count", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "challenge_type IN ('game_master','points_collector','daily_streak','social')",
            name="ck_challenges_type",
        ),
        sa.CheckConstraint("target_value > 0", name="ck_challenges_target_value_positive"),
        sa.CheckConstraint("reward_points >= 0", name="ck_challenges_reward_points_non_negative"),
        sa.CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="ck_challenges_max_participants_positive",
        ),
        sa.CheckConstraint(
            "current_participants >= 0",
            name="ck_challenges_current_participants_non_negative",
        ),
        sa.CheckConstraint("completion_count >= 0", name="ck_challenges_completion_count_non_negative"),
        sa.CheckConstraint("end_date > start_date", name="ck_challenges_window"),
    )
    op.create_index("idx_challenges_merchant_active", "challenges", ["merchant_id", "is_active"])

    op.create_table(
        "user_challenges",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("challenge_id", sa.String(64), nullable=False),
        sa.Column("current_progress", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reward_claimed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("claimed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("current_progress >= 0", name="ck_user_challenges_progress_non_negative"),
        sa.CheckConstraint(
            "(is_completed = false) OR (completed_at IS NOT NULL)",
            name="ck_user_challenges_completed_at_set",
        ),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.ForeignKeyConstraint(["challenge_id"], ["challenges.id"]),
        sa.UniqueConstraint(
            "customer_id",
            "challenge_id",
            name="uq_user_challenges_customer_challenge",
        ),
    )
    op.create_index(
        "idx_user_challenges_customer_open",
        "user_challenges",
        ["customer_id"],
        postgresql_where=sa.text("is_completed = false"),
    )
    op.create_index(
        "idx_user_challenges_challenge_progress",
        "user_challenges",
        ["challenge_id", "current_progress"],
    )

    op.create_table(
        "points_ledger_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("transaction_type", sa.String(16), nullable=False),
        sa.Column("points_change", sa.Integer(), nullable=False),
        sa.Column("balance_before", sa.Integer(), nullable=False),
        sa.Column("balance_after", sa.Integer(), nullable=False),
        sa.Column("reference_id", sa.String(96), nullable=True),
        sa.Column("description", sa.String(500), nullable=True),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_change <> 0", name="ck_points_ledger_points_change_non_zero"),
        sa.CheckConstraint("balance_after >= 0", name="ck_points_ledger_balance_after_non_negative"),
        sa.CheckConstraint(
            "balance_after = balance_before + points_change",
            name="ck_points_ledger_balance_arithmetic",
        ),
        sa.CheckConstraint(
            "transaction_type IN ('earned','redeemed','adjustment','bonus','refund')",
            name="ck_points_ledger_transaction_type",
        ),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
    )
    op.create_index(
        "idx_points_ledger_customer_created",
        "points_ledger_entries",
        ["customer_id", "created_at"],
    )
    op.create_index(
        "idx_points_ledger_merchant_created",
        "points_ledger_entries",
        ["merchant_id", "created_at"],
    )
    op.create_index(
        "uq_points_ledger_customer_type_reference",
        "points_ledger_entries",
        ["customer_id", "transaction_type", "reference_id"],
        unique=True,
        postgresql_where=sa.text("reference_id IS NOT NULL"),
    )

    op.create_table(
        "leaderboard_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("customer_id", sa.String(64), nullable=False),
        sa.Column("game_type", sa.String(32), nullable=False),
        sa.Column("period_type", sa.String(16), nullable=False),
        sa.Column("period_start", sa.DateTime(timezone=True), nullable=False),
        sa.Column("period_end", sa.DateTime(timezone=True), nullable=False),
        sa.Column("rank_position", sa.Integer(), nullable=False),
        sa.Column("best_score", sa.Integer(), nullable=False),
        sa.Column("games_played", sa.Integer(), nullable=False),
        sa.Column("total_points", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "period_type IN ('daily','weekly','monthly','alltime')",
            name="ck_leaderboard_entries_period_type",
        ),
        sa.CheckConstraint("rank_position > 0", name="ck_leaderboard_entries_rank_positive"),
        sa.CheckConstraint("games_played >= 0", name="ck_leaderboard_entries_games_non_negative"),
        sa.ForeignKeyConstraint(["customer_id"], ["customers.id"]),
        sa.UniqueConstraint(
            "merchant_id",
            "customer_id",
            "game_type",
            "period_type",
            "period_start",
            name="uq_leaderboard_entries_customer_period",
        ),
    )
    op.create_index(
        "idx_leaderboard_group_best_score",
        "leaderboard_entries",
        ["merchant_id", "game_type", "period_type", "period_start", "best_score"],
    )

    op.create_table(
        "loyalty_rewards",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("merchant_id", sa.String(64), nullable=False),
        sa.Column("reward_name", sa.Text(), nullable=False),
        sa.Column("reward_type", sa.String(32), nullable=False),
        sa.Column("points_cost", sa.Integer(), nullable=False),
        sa.Column("stock_quantity", sa.Integer(), nullable=True),
        sa.Column("total_redemptions", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("start_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_cost > 0", name="ck_loyalty_rewards_points_cost_positive"),
        sa.CheckConstraint(
            "stock_quantity IS NULL OR stock_quantity >= 0",
            name="ck_loyalty_rewards_stock_non_negative",
        ),
        sa.CheckConstraint(
            "total_redemptions >= 0",
            name="ck_loyalty_rewards_total_redemptions_non_negative",
        ),
    )
    op.create_index("idx_loyalty_rewards_merchant_active", "loyalty_rewards", ["merchant_id", "is_active"])


def downgrade() -> None:
    op.drop_index("idx_loyalty_rewards_merchant_active", table_name="loyalty_rewards")
    op.drop_table("loyalty_rewards")

    op.drop_index("idx_leaderboard_group_best_score", table_name="leaderboard_entries")
    op.drop_table("leaderboard_entries")

    op.drop_index("uq_points_ledger_customer_type_reference", table_name="points_ledger_entries")
    op.drop_index("idx_points_ledger_merchant_created", table_name="points_ledger_entries")
    op.drop_index("idx_points_ledger_customer_created", table_name="points_ledger_entries")
    op.drop_table("points_ledger_entries")

    op.drop_index("idx_user_challenges_challenge_progress", table_name="user_challenges")
    op.drop_index("idx_user_challenges_customer_open", table_name="user_challenges")
    op.drop_table("user_challenges")

    op.drop_index("idx_challenges_merchant_active", table_name="challenges")
    op.drop_table("challenges")

    op.drop_index("idx_game_sessions_merchant_started", table_name="game_sessions")
    op.drop_index("idx_game_sessions_customer_completed", table_name="game_sessions")
    op.drop_table("game_sessions")

    op.drop_index("idx_customers_last_play", table_name="customers")
    op.drop_index("idx_customers_merchant_points", table_name="customers")
    op.drop_index("idx_customers_merchant_segment", table_name="customers")
    op.drop_index("idx_customers_merchant", table_name="customers")
    op.drop_table("customers")
