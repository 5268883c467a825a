"""m2_points_ledger_append_only

Revision ID: 7d2e4b6a8c13
Revises: 3a1f5c7e9b20
Create Date: 2026-10-07 11:30:00.000000
"""

from collections.abc import Sequence

from alembic import op

revision: str = "7d2e4b6a8c13"
down_revision: str | None = "3a1f5c7e9b20"
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.execute(
        """
        CREATE OR REPLACE FUNCTION fn_points_ledger_entries_append_only()
        RETURNS trigger
        LANGUAGE plpgsql
        AS $$
        BEGIN
            RAISE EXCEPTION 'points_ledger_entries is append-only';
        END;
        $$;
        """
    )
    op.execute(
        """
        CREATE TRIGGER trg_points_ledger_entries_append_only
        BEFORE UPDATE OR DELETE ON points_ledger_entries
        FOR EACH ROW
        EXECUTE FUNCTION fn_points_ledger_entries_append_only();
        """
    )


def downgrade() -> None:
    op.execute(
        "DROP TRIGGER IF EXISTS trg_points_ledger_entries_append_only ON points_ledger_entries;"
    )
    op.execute("DROP FUNCTION IF EXISTS fn_points_ledger_entries_append_only();")
