"""Search history and profile bio.

Every search by a signed-in user is recorded with its filters and result
count; the dashboard lists the most recent ones.

Revision ID: 002_search_and_profile
Revises: 001_baseline
Create Date: 2026-10-19
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_search_and_profile"
down_revision: str | None = "001_baseline"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("ALTER TABLE users ADD COLUMN IF NOT EXISTS bio TEXT")

    op.execute("""
        CREATE TABLE IF NOT EXISTS search_history (
            id          BIGSERIAL PRIMARY KEY,
            user_id     BIGINT NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            query       VARCHAR(256) NOT NULL,
            filters     JSONB NOT NULL DEFAULT '{}',
            results     INTEGER NOT NULL DEFAULT 0,
            created_at  TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_search_history_user_created
        ON search_history (user_id, created_at DESC)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS search_history CASCADE")
    op.execute("ALTER TABLE users DROP COLUMN IF EXISTS bio")
