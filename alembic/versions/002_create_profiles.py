"""002: create profiles

Revision ID: 002
Revises: 001
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS profiles (
            id          VARCHAR(64)     PRIMARY KEY,
            username    VARCHAR(64)     UNIQUE,
            is_admin    BOOLEAN         NOT NULL DEFAULT FALSE,
            created_at  TIMESTAMPTZ     NOT NULL DEFAULT NOW()
        );
    """)
    op.execute("COMMENT ON TABLE profiles IS 'Platform user profiles; is_admin gates market corrections';")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS profiles CASCADE;")
