"""003: create user_points

Revision ID: 003
Revises: 002
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # balance has no lower bound: a correction may debit more than a user still holds
    op.execute("""
        CREATE TABLE user_points (
            user_id         VARCHAR(64)     PRIMARY KEY,
            balance         BIGINT          NOT NULL DEFAULT 0,
            total_earned    BIGINT          NOT NULL DEFAULT 0,
            total_wagered   BIGINT          NOT NULL DEFAULT 0,
            total_won       BIGINT          NOT NULL DEFAULT 0,
            win_count       INT             NOT NULL DEFAULT 0,
            loss_count      INT             NOT NULL DEFAULT 0,
            current_streak  INT             NOT NULL DEFAULT 0,
            best_streak     INT             NOT NULL DEFAULT 0,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_user_points_counters_gte_0 CHECK (
                total_earned >= 0 AND total_wagered >= 0 AND total_won >= 0
                AND win_count >= 0 AND loss_count >= 0
                AND current_streak >= 0 AND best_streak >= 0
            )
        );
    """)
    op.execute("""
        CREATE TRIGGER trg_user_points_updated_at
            BEFORE UPDATE ON user_points
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS user_points CASCADE;")
