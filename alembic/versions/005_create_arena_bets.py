"""005: create arena_bets

Revision ID: 005
Revises: 004
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "005"
down_revision: Union[str, None] = "004"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE arena_bets (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            market_id       VARCHAR(64)     NOT NULL REFERENCES arena_markets(id),
            user_id         VARCHAR(64)     NOT NULL,
            position        VARCHAR(3)      NOT NULL,
            amount          BIGINT          NOT NULL,
            payout          BIGINT          NOT NULL DEFAULT 0,
            is_winner       BOOLEAN,
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_arena_bets_position CHECK (position IN ('yes', 'no')),
            CONSTRAINT ck_arena_bets_amount_gt_0 CHECK (amount > 0),
            CONSTRAINT ck_arena_bets_payout_gte_0 CHECK (payout >= 0),
            CONSTRAINT ck_arena_bets_pending_unpaid CHECK (is_winner IS NOT NULL OR payout = 0)
        );
    """)
    op.execute("CREATE INDEX idx_arena_bets_market ON arena_bets (market_id, created_at, id);")
    op.execute("CREATE INDEX idx_arena_bets_user ON arena_bets (user_id);")
    op.execute("""
        CREATE TRIGGER trg_arena_bets_updated_at
            BEFORE UPDATE ON arena_bets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS arena_bets CASCADE;")
