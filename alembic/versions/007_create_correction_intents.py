"""007: create correction_intents

Revision ID: 007
Revises: 006
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "007"
down_revision: Union[str, None] = "006"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE correction_intents (
            id              VARCHAR(64)     PRIMARY KEY DEFAULT gen_random_uuid()::text,
            market_id       VARCHAR(64)     NOT NULL REFERENCES arena_markets(id),
            old_outcome     VARCHAR(3)      NOT NULL,
            target_outcome  VARCHAR(3)      NOT NULL,
            step            VARCHAR(20)     NOT NULL DEFAULT 'STARTED',
            reversals       JSONB           NOT NULL DEFAULT '[]'::jsonb,
            new_payouts     JSONB           NOT NULL DEFAULT '[]'::jsonb,
            requested_by    VARCHAR(64),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            completed_at    TIMESTAMPTZ,
            CONSTRAINT ck_correction_intents_step CHECK (
                step IN ('STARTED', 'REVERSED', 'OUTCOME_UPDATED', 'COMPLETED')
            ),
            CONSTRAINT ck_correction_intents_target CHECK (target_outcome IN ('yes', 'no'))
        );
    """)
    # One open correction per market
    op.execute("""
        CREATE UNIQUE INDEX uq_correction_intents_open_market
            ON correction_intents (market_id)
            WHERE step <> 'COMPLETED';
    """)
    op.execute("CREATE INDEX idx_correction_intents_market ON correction_intents (market_id, created_at);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS correction_intents CASCADE;")
