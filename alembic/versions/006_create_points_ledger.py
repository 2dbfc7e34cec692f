"""006: create points_ledger

Revision ID: 006
Revises: 005
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "006"
down_revision: Union[str, None] = "005"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE points_ledger (
            id              BIGSERIAL       PRIMARY KEY,
            user_id         VARCHAR(64)     NOT NULL,
            entry_type      VARCHAR(30)     NOT NULL,
            amount          BIGINT          NOT NULL,
            balance_after   BIGINT          NOT NULL,
            reference_type  VARCHAR(30),
            reference_id    VARCHAR(64),
            description     VARCHAR(500),
            created_at      TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_points_ledger_entry_type CHECK (
                entry_type IN ('SETTLEMENT_PAYOUT', 'SETTLEMENT_REFUND', 'CORRECTION_REVERSAL')
            )
        );
    """)
    op.execute("CREATE INDEX idx_points_ledger_user ON points_ledger (user_id, id DESC);")
    op.execute("CREATE INDEX idx_points_ledger_reference ON points_ledger (reference_id);")


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS points_ledger CASCADE;")
