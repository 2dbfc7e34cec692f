"""004: create arena_markets

Revision ID: 004
Revises: 003
Create Date: 2026-09-28
"""
from typing import Sequence, Union
from alembic import op

revision: str = "004"
down_revision: Union[str, None] = "003"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE arena_markets (
            id                      VARCHAR(64)     PRIMARY KEY,
            question                VARCHAR(500)    NOT NULL,
            status                  VARCHAR(20)     NOT NULL DEFAULT 'active',
            outcome                 VARCHAR(3),
            yes_pool                BIGINT          NOT NULL DEFAULT 0,
            no_pool                 BIGINT          NOT NULL DEFAULT 0,
            total_pool              BIGINT          NOT NULL DEFAULT 0,
            total_bettors           INT             NOT NULL DEFAULT 0,
            token_address           VARCHAR(128),
            token_symbol            VARCHAR(32),
            market_type             VARCHAR(32),
            price_at_creation       NUMERIC(38, 18),
            price_at_resolution     NUMERIC(38, 18),
            resolve_at              TIMESTAMPTZ,
            resolved_at             TIMESTAMPTZ,
            audit_log               JSONB           NOT NULL DEFAULT '[]'::jsonb,
            version                 BIGINT          NOT NULL DEFAULT 0,
            created_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            updated_at              TIMESTAMPTZ     NOT NULL DEFAULT NOW(),
            CONSTRAINT ck_arena_markets_status CHECK (status IN ('active', 'resolved', 'cancelled')),
            CONSTRAINT ck_arena_markets_outcome CHECK (outcome IS NULL OR outcome IN ('yes', 'no')),
            CONSTRAINT ck_arena_markets_resolved_has_outcome CHECK (
                status <> 'resolved' OR outcome IS NOT NULL
            ),
            CONSTRAINT ck_arena_markets_pools_gte_0 CHECK (yes_pool >= 0 AND no_pool >= 0),
            CONSTRAINT ck_arena_markets_pool_sum CHECK (total_pool = yes_pool + no_pool)
        );
    """)
    op.execute("CREATE INDEX idx_arena_markets_status ON arena_markets (status);")
    op.execute("""
        CREATE TRIGGER trg_arena_markets_updated_at
            BEFORE UPDATE ON arena_markets
            FOR EACH ROW EXECUTE FUNCTION fn_touch_updated_at();
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS arena_markets CASCADE;")
