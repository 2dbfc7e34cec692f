"""MarketRepository / BetRepository — raw-SQL implementations of the store Protocols.

Every state transition is a single guarded UPDATE ... RETURNING. Zero rows
back means the guard failed (wrong status, stale version, bet already in the
target state) and the caller decides what that means.

Transaction ownership: the CALLER commits or rolls back.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.errors import ConcurrentCorrectionError
from src.arena_market.domain.models import Bet, Market

_MARKET_COLUMNS = """
    id, question, status, outcome, yes_pool, no_pool, total_pool, total_bettors,
    token_address, token_symbol, market_type, price_at_creation, price_at_resolution,
    resolve_at, resolved_at, audit_log, version, created_at, updated_at
"""

_GET_MARKET_SQL = text(f"SELECT {_MARKET_COLUMNS} FROM arena_markets WHERE id = :market_id")

_LIST_MARKETS_BY_STATUS_SQL = text(f"""
    SELECT {_MARKET_COLUMNS}
    FROM arena_markets
    WHERE status = :status
    ORDER BY resolved_at DESC NULLS LAST, created_at DESC
    LIMIT :limit
""")

_MARK_RESOLVED_SQL = text("""
    UPDATE arena_markets
    SET status = 'resolved',
        outcome = :outcome,
        price_at_resolution = COALESCE(:price_at_resolution, price_at_resolution),
        resolved_at = NOW(),
        audit_log = audit_log || jsonb_build_array(CAST(:entry AS JSONB)),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :market_id AND status = 'active'
    RETURNING version
""")

_UPDATE_OUTCOME_SQL = text("""
    UPDATE arena_markets
    SET outcome = :outcome,
        audit_log = audit_log || jsonb_build_array(CAST(:entry AS JSONB)),
        version = version + 1,
        updated_at = NOW()
    WHERE id = :market_id AND status = 'resolved' AND version = :expected_version
    RETURNING version
""")

_LIST_BETS_SQL = text("""
    SELECT id, market_id, user_id, position, amount, payout, is_winner, created_at
    FROM arena_bets
    WHERE market_id = :market_id
    ORDER BY created_at ASC, id ASC
""")

# Compare-and-set on the settlement the caller read; a bet already reversed or
# re-settled since then is left alone
_RESET_BET_SQL = text("""
    UPDATE arena_bets
    SET payout = 0, is_winner = NULL, updated_at = NOW()
    WHERE id = :bet_id
      AND is_winner = :expected_is_winner
      AND payout = :expected_payout
    RETURNING id
""")

_SETTLE_BET_SQL = text("""
    UPDATE arena_bets
    SET payout = :payout, is_winner = :is_winner, updated_at = NOW()
    WHERE id = :bet_id AND is_winner IS NULL
    RETURNING id
""")


def _load_audit_log(value: object) -> list[dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, str | bytes):
        value = json.loads(value)
    return list(value)  # type: ignore[call-overload]


def _row_to_market(row: object) -> Market:
    return Market(
        id=str(row.id),  # type: ignore[attr-defined]
        question=row.question,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        outcome=row.outcome,  # type: ignore[attr-defined]
        yes_pool=row.yes_pool,  # type: ignore[attr-defined]
        no_pool=row.no_pool,  # type: ignore[attr-defined]
        total_pool=row.total_pool,  # type: ignore[attr-defined]
        total_bettors=row.total_bettors,  # type: ignore[attr-defined]
        token_address=row.token_address,  # type: ignore[attr-defined]
        token_symbol=row.token_symbol,  # type: ignore[attr-defined]
        market_type=row.market_type,  # type: ignore[attr-defined]
        price_at_creation=row.price_at_creation,  # type: ignore[attr-defined]
        price_at_resolution=row.price_at_resolution,  # type: ignore[attr-defined]
        resolve_at=row.resolve_at,  # type: ignore[attr-defined]
        resolved_at=row.resolved_at,  # type: ignore[attr-defined]
        audit_log=_load_audit_log(row.audit_log),  # type: ignore[attr-defined]
        version=row.version,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _row_to_bet(row: object) -> Bet:
    return Bet(
        id=str(row.id),  # type: ignore[attr-defined]
        market_id=str(row.market_id),  # type: ignore[attr-defined]
        user_id=str(row.user_id),  # type: ignore[attr-defined]
        position=row.position,  # type: ignore[attr-defined]
        amount=row.amount,  # type: ignore[attr-defined]
        payout=row.payout or 0,  # type: ignore[attr-defined]
        is_winner=row.is_winner,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
    )


class MarketRepository:
    async def get_market(self, db: AsyncSession, market_id: str) -> Market | None:
        result = await db.execute(_GET_MARKET_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_market(row) if row else None

    async def list_markets_by_status(
        self, db: AsyncSession, status: str, limit: int
    ) -> list[Market]:
        result = await db.execute(
            _LIST_MARKETS_BY_STATUS_SQL, {"status": status, "limit": limit}
        )
        return [_row_to_market(row) for row in result.fetchall()]

    async def mark_resolved(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: str,
        price_at_resolution: float | None,
        audit_entry: dict[str, Any],
    ) -> bool:
        """active → resolved. False if the market was no longer active."""
        result = await db.execute(
            _MARK_RESOLVED_SQL,
            {
                "market_id": market_id,
                "outcome": outcome,
                "price_at_resolution": price_at_resolution,
                "entry": json.dumps(audit_entry),
            },
        )
        return result.fetchone() is not None

    async def update_outcome(
        self,
        db: AsyncSession,
        market_id: str,
        expected_version: int,
        outcome: str,
        audit_entry: dict[str, Any],
    ) -> int:
        """Flip the outcome of a resolved market and append *audit_entry*.

        Returns the new version. Raises ConcurrentCorrectionError when the
        row changed since it was read.
        """
        result = await db.execute(
            _UPDATE_OUTCOME_SQL,
            {
                "market_id": market_id,
                "expected_version": expected_version,
                "outcome": outcome,
                "entry": json.dumps(audit_entry),
            },
        )
        row = result.fetchone()
        if row is None:
            raise ConcurrentCorrectionError(market_id)
        return int(row.version)


class BetRepository:
    async def list_bets(self, db: AsyncSession, market_id: str) -> list[Bet]:
        result = await db.execute(_LIST_BETS_SQL, {"market_id": market_id})
        return [_row_to_bet(row) for row in result.fetchall()]

    async def reset_settlement(
        self, db: AsyncSession, bet_id: str, expected_is_winner: bool, expected_payout: int
    ) -> bool:
        """settled → neutral (payout 0, is_winner NULL).

        Only applies while the bet still holds the expected settlement; returns
        False when it is already neutral or was settled differently since.
        """
        result = await db.execute(
            _RESET_BET_SQL,
            {
                "bet_id": bet_id,
                "expected_is_winner": expected_is_winner,
                "expected_payout": expected_payout,
            },
        )
        return result.fetchone() is not None

    async def apply_settlement(
        self, db: AsyncSession, bet_id: str, payout: int, is_winner: bool
    ) -> bool:
        """neutral → settled. False if the bet was already settled."""
        result = await db.execute(
            _SETTLE_BET_SQL,
            {"bet_id": bet_id, "payout": payout, "is_winner": is_winner},
        )
        return result.fetchone() is not None
