"""Admin application service — read-side tooling around arena markets."""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_common.enums import MarketStatus
from src.arena_common.errors import MarketNotFoundError
from src.arena_gateway.user.repository import ProfileRepository
from src.arena_market.domain.repository import BetRepositoryProtocol, MarketRepositoryProtocol
from src.arena_market.infrastructure.persistence import BetRepository, MarketRepository
from src.arena_settlement.domain.invariants import verify_market_invariants

logger = logging.getLogger(__name__)

INVARIANT_SCAN_LIMIT = 500


class AdminService:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        bets: BetRepositoryProtocol | None = None,
        profiles: ProfileRepository | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._profiles = profiles or ProfileRepository()

    async def get_market_bets(self, db: AsyncSession, market_id: str) -> dict[str, Any]:
        market = await self._markets.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        bets = await self._bets.list_bets(db, market_id)
        usernames = await self._profiles.get_usernames(db, (b.user_id for b in bets))
        return {
            "market_id": market.id,
            "question": market.question,
            "status": market.status,
            "outcome": market.outcome,
            "total_pool": market.total_pool,
            "audit_log": market.audit_log,
            "bets": [
                {
                    "id": b.id,
                    "user_id": b.user_id,
                    "username": usernames.get(b.user_id),
                    "position": b.position,
                    "amount": b.amount,
                    "payout": b.payout,
                    "is_winner": b.is_winner,
                    "created_at": b.created_at.isoformat() if b.created_at else None,
                }
                for b in bets
            ],
        }

    async def verify_all_invariants(self, db: AsyncSession) -> dict[str, object]:
        """Run the per-market pool/settlement/conservation checks over live markets."""
        violations: list[str] = []
        checked = 0
        for status in (MarketStatus.ACTIVE, MarketStatus.RESOLVED):
            markets = await self._markets.list_markets_by_status(
                db, status.value, INVARIANT_SCAN_LIMIT
            )
            for market in markets:
                bets = await self._bets.list_bets(db, market.id)
                violations.extend(
                    verify_market_invariants(market, bets, settings.SOLO_MARKET_ADJUSTMENT)
                )
                checked += 1
        if violations:
            logger.warning("Invariant scan found %d violations", len(violations))
        return {"ok": len(violations) == 0, "markets_checked": checked, "violations": violations}
