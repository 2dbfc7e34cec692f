"""ResolutionService — first resolution of an active arena market.

Unlike a correction there is nothing to reverse, so the status flip and
every payout go out in a single transaction: either the market is resolved
with all bets settled, or nothing changed.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_common.datetime_utils import utc_now_iso
from src.arena_common.enums import MarketStatus
from src.arena_common.errors import MarketNotActiveError, MarketNotFoundError
from src.arena_common.locks import MarketLockFactory, market_lock
from src.arena_market.domain.repository import BetRepositoryProtocol, MarketRepositoryProtocol
from src.arena_market.infrastructure.persistence import BetRepository, MarketRepository
from src.arena_points.domain.repository import LedgerUpdaterProtocol
from src.arena_points.infrastructure.persistence import PointsRepository
from src.arena_settlement.application.payouts import apply_payout
from src.arena_settlement.domain.calculator import parse_position, settle, settlement_case

logger = logging.getLogger(__name__)


class ResolutionService:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        bets: BetRepositoryProtocol | None = None,
        ledger: LedgerUpdaterProtocol | None = None,
        lock: MarketLockFactory | None = None,
        solo_adjustment: int | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._ledger: LedgerUpdaterProtocol = ledger or PointsRepository()
        self._lock: MarketLockFactory = lock or market_lock
        self._solo_adjustment = (
            settings.SOLO_MARKET_ADJUSTMENT if solo_adjustment is None else solo_adjustment
        )

    async def resolve(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: str,
        price_at_resolution: float | None = None,
    ) -> dict[str, Any]:
        winning = parse_position(outcome).value
        async with self._lock(market_id):
            market = await self._markets.get_market(db, market_id)
            if market is None:
                raise MarketNotFoundError(market_id)
            if market.status != MarketStatus.ACTIVE:
                raise MarketNotActiveError(market_id, market.status)

            bets = await self._bets.list_bets(db, market_id)
            case = settlement_case(bets, winning)
            audit_entry = {"type": "resolution", "outcome": winning, "timestamp": utc_now_iso()}

            try:
                if not await self._markets.mark_resolved(
                    db, market_id, winning, price_at_resolution, audit_entry
                ):
                    # Status changed between the read and the guarded update
                    raise MarketNotActiveError(market_id, "unknown")

                payouts: list[dict[str, Any]] = []
                for payout in settle(bets, winning, self._solo_adjustment):
                    entry = await apply_payout(db, self._bets, self._ledger, payout, market_id)
                    if entry is not None:
                        payouts.append(entry)
                await db.commit()
            except Exception:
                await db.rollback()
                raise

        logger.info(
            "Resolved market %s as %r (%s): %d bets settled",
            market_id,
            winning,
            case.value,
            len(payouts),
        )
        return {
            "market_id": market_id,
            "question": market.question,
            "outcome": winning,
            "settlement_case": case.value,
            "total_bets": len(bets),
            "total_paid": sum(p["payout"] for p in payouts),
            "payouts": payouts,
        }
