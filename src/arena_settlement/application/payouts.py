"""Apply one computed Payout to the store and the ledger.

Shared by initial resolution and correction re-settlement. The bet row
transition (NULL → settled) is the guard: if it was already settled the
ledger is left untouched and None is returned.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.enums import PointsEntryType
from src.arena_market.domain.repository import BetRepositoryProtocol
from src.arena_points.domain.repository import LedgerUpdaterProtocol
from src.arena_settlement.domain.calculator import Payout


async def apply_payout(
    db: AsyncSession,
    bets: BetRepositoryProtocol,
    ledger: LedgerUpdaterProtocol,
    payout: Payout,
    market_id: str,
) -> dict[str, Any] | None:
    if not await bets.apply_settlement(db, payout.bet_id, payout.payout, payout.is_winner):
        return None

    if payout.is_winner:
        # Win credit also bumps win_count/total_won/total_earned and the streak
        await ledger.credit_balance(
            db,
            payout.user_id,
            payout.payout,
            is_win=True,
            entry_type=PointsEntryType.SETTLEMENT_PAYOUT,
            reference_id=payout.bet_id,
            description=f"Won market {market_id}",
        )
    else:
        if payout.payout > 0:
            await ledger.credit_balance(
                db,
                payout.user_id,
                payout.payout,
                is_win=False,
                entry_type=PointsEntryType.SETTLEMENT_REFUND,
                reference_id=payout.bet_id,
                description=f"Solo-market refund on {market_id}",
            )
        await ledger.update_streak(db, payout.user_id, is_win=False)

    return {
        "user_id": payout.user_id,
        "position": payout.position,
        "result": payout.result,
        "payout": payout.payout,
    }
