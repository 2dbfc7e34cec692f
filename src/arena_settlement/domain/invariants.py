"""Market invariant checks for arena markets.

INV-POOL:     total_pool == yes_pool + no_pool == sum(bet.amount)
INV-PENDING:  active market → every bet has payout 0 and is_winner NULL
INV-SETTLED:  resolved market → no bet has is_winner NULL and every payout
              matches the calculator for the current outcome
INV-CONSERVE: resolved PARIMUTUEL market → |sum(payout) - total_pool|
              within max_rounding_drift(winner_count)
"""

import logging
from collections.abc import Sequence

from src.arena_common.enums import MarketStatus
from src.arena_market.domain.models import Bet, Market
from src.arena_settlement.domain.calculator import (
    SettlementCase,
    max_rounding_drift,
    settle,
    settlement_case,
)

logger = logging.getLogger(__name__)


def verify_market_invariants(
    market: Market, bets: Sequence[Bet], solo_adjustment: int
) -> list[str]:
    """Return human-readable violations; empty list means the market is consistent."""
    violations: list[str] = []
    staked = sum(b.amount for b in bets)

    if market.total_pool != market.yes_pool + market.no_pool:
        violations.append(
            f"INV-POOL violated on {market.id}: total_pool={market.total_pool} "
            f"!= yes_pool({market.yes_pool}) + no_pool({market.no_pool})"
        )
    if market.total_pool != staked:
        violations.append(
            f"INV-POOL violated on {market.id}: total_pool={market.total_pool} "
            f"!= sum(bet.amount)={staked}"
        )

    if market.status == MarketStatus.ACTIVE:
        touched = [b.id for b in bets if b.payout != 0 or b.is_winner is not None]
        if touched:
            violations.append(
                f"INV-PENDING violated on {market.id}: settled bets on active market {touched}"
            )

    elif market.status == MarketStatus.RESOLVED and market.outcome is not None:
        pending = [b.id for b in bets if b.is_winner is None]
        if pending:
            violations.append(
                f"INV-SETTLED violated on {market.id}: unsettled bets {pending} "
                "(unfinished correction?)"
            )
        else:
            expected = {p.bet_id: p for p in settle(bets, market.outcome, solo_adjustment)}
            mismatched = [
                b.id
                for b in bets
                if b.payout != expected[b.id].payout or b.is_winner != expected[b.id].is_winner
            ]
            if mismatched:
                violations.append(
                    f"INV-SETTLED violated on {market.id}: payouts differ from "
                    f"outcome {market.outcome!r} for bets {mismatched}"
                )

        if settlement_case(bets, market.outcome) is SettlementCase.PARIMUTUEL:
            paid = sum(b.payout for b in bets)
            winners = sum(1 for b in bets if b.position == market.outcome)
            drift = paid - staked
            if abs(drift) > max_rounding_drift(winners):
                violations.append(
                    f"INV-CONSERVE violated on {market.id}: paid {paid} vs pool {staked} "
                    f"(drift {drift}, bound {max_rounding_drift(winners)})"
                )

    if not violations:
        logger.debug("Invariants OK: market=%s, pool=%d, bets=%d", market.id, staked, len(bets))
    return violations
