"""Pari-mutuel settlement calculator — pure, no I/O.

Given every bet on a market and the winning position:

  SOLO        nobody picked the outcome: every bet loses,
              payout = max(amount - adj, 0)
  UNANIMOUS   everybody picked the outcome: every bet wins,
              payout = amount + adj
  PARIMUTUEL  both sides staked: winners split the loser pool pro rata,
              payout = round_half_up(amount + loser_pool * amount / winner_pool),
              losers get 0

All arithmetic is on integer points. In the PARIMUTUEL case each winner's
payout is off its exact share by at most half a point, so

    |sum(payouts) - total_pool| <= winner_count // 2

SOLO and UNANIMOUS do not conserve: SOLO removes sum(min(amount, adj)) and
UNANIMOUS adds winner_count * adj.
"""

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from src.arena_common.enums import Position
from src.arena_common.errors import InvalidPositionError
from src.arena_market.domain.models import Bet


class SettlementCase(str, Enum):
    EMPTY = "EMPTY"
    SOLO = "SOLO"
    UNANIMOUS = "UNANIMOUS"
    PARIMUTUEL = "PARIMUTUEL"


@dataclass(frozen=True)
class Payout:
    bet_id: str
    user_id: str
    position: str
    amount: int
    payout: int
    is_winner: bool

    @property
    def result(self) -> str:
        return "winner" if self.is_winner else "loser"


def parse_position(value: object) -> Position:
    """Exactly 'yes' or 'no' → Position. Anything else → InvalidPositionError."""
    if isinstance(value, Position):
        return value
    if isinstance(value, str):
        try:
            return Position(value)
        except ValueError:
            pass
    raise InvalidPositionError(value)


def _round_half_up_div(numerator: int, denominator: int) -> int:
    return (2 * numerator + denominator) // (2 * denominator)


def settlement_case(bets: Sequence[Bet], outcome: Position | str) -> SettlementCase:
    winning = parse_position(outcome).value
    if not bets:
        return SettlementCase.EMPTY
    winners = [b for b in bets if b.position == winning]
    if not winners:
        return SettlementCase.SOLO
    if sum(b.amount for b in bets if b.position != winning) == 0:
        return SettlementCase.UNANIMOUS
    return SettlementCase.PARIMUTUEL


def settle(
    bets: Sequence[Bet], outcome: Position | str, solo_adjustment: int
) -> list[Payout]:
    """One Payout per bet, in input order."""
    if solo_adjustment < 0:
        raise ValueError(f"solo_adjustment must be >= 0, got {solo_adjustment}")
    winning = parse_position(outcome).value
    case = settlement_case(bets, winning)

    if case is SettlementCase.EMPTY:
        return []

    if case is SettlementCase.SOLO:
        return [
            Payout(b.id, b.user_id, b.position, b.amount, max(b.amount - solo_adjustment, 0), False)
            for b in bets
        ]

    if case is SettlementCase.UNANIMOUS:
        # Zero-stake losers can only appear here; they stay losers with nothing to pay.
        return [
            Payout(b.id, b.user_id, b.position, b.amount, b.amount + solo_adjustment, True)
            if b.position == winning
            else Payout(b.id, b.user_id, b.position, b.amount, 0, False)
            for b in bets
        ]

    winner_pool = sum(b.amount for b in bets if b.position == winning)
    total_pool = sum(b.amount for b in bets)
    payouts: list[Payout] = []
    for b in bets:
        if b.position == winning:
            # amount + loser_pool * amount / winner_pool == amount * total_pool / winner_pool
            amount = _round_half_up_div(b.amount * total_pool, winner_pool)
            payouts.append(Payout(b.id, b.user_id, b.position, b.amount, amount, True))
        else:
            payouts.append(Payout(b.id, b.user_id, b.position, b.amount, 0, False))
    return payouts


def max_rounding_drift(winner_count: int) -> int:
    """Largest |sum(payouts) - total_pool| the PARIMUTUEL case can produce."""
    return winner_count // 2
