"""In-memory arena store for service-level tests.

FakeStore implements the market, bet, ledger and intent repository Protocols
over plain dicts. FakeSession.commit() snapshots the store and rollback()
restores the last snapshot, so a failure inside a unit of work leaves only
the committed units behind, as PostgreSQL would.
"""

import copy
from dataclasses import replace
from typing import Any

import pytest
from sqlalchemy.exc import IntegrityError

from src.arena_common.enums import CorrectionStep, MarketStatus, PointsEntryType
from src.arena_common.errors import ConcurrentCorrectionError
from src.arena_market.domain.models import Bet, Market
from src.arena_points.domain.models import PointsLedgerEntry, UserPoints
from src.arena_settlement.domain.models import CorrectionIntent

STARTING_POINTS = 500


class FakeSession:
    def __init__(self, store: "FakeStore") -> None:
        self._store = store
        self.commits = 0
        self.rollbacks = 0

    async def commit(self) -> None:
        self.commits += 1
        self._store.snapshot()

    async def rollback(self) -> None:
        self.rollbacks += 1
        self._store.restore()


class FakeStore:
    def __init__(self) -> None:
        self.markets: dict[str, Market] = {}
        self.bets: list[Bet] = []
        self.points: dict[str, UserPoints] = {}
        self.ledger: list[PointsLedgerEntry] = []
        self.intents: dict[str, CorrectionIntent] = {}
        self.fail_win_credit_for: str | None = None
        self._committed: dict[str, Any] = {}
        self.session = FakeSession(self)
        self.snapshot()

    # -- transaction emulation -------------------------------------------

    def _state(self) -> dict[str, Any]:
        return {
            "markets": self.markets,
            "bets": self.bets,
            "points": self.points,
            "ledger": self.ledger,
            "intents": self.intents,
        }

    def snapshot(self) -> None:
        self._committed = copy.deepcopy(self._state())

    def restore(self) -> None:
        state = copy.deepcopy(self._committed)
        self.markets = state["markets"]
        self.bets = state["bets"]
        self.points = state["points"]
        self.ledger = state["ledger"]
        self.intents = state["intents"]

    # -- seeding -----------------------------------------------------------

    def add_market(
        self, market_id: str, bets: list[tuple[str, str, int]], status: str = "active"
    ) -> Market:
        """bets: (user_id, position, amount) tuples."""
        yes = sum(a for _, p, a in bets if p == "yes")
        no = sum(a for _, p, a in bets if p == "no")
        market = Market(
            id=market_id,
            question=f"Will {market_id} pump?",
            status=status,
            outcome=None,
            yes_pool=yes,
            no_pool=no,
            total_pool=yes + no,
            total_bettors=len({u for u, _, _ in bets}),
        )
        self.markets[market_id] = market
        for i, (user_id, position, amount) in enumerate(bets):
            self.bets.append(
                Bet(
                    id=f"{market_id}-bet-{i}",
                    market_id=market_id,
                    user_id=user_id,
                    position=position,
                    amount=amount,
                )
            )
        self.snapshot()
        return market

    def balance(self, user_id: str) -> int:
        return self.points[user_id].balance

    def market_bets(self, market_id: str) -> list[Bet]:
        return [b for b in self.bets if b.market_id == market_id]

    def _bet(self, bet_id: str) -> Bet:
        return next(b for b in self.bets if b.id == bet_id)

    def _account(self, user_id: str) -> UserPoints:
        return self.points.setdefault(user_id, UserPoints(user_id=user_id, balance=STARTING_POINTS))

    # -- MarketRepositoryProtocol -----------------------------------------

    async def get_market(self, db: Any, market_id: str) -> Market | None:
        market = self.markets.get(market_id)
        return replace(market, audit_log=list(market.audit_log)) if market else None

    async def list_markets_by_status(self, db: Any, status: str, limit: int) -> list[Market]:
        return [
            replace(m, audit_log=list(m.audit_log))
            for m in self.markets.values()
            if m.status == status
        ][:limit]

    async def mark_resolved(
        self,
        db: Any,
        market_id: str,
        outcome: str,
        price_at_resolution: float | None,
        audit_entry: dict[str, Any],
    ) -> bool:
        market = self.markets[market_id]
        if market.status != MarketStatus.ACTIVE:
            return False
        market.status = MarketStatus.RESOLVED.value
        market.outcome = outcome
        market.price_at_resolution = price_at_resolution
        market.audit_log.append(dict(audit_entry))
        market.version += 1
        return True

    async def update_outcome(
        self,
        db: Any,
        market_id: str,
        expected_version: int,
        outcome: str,
        audit_entry: dict[str, Any],
    ) -> int:
        market = self.markets[market_id]
        if market.status != MarketStatus.RESOLVED or market.version != expected_version:
            raise ConcurrentCorrectionError(market_id)
        market.outcome = outcome
        market.audit_log.append(dict(audit_entry))
        market.version += 1
        return market.version

    # -- BetRepositoryProtocol ---------------------------------------------

    async def list_bets(self, db: Any, market_id: str) -> list[Bet]:
        return [replace(b) for b in self.market_bets(market_id)]

    async def reset_settlement(
        self, db: Any, bet_id: str, expected_is_winner: bool, expected_payout: int
    ) -> bool:
        bet = self._bet(bet_id)
        if bet.is_winner is None or (bet.is_winner, bet.payout) != (
            expected_is_winner,
            expected_payout,
        ):
            return False
        bet.payout, bet.is_winner = 0, None
        return True

    async def apply_settlement(self, db: Any, bet_id: str, payout: int, is_winner: bool) -> bool:
        bet = self._bet(bet_id)
        if bet.is_winner is not None:
            return False
        bet.payout, bet.is_winner = payout, is_winner
        return True

    # -- LedgerUpdaterProtocol ---------------------------------------------

    async def credit_balance(
        self,
        db: Any,
        user_id: str,
        amount: int,
        is_win: bool,
        entry_type: PointsEntryType,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> UserPoints:
        if is_win and user_id == self.fail_win_credit_for:
            raise RuntimeError(f"ledger unavailable for {user_id}")
        acct = self._account(user_id)
        acct.balance += amount
        if is_win:
            acct.total_won += amount
            acct.total_earned += amount
            acct.win_count += 1
            acct.current_streak += 1
            acct.best_streak = max(acct.best_streak, acct.current_streak)
        self.ledger.append(
            PointsLedgerEntry(
                id=len(self.ledger) + 1,
                user_id=user_id,
                entry_type=PointsEntryType(entry_type).value,
                amount=amount,
                balance_after=acct.balance,
                reference_id=reference_id,
                description=description,
            )
        )
        return acct

    async def update_streak(self, db: Any, user_id: str, is_win: bool) -> UserPoints:
        acct = self._account(user_id)
        if is_win:
            acct.current_streak += 1
            acct.best_streak = max(acct.best_streak, acct.current_streak)
        else:
            acct.current_streak = 0
            acct.loss_count += 1
        return acct

    async def reverse_win(
        self, db: Any, user_id: str, payout: int, reference_id: str | None = None
    ) -> UserPoints:
        if payout > 0:
            await self.credit_balance(
                db, user_id, -payout, False, PointsEntryType.CORRECTION_REVERSAL, reference_id
            )
        acct = self._account(user_id)
        acct.win_count = max(acct.win_count - 1, 0)
        acct.total_won = max(acct.total_won - payout, 0)
        acct.total_earned = max(acct.total_earned - payout, 0)
        return acct

    async def reverse_loss(
        self, db: Any, user_id: str, refund: int, reference_id: str | None = None
    ) -> UserPoints:
        if refund > 0:
            await self.credit_balance(
                db, user_id, -refund, False, PointsEntryType.CORRECTION_REVERSAL, reference_id
            )
        acct = self._account(user_id)
        acct.loss_count = max(acct.loss_count - 1, 0)
        return acct

    async def get_points(self, db: Any, user_id: str) -> UserPoints | None:
        return self.points.get(user_id)

    async def list_ledger_entries(
        self, db: Any, user_id: str, limit: int
    ) -> list[PointsLedgerEntry]:
        return [e for e in reversed(self.ledger) if e.user_id == user_id][:limit]

    # -- CorrectionIntentRepositoryProtocol --------------------------------

    def _open_intent(self, market_id: str) -> CorrectionIntent | None:
        return next(
            (i for i in self.intents.values() if i.market_id == market_id and i.is_open),
            None,
        )

    async def get_open_intent(self, db: Any, market_id: str) -> CorrectionIntent | None:
        intent = self._open_intent(market_id)
        return copy.deepcopy(intent) if intent else None

    async def list_open_intents(self, db: Any, limit: int) -> list[CorrectionIntent]:
        return [copy.deepcopy(i) for i in self.intents.values() if i.is_open][:limit]

    async def create_intent(
        self,
        db: Any,
        market_id: str,
        old_outcome: str,
        target_outcome: str,
        requested_by: str | None,
    ) -> CorrectionIntent:
        if self._open_intent(market_id) is not None:
            raise IntegrityError("INSERT INTO correction_intents", {}, Exception("duplicate"))
        intent = CorrectionIntent(
            id=f"intent-{len(self.intents) + 1}",
            market_id=market_id,
            old_outcome=old_outcome,
            target_outcome=target_outcome,
            step=CorrectionStep.STARTED,
            requested_by=requested_by,
        )
        self.intents[intent.id] = intent
        return copy.deepcopy(intent)

    async def append_reversal(self, db: Any, intent_id: str, entry: dict[str, Any]) -> None:
        self.intents[intent_id].reversals.append(dict(entry))

    async def append_payout(self, db: Any, intent_id: str, entry: dict[str, Any]) -> None:
        self.intents[intent_id].new_payouts.append(dict(entry))

    async def advance(
        self, db: Any, intent_id: str, from_step: CorrectionStep, to_step: CorrectionStep
    ) -> bool:
        intent = self.intents[intent_id]
        if intent.step != from_step:
            return False
        intent.step = to_step
        return True


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()
