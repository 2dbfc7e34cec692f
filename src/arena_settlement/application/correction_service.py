"""CorrectionService — reverse a wrong resolution and re-settle the same bets.

Steps, each recorded on a durable CorrectionIntent:

  STARTED          intent written; every settled bet is reversed one by one
  REVERSED         all bets neutral; market outcome flipped + audit entry
  OUTCOME_UPDATED  bets re-settled one by one under the new outcome
  COMPLETED        done

Every per-bet unit (bet row transition + its ledger mutations + the intent
diff entry) is one commit. A reset only applies while the bet still holds the
settlement this worker read, and a settle only applies to a neutral bet, so
re-applying a unit is a no-op. The intent step only moves forward from the
step this worker last saw, and the market lock is renewed before each unit; a
worker that lost either stops with ConcurrentCorrectionError.

A failure mid-run leaves the intent open and raises PartialFailureError;
calling correct() again with the same outcome resumes at the recorded step.

All reversals commit before any re-settlement credit, which keeps each
user's debit strictly ahead of their new credit.
"""

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_common.datetime_utils import utc_now_iso
from src.arena_common.enums import CorrectionStep, MarketStatus
from src.arena_common.errors import (
    AppError,
    BetsNotFoundError,
    ConcurrentCorrectionError,
    CorrectionInProgressError,
    MarketNotFoundError,
    MarketNotResolvedError,
    OutcomeUnchangedError,
    PartialFailureError,
)
from src.arena_common.locks import MarketLease, MarketLockFactory, market_lock
from src.arena_market.domain.models import Bet, Market
from src.arena_market.domain.repository import BetRepositoryProtocol, MarketRepositoryProtocol
from src.arena_market.infrastructure.persistence import BetRepository, MarketRepository
from src.arena_points.domain.repository import LedgerUpdaterProtocol
from src.arena_points.infrastructure.persistence import PointsRepository
from src.arena_settlement.application.payouts import apply_payout
from src.arena_settlement.domain.calculator import parse_position, settle
from src.arena_settlement.domain.models import CorrectionIntent, CorrectionResult
from src.arena_settlement.domain.repository import CorrectionIntentRepositoryProtocol
from src.arena_settlement.infrastructure.intents import CorrectionIntentRepository

logger = logging.getLogger(__name__)

RECOVERY_BATCH_LIMIT = 50


class CorrectionService:
    def __init__(
        self,
        markets: MarketRepositoryProtocol | None = None,
        bets: BetRepositoryProtocol | None = None,
        ledger: LedgerUpdaterProtocol | None = None,
        intents: CorrectionIntentRepositoryProtocol | None = None,
        lock: MarketLockFactory | None = None,
        solo_adjustment: int | None = None,
    ) -> None:
        self._markets: MarketRepositoryProtocol = markets or MarketRepository()
        self._bets: BetRepositoryProtocol = bets or BetRepository()
        self._ledger: LedgerUpdaterProtocol = ledger or PointsRepository()
        self._intents: CorrectionIntentRepositoryProtocol = (
            intents or CorrectionIntentRepository()
        )
        self._lock: MarketLockFactory = lock or market_lock
        self._solo_adjustment = (
            settings.SOLO_MARKET_ADJUSTMENT if solo_adjustment is None else solo_adjustment
        )

    async def correct(
        self,
        db: AsyncSession,
        market_id: str,
        requested_outcome: str,
        requested_by: str | None = None,
    ) -> CorrectionResult:
        """Flip a resolved market to *requested_outcome* and re-settle its bets."""
        target = parse_position(requested_outcome).value
        async with self._lock(market_id) as lease:
            intent = await self._intents.get_open_intent(db, market_id)
            if intent is not None:
                if intent.target_outcome != target:
                    raise CorrectionInProgressError(market_id, intent.target_outcome)
                market = await self._markets.get_market(db, market_id)
                if market is None:
                    raise MarketNotFoundError(market_id)
                bets = await self._bets.list_bets(db, market_id)
                logger.warning(
                    "Resuming correction %s of market %s at step %s",
                    intent.id,
                    market_id,
                    intent.step.value,
                )
                return await self._run(db, lease, market, bets, intent, resumed=True)

            market, bets = await self._validate(db, market_id, target)
            intent = await self._start(db, market, target, requested_by)
            logger.info(
                "Correcting market %s (%s): %r → %r, %d bets, intent %s",
                market_id,
                market.question,
                market.outcome,
                target,
                len(bets),
                intent.id,
            )
            return await self._run(db, lease, market, bets, intent, resumed=False)

    async def resume_pending(self, db: AsyncSession) -> list[dict[str, Any]]:
        """Recovery pass: drive every open intent to completion.

        Each intent is reported individually; one failing market does not
        stop the others.
        """
        intents = await self._intents.list_open_intents(db, RECOVERY_BATCH_LIMIT)
        report: list[dict[str, Any]] = []
        for intent in intents:
            try:
                result = await self.correct(
                    db, intent.market_id, intent.target_outcome, intent.requested_by
                )
            except AppError as exc:
                logger.error("Recovery of intent %s failed: %s", intent.id, exc.message)
                report.append(
                    {
                        "intent_id": intent.id,
                        "market_id": intent.market_id,
                        "success": False,
                        "error": exc.message,
                    }
                )
                continue
            report.append(
                {
                    "intent_id": intent.id,
                    "market_id": intent.market_id,
                    "success": True,
                    "new_outcome": result.new_outcome,
                }
            )
        return report

    # ------------------------------------------------------------------
    # Preconditions: read-only, raise before anything is written
    # ------------------------------------------------------------------

    async def _validate(
        self, db: AsyncSession, market_id: str, target: str
    ) -> tuple[Market, list[Bet]]:
        market = await self._markets.get_market(db, market_id)
        if market is None:
            raise MarketNotFoundError(market_id)
        if market.status != MarketStatus.RESOLVED:
            raise MarketNotResolvedError(market_id, market.status)
        if market.outcome == target:
            raise OutcomeUnchangedError(market_id, target)
        bets = await self._bets.list_bets(db, market_id)
        if not bets:
            raise BetsNotFoundError(market_id)
        return market, bets

    async def _start(
        self, db: AsyncSession, market: Market, target: str, requested_by: str | None
    ) -> CorrectionIntent:
        try:
            intent = await self._intents.create_intent(
                db, market.id, market.outcome or "", target, requested_by
            )
            await db.commit()
        except IntegrityError:
            # Another writer opened an intent for this market without holding the lock
            await db.rollback()
            raise ConcurrentCorrectionError(market.id) from None
        return intent

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    async def _run(
        self,
        db: AsyncSession,
        lease: MarketLease,
        market: Market,
        bets: list[Bet],
        intent: CorrectionIntent,
        resumed: bool,
    ) -> CorrectionResult:
        step = intent.step
        try:
            if step is CorrectionStep.STARTED:
                await self._reverse(db, lease, bets, intent)
                await lease.renew()
                await self._advance(db, intent, step, CorrectionStep.REVERSED)
                await db.commit()
                step = CorrectionStep.REVERSED

            if step is CorrectionStep.REVERSED:
                await lease.renew()
                await self._flip_outcome(db, market, intent)
                step = CorrectionStep.OUTCOME_UPDATED

            if step is CorrectionStep.OUTCOME_UPDATED:
                bets = await self._bets.list_bets(db, market.id)
                await self._resettle(db, lease, market.id, bets, intent)
                await lease.renew()
                await self._advance(db, intent, step, CorrectionStep.COMPLETED)
                await db.commit()
                step = CorrectionStep.COMPLETED
        except AppError:
            await db.rollback()
            raise
        except Exception as exc:
            await db.rollback()
            logger.exception(
                "Correction %s of market %s failed at step %s", intent.id, market.id, step.value
            )
            raise PartialFailureError(market.id, intent.id, step.value, str(exc)) from exc

        intent.step = step
        logger.info(
            "Correction %s of market %s complete: %d reversals, %d new payouts",
            intent.id,
            market.id,
            len(intent.reversals),
            len(intent.new_payouts),
        )
        return CorrectionResult(
            market_id=market.id,
            question=market.question,
            old_outcome=intent.old_outcome,
            new_outcome=intent.target_outcome,
            total_bets=len(bets),
            reversals=list(intent.reversals),
            new_payouts=list(intent.new_payouts),
            intent_id=intent.id,
            resumed=resumed,
        )

    async def _advance(
        self,
        db: AsyncSession,
        intent: CorrectionIntent,
        from_step: CorrectionStep,
        to_step: CorrectionStep,
    ) -> None:
        if not await self._intents.advance(db, intent.id, from_step, to_step):
            raise ConcurrentCorrectionError(intent.market_id)

    async def _reverse(
        self,
        db: AsyncSession,
        lease: MarketLease,
        bets: Sequence[Bet],
        intent: CorrectionIntent,
    ) -> None:
        for bet in bets:
            if not bet.is_settled:
                continue
            await lease.renew()
            if not await self._bets.reset_settlement(
                db, bet.id, bool(bet.is_winner), bet.payout
            ):
                continue

            if bet.is_winner:
                await self._ledger.reverse_win(db, bet.user_id, bet.payout, bet.id)
                was = "winner"
            else:
                await self._ledger.reverse_loss(db, bet.user_id, bet.payout, bet.id)
                was = "loser"

            entry = {
                "user_id": bet.user_id,
                "position": bet.position,
                "was": was,
                "reversed_amount": -bet.payout,
            }
            await self._intents.append_reversal(db, intent.id, entry)
            await db.commit()
            intent.reversals.append(entry)
        logger.info("Market %s: reversed %d payouts", intent.market_id, len(intent.reversals))

    async def _flip_outcome(
        self, db: AsyncSession, market: Market, intent: CorrectionIntent
    ) -> None:
        audit_entry = {
            "type": "correction",
            "original_outcome": intent.old_outcome,
            "corrected_outcome": intent.target_outcome,
            "timestamp": utc_now_iso(),
            "intent_id": intent.id,
            "requested_by": intent.requested_by,
        }
        market.version = await self._markets.update_outcome(
            db, market.id, market.version, intent.target_outcome, audit_entry
        )
        await self._advance(db, intent, CorrectionStep.REVERSED, CorrectionStep.OUTCOME_UPDATED)
        await db.commit()
        market.outcome = intent.target_outcome
        market.audit_log.append(audit_entry)

    async def _resettle(
        self,
        db: AsyncSession,
        lease: MarketLease,
        market_id: str,
        bets: Sequence[Bet],
        intent: CorrectionIntent,
    ) -> None:
        settled = {b.id for b in bets if b.is_settled}
        for payout in settle(bets, intent.target_outcome, self._solo_adjustment):
            if payout.bet_id in settled:
                continue
            await lease.renew()
            entry = await apply_payout(db, self._bets, self._ledger, payout, market_id)
            if entry is None:
                continue
            await self._intents.append_payout(db, intent.id, entry)
            await db.commit()
            intent.new_payouts.append(entry)
        winners = sum(1 for p in intent.new_payouts if p["result"] == "winner")
        logger.info(
            "Market %s: re-distributed %d winners, %d losers",
            market_id,
            winners,
            len(intent.new_payouts) - winners,
        )
