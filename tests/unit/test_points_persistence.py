"""Unit tests for PointsRepository (the ledger updater) using a mock AsyncSession."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.arena_common.enums import PointsEntryType
from src.arena_common.errors import InternalError
from src.arena_points.infrastructure.persistence import PointsRepository


def _points_row(balance: int = 500, **kwargs):
    row = MagicMock()
    row.user_id = "user-1"
    row.balance = balance
    row.total_earned = kwargs.get("total_earned", 0)
    row.total_wagered = 0
    row.total_won = kwargs.get("total_won", 0)
    row.win_count = kwargs.get("win_count", 0)
    row.loss_count = kwargs.get("loss_count", 0)
    row.current_streak = kwargs.get("current_streak", 0)
    row.best_streak = kwargs.get("best_streak", 0)
    row.updated_at = datetime.now(UTC)
    return row


def _returning(row):
    result = MagicMock()
    result.fetchone.return_value = row
    return result


def _sql(call) -> str:
    return str(call[0][0])


@pytest.fixture
def db():
    return AsyncMock()


class TestCreditBalance:
    async def test_win_credit_updates_stats_and_journals(self, db) -> None:
        # ensure account → UPDATE RETURNING → ledger insert
        db.execute.side_effect = [MagicMock(), _returning(_points_row(625, win_count=1)), MagicMock()]

        points = await PointsRepository().credit_balance(
            db, "user-1", 125, is_win=True,
            entry_type=PointsEntryType.SETTLEMENT_PAYOUT, reference_id="bet-1",
        )

        assert points.balance == 625
        calls = db.execute.call_args_list
        assert len(calls) == 3
        assert "ON CONFLICT (user_id) DO NOTHING" in _sql(calls[0])
        assert calls[0][0][1]["starting_balance"] == 500
        assert "win_count      = win_count + 1" in _sql(calls[1])
        ledger_params = calls[2][0][1]
        assert ledger_params["entry_type"] == "SETTLEMENT_PAYOUT"
        assert ledger_params["amount"] == 125
        assert ledger_params["balance_after"] == 625
        assert ledger_params["reference_id"] == "bet-1"
        assert ledger_params["reference_type"] == "ARENA_BET"

    async def test_non_win_credit_only_moves_balance(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(_points_row(530)), MagicMock()]

        await PointsRepository().credit_balance(
            db, "user-1", 30, is_win=False, entry_type=PointsEntryType.SETTLEMENT_REFUND
        )

        update_sql = _sql(db.execute.call_args_list[1])
        assert "win_count + 1" not in update_sql
        assert "balance = balance + :amount" in update_sql

    async def test_missing_row_after_upsert_is_internal_error(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(None)]
        with pytest.raises(InternalError):
            await PointsRepository().credit_balance(
                db, "user-1", 10, is_win=False, entry_type=PointsEntryType.SETTLEMENT_REFUND
            )


class TestUpdateStreak:
    async def test_loss_resets_streak_and_counts_loss(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(_points_row(loss_count=1))]
        points = await PointsRepository().update_streak(db, "user-1", is_win=False)
        assert points.loss_count == 1
        sql = _sql(db.execute.call_args_list[1])
        assert "current_streak = 0" in sql
        assert "loss_count     = loss_count + 1" in sql

    async def test_win_extends_streak(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(_points_row(current_streak=2))]
        await PointsRepository().update_streak(db, "user-1", is_win=True)
        assert "current_streak = current_streak + 1" in _sql(db.execute.call_args_list[1])


class TestReverseWin:
    async def test_debits_payout_then_clamps_stats(self, db) -> None:
        db.execute.side_effect = [
            MagicMock(),                      # ensure (credit)
            _returning(_points_row(500)),     # balance - 125
            MagicMock(),                      # ledger insert
            _returning(_points_row(500)),     # stats clamp
        ]

        points = await PointsRepository().reverse_win(db, "user-1", 125, reference_id="bet-1")

        assert points.balance == 500
        calls = db.execute.call_args_list
        assert calls[1][0][1]["amount"] == -125
        assert calls[2][0][1]["entry_type"] == "CORRECTION_REVERSAL"
        stats_sql = _sql(calls[3])
        assert "GREATEST(win_count - 1, 0)" in stats_sql
        assert "GREATEST(total_won - :payout, 0)" in stats_sql
        assert calls[3][0][1] == {"user_id": "user-1", "payout": 125}

    async def test_zero_payout_skips_the_debit(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(_points_row())]
        await PointsRepository().reverse_win(db, "user-1", 0)
        assert len(db.execute.call_args_list) == 2


class TestReverseLoss:
    async def test_plain_loss_only_decrements_counter(self, db) -> None:
        db.execute.side_effect = [MagicMock(), _returning(_points_row())]
        await PointsRepository().reverse_loss(db, "user-1", 0)
        calls = db.execute.call_args_list
        assert len(calls) == 2
        assert "GREATEST(loss_count - 1, 0)" in _sql(calls[1])

    async def test_solo_refund_is_debited(self, db) -> None:
        db.execute.side_effect = [
            MagicMock(),
            _returning(_points_row(500)),
            MagicMock(),
            _returning(_points_row(500)),
        ]
        await PointsRepository().reverse_loss(db, "user-1", 30, reference_id="bet-9")
        calls = db.execute.call_args_list
        assert calls[1][0][1]["amount"] == -30
        assert calls[2][0][1]["description"] == "Reversed solo-market refund"


class TestReads:
    async def test_get_points_none_when_untouched(self, db) -> None:
        result = MagicMock()
        result.scalar_one_or_none.return_value = None
        db.execute.return_value = result
        assert await PointsRepository().get_points(db, "user-1") is None

    async def test_list_ledger_entries_maps_orm_rows(self, db) -> None:
        orm = MagicMock(
            id=7, user_id="user-1", entry_type="SETTLEMENT_PAYOUT", amount=125,
            balance_after=625, reference_type="ARENA_BET", reference_id="bet-1",
            description="Won market mkt-1", created_at=datetime.now(UTC),
        )
        result = MagicMock()
        result.scalars.return_value.all.return_value = [orm]
        db.execute.return_value = result

        entries = await PointsRepository().list_ledger_entries(db, "user-1", 20)

        assert len(entries) == 1
        assert entries[0].id == 7
        assert entries[0].balance_after == 625
