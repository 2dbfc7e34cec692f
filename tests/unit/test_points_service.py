"""Unit tests for PointsApplicationService using a mock repository."""

from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

from src.arena_points.application.schemas import PointsResponse
from src.arena_points.application.service import PointsApplicationService
from src.arena_points.domain.models import PointsLedgerEntry, UserPoints


def _entry(entry_id: int, amount: int, balance_after: int) -> PointsLedgerEntry:
    return PointsLedgerEntry(
        id=entry_id,
        user_id="user-1",
        entry_type="SETTLEMENT_PAYOUT",
        amount=amount,
        balance_after=balance_after,
        reference_id="bet-1",
        created_at=datetime.now(UTC),
    )


class TestGetPoints:
    async def test_existing_account_with_entries(self) -> None:
        repo = AsyncMock()
        repo.get_points.return_value = UserPoints(
            user_id="user-1", balance=625, total_won=125, win_count=3, loss_count=1
        )
        repo.list_ledger_entries.return_value = [_entry(2, 125, 625)]
        svc = PointsApplicationService(repo=repo)

        result = await svc.get_points(MagicMock(), "user-1")

        assert isinstance(result, PointsResponse)
        assert result.balance == 625
        assert result.win_rate == 0.75
        assert result.recent_entries[0].amount == 125
        repo.list_ledger_entries.assert_awaited_once()
        assert repo.list_ledger_entries.call_args[0][2] == 20

    async def test_untouched_user_gets_starting_balance_without_write(self) -> None:
        repo = AsyncMock()
        repo.get_points.return_value = None
        svc = PointsApplicationService(repo=repo)

        result = await svc.get_points(MagicMock(), "new-user")

        assert result.balance == 500
        assert result.win_rate is None
        assert result.recent_entries == []
        repo.list_ledger_entries.assert_not_awaited()
        repo.credit_balance.assert_not_awaited()

    async def test_negative_balance_is_reported_as_is(self) -> None:
        repo = AsyncMock()
        repo.get_points.return_value = UserPoints(user_id="user-1", balance=-75, loss_count=2)
        repo.list_ledger_entries.return_value = []
        svc = PointsApplicationService(repo=repo)

        result = await svc.get_points(MagicMock(), "user-1")

        assert result.balance == -75
        assert result.win_rate == 0.0
