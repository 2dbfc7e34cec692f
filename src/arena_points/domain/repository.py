"""Ledger Updater Protocol.

Every method is one mutation against one user's account row (plus its
journal entry), executed inside the caller's transaction. Nothing here is
idempotent on its own: callers guard re-application with the bet state.
"""

from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.enums import PointsEntryType
from src.arena_points.domain.models import PointsLedgerEntry, UserPoints


class LedgerUpdaterProtocol(Protocol):
    async def credit_balance(
        self,
        db: AsyncSession,
        user_id: str,
        amount: int,
        is_win: bool,
        entry_type: PointsEntryType,
        reference_id: str | None = None,
        description: str | None = None,
    ) -> UserPoints: ...

    async def update_streak(
        self, db: AsyncSession, user_id: str, is_win: bool
    ) -> UserPoints: ...

    async def reverse_win(
        self, db: AsyncSession, user_id: str, payout: int, reference_id: str | None = None
    ) -> UserPoints: ...

    async def reverse_loss(
        self, db: AsyncSession, user_id: str, refund: int, reference_id: str | None = None
    ) -> UserPoints: ...

    async def get_points(self, db: AsyncSession, user_id: str) -> UserPoints | None: ...

    async def list_ledger_entries(
        self, db: AsyncSession, user_id: str, limit: int
    ) -> list[PointsLedgerEntry]: ...
