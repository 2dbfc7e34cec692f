"""PointsApplicationService — read side of the ledger accounts.

Read-only; no commit. A user the ledger has never touched is reported with
the starting balance, without creating the row.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from src.arena_points.application.schemas import PointsResponse
from src.arena_points.domain.models import UserPoints
from src.arena_points.domain.repository import LedgerUpdaterProtocol
from src.arena_points.infrastructure.persistence import PointsRepository

RECENT_ENTRIES_LIMIT = 20


class PointsApplicationService:
    def __init__(self, repo: LedgerUpdaterProtocol | None = None) -> None:
        self._repo: LedgerUpdaterProtocol = repo or PointsRepository()

    async def get_points(self, db: AsyncSession, user_id: str) -> PointsResponse:
        points = await self._repo.get_points(db, user_id)
        if points is None:
            return PointsResponse.from_domain(
                UserPoints(user_id=user_id, balance=settings.STARTING_POINTS), []
            )
        entries = await self._repo.list_ledger_entries(db, user_id, RECENT_ENTRIES_LIMIT)
        return PointsResponse.from_domain(points, entries)
