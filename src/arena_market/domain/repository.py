"""Repository Protocols — dependency inversion for testability.

Unit tests inject mocks conforming to these Protocols; the infrastructure
layer provides the real implementation. Transaction ownership stays with the
caller.
"""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_market.domain.models import Bet, Market


class MarketRepositoryProtocol(Protocol):
    async def get_market(self, db: AsyncSession, market_id: str) -> Market | None: ...

    async def list_markets_by_status(
        self, db: AsyncSession, status: str, limit: int
    ) -> list[Market]: ...

    async def mark_resolved(
        self,
        db: AsyncSession,
        market_id: str,
        outcome: str,
        price_at_resolution: float | None,
        audit_entry: dict[str, Any],
    ) -> bool: ...

    async def update_outcome(
        self,
        db: AsyncSession,
        market_id: str,
        expected_version: int,
        outcome: str,
        audit_entry: dict[str, Any],
    ) -> int: ...


class BetRepositoryProtocol(Protocol):
    async def list_bets(self, db: AsyncSession, market_id: str) -> list[Bet]: ...

    async def reset_settlement(
        self, db: AsyncSession, bet_id: str, expected_is_winner: bool, expected_payout: int
    ) -> bool: ...

    async def apply_settlement(
        self, db: AsyncSession, bet_id: str, payout: int, is_winner: bool
    ) -> bool: ...
