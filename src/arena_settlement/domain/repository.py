"""Correction intent store Protocol."""

from typing import Any, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.enums import CorrectionStep
from src.arena_settlement.domain.models import CorrectionIntent


class CorrectionIntentRepositoryProtocol(Protocol):
    async def get_open_intent(
        self, db: AsyncSession, market_id: str
    ) -> CorrectionIntent | None: ...

    async def list_open_intents(
        self, db: AsyncSession, limit: int
    ) -> list[CorrectionIntent]: ...

    async def create_intent(
        self,
        db: AsyncSession,
        market_id: str,
        old_outcome: str,
        target_outcome: str,
        requested_by: str | None,
    ) -> CorrectionIntent: ...

    async def append_reversal(
        self, db: AsyncSession, intent_id: str, entry: dict[str, Any]
    ) -> None: ...

    async def append_payout(
        self, db: AsyncSession, intent_id: str, entry: dict[str, Any]
    ) -> None: ...

    async def advance(
        self,
        db: AsyncSession,
        intent_id: str,
        from_step: CorrectionStep,
        to_step: CorrectionStep,
    ) -> bool: ...
