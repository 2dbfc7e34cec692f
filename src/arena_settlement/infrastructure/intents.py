"""CorrectionIntentRepository — durable correction progress.

One row per correction run. The partial unique index
uq_correction_intents_open_market allows a single non-COMPLETED intent per
market. Diff entries are appended in the same transaction as the bet and
ledger mutation they describe, so the intent never claims work that was
rolled back.

Transaction ownership: the CALLER commits.
"""

import json
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.arena_common.enums import CorrectionStep
from src.arena_common.errors import InternalError
from src.arena_settlement.domain.models import CorrectionIntent

_INTENT_COLUMNS = """
    id, market_id, old_outcome, target_outcome, step, reversals, new_payouts,
    requested_by, created_at, completed_at
"""

_GET_OPEN_SQL = text(f"""
    SELECT {_INTENT_COLUMNS}
    FROM correction_intents
    WHERE market_id = :market_id AND step <> 'COMPLETED'
""")

_LIST_OPEN_SQL = text(f"""
    SELECT {_INTENT_COLUMNS}
    FROM correction_intents
    WHERE step <> 'COMPLETED'
    ORDER BY created_at ASC
    LIMIT :limit
""")

_CREATE_SQL = text(f"""
    INSERT INTO correction_intents (market_id, old_outcome, target_outcome, step, requested_by)
    VALUES (:market_id, :old_outcome, :target_outcome, 'STARTED', :requested_by)
    RETURNING {_INTENT_COLUMNS}
""")

_APPEND_REVERSAL_SQL = text("""
    UPDATE correction_intents
    SET reversals = reversals || jsonb_build_array(CAST(:entry AS JSONB)),
        updated_at = NOW()
    WHERE id = :intent_id
""")

_APPEND_PAYOUT_SQL = text("""
    UPDATE correction_intents
    SET new_payouts = new_payouts || jsonb_build_array(CAST(:entry AS JSONB)),
        updated_at = NOW()
    WHERE id = :intent_id
""")

# Forward only: the row moves only from the step the caller last saw
_ADVANCE_SQL = text("""
    UPDATE correction_intents
    SET step = CAST(:to_step AS VARCHAR),
        completed_at = CASE WHEN CAST(:to_step AS VARCHAR) = 'COMPLETED' THEN NOW() ELSE completed_at END,
        updated_at = NOW()
    WHERE id = :intent_id AND step = :from_step
    RETURNING id
""")


def _load_entries(value: object) -> list[dict[str, Any]]:
    if value is None:
        return []
    if isinstance(value, str | bytes):
        value = json.loads(value)
    return list(value)  # type: ignore[call-overload]


def _row_to_intent(row: object) -> CorrectionIntent:
    return CorrectionIntent(
        id=str(row.id),  # type: ignore[attr-defined]
        market_id=str(row.market_id),  # type: ignore[attr-defined]
        old_outcome=row.old_outcome,  # type: ignore[attr-defined]
        target_outcome=row.target_outcome,  # type: ignore[attr-defined]
        step=CorrectionStep(row.step),  # type: ignore[attr-defined]
        reversals=_load_entries(row.reversals),  # type: ignore[attr-defined]
        new_payouts=_load_entries(row.new_payouts),  # type: ignore[attr-defined]
        requested_by=row.requested_by,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        completed_at=row.completed_at,  # type: ignore[attr-defined]
    )


class CorrectionIntentRepository:
    async def get_open_intent(
        self, db: AsyncSession, market_id: str
    ) -> CorrectionIntent | None:
        result = await db.execute(_GET_OPEN_SQL, {"market_id": market_id})
        row = result.fetchone()
        return _row_to_intent(row) if row else None

    async def list_open_intents(self, db: AsyncSession, limit: int) -> list[CorrectionIntent]:
        result = await db.execute(_LIST_OPEN_SQL, {"limit": limit})
        return [_row_to_intent(row) for row in result.fetchall()]

    async def create_intent(
        self,
        db: AsyncSession,
        market_id: str,
        old_outcome: str,
        target_outcome: str,
        requested_by: str | None,
    ) -> CorrectionIntent:
        result = await db.execute(
            _CREATE_SQL,
            {
                "market_id": market_id,
                "old_outcome": old_outcome,
                "target_outcome": target_outcome,
                "requested_by": requested_by,
            },
        )
        row = result.fetchone()
        if row is None:
            raise InternalError("Intent insert returned no rows — this should never happen")
        return _row_to_intent(row)

    async def append_reversal(
        self, db: AsyncSession, intent_id: str, entry: dict[str, Any]
    ) -> None:
        await db.execute(_APPEND_REVERSAL_SQL, {"intent_id": intent_id, "entry": json.dumps(entry)})

    async def append_payout(
        self, db: AsyncSession, intent_id: str, entry: dict[str, Any]
    ) -> None:
        await db.execute(_APPEND_PAYOUT_SQL, {"intent_id": intent_id, "entry": json.dumps(entry)})

    async def advance(
        self,
        db: AsyncSession,
        intent_id: str,
        from_step: CorrectionStep,
        to_step: CorrectionStep,
    ) -> bool:
        """from_step → to_step. False if the intent is no longer at from_step."""
        result = await db.execute(
            _ADVANCE_SQL,
            {"intent_id": intent_id, "from_step": from_step.value, "to_step": to_step.value},
        )
        return result.fetchone() is not None
