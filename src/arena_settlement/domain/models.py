"""Domain models for settlement corrections — pure dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.arena_common.enums import CorrectionStep


@dataclass
class CorrectionIntent:
    """Durable record of one correction run; the resume point after a crash."""

    id: str
    market_id: str
    old_outcome: str
    target_outcome: str
    step: CorrectionStep
    reversals: list[dict[str, Any]] = field(default_factory=list)
    new_payouts: list[dict[str, Any]] = field(default_factory=list)
    requested_by: str | None = None
    created_at: datetime | None = None
    completed_at: datetime | None = None

    @property
    def is_open(self) -> bool:
        return self.step is not CorrectionStep.COMPLETED


@dataclass
class CorrectionResult:
    market_id: str
    question: str
    old_outcome: str
    new_outcome: str
    total_bets: int
    reversals: list[dict[str, Any]]
    new_payouts: list[dict[str, Any]]
    intent_id: str
    resumed: bool = False
