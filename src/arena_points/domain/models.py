"""Domain models for arena points accounts — pure dataclasses."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class UserPoints:
    user_id: str
    balance: int              # points, may go negative after a correction debit
    total_earned: int = 0
    total_wagered: int = 0
    total_won: int = 0
    win_count: int = 0
    loss_count: int = 0
    current_streak: int = 0
    best_streak: int = 0
    updated_at: datetime | None = None

    @property
    def settled_count(self) -> int:
        return self.win_count + self.loss_count


@dataclass
class PointsLedgerEntry:
    id: int                          # BIGSERIAL
    user_id: str
    entry_type: str                  # PointsEntryType value
    amount: int                      # points, positive=credit negative=debit
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime | None = None
