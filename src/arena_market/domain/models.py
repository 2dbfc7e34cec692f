"""Domain models for arena markets and bets — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass
class Market:
    id: str
    question: str
    status: str                      # MarketStatus value
    outcome: str | None              # Position value, None until resolved
    yes_pool: int = 0                # points
    no_pool: int = 0                 # points
    total_pool: int = 0              # points, == yes_pool + no_pool
    total_bettors: int = 0
    token_address: str | None = None
    token_symbol: str | None = None
    market_type: str | None = None
    price_at_creation: float | None = None
    price_at_resolution: float | None = None
    resolve_at: datetime | None = None
    resolved_at: datetime | None = None
    audit_log: list[dict[str, Any]] = field(default_factory=list)
    version: int = 0
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass
class Bet:
    id: str
    market_id: str
    user_id: str
    position: str                    # Position value
    amount: int                      # stake, immutable after placement
    payout: int = 0
    is_winner: bool | None = None    # None = pending, or reset mid-correction
    created_at: datetime | None = None

    @property
    def is_settled(self) -> bool:
        return self.is_winner is not None
