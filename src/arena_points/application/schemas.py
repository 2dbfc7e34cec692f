"""Pydantic response schemas for arena points."""

from pydantic import BaseModel

from src.arena_points.domain.models import PointsLedgerEntry, UserPoints


class LedgerEntryItem(BaseModel):
    id: int
    entry_type: str
    amount: int
    balance_after: int
    reference_id: str | None
    description: str | None
    created_at: str

    @classmethod
    def from_domain(cls, entry: PointsLedgerEntry) -> "LedgerEntryItem":
        return cls(
            id=entry.id,
            entry_type=entry.entry_type,
            amount=entry.amount,
            balance_after=entry.balance_after,
            reference_id=entry.reference_id,
            description=entry.description,
            created_at=entry.created_at.isoformat() if entry.created_at else "",
        )


class PointsResponse(BaseModel):
    user_id: str
    balance: int
    total_earned: int
    total_wagered: int
    total_won: int
    win_count: int
    loss_count: int
    current_streak: int
    best_streak: int
    win_rate: float | None
    recent_entries: list[LedgerEntryItem]

    @classmethod
    def from_domain(
        cls, points: UserPoints, entries: list[PointsLedgerEntry]
    ) -> "PointsResponse":
        settled = points.settled_count
        return cls(
            user_id=points.user_id,
            balance=points.balance,
            total_earned=points.total_earned,
            total_wagered=points.total_wagered,
            total_won=points.total_won,
            win_count=points.win_count,
            loss_count=points.loss_count,
            current_streak=points.current_streak,
            best_streak=points.best_streak,
            win_rate=round(points.win_count / settled, 4) if settled else None,
            recent_entries=[LedgerEntryItem.from_domain(e) for e in entries],
        )
