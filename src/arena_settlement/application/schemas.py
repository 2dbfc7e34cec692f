"""Pydantic request/response schemas for settlement endpoints."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from src.arena_common.errors import InvalidPositionError
from src.arena_settlement.domain.calculator import parse_position
from src.arena_settlement.domain.models import CorrectionResult


def _check_position(value: object) -> str:
    try:
        return parse_position(value).value
    except InvalidPositionError as e:
        raise ValueError(e.message) from None


class FixMarketRequest(BaseModel):
    market_id: str = Field(..., min_length=1, max_length=64)
    correct_outcome: str

    @field_validator("correct_outcome", mode="before")
    @classmethod
    def _position(cls, v: object) -> str:
        return _check_position(v)


class ResolveMarketRequest(BaseModel):
    outcome: str
    price_at_resolution: float | None = None

    @field_validator("outcome", mode="before")
    @classmethod
    def _position(cls, v: object) -> str:
        return _check_position(v)


class ReversalItem(BaseModel):
    user_id: str
    position: str
    was: str
    reversed_amount: int


class NewPayoutItem(BaseModel):
    user_id: str
    position: str
    result: str
    payout: int


class CorrectionResponse(BaseModel):
    success: bool = True
    market_id: str
    question: str
    old_outcome: str
    new_outcome: str
    total_bets: int
    reversals: list[ReversalItem]
    new_payouts: list[NewPayoutItem]
    intent_id: str
    resumed: bool

    @classmethod
    def from_domain(cls, result: CorrectionResult) -> "CorrectionResponse":
        return cls(
            market_id=result.market_id,
            question=result.question,
            old_outcome=result.old_outcome,
            new_outcome=result.new_outcome,
            total_bets=result.total_bets,
            reversals=[ReversalItem(**r) for r in result.reversals],
            new_payouts=[NewPayoutItem(**p) for p in result.new_payouts],
            intent_id=result.intent_id,
            resumed=result.resumed,
        )


class RecoveryResponse(BaseModel):
    resumed: int
    succeeded: int
    failed: int
    all_succeeded: bool
    results: list[dict[str, Any]]

    @classmethod
    def from_report(cls, results: list[dict[str, Any]]) -> "RecoveryResponse":
        failed = sum(1 for r in results if not r["success"])
        return cls(
            resumed=len(results),
            succeeded=len(results) - failed,
            failed=failed,
            all_succeeded=failed == 0,
            results=results,
        )
