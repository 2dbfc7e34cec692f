"""Enums shared across arena modules — values must match DB CHECK constraints."""

from enum import Enum


class MarketStatus(str, Enum):
    ACTIVE = "active"
    RESOLVED = "resolved"
    CANCELLED = "cancelled"


class Position(str, Enum):
    YES = "yes"
    NO = "no"


class CorrectionStep(str, Enum):
    """Last durable step of a correction intent."""
    STARTED = "STARTED"
    REVERSED = "REVERSED"
    OUTCOME_UPDATED = "OUTCOME_UPDATED"
    COMPLETED = "COMPLETED"


class PointsEntryType(str, Enum):
    SETTLEMENT_PAYOUT = "SETTLEMENT_PAYOUT"
    SETTLEMENT_REFUND = "SETTLEMENT_REFUND"
    CORRECTION_REVERSAL = "CORRECTION_REVERSAL"


class PrincipalKind(str, Enum):
    ANONYMOUS = "ANONYMOUS"
    AUTOMATION = "AUTOMATION"
    ADMIN_USER = "ADMIN_USER"
    REGULAR_USER = "REGULAR_USER"
