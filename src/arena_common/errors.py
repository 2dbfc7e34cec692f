"""Unified error codes and custom exceptions.

Error code ranges:
  1xxx: Auth
  3xxx: Market / settlement
  9xxx: System

Category bases (AuthorizationError, ValidationError, NotFoundError,
ConflictError) carry the HTTP status; concrete errors carry the code.
"""


class AppError(Exception):
    """Base application error."""

    def __init__(
        self,
        code: int,
        message: str,
        http_status: int = 500,
    ) -> None:
        self.code = code
        self.message = message
        self.http_status = http_status
        super().__init__(message)


class AuthorizationError(AppError):
    """No valid automation secret and no admin session. Raised before any read/write."""

    def __init__(self, code: int = 1001, message: str = "Unauthorized — admin access required") -> None:
        super().__init__(code, message, 401)


class ValidationError(AppError):
    """Pure guard failure: nothing was mutated, safe to retry."""

    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 400)


class NotFoundError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 404)


class ConflictError(AppError):
    def __init__(self, code: int, message: str) -> None:
        super().__init__(code, message, 409)


# --- 1xxx: Auth ---

class InvalidCredentialsError(AuthorizationError):
    def __init__(self) -> None:
        super().__init__(1002, "Invalid or expired token")


class AdminRequiredError(AppError):
    def __init__(self) -> None:
        super().__init__(1003, "Admin access required", 403)


# --- 3xxx: Market / settlement ---

class MarketNotFoundError(NotFoundError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3001, f"Market not found: {market_id}")


class MarketNotActiveError(AppError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(3002, f"Market {market_id} is not active (status={status})", 422)


class MarketNotResolvedError(ValidationError):
    def __init__(self, market_id: str, status: str) -> None:
        super().__init__(
            3003,
            f'Market {market_id} status is "{status}", not "resolved". '
            "Can only correct resolved markets.",
        )


class OutcomeUnchangedError(ValidationError):
    def __init__(self, market_id: str, outcome: str) -> None:
        super().__init__(
            3004, f'Market {market_id} already has outcome "{outcome}". Nothing to fix.'
        )


class InvalidPositionError(ValidationError):
    def __init__(self, value: object) -> None:
        super().__init__(3005, f'Position must be "yes" or "no", got {value!r}')


class BetsNotFoundError(NotFoundError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3006, f"No bets found for market {market_id}")


class CorrectionInProgressError(ConflictError):
    def __init__(self, market_id: str, target_outcome: str) -> None:
        super().__init__(
            3007,
            f"Correction of market {market_id} to \"{target_outcome}\" is unfinished; "
            "resume it with the same outcome first",
        )


class ConcurrentCorrectionError(ConflictError):
    def __init__(self, market_id: str) -> None:
        super().__init__(3008, f"Market {market_id} is being settled by another request")


# --- 9xxx: System ---

class InternalError(AppError):
    def __init__(self, detail: str = "Internal server error") -> None:
        super().__init__(9002, detail, 500)


class PartialFailureError(AppError):
    """A mutation failed mid-sequence. The correction intent stays open and is resumable."""

    def __init__(self, market_id: str, intent_id: str, step: str, detail: str) -> None:
        self.market_id = market_id
        self.intent_id = intent_id
        self.step = step
        super().__init__(
            9003,
            f"Correction of market {market_id} stopped at step {step} "
            f"(intent {intent_id}): {detail}. Retry with the same outcome to resume.",
            500,
        )


class RecoveryIncompleteError(AppError):
    """A recovery pass left at least one correction intent open."""

    def __init__(self, failed: int, total: int) -> None:
        self.failed = failed
        self.total = total
        super().__init__(
            9005,
            f"{failed} of {total} open corrections could not be completed; "
            "see results for the failing markets.",
            500,
        )


class RequestValidationFailedError(ValidationError):
    def __init__(self, detail: str) -> None:
        super().__init__(9004, f"Invalid request: {detail}")
