"""Custom exceptions for centralized error handling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass
class AppError(Exception):
    """Base application error."""

    code: str
    message: str
    status_code: int
    details: Any | None = None

    def __str__(self) -> str:
        return self.message


class ConfigError(Exception):
    """Inconsistent configuration detected at startup."""


class NotFoundError(AppError):
    """Resource not found."""

    def __init__(self, message: str = "Not found", details: Any | None = None) -> None:
        super().__init__(code="not_found", message=message, status_code=404, details=details)


class ValidationError(AppError):
    """Input validation error."""

    def __init__(self, message: str = "Validation error", details: Any | None = None) -> None:
        super().__init__(code="validation_error", message=message, status_code=400, details=details)


class ConflictError(AppError):
    """Conflict (e.g., unique constraint)."""

    def __init__(self, message: str = "Conflict", details: Any | None = None) -> None:
        super().__init__(code="conflict", message=message, status_code=409, details=details)


class UnauthorizedError(AppError):
    """Missing or wrong admin key."""

    def __init__(self, message: str = "Unauthorized", details: Any | None = None) -> None:
        super().__init__(code="unauthorized", message=message, status_code=401, details=details)


class ForbiddenError(AppError):
    """Endpoint disabled in the current environment."""

    def __init__(self, message: str = "Forbidden", details: Any | None = None) -> None:
        super().__init__(code="forbidden", message=message, status_code=403, details=details)


# ---------------------------------------------------------------------------
# Betting
# ---------------------------------------------------------------------------
class InvalidNumberRange(AppError):
    def __init__(self, number: Any, numbers_range: int) -> None:
        super().__init__(
            code="invalid_number_range",
            message=f"Number must be an integer between 0 and {numbers_range}",
            status_code=400,
            details={"chosenNumber": number, "min": 0, "max": numbers_range},
        )


class BeneficiaryNotFound(AppError):
    def __init__(self, beneficiary_id: str) -> None:
        super().__init__(
            code="beneficiary_not_found",
            message=f"Beneficiary {beneficiary_id} does not exist or is not active",
            status_code=404,
            details={"beneficiaryId": beneficiary_id},
        )


class StakeTooLow(AppError):
    def __init__(self, stake: Any, minimum: int) -> None:
        super().__init__(
            code="stake_too_low",
            message=f"The minimum stake is {minimum}",
            status_code=400,
            details={"stakeAmount": str(stake), "minimum": str(minimum)},
        )


class NumberAlreadyTaken(AppError):
    def __init__(self, number: int) -> None:
        super().__init__(
            code="number_already_taken",
            message=f"Number {number} is already taken in the current round",
            status_code=409,
            details={"chosenNumber": number},
        )


class BettorNotFound(AppError):
    def __init__(self, bettor_id: str) -> None:
        super().__init__(
            code="bettor_not_found",
            message=f"Bettor {bettor_id} does not exist",
            status_code=404,
            details={"bettorId": bettor_id},
        )


# ---------------------------------------------------------------------------
# Draws
# ---------------------------------------------------------------------------
class NoPendingBets(AppError):
    """No bet is waiting for a draw.

    Only raised when the caller explicitly asks for participants; a plain draw
    settles an empty batch instead.
    """

    def __init__(self) -> None:
        super().__init__(
            code="no_pending_bets",
            message="There are no pending bets to draw",
            status_code=400,
        )


class DrawExecutionFailed(AppError):
    """Settlement aborted and rolled back; safe to run again."""

    def __init__(self, reason: str = "") -> None:
        super().__init__(
            code="draw_execution_failed",
            message="Could not complete draw, try again",
            status_code=500,
        )
        self.reason = reason


class TransientStoreError(AppError):
    """Record store unreachable; the caller should retry."""

    def __init__(self, message: str = "Store temporarily unavailable, try again") -> None:
        super().__init__(code="store_unavailable", message=message, status_code=503)
