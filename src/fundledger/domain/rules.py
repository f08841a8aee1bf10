from __future__ import annotations

from enum import Enum

U64_MAX = 2**64 - 1
CAMPAIGN_DURATION_NS = 24 * 60 * 60 * 1_000_000_000


class ErrorKind(str, Enum):
    CAMPAIGN_NOT_FOUND = "CampaignNotFound"
    VALIDATION = "ValidationError"
    CONTRIBUTION = "ContributionError"
    AUTHORIZATION = "AuthorizationError"
    STORAGE = "StorageError"


class LedgerError(Exception):
    kind: ErrorKind

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LedgerError):
            return NotImplemented
        return self.kind == other.kind and self.message == other.message

    def __hash__(self) -> int:
        return hash((self.kind, self.message))


class CampaignNotFound(LedgerError):
    kind = ErrorKind.CAMPAIGN_NOT_FOUND


class ValidationError(LedgerError, ValueError):
    kind = ErrorKind.VALIDATION


class ContributionError(LedgerError):
    kind = ErrorKind.CONTRIBUTION


class AuthorizationError(LedgerError):
    kind = ErrorKind.AUTHORIZATION


class StorageError(LedgerError):
    kind = ErrorKind.STORAGE


def require(value: str | None, field: str) -> None:
    if value is None or str(value).strip() == "":
        raise ValidationError(f"{field} is required.")


def require_u64_amount(value: int, field: str) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{field} must be an integer.")
    if value <= 0:
        raise ValidationError(f"{field} must be positive.")
    if value > U64_MAX:
        raise ValidationError(f"{field} must fit in an unsigned 64-bit integer.")


def end_date_for(start_date: int) -> int:
    end_date = start_date + CAMPAIGN_DURATION_NS
    if start_date < 0 or end_date > U64_MAX:
        raise ValidationError("Start time is outside the supported timestamp range.")
    return end_date
