from fundledger.domain.models import Campaign, Contribution, Principal
from fundledger.domain.result import Err, Ok, Result
from fundledger.domain.rules import (
    AuthorizationError,
    CampaignNotFound,
    ContributionError,
    ErrorKind,
    LedgerError,
    StorageError,
    ValidationError,
)
from fundledger.domain.stages import CampaignStatus

__all__ = [
    "AuthorizationError",
    "Campaign",
    "CampaignNotFound",
    "CampaignStatus",
    "Contribution",
    "ContributionError",
    "Err",
    "ErrorKind",
    "LedgerError",
    "Ok",
    "Principal",
    "Result",
    "StorageError",
    "ValidationError",
]
