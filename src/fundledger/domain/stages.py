from __future__ import annotations

from enum import Enum

from fundledger.domain.models import Campaign


class CampaignStatus(str, Enum):
    OPEN = "open"
    FUNDED = "funded"
    WITHDRAWN = "withdrawn"
    EXPIRED = "expired"


def derive_status(campaign: Campaign, contribution_count: int, now: int) -> CampaignStatus:
    # Contributions are strictly positive and only a withdrawal zeroes the
    # balance, so an empty balance with pledges on record means withdrawn.
    if campaign.current_amount == 0 and contribution_count > 0:
        return CampaignStatus.WITHDRAWN
    if campaign.current_amount == campaign.goal_amount:
        return CampaignStatus.FUNDED
    if now > campaign.end_date:
        return CampaignStatus.EXPIRED
    return CampaignStatus.OPEN
