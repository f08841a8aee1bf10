from __future__ import annotations

import logging
from dataclasses import replace

from fundledger.domain import rules
from fundledger.domain.models import Contribution, Principal
from fundledger.domain.result import as_result
from fundledger.domain.rules import CampaignNotFound, ContributionError, ValidationError
from fundledger.services.campaigns import load_campaign
from fundledger.services.events import EventLogger
from fundledger.store.sqlite import SqliteStore

logger = logging.getLogger(__name__)


@as_result
def contribute(
    store: SqliteStore,
    campaign_id: str,
    amount: int,
    caller: Principal,
    now: int,
    events: EventLogger | None = None,
) -> str:
    rules.require_u64_amount(amount, "amount")

    with store.session(write=True) as session:
        campaign = load_campaign(session, campaign_id)
        if now > campaign.end_date:
            raise ValidationError("This campaign has already ended.")
        if campaign.current_amount >= campaign.goal_amount:
            raise ContributionError(
                f"Campaign with id={campaign_id} has successfully reached its funding goal. "
                "No further contributions are needed."
            )
        new_amount = campaign.current_amount + amount
        if new_amount > campaign.goal_amount:
            raise ContributionError(
                "This contribution would exceed the campaign's funding goal. "
                "Please adjust the contribution amount."
            )
        session.put_campaign(replace(campaign, current_amount=new_amount))
        session.append_contribution(
            campaign_id, Contribution(contributor=caller, amount=amount, timestamp=now)
        )
        if events is not None:
            events.log(
                event_type="contribution_recorded",
                campaign_id=campaign_id,
                caller=str(caller),
                amount=amount,
                at_ns=now,
            )

    logger.debug("Recorded %d from %s on campaign %s", amount, caller, campaign_id)
    return f"Contributed {amount} for the campaign with id: {campaign_id}"


@as_result
def list_contributions(store: SqliteStore, campaign_id: str) -> list[Contribution]:
    with store.session() as session:
        contributions = session.get_contributions(campaign_id)
    if contributions is None:
        raise CampaignNotFound(f"No contributions found for campaign with id={campaign_id}")
    return contributions


@as_result
def contribution_total(store: SqliteStore, campaign_id: str) -> int:
    """Sum of every pledge on record, including those already withdrawn."""
    contributions = list_contributions(store, campaign_id).unwrap()
    return sum(c.amount for c in contributions)
