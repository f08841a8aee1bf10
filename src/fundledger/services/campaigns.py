"""Campaign store operations.

Every public function returns a tagged ``Ok``/``Err`` result. Validation
runs inside the same write transaction as the mutation it guards, so a
failure leaves storage untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace

from fundledger.domain import rules
from fundledger.domain.models import Campaign, Principal
from fundledger.domain.result import as_result
from fundledger.domain.rules import AuthorizationError, CampaignNotFound, StorageError, ValidationError
from fundledger.domain.stages import CampaignStatus, derive_status
from fundledger.services.events import EventLogger
from fundledger.services.utils import new_campaign_id
from fundledger.store.sqlite import SqliteSession, SqliteStore

logger = logging.getLogger(__name__)


@as_result
def create_campaign(
    store: SqliteStore,
    title: str,
    description: str,
    goal_amount: int,
    caller: Principal,
    now: int,
    new_id: Callable[[], str] = new_campaign_id,
    events: EventLogger | None = None,
) -> str:
    rules.require(title, "title")
    rules.require(description, "description")
    rules.require_u64_amount(goal_amount, "goal_amount")
    end_date = rules.end_date_for(now)

    campaign = Campaign(
        campaign_id=new_id(),
        title=title,
        description=description,
        goal_amount=goal_amount,
        current_amount=0,
        start_date=now,
        end_date=end_date,
        owner=caller,
    )
    with store.session(write=True) as session:
        if session.get_campaign(campaign.campaign_id) is not None:
            raise StorageError(f"Generated campaign id {campaign.campaign_id} is already in use.")
        session.put_campaign(campaign)
        if events is not None:
            events.log(
                event_type="campaign_created", campaign_id=campaign.campaign_id, caller=str(caller), at_ns=now
            )

    logger.debug("Created campaign %s for %s (goal %d)", campaign.campaign_id, caller, goal_amount)
    return campaign.campaign_id


@as_result
def get_campaign(store: SqliteStore, campaign_id: str) -> Campaign:
    with store.session() as session:
        return load_campaign(session, campaign_id)


@as_result
def get_campaigns(store: SqliteStore) -> list[Campaign]:
    with store.session() as session:
        return session.list_campaigns()


@as_result
def campaign_status(store: SqliteStore, campaign_id: str, now: int) -> CampaignStatus:
    with store.session() as session:
        campaign = load_campaign(session, campaign_id)
        return derive_status(campaign, session.count_contributions(campaign_id), now)


@as_result
def withdraw_funds(
    store: SqliteStore,
    campaign_id: str,
    caller: Principal,
    now: int,
    events: EventLogger | None = None,
) -> str:
    with store.session(write=True) as session:
        campaign = load_campaign(session, campaign_id)
        require_owner(campaign, caller, "withdraw funds")
        if campaign.current_amount == 0 and session.count_contributions(campaign_id) > 0:
            raise ValidationError("Funds have already been withdrawn for this campaign.")
        if campaign.current_amount < campaign.goal_amount:
            raise ValidationError(
                "Cannot withdraw funds as the campaign has not reached its funding goal."
            )
        amount = campaign.current_amount
        session.put_campaign(replace(campaign, current_amount=0))
        if events is not None:
            events.log(
                event_type="funds_withdrawn",
                campaign_id=campaign_id,
                caller=str(caller),
                amount=amount,
                at_ns=now,
            )

    logger.debug("Withdrew %d from campaign %s", amount, campaign_id)
    return f"Funds successfully withdrawn for campaign {campaign_id}"


@as_result
def delete_campaign(
    store: SqliteStore,
    campaign_id: str,
    caller: Principal,
    events: EventLogger | None = None,
) -> str:
    with store.session(write=True) as session:
        campaign = load_campaign(session, campaign_id)
        require_owner(campaign, caller, "delete this campaign")
        session.remove_campaign(campaign_id)
        if events is not None:
            events.log(event_type="campaign_deleted", campaign_id=campaign_id, caller=str(caller))

    logger.debug("Deleted campaign %s", campaign_id)
    return f"Campaign {campaign_id} deleted successfully"


def load_campaign(session: SqliteSession, campaign_id: str) -> Campaign:
    campaign = session.get_campaign(campaign_id)
    if campaign is None:
        raise CampaignNotFound(f"Campaign with id={campaign_id} not found")
    return campaign


def require_owner(campaign: Campaign, caller: Principal, action: str) -> None:
    if caller != campaign.owner:
        raise AuthorizationError(
            f"Only the campaign owner can {action}. Caller: {caller}, Owner: {campaign.owner}"
        )
