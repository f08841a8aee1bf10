from pathlib import Path

from fundledger.domain import ErrorKind, Principal
from fundledger.domain.result import Err, Ok
from fundledger.services import campaigns, contributions
from fundledger.services.events import EventLogger
from fundledger.store.sqlite import SqliteStore

NOW = 1_700_000_000_000_000_000


def _store(tmp_path: Path) -> SqliteStore:
    store = SqliteStore(tmp_path / "test.sqlite")
    store.apply_schema()
    return store


def test_mutations_are_logged_in_order(tmp_path: Path) -> None:
    store = _store(tmp_path)
    events = EventLogger(path=tmp_path / "events.ndjson", workspace="demo")
    alice, bob = Principal("alice"), Principal("bob")

    campaign_id = campaigns.create_campaign(store, "t", "d", 10, alice, NOW, events=events).unwrap()
    contributions.contribute(store, campaign_id, 10, bob, NOW, events=events).unwrap()
    campaigns.withdraw_funds(store, campaign_id, alice, NOW, events=events).unwrap()
    campaigns.delete_campaign(store, campaign_id, alice, events=events).unwrap()

    logged = events.read()
    assert [e["event_type"] for e in logged] == [
        "campaign_created",
        "contribution_recorded",
        "funds_withdrawn",
        "campaign_deleted",
    ]
    assert all(e["campaign_id"] == campaign_id and e["workspace"] == "demo" for e in logged)
    assert logged[1]["caller"] == "bob"
    assert logged[1]["amount"] == 10
    assert logged[2]["amount"] == 10
    assert logged[0]["ts"] == "2023-11-14T22:13:20+00:00"


def test_failures_are_not_logged(tmp_path: Path) -> None:
    store = _store(tmp_path)
    events = EventLogger(path=tmp_path / "events.ndjson", workspace="demo")
    contributions.contribute(store, "missing", 5, Principal("bob"), NOW, events=events)
    campaigns.create_campaign(store, "", "d", 10, Principal("bob"), NOW, events=events)
    assert events.read() == []


def test_disabled_logger_writes_nothing(tmp_path: Path) -> None:
    path = tmp_path / "events.ndjson"
    events = EventLogger(path=path, workspace="demo", enabled=False)
    events.log(event_type="campaign_created", campaign_id="c", caller="alice")
    assert not path.exists()


def test_unwritable_log_rolls_back_mutation(tmp_path: Path) -> None:
    store = _store(tmp_path)
    alice, bob = Principal("alice"), Principal("bob")
    campaign_id = campaigns.create_campaign(store, "t", "d", 10, alice, NOW).unwrap()
    broken = EventLogger(path=tmp_path, workspace="demo")

    result = contributions.contribute(store, campaign_id, 5, bob, NOW, events=broken)
    assert isinstance(result, Err)
    assert result.kind is ErrorKind.STORAGE
    assert campaigns.get_campaign(store, campaign_id).unwrap().current_amount == 0
    assert contributions.list_contributions(store, campaign_id).unwrap() == []

    created = campaigns.create_campaign(store, "t", "d", 10, alice, NOW, events=broken)
    assert isinstance(created, Err)
    assert len(campaigns.get_campaigns(store).unwrap()) == 1

    deleted = campaigns.delete_campaign(store, campaign_id, alice, events=broken)
    assert deleted.kind is ErrorKind.STORAGE
    assert isinstance(campaigns.get_campaign(store, campaign_id), Ok)
