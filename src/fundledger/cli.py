from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TypeVar

import typer

from fundledger import __version__
from fundledger.config import (
    DEFAULT_LOG_LEVEL,
    WorkspaceConfig,
    WorkspaceError,
    ensure_workspaces_dir,
    load_workspace,
    set_current_workspace,
    workspace_config_path,
    write_workspace_config,
)
from fundledger.domain.models import Campaign, Principal
from fundledger.domain.result import Err, Result
from fundledger.domain.rules import LedgerError, ValidationError
from fundledger.services import campaigns, contributions, exports
from fundledger.services.events import EventLogger
from fundledger.services.utils import MonotonicClock, ns_to_iso, parse_principal
from fundledger.store.migrations import SchemaError
from fundledger.store.sqlite import SqliteStore

T = TypeVar("T")

logger = logging.getLogger(__name__)

app = typer.Typer(help="Crowdfunding ledger CLI")
workspace_app = typer.Typer(help="Workspace management")
schema_app = typer.Typer(help="Schema operations")
campaign_app = typer.Typer(help="Campaign operations")
contributions_app = typer.Typer(help="Contribution ledger queries")
export_app = typer.Typer(help="Exports")

app.add_typer(workspace_app, name="workspace")
app.add_typer(schema_app, name="schema")
app.add_typer(campaign_app, name="campaign")
app.add_typer(contributions_app, name="contributions")
app.add_typer(export_app, name="export")

clock = MonotonicClock()

CALLER_OPTION = typer.Option(
    None, "--caller", envvar="FUNDLEDGER_CALLER", help="Principal issuing the call."
)


class LogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"


def _print_version(value: bool) -> None:
    if value:
        typer.echo(__version__)
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", callback=_print_version, is_eager=True, help="Show version and exit."
    ),
    log_level: LogLevel | None = typer.Option(None, "--log-level", case_sensitive=False),
) -> None:
    level = log_level.value if log_level else _workspace_log_level()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


@app.command("init")
def init() -> None:
    """Initialize directories for workspaces and exports."""
    ensure_workspaces_dir()
    Path("exports").mkdir(exist_ok=True)
    typer.echo("Initialized fundledger directories.")


@workspace_app.command("add")
def workspace_add(
    name: str = typer.Argument(...),
    caller: str | None = typer.Option(None, "--caller", help="Default principal for this workspace."),
    use: bool = typer.Option(True, "--use/--no-use", help="Set as current workspace."),
    force: bool = typer.Option(
        False, "--force", help="Overwrite existing workspace config if it exists."
    ),
) -> None:
    config_path = workspace_config_path(name)
    if config_path.exists() and not force:
        raise typer.BadParameter(
            f"Workspace already exists: {config_path}. Use --force to overwrite."
        )
    config_path = write_workspace_config(name, caller)
    if use:
        set_current_workspace(name)
    ws = _load_workspace(name)
    _apply_schema(SqliteStore(ws.store.sqlite_path))
    typer.echo(f"Workspace created: {config_path}")


@workspace_app.command("use")
def workspace_use(name: str = typer.Argument(...)) -> None:
    if not workspace_config_path(name).exists():
        raise typer.BadParameter(f"Workspace config not found: {workspace_config_path(name)}")
    set_current_workspace(name)
    typer.echo(f"Active workspace: {name}")


@schema_app.command("apply")
def schema_apply() -> None:
    ws = _load_workspace()
    version = _apply_schema(SqliteStore(ws.store.sqlite_path))
    typer.echo(f"Applied schema version {version} to {ws.store.sqlite_path}.")


@campaign_app.command("create")
def campaign_create(
    title: str = typer.Option(..., "--title"),
    description: str = typer.Option(..., "--description"),
    goal: int = typer.Option(..., "--goal", help="Funding goal in the smallest currency unit."),
    caller: str | None = CALLER_OPTION,
) -> None:
    ws = _load_workspace()
    campaign_id = _unwrap(
        campaigns.create_campaign(
            _store(ws),
            title=title,
            description=description,
            goal_amount=goal,
            caller=_caller(ws, caller),
            now=clock(),
            events=_event_logger(ws),
        )
    )
    typer.echo(f"Created campaign: {campaign_id}")


@campaign_app.command("get")
def campaign_get(campaign_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    campaign = _unwrap(campaigns.get_campaign(_store(ws), campaign_id))
    for line in _describe(campaign):
        typer.echo(line)


@campaign_app.command("list")
def campaign_list() -> None:
    ws = _load_workspace()
    rows = _unwrap(campaigns.get_campaigns(_store(ws)))
    if not rows:
        typer.echo("No campaigns.")
        return
    for campaign in rows:
        typer.echo(
            f"{campaign.campaign_id} | {campaign.title} | {campaign.current_amount}/{campaign.goal_amount} | "
            f"{campaign.owner} | ends {ns_to_iso(campaign.end_date)}"
        )


@campaign_app.command("status")
def campaign_status(campaign_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    status = _unwrap(campaigns.campaign_status(_store(ws), campaign_id, clock()))
    typer.echo(status.value)


@campaign_app.command("withdraw")
def campaign_withdraw(
    campaign_id: str = typer.Argument(...),
    caller: str | None = CALLER_OPTION,
) -> None:
    ws = _load_workspace()
    message = _unwrap(
        campaigns.withdraw_funds(
            _store(ws), campaign_id, _caller(ws, caller), clock(), events=_event_logger(ws)
        )
    )
    typer.echo(message)


@campaign_app.command("delete")
def campaign_delete(
    campaign_id: str = typer.Argument(...),
    caller: str | None = CALLER_OPTION,
) -> None:
    ws = _load_workspace()
    message = _unwrap(
        campaigns.delete_campaign(_store(ws), campaign_id, _caller(ws, caller), events=_event_logger(ws))
    )
    typer.echo(message)


@app.command("contribute")
def contribute(
    campaign_id: str = typer.Argument(...),
    amount: int = typer.Argument(..., help="Pledge in the smallest currency unit."),
    caller: str | None = CALLER_OPTION,
) -> None:
    ws = _load_workspace()
    message = _unwrap(
        contributions.contribute(
            _store(ws), campaign_id, amount, _caller(ws, caller), clock(), events=_event_logger(ws)
        )
    )
    typer.echo(message)


@contributions_app.command("list")
def contributions_list(campaign_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    rows = _unwrap(contributions.list_contributions(_store(ws), campaign_id))
    if not rows:
        typer.echo("No contributions.")
        return
    for contribution in rows:
        typer.echo(
            f"{ns_to_iso(contribution.timestamp)} | {contribution.contributor} | {contribution.amount}"
        )


@contributions_app.command("total")
def contributions_total(campaign_id: str = typer.Argument(...)) -> None:
    ws = _load_workspace()
    typer.echo(str(_unwrap(contributions.contribution_total(_store(ws), campaign_id))))


@export_app.command("csv")
def export_csv(out: str = typer.Option(..., "--out")) -> None:
    ws = _load_workspace()
    try:
        exports.export_csv_tables(_store(ws), Path(out))
    except LedgerError as exc:
        _exit_with_error(f"{exc.kind.value}: {exc.message}")
    typer.echo(f"Exported CSV tables to {out}")


@export_app.command("excel")
def export_excel(out: str = typer.Option(..., "--out")) -> None:
    ws = _load_workspace()
    try:
        exports.export_excel(_store(ws), Path(out))
    except LedgerError as exc:
        _exit_with_error(f"{exc.kind.value}: {exc.message}")
    typer.echo(f"Exported Excel to {out}")


def _describe(campaign: Campaign) -> list[str]:
    return [
        f"id: {campaign.campaign_id}",
        f"title: {campaign.title}",
        f"description: {campaign.description}",
        f"owner: {campaign.owner}",
        f"raised: {campaign.current_amount}/{campaign.goal_amount}",
        f"start: {ns_to_iso(campaign.start_date)} ({campaign.start_date})",
        f"end: {ns_to_iso(campaign.end_date)} ({campaign.end_date})",
    ]


def _apply_schema(store: SqliteStore) -> int:
    try:
        return store.apply_schema()
    except (SchemaError, LedgerError) as exc:
        _exit_with_error(str(exc))


def _store(ws: WorkspaceConfig) -> SqliteStore:
    return SqliteStore(ws.store.sqlite_path)


def _event_logger(ws: WorkspaceConfig) -> EventLogger:
    return EventLogger(path=ws.events_path, workspace=ws.name, enabled=ws.events_enabled)


def _caller(ws: WorkspaceConfig, caller: str | None) -> Principal:
    try:
        return parse_principal(caller if caller is not None else ws.caller)
    except ValidationError as exc:
        raise typer.BadParameter(
            "Pass --caller, set FUNDLEDGER_CALLER, or set identity.caller in the workspace."
        ) from exc


def _unwrap(result: Result[T]) -> T:
    if isinstance(result, Err):
        _exit_with_error(f"{result.kind.value}: {result.message}")
    return result.value


def _workspace_log_level() -> str:
    try:
        return load_workspace().log_level
    except WorkspaceError:
        return DEFAULT_LOG_LEVEL


def _load_workspace(name: str | None = None) -> WorkspaceConfig:
    try:
        return load_workspace(name)
    except WorkspaceError as exc:
        typer.echo(str(exc))
        raise typer.Exit(code=1) from exc


def _exit_with_error(message: str) -> None:
    logger.debug("Command failed: %s", message)
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code=1)
