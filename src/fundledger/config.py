from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

WORKSPACES_DIR = Path("workspaces")
CURRENT_WORKSPACE_FILE = WORKSPACES_DIR / ".current"
WORKSPACE_FILENAME = "workspace.yaml"
EVENTS_FILENAME = "events.ndjson"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class StoreConfig:
    sqlite_path: Path


@dataclass(frozen=True)
class WorkspaceConfig:
    name: str
    store: StoreConfig
    caller: str | None
    events_enabled: bool
    log_level: str
    path: Path

    @property
    def events_path(self) -> Path:
        return self.path / EVENTS_FILENAME


class WorkspaceError(RuntimeError):
    pass


def ensure_workspaces_dir() -> None:
    WORKSPACES_DIR.mkdir(parents=True, exist_ok=True)


def set_current_workspace(name: str) -> None:
    ensure_workspaces_dir()
    CURRENT_WORKSPACE_FILE.write_text(f"{name}\n", encoding="utf-8")


def get_current_workspace_name() -> str:
    if not CURRENT_WORKSPACE_FILE.exists():
        raise WorkspaceError("No active workspace. Run `fundledger workspace use <name>`.")
    return CURRENT_WORKSPACE_FILE.read_text(encoding="utf-8").strip()


def workspace_path(name: str) -> Path:
    return WORKSPACES_DIR / name


def workspace_config_path(name: str) -> Path:
    return workspace_path(name) / WORKSPACE_FILENAME


def load_workspace(name: str | None = None) -> WorkspaceConfig:
    if name is None:
        name = get_current_workspace_name()
    return load_workspace_file(workspace_config_path(name), name)


def load_workspace_file(config_path: Path, name: str) -> WorkspaceConfig:
    if not config_path.exists():
        raise WorkspaceError(f"Workspace config not found: {config_path}")
    try:
        data = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise WorkspaceError(f"Workspace config is not valid YAML: {config_path}") from exc
    if not isinstance(data, dict):
        raise WorkspaceError(f"Workspace config must be a mapping: {config_path}")
    return WorkspaceConfig(
        name=name,
        store=_parse_store(data.get("store"), config_path),
        caller=_parse_caller(data.get("identity")),
        events_enabled=_parse_events(data.get("events")),
        log_level=_parse_log_level(data.get("logging")),
        path=config_path.parent,
    )


def write_workspace_config(name: str, caller: str | None) -> Path:
    ensure_workspaces_dir()
    ws_dir = workspace_path(name)
    ws_dir.mkdir(parents=True, exist_ok=True)
    config = {
        "workspace": name,
        "store": {"sqlite_path": "./ledger.sqlite"},
        "identity": {"caller": caller},
        "events": {"enabled": True},
        "logging": {"level": DEFAULT_LOG_LEVEL},
    }
    config_path = workspace_config_path(name)
    config_path.write_text(yaml.safe_dump(config, sort_keys=False), encoding="utf-8")
    return config_path


def _parse_store(store_data: Any, config_path: Path) -> StoreConfig:
    if not isinstance(store_data, dict):
        raise WorkspaceError("Invalid workspace store configuration.")
    sqlite_path_raw = store_data.get("sqlite_path")
    if not sqlite_path_raw:
        raise WorkspaceError("Workspace store.sqlite_path is required.")
    sqlite_path = _resolve_sqlite_path(sqlite_path_raw, config_path)
    if sqlite_path is None:
        raise WorkspaceError("Workspace store.sqlite_path must be a string.")
    return StoreConfig(sqlite_path=sqlite_path)


def _resolve_sqlite_path(sqlite_path_raw: Any, config_path: Path) -> Path | None:
    if not isinstance(sqlite_path_raw, str):
        return None
    raw_path = Path(sqlite_path_raw)
    if raw_path.is_absolute():
        return raw_path
    # Relative paths are anchored at the workspace directory.
    return (config_path.parent / raw_path).resolve()


def _parse_caller(identity_data: Any) -> str | None:
    if identity_data is None:
        return None
    if not isinstance(identity_data, dict):
        raise WorkspaceError("Invalid workspace identity configuration.")
    caller = identity_data.get("caller")
    if caller is not None and not isinstance(caller, str):
        raise WorkspaceError("Workspace identity.caller must be a string.")
    return caller


def _parse_events(events_data: Any) -> bool:
    if events_data is None:
        return True
    if not isinstance(events_data, dict):
        raise WorkspaceError("Invalid workspace events configuration.")
    enabled = events_data.get("enabled", True)
    if not isinstance(enabled, bool):
        raise WorkspaceError("Workspace events.enabled must be true or false.")
    return enabled


def _parse_log_level(logging_data: Any) -> str:
    if logging_data is None:
        return DEFAULT_LOG_LEVEL
    if not isinstance(logging_data, dict):
        raise WorkspaceError("Invalid workspace logging configuration.")
    level = str(logging_data.get("level") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise WorkspaceError(f"Workspace logging.level is not a known level: {level}")
    return level
