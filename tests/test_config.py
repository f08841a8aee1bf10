from pathlib import Path

import pytest

from fundledger.config import (
    DEFAULT_LOG_LEVEL,
    WORKSPACES_DIR,
    WorkspaceError,
    _resolve_sqlite_path,
    load_workspace_file,
)


def _write(tmp_path: Path, body: str) -> Path:
    ws_dir = tmp_path / WORKSPACES_DIR / "demo"
    ws_dir.mkdir(parents=True)
    config_path = ws_dir / "workspace.yaml"
    config_path.write_text(body, encoding="utf-8")
    return config_path


def test_resolve_sqlite_path_relative(tmp_path: Path) -> None:
    config_path = _write(tmp_path, "workspace: demo\nstore:\n  sqlite_path: ./ledger.sqlite\n")
    resolved = _resolve_sqlite_path("./ledger.sqlite", config_path)
    assert resolved == (config_path.parent / "ledger.sqlite").resolve()


def test_resolve_sqlite_path_absolute(tmp_path: Path) -> None:
    config_path = _write(tmp_path, "workspace: demo\n")
    absolute = tmp_path / "elsewhere" / "ledger.sqlite"
    assert _resolve_sqlite_path(str(absolute), config_path) == absolute


def test_load_workspace_defaults(tmp_path: Path) -> None:
    config_path = _write(tmp_path, "workspace: demo\nstore:\n  sqlite_path: ./ledger.sqlite\n")
    ws = load_workspace_file(config_path, "demo")
    assert ws.caller is None
    assert ws.events_enabled is True
    assert ws.log_level == DEFAULT_LOG_LEVEL
    assert ws.events_path == config_path.parent / "events.ndjson"


def test_load_workspace_full(tmp_path: Path) -> None:
    config_path = _write(
        tmp_path,
        "workspace: demo\n"
        "store:\n  sqlite_path: ./ledger.sqlite\n"
        "identity:\n  caller: alice\n"
        "events:\n  enabled: false\n"
        "logging:\n  level: debug\n",
    )
    ws = load_workspace_file(config_path, "demo")
    assert ws.caller == "alice"
    assert ws.events_enabled is False
    assert ws.log_level == "DEBUG"


@pytest.mark.parametrize(
    "body",
    [
        "workspace: demo\n",
        "workspace: demo\nstore:\n  sqlite_path: 5\n",
        "workspace: demo\nstore:\n  sqlite_path: ./x.sqlite\nidentity: alice\n",
        "workspace: demo\nstore:\n  sqlite_path: ./x.sqlite\nevents:\n  enabled: maybe\n",
        "workspace: demo\nstore:\n  sqlite_path: ./x.sqlite\nlogging:\n  level: loud\n",
        "- not\n- a mapping\n",
    ],
)
def test_invalid_workspace_config(tmp_path: Path, body: str) -> None:
    config_path = _write(tmp_path, body)
    with pytest.raises(WorkspaceError):
        load_workspace_file(config_path, "demo")


def test_missing_workspace_config(tmp_path: Path) -> None:
    with pytest.raises(WorkspaceError):
        load_workspace_file(tmp_path / "nope.yaml", "nope")
