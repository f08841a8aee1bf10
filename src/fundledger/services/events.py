from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path

from fundledger.domain.rules import StorageError
from fundledger.services.utils import ns_to_iso, utc_now_iso


@dataclass
class EventLogger:
    path: Path
    workspace: str
    enabled: bool = True

    def log(
        self,
        *,
        event_type: str,
        campaign_id: str,
        caller: str,
        amount: int | None = None,
        at_ns: int | None = None,
    ) -> None:
        if not self.enabled:
            return
        payload = {
            "ts": ns_to_iso(at_ns) if at_ns is not None else utc_now_iso(),
            "workspace": self.workspace,
            "event_type": event_type,
            "campaign_id": campaign_id,
            "caller": caller,
        }
        if amount is not None:
            payload["amount"] = amount
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with self.path.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload) + "\n")
        except OSError as exc:
            raise StorageError(f"Cannot write audit event to {self.path}: {exc}") from exc

    def read(self) -> list[dict]:
        if not self.path.exists():
            return []
        with self.path.open(encoding="utf-8") as handle:
            return [json.loads(line) for line in handle if line.strip()]
