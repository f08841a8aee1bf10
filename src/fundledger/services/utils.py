from __future__ import annotations

import threading
import time
from datetime import UTC, datetime
from uuid import uuid4

from fundledger.domain.models import Principal
from fundledger.domain.rules import ValidationError


class MonotonicClock:
    """Wall-clock nanoseconds that never step backwards within a process."""

    def __init__(self) -> None:
        self._last = 0
        self._lock = threading.Lock()

    def __call__(self) -> int:
        with self._lock:
            self._last = max(self._last, time.time_ns())
            return self._last


def new_campaign_id() -> str:
    return str(uuid4())


def parse_principal(raw: str | None) -> Principal:
    if raw is None:
        raise ValidationError("caller is required.")
    return Principal(raw)


def utc_now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def ns_to_iso(timestamp_ns: int) -> str:
    return datetime.fromtimestamp(timestamp_ns / 1_000_000_000, UTC).replace(microsecond=0).isoformat()
