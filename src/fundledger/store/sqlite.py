from __future__ import annotations

import logging
import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

from fundledger.domain.models import Campaign, Contribution, Principal
from fundledger.domain.rules import StorageError
from fundledger.store.migrations import DEFAULT_SCHEMA_PATH, apply_schema

logger = logging.getLogger(__name__)


class SqliteSession:
    """One open transaction over the campaigns and contributions collections."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self._conn = conn

    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        self._conn.execute(query, list(params or []))

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        cur = self._conn.execute(query, list(params or []))
        return cur.fetchall()

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        cur = self._conn.execute(query, list(params or []))
        return cur.fetchone()

    def get_campaign(self, campaign_id: str) -> Campaign | None:
        row = self.fetch_one("SELECT * FROM campaigns WHERE campaign_id = ?", (campaign_id,))
        if row is None:
            return None
        return _campaign_from_row(row)

    def put_campaign(self, campaign: Campaign) -> None:
        self.execute(
            "INSERT INTO campaigns (campaign_id, title, description, goal_amount, current_amount, "
            "start_date, end_date, owner) VALUES (?, ?, ?, ?, ?, ?, ?, ?) "
            "ON CONFLICT(campaign_id) DO UPDATE SET "
            "title=excluded.title, description=excluded.description, goal_amount=excluded.goal_amount, "
            "current_amount=excluded.current_amount, start_date=excluded.start_date, "
            "end_date=excluded.end_date, owner=excluded.owner",
            (
                campaign.campaign_id,
                campaign.title,
                campaign.description,
                str(campaign.goal_amount),
                str(campaign.current_amount),
                str(campaign.start_date),
                str(campaign.end_date),
                campaign.owner.text,
            ),
        )

    def remove_campaign(self, campaign_id: str) -> None:
        self.execute("DELETE FROM contributions WHERE campaign_id = ?", (campaign_id,))
        self.execute("DELETE FROM campaigns WHERE campaign_id = ?", (campaign_id,))

    def list_campaigns(self) -> list[Campaign]:
        rows = self.fetch_all("SELECT * FROM campaigns ORDER BY campaign_id ASC")
        return [_campaign_from_row(row) for row in rows]

    def get_contributions(self, campaign_id: str) -> list[Contribution] | None:
        """Return the campaign's pledges in insertion order, or None without a campaign."""
        exists = self.fetch_one("SELECT 1 FROM campaigns WHERE campaign_id = ?", (campaign_id,))
        if exists is None:
            return None
        rows = self.fetch_all(
            "SELECT contributor, amount, timestamp FROM contributions WHERE campaign_id = ? ORDER BY seq ASC",
            (campaign_id,),
        )
        return [_contribution_from_row(row) for row in rows]

    def count_contributions(self, campaign_id: str) -> int:
        row = self.fetch_one(
            "SELECT COUNT(*) AS n FROM contributions WHERE campaign_id = ?", (campaign_id,)
        )
        return int(row["n"])

    def append_contribution(self, campaign_id: str, contribution: Contribution) -> None:
        row = self.fetch_one(
            "SELECT COALESCE(MAX(seq), 0) + 1 AS next_seq FROM contributions WHERE campaign_id = ?",
            (campaign_id,),
        )
        self.execute(
            "INSERT INTO contributions (campaign_id, seq, contributor, amount, timestamp) "
            "VALUES (?, ?, ?, ?, ?)",
            (
                campaign_id,
                row["next_seq"],
                contribution.contributor.text,
                str(contribution.amount),
                str(contribution.timestamp),
            ),
        )


class SqliteStore:
    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)

    @contextmanager
    def connect(self, write: bool = False) -> Iterator[sqlite3.Connection]:
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(self.db_path, isolation_level=None)
        except (OSError, sqlite3.Error) as exc:
            raise StorageError(f"Cannot open ledger database {self.db_path}: {exc}") from exc
        conn.row_factory = sqlite3.Row
        try:
            conn.execute("PRAGMA foreign_keys = ON;")
            # IMMEDIATE takes the write lock up front so read-validate-write
            # sequences from concurrent processes serialize.
            conn.execute("BEGIN IMMEDIATE" if write else "BEGIN")
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            _rollback(conn)
            raise StorageError(f"Ledger storage failure: {exc}") from exc
        except BaseException:
            _rollback(conn)
            raise
        finally:
            conn.close()

    @contextmanager
    def session(self, write: bool = False) -> Iterator[SqliteSession]:
        with self.connect(write=write) as conn:
            yield SqliteSession(conn)

    def apply_schema(self, schema_path: Path = DEFAULT_SCHEMA_PATH) -> int:
        with self.connect(write=True) as conn:
            return apply_schema(conn, schema_path)

    def execute(self, query: str, params: Iterable[Any] | None = None) -> None:
        with self.session(write=True) as session:
            session.execute(query, params)

    def fetch_all(self, query: str, params: Iterable[Any] | None = None) -> list[sqlite3.Row]:
        with self.session() as session:
            return session.fetch_all(query, params)

    def fetch_one(self, query: str, params: Iterable[Any] | None = None) -> sqlite3.Row | None:
        with self.session() as session:
            return session.fetch_one(query, params)


def _rollback(conn: sqlite3.Connection) -> None:
    if conn.in_transaction:
        conn.rollback()
        logger.debug("Rolled back ledger transaction")


def _campaign_from_row(row: sqlite3.Row) -> Campaign:
    return Campaign(
        campaign_id=row["campaign_id"],
        title=row["title"],
        description=row["description"],
        goal_amount=int(row["goal_amount"]),
        current_amount=int(row["current_amount"]),
        start_date=int(row["start_date"]),
        end_date=int(row["end_date"]),
        owner=Principal(row["owner"]),
    )


def _contribution_from_row(row: sqlite3.Row) -> Contribution:
    return Contribution(
        contributor=Principal(row["contributor"]),
        amount=int(row["amount"]),
        timestamp=int(row["timestamp"]),
    )
