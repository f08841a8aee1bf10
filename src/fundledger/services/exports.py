from __future__ import annotations

import csv
import logging
from collections.abc import Iterable
from pathlib import Path

from openpyxl import Workbook

from fundledger.store.sqlite import SqliteStore

logger = logging.getLogger(__name__)

TABLES = {
    "campaigns": "SELECT * FROM campaigns ORDER BY campaign_id",
    "contributions": "SELECT * FROM contributions ORDER BY campaign_id, seq",
}


def export_excel(store: SqliteStore, out_path: Path) -> None:
    out_path.parent.mkdir(parents=True, exist_ok=True)
    wb = Workbook()
    wb.remove(wb.active)

    for table, query in TABLES.items():
        rows = store.fetch_all(query)
        ws = wb.create_sheet(title=table)
        _write_sheet(ws, rows)

    wb.save(out_path)
    logger.info("Exported ledger workbook to %s", out_path)


def export_csv_tables(store: SqliteStore, out_dir: Path) -> list[Path]:
    out_dir.mkdir(parents=True, exist_ok=True)
    written: list[Path] = []
    for table, query in TABLES.items():
        rows = store.fetch_all(query)
        headers = list(rows[0].keys()) if rows else _column_names(store, table)
        csv_path = out_dir / f"{table}.csv"
        with csv_path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.writer(handle)
            writer.writerow(headers)
            for row in rows:
                writer.writerow([row[h] for h in headers])
        written.append(csv_path)
    logger.info("Exported %d ledger tables to %s", len(written), out_dir)
    return written


def _column_names(store: SqliteStore, table: str) -> list[str]:
    return [row["name"] for row in store.fetch_all(f"PRAGMA table_info({table})")]


def _write_sheet(ws, rows: Iterable) -> None:
    rows = list(rows)
    if not rows:
        return
    headers = list(rows[0].keys())
    ws.append(headers)
    for row in rows:
        ws.append([row[h] for h in headers])
