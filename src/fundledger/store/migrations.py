from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SCHEMA_PATH = Path(__file__).resolve().parent / "schema.yaml"

# u64 columns hold decimal text; SQLite INTEGER is signed 64-bit.
COLUMN_TYPES = {"text": "TEXT", "integer": "INTEGER", "u64": "TEXT"}


class SchemaError(RuntimeError):
    pass


@dataclass(frozen=True)
class TableSpec:
    name: str
    columns: list[tuple[str, str, bool]]
    primary_key: list[str]
    references: dict[str, str]
    indexes: list[list[str]]

    def statements(self) -> list[str]:
        body = [f"{col} {sql_type}{' NOT NULL' if required else ''}" for col, sql_type, required in self.columns]
        body.append(f"PRIMARY KEY ({', '.join(self.primary_key)})")
        for col, target in self.references.items():
            ref_table, ref_col = target.split(".")
            body.append(f"FOREIGN KEY ({col}) REFERENCES {ref_table}({ref_col})")
        ddl = [f"CREATE TABLE IF NOT EXISTS {self.name} ({', '.join(body)})"]
        for cols in self.indexes:
            ddl.append(
                f"CREATE INDEX IF NOT EXISTS idx_{self.name}_{'_'.join(cols)} ON {self.name} ({', '.join(cols)})"
            )
        return ddl


@dataclass(frozen=True)
class Schema:
    version: int
    tables: list[TableSpec]


def load_schema(schema_path: Path = DEFAULT_SCHEMA_PATH) -> Schema:
    data = yaml.safe_load(Path(schema_path).read_text(encoding="utf-8")) or {}
    tables = data.get("tables", {})
    if not isinstance(tables, dict):
        raise SchemaError("Schema tables must be a mapping.")
    return Schema(
        version=data.get("version", 1),
        tables=[_parse_table(name, table_def) for name, table_def in tables.items()],
    )


def apply_schema(conn: sqlite3.Connection, schema_path: Path = DEFAULT_SCHEMA_PATH) -> int:
    schema = load_schema(schema_path)
    conn.execute(
        "CREATE TABLE IF NOT EXISTS __schema_meta (version INTEGER PRIMARY KEY, applied_at TEXT NOT NULL)"
    )
    for table in schema.tables:
        for statement in table.statements():
            conn.execute(statement)
    conn.execute(
        "INSERT OR REPLACE INTO __schema_meta (version, applied_at) VALUES (?, datetime('now'))",
        (schema.version,),
    )
    logger.info("Applied ledger schema version %s (%d tables)", schema.version, len(schema.tables))
    return schema.version


def _parse_table(name: str, table_def: Any) -> TableSpec:
    fields = table_def.get("fields") if isinstance(table_def, dict) else None
    if not isinstance(fields, dict):
        raise SchemaError(f"Table {name} fields must be a mapping.")

    columns: list[tuple[str, str, bool]] = []
    references: dict[str, str] = {}
    for field_name, field_def in fields.items():
        if not isinstance(field_def, dict) or field_def.get("type") not in COLUMN_TYPES:
            raise SchemaError(f"Unknown field type for {name}.{field_name}.")
        columns.append((field_name, COLUMN_TYPES[field_def["type"]], bool(field_def.get("required"))))
        if field_def.get("ref"):
            references[field_name] = field_def["ref"]

    primary_key = table_def.get("primary_key")
    if isinstance(primary_key, str):
        primary_key = [primary_key]
    if not primary_key or any(col not in fields for col in primary_key):
        raise SchemaError(f"Table {name} needs a primary_key naming its fields.")

    indexes = [cols for cols in table_def.get("indexes") or [] if isinstance(cols, list) and cols]
    return TableSpec(name, columns, primary_key, references, indexes)
