# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
Database layer for SMB Desk.

This module provides all low-level accessors for the SQLite database used by
the application. It is responsible for:

- Initializing and migrating the database schema.
- Inserting, updating, deleting and loading entity records.
- Recording import batches (CSV / JSON bulk creation).
- Converting between Python values and their stored representation.

The database is the single source of truth for every section of the
dashboard. Sections never query it directly: they receive a full snapshot
(a pandas DataFrame) from the services layer and recompute their
statistics from it.

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) import_batches
   One row per bulk import.

   Columns:
   - id             INTEGER PRIMARY KEY AUTOINCREMENT
   - created_at     TEXT    NOT NULL (ISO datetime, UTC)
   - entity         TEXT    NOT NULL  -- "clients" | "transactions" | ...
   - source_label   TEXT    NOT NULL  -- file path, connector name, etc.
   - rows_inserted  INTEGER NOT NULL

2) One table per entity
   clients, transactions, inventory_items, schedules, technicians, repairs.

   Every entity table shares the bookkeeping columns:
   - id              INTEGER PRIMARY KEY AUTOINCREMENT
   - created_at      TEXT    NOT NULL  -- UTC timestamp of creation
   - updated_at      TEXT              -- UTC timestamp of last modification
   - import_batch_id INTEGER           -- set when created by an import

   Business columns are declared in `models.ENTITY_COLUMNS`:
   - "money" columns are stored as INTEGER cents (`<name>_cents`),
   - "date" columns are stored as ISO "YYYY-MM-DD" TEXT,
   - "list" columns are stored as JSON TEXT arrays,
   - "int" / "real" / "text" columns map to the matching SQLite types.

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- All timestamps are stored as ISO-8601 text (UTC).
- Foreign key enforcement is explicitly enabled.
- Columns added to an entity after a database was created are added in
  place with ALTER TABLE, so older files keep working.
"""

from __future__ import annotations

import json
import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any

import pandas as pd

from .models import META_COLUMNS, ColumnSpec, get_columns

logger = logging.getLogger(__name__)

TABLE_NAMES: dict[str, str] = {
    "clients": "clients",
    "transactions": "transactions",
    "inventory": "inventory_items",
    "schedules": "schedules",
    "technicians": "technicians",
    "repairs": "repairs",
}

_SQL_TYPES = {
    "text": "TEXT",
    "int": "INTEGER",
    "real": "REAL",
    "money": "INTEGER",
    "date": "TEXT",
    "list": "TEXT",
}

# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Desk.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


@dataclass(frozen=True)
class ImportStats:
    """
    Summary of a bulk import of records into the database.

    Attributes
    ----------
    batch_id:
        Identifier of the batch row in `import_batches`.
    entity:
        Entity the records were imported into.
    rows_inserted:
        Number of rows inserted into the entity table.
    """

    batch_id: int
    entity: str
    rows_inserted: int


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _ensure_sqlite(cfg: DatabaseConfig) -> None:
    """Raise if the configuration does not refer to a supported engine."""
    if cfg.engine.lower() != "sqlite":
        msg = (
            f"Unsupported database engine: {cfg.engine!r}. "
            "Only 'sqlite' is supported for now."
        )
        raise ValueError(msg)


def _connect(cfg: DatabaseConfig) -> sqlite3.Connection:
    """
    Open a SQLite connection with foreign keys enabled.

    The caller is responsible for closing the connection.
    """
    _ensure_sqlite(cfg)
    conn = sqlite3.connect(cfg.path)
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _table(entity: str) -> str:
    get_columns(entity)
    return TABLE_NAMES[entity]


def _storage_name(col: ColumnSpec) -> str:
    """Return the SQL column name of a business column."""
    if col.kind == "money":
        return f"{col.name}_cents"
    return col.name


def _get_table_columns(conn: sqlite3.Connection, table: str) -> set[str]:
    """Return the set of column names for the given table."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    return {row[1] for row in cur.fetchall()}


def _entity_table_ddl(entity: str) -> str:
    """Build the CREATE TABLE statement of an entity table."""
    lines = [
        "id              INTEGER PRIMARY KEY AUTOINCREMENT",
        "created_at      TEXT    NOT NULL",
        "updated_at      TEXT",
        "import_batch_id INTEGER",
    ]
    for col in get_columns(entity):
        lines.append(f"{_storage_name(col)} {_SQL_TYPES[col.kind]}")
    lines.append("FOREIGN KEY (import_batch_id) REFERENCES import_batches(id)")
    body = ",\n    ".join(lines)
    return f"CREATE TABLE IF NOT EXISTS {TABLE_NAMES[entity]} (\n    {body}\n);"


def _migrate_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Add business columns that are missing from existing entity tables.

    This function is idempotent. New columns are added with ALTER TABLE and
    start as NULL for existing rows; readers fall back to the column default.
    """
    for entity, table in TABLE_NAMES.items():
        existing = _get_table_columns(conn, table)
        for col in get_columns(entity):
            name = _storage_name(col)
            if name not in existing:
                logger.info("Adding missing column %s.%s", table, name)
                conn.execute(
                    f"ALTER TABLE {table} ADD COLUMN {name} {_SQL_TYPES[col.kind]};"
                )


def _create_schema_if_needed(conn: sqlite3.Connection) -> None:
    """
    Create tables and indexes if they do not exist yet and migrate the schema.

    This function is idempotent and can be called multiple times safely.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS import_batches (
            id            INTEGER PRIMARY KEY AUTOINCREMENT,
            created_at    TEXT    NOT NULL,
            entity        TEXT    NOT NULL,
            source_label  TEXT    NOT NULL,
            rows_inserted INTEGER NOT NULL DEFAULT 0
        );
        """
    )

    for entity in TABLE_NAMES:
        conn.execute(_entity_table_ddl(entity))

    _migrate_schema_if_needed(conn)

    conn.execute("CREATE INDEX IF NOT EXISTS idx_transactions_date ON transactions(date);")
    conn.execute("CREATE INDEX IF NOT EXISTS idx_schedules_date ON schedules(date);")

    conn.commit()


def _is_missing(value: Any) -> bool:
    """Return True for None, NaN and NaT (but never for list values)."""
    if value is None:
        return True
    if isinstance(value, (list, tuple, set)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _to_iso_date(value) -> str:
    """Convert a date-like value to ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    text = str(value).strip()
    try:
        return date.fromisoformat(text).isoformat()
    except ValueError:
        # Timestamps such as '2025-01-03T10:00:00Z' keep their calendar day.
        return pd.Timestamp(text).date().isoformat()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _encode_value(col: ColumnSpec, value: Any) -> Any:
    """Convert a Python value into its stored representation."""
    if _is_missing(value):
        return None
    if col.kind == "money":
        return int(round(float(value) * 100))
    if col.kind == "int":
        return int(value)
    if col.kind == "real":
        return float(value)
    if col.kind == "date":
        return _to_iso_date(value)
    if col.kind == "list":
        if isinstance(value, str):
            value = [part.strip() for part in value.split(",") if part.strip()]
        return json.dumps([str(v) for v in value])
    return str(value)


def _decode_value(col: ColumnSpec, value: Any) -> Any:
    """Convert a stored value back into its Python representation."""
    if value is None:
        if col.kind == "list":
            return list(col.default or ())
        return col.default
    if col.kind == "money":
        return float(value) / 100.0
    if col.kind == "date":
        return date.fromisoformat(value)
    if col.kind == "list":
        return json.loads(value)
    return value


def _parse_timestamp(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


def _select_columns(entity: str) -> list[str]:
    return ["id", "created_at", "updated_at", "import_batch_id"] + [
        _storage_name(col) for col in get_columns(entity)
    ]


def _row_to_mapping(entity: str, row: tuple) -> dict[str, Any]:
    """
    Convert a database row (in `_select_columns` order) into a dictionary
    keyed by business column names, with decoded Python values.
    """
    record_id, created_at, updated_at, import_batch_id, *values = row
    out: dict[str, Any] = {
        "id": record_id,
        "created_at": _parse_timestamp(created_at),
        "updated_at": _parse_timestamp(updated_at),
        "import_batch_id": import_batch_id,
    }
    for col, raw in zip(get_columns(entity), values):
        out[col.name] = _decode_value(col, raw)
    return out


def _empty_frame(entity: str) -> pd.DataFrame:
    return pd.DataFrame(columns=list(META_COLUMNS) + [c.name for c in get_columns(entity)])


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def init_database(cfg: DatabaseConfig) -> None:
    """
    Initialize the database schema if needed.

    - Creates the SQLite file if it does not exist.
    - Creates tables and indexes if they are missing.
    - This function is idempotent: calling it multiple times is safe.

    Raises
    ------
    ValueError
        If cfg.engine is not supported.
    sqlite3.Error
        If schema creation fails.
    """
    cfg.path.parent.mkdir(parents=True, exist_ok=True)

    conn = _connect(cfg)
    try:
        _create_schema_if_needed(conn)
    finally:
        conn.close()


def get_record(cfg: DatabaseConfig, entity: str, record_id: int) -> dict[str, Any] | None:
    """
    Load a single record by id.

    Returns
    -------
    dict | None
        The decoded record (business columns plus bookkeeping columns), or
        None if no record has this id.
    """
    init_database(cfg)
    table = _table(entity)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT {', '.join(_select_columns(entity))} FROM {table} WHERE id = ?;",
            (record_id,),
        )
        row = cur.fetchone()
    finally:
        conn.close()

    if row is None:
        return None
    return _row_to_mapping(entity, row)


def insert_record(
    cfg: DatabaseConfig,
    entity: str,
    data: Mapping[str, Any],
    *,
    import_batch_id: int | None = None,
) -> int:
    """
    Insert a new record and return its id.

    Missing business columns take the default declared in
    `models.ENTITY_COLUMNS`. Keys that are not business columns are
    ignored, except `created_at`, which is preserved when provided.
    """
    init_database(cfg)
    conn = _connect(cfg)
    try:
        record_id = _insert_with_connection(conn, entity, data, import_batch_id)
        conn.commit()
    finally:
        conn.close()

    logger.debug("Inserted %s record #%s", entity, record_id)
    return record_id


def _insert_with_connection(
    conn: sqlite3.Connection,
    entity: str,
    data: Mapping[str, Any],
    import_batch_id: int | None,
) -> int:
    table = _table(entity)
    columns = ["created_at", "import_batch_id"]

    created_at = data.get("created_at")
    if _is_missing(created_at):
        created_iso = _now_utc_iso()
    elif isinstance(created_at, datetime):
        created_iso = created_at.isoformat(timespec="seconds")
    else:
        created_iso = pd.Timestamp(created_at).isoformat()
    params: list[Any] = [created_iso, import_batch_id]

    for col in get_columns(entity):
        value = data.get(col.name, col.default)
        if _is_missing(value):
            value = col.default
        columns.append(_storage_name(col))
        params.append(_encode_value(col, value))

    placeholders = ", ".join("?" for _ in columns)
    cur = conn.execute(
        f"INSERT INTO {table} ({', '.join(columns)}) VALUES ({placeholders});",
        params,
    )
    return int(cur.lastrowid)


def update_record(
    cfg: DatabaseConfig,
    entity: str,
    record_id: int,
    patch: Mapping[str, Any],
) -> bool:
    """
    Apply a partial update to an existing record.

    Only business columns present in `patch` are written. `updated_at` is
    always refreshed.

    Returns
    -------
    bool
        True if a record was updated, False if no record has this id.

    Raises
    ------
    ValueError
        If the patch contains no business column.
    """
    init_database(cfg)
    table = _table(entity)

    fields: list[str] = []
    params: list[Any] = []
    for col in get_columns(entity):
        if col.name in patch:
            fields.append(f"{_storage_name(col)} = ?")
            params.append(_encode_value(col, patch[col.name]))

    if not fields:
        raise ValueError(f"No fields to update for {entity} record #{record_id}.")

    fields.append("updated_at = ?")
    params.append(_now_utc_iso())
    params.append(record_id)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"""
            UPDATE {table}
               SET {", ".join(fields)}
             WHERE id = ?;
            """,
            params,
        )
        updated = cur.rowcount > 0
        conn.commit()
    finally:
        conn.close()

    logger.debug("Updated %s record #%s (%s)", entity, record_id, updated)
    return updated


def delete_record(cfg: DatabaseConfig, entity: str, record_id: int) -> bool:
    """
    Permanently delete a record.

    Returns
    -------
    bool
        True if a record was deleted, False if no record has this id.
    """
    init_database(cfg)
    table = _table(entity)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(f"DELETE FROM {table} WHERE id = ?;", (record_id,))
        deleted = cur.rowcount > 0
        conn.commit()
    finally:
        conn.close()

    logger.debug("Deleted %s record #%s (%s)", entity, record_id, deleted)
    return deleted


def load_records(cfg: DatabaseConfig, entity: str) -> pd.DataFrame:
    """
    Load every record of an entity (a full snapshot), ordered by id.

    Returns
    -------
    pandas.DataFrame
        One row per record with the bookkeeping columns (id, created_at,
        updated_at, import_batch_id) followed by the business columns.
        Money columns are floats, date columns hold `datetime.date`
        objects, list columns hold Python lists. If the table is empty, an
        empty DataFrame with the same columns is returned.
    """
    init_database(cfg)
    table = _table(entity)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            f"SELECT {', '.join(_select_columns(entity))} FROM {table} ORDER BY id;"
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    if not rows:
        return _empty_frame(entity)

    df = pd.DataFrame([_row_to_mapping(entity, row) for row in rows])
    return df[list(META_COLUMNS) + [c.name for c in get_columns(entity)]]


def has_records(cfg: DatabaseConfig, entity: str) -> bool:
    """Return True if the entity table contains at least one record."""
    init_database(cfg)
    table = _table(entity)

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(f"SELECT 1 FROM {table} LIMIT 1;")
        return cur.fetchone() is not None
    finally:
        conn.close()


def import_records(
    df: pd.DataFrame,
    cfg: DatabaseConfig,
    entity: str,
    *,
    source_label: str,
    imported_at: datetime | None = None,
) -> ImportStats:
    """
    Bulk-insert records from a DataFrame within a single import batch.

    Parameters
    ----------
    df:
        Entity-shaped records, one per row. Columns that are not business
        columns of the entity are ignored (an `id` column in particular:
        identities are always assigned by the database).
    cfg:
        Database configuration.
    entity:
        Target entity name.
    source_label:
        Human-readable label for the batch, e.g. a filename.
    imported_at:
        Timestamp of the batch. Defaults to the current UTC time.

    Behavior
    --------
    - Creates a new row in import_batches.
    - Inserts every row of df, linked to the batch.
    - Updates import_batches.rows_inserted.
    - Either all rows are inserted or none (single transaction).
    """
    init_database(cfg)
    _table(entity)

    if imported_at is None:
        imported_at_iso = _now_utc_iso()
    else:
        imported_at_iso = imported_at.isoformat(timespec="seconds")

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            INSERT INTO import_batches (created_at, entity, source_label, rows_inserted)
            VALUES (?, ?, ?, 0);
            """,
            (imported_at_iso, entity, source_label),
        )
        batch_id = int(cur.lastrowid)

        rows_inserted = 0
        for record in df.to_dict(orient="records"):
            _insert_with_connection(conn, entity, record, batch_id)
            rows_inserted += 1

        cur.execute(
            "UPDATE import_batches SET rows_inserted = ? WHERE id = ?;",
            (rows_inserted, batch_id),
        )
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

    logger.info(
        "Imported %d %s record(s) from %s (batch #%d)",
        rows_inserted,
        entity,
        source_label,
        batch_id,
    )
    return ImportStats(batch_id=batch_id, entity=entity, rows_inserted=rows_inserted)


def list_import_batches(cfg: DatabaseConfig) -> pd.DataFrame:
    """
    Return the list of import batches stored in the database.

    Columns:
    - id
    - created_at
    - entity
    - source_label
    - rows_inserted
    """
    init_database(cfg)
    columns = ["id", "created_at", "entity", "source_label", "rows_inserted"]

    conn = _connect(cfg)
    try:
        cur = conn.cursor()
        cur.execute(
            """
            SELECT id, created_at, entity, source_label, rows_inserted
              FROM import_batches
             ORDER BY id DESC;
            """
        )
        rows = cur.fetchall()
    finally:
        conn.close()

    if not rows:
        return pd.DataFrame(columns=columns)

    df = pd.DataFrame(rows, columns=columns)
    df["created_at"] = pd.to_datetime(df["created_at"])
    return df
