# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.


"""
High-level services for CRUD operations and record-level workflows.

This module sits between:
- the low-level database helpers in `db.py`, and
- user-facing layers such as the CLI.

Responsibilities
----------------
1) CRUD Operations (one RecordService per entity)
   - get_all(): full snapshot as a DataFrame, no pagination.
   - get(id): a single record as a typed dataclass, or None.
   - create(data): validate, assign identity and created_at, re-read.
   - update(id, patch): partial merge by id, validated as a whole.
   - delete(id): permanent removal.

2) Bulk import / export
   - import_records(): validate every row, then insert all of them in a
     single import batch (all or nothing).
   - export_records(): the snapshot without bookkeeping columns.

3) Record workflows
   - duplicate a transaction (dated today) or a shift (on the next day),
   - restock an inventory item,
   - create one shift or a recurring series of shifts,
   - count repairs per client.

Design notes
------------
- Every mutation is followed by a fresh read: callers never patch their
  snapshots in place.
- Validation errors are raised as `ValidationError`; operations on an
  unknown id raise `RecordNotFoundError`.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

import pandas as pd

from .clients import client_repair_counts as _client_repair_counts
from .config import AppConfig
from .db import DatabaseConfig, ImportStats, _is_missing
from .db import (
    delete_record as _db_delete_record,
)
from .db import (
    get_record as _db_get_record,
)
from .db import (
    import_records as _db_import_records,
)
from .db import (
    insert_record as _db_insert_record,
)
from .db import (
    load_records as _db_load_records,
)
from .db import (
    update_record as _db_update_record,
)
from .models import (
    META_COLUMNS,
    Record,
    RecordNotFoundError,
    ValidationError,
    get_columns,
    record_from_mapping,
    validate_record,
)
from .periods import _today
from .schedule import expand_recurring_dates

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _clean(data: Mapping[str, Any]) -> dict[str, Any]:
    """Drop missing values (None / NaN / NaT) from a record mapping."""
    return {k: v for k, v in data.items() if not _is_missing(v)}


def _with_defaults(entity: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Return the business columns of `data`, missing ones taking their
    declared default.
    """
    cleaned = _clean(data)
    out: dict[str, Any] = {}
    for col in get_columns(entity):
        out[col.name] = cleaned.get(col.name, col.default)
    return out


def _business_fields(entity: str, record: Record) -> dict[str, Any]:
    """Extract the business columns of a record dataclass."""
    return {col.name: getattr(record, col.name) for col in get_columns(entity)}


def _as_date(value: Any) -> date:
    if isinstance(value, pd.Timestamp):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value).strip())


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RecordService:
    """
    CRUD access to the records of one entity.

    Parameters
    ----------
    db_cfg:
        Database configuration.
    entity:
        One of "clients", "transactions", "inventory", "schedules",
        "technicians", "repairs".
    """

    db_cfg: DatabaseConfig
    entity: str

    def __post_init__(self) -> None:
        get_columns(self.entity)

    def get_all(self) -> pd.DataFrame:
        """Return the full snapshot of the entity."""
        return _db_load_records(self.db_cfg, self.entity)

    def get(self, record_id: int) -> Optional[Record]:
        row = _db_get_record(self.db_cfg, self.entity, record_id)
        if row is None:
            return None
        return record_from_mapping(self.entity, row)

    def require(self, record_id: int) -> Record:
        """Like get(), but raise RecordNotFoundError for an unknown id."""
        record = self.get(record_id)
        if record is None:
            raise RecordNotFoundError(self.entity, record_id)
        return record

    def create(self, data: Mapping[str, Any]) -> Record:
        """
        Validate and store a new record.

        Identity (autoincrement id) and created_at are assigned here; an
        `id` provided by the caller is ignored.

        Raises:
            ValidationError: if a required field is missing or invalid.
        """
        values = _with_defaults(self.entity, data)
        validate_record(self.entity, values)

        created_at = data.get("created_at")
        if not _is_missing(created_at):
            values["created_at"] = created_at

        record_id = _db_insert_record(self.db_cfg, self.entity, values)
        return self.require(record_id)

    def update(self, record_id: int, patch: Mapping[str, Any]) -> Record:
        """
        Apply a partial update and return the updated record.

        The merged record (current values overridden by `patch`) must pass
        validation.

        Raises:
            RecordNotFoundError: if no record has this id.
            ValidationError: if the merged record is invalid.
            ValueError: if the patch contains no business field.
        """
        current = self.require(record_id)
        merged = _business_fields(self.entity, current)
        merged.update(patch)
        validate_record(self.entity, merged)

        names = {col.name for col in get_columns(self.entity)}
        fields = {k: v for k, v in patch.items() if k in names}
        _db_update_record(self.db_cfg, self.entity, record_id, fields)
        return self.require(record_id)

    def delete(self, record_id: int) -> None:
        """
        Permanently delete a record.

        Raises:
            RecordNotFoundError: if no record has this id.
        """
        if not _db_delete_record(self.db_cfg, self.entity, record_id):
            raise RecordNotFoundError(self.entity, record_id)


def get_service(app_config: AppConfig, entity: str) -> RecordService:
    """Build the RecordService of an entity from the application config."""
    return RecordService(db_cfg=app_config.database, entity=entity)


# ---------------------------------------------------------------------------
# Bulk import / export
# ---------------------------------------------------------------------------


def import_records(
    service: RecordService,
    records: pd.DataFrame,
    *,
    source_label: str = "import",
) -> ImportStats:
    """
    Validate and insert a batch of records.

    Every row is validated first; if any row is invalid nothing is
    inserted and a single ValidationError lists the failing rows (1-based).

    Returns
    -------
    ImportStats
        The import batch id and the number of inserted rows.
    """
    errors: list[str] = []
    rows: list[dict[str, Any]] = []
    for index, raw in enumerate(records.to_dict(orient="records"), start=1):
        values = _with_defaults(service.entity, raw)
        try:
            validate_record(service.entity, values)
        except ValidationError as exc:
            errors.extend(f"row {index}: {message}" for message in exc.errors)
            continue
        created_at = raw.get("created_at")
        if not _is_missing(created_at):
            values["created_at"] = created_at
        rows.append(values)

    if errors:
        raise ValidationError(service.entity, errors)

    frame = pd.DataFrame(rows)

    return _db_import_records(
        frame,
        service.db_cfg,
        service.entity,
        source_label=source_label,
    )


def export_records(service: RecordService) -> pd.DataFrame:
    """Return the snapshot of the entity without its bookkeeping columns."""
    df = service.get_all()
    return df.drop(columns=[c for c in META_COLUMNS if c in df.columns])


# ---------------------------------------------------------------------------
# Record workflows
# ---------------------------------------------------------------------------


def duplicate_transaction(
    service: RecordService,
    transaction_id: int,
    today: Optional[date] = None,
) -> Record:
    """Copy a transaction as a new one dated today."""
    original = service.require(transaction_id)
    data = _business_fields(service.entity, original)
    data["date"] = today or _today()
    created = service.create(data)
    logger.info("Duplicated transaction #%s as #%s", transaction_id, created.id)
    return created


def restock_item(
    service: RecordService,
    item_id: int,
    amount: int,
    today: Optional[date] = None,
) -> Record:
    """
    Add `amount` units to an inventory item and stamp last_restocked.

    Raises:
        ValueError: if amount is not a positive integer.
        RecordNotFoundError: if the item does not exist.
    """
    if amount <= 0:
        raise ValueError(f"Restock amount must be positive, got {amount}.")
    item = service.require(item_id)
    return service.update(
        item_id,
        {
            "quantity": int(item.quantity) + int(amount),
            "last_restocked": today or _today(),
        },
    )


def create_schedule(
    schedules: RecordService,
    technicians: RecordService,
    data: Mapping[str, Any],
    recurring_days: Optional[Iterable[int]] = None,
) -> list[Record]:
    """
    Create one shift, or a recurring series of shifts.

    The technician is looked up by `technician_id` and its name is copied
    onto every shift. With `recurring_days` (ISO weekdays, 1 = Monday), one
    shift is created for every matching day from the shift date to one
    month later, both included.

    Raises:
        ValidationError: if the technician does not exist or a shift is
            invalid.
    """
    technician_id = data.get("technician_id")
    technician = None
    if not _is_missing(technician_id):
        technician = technicians.get(int(technician_id))
    if technician is None:
        raise ValidationError("schedules", ["a technician must be selected"])

    base = dict(data)
    base["technician_id"] = technician.id
    base["technician_name"] = technician.name

    days = list(recurring_days or ())
    if not days:
        return [schedules.create(base)]

    if _is_missing(base.get("date")):
        raise ValidationError("schedules", ["date is required"])
    dates = expand_recurring_dates(_as_date(base["date"]), days)
    validate_record("schedules", _with_defaults("schedules", base))

    created = [schedules.create({**base, "date": day}) for day in dates]
    logger.info(
        "Created %d recurring shift(s) for technician #%s", len(created), technician.id
    )
    return created


def update_schedule(
    schedules: RecordService,
    technicians: RecordService,
    schedule_id: int,
    patch: Mapping[str, Any],
) -> Record:
    """
    Apply a partial update to a shift.

    When the patch changes `technician_id`, the technician is looked up
    again and `technician_name` follows it.

    Raises:
        RecordNotFoundError: if the shift does not exist.
        ValidationError: if the new technician does not exist or the
            updated shift is invalid.
    """
    schedules.require(schedule_id)
    data = dict(patch)
    if "technician_id" in data:
        technician_id = data["technician_id"]
        technician = None
        if not _is_missing(technician_id):
            technician = technicians.get(int(technician_id))
        if technician is None:
            raise ValidationError("schedules", ["a technician must be selected"])
        data["technician_id"] = technician.id
        data["technician_name"] = technician.name
    return schedules.update(schedule_id, data)


def duplicate_schedule(service: RecordService, schedule_id: int) -> Record:
    """Copy a shift onto the following day."""
    original = service.require(schedule_id)
    data = _business_fields(service.entity, original)
    data["date"] = original.date + timedelta(days=1)
    return service.create(data)


def client_repair_counts(
    clients: RecordService,
    repairs: RecordService,
) -> pd.Series:
    """Number of repairs per client id, for every known client."""
    return _client_repair_counts(clients.get_all(), repairs.get_all())
