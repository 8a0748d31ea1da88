# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Entity definitions and validation rules for SMB Desk.

This module defines:
- the typed dataclasses materialized by the services layer when a single
  record is loaded (Client, Transaction, InventoryItem, Schedule,
  Technician, Repair),
- the column layout of every entity (used by the database layer and by
  CSV / JSON import),
- the validation rules applied before a record is created or updated,
- the exceptions raised by the services layer,
- `round_half_up`, the rounding used for every displayed figure.

Snapshots (full reads) are handled as pandas DataFrames by the section
modules; the dataclasses below are only used for single-record results.
"""

import math
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Literal, Optional

EntityName = Literal[
    "clients",
    "transactions",
    "inventory",
    "schedules",
    "technicians",
    "repairs",
]

TransactionType = Literal["income", "expense"]
TechnicianStatus = Literal["available", "busy", "offline"]

TRANSACTION_TYPES = ("income", "expense")
TECHNICIAN_STATUSES = ("available", "busy", "offline")

_TIME_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ValidationError(ValueError):
    """
    Raised when a record does not pass the required-field checks.

    Attributes
    ----------
    entity:
        Name of the entity being validated (e.g. "transactions").
    errors:
        Human-readable messages, one per failed check.
    """

    def __init__(self, entity: str, errors: list[str]) -> None:
        self.entity = entity
        self.errors = list(errors)
        super().__init__(f"Invalid {entity} record: " + "; ".join(self.errors))


class RecordNotFoundError(LookupError):
    """Raised when an operation targets a record id that does not exist."""

    def __init__(self, entity: str, record_id: int) -> None:
        self.entity = entity
        self.record_id = record_id
        super().__init__(f"No {entity} record with id {record_id}.")


# ---------------------------------------------------------------------------
# Column layout
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ColumnSpec:
    """
    Storage description of one entity column.

    Attributes
    ----------
    name:
        Column name (snake_case), shared by the database and DataFrames.
    kind:
        One of "text", "int", "real", "money", "date", "list".
        "money" values are stored as integer cents and exposed as floats;
        "date" values are stored as ISO strings; "list" values are stored
        as JSON arrays.
    required:
        Whether the column must be present when importing records.
    default:
        Value used when a new record omits the column.
    """

    name: str
    kind: str = "text"
    required: bool = False
    default: Any = None


ENTITY_COLUMNS: dict[str, tuple[ColumnSpec, ...]] = {
    "clients": (
        ColumnSpec("name", required=True),
        ColumnSpec("phone", required=True),
        ColumnSpec("email", default=""),
        ColumnSpec("address"),
        ColumnSpec("notes"),
        ColumnSpec("total_orders", "int", default=0),
        ColumnSpec("total_spent", "money", default=0.0),
        ColumnSpec("company"),
        ColumnSpec("tax_id"),
        ColumnSpec("discount_percent", "real", default=0.0),
    ),
    "transactions": (
        ColumnSpec("type", required=True),
        ColumnSpec("category", required=True),
        ColumnSpec("amount", "money", required=True),
        ColumnSpec("description", default=""),
        ColumnSpec("date", "date", required=True),
        ColumnSpec("related_repair_id"),
        ColumnSpec("payment_method"),
        ColumnSpec("tags", "list", default=()),
        ColumnSpec("invoice_number"),
        ColumnSpec("tax_rate", "real", default=0.0),
    ),
    "inventory": (
        ColumnSpec("name", required=True),
        ColumnSpec("category", required=True),
        ColumnSpec("sku", default=""),
        ColumnSpec("quantity", "int", default=0),
        ColumnSpec("min_quantity", "int", default=0),
        ColumnSpec("max_quantity", "int", default=100),
        ColumnSpec("price", "money", default=0.0),
        ColumnSpec("cost_price", "money"),
        ColumnSpec("supplier"),
        ColumnSpec("location"),
        ColumnSpec("unit", default="pcs"),
        ColumnSpec("barcode"),
        ColumnSpec("warranty", "int", default=0),
        ColumnSpec("description"),
        ColumnSpec("last_restocked", "date"),
    ),
    "schedules": (
        ColumnSpec("technician_id", "int", required=True),
        ColumnSpec("technician_name", default=""),
        ColumnSpec("date", "date", required=True),
        ColumnSpec("start_time", required=True, default="09:00"),
        ColumnSpec("end_time", required=True, default="18:00"),
        ColumnSpec("break_start"),
        ColumnSpec("break_end"),
        ColumnSpec("notes"),
    ),
    "technicians": (
        ColumnSpec("name", required=True),
        ColumnSpec("phone", default=""),
        ColumnSpec("specialization", "list", default=()),
        ColumnSpec("status", default="available"),
        ColumnSpec("completed_repairs", "int", default=0),
        ColumnSpec("rating", "real", default=0.0),
        ColumnSpec("current_workload", "int", default=0),
        ColumnSpec("max_workload", "int", default=5),
    ),
    "repairs": (
        ColumnSpec("client_id", "int"),
        ColumnSpec("client_name", default=""),
        ColumnSpec("technician_id", "int"),
        ColumnSpec("device_type", default=""),
        ColumnSpec("device_model", default=""),
        ColumnSpec("status", default="new"),
        ColumnSpec("scheduled_date", "date"),
    ),
}

# Bookkeeping columns managed by the database layer, never by callers.
META_COLUMNS = ("id", "created_at", "updated_at", "import_batch_id")


def entity_column_names(entity: str) -> list[str]:
    """Return the business column names of an entity, in declaration order."""
    return [c.name for c in get_columns(entity)]


def get_columns(entity: str) -> tuple[ColumnSpec, ...]:
    """Return the column layout of an entity, raising on unknown names."""
    try:
        return ENTITY_COLUMNS[entity]
    except KeyError as exc:
        known = ", ".join(sorted(ENTITY_COLUMNS))
        raise ValueError(f"Unknown entity {entity!r}. Expected one of: {known}.") from exc


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Client:
    """A client of the business. The segment is derived, never stored."""

    id: int
    name: str
    phone: str
    email: str
    address: Optional[str]
    notes: Optional[str]
    total_orders: int
    total_spent: float
    created_at: Optional[datetime]
    company: Optional[str] = None
    tax_id: Optional[str] = None
    discount_percent: float = 0.0
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Transaction:
    """An income or expense line of the business cash book."""

    id: int
    type: TransactionType
    category: str
    amount: float
    description: str
    date: date
    related_repair_id: Optional[str] = None
    payment_method: Optional[str] = None
    tags: tuple[str, ...] = field(default_factory=tuple)
    invoice_number: Optional[str] = None
    tax_rate: float = 0.0
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class InventoryItem:
    """A stocked article. Stock status is derived from quantity on read."""

    id: int
    name: str
    category: str
    sku: str
    quantity: int
    min_quantity: int
    max_quantity: int
    price: float
    cost_price: Optional[float] = None
    supplier: Optional[str] = None
    location: Optional[str] = None
    unit: Optional[str] = None
    barcode: Optional[str] = None
    warranty: int = 0
    description: Optional[str] = None
    last_restocked: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Schedule:
    """One shift of a technician on a given day (times are HH:MM strings)."""

    id: int
    technician_id: int
    technician_name: str
    date: date
    start_time: str
    end_time: str
    break_start: Optional[str] = None
    break_end: Optional[str] = None
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Technician:
    id: int
    name: str
    phone: str
    specialization: tuple[str, ...]
    status: TechnicianStatus
    completed_repairs: int
    rating: float
    current_workload: int
    max_workload: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class Repair:
    id: int
    client_id: Optional[int]
    client_name: str
    technician_id: Optional[int]
    device_type: str
    device_model: str
    status: str
    scheduled_date: Optional[date] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


RECORD_TYPES: dict[str, type] = {
    "clients": Client,
    "transactions": Transaction,
    "inventory": InventoryItem,
    "schedules": Schedule,
    "technicians": Technician,
    "repairs": Repair,
}

Record = Client | Transaction | InventoryItem | Schedule | Technician | Repair


def record_from_mapping(entity: str, data: Mapping[str, Any]) -> Record:
    """
    Build the dataclass instance of an entity from a decoded database row.

    Unknown keys are ignored, so callers can pass a full row mapping.
    """
    cls = RECORD_TYPES[entity]
    allowed = set(cls.__dataclass_fields__)
    kwargs = {k: v for k, v in data.items() if k in allowed}
    for name in ("tags", "specialization"):
        if name in kwargs and kwargs[name] is not None:
            kwargs[name] = tuple(kwargs[name])
    return cls(**kwargs)


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def is_valid_time(value: Any) -> bool:
    """Return True if value is a 'HH:MM' 24-hour time string."""
    return isinstance(value, str) and _TIME_RE.match(value) is not None


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _client_errors(data: Mapping[str, Any]) -> list[str]:
    errors = []
    if _is_blank(data.get("name")):
        errors.append("name is required")
    if _is_blank(data.get("phone")):
        errors.append("phone is required")
    discount = data.get("discount_percent") or 0
    if not 0 <= float(discount) <= 100:
        errors.append("discount_percent must be between 0 and 100")
    return errors


def _transaction_errors(data: Mapping[str, Any]) -> list[str]:
    errors = []
    if data.get("type") not in TRANSACTION_TYPES:
        errors.append("type must be 'income' or 'expense'")
    if _is_blank(data.get("category")):
        errors.append("category is required")
    amount = data.get("amount")
    try:
        positive = amount is not None and float(amount) > 0
    except (TypeError, ValueError):
        positive = False
    if not positive:
        errors.append("amount must be a positive number")
    if data.get("date") is None:
        errors.append("date is required")
    return errors


def _inventory_errors(data: Mapping[str, Any]) -> list[str]:
    errors = []
    if _is_blank(data.get("name")):
        errors.append("name is required")
    if _is_blank(data.get("category")):
        errors.append("category is required")
    for name in ("quantity", "min_quantity"):
        value = data.get(name)
        if value is not None and int(value) < 0:
            errors.append(f"{name} cannot be negative")
    return errors


def _schedule_errors(data: Mapping[str, Any]) -> list[str]:
    errors = []
    if data.get("technician_id") is None:
        errors.append("a technician must be selected")
    if data.get("date") is None:
        errors.append("date is required")
    for name in ("start_time", "end_time"):
        if not is_valid_time(data.get(name)):
            errors.append(f"{name} must be a HH:MM time")
    break_start = data.get("break_start")
    break_end = data.get("break_end")
    for name, value in (("break_start", break_start), ("break_end", break_end)):
        if not _is_blank(value) and not is_valid_time(value):
            errors.append(f"{name} must be a HH:MM time")
    return errors


def _technician_errors(data: Mapping[str, Any]) -> list[str]:
    errors = []
    if _is_blank(data.get("name")):
        errors.append("name is required")
    if data.get("status") not in TECHNICIAN_STATUSES:
        errors.append("status must be one of: " + ", ".join(TECHNICIAN_STATUSES))
    return errors


def _repair_errors(data: Mapping[str, Any]) -> list[str]:
    return []


_VALIDATORS = {
    "clients": _client_errors,
    "transactions": _transaction_errors,
    "inventory": _inventory_errors,
    "schedules": _schedule_errors,
    "technicians": _technician_errors,
    "repairs": _repair_errors,
}


def validate_record(entity: str, data: Mapping[str, Any]) -> None:
    """
    Check the required fields of an entity record.

    Raises:
        ValidationError: if at least one check fails. All failing checks
            are reported together.
    """
    get_columns(entity)
    errors = _VALIDATORS[entity](data)
    if errors:
        raise ValidationError(entity, errors)


# ---------------------------------------------------------------------------
# Rounding
# ---------------------------------------------------------------------------


def round_half_up(value: float, digits: int = 0) -> float:
    """
    Round halves up (towards +infinity), unlike the built-in round().

    >>> round_half_up(2.5)
    3
    >>> round_half_up(-2.5)
    -2
    >>> round_half_up(0.25, 1)
    0.3

    With `digits=0` the result is an int.
    """
    if digits == 0:
        return int(math.floor(value + 0.5))
    factor = 10**digits
    return math.floor(value * factor + 0.5) / factor
