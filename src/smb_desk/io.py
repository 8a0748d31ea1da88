# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Desk.

This module reads entity records from CSV or JSON files and normalizes them
into entity-shaped DataFrames ready to be imported, and writes snapshots
back to CSV or JSON.

Supported formats
-----------------
The format is chosen from the file extension:

- ``.csv``:  one record per line, a header line with column names,
- ``.json``: an array of objects (one object per record).

Column names
------------
Column names are case-insensitive and may use snake_case (``total_spent``)
or camelCase (``totalSpent``). Internally, everything is exposed in
snake_case.

Value conversions
-----------------
- int / real / money columns are parsed as numbers; blank cells are missing
  values and invalid numbers raise a ValueError,
- date columns are parsed as calendar dates (timestamps keep their day),
- list columns (tags, specialization) accept a JSON array or a
  comma-separated string; CSV files store lists as JSON arrays (items may
  contain commas),
- text columns are kept as strings (CSV cells are never type-inferred, so
  phone numbers keep their leading zeros).

Columns that are not part of the entity are ignored, except ``created_at``
which is kept so that imports can preserve the original creation time.

If a required column is missing, a clear ValueError is raised.
"""

import json
import logging
import os
import re
from datetime import date, datetime
from pathlib import Path
from typing import Any, Union

import pandas as pd

from .models import ColumnSpec, get_columns

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".csv", ".json")

_CAMEL_BOUNDARY = re.compile(r"(?<=[a-z0-9])(?=[A-Z])")

PathLike = Union[str, "os.PathLike[str]"]


def to_snake_case(name: str) -> str:
    """
    Normalize a column name.

    >>> to_snake_case("minQuantity")
    'min_quantity'
    """
    return _CAMEL_BOUNDARY.sub("_", name.strip()).lower()


def _suffix(path: PathLike) -> str:
    suffix = Path(path).suffix.lower()
    if suffix not in SUPPORTED_SUFFIXES:
        raise ValueError(
            f"Unsupported file type {suffix or '(none)'!r}. "
            f"Expected one of: {', '.join(SUPPORTED_SUFFIXES)}."
        )
    return suffix


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple)):
        return False
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def _parse_number(col: ColumnSpec, value: Any) -> Any:
    if _is_blank(value):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid numeric value {value!r} in '{col.name}' column.") from exc
    if col.kind == "int":
        return int(number)
    return number


def _parse_date(col: ColumnSpec, value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return pd.Timestamp(str(value).strip()).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r} in '{col.name}' column.") from exc


def _parse_list(value: Any) -> list[str]:
    if _is_blank(value):
        return []
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value]
    text = str(value).strip()
    if text.startswith("["):
        try:
            items = json.loads(text)
        except json.JSONDecodeError:
            items = None
        if isinstance(items, list):
            return [str(v) for v in items]
    return [part.strip() for part in text.split(",") if part.strip()]


def _parse_text(value: Any) -> Any:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        # JSON numbers such as a phone stored as 612345678.0
        return str(int(value))
    return str(value)


def _convert(col: ColumnSpec, value: Any) -> Any:
    if col.kind in ("int", "real", "money"):
        return _parse_number(col, value)
    if col.kind == "date":
        return _parse_date(col, value)
    if col.kind == "list":
        return _parse_list(value)
    return _parse_text(value)


def _load_raw(path: PathLike, suffix: str) -> pd.DataFrame:
    if suffix == ".csv":
        return pd.read_csv(path, dtype=str, keep_default_na=False)

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"Invalid JSON structure in {path}: expected an array of records.")
    return pd.DataFrame(data)


def read_records(path: PathLike, entity: str) -> pd.DataFrame:
    """
    Read entity records from a CSV or JSON file and normalize them.

    Parameters
    ----------
    path:
        Path to a ``.csv`` or ``.json`` file.
    entity:
        Entity the records belong to (e.g. "clients", "inventory").

    Returns
    -------
    pandas.DataFrame
        One row per record with every business column of the entity (in
        declaration order), plus ``created_at`` when the file provides it.
        Missing values are None; list columns hold Python lists.

    Raises
    ------
    FileNotFoundError
        If the file does not exist.
    ValueError
        If the file type is unsupported, a required column is missing, or
        a numeric / date value cannot be parsed.
    """
    columns = get_columns(entity)
    suffix = _suffix(path)
    if not Path(path).is_file():
        raise FileNotFoundError(f"Records file not found: {path}")

    raw = _load_raw(path, suffix)
    raw.columns = [to_snake_case(str(c)) for c in raw.columns]

    missing = [c.name for c in columns if c.required and c.name not in raw.columns]
    if missing:
        raise ValueError(
            f"Invalid {entity} file structure. Missing required column(s): "
            f"{', '.join(missing)}."
        )

    out = pd.DataFrame(index=raw.index)
    for col in columns:
        if col.name in raw.columns:
            out[col.name] = pd.Series(
                [_convert(col, v) for v in raw[col.name]], index=raw.index, dtype=object
            )
        else:
            out[col.name] = pd.Series([None] * len(raw), index=raw.index, dtype=object)

    if "created_at" in raw.columns:
        out["created_at"] = [None if _is_blank(v) else v for v in raw["created_at"]]

    ignored = sorted(set(raw.columns) - set(out.columns) - {"id"})
    if ignored:
        logger.warning("Ignoring unknown %s column(s): %s", entity, ", ".join(ignored))

    return out.reset_index(drop=True)


def _serializable(df: pd.DataFrame, list_as_text: bool) -> pd.DataFrame:
    """Convert dates to ISO strings (and lists to JSON array text for CSV)."""

    def convert(value: Any) -> Any:
        if isinstance(value, (datetime, pd.Timestamp)):
            return value.isoformat()
        if isinstance(value, date):
            return value.isoformat()
        if list_as_text and isinstance(value, (list, tuple)):
            return json.dumps([str(v) for v in value], ensure_ascii=False)
        return value

    out = df.copy()
    for name in out.columns:
        if out[name].dtype == object:
            out[name] = out[name].map(convert)
        elif pd.api.types.is_datetime64_any_dtype(out[name]):
            out[name] = out[name].map(lambda v: None if pd.isna(v) else v.isoformat())
    return out


def write_records(df: pd.DataFrame, path: PathLike) -> Path:
    """
    Write records to a CSV or JSON file (chosen from the extension).

    Parent directories are created if needed. Dates are written as ISO
    strings; in CSV files list values are written as JSON arrays.

    Returns
    -------
    pathlib.Path
        The path of the written file.
    """
    target = Path(path)
    suffix = _suffix(target)
    target.parent.mkdir(parents=True, exist_ok=True)

    if suffix == ".csv":
        _serializable(df, list_as_text=True).to_csv(target, index=False)
    else:
        _serializable(df, list_as_text=False).to_json(
            target, orient="records", indent=2, force_ascii=False
        )

    logger.info("Wrote %d record(s) to %s", len(df), target)
    return target
