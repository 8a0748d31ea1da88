# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB Desk.

This module defines a Period value object and helpers to derive the
reporting windows used by the dashboard (today, last 7 days, month to date,
last N days, custom range) and to filter snapshots by date.
"""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Optional

import pandas as pd

TIME_RANGES = ("today", "week", "month")


@dataclass
class Period:
    """Represents a reporting period with a human-readable label."""

    start: date
    end: date
    label: str


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def period_today(today: Optional[date] = None) -> Period:
    """The current day only."""
    today = today or _today()
    return Period(start=today, end=today, label="Today")


def period_last_days(days: int, today: Optional[date] = None) -> Period:
    """The last `days` days, today included as the end bound."""
    today = today or _today()
    return Period(
        start=today - timedelta(days=days),
        end=today,
        label=f"Last {days} days",
    )


def period_mtd(today: Optional[date] = None) -> Period:
    """Month-to-date: from the first day of the current month to today."""
    today = today or _today()
    return Period(start=today.replace(day=1), end=today, label="Month to date")


def period_for_time_range(time_range: str, today: Optional[date] = None) -> Period:
    """
    Resolve a dashboard time range to a Period.

    - "today": the current day,
    - "week":  the last 7 days,
    - "month": month to date.
    """
    if time_range == "today":
        return period_today(today)
    if time_range == "week":
        return period_last_days(7, today)
    if time_range == "month":
        return period_mtd(today)
    raise ValueError(f"Unknown time range: {time_range!r}")


def _parse_bound(raw: str) -> date:
    try:
        return date.fromisoformat(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid date format: {raw!r}. Expected YYYY-MM-DD.") from exc


def custom_period(
    from_raw: Optional[str],
    to_raw: Optional[str],
) -> Optional[Period]:
    """
    Build a custom period from optional ISO date strings.

    Returns None when neither bound is provided. A missing bound is left
    open (date.min / date.max).

    Raises
    ------
    ValueError
        If a bound is not a YYYY-MM-DD date, or the end is before the start.
    """
    if not from_raw and not to_raw:
        return None

    start = _parse_bound(from_raw) if from_raw else date.min
    end = _parse_bound(to_raw) if to_raw else date.max

    if end < start:
        raise ValueError("Custom period end date cannot be before start date.")

    label = f"Custom period ({from_raw or '…'} → {to_raw or '…'})"
    return Period(start=start, end=end, label=label)


def filter_by_period(
    records: pd.DataFrame,
    period: Period,
    column: str = "date",
) -> pd.DataFrame:
    """
    Filter a snapshot to keep only rows whose `column` is within the period.

    The column is expected to hold `datetime.date` objects (as produced by
    the database layer) or anything `pandas.to_datetime` understands.

    Parameters
    ----------
    records:
        DataFrame with at least the date column.
    period:
        Period defining the [start, end] boundaries (inclusive).
    column:
        Name of the date column.

    Returns
    -------
    pandas.DataFrame
        Filtered copy containing only rows within the period.
    """
    if records.empty:
        return records.copy()

    days = pd.to_datetime(records[column]).dt.date
    mask = (days >= period.start) & (days <= period.end)
    return records.loc[mask].copy()
