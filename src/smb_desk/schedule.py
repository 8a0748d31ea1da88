# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Schedule (technician shifts) computations.

A shift is stored with HH:MM start and end times and an optional break.
Worked hours are derived on read: shift span minus break span, in decimal
hours. Shifts never cross midnight.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from .models import is_valid_time, round_half_up


@dataclass(frozen=True)
class ScheduleStats:
    """Figures displayed above the schedule views."""

    total_schedules: int
    total_hours: float
    avg_hours_per_schedule: float
    most_busy_technician: Optional[str]
    shifts_per_technician: dict[str, int] = field(default_factory=dict)


def parse_time(value: str) -> int:
    """Convert "HH:MM" to minutes since midnight."""
    if not is_valid_time(value):
        raise ValueError(f"Invalid time {value!r}, expected HH:MM.")
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def _is_blank(value: Optional[str]) -> bool:
    return value is None or (isinstance(value, float) and pd.isna(value)) or value == ""


def worked_hours(
    start: str,
    end: str,
    break_start: Optional[str] = None,
    break_end: Optional[str] = None,
) -> float:
    """
    Worked hours of a shift, in decimal hours.

    The break is deducted only when both of its bounds are set.

    >>> worked_hours("09:00", "18:00", "13:00", "14:00")
    8.0
    """
    minutes = parse_time(end) - parse_time(start)
    if not _is_blank(break_start) and not _is_blank(break_end):
        minutes -= parse_time(break_end) - parse_time(break_start)
    return minutes / 60


def shift_hours(schedules: pd.DataFrame) -> pd.Series:
    """Worked hours of every shift of the snapshot (same index)."""
    if schedules.empty:
        return pd.Series(dtype=float)
    return pd.Series(
        [
            worked_hours(row.start_time, row.end_time, row.break_start, row.break_end)
            for row in schedules.itertuples(index=False)
        ],
        index=schedules.index,
        dtype=float,
    )


def _most_busy(counts: dict[str, int]) -> Optional[str]:
    # Highest shift count first, then name (case-insensitive) for ties.
    if not counts:
        return None
    return sorted(counts.items(), key=lambda item: (-item[1], item[0].casefold(), item[0]))[0][0]


def compute_schedule_stats(schedules: pd.DataFrame) -> ScheduleStats:
    """
    Compute the schedule summary cards.

    Total and average hours are rounded to one decimal. The most busy
    technician is the one with the most shifts; ties go to the name that
    sorts first alphabetically.
    """
    total = len(schedules)
    if not total:
        return ScheduleStats(
            total_schedules=0,
            total_hours=0.0,
            avg_hours_per_schedule=0.0,
            most_busy_technician=None,
        )

    hours = shift_hours(schedules)
    total_hours = float(hours.sum())

    names = schedules["technician_name"].fillna("").astype(str)
    counts = {str(name): int(count) for name, count in names.value_counts().items()}

    return ScheduleStats(
        total_schedules=total,
        total_hours=round_half_up(total_hours, 1),
        avg_hours_per_schedule=round_half_up(total_hours / total, 1),
        most_busy_technician=_most_busy(counts),
        shifts_per_technician=counts,
    )


def add_months(day: date, months: int) -> date:
    """
    Shift a date by whole months, clamping to the last day of the target
    month (Jan 31 + 1 month is Feb 28 or 29).
    """
    month_index = day.month - 1 + months
    year = day.year + month_index // 12
    month = month_index % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, min(day.day, last_day))


def expand_recurring_dates(
    start: date,
    weekdays: Iterable[int],
    months: int = 1,
) -> list[date]:
    """
    List the days of a recurring shift.

    Every calendar day from `start` to `start + months` (both included)
    whose ISO weekday (1 = Monday, 7 = Sunday) is in `weekdays`.
    """
    selected = set(weekdays)
    invalid = sorted(d for d in selected if d not in range(1, 8))
    if invalid:
        raise ValueError(f"Invalid ISO weekday(s): {invalid}. Expected 1 (Mon) to 7 (Sun).")

    end = add_months(start, months)
    days = []
    current = start
    while current <= end:
        if current.isoweekday() in selected:
            days.append(current)
        current += timedelta(days=1)
    return days


def week_days(selected: date) -> list[date]:
    """The seven days (Monday to Sunday) of the week containing `selected`."""
    monday = selected - timedelta(days=selected.isoweekday() - 1)
    return [monday + timedelta(days=offset) for offset in range(7)]


def _as_dates(values: pd.Series) -> pd.Series:
    return pd.to_datetime(values).dt.date


def week_schedules(
    schedules: pd.DataFrame,
    selected: date,
    technician_id: Optional[int] = None,
) -> list[tuple[date, pd.DataFrame]]:
    """
    Shifts of the week containing `selected`, one entry per day.

    Days without shifts are kept with an empty frame. When `technician_id`
    is set, only that technician's shifts are kept.
    """
    df = schedules
    if technician_id is not None and not df.empty:
        df = df.loc[df["technician_id"] == technician_id]

    days = _as_dates(df["date"]) if not df.empty else pd.Series(dtype=object)
    out = []
    for day in week_days(selected):
        if df.empty:
            out.append((day, df.copy()))
        else:
            out.append((day, df.loc[days == day].copy()))
    return out


def group_by_date(schedules: pd.DataFrame) -> list[tuple[date, pd.DataFrame]]:
    """Group shifts per day, most recent day first."""
    if schedules.empty:
        return []
    days = _as_dates(schedules["date"])
    return [
        (day, schedules.loc[days == day].copy())
        for day in sorted(set(days), reverse=True)
    ]


def repairs_for_technician_on(
    repairs: pd.DataFrame,
    technician_id: int,
    day: date,
) -> pd.DataFrame:
    """Repairs assigned to a technician and scheduled on a given day."""
    if repairs.empty:
        return repairs.copy()
    scheduled = repairs["scheduled_date"]
    mask = (repairs["technician_id"] == technician_id) & scheduled.notna()
    if not mask.any():
        return repairs.loc[mask].copy()
    candidates = repairs.loc[mask]
    return candidates.loc[_as_dates(candidates["scheduled_date"]) == day].copy()
