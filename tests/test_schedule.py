from datetime import date

import pandas as pd
import pytest

from smb_desk.schedule import (
    add_months,
    compute_schedule_stats,
    expand_recurring_dates,
    group_by_date,
    repairs_for_technician_on,
    week_days,
    week_schedules,
    worked_hours,
)


def make_shifts(rows) -> pd.DataFrame:
    """Build a schedules snapshot from (tech id, name, date, start, end, breaks) rows."""
    return pd.DataFrame(
        [
            {
                "id": i + 1,
                "technician_id": tech_id,
                "technician_name": name,
                "date": day,
                "start_time": start,
                "end_time": end,
                "break_start": break_start,
                "break_end": break_end,
            }
            for i, (tech_id, name, day, start, end, break_start, break_end) in enumerate(rows)
        ]
    )


def test_worked_hours_deducts_break():
    assert worked_hours("09:00", "18:00", "13:00", "14:00") == 8.0


def test_worked_hours_without_complete_break():
    assert worked_hours("09:00", "18:00") == 9.0
    assert worked_hours("09:00", "18:00", "13:00", None) == 9.0
    assert worked_hours("08:30", "12:45", "", "") == 4.25


def test_worked_hours_rejects_bad_time():
    with pytest.raises(ValueError):
        worked_hours("9h", "18:00")


def test_compute_schedule_stats():
    df = make_shifts(
        [
            (1, "Bob", date(2025, 6, 2), "09:00", "18:00", "13:00", "14:00"),
            (1, "Bob", date(2025, 6, 3), "09:00", "13:00", None, None),
            (2, "alice", date(2025, 6, 3), "10:00", "17:30", "12:00", "12:30"),
        ]
    )

    stats = compute_schedule_stats(df)

    assert stats.total_schedules == 3
    assert stats.total_hours == 19.0
    assert stats.avg_hours_per_schedule == 6.3
    assert stats.most_busy_technician == "Bob"
    assert stats.shifts_per_technician == {"Bob": 2, "alice": 1}


def test_most_busy_tie_breaks_alphabetically():
    df = make_shifts(
        [
            (2, "bob", date(2025, 6, 2), "09:00", "18:00", None, None),
            (1, "Alice", date(2025, 6, 2), "09:00", "18:00", None, None),
        ]
    )

    assert compute_schedule_stats(df).most_busy_technician == "Alice"


def test_compute_schedule_stats_empty():
    stats = compute_schedule_stats(make_shifts([]))

    assert stats.total_schedules == 0
    assert stats.total_hours == 0.0
    assert stats.most_busy_technician is None


def test_add_months_clamps_to_month_end():
    assert add_months(date(2025, 1, 31), 1) == date(2025, 2, 28)
    assert add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    assert add_months(date(2025, 12, 15), 1) == date(2026, 1, 15)


def test_expand_recurring_dates_uses_iso_weekdays():
    # 2025-06-02 is a Monday; the window ends on 2025-07-02 (a Wednesday).
    days = expand_recurring_dates(date(2025, 6, 2), [1, 3])

    assert days[0] == date(2025, 6, 2)
    assert days[-1] == date(2025, 7, 2)
    assert all(d.isoweekday() in (1, 3) for d in days)
    assert len(days) == 10


def test_expand_recurring_dates_includes_sunday():
    days = expand_recurring_dates(date(2025, 6, 1), [7])

    assert days == [
        date(2025, 6, 1),
        date(2025, 6, 8),
        date(2025, 6, 15),
        date(2025, 6, 22),
        date(2025, 6, 29),
    ]


def test_expand_recurring_dates_rejects_invalid_weekday():
    with pytest.raises(ValueError):
        expand_recurring_dates(date(2025, 6, 1), [0])


def test_week_days_start_on_monday():
    days = week_days(date(2025, 6, 8))  # a Sunday

    assert days[0] == date(2025, 6, 2)
    assert days[-1] == date(2025, 6, 8)
    assert len(days) == 7


def test_week_schedules_with_technician_filter():
    df = make_shifts(
        [
            (1, "Bob", date(2025, 6, 2), "09:00", "18:00", None, None),
            (2, "Alice", date(2025, 6, 2), "09:00", "18:00", None, None),
            (1, "Bob", date(2025, 6, 4), "09:00", "18:00", None, None),
            (1, "Bob", date(2025, 6, 9), "09:00", "18:00", None, None),
        ]
    )

    week = week_schedules(df, date(2025, 6, 5))
    assert [len(shifts) for _day, shifts in week] == [2, 0, 1, 0, 0, 0, 0]

    alice_only = week_schedules(df, date(2025, 6, 5), technician_id=2)
    assert [len(shifts) for _day, shifts in alice_only] == [1, 0, 0, 0, 0, 0, 0]


def test_group_by_date_most_recent_first():
    df = make_shifts(
        [
            (1, "Bob", date(2025, 6, 2), "09:00", "18:00", None, None),
            (1, "Bob", date(2025, 6, 4), "09:00", "18:00", None, None),
            (2, "Alice", date(2025, 6, 2), "09:00", "18:00", None, None),
        ]
    )

    groups = group_by_date(df)

    assert [day for day, _ in groups] == [date(2025, 6, 4), date(2025, 6, 2)]
    assert list(groups[1][1]["technician_name"]) == ["Bob", "Alice"]
    assert group_by_date(make_shifts([])) == []


def test_repairs_for_technician_on():
    repairs = pd.DataFrame(
        {
            "id": [1, 2, 3, 4],
            "technician_id": [1, 1, 2, 1],
            "scheduled_date": [date(2025, 6, 2), None, date(2025, 6, 2), date(2025, 6, 3)],
        }
    )

    found = repairs_for_technician_on(repairs, 1, date(2025, 6, 2))

    assert list(found["id"]) == [1]
