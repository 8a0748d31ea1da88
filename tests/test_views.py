from datetime import date

import pandas as pd

from smb_desk.schedule import compute_schedule_stats
from smb_desk.technicians import compute_technician_stats
from smb_desk.views import (
    METRIC_COLUMNS,
    list_view,
    metrics_to_dataframe,
    schedule_stats_frame,
    technician_stats_frame,
)


def test_metrics_to_dataframe_rounds_and_keeps_order():
    df = metrics_to_dataframe(
        [
            ("b", "Second", 1.23456, "amount"),
            ("a", "First", 3, "count"),
            ("c", "Missing", None, "amount"),
        ],
        decimals=2,
    )

    assert list(df.columns) == METRIC_COLUMNS
    assert list(df["key"]) == ["b", "a", "c"]
    assert df.loc[0, "value"] == 1.23
    assert df.loc[1, "value"] == 3
    assert pd.isna(df.loc[2, "value"])


def test_metrics_to_dataframe_empty():
    df = metrics_to_dataframe([])

    assert df.empty
    assert list(df.columns) == METRIC_COLUMNS


def test_metrics_to_dataframe_shows_currency_unit():
    df = metrics_to_dataframe(
        [("income", "Income", 120.0, "amount"), ("count", "Transactions", 1, "count")],
        currency="USD",
    )

    assert list(df["unit"]) == ["USD", "count"]


def test_schedule_stats_frame_without_shifts():
    df = schedule_stats_frame(compute_schedule_stats(pd.DataFrame()))

    values = dict(zip(df["key"], df["value"]))
    assert values["total_schedules"] == 0
    assert values["most_busy_technician"] == "-"


def test_technician_stats_frame():
    technicians = pd.DataFrame(
        {
            "status": ["available", "busy"],
            "current_workload": [1, 2],
            "max_workload": [3, 3],
            "completed_repairs": [4, 6],
            "rating": [4.5, 4.0],
        }
    )

    df = technician_stats_frame(compute_technician_stats(technicians), decimals=1)

    values = dict(zip(df["key"], df["value"]))
    assert values["total"] == 2
    assert values["on_shift"] == 2
    assert values["total_repairs"] == 10
    assert values["avg_rating"] == 4.2
    assert values["capacity_percent"] == 50.0


def test_list_view_trims_and_formats_columns():
    records = pd.DataFrame(
        {
            "id": [1],
            "date": [date(2025, 1, 3)],
            "type": ["income"],
            "category": ["Repair"],
            "amount": [12.3456],
            "payment_method": [None],
            "description": [""],
            "tags": [["screen", "iphone"]],
            "import_batch_id": [None],
        }
    )

    df = list_view(records, "transactions")

    assert list(df.columns) == [
        "id",
        "date",
        "type",
        "category",
        "amount",
        "payment_method",
        "description",
    ]
    assert df.loc[0, "date"] == "2025-01-03"
    assert df.loc[0, "amount"] == 12.35


def test_list_view_custom_columns_and_lists():
    records = pd.DataFrame({"id": [1], "name": ["Bob"], "specialization": [["phones", "laptops"]]})

    df = list_view(records, "technicians", columns=["name", "specialization"])

    assert df.loc[0, "specialization"] == "phones, laptops"
