# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Desk.

This module turns the summary dataclasses computed by the section modules
(ClientStats, FinanceStats, InventoryStats, ScheduleStats, TechnicianStats,
PeriodSummary) into small "metric / value" DataFrames, and trims record
snapshots to the columns worth showing in a console table.

The resulting DataFrames are used by the CLI, both for console tables
(pandas.DataFrame.to_string) and for CSV export.
"""

from datetime import date, datetime
from typing import Any, Optional

import pandas as pd

from .clients import ClientStats
from .finance import FinanceStats, PeriodSummary
from .inventory import InventoryStats
from .schedule import ScheduleStats
from .technicians import TechnicianStats

METRIC_COLUMNS = ["key", "label", "value", "unit"]

# Columns shown by default in list views, per entity.
LIST_COLUMNS: dict[str, list[str]] = {
    "clients": ["id", "name", "phone", "email", "total_orders", "total_spent", "segment"],
    "transactions": ["id", "date", "type", "category", "amount", "payment_method", "description"],
    "inventory": ["id", "name", "sku", "category", "quantity", "min_quantity", "price", "status"],
    "schedules": [
        "id",
        "date",
        "technician_name",
        "start_time",
        "end_time",
        "break_start",
        "break_end",
        "hours",
    ],
    "technicians": ["id", "name", "status", "current_workload", "max_workload", "rating"],
    "repairs": ["id", "client_name", "technician_id", "device_type", "status", "scheduled_date"],
}


def _metric(
    key: str,
    label: str,
    value: Any,
    unit: str,
    decimals: int,
    currency: Optional[str],
) -> dict[str, Any]:
    if value is None:
        shown: Any = float("nan")
    elif isinstance(value, float):
        shown = round(value, decimals)
    else:
        shown = value
    if currency and unit == "amount":
        unit = currency
    return {"key": key, "label": label, "value": shown, "unit": unit}


def metrics_to_dataframe(
    metrics: list[tuple[str, str, Any, str]],
    decimals: int = 2,
    currency: Optional[str] = None,
) -> pd.DataFrame:
    """
    Convert (key, label, value, unit) tuples into a DataFrame.

    Float values are rounded to `decimals`; None becomes NaN. Row order is
    kept as given. When `currency` is set it replaces the "amount" unit.
    """
    if not metrics:
        return pd.DataFrame(columns=METRIC_COLUMNS)
    rows = [
        _metric(key, label, value, unit, decimals, currency)
        for key, label, value, unit in metrics
    ]
    return pd.DataFrame(rows, columns=METRIC_COLUMNS)


def client_stats_frame(
    stats: ClientStats,
    decimals: int = 2,
    currency: Optional[str] = None,
) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("total_clients", "Total clients", stats.total_clients, "count"),
            ("vip_clients", "VIP clients", stats.segment_counts["vip"], "count"),
            ("regular_clients", "Regular clients", stats.segment_counts["regular"], "count"),
            ("new_segment", "New segment", stats.segment_counts["new"], "count"),
            ("new_clients", "New clients (<= 1 order)", stats.new_clients, "count"),
            ("active_clients", "Active clients", stats.active_clients, "count"),
            ("with_email", "Clients with email", stats.with_email, "count"),
            ("total_revenue", "Total revenue", stats.total_revenue, "amount"),
            ("avg_spend", "Average spend", stats.avg_spend, "amount"),
            ("vip_share_pct", "VIP share", stats.vip_share_pct, "percent"),
        ],
        decimals,
        currency,
    )


def finance_stats_frame(
    stats: FinanceStats,
    decimals: int = 2,
    currency: Optional[str] = None,
) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("total_income", "Total income", stats.total_income, "amount"),
            ("total_expense", "Total expense", stats.total_expense, "amount"),
            ("balance", "Balance", stats.balance, "amount"),
            ("profit_margin", "Profit margin", stats.profit_margin, "percent"),
            (
                "avg_transaction_amount",
                "Average transaction",
                stats.avg_transaction_amount,
                "amount",
            ),
            ("largest_income", "Largest income", stats.largest_income, "amount"),
            ("largest_expense", "Largest expense", stats.largest_expense, "amount"),
            ("filtered_count", "Transactions", stats.filtered_count, "count"),
        ],
        decimals,
        currency,
    )


def period_summary_frame(
    summary: PeriodSummary,
    decimals: int = 2,
    currency: Optional[str] = None,
) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("income", "Income", summary.income, "amount"),
            ("expense", "Expense", summary.expense, "amount"),
            ("profit", "Profit", summary.profit, "amount"),
            ("profit_margin", "Profit margin", summary.profit_margin, "percent"),
            ("count", "Transactions", summary.count, "count"),
        ],
        decimals,
        currency,
    )


def inventory_stats_frame(
    stats: InventoryStats,
    decimals: int = 2,
    currency: Optional[str] = None,
) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("in_stock", "In stock", stats.in_stock, "count"),
            ("low_stock", "Low stock", stats.low_stock, "count"),
            ("out_of_stock", "Out of stock", stats.out_of_stock, "count"),
            ("critical_items", "Critical items", stats.critical_items, "count"),
            ("total_value", "Stock value (sell)", stats.total_value, "amount"),
            ("total_cost_value", "Stock value (cost)", stats.total_cost_value, "amount"),
            ("potential_profit", "Potential profit", stats.potential_profit, "amount"),
            ("avg_price", "Average price", stats.avg_price, "amount"),
            ("total_quantity", "Total quantity", stats.total_quantity, "units"),
            ("avg_quantity", "Average quantity", stats.avg_quantity, "units"),
        ],
        decimals,
        currency,
    )


def schedule_stats_frame(stats: ScheduleStats, decimals: int = 2) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("total_schedules", "Shifts", stats.total_schedules, "count"),
            ("total_hours", "Worked hours", stats.total_hours, "hours"),
            (
                "avg_hours_per_schedule",
                "Average hours per shift",
                stats.avg_hours_per_schedule,
                "hours",
            ),
            (
                "most_busy_technician",
                "Most busy technician",
                stats.most_busy_technician or "-",
                "name",
            ),
        ],
        decimals,
    )


def technician_stats_frame(stats: TechnicianStats, decimals: int = 2) -> pd.DataFrame:
    return metrics_to_dataframe(
        [
            ("total", "Technicians", stats.total, "count"),
            ("on_shift", "On shift", stats.on_shift, "count"),
            ("available", "Available", stats.available, "count"),
            ("busy", "Busy", stats.busy, "count"),
            ("offline", "Offline", stats.offline, "count"),
            ("total_repairs", "Completed repairs", stats.total_repairs, "count"),
            ("avg_rating", "Average rating", stats.avg_rating, "rating"),
            ("capacity_percent", "Capacity used", stats.capacity_percent, "percent"),
        ],
        decimals,
    )


def _display_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat(sep=" ", timespec="minutes")
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, (list, tuple)):
        return ", ".join(str(v) for v in value)
    return value


def list_view(
    records: pd.DataFrame,
    entity: str,
    columns: Optional[list[str]] = None,
    decimals: int = 2,
) -> pd.DataFrame:
    """
    Trim a snapshot to its display columns.

    Dates are shown as ISO strings, lists as comma-separated text and
    float columns are rounded to `decimals`.
    """
    preferred = columns or LIST_COLUMNS.get(entity, [])
    shown = [c for c in preferred if c in records.columns] or list(records.columns)
    df = records[shown].copy()
    for name in df.columns:
        if pd.api.types.is_float_dtype(df[name]):
            df[name] = df[name].round(decimals)
        elif df[name].dtype == object:
            df[name] = df[name].map(_display_value)
    return df.reset_index(drop=True)
