# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Finance aggregation for SMB Desk.

This module turns a transactions snapshot into the figures displayed by the
finance section:

- totals (income, expense, balance, profit margin) over a filtered subset,
- breakdowns per category and per payment method,
- a daily series over the recent window and a monthly series (YYYY-MM),
- quick period summaries (today, last 7 days, month to date).

Amounts are floats in the business currency; the database layer stores
them as integer cents.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional

import pandas as pd

from .filtering import filter_exact
from .models import round_half_up
from .periods import Period, _today, filter_by_period, period_for_time_range

logger = logging.getLogger(__name__)

UNSPECIFIED_PAYMENT_METHOD = "Not specified"
RECENT_DAYS = 30
MONTHLY_BUCKETS = 12

SEARCH_FIELDS = ("description", "category", "invoice_number")


@dataclass(frozen=True)
class FinanceStats:
    """Aggregated view of a transactions snapshot."""

    total_income: float
    total_expense: float
    balance: float
    profit_margin: float
    avg_transaction_amount: int
    largest_income: float
    largest_expense: float
    filtered_count: int
    by_category: pd.DataFrame = field(repr=False)
    by_payment_method: pd.DataFrame = field(repr=False)
    daily: pd.DataFrame = field(repr=False)
    monthly: pd.DataFrame = field(repr=False)


@dataclass(frozen=True)
class PeriodSummary:
    """Income / expense summary for a dashboard time range."""

    period: Period
    income: float
    expense: float
    profit: float
    profit_margin: float
    count: int


def _amounts(df: pd.DataFrame, kind: str) -> pd.Series:
    if df.empty:
        return pd.Series(dtype=float)
    return df.loc[df["type"] == kind, "amount"].astype(float)


def _margin(income: float, balance: float) -> float:
    if income <= 0:
        return 0.0
    return round_half_up(balance / income * 100, 1)


def _split_by_type(df: pd.DataFrame, key: pd.Series) -> pd.DataFrame:
    """Sum income and expense amounts per value of `key`."""
    frame = pd.DataFrame(
        {
            "key": key.values,
            "income": df["amount"].where(df["type"] == "income", 0.0).astype(float).values,
            "expense": df["amount"].where(df["type"] == "expense", 0.0).astype(float).values,
        }
    )
    return frame.groupby("key", sort=True)[["income", "expense"]].sum()


def filter_transactions(
    transactions: pd.DataFrame,
    start: Optional[date] = None,
    end: Optional[date] = None,
    category: Optional[str] = None,
) -> pd.DataFrame:
    """
    Apply the finance filters: inclusive date range and exact category.

    Either bound may be omitted. An empty or "all" category keeps every row.
    """
    df = transactions
    if start is not None or end is not None:
        period = Period(start=start or date.min, end=end or date.max, label="Filter")
        df = filter_by_period(df, period)
    return filter_exact(df, "category", category)


def daily_series(
    transactions: pd.DataFrame,
    today: Optional[date] = None,
    days: int = RECENT_DAYS,
) -> pd.DataFrame:
    """
    Income, expense and balance per day for transactions dated on or after
    `today - days`, sorted chronologically.
    """
    today = today or _today()
    columns = ["date", "income", "expense", "balance"]
    if transactions.empty:
        return pd.DataFrame(columns=columns)

    dates = pd.to_datetime(transactions["date"]).dt.date
    recent = transactions.loc[dates >= today - timedelta(days=days)]
    if recent.empty:
        return pd.DataFrame(columns=columns)

    grouped = _split_by_type(recent, pd.to_datetime(recent["date"]).dt.date)
    out = grouped.reset_index().rename(columns={"key": "date"})
    out["balance"] = out["income"] - out["expense"]
    return out[columns]


def monthly_series(
    transactions: pd.DataFrame,
    buckets: int = MONTHLY_BUCKETS,
) -> pd.DataFrame:
    """
    Income, expense and profit per calendar month ("YYYY-MM"), sorted by
    month key and truncated to the last `buckets` months.
    """
    columns = ["month", "income", "expense", "profit"]
    if transactions.empty:
        return pd.DataFrame(columns=columns)

    months = pd.to_datetime(transactions["date"]).dt.strftime("%Y-%m")
    grouped = _split_by_type(transactions, months)
    out = grouped.reset_index().rename(columns={"key": "month"})
    out = out.tail(buckets).reset_index(drop=True)
    out["profit"] = out["income"] - out["expense"]
    return out[columns]


def compute_finance_stats(
    transactions: pd.DataFrame,
    start: Optional[date] = None,
    end: Optional[date] = None,
    category: Optional[str] = None,
    today: Optional[date] = None,
    recent_days: int = RECENT_DAYS,
    monthly_buckets: int = MONTHLY_BUCKETS,
) -> FinanceStats:
    """
    Compute the finance dashboard figures.

    Totals, breakdowns, average and largest amounts are computed over the
    filtered subset (date range and category). The daily and monthly series
    always cover the whole snapshot.

    Parameters
    ----------
    transactions:
        Transactions snapshot.
    start, end:
        Optional inclusive date bounds.
    category:
        Optional exact category.
    today:
        Reference day for the daily series (defaults to the current date).
    recent_days, monthly_buckets:
        Sizes of the daily and monthly series.

    Returns
    -------
    FinanceStats
    """
    filtered = filter_transactions(transactions, start, end, category)

    income_amounts = _amounts(filtered, "income")
    expense_amounts = _amounts(filtered, "expense")
    total_income = float(income_amounts.sum())
    total_expense = float(expense_amounts.sum())
    balance = total_income - total_expense

    count = len(filtered)
    if count:
        avg_amount = round_half_up(float(filtered["amount"].astype(float).sum()) / count)
    else:
        avg_amount = 0

    if filtered.empty:
        by_category = pd.DataFrame(columns=["category", "income", "expense", "total"])
        by_method = pd.DataFrame(columns=["payment_method", "amount"])
    else:
        grouped = _split_by_type(filtered, filtered["category"])
        by_category = grouped.reset_index().rename(columns={"key": "category"})
        by_category["total"] = by_category["income"] + by_category["expense"]

        methods = filtered["payment_method"].fillna("").astype(str).str.strip()
        methods = methods.mask(methods == "", UNSPECIFIED_PAYMENT_METHOD)
        by_method = (
            filtered.assign(payment_method=methods, amount=filtered["amount"].astype(float))
            .groupby("payment_method", sort=True)["amount"]
            .sum()
            .reset_index()
        )

    logger.debug(
        "Finance stats over %d of %d transactions", count, len(transactions)
    )

    return FinanceStats(
        total_income=total_income,
        total_expense=total_expense,
        balance=balance,
        profit_margin=_margin(total_income, balance),
        avg_transaction_amount=avg_amount,
        largest_income=max(float(income_amounts.max()) if len(income_amounts) else 0.0, 0.0),
        largest_expense=max(float(expense_amounts.max()) if len(expense_amounts) else 0.0, 0.0),
        filtered_count=count,
        by_category=by_category,
        by_payment_method=by_method,
        daily=daily_series(transactions, today=today, days=recent_days),
        monthly=monthly_series(transactions, buckets=monthly_buckets),
    )


def period_summary(
    transactions: pd.DataFrame,
    time_range: str = "today",
    today: Optional[date] = None,
) -> PeriodSummary:
    """
    Summarize the transactions of a dashboard time range.

    "today" is the current day, "week" the last 7 days and "month" the
    current month up to today.
    """
    period = period_for_time_range(time_range, today)
    df = filter_by_period(transactions, period)

    income = float(_amounts(df, "income").sum())
    expense = float(_amounts(df, "expense").sum())
    profit = income - expense
    return PeriodSummary(
        period=period,
        income=income,
        expense=expense,
        profit=profit,
        profit_margin=_margin(income, profit),
        count=len(df),
    )
