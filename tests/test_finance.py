from datetime import date

import pandas as pd
import pytest

from smb_desk.finance import (
    UNSPECIFIED_PAYMENT_METHOD,
    compute_finance_stats,
    filter_transactions,
    monthly_series,
    period_summary,
)

TODAY = date(2025, 6, 18)


@pytest.fixture
def transactions() -> pd.DataFrame:
    rows = [
        ("income", "Repairs", 1200.0, date(2025, 6, 18), "card"),
        ("income", "Repairs", 300.0, date(2025, 6, 15), None),
        ("expense", "Parts", 450.0, date(2025, 6, 15), "transfer"),
        ("income", "Sales", 99.5, date(2025, 6, 2), "cash"),
        ("expense", "Rent", 800.0, date(2025, 5, 1), "transfer"),
        ("income", "Repairs", 700.0, date(2024, 12, 20), "card"),
    ]
    return pd.DataFrame(
        [
            {
                "id": i + 1,
                "type": kind,
                "category": category,
                "amount": amount,
                "date": day,
                "payment_method": method,
                "description": "",
            }
            for i, (kind, category, amount, day, method) in enumerate(rows)
        ]
    )


def test_balance_is_income_minus_expense(transactions):
    stats = compute_finance_stats(transactions, today=TODAY)

    assert stats.total_income == 2299.5
    assert stats.total_expense == 1250.0
    assert stats.total_income - stats.total_expense == stats.balance
    assert stats.profit_margin == 45.6
    assert stats.filtered_count == 6
    assert stats.largest_income == 1200.0
    assert stats.largest_expense == 800.0
    assert stats.avg_transaction_amount == 592


def test_no_income_means_zero_margin(transactions):
    stats = compute_finance_stats(transactions, category="Rent", today=TODAY)

    assert stats.total_income == 0.0
    assert stats.balance == -800.0
    assert stats.profit_margin == 0
    assert stats.largest_income == 0.0


def test_empty_snapshot(transactions):
    stats = compute_finance_stats(transactions.head(0), today=TODAY)

    assert stats.balance == 0.0
    assert stats.profit_margin == 0
    assert stats.avg_transaction_amount == 0
    assert stats.by_category.empty
    assert stats.daily.empty
    assert stats.monthly.empty


def test_filters_are_inclusive_and_exact(transactions):
    june = filter_transactions(transactions, date(2025, 6, 2), date(2025, 6, 15))
    assert sorted(june["id"]) == [2, 3, 4]

    repairs = filter_transactions(transactions, category="Repairs")
    assert sorted(repairs["id"]) == [1, 2, 6]

    assert len(filter_transactions(transactions, category="all")) == 6


def test_breakdowns(transactions):
    stats = compute_finance_stats(transactions, start=date(2025, 6, 1), today=TODAY)

    by_category = stats.by_category.set_index("category")
    assert by_category.loc["Repairs", "income"] == 1500.0
    assert by_category.loc["Parts", "expense"] == 450.0
    assert by_category.loc["Parts", "total"] == 450.0

    methods = stats.by_payment_method
    by_method = dict(zip(methods["payment_method"], methods["amount"]))
    assert by_method == {
        "card": 1200.0,
        UNSPECIFIED_PAYMENT_METHOD: 300.0,
        "transfer": 450.0,
        "cash": 99.5,
    }


def test_series_cover_the_whole_snapshot(transactions):
    stats = compute_finance_stats(transactions, category="Sales", today=TODAY)

    # The daily window is the last 30 days, whatever the filters.
    assert list(stats.daily["date"]) == [date(2025, 6, 2), date(2025, 6, 15), date(2025, 6, 18)]
    june_15 = stats.daily.set_index("date").loc[date(2025, 6, 15)]
    assert june_15["income"] == 300.0
    assert june_15["expense"] == 450.0
    assert june_15["balance"] == -150.0

    assert list(stats.monthly["month"]) == ["2024-12", "2025-05", "2025-06"]


def test_monthly_series_keeps_last_buckets():
    df = pd.DataFrame(
        {
            "type": ["income"] * 14,
            "amount": [10.0] * 14,
            "date": [date(2024 + (m // 12), m % 12 + 1, 5) for m in range(14)],
        }
    )

    monthly = monthly_series(df, buckets=12)

    assert len(monthly) == 12
    assert monthly["month"].iloc[0] == "2024-03"
    assert monthly["month"].iloc[-1] == "2025-02"
    assert (monthly["profit"] == 10.0).all()


def test_period_summary(transactions):
    today = period_summary(transactions, "today", TODAY)
    assert today.income == 1200.0
    assert today.count == 1
    assert today.profit_margin == 100.0

    week = period_summary(transactions, "week", TODAY)
    assert week.income == 1500.0
    assert week.expense == 450.0
    assert week.profit == 1050.0
    assert week.profit_margin == 70.0

    month = period_summary(transactions, "month", TODAY)
    assert month.count == 4
