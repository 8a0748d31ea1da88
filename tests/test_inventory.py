import pandas as pd
import pytest

from smb_desk.inventory import (
    IN_STOCK,
    LOW_STOCK,
    NO_SUPPLIER,
    OUT_OF_STOCK,
    compute_inventory_stats,
    fill_percentage,
    filter_by_stock_view,
    margin_percent,
    reorder_list,
    stock_percentage,
    stock_status,
)


@pytest.fixture
def items() -> pd.DataFrame:
    rows = [
        # name, category, qty, min, max, price, cost, supplier
        ("Screen", "Parts", 10, 3, 20, 50.0, 30.0, "Acme"),
        ("Battery", "Parts", 2, 5, 30, 20.0, None, "Acme"),
        ("Cable", "Accessories", 0, 2, 50, 5.0, 2.0, None),
        ("Case", "Accessories", 4, 4, 40, 10.0, 6.0, ""),
    ]
    return pd.DataFrame(
        [
            {
                "id": i + 1,
                "name": name,
                "sku": f"SKU-{i + 1}",
                "category": category,
                "quantity": qty,
                "min_quantity": min_qty,
                "max_quantity": max_qty,
                "price": price,
                "cost_price": cost,
                "supplier": supplier,
                "unit": "pcs",
                "barcode": None,
            }
            for i, (name, category, qty, min_qty, max_qty, price, cost, supplier) in enumerate(rows)
        ]
    )


@pytest.mark.parametrize("min_quantity", [0, 1, 10])
def test_zero_quantity_is_out_of_stock(min_quantity):
    assert stock_status(0, min_quantity) == OUT_OF_STOCK
    assert stock_percentage(0, min_quantity) == 0


def test_low_stock_percentage():
    assert stock_status(2, 5) == LOW_STOCK
    assert stock_percentage(2, 5) == pytest.approx(40.0)
    assert stock_status(5, 5) == LOW_STOCK
    assert stock_percentage(5, 5) == 100.0


def test_in_stock():
    assert stock_status(6, 5) == IN_STOCK
    assert stock_status(1, 0) == IN_STOCK
    assert stock_percentage(6, 5) == 100.0


def test_margin_and_fill_percentages():
    assert margin_percent(50.0, 30.0) == 67
    assert margin_percent(20.0, None) == 0
    assert margin_percent(0.0, None) == 0
    assert fill_percentage(10, 20) == 50
    assert fill_percentage(10, 0) == 0


def test_compute_inventory_stats(items):
    stats = compute_inventory_stats(items)

    assert (stats.in_stock, stats.low_stock, stats.out_of_stock) == (1, 2, 1)
    assert stats.critical_items == 3
    assert stats.total_value == 580.0
    # Battery has no cost price: its sell price is used
    assert stats.total_cost_value == 300.0 + 40.0 + 0.0 + 24.0
    assert stats.potential_profit == stats.total_value - stats.total_cost_value
    assert stats.total_quantity == 16
    assert stats.avg_quantity == 4.0
    assert stats.avg_price == pytest.approx(21.25)
    assert list(stats.top_items["name"]) == ["Screen", "Battery", "Case", "Cable"]


def test_rollups(items):
    stats = compute_inventory_stats(items)

    by_category = stats.by_category.set_index("category")
    assert by_category.loc["Parts", "count"] == 2
    assert by_category.loc["Parts", "value"] == 540.0
    assert by_category.loc["Accessories", "quantity"] == 4

    by_supplier = stats.by_supplier.set_index("supplier")
    assert set(by_supplier.index) == {"Acme", NO_SUPPLIER}
    assert by_supplier.loc[NO_SUPPLIER, "count"] == 2


def test_empty_inventory(items):
    stats = compute_inventory_stats(items.head(0))

    assert stats.critical_items == 0
    assert stats.total_value == 0.0
    assert stats.top_items.empty
    assert stats.by_supplier.empty


def test_filter_by_stock_view(items):
    assert list(filter_by_stock_view(items, "low")["name"]) == ["Battery", "Case"]
    assert list(filter_by_stock_view(items, "out")["name"]) == ["Cable"]
    assert len(filter_by_stock_view(items, "all")) == 4
    with pytest.raises(ValueError):
        filter_by_stock_view(items, "critical")


def test_reorder_list(items):
    out = reorder_list(items)

    assert list(out["name"]) == ["Battery", "Cable", "Case"]
    assert list(out["reorder_quantity"]) == [28, 50, 36]
