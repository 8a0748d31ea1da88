# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Inventory stock analysis.

Stock status is derived on every read from quantity and min_quantity:

- out_of_stock: quantity == 0,
- low_stock:    0 < quantity <= min_quantity,
- in_stock:     quantity > min_quantity.
"""

from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from .models import round_half_up

OUT_OF_STOCK = "out_of_stock"
LOW_STOCK = "low_stock"
IN_STOCK = "in_stock"

STOCK_STATUSES = (IN_STOCK, LOW_STOCK, OUT_OF_STOCK)
STOCK_VIEWS = ("all", "low", "out")

NO_SUPPLIER = "No supplier"
TOP_ITEMS_COUNT = 10

SEARCH_FIELDS = ("name", "sku", "category", "supplier", "barcode")


@dataclass(frozen=True)
class InventoryStats:
    """Aggregated view of an inventory snapshot."""

    in_stock: int
    low_stock: int
    out_of_stock: int
    critical_items: int
    total_value: float
    total_cost_value: float
    potential_profit: float
    avg_price: float
    total_quantity: int
    avg_quantity: float
    by_category: pd.DataFrame = field(repr=False)
    by_supplier: pd.DataFrame = field(repr=False)
    top_items: pd.DataFrame = field(repr=False)


def stock_status(quantity: int, min_quantity: int) -> str:
    if quantity <= 0:
        return OUT_OF_STOCK
    if quantity <= min_quantity:
        return LOW_STOCK
    return IN_STOCK


def stock_percentage(quantity: int, min_quantity: int) -> float:
    """
    Fill level of the stock gauge, in percent.

    0 when out of stock, quantity / min_quantity capped at 100 when low,
    100 when in stock.
    """
    status = stock_status(quantity, min_quantity)
    if status == OUT_OF_STOCK:
        return 0.0
    if status == LOW_STOCK:
        return min(quantity / min_quantity * 100, 100.0)
    return 100.0


def fill_percentage(quantity: int, max_quantity: Optional[int]) -> int:
    """Quantity relative to the storage capacity, rounded (0 without capacity)."""
    if not max_quantity or max_quantity <= 0:
        return 0
    return round_half_up(quantity / max_quantity * 100)


def margin_percent(price: float, cost_price: Optional[float]) -> int:
    """Markup over cost in percent, rounded. A missing cost falls back to price."""
    cost = cost_price or price
    if not cost or cost <= 0:
        return 0
    return round_half_up((price - cost) / cost * 100)


def _cost_prices(items: pd.DataFrame) -> pd.Series:
    price = items["price"].fillna(0.0).astype(float)
    cost = items["cost_price"].astype(float)
    return cost.where(cost.notna() & (cost != 0), price)


def with_stock_columns(items: pd.DataFrame) -> pd.DataFrame:
    """
    Return a copy of the snapshot with the derived columns:
    `status`, `stock_pct` and `value` (price × quantity).
    """
    df = items.copy()
    if df.empty:
        for name in ("status", "stock_pct", "value"):
            df[name] = pd.Series(dtype=object)
        return df
    quantity = df["quantity"].fillna(0).astype(int)
    min_quantity = df["min_quantity"].fillna(0).astype(int)
    df["status"] = [stock_status(q, m) for q, m in zip(quantity, min_quantity)]
    df["stock_pct"] = [stock_percentage(q, m) for q, m in zip(quantity, min_quantity)]
    df["value"] = df["price"].fillna(0.0).astype(float) * quantity
    return df


def _rollup(df: pd.DataFrame, key: pd.Series, name: str) -> pd.DataFrame:
    frame = pd.DataFrame(
        {
            name: key.values,
            "value": df["value"].values,
            "quantity": df["quantity"].fillna(0).astype(int).values,
        }
    )
    grouped = frame.groupby(name, sort=True).agg(
        count=("value", "size"),
        value=("value", "sum"),
        quantity=("quantity", "sum"),
    )
    return grouped.reset_index()


def compute_inventory_stats(items: pd.DataFrame) -> InventoryStats:
    """
    Compute the inventory dashboard figures.

    - counts per stock status and critical items (low + out),
    - total sell value (price × quantity) and total cost value (cost_price,
      or price when no cost is known), with the potential profit,
    - per-category and per-supplier rollups of count, value and quantity,
    - the top 10 items by value,
    - average price, total quantity and average quantity.
    """
    df = with_stock_columns(items)
    total = len(df)

    if not total:
        empty_rollup = pd.DataFrame(columns=["key", "count", "value", "quantity"])
        return InventoryStats(
            in_stock=0,
            low_stock=0,
            out_of_stock=0,
            critical_items=0,
            total_value=0.0,
            total_cost_value=0.0,
            potential_profit=0.0,
            avg_price=0.0,
            total_quantity=0,
            avg_quantity=0.0,
            by_category=empty_rollup.rename(columns={"key": "category"}),
            by_supplier=empty_rollup.rename(columns={"key": "supplier"}),
            top_items=df.head(0),
        )

    counts = df["status"].value_counts()
    in_stock = int(counts.get(IN_STOCK, 0))
    low_stock = int(counts.get(LOW_STOCK, 0))
    out_of_stock = int(counts.get(OUT_OF_STOCK, 0))

    quantity = df["quantity"].fillna(0).astype(int)
    total_value = float(df["value"].sum())
    total_cost_value = float((_cost_prices(df) * quantity).sum())
    total_quantity = int(quantity.sum())

    suppliers = df["supplier"].fillna("").astype(str).str.strip()
    suppliers = suppliers.mask(suppliers == "", NO_SUPPLIER)

    top_items = (
        df.sort_values("value", ascending=False, kind="stable")
        .head(TOP_ITEMS_COUNT)
        .reset_index(drop=True)
    )

    return InventoryStats(
        in_stock=in_stock,
        low_stock=low_stock,
        out_of_stock=out_of_stock,
        critical_items=low_stock + out_of_stock,
        total_value=total_value,
        total_cost_value=total_cost_value,
        potential_profit=total_value - total_cost_value,
        avg_price=float(df["price"].fillna(0.0).astype(float).mean()),
        total_quantity=total_quantity,
        avg_quantity=total_quantity / total,
        by_category=_rollup(df, df["category"], "category"),
        by_supplier=_rollup(df, suppliers, "supplier"),
        top_items=top_items,
    )


def filter_by_stock_view(items: pd.DataFrame, view: str = "all") -> pd.DataFrame:
    """Keep low-stock items ("low"), out-of-stock items ("out") or all of them."""
    if view not in STOCK_VIEWS:
        raise ValueError(
            f"Unknown stock view {view!r}. Expected one of: {', '.join(STOCK_VIEWS)}."
        )
    df = with_stock_columns(items)
    if view == "low":
        return df.loc[df["status"] == LOW_STOCK].copy()
    if view == "out":
        return df.loc[df["status"] == OUT_OF_STOCK].copy()
    return df


def reorder_list(items: pd.DataFrame) -> pd.DataFrame:
    """
    Items to reorder: every item with quantity <= min_quantity.

    The `reorder_quantity` column is max_quantity - quantity, never
    negative.
    """
    columns = ["id", "name", "sku", "quantity", "min_quantity", "max_quantity", "unit"]
    if items.empty:
        return pd.DataFrame(columns=columns + ["reorder_quantity"])

    quantity = items["quantity"].fillna(0).astype(int)
    min_quantity = items["min_quantity"].fillna(0).astype(int)
    df = items.loc[quantity <= min_quantity, columns].copy()
    max_quantity = df["max_quantity"].fillna(0).astype(int)
    df["reorder_quantity"] = (max_quantity - df["quantity"].astype(int)).clip(lower=0)
    return df.reset_index(drop=True)
