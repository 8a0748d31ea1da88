# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Client segmentation and ranking.

Clients are classified into three segments derived from their history
(never stored):

- vip:     total_spent > 50000 or total_orders > 10,
- regular: total_orders > 3,
- new:     everything else.

The "new clients" card of the dashboard uses a separate rule
(total_orders <= 1) and is reported as `new_clients` next to the segment
counts.

All functions take a clients snapshot (as returned by
`RecordService.get_all()`) and never modify it.
"""

from dataclasses import dataclass, field
from typing import Optional

import pandas as pd

from .filtering import filter_exact, parse_sort_key, search_records, sort_records
from .models import round_half_up

VIP_SPENT_THRESHOLD = 50000
VIP_ORDERS_THRESHOLD = 10
REGULAR_ORDERS_THRESHOLD = 3
NEW_CLIENT_MAX_ORDERS = 1
TOP_CLIENTS_COUNT = 5

SEGMENTS = ("vip", "regular", "new")

SEARCH_FIELDS = ("name", "phone", "email", "address")

# UI sort field -> snapshot column
SORT_FIELDS = {
    "name": "name",
    "orders": "total_orders",
    "spent": "total_spent",
    "created": "created_at",
}


@dataclass(frozen=True)
class ClientStats:
    """Summary values shown on the clients dashboard."""

    total_clients: int
    segment_counts: dict[str, int]
    new_clients: int
    active_clients: int
    with_email: int
    total_revenue: float
    avg_spend: int
    vip_share_pct: int
    top_clients: pd.DataFrame = field(repr=False)

    @property
    def vip_clients(self) -> int:
        return self.segment_counts["vip"]


def client_segment(total_spent: float, total_orders: int) -> str:
    """Return the segment ("vip", "regular" or "new") of a client."""
    if total_spent > VIP_SPENT_THRESHOLD or total_orders > VIP_ORDERS_THRESHOLD:
        return "vip"
    if total_orders > REGULAR_ORDERS_THRESHOLD:
        return "regular"
    return "new"


def with_segments(clients: pd.DataFrame) -> pd.DataFrame:
    """Return a copy of the snapshot with a derived `segment` column."""
    df = clients.copy()
    if df.empty:
        df["segment"] = pd.Series(dtype=object)
        return df
    spent = df["total_spent"].fillna(0.0).astype(float)
    orders = df["total_orders"].fillna(0).astype(int)
    df["segment"] = [client_segment(s, o) for s, o in zip(spent, orders)]
    return df


def compute_client_stats(clients: pd.DataFrame) -> ClientStats:
    """
    Compute the clients dashboard summary.

    - segment counts (vip / regular / new),
    - new clients (at most one order), active clients (at least one order),
      clients with an email address,
    - total revenue and average spend per client (rounded to a whole unit),
    - VIP share of the client base, in percent (rounded),
    - the top 5 clients by total_spent. Ties keep the snapshot order.

    An empty snapshot yields zero counts and an empty top list.
    """
    df = with_segments(clients)
    total = len(df)

    counts = {segment: 0 for segment in SEGMENTS}
    if total:
        for segment, count in df["segment"].value_counts().items():
            counts[str(segment)] = int(count)

    if total:
        orders = df["total_orders"].fillna(0).astype(int)
        spent = df["total_spent"].fillna(0.0).astype(float)
        new_clients = int((orders <= NEW_CLIENT_MAX_ORDERS).sum())
        active_clients = int((orders > 0).sum())
        with_email = int(df["email"].fillna("").astype(str).str.strip().ne("").sum())
        total_revenue = float(spent.sum())
        avg_spend = round_half_up(total_revenue / total)
        vip_share = round_half_up(counts["vip"] / total * 100)
        top = df.assign(total_spent=spent).sort_values(
            "total_spent", ascending=False, kind="stable"
        )
        top = top.head(TOP_CLIENTS_COUNT).reset_index(drop=True)
    else:
        new_clients = active_clients = with_email = 0
        total_revenue = 0.0
        avg_spend = 0
        vip_share = 0
        top = df.head(0)

    return ClientStats(
        total_clients=total,
        segment_counts=counts,
        new_clients=new_clients,
        active_clients=active_clients,
        with_email=with_email,
        total_revenue=total_revenue,
        avg_spend=avg_spend,
        vip_share_pct=vip_share,
        top_clients=top,
    )


def filter_clients(
    clients: pd.DataFrame,
    query: Optional[str] = None,
    segment: Optional[str] = None,
    sort_key: str = "name-asc",
) -> pd.DataFrame:
    """
    Apply the clients list controls: text search, segment filter and sort.

    Parameters
    ----------
    clients:
        Clients snapshot.
    query:
        Case-insensitive substring searched in name, phone, email and
        address.
    segment:
        "vip", "regular", "new", or "all" / None for no filter.
    sort_key:
        "<field>-<asc|desc>" where field is one of name, orders, spent,
        created.

    Returns
    -------
    pandas.DataFrame
        The filtered and sorted snapshot, with the derived `segment` column.
    """
    if segment not in (None, "", "all") and segment not in SEGMENTS:
        raise ValueError(f"Unknown client segment: {segment!r}")

    field_name, direction = parse_sort_key(sort_key)
    if field_name not in SORT_FIELDS:
        raise ValueError(f"Unknown client sort field: {field_name!r}")

    df = with_segments(clients)
    df = search_records(df, query, SEARCH_FIELDS)
    df = filter_exact(df, "segment", segment)

    column = SORT_FIELDS[field_name]
    if column == "created_at" and not df.empty:
        df = df.assign(created_at=pd.to_datetime(df["created_at"], utc=True))
    if df.empty:
        return df.reset_index(drop=True)
    return sort_records(df, column, direction).reset_index(drop=True)


def client_repair_counts(clients: pd.DataFrame, repairs: pd.DataFrame) -> pd.Series:
    """
    Count the repairs linked to each client.

    Returns
    -------
    pandas.Series
        Indexed by client id, one value per client of the snapshot
        (0 when a client has no repair).
    """
    if clients.empty:
        return pd.Series(dtype=int, name="repairs")
    if repairs.empty:
        counts = pd.Series(dtype=int)
    else:
        counts = repairs.groupby("client_id").size()
    out = counts.reindex(clients["id"]).fillna(0).astype(int)
    out.name = "repairs"
    return out
