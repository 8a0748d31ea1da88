from datetime import datetime, timezone

import pandas as pd
import pytest

from smb_desk.clients import (
    client_repair_counts,
    client_segment,
    compute_client_stats,
    filter_clients,
)


def make_clients(rows) -> pd.DataFrame:
    """Build a clients snapshot from (name, orders, spent, email) tuples."""
    return pd.DataFrame(
        [
            {
                "id": i + 1,
                "name": name,
                "phone": f"06000000{i:02d}",
                "email": email,
                "address": None,
                "total_orders": orders,
                "total_spent": spent,
                "created_at": datetime(2025, 1, i + 1, tzinfo=timezone.utc),
            }
            for i, (name, orders, spent, email) in enumerate(rows)
        ]
    )


@pytest.mark.parametrize(
    ("spent", "orders", "expected"),
    [
        (50001, 0, "vip"),
        (50000, 10, "regular"),
        (0, 11, "vip"),
        (100, 4, "regular"),
        (100, 3, "new"),
        (0, 0, "new"),
    ],
)
def test_client_segment_thresholds(spent, orders, expected):
    assert client_segment(spent, orders) == expected


def test_segment_is_monotonic_in_total_spent():
    rank = {"new": 0, "regular": 1, "vip": 2}
    for orders in range(0, 13):
        previous = -1
        for spent in (0, 1000, 49999, 50000, 50001, 100000):
            current = rank[client_segment(spent, orders)]
            assert current >= previous
            previous = current


def test_compute_client_stats():
    df = make_clients(
        [
            ("Alice", 12, 60000.0, "alice@example.com"),
            ("Bob", 5, 2000.0, ""),
            ("Carol", 1, 300.0, None),
            ("Dave", 0, 0.0, "dave@example.com"),
        ]
    )

    stats = compute_client_stats(df)

    assert stats.total_clients == 4
    assert stats.segment_counts == {"vip": 1, "regular": 1, "new": 2}
    assert stats.vip_clients == 1
    assert stats.new_clients == 2
    assert stats.active_clients == 3
    assert stats.with_email == 2
    assert stats.total_revenue == 62300.0
    assert stats.avg_spend == 15575
    assert stats.vip_share_pct == 25
    assert list(stats.top_clients["name"]) == ["Alice", "Bob", "Carol", "Dave"]


def test_top_clients_are_limited_to_five_and_stable_on_ties():
    df = make_clients([(f"C{i}", 1, 100.0, "") for i in range(7)])
    stats = compute_client_stats(df)

    assert list(stats.top_clients["name"]) == ["C0", "C1", "C2", "C3", "C4"]


def test_compute_client_stats_empty_snapshot():
    empty = make_clients([]).reindex(
        columns=["id", "name", "phone", "email", "total_orders", "total_spent"]
    )
    stats = compute_client_stats(empty)

    assert stats.total_clients == 0
    assert stats.segment_counts == {"vip": 0, "regular": 0, "new": 0}
    assert stats.avg_spend == 0
    assert stats.top_clients.empty


def test_filter_clients_search_segment_and_sort():
    df = make_clients(
        [
            ("alice", 12, 60000.0, "alice@example.com"),
            ("Bob", 5, 2000.0, ""),
            ("Carol", 4, 9000.0, "carol@shop.fr"),
        ]
    )

    regulars = filter_clients(df, segment="regular", sort_key="spent-desc")
    assert list(regulars["name"]) == ["Carol", "Bob"]

    by_name = filter_clients(df, sort_key="name-asc")
    assert list(by_name["name"]) == ["alice", "Bob", "Carol"]

    newest = filter_clients(df, sort_key="created-desc")
    assert list(newest["name"]) == ["Carol", "Bob", "alice"]

    found = filter_clients(df, query="SHOP")
    assert list(found["name"]) == ["Carol"]


def test_filter_clients_rejects_unknown_options():
    df = make_clients([("Alice", 1, 10.0, "")])
    with pytest.raises(ValueError):
        filter_clients(df, segment="gold")
    with pytest.raises(ValueError):
        filter_clients(df, sort_key="age-asc")


def test_client_repair_counts():
    clients = make_clients([("Alice", 1, 10.0, ""), ("Bob", 1, 10.0, "")])
    repairs = pd.DataFrame({"id": [1, 2, 3], "client_id": [2, 2, 99]})

    counts = client_repair_counts(clients, repairs)

    assert counts.to_dict() == {1: 0, 2: 2}


def test_average_spend_rounds_halves_up():
    # 2 + 3 = 5 over two clients: 2.5 is shown as 3.
    stats = compute_client_stats(make_clients([("A", 1, 2.0, ""), ("B", 1, 3.0, "")]))

    assert stats.avg_spend == 3
