from datetime import date

import pandas as pd
import pytest

from smb_desk.db import (
    DatabaseConfig,
    delete_record,
    get_record,
    has_records,
    import_records,
    init_database,
    insert_record,
    list_import_batches,
    load_records,
    update_record,
)
from smb_desk.models import META_COLUMNS, entity_column_names


def make_tmp_db_cfg(tmp_path) -> DatabaseConfig:
    """Helper to build a DatabaseConfig pointing to a temporary SQLite file."""
    db_path = tmp_path / "test_db.sqlite"
    return DatabaseConfig(engine="sqlite", path=db_path)


def test_init_database_creates_file_and_schema(tmp_path):
    """init_database should create the SQLite file and an empty schema."""
    cfg = make_tmp_db_cfg(tmp_path)

    assert not cfg.path.exists()
    init_database(cfg)
    assert cfg.path.exists()

    # A freshly initialized database should not contain any record.
    for entity in ("clients", "transactions", "inventory", "schedules", "technicians"):
        assert has_records(cfg, entity) is False


def test_init_database_is_idempotent(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)
    insert_record(cfg, "clients", {"name": "Alice", "phone": "0600000000"})
    init_database(cfg)

    assert len(load_records(cfg, "clients")) == 1


def test_unsupported_engine_is_rejected(tmp_path):
    cfg = DatabaseConfig(engine="postgres", path=tmp_path / "x.sqlite")
    with pytest.raises(ValueError, match="Unsupported database engine"):
        init_database(cfg)


def test_load_records_on_empty_table_has_all_columns(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    df = load_records(cfg, "inventory")

    assert df.empty
    assert list(df.columns) == list(META_COLUMNS) + entity_column_names("inventory")


def test_insert_and_get_record_round_trips_values(tmp_path):
    """Money comes back from integer cents, dates as date objects, lists as lists."""
    cfg = make_tmp_db_cfg(tmp_path)

    record_id = insert_record(
        cfg,
        "transactions",
        {
            "type": "income",
            "category": "Repairs",
            "amount": 19.99,
            "date": date(2025, 3, 14),
            "tags": ["screen", "urgent"],
        },
    )

    row = get_record(cfg, "transactions", record_id)
    assert row is not None
    assert row["amount"] == 19.99
    assert row["date"] == date(2025, 3, 14)
    assert row["tags"] == ["screen", "urgent"]
    assert row["description"] == ""
    assert row["tax_rate"] == 0.0
    assert row["created_at"] is not None
    assert row["updated_at"] is None


def test_get_record_unknown_id_returns_none(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    assert get_record(cfg, "clients", 42) is None


def test_ids_are_assigned_incrementally(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    first = insert_record(cfg, "technicians", {"name": "Bob"})
    second = insert_record(cfg, "technicians", {"name": "Carol"})
    assert second > first


def test_update_record_partial_patch(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    record_id = insert_record(cfg, "clients", {"name": "Alice", "phone": "0600000000"})

    assert update_record(cfg, "clients", record_id, {"total_spent": 120.5}) is True

    row = get_record(cfg, "clients", record_id)
    assert row["name"] == "Alice"
    assert row["total_spent"] == 120.5
    assert row["updated_at"] is not None


def test_update_record_without_fields_raises(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    record_id = insert_record(cfg, "clients", {"name": "Alice", "phone": "0600000000"})

    with pytest.raises(ValueError, match="No fields to update"):
        update_record(cfg, "clients", record_id, {"unknown": 1})


def test_update_and_delete_unknown_id_return_false(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    init_database(cfg)

    assert update_record(cfg, "clients", 99, {"name": "Nobody"}) is False
    assert delete_record(cfg, "clients", 99) is False


def test_delete_record(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    record_id = insert_record(cfg, "clients", {"name": "Alice", "phone": "0600000000"})

    assert delete_record(cfg, "clients", record_id) is True
    assert has_records(cfg, "clients") is False


def test_import_records_creates_batch(tmp_path):
    """Bulk import inserts every row in one batch."""
    cfg = make_tmp_db_cfg(tmp_path)

    df = pd.DataFrame(
        [
            {"name": "Screen", "category": "Parts", "quantity": 3, "price": 45.0},
            {"name": "Battery", "category": "Parts", "quantity": 0, "price": 20.0},
        ]
    )

    stats = import_records(df, cfg, "inventory", source_label="items.csv")
    assert stats.rows_inserted == 2
    assert stats.entity == "inventory"

    loaded = load_records(cfg, "inventory")
    assert len(loaded) == 2
    assert set(loaded["import_batch_id"]) == {stats.batch_id}
    # Defaults are applied to omitted columns
    assert list(loaded["unit"]) == ["pcs", "pcs"]
    assert list(loaded["max_quantity"]) == [100, 100]

    batches = list_import_batches(cfg)
    assert len(batches) == 1
    assert set(batches.columns) == {
        "id",
        "created_at",
        "entity",
        "source_label",
        "rows_inserted",
    }
    assert int(batches["rows_inserted"].iloc[0]) == 2


def test_import_records_is_all_or_nothing(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    df = pd.DataFrame(
        [
            {"name": "Screen", "category": "Parts", "quantity": 3},
            {"name": "Broken", "category": "Parts", "quantity": "not a number"},
        ]
    )

    with pytest.raises(ValueError):
        import_records(df, cfg, "inventory", source_label="bad.csv")

    assert has_records(cfg, "inventory") is False
    assert list_import_batches(cfg).empty


def test_unknown_entity_raises(tmp_path):
    cfg = make_tmp_db_cfg(tmp_path)
    with pytest.raises(ValueError, match="Unknown entity"):
        load_records(cfg, "invoices")
