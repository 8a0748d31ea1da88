from datetime import date

import pandas as pd
import pytest

from smb_desk.db import DatabaseConfig, list_import_batches
from smb_desk.models import META_COLUMNS, RecordNotFoundError, ValidationError
from smb_desk.services import (
    RecordService,
    client_repair_counts,
    create_schedule,
    duplicate_schedule,
    duplicate_transaction,
    export_records,
    import_records,
    restock_item,
    update_schedule,
)


@pytest.fixture
def db_cfg(tmp_path) -> DatabaseConfig:
    return DatabaseConfig(engine="sqlite", path=tmp_path / "services.sqlite")


@pytest.fixture
def clients(db_cfg) -> RecordService:
    return RecordService(db_cfg, "clients")


@pytest.fixture
def technicians(db_cfg) -> RecordService:
    return RecordService(db_cfg, "technicians")


@pytest.fixture
def schedules(db_cfg) -> RecordService:
    return RecordService(db_cfg, "schedules")


# ---------------------------------------------------------------------------
# CRUD
# ---------------------------------------------------------------------------


def test_unknown_entity_is_rejected(db_cfg):
    with pytest.raises(ValueError):
        RecordService(db_cfg, "invoices")


def test_create_applies_defaults_and_identity(clients):
    client = clients.create({"name": "Alice", "phone": "0612345678", "id": 99})

    assert client.id == 1
    assert client.email == ""
    assert client.total_orders == 0
    assert client.total_spent == 0.0
    assert client.created_at is not None
    assert client.updated_at is None


def test_create_rejects_invalid_record(clients):
    with pytest.raises(ValidationError) as excinfo:
        clients.create({"name": "", "phone": ""})

    assert excinfo.value.errors == ["name is required", "phone is required"]
    assert clients.get_all().empty


def test_update_merges_partial_patch(clients):
    created = clients.create({"name": "Alice", "phone": "0612345678"})

    updated = clients.update(created.id, {"total_spent": 120.5, "total_orders": 2})

    assert updated.name == "Alice"
    assert updated.total_spent == 120.5
    assert updated.total_orders == 2
    assert updated.updated_at is not None


def test_update_rejects_invalid_merge(clients):
    created = clients.create({"name": "Alice", "phone": "0612345678"})

    with pytest.raises(ValidationError):
        clients.update(created.id, {"phone": ""})

    assert clients.require(created.id).phone == "0612345678"


def test_update_and_delete_unknown_id(clients):
    with pytest.raises(RecordNotFoundError):
        clients.update(42, {"name": "Bob"})
    with pytest.raises(RecordNotFoundError):
        clients.delete(42)
    assert clients.get(42) is None


def test_delete_removes_record(clients):
    created = clients.create({"name": "Alice", "phone": "0612345678"})

    clients.delete(created.id)

    assert clients.get(created.id) is None
    with pytest.raises(RecordNotFoundError):
        clients.delete(created.id)


def test_ids_are_not_reused_after_delete(clients):
    first = clients.create({"name": "Alice", "phone": "1"})
    clients.delete(first.id)

    second = clients.create({"name": "Bob", "phone": "2"})

    assert second.id == first.id + 1


# ---------------------------------------------------------------------------
# Import / export
# ---------------------------------------------------------------------------


def test_import_is_all_or_nothing(clients, db_cfg):
    records = pd.DataFrame(
        [
            {"name": "Alice", "phone": "0612345678"},
            {"name": "Bob", "phone": None},
            {"name": None, "phone": "0700000000"},
        ]
    )

    with pytest.raises(ValidationError) as excinfo:
        import_records(clients, records)

    assert excinfo.value.errors == ["row 2: phone is required", "row 3: name is required"]
    assert clients.get_all().empty
    assert list_import_batches(db_cfg).empty


def test_import_inserts_batch(clients):
    records = pd.DataFrame(
        [
            {"name": "Alice", "phone": "0612345678", "total_spent": 10.5},
            {"name": "Bob", "phone": "0700000000", "created_at": "2024-01-02T10:00:00"},
        ]
    )

    stats = import_records(clients, records, source_label="clients.csv")

    assert stats.rows_inserted == 2
    df = clients.get_all()
    assert list(df["name"]) == ["Alice", "Bob"]
    assert set(df["import_batch_id"]) == {stats.batch_id}
    assert df.loc[1, "created_at"].year == 2024


def test_export_drops_bookkeeping_columns(clients):
    clients.create({"name": "Alice", "phone": "0612345678"})

    exported = export_records(clients)

    assert not set(META_COLUMNS) & set(exported.columns)
    assert list(exported["name"]) == ["Alice"]


# ---------------------------------------------------------------------------
# Workflows
# ---------------------------------------------------------------------------


def test_duplicate_transaction_is_dated_today(db_cfg):
    service = RecordService(db_cfg, "transactions")
    original = service.create(
        {
            "type": "expense",
            "category": "Parts",
            "amount": 42.5,
            "date": date(2025, 1, 3),
            "tags": ["supplier", "urgent"],
        }
    )

    copy = duplicate_transaction(service, original.id, today=date(2025, 6, 1))

    assert copy.id != original.id
    assert copy.date == date(2025, 6, 1)
    assert copy.amount == 42.5
    assert copy.category == "Parts"
    assert copy.tags == ("supplier", "urgent")
    assert len(service.get_all()) == 2


def test_restock_item(db_cfg):
    service = RecordService(db_cfg, "inventory")
    item = service.create({"name": "Screen", "category": "Parts", "quantity": 2})

    restocked = restock_item(service, item.id, 8, today=date(2025, 6, 1))

    assert restocked.quantity == 10
    assert restocked.last_restocked == date(2025, 6, 1)

    with pytest.raises(ValueError):
        restock_item(service, item.id, 0)
    with pytest.raises(RecordNotFoundError):
        restock_item(service, 99, 1)


def test_create_schedule_copies_technician_name(schedules, technicians):
    tech = technicians.create({"name": "Bob"})

    created = create_schedule(
        schedules,
        technicians,
        {"technician_id": tech.id, "date": date(2025, 6, 2), "start_time": "08:00"},
    )

    assert len(created) == 1
    assert created[0].technician_name == "Bob"
    assert created[0].start_time == "08:00"
    assert created[0].end_time == "18:00"


def test_create_recurring_schedule(schedules, technicians):
    tech = technicians.create({"name": "Bob"})

    created = create_schedule(
        schedules,
        technicians,
        {"technician_id": tech.id, "date": "2025-06-02"},
        recurring_days=[1, 3],
    )

    assert len(created) == 10
    assert created[0].date == date(2025, 6, 2)
    assert created[-1].date == date(2025, 7, 2)
    assert len(schedules.get_all()) == 10


def test_create_schedule_requires_known_technician(schedules, technicians):
    with pytest.raises(ValidationError) as excinfo:
        create_schedule(schedules, technicians, {"technician_id": 7, "date": date(2025, 6, 2)})

    assert excinfo.value.errors == ["a technician must be selected"]
    assert schedules.get_all().empty


def test_recurring_schedule_with_invalid_time_creates_nothing(schedules, technicians):
    tech = technicians.create({"name": "Bob"})

    with pytest.raises(ValidationError):
        create_schedule(
            schedules,
            technicians,
            {"technician_id": tech.id, "date": date(2025, 6, 2), "start_time": "25:00"},
            recurring_days=[1],
        )

    assert schedules.get_all().empty


def test_duplicate_schedule_moves_to_next_day(schedules, technicians):
    tech = technicians.create({"name": "Bob"})
    [shift] = create_schedule(
        schedules,
        technicians,
        {
            "technician_id": tech.id,
            "date": date(2025, 6, 30),
            "break_start": "12:00",
            "break_end": "13:00",
        },
    )

    copy = duplicate_schedule(schedules, shift.id)

    assert copy.date == date(2025, 7, 1)
    assert copy.technician_name == "Bob"
    assert copy.break_start == "12:00"


def test_update_schedule_follows_new_technician(schedules, technicians):
    bob = technicians.create({"name": "Bob"})
    carol = technicians.create({"name": "Carol"})
    [shift] = create_schedule(
        schedules, technicians, {"technician_id": bob.id, "date": date(2025, 6, 2)}
    )

    moved = update_schedule(schedules, technicians, shift.id, {"technician_id": carol.id})
    assert moved.technician_id == carol.id
    assert moved.technician_name == "Carol"

    later = update_schedule(schedules, technicians, shift.id, {"start_time": "10:00"})
    assert later.start_time == "10:00"
    assert later.technician_name == "Carol"


def test_update_schedule_rejects_unknown_technician(schedules, technicians):
    bob = technicians.create({"name": "Bob"})
    [shift] = create_schedule(
        schedules, technicians, {"technician_id": bob.id, "date": date(2025, 6, 2)}
    )

    with pytest.raises(ValidationError) as excinfo:
        update_schedule(schedules, technicians, shift.id, {"technician_id": 42})
    assert excinfo.value.errors == ["a technician must be selected"]
    assert schedules.require(shift.id).technician_name == "Bob"

    with pytest.raises(RecordNotFoundError):
        update_schedule(schedules, technicians, 99, {"notes": "x"})


def test_client_repair_counts(db_cfg, clients):
    repairs = RecordService(db_cfg, "repairs")
    alice = clients.create({"name": "Alice", "phone": "1"})
    bob = clients.create({"name": "Bob", "phone": "2"})
    repairs.create({"client_id": alice.id, "client_name": "Alice"})
    repairs.create({"client_id": alice.id, "client_name": "Alice"})

    counts = client_repair_counts(clients, repairs)

    assert counts[alice.id] == 2
    assert counts[bob.id] == 0
