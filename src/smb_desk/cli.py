# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Command-line interface for SMB Desk.

Overview
--------

The CLI is the front end of the dashboard. Every command:

1. loads the main TOML configuration,
2. initializes the SQLite database (file and schema are created if needed),
3. loads the full snapshot of the entity it works on,
4. computes the requested view or applies the requested change,
5. renders the result as console tables and / or CSV files.

Usage::

    python -m smb_desk.cli [global options] <section> <command> [options]


Sections and commands
---------------------

``clients``
    ``list`` (search, segment filter, sort), ``stats``, ``add``, ``update``,
    ``delete``.

``finance``
    ``list`` (date range, category, type, search, sort), ``stats`` (totals,
    breakdowns, daily and monthly series), ``summary`` (today / week /
    month), ``add``, ``duplicate``, ``update``, ``delete``.

``inventory``
    ``list`` (stock view, search, category, supplier, sort), ``stats``,
    ``reorder``, ``restock``, ``add``, ``update``, ``delete``.

``schedule``
    ``list`` (shifts grouped by day, most recent first), ``week``,
    ``stats``, ``add`` (single or recurring shifts), ``duplicate``,
    ``update`` (the technician name follows a new technician id), ``delete``.

``technicians``
    ``list``, ``stats``, ``add``, ``status ID {available,busy,offline}``,
    ``delete``.

``import ENTITY PATH`` / ``export ENTITY PATH``
    Bulk import from / export to a CSV or JSON file.


Global options
--------------

- ``--config PATH``: main TOML configuration file (defaults to
  ``smb_desk_config.toml`` in the current directory).
- ``--version``: print the installed version and exit.
- ``--verbose``: enable debug logging (overrides ``[logging].level``).
- ``--display-mode table|csv|both``: override ``display.mode``.
- ``--output DIR``: directory for CSV files (defaults to ``data/output``).


Display modes and output
------------------------

- ``table``: render results to stdout (pandas.DataFrame.to_string),
- ``csv``:   write CSV files only, no console tables,
- ``both``:  do both.

CSV files are written with a timestamp-based name, for example
``clients_stats_YYYY-MM-DD-HH-MM-SS.csv``.


Updates
-------

``update RECORD_ID --field value ...`` changes only the given fields; the
merged record is validated like a new one.


Errors
------

Validation errors, unknown record ids and invalid values are reported as
``Error: ...`` on stderr and the command exits with status 1.
"""

import argparse
import logging
import sys
from datetime import date, datetime
from pathlib import Path
from typing import Optional

import pandas as pd

from . import __version__
from .clients import compute_client_stats, filter_clients
from .config import AppConfig, load_app_config
from .db import has_records, init_database
from .filtering import filter_exact, parse_sort_key, search_records, sort_records
from .finance import SEARCH_FIELDS as FINANCE_SEARCH_FIELDS
from .finance import compute_finance_stats, filter_transactions, period_summary
from .inventory import SEARCH_FIELDS as INVENTORY_SEARCH_FIELDS
from .inventory import (
    compute_inventory_stats,
    fill_percentage,
    filter_by_stock_view,
    margin_percent,
    reorder_list,
)
from .io import read_records, write_records
from .models import ENTITY_COLUMNS, RecordNotFoundError, TECHNICIAN_STATUSES, round_half_up
from .periods import TIME_RANGES, _today, custom_period
from .schedule import (
    compute_schedule_stats,
    group_by_date,
    repairs_for_technician_on,
    shift_hours,
    week_schedules,
)
from .services import (
    client_repair_counts,
    create_schedule,
    duplicate_schedule,
    duplicate_transaction,
    export_records,
    get_service,
    import_records,
    restock_item,
    update_schedule,
)
from .technicians import compute_technician_stats, workload_percent
from .views import (
    client_stats_frame,
    finance_stats_frame,
    inventory_stats_frame,
    list_view,
    period_summary_frame,
    schedule_stats_frame,
    technician_stats_frame,
)

logger = logging.getLogger(__name__)

# Rendered output: (title, file stem, frame)
Output = tuple[str, str, pd.DataFrame]


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def _add_delete_parser(subparsers, what: str) -> None:
    p = subparsers.add_parser("delete", help=f"Delete a {what}.")
    p.add_argument("record_id", type=int, help=f"Identifier of the {what}.")
    p.add_argument(
        "--yes",
        action="store_true",
        help="Do not ask for confirmation.",
    )


def _add_update_parser(subparsers, what: str, fields: list[tuple[str, str, type]]) -> None:
    p = subparsers.add_parser("update", help=f"Change fields of a {what}.")
    p.add_argument("record_id", type=int, help=f"Identifier of the {what}.")
    # Options left out of the command line are absent from the namespace.
    for flag, dest, kind in fields:
        p.add_argument(flag, dest=dest, type=kind, default=argparse.SUPPRESS)


# (option, field, argparse type) of the update commands
_CLIENT_FIELDS = [
    ("--name", "name", str),
    ("--phone", "phone", str),
    ("--email", "email", str),
    ("--address", "address", str),
    ("--notes", "notes", str),
    ("--company", "company", str),
    ("--tax-id", "tax_id", str),
    ("--discount", "discount_percent", float),
    ("--total-orders", "total_orders", int),
    ("--total-spent", "total_spent", float),
]

_TRANSACTION_FIELDS = [
    ("--type", "type", str),
    ("--category", "category", str),
    ("--amount", "amount", float),
    ("--date", "date", str),
    ("--description", "description", str),
    ("--payment-method", "payment_method", str),
    ("--tags", "tags", str),
    ("--invoice-number", "invoice_number", str),
    ("--tax-rate", "tax_rate", float),
]

_ITEM_FIELDS = [
    ("--name", "name", str),
    ("--category", "category", str),
    ("--sku", "sku", str),
    ("--quantity", "quantity", int),
    ("--min-quantity", "min_quantity", int),
    ("--max-quantity", "max_quantity", int),
    ("--price", "price", float),
    ("--cost-price", "cost_price", float),
    ("--supplier", "supplier", str),
    ("--location", "location", str),
    ("--unit", "unit", str),
    ("--barcode", "barcode", str),
    ("--warranty", "warranty", int),
    ("--description", "description", str),
]

_SHIFT_FIELDS = [
    ("--technician-id", "technician_id", int),
    ("--date", "date", str),
    ("--start", "start_time", str),
    ("--end", "end_time", str),
    ("--break-start", "break_start", str),
    ("--break-end", "break_end", str),
    ("--notes", "notes", str),
]


def _build_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser for the CLI."""
    ap = argparse.ArgumentParser(
        prog="python -m smb_desk.cli",
        description=(
            "SMB Desk - Business Management Dashboard for SMBs. "
            "Manages clients, transactions, inventory, technicians and "
            "schedules, and computes the statistics of each section."
        ),
    )

    # Generic options
    ap.add_argument(
        "--version",
        action="store_true",
        help="Show the installed version of smb_desk and exit.",
    )
    ap.add_argument(
        "--config",
        dest="config_path",
        help=(
            "Path to the main TOML configuration file. "
            "If omitted, 'smb_desk_config.toml' in the current directory is used."
        ),
    )
    ap.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging (overrides the [logging] level).",
    )

    # Display options
    ap.add_argument(
        "--display-mode",
        dest="display_mode",
        choices=["table", "csv", "both"],
        help=(
            "Override the display.mode setting from the configuration file. "
            "'table' prints results to stdout, "
            "'csv' writes CSV files only, "
            "'both' does both."
        ),
    )
    ap.add_argument(
        "--output",
        dest="output_dir",
        help=(
            "Output directory where CSV files will be written when display "
            "mode includes 'csv'. If omitted, 'data/output' is used."
        ),
    )

    subparsers = ap.add_subparsers(dest="section", metavar="section")

    # ------------------------------------------------------------------
    # clients
    # ------------------------------------------------------------------
    clients = subparsers.add_parser("clients", help="Clients and segments.")
    clients_sub = clients.add_subparsers(dest="command", metavar="command")

    p = clients_sub.add_parser("list", help="List clients.")
    p.add_argument("--search", help="Search in name, phone, email and address.")
    p.add_argument(
        "--segment",
        choices=["all", "vip", "regular", "new"],
        default="all",
        help="Keep only one client segment.",
    )
    p.add_argument(
        "--sort",
        default="name-asc",
        help="Sort key: name|orders|spent|created followed by -asc or -desc.",
    )

    clients_sub.add_parser("stats", help="Client statistics and top clients.")

    p = clients_sub.add_parser("add", help="Create a client.")
    p.add_argument("--name", required=True)
    p.add_argument("--phone", required=True)
    p.add_argument("--email", default="")
    p.add_argument("--address")
    p.add_argument("--notes")
    p.add_argument("--company")
    p.add_argument("--tax-id", dest="tax_id")
    p.add_argument("--discount", dest="discount_percent", type=float, default=0.0)
    p.add_argument("--total-orders", dest="total_orders", type=int, default=0)
    p.add_argument("--total-spent", dest="total_spent", type=float, default=0.0)

    _add_update_parser(clients_sub, "client", _CLIENT_FIELDS)
    _add_delete_parser(clients_sub, "client")

    # ------------------------------------------------------------------
    # finance
    # ------------------------------------------------------------------
    finance = subparsers.add_parser("finance", help="Transactions and finance statistics.")
    finance_sub = finance.add_subparsers(dest="command", metavar="command")

    p = finance_sub.add_parser("list", help="List transactions.")
    p.add_argument("--from-date", dest="from_date", help="Start date (YYYY-MM-DD).")
    p.add_argument("--to-date", dest="to_date", help="End date (YYYY-MM-DD).")
    p.add_argument("--category")
    p.add_argument("--type", dest="type", choices=["all", "income", "expense"], default="all")
    p.add_argument("--search", help="Search in description, category and invoice number.")
    p.add_argument(
        "--sort",
        default="date-desc",
        help="Sort key: date|amount|category followed by -asc or -desc.",
    )

    p = finance_sub.add_parser("stats", help="Finance statistics.")
    p.add_argument("--from-date", dest="from_date", help="Start date (YYYY-MM-DD).")
    p.add_argument("--to-date", dest="to_date", help="End date (YYYY-MM-DD).")
    p.add_argument("--category")

    p = finance_sub.add_parser("summary", help="Income and expense of a time range.")
    p.add_argument("--range", dest="time_range", choices=list(TIME_RANGES), default="today")

    p = finance_sub.add_parser("add", help="Record a transaction.")
    p.add_argument("--type", dest="type", choices=["income", "expense"], required=True)
    p.add_argument("--category", required=True)
    p.add_argument("--amount", type=float, required=True)
    p.add_argument("--date", help="Transaction date (YYYY-MM-DD). Defaults to today.")
    p.add_argument("--description", default="")
    p.add_argument("--payment-method", dest="payment_method")
    p.add_argument("--tags", help="Comma-separated tags.")
    p.add_argument("--invoice-number", dest="invoice_number")
    p.add_argument("--tax-rate", dest="tax_rate", type=float, default=0.0)

    p = finance_sub.add_parser("duplicate", help="Copy a transaction, dated today.")
    p.add_argument("record_id", type=int)

    _add_update_parser(finance_sub, "transaction", _TRANSACTION_FIELDS)
    _add_delete_parser(finance_sub, "transaction")

    # ------------------------------------------------------------------
    # inventory
    # ------------------------------------------------------------------
    inventory = subparsers.add_parser("inventory", help="Stock items.")
    inventory_sub = inventory.add_subparsers(dest="command", metavar="command")

    p = inventory_sub.add_parser("list", help="List inventory items.")
    p.add_argument("--view", choices=["all", "low", "out"], default="all")
    p.add_argument("--search", help="Search in name, SKU, category, supplier and barcode.")
    p.add_argument("--category")
    p.add_argument("--supplier")
    p.add_argument(
        "--sort",
        default="name-asc",
        help="Sort key: name|quantity|price|value followed by -asc or -desc.",
    )

    inventory_sub.add_parser("stats", help="Inventory statistics.")
    inventory_sub.add_parser("reorder", help="Items to reorder.")

    p = inventory_sub.add_parser("restock", help="Add units to an item.")
    p.add_argument("record_id", type=int)
    p.add_argument("amount", type=int)

    p = inventory_sub.add_parser("add", help="Create an inventory item.")
    p.add_argument("--name", required=True)
    p.add_argument("--category", required=True)
    p.add_argument("--sku", default="")
    p.add_argument("--quantity", type=int, default=0)
    p.add_argument("--min-quantity", dest="min_quantity", type=int, default=0)
    p.add_argument("--max-quantity", dest="max_quantity", type=int, default=100)
    p.add_argument("--price", type=float, default=0.0)
    p.add_argument("--cost-price", dest="cost_price", type=float)
    p.add_argument("--supplier")
    p.add_argument("--location")
    p.add_argument("--unit", default="pcs")
    p.add_argument("--barcode")
    p.add_argument("--warranty", type=int, default=0)
    p.add_argument("--description")

    _add_update_parser(inventory_sub, "item", _ITEM_FIELDS)
    _add_delete_parser(inventory_sub, "item")

    # ------------------------------------------------------------------
    # schedule
    # ------------------------------------------------------------------
    schedule = subparsers.add_parser("schedule", help="Technician shifts.")
    schedule_sub = schedule.add_subparsers(dest="command", metavar="command")

    p = schedule_sub.add_parser("list", help="Shifts grouped by day.")
    p.add_argument("--technician-id", dest="technician_id", type=int)

    p = schedule_sub.add_parser("week", help="Shifts of one week (Monday to Sunday).")
    p.add_argument("--date", help="Any day of the week (YYYY-MM-DD). Defaults to today.")
    p.add_argument("--technician-id", dest="technician_id", type=int)

    schedule_sub.add_parser("stats", help="Schedule statistics.")

    p = schedule_sub.add_parser("add", help="Create a shift (or recurring shifts).")
    p.add_argument("--technician-id", dest="technician_id", type=int, required=True)
    p.add_argument("--date", help="Shift date (YYYY-MM-DD). Defaults to today.")
    p.add_argument("--start", dest="start_time", default="09:00")
    p.add_argument("--end", dest="end_time", default="18:00")
    p.add_argument("--break-start", dest="break_start", default="13:00")
    p.add_argument("--break-end", dest="break_end", default="14:00")
    p.add_argument("--notes")
    p.add_argument(
        "--recurring-days",
        dest="recurring_days",
        help=(
            "Comma-separated ISO weekdays (1 = Monday ... 7 = Sunday). "
            "Creates one shift per matching day for one month."
        ),
    )

    p = schedule_sub.add_parser("duplicate", help="Copy a shift onto the next day.")
    p.add_argument("record_id", type=int)

    _add_update_parser(schedule_sub, "shift", _SHIFT_FIELDS)
    _add_delete_parser(schedule_sub, "shift")

    # ------------------------------------------------------------------
    # technicians
    # ------------------------------------------------------------------
    technicians = subparsers.add_parser("technicians", help="Technicians and workload.")
    technicians_sub = technicians.add_subparsers(dest="command", metavar="command")

    p = technicians_sub.add_parser("list", help="List technicians.")
    p.add_argument("--status", choices=["all", *TECHNICIAN_STATUSES], default="all")

    technicians_sub.add_parser("stats", help="Technician statistics.")

    p = technicians_sub.add_parser("add", help="Create a technician.")
    p.add_argument("--name", required=True)
    p.add_argument("--phone", default="")
    p.add_argument("--specialization", help="Comma-separated specializations.")
    p.add_argument("--status", choices=list(TECHNICIAN_STATUSES), default="available")
    p.add_argument("--max-workload", dest="max_workload", type=int)

    p = technicians_sub.add_parser("status", help="Change the status of a technician.")
    p.add_argument("record_id", type=int)
    p.add_argument("status", choices=list(TECHNICIAN_STATUSES))

    _add_delete_parser(technicians_sub, "technician")

    # ------------------------------------------------------------------
    # import / export
    # ------------------------------------------------------------------
    entities = sorted(ENTITY_COLUMNS)

    p = subparsers.add_parser("import", help="Import records from a CSV or JSON file.")
    p.add_argument("entity", choices=entities)
    p.add_argument("path")

    p = subparsers.add_parser("export", help="Export records to a CSV or JSON file.")
    p.add_argument("entity", choices=entities)
    p.add_argument("path")

    return ap


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _parse_optional_date(value: Optional[str]) -> Optional[date]:
    """
    Parse an optional CLI date argument (YYYY-MM-DD).

    Raises
    ------
    ValueError
        If the date format is invalid.
    """
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date format: {value!r}. Expected YYYY-MM-DD.") from exc


def _parse_int_list(value: Optional[str]) -> list[int]:
    if not value:
        return []
    try:
        return [int(part) for part in value.split(",") if part.strip()]
    except ValueError as exc:
        raise ValueError(f"Invalid list of integers: {value!r}.") from exc


def _parse_text_list(value: Optional[str]) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def _update_patch(args: argparse.Namespace, fields: list[tuple[str, str, type]]) -> dict:
    """
    Collect the fields given to an update command.

    Dates are parsed and comma-separated lists are split. An empty patch is
    rejected.
    """
    patch = {}
    for _flag, dest, _kind in fields:
        if not hasattr(args, dest):
            continue
        value = getattr(args, dest)
        if dest == "date":
            value = _parse_optional_date(value)
        elif dest in {"tags", "specialization"}:
            value = _parse_text_list(value)
        patch[dest] = value
    if not patch:
        options = ", ".join(flag for flag, _dest, _kind in fields)
        raise ValueError(f"Nothing to update. Use at least one of: {options}.")
    return patch


def _confirm(prompt: str, assume_yes: bool) -> bool:
    if assume_yes:
        return True
    answer = input(f"{prompt} [y/N] ").strip().lower()
    return answer in {"y", "yes"}


def _render(
    outputs: list[Output],
    display_mode: str,
    output_dir: Optional[str],
    heading: Optional[str] = None,
) -> None:
    """
    Print tables and / or write CSV files for every output.

    In table mode, `heading` (the business name) is printed once above the
    tables.
    """
    if display_mode in {"table", "both"}:
        if heading:
            print(f"##### {heading} #####")
        for title, _stem, df in outputs:
            print()
            print(f"=== {title} ===")
            if df.empty:
                print("(no rows)")
            else:
                print(df.to_string(index=False))

    if display_mode in {"csv", "both"}:
        target_dir = Path(output_dir) if output_dir else Path("data/output")
        target_dir.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y-%m-%d-%H-%M-%S")
        for _title, stem, df in outputs:
            path = target_dir / f"{stem}_{timestamp}.csv"
            df.to_csv(path, index=False)
            print(f"Wrote {path} ({len(df)} rows)")


def _sort(df: pd.DataFrame, sort_key: str, fields: dict[str, str]) -> pd.DataFrame:
    field, direction = parse_sort_key(sort_key)
    if field not in fields:
        raise ValueError(
            f"Unknown sort field {field!r}. Expected one of: {', '.join(fields)}."
        )
    if df.empty:
        return df
    return sort_records(df, fields[field], direction)


# ---------------------------------------------------------------------------
# clients
# ---------------------------------------------------------------------------


def _handle_clients_command(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    service = get_service(config, "clients")
    decimals = config.decimals

    if args.command == "list":
        df = filter_clients(service.get_all(), args.search, args.segment, args.sort)
        if not df.empty:
            counts = client_repair_counts(service, get_service(config, "repairs"))
            df["repairs"] = df["id"].map(counts).fillna(0).astype(int)
        columns = [
            "id",
            "name",
            "phone",
            "email",
            "total_orders",
            "total_spent",
            "segment",
            "repairs",
        ]
        return [("Clients", "clients", list_view(df, "clients", columns, decimals))]

    if args.command == "stats":
        stats = compute_client_stats(service.get_all())
        top = list_view(stats.top_clients, "clients", decimals=decimals)
        return [
            (
                "Client statistics",
                "clients_stats",
                client_stats_frame(stats, decimals, config.currency),
            ),
            ("Top clients", "clients_top", top),
        ]

    if args.command == "add":
        record = service.create(
            {
                "name": args.name,
                "phone": args.phone,
                "email": args.email,
                "address": args.address,
                "notes": args.notes,
                "company": args.company,
                "tax_id": args.tax_id,
                "discount_percent": args.discount_percent,
                "total_orders": args.total_orders,
                "total_spent": args.total_spent,
            }
        )
        print(f"Created client #{record.id}: {record.name}")
        return []

    if args.command == "update":
        return _update(service, args, _CLIENT_FIELDS, "client")

    if args.command == "delete":
        return _delete(service, args, "client")

    print(
        "No clients command specified. Available commands are: "
        "list, stats, add, update, delete."
    )
    return []


def _delete(service, args: argparse.Namespace, what: str) -> list[Output]:
    record = service.require(args.record_id)
    if not _confirm(f"Delete {what} #{record.id}?", args.yes):
        print("Cancelled.")
        return []
    service.delete(record.id)
    print(f"Deleted {what} #{record.id}.")
    return []


def _update(
    service,
    args: argparse.Namespace,
    fields: list[tuple[str, str, type]],
    what: str,
) -> list[Output]:
    record = service.update(args.record_id, _update_patch(args, fields))
    print(f"Updated {what} #{record.id}.")
    return []


# ---------------------------------------------------------------------------
# finance
# ---------------------------------------------------------------------------

_FINANCE_SORT_FIELDS = {"date": "date", "amount": "amount", "category": "category"}


def _handle_finance_command(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    service = get_service(config, "transactions")
    decimals = config.decimals

    if args.command in {"list", "stats"}:
        period = custom_period(args.from_date, args.to_date)
        start, end = (period.start, period.end) if period else (None, None)
        suffix = f" - {period.label}" if period else ""

    if args.command == "list":
        df = filter_transactions(service.get_all(), start, end, args.category)
        df = filter_exact(df, "type", args.type)
        df = search_records(df, args.search, FINANCE_SEARCH_FIELDS)
        df = _sort(df, args.sort, _FINANCE_SORT_FIELDS)
        frame = list_view(df, "transactions", decimals=decimals)
        return [(f"Transactions{suffix}", "transactions", frame)]

    if args.command == "stats":
        stats = compute_finance_stats(
            service.get_all(),
            start=start,
            end=end,
            category=args.category,
            recent_days=config.finance.recent_days,
            monthly_buckets=config.finance.monthly_buckets,
        )
        return [
            (
                f"Finance statistics{suffix}",
                "finance_stats",
                finance_stats_frame(stats, decimals, config.currency),
            ),
            ("By category", "finance_by_category", stats.by_category.round(decimals)),
            (
                "By payment method",
                "finance_by_payment_method",
                stats.by_payment_method.round(decimals),
            ),
            (
                f"Last {config.finance.recent_days} days",
                "finance_daily",
                list_view(stats.daily, "daily", decimals=decimals),
            ),
            ("Monthly", "finance_monthly", stats.monthly.round(decimals)),
        ]

    if args.command == "summary":
        summary = period_summary(service.get_all(), args.time_range)
        title = (
            f"{summary.period.label} "
            f"({summary.period.start.isoformat()} → {summary.period.end.isoformat()})"
        )
        stem = f"finance_summary_{args.time_range}"
        return [(title, stem, period_summary_frame(summary, decimals, config.currency))]

    if args.command == "add":
        record = service.create(
            {
                "type": args.type,
                "category": args.category,
                "amount": args.amount,
                "date": _parse_optional_date(args.date) or _today(),
                "description": args.description,
                "payment_method": args.payment_method,
                "tags": _parse_text_list(args.tags),
                "invoice_number": args.invoice_number,
                "tax_rate": args.tax_rate,
            }
        )
        print(f"Created {record.type} #{record.id}: {record.amount:.2f} ({record.category})")
        return []

    if args.command == "duplicate":
        record = duplicate_transaction(service, args.record_id)
        print(
            f"Duplicated transaction #{args.record_id} as #{record.id} "
            f"({record.date.isoformat()})"
        )
        return []

    if args.command == "update":
        return _update(service, args, _TRANSACTION_FIELDS, "transaction")

    if args.command == "delete":
        return _delete(service, args, "transaction")

    print(
        "No finance command specified. Available commands are: "
        "list, stats, summary, add, duplicate, update, delete."
    )
    return []


# ---------------------------------------------------------------------------
# inventory
# ---------------------------------------------------------------------------

_INVENTORY_SORT_FIELDS = {
    "name": "name",
    "quantity": "quantity",
    "price": "price",
    "value": "value",
}


def _handle_inventory_command(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    service = get_service(config, "inventory")
    decimals = config.decimals

    if args.command == "list":
        df = filter_by_stock_view(service.get_all(), args.view)
        df = search_records(df, args.search, INVENTORY_SEARCH_FIELDS)
        df = filter_exact(df, "category", args.category)
        df = filter_exact(df, "supplier", args.supplier)
        df = _sort(df, args.sort, _INVENTORY_SORT_FIELDS)
        if not df.empty:
            df = df.assign(
                fill_pct=[
                    fill_percentage(int(quantity), None if pd.isna(capacity) else int(capacity))
                    for quantity, capacity in zip(df["quantity"], df["max_quantity"])
                ],
                margin_pct=[
                    margin_percent(float(price), None if pd.isna(cost) else float(cost))
                    for price, cost in zip(df["price"], df["cost_price"])
                ],
            )
        columns = [
            "id",
            "name",
            "sku",
            "category",
            "quantity",
            "min_quantity",
            "max_quantity",
            "fill_pct",
            "price",
            "margin_pct",
            "status",
        ]
        return [("Inventory", "inventory", list_view(df, "inventory", columns, decimals))]

    if args.command == "stats":
        stats = compute_inventory_stats(service.get_all())
        return [
            (
                "Inventory statistics",
                "inventory_stats",
                inventory_stats_frame(stats, decimals, config.currency),
            ),
            ("By category", "inventory_by_category", stats.by_category.round(decimals)),
            ("By supplier", "inventory_by_supplier", stats.by_supplier.round(decimals)),
            (
                "Top items by value",
                "inventory_top_items",
                list_view(
                    stats.top_items,
                    "inventory",
                    ["id", "name", "quantity", "price", "value"],
                    decimals,
                ),
            ),
        ]

    if args.command == "reorder":
        df = reorder_list(service.get_all())
        return [("Items to reorder", "inventory_reorder", df)]

    if args.command == "restock":
        record = restock_item(service, args.record_id, args.amount)
        print(f"Restocked item #{record.id} ({record.name}): quantity is now {record.quantity}")
        return []

    if args.command == "add":
        record = service.create(
            {
                "name": args.name,
                "category": args.category,
                "sku": args.sku,
                "quantity": args.quantity,
                "min_quantity": args.min_quantity,
                "max_quantity": args.max_quantity,
                "price": args.price,
                "cost_price": args.cost_price,
                "supplier": args.supplier,
                "location": args.location,
                "unit": args.unit,
                "barcode": args.barcode,
                "warranty": args.warranty,
                "description": args.description,
            }
        )
        print(f"Created item #{record.id}: {record.name}")
        return []

    if args.command == "update":
        return _update(service, args, _ITEM_FIELDS, "item")

    if args.command == "delete":
        return _delete(service, args, "item")

    print(
        "No inventory command specified. Available commands are: "
        "list, stats, reorder, restock, add, update, delete."
    )
    return []


# ---------------------------------------------------------------------------
# schedule
# ---------------------------------------------------------------------------


def _handle_schedule_command(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    service = get_service(config, "schedules")
    decimals = config.decimals

    if args.command == "list":
        df = service.get_all()
        df = filter_exact(df, "technician_id", args.technician_id)
        repairs = get_service(config, "repairs").get_all()

        frames = []
        for day, shifts in group_by_date(df):
            shifts = shifts.assign(hours=shift_hours(shifts).map(lambda h: round_half_up(h, 1)))
            shifts["repairs"] = [
                len(repairs_for_technician_on(repairs, tech_id, day))
                for tech_id in shifts["technician_id"]
            ]
            frames.append(shifts)
        out = pd.concat(frames) if frames else df.assign(hours=pd.Series(dtype=float))
        columns = [
            "id",
            "date",
            "technician_name",
            "start_time",
            "end_time",
            "hours",
            "repairs",
            "notes",
        ]
        return [("Shifts", "schedules", list_view(out, "schedules", columns, decimals))]

    if args.command == "week":
        selected = _parse_optional_date(args.date) or _today()
        rows = []
        for day, shifts in week_schedules(service.get_all(), selected, args.technician_id):
            names = sorted(set(shifts["technician_name"])) if len(shifts) else []
            rows.append(
                {
                    "date": day.isoformat(),
                    "weekday": day.strftime("%A"),
                    "shifts": len(shifts),
                    "hours": round_half_up(float(shift_hours(shifts).sum()), 1),
                    "technicians": ", ".join(names),
                }
            )
        return [(f"Week of {rows[0]['date']}", "schedule_week", pd.DataFrame(rows))]

    if args.command == "stats":
        stats = compute_schedule_stats(service.get_all())
        per_tech = pd.DataFrame(
            sorted(
                stats.shifts_per_technician.items(),
                key=lambda item: (-item[1], item[0].casefold()),
            ),
            columns=["technician", "shifts"],
        )
        return [
            ("Schedule statistics", "schedule_stats", schedule_stats_frame(stats, decimals)),
            ("Shifts per technician", "schedule_per_technician", per_tech),
        ]

    if args.command == "add":
        created = create_schedule(
            service,
            get_service(config, "technicians"),
            {
                "technician_id": args.technician_id,
                "date": _parse_optional_date(args.date) or _today(),
                "start_time": args.start_time,
                "end_time": args.end_time,
                "break_start": args.break_start,
                "break_end": args.break_end,
                "notes": args.notes,
            },
            recurring_days=_parse_int_list(args.recurring_days),
        )
        print(f"Created {len(created)} shift(s) for {created[0].technician_name}.")
        return []

    if args.command == "duplicate":
        record = duplicate_schedule(service, args.record_id)
        print(f"Duplicated shift #{args.record_id} as #{record.id} ({record.date.isoformat()})")
        return []

    if args.command == "update":
        record = update_schedule(
            service,
            get_service(config, "technicians"),
            args.record_id,
            _update_patch(args, _SHIFT_FIELDS),
        )
        print(f"Updated shift #{record.id} ({record.technician_name}).")
        return []

    if args.command == "delete":
        return _delete(service, args, "shift")

    print(
        "No schedule command specified. Available commands are: "
        "list, week, stats, add, duplicate, update, delete."
    )
    return []


# ---------------------------------------------------------------------------
# technicians
# ---------------------------------------------------------------------------


def _handle_technicians_command(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    service = get_service(config, "technicians")
    decimals = config.decimals

    if args.command == "list":
        df = filter_exact(service.get_all(), "status", args.status)
        if not df.empty:
            df = df.assign(
                workload_pct=[
                    workload_percent(current, capacity, config.default_max_workload)
                    for current, capacity in zip(df["current_workload"], df["max_workload"])
                ]
            )
        columns = [
            "id",
            "name",
            "phone",
            "specialization",
            "status",
            "current_workload",
            "max_workload",
            "workload_pct",
            "rating",
        ]
        return [("Technicians", "technicians", list_view(df, "technicians", columns, decimals))]

    if args.command == "stats":
        stats = compute_technician_stats(service.get_all(), config.default_max_workload)
        frame = technician_stats_frame(stats, decimals)
        return [("Technician statistics", "technicians_stats", frame)]

    if args.command == "add":
        record = service.create(
            {
                "name": args.name,
                "phone": args.phone,
                "specialization": _parse_text_list(args.specialization),
                "status": args.status,
                "max_workload": args.max_workload or config.default_max_workload,
            }
        )
        print(f"Created technician #{record.id}: {record.name}")
        return []

    if args.command == "status":
        record = service.update(args.record_id, {"status": args.status})
        print(f"Technician #{record.id} ({record.name}) is now {record.status}.")
        return []

    if args.command == "delete":
        return _delete(service, args, "technician")

    print(
        "No technicians command specified. Available commands are: "
        "list, stats, add, status, delete."
    )
    return []


# ---------------------------------------------------------------------------
# import / export
# ---------------------------------------------------------------------------


def _handle_import(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    path = Path(args.path)
    print(f"Importing {args.entity} from {path} into the database...")
    df = read_records(path, args.entity)
    stats = import_records(get_service(config, args.entity), df, source_label=str(path))
    print(f"Imported batch #{stats.batch_id}: {stats.rows_inserted} {args.entity} record(s).")
    return []


def _handle_export(args: argparse.Namespace, config: AppConfig) -> list[Output]:
    df = export_records(get_service(config, args.entity))
    path = write_records(df, args.path)
    print(f"Exported {len(df)} {args.entity} record(s) to {path}")
    return []


_HANDLERS = {
    "clients": _handle_clients_command,
    "finance": _handle_finance_command,
    "inventory": _handle_inventory_command,
    "schedule": _handle_schedule_command,
    "technicians": _handle_technicians_command,
    "import": _handle_import,
    "export": _handle_export,
}

_SECTION_ENTITY = {
    "clients": "clients",
    "finance": "transactions",
    "inventory": "inventory",
    "schedule": "schedules",
    "technicians": "technicians",
}


def _configure_logging(level: str, verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else getattr(logging, level),
        format="%(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the SMB Desk CLI.

    This function parses command-line arguments, loads the application
    configuration, configures logging, initializes the database and
    dispatches to the requested section command. Results are rendered as
    console tables and / or CSV files depending on the display mode.

    Returns the process exit status (0 on success, 1 on error).
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    # --version: short-circuit and exit early.
    if args.version:
        print(f"smb_desk version {__version__}")
        return 0

    if args.section is None:
        parser.print_help()
        return 0

    try:
        # 1) Load application configuration
        if args.config_path:
            config = load_app_config(args.config_path)
        else:
            config = load_app_config()

        _configure_logging(config.log_level, args.verbose)
        logger.debug("Running %s %s", args.section, getattr(args, "command", "") or "")

        # 2) Initialize the database (create file and schema if needed)
        init_database(config.database)

        entity = _SECTION_ENTITY.get(args.section)
        if entity is not None and getattr(args, "command", None) in {"list", "stats"}:
            if not has_records(config.database, entity):
                print(f"Warning: no {entity} recorded yet, use 'import {entity} PATH' or 'add'.")

        # 3) Run the command
        outputs = _HANDLERS[args.section](args, config)
    except (ValueError, RecordNotFoundError, FileNotFoundError) as exc:
        # ValidationError is a ValueError.
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # 4) Render
    if outputs:
        display_mode = args.display_mode or config.display_mode
        _render(outputs, display_mode, args.output_dir, heading=config.business_name)

    return 0


if __name__ == "__main__":
    sys.exit(main())
