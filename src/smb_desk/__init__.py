# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
SMB Desk
--------

A Python-based management dashboard for small service businesses (repair
shops, workshops, studios). It keeps clients, financial transactions,
inventory, technicians and staff schedules in a local SQLite database and
derives the statistics each section of the dashboard needs.

Main capabilities:
- CRUD services over a local SQLite store (clients, transactions,
  inventory items, technicians, schedules, repairs),
- client segmentation (new / regular / VIP) and top-client ranking,
- finance aggregation (balance, profit margin, category and payment-method
  breakdowns, daily and monthly series),
- inventory stock analysis (stock status, valuation, reorder lists),
- schedule and workload computation (worked hours, busiest technician,
  recurring shifts),
- CSV / JSON import and export of entity records.

SMB Desk separates computation (section modules), configuration (TOML),
storage (db / services) and presentation (CLI), so every statistic can be
computed and tested on a plain pandas DataFrame.


Version: 0.2.0

Usage:
    python -m smb_desk.cli --help
"""

__all__ = ["clients", "finance", "inventory", "schedule", "technicians"]

__version__ = "0.2.0"
