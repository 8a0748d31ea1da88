# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Configuration helpers for SMB Desk.

This module is responsible for:
- loading the main application configuration from a TOML file,
- validating section values and applying defaults,
- exposing typed dataclasses used by the rest of the application.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

try:
    import tomllib  # Python 3.11+
except ModuleNotFoundError:  # pragma: no cover - fallback for older Python
    import tomli as tomllib  # type: ignore[import]

from .db import DatabaseConfig

DEFAULT_CONFIG_FILE = "smb_desk_config.toml"

_DISPLAY_MODES = {"table", "csv", "both"}
_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class FinanceOptions:
    """Windows used by the finance time series."""

    recent_days: int = 30
    monthly_buckets: int = 12


@dataclass(frozen=True)
class AppConfig:
    """
    Application-wide configuration for SMB Desk.

    This aggregates:
    - the business identity (name, currency),
    - the database configuration (where records are stored),
    - finance series windows,
    - the default technician capacity,
    - display options for tables and CSV output,
    - the logging level.
    """

    business_name: str
    currency: str
    database: DatabaseConfig
    finance: FinanceOptions
    default_max_workload: int
    display_mode: str
    decimals: int
    log_level: str


def _load_toml(path: Path) -> dict[str, Any]:
    """
    Load a TOML file and return its content as a dictionary.

    Raises:
        FileNotFoundError: if the file does not exist.
        ValueError: if the TOML content cannot be parsed or is not a table.
    """
    if not path.is_file():
        raise FileNotFoundError(f"Config file not found: {path}")

    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:  # noqa: BLE001
        raise ValueError(f"Failed to parse TOML config file: {path}") from exc

    if not isinstance(data, dict):
        raise ValueError(f"Invalid TOML root type in {path}, expected a table.")

    return data


def _section(raw: Mapping[str, Any], name: str) -> Mapping[str, Any]:
    """Return a TOML table, or an empty mapping if it is missing or invalid."""
    section = raw.get(name) or {}
    if not isinstance(section, Mapping):
        return {}
    return section


def _positive_int(section: Mapping[str, Any], key: str, default: int, where: str) -> int:
    raw = section.get(key, default)
    try:
        value = int(raw)
    except (TypeError, ValueError) as exc:
        raise ValueError(
            f"Invalid value for '{where}.{key}' in the configuration. "
            "Expected an integer."
        ) from exc
    if value <= 0:
        raise ValueError(f"'{where}.{key}' must be a positive integer, got {value}.")
    return value


def load_app_config(config_path: Optional[str] = None) -> AppConfig:
    """
    Load the SMB Desk application configuration from a TOML file.

    Expected top-level sections in the TOML file
    --------------------------------------------
    [business]
        Business name and display currency.

    [database]
        Database engine and SQLite file path (relative paths are resolved
        against the directory of the TOML file).

    [finance]
        recent_days (daily series window) and monthly_buckets (number of
        months kept in the monthly series).

    [technicians]
        default_max_workload, used when a technician has no capacity set.

    [display]
        mode ("table", "csv" or "both") and decimals for rounded values.

    [logging]
        level ("DEBUG", "INFO", "WARNING", ...).

    Every section is optional; missing values fall back to defaults.

    Parameters
    ----------
    config_path : str, optional
        Path to the TOML configuration file. Defaults to
        'smb_desk_config.toml' in the current working directory.

    Returns
    -------
    AppConfig
        Parsed and validated application configuration.
    """
    if config_path is None:
        config_file = Path(DEFAULT_CONFIG_FILE).resolve()
    else:
        config_file = Path(config_path).resolve()

    raw = _load_toml(config_file)
    base_dir = config_file.parent

    # 1) Business section
    business_section = _section(raw, "business")
    business_name = str(business_section.get("name") or "SMB Desk")
    currency = str(business_section.get("currency") or "EUR")

    # 2) Database section
    database_section = _section(raw, "database")
    db_engine = str(database_section.get("engine") or "sqlite")
    db_path_raw = database_section.get("path") or "data/db/smb_desk.sqlite"
    db_path = (base_dir / str(db_path_raw)).resolve()

    database_config = DatabaseConfig(engine=db_engine, path=db_path)

    # 3) Finance section
    finance_section = _section(raw, "finance")
    finance = FinanceOptions(
        recent_days=_positive_int(finance_section, "recent_days", 30, "finance"),
        monthly_buckets=_positive_int(
            finance_section, "monthly_buckets", 12, "finance"
        ),
    )

    # 4) Technicians section
    technicians_section = _section(raw, "technicians")
    default_max_workload = _positive_int(
        technicians_section, "default_max_workload", 5, "technicians"
    )

    # 5) Display options
    display_section = _section(raw, "display")
    display_mode = str(display_section.get("mode", "table"))
    if display_mode not in _DISPLAY_MODES:
        raise ValueError(
            f"Invalid display.mode {display_mode!r}. "
            f"Expected one of: {', '.join(sorted(_DISPLAY_MODES))}."
        )
    try:
        decimals = int(display_section.get("decimals", 2))
    except (TypeError, ValueError):
        decimals = 2

    # 6) Logging
    logging_section = _section(raw, "logging")
    log_level = str(logging_section.get("level", "WARNING")).upper()
    if log_level not in _LOG_LEVELS:
        raise ValueError(f"Invalid logging.level {log_level!r}.")

    return AppConfig(
        business_name=business_name,
        currency=currency,
        database=database_config,
        finance=finance,
        default_max_workload=default_max_workload,
        display_mode=display_mode,
        decimals=decimals,
        log_level=log_level,
    )
