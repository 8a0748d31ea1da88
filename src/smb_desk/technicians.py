# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""Technician workload and status summary."""

from dataclasses import dataclass
from typing import Optional

import pandas as pd

from .models import TECHNICIAN_STATUSES, round_half_up

DEFAULT_MAX_WORKLOAD = 5


@dataclass(frozen=True)
class TechnicianStats:
    total: int
    available: int
    busy: int
    offline: int
    on_shift: int
    total_repairs: int
    avg_rating: float
    capacity_percent: float


def workload_percent(
    current_workload: Optional[int],
    max_workload: Optional[int],
    default_max_workload: int = DEFAULT_MAX_WORKLOAD,
) -> int:
    """Current workload relative to capacity, rounded to a whole percent."""
    capacity = max_workload or default_max_workload
    return round_half_up((current_workload or 0) / capacity * 100)


def compute_technician_stats(
    technicians: pd.DataFrame,
    default_max_workload: int = DEFAULT_MAX_WORKLOAD,
) -> TechnicianStats:
    """
    Summarize the technicians snapshot.

    "On shift" counts available and busy technicians. The capacity percent
    is the sum of current workloads over the sum of capacities, a missing
    capacity counting as `default_max_workload`.
    """
    total = len(technicians)
    if not total:
        return TechnicianStats(0, 0, 0, 0, 0, 0, 0.0, 0.0)

    counts = technicians["status"].value_counts()
    by_status = {status: int(counts.get(status, 0)) for status in TECHNICIAN_STATUSES}

    workload = technicians["current_workload"].fillna(0).astype(int)
    capacity = technicians["max_workload"].fillna(0).astype(int)
    capacity = capacity.mask(capacity <= 0, default_max_workload)
    total_capacity = int(capacity.sum())

    return TechnicianStats(
        total=total,
        available=by_status["available"],
        busy=by_status["busy"],
        offline=by_status["offline"],
        on_shift=by_status["available"] + by_status["busy"],
        total_repairs=int(technicians["completed_repairs"].fillna(0).astype(int).sum()),
        avg_rating=float(technicians["rating"].fillna(0.0).astype(float).mean()),
        capacity_percent=(
            float(workload.sum()) / total_capacity * 100 if total_capacity else 0.0
        ),
    )
