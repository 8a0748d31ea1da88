# SMB Desk - Business Management Dashboard for SMBs
# Copyright (c) 2025 Maxence Bernard (maxencebernardhub)
# Licensed under the MIT License. See LICENSE file for details.

"""
Generic filter and sort helpers shared by every dashboard section.

All helpers take a snapshot DataFrame and return a new DataFrame; the input
is never modified. There is no pagination and no index structure: each call
recomputes from the full snapshot.

- search_records: case-insensitive substring match over a set of fields,
- filter_exact:   exact match on one column ("all" / None disables it),
- sort_records:   stable sort, numeric or case-folded string comparison,
- parse_sort_key: split a UI sort key such as "spent-desc".
"""

from collections.abc import Sequence
from typing import Any, Optional

import pandas as pd

SORT_DIRECTIONS = ("asc", "desc")


def _as_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and pd.isna(value)):
        return ""
    return str(value)


def search_records(
    records: pd.DataFrame,
    query: Optional[str],
    fields: Sequence[str],
) -> pd.DataFrame:
    """
    Keep the rows where at least one of `fields` contains `query`.

    Matching is a case-insensitive substring test. Missing values never
    match. An empty or None query returns a copy of the snapshot.
    """
    if not query or records.empty:
        return records.copy()

    needle = query.casefold()
    mask = pd.Series(False, index=records.index)
    for name in fields:
        if name not in records.columns:
            continue
        values = records[name].map(_as_text)
        mask |= values.str.casefold().str.contains(needle, regex=False)
    return records.loc[mask].copy()


def filter_exact(records: pd.DataFrame, column: str, value: Any) -> pd.DataFrame:
    """
    Keep the rows whose `column` equals `value`.

    `None`, "" and "all" mean "no filter" and return a copy of the snapshot.
    """
    if value is None or value == "" or value == "all" or records.empty:
        return records.copy()
    return records.loc[records[column] == value].copy()


def parse_sort_key(sort_key: str) -> tuple[str, str]:
    """
    Split a sort key of the form "<field>-<direction>".

    >>> parse_sort_key("spent-desc")
    ('spent', 'desc')
    """
    field, sep, direction = sort_key.rpartition("-")
    if not sep or not field or direction not in SORT_DIRECTIONS:
        raise ValueError(
            f"Invalid sort key {sort_key!r}. Expected '<field>-asc' or '<field>-desc'."
        )
    return field, direction


def _text_key(values: pd.Series) -> pd.Series:
    return values.map(_as_text).str.casefold()


def sort_records(
    records: pd.DataFrame,
    column: str,
    direction: str = "asc",
) -> pd.DataFrame:
    """
    Return the snapshot sorted on one column.

    Numeric and datetime columns are compared by value. Any other column
    is compared as case-folded text, so "alice" and "Bob" sort the way a
    reader expects. The sort is stable: ties keep the snapshot order, in
    both directions.

    Raises:
        ValueError: if the direction is not "asc" or "desc".
        KeyError: if the column does not exist.
    """
    if direction not in SORT_DIRECTIONS:
        raise ValueError(f"Invalid sort direction: {direction!r}")
    if column not in records.columns:
        raise KeyError(column)

    ascending = direction == "asc"
    series = records[column]
    if pd.api.types.is_numeric_dtype(series) or pd.api.types.is_datetime64_any_dtype(
        series
    ):
        return records.sort_values(column, ascending=ascending, kind="stable")

    return records.sort_values(
        column, ascending=ascending, kind="stable", key=_text_key
    )
