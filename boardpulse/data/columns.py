"""
Schema-agnostic column resolution and typed row accessors.

Board column names vary between deployments ("Deal Value", "Masked Deal
Value", "value"...). Metrics code never indexes rows by a fixed name; it
resolves a column from a candidate list first and reads through the
accessors below.
"""
from __future__ import annotations

import math
import numbers
from typing import Any, Iterable, Mapping, Sequence

import numpy as np

RESERVED_KEYS = ("_id", "_name")
CURRENCY_SUFFIX = "_currency"


def data_columns(row: Mapping[str, Any]) -> list[str]:
    """Column titles of a normalized row, without reserved and currency-sibling keys."""
    keys = list(row.keys())
    present = set(keys)
    return [
        k for k in keys
        if k not in RESERVED_KEYS
        and not (k.endswith(CURRENCY_SUFFIX) and k[: -len(CURRENCY_SUFFIX)] in present)
    ]


def find_column(rows: Sequence[Mapping[str, Any]], candidates: Iterable[str]) -> str | None:
    """Best-matching column title for a list of candidate names.

    Exact case-insensitive match on any candidate first, then substring
    match; candidate order is priority order in both passes.
    """
    if not rows:
        return None
    titles = data_columns(rows[0])
    lowered = [(t, t.lower()) for t in titles]
    candidates = [c.lower() for c in candidates]

    for cand in candidates:
        for title, low in lowered:
            if low == cand:
                return title
    for cand in candidates:
        for title, low in lowered:
            if cand in low:
                return title
    return None


def is_number(value: Any) -> bool:
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, numbers.Real):
        return False
    return not math.isnan(value)


def number_at(row: Mapping[str, Any], column: str | None) -> float | None:
    """Numeric cell value, or None when the column is unresolved or non-numeric."""
    if column is None:
        return None
    value = row.get(column)
    return float(value) if is_number(value) else None


def text_at(row: Mapping[str, Any], column: str | None) -> str | None:
    if column is None:
        return None
    value = row.get(column)
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    return str(value) or None


def row_text(row: Mapping[str, Any]) -> str:
    """All string-valued cells of a row joined with spaces, lower-cased."""
    return " ".join(v for v in row.values() if isinstance(v, str)).lower()
