"""
Safe math and frame helpers used across all analytics modules.
"""
from __future__ import annotations

import math
from typing import Any, Mapping, Sequence

import numpy as np
import pandas as pd

from boardpulse.data.columns import RESERVED_KEYS


def safe_divide(numerator: float, denominator: float, default: float | None = 0.0) -> float | None:
    """Divide safely, returning default if denominator is zero or NaN."""
    if denominator == 0 or pd.isna(denominator):
        return default
    result = numerator / denominator
    return default if pd.isna(result) else result


def rows_frame(rows: Sequence[Mapping[str, Any]]) -> pd.DataFrame:
    """Normalized rows as a DataFrame of object columns (values untouched)."""
    if not rows:
        return pd.DataFrame(columns=list(RESERVED_KEYS))
    return pd.DataFrame.from_records(list(rows)).astype(object)


def numeric_column(df: pd.DataFrame, column: str | None) -> pd.Series:
    """Numeric view of a column; non-numeric cells and unresolved columns become 0."""
    if column is None or column not in df.columns:
        return pd.Series(0.0, index=df.index)
    values = df[column].map(lambda v: v if isinstance(v, (int, float, np.number)) and not isinstance(v, (bool, np.bool_)) else np.nan)
    return pd.to_numeric(values, errors="coerce").fillna(0.0)


def label_column(df: pd.DataFrame, column: str | None, missing: str = "Unknown") -> pd.Series:
    """String view of a column; blanks and unresolved columns become `missing`."""
    if column is None or column not in df.columns:
        return pd.Series(missing, index=df.index, dtype=object)
    return df[column].map(lambda v: missing if v is None or v == "" or (isinstance(v, float) and math.isnan(v)) else str(v))


def text_matches(labels: pd.Series, pattern: str) -> pd.Series:
    """Case-insensitive regex search over a label series."""
    if labels.empty:
        return pd.Series(False, index=labels.index, dtype=bool)
    return labels.astype(str).str.contains(pattern, case=False, regex=True, na=False)


def distribution(labels: pd.Series) -> dict[str, int]:
    """Counts per label, in first-seen order."""
    if labels.empty:
        return {}
    return {str(k): int(v) for k, v in labels.groupby(labels, sort=False).size().items()}


def _finite(value: float) -> float:
    return 0.0 if math.isnan(value) or math.isinf(value) else value


def _json_key(key) -> str | None:
    if key is None or (isinstance(key, (float, np.floating)) and not math.isfinite(float(key))):
        return None
    return key if isinstance(key, str) else str(key)


def sanitize_for_json(obj):
    """Plain-JSON copy of a result payload.

    numpy scalars become Python numbers, NaN/inf floats become 0.0, pandas NA
    becomes None, sets become sorted lists. Entries with None or NaN keys are dropped.
    """
    if isinstance(obj, Mapping):
        pairs = ((_json_key(k), v) for k, v in obj.items())
        return {k: sanitize_for_json(v) for k, v in pairs if k is not None}
    if isinstance(obj, (set, frozenset)):
        return sorted(sanitize_for_json(v) for v in obj)
    if isinstance(obj, (list, tuple, np.ndarray)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, (float, np.floating)):
        return _finite(float(obj))
    if pd.api.types.is_scalar(obj) and pd.isna(obj):
        return None
    return obj
