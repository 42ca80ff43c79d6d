"""
Work-order analytics — execution state, overdue, durations, billing and collection.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Optional, Sequence

import numpy as np
import pandas as pd

from boardpulse.analytics.common import (
    distribution,
    label_column,
    numeric_column,
    rows_frame,
    safe_divide,
    text_matches,
)
from boardpulse.config import WO_COMPLETED_RE, WO_NOT_STARTED_RE, WO_ONGOING_RE, WORK_ORDER_COLUMNS
from boardpulse.data.columns import find_column
from boardpulse.data.normalize import canonicalize_sector, parse_date


@dataclass(frozen=True)
class WorkOrderMetrics:
    open: int = 0
    closed: int = 0
    completed: int = 0
    not_started: int = 0
    ongoing: int = 0
    overdue: int = 0
    total_days: float = 0.0
    valid_duration_pairs: int = 0
    total_amount: float = 0.0
    total_billed: float = 0.0
    total_collected: float = 0.0
    execution_status_distribution: dict[str, int] = field(default_factory=dict)
    billing_status_distribution: dict[str, int] = field(default_factory=dict)
    sector_distribution: dict[str, int] = field(default_factory=dict)
    nature_of_work_distribution: dict[str, int] = field(default_factory=dict)
    total: int = field(init=False, default=0)
    completion_pct: float = field(init=False, default=0.0)
    collection_rate: float = field(init=False, default=0.0)
    avg_completion_days: Optional[float] = field(init=False, default=None)

    def __post_init__(self) -> None:
        total = self.open + self.closed
        object.__setattr__(self, "total", total)
        object.__setattr__(self, "completion_pct", safe_divide(self.closed, total))
        object.__setattr__(self, "collection_rate", safe_divide(self.total_collected, self.total_amount))
        object.__setattr__(
            self, "avg_completion_days", safe_divide(self.total_days, self.valid_duration_pairs, default=None)
        )

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_work_order_columns(rows: Sequence[Mapping[str, Any]]) -> dict[str, str | None]:
    return {key: find_column(rows, candidates) for key, candidates in WORK_ORDER_COLUMNS.items()}


def _dates(df: pd.DataFrame, column: str | None) -> pd.Series:
    if column is None:
        return pd.Series(None, index=df.index, dtype=object)
    return df[column].map(parse_date)


def compute_work_order_metrics(
    rows: Sequence[Mapping[str, Any]],
    today: dt.date | None = None,
) -> WorkOrderMetrics:
    """Aggregate a normalized work-orders board.

    Each row lands in exactly one execution bucket: completed, not started,
    ongoing or other open. Open rows whose end date is before `today` are
    overdue.
    """
    today = today or dt.date.today()
    cols = resolve_work_order_columns(rows)
    df = rows_frame(rows)

    statuses = label_column(df, cols["execution_status"])
    is_completed = text_matches(statuses, WO_COMPLETED_RE)
    is_not_started = ~is_completed & text_matches(statuses, WO_NOT_STARTED_RE)
    is_ongoing = ~is_completed & ~is_not_started & text_matches(statuses, WO_ONGOING_RE)
    is_open = ~is_completed

    starts = _dates(df, cols["start_date"])
    ends = _dates(df, cols["end_date"])
    is_past_due = ends.map(lambda d: d is not None and d < today).astype(bool)
    overdue = int((is_open & is_past_due).sum())

    has_pair = starts.notna() & ends.notna()
    durations = pd.Series(
        [(e - s).days if ok else np.nan for s, e, ok in zip(starts, ends, has_pair)],
        index=df.index,
        dtype=float,
    )
    valid = durations[durations >= 0]

    if cols["sector"] is not None:
        sectors = distribution(df[cols["sector"]].map(lambda v: canonicalize_sector(v) or "Unknown"))
    else:
        sectors = {}

    return WorkOrderMetrics(
        open=int(is_open.sum()),
        closed=int(is_completed.sum()),
        completed=int(is_completed.sum()),
        not_started=int(is_not_started.sum()),
        ongoing=int(is_ongoing.sum()),
        overdue=overdue,
        total_days=float(valid.sum()),
        valid_duration_pairs=int(valid.count()),
        total_amount=float(numeric_column(df, cols["amount"]).sum()),
        total_billed=float(numeric_column(df, cols["billed"]).sum()),
        total_collected=float(numeric_column(df, cols["collected"]).sum()),
        execution_status_distribution=distribution(statuses),
        billing_status_distribution=distribution(label_column(df, cols["billing_status"])) if cols["billing_status"] else {},
        sector_distribution=sectors,
        nature_of_work_distribution=distribution(label_column(df, cols["nature"])) if cols["nature"] else {},
    )
