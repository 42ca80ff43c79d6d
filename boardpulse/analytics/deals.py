"""
Deal analytics — pipeline totals, stage/status mix, sector breakdown, quarterly revenue.
"""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Mapping, Sequence

import pandas as pd

from boardpulse.analytics.common import (
    distribution,
    label_column,
    numeric_column,
    rows_frame,
    safe_divide,
    text_matches,
)
from boardpulse.config import DEAL_COLUMNS, STAGE_WON_RE, STATUS_LOST_RE, STATUS_WON_RE
from boardpulse.data.columns import find_column
from boardpulse.data.normalize import canonicalize_sector, parse_date
from boardpulse.data.schemas import quarter_label


@dataclass(frozen=True)
class DealsMetrics:
    deal_count: int = 0
    total_pipeline: float = 0.0
    closed_won: int = 0
    closed_lost: int = 0
    stage_distribution: dict[str, int] = field(default_factory=dict)
    status_distribution: dict[str, int] = field(default_factory=dict)
    probability_distribution: dict[str, int] = field(default_factory=dict)
    sector_breakdown: dict[str, dict[str, float]] = field(default_factory=dict)
    quarterly_revenue: dict[str, float] = field(default_factory=dict)
    avg_deal_size: float = field(init=False, default=0.0)
    close_rate: float = field(init=False, default=0.0)

    def __post_init__(self) -> None:
        object.__setattr__(self, "avg_deal_size", safe_divide(self.total_pipeline, self.deal_count))
        object.__setattr__(self, "close_rate", safe_divide(self.closed_won, self.deal_count))

    def to_dict(self) -> dict:
        return asdict(self)


def resolve_deal_columns(rows: Sequence[Mapping[str, Any]]) -> dict[str, str | None]:
    """Actual column title per deal field (None where nothing matches)."""
    return {key: find_column(rows, candidates) for key, candidates in DEAL_COLUMNS.items()}


def _sector_breakdown(sectors: pd.Series, values: pd.Series) -> dict[str, dict[str, float]]:
    if sectors.empty:
        return {}
    grouped = pd.DataFrame({"sector": sectors, "value": values}).groupby("sector", sort=False)["value"].agg(["count", "sum"])
    return {
        str(sector): {"count": int(row["count"]), "value": float(row["sum"])}
        for sector, row in grouped.iterrows()
    }


def _quarter_of(value: Any) -> str | None:
    date = parse_date(value)
    return quarter_label(date) if date else None


def _quarterly_revenue(close_dates: pd.Series, values: pd.Series) -> dict[str, float]:
    quarters = close_dates.map(_quarter_of)
    dated = quarters.notna()
    if not dated.any():
        return {}
    grouped = values[dated].groupby(quarters[dated], sort=False).sum()
    return {str(q): float(v) for q, v in grouped.items()}


def compute_deals_metrics(rows: Sequence[Mapping[str, Any]]) -> DealsMetrics:
    """Aggregate a normalized deals board.

    Closed-won is counted once for a stage match and once more for a status
    match, then capped at the deal count.
    """
    cols = resolve_deal_columns(rows)
    df = rows_frame(rows)
    count = len(df)

    values = numeric_column(df, cols["value"])
    stages = label_column(df, cols["stage"])
    statuses = label_column(df, cols["status"])

    won_by_stage = int(text_matches(stages, STAGE_WON_RE).sum())
    won_by_status = int(text_matches(statuses, STATUS_WON_RE).sum())
    closed_won = min(won_by_stage + won_by_status, count)
    closed_lost = int(text_matches(statuses, STATUS_LOST_RE).sum())

    if cols["sector"] is not None:
        sectors = df[cols["sector"]].map(lambda v: canonicalize_sector(v) or "Unknown")
    else:
        sectors = pd.Series("Unknown", index=df.index, dtype=object)

    probability = distribution(label_column(df, cols["probability"])) if cols["probability"] else {}
    quarterly = _quarterly_revenue(df[cols["close_date"]], values) if cols["close_date"] else {}

    return DealsMetrics(
        deal_count=count,
        total_pipeline=float(values.sum()),
        closed_won=closed_won,
        closed_lost=closed_lost,
        stage_distribution=distribution(stages),
        status_distribution=distribution(statuses),
        probability_distribution=probability,
        sector_breakdown=_sector_breakdown(sectors, values),
        quarterly_revenue=quarterly,
    )
