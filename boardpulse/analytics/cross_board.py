"""
Cross-board analysis — link work orders to deals and derive risk insights.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Mapping, Optional, Sequence

from boardpulse.analytics.common import safe_divide
from boardpulse.analytics.deals import DealsMetrics
from boardpulse.analytics.work_orders import WorkOrderMetrics
from boardpulse.config import (
    DEAL_COLUMNS,
    FRAGMENTED_AVG_SHARE,
    FRAGMENTED_MIN_DEALS,
    LOW_CLOSE_RATE,
    LOW_COMPLETION_PCT,
    MIN_LINK_NAME_LENGTH,
)
from boardpulse.data.columns import find_column, number_at, row_text, text_at

# (deal name, work-order name, work-order text) -> linked?  All lower-cased.
NameMatcher = Callable[[str, str, str], bool]


@dataclass(frozen=True)
class CrossBoardResult:
    linked_count: int = 0
    sector_linked_count: int = 0
    insights: tuple[str, ...] = ()

    def to_dict(self) -> dict:
        return {
            "linked_count": self.linked_count,
            "sector_linked_count": self.sector_linked_count,
            "insights": list(self.insights),
        }


def names_match(deal_name: str, wo_name: str, wo_text: str) -> bool:
    """Substring linkage between a deal name and one work order."""
    if len(deal_name) < MIN_LINK_NAME_LENGTH:
        return False
    if deal_name in wo_name or deal_name in wo_text:
        return True
    return bool(wo_name) and wo_name in deal_name


def _display_name(row: Mapping[str, Any]) -> str:
    return str(row.get("_name") or "").lower()


def _pct(ratio: float) -> str:
    return f"{ratio * 100:.0f}%"


def cross_board_analysis(
    deal_rows: Sequence[Mapping[str, Any]],
    work_order_rows: Sequence[Mapping[str, Any]],
    deals_metrics: DealsMetrics,
    work_order_metrics: Optional[WorkOrderMetrics] = None,
    matcher: NameMatcher = names_match,
) -> CrossBoardResult:
    deal_names = [_display_name(r) for r in deal_rows]
    wo_entries = [(_display_name(r), row_text(r)) for r in work_order_rows]

    name_linked = sum(
        1 for wo_name, wo_text in wo_entries
        if any(matcher(d, wo_name, wo_text) for d in deal_names)
    )

    sector_col = find_column(deal_rows, DEAL_COLUMNS["sector"])
    deal_sectors = sorted({
        s.lower() for s in (text_at(r, sector_col) for r in deal_rows) if s
    })
    sector_linked = (
        sum(1 for _, wo_text in wo_entries if any(s in wo_text for s in deal_sectors))
        if deal_sectors else 0
    )

    linked = max(name_linked, sector_linked)
    insights: list[str] = []
    if linked > 0:
        insights.append(f"{linked} work orders appear linked to active deals (by name or sector matching).")
    else:
        insights.append(
            "No direct linkage found between work orders and deals. "
            "Consider adding cross-references in monday.com."
        )

    if deals_metrics.close_rate < LOW_CLOSE_RATE:
        insights.append(
            f"Risk: Close rate is {_pct(deals_metrics.close_rate)} (below {_pct(LOW_CLOSE_RATE)}). "
            "Pipeline conversion needs urgent attention."
        )
    if work_order_metrics is not None:
        if work_order_metrics.overdue > 0:
            overdue_share = safe_divide(work_order_metrics.overdue, work_order_metrics.total)
            insights.append(
                f"Risk: {work_order_metrics.overdue} work orders overdue ({_pct(overdue_share)} of total). "
                "May impact deal delivery timelines."
            )
        if work_order_metrics.completion_pct < LOW_COMPLETION_PCT:
            insights.append(
                f"Operations bottleneck: Only {_pct(work_order_metrics.completion_pct)} of work orders complete. "
                "Could delay deal fulfillment."
            )

    total = deals_metrics.total_pipeline
    if (
        total > 0
        and deals_metrics.deal_count > FRAGMENTED_MIN_DEALS
        and deals_metrics.avg_deal_size < total * FRAGMENTED_AVG_SHARE
    ):
        insights.append(
            "Pipeline fragmentation: Many small deals. "
            "Consider focusing sales effort on fewer, larger opportunities."
        )

    value_col = find_column(deal_rows, DEAL_COLUMNS["value"])
    if value_col is not None:
        wo_names = [name for name, _ in wo_entries]
        unmatched = 0
        for row in deal_rows:
            value = number_at(row, value_col)
            if value is None or value <= deals_metrics.avg_deal_size:
                continue
            deal_name = _display_name(row)
            if not any(deal_name in wo_name for wo_name in wo_names):
                unmatched += 1
        if unmatched:
            insights.append(
                f"{unmatched} high-value deals have no matching work orders. Ensure operational readiness."
            )

    return CrossBoardResult(
        linked_count=linked,
        sector_linked_count=sector_linked,
        insights=tuple(insights),
    )
