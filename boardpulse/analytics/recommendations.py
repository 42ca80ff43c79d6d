"""
Recommendations and leadership narrative built from an execution result.
"""
from __future__ import annotations

from boardpulse.analytics.common import safe_divide
from boardpulse.analytics.confidence import missing_ratio
from boardpulse.analytics.executor import ExecutionResult
from boardpulse.config import DEFAULT_CURRENCY, LOW_CLOSE_RATE, LOW_COMPLETION_PCT

CURRENCY_PREFIX = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}


def report_currency(result: ExecutionResult) -> str:
    report = result.data_quality.get("deals")
    tags = sorted(report.currency_types) if report is not None else []
    return tags[0] if len(tags) == 1 else DEFAULT_CURRENCY


def format_amount(value: float, currency: str = DEFAULT_CURRENCY) -> str:
    """Compact amount: 12.3M, 450.0K, or the plain figure."""
    prefix = CURRENCY_PREFIX.get(currency, f"{currency} ")
    if abs(value) >= 1e6:
        return f"{prefix}{value / 1e6:.1f}M"
    if abs(value) >= 1e3:
        return f"{prefix}{value / 1e3:.1f}K"
    return f"{prefix}{value:,.0f}"


# ---------------------------------------------------------------------------
# Recommendations
# ---------------------------------------------------------------------------

def build_recommendations(result: ExecutionResult) -> list[dict]:
    """Actionable items with severity, title, detail and action."""
    recs = []
    deals = result.metrics.get("deals")
    work_orders = result.metrics.get("work_orders")
    cross = result.metrics.get("cross_board")

    if deals is not None and deals.deal_count:
        if deals.close_rate < LOW_CLOSE_RATE:
            recs.append({
                "severity": "red",
                "title": "LOW CLOSE RATE",
                "detail": f"Only {deals.closed_won} of {deals.deal_count} deals won "
                          f"({deals.close_rate * 100:.0f}%).",
                "action": "Review stalled stages and re-qualify long-open opportunities.",
            })
        if deals.closed_lost > deals.closed_won:
            recs.append({
                "severity": "yellow",
                "title": "MORE LOSSES THAN WINS",
                "detail": f"{deals.closed_lost} deals lost against {deals.closed_won} won.",
                "action": "Run a loss review on the most recent lost deals.",
            })

    if work_orders is not None and work_orders.total:
        if work_orders.overdue:
            recs.append({
                "severity": "red",
                "title": "OVERDUE WORK ORDERS",
                "detail": f"{work_orders.overdue} of {work_orders.total} work orders are past their end date.",
                "action": "Re-plan overdue work orders and confirm revised dates with clients.",
            })
        if work_orders.completion_pct < LOW_COMPLETION_PCT:
            recs.append({
                "severity": "yellow",
                "title": "EXECUTION BACKLOG",
                "detail": f"{work_orders.completion_pct * 100:.0f}% of work orders complete.",
                "action": "Prioritise ongoing work orders closest to completion.",
            })
        if work_orders.total_amount and work_orders.collection_rate < 0.5:
            recs.append({
                "severity": "yellow",
                "title": "LOW COLLECTIONS",
                "detail": f"Collected {work_orders.collection_rate * 100:.0f}% of contracted work-order value.",
                "action": "Follow up on billed but uncollected invoices.",
            })

    if cross is not None and cross.linked_count == 0:
        recs.append({
            "severity": "yellow",
            "title": "NO DEAL TO WORK-ORDER LINKAGE",
            "detail": "No work order could be matched to a deal by name or sector.",
            "action": "Add a deal reference column to the work orders board.",
        })

    for source, report in result.data_quality.items():
        ratio = missing_ratio(report)
        if ratio > 0.25:
            recs.append({
                "severity": "yellow",
                "title": f"{source.replace('_', ' ').upper()} DATA GAPS",
                "detail": f"{report.total_missing} missing cells across {report.total_rows} rows "
                          f"({ratio * 100:.0f}% of affected columns).",
                "action": "Fill in missing fields on the board before sharing these figures.",
            })

    if not recs:
        recs.append({
            "severity": "green",
            "title": "NO RED FLAGS",
            "detail": "Pipeline, execution and data quality are within healthy thresholds.",
            "action": "Keep the current cadence.",
        })
    return recs


# ---------------------------------------------------------------------------
# Leadership narrative
# ---------------------------------------------------------------------------

def build_narrative(result: ExecutionResult, query: str = "") -> dict:
    """Summary, insight paragraph and "Category: Detail" leadership bullets."""
    currency = report_currency(result)
    deals = result.metrics.get("deals")
    work_orders = result.metrics.get("work_orders")
    cross = result.metrics.get("cross_board")
    bullets = []
    parts = []

    if deals is not None:
        health = "below healthy threshold, needs review" if deals.close_rate < LOW_CLOSE_RATE else "healthy"
        bullets.append(
            f"Pipeline: {format_amount(deals.total_pipeline, currency)} across {deals.deal_count} deals "
            f"(avg {format_amount(deals.avg_deal_size, currency)})."
        )
        bullets.append(
            f"Close Rate: {deals.close_rate * 100:.0f}% ({deals.closed_won} won of {deals.deal_count}), {health}."
        )
        parts.append(f"{deals.deal_count} deals ({format_amount(deals.total_pipeline, currency)} pipeline)")

    if work_orders is not None:
        backlog = "significant backlog" if work_orders.completion_pct < LOW_COMPLETION_PCT else "on track"
        bullets.append(
            f"Operations: {work_orders.open} open, {work_orders.closed} closed, "
            f"{work_orders.overdue} overdue of {work_orders.total} total."
        )
        bullets.append(f"Completion: {work_orders.completion_pct * 100:.1f}%, {backlog}.")
        parts.append(f"{work_orders.total} work orders ({work_orders.completion_pct * 100:.0f}% complete)")

    filtered = result.metrics.get("filtered_deals")
    if filtered is not None:
        bullets.append(
            f"Focus: {filtered.deal_count} matching deals worth {format_amount(filtered.total_pipeline, currency)}."
        )
    if "quarter_focus" in result.metrics:
        bullets.append(f"Quarter: {format_amount(result.metrics['quarter_focus'], currency)} expected to close.")
    if cross is not None:
        bullets.append(f"Cross-Board: {cross.linked_count} work orders linked to active deals.")

    top = next((r for r in build_recommendations(result) if r["severity"] != "green"), None)
    if top is not None:
        bullets.append(f"Action: {top['action']}")

    total_missing = sum(r.total_missing for r in result.data_quality.values())
    if total_missing:
        bullets.append(
            f"Data Quality: {total_missing} missing values; confidence {result.confidence:.2f}. "
            "Review missing fields before using these metrics for board-level decisions."
        )
    else:
        bullets.append(f"Data Quality: No missing values; confidence {result.confidence:.2f}.")

    summary = f"{', '.join(parts)}." if parts else "No board data was requested."
    insight_lines = list(cross.insights) if cross is not None else []
    if deals is not None and deals.quarterly_revenue:
        best_q, best_v = max(deals.quarterly_revenue.items(), key=lambda kv: kv[1])
        insight_lines.append(f"Strongest quarter by deal value is {best_q} at {format_amount(best_v, currency)}.")
    if deals is not None and deals.sector_breakdown:
        top_sector, stats = max(deals.sector_breakdown.items(), key=lambda kv: kv[1]["value"])
        share = safe_divide(stats["value"], deals.total_pipeline)
        insight_lines.append(f"{top_sector} carries {share * 100:.0f}% of pipeline value.")
    insight = " ".join(insight_lines) or "Metrics are computed directly from the board data."

    return {
        "query": query,
        "summary": summary,
        "insight": insight,
        "leadership_bullets": bullets,
    }
