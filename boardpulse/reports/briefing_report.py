"""
Leadership Briefing Report — KPIs, narrative, recommendations, breakdowns, data quality, previews.
"""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

from boardpulse.analytics.recommendations import build_narrative, build_recommendations, report_currency
from boardpulse.analytics.executor import ExecutionResult
from boardpulse.data.columns import data_columns
from boardpulse.excel.writer import ExcelWriter

METRIC_LEGEND = [
    ("Total Pipeline", "Sum of deal values; non-numeric values count as 0. No currency conversion."),
    ("Close Rate", "Won deals (stage match plus status match, capped at deal count) / deal count."),
    ("Completion", "Completed work orders / all work orders."),
    ("Overdue", "Open work orders whose end date is before today."),
    ("Collection Rate", "Collected amount / work-order amount."),
    ("Linked Work Orders", "Larger of name-matched and sector-matched work orders."),
    ("Confidence", "0.85 minus data-gap penalties, kept between 0.10 and 1.00."),
]

SHEET_TITLES = {"deals": "Deals Preview", "work_orders": "Work Orders Preview", "filtered_deals": "Filtered Deals"}


def generate_json(result: ExecutionResult, query: str = "") -> dict:
    payload = result.to_dict()
    return {
        "generated_at": f"{datetime.now():%Y-%m-%d %H:%M}",
        "narrative": build_narrative(result, query),
        "recommendations": build_recommendations(result),
        **payload,
    }


def _gap_highlight(_, row: dict) -> str | None:
    if row["share"] > 0.5:
        return "risk"
    return "watch" if row["share"] > 0.25 else None


def _distribution_rows(dist: dict) -> list[dict]:
    return [{"label": k, "count": v} for k, v in sorted(dist.items(), key=lambda kv: -kv[1])]


def generate_excel(result: ExecutionResult, output_path: str | Path, query: str = "") -> Path:
    if result.error:
        raise ValueError(f"Cannot export a failed execution: {result.error}")

    data = generate_json(result, query)
    ew = ExcelWriter(currency=report_currency(result))
    deals = result.metrics.get("deals")
    work_orders = result.metrics.get("work_orders")

    # Briefing
    ws = ew.add_sheet("Briefing")
    ew.write_title(ws, "BOARD PULSE", f"Leadership Briefing  |  Generated {data['generated_at']}")
    row = 4
    kpis = []
    if deals is not None:
        kpis += [
            (deals.total_pipeline, "Total Pipeline", "amount"),
            (deals.deal_count, "Deals", "number"),
            (deals.close_rate, "Close Rate", "percent"),
        ]
    if work_orders is not None:
        kpis += [
            (work_orders.total, "Work Orders", "number"),
            (work_orders.completion_pct, "Completion", "percent"),
            (work_orders.overdue, "Overdue", "number"),
        ]
    kpis.append((result.confidence, "Confidence", "decimal"))
    row = ew.write_kpi_row(ws, row, kpis[:4])
    if len(kpis) > 4:
        row = ew.write_kpi_row(ws, row, kpis[4:])

    narrative = data["narrative"]
    row = ew.write_section(ws, row, "SUMMARY")
    row = ew.write_lines(ws, row, [narrative["summary"], narrative["insight"]])
    row = ew.write_section(ws, row, "LEADERSHIP UPDATE")
    row = ew.write_lines(ws, row, [f"- {b}" for b in narrative["leadership_bullets"]])
    row = ew.write_section(ws, row, "RECOMMENDATIONS")
    row = ew.write_recommendations(ws, row, data["recommendations"])
    row = ew.write_section(ws, row, "METRIC DEFINITIONS")
    ew.write_legend(ws, row, METRIC_LEGEND)

    # Breakdowns
    if deals is not None:
        ws2 = ew.add_sheet("Pipeline")
        row = ew.write_section(ws2, 1, "SECTOR BREAKDOWN")
        sector_rows = [
            {"sector": s, "count": v["count"], "value": v["value"]}
            for s, v in sorted(deals.sector_breakdown.items(), key=lambda kv: -kv[1]["value"])
        ]
        row = ew.write_table(ws2, row, [
            ("sector", "text", "Sector"),
            ("count", "number", "Deals"),
            ("value", "amount", "Pipeline Value"),
        ], sector_rows, show_total=True, freeze=False)
        row = ew.write_section(ws2, row + 1, "QUARTERLY REVENUE")
        row = ew.write_table(ws2, row, [
            ("quarter", "text", "Quarter"),
            ("value", "amount", "Deal Value"),
        ], [{"quarter": q, "value": v} for q, v in deals.quarterly_revenue.items()], freeze=False)
        row = ew.write_section(ws2, row + 1, "STAGES")
        ew.write_table(ws2, row, [
            ("label", "text", "Stage"),
            ("count", "number", "Deals"),
        ], _distribution_rows(deals.stage_distribution), freeze=False)

    if work_orders is not None:
        ws3 = ew.add_sheet("Operations")
        row = ew.write_section(ws3, 1, "EXECUTION STATUS")
        row = ew.write_table(ws3, row, [
            ("label", "text", "Execution Status"),
            ("count", "number", "Work Orders"),
        ], _distribution_rows(work_orders.execution_status_distribution), show_total=True, freeze=False)
        if work_orders.billing_status_distribution:
            row = ew.write_section(ws3, row + 1, "BILLING STATUS")
            row = ew.write_table(ws3, row, [
                ("label", "text", "Billing Status"),
                ("count", "number", "Work Orders"),
            ], _distribution_rows(work_orders.billing_status_distribution), freeze=False)
        row = ew.write_section(ws3, row + 1, "BILLING & COLLECTION")
        ew.write_table(ws3, row, [
            ("metric", "text", "Metric"),
            ("value", "amount", "Value"),
        ], [
            {"metric": "Contracted", "value": work_orders.total_amount},
            {"metric": "Billed", "value": work_orders.total_billed},
            {"metric": "Collected", "value": work_orders.total_collected},
        ], freeze=False)

    # Data quality
    ws4 = ew.add_sheet("Data Quality")
    row = ew.write_section(ws4, 1, "MISSING VALUES")
    missing_rows = [
        {"source": source, "column": col, "missing": n, "share": n / report.total_rows if report.total_rows else 0}
        for source, report in result.data_quality.items()
        for col, n in report.missing_counts.items()
    ]
    row = ew.write_table(ws4, row, [
        ("source", "text", "Board"),
        ("column", "text", "Column"),
        ("missing", "number", "Missing"),
        ("share", "percent", "Share of Rows"),
    ], missing_rows, highlight_fn=_gap_highlight, freeze=False)
    warnings = [f"{source}: {w}" for source, report in result.data_quality.items() for w in report.warnings]
    row = ew.write_section(ws4, row + 1, "WARNINGS")
    ew.write_lines(ws4, row, warnings or ["No parse warnings."])

    # Row previews
    for name, rows in result.tables.items():
        if not rows:
            continue
        titles = data_columns(rows[0])
        columns = [("_name", "text", "Name")] + [(t, "text", t) for t in titles]
        ew.write_table(ew.add_sheet(SHEET_TITLES.get(name, name)), 1, columns, rows)

    return ew.save(output_path)
