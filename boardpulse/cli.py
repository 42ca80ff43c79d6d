#!/usr/bin/env python3
"""
Board Pulse CLI — analyze monday.com deals / work-orders boards, export briefings, run the API.

USAGE:
  python -m boardpulse.cli analyze "How is our pipeline?"          # Interpret a question
  python -m boardpulse.cli analyze --sources deals --sector mining  # Explicit plan
  python -m boardpulse.cli analyze --quarter "Q2 2024" --json       # Raw JSON result
  python -m boardpulse.cli analyze --deals-csv deals.csv --work-orders-csv wo.csv

  python -m boardpulse.cli export --output briefing.xlsx            # Excel leadership briefing

  python -m boardpulse.cli serve                                    # Start API server
  python -m boardpulse.cli serve --port 8000
"""
from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from boardpulse.analytics.executor import ExecutionResult, execute_plan
from boardpulse.analytics.interpret import interpret_query
from boardpulse.analytics.recommendations import build_narrative, format_amount, report_currency
from boardpulse.config import REPORTS_FOLDER
from boardpulse.data.loader import CsvBoardFetcher
from boardpulse.data.schemas import DataSource, PlanFilters, QueryPlan


def _build_plan(args) -> QueryPlan:
    """Interpret the question, then let explicit flags override it."""
    question = " ".join(args.question or [])
    plan = interpret_query(question) if question else QueryPlan()
    sources = plan.data_sources
    if args.sources:
        sources = tuple(DataSource(s) for s in args.sources)
    filters = PlanFilters(
        sector=args.sector or plan.filters.sector,
        quarter=args.quarter or plan.filters.quarter,
    )
    return QueryPlan(intent=plan.intent, data_sources=sources, filters=filters)


def _limit_to_csv(plan: QueryPlan, csv_paths: dict) -> QueryPlan:
    """Keep only the sources that have a CSV file; all of them if none overlap."""
    needed = {"deals": plan.needs_deals, "work_orders": plan.needs_work_orders}
    given = [k for k, path in csv_paths.items() if path]
    sources = tuple(DataSource(k) for k in given if needed[k]) or tuple(DataSource(k) for k in given)
    return replace(plan, data_sources=sources)


def _run(args) -> tuple[QueryPlan, ExecutionResult]:
    plan = _build_plan(args)
    kwargs = {}
    csv_paths = {"deals": args.deals_csv, "work_orders": args.work_orders_csv}
    if any(csv_paths.values()):
        plan = _limit_to_csv(plan, csv_paths)
        kwargs["fetcher"] = CsvBoardFetcher()
        kwargs["board_ids"] = {k: str(v) for k, v in csv_paths.items() if v}
    return plan, execute_plan(plan, **kwargs)


def _print_distribution(title: str, dist: dict, limit: int = 10) -> None:
    if not dist:
        return
    print(f"\n  {title}:")
    for label, count in sorted(dist.items(), key=lambda kv: -kv[1])[:limit]:
        print(f"    {str(label)[:40]:<42}{count:>6}")


def cmd_analyze(args):
    """Run a plan and print the metrics and leadership narrative."""
    plan, result = _run(args)
    if args.json:
        print(json.dumps({"plan": plan.to_dict(), **result.to_dict()}, indent=2, default=str))
        if result.error:
            sys.exit(1)
        return

    print("\n" + "=" * 70)
    print("  BOARD PULSE — ANALYSIS")
    print("=" * 70)
    print(f"  Intent: {plan.intent}  |  Sources: {', '.join(s.value for s in plan.data_sources)}")

    if result.error:
        print(f"\n  ERROR: {result.error}\n")
        sys.exit(1)

    currency = report_currency(result)
    deals = result.metrics.get("deals")
    work_orders = result.metrics.get("work_orders")
    if deals is not None:
        print(f"\n  DEALS ({deals.deal_count})")
        print(f"    Pipeline:     {format_amount(deals.total_pipeline, currency)}")
        print(f"    Avg deal:     {format_amount(deals.avg_deal_size, currency)}")
        print(f"    Close rate:   {deals.close_rate * 100:.1f}%  ({deals.closed_won} won, {deals.closed_lost} lost)")
        _print_distribution("Stages", deals.stage_distribution)
        _print_distribution("Sectors", {k: v["count"] for k, v in deals.sector_breakdown.items()})
    if work_orders is not None:
        print(f"\n  WORK ORDERS ({work_orders.total})")
        print(f"    Open/closed:  {work_orders.open} / {work_orders.closed}  ({work_orders.overdue} overdue)")
        print(f"    Completion:   {work_orders.completion_pct * 100:.1f}%")
        print(f"    Collected:    {work_orders.collection_rate * 100:.1f}% of "
              f"{format_amount(work_orders.total_amount, currency)}")
        if work_orders.avg_completion_days is not None:
            print(f"    Avg duration: {work_orders.avg_completion_days:.0f} days")
        _print_distribution("Execution status", work_orders.execution_status_distribution)

    narrative = build_narrative(result, " ".join(args.question or []))
    print(f"\n  SUMMARY\n    {narrative['summary']}")
    print("\n  LEADERSHIP UPDATE")
    for bullet in narrative["leadership_bullets"]:
        print(f"    - {bullet}")
    print(f"\n  Confidence: {result.confidence:.2f}")
    print("=" * 70 + "\n")


def cmd_export(args):
    """Write the Excel leadership briefing."""
    from boardpulse.reports.briefing_report import generate_excel

    print("\n" + "=" * 70)
    print("  BOARD PULSE — LEADERSHIP BRIEFING")
    print("=" * 70)
    print(f"  Started: {datetime.now():%Y-%m-%d %H:%M:%S}")

    plan, result = _run(args)
    if result.error:
        print(f"\n  ERROR: {result.error}\n")
        sys.exit(1)

    output = Path(args.output) if args.output else REPORTS_FOLDER / f"Briefing_{datetime.now():%Y%m%d_%H%M%S}.xlsx"
    path = generate_excel(result, output, " ".join(args.question or []))
    print(f"\n  Saved: {path}")
    print(f"  Confidence: {result.confidence:.2f}")
    print("=" * 70 + "\n")


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting Board Pulse API on port {args.port}...")
    uvicorn.run("boardpulse.main:app", host="0.0.0.0", port=args.port, reload=args.reload,
                timeout_keep_alive=65)


def _add_plan_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("question", nargs="*", help="Plain-language question")
    parser.add_argument("--sources", nargs="+", choices=[s.value for s in DataSource], help="Boards to analyze")
    parser.add_argument("--sector", help="Only deals mentioning this sector")
    parser.add_argument("--quarter", help='Quarter to focus on, e.g. "Q2 2024"')
    parser.add_argument("--deals-csv", type=Path, help="Deals board CSV export (instead of monday.com)")
    parser.add_argument("--work-orders-csv", type=Path, help="Work orders board CSV export")


def main(argv: list[str] | None = None):
    parser = argparse.ArgumentParser(
        description="Board Pulse — monday.com deals and work-orders metrics engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command")

    analyze_parser = subparsers.add_parser("analyze", help="Compute metrics for a question or plan")
    _add_plan_arguments(analyze_parser)
    analyze_parser.add_argument("--json", action="store_true", help="Print the raw JSON result")
    analyze_parser.set_defaults(func=cmd_analyze)

    export_parser = subparsers.add_parser("export", help="Export an Excel leadership briefing")
    _add_plan_arguments(export_parser)
    export_parser.add_argument("--output", help="Output .xlsx path (default: reports folder)")
    export_parser.set_defaults(func=cmd_export)

    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()
