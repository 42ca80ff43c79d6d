"""
Keyword query interpreter — turns a plain-language question into a QueryPlan.
"""
from __future__ import annotations

import re

from boardpulse.config import SECTOR_NORMALIZATION
from boardpulse.data.schemas import DataSource, PlanFilters, QueryPlan

DEALS_RE = re.compile(r"pipeline|deal|revenue|sales|sector")
REVENUE_RE = re.compile(r"revenue|quarter|forecast")
OPS_RE = re.compile(r"work.?order|ops|operation|completion|overdue")
BRIEF_RE = re.compile(r"brief|overview|summary|status|leadership")
QUARTER_RE = re.compile(r"\bq([1-4])\s*(?:fy\s*)?'?(\d{4})\b")

# Longest first so "oil and gas" wins over "gas"-like fragments
_SECTOR_KEYS = sorted(SECTOR_NORMALIZATION, key=len, reverse=True)
_SECTOR_RE = re.compile(r"\b(" + "|".join(re.escape(k) for k in _SECTOR_KEYS) + r")\b")


def extract_filters(lower: str) -> PlanFilters:
    """Sector keyword and "Q<n> <year>" quarter mentioned in a lower-cased question."""
    sector = _SECTOR_RE.search(lower)
    quarter = QUARTER_RE.search(lower)
    return PlanFilters(
        sector=sector.group(1) if sector else None,
        quarter=f"Q{quarter.group(1)} {quarter.group(2)}" if quarter else None,
    )


def interpret_query(text: str) -> QueryPlan:
    """Route a question to data sources by keyword.

    Later rules override the intent of earlier ones; sources accumulate.
    """
    lower = text.lower()
    intent = "other"
    sources: list[DataSource] = []

    if DEALS_RE.search(lower):
        intent = "pipeline_health"
        sources.append(DataSource.DEALS)
    if REVENUE_RE.search(lower):
        intent = "revenue_summary"
    if OPS_RE.search(lower):
        intent = "ops_status"
        sources.append(DataSource.WORK_ORDERS)
    if BRIEF_RE.search(lower):
        intent = "leadership_brief"
        sources.append(DataSource.ALL)
    if not sources:
        sources.append(DataSource.ALL)

    return QueryPlan(
        intent=intent,
        data_sources=tuple(dict.fromkeys(sources)),
        filters=extract_filters(lower),
    )
