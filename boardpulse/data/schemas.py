"""
Board, data-quality and query-plan schemas.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional, Protocol


# ---------------------------------------------------------------------------
# Raw board (as fetched from monday.com or loaded from a CSV export)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BoardColumn:
    id: str
    title: str
    type: str = "text"


@dataclass(frozen=True)
class BoardCell:
    column_id: str
    text: Optional[str] = None
    raw_value: Optional[str] = None     # JSON payload for structured column types
    type: Optional[str] = None
    title: Optional[str] = None


@dataclass(frozen=True)
class BoardItem:
    id: str
    name: str
    cells: tuple[BoardCell, ...] = ()


@dataclass(frozen=True)
class RawBoard:
    name: str
    columns: tuple[BoardColumn, ...] = ()
    items: tuple[BoardItem, ...] = ()

    @classmethod
    def from_api(cls, payload: Mapping[str, Any]) -> "RawBoard":
        """Build a board from the monday.com GraphQL `boards` payload."""
        columns = tuple(
            BoardColumn(id=str(c.get("id")), title=c.get("title") or str(c.get("id")), type=c.get("type") or "text")
            for c in payload.get("columns") or []
        )
        items_page = payload.get("items_page") or {}
        items = []
        for item in items_page.get("items") or []:
            cells = tuple(
                BoardCell(
                    column_id=str(cv.get("id")),
                    text=cv.get("text"),
                    raw_value=cv.get("value"),
                    type=cv.get("type"),
                    title=(cv.get("column") or {}).get("title"),
                )
                for cv in item.get("column_values") or []
            )
            items.append(BoardItem(id=str(item.get("id")), name=item.get("name") or "", cells=cells))
        return cls(name=payload.get("name") or "", columns=columns, items=tuple(items))


# ---------------------------------------------------------------------------
# Normalization output
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DataQualityReport:
    """Per-board tally of missing values, parse warnings and currency tags."""
    total_rows: int = 0
    missing_counts: Mapping[str, int] = field(default_factory=dict)
    currency_types: frozenset[str] = frozenset()
    warnings: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "missing_counts", MappingProxyType(dict(self.missing_counts)))
        object.__setattr__(self, "currency_types", frozenset(self.currency_types))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @property
    def total_missing(self) -> int:
        return sum(self.missing_counts.values())

    def to_dict(self) -> dict:
        return {
            "total_rows": self.total_rows,
            "missing_counts": dict(self.missing_counts),
            "currency_types": sorted(self.currency_types),
            "warnings": list(self.warnings),
        }


@dataclass(frozen=True)
class NormalizedBoard:
    board_name: str
    rows: tuple[dict, ...]
    data_quality: DataQualityReport


# ---------------------------------------------------------------------------
# Query plan (produced by the interpreter, consumed by the executor)
# ---------------------------------------------------------------------------

class DataSource(str, Enum):
    DEALS = "deals"
    WORK_ORDERS = "work_orders"
    ALL = "all"


@dataclass(frozen=True)
class PlanFilters:
    sector: Optional[str] = None
    quarter: Optional[str] = None        # "Q2 2024"
    status: Optional[str] = None
    date_range: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not any((self.sector, self.quarter, self.status, self.date_range))

    def to_dict(self) -> dict:
        return {
            "sector": self.sector,
            "quarter": self.quarter,
            "status": self.status,
            "date_range": self.date_range,
        }


@dataclass(frozen=True)
class QueryPlan:
    intent: str = "other"
    data_sources: tuple[DataSource, ...] = (DataSource.ALL,)
    filters: PlanFilters = field(default_factory=PlanFilters)
    clarifying_questions: tuple[str, ...] = ()

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "QueryPlan":
        """Parse a plan dict; unknown data sources are ignored."""
        sources = []
        for s in data.get("data_sources") or []:
            try:
                sources.append(DataSource(str(s).lower()))
            except ValueError:
                continue
        raw_filters = data.get("filters") or {}
        filters = PlanFilters(
            sector=raw_filters.get("sector") or None,
            quarter=raw_filters.get("quarter") or None,
            status=raw_filters.get("status") or None,
            date_range=raw_filters.get("date_range") or raw_filters.get("dateRange") or None,
        )
        return cls(
            intent=data.get("intent") or "other",
            data_sources=tuple(sources),
            filters=filters,
            clarifying_questions=tuple(data.get("clarifying_questions") or ()),
        )

    @property
    def needs_deals(self) -> bool:
        return DataSource.DEALS in self.data_sources or DataSource.ALL in self.data_sources

    @property
    def needs_work_orders(self) -> bool:
        return DataSource.WORK_ORDERS in self.data_sources or DataSource.ALL in self.data_sources

    def to_dict(self) -> dict:
        return {
            "intent": self.intent,
            "data_sources": [s.value for s in self.data_sources],
            "filters": self.filters.to_dict(),
            "clarifying_questions": list(self.clarifying_questions),
        }


def quarter_label(date: dt.date) -> str:
    """Calendar quarter key, e.g. "Q2 2024"."""
    return f"Q{(date.month - 1) // 3 + 1} {date.year}"


# ---------------------------------------------------------------------------
# Board fetching
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FetchResult:
    """Outcome of a board fetch: exactly one of error/board is set."""
    error: Optional[str] = None
    board: Optional[RawBoard] = None


class BoardFetcher(Protocol):
    def fetch_board(self, board_id: str) -> FetchResult: ...
