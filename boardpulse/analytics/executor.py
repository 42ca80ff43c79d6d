"""
Plan executor — fetch, normalize, aggregate, cross-analyze, filter, score.

One executor runs one plan. Configuration and fetch failures stop the run in
the ERROR state and come back as `ExecutionResult.error`; they never raise.
"""
from __future__ import annotations

import datetime as dt
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping, Optional

from boardpulse.analytics.common import sanitize_for_json
from boardpulse.analytics.confidence import compute_confidence
from boardpulse.analytics.cross_board import cross_board_analysis
from boardpulse.analytics.deals import compute_deals_metrics
from boardpulse.analytics.work_orders import compute_work_order_metrics
from boardpulse.config import BOARD_ID_ENV, DEFAULT_CURRENCY, PREVIEW_ROWS, board_id_for
from boardpulse.data.columns import row_text
from boardpulse.data.normalize import normalize_board
from boardpulse.data.schemas import BoardFetcher, DataSource, NormalizedBoard, QueryPlan, RawBoard
from boardpulse.errors import CollaboratorError, ConfigurationError

logger = logging.getLogger(__name__)


class ExecutionState(str, Enum):
    IDLE = "idle"
    FETCHING_DEALS = "fetching_deals"
    FETCHING_WORK_ORDERS = "fetching_work_orders"
    NORMALIZING = "normalizing"
    AGGREGATING = "aggregating"
    CROSS_ANALYZING = "cross_analyzing"
    FILTERING = "filtering"
    SCORING = "scoring"
    DONE = "done"
    ERROR = "error"


@dataclass(frozen=True)
class ExecutionResult:
    metrics: Mapping[str, Any] = field(default_factory=dict)
    data_quality: Mapping[str, Any] = field(default_factory=dict)
    tables: Mapping[str, list] = field(default_factory=dict)
    confidence: float = 0.0
    error: Optional[str] = None
    state: ExecutionState = ExecutionState.DONE

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": self.error}
        return sanitize_for_json({
            "metrics": {k: v.to_dict() if hasattr(v, "to_dict") else v for k, v in self.metrics.items()},
            "data_quality": {k: v.to_dict() for k, v in self.data_quality.items()},
            "tables": self.tables,
            "confidence": self.confidence,
        })


class PlanExecutor:
    """Runs a QueryPlan through the engine, recording every state transition."""

    def __init__(
        self,
        fetcher: BoardFetcher | None = None,
        board_ids: Mapping[str, str] | None = None,
        preview_rows: int = PREVIEW_ROWS,
        today: dt.date | None = None,
        default_currency: str = DEFAULT_CURRENCY,
    ) -> None:
        if fetcher is None:
            from boardpulse.data.monday_client import MondayClient
            fetcher = MondayClient()
        self.fetcher = fetcher
        self.board_ids = dict(board_ids or {})
        self.preview_rows = preview_rows
        self.today = today
        self.default_currency = default_currency
        self.state = ExecutionState.IDLE
        self.transitions: list[ExecutionState] = [ExecutionState.IDLE]

    def _enter(self, state: ExecutionState) -> None:
        logger.debug(f"executor {self.state.value} -> {state.value}")
        self.state = state
        self.transitions.append(state)

    def _fetch(self, source: DataSource) -> RawBoard:
        board_id = self.board_ids.get(source.value) or board_id_for(source.value)
        if not board_id:
            raise ConfigurationError(f"{BOARD_ID_ENV[source.value]} not configured in .env")
        result = self.fetcher.fetch_board(board_id)
        if result.error:
            raise CollaboratorError(result.error)
        if result.board is None:
            raise CollaboratorError(f"Board {board_id} not found or empty.")
        return result.board

    def _preview(self, rows) -> list[dict]:
        return [dict(r) for r in rows[: self.preview_rows]]

    def run(self, plan: QueryPlan) -> ExecutionResult:
        if self.state is not ExecutionState.IDLE:
            raise RuntimeError("PlanExecutor instances run a single plan")

        raw: dict[DataSource, RawBoard] = {}
        try:
            if plan.needs_deals:
                self._enter(ExecutionState.FETCHING_DEALS)
                raw[DataSource.DEALS] = self._fetch(DataSource.DEALS)
            if plan.needs_work_orders:
                self._enter(ExecutionState.FETCHING_WORK_ORDERS)
                raw[DataSource.WORK_ORDERS] = self._fetch(DataSource.WORK_ORDERS)
        except (ConfigurationError, CollaboratorError) as exc:
            logger.warning(f"Plan aborted: {exc}")
            self._enter(ExecutionState.ERROR)
            return ExecutionResult(error=str(exc), state=ExecutionState.ERROR)

        self._enter(ExecutionState.NORMALIZING)
        normalized: dict[DataSource, NormalizedBoard] = {
            source: normalize_board(board, self.default_currency) for source, board in raw.items()
        }

        self._enter(ExecutionState.AGGREGATING)
        metrics: dict[str, Any] = {}
        data_quality: dict[str, Any] = {}
        tables: dict[str, list] = {}
        deals = normalized.get(DataSource.DEALS)
        work_orders = normalized.get(DataSource.WORK_ORDERS)
        if deals is not None:
            metrics["deals"] = compute_deals_metrics(deals.rows)
            data_quality["deals"] = deals.data_quality
            tables["deals"] = self._preview(deals.rows)
        if work_orders is not None:
            metrics["work_orders"] = compute_work_order_metrics(work_orders.rows, today=self.today)
            data_quality["work_orders"] = work_orders.data_quality
            tables["work_orders"] = self._preview(work_orders.rows)

        if deals is not None and work_orders is not None:
            self._enter(ExecutionState.CROSS_ANALYZING)
            metrics["cross_board"] = cross_board_analysis(
                deals.rows, work_orders.rows, metrics["deals"], metrics["work_orders"],
            )

        filters = plan.filters
        if deals is not None and (filters.sector or filters.quarter):
            self._enter(ExecutionState.FILTERING)
            if filters.sector:
                needle = filters.sector.lower()
                subset = [r for r in deals.rows if needle in row_text(r)]
                metrics["filtered_deals"] = compute_deals_metrics(subset)
                tables["filtered_deals"] = self._preview(subset)
            if filters.quarter:
                metrics["quarter_focus"] = metrics["deals"].quarterly_revenue.get(filters.quarter, 0)

        self._enter(ExecutionState.SCORING)
        confidence = compute_confidence(data_quality.values())

        self._enter(ExecutionState.DONE)
        logger.info(
            f"Plan '{plan.intent}' done: sources={[s.value for s in raw]} confidence={confidence}"
        )
        return ExecutionResult(
            metrics=metrics,
            data_quality=data_quality,
            tables=tables,
            confidence=confidence,
            state=ExecutionState.DONE,
        )


def execute_plan(plan: QueryPlan | Mapping[str, Any], **executor_kwargs) -> ExecutionResult:
    """Run a plan (or plan dict) on a fresh executor."""
    if not isinstance(plan, QueryPlan):
        plan = QueryPlan.from_dict(plan)
    return PlanExecutor(**executor_kwargs).run(plan)
