"""
Pydantic request/response schemas for the API.
"""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    monday_configured: bool
    deals_board_id: str
    work_orders_board_id: str


class PlanFiltersModel(BaseModel):
    sector: Optional[str] = None
    quarter: Optional[str] = None
    status: Optional[str] = None
    date_range: Optional[str] = Field(None, alias="dateRange")

    model_config = {"populate_by_name": True}


class PlanRequest(BaseModel):
    intent: str = "other"
    data_sources: list[str] = Field(default_factory=lambda: ["all"])
    filters: PlanFiltersModel = Field(default_factory=PlanFiltersModel)
    clarifying_questions: list[str] = Field(default_factory=list)


class ChatRequest(BaseModel):
    message: str = ""
    session_id: str = "default"


class ChatResponse(BaseModel):
    type: str
    summary: str = ""
    insight: str = ""
    leadership_bullets: list[str] = Field(default_factory=list)
    questions: list[str] = Field(default_factory=list)
    tables: dict[str, Any] = Field(default_factory=dict)
    data_quality: dict[str, Any] = Field(default_factory=dict)
    confidence: float = 0.0
    plan: Optional[dict[str, Any]] = None
