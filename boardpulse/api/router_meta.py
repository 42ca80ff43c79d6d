"""
Meta endpoints: health.
"""
from __future__ import annotations

from fastapi import APIRouter

from boardpulse.api.response_models import HealthResponse
from boardpulse.config import board_id_for, monday_token

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health():
    return HealthResponse(
        status="ok",
        monday_configured=monday_token() is not None,
        deals_board_id=board_id_for("deals") or "not set",
        work_orders_board_id=board_id_for("work_orders") or "not set",
    )
