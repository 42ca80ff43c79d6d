"""
Plan execution and chat endpoints.
"""
from __future__ import annotations

import logging
from typing import Callable

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from boardpulse.analytics.executor import execute_plan
from boardpulse.analytics.recommendations import build_narrative
from boardpulse.api.dependencies import get_fetcher, get_interpreter, get_session_store
from boardpulse.api.response_models import ChatRequest, ChatResponse, PlanRequest
from boardpulse.api.sessions import SessionStore
from boardpulse.data.schemas import BoardFetcher, QueryPlan

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def _error_payload(summary: str, insight: str) -> dict:
    return ChatResponse(type="error", summary=summary, insight=insight).model_dump()


@router.post("/execute")
def execute(body: PlanRequest, fetcher: BoardFetcher | None = Depends(get_fetcher)):
    """Run a structured plan and return the raw execution result."""
    plan = QueryPlan.from_dict(body.model_dump())
    return execute_plan(plan, fetcher=fetcher).to_dict()


@router.post("/chat", response_model=ChatResponse)
def chat(
    body: ChatRequest,
    sessions: SessionStore = Depends(get_session_store),
    fetcher: BoardFetcher | None = Depends(get_fetcher),
    interpret: Callable[[str], QueryPlan] = Depends(get_interpreter),
):
    message = body.message.strip()
    if not message:
        raise HTTPException(400, "Message is required.")

    sessions.get(body.session_id)
    try:
        plan = interpret(message)

        if plan.clarifying_questions:
            sessions.record(
                body.session_id, message,
                f"Clarifying questions: {'; '.join(plan.clarifying_questions)}",
            )
            return ChatResponse(
                type="clarification",
                questions=list(plan.clarifying_questions),
                plan=plan.to_dict(),
            )

        result = execute_plan(plan, fetcher=fetcher)
        if result.error:
            return _error_payload(result.error, "Please check your configuration and try again.")

        narrative = build_narrative(result, message)
        payload = result.to_dict()
        sessions.record(body.session_id, message, narrative["summary"])
        return ChatResponse(
            type="insight",
            summary=narrative["summary"],
            insight=narrative["insight"],
            leadership_bullets=narrative["leadership_bullets"],
            tables=payload["tables"],
            data_quality=payload["data_quality"],
            confidence=payload["confidence"],
            plan=plan.to_dict(),
        )
    except Exception as exc:
        logger.exception("Chat endpoint error")
        return JSONResponse(
            status_code=500,
            content=_error_payload("An internal error occurred while processing your request.", str(exc)),
        )
