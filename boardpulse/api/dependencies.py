"""
FastAPI dependencies — session store singleton, board fetcher, query interpreter.
"""
from __future__ import annotations

from typing import Callable

from fastapi import HTTPException

from boardpulse.analytics.interpret import interpret_query
from boardpulse.api.sessions import SessionStore
from boardpulse.data.schemas import BoardFetcher, QueryPlan

# ---------------------------------------------------------------------------
# Global session store singleton (set during startup)
# ---------------------------------------------------------------------------
_sessions: SessionStore | None = None


def set_session_store(store: SessionStore) -> None:
    global _sessions
    _sessions = store


def get_session_store() -> SessionStore:
    if _sessions is None:
        raise HTTPException(503, "Server not initialized yet")
    return _sessions


# ---------------------------------------------------------------------------
# Engine collaborators (overridable in tests via app.dependency_overrides)
# ---------------------------------------------------------------------------

def get_fetcher() -> BoardFetcher | None:
    """Board fetcher for plan execution; None lets the executor use the monday.com client."""
    return None


def get_interpreter() -> Callable[[str], QueryPlan]:
    return interpret_query
