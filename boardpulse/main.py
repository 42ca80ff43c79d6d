"""
Board Pulse — FastAPI app factory with session sweeping.
"""
from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from boardpulse.api.dependencies import set_session_store
from boardpulse.api.router_chat import router as chat_router
from boardpulse.api.router_meta import router as meta_router
from boardpulse.api.sessions import SessionStore
from boardpulse.config import SESSION_SWEEP_SECONDS, board_id_for, monday_token

logger = logging.getLogger(__name__)


async def _sweep_sessions(store: SessionStore) -> None:
    while True:
        await asyncio.sleep(SESSION_SWEEP_SECONDS)
        dropped = store.sweep()
        if dropped:
            logger.debug(f"Dropped {dropped} idle chat sessions")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create the session store and start its sweeper."""
    store = SessionStore()
    set_session_store(store)

    print(f"  MONDAY_API_TOKEN set = {monday_token() is not None}")
    print(f"  DEALS_BOARD_ID = {board_id_for('deals') or '(not set)'}")
    print(f"  WORK_ORDERS_BOARD_ID = {board_id_for('work_orders') or '(not set)'}")
    print("\nBoard Pulse ready — health check at /api/health\n")

    sweeper = asyncio.create_task(_sweep_sessions(store))
    try:
        yield
    finally:
        sweeper.cancel()
        with suppress(asyncio.CancelledError):
            await sweeper


def create_app() -> FastAPI:
    app = FastAPI(
        title="Board Pulse API",
        description="monday.com deals and work-orders metrics — plan execution and chat",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(meta_router)
    app.include_router(chat_router)
    return app


app = create_app()
