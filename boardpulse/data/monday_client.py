"""
monday.com GraphQL client — auth, rate limits, retries, board fetching.

Every failure is returned as an error string, never raised, so the plan
executor can abort a run with the collaborator's own message.
"""
from __future__ import annotations

import logging
import time
from typing import Any, Callable

import requests

from boardpulse.config import (
    MAX_RETRIES,
    MONDAY_API_URL,
    MONDAY_API_VERSION,
    PAGE_LIMIT,
    REQUEST_TIMEOUT,
    RETRY_BASE_SECONDS,
    monday_token,
)
from boardpulse.data.schemas import FetchResult, RawBoard

logger = logging.getLogger(__name__)

BOARD_QUERY = """query ($ids: [ID!], $limit: Int!) {
  boards(ids: $ids) {
    id name
    columns { id title type settings_str }
    items_page(limit: $limit) {
      items {
        id name
        column_values { id text value type column { title } }
      }
    }
  }
}"""

BOARD_LIST_QUERY = "query { boards(limit: 50) { id name } }"


class MondayClient:
    """Thin GraphQL client with exponential backoff on 429s and transport errors."""

    def __init__(
        self,
        token: str | None = None,
        api_url: str = MONDAY_API_URL,
        max_retries: int = MAX_RETRIES,
        retry_base: float = RETRY_BASE_SECONDS,
        timeout: float = REQUEST_TIMEOUT,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.token = token
        self.api_url = api_url
        self.max_retries = max_retries
        self.retry_base = retry_base
        self.timeout = timeout
        self.session = session or requests.Session()
        self._sleep = sleep

    def _headers(self, token: str) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": token,
            "API-Version": MONDAY_API_VERSION,
        }

    def _backoff(self, attempt: int) -> None:
        self._sleep(self.retry_base * (2 ** attempt))

    def request(self, query: str, variables: dict | None = None) -> tuple[str | None, Any]:
        """POST a GraphQL query. Returns (error, data)."""
        token = self.token or monday_token()
        if not token:
            return "MONDAY_API_TOKEN is not configured. Set it in your .env file.", None

        last_error: Exception | None = None
        for attempt in range(self.max_retries):
            try:
                resp = self.session.post(
                    self.api_url,
                    json={"query": query, "variables": variables or {}},
                    headers=self._headers(token),
                    timeout=self.timeout,
                )
            except requests.RequestException as exc:
                last_error = exc
                logger.warning(f"monday.com request failed (attempt {attempt + 1}/{self.max_retries}): {exc}")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                continue

            if resp.status_code == 401:
                return "Invalid Monday.com API token. Please verify your credentials.", None
            if resp.status_code == 429:
                logger.info(f"monday.com rate limit hit, backing off (attempt {attempt + 1}/{self.max_retries})")
                if attempt < self.max_retries - 1:
                    self._backoff(attempt)
                continue
            if not resp.ok:
                return f"Monday.com API returned HTTP {resp.status_code}", None

            try:
                body = resp.json()
            except ValueError:
                return "Monday.com API returned a non-JSON response", None
            if body.get("errors"):
                messages = "; ".join(str(e.get("message", e)) for e in body["errors"])
                return f"Monday.com API error: {messages}", None
            if body.get("error_message"):
                return str(body["error_message"]), None
            return None, body.get("data")

        if last_error is not None:
            return f"Network failure after {self.max_retries} retries: {last_error}", None
        return f"Monday.com API rate limit exceeded after {self.max_retries} retries", None

    def fetch_board(self, board_id: str) -> FetchResult:
        """Fetch one board with up to PAGE_LIMIT items."""
        error, data = self.request(BOARD_QUERY, {"ids": [str(board_id)], "limit": PAGE_LIMIT})
        if error:
            return FetchResult(error=error)
        boards = (data or {}).get("boards") or []
        if not boards:
            return FetchResult(error=f"Board {board_id} not found or empty.")
        board = RawBoard.from_api(boards[0])
        logger.info(f"Fetched board {board_id} '{board.name}' ({len(board.items)} items)")
        return FetchResult(board=board)

    def fetch_board_by_name(self, name: str) -> FetchResult:
        """Fetch the first board whose name contains `name` (case-insensitive)."""
        error, data = self.request(BOARD_LIST_QUERY)
        if error:
            return FetchResult(error=error)
        needle = name.lower()
        match = next(
            (b for b in (data or {}).get("boards") or [] if needle in str(b.get("name", "")).lower()),
            None,
        )
        if match is None:
            return FetchResult(error=f'No board matching "{name}" found.')
        return self.fetch_board(str(match["id"]))
