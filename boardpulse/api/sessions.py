"""
In-memory chat sessions with a sliding TTL.
"""
from __future__ import annotations

import threading
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from boardpulse.config import MAX_HISTORY, SESSION_TTL_SECONDS


@dataclass
class ChatSession:
    history: list[dict] = field(default_factory=list)
    last_access: datetime = field(default_factory=datetime.now)


class SessionStore:
    """Conversation history keyed by session id; at most MAX_HISTORY exchanges per session."""

    def __init__(self, ttl_seconds: int = SESSION_TTL_SECONDS, max_history: int = MAX_HISTORY):
        self.ttl = timedelta(seconds=ttl_seconds)
        self.max_history = max_history
        self._sessions: dict[str, ChatSession] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> ChatSession:
        """Fetch or create a session, refreshing its last access time."""
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                session = self._sessions[session_id] = ChatSession()
            session.last_access = datetime.now()
            return session

    def record(self, session_id: str, user_text: str, assistant_text: str) -> None:
        session = self.get(session_id)
        with self._lock:
            session.history.append({"role": "user", "content": user_text})
            session.history.append({"role": "assistant", "content": assistant_text})
            del session.history[: -self.max_history * 2]

    def sweep(self, now: datetime | None = None) -> int:
        """Drop sessions idle longer than the TTL. Returns how many were dropped."""
        now = now or datetime.now()
        with self._lock:
            stale = [sid for sid, s in self._sessions.items() if now - s.last_access > self.ttl]
            for sid in stale:
                del self._sessions[sid]
        return len(stale)
