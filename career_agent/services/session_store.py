"""In-memory conversation session store.

Holds one ConversationState per session and serializes turns within a
session with a per-session asyncio.Lock. Different sessions run
concurrently.

Sessions expire after a period without activity (SESSION_TTL_MINUTES). Each
turn pushes the expiry forward; expired sessions are swept whenever a new one
is created and rejected as missing when looked up.

Safe for a single event loop. Multi-instance deployments need a shared
backend (e.g. Redis) behind the same interface.
"""

import asyncio
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta

from career_agent.agents.state import ConversationState, create_initial_state
from career_agent.core.config import settings
from career_agent.core.errors import NotFoundError

DEFAULT_SESSION_TTL_MINUTES = 60


@dataclass
class _Session:
    state: ConversationState
    expires_at: datetime
    lock: asyncio.Lock = field(default_factory=asyncio.Lock)

    def expired(self, now: datetime) -> bool:
        # A turn in progress keeps its session alive
        return now > self.expires_at and not self.lock.locked()


class SessionStore:
    """Session id → conversation state, scoped by user."""

    def __init__(self, ttl_minutes: int = DEFAULT_SESSION_TTL_MINUTES) -> None:
        self._sessions: dict[str, _Session] = {}
        self._ttl = timedelta(minutes=ttl_minutes)

    def _expiry(self) -> datetime:
        return datetime.now(UTC) + self._ttl

    def create(self, user_id: str, **context: object) -> ConversationState:
        """Start a new session for the user.

        Args:
            user_id: Owner of the session.
            **context: Initial cv_id, cv_data, target_job or application_id.

        Returns:
            The initial state.
        """
        self.cleanup_expired()
        session_id = str(uuid.uuid4())
        state = create_initial_state(user_id, session_id, **context)
        self._sessions[session_id] = _Session(state=state, expires_at=self._expiry())
        return state

    def _owned(self, user_id: str, session_id: str) -> _Session:
        session = self._sessions.get(session_id)
        # Another user's session is reported the same as a missing one
        if session is None or session.state.get("user_id") != user_id:
            raise NotFoundError("Session", session_id)
        if session.expired(datetime.now(UTC)):
            del self._sessions[session_id]
            raise NotFoundError("Session", session_id)
        return session

    def get(self, user_id: str, session_id: str) -> ConversationState:
        """Current state of a session.

        Raises:
            NotFoundError: If the session does not exist for this user.
        """
        return self._owned(user_id, session_id).state

    @asynccontextmanager
    async def locked(
        self, user_id: str, session_id: str
    ) -> AsyncIterator["SessionHandle"]:
        """Hold the session lock for the duration of one turn.

        Yields:
            SessionHandle whose state can be read and replaced.

        Raises:
            NotFoundError: If the session does not exist for this user.
        """
        session = self._owned(user_id, session_id)
        async with session.lock:
            session.expires_at = self._expiry()
            yield SessionHandle(session)

    def delete(self, user_id: str, session_id: str) -> None:
        self._owned(user_id, session_id)
        del self._sessions[session_id]

    def cleanup_expired(self) -> int:
        """Remove expired sessions.

        Returns:
            Number of sessions removed.
        """
        now = datetime.now(UTC)
        expired = [sid for sid, session in self._sessions.items() if session.expired(now)]
        for session_id in expired:
            del self._sessions[session_id]
        return len(expired)

    def clear(self) -> None:
        """Remove all sessions (for testing)."""
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


class SessionHandle:
    """Access to a locked session's state."""

    def __init__(self, session: _Session) -> None:
        self._session = session

    @property
    def state(self) -> ConversationState:
        return self._session.state

    def save(self, state: ConversationState) -> None:
        self._session.state = state


# Singleton instance for the application
_session_store: SessionStore | None = None


def get_session_store() -> SessionStore:
    """Get the singleton session store instance."""
    global _session_store
    if _session_store is None:
        _session_store = SessionStore(ttl_minutes=settings.session_ttl_minutes)
    return _session_store


def reset_session_store() -> None:
    """Drop the singleton (for testing)."""
    global _session_store
    _session_store = None
