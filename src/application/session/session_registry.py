"""
Registry of live console sessions, keyed by id and scoped to their owner.
See docs/Architecture.md (Application layer) for the architectural rationale.

Each owner may hold at most *max_per_owner* sessions. Adding one more evicts
and closes that owner's oldest session, so abandoned connections do not keep
their HTTP clients open forever.
"""

import logging
import threading
import uuid
from typing import Callable, Optional

from src.application.session.console_session import ConsoleSession
from src.domain.errors import SessionNotFoundError

logger = logging.getLogger(__name__)


class SessionRegistry:
    def __init__(
        self,
        id_factory: Callable[[], str] = lambda: uuid.uuid4().hex,
        max_per_owner: int = 5,
    ) -> None:
        if max_per_owner < 1:
            raise ValueError("max_per_owner must be at least 1")
        self._id_factory = id_factory
        self._max_per_owner = max_per_owner
        # Insertion order doubles as age: the first match for an owner is their oldest session.
        self._sessions: dict[str, ConsoleSession] = {}
        self._lock = threading.Lock()

    def new_id(self) -> str:
        return self._id_factory()

    def add(self, session: ConsoleSession) -> ConsoleSession:
        with self._lock:
            self._sessions[session.id] = session
            owned = [s for s in self._sessions.values() if s.owner == session.owner]
            evicted = owned[: max(0, len(owned) - self._max_per_owner)]
            for old in evicted:
                self._sessions.pop(old.id, None)
        for old in evicted:
            logger.info("Evicting oldest console session", extra={"session_id": old.id})
            old.close()
        return session

    def get(self, session_id: str, owner: str) -> ConsoleSession:
        """Return the session, hiding sessions that belong to someone else.

        Raises:
            SessionNotFoundError: if the id is unknown or owned by another user.
        """
        with self._lock:
            session = self._sessions.get(session_id)
        if session is None or session.owner != owner:
            raise SessionNotFoundError(f"no console session {session_id!r}")
        return session

    def remove(self, session_id: str, owner: str) -> ConsoleSession:
        session = self.get(session_id, owner)
        with self._lock:
            self._sessions.pop(session_id, None)
        return session

    def sessions_for(self, owner: str) -> list[ConsoleSession]:
        with self._lock:
            return [s for s in self._sessions.values() if s.owner == owner]

    def close_owner(self, owner: str, keep: Optional[str] = None) -> int:
        """Remove and close every session of *owner* except *keep*; return how many closed."""
        with self._lock:
            owned = [s for s in self._sessions.values() if s.owner == owner and s.id != keep]
            for session in owned:
                self._sessions.pop(session.id, None)
        for session in owned:
            session.close()
        return len(owned)

    def close_all(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.close()
