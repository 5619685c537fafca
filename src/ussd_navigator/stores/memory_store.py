"""In-process session store with TTL expiry."""

import logging
import time
from dataclasses import dataclass

from ..core.session import Session
from ..interfaces import SessionStore

logger = logging.getLogger(__name__)


@dataclass
class SessionEntry:
    """Internal entry storing session and metadata."""

    session: Session
    expires_at: float  # Unix timestamp


class MemorySessionStore(SessionStore):
    """Holds live Session objects in a dict.

    Entries expire lazily on read once their TTL has elapsed;
    cleanup_expired() sweeps them eagerly.
    """

    def __init__(self):
        self._sessions: dict[str, SessionEntry] = {}

    def get(self, session_id: str) -> Session | None:
        """
        Get a session by id.

        Args:
            session_id: The gateway session id.

        Returns:
            The stored session, or None if absent or expired.
        """
        entry = self._sessions.get(session_id)
        if entry is None:
            logger.debug(f"[{session_id}] No stored session")
            return None

        if time.time() >= entry.expires_at:
            logger.debug(f"[{session_id}] Stored session expired")
            del self._sessions[session_id]
            return None

        return entry.session

    def set(self, session: Session, ttl: float) -> None:
        """
        Store a session, refreshing its expiry.

        Args:
            session: The session state.
            ttl: Seconds until the entry expires.
        """
        self._sessions[session.session_id] = SessionEntry(
            session=session,
            expires_at=time.time() + ttl,
        )

    def remove(self, session_id: str) -> None:
        """Remove a session (no-op if absent)."""
        self._sessions.pop(session_id, None)

    def cleanup_expired(self) -> int:
        """
        Remove expired sessions.

        Returns:
            Number of sessions removed.
        """
        now = time.time()
        expired = [
            session_id
            for session_id, entry in self._sessions.items()
            if now >= entry.expires_at
        ]

        for session_id in expired:
            del self._sessions[session_id]

        return len(expired)

    def session_count(self) -> int:
        """Get the number of stored sessions (including not-yet-swept expired ones)."""
        return len(self._sessions)

    def list_sessions(self) -> list[str]:
        """Get list of all stored session ids."""
        return list(self._sessions.keys())
