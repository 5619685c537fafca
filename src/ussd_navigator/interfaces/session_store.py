"""Abstract interface for session persistence."""

from abc import ABC, abstractmethod

from ..core.session import Session


class SessionStore(ABC):
    """Key-value persistence for sessions, keyed by session id.

    Implementations must give read-after-write consistency for a given id
    within one process and must stop returning an entry once its TTL has
    elapsed. Read and write failures are raised as SessionStoreError.
    """

    @abstractmethod
    def get(self, session_id: str) -> Session | None:
        """Load a session, or None if absent or expired."""
        pass

    @abstractmethod
    def set(self, session: Session, ttl: float) -> None:
        """Insert or replace a session, refreshing its expiry.

        Args:
            session: The session to store (keyed by session.session_id).
            ttl: Seconds until the entry expires.
        """
        pass

    @abstractmethod
    def remove(self, session_id: str) -> None:
        """Delete a session (no-op if absent)."""
        pass
