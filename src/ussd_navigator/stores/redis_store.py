"""
Redis Session Store
Sessions serialized as JSON under a namespaced key with a millisecond TTL.
"""

import json
import logging
import math

from redis import Redis
from redis.exceptions import RedisError

from ..core.errors import SessionStoreError
from ..core.session import Session
from ..interfaces import SessionStore

logger = logging.getLogger(__name__)


class RedisSessionStore(SessionStore):
    """
    Redis-backed session store.

    The full session, data bag included, is written as JSON. Data-bag
    values that JSON cannot represent (Decimal, datetime, ...) are stored
    as strings and recovered through SessionKey on read.

    Attributes:
        redis: Redis client
        key_prefix: Prefix for all session keys
    """

    def __init__(self, redis: Redis, key_prefix: str = "ussd:sess:"):
        """
        Initialize the store.

        Args:
            redis: Redis client instance
            key_prefix: Prefix for session keys (default: "ussd:sess:")
        """
        self.redis = redis
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = "ussd:sess:") -> "RedisSessionStore":
        """Create a store connected to the given Redis URL."""
        return cls(Redis.from_url(url), key_prefix=key_prefix)

    def _make_key(self, session_id: str) -> str:
        return f"{self.key_prefix}{session_id}"

    def get(self, session_id: str) -> Session | None:
        """
        Load a session.

        Raises:
            SessionStoreError: If Redis fails or the payload is corrupt.
        """
        try:
            payload = self.redis.get(self._make_key(session_id))
        except RedisError as e:
            logger.error(f"[{session_id}] Redis GET failed: {e}")
            raise SessionStoreError(f"Failed to load session {session_id}") from e

        if payload is None:
            logger.debug(f"[{session_id}] No stored session")
            return None

        try:
            return Session.from_dict(json.loads(payload))
        except (json.JSONDecodeError, KeyError, TypeError, ValueError) as e:
            logger.error(f"[{session_id}] Stored session could not be decoded: {e}")
            raise SessionStoreError(f"Corrupt session record for {session_id}") from e

    def set(self, session: Session, ttl: float) -> None:
        """
        Write a session with a TTL.

        Raises:
            SessionStoreError: If Redis fails or the session can't be serialized.
        """
        try:
            serialized = json.dumps(session.to_dict(), default=str)
        except (TypeError, ValueError) as e:
            raise SessionStoreError(f"Session {session.session_id} is not serializable") from e

        ttl_ms = max(1, math.ceil(ttl * 1000))
        try:
            self.redis.set(self._make_key(session.session_id), serialized, px=ttl_ms)
        except RedisError as e:
            logger.error(f"[{session.session_id}] Redis SET failed: {e}")
            raise SessionStoreError(f"Failed to save session {session.session_id}") from e

        logger.debug(f"[{session.session_id}] Stored session (ttl={ttl}s)")

    def remove(self, session_id: str) -> None:
        """
        Delete a session.

        Raises:
            SessionStoreError: If Redis fails.
        """
        try:
            self.redis.delete(self._make_key(session_id))
        except RedisError as e:
            logger.error(f"[{session_id}] Redis DELETE failed: {e}")
            raise SessionStoreError(f"Failed to remove session {session_id}") from e
