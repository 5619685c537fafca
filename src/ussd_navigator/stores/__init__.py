"""Session store implementations."""

from .memory_store import MemorySessionStore
from .redis_store import RedisSessionStore

__all__ = ["MemorySessionStore", "RedisSessionStore"]
