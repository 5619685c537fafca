"""Explicit registry mapping action keys to handler instances."""

import logging
from typing import Iterable, Iterator

from ..interfaces.action_handler import ActionHandler
from .errors import DuplicateActionKey

logger = logging.getLogger(__name__)


class HandlerRegistry:
    """Action handlers keyed by their action key.

    Built once at startup. Holds at most one handler per key.
    """

    def __init__(self, handlers: Iterable[ActionHandler] | None = None):
        self._handlers: dict[str, ActionHandler] = {}
        for handler in handlers or ():
            self.register(handler)

    def register(self, handler: ActionHandler) -> None:
        """
        Register a handler under its key.

        Raises:
            DuplicateActionKey: If a handler already answers to this key.
        """
        key = handler.key
        if key in self._handlers:
            raise DuplicateActionKey(key)
        self._handlers[key] = handler
        logger.debug(f"Registered action handler {type(handler).__name__} as '{key}'")

    def get(self, key: str) -> ActionHandler | None:
        """Look up the handler for a key, or None if unregistered."""
        return self._handlers.get(key)

    def keys(self) -> list[str]:
        """Get all registered keys."""
        return list(self._handlers.keys())

    def __contains__(self, key: object) -> bool:
        return key in self._handlers

    def __len__(self) -> int:
        return len(self._handlers)

    def __iter__(self) -> Iterator[ActionHandler]:
        return iter(self._handlers.values())
