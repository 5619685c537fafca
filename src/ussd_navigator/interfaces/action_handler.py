"""Abstract interface for pluggable business actions."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.session import Session, SessionKey
from .gateway import UssdRequest

T = TypeVar("T")


@dataclass
class StepResult:
    """Outcome of processing one step.

    Attributes:
        message: Reply text (discarded when navigation is also requested).
        continue_session: Whether the gateway should keep the session open.
        next_step: Page id to navigate to and render.
        go_home: Navigate to the root page and render it.
    """

    message: str = ""
    continue_session: bool = True
    next_step: str | None = None
    go_home: bool = False

    @classmethod
    def continue_with(cls, message: str, next_step: str | None = None) -> "StepResult":
        return cls(message=message, continue_session=True, next_step=next_step)

    @classmethod
    def end(cls, message: str) -> "StepResult":
        return cls(message=message, continue_session=False)

    @classmethod
    def home(cls) -> "StepResult":
        return cls(go_home=True, continue_session=True)

    @classmethod
    def go_to(cls, page_id: str) -> "StepResult":
        return cls(continue_session=True, next_step=page_id)


@dataclass
class UssdContext:
    """What an action handler receives: the request and the live session."""

    request: UssdRequest
    session: Session
    action_key: str | None = None

    @property
    def user_input(self) -> str:
        return self.request.user_data


class ActionHandler(ABC):
    """Business logic invoked when an option's action key is selected."""

    @property
    @abstractmethod
    def key(self) -> str:
        """Stable action key this handler answers to."""
        pass

    @abstractmethod
    def handle(self, context: UssdContext) -> StepResult:
        """
        Run the action.

        The handler may mutate context.session freely; the engine
        persists it after the request.

        Args:
            context: Request and session for this step.

        Returns:
            The step outcome.
        """
        pass


class BaseActionHandler(ActionHandler):
    """Convenience base with result and session-data helpers.

    The key defaults to the class name without a trailing "Handler"
    (BalanceCheckHandler -> "BalanceCheck"). Set action_key to override.
    """

    action_key: str | None = None

    @property
    def key(self) -> str:
        if self.action_key:
            return self.action_key
        name = type(self).__name__
        if name.lower().endswith("handler") and len(name) > len("handler"):
            return name[: -len("handler")]
        return name

    def continue_with(self, message: str, next_step: str | None = None) -> StepResult:
        return StepResult.continue_with(message, next_step)

    def end(self, message: str) -> StepResult:
        return StepResult.end(message)

    def go_home(self) -> StepResult:
        return StepResult.home()

    def go_to(self, page_id: str) -> StepResult:
        return StepResult.go_to(page_id)

    def get(self, context: UssdContext, key: SessionKey[T]) -> T | None:
        return context.session.get(key)

    def get_or_default(self, context: UssdContext, key: SessionKey[T], default: T) -> T:
        return context.session.get(key, default)

    def set(self, context: UssdContext, key: SessionKey[T], value: T) -> None:
        context.session.set(key, value)

    def has(self, context: UssdContext, key: SessionKey[Any]) -> bool:
        return context.session.has(key)

    def remove(self, context: UssdContext, key: SessionKey[Any]) -> None:
        context.session.remove(key)
