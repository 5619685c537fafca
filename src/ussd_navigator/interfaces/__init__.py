"""Abstract interfaces for the USSD navigation engine."""

from .gateway import UssdRequest, UssdResponse
from .session_store import SessionStore
from .action_handler import ActionHandler, BaseActionHandler, StepResult, UssdContext

__all__ = [
    "ActionHandler",
    "BaseActionHandler",
    "SessionStore",
    "StepResult",
    "UssdContext",
    "UssdRequest",
    "UssdResponse",
]
