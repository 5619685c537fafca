"""Core components for the USSD navigation engine."""

from .errors import (
    UssdError,
    ConfigurationError,
    MenuConfigurationError,
    InvalidMenuDefinition,
    PageNotFound,
    DuplicateActionKey,
    SessionStoreError,
)
from .menu import Menu, MenuBuilder, Option, Page
from .pagination import PaginatedResult, paginate, paginate_options
from .session import Session, SessionKey
from .command_parser import (
    CommandParser,
    Command,
    SelectCommand,
    BackCommand,
    HomeCommand,
    NextPageCommand,
    PreviousPageCommand,
    InvalidCommand,
)
from .menu_renderer import MenuRenderer
from .handler_registry import HandlerRegistry

__all__ = [
    "UssdError",
    "ConfigurationError",
    "MenuConfigurationError",
    "InvalidMenuDefinition",
    "PageNotFound",
    "DuplicateActionKey",
    "SessionStoreError",
    "Menu",
    "MenuBuilder",
    "Option",
    "Page",
    "PaginatedResult",
    "paginate",
    "paginate_options",
    "Session",
    "SessionKey",
    "CommandParser",
    "Command",
    "SelectCommand",
    "BackCommand",
    "HomeCommand",
    "NextPageCommand",
    "PreviousPageCommand",
    "InvalidCommand",
    "MenuRenderer",
    "HandlerRegistry",
]
