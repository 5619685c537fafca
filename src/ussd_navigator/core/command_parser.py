"""Command parser for interpreting subscriber input against the current page."""

from abc import ABC
from dataclasses import dataclass

from .menu import Option, Page
from .pagination import paginate
from .session import Session


class Command(ABC):
    """Base class for all commands."""

    pass


@dataclass(frozen=True)
class SelectCommand(Command):
    """Command selecting an option on the current page."""

    option: Option


@dataclass(frozen=True)
class BackCommand(Command):
    """Command to go back one level."""

    pass


@dataclass(frozen=True)
class HomeCommand(Command):
    """Command to go to the root page."""

    pass


@dataclass(frozen=True)
class NextPageCommand(Command):
    """Command to show the next slice of a paginated page."""

    part: int


@dataclass(frozen=True)
class PreviousPageCommand(Command):
    """Command to show the previous slice of a paginated page."""

    part: int


@dataclass(frozen=True)
class InvalidCommand(Command):
    """Represents input that matches nothing on the current page."""

    original_input: str
    reason: str = "No matching option"


class CommandParser:
    """Classifies raw input into a Command for the current page.

    Precedence: back (when enabled and deeper than the root), home, an
    exact option match, page navigation (when the page is paginated),
    the page's wildcard option, and finally invalid input.
    """

    def __init__(
        self,
        back_command: str = "0",
        home_command: str = "00",
        enable_auto_back_navigation: bool = True,
        enable_pagination: bool = False,
        items_per_page: int = 5,
        next_page_command: str = "#",
        previous_page_command: str = "*",
    ):
        self.back_command = back_command
        self.home_command = home_command
        self.enable_auto_back_navigation = enable_auto_back_navigation
        self.enable_pagination = enable_pagination
        self.items_per_page = items_per_page
        self.next_page_command = next_page_command
        self.previous_page_command = previous_page_command

    def parse(self, user_input: str, page: Page, session: Session) -> Command:
        """
        Parse subscriber input into a Command object.

        Input is compared exactly; no trimming or case folding is applied.

        Args:
            user_input: The raw input from the gateway.
            page: The page the session is currently on.
            session: The live session (for level and part).

        Returns:
            A Command object representing the parsed input.
        """
        if (
            self.enable_auto_back_navigation
            and user_input == self.back_command
            and session.level > 1
        ):
            return BackCommand()

        if user_input == self.home_command:
            return HomeCommand()

        option = page.exact_option(user_input)
        if option is not None:
            return SelectCommand(option=option)

        page_command = self._parse_page_navigation(user_input, page, session)
        if page_command is not None:
            return page_command

        wildcard = page.wildcard_option()
        if wildcard is not None:
            return SelectCommand(option=wildcard)

        return InvalidCommand(original_input=user_input)

    def is_paginated(self, page: Page) -> bool:
        """Check if the engine paginates this page's listing."""
        return self.enable_pagination and len(page.listed_options()) > self.items_per_page

    def _parse_page_navigation(self, user_input: str, page: Page, session: Session) -> Command | None:
        if user_input not in (self.next_page_command, self.previous_page_command):
            return None
        if not self.is_paginated(page):
            return None

        result = paginate(page.listed_options(), session.part, self.items_per_page)
        if user_input == self.next_page_command and result.has_next():
            return NextPageCommand(part=result.current_page + 1)
        if user_input == self.previous_page_command and result.has_previous():
            return PreviousPageCommand(part=result.current_page - 1)
        return None
