"""Menu graph: pages, options and the builder that validates them."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Iterable, Mapping

from .errors import InvalidMenuDefinition, PageNotFound


@dataclass(frozen=True)
class Option:
    """A selectable choice on a page.

    An option may carry a target page, an action key, both, or neither.
    Neither means selecting it ends the session.
    """

    input: str
    label: str = ""
    target_page_id: str | None = None
    action_key: str | None = None
    is_wildcard: bool = False

    def matches(self, user_input: str) -> bool:
        """Check for an exact (non-wildcard) match on the input token."""
        return not self.is_wildcard and self.input == user_input


@dataclass(frozen=True)
class Page:
    """One screen of the menu: a title plus an ordered list of options."""

    id: str
    title: str = ""
    options: tuple[Option, ...] = field(default_factory=tuple)
    is_terminal: bool = False
    items_per_page: int | None = None

    def __init__(
        self,
        id: str,
        title: str | list[str] = "",
        options: Iterable[Option] | None = None,
        is_terminal: bool = False,
        items_per_page: int | None = None,
    ):
        # Multi-line titles are pre-rendered once
        if isinstance(title, (list, tuple)):
            title = "\n".join(title)
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "title", title)
        object.__setattr__(self, "options", tuple(options) if options else ())
        object.__setattr__(self, "is_terminal", is_terminal)
        object.__setattr__(self, "items_per_page", items_per_page)

    def find_option(self, user_input: str) -> Option | None:
        """
        Find the option selected by the input.

        Exact matches among non-wildcard options win; otherwise the
        page's wildcard option (if any) is returned.

        Args:
            user_input: Raw subscriber input.

        Returns:
            The matched option, or None if nothing matches.
        """
        return self.exact_option(user_input) or self.wildcard_option()

    def exact_option(self, user_input: str) -> Option | None:
        """Find a non-wildcard option whose input equals user_input."""
        for option in self.options:
            if option.matches(user_input):
                return option
        return None

    def wildcard_option(self) -> Option | None:
        """Get the page's wildcard option, if it has one."""
        for option in self.options:
            if option.is_wildcard:
                return option
        return None

    def listed_options(self) -> list[Option]:
        """Options shown in the rendered listing.

        Every option is listed except a wildcard with no label, which has
        nothing to show.
        """
        return [o for o in self.options if not (o.is_wildcard and not o.label)]


@dataclass(frozen=True)
class Menu:
    """Immutable graph of pages keyed by id, with a designated root."""

    id: str
    root_id: str
    pages: Mapping[str, Page]

    def __init__(self, id: str, root_id: str, pages: Mapping[str, Page]):
        object.__setattr__(self, "id", id)
        object.__setattr__(self, "root_id", root_id)
        object.__setattr__(self, "pages", MappingProxyType(dict(pages)))

    def get_page(self, page_id: str) -> Page:
        """
        Get a page by id.

        Raises:
            PageNotFound: If no page has this id.
        """
        page = self.pages.get(page_id)
        if page is None:
            raise PageNotFound(page_id, self.id)
        return page

    def has_page(self, page_id: str) -> bool:
        """Check if a page exists."""
        return page_id in self.pages

    @property
    def root(self) -> Page:
        """The root page."""
        return self.get_page(self.root_id)

    def action_keys(self) -> set[str]:
        """Every action key referenced by any option in the menu."""
        return {
            option.action_key
            for page in self.pages.values()
            for option in page.options
            if option.action_key
        }


class MenuBuilder:
    """Collects pages and produces a validated Menu.

    Example:
        builder = MenuBuilder("bank")
        builder.add_page("main", "Welcome", [Option("1", "Balance", "balance")])
        builder.add_page("balance", "Your balance is 10", is_terminal=True)
        menu = builder.set_root("main").build()
    """

    def __init__(self, menu_id: str):
        self.menu_id = menu_id
        self._root_id: str | None = None
        self._pages: dict[str, Page] = {}

    def set_root(self, page_id: str) -> "MenuBuilder":
        """Designate the root page."""
        self._root_id = page_id
        return self

    def add_page(
        self,
        page_id: str,
        title: str | list[str] = "",
        options: Iterable[Option] | None = None,
        is_terminal: bool = False,
        items_per_page: int | None = None,
    ) -> "MenuBuilder":
        """
        Add a page to the menu.

        Raises:
            InvalidMenuDefinition: If a page with this id was already added.
        """
        if page_id in self._pages:
            raise InvalidMenuDefinition(f"Duplicate page id '{page_id}' in menu '{self.menu_id}'")
        self._pages[page_id] = Page(
            id=page_id,
            title=title,
            options=options,
            is_terminal=is_terminal,
            items_per_page=items_per_page,
        )
        return self

    def build(self) -> Menu:
        """
        Validate the collected pages and return the finished Menu.

        Raises:
            InvalidMenuDefinition: If the root is unset or missing, an option
                targets a missing page, a page has more than one wildcard,
                or two options on a page share an input token.
        """
        if self._root_id is None:
            raise InvalidMenuDefinition(f"Root page must be set before building menu '{self.menu_id}'")

        if self._root_id not in self._pages:
            raise InvalidMenuDefinition(f"Root page '{self._root_id}' has not been configured")

        for page in self._pages.values():
            self._validate_page(page)

        return Menu(id=self.menu_id, root_id=self._root_id, pages=self._pages)

    def _validate_page(self, page: Page) -> None:
        wildcards = [o for o in page.options if o.is_wildcard]
        if len(wildcards) > 1:
            raise InvalidMenuDefinition(f"Page '{page.id}' has {len(wildcards)} wildcard options")

        seen: set[str] = set()
        for option in page.options:
            if not option.is_wildcard:
                if option.input in seen:
                    raise InvalidMenuDefinition(
                        f"Page '{page.id}' has more than one option for input '{option.input}'"
                    )
                seen.add(option.input)

            if option.target_page_id is not None and option.target_page_id not in self._pages:
                raise InvalidMenuDefinition(
                    f"Option '{option.input}' on page '{page.id}' targets missing page "
                    f"'{option.target_page_id}'"
                )
