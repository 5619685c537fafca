"""Exception hierarchy for the USSD navigation engine."""


class UssdError(Exception):
    """Base class for all engine errors."""

    pass


class ConfigurationError(UssdError):
    """An engine setting is out of range or inconsistent."""

    pass


class MenuConfigurationError(ConfigurationError):
    """The menu graph or handler wiring is misconfigured.

    Raised at build time when possible, otherwise on first use.
    Always surfaces to the caller as a failed request.
    """

    pass


class InvalidMenuDefinition(MenuConfigurationError):
    """A menu could not be built from its definition."""

    pass


class PageNotFound(MenuConfigurationError):
    """A page id was referenced that does not exist in the menu."""

    def __init__(self, page_id: str, menu_id: str | None = None):
        self.page_id = page_id
        self.menu_id = menu_id
        where = f" in menu '{menu_id}'" if menu_id else ""
        super().__init__(f"Menu page '{page_id}' not found{where}")


class DuplicateActionKey(MenuConfigurationError):
    """Two action handlers were registered under the same key."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Action handler already registered for key '{key}'")


class SessionStoreError(UssdError):
    """A session could not be read from or written to the store."""

    pass
