"""Load menu graphs from YAML definition files.

Example document:

    menu:
      id: bank
      root: main
      pages:
        main:
          title: |
            Welcome to MyBank
          options:
            - {input: "1", label: Check balance, action: BalanceCheck}
            - {input: "2", label: Transfer, target: transfer_recipient}
        transfer_recipient:
          title: Enter recipient phone number
          options:
            - {wildcard: true, action: TransferRecipient}
"""

from pathlib import Path
from typing import Any

import yaml

from ..core.errors import InvalidMenuDefinition
from ..core.menu import Menu, MenuBuilder, Option


def load_menu(path: str | Path) -> Menu:
    """
    Load and validate a menu from a YAML file.

    Args:
        path: Path to the YAML menu definition.

    Returns:
        The built Menu.

    Raises:
        FileNotFoundError: If the file doesn't exist.
        InvalidMenuDefinition: If the document is malformed or fails validation.
    """
    menu_path = Path(path)

    if not menu_path.exists():
        raise FileNotFoundError(f"Menu file not found: {path}")

    with open(menu_path) as f:
        try:
            data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise InvalidMenuDefinition(f"Menu file is not valid YAML: {e}") from e

    return build_menu(data)


def build_menu(data: dict[str, Any]) -> Menu:
    """Build a Menu from an already-parsed definition document."""
    menu = data.get("menu") if isinstance(data, dict) else None
    if not isinstance(menu, dict):
        raise InvalidMenuDefinition("Menu definition must have a top-level 'menu' mapping")

    pages = menu.get("pages")
    if not isinstance(pages, dict) or not pages:
        raise InvalidMenuDefinition("Menu definition must declare at least one page")

    builder = MenuBuilder(str(menu.get("id", "menu")))
    if "root" in menu:
        builder.set_root(str(menu["root"]))

    for page_id, page in pages.items():
        page = page or {}
        if not isinstance(page, dict):
            raise InvalidMenuDefinition(f"Page '{page_id}' must be a mapping, got {page!r}")

        options = page.get("options") or []
        if not isinstance(options, list):
            raise InvalidMenuDefinition(f"Options on page '{page_id}' must be a list")

        title = page.get("title") or ""
        if isinstance(title, str):
            title = title.rstrip("\n")
        builder.add_page(
            str(page_id),
            title=title,
            options=[_parse_option(page_id, o) for o in options],
            is_terminal=bool(page.get("terminal", False)),
            items_per_page=page.get("items_per_page"),
        )

    return builder.build()


def _parse_option(page_id: str, raw: Any) -> Option:
    if not isinstance(raw, dict):
        raise InvalidMenuDefinition(f"Option on page '{page_id}' must be a mapping, got {raw!r}")

    is_wildcard = bool(raw.get("wildcard", False))
    if "input" not in raw and not is_wildcard:
        raise InvalidMenuDefinition(f"Option on page '{page_id}' is missing 'input'")

    target = raw.get("target")
    action = raw.get("action")
    return Option(
        input=str(raw.get("input", "*")),
        label=str(raw.get("label", "")),
        target_page_id=str(target) if target is not None else None,
        action_key=str(action) if action is not None else None,
        is_wildcard=is_wildcard,
    )
