"""Menu definition providers."""

from .yaml_menu_loader import build_menu, load_menu

__all__ = ["build_menu", "load_menu"]
