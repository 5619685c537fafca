"""USSD Navigator - menu-driven session navigation for USSD gateways."""

from .config import Config, load_config
from .engine import UssdEngine

__version__ = "0.1.0"

__all__ = ["Config", "UssdEngine", "load_config", "__version__"]
