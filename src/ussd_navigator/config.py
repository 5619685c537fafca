"""Configuration handling for the USSD navigation engine."""

from dataclasses import dataclass
from pathlib import Path
import yaml

from .core.errors import ConfigurationError
from .core.session import DEFAULT_SESSION_TTL


@dataclass(frozen=True)
class Config:
    """Configuration settings for the engine.

    Attributes:
        session_timeout_seconds: Session TTL, refreshed on every request.
        back_command: Input that navigates back one level.
        home_command: Input that navigates to the root page.
        enable_auto_back_navigation: Whether the back command is honored.
        enable_pagination: Whether long option lists are split into parts.
        items_per_page: Options shown per part when paginating.
        next_page_command: Input for the next part.
        previous_page_command: Input for the previous part.
        invalid_input_message: Prefix shown when input matches nothing.
        default_end_message: Reply for options with no target or action.
        enable_session_resumption: Offer to resume a live session on redial.
        resume_session_prompt: Header of the resume/fresh prompt.
        resume_option_label: Label of choice 1.
        start_fresh_option_label: Label of choice 2.
        store_backend: "memory" or "redis".
        redis_url: Redis connection URL for the redis backend.
        redis_key_prefix: Prefix for session keys in Redis.
    """

    session_timeout_seconds: float = DEFAULT_SESSION_TTL
    back_command: str = "0"
    home_command: str = "00"
    enable_auto_back_navigation: bool = True
    enable_pagination: bool = False
    items_per_page: int = 5
    next_page_command: str = "#"
    previous_page_command: str = "*"
    invalid_input_message: str = "Invalid option. Please try again."
    default_end_message: str = "Thank you for using our service."
    enable_session_resumption: bool = False
    resume_session_prompt: str = "You have an active session."
    resume_option_label: str = "Resume"
    start_fresh_option_label: str = "Start Fresh"
    store_backend: str = "memory"
    redis_url: str = "redis://localhost:6379/0"
    redis_key_prefix: str = "ussd:sess:"

    def __post_init__(self):
        if self.session_timeout_seconds <= 0:
            raise ConfigurationError(
                f"session_timeout_seconds must be positive, got {self.session_timeout_seconds}"
            )
        if self.items_per_page < 1:
            raise ConfigurationError(f"items_per_page must be at least 1, got {self.items_per_page}")


def load_config(path: str | Path) -> Config:
    """
    Load configuration from a YAML file.

    Args:
        path: Path to the YAML configuration file.

    Returns:
        Config object with loaded values.

    Raises:
        FileNotFoundError: If config file doesn't exist.
        ConfigurationError: If a setting is out of range.
    """
    config_path = Path(path)

    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    with open(config_path) as f:
        data = yaml.safe_load(f) or {}

    # Extract sections
    session = data.get("session") or {}
    resumption = data.get("resumption") or {}
    navigation = data.get("navigation") or {}
    pagination = data.get("pagination") or {}
    messages = data.get("messages") or {}
    store = data.get("store") or {}

    return Config(
        session_timeout_seconds=session.get("timeout_seconds", Config.session_timeout_seconds),
        back_command=str(navigation.get("back_command", Config.back_command)),
        home_command=str(navigation.get("home_command", Config.home_command)),
        enable_auto_back_navigation=navigation.get("auto_back", Config.enable_auto_back_navigation),
        enable_pagination=pagination.get("enabled", Config.enable_pagination),
        items_per_page=pagination.get("items_per_page", Config.items_per_page),
        next_page_command=str(pagination.get("next_command", Config.next_page_command)),
        previous_page_command=str(pagination.get("previous_command", Config.previous_page_command)),
        invalid_input_message=messages.get("invalid_input", Config.invalid_input_message),
        default_end_message=messages.get("default_end", Config.default_end_message),
        enable_session_resumption=resumption.get("enabled", Config.enable_session_resumption),
        resume_session_prompt=resumption.get("prompt", Config.resume_session_prompt),
        resume_option_label=resumption.get("resume_label", Config.resume_option_label),
        start_fresh_option_label=resumption.get("start_fresh_label", Config.start_fresh_option_label),
        store_backend=store.get("backend", Config.store_backend),
        redis_url=store.get("redis_url", Config.redis_url),
        redis_key_prefix=store.get("key_prefix", Config.redis_key_prefix),
    )
