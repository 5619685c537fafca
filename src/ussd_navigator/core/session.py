"""Per-subscriber session state and typed access to its data bag."""

import time
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar, overload

T = TypeVar("T")

DEFAULT_ROOT_ID = "main"
DEFAULT_SESSION_TTL = 120


class SessionKey(Generic[T]):
    """A string key paired with the type of the value stored under it.

    Storage stays a plain string-keyed dict; the type is only used to
    recover the value on read.

    Example:
        RECIPIENT = SessionKey("recipient", str)
        AMOUNT = SessionKey("amount", Decimal)
    """

    __slots__ = ("name", "value_type")

    def __init__(self, name: str, value_type: type[T]):
        if not name or not name.strip():
            raise ValueError("Session key cannot be empty")
        self.name = name
        self.value_type = value_type

    def convert(self, value: Any) -> T | None:
        """
        Recover a stored value as this key's type.

        Values that already have the right type pass through. Others are
        converted with the type's constructor (e.g. a Decimal that was
        persisted as a string). Failed conversions return None.
        """
        if value is None:
            return None
        if isinstance(value, self.value_type):
            return value
        if self.value_type is bool:
            if isinstance(value, str) and value.lower() in ("true", "false"):
                return value.lower() == "true"  # type: ignore[return-value]
            return None
        try:
            return self.value_type(value)  # type: ignore[call-arg]
        except (TypeError, ValueError, ArithmeticError):
            return None

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SessionKey):
            return self.name == other.name
        if isinstance(other, str):
            return self.name == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.name)

    def __str__(self) -> str:
        return self.name

    def __repr__(self) -> str:
        return f"SessionKey({self.name!r}, {self.value_type.__name__})"


@dataclass
class Session:
    """Mutable per-session state.

    Identity fields are fixed for the session's lifetime. Navigation,
    resume and data fields are mutated by the engine and action handlers
    while a request is processed, then persisted by the session store.
    """

    session_id: str
    msisdn: str = ""
    user_id: str = ""
    network: str = ""
    current_page_id: str = DEFAULT_ROOT_ID
    level: int = 1
    part: int = 1
    awaiting_resume_choice: bool = False
    previous_page_id: str | None = None
    expire_at: float = field(default_factory=lambda: time.time() + DEFAULT_SESSION_TTL)
    data: dict[str, Any] = field(default_factory=dict)

    @overload
    def get(self, key: SessionKey[T]) -> T | None: ...

    @overload
    def get(self, key: SessionKey[T], default: T) -> T: ...

    def get(self, key, default=None):
        """
        Get a typed value from the data bag.

        Returns the default when the key is missing or the stored value
        cannot be converted to the key's type.
        """
        value = key.convert(self.data.get(key.name))
        return default if value is None else value

    def set(self, key: SessionKey[T], value: T) -> None:
        """Store a value under a typed key."""
        self.data[key.name] = value

    def has(self, key: SessionKey[Any]) -> bool:
        """Check if the data bag holds this key."""
        return key.name in self.data

    def remove(self, key: SessionKey[Any]) -> None:
        """Remove a key from the data bag (no-op if absent)."""
        self.data.pop(key.name, None)

    def clear(self) -> None:
        """Clear the whole data bag."""
        self.data.clear()

    def navigate_to(self, page_id: str) -> None:
        """Move to a page, starting at its first part."""
        if page_id != self.current_page_id:
            self.part = 1
        self.current_page_id = page_id

    def navigate_home(self, root_id: str) -> None:
        """Return to the root page at depth 1."""
        self.current_page_id = root_id
        self.level = 1
        self.part = 1

    def clear_resume_state(self) -> None:
        """Leave the resume/fresh prompt state."""
        self.awaiting_resume_choice = False
        self.previous_page_id = None

    def is_expired(self, now: float | None = None) -> bool:
        """Check if the session's expiry time has passed."""
        return (now if now is not None else time.time()) >= self.expire_at

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict (for external stores)."""
        return {
            "session_id": self.session_id,
            "msisdn": self.msisdn,
            "user_id": self.user_id,
            "network": self.network,
            "current_page_id": self.current_page_id,
            "level": self.level,
            "part": self.part,
            "awaiting_resume_choice": self.awaiting_resume_choice,
            "previous_page_id": self.previous_page_id,
            "expire_at": self.expire_at,
            "data": dict(self.data),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Session":
        """
        Rebuild a session from to_dict() output.

        Unknown top-level fields are ignored; every data-bag key is kept.
        """
        return cls(
            session_id=data["session_id"],
            msisdn=data.get("msisdn", ""),
            user_id=data.get("user_id", ""),
            network=data.get("network", ""),
            current_page_id=data.get("current_page_id", DEFAULT_ROOT_ID),
            level=int(data.get("level", 1)),
            part=int(data.get("part", 1)),
            awaiting_resume_choice=bool(data.get("awaiting_resume_choice", False)),
            previous_page_id=data.get("previous_page_id"),
            expire_at=float(data.get("expire_at", 0.0)),
            data=dict(data.get("data") or {}),
        )
