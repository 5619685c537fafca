"""Pytest configuration and fixtures."""

import pytest

from ussd_navigator.config import Config
from ussd_navigator.core import MenuBuilder, Option
from ussd_navigator.interfaces import UssdRequest
from ussd_navigator.stores import MemorySessionStore


@pytest.fixture
def simple_menu():
    """Root with a terminal step1 and a non-terminal step2."""
    return (
        MenuBuilder("simple")
        .add_page("main", "Welcome", [
            Option("1", "Step one", target_page_id="step1"),
            Option("2", "Step two", target_page_id="step2"),
        ])
        .add_page("step1", "Step one done", is_terminal=True)
        .add_page("step2", "Step two", [
            Option("1", "Deeper", target_page_id="step3"),
        ])
        .add_page("step3", "Step three", [
            Option("1", "Finish"),
        ])
        .set_root("main")
        .build()
    )


@pytest.fixture
def bank_menu():
    """Menu wired to action keys, including a wildcard entry page."""
    return (
        MenuBuilder("bank")
        .add_page("main", ["Welcome to MyBank", "Choose an option"], [
            Option("1", "Check balance", action_key="BalanceCheck"),
            Option("2", "Transfer", target_page_id="recipient"),
            Option("3", "Help", action_key="Unregistered", target_page_id="help"),
            Option("4", "Exit", action_key="Unregistered"),
        ])
        .add_page("recipient", "Enter recipient number", [
            Option("*", is_wildcard=True, action_key="TransferRecipient"),
        ])
        .add_page("amount", "Enter amount", [
            Option("*", is_wildcard=True, action_key="TransferAmount"),
        ])
        .add_page("help", "Call 100 for help", is_terminal=True)
        .set_root("main")
        .build()
    )


@pytest.fixture
def long_menu():
    """Root with twelve listed options."""
    options = [Option(str(i), f"Item {i}", target_page_id="leaf") for i in range(1, 13)]
    return (
        MenuBuilder("long")
        .add_page("main", "Pick an item", options)
        .add_page("leaf", "Picked", is_terminal=True)
        .set_root("main")
        .build()
    )


@pytest.fixture
def store():
    """Empty in-memory session store."""
    return MemorySessionStore()


@pytest.fixture
def config():
    """Default config."""
    return Config()


@pytest.fixture
def make_request():
    """Factory for gateway requests on a fixed session id."""

    def _make(user_data: str = "", new_session: bool = False, session_id: str = "sess-1"):
        return UssdRequest(
            session_id=session_id,
            msisdn="233200000001",
            user_id="user-1",
            network="MTN",
            user_data=user_data,
            new_session=new_session,
        )

    return _make
