"""Integration tests for UssdEngine."""

import logging
import time
from decimal import Decimal
from unittest.mock import Mock

import pytest
from ussd_navigator.config import Config
from ussd_navigator.core import HandlerRegistry, MenuBuilder, PageNotFound, Session, SessionKey, SessionStoreError
from ussd_navigator.engine import UssdEngine
from ussd_navigator.interfaces import ActionHandler, BaseActionHandler, SessionStore, StepResult

RECIPIENT = SessionKey("recipient", str)
AMOUNT = SessionKey("amount", Decimal)

INVALID = "Invalid option. Please try again."
RESUME_PROMPT = "You have an active session.\n1. Resume\n2. Start Fresh"


class BalanceCheckHandler(BaseActionHandler):
    def handle(self, context):
        return self.end("Your balance is GHS 10.00")


class TransferRecipientHandler(BaseActionHandler):
    def handle(self, context):
        if len(context.user_input) < 10:
            return self.continue_with("Invalid phone number. Please enter a valid phone number:")
        self.set(context, RECIPIENT, context.user_input)
        return self.go_to("amount")


class TransferAmountHandler(BaseActionHandler):
    def handle(self, context):
        self.set(context, AMOUNT, Decimal(context.user_input))
        recipient = self.get(context, RECIPIENT)
        return self.continue_with(f"Confirm transfer to {recipient}", next_step="help")


class TestNewSession:
    """Tests for the first leg of a session."""

    @pytest.fixture
    def engine(self, simple_menu, store):
        return UssdEngine(simple_menu, store)

    def test_renders_root(self, engine, make_request):
        """A new session with no record renders the root listing."""
        response = engine.handle_request(make_request(new_session=True))
        assert response.message == "Welcome\n1. Step one\n2. Step two"
        assert response.continue_session is True

    def test_response_echoes_identity(self, engine, make_request):
        """Response carries the request's identity fields."""
        response = engine.handle_request(make_request(new_session=True))
        assert response.session_id == "sess-1"
        assert response.user_id == "user-1"
        assert response.msisdn == "233200000001"

    def test_session_created_and_persisted(self, engine, store, make_request):
        """The new session is stored with identity and root page."""
        engine.handle_request(make_request(new_session=True))
        session = store.get("sess-1")
        assert session.current_page_id == "main"
        assert session.msisdn == "233200000001"
        assert session.user_id == "user-1"
        assert session.network == "MTN"
        assert session.level == 2  # one render from level 1

    def test_terminal_root_ends_session(self, store, make_request):
        """A terminal root ends the session immediately."""
        menu = MenuBuilder("m").add_page("main", "Closed", is_terminal=True).set_root("main").build()
        response = UssdEngine(menu, store).handle_request(make_request(new_session=True))
        assert response.message == "Closed"
        assert response.continue_session is False

    def test_new_session_resets_existing_record(self, engine, store, make_request):
        """Without resumption a new session restarts at the root."""
        store.set(Session(session_id="sess-1", current_page_id="step2", part=3), ttl=60)
        response = engine.handle_request(make_request(new_session=True))
        assert response.message.startswith("Welcome")
        assert store.get("sess-1").current_page_id == "main"
        assert store.get("sess-1").part == 1


class TestOptionNavigation:
    """Tests for option matching and navigation."""

    @pytest.fixture
    def engine(self, simple_menu, store, make_request):
        engine = UssdEngine(simple_menu, store)
        engine.handle_request(make_request(new_session=True))
        return engine

    def test_select_terminal_page(self, engine, make_request):
        """Selecting a terminal page renders it and ends the session."""
        response = engine.handle_request(make_request("1"))
        assert response.message == "Step one done"
        assert response.continue_session is False

    def test_select_navigates(self, engine, store, make_request):
        """Selecting an option moves to its target."""
        response = engine.handle_request(make_request("2"))
        assert response.message == "Step two\n1. Deeper"
        assert response.continue_session is True
        assert store.get("sess-1").current_page_id == "step2"

    def test_invalid_input(self, engine, store, make_request):
        """Unmatched input re-renders the page with the invalid prefix."""
        response = engine.handle_request(make_request("99"))
        assert response.message == f"{INVALID}\nWelcome\n1. Step one\n2. Step two"
        assert response.continue_session is True
        assert store.get("sess-1").current_page_id == "main"

    def test_custom_invalid_message(self, simple_menu, store, make_request):
        """The invalid-input prefix is configurable."""
        engine = UssdEngine(simple_menu, store, config=Config(invalid_input_message="Nope."))
        engine.handle_request(make_request(new_session=True))
        assert engine.handle_request(make_request("x")).message.startswith("Nope.\nWelcome")

    def test_option_without_target_or_action_ends(self, engine, make_request):
        """An option with neither target nor action ends with the default message."""
        engine.handle_request(make_request("2"))
        engine.handle_request(make_request("1"))
        response = engine.handle_request(make_request("1"))
        assert response.message == "Thank you for using our service."
        assert response.continue_session is False

    def test_level_increments_per_render(self, engine, store, make_request):
        """Each rendered page increments the level."""
        engine.handle_request(make_request("2"))
        assert store.get("sess-1").level == 3
        engine.handle_request(make_request("1"))
        assert store.get("sess-1").level == 4


class TestHomeAndBack:
    """Tests for home and back commands."""

    @pytest.fixture
    def engine(self, simple_menu, store):
        return UssdEngine(simple_menu, store)

    def test_home_from_depth(self, engine, store, make_request):
        """Home resets to the root from any depth."""
        engine.handle_request(make_request(new_session=True))
        engine.handle_request(make_request("2"))
        engine.handle_request(make_request("1"))

        response = engine.handle_request(make_request("00"))

        session = store.get("sess-1")
        assert response.message == "Welcome\n1. Step one\n2. Step two"
        assert session.current_page_id == "main"
        assert session.level == 2  # reset to 1, then rendered once

    def test_home_from_seeded_deep_session(self, engine, store, make_request):
        """Home ignores prior depth and part."""
        store.set(Session(session_id="sess-1", current_page_id="step3", level=40, part=2), ttl=60)
        engine.handle_request(make_request("00"))
        session = store.get("sess-1")
        assert session.current_page_id == "main"
        assert session.level == 2
        assert session.part == 1

    def test_back_collapses_to_root(self, engine, store, make_request):
        """Back at level 2 collapses to the root."""
        store.set(Session(session_id="sess-1", current_page_id="step3", level=2), ttl=60)
        response = engine.handle_request(make_request("0"))
        assert response.message == "Going back...\nWelcome\n1. Step one\n2. Step two"
        assert store.get("sess-1").current_page_id == "main"
        assert store.get("sess-1").level == 2

    def test_back_above_level_two_stays_on_page(self, engine, store, make_request):
        """Back without a history stack only decrements the level."""
        store.set(Session(session_id="sess-1", current_page_id="step3", level=5), ttl=60)
        response = engine.handle_request(make_request("0"))
        assert response.message == "Going back...\nStep three\n1. Finish"
        assert store.get("sess-1").current_page_id == "step3"
        assert store.get("sess-1").level == 5  # decremented, then rendered

    def test_back_at_level_one_is_ordinary_input(self, engine, store, make_request):
        """At level 1 the back token is matched like any input."""
        store.set(Session(session_id="sess-1", current_page_id="step2", level=1), ttl=60)
        response = engine.handle_request(make_request("0"))
        assert response.message.startswith(INVALID)

    def test_back_disabled(self, simple_menu, store, make_request):
        """Back is not honored when auto-back is off."""
        engine = UssdEngine(simple_menu, store, config=Config(enable_auto_back_navigation=False))
        store.set(Session(session_id="sess-1", current_page_id="step2", level=2), ttl=60)
        response = engine.handle_request(make_request("0"))
        assert response.message == f"{INVALID}\nStep two\n1. Deeper"


class TestActionHandlers:
    """Tests for action dispatch."""

    @pytest.fixture
    def engine(self, bank_menu, store, make_request):
        handlers = HandlerRegistry([
            BalanceCheckHandler(),
            TransferRecipientHandler(),
            TransferAmountHandler(),
        ])
        engine = UssdEngine(bank_menu, store, handlers)
        engine.handle_request(make_request(new_session=True))
        return engine

    def test_handler_end_message(self, engine, make_request):
        """A handler's end result is returned as the reply."""
        response = engine.handle_request(make_request("1"))
        assert response.message == "Your balance is GHS 10.00"
        assert response.continue_session is False

    def test_wildcard_handler_validation_message(self, engine, store, make_request):
        """A handler can keep the subscriber on the page with its own text."""
        engine.handle_request(make_request("2"))
        response = engine.handle_request(make_request("123"))
        assert response.message == "Invalid phone number. Please enter a valid phone number:"
        assert response.continue_session is True
        assert store.get("sess-1").current_page_id == "recipient"

    def test_wildcard_handler_navigates(self, engine, store, make_request):
        """A handler's next step is rendered and data is kept."""
        engine.handle_request(make_request("2"))
        response = engine.handle_request(make_request("0244123456"))
        session = store.get("sess-1")
        assert response.message == "Enter amount"
        assert session.current_page_id == "amount"
        assert session.get(RECIPIENT) == "0244123456"

    def test_navigation_discards_handler_message(self, engine, store, make_request):
        """When a handler returns text and a next step, only the destination is shown."""
        engine.handle_request(make_request("2"))
        engine.handle_request(make_request("0244123456"))

        response = engine.handle_request(make_request("50"))

        assert "Confirm transfer" not in response.message
        assert response.message == "Call 100 for help"
        assert response.continue_session is False
        assert store.get("sess-1").get(AMOUNT) == Decimal("50")

    def test_missing_handler_falls_through_to_target(self, engine, make_request, caplog):
        """An unregistered action key degrades to the option's target."""
        with caplog.at_level(logging.WARNING):
            response = engine.handle_request(make_request("3"))
        assert response.message == "Call 100 for help"
        assert "No action handler found for key Unregistered" in caplog.text

    def test_missing_handler_without_target_ends(self, engine, make_request):
        """An unregistered action key with no target ends the session."""
        response = engine.handle_request(make_request("4"))
        assert response.message == "Thank you for using our service."
        assert response.continue_session is False

    def test_context_passed_to_handler(self, bank_menu, store, make_request):
        """Handlers receive a synthesized request and the live session."""
        handler = Mock(spec=ActionHandler)
        handler.key = "BalanceCheck"
        handler.handle.return_value = StepResult.home()
        engine = UssdEngine(bank_menu, store, HandlerRegistry([handler]))
        engine.handle_request(make_request(new_session=True))

        engine.handle_request(make_request("1"))

        context = handler.handle.call_args[0][0]
        assert context.request.session_id == "sess-1"
        assert context.request.msisdn == "233200000001"
        assert context.request.user_id == "user-1"
        assert context.request.network == "MTN"
        assert context.request.user_data == "1"
        assert context.request.new_session is False
        assert context.action_key == "BalanceCheck"
        assert context.session is store.get("sess-1")

    def test_handler_go_home(self, bank_menu, store, make_request):
        """A handler can send the subscriber home."""
        handler = Mock(spec=ActionHandler)
        handler.key = "TransferRecipient"
        handler.handle.return_value = StepResult.home()
        engine = UssdEngine(bank_menu, store, HandlerRegistry([handler]))
        engine.handle_request(make_request(new_session=True))
        engine.handle_request(make_request("2"))

        response = engine.handle_request(make_request("0244123456"))

        assert response.message.startswith("Welcome to MyBank")
        assert store.get("sess-1").current_page_id == "main"
        assert store.get("sess-1").level == 2

    def test_unregistered_keys_logged_at_startup(self, bank_menu, store, caplog):
        """Menu action keys without handlers are reported on construction."""
        with caplog.at_level(logging.WARNING):
            UssdEngine(bank_menu, store, HandlerRegistry([BalanceCheckHandler()]))
        assert "TransferRecipient" in caplog.text
        assert "Unregistered" in caplog.text


class TestResumption:
    """Tests for the resume/fresh prompt."""

    @pytest.fixture
    def engine(self, simple_menu, store, make_request):
        engine = UssdEngine(simple_menu, store, config=Config(enable_session_resumption=True))
        engine.handle_request(make_request(new_session=True))
        engine.handle_request(make_request("2"))
        return engine

    def test_prompt_offered(self, engine, store, make_request):
        """Redialling with a live non-root session offers to resume."""
        response = engine.handle_request(make_request(new_session=True))
        session = store.get("sess-1")
        assert response.message == RESUME_PROMPT
        assert response.continue_session is True
        assert session.awaiting_resume_choice is True
        assert session.previous_page_id == "step2"

    def test_resume(self, engine, store, make_request):
        """Choosing 1 restores the stashed page."""
        engine.handle_request(make_request(new_session=True))
        response = engine.handle_request(make_request("1"))
        session = store.get("sess-1")
        assert response.message == "Resuming your session...\nStep two\n1. Deeper"
        assert session.current_page_id == "step2"
        assert session.awaiting_resume_choice is False
        assert session.previous_page_id is None

    def test_start_fresh(self, engine, store, make_request):
        """Choosing 2 clears data and returns to the root."""
        store.get("sess-1").data["recipient"] = "0244123456"
        engine.handle_request(make_request(new_session=True))

        response = engine.handle_request(make_request("2"))

        session = store.get("sess-1")
        assert response.message == "Welcome\n1. Step one\n2. Step two"
        assert session.current_page_id == "main"
        assert session.data == {}
        assert session.level == 2
        assert session.awaiting_resume_choice is False

    def test_invalid_choice_reprompts(self, engine, store, make_request):
        """Any other input re-shows the prompt until a valid choice."""
        engine.handle_request(make_request(new_session=True))
        for bad in ("3", "00", "0"):
            response = engine.handle_request(make_request(bad))
            assert response.message == f"{INVALID}\n{RESUME_PROMPT}"
            assert store.get("sess-1").awaiting_resume_choice is True

    def test_custom_labels(self, simple_menu, store, make_request):
        """Prompt text and labels are configurable."""
        config = Config(
            enable_session_resumption=True,
            resume_session_prompt="Welcome back.",
            resume_option_label="Continue",
            start_fresh_option_label="Start Again",
        )
        engine = UssdEngine(simple_menu, store, config=config)
        store.set(Session(session_id="sess-1", current_page_id="step2"), ttl=60)
        response = engine.handle_request(make_request(new_session=True))
        assert response.message == "Welcome back.\n1. Continue\n2. Start Again"

    def test_no_prompt_at_root(self, simple_menu, store, make_request):
        """A session parked at the root is not offered resumption."""
        engine = UssdEngine(simple_menu, store, config=Config(enable_session_resumption=True))
        engine.handle_request(make_request(new_session=True))
        response = engine.handle_request(make_request(new_session=True))
        assert response.message.startswith("Welcome")

    def test_no_prompt_when_expired(self, simple_menu, store, make_request):
        """An expired record is not offered resumption."""
        engine = UssdEngine(simple_menu, store, config=Config(enable_session_resumption=True))
        store.set(
            Session(session_id="sess-1", current_page_id="step2", expire_at=time.time() - 1),
            ttl=60,
        )
        response = engine.handle_request(make_request(new_session=True))
        assert response.message.startswith("Welcome")
        assert store.get("sess-1").current_page_id == "main"

    def test_no_prompt_when_disabled(self, simple_menu, store, make_request):
        """Resumption is off by default."""
        engine = UssdEngine(simple_menu, store)
        store.set(Session(session_id="sess-1", current_page_id="step2"), ttl=60)
        response = engine.handle_request(make_request(new_session=True))
        assert response.message.startswith("Welcome")


class TestPagination:
    """Tests for engine-level option pagination."""

    @pytest.fixture
    def engine(self, long_menu, store, make_request):
        engine = UssdEngine(long_menu, store, config=Config(enable_pagination=True, items_per_page=5))
        engine.handle_request(make_request(new_session=True))
        return engine

    def test_first_part(self, store, long_menu, make_request):
        """The root shows the first five items and a next control."""
        engine = UssdEngine(long_menu, store, config=Config(enable_pagination=True))
        response = engine.handle_request(make_request(new_session=True))
        lines = response.message.splitlines()
        assert lines[1:] == ["1. Item 1", "2. Item 2", "3. Item 3", "4. Item 4", "5. Item 5", "#. Next"]

    def test_next_and_previous(self, engine, store, make_request):
        """Next/previous tokens move between parts."""
        response = engine.handle_request(make_request("#"))
        assert "6. Item 6" in response.message
        assert response.message.endswith("#. Next\n*. Previous")
        assert store.get("sess-1").part == 2

        response = engine.handle_request(make_request("*"))
        assert "1. Item 1" in response.message
        assert store.get("sess-1").part == 1

    def test_next_past_last_part_is_invalid(self, engine, store, make_request):
        """Next on the last part is rejected."""
        engine.handle_request(make_request("#"))
        engine.handle_request(make_request("#"))
        response = engine.handle_request(make_request("#"))
        assert response.message.startswith(INVALID)
        assert "12. Item 12" in response.message
        assert store.get("sess-1").part == 3

    def test_hidden_option_still_selectable(self, engine, make_request):
        """Options on other parts can still be selected by input."""
        response = engine.handle_request(make_request("12"))
        assert response.message == "Picked"

    def test_part_resets_on_navigation(self, engine, store, make_request):
        """Leaving a page resets the part."""
        engine.handle_request(make_request("#"))
        engine.handle_request(make_request("7"))
        assert store.get("sess-1").part == 1


class TestErrorPolicy:
    """Tests for fatal vs recoverable errors."""

    def test_missing_page_is_fatal(self, bank_menu, store, make_request):
        """Navigating to an unknown page raises PageNotFound."""
        handler = Mock(spec=ActionHandler)
        handler.key = "BalanceCheck"
        handler.handle.return_value = StepResult.go_to("ghost")
        engine = UssdEngine(bank_menu, store, HandlerRegistry([handler]))
        engine.handle_request(make_request(new_session=True))

        with pytest.raises(PageNotFound) as exc_info:
            engine.handle_request(make_request("1"))
        assert exc_info.value.page_id == "ghost"

    def test_stored_page_missing_is_fatal(self, simple_menu, store, make_request):
        """A stored page id that is no longer in the menu raises."""
        store.set(Session(session_id="sess-1", current_page_id="removed"), ttl=60)
        with pytest.raises(PageNotFound):
            UssdEngine(simple_menu, store).handle_request(make_request("1"))

    def test_store_read_failure_propagates(self, simple_menu, make_request):
        """Store read errors fail the request."""
        store = Mock(spec=SessionStore)
        store.get.side_effect = SessionStoreError("down")
        with pytest.raises(SessionStoreError):
            UssdEngine(simple_menu, store).handle_request(make_request(new_session=True))

    def test_store_write_failure_propagates(self, simple_menu, make_request):
        """Store write errors fail the request."""
        store = Mock(spec=SessionStore)
        store.get.return_value = None
        store.set.side_effect = SessionStoreError("down")
        with pytest.raises(SessionStoreError):
            UssdEngine(simple_menu, store).handle_request(make_request(new_session=True))


class TestPersistence:
    """Tests for session persistence."""

    def test_persisted_with_ttl_on_invalid_input(self, simple_menu, make_request):
        """Every request, including invalid input, refreshes the TTL."""
        store = Mock(spec=SessionStore)
        store.get.return_value = Session(session_id="sess-1", current_page_id="main", level=2)
        engine = UssdEngine(simple_menu, store, config=Config(session_timeout_seconds=90))

        before = time.time()
        engine.handle_request(make_request("99"))

        store.set.assert_called_once()
        session, ttl = store.set.call_args[0]
        assert ttl == 90
        assert session.expire_at >= before + 90

    def test_end_session_removes_record(self, simple_menu, store, make_request):
        """end_session removes the stored session."""
        engine = UssdEngine(simple_menu, store)
        engine.handle_request(make_request(new_session=True))
        engine.end_session("sess-1")
        assert store.get("sess-1") is None

    def test_new_session_expiry_uses_configured_ttl(self, bank_menu, store, make_request):
        """A session created mid-request already carries the configured TTL."""
        seen = []

        def record(context):
            seen.append(context.session.expire_at)
            return StepResult.end("done")

        handler = Mock(spec=ActionHandler)
        handler.key = "BalanceCheck"
        handler.handle.side_effect = record
        engine = UssdEngine(bank_menu, store, HandlerRegistry([handler]),
                            config=Config(session_timeout_seconds=30))

        before = time.time()
        engine.handle_request(make_request("1"))

        assert before + 30 <= seen[0] <= time.time() + 30
