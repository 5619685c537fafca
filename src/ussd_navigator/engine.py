"""UssdEngine - Main orchestrator for USSD session navigation."""

import logging
import time

from .config import Config
from .core import (
    CommandParser,
    BackCommand,
    HomeCommand,
    NextPageCommand,
    PreviousPageCommand,
    InvalidCommand,
    SelectCommand,
    HandlerRegistry,
    Menu,
    MenuConfigurationError,
    MenuRenderer,
    Option,
    Session,
    SessionStoreError,
)
from .interfaces import SessionStore, StepResult, UssdContext, UssdRequest, UssdResponse

logger = logging.getLogger(__name__)


class UssdEngine:
    """Runs the per-request navigation state machine.

    Each request loads the session from the store, resolves an outcome
    (render a page, run an action, navigate, or end), persists the
    session with a refreshed TTL and returns the reply.
    """

    GOING_BACK_MESSAGE = "Going back..."
    RESUMING_MESSAGE = "Resuming your session..."

    def __init__(
        self,
        menu: Menu,
        session_store: SessionStore,
        handlers: HandlerRegistry | None = None,
        config: Config | None = None,
    ):
        """
        Initialize the engine.

        Args:
            menu: The validated menu graph.
            session_store: Where sessions are persisted between requests.
            handlers: Registry of action handlers (empty if None).
            config: Engine configuration (uses defaults if None).

        Raises:
            PageNotFound: If the menu's root page is missing.
        """
        self.menu = menu
        self.session_store = session_store
        self.handlers = handlers or HandlerRegistry()
        self.config = config or Config()

        # Fail fast on an unusable graph
        self.menu.get_page(self.menu.root_id)

        self.parser = CommandParser(
            back_command=self.config.back_command,
            home_command=self.config.home_command,
            enable_auto_back_navigation=self.config.enable_auto_back_navigation,
            enable_pagination=self.config.enable_pagination,
            items_per_page=self.config.items_per_page,
            next_page_command=self.config.next_page_command,
            previous_page_command=self.config.previous_page_command,
        )
        self.renderer = MenuRenderer(
            enable_pagination=self.config.enable_pagination,
            items_per_page=self.config.items_per_page,
            next_page_command=self.config.next_page_command,
            previous_page_command=self.config.previous_page_command,
        )

        missing = sorted(k for k in self.menu.action_keys() if k not in self.handlers)
        if missing:
            logger.warning(f"No action handler registered for: {', '.join(missing)}")

    def handle_request(self, request: UssdRequest) -> UssdResponse:
        """
        Handle one gateway request.

        User-input errors and missing handlers produce a normal reply.
        Menu misconfiguration and store failures are logged and re-raised.

        Args:
            request: The normalized gateway request.

        Returns:
            The reply for the gateway.
        """
        logger.info(
            f"[{request.session_id}] Received: {request.user_data!r} (new={request.new_session})"
        )
        try:
            return self._handle(request)
        except MenuConfigurationError as e:
            logger.error(f"[{request.session_id}] Menu configuration error: {e}")
            raise
        except SessionStoreError as e:
            logger.error(f"[{request.session_id}] Session store error: {e}")
            raise

    def end_session(self, session_id: str) -> None:
        """Remove a session's stored state (e.g. when the gateway tears it down)."""
        logger.info(f"[{session_id}] Ending session")
        self.session_store.remove(session_id)

    def _handle(self, request: UssdRequest) -> UssdResponse:
        existing = self.session_store.get(request.session_id)

        if request.new_session and existing is not None and self._should_offer_resume(existing):
            logger.info(f"[{request.session_id}] Offering to resume at {existing.current_page_id}")
            existing.awaiting_resume_choice = True
            existing.previous_page_id = existing.current_page_id
            self._persist(existing)
            return self._respond(request, StepResult.continue_with(self._resume_prompt()))

        session = existing or Session(
            session_id=request.session_id,
            msisdn=request.msisdn,
            user_id=request.user_id,
            network=request.network,
            current_page_id=self.menu.root_id,
            expire_at=time.time() + self.config.session_timeout_seconds,
        )

        if request.new_session:
            session.navigate_to(self.menu.root_id)
            session.clear_resume_state()
            result = self._render(session)
        else:
            result = self._process_input(session, request.user_data or "")

        if result.go_home:
            logger.debug(f"[{session.session_id}] Navigating to home")
            session.navigate_home(self.menu.root_id)
            result = self._render(session)

        # Navigation always re-renders the destination, dropping result.message
        if result.next_step:
            logger.debug(f"[{session.session_id}] Navigating to {result.next_step}")
            session.navigate_to(result.next_step)
            result = self._render(session)

        self._persist(session)
        return self._respond(request, result)

    def _should_offer_resume(self, session: Session) -> bool:
        return (
            self.config.enable_session_resumption
            and not session.is_expired()
            and session.current_page_id != self.menu.root_id
        )

    def _resume_prompt(self) -> str:
        return (
            f"{self.config.resume_session_prompt}\n"
            f"1. {self.config.resume_option_label}\n"
            f"2. {self.config.start_fresh_option_label}"
        )

    def _process_input(self, session: Session, user_input: str) -> StepResult:
        """
        Process input for a continuing session.

        Args:
            session: The live session.
            user_input: Raw subscriber input.

        Returns:
            The step outcome (before home/next-step post-processing).
        """
        if session.awaiting_resume_choice:
            return self._handle_resume_choice(session, user_input)

        page = self.menu.get_page(session.current_page_id)
        command = self.parser.parse(user_input, page, session)
        logger.info(f"[{session.session_id}] Command: {command.__class__.__name__}")

        if isinstance(command, BackCommand):
            return self._go_back(session)

        if isinstance(command, HomeCommand):
            return StepResult.home()

        if isinstance(command, (NextPageCommand, PreviousPageCommand)):
            session.part = command.part
            return self._render(session)

        if isinstance(command, InvalidCommand):
            logger.debug(f"[{session.session_id}] Invalid input: {command.original_input!r}")
            return self._render(session, prefix=self.config.invalid_input_message)

        if isinstance(command, SelectCommand):
            return self._handle_select(command.option, session, user_input)

        return self._render(session, prefix=self.config.invalid_input_message)

    def _handle_resume_choice(self, session: Session, user_input: str) -> StepResult:
        if user_input == "1":
            logger.info(f"[{session.session_id}] Resuming at {session.previous_page_id}")
            if session.previous_page_id:
                session.navigate_to(session.previous_page_id)
            session.clear_resume_state()
            return self._render(session, prefix=self.RESUMING_MESSAGE)

        if user_input == "2":
            logger.info(f"[{session.session_id}] Starting fresh")
            session.navigate_home(self.menu.root_id)
            session.clear()
            session.clear_resume_state()
            return self._render(session)

        return StepResult.continue_with(
            f"{self.config.invalid_input_message}\n{self._resume_prompt()}"
        )

    def _handle_select(self, option: Option, session: Session, user_input: str) -> StepResult:
        """
        Run the selected option's action and/or navigate to its target.

        A registered handler's outcome is returned as-is. A missing
        handler is logged and the option's target (if any) is used.
        """
        if option.action_key:
            handler = self.handlers.get(option.action_key)
            if handler is not None:
                logger.info(f"[{session.session_id}] Running action {option.action_key}")
                context = UssdContext(
                    request=UssdRequest(
                        session_id=session.session_id,
                        msisdn=session.msisdn,
                        user_id=session.user_id,
                        network=session.network,
                        user_data=user_input,
                        new_session=False,
                    ),
                    session=session,
                    action_key=option.action_key,
                )
                return handler.handle(context)

            logger.warning(
                f"[{session.session_id}] No action handler found for key {option.action_key}"
            )

        if option.target_page_id:
            session.navigate_to(option.target_page_id)
            return self._render(session)

        return StepResult.end(self.config.default_end_message)

    def _go_back(self, session: Session) -> StepResult:
        # Single-hop heuristic: no history stack, depth <= 1 collapses to root
        session.level -= 1
        if session.level <= 1:
            session.navigate_home(self.menu.root_id)
        return self._render(session, prefix=self.GOING_BACK_MESSAGE)

    def _render(self, session: Session, prefix: str | None = None) -> StepResult:
        """
        Render the session's current page.

        Raises:
            PageNotFound: If the current page id is not in the menu.
        """
        page = self.menu.get_page(session.current_page_id)
        session.part = self.renderer.current_part(page, session.part)
        message = self.renderer.render(page, part=session.part, prefix=prefix)
        session.level += 1
        logger.debug(f"[{session.session_id}] Rendered {page.id} (level={session.level})")
        return StepResult(message=message, continue_session=not page.is_terminal)

    def _persist(self, session: Session) -> None:
        ttl = self.config.session_timeout_seconds
        session.expire_at = time.time() + ttl
        self.session_store.set(session, ttl)

    def _respond(self, request: UssdRequest, result: StepResult) -> UssdResponse:
        logger.info(
            f"[{request.session_id}] Replying (continue={result.continue_session}, "
            f"{len(result.message)} chars)"
        )
        return UssdResponse(
            session_id=request.session_id,
            user_id=request.user_id,
            msisdn=request.msisdn,
            message=result.message,
            continue_session=result.continue_session,
        )
