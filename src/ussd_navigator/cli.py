"""Command-line USSD session simulator."""

import argparse
import logging
import sys
import uuid
from dataclasses import replace
from typing import TextIO

from .config import Config, load_config
from .core import ConfigurationError, InvalidMenuDefinition, UssdError
from .engine import UssdEngine
from .interfaces import SessionStore, UssdRequest
from .providers import load_menu
from .stores import MemorySessionStore, RedisSessionStore


def setup_logging(verbose: bool = False) -> None:
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="USSD Navigator - Simulate a USSD session in the terminal",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s -m menu.yaml                     # Dial into a menu
  %(prog)s -m menu.yaml -c config.yaml      # Use specific config file
  %(prog)s -m menu.yaml --resume            # Offer to resume on redial
  %(prog)s -m menu.yaml --redis redis://localhost:6379/0

The simulator registers no action handlers. Options that name an action
fall through to their target page, or end the session if they have none.
""",
    )

    parser.add_argument(
        "-m", "--menu",
        metavar="FILE",
        required=True,
        help="Path to YAML menu definition",
    )

    parser.add_argument(
        "-c", "--config",
        metavar="FILE",
        help="Path to YAML configuration file",
    )

    parser.add_argument(
        "--msisdn",
        default="233200000000",
        help="Subscriber number to dial from",
    )

    parser.add_argument(
        "--network",
        default="SIM",
        help="Network/carrier tag",
    )

    parser.add_argument(
        "--session-id",
        metavar="ID",
        help="Session id (default: random)",
    )

    parser.add_argument(
        "--resume",
        action="store_true",
        help="Enable session resumption",
    )

    parser.add_argument(
        "--redis",
        metavar="URL",
        help="Store sessions in Redis at URL",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )

    return parser.parse_args(argv)


def build_store(config: Config) -> SessionStore:
    """Create the session store selected by the config."""
    if config.store_backend == "redis":
        return RedisSessionStore.from_url(config.redis_url, key_prefix=config.redis_key_prefix)
    if config.store_backend == "memory":
        return MemorySessionStore()
    raise ValueError(f"Unknown session store backend: {config.store_backend}")


def run_session(
    engine: UssdEngine,
    session_id: str,
    msisdn: str,
    network: str,
    stdin: TextIO,
    stdout: TextIO,
) -> None:
    """
    Drive one dialled session from stdin until it ends or input runs out.

    The first leg is sent as a new session; every following line is sent
    as the subscriber's input.
    """
    request = UssdRequest(
        session_id=session_id,
        msisdn=msisdn,
        user_id=msisdn,
        network=network,
        new_session=True,
    )

    while True:
        response = engine.handle_request(request)
        stdout.write(f"{response.message}\n")

        if not response.continue_session:
            stdout.write("[session ended]\n")
            return

        stdout.write("> ")
        stdout.flush()
        line = stdin.readline()
        if not line:
            stdout.write("\n[session abandoned]\n")
            return

        request = replace(request, user_data=line.rstrip("\r\n"), new_session=False)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    setup_logging(args.verbose)

    logger = logging.getLogger(__name__)

    # Load configuration
    if args.config:
        try:
            config = load_config(args.config)
        except FileNotFoundError:
            logger.error(f"Config file not found: {args.config}")
            return 1
        except ConfigurationError as e:
            logger.error(f"Invalid config: {e}")
            return 1
    else:
        config = Config()

    # Override config with command line arguments
    if args.resume:
        config = replace(config, enable_session_resumption=True)
    if args.redis:
        config = replace(config, store_backend="redis", redis_url=args.redis)

    try:
        menu = load_menu(args.menu)
    except FileNotFoundError:
        logger.error(f"Menu file not found: {args.menu}")
        return 1
    except InvalidMenuDefinition as e:
        logger.error(f"Invalid menu definition: {e}")
        return 1

    try:
        store = build_store(config)
    except ValueError as e:
        logger.error(str(e))
        return 1

    engine = UssdEngine(menu, store, config=config)
    session_id = args.session_id or uuid.uuid4().hex

    logger.info(f"Dialling menu '{menu.id}' as {args.msisdn} (session {session_id})")

    try:
        run_session(engine, session_id, args.msisdn, args.network, sys.stdin, sys.stdout)
    except UssdError as e:
        logger.error(f"Session failed: {e}")
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")

    return 0


if __name__ == "__main__":
    sys.exit(main())
