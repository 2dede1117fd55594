"""uptimewatch - Periodic HTTP availability monitor."""

import argparse
import logging
import signal
import sys
from threading import Event
from typing import Optional

__version__ = "0.1.0"

# Global shutdown event for signal handlers
_shutdown_event: Optional[Event] = None

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application.

    Diagnostics go to stderr so they stay apart from the report on stdout.
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )


def _handle_shutdown(signum: int, frame: object) -> None:
    """Signal handler for graceful shutdown."""
    sig_name = signal.Signals(signum).name
    logger.info("Received %s, initiating shutdown...", sig_name)
    if _shutdown_event is not None:
        _shutdown_event.set()


def _cmd_run(args: argparse.Namespace) -> None:
    """Execute the run command - probe endpoints until interrupted."""
    global _shutdown_event

    _setup_logging(args.verbose)

    logger.info("uptimewatch %s starting...", __version__)

    # Import here to allow logging setup first
    from .aggregator import RegistryError
    from .config import ConfigError, load_config
    from .prober import ProbeClient
    from .scheduler import Scheduler

    # 1. Load configuration
    try:
        config = load_config(args.endpoints)
        logger.info("Configuration loaded from %s", args.endpoints)
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        sys.exit(1)

    # 2. Setup shutdown handler
    _shutdown_event = Event()
    signal.signal(signal.SIGTERM, _handle_shutdown)
    signal.signal(signal.SIGINT, _handle_shutdown)

    # 3. Build the scheduler; fails on URLs that have no usable host
    with ProbeClient(config.monitor.timeout, pool_size=len(config.endpoints)) as client:
        try:
            scheduler = Scheduler(config.endpoints, client, config.monitor.interval)
        except RegistryError as e:
            logger.error("Invalid endpoints: %s", e)
            sys.exit(1)

        try:
            scheduler.start()

            # 4. Wait for shutdown signal
            _shutdown_event.wait()

        except KeyboardInterrupt:
            # Backup handler if signal doesn't work
            logger.info("Keyboard interrupt received")
        finally:
            scheduler.stop(timeout=config.monitor.timeout + 1.0)
            logger.info("Shutdown complete")


def _cmd_check(args: argparse.Namespace) -> None:
    """Execute the check command - probe every endpoint once and print the outcome."""
    _setup_logging(args.verbose)

    from .aggregator import RegistryError
    from .config import ConfigError, load_config
    from .prober import ProbeClient
    from .scheduler import Scheduler

    try:
        config = load_config(args.endpoints)
    except ConfigError as e:
        print(f"Error: {e}")
        sys.exit(1)

    with ProbeClient(config.monitor.timeout, pool_size=len(config.endpoints)) as client:
        try:
            scheduler = Scheduler(config.endpoints, client, config.monitor.interval, reporter=lambda *_: None)
        except RegistryError as e:
            print(f"Error: {e}")
            sys.exit(1)

        results = scheduler.probe_once() or []

    up_count = 0
    for result in results:
        if result.is_up:
            up_count += 1
        print(f"{result.status.name:<9} {result.endpoint.name}: {result.url}")

    print(f"\nResult: {up_count}/{len(results)} endpoints up")

    if up_count < len(results):
        sys.exit(1)


def main() -> None:
    """Main entry point for the uptimewatch package."""
    parser = argparse.ArgumentParser(description="uptimewatch - Periodic HTTP availability monitor")
    parser.add_argument(
        "--version",
        action="version",
        version=f"uptimewatch {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    # Run subcommand
    run_parser = subparsers.add_parser(
        "run",
        help="Probe endpoints periodically and report availability per domain",
    )
    run_parser.add_argument("endpoints", help="Path to the YAML endpoints file")
    run_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    run_parser.set_defaults(func=_cmd_run)

    # Check subcommand
    check_parser = subparsers.add_parser(
        "check",
        help="Probe every endpoint once and print its status",
    )
    check_parser.add_argument("endpoints", help="Path to the YAML endpoints file")
    check_parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    check_parser.set_defaults(func=_cmd_check)

    args = parser.parse_args()
    args.func(args)
