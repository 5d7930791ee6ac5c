# main.py

"""Entry point for the listing monitor."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("listing_monitor.main")


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="listing_monitor",
        description=(
            "Watch a classifieds search page and push an alert for "
            "new free or unpriced listings."
        ),
        epilog=f"Target: {Settings.TARGET_URL}",
    )
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument(
        "--once",
        action="store_true",
        default=False,
        help="Run a single cycle and exit.",
    )
    mode.add_argument(
        "--list",
        action="store_true",
        default=False,
        dest="list_stored",
        help="Print stored listings and exit.",
    )
    mode.add_argument(
        "--health",
        action="store_true",
        default=False,
        help="Render the target page once and report its status.",
    )
    parser.add_argument(
        "--db",
        default=None,
        dest="db_path",
        help=f"SQLite database path (default: {Settings.DB_PATH}).",
    )
    return parser


def _run_monitor(db_path: Path | None) -> None:
    """Run the monitor loop until interrupted."""
    from src.cli.runner import run_monitor

    try:
        exit_code = asyncio.run(run_monitor(db_path))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")
        exit_code = 0
    except Exception:
        logger.critical("Fatal error in monitor loop", exc_info=True)
        raise
    finally:
        logger.info("listing_monitor shutting down")
    sys.exit(exit_code)


def _run_once(db_path: Path | None) -> None:
    from src.cli.runner import run_once

    sys.exit(asyncio.run(run_once(db_path)))


def _run_list(db_path: Path | None) -> None:
    from src.cli.runner import run_list

    sys.exit(run_list(db_path))


def _run_health_check() -> None:
    from src.cli.runner import run_health_check

    sys.exit(asyncio.run(run_health_check()))


def main() -> None:
    """Route to the requested mode; the default runs forever."""
    log_file = setup_logging()
    logger.info("listing_monitor starting, log file: %s", log_file)

    parser = _build_parser()
    args = parser.parse_args()
    db_path = Path(args.db_path) if args.db_path else None

    if args.health:
        _run_health_check()
    elif args.list_stored:
        _run_list(db_path)
    elif args.once:
        _run_once(db_path)
    else:
        _run_monitor(db_path)


if __name__ == "__main__":
    main()
