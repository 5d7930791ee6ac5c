# src/config/logging_config.py

"""Logging setup for the unattended monitor.

Every start writes to its own ``logs/run_YYYYMMDD_HHMMSS.log`` at DEBUG, and
only the newest ``Settings.LOG_KEEP_RUNS`` run logs are kept, so a monitor
restarted by a supervisor does not fill the disk. The console shows
``Settings.LOG_LEVEL`` and above (WARNING unless overridden), which is where
failed fetches, failed inserts and rejected notifications surface.
"""

import logging
import sys
from datetime import datetime
from pathlib import Path

from src.config.settings import Settings

ROOT_LOGGER = "listing_monitor"

_FILE_FORMAT = (
    "%(asctime)s | %(levelname)-8s | %(name)s | %(funcName)s:%(lineno)d | "
    "%(message)s"
)
_CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_RUN_GLOB = "run_*.log"


def _prune_old_runs(directory: Path, keep: int) -> None:
    # Timestamped names sort chronologically.
    runs = sorted(directory.glob(_RUN_GLOB))
    for stale in runs[:-keep] if keep > 0 else []:
        try:
            stale.unlink()
        except OSError:
            # Another process may still hold it open.
            continue


def _console_level() -> int:
    level = logging.getLevelName(Settings.LOG_LEVEL.upper())
    return level if isinstance(level, int) else logging.WARNING


def setup_logging(logs_dir: Path | None = None) -> Path:
    """Attach the run-log and console handlers to ``listing_monitor``.

    Calling it again in the same process leaves the handlers alone and
    returns the log file already in use.
    """
    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(logging.DEBUG)
    root_logger.propagate = False

    for handler in root_logger.handlers:
        if isinstance(handler, logging.FileHandler):
            return Path(handler.baseFilename)

    directory = logs_dir or Settings.LOGS_DIR
    directory.mkdir(parents=True, exist_ok=True)
    log_file = directory / f"run_{datetime.now():%Y%m%d_%H%M%S}.log"

    file_handler = logging.FileHandler(log_file, encoding="utf-8")
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(
        logging.Formatter(_FILE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(_console_level())
    console_handler.setFormatter(
        logging.Formatter(_CONSOLE_FORMAT, datefmt=_DATE_FORMAT)
    )
    root_logger.addHandler(console_handler)

    _prune_old_runs(directory, Settings.LOG_KEEP_RUNS)
    root_logger.info("Run log: %s", log_file)
    return log_file
