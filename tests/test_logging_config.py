# tests/test_logging_config.py

"""Tests for the per-run logging configuration."""

import logging
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from src.config.logging_config import setup_logging
from src.config.settings import Settings


class TestLoggingConfig(unittest.TestCase):
    """Verify logging setup behaviour."""

    def setUp(self) -> None:
        """Clean up the listing_monitor logger before each test."""
        root_logger = logging.getLogger("listing_monitor")
        for handler in root_logger.handlers:
            handler.close()
        root_logger.handlers.clear()
        self.logs_dir = Path(tempfile.mkdtemp()) / "logs"

    def tearDown(self) -> None:
        """Detach handlers so other tests stay quiet."""
        self.setUp()

    def test_setup_creates_log_file(self) -> None:
        """setup_logging returns a path that exists on disk."""
        log_path = setup_logging(self.logs_dir)
        self.assertTrue(log_path.exists())

    def test_log_file_naming_convention(self) -> None:
        """Log file name matches run_YYYYMMDD_HHMMSS.log format."""
        log_path = setup_logging(self.logs_dir)
        self.assertRegex(log_path.name, r"^run_\d{8}_\d{6}\.log$")

    def test_file_handler_level_debug(self) -> None:
        """File handler should be set to DEBUG level."""
        setup_logging(self.logs_dir)
        root_logger = logging.getLogger("listing_monitor")
        file_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(file_handlers), 1)
        self.assertEqual(file_handlers[0].level, logging.DEBUG)

    def test_console_handler_level_warning(self) -> None:
        """Console handler should be set to WARNING level."""
        setup_logging(self.logs_dir)
        root_logger = logging.getLogger("listing_monitor")
        stream_handlers = [
            h
            for h in root_logger.handlers
            if isinstance(h, logging.StreamHandler)
            and not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(len(stream_handlers), 1)
        self.assertEqual(stream_handlers[0].level, logging.WARNING)

    def test_repeated_calls_no_duplicate_handlers(self) -> None:
        """Calling setup_logging twice does not duplicate handlers."""
        first = setup_logging(self.logs_dir)
        root_logger = logging.getLogger("listing_monitor")
        count_before = len(root_logger.handlers)
        second = setup_logging(self.logs_dir)
        self.assertEqual(len(root_logger.handlers), count_before)
        self.assertEqual(first, second)

    def test_old_run_logs_pruned(self) -> None:
        """Only the newest run logs are kept."""
        self.logs_dir.mkdir(parents=True)
        for day in range(1, 6):
            (self.logs_dir / f"run_2020010{day}_000000.log").write_text("x")
        with patch.object(Settings, "LOG_KEEP_RUNS", 3):
            log_path = setup_logging(self.logs_dir)
        remaining = sorted(p.name for p in self.logs_dir.glob("run_*.log"))
        self.assertEqual(len(remaining), 3)
        self.assertIn(log_path.name, remaining)
        self.assertNotIn("run_20200101_000000.log", remaining)

    def test_console_level_from_settings(self) -> None:
        """The console threshold follows LOG_LEVEL."""
        with patch.object(Settings, "LOG_LEVEL", "info"):
            setup_logging(self.logs_dir)
        handlers = [
            h
            for h in logging.getLogger("listing_monitor").handlers
            if not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(handlers[0].level, logging.INFO)

    def test_unknown_console_level_is_warning(self) -> None:
        """An unrecognised LOG_LEVEL falls back to WARNING."""
        with patch.object(Settings, "LOG_LEVEL", "chatty"):
            setup_logging(self.logs_dir)
        handlers = [
            h
            for h in logging.getLogger("listing_monitor").handlers
            if not isinstance(h, logging.FileHandler)
        ]
        self.assertEqual(handlers[0].level, logging.WARNING)

    def test_child_loggers_reach_file(self) -> None:
        """Component loggers write into the run log."""
        log_path = setup_logging(self.logs_dir)
        logging.getLogger("listing_monitor.store").debug("store ready")
        for handler in logging.getLogger("listing_monitor").handlers:
            handler.flush()
        self.assertIn("store ready", log_path.read_text(encoding="utf-8"))

    def test_default_dir_is_logs(self) -> None:
        """Without an argument the log lands in a logs/ directory."""
        log_path = setup_logging()
        self.assertEqual(log_path.parent.name, "logs")


if __name__ == "__main__":
    unittest.main()
