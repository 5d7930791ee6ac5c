# src/config/settings.py

"""Central configuration for the listing monitor."""

import os
from datetime import timedelta
from pathlib import Path

from curl_cffi.requests import BrowserTypeLiteral
from dotenv import load_dotenv

load_dotenv()

_FALSE_VALUES = {"0", "false", "no", "off"}


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in _FALSE_VALUES


def _env_float(name: str, default: float) -> float:
    """Read a positive float; unparsable or non-positive values fall back."""
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        value = float(raw.strip())
    except ValueError:
        return default
    return value if value > 0 else default


class Settings:
    """Central configuration for the listing monitor."""

    # --- Source page ---
    TARGET_URL: str = os.getenv(
        "MONITOR_TARGET_URL",
        "https://charlotte.craigslist.org/search/sss#search=1~gallery~0~0",
    )
    READY_SELECTOR: str = "li.cl-search-result"

    # --- Browser rendering ---
    HEADLESS: bool = _env_bool("MONITOR_HEADLESS", True)
    NAVIGATION_TIMEOUT_MS: int = 30_000  # page.goto
    READY_TIMEOUT_MS: int = 15_000       # wait for READY_SELECTOR
    USER_AGENT: str = (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/131.0.0.0 Safari/537.36"
    )
    BROWSER_ARGS: list[str] = [
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-dev-shm-usage",
    ]

    # --- Notifications (ntfy) ---
    NTFY_URL: str = os.getenv(
        "MONITOR_NTFY_URL", "https://ntfy.sh/charlottecraig"
    )
    NTFY_TITLE: str = "New Craigslist Listing Alert"
    NTFY_PRIORITY: str = "high"
    NTFY_ACTIONS: bool = _env_bool("MONITOR_NTFY_ACTIONS", True)
    REQUEST_TIMEOUT: int = 15           # Seconds before a POST times out
    IMPERSONATE_BROWSER: BrowserTypeLiteral = "chrome131"

    # --- Scheduling ---
    CHECK_INTERVAL: float = _env_float("MONITOR_CHECK_INTERVAL", 60.0)
    RUN_ON_START: bool = _env_bool("MONITOR_RUN_ON_START", False)
    DELAY_BASE: float = 2.0             # Post-cycle pause, seconds
    DELAY_MODULUS: int = 3              # Pause spread on top of the base

    # --- Retention ---
    RETENTION_HORIZON: timedelta = timedelta(hours=1)

    # --- Health check ---
    HEALTH_SLOW_MS: float = 20_000.0

    # --- Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent.parent.parent
    SELECTORS_PATH: Path = BASE_DIR / "src" / "config" / "selectors.json"
    DB_PATH: Path = Path(
        os.getenv(
            "MONITOR_DB_PATH", str(BASE_DIR / "data" / "craigslist.db")
        )
    )
    LOGS_DIR: Path = BASE_DIR / "logs"

    # --- Logging ---
    LOG_LEVEL: str = os.getenv("MONITOR_LOG_LEVEL", "WARNING")  # console
    LOG_KEEP_RUNS: int = 20             # Newest run logs kept on disk
