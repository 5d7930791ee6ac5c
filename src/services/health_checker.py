# src/services/health_checker.py

"""Target page health checker."""

import asyncio
import logging
import time
from dataclasses import dataclass

from src.config.settings import Settings
from src.errors import FetchError
from src.scrapers.listing_extractor import ListingExtractor
from src.scrapers.page_fetcher import Renderer

logger = logging.getLogger("listing_monitor.health")


@dataclass
class HealthResult:
    """Result of a single target page health check."""

    url: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    listings: int
    message: str


def probe_target(
    fetcher: Renderer,
    extractor: ListingExtractor,
    url: str | None = None,
) -> HealthResult:
    """Render the target page once and count extractable listings."""
    target = url or Settings.TARGET_URL
    start = time.monotonic()
    try:
        html = fetcher.fetch(target)
    except FetchError as exc:
        return HealthResult(
            url=target,
            status="down",
            latency_ms=(time.monotonic() - start) * 1000,
            listings=0,
            message=exc.reason[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    count = len(extractor.extract(html))
    if count == 0:
        return HealthResult(
            url=target,
            status="down",
            latency_ms=elapsed_ms,
            listings=0,
            message="No listings extracted",
        )

    if elapsed_ms > Settings.HEALTH_SLOW_MS:
        return HealthResult(
            url=target,
            status="slow",
            latency_ms=elapsed_ms,
            listings=count,
            message="High latency",
        )

    return HealthResult(
        url=target,
        status="ok",
        latency_ms=elapsed_ms,
        listings=count,
        message="",
    )


class HealthChecker:
    """Runs the target page probe off the event loop."""

    def __init__(
        self,
        fetcher: Renderer,
        extractor: ListingExtractor,
    ) -> None:
        self.fetcher = fetcher
        self.extractor = extractor

    async def check(self) -> HealthResult:
        """Probe the configured target page."""
        result = await asyncio.to_thread(
            probe_target, self.fetcher, self.extractor,
        )
        logger.info(
            "Health check %s: %s (%.0fms, %d listings) %s",
            result.url,
            result.status,
            result.latency_ms,
            result.listings,
            result.message,
        )
        return result
