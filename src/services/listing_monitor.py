# src/services/listing_monitor.py

"""Periodic fetch → extract → store/notify → expire loop."""

import asyncio
import logging
import random
from dataclasses import dataclass, field

from src.config.settings import Settings
from src.errors import FetchError, StoreError
from src.models.listing import Listing
from src.scrapers.listing_extractor import ListingExtractor
from src.scrapers.page_fetcher import Renderer
from src.services.notifier import NtfyNotifier
from src.storage.listing_store import ListingStore

logger = logging.getLogger("listing_monitor.loop")

MIN_CHECK_INTERVAL = 1.0  # seconds


@dataclass
class CycleResult:
    """Outcome of a single monitor cycle."""

    candidates: int = 0
    created: list[Listing] = field(
        default_factory=lambda: list[Listing]()
    )
    notified: list[Listing] = field(
        default_factory=lambda: list[Listing]()
    )
    expired: int = 0
    delay: float = 0.0
    fetch_failed: bool = False
    errors: list[str] = field(
        default_factory=lambda: list[str]()
    )


def compute_delay(
    candidates: int,
    base: float = Settings.DELAY_BASE,
    modulus: int = Settings.DELAY_MODULUS,
    rng: random.Random | None = None,
) -> float:
    """Return the post-cycle pause, always in ``[base, base + modulus)``."""
    jitter = (rng or random).randrange(modulus)
    return base + (candidates + jitter) % modulus


def advance_deadline(
    deadline: float, interval: float, now: float,
) -> tuple[float, int]:
    """Move a tick deadline one interval forward on its original grid.

    If the previous cycle overran, the missed ticks collapse into one
    deadline that is already due. Returns the new deadline and the number
    of ticks dropped. A non-positive interval has no grid, so the next
    deadline is simply ``now``.
    """
    if interval <= 0:
        return max(deadline, now), 0
    deadline += interval
    skipped = 0
    if deadline < now:
        skipped = int((now - deadline) // interval)
        deadline += skipped * interval
    return deadline, skipped


class ListingMonitor:
    """Runs monitor cycles against one target page.

    The store, renderer and notifier are passed in once and reused for
    every cycle. Cycles never overlap: each one, including its post-cycle
    pause, finishes before the next tick is awaited.
    """

    def __init__(
        self,
        fetcher: Renderer,
        extractor: ListingExtractor,
        store: ListingStore,
        notifier: NtfyNotifier,
        target_url: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.settings = Settings()
        self.fetcher = fetcher
        self.extractor = extractor
        self.store = store
        self.notifier = notifier
        self.target_url = target_url or self.settings.TARGET_URL
        self._rng = rng or random.Random()
        self.cycles_run = 0

    # ── Private helpers ──────────────────────────────────

    async def _process(
        self, listing: Listing, result: CycleResult,
    ) -> None:
        """Insert one candidate and alert on its first sighting."""
        try:
            created = await asyncio.to_thread(
                self.store.insert, listing
            )
        except StoreError as exc:
            result.errors.append(str(exc))
            logger.error("Failed to insert listing: %s", exc)
            return

        if not created:
            return
        result.created.append(listing)

        if not listing.has_qualifying_price:
            return
        delivered = await asyncio.to_thread(
            self.notifier.notify, listing
        )
        if not delivered:
            return
        result.notified.append(listing)
        try:
            await asyncio.to_thread(
                self.store.mark_notified, listing.listing_url
            )
        except StoreError as exc:
            result.errors.append(str(exc))
            logger.error("Failed to mark listing notified: %s", exc)

    async def _expire(self, result: CycleResult) -> None:
        try:
            result.expired = await asyncio.to_thread(
                self.store.expire_older_than,
                self.settings.RETENTION_HORIZON,
            )
        except StoreError as exc:
            result.errors.append(str(exc))
            logger.error("Failed to delete old listings: %s", exc)

    # ── Single cycle ─────────────────────────────────────

    async def run_cycle(self) -> CycleResult:
        """Run one fetch → extract → insert/notify → expire pass.

        A failed fetch abandons the cycle (no extraction, no expiry) but
        the post-cycle pause still happens.
        """
        result = CycleResult()
        try:
            html = await asyncio.to_thread(
                self.fetcher.fetch, self.target_url
            )
        except FetchError as exc:
            result.fetch_failed = True
            result.errors.append(str(exc))
            logger.error("Failed to scrape listings: %s", exc)
        else:
            listings = self.extractor.extract(html)
            result.candidates = len(listings)
            for listing in listings:
                await self._process(listing, result)
            await self._expire(result)

        result.delay = compute_delay(
            result.candidates,
            self.settings.DELAY_BASE,
            self.settings.DELAY_MODULUS,
            self._rng,
        )
        logger.info(
            "Cycle done: %d candidates, %d new, %d notified, "
            "%d expired, %d errors; pausing %.0fs",
            result.candidates,
            len(result.created),
            len(result.notified),
            result.expired,
            len(result.errors),
            result.delay,
        )
        await asyncio.sleep(result.delay)
        self.cycles_run += 1
        return result

    # ── Loop ─────────────────────────────────────────────

    async def run_forever(
        self, max_cycles: int | None = None,
    ) -> None:
        """Run cycles on a fixed tick grid until cancelled.

        ``max_cycles`` stops the loop after that many cycles.
        """
        interval = self.settings.CHECK_INTERVAL
        if interval < MIN_CHECK_INTERVAL:
            logger.warning(
                "Check interval %.3fs too small; using %.0fs",
                interval, MIN_CHECK_INTERVAL,
            )
            interval = MIN_CHECK_INTERVAL
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        if not self.settings.RUN_ON_START:
            deadline += interval
        logger.info(
            "Monitoring %s every %.0fs", self.target_url, interval,
        )

        completed = 0
        while max_cycles is None or completed < max_cycles:
            wait = deadline - loop.time()
            if wait > 0:
                await asyncio.sleep(wait)

            try:
                await self.run_cycle()
            except Exception:
                logger.exception("Unexpected error during cycle")
            completed += 1

            deadline, skipped = advance_deadline(
                deadline, interval, loop.time(),
            )
            if skipped:
                logger.warning(
                    "Cycle overran; dropped %d tick(s)", skipped,
                )
