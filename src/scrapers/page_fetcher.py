# src/scrapers/page_fetcher.py

"""Headless-browser page renderer for JavaScript-populated search pages."""

import logging
from typing import Protocol

from playwright.sync_api import Browser
from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import TimeoutError as PlaywrightTimeoutError
from playwright.sync_api import sync_playwright

from src.config.settings import Settings
from src.errors import FetchError


class Renderer(Protocol):
    """Anything that can turn a URL into rendered HTML."""

    def fetch(self, url: str) -> str:
        """Return the rendered markup of ``url`` or raise FetchError."""
        ...


class PageFetcher:
    """Render a page in Chromium and return its HTML once results exist.

    The search page fills its result list from JavaScript after the load
    event, so the fetcher waits for the results container selector rather
    than for page load. Each call owns a fresh browser which is closed on
    every exit path. There is no retry here; the monitor loop simply tries
    again on its next tick.
    """

    def __init__(
        self,
        ready_selector: str | None = None,
        headless: bool | None = None,
    ) -> None:
        self.logger = logging.getLogger("listing_monitor.fetcher")
        self.settings = Settings()
        self.ready_selector = (
            ready_selector or self.settings.READY_SELECTOR
        )
        self.headless = (
            self.settings.HEADLESS if headless is None else headless
        )

    def _render(self, browser: Browser, url: str) -> str:
        context = browser.new_context(
            user_agent=self.settings.USER_AGENT,
        )
        page = context.new_page()
        page.goto(
            url,
            wait_until="domcontentloaded",
            timeout=self.settings.NAVIGATION_TIMEOUT_MS,
        )
        page.wait_for_selector(
            self.ready_selector,
            timeout=self.settings.READY_TIMEOUT_MS,
        )
        html: str = page.content()
        return html

    def fetch(self, url: str) -> str:
        """Render ``url`` and return the page HTML.

        Raises FetchError on navigation failure, readiness timeout or
        content capture failure.
        """
        self.logger.debug("Rendering %s", url)
        try:
            with sync_playwright() as p:
                browser = p.chromium.launch(
                    headless=self.headless,
                    args=self.settings.BROWSER_ARGS,
                )
                try:
                    html = self._render(browser, url)
                finally:
                    browser.close()
        except PlaywrightTimeoutError as exc:
            raise FetchError(url, f"timed out: {exc}") from exc
        except PlaywrightError as exc:
            raise FetchError(url, str(exc)) from exc

        if not html:
            raise FetchError(url, "empty page content")
        self.logger.info(
            "Rendered %s (%d bytes)", url, len(html),
        )
        return html
