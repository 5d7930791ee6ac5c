# src/scrapers/listing_extractor.py

"""Parse rendered classifieds search results into Listing records."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from src.config.settings import Settings
from src.errors import ExtractionError
from src.models.listing import DEFAULT_TITLE, Listing, MetaInfo

logger = logging.getLogger("listing_monitor.extractor")

DEFAULT_META_DELIMITER = "·"


def load_selectors(
    source_name: str = "craigslist",
    path: Path | None = None,
) -> dict[str, str]:
    """Load CSS selectors for a source from selectors.json."""
    with open(path or Settings.SELECTORS_PATH, encoding="utf-8") as f:
        all_selectors: dict[str, Any] = json.load(f)
    result: dict[str, str] = all_selectors.get(source_name, {})
    return result


def parse_meta(
    text: str, delimiter: str = DEFAULT_META_DELIMITER,
) -> MetaInfo:
    """Split ``"<relative time> · <city> ..."`` into its parts.

    Raises ExtractionError when there is no city part or it is blank,
    rather than inventing one.
    """
    parts = [part.strip() for part in text.split(delimiter)]
    if len(parts) < 2:
        raise ExtractionError(
            f"metadata {text!r} has no {delimiter!r}-separated city"
        )
    relative_time, city = parts[0], parts[1]
    if not city:
        raise ExtractionError(f"metadata {text!r} has an empty city")
    return MetaInfo(relative_time=relative_time, city=city)


class ListingExtractor:
    """Turn a rendered search page into candidate listings.

    Pure with respect to its input: the same HTML and ``observed_at``
    always yield the same ordered records.
    """

    def __init__(
        self,
        selectors: dict[str, str] | None = None,
        base_url: str | None = None,
    ) -> None:
        self.selectors = selectors or load_selectors()
        self.base_url = base_url or Settings.TARGET_URL
        self.delimiter = self.selectors.get(
            "meta_delimiter", DEFAULT_META_DELIMITER
        )

    def _text(self, item: Tag, key: str) -> str:
        node = item.select_one(self.selectors[key])
        return node.get_text(strip=True) if node else ""

    def _parse_item(
        self, item: Tag, observed_at: datetime,
    ) -> Listing | None:
        """Build a Listing from one result element.

        Returns None for elements without a detail link. Raises
        ExtractionError for elements with malformed metadata.
        """
        link = item.select_one(self.selectors["link"])
        href = str(link.get("href") or "").strip() if link else ""
        if not href:
            return None

        title = item.get(self.selectors["title_attr"])
        meta = parse_meta(self._text(item, "meta"), self.delimiter)

        return Listing(
            title=str(title) if title is not None else DEFAULT_TITLE,
            price=self._text(item, "price"),
            city=meta.city,
            listing_url=urljoin(self.base_url, href),
            posted=observed_at,
        )

    def extract(
        self,
        html: str,
        observed_at: datetime | None = None,
    ) -> list[Listing]:
        """Return candidate listings in page order.

        Every record gets ``observed_at`` (default: now, UTC) as its
        posted time, since the page only shows relative times.
        """
        when = observed_at or datetime.now(timezone.utc)
        soup = BeautifulSoup(html, "lxml")
        items = soup.select(self.selectors["item"])

        listings: list[Listing] = []
        no_link = 0
        malformed = 0
        for item in items:
            try:
                listing = self._parse_item(item, when)
            except ExtractionError as exc:
                malformed += 1
                logger.warning("Skipping result element: %s", exc)
                continue
            if listing is None:
                no_link += 1
                continue
            listings.append(listing)

        logger.debug(
            "Extracted %d listings from %d elements "
            "(%d without link, %d malformed)",
            len(listings),
            len(items),
            no_link,
            malformed,
        )
        return listings
