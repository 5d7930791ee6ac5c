# src/models/listing.py

"""Listing data model for inter-module data flow."""

from dataclasses import dataclass, field
from datetime import datetime, timezone

DEFAULT_TITLE = "No title"

# Literal the source page shows when a seller omitted the price
_EMPTY_PRICE_MARKER = "()"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Listing:
    """A single classifieds listing, keyed by its detail URL."""

    title: str
    price: str
    city: str
    listing_url: str
    posted: datetime = field(default_factory=_utc_now)
    notified: bool = False

    @property
    def has_qualifying_price(self) -> bool:
        """Whether this listing's price is notify-worthy."""
        return is_qualifying_price(self.price)


@dataclass(frozen=True)
class MetaInfo:
    """Parsed ``<relative time> · <city>`` metadata of a result element."""

    relative_time: str
    city: str


def is_qualifying_price(price: str) -> bool:
    """Return True for an empty, ``free`` (any case) or ``()`` price."""
    return (
        price == ""
        or price.lower() == "free"
        or price == _EMPTY_PRICE_MARKER
    )
