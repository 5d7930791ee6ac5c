# src/services/notifier.py

"""Push notifications for new listings via an ntfy topic."""

import logging
from types import TracebackType

from curl_cffi import requests as curl_requests

from src.config.settings import Settings
from src.errors import NotifyError
from src.models.listing import Listing

UNKNOWN_PRICE = "Unknown Price"


def build_message(listing: Listing) -> str:
    """Format the short alert body for a listing."""
    price = listing.price or UNKNOWN_PRICE
    return f"{listing.title} ({price}) {listing.city}"


class NtfyNotifier:
    """POST listing alerts to an ntfy topic.

    Delivery is best effort: a non-200 response or a transport error is
    logged and reported as ``False``, never retried and never raised.
    """

    def __init__(self, endpoint: str | None = None) -> None:
        self.logger = logging.getLogger("listing_monitor.notifier")
        self.settings = Settings()
        self.endpoint = endpoint or self.settings.NTFY_URL
        self.session = curl_requests.Session(
            impersonate=self.settings.IMPERSONATE_BROWSER
        )

    def __enter__(self) -> "NtfyNotifier":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def build_headers(self, listing: Listing) -> dict[str, str]:
        """Return the ntfy metadata headers for a listing alert."""
        headers: dict[str, str] = {
            "Title": self.settings.NTFY_TITLE,
            "Priority": self.settings.NTFY_PRIORITY,
        }
        if self.settings.NTFY_ACTIONS and listing.listing_url:
            headers["Actions"] = (
                f"view, Open Listing, {listing.listing_url}, clear=true"
            )
        return headers

    def _post(self, message: str, headers: dict[str, str]) -> None:
        """Send one POST. Raises NotifyError unless the reply is 200."""
        try:
            resp = self.session.post(
                self.endpoint,
                data=message.encode("utf-8"),
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except Exception as exc:
            raise NotifyError(f"transport error: {exc}") from exc
        if resp.status_code != 200:
            raise NotifyError(
                f"HTTP {resp.status_code}",
                status_code=resp.status_code,
            )

    def notify(self, listing: Listing) -> bool:
        """Send an alert for ``listing``. Returns True when delivered."""
        message = build_message(listing)
        try:
            self._post(message, self.build_headers(listing))
        except NotifyError as exc:
            self.logger.warning(
                "Failed to send notification for %s: %s",
                listing.listing_url,
                exc,
            )
            return False
        self.logger.info("Notification sent: %s", message)
        return True
