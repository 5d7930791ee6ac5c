# tests/test_notifier.py

"""Tests for the ntfy notifier using mocked HTTP responses."""

import unittest
from unittest.mock import MagicMock, patch

from src.models.listing import Listing
from src.services.notifier import NtfyNotifier, build_message

ENDPOINT = "https://ntfy.example/topic"
SESSION_PATH = "src.services.notifier.curl_requests.Session"


def _listing(price: str = "Free") -> Listing:
    return Listing(
        title="Couch",
        price=price,
        city="Charlotte",
        listing_url="https://charlotte.craigslist.org/fuo/d/couch/1.html",
    )


class TestBuildMessage(unittest.TestCase):
    """Alert body formatting."""

    def test_with_price(self) -> None:
        """Title, price and city appear in order."""
        self.assertEqual(
            build_message(_listing("Free")), "Couch (Free) Charlotte",
        )

    def test_empty_price_is_unknown(self) -> None:
        """An empty price is shown as unknown."""
        self.assertEqual(
            build_message(_listing("")),
            "Couch (Unknown Price) Charlotte",
        )


@patch(SESSION_PATH)
class TestNtfyNotifier(unittest.TestCase):
    """NtfyNotifier.notify delivery outcomes."""

    def _notifier(self, mock_session_cls: MagicMock) -> MagicMock:
        mock_session = MagicMock()
        mock_session_cls.return_value = mock_session
        mock_session.post.return_value = MagicMock(status_code=200)
        return mock_session

    def test_posts_message_with_headers(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """A 200 reply counts as delivered; headers carry metadata."""
        session = self._notifier(mock_session_cls)
        notifier = NtfyNotifier(endpoint=ENDPOINT)

        self.assertTrue(notifier.notify(_listing()))

        session.post.assert_called_once()
        args, kwargs = session.post.call_args
        self.assertEqual(args[0], ENDPOINT)
        self.assertEqual(kwargs["data"], b"Couch (Free) Charlotte")
        headers = kwargs["headers"]
        self.assertEqual(headers["Title"], "New Craigslist Listing Alert")
        self.assertEqual(headers["Priority"], "high")
        self.assertEqual(
            headers["Actions"],
            "view, Open Listing, "
            "https://charlotte.craigslist.org/fuo/d/couch/1.html, clear=true",
        )

    def test_actions_can_be_disabled(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """Without actions the header is omitted."""
        session = self._notifier(mock_session_cls)
        notifier = NtfyNotifier(endpoint=ENDPOINT)
        notifier.settings.NTFY_ACTIONS = False

        notifier.notify(_listing())

        self.assertNotIn(
            "Actions", session.post.call_args.kwargs["headers"],
        )

    def test_non_200_is_soft_failure(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """Any other status returns False without retrying."""
        session = self._notifier(mock_session_cls)
        session.post.return_value = MagicMock(status_code=429)
        notifier = NtfyNotifier(endpoint=ENDPOINT)

        self.assertFalse(notifier.notify(_listing()))
        session.post.assert_called_once()

    def test_transport_error_is_soft_failure(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """A network exception returns False and is not raised."""
        session = self._notifier(mock_session_cls)
        session.post.side_effect = ConnectionError("Network unreachable")
        notifier = NtfyNotifier(endpoint=ENDPOINT)

        self.assertFalse(notifier.notify(_listing()))
        session.post.assert_called_once()

    def test_default_endpoint_from_settings(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """Without an override the configured topic is used."""
        self._notifier(mock_session_cls)
        notifier = NtfyNotifier()
        self.assertEqual(notifier.endpoint, notifier.settings.NTFY_URL)

    def test_close_closes_session(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """close() releases the HTTP session."""
        session = self._notifier(mock_session_cls)
        NtfyNotifier(endpoint=ENDPOINT).close()
        session.close.assert_called_once()

    def test_context_manager_closes_session(
        self, mock_session_cls: MagicMock,
    ) -> None:
        """Leaving a with-block closes the session."""
        session = self._notifier(mock_session_cls)
        with NtfyNotifier(endpoint=ENDPOINT) as notifier:
            notifier.notify(_listing())
            session.close.assert_not_called()
        session.close.assert_called_once()


if __name__ == "__main__":
    unittest.main()
