# src/errors.py

"""Exception types raised inside a monitor cycle.

Every one of these is caught where it originates, logged, and treated as
"skip this unit of work". Only a ``StoreError`` raised while initialising
the store, before the loop starts, ends the process.
"""


class MonitorError(Exception):
    """Base class for listing monitor errors."""


class FetchError(MonitorError):
    """Rendering the target page failed (navigation, readiness, capture)."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class ExtractionError(MonitorError):
    """A single result element did not have the expected shape."""


class StoreError(MonitorError):
    """A database operation on the listing store failed."""


class NotifyError(MonitorError):
    """The push endpoint rejected a notification or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code
