# src/storage/listing_store.py

"""SQLite-backed listing store with URL uniqueness and time-based expiry."""

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from types import TracebackType

from src.config.settings import Settings
from src.errors import StoreError
from src.models.listing import Listing

logger = logging.getLogger("listing_monitor.store")

_SCHEMA = """\
CREATE TABLE IF NOT EXISTS listings (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    title       TEXT,
    price       TEXT,
    city        TEXT,
    posted      TEXT    NOT NULL,
    listing_url TEXT    NOT NULL UNIQUE,
    notified    INTEGER NOT NULL DEFAULT 0
);

CREATE INDEX IF NOT EXISTS idx_listings_posted
    ON listings(posted);
"""

_COLUMNS = "title, price, city, posted, listing_url, notified"

# Shape written by to_db_timestamp, e.g. 2026-03-01T12:00:00.000000+00:00
_POSTED_GLOB = (
    "[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]T"
    "[0-9][0-9]:[0-9][0-9]:[0-9][0-9].[0-9][0-9][0-9][0-9][0-9][0-9]+00:00"
)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def to_db_timestamp(value: datetime) -> str:
    """Serialise a datetime as a sortable ISO-8601 UTC string.

    Naive datetimes are taken to be UTC already. Microseconds are always
    written so that text comparison in SQL matches time ordering.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat(
        timespec="microseconds",
    )


def _parse_posted(raw: object) -> datetime:
    """Read a stored timestamp; unreadable values map to the epoch."""
    try:
        value = datetime.fromisoformat(str(raw))
    except ValueError:
        logger.warning("Unreadable posted timestamp %r", raw)
        return _EPOCH
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value


def _row_to_listing(row: tuple[object, ...]) -> Listing:
    return Listing(
        title=str(row[0] or ""),
        price=str(row[1] or ""),
        city=str(row[2] or ""),
        posted=_parse_posted(row[3]),
        listing_url=str(row[4]),
        notified=bool(row[5]),
    )


class ListingStore:
    """SQLite-backed store of listings seen by the monitor.

    A listing URL is stored at most once. Re-offering a known URL is a
    no-op, and :meth:`insert` reports whether the call created the row.
    """

    def __init__(self, db_path: Path | None = None) -> None:
        path = db_path or Settings.DB_PATH
        self._path = path
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(
                str(path), check_same_thread=False,
            )
            self._conn.execute("PRAGMA journal_mode=WAL")
        except (OSError, sqlite3.Error) as exc:
            raise StoreError(
                f"Unable to open database at {path}: {exc}"
            ) from exc
        logger.debug("ListingStore opened at %s", path)

    def __enter__(self) -> "ListingStore":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        """Close the database connection."""
        self._conn.close()
        logger.debug("ListingStore closed at %s", self._path)

    # ── Schema ───────────────────────────────────────────

    def initialize(self) -> None:
        """Create the schema if missing. Safe to call on every startup.

        Databases written before the ``notified`` column existed get the
        column added in place. ``posted`` values in any other format are
        rewritten as UTC ISO-8601; rows whose ``posted`` SQLite cannot read
        as a date (relative text such as ``"5 mins ago"``) are dropped,
        since they could never expire.
        """
        try:
            self._conn.executescript(_SCHEMA)
            columns = {
                row[1]
                for row in self._conn.execute(
                    "PRAGMA table_info(listings)"
                ).fetchall()
            }
            if "notified" not in columns:
                logger.info("Adding missing 'notified' column")
                self._conn.execute(
                    "ALTER TABLE listings "
                    "ADD COLUMN notified INTEGER NOT NULL DEFAULT 0"
                )
            self._normalize_posted()
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to initialise schema: {exc}"
            ) from exc

    def _normalize_posted(self) -> None:
        dropped = self._conn.execute(
            "DELETE FROM listings WHERE posted IS NULL "
            "OR (posted NOT GLOB ? AND julianday(posted) IS NULL)",
            (_POSTED_GLOB,),
        ).rowcount
        rewritten = self._conn.execute(
            "UPDATE listings "
            "SET posted = strftime('%Y-%m-%dT%H:%M:%f', posted) "
            "|| '000+00:00' "
            "WHERE posted NOT GLOB ?",
            (_POSTED_GLOB,),
        ).rowcount
        if dropped > 0:
            logger.warning(
                "Dropped %d listings with unreadable timestamps", dropped,
            )
        if rewritten > 0:
            logger.info("Rewrote %d legacy timestamps as UTC", rewritten)

    # ── Writes ───────────────────────────────────────────

    def insert(self, listing: Listing) -> bool:
        """Insert a listing unless its URL is already stored.

        Returns True only when this call created the row. Callers must
        base first-sighting decisions on this value alone.
        """
        try:
            cur = self._conn.execute(
                f"INSERT INTO listings ({_COLUMNS}) "
                "VALUES (?, ?, ?, ?, ?, ?) "
                "ON CONFLICT(listing_url) DO NOTHING",
                (
                    listing.title,
                    listing.price,
                    listing.city,
                    to_db_timestamp(listing.posted),
                    listing.listing_url,
                    int(listing.notified),
                ),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to insert {listing.listing_url}: {exc}"
            ) from exc
        created = cur.rowcount == 1
        if created:
            logger.debug("Stored new listing %s", listing.listing_url)
        return created

    def mark_notified(self, listing_url: str) -> bool:
        """Flip ``notified`` to true. Returns True only on the transition."""
        try:
            cur = self._conn.execute(
                "UPDATE listings SET notified = 1 "
                "WHERE listing_url = ? AND notified = 0",
                (listing_url,),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to mark {listing_url} notified: {exc}"
            ) from exc
        return cur.rowcount == 1

    def expire_older_than(
        self,
        horizon: timedelta,
        now: datetime | None = None,
    ) -> int:
        """Delete every listing posted before ``now - horizon``.

        Expiry ignores the ``notified`` flag. Returns the number of rows
        deleted.
        """
        cutoff = (now or datetime.now(timezone.utc)) - horizon
        try:
            cur = self._conn.execute(
                "DELETE FROM listings "
                "WHERE julianday(posted) < julianday(?)",
                (to_db_timestamp(cutoff),),
            )
            self._conn.commit()
        except sqlite3.Error as exc:
            raise StoreError(
                f"Failed to expire listings: {exc}"
            ) from exc
        deleted = max(cur.rowcount, 0)
        if deleted:
            logger.info(
                "Expired %d listings older than %s", deleted, horizon,
            )
        return deleted

    # ── Queries ──────────────────────────────────────────

    def get(self, listing_url: str) -> Listing | None:
        """Return the stored listing for a URL, if any."""
        row = self._query(
            f"SELECT {_COLUMNS} FROM listings WHERE listing_url = ?",
            (listing_url,),
        )
        return _row_to_listing(row[0]) if row else None

    def list_listings(self) -> list[Listing]:
        """Return all stored listings, newest first."""
        rows = self._query(
            f"SELECT {_COLUMNS} FROM listings "
            "ORDER BY posted DESC, id DESC",
        )
        return [_row_to_listing(r) for r in rows]

    def count(self) -> int:
        """Return the number of stored listings."""
        rows = self._query("SELECT COUNT(id) FROM listings")
        return int(rows[0][0]) if rows else 0

    def _query(
        self, sql: str, params: tuple[object, ...] = (),
    ) -> list[tuple[object, ...]]:
        try:
            return self._conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Failed to read listings: {exc}") from exc
