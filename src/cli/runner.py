# src/cli/runner.py

"""Headless CLI runners for the listing monitor."""

import logging
from pathlib import Path

from rich.console import Console
from rich.table import Table

from src.config.settings import Settings
from src.errors import StoreError
from src.models.listing import Listing
from src.scrapers.listing_extractor import ListingExtractor
from src.scrapers.page_fetcher import PageFetcher
from src.services.listing_monitor import CycleResult, ListingMonitor
from src.services.notifier import NtfyNotifier
from src.storage.listing_store import ListingStore

logger = logging.getLogger("listing_monitor.cli")

# Stderr console for status messages
_err = Console(stderr=True)


def _open_store(db_path: Path | None) -> ListingStore | None:
    """Open and initialise the store, or report why it could not be."""
    try:
        store = ListingStore(db_path)
        store.initialize()
    except StoreError as exc:
        logger.critical("Failed to initialize database: %s", exc)
        _err.print(f"[red]Failed to initialize database: {exc}[/red]")
        return None
    return store


def _build_monitor(
    store: ListingStore, notifier: NtfyNotifier,
) -> ListingMonitor:
    return ListingMonitor(
        fetcher=PageFetcher(),
        extractor=ListingExtractor(),
        store=store,
        notifier=notifier,
    )


def _print_listings(title: str, listings: list[Listing]) -> None:
    """Render a Rich table of listings to stdout."""
    table = Table(
        title=title,
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("#", style="dim", width=4)
    table.add_column("Title", max_width=50)
    table.add_column("Price", justify="right", style="green")
    table.add_column("City", style="magenta")
    table.add_column("Seen (UTC)", style="dim")
    table.add_column("Notified", justify="center")
    table.add_column("URL", overflow="fold", style="dim")

    for idx, listing in enumerate(listings, 1):
        table.add_row(
            str(idx),
            listing.title[:50],
            listing.price or "—",
            listing.city,
            listing.posted.strftime("%Y-%m-%d %H:%M:%S"),
            "✓" if listing.notified else "",
            listing.listing_url,
        )

    Console().print(table)


def _print_cycle(result: CycleResult) -> None:
    for error_msg in result.errors:
        _err.print(f"[red]Error: {error_msg}[/red]")
    if result.fetch_failed:
        _err.print("[yellow]Fetch failed, cycle abandoned.[/yellow]")
        return
    _err.print(
        f"[green]✓ {result.candidates} listings,"
        f" {len(result.created)} new,"
        f" {len(result.notified)} notified,"
        f" {result.expired} expired[/green]"
    )
    if result.created:
        _print_listings("New Listings", result.created)


async def run_monitor(db_path: Path | None = None) -> int:
    """Run the monitor until the process is stopped."""
    store = _open_store(db_path)
    if store is None:
        return 1

    notifier = NtfyNotifier()
    with store:
        try:
            monitor = _build_monitor(store, notifier)
            _err.print(
                f"[bold]Monitoring:[/bold] {monitor.target_url}  "
                f"[dim]every {Settings.CHECK_INTERVAL:.0f}s[/dim]"
            )
            await monitor.run_forever()
        finally:
            notifier.close()
    return 0


async def run_once(db_path: Path | None = None) -> int:
    """Run a single cycle and summarise it. Exit code 1 if the fetch failed."""
    store = _open_store(db_path)
    if store is None:
        return 1

    notifier = NtfyNotifier()
    with store:
        try:
            monitor = _build_monitor(store, notifier)
            _err.print(f"[bold]Checking:[/bold] {monitor.target_url}")
            result = await monitor.run_cycle()
        finally:
            notifier.close()
    _print_cycle(result)
    return 1 if result.fetch_failed else 0


def run_list(db_path: Path | None = None) -> int:
    """Print every stored listing."""
    store = _open_store(db_path)
    if store is None:
        return 1

    with store:
        try:
            listings = store.list_listings()
        except StoreError as exc:
            logger.error("Failed to read listings: %s", exc)
            _err.print(f"[red]Failed to read listings: {exc}[/red]")
            return 1
    if not listings:
        _err.print("[yellow]No listings stored.[/yellow]")
        return 0
    _print_listings("Stored Listings", listings)
    return 0


async def run_health_check() -> int:
    """Render the target page once and report whether it is usable."""
    from src.services.health_checker import HealthChecker

    _err.print("[bold]Running target page health check...[/bold]")
    checker = HealthChecker(PageFetcher(), ListingExtractor())
    r = await checker.check()

    table = Table(
        title="Target Health Check",
        show_lines=True,
        title_style="bold cyan",
    )
    table.add_column("URL", style="bold", overflow="fold")
    table.add_column("Status", justify="center")
    table.add_column("Latency", justify="right")
    table.add_column("Listings", justify="right")
    table.add_column("Notes", style="dim")

    if r.status == "ok":
        status = "[green]✅ OK[/green]"
    elif r.status == "slow":
        status = "[yellow]⚠️  SLOW[/yellow]"
    else:
        status = "[red]❌ DOWN[/red]"

    latency = f"{r.latency_ms:.0f}ms" if r.latency_ms > 0 else "—"
    table.add_row(
        r.url, status, latency, str(r.listings), r.message,
    )

    Console().print(table)
    return 1 if r.status == "down" else 0
