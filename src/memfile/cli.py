"""Click CLI for memfile — watch and inspect cached files."""

from __future__ import annotations

import asyncio
import logging
import sys

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from memfile.cache.stats import CacheStats
from memfile.config.hierarchy import config_files, load_config_hierarchy
from memfile.events.bus import CacheEvent

console = Console()
error_console = Console(stderr=True)


def _setup_logging(verbosity: int) -> None:
    """Configure logging based on verbosity level."""
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=error_console, show_time=False, show_path=False)],
    )


@click.group()
@click.version_option(package_name="memfile")
def cli() -> None:
    """memfile — in-process file content cache."""


@cli.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--content-type", type=str, default=None, help="Content-type label for entries.")
@click.option(
    "--on-change/--no-on-change", default=None, help="Poll files and refresh when they change."
)
@click.option("--poll-interval", type=float, default=None, help="Change poll interval (ms).")
@click.option("--update-interval", type=float, default=None, help="Forced refresh interval (ms).")
@click.option("--expire", type=float, default=None, help="Absolute time-to-live (ms).")
@click.option(
    "--duration", type=float, default=10.0, show_default=True, help="Seconds to keep watching."
)
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug).")
def watch(
    paths: tuple[str, ...],
    content_type: str | None,
    on_change: bool | None,
    poll_interval: float | None,
    update_interval: float | None,
    expire: float | None,
    duration: float,
    verbose: int,
) -> None:
    """Cache files and print lifecycle events as they happen."""
    _setup_logging(verbose)

    from memfile.core import FileCache

    cache = FileCache.from_config(
        content_type=content_type,
        on_change=on_change,
        on_change_interval_ms=poll_interval,
        update_interval_ms=update_interval,
        expire_interval_ms=expire,
    )
    cache.subscribe_all(_print_event)

    async def _run() -> CacheStats:
        for path in paths:
            await cache.set(path)
        await asyncio.sleep(duration)
        stats = cache.stats()
        cache.close()
        await cache.drain()
        return stats

    try:
        stats = asyncio.run(_run())
    except KeyboardInterrupt:
        stats = cache.stats()
        cache.close()

    _print_stats(stats)


@cli.command("inspect")
@click.argument("paths", nargs=-1, required=True, type=click.Path())
@click.option("--content-type", type=str, default=None, help="Content-type label for entries.")
def inspect_files(paths: tuple[str, ...], content_type: str | None) -> None:
    """Load files once and show what the cache holds for them."""
    from memfile.core import FileCache

    cache = FileCache.from_config(content_type=content_type)

    table = Table(title="Cached Files", show_header=True)
    table.add_column("Path", style="cyan")
    table.add_column("Content type")
    table.add_column("Size", justify="right")
    table.add_column("Kind")

    failed = 0
    for path in paths:
        entry = cache.set_sync(path)
        if entry is None:
            failed += 1
            table.add_row(escape(path), "-", "-", "[red]unreadable[/red]")
            continue
        kind = "text" if entry.is_text else "bytes"
        table.add_row(escape(path), escape(entry.content_type), f"{entry.size:,}", kind)

    console.print(table)
    cache.close()
    if failed:
        sys.exit(1)


@cli.command("config")
def show_config() -> None:
    """Show resolved default options."""
    config = load_config_hierarchy()

    table = Table(title="Default Options", show_header=True)
    table.add_column("Option", style="cyan")
    table.add_column("Value")
    for key, value in config.items():
        table.add_row(key, "-" if value is None else escape(str(value)))

    console.print(table)
    for path in config_files():
        console.print(f"[dim]from {escape(str(path))}[/dim]", soft_wrap=True)


def _print_event(event: CacheEvent) -> None:
    payload = event.to_payload()
    if event.error:
        detail = escape(event.error_detail or "")
        console.print(f"[red]{event.event.value}[/red] {escape(event.path or '')}: {detail}")
        return
    size = f" ({payload['size']:,} bytes)" if "size" in payload else ""
    console.print(f"[green]{event.event.value}[/green] {escape(event.path or '')}{size}")


def _print_stats(stats: CacheStats) -> None:
    table = Table(title="Cache Statistics", show_header=True)
    table.add_column("Metric", style="cyan")
    table.add_column("Value")

    table.add_row("Entries", str(stats.entries))
    table.add_row("Hits", str(stats.hits))
    table.add_row("Misses", str(stats.misses))
    table.add_row("Hit rate", f"{stats.hit_rate:.1%}")
    table.add_row("Refreshes", str(stats.refreshes))
    table.add_row("Refresh failures", str(stats.refresh_failures))
    table.add_row("Expirations", str(stats.expirations))

    console.print(table)


def main() -> None:
    """Entry point for the CLI."""
    cli()
