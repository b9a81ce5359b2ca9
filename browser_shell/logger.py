"""
Logging and console output for Browser Shell.

Configures standard logging through rich and renders the tables printed
by the command-line interface.
"""

import logging
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .address_classifier import ClassificationKind, ClassificationResult
from .types import Bookmark, HistoryEntry


KIND_COLORS = {
    ClassificationKind.EMPTY: "dim",
    ClassificationKind.LOCAL_OR_PRIVATE: "yellow",
    ClassificationKind.DIRECT_URL: "green",
    ClassificationKind.LIKELY_DOMAIN: "cyan",
    ClassificationKind.SEARCH_QUERY: "magenta",
}


def setup_logging(debug: bool = False, console: Optional[Console] = None) -> None:
    """Configure root logging with a rich handler.

    Args:
        debug: Log at DEBUG instead of WARNING
        console: Console to log to (stderr by default)
    """
    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=debug,
        rich_tracebacks=True,
    )
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def print_classification(console: Console, text: str, result: ClassificationResult) -> None:
    """Print how address bar input was classified."""
    color = KIND_COLORS.get(result.kind, "white")

    table = Table(title="Address Classification", show_header=False)
    table.add_column("Property", style="dim")
    table.add_column("Value")

    table.add_row("Input", repr(text))
    table.add_row("Kind", f"[{color}]{result.kind.value}[/{color}]")
    if result.is_search:
        table.add_row("Search Term", result.term)
        table.add_row("Search URL", result.url)
    elif result.is_navigable:
        table.add_row("URL", result.url)
        scheme = result.url.split(":", 1)[0]
        table.add_row("Scheme", scheme)
    else:
        table.add_row("Action", "none (blank input)")

    console.print(table)


def print_history(console: Console, entries: list[HistoryEntry], title: str = "History") -> None:
    """Print history entries, newest first."""
    if not entries:
        console.print("[dim]No history.[/dim]")
        return

    table = Table(title=title)
    table.add_column("Visited", style="dim")
    table.add_column("Title")
    table.add_column("URL", style="cyan")

    for entry in reversed(entries):
        table.add_row(entry.timestamp.strftime("%Y-%m-%d %H:%M"), entry.title, entry.url)

    console.print(table)


def print_bookmarks(console: Console, bookmarks: list[Bookmark]) -> None:
    """Print bookmarks grouped by folder order."""
    if not bookmarks:
        console.print("[dim]No bookmarks.[/dim]")
        return

    table = Table(title="Bookmarks")
    table.add_column("Folder", style="dim")
    table.add_column("Title")
    table.add_column("URL", style="cyan")

    for bookmark in sorted(bookmarks, key=lambda b: b.folder):
        table.add_row(bookmark.folder or "-", bookmark.title, bookmark.url)

    console.print(table)
