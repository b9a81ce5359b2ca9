"""
CLI for Browser Shell.

Provides the command-line interface using argparse.
"""

import argparse
import sys
from typing import Optional

from rich.console import Console

from . import __version__
from .address_classifier import AddressClassifier
from .config import DEFAULTS, ShellConfig
from .history import HistoryStack
from .logger import print_bookmarks, print_classification, print_history, setup_logging
from .storage import PersistenceStore


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="browser-shell",
        description="Browser Shell - a desktop web browser built on Qt WebEngine.",
        epilog="""
Examples:
  # Open the browser on a page
  browser-shell --url example.com

  # Local dev servers open over plain http
  browser-shell --url localhost:8080

  # See how address bar input would be interpreted
  browser-shell classify "hello world"

  # Search saved history
  browser-shell history --search github
        """,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"Browser Shell {__version__}",
    )

    parser.add_argument(
        "-u", "--url",
        type=str,
        default=None,
        help="Address to open in the first tab",
    )

    parser.add_argument(
        "--data-dir",
        type=str,
        default=None,
        help=f"Directory for settings, bookmarks and history (default: {DEFAULTS['data_dir']})",
    )

    parser.add_argument(
        "--debug",
        action="store_true",
        default=False,
        help="Enable verbose logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("gui", help="Launch the browser window (default)")

    classify_parser = subparsers.add_parser(
        "classify",
        help="Show how address bar input would be interpreted",
    )
    classify_parser.add_argument(
        "text",
        nargs="+",
        help="Address bar input",
    )
    classify_parser.add_argument(
        "--engine",
        type=str,
        default=None,
        help=f"Search engine for search URLs (default: from settings, else {DEFAULTS['search_engine']})",
    )

    history_parser = subparsers.add_parser("history", help="List, search or clear saved history")
    history_parser.add_argument(
        "--search",
        type=str,
        default=None,
        help="Only show entries whose URL or title contains this text",
    )
    history_parser.add_argument(
        "--clear",
        action="store_true",
        help="Delete all saved history",
    )

    subparsers.add_parser("bookmarks", help="List saved bookmarks")

    return parser


def classify_command(args: argparse.Namespace, config: ShellConfig, console: Console) -> int:
    """Classify address bar input and print the result."""
    text = " ".join(args.text)
    engine = args.engine
    if engine is None:
        store = PersistenceStore(config.data_dir, max_workers=1)
        try:
            engine = store.load_settings().search_engine
        finally:
            store.shutdown()

    result = AddressClassifier(engine).classify(text)
    print_classification(console, text, result)
    return 0


def history_command(args: argparse.Namespace, config: ShellConfig, console: Console) -> int:
    """List, search or clear persisted history."""
    store = PersistenceStore(config.data_dir, max_workers=1)
    try:
        if args.clear:
            outcome = store.save_history([])
            if not outcome.ok:
                console.print(f"[red]Could not clear history: {outcome.message}[/red]")
                return 1
            console.print("[green]✓ History cleared.[/green]")
            return 0

        history = HistoryStack.from_entries(store.load_history())
        if args.search:
            print_history(console, history.search(args.search), title=f"History matching {args.search!r}")
        else:
            print_history(console, history.entries)
        return 0
    finally:
        store.shutdown()


def bookmarks_command(args: argparse.Namespace, config: ShellConfig, console: Console) -> int:
    """List persisted bookmarks."""
    store = PersistenceStore(config.data_dir, max_workers=1)
    try:
        print_bookmarks(console, store.load_bookmarks())
        return 0
    finally:
        store.shutdown()


def gui_command(config: ShellConfig) -> int:
    """Launch the GUI application.

    Returns:
        Exit code
    """
    from .gui import run_gui
    return run_gui(config)


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point.

    Args:
        argv: Command line arguments (uses sys.argv if None)

    Returns:
        Exit code
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    config = ShellConfig.from_cli_args(
        url=args.url,
        data_dir=args.data_dir,
        debug=args.debug,
    )
    setup_logging(config.debug)

    console = Console()

    commands = {
        "classify": classify_command,
        "history": history_command,
        "bookmarks": bookmarks_command,
    }

    try:
        if args.command is None or args.command == "gui":
            return gui_command(config)
        return commands[args.command](args, config, console)
    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130
    except Exception as e:
        console.print(f"[bold red]Fatal error: {e}[/bold red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
