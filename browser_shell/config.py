"""
Configuration management for Browser Shell.

Provides configuration dataclass and environment variable loading.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file if present
load_dotenv()


def get_base_dir() -> Path:
    """Get the base directory for browser shell data."""
    override = os.getenv("BROWSER_SHELL_HOME")
    if override:
        return Path(override).expanduser()
    return Path.home() / ".browser_shell"


def get_download_dir() -> Path:
    """Get the default download directory."""
    return Path.home() / "Downloads"


# Search engine query templates, keyed by the name stored in settings
SEARCH_ENGINES = {
    "bing": "https://www.bing.com/search?q={}",
    "google": "https://www.google.com/search?q={}",
    "duckduckgo": "https://duckduckgo.com/?q={}",
}

DEFAULT_SEARCH_ENGINE = "bing"


def get_search_template(engine: str) -> str:
    """Get the query template for a search engine, falling back to the default."""
    return SEARCH_ENGINES.get(engine.lower(), SEARCH_ENGINES[DEFAULT_SEARCH_ENGINE])


@dataclass
class ShellConfig:
    """Configuration for a browser shell session."""

    # Where settings.json, bookmarks.json and history.json live
    data_dir: Path = field(default_factory=get_base_dir)

    # First navigation (from --url)
    start_url: Optional[str] = None

    # Persistence worker pool size
    save_workers: int = 2

    # Autosave interval for dirty collections (ms)
    autosave_interval_ms: int = 30000

    # Notification polling interval (ms)
    poll_interval_ms: int = 200

    # Window settings
    window_width: int = 1200
    window_height: int = 800

    # Debug mode - enables verbose logging (off by default)
    debug: bool = field(
        default_factory=lambda: os.getenv("BROWSER_SHELL_DEBUG", "").lower() in ("1", "true", "yes")
    )

    def ensure_directories(self) -> None:
        """Ensure the data directory exists."""
        self.data_dir.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_cli_args(
        cls,
        url: Optional[str] = None,
        data_dir: Optional[str] = None,
        debug: bool = False,
    ) -> "ShellConfig":
        """Create configuration from CLI arguments."""
        config = cls(start_url=url)
        if data_dir:
            config.data_dir = Path(data_dir).expanduser()
        if debug:
            config.debug = True
        return config


# Default configuration values for documentation
DEFAULTS = {
    "data_dir": "~/.browser_shell",
    "search_engine": DEFAULT_SEARCH_ENGINE,
    "save_workers": 2,
    "autosave_interval_ms": 30000,
    "max_history_size": 100,
    "max_suggestions": 8,
}
