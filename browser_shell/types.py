"""
Type definitions for Browser Shell.

Provides typed dataclasses for the persisted collections (settings,
bookmarks, history) and their JSON shapes. Keys on disk are camelCase;
attribute names are snake_case.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from .config import DEFAULT_SEARCH_ENGINE, get_download_dir


def new_id() -> str:
    """Generate an opaque unique identifier."""
    return str(uuid.uuid4())


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 timestamp, falling back to now on bad input."""
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value)
        except ValueError:
            pass
    return datetime.now()


def _get_str(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key)
    return value if isinstance(value, str) else default


def _get_bool(data: dict[str, Any], key: str, default: bool) -> bool:
    value = data.get(key)
    return value if isinstance(value, bool) else default


@dataclass(frozen=True)
class HistoryEntry:
    """A single completed navigation.

    Attributes:
        id: Opaque unique token
        url: Visited URL
        title: Page title (falls back to the URL when empty)
        timestamp: When the navigation completed
        visit_count: Always 1; revisits append a new entry
    """
    id: str
    url: str
    title: str
    timestamp: datetime = field(default_factory=datetime.now)
    visit_count: int = 1

    @classmethod
    def create(cls, url: str, title: str = "") -> "HistoryEntry":
        """Create a fresh entry for a completed navigation."""
        return cls(id=new_id(), url=url, title=title or url)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the history.json item shape."""
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "timestamp": self.timestamp.isoformat(),
            "visitCount": self.visit_count,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "HistoryEntry":
        """Create from a history.json item, defaulting missing fields."""
        visit_count = data.get("visitCount", 1)
        if isinstance(visit_count, bool) or not isinstance(visit_count, int) or visit_count < 1:
            visit_count = 1
        return cls(
            id=_get_str(data, "id", "") or new_id(),
            url=_get_str(data, "url", ""),
            title=_get_str(data, "title", ""),
            timestamp=parse_timestamp(data.get("timestamp")),
            visit_count=visit_count,
        )


@dataclass
class Bookmark:
    """A saved page, optionally grouped into a folder."""
    id: str
    title: str
    url: str
    folder: str = ""
    date_added: datetime = field(default_factory=datetime.now)

    @classmethod
    def create(cls, url: str, title: str = "", folder: str = "") -> "Bookmark":
        return cls(id=new_id(), title=title or url, url=url, folder=folder)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "folder": self.folder,
            "dateAdded": self.date_added.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Bookmark":
        return cls(
            id=_get_str(data, "id", "") or new_id(),
            title=_get_str(data, "title", ""),
            url=_get_str(data, "url", ""),
            folder=_get_str(data, "folder", ""),
            date_added=parse_timestamp(data.get("dateAdded")),
        )


@dataclass
class Settings:
    """Application settings."""

    home_page: str = "about:blank"
    search_engine: str = DEFAULT_SEARCH_ENGINE
    download_path: str = field(default_factory=lambda: str(get_download_dir()))
    show_bookmarks_bar: bool = True
    block_popups: bool = True
    enable_javascript: bool = True
    theme: str = "system"

    def to_dict(self) -> dict[str, Any]:
        """Convert to the settings.json shape."""
        return {
            "homePage": self.home_page,
            "searchEngine": self.search_engine,
            "downloadPath": self.download_path,
            "showBookmarksBar": self.show_bookmarks_bar,
            "blockPopups": self.block_popups,
            "enableJavaScript": self.enable_javascript,
            "theme": self.theme,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Settings":
        """Create from settings.json, defaulting every absent or mistyped field."""
        defaults = cls()
        return cls(
            home_page=_get_str(data, "homePage", defaults.home_page),
            search_engine=_get_str(data, "searchEngine", defaults.search_engine),
            download_path=_get_str(data, "downloadPath", defaults.download_path),
            show_bookmarks_bar=_get_bool(data, "showBookmarksBar", defaults.show_bookmarks_bar),
            block_popups=_get_bool(data, "blockPopups", defaults.block_popups),
            enable_javascript=_get_bool(data, "enableJavaScript", defaults.enable_javascript),
            theme=_get_str(data, "theme", defaults.theme),
        )


class HistoryChangeKind(str, Enum):
    """What happened to a history stack."""
    ADDED = "added"
    REMOVED = "removed"
    CLEARED = "cleared"


@dataclass(frozen=True)
class HistoryChanged:
    """History mutation message, drained by the owning session."""
    kind: HistoryChangeKind
    entry: Optional[HistoryEntry] = None
