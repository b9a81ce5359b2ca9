"""
Browser session for Browser Shell.

The session is the single owner of settings, bookmarks, history and
tabs. The GUI holds one session and forwards address bar input and
rendering engine notifications to it; the session answers with
navigation requests and status text.
"""

import logging
from concurrent.futures import Future
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

from .address_classifier import AddressClassifier, ensure_url_with_protocol
from .config import ShellConfig
from .history import HistoryStack
from .storage import PersistenceStore, SaveOutcome
from .suggestions import Suggestion, generate_suggestions
from .types import Bookmark, HistoryChanged, Settings, new_id

logger = logging.getLogger(__name__)


SETTINGS_FIELDS = frozenset(f.name for f in fields(Settings))


class EngineEventKind(str, Enum):
    """Notifications consumed from the rendering engine."""
    LOAD_STARTED = "load_started"
    LOAD_PROGRESS = "load_progress"
    LOAD_FINISHED = "load_finished"
    TITLE_CHANGED = "title_changed"
    URL_CHANGED = "url_changed"


@dataclass(frozen=True)
class EngineEvent:
    """A rendering engine notification for one tab.

    ``value`` carries the progress percent, the new title, the new URL
    or the load success flag, depending on ``kind``.
    """
    kind: EngineEventKind
    value: Any = None

    @classmethod
    def load_started(cls) -> "EngineEvent":
        return cls(EngineEventKind.LOAD_STARTED)

    @classmethod
    def load_progress(cls, percent: int) -> "EngineEvent":
        return cls(EngineEventKind.LOAD_PROGRESS, percent)

    @classmethod
    def load_finished(cls, ok: bool) -> "EngineEvent":
        return cls(EngineEventKind.LOAD_FINISHED, ok)

    @classmethod
    def title_changed(cls, title: str) -> "EngineEvent":
        return cls(EngineEventKind.TITLE_CHANGED, title)

    @classmethod
    def url_changed(cls, url: str) -> "EngineEvent":
        return cls(EngineEventKind.URL_CHANGED, url)


@dataclass(frozen=True)
class NavigationRequest:
    """A command for the rendering engine to load ``url`` in a tab."""
    tab_id: str
    url: str
    search_term: Optional[str] = None

    @property
    def is_search(self) -> bool:
        return self.search_term is not None


@dataclass
class BrowserTab:
    """One browsing context with its own back/forward history."""
    id: str = field(default_factory=new_id)
    url: str = ""
    title: str = "New Tab"
    is_loading: bool = False
    progress: int = 0
    history: HistoryStack = field(default_factory=HistoryStack)
    # URL of an in-flight back/forward load; its completion is not recorded again
    replaying_url: Optional[str] = None


class BrowserSession:
    """Top-level application context.

    Owns every mutable collection for the lifetime of the application
    and is only touched from the UI thread. Persistence outcomes come
    back through poll_notifications().
    """

    def __init__(self, config: ShellConfig, store: Optional[PersistenceStore] = None):
        """Initialize the session.

        Args:
            config: Shell configuration
            store: Persistence store (created from config.data_dir if omitted)
        """
        self.config = config
        self.store = store or PersistenceStore(config.data_dir, max_workers=config.save_workers)
        self.settings = Settings()
        self.bookmarks: list[Bookmark] = []
        self.history = HistoryStack()
        self.classifier = AddressClassifier(self.settings.search_engine)
        self.tabs: list[BrowserTab] = []
        self.current_tab_id: Optional[str] = None
        self.status_text = "Ready"
        self._dirty: set[str] = set()
        self._closed = False

    # ------------------------------------------------------------------
    # Lifecycle

    def load(self) -> None:
        """Load persisted collections. Missing or corrupt files yield defaults."""
        self.settings = self.store.load_settings()
        self.bookmarks = self.store.load_bookmarks()
        self.history = HistoryStack.from_entries(self.store.load_history())
        self.classifier = AddressClassifier(self.settings.search_engine)
        self._dirty.clear()
        logger.info(
            f"Loaded {len(self.bookmarks)} bookmarks and {len(self.history)} history entries "
            f"from {self.store.data_dir}"
        )

    def autosave(self) -> list["Future[SaveOutcome]"]:
        """Save collections changed since the last save in the background."""
        self._collect_history_changes()
        futures = []
        if "settings" in self._dirty:
            futures.append(self.store.save_settings_async(self.settings))
        if "bookmarks" in self._dirty:
            futures.append(self.store.save_bookmarks_async(self.bookmarks))
        if "history" in self._dirty:
            futures.append(self.store.save_history_async(self.history.entries))
        self._dirty.clear()
        return futures

    def save_all(self) -> list["Future[SaveOutcome]"]:
        """Save every collection in the background."""
        self._collect_history_changes()
        self._dirty.clear()
        return self.store.save_all_async(self.settings, self.bookmarks, self.history.entries)

    def shutdown(self) -> None:
        """Save everything and wait for the writes to finish."""
        if self._closed:
            return
        self._closed = True
        self.save_all()
        self.store.shutdown(wait=True)
        logger.info("Session closed")

    def poll_notifications(self) -> list[SaveOutcome]:
        """Drain persistence outcomes.

        Failures become status text and mark their collection dirty again.
        """
        self._collect_history_changes()
        outcomes = self.store.drain_notifications()
        for outcome in outcomes:
            if not outcome.ok:
                self.status_text = f"Save failed: {outcome.message}"
                # Retried on the next autosave
                self._dirty.add(outcome.collection)
        return outcomes

    def _collect_history_changes(self) -> list[HistoryChanged]:
        changes = self.history.drain_changes()
        if changes:
            self._dirty.add("history")
        return changes

    @property
    def dirty(self) -> set[str]:
        """Collections waiting for the next autosave."""
        self._collect_history_changes()
        return set(self._dirty)

    # ------------------------------------------------------------------
    # Tabs

    @property
    def current_tab(self) -> Optional[BrowserTab]:
        return self.get_tab(self.current_tab_id) if self.current_tab_id else None

    def get_tab(self, tab_id: str) -> Optional[BrowserTab]:
        for tab in self.tabs:
            if tab.id == tab_id:
                return tab
        return None

    def new_tab(self, url: Optional[str] = None) -> tuple[BrowserTab, NavigationRequest]:
        """Open a tab and make it current.

        Args:
            url: Address to open; the home page when omitted

        Returns:
            The tab and the navigation request for its first load
        """
        tab = BrowserTab()
        self.tabs.append(tab)
        self.current_tab_id = tab.id
        result = self.classifier.classify(url or self.settings.home_page)
        target = result.url if result.is_navigable else "about:blank"
        return tab, NavigationRequest(tab_id=tab.id, url=target, search_term=result.term or None)

    def close_tab(self, tab_id: str) -> Optional[NavigationRequest]:
        """Close a tab. Closing the last tab opens a fresh one.

        Returns:
            Navigation request for the replacement tab, if one was opened
        """
        tab = self.get_tab(tab_id)
        if tab is None:
            return None
        index = self.tabs.index(tab)
        self.tabs.remove(tab)

        if not self.tabs:
            _, request = self.new_tab()
            return request

        if self.current_tab_id == tab_id:
            self.current_tab_id = self.tabs[min(index, len(self.tabs) - 1)].id
        return None

    def switch_tab(self, tab_id: str) -> bool:
        if self.get_tab(tab_id) is None:
            return False
        self.current_tab_id = tab_id
        return True

    def _require_tab(self) -> BrowserTab:
        tab = self.current_tab
        if tab is None:
            tab, _ = self.new_tab()
        return tab

    # ------------------------------------------------------------------
    # Navigation

    def submit_address(self, text: str) -> Optional[NavigationRequest]:
        """Turn address bar input into a navigation request.

        Returns:
            A request for the current tab, or None for blank input
        """
        result = self.classifier.classify(text)
        if not result.is_navigable:
            return None

        tab = self._require_tab()
        tab.replaying_url = None
        if result.is_search:
            logger.debug(f"Searching for {result.term!r}")
            return NavigationRequest(tab_id=tab.id, url=result.url, search_term=result.term)

        logger.debug(f"Navigating to {result.url} ({result.kind.value})")
        return NavigationRequest(tab_id=tab.id, url=result.url)

    def navigate(self, url: str) -> Optional[NavigationRequest]:
        """Navigate the current tab to an address, adding a scheme if needed."""
        if not url.strip():
            return None
        tab = self._require_tab()
        tab.replaying_url = None
        return NavigationRequest(tab_id=tab.id, url=ensure_url_with_protocol(url))

    def go_home(self) -> Optional[NavigationRequest]:
        return self.navigate(self.settings.home_page)

    def go_back(self) -> Optional[NavigationRequest]:
        """Step the current tab back in its history."""
        tab = self.current_tab
        if tab is None:
            return None
        entry = tab.history.go_back()
        if entry is None:
            return None
        tab.replaying_url = entry.url
        return NavigationRequest(tab_id=tab.id, url=entry.url)

    def go_forward(self) -> Optional[NavigationRequest]:
        tab = self.current_tab
        if tab is None:
            return None
        entry = tab.history.go_forward()
        if entry is None:
            return None
        tab.replaying_url = entry.url
        return NavigationRequest(tab_id=tab.id, url=entry.url)

    def can_go_back(self) -> bool:
        tab = self.current_tab
        return tab is not None and tab.history.can_go_back()

    def can_go_forward(self) -> bool:
        tab = self.current_tab
        return tab is not None and tab.history.can_go_forward()

    def suggestions(self, text: str) -> list[Suggestion]:
        """Autocomplete suggestions for the address bar."""
        return generate_suggestions(text, self.classifier, self.history)

    # ------------------------------------------------------------------
    # Engine notifications

    def handle_event(self, tab_id: str, event: EngineEvent) -> None:
        """Apply a rendering engine notification to a tab.

        A successful LOAD_FINISHED records the visit in the tab's history
        and the session history, unless the load replays a back/forward
        step.
        """
        tab = self.get_tab(tab_id)
        if tab is None:
            logger.debug(f"Ignoring {event.kind.value} for closed tab {tab_id}")
            return

        if event.kind == EngineEventKind.LOAD_STARTED:
            tab.is_loading = True
            tab.progress = 0
            self._set_tab_status(tab, "Loading...")

        elif event.kind == EngineEventKind.LOAD_PROGRESS:
            tab.progress = int(event.value or 0)
            self._set_tab_status(tab, f"Loading... {tab.progress}%")

        elif event.kind == EngineEventKind.TITLE_CHANGED:
            tab.title = event.value or tab.url

        elif event.kind == EngineEventKind.URL_CHANGED:
            tab.url = event.value or ""

        elif event.kind == EngineEventKind.LOAD_FINISHED:
            tab.is_loading = False
            if not event.value:
                # replaying_url survives: the failure may be the load a back/forward step replaced
                self._set_tab_status(tab, f"Failed to load {tab.url}")
                return
            tab.progress = 100
            self._set_tab_status(tab, "Done")
            self._record_visit(tab)

    def _record_visit(self, tab: BrowserTab) -> None:
        replaying, tab.replaying_url = tab.replaying_url, None
        if not tab.url or tab.url == "about:blank":
            return
        if tab.url == replaying:
            return
        current = tab.history.current()
        if current is not None and current.url == tab.url:
            # Reloads finish on the entry already at the cursor
            return
        tab.history.add(tab.url, tab.title)
        self.history.add(tab.url, tab.title)

    def _set_tab_status(self, tab: BrowserTab, text: str) -> None:
        if tab.id == self.current_tab_id:
            self.status_text = text

    # ------------------------------------------------------------------
    # Bookmarks and settings

    def add_bookmark(self, url: str, title: str = "", folder: str = "") -> Bookmark:
        bookmark = Bookmark.create(url, title, folder)
        self.bookmarks.append(bookmark)
        self._dirty.add("bookmarks")
        return bookmark

    def remove_bookmark(self, bookmark_id: str) -> bool:
        for bookmark in self.bookmarks:
            if bookmark.id == bookmark_id:
                self.bookmarks.remove(bookmark)
                self._dirty.add("bookmarks")
                return True
        return False

    def is_bookmarked(self, url: str) -> bool:
        return any(b.url == url for b in self.bookmarks)

    def update_settings(self, **kwargs) -> "Future[SaveOutcome]":
        """Update settings and save them in the background.

        Args:
            **kwargs: Settings fields to update; unknown keys are ignored
        """
        for key, value in kwargs.items():
            if key in SETTINGS_FIELDS:
                setattr(self.settings, key, value)
            else:
                logger.warning(f"Ignoring unknown setting {key!r}")
        if "search_engine" in kwargs:
            self.classifier = AddressClassifier(self.settings.search_engine)
        return self.store.save_settings_async(self.settings)

    def clear_history(self) -> None:
        """Clear the session history and every tab's back/forward stack."""
        self.history.clear()
        for tab in self.tabs:
            tab.history.clear()
