"""
Persistence for Browser Shell.

Stores settings, bookmarks and history as JSON documents in the data
directory. Loads are synchronous and fall back to defaults; saves never
raise and can run on a background worker pool.
"""

import json
import logging
import os
import queue
import tempfile
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .types import Bookmark, HistoryEntry, Settings

logger = logging.getLogger(__name__)


SETTINGS_FILE = "settings.json"
BOOKMARKS_FILE = "bookmarks.json"
HISTORY_FILE = "history.json"


class PersistenceError(Exception):
    """A collection could not be written to disk."""


@dataclass(frozen=True)
class SaveOutcome:
    """Result of a save, posted to the store's notification queue."""
    collection: str
    ok: bool
    path: Path
    message: str = ""


def default_bookmarks() -> list[Bookmark]:
    """Seed bookmarks used when bookmarks.json is missing or corrupt."""
    return [
        Bookmark.create("https://www.bing.com", "Bing"),
        Bookmark.create("https://www.github.com", "GitHub", folder="Development"),
    ]


def write_json_atomic(path: Path, data: Any) -> None:
    """Write JSON to path via a temp file and rename.

    A reader (or a crash) sees either the old or the new complete file.

    Raises:
        PersistenceError: On serialization or I/O failure
    """
    try:
        payload = json.dumps(data, indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise PersistenceError(f"Could not serialize {path.name}: {e}") from e

    tmp_name = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(payload)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
        tmp_name = None
    except OSError as e:
        raise PersistenceError(f"Could not write {path.name}: {e}") from e
    finally:
        if tmp_name is not None:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass


class PersistenceStore:
    """JSON persistence for settings, bookmarks and history.

    Every load returns a fresh snapshot and every save takes a full one;
    nothing is cached between calls. Save outcomes, successful or not,
    are posted to ``notifications`` for the owner to drain on its own
    turn. Concurrent saves of the same collection are unordered: the
    last rename wins.
    """

    POOL_SIZE = 2

    def __init__(self, data_dir: Path, max_workers: int = POOL_SIZE):
        """Initialize the store.

        Args:
            data_dir: Directory holding the JSON documents
            max_workers: Size of the background write pool
        """
        self.data_dir = Path(data_dir)
        self.settings_file = self.data_dir / SETTINGS_FILE
        self.bookmarks_file = self.data_dir / BOOKMARKS_FILE
        self.history_file = self.data_dir / HISTORY_FILE
        self.notifications: queue.Queue = queue.Queue()
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="persist_",
        )
        self._closed = False

    # ------------------------------------------------------------------
    # Loading

    def _read_json(self, path: Path) -> Optional[Any]:
        """Read a JSON document, returning None when missing or unreadable."""
        if not path.exists():
            logger.debug(f"{path.name} not found, using defaults")
            return None
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning(f"Could not read {path.name}, using defaults: {e}")
            return None

    def load_settings(self) -> Settings:
        data = self._read_json(self.settings_file)
        if not isinstance(data, dict):
            return Settings()
        return Settings.from_dict(data)

    def load_bookmarks(self) -> list[Bookmark]:
        data = self._read_json(self.bookmarks_file)
        if not isinstance(data, list):
            return default_bookmarks()
        return [Bookmark.from_dict(item) for item in data if isinstance(item, dict)]

    def load_history(self) -> list[HistoryEntry]:
        data = self._read_json(self.history_file)
        if not isinstance(data, list):
            return []
        return [HistoryEntry.from_dict(item) for item in data if isinstance(item, dict)]

    # ------------------------------------------------------------------
    # Saving

    def _write(self, collection: str, path: Path, data: Any) -> SaveOutcome:
        """Write a serialized snapshot and post the outcome. Never raises."""
        try:
            write_json_atomic(path, data)
        except PersistenceError as e:
            logger.warning(f"Saving {collection} failed: {e}")
            outcome = SaveOutcome(collection=collection, ok=False, path=path, message=str(e))
        else:
            logger.debug(f"Saved {collection} to {path}")
            outcome = SaveOutcome(collection=collection, ok=True, path=path)
        self.notifications.put(outcome)
        return outcome

    def _submit(self, collection: str, path: Path, data: Any) -> "Future[SaveOutcome]":
        if self._closed:
            # Pool is gone; write inline so the data is not lost
            future: Future = Future()
            future.set_result(self._write(collection, path, data))
            return future
        return self._executor.submit(self._write, collection, path, data)

    def save_settings(self, settings: Settings) -> SaveOutcome:
        return self._write("settings", self.settings_file, settings.to_dict())

    def save_bookmarks(self, bookmarks: list[Bookmark]) -> SaveOutcome:
        return self._write("bookmarks", self.bookmarks_file, [b.to_dict() for b in bookmarks])

    def save_history(self, history: list[HistoryEntry]) -> SaveOutcome:
        return self._write("history", self.history_file, [h.to_dict() for h in history])

    # Snapshots are serialized on the calling thread, so the worker never
    # touches the caller's objects.

    def save_settings_async(self, settings: Settings) -> "Future[SaveOutcome]":
        return self._submit("settings", self.settings_file, settings.to_dict())

    def save_bookmarks_async(self, bookmarks: list[Bookmark]) -> "Future[SaveOutcome]":
        return self._submit("bookmarks", self.bookmarks_file, [b.to_dict() for b in bookmarks])

    def save_history_async(self, history: list[HistoryEntry]) -> "Future[SaveOutcome]":
        return self._submit("history", self.history_file, [h.to_dict() for h in history])

    def save_all_async(
        self,
        settings: Settings,
        bookmarks: list[Bookmark],
        history: list[HistoryEntry],
    ) -> list["Future[SaveOutcome]"]:
        """Save every collection in the background."""
        return [
            self.save_settings_async(settings),
            self.save_bookmarks_async(bookmarks),
            self.save_history_async(history),
        ]

    # ------------------------------------------------------------------
    # Notifications and lifecycle

    def drain_notifications(self) -> list[SaveOutcome]:
        """Take every pending save outcome."""
        outcomes = []
        while True:
            try:
                outcomes.append(self.notifications.get_nowait())
            except queue.Empty:
                return outcomes

    def shutdown(self, wait: bool = True) -> None:
        """Stop the worker pool.

        Args:
            wait: Block until queued writes have finished
        """
        if self._closed:
            return
        self._closed = True
        self._executor.shutdown(wait=wait, cancel_futures=False)
