"""
Back/forward history for Browser Shell.

Each browsing context owns one HistoryStack. Navigating after going back
discards the forward entries, and the stack is bounded by evicting the
oldest entry first.
"""

import logging
import queue
from typing import Iterable, Optional

from .types import HistoryChanged, HistoryChangeKind, HistoryEntry

logger = logging.getLogger(__name__)


MAX_HISTORY_SIZE = 100


class HistoryStack:
    """Ordered, truncatable, size-bounded history with a cursor.

    ``cursor`` is -1 when the stack is empty and a valid index otherwise.
    Mutations post HistoryChanged messages to ``changes``; the owner
    drains them with drain_changes() on its own turn.

    Not thread-safe: only the UI thread mutates a stack.
    """

    def __init__(self, max_size: int = MAX_HISTORY_SIZE):
        self.max_size = max_size
        self._entries: list[HistoryEntry] = []
        self._cursor = -1
        self.changes: queue.Queue = queue.Queue()

    @classmethod
    def from_entries(cls, entries: Iterable[HistoryEntry], max_size: int = MAX_HISTORY_SIZE) -> "HistoryStack":
        """Rebuild a stack from persisted entries.

        The cursor is placed on the last entry. Loaded entries are taken
        as-is; no eviction is applied even if there are more than max_size.
        """
        stack = cls(max_size=max_size)
        stack._entries = list(entries)
        stack._cursor = len(stack._entries) - 1
        return stack

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def entries(self) -> list[HistoryEntry]:
        """Snapshot of all entries in visit order."""
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _emit(self, kind: HistoryChangeKind, entry: Optional[HistoryEntry] = None) -> None:
        self.changes.put(HistoryChanged(kind=kind, entry=entry))

    def drain_changes(self) -> list[HistoryChanged]:
        """Take every pending change message."""
        changes = []
        while True:
            try:
                changes.append(self.changes.get_nowait())
            except queue.Empty:
                return changes

    def add(self, url: str, title: str = "") -> HistoryEntry:
        """Record a completed navigation.

        Entries after the cursor are discarded first. When the stack
        overflows, the oldest entry is evicted and the cursor stays put.

        Args:
            url: Visited URL
            title: Page title; empty falls back to the URL

        Returns:
            The new entry
        """
        if self._cursor < len(self._entries) - 1:
            dropped = len(self._entries) - self._cursor - 1
            self._entries = self._entries[:self._cursor + 1]
            logger.debug(f"Discarded {dropped} forward history entries")

        entry = HistoryEntry.create(url, title)
        self._entries.append(entry)

        if len(self._entries) > self.max_size:
            evicted = self._entries.pop(0)
            logger.debug(f"Evicted oldest history entry: {evicted.url}")
        else:
            self._cursor += 1

        self._emit(HistoryChangeKind.ADDED, entry)
        return entry

    def can_go_back(self) -> bool:
        return self._cursor > 0

    def can_go_forward(self) -> bool:
        return self._cursor < len(self._entries) - 1

    def go_back(self) -> Optional[HistoryEntry]:
        """Move the cursor back one entry.

        Returns:
            The entry now current, or None if already at the start
        """
        if not self.can_go_back():
            return None
        self._cursor -= 1
        return self._entries[self._cursor]

    def go_forward(self) -> Optional[HistoryEntry]:
        if not self.can_go_forward():
            return None
        self._cursor += 1
        return self._entries[self._cursor]

    def current(self) -> Optional[HistoryEntry]:
        """Get the entry at the cursor, or None when empty."""
        if 0 <= self._cursor < len(self._entries):
            return self._entries[self._cursor]
        return None

    def remove(self, entry_id: str) -> bool:
        """Remove an entry by id.

        Returns:
            True if a matching entry was found
        """
        for index, entry in enumerate(self._entries):
            if entry.id != entry_id:
                continue
            del self._entries[index]
            if self._cursor >= index:
                self._cursor -= 1
            # Removing the first entry while on it must not leave -1 behind
            if self._entries and self._cursor < 0:
                self._cursor = 0
            self._emit(HistoryChangeKind.REMOVED, entry)
            return True
        return False

    def clear(self) -> None:
        self._entries.clear()
        self._cursor = -1
        self._emit(HistoryChangeKind.CLEARED)

    def search(self, query: str) -> list[HistoryEntry]:
        """Case-insensitive substring match on url and title, in visit order."""
        needle = query.lower()
        return [
            entry for entry in self._entries
            if needle in entry.url.lower() or needle in entry.title.lower()
        ]
