"""
Tests for the back/forward history stack.
"""

import pytest

from browser_shell.history import MAX_HISTORY_SIZE, HistoryStack
from browser_shell.types import HistoryChangeKind, HistoryEntry


def urls(stack: HistoryStack) -> list[str]:
    return [entry.url for entry in stack.entries]


class TestAdd:
    """Tests for recording navigations."""

    def test_empty_stack(self):
        stack = HistoryStack()

        assert stack.cursor == -1
        assert stack.current() is None
        assert not stack.can_go_back()
        assert not stack.can_go_forward()

    def test_add_advances_cursor(self):
        stack = HistoryStack()
        entry = stack.add("https://a.example", "A")

        assert stack.cursor == 0
        assert stack.current() == entry
        assert entry.visit_count == 1

    def test_empty_title_falls_back_to_url(self):
        entry = HistoryStack().add("https://a.example", "")

        assert entry.title == "https://a.example"

    @pytest.mark.parametrize("count", [0, 1, 2, 50, 100])
    def test_can_go_back_only_after_two_entries(self, count):
        stack = HistoryStack()
        for i in range(count):
            stack.add(f"https://{i}.example", str(i))

        assert stack.can_go_back() == (count > 1)
        assert len(stack) == count

    def test_bounded_at_max_size(self):
        stack = HistoryStack()
        for i in range(MAX_HISTORY_SIZE + 25):
            stack.add(f"https://{i}.example", str(i))
            assert len(stack) <= MAX_HISTORY_SIZE

        assert len(stack) == MAX_HISTORY_SIZE
        assert stack.entries[0].url == "https://25.example"

    def test_eviction_keeps_cursor_on_newest_entry(self):
        """Eviction leaves the cursor index alone; it still lands on the new entry."""
        stack = HistoryStack(max_size=3)
        for name in "abc":
            stack.add(f"https://{name}.example", name)
        assert stack.cursor == 2

        entry = stack.add("https://d.example", "d")

        assert urls(stack) == ["https://b.example", "https://c.example", "https://d.example"]
        assert stack.cursor == 2
        assert stack.current() == entry
        assert not stack.can_go_forward()

    def test_revisit_appends_new_entry(self):
        stack = HistoryStack()
        first = stack.add("https://a.example", "A")
        stack.add("https://b.example", "B")
        again = stack.add("https://a.example", "A")

        assert len(stack) == 3
        assert again.id != first.id
        assert again.visit_count == 1


class TestBackForward:
    """Tests for cursor movement."""

    @pytest.fixture
    def stack(self):
        stack = HistoryStack()
        for name in "abc":
            stack.add(f"https://{name}.example", name)
        return stack

    def test_go_back_returns_previous(self, stack):
        entry = stack.go_back()

        assert entry.url == "https://b.example"
        assert stack.cursor == 1
        assert stack.can_go_forward()

    def test_go_back_at_start_is_noop(self, stack):
        stack.go_back()
        stack.go_back()

        assert stack.go_back() is None
        assert stack.cursor == 0

    def test_go_forward_at_end_is_noop(self, stack):
        assert stack.go_forward() is None
        assert stack.cursor == 2

    def test_back_then_forward_restores_position(self, stack):
        stack.go_back()
        before_cursor = stack.cursor
        before_entry = stack.current()

        stack.go_back()
        restored = stack.go_forward()

        assert stack.cursor == before_cursor
        assert restored == before_entry

    def test_navigating_after_back_discards_forward(self):
        stack = HistoryStack()
        a = stack.add("https://a.example", "A")
        stack.add("https://b.example", "B")
        stack.go_back()
        c = stack.add("https://c.example", "C")

        assert stack.entries == [a, c]
        assert stack.current() == c
        assert stack.cursor == 1


class TestRemoveClearSearch:
    """Tests for removal, clearing and search."""

    @pytest.fixture
    def stack(self):
        stack = HistoryStack()
        stack.add("https://python.org", "Python")
        stack.add("https://rust-lang.org", "Rust")
        stack.add("https://docs.python.org", "Docs")
        return stack

    def test_remove_before_cursor_shifts_cursor(self, stack):
        current = stack.current()
        first = stack.entries[0]

        assert stack.remove(first.id)
        assert stack.current() == current
        assert stack.cursor == 1

    def test_remove_after_cursor_keeps_cursor(self, stack):
        stack.go_back()
        stack.go_back()
        last = stack.entries[-1]

        assert stack.remove(last.id)
        assert stack.cursor == 0

    def test_remove_first_while_on_it_keeps_cursor_valid(self, stack):
        stack.go_back()
        stack.go_back()

        assert stack.remove(stack.entries[0].id)
        assert stack.cursor == 0
        assert stack.current().url == "https://rust-lang.org"

    def test_remove_only_entry_empties_stack(self):
        stack = HistoryStack()
        entry = stack.add("https://a.example", "A")

        assert stack.remove(entry.id)
        assert stack.cursor == -1

    def test_remove_unknown_id(self, stack):
        assert not stack.remove("missing")
        assert len(stack) == 3

    def test_clear(self, stack):
        stack.clear()

        assert len(stack) == 0
        assert stack.cursor == -1
        assert not stack.can_go_back()

    def test_search_is_case_insensitive_and_ordered(self, stack):
        results = stack.search("PYTHON")

        assert [e.url for e in results] == ["https://python.org", "https://docs.python.org"]

    def test_search_matches_title(self, stack):
        assert [e.title for e in stack.search("rus")] == ["Rust"]


class TestChangeMessages:
    """Tests for HistoryChanged messages."""

    def test_messages_in_order(self):
        stack = HistoryStack()
        entry = stack.add("https://a.example", "A")
        stack.remove(entry.id)
        stack.clear()

        changes = stack.drain_changes()

        assert [c.kind for c in changes] == [
            HistoryChangeKind.ADDED,
            HistoryChangeKind.REMOVED,
            HistoryChangeKind.CLEARED,
        ]
        assert changes[0].entry == entry
        assert changes[2].entry is None
        assert stack.drain_changes() == []

    def test_navigation_posts_no_messages(self):
        stack = HistoryStack()
        stack.add("https://a.example", "A")
        stack.add("https://b.example", "B")
        stack.drain_changes()

        stack.go_back()
        stack.go_forward()

        assert stack.drain_changes() == []


class TestFromEntries:
    """Tests for rebuilding a stack from persisted entries."""

    def test_cursor_on_last_entry(self):
        entries = [HistoryEntry.create(f"https://{i}.example") for i in range(3)]
        stack = HistoryStack.from_entries(entries)

        assert stack.cursor == 2
        assert stack.entries == entries

    def test_empty(self):
        assert HistoryStack.from_entries([]).cursor == -1

    def test_oversized_load_is_not_trimmed(self):
        entries = [HistoryEntry.create(f"https://{i}.example") for i in range(120)]
        stack = HistoryStack.from_entries(entries)

        assert len(stack) == 120

        stack.add("https://new.example", "new")

        assert len(stack) == 120
        assert stack.current().url == "https://new.example"
