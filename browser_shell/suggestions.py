"""
Address bar suggestions for Browser Shell.

Builds the autocomplete list shown under the address bar and tracks the
keyboard selection within it.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, TYPE_CHECKING

from .address_classifier import AddressClassifier, ClassificationKind

if TYPE_CHECKING:
    from .history import HistoryStack


MAX_SUGGESTIONS = 8

# Search suggestions are only offered past this many characters
MIN_SEARCH_LENGTH = 2


class SuggestionType(str, Enum):
    """Kind of suggestion row."""
    SEARCH = "search"
    URL = "url"
    HISTORY = "history"


SUGGESTION_GLYPHS = {
    SuggestionType.SEARCH: "🔍",
    SuggestionType.URL: "🌐",
    SuggestionType.HISTORY: "🕐",
}


def suggestion_glyph(kind: SuggestionType) -> str:
    """Map a suggestion type to its display glyph."""
    return SUGGESTION_GLYPHS[kind]


@dataclass(frozen=True)
class Suggestion:
    """One row of the suggestion popup."""
    title: str
    url: str
    kind: SuggestionType

    def display_text(self) -> str:
        """Two-line text for the popup list."""
        return f"{suggestion_glyph(self.kind)} {self.title}\n{self.url}"


def generate_suggestions(
    text: str,
    classifier: AddressClassifier,
    history: Optional["HistoryStack"] = None,
    limit: int = MAX_SUGGESTIONS,
) -> list[Suggestion]:
    """Build suggestions for the current address bar text.

    Args:
        text: Address bar text
        classifier: Classifier used for URL detection and search URLs
        history: Optional history to pull matching visits from
        limit: Maximum number of suggestions

    Returns:
        Suggestions in display order: search, URL, then history
    """
    text = text.strip()
    if not text:
        return []

    suggestions: list[Suggestion] = []

    if len(text) > MIN_SEARCH_LENGTH:
        suggestions.append(Suggestion(
            title=f'Search "{text}"',
            url=classifier.search_url(text),
            kind=SuggestionType.SEARCH,
        ))

    result = classifier.classify(text)
    if result.kind in (
        ClassificationKind.LOCAL_OR_PRIVATE,
        ClassificationKind.DIRECT_URL,
        ClassificationKind.LIKELY_DOMAIN,
    ):
        suggestions.append(Suggestion(title=text, url=result.url, kind=SuggestionType.URL))

    if history is not None:
        seen = {s.url for s in suggestions}
        # Newest visits first
        for entry in reversed(history.search(text)):
            if entry.url in seen:
                continue
            seen.add(entry.url)
            suggestions.append(Suggestion(title=entry.title, url=entry.url, kind=SuggestionType.HISTORY))
            if len(suggestions) >= limit:
                break

    return suggestions[:limit]


class SuggestionList:
    """Suggestions currently shown, with a wrap-around selection.

    The selection starts at -1 (nothing selected). Down past the last
    row goes to the first; Up before the first goes to the last.
    """

    def __init__(self, items: Optional[list[Suggestion]] = None, limit: int = MAX_SUGGESTIONS):
        self.limit = limit
        self._items: list[Suggestion] = []
        self.selected_index = -1
        self.replace(items or [])

    @property
    def items(self) -> list[Suggestion]:
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def replace(self, items: list[Suggestion]) -> None:
        """Show a new set of suggestions and reset the selection."""
        self._items = list(items[:self.limit])
        self.selected_index = -1

    def clear(self) -> None:
        self.replace([])

    def select_next(self) -> Optional[Suggestion]:
        if not self._items:
            return None
        self.selected_index += 1
        if self.selected_index >= len(self._items):
            self.selected_index = 0
        return self._items[self.selected_index]

    def select_previous(self) -> Optional[Suggestion]:
        if not self._items:
            return None
        self.selected_index -= 1
        if self.selected_index < 0:
            self.selected_index = len(self._items) - 1
        return self._items[self.selected_index]

    def selected(self) -> Optional[Suggestion]:
        """Get the selected suggestion, or None if nothing is selected."""
        if 0 <= self.selected_index < len(self._items):
            return self._items[self.selected_index]
        return None
