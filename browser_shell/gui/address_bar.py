"""
Address bar widget for Browser Shell.

Line edit with a Go button and a suggestion popup driven by the session.
"""

from typing import Callable, Optional

from PySide6.QtWidgets import (
    QHBoxLayout, QLineEdit, QListWidget, QListWidgetItem, QPushButton, QWidget,
)
from PySide6.QtCore import QEvent, QObject, QPoint, Qt, QTimer, Signal

from ..suggestions import Suggestion, SuggestionList


# Delay between the last keystroke and refreshing suggestions
SUGGESTION_DELAY_MS = 300


class AddressBar(QWidget):
    """Address bar with debounced autocomplete.

    Emits ``submitted`` with the text to classify: the typed text, or
    the URL of the highlighted suggestion.
    """

    submitted = Signal(str)

    def __init__(self, suggest: Callable[[str], list[Suggestion]], parent=None):
        """Initialize the address bar.

        Args:
            suggest: Returns suggestions for the current text
            parent: Parent widget
        """
        super().__init__(parent)
        self._suggest = suggest
        self._suggestions = SuggestionList()
        self._setup_ui()
        self._connect_signals()

    def _setup_ui(self):
        layout = QHBoxLayout(self)
        layout.setContentsMargins(3, 3, 3, 3)
        layout.setSpacing(5)

        self.line_edit = QLineEdit()
        self.line_edit.setPlaceholderText("Search or enter address")
        self.line_edit.installEventFilter(self)
        layout.addWidget(self.line_edit, 1)

        self.go_btn = QPushButton("Go")
        self.go_btn.setFixedWidth(60)
        layout.addWidget(self.go_btn)

        # Tool-tip window so the popup never steals keyboard focus
        self.popup = QListWidget()
        self.popup.setWindowFlags(Qt.WindowType.ToolTip | Qt.WindowType.FramelessWindowHint)
        self.popup.setHorizontalScrollBarPolicy(Qt.ScrollBarPolicy.ScrollBarAlwaysOff)
        self.popup.setMaximumHeight(200)

        self._timer = QTimer(self)
        self._timer.setInterval(SUGGESTION_DELAY_MS)
        self._timer.setSingleShot(True)

    def _connect_signals(self):
        self.line_edit.textEdited.connect(lambda _: self._timer.start())
        self._timer.timeout.connect(self._refresh_suggestions)
        self.go_btn.clicked.connect(self._submit)
        self.popup.itemClicked.connect(self._on_item_clicked)

    # ------------------------------------------------------------------

    def set_url(self, url: str) -> None:
        """Show the current page address without triggering suggestions."""
        if not self.line_edit.hasFocus():
            self.line_edit.setText(url)

    def focus(self) -> None:
        self.line_edit.setFocus()
        self.line_edit.selectAll()

    def eventFilter(self, watched: QObject, event: QEvent) -> bool:
        if watched is self.line_edit:
            if event.type() == QEvent.Type.KeyPress:
                key = event.key()
                if self.popup.isVisible():
                    if key == Qt.Key.Key_Down:
                        self._move_selection(self._suggestions.select_next())
                        return True
                    if key == Qt.Key.Key_Up:
                        self._move_selection(self._suggestions.select_previous())
                        return True
                    if key == Qt.Key.Key_Escape:
                        self._hide_popup()
                        return True
                if key in (Qt.Key.Key_Return, Qt.Key.Key_Enter):
                    self._submit()
                    return True
            elif event.type() == QEvent.Type.FocusIn:
                QTimer.singleShot(0, self.line_edit.selectAll)
            elif event.type() == QEvent.Type.FocusOut:
                # Delay so a click on the popup still lands
                QTimer.singleShot(150, self._hide_popup)
        return super().eventFilter(watched, event)

    # ------------------------------------------------------------------

    def _refresh_suggestions(self):
        self._suggestions.replace(self._suggest(self.line_edit.text()))
        if not len(self._suggestions):
            self._hide_popup()
            return

        self.popup.clear()
        for suggestion in self._suggestions.items:
            self.popup.addItem(QListWidgetItem(suggestion.display_text()))

        row_height = max(self.popup.sizeHintForRow(0), 20)
        height = min(200, row_height * len(self._suggestions) + 4)
        origin = self.line_edit.mapToGlobal(QPoint(0, self.line_edit.height()))
        self.popup.setGeometry(origin.x(), origin.y(), self.line_edit.width(), height)
        self.popup.show()

    def _move_selection(self, suggestion: Optional[Suggestion]):
        if suggestion is None:
            return
        self.popup.setCurrentRow(self._suggestions.selected_index)
        self.line_edit.setText(suggestion.url)

    def _on_item_clicked(self, item: QListWidgetItem):
        row = self.popup.row(item)
        items = self._suggestions.items
        if 0 <= row < len(items):
            self.line_edit.setText(items[row].url)
            self._submit()

    def _hide_popup(self):
        self.popup.hide()
        self._suggestions.clear()

    def _submit(self):
        self._timer.stop()
        selected = self._suggestions.selected()
        text = selected.url if selected else self.line_edit.text()
        self._hide_popup()
        if text.strip():
            self.submitted.emit(text.strip())
