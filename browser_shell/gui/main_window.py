"""
Main window for Browser Shell GUI.

Tabs of QWebEngineView pages around an address bar. Every decision
(what to load, what to record, what to save) is delegated to the
BrowserSession; this module only wires Qt signals to it.
"""

import logging
import sys
from typing import Optional

from PySide6.QtWidgets import QApplication, QLabel, QMainWindow, QStatusBar, QTabWidget, QToolBar
from PySide6.QtCore import QTimer, QUrl
from PySide6.QtGui import QAction, QColor, QKeySequence, QPalette
from PySide6.QtWebEngineCore import QWebEnginePage, QWebEngineSettings
from PySide6.QtWebEngineWidgets import QWebEngineView

from ..config import ShellConfig
from ..session import BrowserSession, EngineEvent, NavigationRequest
from .address_bar import AddressBar

logger = logging.getLogger(__name__)


# Dark theme colors
DARK_BG = "#1e1e1e"
DARK_SURFACE = "#252526"
DARK_SURFACE_LIGHT = "#2d2d30"
DARK_BORDER = "#3e3e42"
DARK_TEXT = "#cccccc"
DARK_TEXT_DIM = "#808080"
DARK_ACCENT = "#0e639c"


DARK_STYLESHEET = f"""
    QMainWindow {{
        background: {DARK_BG};
    }}
    QWidget {{
        background: {DARK_BG};
        color: {DARK_TEXT};
        font-family: 'Segoe UI', 'Ubuntu', sans-serif;
    }}
    QLineEdit {{
        background: {DARK_SURFACE};
        border: 1px solid {DARK_BORDER};
        border-radius: 4px;
        padding: 6px;
        color: {DARK_TEXT};
    }}
    QLineEdit:focus {{
        border-color: {DARK_ACCENT};
    }}
    QPushButton {{
        background: {DARK_SURFACE_LIGHT};
        border: 1px solid {DARK_BORDER};
        border-radius: 4px;
        padding: 6px 12px;
        color: {DARK_TEXT};
    }}
    QPushButton:hover {{
        background: {DARK_BORDER};
    }}
    QListWidget {{
        background: {DARK_SURFACE};
        border: 1px solid {DARK_BORDER};
        color: {DARK_TEXT};
    }}
    QListWidget::item:selected {{
        background: {DARK_ACCENT};
    }}
    QTabBar::tab {{
        background: {DARK_SURFACE};
        padding: 6px 12px;
        border: 1px solid {DARK_BORDER};
    }}
    QTabBar::tab:selected {{
        background: {DARK_SURFACE_LIGHT};
    }}
    QToolBar {{
        background: {DARK_SURFACE_LIGHT};
        border: none;
    }}
    QStatusBar {{
        background: {DARK_SURFACE_LIGHT};
        color: {DARK_TEXT_DIM};
    }}
"""

# Longest tab title before eliding
MAX_TAB_TITLE = 24


class BrowserView(QWebEngineView):
    """Web view that opens popups and target=_blank links as new tabs."""

    def __init__(self, window: "MainWindow"):
        super().__init__()
        self._window = window

    def createWindow(self, window_type: QWebEnginePage.WebWindowType) -> Optional[QWebEngineView]:
        # The engine loads the popup target into the returned view itself
        return self._window.open_tab(load=False)


class MainWindow(QMainWindow):
    """Browser main window."""

    def __init__(self, session: BrowserSession):
        super().__init__()
        self.session = session
        self._views: dict[str, BrowserView] = {}

        self._setup_ui()
        self._connect_signals()
        self._start_timers()

    def _setup_ui(self):
        """Set up the main window UI."""
        self.setWindowTitle("Browser Shell")
        self.setMinimumSize(800, 600)
        self.resize(self.session.config.window_width, self.session.config.window_height)

        # Navigation toolbar
        nav_bar = QToolBar("Navigation")
        nav_bar.setMovable(False)
        self.addToolBar(nav_bar)

        self.back_action = QAction("◀", self)
        self.back_action.setShortcut(QKeySequence.StandardKey.Back)
        self.back_action.setToolTip("Back")
        self.forward_action = QAction("▶", self)
        self.forward_action.setShortcut(QKeySequence.StandardKey.Forward)
        self.forward_action.setToolTip("Forward")
        self.reload_action = QAction("⟳", self)
        self.reload_action.setShortcut(QKeySequence.StandardKey.Refresh)
        self.reload_action.setToolTip("Reload")
        self.home_action = QAction("⌂", self)
        self.home_action.setToolTip("Home")
        for action in (self.back_action, self.forward_action, self.reload_action, self.home_action):
            nav_bar.addAction(action)

        self.address_bar = AddressBar(self.session.suggestions)
        nav_bar.addWidget(self.address_bar)

        self.bookmark_action = QAction("☆", self)
        self.bookmark_action.setShortcut(QKeySequence("Ctrl+D"))
        self.bookmark_action.setToolTip("Bookmark this page")
        self.new_tab_action = QAction("+", self)
        self.new_tab_action.setShortcut(QKeySequence.StandardKey.AddTab)
        self.new_tab_action.setToolTip("New tab")
        nav_bar.addAction(self.bookmark_action)
        nav_bar.addAction(self.new_tab_action)

        self.focus_address_action = QAction(self)
        self.focus_address_action.setShortcut(QKeySequence("Ctrl+L"))
        self.addAction(self.focus_address_action)

        # Bookmarks bar
        self.addToolBarBreak()
        self.bookmarks_bar = QToolBar("Bookmarks")
        self.bookmarks_bar.setMovable(False)
        self.addToolBar(self.bookmarks_bar)
        self._rebuild_bookmarks_bar()

        # Tabs
        self.tabs = QTabWidget()
        self.tabs.setTabsClosable(True)
        self.tabs.setDocumentMode(True)
        self.tabs.setMovable(True)
        self.setCentralWidget(self.tabs)

        # Status bar
        self.status_bar = QStatusBar()
        self.setStatusBar(self.status_bar)
        self.data_dir_label = QLabel(str(self.session.store.data_dir))
        self.status_bar.addPermanentWidget(self.data_dir_label)

    def _connect_signals(self):
        """Connect UI signals."""
        self.back_action.triggered.connect(lambda: self._apply(self.session.go_back()))
        self.forward_action.triggered.connect(lambda: self._apply(self.session.go_forward()))
        self.home_action.triggered.connect(lambda: self._apply(self.session.go_home()))
        self.reload_action.triggered.connect(self._on_reload)
        self.bookmark_action.triggered.connect(self._on_bookmark)
        self.new_tab_action.triggered.connect(lambda: self.open_tab())
        self.focus_address_action.triggered.connect(self.address_bar.focus)
        self.address_bar.submitted.connect(lambda text: self._apply(self.session.submit_address(text)))
        self.tabs.currentChanged.connect(self._on_current_changed)
        self.tabs.tabCloseRequested.connect(self._on_tab_close_requested)

    def _start_timers(self):
        config = self.session.config

        self._poll_timer = QTimer(self)
        self._poll_timer.setInterval(config.poll_interval_ms)
        self._poll_timer.timeout.connect(self._poll)
        self._poll_timer.start()

        self._autosave_timer = QTimer(self)
        self._autosave_timer.setInterval(config.autosave_interval_ms)
        self._autosave_timer.timeout.connect(self.session.autosave)
        self._autosave_timer.start()

    # ------------------------------------------------------------------
    # Tabs

    def open_tab(self, url: Optional[str] = None, load: bool = True) -> BrowserView:
        """Open a new tab through the session, starting its first load unless told not to."""
        tab, request = self.session.new_tab(url)
        return self._attach_view(tab.id, request, load=load)

    def _attach_view(self, tab_id: str, request: NavigationRequest, load: bool = True) -> BrowserView:
        """Create the web view for a session tab and start its first load."""
        tab = self.session.get_tab(tab_id)
        view = BrowserView(self)
        self._apply_page_settings(view)
        self._views[tab.id] = view

        view.loadStarted.connect(lambda: self._on_engine_event(tab.id, EngineEvent.load_started()))
        view.loadProgress.connect(lambda p: self._on_engine_event(tab.id, EngineEvent.load_progress(p)))
        view.loadFinished.connect(lambda ok: self._on_engine_event(tab.id, EngineEvent.load_finished(ok)))
        view.titleChanged.connect(lambda t: self._on_engine_event(tab.id, EngineEvent.title_changed(t)))
        view.urlChanged.connect(
            lambda u: self._on_engine_event(tab.id, EngineEvent.url_changed(u.toString()))
        )

        index = self.tabs.addTab(view, tab.title)
        self.tabs.setCurrentIndex(index)
        if load:
            self._apply(request)
        return view

    def _apply_page_settings(self, view: QWebEngineView):
        settings = self.session.settings
        page_settings = view.settings()
        page_settings.setAttribute(QWebEngineSettings.WebAttribute.JavascriptEnabled, settings.enable_javascript)
        page_settings.setAttribute(
            QWebEngineSettings.WebAttribute.JavascriptCanOpenWindows, not settings.block_popups
        )
        page_settings.setAttribute(QWebEngineSettings.WebAttribute.LocalStorageEnabled, True)

    def _tab_id_for(self, view) -> Optional[str]:
        for tab_id, candidate in self._views.items():
            if candidate is view:
                return tab_id
        return None

    def _on_current_changed(self, index: int):
        tab_id = self._tab_id_for(self.tabs.widget(index))
        if tab_id is None:
            return
        self.session.switch_tab(tab_id)
        self._refresh()

    def _on_tab_close_requested(self, index: int):
        view = self.tabs.widget(index)
        tab_id = self._tab_id_for(view)
        if tab_id is None:
            return
        self.tabs.removeTab(index)
        self._views.pop(tab_id, None)
        view.deleteLater()

        replacement = self.session.close_tab(tab_id)
        if replacement is not None:
            # Session opened a fresh tab after the last one closed
            self._attach_view(replacement.tab_id, replacement)
        self._refresh()

    # ------------------------------------------------------------------
    # Navigation

    def _apply(self, request: Optional[NavigationRequest]):
        """Hand a navigation request to the rendering engine."""
        if request is None:
            return
        view = self._views.get(request.tab_id)
        if view is None:
            self._attach_view(request.tab_id, request)
            return
        logger.debug(f"Loading {request.url}")
        view.setUrl(QUrl(request.url))
        self._refresh()

    def _on_reload(self):
        view = self._views.get(self.session.current_tab_id or "")
        if view is not None:
            view.reload()

    def _on_engine_event(self, tab_id: str, event: EngineEvent):
        self.session.handle_event(tab_id, event)
        self._refresh_tab_title(tab_id)
        if tab_id == self.session.current_tab_id:
            self._refresh()

    def _on_bookmark(self):
        tab = self.session.current_tab
        if tab is None or not tab.url or self.session.is_bookmarked(tab.url):
            return
        self.session.add_bookmark(tab.url, tab.title)
        self._rebuild_bookmarks_bar()
        self.status_bar.showMessage(f"Bookmarked {tab.title}", 3000)

    # ------------------------------------------------------------------
    # Refresh

    def _refresh(self):
        """Sync toolbar state with the session."""
        tab = self.session.current_tab
        self.back_action.setEnabled(self.session.can_go_back())
        self.forward_action.setEnabled(self.session.can_go_forward())
        if tab is not None:
            self.address_bar.set_url(tab.url)
            self.setWindowTitle(f"{tab.title} - Browser Shell")
            self.bookmark_action.setText("★" if self.session.is_bookmarked(tab.url) else "☆")
        self.status_bar.showMessage(self.session.status_text)

    def _refresh_tab_title(self, tab_id: str):
        tab = self.session.get_tab(tab_id)
        view = self._views.get(tab_id)
        if tab is None or view is None:
            return
        index = self.tabs.indexOf(view)
        title = tab.title if len(tab.title) <= MAX_TAB_TITLE else tab.title[:MAX_TAB_TITLE - 1] + "…"
        self.tabs.setTabText(index, title)
        self.tabs.setTabToolTip(index, tab.title)

    def _rebuild_bookmarks_bar(self):
        self.bookmarks_bar.clear()
        self.bookmarks_bar.setVisible(self.session.settings.show_bookmarks_bar)
        for bookmark in self.session.bookmarks:
            action = QAction(bookmark.title, self)
            action.setToolTip(bookmark.url)
            action.triggered.connect(lambda _=False, url=bookmark.url: self._apply(self.session.navigate(url)))
            self.bookmarks_bar.addAction(action)

    def _poll(self):
        before = self.session.status_text
        self.session.poll_notifications()
        if self.session.status_text != before:
            self.status_bar.showMessage(self.session.status_text)

    def closeEvent(self, event):
        """Handle window close."""
        self._poll_timer.stop()
        self._autosave_timer.stop()
        self.session.shutdown()
        event.accept()


def apply_theme(app: QApplication, theme: str) -> None:
    """Apply the dark theme when requested; other values keep Fusion defaults."""
    app.setStyle("Fusion")
    if theme != "dark":
        return

    app.setStyleSheet(DARK_STYLESHEET)

    palette = QPalette()
    palette.setColor(QPalette.ColorRole.Window, QColor(DARK_BG))
    palette.setColor(QPalette.ColorRole.WindowText, QColor(DARK_TEXT))
    palette.setColor(QPalette.ColorRole.Base, QColor(DARK_SURFACE))
    palette.setColor(QPalette.ColorRole.AlternateBase, QColor(DARK_SURFACE_LIGHT))
    palette.setColor(QPalette.ColorRole.Text, QColor(DARK_TEXT))
    palette.setColor(QPalette.ColorRole.Button, QColor(DARK_SURFACE_LIGHT))
    palette.setColor(QPalette.ColorRole.ButtonText, QColor(DARK_TEXT))
    palette.setColor(QPalette.ColorRole.Highlight, QColor(DARK_ACCENT))
    palette.setColor(QPalette.ColorRole.HighlightedText, QColor("#ffffff"))
    app.setPalette(palette)


def run_gui(config: ShellConfig) -> int:
    """Run the GUI application."""
    app = QApplication(sys.argv)
    app.setApplicationName("Browser Shell")

    config.ensure_directories()
    session = BrowserSession(config)
    session.load()

    apply_theme(app, session.settings.theme)

    window = MainWindow(session)
    window.open_tab(config.start_url)
    window.show()

    return app.exec()
