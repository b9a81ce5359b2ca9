"""
Tests for the browser session: navigation, history recording and saving.
"""

import json

import pytest

from browser_shell.config import ShellConfig
from browser_shell.session import BrowserSession, EngineEvent
from browser_shell.storage import BOOKMARKS_FILE, HISTORY_FILE, SETTINGS_FILE


@pytest.fixture
def session(tmp_path):
    session = BrowserSession(ShellConfig(data_dir=tmp_path))
    session.load()
    yield session
    session.shutdown()


def finish_load(session, tab_id, url, title="", ok=True):
    """Feed the engine notifications for one complete page load."""
    session.handle_event(tab_id, EngineEvent.load_started())
    session.handle_event(tab_id, EngineEvent.url_changed(url))
    if title:
        session.handle_event(tab_id, EngineEvent.title_changed(title))
    session.handle_event(tab_id, EngineEvent.load_finished(ok))


def visit(session, text):
    request = session.submit_address(text)
    finish_load(session, request.tab_id, request.url)
    return request


class TestTabs:
    """Tests for opening, closing and switching tabs."""

    def test_new_tab_defaults_to_home_page(self, session):
        tab, request = session.new_tab()

        assert session.current_tab is tab
        assert request.url == "about:blank"
        assert not request.is_search

    def test_new_tab_classifies_address(self, session):
        _, request = session.new_tab("localhost:5000")

        assert request.url == "http://localhost:5000"

    def test_new_tab_with_search_phrase(self, session):
        _, request = session.new_tab("hello world")

        assert request.is_search
        assert request.search_term == "hello world"

    def test_closing_current_tab_selects_neighbor(self, session):
        first, _ = session.new_tab()
        second, _ = session.new_tab()

        assert session.close_tab(second.id) is None
        assert session.current_tab is first

    def test_closing_last_tab_opens_replacement(self, session):
        tab, _ = session.new_tab()

        request = session.close_tab(tab.id)

        assert request is not None
        assert len(session.tabs) == 1
        assert session.current_tab_id == request.tab_id != tab.id

    def test_switch_to_unknown_tab(self, session):
        session.new_tab()

        assert not session.switch_tab("missing")


class TestNavigation:
    """Tests for address submission and back/forward."""

    def test_blank_input_is_ignored(self, session):
        session.new_tab()

        assert session.submit_address("   ") is None

    def test_search_request_carries_term(self, session):
        session.new_tab()
        request = session.submit_address("hello world")

        assert request.search_term == "hello world"
        assert request.url == "https://www.bing.com/search?q=hello%20world"

    def test_submit_without_tab_opens_one(self, session):
        request = session.submit_address("example.com")

        assert request.url == "https://example.com"
        assert session.current_tab_id == request.tab_id

    def test_navigate_adds_scheme(self, session):
        session.new_tab()

        assert session.navigate("192.168.1.1").url == "http://192.168.1.1"
        assert session.navigate("example.com").url == "https://example.com"

    def test_completed_load_is_recorded(self, session):
        session.new_tab()
        visit(session, "example.com")

        tab = session.current_tab
        assert [e.url for e in tab.history.entries] == ["https://example.com"]
        assert [e.url for e in session.history.entries] == ["https://example.com"]
        assert session.status_text == "Done"

    def test_title_recorded_with_visit(self, session):
        tab, _ = session.new_tab()
        finish_load(session, tab.id, "https://example.com", title="Example Domain")

        assert tab.title == "Example Domain"
        assert session.history.current().title == "Example Domain"

    def test_failed_load_is_not_recorded(self, session):
        tab, _ = session.new_tab()
        finish_load(session, tab.id, "https://down.example", ok=False)

        assert len(tab.history) == 0
        assert session.status_text == "Failed to load https://down.example"

    def test_about_blank_is_not_recorded(self, session):
        tab, _ = session.new_tab()
        finish_load(session, tab.id, "about:blank")

        assert len(session.history) == 0

    def test_progress_status(self, session):
        tab, _ = session.new_tab()
        session.handle_event(tab.id, EngineEvent.load_progress(42))

        assert session.status_text == "Loading... 42%"
        assert tab.progress == 42

    def test_background_tab_does_not_change_status(self, session):
        background, _ = session.new_tab()
        session.new_tab()
        session.handle_event(background.id, EngineEvent.load_started())

        assert session.status_text == "Ready"
        assert background.is_loading

    def test_event_for_closed_tab_is_ignored(self, session):
        session.new_tab()
        session.handle_event("gone", EngineEvent.load_finished(True))

        assert len(session.history) == 0

    def test_back_and_forward_do_not_truncate(self, session):
        session.new_tab()
        visit(session, "a.example")
        visit(session, "b.example")
        tab = session.current_tab

        back = session.go_back()
        assert back.url == "https://a.example"
        finish_load(session, back.tab_id, back.url)

        assert len(tab.history) == 2
        assert session.can_go_forward()

        forward = session.go_forward()
        finish_load(session, forward.tab_id, forward.url)

        assert forward.url == "https://b.example"
        assert len(tab.history) == 2
        assert not session.can_go_forward()
        assert len(session.history) == 2

    def test_new_navigation_after_back_discards_forward(self, session):
        session.new_tab()
        visit(session, "a.example")
        visit(session, "b.example")
        back = session.go_back()
        finish_load(session, back.tab_id, back.url)

        visit(session, "c.example")

        urls = [e.url for e in session.current_tab.history.entries]
        assert urls == ["https://a.example", "https://c.example"]

    def test_aborted_load_does_not_record_back_step(self, session):
        session.new_tab()
        visit(session, "a.example")
        visit(session, "b.example")
        pending = session.submit_address("c.example")
        session.handle_event(pending.tab_id, EngineEvent.load_started())

        back = session.go_back()
        session.handle_event(back.tab_id, EngineEvent.load_finished(False))
        finish_load(session, back.tab_id, back.url)

        tab = session.current_tab
        assert [e.url for e in tab.history.entries] == ["https://a.example", "https://b.example"]
        assert tab.history.cursor == 0
        assert session.can_go_forward()

    def test_reload_is_not_recorded(self, session):
        session.new_tab()
        visit(session, "a.example")
        tab = session.current_tab

        session.handle_event(tab.id, EngineEvent.load_started())
        session.handle_event(tab.id, EngineEvent.load_finished(True))

        assert len(tab.history) == 1
        assert len(session.history) == 1

    def test_reload_after_back_keeps_forward_history(self, session):
        session.new_tab()
        visit(session, "a.example")
        visit(session, "b.example")
        back = session.go_back()
        finish_load(session, back.tab_id, back.url)

        session.handle_event(back.tab_id, EngineEvent.load_started())
        session.handle_event(back.tab_id, EngineEvent.load_finished(True))

        tab = session.current_tab
        assert [e.url for e in tab.history.entries] == ["https://a.example", "https://b.example"]
        assert session.can_go_forward()

    def test_back_at_start(self, session):
        session.new_tab()
        visit(session, "a.example")

        assert session.go_back() is None
        assert not session.can_go_back()

    def test_tabs_have_separate_histories(self, session):
        first, _ = session.new_tab()
        visit(session, "a.example")
        second, _ = session.new_tab()
        visit(session, "b.example")

        assert [e.url for e in first.history.entries] == ["https://a.example"]
        assert [e.url for e in second.history.entries] == ["https://b.example"]
        assert len(session.history) == 2

    def test_suggestions_include_history(self, session):
        session.new_tab()
        visit(session, "docs.python.org")

        urls = [s.url for s in session.suggestions("python")]

        assert "https://docs.python.org" in urls

    def test_clear_history(self, session):
        session.new_tab()
        visit(session, "a.example")
        visit(session, "b.example")

        session.clear_history()

        assert len(session.history) == 0
        assert not session.can_go_back()
        assert "history" in session.dirty


class TestBookmarksAndSettings:
    """Tests for bookmark and settings changes."""

    def test_add_and_remove_bookmark(self, session):
        bookmark = session.add_bookmark("https://example.com", "Example")

        assert session.is_bookmarked("https://example.com")
        assert session.remove_bookmark(bookmark.id)
        assert not session.is_bookmarked("https://example.com")
        assert not session.remove_bookmark(bookmark.id)

    def test_seed_bookmarks_loaded(self, session):
        assert session.is_bookmarked("https://www.bing.com")

    def test_changing_search_engine(self, session, tmp_path):
        session.new_tab()
        outcome = session.update_settings(search_engine="duckduckgo").result(timeout=5)

        assert outcome.ok
        assert session.submit_address("cats").url == "https://duckduckgo.com/?q=cats"
        data = json.loads((tmp_path / SETTINGS_FILE).read_text(encoding="utf-8"))
        assert data["searchEngine"] == "duckduckgo"

    def test_unknown_setting_is_ignored(self, session):
        session.update_settings(no_such_option=True).result(timeout=5)

        assert not hasattr(session.settings, "no_such_option")

    def test_method_names_are_not_settings(self, session):
        outcome = session.update_settings(to_dict=1).result(timeout=5)

        assert outcome.ok
        assert callable(session.settings.to_dict)

    def test_settings_survive_reload(self, tmp_path):
        first = BrowserSession(ShellConfig(data_dir=tmp_path))
        first.load()
        first.update_settings(home_page="https://start.example", theme="dark")
        first.shutdown()

        second = BrowserSession(ShellConfig(data_dir=tmp_path))
        second.load()

        assert second.settings.home_page == "https://start.example"
        assert second.settings.theme == "dark"
        second.shutdown()


class TestSaving:
    """Tests for autosave, shutdown and save failure reporting."""

    def test_autosave_only_dirty_collections(self, session, tmp_path):
        assert session.autosave() == []

        session.add_bookmark("https://example.com", "Example")
        futures = session.autosave()

        assert [f.result(timeout=5).collection for f in futures] == ["bookmarks"]
        assert (tmp_path / BOOKMARKS_FILE).exists()
        assert not (tmp_path / HISTORY_FILE).exists()
        assert session.dirty == set()

    def test_visit_marks_history_dirty(self, session, tmp_path):
        session.new_tab()
        visit(session, "example.com")

        assert session.dirty == {"history"}

        for future in session.autosave():
            future.result(timeout=5)

        data = json.loads((tmp_path / HISTORY_FILE).read_text(encoding="utf-8"))
        assert [item["url"] for item in data] == ["https://example.com"]
        assert data[0]["visitCount"] == 1

    def test_shutdown_writes_everything(self, tmp_path):
        session = BrowserSession(ShellConfig(data_dir=tmp_path))
        session.load()
        session.new_tab()
        visit(session, "example.com")

        session.shutdown()
        session.shutdown()

        for name in (SETTINGS_FILE, BOOKMARKS_FILE, HISTORY_FILE):
            assert (tmp_path / name).exists()

    def test_history_reloaded_for_suggestions(self, tmp_path):
        session = BrowserSession(ShellConfig(data_dir=tmp_path))
        session.load()
        session.new_tab()
        visit(session, "rust-lang.org")
        session.shutdown()

        reloaded = BrowserSession(ShellConfig(data_dir=tmp_path))
        reloaded.load()

        assert "https://rust-lang.org" in [s.url for s in reloaded.suggestions("rust")]
        reloaded.shutdown()

    def test_failed_save_sets_status(self, session, tmp_path):
        (tmp_path / SETTINGS_FILE).mkdir()

        session.update_settings(theme="dark").result(timeout=5)
        outcomes = session.poll_notifications()

        assert [o.ok for o in outcomes] == [False]
        assert session.status_text.startswith("Save failed: ")

    def test_failed_save_is_retried_on_autosave(self, session, tmp_path):
        session.add_bookmark("https://example.com", "Example")
        (tmp_path / BOOKMARKS_FILE).mkdir()
        for future in session.autosave():
            future.result(timeout=5)
        session.poll_notifications()

        assert "bookmarks" in session.dirty

        (tmp_path / BOOKMARKS_FILE).rmdir()
        outcomes = [f.result(timeout=5) for f in session.autosave()]

        assert [(o.collection, o.ok) for o in outcomes] == [("bookmarks", True)]
        assert json.loads((tmp_path / BOOKMARKS_FILE).read_text(encoding="utf-8"))[-1]["url"] == "https://example.com"
