"""
Tests for configuration loading.
"""

from pathlib import Path

from browser_shell.config import ShellConfig, get_base_dir, get_search_template


class TestConfig:
    def test_default_data_dir(self, monkeypatch):
        monkeypatch.delenv("BROWSER_SHELL_HOME", raising=False)

        assert get_base_dir() == Path.home() / ".browser_shell"

    def test_data_dir_from_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BROWSER_SHELL_HOME", str(tmp_path))

        assert ShellConfig().data_dir == tmp_path

    def test_cli_data_dir_overrides_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("BROWSER_SHELL_HOME", "/nonexistent")

        config = ShellConfig.from_cli_args(data_dir=str(tmp_path), debug=True)

        assert config.data_dir == tmp_path
        assert config.debug

    def test_debug_from_environment(self, monkeypatch):
        monkeypatch.setenv("BROWSER_SHELL_DEBUG", "true")

        assert ShellConfig().debug

    def test_ensure_directories(self, tmp_path):
        config = ShellConfig(data_dir=tmp_path / "profile")
        config.ensure_directories()

        assert config.data_dir.is_dir()

    def test_search_template_fallback(self):
        assert get_search_template("GOOGLE") == "https://www.google.com/search?q={}"
        assert get_search_template("altavista") == "https://www.bing.com/search?q={}"
