"""Tests for environment configuration interface."""

from pathlib import Path

import pytest

from common.env import Environment, env


class TestEnvironment:
    """Tests for Environment class."""

    def test_output_path_default(self, monkeypatch):
        """Test output_path returns the expanded default location."""
        monkeypatch.delenv("READINGSYNC_OUTPUT_PATH", raising=False)
        result = Environment.output_path()
        assert result == Path.home() / ".local/share/readingsync/library.json"

    def test_output_path_from_env(self, monkeypatch):
        """Test output_path reads from environment."""
        monkeypatch.setenv("READINGSYNC_OUTPUT_PATH", "/tmp/library.json")
        assert Environment.output_path() == Path("/tmp/library.json")

    def test_output_path_expands_tilde(self, monkeypatch):
        monkeypatch.setenv("READINGSYNC_OUTPUT_PATH", "~/exports/library.json")
        assert Environment.output_path() == Path.home() / "exports/library.json"

    def test_sources_enabled_by_default(self, monkeypatch):
        monkeypatch.delenv("APPLE_BOOKS_ENABLED", raising=False)
        monkeypatch.delenv("KINDLE_ENABLED", raising=False)
        assert Environment.apple_books_enabled() is True
        assert Environment.kindle_enabled() is True

    @pytest.mark.parametrize("value", ["0", "false", "no", "off", "False"])
    def test_flag_false_values(self, monkeypatch, value):
        monkeypatch.setenv("KINDLE_ENABLED", value)
        assert Environment.kindle_enabled() is False

    @pytest.mark.parametrize("value", ["1", "true", "YES", " on "])
    def test_flag_true_values(self, monkeypatch, value):
        monkeypatch.setenv("APPLE_BOOKS_ENABLED", value)
        assert Environment.apple_books_enabled() is True

    def test_empty_flag_uses_default(self, monkeypatch):
        monkeypatch.setenv("APPLE_BOOKS_ENABLED", "")
        assert Environment.apple_books_enabled() is True

    def test_optional_paths_default_to_none(self, monkeypatch):
        for name in (
            "APPLE_BOOKS_LIBRARY_DB",
            "APPLE_BOOKS_ANNOTATION_DB",
            "KINDLE_CLIPPINGS_PATH",
            "KINDLE_COOKIES_PATH",
        ):
            monkeypatch.delenv(name, raising=False)

        assert Environment.apple_books_library_db() is None
        assert Environment.apple_books_annotation_db() is None
        assert Environment.kindle_clippings_path() is None
        assert Environment.kindle_cookies_path() is None

    def test_optional_paths_from_env(self, monkeypatch):
        monkeypatch.setenv("KINDLE_CLIPPINGS_PATH", "~/Documents/My Clippings.txt")
        monkeypatch.setenv("APPLE_BOOKS_LIBRARY_DB", "/data/BKLibrary.sqlite")

        assert Environment.kindle_clippings_path() == Path.home() / "Documents/My Clippings.txt"
        assert Environment.apple_books_library_db() == Path("/data/BKLibrary.sqlite")

    def test_kindle_region_default(self, monkeypatch):
        monkeypatch.delenv("KINDLE_REGION", raising=False)
        assert Environment.kindle_region() == "us"

    def test_kindle_region_is_lowercased(self, monkeypatch):
        monkeypatch.setenv("KINDLE_REGION", "UK")
        assert Environment.kindle_region() == "uk"


class TestEnvSingleton:
    """Tests for env singleton instance."""

    def test_env_is_environment_instance(self):
        assert isinstance(env, Environment)

    def test_env_singleton_methods_work(self, monkeypatch):
        monkeypatch.setenv("KINDLE_REGION", "de")
        assert env.kindle_region() == "de"
