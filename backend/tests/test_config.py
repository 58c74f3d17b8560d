"""Unit tests for settings loading."""

from __future__ import annotations

from dataclasses import FrozenInstanceError

import pytest
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from reportql.core.config import (
    SqlDialect,
    clear_settings_cache,
    get_cached_settings,
    get_settings,
)

ENV_VARS = ["SQL_DIALECT", "MIN_TEMPLATE_HITS", "MAX_REQUEST_LENGTH", "MAX_ROWS", "LOG_LEVEL"]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    clear_settings_cache()
    yield
    clear_settings_cache()


class TestGetSettings:
    """Environment parsing."""

    def test_defaults(self):
        """Should use defaults when nothing is set."""
        settings = get_settings()
        assert settings.sql_dialect == SqlDialect.MSSQL
        assert settings.uses_top
        assert settings.min_template_hits == 1
        assert settings.max_request_length == 2000
        assert settings.max_rows == 10000
        assert settings.log_level == "INFO"

    def test_ansi_dialect(self, monkeypatch):
        """Should read the ANSI dialect."""
        monkeypatch.setenv("SQL_DIALECT", " ANSI ")
        settings = get_settings()
        assert settings.sql_dialect == SqlDialect.ANSI
        assert not settings.uses_top

    def test_unknown_dialect_falls_back(self, monkeypatch):
        """Should fall back to SQL Server for an unknown dialect."""
        monkeypatch.setenv("SQL_DIALECT", "oracle")
        assert get_settings().sql_dialect == SqlDialect.MSSQL

    def test_integers(self, monkeypatch):
        """Should read integer settings from the environment."""
        monkeypatch.setenv("MIN_TEMPLATE_HITS", "2")
        monkeypatch.setenv("MAX_REQUEST_LENGTH", "500")
        monkeypatch.setenv("MAX_ROWS", "0")
        settings = get_settings()
        assert settings.min_template_hits == 2
        assert settings.max_request_length == 500
        assert settings.max_rows == 0

    def test_garbage_integers_fall_back(self, monkeypatch):
        """Should fall back to defaults for invalid integers."""
        monkeypatch.setenv("MAX_ROWS", "viele")
        monkeypatch.setenv("MIN_TEMPLATE_HITS", "0")
        monkeypatch.setenv("MAX_REQUEST_LENGTH", "-1")
        settings = get_settings()
        assert settings.max_rows == 10000
        assert settings.min_template_hits == 1
        assert settings.max_request_length == 2000

    def test_log_level_is_uppercased(self, monkeypatch):
        """Should upper-case the log level."""
        monkeypatch.setenv("LOG_LEVEL", "debug")
        assert get_settings().log_level == "DEBUG"

    def test_settings_are_frozen(self):
        """Should not allow settings to change."""
        settings = get_settings()
        with pytest.raises(FrozenInstanceError):
            settings.max_rows = 5


class TestSettingsCache:
    """Tests for the cached settings singleton."""

    def test_cached_instance(self):
        """Should return the same cached instance."""
        assert get_cached_settings() is get_cached_settings()

    def test_clear_cache(self, monkeypatch):
        """Should reload settings after the cache is cleared."""
        first = get_cached_settings()
        monkeypatch.setenv("MAX_ROWS", "50")
        assert get_cached_settings().max_rows == first.max_rows
        clear_settings_cache()
        assert get_cached_settings().max_rows == 50
