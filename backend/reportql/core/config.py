"""Compiler configuration loaded from the environment."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv(override=True)


class SqlDialect(str, Enum):
    """Target SQL dialects for the row limit clause."""
    MSSQL = "mssql"  # SELECT TOP (?) ...
    ANSI = "ansi"    # ... LIMIT ?


@dataclass(frozen=True)
class Settings:
    """Compiler settings."""
    sql_dialect: SqlDialect

    # Template selection
    min_template_hits: int

    # Input / output bounds
    max_request_length: int
    max_rows: int

    log_level: str

    @property
    def uses_top(self) -> bool:
        return self.sql_dialect == SqlDialect.MSSQL


def _int_from_env(name: str, default: int, minimum: int = 0) -> int:
    """Read a non-negative integer, falling back to the default on garbage."""
    raw = os.getenv(name, "")
    if not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        return default
    return value if value >= minimum else default


def get_settings() -> Settings:
    """Load settings from environment variables."""
    dialect_str = os.getenv("SQL_DIALECT", "mssql").strip().lower()
    try:
        sql_dialect = SqlDialect(dialect_str)
    except ValueError:
        sql_dialect = SqlDialect.MSSQL

    return Settings(
        sql_dialect=sql_dialect,
        min_template_hits=_int_from_env("MIN_TEMPLATE_HITS", 1, minimum=1),
        max_request_length=_int_from_env("MAX_REQUEST_LENGTH", 2000, minimum=1),
        max_rows=_int_from_env("MAX_ROWS", 10000),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


# Singleton for caching settings
_settings_cache: Optional[Settings] = None


def get_cached_settings() -> Settings:
    """Get cached settings (loads once)."""
    global _settings_cache
    if _settings_cache is None:
        _settings_cache = get_settings()
    return _settings_cache


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    global _settings_cache
    _settings_cache = None
