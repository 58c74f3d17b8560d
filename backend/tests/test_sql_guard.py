"""Unit tests for the SQL guard."""

from __future__ import annotations

import pytest
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from reportql.core.config import SqlDialect
from reportql.security import apply_row_limit, format_sql, is_safe_sql


class TestIsSafeSql:
    """Read-only single statement validation."""

    def test_select(self):
        """Should accept a SELECT."""
        assert is_safe_sql("SELECT a FROM t WHERE b = ?") == (True, "")

    def test_trailing_semicolon(self):
        """Should accept a single trailing semicolon."""
        ok, _ = is_safe_sql("SELECT 1;")
        assert ok

    def test_empty(self):
        """Should reject empty text."""
        assert is_safe_sql("   ") == (False, "Empty SQL")

    @pytest.mark.parametrize("sql", [
        "DROP TABLE t",
        "DELETE FROM t WHERE 1=1",
        "UPDATE t SET a = 1",
        "SELECT 1; DELETE FROM t",
    ])
    def test_rejected(self, sql):
        """Should reject writes and stacked statements."""
        ok, reason = is_safe_sql(sql)
        assert not ok
        assert reason


class TestApplyRowLimit:
    """Dialect specific row limits."""

    def test_mssql_top(self):
        """Should insert TOP (?) after SELECT."""
        assert apply_row_limit("SELECT a FROM t", SqlDialect.MSSQL) == "SELECT TOP (?) a FROM t"

    def test_mssql_distinct(self):
        """Should insert TOP (?) after DISTINCT."""
        assert apply_row_limit("select distinct a FROM t", SqlDialect.MSSQL) == "SELECT DISTINCT TOP (?) a FROM t"

    def test_mssql_keeps_multiline_layout(self):
        """Should put TOP on the SELECT line and keep the remaining lines."""
        sql = apply_row_limit("SELECT\n    a,\n    b\nFROM t", SqlDialect.MSSQL)
        assert sql == "SELECT TOP (?) a,\n    b\nFROM t"

    def test_ansi_limit(self):
        """Should append LIMIT ?."""
        assert apply_row_limit("SELECT a FROM t  ", SqlDialect.ANSI) == "SELECT a FROM t\nLIMIT ?"

    def test_requires_select(self):
        """Should reject statements that do not start with SELECT."""
        with pytest.raises(ValueError):
            apply_row_limit("WITH x AS (SELECT 1) SELECT * FROM x", SqlDialect.MSSQL)


class TestFormatSql:
    """Tests for format_sql."""

    def test_keywords_uppercased(self):
        """Should upper-case keywords."""
        assert format_sql("select a from t").startswith("SELECT a")
