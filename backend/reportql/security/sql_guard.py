from __future__ import annotations

import logging
import re
from typing import Tuple

import sqlparse
from sqlparse.sql import Comment
from sqlparse.tokens import DML, DDL, Keyword

from ..core.config import SqlDialect

logger = logging.getLogger(__name__)

# Dangerous statement types that should never appear in a report skeleton
DANGEROUS_KEYWORDS = {
    "INSERT", "UPDATE", "DELETE", "MERGE", "DROP", "ALTER", "TRUNCATE",
    "EXEC", "EXECUTE", "CREATE", "GRANT", "REVOKE", "DENY",
    "BACKUP", "RESTORE", "SHUTDOWN", "KILL", "OPENROWSET", "OPENDATASOURCE",
    "XP_CMDSHELL", "SP_EXECUTESQL", "BULK",
}


def _check_token_safety(token) -> tuple[bool, str]:
    """Recursively check a token and its children for dangerous patterns."""
    # Check comments for hidden code
    if isinstance(token, Comment):
        comment_text = str(token).upper()
        for keyword in DANGEROUS_KEYWORDS:
            if keyword in comment_text:
                return False, f"Dangerous keyword '{keyword}' found in comment"

    if token.ttype is not None:
        value = str(token).strip().upper()
        if token.ttype in (DML, DDL) and value != "SELECT":
            return False, f"Non-SELECT DML/DDL token: {value}"
        if token.ttype is Keyword and value in DANGEROUS_KEYWORDS:
            return False, f"Dangerous keyword: {value}"

    if token.is_group:
        for sub in token.tokens:
            safe, reason = _check_token_safety(sub)
            if not safe:
                return False, reason

    return True, ""


def is_safe_sql(sql: str) -> Tuple[bool, str]:
    """
    Validate that SQL text is exactly one read-only SELECT statement.

    Returns:
        Tuple of (is_safe, error_reason)
    """
    candidate = sql.strip().rstrip(";").strip()

    if not candidate:
        return False, "Empty SQL"

    parsed = sqlparse.parse(candidate)

    # Must be exactly one statement
    if len(parsed) != 1:
        return False, f"Expected 1 statement, got {len(parsed)}"

    stmt = parsed[0]

    stmt_type = stmt.get_type()
    if stmt_type is None or stmt_type == "UNKNOWN":
        first_token = stmt.token_first(skip_cm=True, skip_ws=True)
        first_word = str(first_token).strip().upper() if first_token else ""
        if first_word != "SELECT":
            return False, f"Statement must start with SELECT, got: {first_word or '<nothing>'}"
    elif stmt_type.upper() != "SELECT":
        return False, f"Only SELECT statements allowed, got: {stmt_type}"

    safe, reason = _check_token_safety(stmt)
    if not safe:
        return False, reason

    # sqlparse does not split on every semicolon
    if ";" in candidate:
        return False, "Multiple statements not allowed (semicolon in query)"

    return True, ""


def apply_row_limit(sql: str, dialect: SqlDialect) -> str:
    """Add a parameterised row limit clause for the target dialect.

    SQL Server gets ``SELECT TOP (?)`` on the outer SELECT, so its placeholder
    precedes every other one; other dialects get a trailing ``LIMIT ?``.
    """
    if dialect != SqlDialect.MSSQL:
        return sql.rstrip() + "\nLIMIT ?"

    match = re.match(r"(?is)^\s*SELECT\s+(DISTINCT\s+)?", sql)
    if not match:
        raise ValueError("Row limit requires a statement starting with SELECT")
    distinct = "DISTINCT " if match.group(1) else ""
    return f"SELECT {distinct}TOP (?) " + sql[match.end():]


def format_sql(sql: str) -> str:
    """Pretty-print SQL for log output."""
    return sqlparse.format(sql, reindent=True, keyword_case="upper")
