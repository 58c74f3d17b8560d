"""Security and validation module.

Contains the SQL guard used to validate report skeletons and add row limits.
"""

from .sql_guard import apply_row_limit, format_sql, is_safe_sql

__all__ = [
    "apply_row_limit",
    "format_sql",
    "is_safe_sql",
]
