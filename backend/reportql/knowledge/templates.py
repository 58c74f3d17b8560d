"""Report templates: keyword-tagged column catalogs with a SQL skeleton."""

from __future__ import annotations

from dataclasses import dataclass
import re
from types import MappingProxyType
from typing import Mapping

from ..security.sql_guard import is_safe_sql
from .columns import ColumnSpec

COLUMNS_PLACEHOLDER = "{COLUMNS}"
CONDITIONS_PLACEHOLDER = "{CONDITIONS}"

_PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_]*)\}")


@dataclass(frozen=True, eq=False)
class ReportTemplate:
    """One report shape within a domain.

    The skeleton must contain ``{COLUMNS}`` and ``{CONDITIONS}``. Any other
    ``{alias}`` placeholder refers to a column of this template and is filled
    with that column's bare expression.
    """

    name: str
    main_keywords: tuple[str, ...]
    columns: Mapping[str, ColumnSpec]
    skeleton: str
    default_order: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "main_keywords", tuple(k.strip().lower() for k in self.main_keywords if k.strip()))
        object.__setattr__(self, "default_order", tuple(self.default_order))
        object.__setattr__(self, "columns", MappingProxyType(dict(self.columns)))
        self._validate()

    def _validate(self) -> None:
        if not self.columns:
            raise ValueError(f"Template '{self.name}' has no columns")
        if not self.main_keywords:
            raise ValueError(f"Template '{self.name}' has no main keywords")
        for placeholder in (COLUMNS_PLACEHOLDER, CONDITIONS_PLACEHOLDER):
            if placeholder not in self.skeleton:
                raise ValueError(f"Template '{self.name}' skeleton lacks {placeholder}")

        unknown = [
            name for name in self.column_placeholders()
            if name not in self.columns
        ]
        if unknown:
            raise ValueError(f"Template '{self.name}' skeleton references unknown columns: {unknown}")

        missing_order = [alias for alias in self.default_order if alias not in self.columns]
        if missing_order:
            raise ValueError(f"Template '{self.name}' default order references unknown columns: {missing_order}")

        sample = self.fill(columns_sql="1", conditions_sql="1=1")
        ok, reason = is_safe_sql(sample)
        if not ok:
            raise ValueError(f"Template '{self.name}' skeleton is not a safe SELECT: {reason}")

    def column_placeholders(self) -> list[str]:
        """Column aliases referenced by the skeleton (structural placeholders excluded)."""
        return [
            name for name in _PLACEHOLDER_RE.findall(self.skeleton)
            if name not in ("COLUMNS", "CONDITIONS")
        ]

    def fill(self, columns_sql: str, conditions_sql: str) -> str:
        """Substitute all skeleton placeholders."""
        def _replace(match: re.Match) -> str:
            name = match.group(1)
            if name == "COLUMNS":
                return columns_sql
            if name == "CONDITIONS":
                return conditions_sql
            return self.columns[name].expression

        return _PLACEHOLDER_RE.sub(_replace, self.skeleton).strip()

    def column(self, alias: str) -> ColumnSpec | None:
        return self.columns.get(alias)

    def aliases(self) -> list[str]:
        """Semantic aliases in declaration order."""
        return list(self.columns.keys())
