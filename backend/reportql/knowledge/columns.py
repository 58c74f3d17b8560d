"""Reportable column descriptors.

A ColumnSpec owns the SQL rendering rule of one column: how it is qualified
and how it appears in a SELECT list.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import unicodedata

_UMLAUTS = str.maketrans({"ä": "ae", "ö": "oe", "ü": "ue", "ß": "ss"})


def fold_text(text: str) -> str:
    """Lower-case, spell out German umlauts and strip remaining diacritics.

    Examples:
        "Verträge" -> "vertraege"
        "Fälligkeit von" -> "faelligkeit von"
        "Café" -> "cafe"
    """
    lowered = unicodedata.normalize("NFC", text).lower().translate(_UMLAUTS)
    decomposed = unicodedata.normalize("NFKD", lowered)
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return " ".join(stripped.split())


@dataclass(frozen=True)
class ColumnSpec:
    """A single reportable column."""

    db_column: str
    alias: str
    table_alias: str = ""
    keywords: tuple[str, ...] = ()
    numeric: bool = False
    _folded: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # Lists are accepted for convenience but never kept
        object.__setattr__(self, "keywords", tuple(k.strip().lower() for k in self.keywords if k.strip()))
        object.__setattr__(self, "_folded", frozenset(fold_text(k) for k in self.keywords))

    @property
    def expression(self) -> str:
        """Qualified column expression without alias (WHERE / ORDER BY)."""
        db = (self.db_column or "").strip()
        if db.startswith("("):
            # Subselect or bracketed expression, used as-is
            return db
        if "." in db:
            # Already qualified, e.g. "LAL.LU_VSN"
            return db
        if self.table_alias and self.table_alias.strip():
            return f"{self.table_alias.strip()}.{db}"
        return db

    def sql_definition(self) -> str:
        """SELECT list entry, e.g. ``COALESCE(RTRIM(LTRIM(LUM.LU_NAM)), '') AS "Firma/Name"``.

        Numeric columns keep raw values (and NULLs) for downstream formatting;
        text columns are trimmed and never surface NULL.
        """
        expr = self.expression
        if self.numeric:
            return f'{expr} AS "{self.alias}"'
        return f"COALESCE(RTRIM(LTRIM({expr})), '') AS \"{self.alias}\""

    def matches(self, word: str) -> bool:
        """Case-insensitive keyword membership test."""
        return fold_text(word) in self._folded
