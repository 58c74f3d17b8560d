"""Tokenization, keyword matching and template selection."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import logging
import re
from typing import Optional, Sequence

from ..core.exceptions import NoMatchingTemplateError
from ..knowledge.columns import fold_text
from ..knowledge.templates import ReportTemplate

logger = logging.getLogger(__name__)


# =============================================================================
# TOKENS
# =============================================================================

class TokenKind(str, Enum):
    WORD = "word"
    NUMBER = "number"
    DATE = "date"
    QUOTED = "quoted"
    OPERATOR = "operator"
    COMMA = "comma"


@dataclass(frozen=True)
class Token:
    raw: str    # text as typed (case kept, quotes removed)
    key: str    # folded form used for keyword lookups
    kind: TokenKind

    @property
    def is_value(self) -> bool:
        return self.kind in (TokenKind.NUMBER, TokenKind.DATE, TokenKind.QUOTED)


_QUOTES = str.maketrans({
    "“": '"', "”": '"', "„": '"', "«": '"', "»": '"',
    "‘": "'", "’": "'", "‚": "'", "`": "'",
})

_TOKEN_RE = re.compile(
    r"""
      "(?P<dq>[^"]*)"
    | '(?P<sq>[^']*)'
    | (?P<date>\d{1,2}[./]\d{1,2}[./]\d{2,4}(?!\d)|\d{4}-\d{2}-\d{2}(?!\d))
    | (?P<number>(?<![\w.,])-?\d+(?:[.,]\d+)*(?![\w%*/-]))
    | (?P<op>[<>!]=|<>|[=<>])
    | (?P<comma>,)
    | (?P<word>[\w%*&./-]+)
    """,
    re.VERBOSE,
)


def normalize_text(text: str) -> str:
    """Unify quotes and collapse whitespace; case is kept for raw values."""
    unified = (text or "").translate(_QUOTES)
    return " ".join(unified.split())


def tokenize(text: str) -> list[Token]:
    """Split a request into tokens.

    Punctuation that carries no operator meaning (?, !, ;, :, brackets) is
    dropped; commas, comparison operators, wildcards and dates survive.
    """
    tokens: list[Token] = []
    for match in _TOKEN_RE.finditer(normalize_text(text)):
        group = match.lastgroup
        if group in ("dq", "sq"):
            raw = match.group(group).strip()
            if raw:
                tokens.append(Token(raw, fold_text(raw), TokenKind.QUOTED))
        elif group == "date":
            raw = match.group(group)
            tokens.append(Token(raw, raw, TokenKind.DATE))
        elif group == "number":
            raw = match.group(group)
            tokens.append(Token(raw, raw, TokenKind.NUMBER))
        elif group == "op":
            raw = match.group(group)
            tokens.append(Token(raw, raw, TokenKind.OPERATOR))
        elif group == "comma":
            tokens.append(Token(",", ",", TokenKind.COMMA))
        else:
            raw = match.group(group).rstrip(".-").lstrip("-")
            if raw:
                tokens.append(Token(raw, fold_text(raw), TokenKind.WORD))
    return tokens


def phrase_keys(phrase: str) -> tuple[str, ...]:
    """Token keys of a keyword phrase, e.g. "Fälligkeit von" -> ("faelligkeit", "von")."""
    return tuple(token.key for token in tokenize(phrase))


# =============================================================================
# KEYWORD INDEX
# =============================================================================

@dataclass(frozen=True)
class KeywordEntry:
    template: ReportTemplate
    alias: Optional[str] = None  # None for main keywords

    @property
    def is_main(self) -> bool:
        return self.alias is None


@dataclass(frozen=True)
class KeywordMatch:
    start: int
    end: int
    entries: tuple[KeywordEntry, ...]

    @property
    def is_main(self) -> bool:
        return any(entry.is_main for entry in self.entries)

    def aliases_for(self, template: ReportTemplate) -> list[str]:
        return [
            entry.alias for entry in self.entries
            if entry.alias is not None and entry.template is template
        ]


class KeywordIndex:
    """Longest-phrase lookup over main and column keywords of some templates."""

    def __init__(self, templates: Sequence[ReportTemplate]):
        self.templates = list(templates)
        self._phrases: dict[tuple[str, ...], list[KeywordEntry]] = {}
        for template in self.templates:
            for keyword in template.main_keywords:
                self._add(keyword, KeywordEntry(template))
            for alias, column in template.columns.items():
                # The semantic alias itself is always accepted
                for keyword in (alias, *column.keywords):
                    self._add(keyword, KeywordEntry(template, alias))
        self.max_length = max((len(k) for k in self._phrases), default=0)

    def _add(self, phrase: str, entry: KeywordEntry) -> None:
        keys = phrase_keys(phrase)
        if not keys:
            return
        entries = self._phrases.setdefault(keys, [])
        if entry not in entries:
            entries.append(entry)

    def match_at(self, tokens: Sequence[Token], start: int) -> Optional[KeywordMatch]:
        """Longest keyword phrase starting at ``start``."""
        if start >= len(tokens) or tokens[start].kind in (TokenKind.COMMA, TokenKind.OPERATOR):
            return None
        longest = min(self.max_length, len(tokens) - start)
        for length in range(longest, 0, -1):
            keys = tuple(token.key for token in tokens[start:start + length])
            entries = self._phrases.get(keys)
            if entries:
                return KeywordMatch(start, start + length, tuple(entries))
        return None

    def scan(self, tokens: Sequence[Token]) -> list[KeywordMatch]:
        """Greedy left-to-right scan; matched tokens are consumed."""
        matches: list[KeywordMatch] = []
        i = 0
        while i < len(tokens):
            match = self.match_at(tokens, i)
            if match is None:
                i += 1
                continue
            matches.append(match)
            i = match.end
        return matches

    def main_hits(self, tokens: Sequence[Token]) -> dict[str, int]:
        """Main keyword hits per template name.

        A main keyword swallowed by a longer column phrase (e.g. "schaden"
        inside "schaden offen") does not count.
        """
        hits: dict[str, int] = {template.name: 0 for template in self.templates}
        for match in self.scan(tokens):
            for entry in match.entries:
                if entry.is_main:
                    hits[entry.template.name] += 1
        return hits


def select_template(
    templates: Sequence[ReportTemplate],
    hits: dict[str, int],
    min_hits: int = 1,
) -> ReportTemplate:
    """Template with the most main keyword hits; ties go to the first declared."""
    best: Optional[ReportTemplate] = None
    best_hits = 0
    for template in templates:
        count = hits.get(template.name, 0)
        if count > best_hits:
            best, best_hits = template, count

    if best is None or best_hits < min_hits:
        raise NoMatchingTemplateError(
            "Keine Berichtsvorlage passt zur Anfrage",
            details={"hits": dict(hits), "min_hits": min_hits},
        )
    logger.debug(f"Selected template '{best.name}' with {best_hits} main keyword hit(s)")
    return best
