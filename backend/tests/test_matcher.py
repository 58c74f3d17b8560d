"""Unit tests for value parsing, tokenization and template selection."""

from __future__ import annotations

from decimal import Decimal

import pytest
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from reportql.core.exceptions import MalformedValueError, NoMatchingTemplateError
from reportql.domain.matcher import KeywordIndex, TokenKind, select_template, tokenize
from reportql.domain.params import (
    has_wildcard,
    parse_date,
    parse_limit,
    parse_number,
    to_like_pattern,
)
from reportql.knowledge import SCHADEN_REPORT, ColumnSpec, ReportTemplate


def _template(name: str, keyword: str) -> ReportTemplate:
    return ReportTemplate(
        name=name,
        main_keywords=(keyword, "bericht"),
        columns={"vsn": ColumnSpec("LAL.LU_VSN", "VSN", keywords=("vsn",))},
        skeleton="SELECT {COLUMNS} FROM LU_ALLE AS LAL WHERE {CONDITIONS}",
    )


class TestParseDate:
    """Tests for parse_date."""

    @pytest.mark.parametrize("text,expected", [
        ("1.2.2024", "20240201"),
        ("31/12/2024", "20241231"),
        ("2024-03-15", "20240315"),
        ("20240315", "20240315"),
    ])
    def test_accepted_formats(self, text, expected):
        """Should bind every accepted date format as yyyyMMdd."""
        assert parse_date(text) == expected

    def test_invalid_dates(self):
        """Should reject impossible dates."""
        assert parse_date("31.02.2024") is None
        assert parse_date("1.2.24") is None
        assert parse_date("morgen") is None


class TestParseNumber:
    """Tests for parse_number."""

    def test_german_notation(self):
        """Should parse German thousands and decimals."""
        assert parse_number("1.234,56") == Decimal("1234.56")
        assert parse_number("10.000") == 10000

    def test_plain_notation(self):
        """Should parse plain numbers."""
        assert parse_number("42") == 42
        assert parse_number("12.5") == Decimal("12.5")
        assert parse_number("-3") == -3

    def test_not_a_number(self):
        """Should return None for non-numbers."""
        assert parse_number("abc") is None
        assert parse_number("1.2.3") is None
        assert parse_number("") is None


class TestLikePatterns:
    """Wildcard handling."""

    def test_wildcard_is_translated(self):
        """Should turn * into %."""
        assert has_wildcard("Gründemann*")
        assert to_like_pattern("Gründemann*") == "Gründemann%"

    def test_plain_value_is_wrapped(self):
        """Should wrap plain values in %."""
        assert not has_wildcard("Müller")
        assert to_like_pattern(" Müller ") == "%Müller%"


class TestParseLimit:
    """Tests for parse_limit."""

    def test_positive(self):
        """Should accept positive limits."""
        assert parse_limit("50") == 50

    @pytest.mark.parametrize("text", ["0", "-5", "abc", "1,5"])
    def test_rejected(self, text):
        """Should reject zero, negative and non-numeric limits."""
        with pytest.raises(MalformedValueError):
            parse_limit(text)


class TestTokenize:
    """Tests for tokenize."""

    def test_kinds(self):
        """Should classify words, numbers, dates, quotes, operators and commas."""
        tokens = tokenize('Beginn ab 01.01.2024, VSN "A B" >= 10.000 Gründemann*')
        assert [t.kind for t in tokens] == [
            TokenKind.WORD,
            TokenKind.WORD,
            TokenKind.DATE,
            TokenKind.COMMA,
            TokenKind.WORD,
            TokenKind.QUOTED,
            TokenKind.OPERATOR,
            TokenKind.NUMBER,
            TokenKind.WORD,
        ]
        assert tokens[5].raw == "A B"
        assert tokens[8].raw == "Gründemann*"
        assert tokens[8].key == "gruendemann*"

    def test_punctuation_is_dropped(self):
        """Should drop punctuation without operator meaning."""
        tokens = tokenize("Was kannst du?! (Verträge);")
        assert [t.key for t in tokens] == ["was", "kannst", "du", "vertraege"]

    def test_sentence_end_after_date(self):
        """Should keep a date before a full stop."""
        tokens = tokenize("Beginn 31.12.2024.")
        assert tokens[-1].kind == TokenKind.DATE
        assert tokens[-1].raw == "31.12.2024"

    def test_typographic_quotes(self):
        """Should treat typographic quotes like plain ones."""
        tokens = tokenize("Firma „Hansa Logistik“")
        assert tokens[1].kind == TokenKind.QUOTED
        assert tokens[1].raw == "Hansa Logistik"

    def test_hyphenated_words_stay_whole(self):
        """Should keep hyphenated words as one token."""
        assert [t.key for t in tokenize("Partner-Typ")] == ["partner-typ"]


class TestKeywordIndex:
    """Longest-phrase matching of keywords."""

    def test_longest_phrase_wins(self):
        """Should prefer the longest keyword phrase."""
        index = KeywordIndex([SCHADEN_REPORT])
        match = index.match_at(tokenize("schaden offen"), 0)
        assert match.end == 2
        assert match.aliases_for(SCHADEN_REPORT) == ["schaden_offen"]
        assert not match.is_main

    def test_swallowed_main_keyword_does_not_count(self):
        """Should not count a main keyword inside a column phrase."""
        index = KeywordIndex([SCHADEN_REPORT])
        assert index.main_hits(tokenize("schaden offen über 100")) == {SCHADEN_REPORT.name: 0}
        assert index.main_hits(tokenize("Schäden mit Status offen")) == {SCHADEN_REPORT.name: 1}

    def test_alias_is_a_keyword(self):
        """Should match a column by its alias."""
        index = KeywordIndex([SCHADEN_REPORT])
        match = index.match_at(tokenize("schaden_nr"), 0)
        assert match.aliases_for(SCHADEN_REPORT) == ["schaden_nr"]


class TestSelectTemplate:
    """Tests for select_template."""

    def test_most_hits_wins(self):
        """Should pick the template with most main keyword hits."""
        first, second = _template("Erster", "alpha"), _template("Zweiter", "beta")
        index = KeywordIndex([first, second])
        hits = index.main_hits(tokenize("beta bericht beta"))
        assert select_template([first, second], hits) is second

    def test_tie_goes_to_first_declared(self):
        """Should pick the first declared template on a tie."""
        first, second = _template("Erster", "alpha"), _template("Zweiter", "beta")
        index = KeywordIndex([first, second])
        hits = index.main_hits(tokenize("bericht"))
        assert hits == {"Erster": 1, "Zweiter": 1}
        assert select_template([first, second], hits) is first

    def test_below_threshold(self):
        """Should raise below the hit threshold."""
        first = _template("Erster", "alpha")
        hits = KeywordIndex([first]).main_hits(tokenize("alpha"))
        with pytest.raises(NoMatchingTemplateError):
            select_template([first], hits, min_hits=2)

    def test_no_hits(self):
        """Should raise when nothing matches."""
        first = _template("Erster", "alpha")
        with pytest.raises(NoMatchingTemplateError) as exc_info:
            select_template([first], {"Erster": 0})
        assert exc_info.value.code.value == "NO_MATCHING_TEMPLATE"
