"""Unit tests for the compiler facade."""

from __future__ import annotations

from dataclasses import replace
import random

import pytest
import sys
import os

# Add backend to path for imports
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from reportql.compiler import WARNING_REQUEST_TRUNCATED, QueryCompiler
from reportql.core.config import Settings, SqlDialect
from reportql.core.exceptions import (
    DEFAULT_SUGGESTIONS,
    CompilerError,
    ErrorCode,
    UnrecognizedRequestError,
)
from reportql.core.models import CompiledQuery
from reportql.domain.renderer import WARNING_LIMIT_CLAMPED
from reportql.knowledge import COVER_REPORT, SCHADEN_REPORT, ContextType

SETTINGS = Settings(
    sql_dialect=SqlDialect.MSSQL,
    min_template_hits=1,
    max_request_length=2000,
    max_rows=10000,
    log_level="INFO",
)

VOCABULARY = [
    "Verträge", "Schäden", "Cover", "VSN", "Makler", "Firma", "Land", "Status", "Beginn",
    "Laufzeit", "Schadensumme", "Vorname", "Ort", "außer", "ohne", "kein", "nicht", "gleich",
    "über", "zwischen", "und", "oder", "in", "leer", "mit", "Feldern", "zuerst", "dann",
    "sortiert", "nach", "absteigend", "limit", "die", "ersten", ",", "100120", "12.5",
    "01.01.2024", "31.12.2024", "Hamburg", "A", "Gründemann*", '"Hansa"', "EUR", "hallo",
]


class SpyExpert:
    """Records every call; accepts input by a predicate."""

    def __init__(self, name: str, accepts):
        self.name = name
        self.accepts = accepts
        self.accepted: set[str] = set()
        self.generated: list[str] = []

    def can_handle(self, description: str) -> bool:
        ok = bool(self.accepts(description))
        if ok:
            self.accepted.add(description)
        return ok

    def generate_query(self, description: str) -> CompiledQuery:
        self.generated.append(description)
        return CompiledQuery(sql="SELECT 1", report=self.name, context="cover")

    def build_ir(self, description: str):
        raise AssertionError("not used")


@pytest.fixture
def compiler() -> QueryCompiler:
    return QueryCompiler(settings=SETTINGS)


class TestDispatch:
    """Routing between experts."""

    def test_first_accepting_expert_wins(self):
        """Should hand the request to the first expert that accepts it."""
        first = SpyExpert("first", lambda t: "x" in t)
        second = SpyExpert("second", lambda t: True)
        compiler = QueryCompiler([first, second], SETTINGS)

        assert compiler.compile("abc x").report == "first"
        assert compiler.compile("abc").report == "second"
        assert first.generated == ["abc x"]
        assert second.generated == ["abc"]

    def test_no_expert_accepts(self):
        """Should fail without generating when every expert declines."""
        spy = SpyExpert("never", lambda t: False)
        with pytest.raises(UnrecognizedRequestError) as exc_info:
            QueryCompiler([spy], SETTINGS).compile("abc")
        assert spy.generated == []
        assert exc_info.value.details["experts"] == ["never"]

    def test_generate_only_after_can_handle_fuzzed(self):
        """Should never pass random input to an expert that declined it."""
        rng = random.Random(20240101)
        alphabet = "abcxyz äöü0123456789,.*"
        first = SpyExpert("first", lambda t: t.count("a") > 2)
        second = SpyExpert("second", lambda t: "x" in t)
        compiler = QueryCompiler([first, second], SETTINGS)

        for _ in range(500):
            text = "".join(rng.choice(alphabet) for _ in range(rng.randint(0, 40)))
            try:
                compiler.compile(text)
            except UnrecognizedRequestError:
                assert text not in first.accepted and text not in second.accepted

        assert set(first.generated) <= first.accepted
        assert set(second.generated) <= second.accepted
        assert not set(second.generated) & first.accepted


class TestCompile:
    """End-to-end with the default experts."""

    def test_default_expert_order(self, compiler):
        """Should try Cover before Schaden."""
        assert [e.name for e in compiler.experts] == ["CoverQueryBuilder", "SchadenQueryBuilder"]

    def test_cover_request(self, compiler):
        """Should compile a contract request with the Cover expert."""
        compiled = compiler.compile("Verträge für Makler 100120 außer Firma, Land")
        assert compiled.report == COVER_REPORT.name
        assert compiled.context == ContextType.COVER.value
        assert compiled.params == ["100120"]
        assert "?" in compiled.sql and "100120" not in compiled.sql

    def test_schaden_request(self, compiler):
        """Should compile a claims request with the Schaden expert."""
        compiled = compiler.compile("Schäden mit Schadentag zwischen 01.01.2024 und 31.03.2024 sortiert nach Schadentag desc")
        assert compiled.report == SCHADEN_REPORT.name
        assert "LS.LU_SDA BETWEEN ? AND ?" in compiled.sql
        assert compiled.sql.endswith("ORDER BY LS.LU_SDA DESC")
        assert compiled.params == ["20240101", "20240331"]

    def test_build_ir(self, compiler):
        """Should expose the IR of a request."""
        ir = compiler.build_ir("Verträge mit VSN 12345678")
        assert ir.context == ContextType.COVER
        assert ir.template == COVER_REPORT.name

    def test_resolve_expert(self, compiler):
        """Should name the expert that would compile a request."""
        assert compiler.resolve_expert("Schäden mit Status offen").name == "SchadenQueryBuilder"

    def test_unrecognized_request(self, compiler):
        """Should raise with suggestions for text outside every domain."""
        with pytest.raises(UnrecognizedRequestError) as exc_info:
            compiler.compile("hallo welt")
        error = exc_info.value
        assert error.code == ErrorCode.UNRECOGNIZED_REQUEST
        assert error.suggestions == DEFAULT_SUGGESTIONS
        assert error.to_dict()["details"]["suggestions"] == DEFAULT_SUGGESTIONS

    def test_idempotent(self, compiler):
        """Should give identical SQL and params for the same text."""
        text = "Verträge mit Beginn ab 01.01.2024 oder Laufzeit über 3 zuerst VSN limit 50"
        first, second = compiler.compile(text), compiler.compile(text)
        assert first.sql == second.sql
        assert first.params == second.params

    def test_truncation(self):
        """Should cut overlong input and warn about it."""
        compiler = QueryCompiler(settings=replace(SETTINGS, max_request_length=21))
        compiled = compiler.compile("Verträge mit VSN 4711 und noch sehr viel mehr Text")
        assert compiled.params == ["4711"]
        assert compiled.warnings == [WARNING_REQUEST_TRUNCATED]

    def test_limit_clamp(self):
        """Should clamp a limit above the row maximum."""
        compiler = QueryCompiler(settings=replace(SETTINGS, max_rows=100))
        compiled = compiler.compile("Verträge limit 500")
        assert compiled.sql.startswith("SELECT TOP (?)")
        assert compiled.params == [100]
        assert compiled.warnings == [WARNING_LIMIT_CLAMPED]

    def test_ansi_dialect(self):
        """Should append LIMIT for the ANSI dialect."""
        compiler = QueryCompiler(settings=replace(SETTINGS, sql_dialect=SqlDialect.ANSI))
        compiled = compiler.compile("Verträge mit VSN 4711 limit 5")
        assert compiled.sql.endswith("\nLIMIT ?")
        assert compiled.params == ["4711", 5]

    def test_fuzzed_requests_fail_only_with_compiler_errors(self, compiler):
        """Should raise nothing but compiler errors on random domain vocabulary."""
        rng = random.Random(42)
        for _ in range(300):
            text = " ".join(rng.choice(VOCABULARY) for _ in range(rng.randint(1, 12)))
            try:
                compiled = compiler.compile(text)
            except CompilerError:
                continue
            assert compiled.sql.startswith("SELECT")
            assert compiled.sql.count("?") == len(compiled.params)


class TestCapabilities:
    """Help requests."""

    @pytest.mark.parametrize("text", ["Was kannst du?", "hilfe", "Welche Fähigkeiten hast du", "help"])
    def test_recognized(self, compiler, text):
        """Should recognise help phrases."""
        assert compiler.is_capabilities_request(text)

    def test_not_a_help_request(self, compiler):
        """Should not treat report requests as help."""
        assert not compiler.is_capabilities_request("Verträge mit VSN 4711")

    def test_help_text(self, compiler):
        """Should list reports and examples in the help text."""
        text = compiler.describe_capabilities()
        assert COVER_REPORT.name in text
        assert SCHADEN_REPORT.name in text
        assert "BEISPIELE" in text
