"""Help text describing what the compiler understands."""

from __future__ import annotations

from typing import Sequence

from ..knowledge.templates import ReportTemplate
from .matcher import tokenize

CAPABILITY_PHRASES = [
    ("was", "kannst", "du"),
    ("was", "koennen", "sie"),
    ("faehigkeiten",),
    ("hilfe",),
    ("help",),
    ("capabilities",),
]

EXAMPLES = [
    "Gib mir alle Verträge vom Makler 100120 außer Land Code",
    "Alle Cover zuerst VSN, dann Makler limit 200",
    "Verträge mit Beginn zwischen 01.01.2024 und 31.12.2024 sortiert nach Beginn absteigend",
    "Schäden mit Schadensumme über 10.000 EUR und Status offen",
    "Verträge mit Land DEU oder Land AUT ohne Makler Name",
]

OPERATOR_HELP = [
    "gleich / = / ist, ungleich / != / nicht",
    "größer als / über / >, kleiner als / unter / <",
    "ab / seit / mindestens / >=, bis / vor / höchstens / <=",
    "zwischen X und Y, in X, Y, wie / enthält (Platzhalter *)",
    "leer / fehlt, nicht leer / vorhanden, kein / keine",
]


def is_capabilities_request(text: str) -> bool:
    """True for questions like "was kannst du?" or "Hilfe"."""
    keys = [t.key for t in tokenize(text or "")]
    for phrase in CAPABILITY_PHRASES:
        size = len(phrase)
        for i in range(len(keys) - size + 1):
            if tuple(keys[i:i + size]) == phrase:
                return True
    return False


def describe_capabilities(templates: Sequence[ReportTemplate]) -> str:
    """Render the help text from the registered templates."""
    lines = ["Ich kann für Sie folgende Abfragen erstellen:"]
    for template in templates:
        lines.append("")
        lines.append(f"• {template.name} (Stichworte: {', '.join(template.main_keywords)})")
        fields = []
        for column in template.columns.values():
            keyword = column.keywords[0] if column.keywords else column.alias
            fields.append(f"{column.alias} [{keyword}]")
        lines.append(f"  Felder: {'; '.join(fields)}")

    lines += [
        "",
        "Bedingungen:",
        *(f"• {entry}" for entry in OPERATOR_HELP),
        "",
        "Spalten steuern: '... außer Land, Firma', '... mit Feldern VSN, Firma', '... zuerst VSN, dann Makler'.",
        "Sortieren: '... sortiert nach Beginn absteigend'. Begrenzen: '... limit 100' oder 'die ersten 50'.",
        "",
        "BEISPIELE:",
        *(f"{n}) {example}" for n, example in enumerate(EXAMPLES, start=1)),
    ]
    return "\n".join(lines)
