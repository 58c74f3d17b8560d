"""Custom exceptions for the query compiler.

Every failure of a compilation is reported as one of these typed errors;
a failed compilation never produces SQL text.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional


class ErrorCode(str, Enum):
    """Failure taxonomy of the compiler."""
    NO_MATCHING_TEMPLATE = "NO_MATCHING_TEMPLATE"
    UNRECOGNIZED_REQUEST = "UNRECOGNIZED_REQUEST"
    UNRESOLVED_FIELD = "UNRESOLVED_FIELD"
    MALFORMED_VALUE = "MALFORMED_VALUE"
    CONTRACT_VIOLATION = "CONTRACT_VIOLATION"


# Shown to the user when a request could not be compiled
DEFAULT_SUGGESTIONS = [
    "Bereich nennen: Verträge/Cover oder Schäden",
    "Makler-Nr hinzufügen (z. B. Verträge mit Makler 100120)",
    "VSN angeben (z. B. Verträge mit VSN 4711)",
    "Zeitraum einschränken: Beginn zwischen 01.01.2024 und 31.12.2024",
    "Spalten ausschließen: außer Land, Firma",
    "Reihenfolge festlegen: zuerst VSN, dann Makler",
    "Ergebnis begrenzen: limit 500",
]


class CompilerError(Exception):
    """Base class for all compilation failures."""

    code: ErrorCode = ErrorCode.CONTRACT_VIOLATION

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        suggestions: Optional[list[str]] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.details = dict(details or {})
        self.suggestions = list(suggestions) if suggestions is not None else []

    def to_dict(self) -> dict[str, Any]:
        details = dict(self.details)
        if self.suggestions:
            details["suggestions"] = list(self.suggestions)
        return {"error_code": self.code.value, "message": self.message, "details": details}


class NoMatchingTemplateError(CompilerError):
    """Raised when no report template reaches the main keyword threshold."""

    code = ErrorCode.NO_MATCHING_TEMPLATE


class UnrecognizedRequestError(CompilerError):
    """Raised when no domain expert accepts the request."""

    code = ErrorCode.UNRECOGNIZED_REQUEST


class UnresolvedFieldError(CompilerError):
    """Raised when a field mention does not map to a column of the chosen template."""

    code = ErrorCode.UNRESOLVED_FIELD


class MalformedValueError(CompilerError):
    """Raised when a value next to a field cannot be parsed for its operator."""

    code = ErrorCode.MALFORMED_VALUE


class ContractViolationError(CompilerError):
    """Raised when an API contract is broken by the caller or by a template."""

    code = ErrorCode.CONTRACT_VIOLATION
