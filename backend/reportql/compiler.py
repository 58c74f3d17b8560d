"""Compiler facade: routes a request to the first domain expert that accepts it."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from .core.config import Settings, get_cached_settings
from .core.exceptions import DEFAULT_SUGGESTIONS, UnrecognizedRequestError
from .core.models import CompiledQuery
from .domain.base import QueryIR
from .domain.capabilities import describe_capabilities, is_capabilities_request
from .domain.experts import DomainExpert, default_experts
from .knowledge.registry import all_templates

logger = logging.getLogger(__name__)

WARNING_REQUEST_TRUNCATED = "request_truncated"


class QueryCompiler:
    """Entry point for compiling German report requests into SQL.

    Experts are asked in order; the first whose ``can_handle`` is true
    compiles the request. Nothing is cached between calls.
    """

    def __init__(
        self,
        experts: Optional[Sequence[DomainExpert]] = None,
        settings: Optional[Settings] = None,
    ):
        self.settings = settings or get_cached_settings()
        self.experts = list(experts) if experts is not None else default_experts(self.settings)

    def _bound(self, text: str) -> tuple[str, list[str]]:
        text = text or ""
        limit = self.settings.max_request_length
        if limit > 0 and len(text) > limit:
            logger.warning(f"Request truncated from {len(text)} to {limit} characters")
            return text[:limit], [WARNING_REQUEST_TRUNCATED]
        return text, []

    def resolve_expert(self, text: str) -> DomainExpert:
        """First expert that accepts ``text``."""
        for expert in self.experts:
            if expert.can_handle(text):
                logger.info(f"Request routed to {expert.name}")
                return expert

        logger.warning(f"No expert accepted request: {text[:100]}")
        raise UnrecognizedRequestError(
            "Die Anfrage konnte keinem Bereich zugeordnet werden",
            details={"request": text[:200], "experts": [e.name for e in self.experts]},
            suggestions=DEFAULT_SUGGESTIONS,
        )

    def build_ir(self, text: str) -> QueryIR:
        text, _ = self._bound(text)
        return self.resolve_expert(text).build_ir(text)

    def compile(self, text: str) -> CompiledQuery:
        text, warnings = self._bound(text)
        expert = self.resolve_expert(text)
        compiled = expert.generate_query(text)
        if warnings:
            compiled = compiled.model_copy(update={"warnings": warnings + compiled.warnings})
        logger.info(f"Compiled {compiled.report}: {compiled.sql[:200]}")
        return compiled

    @staticmethod
    def is_capabilities_request(text: str) -> bool:
        return is_capabilities_request(text)

    @staticmethod
    def describe_capabilities() -> str:
        return describe_capabilities(all_templates())


def compile_request(text: str, settings: Optional[Settings] = None) -> CompiledQuery:
    """Compile with the default experts."""
    return QueryCompiler(settings=settings).compile(text)
