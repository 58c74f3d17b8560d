"""Registry of all knowledge providers.

The provider set is fixed at build time; templates are returned in provider
declaration order, then template declaration order.
"""

from __future__ import annotations

import logging
from functools import lru_cache

from .providers import (
    ContextType,
    CoverKnowledgeProvider,
    KnowledgeProvider,
    SchadenKnowledgeProvider,
)
from .templates import ReportTemplate

logger = logging.getLogger(__name__)

PROVIDERS: tuple[KnowledgeProvider, ...] = (
    CoverKnowledgeProvider(),
    SchadenKnowledgeProvider(),
)


def all_providers() -> tuple[KnowledgeProvider, ...]:
    return PROVIDERS


@lru_cache(maxsize=1)
def all_templates() -> tuple[ReportTemplate, ...]:
    """Every template of every provider."""
    templates: list[ReportTemplate] = []
    for provider in PROVIDERS:
        provided = provider.report_templates()
        logger.debug(f"Provider {provider.context.value}: {len(provided)} template(s)")
        templates.extend(provided)
    return tuple(templates)


def templates_for(context: ContextType) -> list[ReportTemplate]:
    """Templates contributed by the providers of one context."""
    templates: list[ReportTemplate] = []
    for provider in PROVIDERS:
        if provider.context == context:
            templates.extend(provider.report_templates())
    return templates
