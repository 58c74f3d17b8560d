"""Knowledge base module.

Contains column descriptors, report templates, the per-domain providers
and the registry that aggregates them.
"""

from .columns import ColumnSpec, fold_text
from .providers import (
    COVER_REPORT,
    SCHADEN_REPORT,
    ContextType,
    CoverKnowledgeProvider,
    KnowledgeProvider,
    SchadenKnowledgeProvider,
)
from .registry import all_providers, all_templates, templates_for
from .templates import COLUMNS_PLACEHOLDER, CONDITIONS_PLACEHOLDER, ReportTemplate

__all__ = [
    "COLUMNS_PLACEHOLDER",
    "CONDITIONS_PLACEHOLDER",
    "COVER_REPORT",
    "SCHADEN_REPORT",
    "ColumnSpec",
    "ContextType",
    "CoverKnowledgeProvider",
    "KnowledgeProvider",
    "ReportTemplate",
    "SchadenKnowledgeProvider",
    "all_providers",
    "all_templates",
    "fold_text",
    "templates_for",
]
