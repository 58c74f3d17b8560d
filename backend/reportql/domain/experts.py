"""Domain experts: applicability check and compilation for one domain each."""

from __future__ import annotations

import logging
import re
from typing import Optional

from ..core.config import Settings, get_cached_settings
from ..core.exceptions import ContractViolationError
from ..core.models import CompiledQuery
from ..knowledge.providers import ContextType
from ..knowledge.registry import templates_for
from ..knowledge.templates import ReportTemplate
from .base import FilterGroup, LogicMode, Op, Predicate, QueryIR
from .matcher import KeywordIndex, Token, tokenize, select_template
from .parser import FieldRules, Node, RequestParser
from .renderer import render_query

logger = logging.getLogger(__name__)


class DomainExpert(FieldRules):
    """Recognizes and compiles the requests of one business domain.

    ``can_handle`` is pure and cheap; ``build_ir`` and ``generate_query``
    may only be called for input that ``can_handle`` accepted.
    """

    context: ContextType = ContextType.UNKNOWN

    def __init__(
        self,
        settings: Optional[Settings] = None,
        templates: Optional[list[ReportTemplate]] = None,
    ):
        self.settings = settings or get_cached_settings()
        self.templates = list(templates) if templates is not None else templates_for(self.context)
        self.index = KeywordIndex(self.templates)

    @property
    def name(self) -> str:
        return type(self).__name__

    def can_handle(self, description: str) -> bool:
        """True when at least one main keyword of this domain is present."""
        if not description or not description.strip():
            return False
        hits = self.index.main_hits(tokenize(description))
        return any(count > 0 for count in hits.values())

    def _require(self, description: str) -> list[Token]:
        if not self.can_handle(description):
            raise ContractViolationError(
                f"{self.name} kann diese Anfrage nicht verarbeiten",
                details={"expert": self.name, "request": (description or "")[:200]},
            )
        return tokenize(description)

    def choose_template(self, tokens: list[Token]) -> ReportTemplate:
        hits = self.index.main_hits(tokens)
        return select_template(self.templates, hits, self.settings.min_template_hits)

    def build_ir(self, description: str) -> QueryIR:
        tokens = self._require(description)
        template = self.choose_template(tokens)
        parser = RequestParser(template, index=self.index, rules=self, context=self.context)
        return parser.parse(description)

    def generate_query(self, description: str) -> CompiledQuery:
        ir = self.build_ir(description)
        template = self._template_named(ir.template)
        compiled = render_query(ir, template, self.settings)
        logger.info(f"{self.name} compiled report '{template.name}' with {len(compiled.params)} parameter(s)")
        return compiled

    def _template_named(self, name: Optional[str]) -> ReportTemplate:
        for template in self.templates:
            if template.name == name:
                return template
        raise ContractViolationError(
            f"Unbekannte Berichtsvorlage: {name}",
            details={"expert": self.name, "template": name},
        )


# Broker ids: digits, optionally behind a letter prefix ("100120", "W123456")
_MAKLER_ID = re.compile(r"^[A-Za-z]?\d{4,}$")


class CoverQueryBuilder(DomainExpert):
    """Contract (Cover) reports."""

    context = ContextType.COVER

    def redirect_field(self, alias: str, value: Token, template: ReportTemplate) -> str:
        # "Makler 100120" means the broker number, not the broker name
        if alias == "makler_name" and _MAKLER_ID.match(value.raw) and template.column("makler_nr") is not None:
            return "makler_nr"
        return alias

    def expand_predicate(self, predicate: Predicate, template: ReportTemplate) -> Node:
        """A country filter matches either the country name or its code."""
        if predicate.field != "land" or template.column("land_code") is None:
            return predicate
        if predicate.op not in (Op.EQUALS, Op.NOT_EQUALS, Op.CONTAINS, Op.IN):
            return predicate

        op = Op.EQUALS if predicate.op == Op.NOT_EQUALS else predicate.op
        return FilterGroup(
            predicates=[
                Predicate("land", op, predicate.value),
                Predicate("land_code", op, predicate.value),
            ],
            logic=LogicMode.OR,
            negated=predicate.op == Op.NOT_EQUALS,
        )


class SchadenQueryBuilder(DomainExpert):
    """Claims (Schaden) reports."""

    context = ContextType.SCHADEN


def default_experts(settings: Optional[Settings] = None) -> list[DomainExpert]:
    """Experts in probing order."""
    return [CoverQueryBuilder(settings), SchadenQueryBuilder(settings)]
