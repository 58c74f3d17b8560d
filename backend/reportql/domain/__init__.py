"""Domain compilation module.

Contains the query IR, tokenizer and keyword matcher, value parsing,
request parser, SQL renderer, domain experts and capabilities help.
"""

from .base import (
    Direction,
    FilterGroup,
    LogicMode,
    Op,
    Predicate,
    Projection,
    QueryIR,
    Sort,
    ValueRange,
)
from .capabilities import describe_capabilities, is_capabilities_request
from .experts import CoverQueryBuilder, DomainExpert, SchadenQueryBuilder, default_experts
from .matcher import (
    KeywordIndex,
    Token,
    TokenKind,
    normalize_text,
    select_template,
    tokenize,
)
from .params import (
    has_wildcard,
    parse_date,
    parse_limit,
    parse_number,
    to_like_pattern,
)
from .parser import FieldRules, RequestParser, parse_request
from .renderer import (
    render_conditions,
    render_group,
    render_predicate,
    render_query,
    resolve_columns,
)

__all__ = [
    # base.py
    "Direction",
    "FilterGroup",
    "LogicMode",
    "Op",
    "Predicate",
    "Projection",
    "QueryIR",
    "Sort",
    "ValueRange",
    # capabilities.py
    "describe_capabilities",
    "is_capabilities_request",
    # experts.py
    "CoverQueryBuilder",
    "DomainExpert",
    "SchadenQueryBuilder",
    "default_experts",
    # matcher.py
    "KeywordIndex",
    "Token",
    "TokenKind",
    "normalize_text",
    "select_template",
    "tokenize",
    # params.py
    "has_wildcard",
    "parse_date",
    "parse_limit",
    "parse_number",
    "to_like_pattern",
    # parser.py
    "FieldRules",
    "RequestParser",
    "parse_request",
    # renderer.py
    "render_conditions",
    "render_group",
    "render_predicate",
    "render_query",
    "resolve_columns",
]
