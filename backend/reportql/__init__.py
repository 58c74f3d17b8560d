"""ReportQL natural-language report compiler.

This package turns German back-office report requests ("Verträge für Makler
100120 außer Firma, Land") into parameterised SQL for the Cover (contract)
and Schaden (claims) report families.

Package Structure:
    core/       - Core infrastructure (config, models, exceptions)
    knowledge/  - Column descriptors, report templates, providers, registry
    domain/     - Query IR, tokenizer/matcher, parser, renderer, domain experts
    security/   - SQL skeleton validation and row limits
"""

# Core
from .core.config import Settings, SqlDialect, get_settings, get_cached_settings
from .core.exceptions import (
    CompilerError,
    ContractViolationError,
    ErrorCode,
    MalformedValueError,
    NoMatchingTemplateError,
    UnrecognizedRequestError,
    UnresolvedFieldError,
)
from .core.models import CompiledQuery, CompileRequest, CompileResponse

# Knowledge
from .knowledge import ColumnSpec, ContextType, ReportTemplate, all_templates

# Domain
from .domain.base import FilterGroup, LogicMode, Op, Predicate, Projection, QueryIR, Sort
from .domain.experts import CoverQueryBuilder, DomainExpert, SchadenQueryBuilder
from .domain.renderer import render_query

# Facade
from .compiler import QueryCompiler, compile_request

__all__ = [
    # Core - Config
    "Settings",
    "SqlDialect",
    "get_settings",
    "get_cached_settings",
    # Core - Exceptions & Models
    "CompilerError",
    "ContractViolationError",
    "ErrorCode",
    "MalformedValueError",
    "NoMatchingTemplateError",
    "UnrecognizedRequestError",
    "UnresolvedFieldError",
    "CompiledQuery",
    "CompileRequest",
    "CompileResponse",
    # Knowledge
    "ColumnSpec",
    "ContextType",
    "ReportTemplate",
    "all_templates",
    # Domain
    "FilterGroup",
    "LogicMode",
    "Op",
    "Predicate",
    "Projection",
    "QueryIR",
    "Sort",
    "CoverQueryBuilder",
    "DomainExpert",
    "SchadenQueryBuilder",
    "render_query",
    # Facade
    "QueryCompiler",
    "compile_request",
]
