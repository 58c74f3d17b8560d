"""Rendering of a QueryIR into parameterised SQL for one report template."""

from __future__ import annotations

import logging
from typing import Any, Optional

from ..core.config import Settings, get_cached_settings
from ..core.exceptions import UnresolvedFieldError
from ..core.models import CompiledQuery
from ..knowledge.columns import ColumnSpec
from ..knowledge.templates import ReportTemplate
from ..security.sql_guard import apply_row_limit, format_sql
from .base import FilterGroup, Op, Predicate, QueryIR, ValueRange

logger = logging.getLogger(__name__)

COMPARISON_SQL = {
    Op.EQUALS: "=",
    Op.NOT_EQUALS: "<>",
    Op.GREATER_THAN: ">",
    Op.LESS_THAN: "<",
    Op.GREATER_OR_EQUAL: ">=",
    Op.LESS_OR_EQUAL: "<=",
}

# Text comparisons that ignore case and surrounding blanks
_CASE_FOLDED = {Op.EQUALS, Op.NOT_EQUALS, Op.CONTAINS, Op.IN}

WARNING_LIMIT_CLAMPED = "limit_clamped"


def _column(template: ReportTemplate, alias: str) -> ColumnSpec:
    column = template.column(alias)
    if column is None:
        raise UnresolvedFieldError(
            f"Das Feld '{alias}' gibt es im Bericht '{template.name}' nicht",
            details={"field": alias, "report": template.name},
        )
    return column


def _bind(column: ColumnSpec, op: Op, value: Any) -> Any:
    if column.numeric:
        return value
    if op in _CASE_FOLDED:
        return str(value).strip().upper()
    return str(value)


# =============================================================================
# SELECT LIST
# =============================================================================

def resolve_columns(ir: QueryIR, template: ReportTemplate) -> list[ColumnSpec]:
    """Final SELECT columns.

    No includes -> every template column in declaration order. With includes,
    hinted ones ("zuerst") come first by hint, then the rest in request order.
    Excluded fields are removed; duplicates collapse to the first occurrence.
    """
    for projection in ir.projections:
        _column(template, projection.field)

    included = ir.included()
    if included:
        hinted = sorted((p for p in included if p.order is not None), key=lambda p: p.order)
        unhinted = [p for p in included if p.order is None]
        aliases = [p.field for p in (*hinted, *unhinted)]
    else:
        aliases = template.aliases()

    excluded = {p.field for p in ir.excluded()}
    seen: set[str] = set()
    final: list[ColumnSpec] = []
    for alias in aliases:
        if alias in excluded or alias in seen:
            continue
        seen.add(alias)
        final.append(template.columns[alias])

    if not final:
        raise UnresolvedFieldError(
            "Nach dem Ausschließen bleiben keine Spalten übrig",
            details={"report": template.name, "excluded": sorted(excluded)},
        )
    return final


# =============================================================================
# WHERE
# =============================================================================

def render_predicate(predicate: Predicate, template: ReportTemplate, params: list[Any]) -> str:
    """Render one predicate; bound values are appended to ``params``."""
    column = _column(template, predicate.field)
    expr = column.expression
    op = predicate.op
    target = expr if column.numeric else f"UPPER(RTRIM(LTRIM({expr})))"

    if op == Op.IS_NULL:
        return f"{expr} IS NULL"
    if op == Op.IS_NOT_NULL:
        return f"{expr} IS NOT NULL"

    if op == Op.BETWEEN:
        bounds: ValueRange = predicate.value
        params.append(_bind(column, op, bounds.low))
        params.append(_bind(column, op, bounds.high))
        return f"{expr} BETWEEN ? AND ?"

    if op == Op.IN:
        values = [_bind(column, op, v) for v in predicate.value]
        params.extend(values)
        placeholders = ", ".join("?" for _ in values)
        return f"{target} IN ({placeholders})"

    if op == Op.CONTAINS:
        params.append(_bind(column, op, predicate.value))
        return f"{target} LIKE ?"

    params.append(_bind(column, op, predicate.value))
    if op in (Op.EQUALS, Op.NOT_EQUALS):
        return f"{target} {COMPARISON_SQL[op]} ?"
    return f"{expr} {COMPARISON_SQL[op]} ?"


def render_group(group: FilterGroup, template: ReportTemplate, params: list[Any]) -> Optional[str]:
    """Render a group as one parenthesised operand; None when it is empty.

    Predicates come before child groups.
    """
    parts = [render_predicate(p, template, params) for p in group.predicates]
    for child in group.groups:
        rendered = render_group(child, template, params)
        if rendered:
            parts.append(rendered)
    if not parts:
        return None

    body = "(" + f" {group.logic.value} ".join(parts) + ")"
    return f"NOT {body}" if group.negated else body


def render_conditions(groups: list[FilterGroup], template: ReportTemplate, params: list[Any]) -> str:
    """Top-level groups AND-ed together; ``1=1`` when nothing filters."""
    rendered = [r for r in (render_group(g, template, params) for g in groups) if r]
    return " AND ".join(rendered) if rendered else "1=1"


# =============================================================================
# ORDER BY
# =============================================================================

def render_order_by(ir: QueryIR, template: ReportTemplate) -> str:
    entries: list[str] = []
    seen: set[str] = set()
    if ir.sorts:
        for sort in ir.sorts:
            if sort.field in seen:
                continue
            seen.add(sort.field)
            entries.append(f"{_column(template, sort.field).expression} {sort.direction.value}")
    else:
        for alias in template.default_order:
            entries.append(f"{_column(template, alias).expression} ASC")
    return ", ".join(entries)


# =============================================================================
# FULL QUERY
# =============================================================================

def render_query(ir: QueryIR, template: ReportTemplate, settings: Optional[Settings] = None) -> CompiledQuery:
    """Render the IR against ``template``.

    Parameter order equals placeholder order; with SQL Server's ``TOP (?)``
    the limit is the first parameter.
    """
    settings = settings or get_cached_settings()
    warnings: list[str] = []

    columns = resolve_columns(ir, template)
    columns_sql = ",\n    ".join(c.sql_definition() for c in columns)

    params: list[Any] = []
    conditions_sql = render_conditions(ir.filters, template, params)

    sql = template.fill(columns_sql=columns_sql, conditions_sql=conditions_sql)
    order_by = render_order_by(ir, template)
    if order_by:
        sql += f"\nORDER BY {order_by}"

    if ir.limit is not None:
        limit = ir.limit
        if settings.max_rows > 0 and limit > settings.max_rows:
            logger.warning(f"Limit {limit} clamped to {settings.max_rows}")
            limit = settings.max_rows
            warnings.append(WARNING_LIMIT_CLAMPED)
        sql = apply_row_limit(sql, settings.sql_dialect)
        if settings.uses_top:
            params.insert(0, limit)
        else:
            params.append(limit)

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(f"Rendered SQL:\n{format_sql(sql)}")

    return CompiledQuery(
        sql=sql,
        params=params,
        columns=[c.alias for c in columns],
        report=template.name,
        context=ir.context.value,
        warnings=warnings,
    )
