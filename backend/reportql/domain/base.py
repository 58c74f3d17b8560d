"""Intermediate representation of a parsed report request."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Union

from ..core.exceptions import ContractViolationError
from ..knowledge.providers import ContextType

Scalar = Union[str, int, Decimal]


class LogicMode(str, Enum):
    AND = "AND"
    OR = "OR"


class Op(str, Enum):
    """Predicate operators."""
    EQUALS = "equals"
    NOT_EQUALS = "not_equals"
    CONTAINS = "contains"
    IN = "in"
    BETWEEN = "between"
    GREATER_THAN = "greater_than"
    LESS_THAN = "less_than"
    GREATER_OR_EQUAL = "greater_or_equal"
    LESS_OR_EQUAL = "less_or_equal"
    IS_NULL = "is_null"
    IS_NOT_NULL = "is_not_null"


SCALAR_OPS = frozenset({
    Op.EQUALS, Op.NOT_EQUALS, Op.CONTAINS,
    Op.GREATER_THAN, Op.LESS_THAN, Op.GREATER_OR_EQUAL, Op.LESS_OR_EQUAL,
})
NULL_OPS = frozenset({Op.IS_NULL, Op.IS_NOT_NULL})


class Direction(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class ValueRange:
    """Inclusive bounds of a BETWEEN predicate."""

    low: Scalar
    high: Scalar


def _is_scalar(value: object) -> bool:
    # bool is an int subclass but never a valid bound value
    return isinstance(value, (str, int, Decimal)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Predicate:
    """A single condition on a semantic field.

    The value shape depends on the operator:
        scalar ops        -> str | int | Decimal
        IN                -> non-empty tuple of scalars
        BETWEEN           -> ValueRange
        IS_NULL/NOT_NULL  -> None
    """

    field: str
    op: Op
    value: Union[Scalar, tuple, ValueRange, None] = None

    def __post_init__(self) -> None:
        if not self.field:
            raise ContractViolationError("Predicate requires a field")

        if self.op in SCALAR_OPS:
            if not _is_scalar(self.value):
                raise ContractViolationError(
                    f"Operator {self.op.value} requires a scalar value",
                    details={"field": self.field, "value": repr(self.value)},
                )
        elif self.op == Op.IN:
            if isinstance(self.value, list):
                object.__setattr__(self, "value", tuple(self.value))
            if not isinstance(self.value, tuple) or not self.value:
                raise ContractViolationError(
                    "Operator in requires a non-empty sequence",
                    details={"field": self.field, "value": repr(self.value)},
                )
            if not all(_is_scalar(item) for item in self.value):
                raise ContractViolationError(
                    "Operator in requires scalar members",
                    details={"field": self.field, "value": repr(self.value)},
                )
        elif self.op == Op.BETWEEN:
            if not isinstance(self.value, ValueRange) or not (
                _is_scalar(self.value.low) and _is_scalar(self.value.high)
            ):
                raise ContractViolationError(
                    "Operator between requires a ValueRange",
                    details={"field": self.field, "value": repr(self.value)},
                )
        elif self.op in NULL_OPS:
            if self.value is not None:
                raise ContractViolationError(
                    f"Operator {self.op.value} takes no value",
                    details={"field": self.field, "value": repr(self.value)},
                )


@dataclass
class FilterGroup:
    """Boolean node: predicates and child groups combined by ``logic``.

    A negated group stands for NOT of its combined content.
    """

    predicates: list[Predicate] = field(default_factory=list)
    groups: list[FilterGroup] = field(default_factory=list)
    logic: LogicMode = LogicMode.AND
    negated: bool = False

    def is_empty(self) -> bool:
        return not self.predicates and all(g.is_empty() for g in self.groups)

    def fields(self) -> list[str]:
        """Every field referenced in this subtree, depth-first."""
        names = [p.field for p in self.predicates]
        for group in self.groups:
            names.extend(group.fields())
        return names


@dataclass(frozen=True)
class Projection:
    field: str
    exclude: bool = False
    order: Optional[int] = None  # None = unordered, rendered after hinted ones


@dataclass(frozen=True)
class Sort:
    field: str
    direction: Direction = Direction.ASC


@dataclass
class QueryIR:
    """Structured result of parsing one request; created per compilation."""

    context: ContextType = ContextType.UNKNOWN
    filters: list[FilterGroup] = field(default_factory=lambda: [FilterGroup()])
    projections: list[Projection] = field(default_factory=list)
    sorts: list[Sort] = field(default_factory=list)
    limit: Optional[int] = None
    template: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.filters:
            self.filters.append(FilterGroup())

    @property
    def main_group(self) -> FilterGroup:
        return self.filters[0]

    def add_predicate(self, predicate: Predicate) -> None:
        self.main_group.predicates.append(predicate)

    def add_group(self, group: FilterGroup) -> None:
        self.main_group.groups.append(group)

    def add_projection(self, projection: Projection) -> None:
        self.projections.append(projection)

    def add_sort(self, sort: Sort) -> None:
        self.sorts.append(sort)

    def included(self) -> list[Projection]:
        return [p for p in self.projections if not p.exclude]

    def excluded(self) -> list[Projection]:
        return [p for p in self.projections if p.exclude]
