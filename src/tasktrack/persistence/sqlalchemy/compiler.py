"""
Compile a ``FilterExpr`` tree into a SQLAlchemy filter expression.

``compile_filter`` walks the tree: a ``FilterGroup`` compiles its children
and joins them with ``and_`` / ``or_``; a ``FilterCondition`` is delegated
to the operator registry. Every value in the tree becomes a bind parameter
named ``p<n>_<field>``, where ``n`` is a counter shared by the whole tree.
Two leaves on the same field (for example in sibling branches of an OR)
therefore never share a parameter.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, bindparam, or_

from ...primitives.exceptions import TranslationError, UnsupportedPredicateError
from ...specifications.filter_expr import FilterCondition, FilterGroup
from ...specifications.operators import LogicalOperator, SpecificationOperator
from .operators import DEFAULT_SQLA_REGISTRY

if TYPE_CHECKING:
    from sqlalchemy import ColumnElement, Table

    from ...specifications.filter_expr import FilterExpr
    from .operators import SQLAlchemyOperatorRegistry

_UNSAFE_BIND_CHARS = re.compile(r"[^0-9A-Za-z_]")


@dataclass(frozen=True)
class CompiledFilter:
    """A compiled WHERE clause plus the values it binds, by parameter name."""

    clause: ColumnElement[bool]
    params: dict[str, Any] = field(default_factory=dict)


class _BindAllocator:
    def __init__(self) -> None:
        self._counter = 0
        self.params: dict[str, Any] = {}

    def binder(self, field_name: str, column: Any) -> Any:
        def bind(value: Any) -> Any:
            self._counter += 1
            name = f"p{self._counter}_{_UNSAFE_BIND_CHARS.sub('_', field_name)}"
            self.params[name] = value
            return bindparam(name, value, type_=column.type)

        return bind


def resolve_table(model: Any) -> Table:
    """Accept a declarative model class or a ``Table``."""
    table = getattr(model, "__table__", model)
    if not hasattr(table, "c"):
        raise TranslationError(f"{model!r} is neither a mapped model nor a table")
    return table


def compile_filter(
    model: Any,
    expr: FilterExpr,
    *,
    registry: SQLAlchemyOperatorRegistry | None = None,
) -> CompiledFilter:
    """
    Build a SQLAlchemy filter expression from a filter expression tree.

    Args:
        model: The SQLAlchemy model class (or its ``Table``).
        expr: Filter tree produced by ``spec.to_query()``.
        registry: Optional custom operator registry. Falls back to
            ``DEFAULT_SQLA_REGISTRY``.

    Returns:
        The clause and its bound parameters.

    Raises:
        TranslationError: If the tree names a column the table lacks or an
            operator the registry cannot compile. Nothing is returned for a
            partially compilable tree.
    """
    table = resolve_table(model)
    allocator = _BindAllocator()
    clause = _compile_node(table, expr, registry or DEFAULT_SQLA_REGISTRY, allocator)
    return CompiledFilter(clause=clause, params=dict(allocator.params))


def _compile_node(
    table: Table,
    expr: FilterExpr,
    registry: SQLAlchemyOperatorRegistry,
    allocator: _BindAllocator,
) -> ColumnElement[bool]:
    if isinstance(expr, FilterGroup):
        if not expr.children:
            raise TranslationError("Cannot compile an empty filter group")
        children = [
            _compile_node(table, child, registry, allocator) for child in expr.children
        ]
        if expr.op is LogicalOperator.AND:
            return and_(*children)
        if expr.op is LogicalOperator.OR:
            return or_(*children)
        raise TranslationError(f"Unsupported logical operator: {expr.op!r}")

    if isinstance(expr, FilterCondition):
        return _compile_leaf(table, expr, registry, allocator)

    raise TranslationError(f"Not a filter expression: {expr!r}")


def _compile_leaf(
    table: Table,
    condition: FilterCondition,
    registry: SQLAlchemyOperatorRegistry,
    allocator: _BindAllocator,
) -> ColumnElement[bool]:
    if condition.field not in table.c:
        raise TranslationError(
            f"Table '{table.name}' has no column '{condition.field}'"
        )
    try:
        op = SpecificationOperator.parse(condition.op)
    except UnsupportedPredicateError as exc:
        raise TranslationError(str(exc)) from exc
    column = table.c[condition.field]
    return registry.apply(
        op, column, condition.value, allocator.binder(condition.field, column)
    )
