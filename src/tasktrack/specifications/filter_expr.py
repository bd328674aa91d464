"""
Store-agnostic filter representation produced by ``Specification.to_query()``.

A ``FilterExpr`` is either a ``FilterCondition`` leaf
(``{field, op, value}``) or a ``FilterGroup`` node
(``{op: and|or, children}``). Both are immutable.

``evaluate_filter`` is the reference semantics for a filter tree: every
store adapter must select exactly the objects for which it returns True.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Union

from .evaluator import DEFAULT_MEMORY_REGISTRY
from .operators import LogicalOperator, SpecificationOperator

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .evaluator import MemoryOperatorRegistry


@dataclass(frozen=True)
class FilterCondition:
    """Leaf predicate on one named field."""

    field: str
    op: SpecificationOperator
    value: Any

    def to_dict(self) -> dict[str, Any]:
        return {"op": self.op.value, "field": self.field, "value": self.value}


@dataclass(frozen=True)
class FilterGroup:
    """Boolean node joining child expressions with one operator."""

    op: LogicalOperator
    children: tuple[FilterExpr, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "op": self.op.value,
            "children": [child.to_dict() for child in self.children],
        }


FilterExpr = Union[FilterCondition, FilterGroup]


def resolve_field(obj: Any, path: str) -> Any:
    """
    Resolve a dot-separated attribute path on *obj*.

    Works on attribute objects and plain dicts; a missing step yields
    ``None``.
    """
    for part in path.split("."):
        if obj is None:
            return None
        obj = obj.get(part) if isinstance(obj, dict) else getattr(obj, part, None)
    return obj


def evaluate_filter(
    expr: FilterExpr,
    candidate: Any,
    *,
    registry: MemoryOperatorRegistry | None = None,
) -> bool:
    """Evaluate *expr* against a single object."""
    reg = registry or DEFAULT_MEMORY_REGISTRY
    if isinstance(expr, FilterGroup):
        if expr.op is LogicalOperator.AND:
            return all(
                evaluate_filter(c, candidate, registry=reg) for c in expr.children
            )
        return any(evaluate_filter(c, candidate, registry=reg) for c in expr.children)
    return reg.evaluate(expr.op, resolve_field(candidate, expr.field), expr.value)


def filter_objects(expr: FilterExpr, candidates: Iterable[Any]) -> list[Any]:
    """Return the candidates matching *expr*, preserving order."""
    return [c for c in candidates if evaluate_filter(expr, c)]


def iter_conditions(expr: FilterExpr) -> Iterable[FilterCondition]:
    """Yield every leaf of *expr*, depth-first, left to right."""
    if isinstance(expr, FilterCondition):
        yield expr
        return
    for child in expr.children:
        yield from iter_conditions(child)
