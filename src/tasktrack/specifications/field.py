from __future__ import annotations

from typing import TYPE_CHECKING, Any, TypeVar

from ..primitives.exceptions import UnsupportedPredicateError
from .base import BaseSpecification
from .evaluator import DEFAULT_MEMORY_REGISTRY
from .filter_expr import FilterCondition, resolve_field
from .operators import SpecificationOperator

if TYPE_CHECKING:
    from collections.abc import Collection

    from .evaluator import MemoryOperatorRegistry
    from .filter_expr import FilterExpr

T = TypeVar("T")


class FieldSpecification(BaseSpecification[T]):
    """
    Specification that compares a single named field with a value.

    The operator is validated at construction time; an operator the engine
    cannot express is rejected here instead of being dropped later during
    translation. When ``allowed_fields`` is supplied the field name is
    validated as well.
    """

    def __init__(
        self,
        field: str,
        op: SpecificationOperator | str,
        value: Any,
        *,
        allowed_fields: Collection[str] | None = None,
        registry: MemoryOperatorRegistry | None = None,
    ) -> None:
        if not field or not isinstance(field, str):
            raise UnsupportedPredicateError(
                f"Field name must be a non-empty string, got {field!r}",
                field=str(field),
            )
        if allowed_fields is not None and field not in allowed_fields:
            raise UnsupportedPredicateError(
                f"Unknown field '{field}'. "
                f"Allowed fields: {', '.join(sorted(allowed_fields))}",
                field=field,
            )
        self.field = field
        self.op = SpecificationOperator.parse(op)
        self.value = value
        self._registry = registry or DEFAULT_MEMORY_REGISTRY
        if not self._registry.has(self.op):
            raise UnsupportedPredicateError(
                f"Operator '{self.op.value}' has no in-memory evaluator",
                field=field,
                operator=self.op.value,
            )

    def is_satisfied_by(self, candidate: T) -> bool:
        actual = resolve_field(candidate, self.field)
        return self._registry.evaluate(self.op, actual, self.value)

    def to_query(self) -> FilterExpr:
        return FilterCondition(field=self.field, op=self.op, value=self.value)

    def __repr__(self) -> str:
        return f"{self.field} {self.op.value} {self.value!r}"


def by_field(
    name: str,
    op: SpecificationOperator | str,
    value: Any,
    *,
    allowed_fields: Collection[str] | None = None,
) -> FieldSpecification[Any]:
    """Build a leaf specification ``name <op> value``."""
    return FieldSpecification(name, op, value, allowed_fields=allowed_fields)
