"""
Operator strategies for evaluating filter conditions against Python objects.

NULL handling matches what the SQL compiler emits, so a specification
selects the same rows in memory and in the store:

* ``eq None`` / ``ne None`` test for absence / presence.
* A ``None`` field never satisfies ``eq``/``ne``/``lt``/``gt`` against a
  concrete value.
* ``lt None`` / ``gt None`` are never satisfied.

Naive datetimes are read as UTC, as the ``UTCDateTime`` column type does.
"""

from __future__ import annotations

import operator as _op
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, ClassVar

from ..primitives.exceptions import UnsupportedPredicateError
from .operators import SpecificationOperator


class MemoryOperator(ABC):
    """One comparison, keyed in a registry by :attr:`name`."""

    name: ClassVar[SpecificationOperator]

    @abstractmethod
    def evaluate(self, field_value: Any, condition_value: Any) -> bool: ...


class _ComparisonOperator(MemoryOperator):
    compare: ClassVar[Any]

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None or condition_value is None:
            return self._with_null(field_value, condition_value)
        return bool(
            type(self).compare(_as_aware(field_value), _as_aware(condition_value))
        )

    def _with_null(self, field_value: Any, condition_value: Any) -> bool:  # noqa: ARG002
        return False


class EqualOperator(_ComparisonOperator):
    name = SpecificationOperator.EQ
    compare = _op.eq

    def _with_null(self, field_value: Any, condition_value: Any) -> bool:
        return condition_value is None and field_value is None


class NotEqualOperator(_ComparisonOperator):
    name = SpecificationOperator.NE
    compare = _op.ne

    def _with_null(self, field_value: Any, condition_value: Any) -> bool:
        return condition_value is None and field_value is not None


class GreaterThanOperator(_ComparisonOperator):
    name = SpecificationOperator.GT
    compare = _op.gt


class LessThanOperator(_ComparisonOperator):
    name = SpecificationOperator.LT
    compare = _op.lt


class ContainsOperator(MemoryOperator):
    """Case-insensitive substring match; a missing text never matches."""

    name = SpecificationOperator.CONTAINS

    def evaluate(self, field_value: Any, condition_value: Any) -> bool:
        if field_value is None or condition_value is None:
            return False
        return str(condition_value).lower() in str(field_value).lower()


class MemoryOperatorRegistry:
    """Maps each :class:`SpecificationOperator` to its evaluator.

    ``FieldSpecification`` checks :meth:`has` at construction so an
    unsupported operator fails early instead of on first evaluation.
    """

    def __init__(self, *operators: MemoryOperator) -> None:
        self._operators: dict[SpecificationOperator, MemoryOperator] = {}
        for strategy in operators:
            self.register(strategy)

    def register(self, operator: MemoryOperator) -> None:
        self._operators[operator.name] = operator

    def get(self, name: SpecificationOperator) -> MemoryOperator | None:
        return self._operators.get(name)

    def has(self, name: SpecificationOperator) -> bool:
        return name in self._operators

    def evaluate(
        self, name: SpecificationOperator, field_value: Any, condition_value: Any
    ) -> bool:
        strategy = self._operators.get(name)
        if strategy is None:
            raise UnsupportedPredicateError(
                f"No in-memory evaluator registered for '{name}'",
                operator=str(name),
            )
        return strategy.evaluate(field_value, condition_value)


def build_default_registry() -> MemoryOperatorRegistry:
    return MemoryOperatorRegistry(
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        ContainsOperator(),
    )


DEFAULT_MEMORY_REGISTRY = build_default_registry()


def _as_aware(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
