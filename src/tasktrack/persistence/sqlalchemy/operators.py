"""
SQL rendering of the comparison operators.

Mirrors :mod:`tasktrack.specifications.evaluator`: one strategy per
operator, looked up through a registry. Strategies receive the column, the
raw value and a ``bind`` callable that allocates a uniquely named bind
parameter. ``None`` is never bound; it renders as ``IS NULL`` /
``IS NOT NULL`` for ``eq`` / ``ne`` and as a constant false for
``lt`` / ``gt``.

``contains`` renders as a case-insensitive ``LIKE`` with the wildcards in
the value escaped, so ``%`` and ``_`` match literally as they do in memory.
"""

from __future__ import annotations

import operator as _op
from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, ClassVar

from sqlalchemy import false

from ...primitives.exceptions import TranslationError
from ...specifications.operators import SpecificationOperator

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy import ColumnElement

    Binder = Callable[[Any], Any]

_LIKE_ESCAPE = "/"


class SQLAlchemyOperator(ABC):
    name: ClassVar[SpecificationOperator]

    @abstractmethod
    def apply(self, column: Any, value: Any, bind: Binder) -> ColumnElement[bool]:
        """Return the boolean clause comparing *column* with *value*."""


class _ColumnComparison(SQLAlchemyOperator):
    compare: ClassVar[Any]

    def apply(self, column: Any, value: Any, bind: Binder) -> ColumnElement[bool]:
        if value is None:
            return self._against_null(column)
        # NULL columns already fail every comparison in SQL.
        return type(self).compare(column, bind(value))

    def _against_null(self, column: Any) -> ColumnElement[bool]:  # noqa: ARG002
        return false()


class EqualOperator(_ColumnComparison):
    name = SpecificationOperator.EQ
    compare = _op.eq

    def _against_null(self, column: Any) -> ColumnElement[bool]:
        return column.is_(None)


class NotEqualOperator(_ColumnComparison):
    name = SpecificationOperator.NE
    compare = _op.ne

    def _against_null(self, column: Any) -> ColumnElement[bool]:
        return column.is_not(None)


class GreaterThanOperator(_ColumnComparison):
    name = SpecificationOperator.GT
    compare = _op.gt


class LessThanOperator(_ColumnComparison):
    name = SpecificationOperator.LT
    compare = _op.lt


class ContainsOperator(SQLAlchemyOperator):
    name = SpecificationOperator.CONTAINS

    def apply(self, column: Any, value: Any, bind: Binder) -> ColumnElement[bool]:
        if value is None:
            return false()
        return column.icontains(bind(_escape_like(str(value))), escape=_LIKE_ESCAPE)


class SQLAlchemyOperatorRegistry:
    """Operator strategies used by :func:`compile_filter`.

    An empty registry is allowed; compiling against it raises
    ``TranslationError`` for the first condition.
    """

    def __init__(self, *operators: SQLAlchemyOperator) -> None:
        self._operators: dict[SpecificationOperator, SQLAlchemyOperator] = {}
        for strategy in operators:
            self.register(strategy)

    def register(self, operator: SQLAlchemyOperator) -> None:
        self._operators[operator.name] = operator

    def unregister(self, name: SpecificationOperator) -> None:
        self._operators.pop(name, None)

    def get(self, name: SpecificationOperator) -> SQLAlchemyOperator | None:
        return self._operators.get(name)

    def apply(
        self, name: SpecificationOperator, column: Any, value: Any, bind: Binder
    ) -> ColumnElement[bool]:
        strategy = self._operators.get(name)
        if strategy is None:
            raise TranslationError(f"No SQL rendering registered for '{name}'")
        return strategy.apply(column, value, bind)


def build_default_registry() -> SQLAlchemyOperatorRegistry:
    return SQLAlchemyOperatorRegistry(
        EqualOperator(),
        NotEqualOperator(),
        GreaterThanOperator(),
        LessThanOperator(),
        ContainsOperator(),
    )


DEFAULT_SQLA_REGISTRY = build_default_registry()


def _escape_like(text: str) -> str:
    return (
        text.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", f"{_LIKE_ESCAPE}%")
        .replace("_", f"{_LIKE_ESCAPE}_")
    )
