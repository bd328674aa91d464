from __future__ import annotations

from typing import TYPE_CHECKING, Any, Generic, Protocol, TypeVar, runtime_checkable

from .filter_expr import FilterGroup
from .operators import LogicalOperator

if TYPE_CHECKING:
    from .filter_expr import FilterExpr

T = TypeVar("T", contravariant=True)


@runtime_checkable
class ISpecification(Protocol[T]):
    """
    Protocol for the Specification pattern.

    A specification answers the same question twice: in memory through
    ``is_satisfied_by`` and as a store-agnostic filter through ``to_query``.
    Both answers must select exactly the same candidates.
    """

    def is_satisfied_by(self, candidate: T) -> bool: ...

    def to_query(self) -> FilterExpr: ...


class BaseSpecification(Generic[T]):
    """Base class for specifications with logic operator support."""

    def is_satisfied_by(self, candidate: T) -> bool:
        raise NotImplementedError

    def to_query(self) -> FilterExpr:
        raise NotImplementedError

    def __and__(self, other: ISpecification[T]) -> CompositeSpecification[T]:
        return and_(self, other)

    def __or__(self, other: ISpecification[T]) -> CompositeSpecification[T]:
        return or_(self, other)

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly rendering of ``to_query()``."""
        return self.to_query().to_dict()


class CompositeSpecification(BaseSpecification[T]):
    """Children joined by AND or OR.

    Evaluation short-circuits: AND stops at the first unsatisfied child,
    OR at the first satisfied one. Children are kept as an immutable tuple.
    """

    def __init__(
        self,
        children: tuple[ISpecification[T], ...] | list[ISpecification[T]],
        operator: LogicalOperator | str = LogicalOperator.AND,
    ) -> None:
        if not children:
            raise ValueError("A composite specification needs at least one child")
        self._children: tuple[ISpecification[T], ...] = tuple(children)
        self._operator = LogicalOperator(operator)

    @property
    def children(self) -> tuple[ISpecification[T], ...]:
        return self._children

    @property
    def operator(self) -> LogicalOperator:
        return self._operator

    def is_satisfied_by(self, candidate: T) -> bool:
        if self._operator is LogicalOperator.AND:
            for child in self._children:
                if not child.is_satisfied_by(candidate):
                    return False
            return True
        for child in self._children:
            if child.is_satisfied_by(candidate):
                return True
        return False

    def to_query(self) -> FilterExpr:
        # Children translate first so a failing child aborts the whole tree.
        return FilterGroup(
            op=self._operator,
            children=tuple(child.to_query() for child in self._children),
        )

    def __repr__(self) -> str:
        inner = ", ".join(repr(c) for c in self._children)
        return f"{self._operator.value.upper()}({inner})"


def and_(*specs: ISpecification[T]) -> CompositeSpecification[T]:
    """Conjunction of *specs*."""
    return CompositeSpecification(specs, LogicalOperator.AND)


def or_(*specs: ISpecification[T]) -> CompositeSpecification[T]:
    """Disjunction of *specs*."""
    return CompositeSpecification(specs, LogicalOperator.OR)
