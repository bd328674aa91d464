"""Result envelopes returned by handlers."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    """Outcome of a command or query.

    Business failures travel as values: ``success`` is False, ``error``
    carries a user-facing message and ``data`` is absent. A successful
    result never carries an error.
    """

    success: bool
    data: T | None = None
    error: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful result cannot carry an error")
        if not self.success and self.data is not None:
            raise ValueError("A failed result cannot carry data")
        if not self.success and not self.error:
            raise ValueError("A failed result needs an error message")

    @classmethod
    def ok(cls, data: T | None = None, **metadata: Any) -> ServiceResult[T]:
        return cls(success=True, data=data, metadata=metadata)

    @classmethod
    def fail(cls, error: str, **metadata: Any) -> ServiceResult[T]:
        return cls(success=False, error=error, metadata=metadata)

    def unwrap(self) -> T | None:
        """Return ``data`` or raise ``ValueError`` for a failed result."""
        if not self.success:
            raise ValueError(self.error)
        return self.data


@dataclass(frozen=True)
class PaginatedResult(Generic[T]):
    """One page of items plus the numbers needed to fetch the others."""

    items: list[T]
    total: int
    page: int
    limit: int

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_next(self) -> bool:
        return self.page < self.total_pages

    @property
    def has_previous(self) -> bool:
        return self.page > 1
