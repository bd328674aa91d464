"""IRepository: specification-aware repository protocol."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, TypeVar, runtime_checkable

from ..domain.aggregate import AggregateRoot

if TYPE_CHECKING:
    from ..specifications.base import ISpecification
    from ..uow.unit_of_work import UnitOfWork

T = TypeVar("T", bound=AggregateRoot)


@runtime_checkable
class IRepository(Protocol[T]):
    """
    Generic repository for one aggregate type.

    Every operation takes the active ``UnitOfWork``. Writes are deferred:
    ``save`` and ``delete`` register the change with the unit's ChangeSet and
    reach the store when the unit commits. Reads go to the store through the
    unit's session.
    """

    async def find_by_id(self, entity_id: str, uow: UnitOfWork) -> T | None: ...

    async def save(self, entity: T, uow: UnitOfWork) -> T: ...

    async def delete(self, entity_id: str, uow: UnitOfWork) -> None: ...

    async def exists(self, entity_id: str, uow: UnitOfWork) -> bool: ...

    async def find_by_specification(
        self,
        spec: ISpecification[T] | None,
        uow: UnitOfWork,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[T]: ...

    async def find_one_by_specification(
        self, spec: ISpecification[T], uow: UnitOfWork
    ) -> T | None: ...

    async def count_by_specification(
        self, spec: ISpecification[T] | None, uow: UnitOfWork
    ) -> int: ...
