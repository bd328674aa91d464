"""Store-agnostic repositories working through the Unit of Work."""

from __future__ import annotations

from typing import TYPE_CHECKING, TypeVar

from ..domain.aggregate import AggregateRoot
from ..domain.task import Task
from ..domain.user import User
from ..ports.repository import IRepository
from ..primitives.exceptions import TransactionStateError
from ..specifications.field import by_field
from ..specifications.task import TaskSpecifications

if TYPE_CHECKING:
    from ..primitives.clock import IClock
    from ..specifications.base import ISpecification
    from ..uow.change_set import ChangeSet
    from ..uow.unit_of_work import UnitOfWork

T = TypeVar("T", bound=AggregateRoot)


class Repository(IRepository[T]):
    """
    Generic repository for one aggregate type.

    Writes are deferred to the unit's ChangeSet: an unsaved aggregate
    (``version == 0``) is tracked as new, a loaded one as dirty. Reads go
    to the store through ``uow.session``; ``find_by_id`` also honours
    pending inserts and removals of the current transaction.
    Specification queries only see what the store holds.
    """

    def __init__(self, entity_type: type[T]) -> None:
        self.entity_type = entity_type

    def _tracker(self, uow: UnitOfWork) -> ChangeSet[T]:
        if not uow.is_active:
            raise TransactionStateError(
                f"{type(self).__name__} requires an active unit of work"
            )
        return uow.get_repository(self.entity_type)

    async def find_by_id(self, entity_id: str, uow: UnitOfWork) -> T | None:
        tracker = self._tracker(uow)
        if tracker.is_removed(entity_id):
            return None
        pending = tracker.find_new(entity_id)
        if pending is not None:
            return pending
        return await uow.session.get(self.entity_type, entity_id)

    async def save(self, entity: T, uow: UnitOfWork) -> T:
        tracker = self._tracker(uow)
        if entity.version == 0:
            tracker.mark_new(entity)
        else:
            tracker.mark_dirty(entity)
        return entity

    async def delete(self, entity_id: str, uow: UnitOfWork) -> None:
        self._tracker(uow).mark_removed(entity_id)

    async def exists(self, entity_id: str, uow: UnitOfWork) -> bool:
        return await self.find_by_id(entity_id, uow) is not None

    async def find_by_specification(
        self,
        spec: ISpecification[T] | None,
        uow: UnitOfWork,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[T]:
        self._tracker(uow)
        return await uow.session.select(
            self.entity_type,
            spec,
            order_by=order_by,
            descending=descending,
            limit=limit,
            offset=offset,
        )

    async def find_one_by_specification(
        self, spec: ISpecification[T], uow: UnitOfWork
    ) -> T | None:
        found = await self.find_by_specification(spec, uow, limit=1)
        return found[0] if found else None

    async def count_by_specification(
        self, spec: ISpecification[T] | None, uow: UnitOfWork
    ) -> int:
        self._tracker(uow)
        return await uow.session.count(self.entity_type, spec)


class TaskRepository(Repository[Task]):
    def __init__(self) -> None:
        super().__init__(Task)

    async def find_by_owner(self, user_id: str, uow: UnitOfWork) -> list[Task]:
        return await self.find_by_specification(
            TaskSpecifications.by_owner(user_id),
            uow,
            order_by="created_at",
            descending=True,
        )

    async def find_overdue(self, clock: IClock, uow: UnitOfWork) -> list[Task]:
        return await self.find_by_specification(
            TaskSpecifications.overdue(clock), uow, order_by="due_date"
        )


class UserRepository(Repository[User]):
    def __init__(self) -> None:
        super().__init__(User)

    async def find_by_email(self, email: str, uow: UnitOfWork) -> User | None:
        return await self.find_one_by_specification(
            by_field("email", "eq", email.strip().lower()), uow
        )
