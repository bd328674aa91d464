"""IStoreSession: the store contract the Unit of Work drives."""

from __future__ import annotations

from collections.abc import Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ..domain.aggregate import AggregateRoot
    from ..specifications.base import ISpecification

E = TypeVar("E", bound="AggregateRoot")


@runtime_checkable
class IStoreSession(Protocol):
    """
    One connection-scoped session against a single store.

    Transaction control (``begin``/``commit``/``rollback``/``release``) is
    driven exclusively by the Unit of Work. The entity operations are
    what the commit flush and the repositories use.

    Implementations wrap every driver failure in ``StoreError``.
    ``update`` is versioned: it succeeds only when the stored version equals
    ``entity.version`` and raises ``ConcurrencyConflictError`` otherwise.
    """

    async def begin(self) -> None: ...

    async def commit(self) -> None: ...

    async def rollback(self) -> None: ...

    async def release(self) -> None:
        """Return the underlying connection. The session is unusable afterwards."""
        ...

    async def raw_query(
        self, sql: str, params: Mapping[str, Any] | None = None
    ) -> list[dict[str, Any]]: ...

    async def get(self, entity_type: type[E], entity_id: str) -> E | None: ...

    async def insert(self, entity: AggregateRoot) -> int:
        """Persist a new entity and return the version now stored."""
        ...

    async def update(self, entity: AggregateRoot) -> int:
        """Persist a changed entity and return the version now stored."""
        ...

    async def delete(self, entity_type: type[AggregateRoot], entity_id: str) -> bool:
        """Remove by identifier; ``False`` when nothing was stored under it."""
        ...

    async def select(
        self,
        entity_type: type[E],
        spec: ISpecification[E] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[E]: ...

    async def count(
        self, entity_type: type[E], spec: ISpecification[E] | None = None
    ) -> int: ...


SessionFactory = Callable[[], IStoreSession]
