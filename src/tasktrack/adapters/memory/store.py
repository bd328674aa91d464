"""InMemoryStore: dict-backed store with real transaction semantics.

Each session buffers its writes and applies them to the shared tables only
on ``commit()``, so a rolled-back session leaves no trace. Updates are
optimistic: the version read when the update was issued must still be the
stored version at commit time.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, TypeVar

from ...ports.store import IStoreSession
from ...primitives.exceptions import ConcurrencyConflictError, StoreError

if TYPE_CHECKING:
    from collections.abc import Mapping

    from ...domain.aggregate import AggregateRoot
    from ...specifications.base import ISpecification

logger = logging.getLogger("tasktrack.persistence")

E = TypeVar("E", bound="AggregateRoot")

# (entity type, id) -> (field data, version); ``None`` marks a pending delete.
_Key = tuple[type[Any], str]
_Row = tuple[dict[str, Any], int]


class InMemoryStore:
    """Committed state shared by all sessions opened from it.

    Usage::

        store = InMemoryStore()
        uow = UnitOfWork(store.open_session)
    """

    def __init__(self) -> None:
        self._tables: dict[type[Any], dict[str, _Row]] = {}
        self.commit_count = 0

    def open_session(self) -> InMemoryStoreSession:
        return InMemoryStoreSession(self)

    # ── Test helpers ─────────────────────────────────────────────

    def table(self, entity_type: type[Any]) -> dict[str, _Row]:
        return self._tables.setdefault(entity_type, {})

    def ids(self, entity_type: type[Any]) -> set[str]:
        """Identifiers currently committed for *entity_type*."""
        return set(self._tables.get(entity_type, {}))

    def stored_version(self, entity_type: type[Any], entity_id: str) -> int | None:
        row = self._tables.get(entity_type, {}).get(entity_id)
        return None if row is None else row[1]

    def clear(self) -> None:
        self._tables.clear()


class InMemoryStoreSession(IStoreSession):
    """One session against an :class:`InMemoryStore`."""

    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._pending: dict[_Key, _Row | None] = {}
        self._inserted: set[_Key] = set()
        self._read_versions: dict[_Key, int] = {}
        self._in_transaction = False
        self._released = False

    # ── Transaction control ──────────────────────────────────────

    async def begin(self) -> None:
        self._ensure_open()
        if self._in_transaction:
            raise StoreError("Transaction already begun on this session")
        self._in_transaction = True

    async def commit(self) -> None:
        self._ensure_transaction()
        for (entity_type, entity_id), expected in self._read_versions.items():
            current = self._store.stored_version(entity_type, entity_id)
            if current != expected:
                raise ConcurrencyConflictError(
                    entity_type.__name__, entity_id, expected
                )
        for entity_type, entity_id in self._inserted:
            if self._store.stored_version(entity_type, entity_id) is not None:
                raise StoreError(
                    f"Duplicate key: {entity_type.__name__} id={entity_id!r}"
                )
        for (entity_type, entity_id), row in self._pending.items():
            table = self._store.table(entity_type)
            if row is None:
                table.pop(entity_id, None)
            else:
                table[entity_id] = row
        self._store.commit_count += 1
        logger.debug("In-memory commit applied %d change(s)", len(self._pending))
        self._reset()

    async def rollback(self) -> None:
        self._ensure_open()
        self._reset()

    async def release(self) -> None:
        self._reset()
        self._released = True

    async def raw_query(
        self,
        sql: str,  # noqa: ARG002
        params: Mapping[str, Any] | None = None,  # noqa: ARG002
    ) -> list[dict[str, Any]]:
        raise StoreError("The in-memory store cannot execute SQL")

    # ── Entity operations ────────────────────────────────────────

    async def get(self, entity_type: type[E], entity_id: str) -> E | None:
        self._ensure_open()
        row = self._visible_row(entity_type, entity_id)
        return None if row is None else self._hydrate(entity_type, row)

    async def insert(self, entity: AggregateRoot) -> int:
        self._ensure_transaction()
        key = (type(entity), entity.id)
        if self._visible_row(*key) is not None:
            raise StoreError(
                f"Duplicate key: {type(entity).__name__} id={entity.id!r}"
            )
        if key not in self._pending:
            self._inserted.add(key)
        self._pending[key] = (self._dehydrate(entity), 1)
        return 1

    async def update(self, entity: AggregateRoot) -> int:
        self._ensure_transaction()
        key = (type(entity), entity.id)
        row = self._visible_row(*key)
        if row is None or row[1] != entity.version:
            raise ConcurrencyConflictError(
                type(entity).__name__, entity.id, entity.version
            )
        if key not in self._inserted:
            self._read_versions.setdefault(key, row[1])
        new_version = entity.version + 1
        self._pending[key] = (self._dehydrate(entity), new_version)
        return new_version

    async def delete(self, entity_type: type[AggregateRoot], entity_id: str) -> bool:
        self._ensure_transaction()
        key = (entity_type, entity_id)
        if self._visible_row(*key) is None:
            return False
        self._pending[key] = None
        self._inserted.discard(key)
        return True

    async def select(
        self,
        entity_type: type[E],
        spec: ISpecification[E] | None = None,
        *,
        order_by: str | None = None,
        descending: bool = False,
        limit: int | None = None,
        offset: int = 0,
    ) -> list[E]:
        self._ensure_open()
        entities = [
            entity
            for entity in self._visible(entity_type)
            if spec is None or spec.is_satisfied_by(entity)
        ]
        if order_by is not None:
            # NULLs sort first ascending, as in SQLite.
            entities.sort(
                key=lambda e: _null_first(getattr(e, order_by, None)),
                reverse=descending,
            )
        end = None if limit is None else offset + limit
        return entities[offset:end]

    async def count(
        self, entity_type: type[E], spec: ISpecification[E] | None = None
    ) -> int:
        self._ensure_open()
        return sum(
            1
            for entity in self._visible(entity_type)
            if spec is None or spec.is_satisfied_by(entity)
        )

    # ── Internals ────────────────────────────────────────────────

    def _visible_row(self, entity_type: type[Any], entity_id: str) -> _Row | None:
        key = (entity_type, entity_id)
        if key in self._pending:
            return self._pending[key]
        return self._store.table(entity_type).get(entity_id)

    def _visible(self, entity_type: type[E]) -> list[E]:
        ids = list(self._store.table(entity_type))
        ids.extend(
            entity_id
            for (pending_type, entity_id) in self._pending
            if pending_type is entity_type and entity_id not in ids
        )
        rows = (self._visible_row(entity_type, entity_id) for entity_id in ids)
        return [self._hydrate(entity_type, row) for row in rows if row is not None]

    @staticmethod
    def _dehydrate(entity: AggregateRoot) -> dict[str, Any]:
        return entity.model_dump()

    @staticmethod
    def _hydrate(entity_type: type[E], row: _Row) -> E:
        data, version = row
        return entity_type(**data, _version=version)

    def _ensure_open(self) -> None:
        if self._released:
            raise StoreError("Session has been released")

    def _ensure_transaction(self) -> None:
        self._ensure_open()
        if not self._in_transaction:
            raise StoreError("No transaction in progress on this session")

    def _reset(self) -> None:
        self._pending.clear()
        self._inserted.clear()
        self._read_versions.clear()
        self._in_transaction = False


def _null_first(value: Any) -> tuple[bool, Any]:
    return (value is not None, value)
