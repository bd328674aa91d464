"""
SQLAlchemy implementation of the store session contract.

Statements are issued against the mapped tables (SQLAlchemy Core on top of
an ``AsyncSession``), so rows never linger in an ORM identity map between
a versioned update and the next read. Driver failures are wrapped in
``StoreError``.
"""

from __future__ import annotations

import contextlib
import logging
from typing import TYPE_CHECKING, Any, TypeVar

from sqlalchemy import delete, func, insert, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ...ports.store import IStoreSession
from ...primitives.exceptions import (
    ConcurrencyConflictError,
    StoreError,
    TranslationError,
)
from .compiler import compile_filter
from .mapper import default_mappers
from .models import Base

if TYPE_CHECKING:
    from collections.abc import Iterator, Mapping

    from sqlalchemy import Select, Table
    from sqlalchemy.ext.asyncio import AsyncEngine

    from ...domain.aggregate import AggregateRoot
    from ...specifications.base import ISpecification
    from .mapper import MapperRegistry
    from .operators import SQLAlchemyOperatorRegistry

logger = logging.getLogger("tasktrack.persistence")

E = TypeVar("E", bound="AggregateRoot")


@contextlib.contextmanager
def _store_errors(action: str) -> Iterator[None]:
    try:
        yield
    except SQLAlchemyError as exc:
        raise StoreError(f"Failed to {action}: {exc}") from exc


class SQLAlchemyStore:
    """
    Engine-level entry point: opens one :class:`SQLAlchemyStoreSession` per
    unit of work.

    Usage::

        engine = create_async_engine("sqlite+aiosqlite:///:memory:")
        store = SQLAlchemyStore(engine)
        await store.create_schema()
        uow = UnitOfWork(store.open_session)
    """

    def __init__(
        self,
        engine: AsyncEngine,
        *,
        mappers: MapperRegistry | None = None,
        operator_registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self.engine = engine
        self.mappers = mappers or default_mappers()
        self.operator_registry = operator_registry
        self._session_maker = async_sessionmaker(engine, expire_on_commit=False)

    def open_session(self) -> SQLAlchemyStoreSession:
        return SQLAlchemyStoreSession(
            self._session_maker,
            self.mappers,
            operator_registry=self.operator_registry,
        )

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def drop_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.drop_all)

    async def dispose(self) -> None:
        await self.engine.dispose()


class SQLAlchemyStoreSession(IStoreSession):
    """One ``AsyncSession`` driven by the Unit of Work."""

    def __init__(
        self,
        session_maker: async_sessionmaker[AsyncSession],
        mappers: MapperRegistry,
        *,
        operator_registry: SQLAlchemyOperatorRegistry | None = None,
    ) -> None:
        self._session_maker = session_maker
        self._mappers = mappers
        self._operator_registry = operator_registry
        self._session: AsyncSession | None = None

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise StoreError("Store session not begun or already released")
        return self._session

    # ── Transaction control ──────────────────────────────────────

    async def begin(self) -> None:
        if self._session is not None:
            raise StoreError("Store session already begun")
        with _store_errors("begin transaction"):
            self._session = self._session_maker()
            await self._session.begin()

    async def commit(self) -> None:
        with _store_errors("commit transaction"):
            await self.session.commit()

    async def rollback(self) -> None:
        with _store_errors("rollback transaction"):
            if self.session.in_transaction():
                await self.session.rollback()

    async def release(self) -> None:
        if self._session is None:
            return
        session, self._session = self._session, None
        with _store_errors("close session"):
            await session.close()

    async def raw_query(
        self, sql: str, params: Mapping[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        with _store_errors("execute raw query"):
            result = await self.session.execute(text(sql), dict(params or {}))
            if not result.returns_rows:
                return []
            return [dict(row) for row in result.mappings()]

    # ── Entity operations ────────────────────────────────────────

    async def get(self, entity_type: type[E], entity_id: str) -> E | None:
        mapper = self._mappers.get(entity_type)
        table = mapper.table
        stmt = select(table).where(table.c.id == entity_id)
        with _store_errors(f"load {entity_type.__name__}"):
            row = (await self.session.execute(stmt)).mappings().first()
        return None if row is None else mapper.from_row(row)

    async def insert(self, entity: AggregateRoot) -> int:
        mapper = self._mappers.get(type(entity))
        values = mapper.to_row(entity, version=1)
        with _store_errors(f"insert {type(entity).__name__}"):
            await self.session.execute(insert(mapper.table).values(**values))
        return 1

    async def update(self, entity: AggregateRoot) -> int:
        mapper = self._mappers.get(type(entity))
        table = mapper.table
        new_version = entity.version + 1
        stmt = (
            update(table)
            .where(table.c.id == entity.id, table.c.version == entity.version)
            .values(**mapper.to_row(entity, version=new_version))
        )
        with _store_errors(f"update {type(entity).__name__}"):
            result = await self.session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflictError(
                type(entity).__name__, entity.id, entity.version
            )
        return new_version

    async def delete(self, entity_type: type[AggregateRoot], entity_id: str) -> bool:
        table = self._mappers.get(entity_type).table
        with _store_errors(f"delete {entity_type.__name__}"):
            result = await self.session.execute(
                delete(table).where(table.c.id == entity_id)
            )
        return bool(result.rowcount)

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
        mapper = self._mappers.get(entity_type)
        table = mapper.table
        stmt = self._filtered(select(table), table, spec)
        if order_by is not None:
            if order_by not in table.c:
                raise TranslationError(
                    f"Table '{table.name}' has no column '{order_by}'"
                )
            column = table.c[order_by]
            stmt = stmt.order_by(column.desc() if descending else column.asc())
        if limit is not None:
            stmt = stmt.limit(limit)
        if offset:
            stmt = stmt.offset(offset)
        with _store_errors(f"select {entity_type.__name__}"):
            rows = (await self.session.execute(stmt)).mappings().all()
        return [mapper.from_row(row) for row in rows]

    async def count(
        self, entity_type: type[E], spec: ISpecification[E] | None = None
    ) -> int:
        table = self._mappers.get(entity_type).table
        stmt = self._filtered(select(func.count()).select_from(table), table, spec)
        with _store_errors(f"count {entity_type.__name__}"):
            return int((await self.session.execute(stmt)).scalar_one())

    # ── Internals ────────────────────────────────────────────────

    def _filtered(
        self, stmt: Select[Any], table: Table, spec: ISpecification[Any] | None
    ) -> Select[Any]:
        if spec is None:
            return stmt
        compiled = compile_filter(
            table, spec.to_query(), registry=self._operator_registry
        )
        logger.debug("Compiled filter with params %s", compiled.params)
        return stmt.where(compiled.clause)
