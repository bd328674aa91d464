"""UnitOfWork: one atomic transaction against one store."""

from __future__ import annotations

import logging
from collections import deque
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, TypeVar

from ..primitives.exceptions import TransactionStateError
from ..primitives.id_generator import UUID4Generator
from .change_set import ChangeSet

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable, Mapping

    from ..domain.aggregate import AggregateRoot
    from ..ports.store import IStoreSession, SessionFactory
    from ..primitives.id_generator import IIDGenerator

logger = logging.getLogger("tasktrack.uow")

T = TypeVar("T")
E = TypeVar("E", bound="AggregateRoot")


class UnitOfWork:
    """
    State machine over a single store session.

    ``Inactive --start()--> Active --commit()|rollback()--> Inactive``

    While active the unit owns one ``IStoreSession`` and one ``ChangeSet`` per
    entity type. ``commit()`` flushes every ChangeSet in registration order
    (inserts, then updates, then deletes), commits the store transaction and
    only then runs the ``on_commit`` hooks. A failure anywhere before the
    store commit rolls the store back and re-raises. The session is released
    and the ChangeSets are cleared whatever the outcome.

    Instances are neither re-entrant nor safe for concurrent use; build one
    per logical request.

    Example:
        ```python
        uow = UnitOfWork(session_factory)

        async def work() -> Task:
            task = Task.create(title="Write report", user_id="u-1")
            await task_repository.save(task, uow)
            return task

        task = await uow.execute(work)
        ```
    """

    def __init__(
        self,
        session_factory: SessionFactory,
        *,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._session_factory = session_factory
        self._id_generator = id_generator or UUID4Generator()
        self._session: IStoreSession | None = None
        self._transaction_id: str | None = None
        self._change_sets: dict[type[Any], ChangeSet[Any]] = {}
        self._on_commit_hooks: deque[Callable[[], Awaitable[Any]]] = deque()

    # ── State ────────────────────────────────────────────────────

    @property
    def is_active(self) -> bool:
        return self._transaction_id is not None

    @property
    def transaction_id(self) -> str | None:
        return self._transaction_id

    @property
    def session(self) -> IStoreSession:
        """The store session of the active transaction."""
        if self._session is None:
            raise TransactionStateError("No active transaction")
        return self._session

    # ── Lifecycle ────────────────────────────────────────────────

    async def start(self) -> None:
        """Open a store session and begin a transaction.

        Raises:
            TransactionStateError: If a transaction is already active.
        """
        if self.is_active:
            raise TransactionStateError(
                f"Transaction {self._transaction_id} is already active"
            )
        session = self._session_factory()
        try:
            await session.begin()
        except Exception:
            await self._release(session)
            raise
        self._session = session
        self._transaction_id = self._id_generator.next_id()
        logger.debug("Transaction %s started", self._transaction_id)

    async def commit(self) -> None:
        """Flush tracked changes and commit.

        Raises:
            TransactionStateError: If no transaction is active.
            StoreError: If the flush or the store commit fails; the store has
                been rolled back by the time it propagates.
        """
        if self._session is None:
            raise TransactionStateError("Cannot commit: no active transaction")

        session = self._session
        transaction_id = self._transaction_id
        try:
            stored_versions = await self._flush(session)
            await session.commit()
        except Exception:
            logger.error(
                "Commit of transaction %s failed, rolling back",
                transaction_id,
                exc_info=True,
            )
            self._on_commit_hooks.clear()
            try:
                await session.rollback()
            except Exception:
                logger.error(
                    "Rollback of transaction %s failed",
                    transaction_id,
                    exc_info=True,
                )
            raise
        finally:
            await self._end(session)

        for entity, version in stored_versions:
            entity.set_version(version)
        logger.debug("Transaction %s committed", transaction_id)
        await self.trigger_commit_hooks()

    async def rollback(self) -> None:
        """Undo the active transaction. A no-op when nothing is active."""
        if self._session is None:
            logger.warning("rollback() called without an active transaction")
            return

        session = self._session
        transaction_id = self._transaction_id
        self._on_commit_hooks.clear()
        try:
            await session.rollback()
        finally:
            await self._end(session)
        logger.debug("Transaction %s rolled back", transaction_id)

    async def execute(self, work: Callable[[], Awaitable[T]]) -> T:
        """Run *work* inside a transaction.

        ``start()``, ``await work()``, ``commit()``. If ``work`` or the
        commit raises, the transaction is rolled back and the original
        exception propagates.
        """
        await self.start()
        try:
            result = await work()
            await self.commit()
        except BaseException:
            # A failed commit has already rolled back and released the session.
            if not self.is_active:
                raise
            try:
                await self.rollback()
            except Exception:
                logger.error(
                    "Rollback after failed unit of work raised", exc_info=True
                )
            raise
        return result

    @asynccontextmanager
    async def read_only(self) -> AsyncIterator[UnitOfWork]:
        """Transaction scope for reads: always rolled back, never committed."""
        await self.start()
        try:
            yield self
        finally:
            await self.rollback()

    # ── Change tracking ──────────────────────────────────────────

    def get_repository(self, entity_type: type[E]) -> ChangeSet[E]:
        """Return the ChangeSet for *entity_type*, creating it on first use."""
        change_set = self._change_sets.get(entity_type)
        if change_set is None:
            change_set = ChangeSet(entity_type)
            self._change_sets[entity_type] = change_set
        return change_set

    # ── Raw access ───────────────────────────────────────────────

    async def raw_query(
        self, sql: str, params: Mapping[str, Any] | None = None
    ) -> list[dict[str, Any]]:
        """Execute raw SQL inside the active transaction."""
        if self._session is None:
            raise TransactionStateError("Cannot run a query: no active transaction")
        return await self._session.raw_query(sql, params)

    # ── Hooks ────────────────────────────────────────────────────

    def on_commit(self, callback: Callable[[], Awaitable[Any]]) -> None:
        """Register an async callback to be executed after a successful commit.

        Hooks are discarded when the transaction rolls back or fails.

        Args:
            callback: An async function that takes no arguments.
        """
        if not self.is_active:
            raise TransactionStateError(
                "on_commit hooks can only be registered inside a transaction"
            )
        self._on_commit_hooks.append(callback)

    async def trigger_commit_hooks(self) -> None:
        """Execute all registered on_commit hooks.

        A failing hook is logged and never affects the committed data or
        the remaining hooks.
        """
        while self._on_commit_hooks:
            callback = self._on_commit_hooks.popleft()
            try:
                await callback()
            except Exception as exc:
                logger.error("Error in on_commit hook: %s", exc, exc_info=True)

    # ── Context manager ──────────────────────────────────────────

    async def __aenter__(self) -> UnitOfWork:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        """
        Exit the context manager.

        Commits (then runs hooks) on a clean exit, rolls back otherwise.
        Exceptions are never suppressed.
        """
        if exc_type is None:
            await self.commit()
        else:
            await self.rollback()

    # ── Internals ────────────────────────────────────────────────

    async def _flush(
        self, session: IStoreSession
    ) -> list[tuple[AggregateRoot, int]]:
        stored_versions: list[tuple[AggregateRoot, int]] = []
        for change_set in self._change_sets.values():
            if change_set.is_empty:
                continue
            logger.debug("Flushing %r", change_set)
            for entity in change_set.get_new():
                stored_versions.append((entity, await session.insert(entity)))
            for entity in change_set.get_dirty():
                stored_versions.append((entity, await session.update(entity)))
            for entity_id in change_set.get_removed():
                if not await session.delete(change_set.entity_type, entity_id):
                    logger.debug(
                        "%s %s was already absent from the store",
                        change_set.entity_type.__name__,
                        entity_id,
                    )
        return stored_versions

    async def _end(self, session: IStoreSession) -> None:
        self._session = None
        self._transaction_id = None
        for change_set in self._change_sets.values():
            change_set.clear()
        await self._release(session)

    @staticmethod
    async def _release(session: IStoreSession) -> None:
        try:
            await session.release()
        except Exception:
            logger.error("Failed to release store session", exc_info=True)


def unit_of_work_factory(
    session_factory: SessionFactory,
    *,
    id_generator: IIDGenerator | None = None,
) -> Callable[[], UnitOfWork]:
    """Return a callable producing a fresh UnitOfWork per request."""

    def factory() -> UnitOfWork:
        return UnitOfWork(session_factory, id_generator=id_generator)

    return factory
