"""build_application: one-call wiring of the task tracker object graph."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import create_async_engine

from ..adapters.memory.cache import InMemoryCacheService
from ..adapters.memory.job_queue import InMemoryJobQueue
from ..cqrs.bus import CommandBus, QueryBus
from ..cqrs.mediator import Mediator
from ..cqrs.registry import HandlerRegistry
from ..persistence.repository import TaskRepository, UserRepository
from ..persistence.sqlalchemy.session import SQLAlchemyStore
from ..primitives.clock import SystemClock
from ..uow.unit_of_work import unit_of_work_factory
from .command_service import TaskCommandService
from .config import TaskTrackSettings
from .domain_service import TaskDomainService
from .handlers import register_task_handlers
from .query_service import TaskQueryService

if TYPE_CHECKING:
    from collections.abc import Callable

    from sqlalchemy.ext.asyncio import AsyncEngine

    from ..cqrs.command import Command
    from ..cqrs.query import Query
    from ..ports.cache import ICacheService
    from ..ports.job_queue import IJobQueue
    from ..ports.store import SessionFactory
    from ..primitives.clock import IClock
    from ..primitives.id_generator import IIDGenerator
    from ..uow.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class Application:
    """Container returned by :func:`build_application`.

    Attributes:
        settings: The settings the graph was built from.
        mediator: Entry point for every command and query.
        command_bus: The command bus behind the mediator.
        query_bus: The query bus behind the mediator.
        registry: Handler registry shared by both buses.
        uow_factory: Produces a fresh ``UnitOfWork`` per request.
        tasks: Task repository.
        users: User repository.
        cache: Cache used by the query side and invalidated by commands.
        job_queue: Receives post-commit background jobs.
        store: The ``SQLAlchemyStore`` when the graph owns one, else None.
    """

    def __init__(
        self,
        *,
        settings: TaskTrackSettings,
        mediator: Mediator,
        command_bus: CommandBus,
        query_bus: QueryBus,
        registry: HandlerRegistry,
        uow_factory: Callable[[], UnitOfWork],
        tasks: TaskRepository,
        users: UserRepository,
        cache: ICacheService,
        job_queue: IJobQueue,
        store: SQLAlchemyStore | None = None,
    ) -> None:
        self.settings = settings
        self.mediator = mediator
        self.command_bus = command_bus
        self.query_bus = query_bus
        self.registry = registry
        self.uow_factory = uow_factory
        self.tasks = tasks
        self.users = users
        self.cache = cache
        self.job_queue = job_queue
        self.store = store

    async def send(self, command: Command) -> object:
        return await self.mediator.send(command)

    async def query(self, query: Query) -> object:
        return await self.mediator.query(query)

    async def startup(self) -> None:
        """Create the schema when the application owns a SQL store."""
        if self.store is not None:
            await self.store.create_schema()

    async def shutdown(self) -> None:
        if self.store is not None:
            await self.store.dispose()


def build_engine(settings: TaskTrackSettings) -> AsyncEngine:
    """Create the async engine described by *settings*."""
    return create_async_engine(settings.database_url, echo=settings.echo_sql)


def build_application(
    settings: TaskTrackSettings | None = None,
    *,
    session_factory: SessionFactory | None = None,
    cache: ICacheService | None = None,
    job_queue: IJobQueue | None = None,
    clock: IClock | None = None,
    id_generator: IIDGenerator | None = None,
) -> Application:
    """Wire the complete application in one call.

    1. Store: a ``SQLAlchemyStore`` over :func:`build_engine` unless a
       ``session_factory`` (for example ``InMemoryStore().open_session``)
       is given.
    2. Unit of Work factory and repositories.
    3. Domain, command and query services.
    4. Handler registry, buses and mediator.

    Example
    -------
    ::

        app = build_application(TaskTrackSettings())
        await app.startup()
        result = await app.send(CreateTaskCommand(title="Ship", user_id=uid))
    """
    settings = settings or TaskTrackSettings()
    clock = clock or SystemClock()

    # 1. Store
    store: SQLAlchemyStore | None = None
    if session_factory is None:
        store = SQLAlchemyStore(build_engine(settings))
        session_factory = store.open_session

    # 2. Unit of Work and repositories
    uow_factory = unit_of_work_factory(session_factory)
    tasks = TaskRepository()
    users = UserRepository()

    # 3. Services
    cache = cache if cache is not None else InMemoryCacheService()
    job_queue = job_queue if job_queue is not None else InMemoryJobQueue()
    domain_service = TaskDomainService(
        tasks, users, clock=clock, id_generator=id_generator
    )
    command_service = TaskCommandService(
        uow_factory,
        domain_service,
        tasks,
        cache,
        job_queue,
        clock=clock,
        overdue_job_name=settings.overdue_job_name,
    )
    query_service = TaskQueryService(
        uow_factory,
        domain_service,
        tasks,
        cache,
        clock=clock,
        task_ttl=settings.task_cache_ttl,
        listing_ttl=settings.listing_cache_ttl,
        stats_ttl=settings.stats_cache_ttl,
    )

    # 4. Dispatch
    registry = HandlerRegistry()
    register_task_handlers(registry, command_service, query_service)
    command_bus = CommandBus(registry)
    query_bus = QueryBus(registry)
    mediator = Mediator(command_bus, query_bus)

    logger.info(
        "Application built: store=%s, %d command type(s), %d query type(s)",
        "sqlalchemy" if store is not None else "custom",
        len(command_bus.registered_types()),
        len(query_bus.registered_types()),
    )

    return Application(
        settings=settings,
        mediator=mediator,
        command_bus=command_bus,
        query_bus=query_bus,
        registry=registry,
        uow_factory=uow_factory,
        tasks=tasks,
        users=users,
        cache=cache,
        job_queue=job_queue,
        store=store,
    )


__all__ = ["Application", "build_application", "build_engine"]
