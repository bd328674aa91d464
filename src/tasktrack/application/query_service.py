"""TaskQueryService: read-only task lookups with read-through caching."""

from __future__ import annotations

import dataclasses
import logging
import time
from typing import TYPE_CHECKING, Any, TypeVar

from ..cqrs.response import PaginatedResult, ServiceResult
from ..primitives.exceptions import DomainError, EntityNotFoundError
from ..specifications.base import and_
from ..specifications.task import TaskSpecifications
from . import cache_keys

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from ..cqrs.query import Query
    from ..domain.task import Task, TaskPriority, TaskStatus
    from ..persistence.repository import TaskRepository
    from ..ports.cache import ICacheService
    from ..primitives.clock import IClock
    from ..specifications.base import ISpecification
    from ..uow.unit_of_work import UnitOfWork
    from .domain_service import TaskDomainService, TaskStatistics
    from .queries import (
        GetHighPriorityTasksQuery,
        GetOverdueTasksQuery,
        GetTaskByIdQuery,
        GetTasksQuery,
        GetTaskStatisticsQuery,
        GetUserTasksQuery,
        SearchTasksQuery,
    )

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskQueryService:
    """
    Answers task queries inside a read-only unit of work (started, then
    always rolled back).

    Single tasks, per-user listings and statistics are cached; cache
    failures degrade to a store read and are never reported to the caller.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        domain_service: TaskDomainService,
        tasks: TaskRepository,
        cache: ICacheService,
        *,
        clock: IClock,
        task_ttl: int = 300,
        listing_ttl: int = 120,
        stats_ttl: int = 600,
    ) -> None:
        self._uow_factory = uow_factory
        self._domain = domain_service
        self._tasks = tasks
        self._cache = cache
        self._clock = clock
        self._task_ttl = task_ttl
        self._listing_ttl = listing_ttl
        self._stats_ttl = stats_ttl

    async def get_task_by_id(self, query: GetTaskByIdQuery) -> ServiceResult[Task]:
        async def read(uow: UnitOfWork) -> Task:
            task = await self._tasks.find_by_id(query.task_id, uow)
            if task is None:
                raise EntityNotFoundError("Task", query.task_id)
            return task

        return await self._cached(
            "getting task",
            query,
            cache_keys.task_key(query.task_id),
            self._task_ttl,
            read,
        )

    async def get_tasks(
        self, query: GetTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        filters = _filters(query.status, query.priority, query.user_id)
        spec = and_(*filters) if filters else None

        async def read(uow: UnitOfWork) -> PaginatedResult[Task]:
            return await self._page(uow, spec, query.page, query.limit)

        return await self._run("listing tasks", query, read)

    async def search_tasks(
        self, query: SearchTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        spec = and_(
            TaskSpecifications.matching_text(query.search_term),
            *_filters(query.status, query.priority, query.user_id),
        )

        async def read(uow: UnitOfWork) -> PaginatedResult[Task]:
            return await self._page(uow, spec, query.page, query.limit)

        return await self._run("searching tasks", query, read)

    async def get_user_tasks(
        self, query: GetUserTasksQuery
    ) -> ServiceResult[list[Task]]:
        spec: ISpecification[Task] = TaskSpecifications.by_owner(query.user_id)
        if query.status is not None:
            spec = and_(spec, TaskSpecifications.by_status(query.status))

        async def read(uow: UnitOfWork) -> list[Task]:
            return await self._tasks.find_by_specification(
                spec, uow, order_by="created_at", descending=True
            )

        return await self._cached(
            "listing user tasks",
            query,
            cache_keys.user_tasks_key(query.user_id, query.status),
            self._listing_ttl,
            read,
        )

    async def get_overdue_tasks(
        self, query: GetOverdueTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        spec = (
            TaskSpecifications.overdue_for_user(query.user_id, self._clock)
            if query.user_id
            else TaskSpecifications.overdue(self._clock)
        )

        async def read(uow: UnitOfWork) -> PaginatedResult[Task]:
            return await self._page(
                uow, spec, query.page, query.limit, order_by="due_date"
            )

        return await self._run("listing overdue tasks", query, read)

    async def get_high_priority_tasks(
        self, query: GetHighPriorityTasksQuery
    ) -> ServiceResult[list[Task]]:
        async def read(uow: UnitOfWork) -> list[Task]:
            return await self._tasks.find_by_specification(
                TaskSpecifications.high_priority_for_user(query.user_id),
                uow,
                order_by="due_date",
            )

        return await self._cached(
            "listing high priority tasks",
            query,
            cache_keys.high_priority_key(query.user_id),
            self._task_ttl,
            read,
        )

    async def get_task_statistics(
        self, query: GetTaskStatisticsQuery
    ) -> ServiceResult[TaskStatistics]:
        async def read(uow: UnitOfWork) -> TaskStatistics:
            return await self._domain.task_statistics(uow, query.user_id)

        return await self._cached(
            "computing task statistics",
            query,
            cache_keys.stats_key(query.user_id),
            self._stats_ttl,
            read,
        )

    # ── Internals ────────────────────────────────────────────────

    async def _page(
        self,
        uow: UnitOfWork,
        spec: ISpecification[Task] | None,
        page: int,
        limit: int,
        *,
        order_by: str = "created_at",
    ) -> PaginatedResult[Task]:
        total = await self._tasks.count_by_specification(spec, uow)
        items = await self._tasks.find_by_specification(
            spec,
            uow,
            order_by=order_by,
            descending=order_by == "created_at",
            limit=limit,
            offset=(page - 1) * limit,
        )
        return PaginatedResult(items=items, total=total, page=page, limit=limit)

    async def _cached(
        self,
        action: str,
        query: Query,
        key: str,
        ttl: int,
        read: Callable[[UnitOfWork], Awaitable[T]],
    ) -> ServiceResult[T]:
        cached = await self._cache_get(key)
        if cached is not None:
            logger.debug("Cache hit for %s", key)
            return ServiceResult.ok(
                _copy(cached), query_id=query.query_id, cached=True
            )

        result = await self._run(action, query, read)
        if result.success and result.data is not None:
            await self._cache_set(key, _copy(result.data), ttl)
        return result

    async def _run(
        self,
        action: str,
        query: Query,
        read: Callable[[UnitOfWork], Awaitable[T]],
    ) -> ServiceResult[T]:
        started = time.perf_counter()
        try:
            async with self._uow_factory().read_only() as uow:
                data = await read(uow)
        except DomainError as exc:
            logger.info("Failed %s (query %s): %s", action, query.query_id, exc)
            return ServiceResult.fail(str(exc), query_id=query.query_id)
        except Exception:
            logger.error(
                "Internal error while %s (query %s)",
                action,
                query.query_id,
                exc_info=True,
            )
            return ServiceResult.fail(
                f"Internal error while {action}", query_id=query.query_id
            )
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.debug(
            "Done %s (query %s) in %.2f ms", action, query.query_id, duration_ms
        )
        return ServiceResult.ok(
            data, query_id=query.query_id, duration_ms=duration_ms, cached=False
        )

    async def _cache_get(self, key: str) -> Any | None:
        try:
            return await self._cache.get(key)
        except Exception:
            logger.warning("Cache read failed for %s", key, exc_info=True)
            return None

    async def _cache_set(self, key: str, value: Any, ttl: int) -> None:
        if ttl <= 0:
            return
        try:
            await self._cache.set(key, value, ttl)
        except Exception:
            logger.warning("Cache write failed for %s", key, exc_info=True)


def _copy(value: Any) -> Any:
    """Detach cached values from the objects handed to callers."""
    if isinstance(value, list):
        return [_copy(item) for item in value]
    if hasattr(value, "model_copy"):
        return value.model_copy(deep=True)
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return dataclasses.replace(value)
    return value


def _filters(
    status: TaskStatus | None, priority: TaskPriority | None, user_id: str | None
) -> list[ISpecification[Task]]:
    filters: list[ISpecification[Task]] = []
    if status is not None:
        filters.append(TaskSpecifications.by_status(status))
    if priority is not None:
        filters.append(TaskSpecifications.by_priority(priority))
    if user_id is not None:
        filters.append(TaskSpecifications.by_owner(user_id))
    return filters
