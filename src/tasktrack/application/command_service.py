"""TaskCommandService: transactional task writes with post-commit effects."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any, TypeVar

from ..cqrs.response import ServiceResult
from ..primitives.exceptions import DomainError
from . import cache_keys

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from ..cqrs.command import Command
    from ..domain.task import Task
    from ..persistence.repository import TaskRepository
    from ..ports.cache import ICacheService
    from ..ports.job_queue import IJobQueue
    from ..primitives.clock import IClock
    from ..uow.unit_of_work import UnitOfWork
    from .commands import (
        AssignTaskCommand,
        BulkUpdateTaskStatusCommand,
        ChangeTaskStatusCommand,
        CreateTaskCommand,
        DeleteTaskCommand,
        FlagOverdueTasksCommand,
        UpdateTaskCommand,
    )
    from .domain_service import TaskDomainService

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERDUE_JOB_NAME = "overdue-tasks-notification"


class TaskCommandService:
    """
    Runs each task command in its own unit of work.

    Cache invalidation and job hand-off are registered as ``on_commit``
    hooks, so they happen only once the transaction is durable. Neither can
    fail the command: cache deletes are best-effort and hook errors are
    logged by the unit of work.

    Business failures come back as ``ServiceResult.fail`` with the domain
    message; anything else is logged and reported generically.
    """

    def __init__(
        self,
        uow_factory: Callable[[], UnitOfWork],
        domain_service: TaskDomainService,
        tasks: TaskRepository,
        cache: ICacheService,
        job_queue: IJobQueue,
        *,
        clock: IClock,
        overdue_job_name: str = OVERDUE_JOB_NAME,
    ) -> None:
        self._uow_factory = uow_factory
        self._domain = domain_service
        self._tasks = tasks
        self._cache = cache
        self._job_queue = job_queue
        self._clock = clock
        self._overdue_job_name = overdue_job_name

    async def create_task(self, command: CreateTaskCommand) -> ServiceResult[Task]:
        uow = self._uow_factory()

        async def work() -> Task:
            task = await self._domain.create_task(
                uow,
                title=command.title,
                user_id=command.user_id,
                description=command.description,
                priority=command.priority,
                due_date=command.due_date,
            )
            self._invalidate_after_commit(uow, [task.id], [task.user_id])
            return task

        return await self._run("creating task", command, uow, work)

    async def update_task(self, command: UpdateTaskCommand) -> ServiceResult[Task]:
        uow = self._uow_factory()

        async def work() -> Task:
            task = await self._domain.update_task(
                uow, command.task_id, command.changes(), command.actor_id
            )
            self._invalidate_after_commit(uow, [task.id], [task.user_id])
            return task

        return await self._run("updating task", command, uow, work)

    async def change_task_status(
        self, command: ChangeTaskStatusCommand
    ) -> ServiceResult[Task]:
        uow = self._uow_factory()

        async def work() -> Task:
            task = await self._domain.change_task_status(
                uow, command.task_id, command.status, command.actor_id
            )
            self._invalidate_after_commit(uow, [task.id], [task.user_id])
            return task

        return await self._run("changing task status", command, uow, work)

    async def delete_task(self, command: DeleteTaskCommand) -> ServiceResult[None]:
        uow = self._uow_factory()

        async def work() -> None:
            task = await self._domain.delete_task(
                uow, command.task_id, command.actor_id
            )
            self._invalidate_after_commit(uow, [task.id], [task.user_id])

        return await self._run("deleting task", command, uow, work)

    async def assign_task(self, command: AssignTaskCommand) -> ServiceResult[Task]:
        uow = self._uow_factory()

        async def work() -> Task:
            moved = await self._domain.assign_task(
                uow, command.task_id, command.new_user_id, command.actor_id
            )
            self._invalidate_after_commit(
                uow,
                [moved.previous.id, moved.current.id],
                [moved.previous.user_id, moved.current.user_id],
            )
            return moved.current

        return await self._run("assigning task", command, uow, work)

    async def bulk_update_task_status(
        self, command: BulkUpdateTaskStatusCommand
    ) -> ServiceResult[list[dict[str, Any]]]:
        uow = self._uow_factory()

        async def work() -> list[dict[str, Any]]:
            report = await self._domain.bulk_update_task_status(
                uow, command.task_ids, command.status, command.actor_id
            )
            self._invalidate_after_commit(
                uow,
                command.task_ids,
                {task.user_id for task in report.succeeded},
            )
            return report.as_rows(command.task_ids)

        result = await self._run("updating task statuses", command, uow, work)
        if not result.success or result.data is None:
            return result
        succeeded = sum(1 for row in result.data if row["success"])
        return ServiceResult.ok(
            result.data,
            **result.metadata,
            total_tasks=len(result.data),
            successful_updates=succeeded,
        )

    async def flag_overdue_tasks(
        self, command: FlagOverdueTasksCommand
    ) -> ServiceResult[list[str]]:
        """Enqueue one notification job per overdue task, after commit."""
        uow = self._uow_factory()

        async def work() -> list[str]:
            overdue = await self._tasks.find_overdue(self._clock, uow)
            if command.limit is not None:
                overdue = overdue[: command.limit]
            if overdue:
                uow.on_commit(self._enqueue_overdue_jobs(overdue))
            return [task.id for task in overdue]

        return await self._run("flagging overdue tasks", command, uow, work)

    # ── Internals ────────────────────────────────────────────────

    async def _run(
        self,
        action: str,
        command: Command,
        uow: UnitOfWork,
        work: Callable[[], Awaitable[T]],
    ) -> ServiceResult[T]:
        started = time.perf_counter()
        logger.info("%s (command %s)", action.capitalize(), command.command_id)
        try:
            data = await uow.execute(work)
        except DomainError as exc:
            logger.info(
                "Failed %s (command %s): %s", action, command.command_id, exc
            )
            return ServiceResult.fail(str(exc), command_id=command.command_id)
        except Exception:
            logger.error(
                "Internal error while %s (command %s)",
                action,
                command.command_id,
                exc_info=True,
            )
            return ServiceResult.fail(
                f"Internal error while {action}", command_id=command.command_id
            )
        duration_ms = round((time.perf_counter() - started) * 1000, 2)
        logger.info(
            "Done %s (command %s) in %.2f ms", action, command.command_id, duration_ms
        )
        return ServiceResult.ok(
            data, command_id=command.command_id, duration_ms=duration_ms
        )

    def _invalidate_after_commit(
        self, uow: UnitOfWork, task_ids: Iterable[str], owner_ids: Iterable[str]
    ) -> None:
        keys = cache_keys.keys_for_change(task_ids, owner_ids)

        async def invalidate() -> None:
            for key in keys:
                try:
                    await self._cache.delete(key)
                except Exception:
                    logger.warning(
                        "Cache invalidation failed for %s", key, exc_info=True
                    )

        uow.on_commit(invalidate)

    def _enqueue_overdue_jobs(
        self, tasks: list[Task]
    ) -> Callable[[], Awaitable[None]]:
        async def enqueue() -> None:
            for task in tasks:
                await self._job_queue.enqueue(
                    self._overdue_job_name,
                    {
                        "task_id": task.id,
                        "user_id": task.user_id,
                        "due_date": task.due_date.isoformat()
                        if task.due_date
                        else None,
                    },
                )
            logger.info("Enqueued %d overdue task notification(s)", len(tasks))

        return enqueue
