"""Task business operations spanning tasks and users.

Every operation runs inside a caller-provided unit of work: writes are
tracked by the unit's ChangeSets, reads go through the repositories.
Business rule violations raise ``DomainError`` subclasses.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..domain.task import Task, TaskPriority, TaskStatus
from ..primitives.exceptions import (
    DomainError,
    EntityNotFoundError,
    PermissionDeniedError,
)
from ..primitives.id_generator import UUID4Generator
from ..specifications.base import and_
from ..specifications.task import TaskSpecifications

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping
    from datetime import datetime

    from ..domain.user import User
    from ..persistence.repository import TaskRepository, UserRepository
    from ..primitives.clock import IClock
    from ..primitives.id_generator import IIDGenerator
    from ..specifications.base import ISpecification
    from ..uow.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TaskReassignment:
    previous: Task
    current: Task


@dataclass
class BulkStatusReport:
    """Per-task outcome of a bulk status change."""

    succeeded: list[Task] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)

    def as_rows(self, task_ids: Iterable[str]) -> list[dict[str, Any]]:
        done = {task.id for task in self.succeeded}
        rows: list[dict[str, Any]] = []
        for task_id in task_ids:
            if task_id in done:
                rows.append(
                    {
                        "task_id": task_id,
                        "success": True,
                        "message": "Task status updated successfully",
                    }
                )
            else:
                rows.append(
                    {
                        "task_id": task_id,
                        "success": False,
                        "message": self.failed.get(task_id, "Unknown error"),
                    }
                )
        return rows


@dataclass(frozen=True)
class TaskStatistics:
    total: int
    by_status: dict[str, int]
    by_priority: dict[str, int]
    overdue: int


class TaskDomainService:
    def __init__(
        self,
        tasks: TaskRepository,
        users: UserRepository,
        *,
        clock: IClock,
        id_generator: IIDGenerator | None = None,
    ) -> None:
        self._tasks = tasks
        self._users = users
        self._clock = clock
        self._id_generator = id_generator or UUID4Generator()

    # ── Writes ───────────────────────────────────────────────────

    async def create_task(
        self,
        uow: UnitOfWork,
        *,
        title: str,
        user_id: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: datetime | None = None,
    ) -> Task:
        await self._require_user(uow, user_id)
        task = Task.create(
            title=title,
            user_id=user_id,
            description=description,
            priority=priority,
            due_date=due_date,
            id_generator=self._id_generator,
            now=self._clock.now(),
        )
        return await self._tasks.save(task, uow)

    async def update_task(
        self,
        uow: UnitOfWork,
        task_id: str,
        changes: Mapping[str, Any],
        actor_id: str,
    ) -> Task:
        task = await self._accessible_task(uow, task_id, actor_id, "update")
        now = self._clock.now()
        if "title" in changes and changes["title"] is not None:
            task.update_title(changes["title"], now)
        if "description" in changes:
            task.update_description(changes["description"], now)
        if "priority" in changes and changes["priority"] is not None:
            task.update_priority(TaskPriority(changes["priority"]), now)
        if "due_date" in changes:
            task.update_due_date(changes["due_date"], now)
        return await self._tasks.save(task, uow)

    async def change_task_status(
        self, uow: UnitOfWork, task_id: str, status: TaskStatus, actor_id: str
    ) -> Task:
        task = await self._accessible_task(uow, task_id, actor_id, "change status of")
        task.transition_to(TaskStatus(status), self._clock.now())
        return await self._tasks.save(task, uow)

    async def delete_task(self, uow: UnitOfWork, task_id: str, actor_id: str) -> Task:
        task = await self._accessible_task(uow, task_id, actor_id, "delete")
        await self._tasks.delete(task.id, uow)
        return task

    async def assign_task(
        self, uow: UnitOfWork, task_id: str, new_user_id: str, actor_id: str
    ) -> TaskReassignment:
        """Move a task to another user.

        Only admins and the current owner may reassign. The task is
        re-created for the new owner (fresh id and timestamps) and the
        original is removed.
        """
        task = await self._require_task(uow, task_id)
        await self._require_user(uow, new_user_id, label="Target user")
        assigner = await self._require_user(uow, actor_id, label="Assigning user")
        if not (assigner.is_admin() or task.belongs_to(assigner.id)):
            raise PermissionDeniedError("Insufficient permissions to assign this task")

        reassigned = Task.create(
            title=task.title,
            user_id=new_user_id,
            description=task.description,
            priority=task.priority,
            due_date=task.due_date,
            id_generator=self._id_generator,
            now=self._clock.now(),
        )
        await self._tasks.save(reassigned, uow)
        await self._tasks.delete(task.id, uow)
        return TaskReassignment(previous=task, current=reassigned)

    async def bulk_update_task_status(
        self,
        uow: UnitOfWork,
        task_ids: Iterable[str],
        status: TaskStatus,
        actor_id: str,
    ) -> BulkStatusReport:
        """Apply *status* to each task independently.

        A business failure on one task is recorded in the report and does
        not stop the others; infrastructure failures still abort the whole
        unit of work.
        """
        report = BulkStatusReport()
        for task_id in dict.fromkeys(task_ids):
            try:
                task = await self.change_task_status(uow, task_id, status, actor_id)
            except DomainError as exc:
                logger.debug("Bulk status change skipped %s: %s", task_id, exc)
                report.failed[task_id] = str(exc)
            else:
                report.succeeded.append(task)
        return report

    # ── Reads ────────────────────────────────────────────────────

    async def task_statistics(
        self, uow: UnitOfWork, user_id: str | None = None
    ) -> TaskStatistics:
        """Counts by status, priority and overdue-ness, computed in the store."""
        owner = TaskSpecifications.by_owner(user_id) if user_id else None

        def scoped(spec: ISpecification[Task]) -> ISpecification[Task]:
            return spec if owner is None else and_(owner, spec)

        total = await self._tasks.count_by_specification(owner, uow)
        by_status = {
            status.value: await self._tasks.count_by_specification(
                scoped(TaskSpecifications.by_status(status)), uow
            )
            for status in TaskStatus
        }
        by_priority = {
            priority.value: await self._tasks.count_by_specification(
                scoped(TaskSpecifications.by_priority(priority)), uow
            )
            for priority in TaskPriority
        }
        overdue = await self._tasks.count_by_specification(
            scoped(TaskSpecifications.overdue(self._clock)), uow
        )
        return TaskStatistics(
            total=total,
            by_status=by_status,
            by_priority=by_priority,
            overdue=overdue,
        )

    # ── Helpers ──────────────────────────────────────────────────

    async def _require_task(self, uow: UnitOfWork, task_id: str) -> Task:
        task = await self._tasks.find_by_id(task_id, uow)
        if task is None:
            raise EntityNotFoundError("Task", task_id)
        return task

    async def _require_user(
        self, uow: UnitOfWork, user_id: str, *, label: str = "User"
    ) -> User:
        user = await self._users.find_by_id(user_id, uow)
        if user is None:
            raise EntityNotFoundError(label, user_id)
        return user

    async def _accessible_task(
        self, uow: UnitOfWork, task_id: str, actor_id: str, action: str
    ) -> Task:
        task = await self._require_task(uow, task_id)
        actor = await self._require_user(uow, actor_id)
        if not actor.can_access_task(task.user_id):
            raise PermissionDeniedError(
                f"Insufficient permissions to {action} this task"
            )
        return task
