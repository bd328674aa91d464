"""Task commands."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from ..cqrs.command import Command
from ..domain.task import TaskPriority, TaskStatus


class CreateTaskCommand(Command):
    title: str
    user_id: str
    description: str | None = None
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None


class UpdateTaskCommand(Command):
    """Partial update: only fields explicitly passed are applied.

    Passing ``description=None`` or ``due_date=None`` clears the value;
    leaving them out keeps it.
    """

    task_id: str
    actor_id: str
    title: str | None = None
    description: str | None = None
    priority: TaskPriority | None = None
    due_date: datetime | None = None

    def changes(self) -> dict[str, object]:
        editable = {"title", "description", "priority", "due_date"}
        return {
            name: getattr(self, name)
            for name in self.model_fields_set & editable
        }


class ChangeTaskStatusCommand(Command):
    task_id: str
    status: TaskStatus
    actor_id: str


class DeleteTaskCommand(Command):
    task_id: str
    actor_id: str


class AssignTaskCommand(Command):
    task_id: str
    new_user_id: str
    actor_id: str


class BulkUpdateTaskStatusCommand(Command):
    task_ids: tuple[str, ...] = Field(min_length=1)
    status: TaskStatus
    actor_id: str


class FlagOverdueTasksCommand(Command):
    """Find overdue tasks and hand each one to the notification job."""

    limit: int | None = Field(default=None, ge=1)
