"""Task queries."""

from __future__ import annotations

from pydantic import Field

from ..cqrs.query import Query
from ..domain.task import TaskPriority, TaskStatus


class GetTaskByIdQuery(Query):
    task_id: str


class GetTasksQuery(Query):
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    user_id: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class GetUserTasksQuery(Query):
    user_id: str
    status: TaskStatus | None = None


class GetOverdueTasksQuery(Query):
    user_id: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)


class GetHighPriorityTasksQuery(Query):
    user_id: str


class GetTaskStatisticsQuery(Query):
    user_id: str | None = None


class SearchTasksQuery(Query):
    """Tasks whose title or description contains ``search_term``."""

    search_term: str = Field(min_length=1)
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    user_id: str | None = None
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=100)
