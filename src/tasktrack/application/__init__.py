"""Task tracker application layer: commands, queries, services, wiring."""

from __future__ import annotations

from .bootstrap import Application, build_application, build_engine
from .command_service import OVERDUE_JOB_NAME, TaskCommandService
from .commands import (
    AssignTaskCommand,
    BulkUpdateTaskStatusCommand,
    ChangeTaskStatusCommand,
    CreateTaskCommand,
    DeleteTaskCommand,
    FlagOverdueTasksCommand,
    UpdateTaskCommand,
)
from .config import TaskTrackSettings, configure_logging
from .domain_service import (
    BulkStatusReport,
    TaskDomainService,
    TaskReassignment,
    TaskStatistics,
)
from .handlers import register_task_handlers
from .queries import (
    GetHighPriorityTasksQuery,
    GetOverdueTasksQuery,
    GetTaskByIdQuery,
    GetTasksQuery,
    GetTaskStatisticsQuery,
    GetUserTasksQuery,
    SearchTasksQuery,
)
from .query_service import TaskQueryService

__all__ = [
    "OVERDUE_JOB_NAME",
    "Application",
    "AssignTaskCommand",
    "BulkStatusReport",
    "BulkUpdateTaskStatusCommand",
    "ChangeTaskStatusCommand",
    "CreateTaskCommand",
    "DeleteTaskCommand",
    "FlagOverdueTasksCommand",
    "GetHighPriorityTasksQuery",
    "GetOverdueTasksQuery",
    "GetTaskByIdQuery",
    "GetTaskStatisticsQuery",
    "GetTasksQuery",
    "GetUserTasksQuery",
    "SearchTasksQuery",
    "TaskCommandService",
    "TaskDomainService",
    "TaskQueryService",
    "TaskReassignment",
    "TaskStatistics",
    "TaskTrackSettings",
    "UpdateTaskCommand",
    "build_application",
    "build_engine",
    "configure_logging",
    "register_task_handlers",
]
