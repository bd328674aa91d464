"""Command and query handlers for tasks.

Each handler is a thin adapter from one request type to the matching
service method; the services own transactions, caching and error
translation.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from ..cqrs.handler import CommandHandler, QueryHandler
from ..cqrs.response import PaginatedResult, ServiceResult
from ..domain.task import Task
from .commands import (
    AssignTaskCommand,
    BulkUpdateTaskStatusCommand,
    ChangeTaskStatusCommand,
    CreateTaskCommand,
    DeleteTaskCommand,
    FlagOverdueTasksCommand,
    UpdateTaskCommand,
)
from .domain_service import TaskStatistics
from .queries import (
    GetHighPriorityTasksQuery,
    GetOverdueTasksQuery,
    GetTaskByIdQuery,
    GetTasksQuery,
    GetTaskStatisticsQuery,
    GetUserTasksQuery,
    SearchTasksQuery,
)

if TYPE_CHECKING:
    from ..cqrs.registry import HandlerRegistry
    from .command_service import TaskCommandService
    from .query_service import TaskQueryService

logger = logging.getLogger(__name__)


# ── Commands ─────────────────────────────────────────────────────────


class _TaskCommandHandler:
    def __init__(self, service: TaskCommandService) -> None:
        self._service = service


class CreateTaskHandler(
    _TaskCommandHandler, CommandHandler[CreateTaskCommand, ServiceResult[Task]]
):
    async def handle(self, command: CreateTaskCommand) -> ServiceResult[Task]:
        return await self._service.create_task(command)


class UpdateTaskHandler(
    _TaskCommandHandler, CommandHandler[UpdateTaskCommand, ServiceResult[Task]]
):
    async def handle(self, command: UpdateTaskCommand) -> ServiceResult[Task]:
        return await self._service.update_task(command)


class ChangeTaskStatusHandler(
    _TaskCommandHandler,
    CommandHandler[ChangeTaskStatusCommand, ServiceResult[Task]],
):
    async def handle(self, command: ChangeTaskStatusCommand) -> ServiceResult[Task]:
        return await self._service.change_task_status(command)


class DeleteTaskHandler(
    _TaskCommandHandler, CommandHandler[DeleteTaskCommand, ServiceResult[None]]
):
    async def handle(self, command: DeleteTaskCommand) -> ServiceResult[None]:
        return await self._service.delete_task(command)


class AssignTaskHandler(
    _TaskCommandHandler, CommandHandler[AssignTaskCommand, ServiceResult[Task]]
):
    async def handle(self, command: AssignTaskCommand) -> ServiceResult[Task]:
        return await self._service.assign_task(command)


class BulkUpdateTaskStatusHandler(
    _TaskCommandHandler,
    CommandHandler[
        BulkUpdateTaskStatusCommand, ServiceResult[list[dict[str, Any]]]
    ],
):
    async def handle(
        self, command: BulkUpdateTaskStatusCommand
    ) -> ServiceResult[list[dict[str, Any]]]:
        return await self._service.bulk_update_task_status(command)


class FlagOverdueTasksHandler(
    _TaskCommandHandler,
    CommandHandler[FlagOverdueTasksCommand, ServiceResult[list[str]]],
):
    async def handle(
        self, command: FlagOverdueTasksCommand
    ) -> ServiceResult[list[str]]:
        return await self._service.flag_overdue_tasks(command)


# ── Queries ──────────────────────────────────────────────────────────


class _TaskQueryHandler:
    def __init__(self, service: TaskQueryService) -> None:
        self._service = service


class GetTaskByIdHandler(
    _TaskQueryHandler, QueryHandler[GetTaskByIdQuery, ServiceResult[Task]]
):
    async def handle(self, query: GetTaskByIdQuery) -> ServiceResult[Task]:
        return await self._service.get_task_by_id(query)


class GetTasksHandler(
    _TaskQueryHandler,
    QueryHandler[GetTasksQuery, ServiceResult[PaginatedResult[Task]]],
):
    async def handle(
        self, query: GetTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        return await self._service.get_tasks(query)


class SearchTasksHandler(
    _TaskQueryHandler,
    QueryHandler[SearchTasksQuery, ServiceResult[PaginatedResult[Task]]],
):
    async def handle(
        self, query: SearchTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        return await self._service.search_tasks(query)


class GetUserTasksHandler(
    _TaskQueryHandler, QueryHandler[GetUserTasksQuery, ServiceResult[list[Task]]]
):
    async def handle(self, query: GetUserTasksQuery) -> ServiceResult[list[Task]]:
        return await self._service.get_user_tasks(query)


class GetOverdueTasksHandler(
    _TaskQueryHandler,
    QueryHandler[GetOverdueTasksQuery, ServiceResult[PaginatedResult[Task]]],
):
    async def handle(
        self, query: GetOverdueTasksQuery
    ) -> ServiceResult[PaginatedResult[Task]]:
        return await self._service.get_overdue_tasks(query)


class GetHighPriorityTasksHandler(
    _TaskQueryHandler,
    QueryHandler[GetHighPriorityTasksQuery, ServiceResult[list[Task]]],
):
    async def handle(
        self, query: GetHighPriorityTasksQuery
    ) -> ServiceResult[list[Task]]:
        return await self._service.get_high_priority_tasks(query)


class GetTaskStatisticsHandler(
    _TaskQueryHandler,
    QueryHandler[GetTaskStatisticsQuery, ServiceResult[TaskStatistics]],
):
    async def handle(
        self, query: GetTaskStatisticsQuery
    ) -> ServiceResult[TaskStatistics]:
        return await self._service.get_task_statistics(query)


# ── Registration ─────────────────────────────────────────────────────

COMMAND_HANDLERS: dict[type[Any], type[_TaskCommandHandler]] = {
    CreateTaskCommand: CreateTaskHandler,
    UpdateTaskCommand: UpdateTaskHandler,
    ChangeTaskStatusCommand: ChangeTaskStatusHandler,
    DeleteTaskCommand: DeleteTaskHandler,
    AssignTaskCommand: AssignTaskHandler,
    BulkUpdateTaskStatusCommand: BulkUpdateTaskStatusHandler,
    FlagOverdueTasksCommand: FlagOverdueTasksHandler,
}

QUERY_HANDLERS: dict[type[Any], type[_TaskQueryHandler]] = {
    GetTaskByIdQuery: GetTaskByIdHandler,
    GetTasksQuery: GetTasksHandler,
    SearchTasksQuery: SearchTasksHandler,
    GetUserTasksQuery: GetUserTasksHandler,
    GetOverdueTasksQuery: GetOverdueTasksHandler,
    GetHighPriorityTasksQuery: GetHighPriorityTasksHandler,
    GetTaskStatisticsQuery: GetTaskStatisticsHandler,
}


def register_task_handlers(
    registry: HandlerRegistry,
    command_service: TaskCommandService,
    query_service: TaskQueryService,
) -> None:
    """Register one handler instance per task command and query type."""
    for command_type, command_handler in COMMAND_HANDLERS.items():
        registry.register_command_handler(
            command_type, command_handler(command_service)
        )
    for query_type, query_handler in QUERY_HANDLERS.items():
        registry.register_query_handler(query_type, query_handler(query_service))
    logger.info(
        "Registered %d task command handler(s) and %d query handler(s)",
        len(COMMAND_HANDLERS),
        len(QUERY_HANDLERS),
    )
