"""Handler base classes."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

from .command import Command
from .query import Query

TCommand = TypeVar("TCommand", bound=Command)
TQuery = TypeVar("TQuery", bound=Query)
TResult = TypeVar("TResult")


class CommandHandler(ABC, Generic[TCommand, TResult]):
    """Base class for command handlers.

    Handlers must be registered explicitly with a ``CommandBus`` (or the
    ``HandlerRegistry`` behind it).

    Usage::

        class CreateTaskHandler(CommandHandler[CreateTaskCommand, ServiceResult[Task]]):
            async def handle(self, command: CreateTaskCommand) -> ServiceResult[Task]:
                ...
    """

    @abstractmethod
    async def handle(self, command: TCommand) -> TResult:
        """Execute the command and return its result."""
        ...


class QueryHandler(ABC, Generic[TQuery, TResult]):
    """Base class for query handlers.

    Usage::

        class GetTaskHandler(QueryHandler[GetTaskByIdQuery, ServiceResult[Task]]):
            async def handle(self, query: GetTaskByIdQuery) -> ServiceResult[Task]:
                ...
    """

    @abstractmethod
    async def handle(self, query: TQuery) -> TResult:
        """Execute the query and return its result."""
        ...
