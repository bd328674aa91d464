"""CommandBus and QueryBus: route one request to exactly one handler."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Any

from ..ports.bus import ICommandBus, IQueryBus
from ..primitives.exceptions import UnregisteredHandlerError
from .registry import HandlerRegistry

if TYPE_CHECKING:
    from .command import Command
    from .handler import CommandHandler, QueryHandler
    from .query import Query

logger = logging.getLogger("tasktrack.cqrs")


class _Bus:
    """Shared dispatch: look up, time, log, propagate unchanged.

    No retries, no queueing, no concurrency control. Whatever
    transactional discipline a request needs comes from its handler.
    """

    _kind = "request"

    def __init__(self, registry: HandlerRegistry | None = None) -> None:
        self._registry = registry if registry is not None else HandlerRegistry()

    @property
    def registry(self) -> HandlerRegistry:
        return self._registry

    def _lookup(self, request_type: type[Any]) -> Any | None:
        raise NotImplementedError

    async def _dispatch(self, request: Any) -> Any:
        request_type = type(request)
        handler = self._lookup(request_type)
        if handler is None:
            raise UnregisteredHandlerError(request_type)

        logger.debug(
            "Dispatching %s %s to %s",
            self._kind,
            request_type.__name__,
            type(handler).__name__,
        )
        started = time.perf_counter()
        try:
            result = await handler.handle(request)
        except Exception:
            logger.error(
                "%s %s failed after %.2f ms",
                self._kind.capitalize(),
                request_type.__name__,
                (time.perf_counter() - started) * 1000,
                exc_info=True,
            )
            raise
        logger.debug(
            "%s %s handled in %.2f ms",
            self._kind.capitalize(),
            request_type.__name__,
            (time.perf_counter() - started) * 1000,
        )
        return result


class CommandBus(_Bus, ICommandBus):
    """Dispatches commands to their registered handlers."""

    _kind = "command"

    def register(
        self, command_type: type[Command], handler: CommandHandler[Any, Any]
    ) -> None:
        self._registry.register_command_handler(command_type, handler)

    def _lookup(self, request_type: type[Any]) -> Any | None:
        return self._registry.get_command_handler(request_type)

    async def execute(self, command: Command) -> Any:
        """Run the handler for ``type(command)``.

        Raises:
            UnregisteredHandlerError: If nothing is registered for the type.
        """
        return await self._dispatch(command)

    def registered_types(self) -> list[type[Any]]:
        return self._registry.command_types()

    def is_registered(self, command_type: type[Any]) -> bool:
        return self._registry.get_command_handler(command_type) is not None


class QueryBus(_Bus, IQueryBus):
    """Dispatches queries to their registered handlers."""

    _kind = "query"

    def register(
        self, query_type: type[Query], handler: QueryHandler[Any, Any]
    ) -> None:
        self._registry.register_query_handler(query_type, handler)

    def _lookup(self, request_type: type[Any]) -> Any | None:
        return self._registry.get_query_handler(request_type)

    async def execute(self, query: Query) -> Any:
        """Run the handler for ``type(query)``.

        Raises:
            UnregisteredHandlerError: If nothing is registered for the type.
        """
        return await self._dispatch(query)

    def registered_types(self) -> list[type[Any]]:
        return self._registry.query_types()

    def is_registered(self, query_type: type[Any]) -> bool:
        return self._registry.get_query_handler(query_type) is not None
