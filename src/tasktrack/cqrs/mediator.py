"""Mediator: single entry point for commands and queries."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..ports.bus import ICommandBus, IQueryBus
    from .command import Command
    from .query import Query


class Mediator:
    """Routes commands to the command bus and queries to the query bus.

    It adds nothing on top of routing: results and exceptions come back
    exactly as the buses produce them.

    Parameters
    ----------
    command_bus:
        Any :class:`~tasktrack.ports.bus.ICommandBus`.
    query_bus:
        Any :class:`~tasktrack.ports.bus.IQueryBus`.
    """

    def __init__(self, command_bus: ICommandBus, query_bus: IQueryBus) -> None:
        self._command_bus = command_bus
        self._query_bus = query_bus

    async def send(self, command: Command) -> Any:
        return await self._command_bus.execute(command)

    async def query(self, query: Query) -> Any:
        return await self._query_bus.execute(query)
