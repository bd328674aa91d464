"""Bus protocols: ICommandBus and IQueryBus."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from ..cqrs.command import Command
    from ..cqrs.query import Query


class ICommandBus(Protocol):
    """
    Interface for dispatching commands to their respective handlers.
    """

    async def execute(self, command: Command) -> Any: ...


class IQueryBus(Protocol):
    """
    Interface for dispatching queries to their respective handlers.
    """

    async def execute(self, query: Query) -> Any: ...
