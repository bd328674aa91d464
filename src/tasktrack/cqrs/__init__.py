"""Command/query dispatch."""

from __future__ import annotations

from .bus import CommandBus, QueryBus
from .command import Command
from .handler import CommandHandler, QueryHandler
from .mediator import Mediator
from .query import Query
from .registry import HandlerRegistry
from .response import PaginatedResult, ServiceResult

__all__ = [
    "Command",
    "CommandBus",
    "CommandHandler",
    "HandlerRegistry",
    "Mediator",
    "PaginatedResult",
    "Query",
    "QueryBus",
    "QueryHandler",
    "ServiceResult",
]
