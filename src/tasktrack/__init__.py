"""tasktrack: transactional task tracking on a Unit of Work and CQRS buses."""

from __future__ import annotations

from .cqrs import (
    Command,
    CommandBus,
    CommandHandler,
    HandlerRegistry,
    Mediator,
    PaginatedResult,
    Query,
    QueryBus,
    QueryHandler,
    ServiceResult,
)
from .primitives.exceptions import (
    ConcurrencyConflictError,
    DomainError,
    StoreError,
    TaskTrackError,
    TransactionStateError,
    TranslationError,
    UnregisteredHandlerError,
    UnsupportedPredicateError,
)
from .uow import ChangeSet, UnitOfWork, unit_of_work_factory

__version__ = "0.1.0"

__all__ = [
    "ChangeSet",
    "Command",
    "CommandBus",
    "CommandHandler",
    "ConcurrencyConflictError",
    "DomainError",
    "HandlerRegistry",
    "Mediator",
    "PaginatedResult",
    "Query",
    "QueryBus",
    "QueryHandler",
    "ServiceResult",
    "StoreError",
    "TaskTrackError",
    "TransactionStateError",
    "TranslationError",
    "UnitOfWork",
    "UnregisteredHandlerError",
    "UnsupportedPredicateError",
    "unit_of_work_factory",
]
