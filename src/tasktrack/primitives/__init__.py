"""Primitives: exceptions, ID generation, clocks."""

from __future__ import annotations

from .clock import FixedClock, IClock, SystemClock
from .exceptions import (
    ConcurrencyConflictError,
    DomainError,
    EntityNotFoundError,
    HandlerError,
    InfrastructureError,
    InvariantViolationError,
    NotFoundError,
    PermissionDeniedError,
    SpecificationError,
    StoreError,
    TaskTrackError,
    TransactionStateError,
    TranslationError,
    UnregisteredHandlerError,
    UnsupportedPredicateError,
)
from .id_generator import IIDGenerator, SequentialIDGenerator, UUID4Generator

__all__ = [
    "ConcurrencyConflictError",
    "DomainError",
    "EntityNotFoundError",
    "FixedClock",
    "HandlerError",
    "IClock",
    "IIDGenerator",
    "InfrastructureError",
    "InvariantViolationError",
    "NotFoundError",
    "PermissionDeniedError",
    "SequentialIDGenerator",
    "SpecificationError",
    "StoreError",
    "SystemClock",
    "TaskTrackError",
    "TransactionStateError",
    "TranslationError",
    "UUID4Generator",
    "UnregisteredHandlerError",
    "UnsupportedPredicateError",
]
