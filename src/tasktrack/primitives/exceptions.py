"""Domain and infrastructure exceptions for tasktrack."""

from __future__ import annotations


class TaskTrackError(Exception):
    """Root exception for the whole package."""


# ── Transactions ─────────────────────────────────────────────────────


class TransactionStateError(TaskTrackError):
    """Raised when the Unit of Work is driven through an illegal transition.

    Start-while-active and commit-without-start are caller bugs and are
    never retried.
    """


# ── Specifications ───────────────────────────────────────────────────


class SpecificationError(TaskTrackError):
    """Base class for predicate construction and translation errors."""


class UnsupportedPredicateError(SpecificationError):
    """Raised when a specification references an unknown field or operator."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        operator: str | None = None,
    ) -> None:
        self.field = field
        self.operator = operator
        super().__init__(message)


class TranslationError(SpecificationError):
    """Raised when a store adapter cannot express a filter expression."""


# ── Handlers ─────────────────────────────────────────────────────────


class HandlerError(TaskTrackError):
    """Base class for all handler related errors (registration, lookup)."""


class UnregisteredHandlerError(HandlerError):
    """Raised when a bus receives a request type with no handler."""

    def __init__(self, request_type: type[object]) -> None:
        self.request_type = request_type
        super().__init__(
            f"No handler registered for {request_type.__name__}"
        )


# ── Infrastructure ───────────────────────────────────────────────────


class InfrastructureError(TaskTrackError):
    """Base class for all infrastructure-related errors."""


class StoreError(InfrastructureError):
    """Wraps any failure raised by the underlying store session."""


class ConcurrencyConflictError(StoreError):
    """Raised when a versioned update finds the stored row has moved on."""

    def __init__(
        self, entity_type: str, entity_id: object, expected_version: int
    ) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.expected_version = expected_version
        super().__init__(
            f"{entity_type} with id={entity_id!r} was modified concurrently "
            f"(expected version {expected_version})"
        )


# ── Domain ───────────────────────────────────────────────────────────


class DomainError(TaskTrackError):
    """Base class for all business-rule errors."""


class NotFoundError(DomainError):
    """Raised when an aggregate or resource is not found."""


class EntityNotFoundError(NotFoundError):
    """Raised when a specific entity cannot be found by ID."""

    def __init__(self, entity_type: str, entity_id: object) -> None:
        self.entity_type = entity_type
        self.entity_id = entity_id
        super().__init__(f"{entity_type} with id={entity_id!r} not found")


class PermissionDeniedError(DomainError):
    """Raised when an actor may not act on a resource."""


class InvariantViolationError(DomainError):
    """Raised when a domain invariant is violated."""
