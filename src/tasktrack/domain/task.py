"""Task aggregate."""

from __future__ import annotations

import enum
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from pydantic import Field, field_validator

from ..primitives.exceptions import InvariantViolationError
from .aggregate import AggregateRoot

if TYPE_CHECKING:
    from ..primitives.id_generator import IIDGenerator

TITLE_MAX_LENGTH = 200
DESCRIPTION_MAX_LENGTH = 1000


class TaskStatus(str, enum.Enum):
    PENDING = "PENDING"
    IN_PROGRESS = "IN_PROGRESS"
    COMPLETED = "COMPLETED"


class TaskPriority(str, enum.Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """Normalise naive datetimes to UTC so comparisons never mix kinds."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _clean_title(title: str) -> str:
    cleaned = title.strip()
    if not cleaned:
        raise InvariantViolationError("Task title cannot be empty")
    if len(cleaned) > TITLE_MAX_LENGTH:
        raise InvariantViolationError(
            f"Task title cannot exceed {TITLE_MAX_LENGTH} characters"
        )
    return cleaned


def _clean_description(description: str | None) -> str | None:
    if description is None:
        return None
    cleaned = description.strip()
    if len(cleaned) > DESCRIPTION_MAX_LENGTH:
        raise InvariantViolationError(
            f"Task description cannot exceed {DESCRIPTION_MAX_LENGTH} characters"
        )
    return cleaned or None


class Task(AggregateRoot):
    """A unit of work owned by one user.

    Status transitions::

        PENDING --start_progress--> IN_PROGRESS --complete--> COMPLETED
        PENDING --complete--> COMPLETED --reopen--> PENDING
    """

    title: str = Field(min_length=1, max_length=TITLE_MAX_LENGTH)
    description: str | None = Field(default=None, max_length=DESCRIPTION_MAX_LENGTH)
    status: TaskStatus = TaskStatus.PENDING
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: datetime | None = None
    user_id: str
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)

    @field_validator("due_date", "created_at", "updated_at")
    @classmethod
    def _normalise_datetimes(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)

    # ── Factory ──────────────────────────────────────────────────

    @classmethod
    def create(
        cls,
        *,
        title: str,
        user_id: str,
        description: str | None = None,
        priority: TaskPriority = TaskPriority.MEDIUM,
        due_date: datetime | None = None,
        id_generator: IIDGenerator | None = None,
        now: datetime | None = None,
    ) -> Task:
        """Build a new PENDING task, enforcing title/description rules."""
        created = now or _utcnow()
        return cls(
            id_generator=id_generator,
            title=_clean_title(title),
            description=_clean_description(description),
            priority=priority,
            due_date=due_date,
            user_id=user_id,
            status=TaskStatus.PENDING,
            created_at=created,
            updated_at=created,
        )

    # ── Mutations ────────────────────────────────────────────────

    def update_title(self, title: str, now: datetime | None = None) -> None:
        self.title = _clean_title(title)
        self._touch(now)

    def update_description(
        self, description: str | None, now: datetime | None = None
    ) -> None:
        self.description = _clean_description(description)
        self._touch(now)

    def update_priority(
        self, priority: TaskPriority, now: datetime | None = None
    ) -> None:
        self.priority = priority
        self._touch(now)

    def update_due_date(
        self, due_date: datetime | None, now: datetime | None = None
    ) -> None:
        current = now or _utcnow()
        normalised = as_utc(due_date)
        if normalised is not None and normalised < current:
            raise InvariantViolationError("Due date cannot be in the past")
        self.due_date = normalised
        self._touch(current)

    def start_progress(self, now: datetime | None = None) -> None:
        if self.status is not TaskStatus.PENDING:
            raise InvariantViolationError("Only pending tasks can be started")
        self.status = TaskStatus.IN_PROGRESS
        self._touch(now)

    def complete(self, now: datetime | None = None) -> None:
        if self.status is TaskStatus.COMPLETED:
            raise InvariantViolationError("Task is already completed")
        self.status = TaskStatus.COMPLETED
        self._touch(now)

    def reopen(self, now: datetime | None = None) -> None:
        if self.status is not TaskStatus.COMPLETED:
            raise InvariantViolationError("Only completed tasks can be reopened")
        self.status = TaskStatus.PENDING
        self._touch(now)

    def transition_to(self, status: TaskStatus, now: datetime | None = None) -> None:
        """Apply the business transition that leads to *status*."""
        if status is TaskStatus.IN_PROGRESS:
            self.start_progress(now)
        elif status is TaskStatus.COMPLETED:
            self.complete(now)
        elif status is TaskStatus.PENDING:
            self.reopen(now)
        else:  # pragma: no cover - exhaustive over TaskStatus
            raise InvariantViolationError(f"Invalid task status: {status}")

    # ── Queries ──────────────────────────────────────────────────

    def is_overdue(self, now: datetime) -> bool:
        return (
            self.status is not TaskStatus.COMPLETED
            and self.due_date is not None
            and self.due_date < now
        )

    def is_high_priority(self) -> bool:
        return self.priority is TaskPriority.HIGH

    def belongs_to(self, user_id: str) -> bool:
        return self.user_id == user_id

    def _touch(self, now: datetime | None) -> None:
        self.updated_at = now or _utcnow()
