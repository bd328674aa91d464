"""Domain primitives: aggregates and the task/user model."""

from __future__ import annotations

from .aggregate import AggregateRoot
from .task import Task, TaskPriority, TaskStatus, as_utc
from .user import User, UserRole

__all__: list[str] = [
    "AggregateRoot",
    "Task",
    "TaskPriority",
    "TaskStatus",
    "User",
    "UserRole",
    "as_utc",
]
