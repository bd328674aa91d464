"""Task-specific specification factories.

Factories are pure functions of their arguments. Anything temporal takes
an explicit ``IClock`` so the in-memory and store interpretations of the
same specification see the same instant.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.task import TaskPriority, TaskStatus
from .base import CompositeSpecification, and_, or_
from .field import FieldSpecification, by_field
from .operators import SpecificationOperator

if TYPE_CHECKING:
    from ..domain.task import Task
    from ..primitives.clock import IClock

TASK_FIELDS: frozenset[str] = frozenset(
    {
        "id",
        "title",
        "description",
        "status",
        "priority",
        "due_date",
        "user_id",
        "created_at",
        "updated_at",
    }
)


def task_field(
    name: str, op: SpecificationOperator | str, value: object
) -> FieldSpecification[Task]:
    """Leaf specification restricted to the columns a task actually has."""
    return by_field(name, op, value, allowed_fields=TASK_FIELDS)


class TaskSpecifications:
    """Namespace of reusable task predicates."""

    @staticmethod
    def by_status(status: TaskStatus) -> FieldSpecification[Task]:
        return task_field("status", SpecificationOperator.EQ, TaskStatus(status))

    @staticmethod
    def by_owner(user_id: str) -> FieldSpecification[Task]:
        return task_field("user_id", SpecificationOperator.EQ, user_id)

    @staticmethod
    def by_priority(priority: TaskPriority) -> FieldSpecification[Task]:
        return task_field("priority", SpecificationOperator.EQ, TaskPriority(priority))

    @staticmethod
    def high_priority() -> FieldSpecification[Task]:
        return TaskSpecifications.by_priority(TaskPriority.HIGH)

    @staticmethod
    def overdue(clock: IClock) -> CompositeSpecification[Task]:
        """Not completed and due strictly before ``clock.now()``.

        Tasks without a due date are never overdue.
        """
        return and_(
            task_field("due_date", SpecificationOperator.LT, clock.now()),
            task_field("status", SpecificationOperator.NE, TaskStatus.COMPLETED),
        )

    @staticmethod
    def overdue_for_user(user_id: str, clock: IClock) -> CompositeSpecification[Task]:
        return and_(
            TaskSpecifications.by_owner(user_id), TaskSpecifications.overdue(clock)
        )

    @staticmethod
    def high_priority_for_user(user_id: str) -> CompositeSpecification[Task]:
        return and_(
            TaskSpecifications.by_owner(user_id), TaskSpecifications.high_priority()
        )

    @staticmethod
    def matching_text(term: str) -> CompositeSpecification[Task]:
        """Title or description contains *term*, ignoring case."""
        return or_(
            task_field("title", SpecificationOperator.CONTAINS, term),
            task_field("description", SpecificationOperator.CONTAINS, term),
        )

    @staticmethod
    def active_for_user(user_id: str) -> CompositeSpecification[Task]:
        """Owned by *user_id* and either pending or in progress."""
        return and_(
            TaskSpecifications.by_owner(user_id),
            or_(
                TaskSpecifications.by_status(TaskStatus.PENDING),
                TaskSpecifications.by_status(TaskStatus.IN_PROGRESS),
            ),
        )
