"""Cache key layout shared by the command and query services."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..domain.task import TaskStatus

if TYPE_CHECKING:
    from collections.abc import Iterable


def task_key(task_id: str) -> str:
    return f"task:{task_id}"


def user_tasks_key(user_id: str, status: TaskStatus | None = None) -> str:
    return f"user_tasks:{user_id}:{status.value if status else 'all'}"


def high_priority_key(user_id: str) -> str:
    return f"high_priority_tasks:{user_id}"


def stats_key(user_id: str | None = None) -> str:
    return f"task_stats:{user_id or 'all'}"


def keys_for_owner(user_id: str) -> list[str]:
    """Every listing key that depends on the tasks owned by *user_id*."""
    return [
        user_tasks_key(user_id),
        *(user_tasks_key(user_id, status) for status in TaskStatus),
        high_priority_key(user_id),
        stats_key(user_id),
    ]


def keys_for_change(task_ids: Iterable[str], owner_ids: Iterable[str]) -> list[str]:
    """Keys made stale by writing the given tasks, owned by the given users.

    Order is stable and duplicates are dropped.
    """
    keys = [task_key(task_id) for task_id in task_ids]
    for owner_id in owner_ids:
        keys.extend(keys_for_owner(owner_id))
    keys.append(stats_key())
    return list(dict.fromkeys(keys))
