"""IJobQueue: hand-off point for follow-up background jobs."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class IJobQueue(Protocol):
    """
    Producer side of an asynchronous job queue.

    Callers enqueue only after the transaction that motivated the job has
    committed.
    """

    async def enqueue(self, name: str, payload: dict[str, Any]) -> str:
        """Enqueue a job and return its identifier."""
        ...
