"""InMemoryJobQueue: records enqueued jobs instead of running them."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ...ports.job_queue import IJobQueue
from ...primitives.id_generator import UUID4Generator

if TYPE_CHECKING:
    from ...primitives.id_generator import IIDGenerator

logger = logging.getLogger("tasktrack.jobs")


@dataclass(frozen=True)
class QueuedJob:
    job_id: str
    name: str
    payload: dict[str, Any] = field(default_factory=dict)


class InMemoryJobQueue(IJobQueue):
    """FIFO list of jobs; consumers (or tests) pop them with :meth:`drain`."""

    def __init__(self, id_generator: IIDGenerator | None = None) -> None:
        self._id_generator = id_generator or UUID4Generator()
        self._jobs: list[QueuedJob] = []

    async def enqueue(self, name: str, payload: dict[str, Any]) -> str:
        job = QueuedJob(self._id_generator.next_id(), name, dict(payload))
        self._jobs.append(job)
        logger.debug("Enqueued job %s (%s)", job.job_id, name)
        return job.job_id

    @property
    def jobs(self) -> list[QueuedJob]:
        return list(self._jobs)

    def drain(self) -> list[QueuedJob]:
        """Remove and return every queued job."""
        jobs, self._jobs = self._jobs, []
        return jobs
