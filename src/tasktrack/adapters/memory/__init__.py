from .cache import InMemoryCacheService
from .job_queue import InMemoryJobQueue, QueuedJob
from .store import InMemoryStore, InMemoryStoreSession

__all__ = [
    "InMemoryCacheService",
    "InMemoryJobQueue",
    "InMemoryStore",
    "InMemoryStoreSession",
    "QueuedJob",
]
