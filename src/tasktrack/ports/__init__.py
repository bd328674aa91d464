from .bus import ICommandBus, IQueryBus
from .cache import ICacheService
from .job_queue import IJobQueue
from .repository import IRepository
from .store import IStoreSession, SessionFactory

__all__ = [
    "ICacheService",
    "ICommandBus",
    "IJobQueue",
    "IQueryBus",
    "IRepository",
    "IStoreSession",
    "SessionFactory",
]
