"""Query base class: an immutable request for data."""

from __future__ import annotations

from datetime import datetime
from typing import Generic

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypeVar

from .command import _new_id, _utcnow

TResult = TypeVar("TResult", default=None)


class Query(BaseModel, Generic[TResult]):
    """Read-only request; its handler opens at most a read-only unit of work."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    query_id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    actor_id: str | None = None
