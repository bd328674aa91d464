"""Command base class: an immutable request to change state."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Generic

from pydantic import BaseModel, ConfigDict, Field
from typing_extensions import TypeVar

TResult = TypeVar("TResult", default=None)


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Command(BaseModel, Generic[TResult]):
    """
    Base for all commands.

    A command names a state change (``CreateTaskCommand``,
    ``ChangeTaskStatusCommand``), is routed by the ``CommandBus`` to exactly
    one handler, and is never mutated after construction. ``TResult`` is the
    handler's return type; it only documents intent for type checkers.

    ``actor_id`` is the user on whose behalf the command runs, when there
    is one. Subclasses may redeclare it as required.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    command_id: str = Field(default_factory=_new_id)
    timestamp: datetime = Field(default_factory=_utcnow)
    actor_id: str | None = None
