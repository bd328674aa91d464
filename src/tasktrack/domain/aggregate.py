"""Aggregate Root base class."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, PrivateAttr

if TYPE_CHECKING:
    from ..primitives.id_generator import IIDGenerator


class AggregateRoot(BaseModel):
    """
    String-identified entity with a store-managed version.

    ``version`` is 0 until the entity is first stored. The unit of work
    copies the stored version back after every successful commit, and the
    store rejects updates whose version no longer matches.

    Usage::

        task = Task(id_generator=ids, title="Ship", user_id="u-1")
        loaded = Task(id="t-1", title="Ship", user_id="u-1", _version=3)
    """

    model_config = ConfigDict(arbitrary_types_allowed=True, validate_assignment=True)

    id: str
    _version: int = PrivateAttr(default=0)

    def __init__(
        self, id_generator: IIDGenerator | None = None, **data: object
    ) -> None:
        version = data.pop("_version", 0)
        if "id" not in data:
            if id_generator is None:
                raise ValueError(
                    f"{type(self).__name__} needs an explicit 'id' or an "
                    "'id_generator'"
                )
            data["id"] = id_generator.next_id()
        super().__init__(**data)
        self._version = int(version)  # type: ignore[call-overload]

    @property
    def version(self) -> int:
        return self._version

    def set_version(self, version: int) -> None:
        """Record the version the store now holds. Persistence layer only."""
        self._version = version
