"""ChangeSet: per-entity-type bookkeeping of pending writes."""

from __future__ import annotations

from typing import Generic, TypeVar

from ..domain.aggregate import AggregateRoot

E = TypeVar("E", bound=AggregateRoot)


class ChangeSet(Generic[E]):
    """
    Entities created, entities changed and identifiers removed during one
    transaction, for a single entity type.

    "new" and "dirty" membership is by identity (``is``), "removed"
    membership by identifier equality. An entity already tracked as new is
    never added to dirty: its insert carries the latest state anyway.

    Usage::

        tasks = uow.get_repository(Task)
        tasks.mark_new(task)
        tasks.mark_dirty(other_task)
        tasks.mark_removed("t-42")
    """

    def __init__(self, entity_type: type[E]) -> None:
        self.entity_type = entity_type
        self._new: list[E] = []
        self._dirty: list[E] = []
        self._removed: list[str] = []

    # -- marking -------------------------------------------------------------

    def mark_new(self, entity: E) -> None:
        if not self.is_new(entity):
            self._new.append(entity)

    def mark_dirty(self, entity: E) -> None:
        if self.is_new(entity) or self.is_dirty(entity):
            return
        self._dirty.append(entity)

    def mark_removed(self, entity_id: str) -> None:
        # Pending writes for a removed identifier would only be undone again.
        self._new = [e for e in self._new if e.id != entity_id]
        self._dirty = [e for e in self._dirty if e.id != entity_id]
        if entity_id not in self._removed:
            self._removed.append(entity_id)

    # -- membership ----------------------------------------------------------

    def is_new(self, entity: E) -> bool:
        return any(tracked is entity for tracked in self._new)

    def is_dirty(self, entity: E) -> bool:
        return any(tracked is entity for tracked in self._dirty)

    def is_removed(self, entity_id: str) -> bool:
        return entity_id in self._removed

    # -- snapshots -----------------------------------------------------------

    def get_new(self) -> list[E]:
        return list(self._new)

    def get_dirty(self) -> list[E]:
        return list(self._dirty)

    def get_removed(self) -> list[str]:
        return list(self._removed)

    def find_new(self, entity_id: str) -> E | None:
        """Return the pending new entity with *entity_id*, if any."""
        for entity in self._new:
            if entity.id == entity_id:
                return entity
        return None

    @property
    def is_empty(self) -> bool:
        return not (self._new or self._dirty or self._removed)

    def clear(self) -> None:
        self._new.clear()
        self._dirty.clear()
        self._removed.clear()

    def __repr__(self) -> str:
        return (
            f"ChangeSet({self.entity_type.__name__}: new={len(self._new)}, "
            f"dirty={len(self._dirty)}, removed={len(self._removed)})"
        )
