"""
ModelMapper: bidirectional mapping between pydantic aggregates and table rows.

Rows are plain mappings keyed by column name. Only columns defined on the
model's ``__table__`` are written, and the aggregate's private ``_version``
travels through the ``version`` column.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from ...domain.task import Task
from ...domain.user import User
from ...primitives.exceptions import StoreError
from .compiler import resolve_table
from .models import TaskModel, UserModel

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from sqlalchemy import Table

    from ...domain.aggregate import AggregateRoot

logger = logging.getLogger(__name__)

T_Entity = TypeVar("T_Entity", bound="AggregateRoot")


class ModelMapper(Generic[T_Entity]):
    """
    Maps one aggregate type to one table.

    Parameters
    ----------
    entity_cls:
        The pydantic ``AggregateRoot`` subclass.
    db_model_cls:
        The declarative model (or ``Table``) that stores it.
    exclude_fields:
        Field names never written to or read from the table.
    """

    def __init__(
        self,
        entity_cls: type[T_Entity],
        db_model_cls: Any,
        *,
        exclude_fields: Iterable[str] = (),
    ) -> None:
        self.entity_cls = entity_cls
        self.table: Table = resolve_table(db_model_cls)
        columns = frozenset(self.table.columns.keys())
        if "version" not in columns:
            raise StoreError(f"Table '{self.table.name}' has no version column")
        excluded = frozenset(exclude_fields)
        self._fields = (frozenset(entity_cls.model_fields) & columns) - excluded
        unmapped = frozenset(entity_cls.model_fields) - columns - excluded
        if unmapped:
            logger.debug(
                "%s fields without a column in %s: %s",
                entity_cls.__name__,
                self.table.name,
                ", ".join(sorted(unmapped)),
            )

    def to_row(self, entity: T_Entity, *, version: int) -> dict[str, Any]:
        data = entity.model_dump(include=set(self._fields))
        data["version"] = version
        return data

    def from_row(self, row: Mapping[str, Any]) -> T_Entity:
        data = {name: row[name] for name in self._fields if name in row}
        return self.entity_cls(**data, _version=row["version"])


class MapperRegistry:
    """Entity type → :class:`ModelMapper` lookup used by store sessions."""

    def __init__(self, *mappers: ModelMapper[Any]) -> None:
        self._mappers: dict[type[Any], ModelMapper[Any]] = {}
        for mapper in mappers:
            self.register(mapper)

    def register(self, mapper: ModelMapper[Any]) -> None:
        self._mappers[mapper.entity_cls] = mapper

    def get(self, entity_type: type[T_Entity]) -> ModelMapper[T_Entity]:
        mapper = self._mappers.get(entity_type)
        if mapper is None:
            raise StoreError(f"No table mapping registered for {entity_type.__name__}")
        return mapper


def default_mappers() -> MapperRegistry:
    """Mappings for the task-tracking aggregates."""
    return MapperRegistry(
        ModelMapper(Task, TaskModel),
        ModelMapper(User, UserModel),
    )
