"""SQLAlchemy (asyncio) store adapter."""

from .compiler import CompiledFilter, compile_filter
from .mapper import MapperRegistry, ModelMapper, default_mappers
from .models import Base, TaskModel, UserModel, VersionMixin
from .operators import (
    DEFAULT_SQLA_REGISTRY,
    SQLAlchemyOperator,
    SQLAlchemyOperatorRegistry,
)
from .session import SQLAlchemyStore, SQLAlchemyStoreSession
from .types import UTCDateTime

__all__ = [
    "DEFAULT_SQLA_REGISTRY",
    "Base",
    "CompiledFilter",
    "MapperRegistry",
    "ModelMapper",
    "SQLAlchemyOperator",
    "SQLAlchemyOperatorRegistry",
    "SQLAlchemyStore",
    "SQLAlchemyStoreSession",
    "TaskModel",
    "UTCDateTime",
    "UserModel",
    "VersionMixin",
    "compile_filter",
    "default_mappers",
]
