"""Declarative models for tasks and users."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import Enum, Index, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from ...domain.task import TaskPriority, TaskStatus
from ...domain.user import UserRole
from .types import UTCDateTime


class VersionMixin:
    """Integer version column checked and bumped by every versioned update."""

    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)


class Base(DeclarativeBase):
    """Declarative base for all tasktrack models.

    Every mapped aggregate table also mixes in :class:`VersionMixin`; the
    store session relies on that column for optimistic concurrency.
    """


class UserModel(VersionMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    email: Mapped[str] = mapped_column(String(254), unique=True, nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, native_enum=False, length=16),
        default=UserRole.USER,
        nullable=False,
    )


class TaskModel(VersionMixin, Base):
    __tablename__ = "tasks"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(String(1000), nullable=True)
    status: Mapped[TaskStatus] = mapped_column(
        Enum(TaskStatus, native_enum=False, length=16),
        default=TaskStatus.PENDING,
        nullable=False,
    )
    priority: Mapped[TaskPriority] = mapped_column(
        Enum(TaskPriority, native_enum=False, length=16),
        default=TaskPriority.MEDIUM,
        nullable=False,
    )
    due_date: Mapped[datetime | None] = mapped_column(UTCDateTime, nullable=True)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, nullable=False)

    __table_args__ = (
        Index("ix_tasks_user_status", "user_id", "status"),
        Index("ix_tasks_status_due", "status", "due_date"),
    )
