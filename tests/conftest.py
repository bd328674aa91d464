"""Shared fixtures: clocks, id generators and both store backends."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import TYPE_CHECKING

import pytest
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from tasktrack.adapters.memory import InMemoryStore
from tasktrack.domain import Task, TaskPriority, TaskStatus, User, UserRole
from tasktrack.persistence import TaskRepository, UserRepository
from tasktrack.persistence.sqlalchemy import SQLAlchemyStore
from tasktrack.primitives import FixedClock, SequentialIDGenerator
from tasktrack.uow import UnitOfWork

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture
def ids() -> SequentialIDGenerator:
    return SequentialIDGenerator("t")


@pytest.fixture
def memory_store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
async def sql_store() -> AsyncIterator[SQLAlchemyStore]:
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    store = SQLAlchemyStore(engine)
    await store.create_schema()
    yield store
    await store.dispose()


@pytest.fixture(params=["memory", "sqlalchemy"])
async def store(request: pytest.FixtureRequest) -> AsyncIterator[object]:
    """Every backend; tests using it run once per store."""
    if request.param == "memory":
        yield InMemoryStore()
        return
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    sql = SQLAlchemyStore(engine)
    await sql.create_schema()
    yield sql
    await sql.dispose()


@pytest.fixture
def uow_factory(store: InMemoryStore | SQLAlchemyStore) -> Callable[[], UnitOfWork]:
    return lambda: UnitOfWork(store.open_session)


@pytest.fixture
def tasks() -> TaskRepository:
    return TaskRepository()


@pytest.fixture
def users() -> UserRepository:
    return UserRepository()


@pytest.fixture
def task_factory() -> Callable[..., Task]:
    return make_task


@pytest.fixture
def user_factory() -> Callable[..., User]:
    return make_user


@pytest.fixture
def seed(
    uow_factory: Callable[[], UnitOfWork],
) -> Callable[..., Awaitable[None]]:
    """Persist entities in one committed unit of work."""

    async def persist(*entities: object) -> None:
        await seed_with(uow_factory, *entities)

    return persist


def make_task(
    task_id: str,
    *,
    user_id: str = "u-1",
    status: TaskStatus = TaskStatus.PENDING,
    priority: TaskPriority = TaskPriority.MEDIUM,
    due_date: datetime | None = None,
    title: str | None = None,
    description: str | None = None,
    created_at: datetime = NOW,
) -> Task:
    return Task(
        id=task_id,
        title=title or f"Task {task_id}",
        description=description,
        user_id=user_id,
        status=status,
        priority=priority,
        due_date=due_date,
        created_at=created_at,
        updated_at=created_at,
    )


def make_user(
    user_id: str, *, role: UserRole = UserRole.USER, email: str | None = None
) -> User:
    return User(
        id=user_id,
        email=email or f"{user_id}@example.com",
        name=user_id.title(),
        role=role,
    )


async def seed_with(
    uow_factory: Callable[[], UnitOfWork], *entities: object
) -> None:
    uow = uow_factory()

    async def work() -> None:
        for entity in entities:
            uow.get_repository(type(entity)).mark_new(entity)

    await uow.execute(work)
