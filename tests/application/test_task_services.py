"""End-to-end behaviour of the task commands and queries through the mediator."""

from __future__ import annotations

from datetime import timedelta
from typing import TYPE_CHECKING, Any

import pytest
from pydantic import ValidationError

from tasktrack.adapters.memory import (
    InMemoryCacheService,
    InMemoryJobQueue,
    InMemoryStore,
    InMemoryStoreSession,
)
from tasktrack.application import (
    OVERDUE_JOB_NAME,
    AssignTaskCommand,
    BulkUpdateTaskStatusCommand,
    ChangeTaskStatusCommand,
    CreateTaskCommand,
    DeleteTaskCommand,
    FlagOverdueTasksCommand,
    GetHighPriorityTasksQuery,
    GetOverdueTasksQuery,
    GetTaskByIdQuery,
    GetTasksQuery,
    GetTaskStatisticsQuery,
    GetUserTasksQuery,
    SearchTasksQuery,
    TaskTrackSettings,
    UpdateTaskCommand,
    build_application,
)
from tasktrack.domain import Task, TaskPriority, TaskStatus, UserRole
from tasktrack.primitives import SequentialIDGenerator, StoreError
from tasktrack.uow import UnitOfWork

if TYPE_CHECKING:
    from collections.abc import Callable

    from tasktrack.application import Application
    from tasktrack.domain import User
    from tasktrack.primitives import FixedClock


class FailingCommitSession(InMemoryStoreSession):
    async def commit(self) -> None:
        raise StoreError("commit refused")


class RecordingCache(InMemoryCacheService):
    def __init__(self) -> None:
        super().__init__()
        self.deleted: list[str] = []

    async def delete(self, key: str) -> None:
        self.deleted.append(key)
        await super().delete(key)


class BrokenCache(InMemoryCacheService):
    async def get(self, key: str) -> Any | None:
        raise ConnectionError("cache down")

    async def delete(self, key: str) -> None:
        raise ConnectionError("cache down")


async def _persist(store: InMemoryStore, *entities: object) -> None:
    uow = UnitOfWork(store.open_session)

    async def work() -> None:
        for entity in entities:
            uow.get_repository(type(entity)).mark_new(entity)

    await uow.execute(work)


@pytest.fixture
def cache() -> RecordingCache:
    return RecordingCache()


@pytest.fixture
def job_queue() -> InMemoryJobQueue:
    return InMemoryJobQueue(SequentialIDGenerator("job"))


@pytest.fixture
async def app(
    memory_store: InMemoryStore,
    cache: RecordingCache,
    job_queue: InMemoryJobQueue,
    clock: FixedClock,
    ids: SequentialIDGenerator,
    user_factory: Callable[..., User],
) -> Application:
    await _persist(
        memory_store,
        user_factory("u-1"),
        user_factory("u-2"),
        user_factory("admin", role=UserRole.ADMIN),
    )
    return build_application(
        session_factory=memory_store.open_session,
        cache=cache,
        job_queue=job_queue,
        clock=clock,
        id_generator=ids,
    )


async def _create(app: Application, **fields: Any) -> Task:
    fields.setdefault("title", "Write report")
    fields.setdefault("user_id", "u-1")
    result = await app.send(CreateTaskCommand(**fields))
    assert result.success, result.error
    return result.data


# ── Commands ─────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_task_persists_and_invalidates(
    app: Application, cache: RecordingCache, memory_store: InMemoryStore
) -> None:
    task = await _create(app, priority=TaskPriority.HIGH)

    assert task.id == "t-1"
    assert task.status is TaskStatus.PENDING
    assert task.version == 1
    assert "t-1" in memory_store.ids(Task)
    assert "task:t-1" in cache.deleted
    assert "user_tasks:u-1:all" in cache.deleted
    assert "high_priority_tasks:u-1" in cache.deleted
    assert "task_stats:all" in cache.deleted


@pytest.mark.asyncio
async def test_create_task_for_unknown_user_fails(app: Application) -> None:
    result = await app.send(CreateTaskCommand(title="Orphan", user_id="ghost"))

    assert not result.success
    assert result.error == "User with id='ghost' not found"
    assert "command_id" in result.metadata


@pytest.mark.asyncio
async def test_blank_title_is_a_business_failure(app: Application) -> None:
    result = await app.send(CreateTaskCommand(title="   ", user_id="u-1"))

    assert not result.success
    assert result.error == "Task title cannot be empty"


@pytest.mark.asyncio
async def test_update_applies_only_passed_fields(app: Application) -> None:
    task = await _create(app, description="Keep me")

    result = await app.send(
        UpdateTaskCommand(task_id=task.id, actor_id="u-1", title="Renamed")
    )

    assert result.success
    assert result.data.title == "Renamed"
    assert result.data.description == "Keep me"
    assert result.data.version == 2


@pytest.mark.asyncio
async def test_update_can_clear_description(app: Application) -> None:
    task = await _create(app, description="Drop me")

    result = await app.send(
        UpdateTaskCommand(task_id=task.id, actor_id="u-1", description=None)
    )

    assert result.success
    assert result.data.description is None


@pytest.mark.asyncio
async def test_other_users_cannot_touch_a_task(app: Application) -> None:
    task = await _create(app)

    result = await app.send(
        UpdateTaskCommand(task_id=task.id, actor_id="u-2", title="Mine now")
    )

    assert not result.success
    assert result.error == "Insufficient permissions to update this task"


@pytest.mark.asyncio
async def test_admin_can_change_any_status(app: Application) -> None:
    task = await _create(app)

    result = await app.send(
        ChangeTaskStatusCommand(
            task_id=task.id, status=TaskStatus.IN_PROGRESS, actor_id="admin"
        )
    )

    assert result.success
    assert result.data.status is TaskStatus.IN_PROGRESS


@pytest.mark.asyncio
async def test_invalid_transition_is_reported(app: Application) -> None:
    task = await _create(app)
    def complete() -> ChangeTaskStatusCommand:
        return ChangeTaskStatusCommand(
            task_id=task.id, status=TaskStatus.COMPLETED, actor_id="u-1"
        )

    assert (await app.send(complete())).success

    again = await app.send(complete())

    assert not again.success
    assert again.error == "Task is already completed"


@pytest.mark.asyncio
async def test_delete_then_lookup_fails(app: Application) -> None:
    task = await _create(app)

    deleted = await app.send(DeleteTaskCommand(task_id=task.id, actor_id="u-1"))
    found = await app.query(GetTaskByIdQuery(task_id=task.id))

    assert deleted.success
    assert deleted.data is None
    assert not found.success
    assert found.error == f"Task with id={task.id!r} not found"


@pytest.mark.asyncio
async def test_assign_moves_task_to_new_owner(
    app: Application, memory_store: InMemoryStore
) -> None:
    task = await _create(app, title="Hand over")

    result = await app.send(
        AssignTaskCommand(task_id=task.id, new_user_id="u-2", actor_id="u-1")
    )

    assert result.success
    moved = result.data
    assert moved.user_id == "u-2"
    assert moved.title == "Hand over"
    assert moved.id != task.id
    assert memory_store.ids(Task) == {moved.id}


@pytest.mark.asyncio
async def test_assign_requires_owner_or_admin(app: Application) -> None:
    task = await _create(app)

    result = await app.send(
        AssignTaskCommand(task_id=task.id, new_user_id="u-2", actor_id="u-2")
    )

    assert not result.success
    assert result.error == "Insufficient permissions to assign this task"


@pytest.mark.asyncio
async def test_bulk_status_reports_each_task(app: Application) -> None:
    first = await _create(app, title="One")
    second = await _create(app, title="Two")

    result = await app.send(
        BulkUpdateTaskStatusCommand(
            task_ids=(first.id, "missing", second.id),
            status=TaskStatus.IN_PROGRESS,
            actor_id="u-1",
        )
    )

    assert result.success
    assert [row["success"] for row in result.data] == [True, False, True]
    assert result.data[1]["message"] == "Task with id='missing' not found"
    assert result.metadata["total_tasks"] == 3
    assert result.metadata["successful_updates"] == 2


@pytest.mark.asyncio
async def test_overdue_jobs_enqueued_after_commit(
    app: Application, job_queue: InMemoryJobQueue, clock: FixedClock
) -> None:
    due = clock.now() + timedelta(days=1)
    late = await _create(app, title="Late", due_date=due)
    await _create(app, title="Fine", due_date=due + timedelta(days=5))
    clock.advance(timedelta(days=2))

    result = await app.send(FlagOverdueTasksCommand())

    assert result.success
    assert result.data == [late.id]
    jobs = job_queue.drain()
    assert [job.name for job in jobs] == [OVERDUE_JOB_NAME]
    assert jobs[0].payload == {
        "task_id": late.id,
        "user_id": "u-1",
        "due_date": due.isoformat(),
    }


@pytest.mark.asyncio
async def test_no_jobs_when_commit_fails(
    app: Application,
    memory_store: InMemoryStore,
    clock: FixedClock,
    ids: SequentialIDGenerator,
    task_factory: Callable[..., Task],
) -> None:
    await _persist(
        memory_store, task_factory("late", due_date=clock.now() - timedelta(days=1))
    )
    failing_queue = InMemoryJobQueue()
    failing = build_application(
        session_factory=lambda: FailingCommitSession(memory_store),
        job_queue=failing_queue,
        clock=clock,
        id_generator=ids,
    )

    result = await failing.send(FlagOverdueTasksCommand())

    assert not result.success
    assert result.error == "Internal error while flagging overdue tasks"
    assert failing_queue.jobs == []


# ── Queries ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_get_task_by_id_is_cached_and_detached(
    app: Application, cache: RecordingCache
) -> None:
    task = await _create(app)

    first = await app.query(GetTaskByIdQuery(task_id=task.id))
    second = await app.query(GetTaskByIdQuery(task_id=task.id))

    assert first.metadata["cached"] is False
    assert second.metadata["cached"] is True
    assert f"task:{task.id}" in cache.keys()
    assert second.data == first.data
    assert second.data is not first.data


@pytest.mark.asyncio
async def test_writes_invalidate_cached_reads(app: Application) -> None:
    task = await _create(app)
    await app.query(GetTaskByIdQuery(task_id=task.id))

    await app.send(
        UpdateTaskCommand(task_id=task.id, actor_id="u-1", title="Fresh title")
    )
    result = await app.query(GetTaskByIdQuery(task_id=task.id))

    assert result.metadata["cached"] is False
    assert result.data.title == "Fresh title"


@pytest.mark.asyncio
async def test_get_tasks_paginates_with_filters(app: Application) -> None:
    for index in range(3):
        await _create(app, title=f"Mine {index}")
    await _create(app, title="Theirs", user_id="u-2")

    result = await app.query(GetTasksQuery(user_id="u-1", page=1, limit=2))

    page = result.data
    assert result.success
    assert page.total == 3
    assert len(page.items) == 2
    assert page.has_next
    assert all(task.user_id == "u-1" for task in page.items)


@pytest.mark.asyncio
async def test_get_tasks_without_filters(app: Application) -> None:
    await _create(app)
    await _create(app, user_id="u-2")

    result = await app.query(GetTasksQuery())

    assert result.data.total == 2


@pytest.mark.asyncio
async def test_search_tasks_matches_text_within_filters(app: Application) -> None:
    await _create(app, title="Quarterly report")
    await _create(app, title="Groceries", description="Report receipts")
    await _create(app, title="Report for u-2", user_id="u-2")
    await _create(app, title="Unrelated")

    result = await app.query(
        SearchTasksQuery(search_term="REPORT", user_id="u-1", limit=1)
    )

    assert result.success
    assert result.metadata["cached"] is False
    assert result.data.total == 2
    assert len(result.data.items) == 1
    assert result.data.has_next


def test_search_term_must_not_be_empty() -> None:
    with pytest.raises(ValidationError):
        SearchTasksQuery(search_term="")


@pytest.mark.asyncio
async def test_get_user_tasks_by_status(app: Application) -> None:
    started = await _create(app, title="Started")
    await _create(app, title="Waiting")
    await app.send(
        ChangeTaskStatusCommand(
            task_id=started.id, status=TaskStatus.IN_PROGRESS, actor_id="u-1"
        )
    )

    result = await app.query(
        GetUserTasksQuery(user_id="u-1", status=TaskStatus.IN_PROGRESS)
    )

    assert [task.id for task in result.data] == [started.id]


@pytest.mark.asyncio
async def test_overdue_and_high_priority_queries(
    app: Application, clock: FixedClock
) -> None:
    urgent = await _create(
        app,
        title="Urgent",
        priority=TaskPriority.HIGH,
        due_date=clock.now() + timedelta(hours=1),
    )
    await _create(app, title="Someday", priority=TaskPriority.LOW)
    clock.advance(timedelta(days=1))

    overdue = await app.query(GetOverdueTasksQuery(user_id="u-1"))
    high = await app.query(GetHighPriorityTasksQuery(user_id="u-1"))

    assert [task.id for task in overdue.data.items] == [urgent.id]
    assert [task.id for task in high.data] == [urgent.id]


@pytest.mark.asyncio
async def test_statistics(app: Application, clock: FixedClock) -> None:
    await _create(app, priority=TaskPriority.HIGH)
    done = await _create(app, due_date=clock.now() + timedelta(hours=1))
    await _create(app, user_id="u-2")
    await app.send(
        ChangeTaskStatusCommand(
            task_id=done.id, status=TaskStatus.COMPLETED, actor_id="u-1"
        )
    )
    clock.advance(timedelta(days=1))

    mine = await app.query(GetTaskStatisticsQuery(user_id="u-1"))
    everyone = await app.query(GetTaskStatisticsQuery())

    assert mine.data.total == 2
    assert mine.data.by_status["COMPLETED"] == 1
    assert mine.data.by_priority["HIGH"] == 1
    assert mine.data.overdue == 0
    assert everyone.data.total == 3


# ── Cache failures ───────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_cache_outage_never_fails_requests(
    memory_store: InMemoryStore,
    clock: FixedClock,
    ids: SequentialIDGenerator,
    user_factory: Callable[..., User],
) -> None:
    await _persist(memory_store, user_factory("u-1"))
    app = build_application(
        session_factory=memory_store.open_session,
        cache=BrokenCache(),
        clock=clock,
        id_generator=ids,
    )

    created = await _create(app)
    found = await app.query(GetTaskByIdQuery(task_id=created.id))

    assert found.success
    assert found.data.id == created.id


@pytest.mark.asyncio
async def test_zero_ttl_disables_caching(
    memory_store: InMemoryStore,
    cache: RecordingCache,
    clock: FixedClock,
    ids: SequentialIDGenerator,
    user_factory: Callable[..., User],
) -> None:
    await _persist(memory_store, user_factory("u-1"))
    app = build_application(
        TaskTrackSettings(task_cache_ttl=0),
        session_factory=memory_store.open_session,
        cache=cache,
        clock=clock,
        id_generator=ids,
    )
    created = await _create(app)

    await app.query(GetTaskByIdQuery(task_id=created.id))
    second = await app.query(GetTaskByIdQuery(task_id=created.id))

    assert second.success
    assert second.metadata["cached"] is False
    assert f"task:{created.id}" not in cache.keys()
