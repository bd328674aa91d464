from __future__ import annotations

import logging
from unittest.mock import AsyncMock

import pytest

from tasktrack.domain import Task
from tasktrack.ports import IStoreSession
from tasktrack.primitives import (
    ConcurrencyConflictError,
    SequentialIDGenerator,
    StoreError,
    TransactionStateError,
)
from tasktrack.uow import UnitOfWork, unit_of_work_factory


def _task(task_id: str, version: int = 0) -> Task:
    return Task(id=task_id, title=f"Task {task_id}", user_id="u-1", _version=version)


@pytest.fixture
def session() -> AsyncMock:
    mock = AsyncMock(spec=IStoreSession)
    mock.insert.return_value = 1
    mock.update.side_effect = lambda entity: entity.version + 1
    mock.delete.return_value = True
    return mock


@pytest.fixture
def uow(session: AsyncMock) -> UnitOfWork:
    return UnitOfWork(lambda: session, id_generator=SequentialIDGenerator("tx"))


def _calls(session: AsyncMock) -> list[str]:
    return [name for name, _args, _kwargs in session.mock_calls]


# ── State machine ────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_start_activates_transaction(uow: UnitOfWork, session: AsyncMock) -> None:
    await uow.start()

    assert uow.is_active
    assert uow.transaction_id == "tx-1"
    assert uow.session is session
    session.begin.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_while_active_raises(uow: UnitOfWork) -> None:
    await uow.start()

    with pytest.raises(TransactionStateError):
        await uow.start()

    assert uow.is_active


@pytest.mark.asyncio
async def test_commit_without_start_raises(uow: UnitOfWork) -> None:
    with pytest.raises(TransactionStateError):
        await uow.commit()


@pytest.mark.asyncio
async def test_rollback_without_start_is_noop(
    uow: UnitOfWork, session: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    with caplog.at_level(logging.WARNING, logger="tasktrack.uow"):
        await uow.rollback()

    session.rollback.assert_not_awaited()
    assert "without an active transaction" in caplog.text


@pytest.mark.asyncio
async def test_session_unavailable_when_inactive(uow: UnitOfWork) -> None:
    with pytest.raises(TransactionStateError):
        _ = uow.session
    with pytest.raises(TransactionStateError):
        await uow.raw_query("SELECT 1")


@pytest.mark.asyncio
async def test_failed_begin_releases_session(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    session.begin.side_effect = StoreError("no connection")

    with pytest.raises(StoreError):
        await uow.start()

    assert not uow.is_active
    session.release.assert_awaited_once()


# ── Commit ───────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_commit_flushes_inserts_updates_deletes_in_order(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    created = _task("a")
    edited = _task("b", version=3)
    await uow.start()
    changes = uow.get_repository(Task)
    changes.mark_removed("c")
    changes.mark_dirty(edited)
    changes.mark_new(created)

    await uow.commit()

    assert _calls(session) == [
        "begin",
        "insert",
        "update",
        "delete",
        "commit",
        "release",
    ]
    session.delete.assert_awaited_once_with(Task, "c")
    assert created.version == 1
    assert edited.version == 4
    assert not uow.is_active
    assert changes.is_empty


@pytest.mark.asyncio
async def test_commit_failure_rolls_back_and_reraises(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    session.commit.side_effect = StoreError("disk full")
    created = _task("a")
    hook = AsyncMock()
    await uow.start()
    uow.get_repository(Task).mark_new(created)
    uow.on_commit(hook)

    with pytest.raises(StoreError, match="disk full"):
        await uow.commit()

    session.rollback.assert_awaited_once()
    session.release.assert_awaited_once()
    hook.assert_not_awaited()
    assert created.version == 0
    assert not uow.is_active
    assert uow.get_repository(Task).is_empty


@pytest.mark.asyncio
async def test_flush_conflict_skips_store_commit(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    session.update.side_effect = ConcurrencyConflictError("Task", "b", 3)
    await uow.start()
    uow.get_repository(Task).mark_dirty(_task("b", version=3))

    with pytest.raises(ConcurrencyConflictError):
        await uow.commit()

    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_rollback_error_does_not_mask_commit_error(
    uow: UnitOfWork, session: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    session.commit.side_effect = StoreError("commit failed")
    session.rollback.side_effect = StoreError("rollback failed")
    await uow.start()

    with caplog.at_level(logging.ERROR, logger="tasktrack.uow"):
        with pytest.raises(StoreError, match="commit failed"):
            await uow.commit()

    assert "Rollback of transaction tx-1 failed" in caplog.text
    session.release.assert_awaited_once()


# ── Hooks ────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_hooks_run_after_store_commit(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    order: list[str] = []
    session.commit.side_effect = lambda: order.append("commit")

    async def hook() -> None:
        order.append("hook")

    await uow.start()
    uow.on_commit(hook)
    await uow.commit()

    assert order == ["commit", "hook"]


@pytest.mark.asyncio
async def test_on_commit_requires_transaction(uow: UnitOfWork) -> None:
    with pytest.raises(TransactionStateError):
        uow.on_commit(AsyncMock())


@pytest.mark.asyncio
async def test_failing_hook_is_isolated(
    uow: UnitOfWork, caplog: pytest.LogCaptureFixture
) -> None:
    broken = AsyncMock(side_effect=RuntimeError("boom"))
    healthy = AsyncMock()

    await uow.start()
    uow.on_commit(broken)
    uow.on_commit(healthy)
    with caplog.at_level(logging.ERROR, logger="tasktrack.uow"):
        await uow.commit()

    healthy.assert_awaited_once()
    assert "Error in on_commit hook" in caplog.text


@pytest.mark.asyncio
async def test_rollback_discards_hooks(uow: UnitOfWork) -> None:
    hook = AsyncMock()
    await uow.start()
    uow.on_commit(hook)

    await uow.rollback()
    await uow.trigger_commit_hooks()

    hook.assert_not_awaited()


# ── execute / context manager / read_only ────────────────────────────


@pytest.mark.asyncio
async def test_execute_returns_work_result(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    async def work() -> str:
        uow.get_repository(Task).mark_new(_task("a"))
        return "done"

    assert await uow.execute(work) == "done"
    session.commit.assert_awaited_once()
    assert not uow.is_active


@pytest.mark.asyncio
async def test_execute_rolls_back_and_reraises(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    async def work() -> None:
        uow.get_repository(Task).mark_new(_task("a"))
        raise ValueError("invalid")

    with pytest.raises(ValueError, match="invalid"):
        await uow.execute(work)

    session.insert.assert_not_awaited()
    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()
    assert not uow.is_active


@pytest.mark.asyncio
async def test_execute_failed_commit_rolls_back_once_quietly(
    uow: UnitOfWork, session: AsyncMock, caplog: pytest.LogCaptureFixture
) -> None:
    session.commit.side_effect = StoreError("disk full")

    async def work() -> None:
        uow.get_repository(Task).mark_new(_task("a"))

    with caplog.at_level(logging.WARNING, logger="tasktrack.uow"):
        with pytest.raises(StoreError, match="disk full"):
            await uow.execute(work)

    session.rollback.assert_awaited_once()
    session.release.assert_awaited_once()
    assert "without an active transaction" not in caplog.text


@pytest.mark.asyncio
async def test_context_manager_commits_on_success(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    async with uow:
        assert uow.is_active

    session.commit.assert_awaited_once()


@pytest.mark.asyncio
async def test_context_manager_rolls_back_on_error(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    with pytest.raises(RuntimeError):
        async with uow:
            raise RuntimeError("oops")

    session.commit.assert_not_awaited()
    session.rollback.assert_awaited_once()


@pytest.mark.asyncio
async def test_read_only_never_commits(uow: UnitOfWork, session: AsyncMock) -> None:
    async with uow.read_only() as reading:
        reading.get_repository(Task).mark_new(_task("a"))

    session.commit.assert_not_awaited()
    session.insert.assert_not_awaited()
    session.rollback.assert_awaited_once()
    assert not uow.is_active


@pytest.mark.asyncio
async def test_unit_is_reusable_after_commit(
    uow: UnitOfWork, session: AsyncMock
) -> None:
    async with uow:
        pass
    async with uow:
        pass

    assert session.begin.await_count == 2
    assert uow.transaction_id is None


def test_factory_builds_fresh_units(session: AsyncMock) -> None:
    factory = unit_of_work_factory(lambda: session)

    first, second = factory(), factory()

    assert isinstance(first, UnitOfWork)
    assert first is not second
