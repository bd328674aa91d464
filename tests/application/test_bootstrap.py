from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING

import pytest
from pydantic import ValidationError

from tasktrack.application import (
    OVERDUE_JOB_NAME,
    CreateTaskCommand,
    GetTasksQuery,
    GetUserTasksQuery,
    TaskTrackSettings,
    build_application,
    configure_logging,
)
from tasktrack.domain import User
from tasktrack.primitives import UnregisteredHandlerError

if TYPE_CHECKING:
    from collections.abc import Iterator
    from pathlib import Path

    from tasktrack.cqrs import Query


# ── Settings ─────────────────────────────────────────────────────────


@pytest.fixture(autouse=True)
def clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in list(os.environ):
        if name.startswith(("TASKTRACK_", "APP_")):
            monkeypatch.delenv(name)


def test_settings_defaults() -> None:
    settings = TaskTrackSettings()

    assert settings.database_url == "sqlite+aiosqlite:///:memory:"
    assert settings.task_cache_ttl == 300
    assert settings.overdue_job_name == OVERDUE_JOB_NAME


def test_settings_read_environment_and_keywords_win(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("TASKTRACK_ECHO_SQL", "true")
    monkeypatch.setenv("TASKTRACK_TASK_CACHE_TTL", "30")
    monkeypatch.setenv("TASKTRACK_LOG_LEVEL", "")
    monkeypatch.setenv("TASKTRACK_UNKNOWN", "ignored")
    monkeypatch.setenv("TASKTRACK_DATABASE_URL", "sqlite+aiosqlite:///env.db")
    monkeypatch.setenv("OTHER_STATS_CACHE_TTL", "1")

    settings = TaskTrackSettings(database_url="sqlite+aiosqlite:///tasks.db")

    assert settings.echo_sql is True
    assert settings.task_cache_ttl == 30
    assert settings.log_level == "INFO"
    assert settings.stats_cache_ttl == 600
    assert settings.database_url == "sqlite+aiosqlite:///tasks.db"


def test_settings_custom_prefix(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("APP_LISTING_CACHE_TTL", "5")

    settings = TaskTrackSettings(_env_prefix="APP_")

    assert settings.listing_cache_ttl == 5


def test_settings_reject_negative_ttl(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASKTRACK_TASK_CACHE_TTL", "-1")

    with pytest.raises(ValidationError):
        TaskTrackSettings()


def test_settings_are_immutable() -> None:
    settings = TaskTrackSettings()

    with pytest.raises(ValidationError):
        settings.echo_sql = True  # type: ignore[misc]


@pytest.fixture
def tasktrack_logger() -> Iterator[logging.Logger]:
    logger = logging.getLogger("tasktrack")
    level, handlers = logger.level, list(logger.handlers)
    yield logger
    logger.setLevel(level)
    logger.handlers[:] = handlers


def test_configure_logging_is_idempotent(tasktrack_logger: logging.Logger) -> None:
    settings = TaskTrackSettings(log_level="debug")

    configure_logging(settings)
    configure_logging(settings)

    assert tasktrack_logger.level == logging.DEBUG
    assert len(tasktrack_logger.handlers) == 1


# ── Wiring ───────────────────────────────────────────────────────────


def test_every_message_type_is_registered() -> None:
    app = build_application()

    handlers = app.registry.get_registered_handlers()

    assert handlers["commands"]["CreateTaskCommand"] == "CreateTaskHandler"
    assert handlers["queries"]["GetTaskStatisticsQuery"] == (
        "GetTaskStatisticsHandler"
    )
    assert len(handlers["commands"]) == 7
    assert len(handlers["queries"]) == 7


@pytest.mark.asyncio
async def test_unknown_query_type_is_rejected() -> None:
    class PingQuery(GetTasksQuery):
        pass

    app = build_application()
    query: Query = PingQuery()

    with pytest.raises(UnregisteredHandlerError):
        await app.query(query)


@pytest.mark.asyncio
async def test_sqlite_application_round_trip(tmp_path: Path) -> None:
    settings = TaskTrackSettings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'tasks.db'}"
    )
    app = build_application(settings)
    await app.startup()
    try:
        uow = app.uow_factory()
        owner = User(id="u-1", email="ada@example.com", name="Ada")
        await uow.execute(lambda: app.users.save(owner, uow))

        created = await app.send(CreateTaskCommand(title="Ship it", user_id="u-1"))
        listed = await app.query(GetUserTasksQuery(user_id="u-1"))
        paged = await app.query(GetTasksQuery(user_id="u-1"))
    finally:
        await app.shutdown()

    assert created.success, created.error
    assert [task.title for task in listed.data] == ["Ship it"]
    assert paged.data.total == 1
    assert app.store is not None
