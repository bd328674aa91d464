"""Application settings and logging setup."""

from __future__ import annotations

import logging

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .command_service import OVERDUE_JOB_NAME

ENV_PREFIX = "TASKTRACK_"


class TaskTrackSettings(BaseSettings):
    """
    Runtime configuration.

    Keyword arguments win over ``TASKTRACK_*`` environment variables, which
    win over the defaults. Blank variables count as unset and unknown ones
    under the prefix are ignored. Pass ``_env_prefix`` to read another
    prefix.
    """

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    database_url: str = "sqlite+aiosqlite:///:memory:"
    echo_sql: bool = False
    log_level: str = "INFO"
    task_cache_ttl: int = Field(
        default=300, ge=0, description="Seconds a single task stays cached; 0 disables."
    )
    listing_cache_ttl: int = Field(
        default=120,
        ge=0,
        description="Seconds a per-user listing stays cached; 0 disables.",
    )
    stats_cache_ttl: int = Field(
        default=600, ge=0, description="Seconds statistics stay cached; 0 disables."
    )
    overdue_job_name: str = OVERDUE_JOB_NAME


def configure_logging(settings: TaskTrackSettings) -> None:
    """Attach a stream handler to the ``tasktrack`` logger hierarchy."""
    logger = logging.getLogger("tasktrack")
    logger.setLevel(settings.log_level.upper())
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
        )
        logger.addHandler(handler)
    if settings.echo_sql:
        logging.getLogger("sqlalchemy.engine").setLevel(logging.INFO)
