"""Unit of Work and change tracking."""

from __future__ import annotations

from .change_set import ChangeSet
from .unit_of_work import UnitOfWork, unit_of_work_factory

__all__ = ["ChangeSet", "UnitOfWork", "unit_of_work_factory"]
