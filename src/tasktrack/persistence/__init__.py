"""Repositories over the store session of a Unit of Work."""

from .repository import Repository, TaskRepository, UserRepository

__all__ = ["Repository", "TaskRepository", "UserRepository"]
