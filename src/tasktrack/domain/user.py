"""User aggregate (only what task permissions need)."""

from __future__ import annotations

import enum

from pydantic import Field, field_validator

from .aggregate import AggregateRoot


class UserRole(str, enum.Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(AggregateRoot):
    email: str = Field(min_length=3, max_length=254)
    name: str = Field(min_length=1, max_length=100)
    role: UserRole = UserRole.USER

    @field_validator("email")
    @classmethod
    def _normalise_email(cls, value: str) -> str:
        return value.strip().lower()

    def is_admin(self) -> bool:
        return self.role is UserRole.ADMIN

    def can_access_task(self, owner_id: str) -> bool:
        """Admins can access every task, users only their own."""
        return self.is_admin() or self.id == owner_id
