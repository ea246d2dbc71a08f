"""
Authentication schemas.

This module defines the verified principal passed explicitly through every
service and permission call.
"""
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .models import User, UserRole


class Principal(BaseModel):
    """Resolved identity of the caller: user id, global role and display name."""

    model_config = ConfigDict(frozen=True)

    id: UUID = Field(..., description="User ID")
    role: UserRole = Field(default=UserRole.USER, description="Global role")
    display_name: str = Field(default="", description="Name shown in board events")

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user: User) -> "Principal":
        return cls(id=user.id, role=UserRole(user.role), display_name=user.display_name)


class UserSummary(BaseModel):
    """Compact user representation embedded in other responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="User ID")
    username: str = Field(..., description="Username")
    full_name: Optional[str] = Field(None, description="Full name")
