"""
Authentication models.

This module defines the user record the verified principal is resolved from.
"""
from enum import Enum
from typing import Optional

from kanban.core.models import BaseModelWithSoftDelete
from sqlalchemy import Boolean, String
from sqlalchemy.orm import Mapped, mapped_column


class UserRole(str, Enum):
    """Global (system-wide) user role."""
    USER = "user"
    ADMIN = "admin"


class User(BaseModelWithSoftDelete):
    """User model holding identity and global role."""

    __tablename__ = "users"

    username: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        index=True,
        nullable=False,
        comment="User's username (unique)"
    )

    email: Mapped[Optional[str]] = mapped_column(
        String(255),
        unique=True,
        nullable=True,
        comment="User's email address (unique)"
    )

    full_name: Mapped[Optional[str]] = mapped_column(
        String(255),
        nullable=True,
        comment="User's full name"
    )

    role: Mapped[UserRole] = mapped_column(
        String(20),
        default=UserRole.USER,
        nullable=False,
        comment="Global role; admins bypass every board permission check"
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
        comment="Whether the user account is active"
    )

    def __repr__(self) -> str:
        """String representation of the User model."""
        return f"<User(id={self.id}, username='{self.username}', role={self.role})>"

    @property
    def display_name(self) -> str:
        """Get the display name for the user."""
        return self.full_name or self.username

    @property
    def is_admin(self) -> bool:
        return UserRole(self.role) == UserRole.ADMIN
