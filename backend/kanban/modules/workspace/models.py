"""
Workspace models.

This module defines the database models for workspaces and their memberships.
"""
from enum import Enum
from typing import Optional
from uuid import UUID

from kanban.core.models import BaseModelWithSoftDelete
from sqlalchemy import ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship


class WorkspaceMemberRole(str, Enum):
    """Role of a user inside one workspace."""
    OWNER = "owner"
    ADMIN = "admin"
    MEMBER = "member"


# Roles allowed to perform structural operations (list ordering, list and board lifecycle)
MANAGER_ROLES = frozenset({WorkspaceMemberRole.OWNER, WorkspaceMemberRole.ADMIN})


class Workspace(BaseModelWithSoftDelete):
    """Workspace model; the tenant boundary that owns boards."""

    __tablename__ = "workspaces"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Workspace name"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Workspace description"
    )

    # Exactly one owner, fixed at creation
    owner_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="RESTRICT"),
        nullable=False,
        comment="ID of the workspace owner"
    )

    # Relationships
    owner = relationship("User", lazy="raise_on_sql")

    def __repr__(self) -> str:
        """String representation of the Workspace model."""
        return f"<Workspace(id={self.id}, name='{self.name}', owner_id={self.owner_id})>"


class WorkspaceMember(BaseModelWithSoftDelete):
    """Membership fact for a (workspace, user) pair."""

    __tablename__ = "workspace_members"

    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the workspace"
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="ID of the user"
    )

    role: Mapped[WorkspaceMemberRole] = mapped_column(
        String(20),
        default=WorkspaceMemberRole.MEMBER,
        nullable=False,
        comment="Role of the member in the workspace"
    )

    # Relationships
    workspace: Mapped["Workspace"] = relationship(lazy="raise_on_sql")
    user = relationship("User", lazy="raise_on_sql")

    __table_args__ = (
        UniqueConstraint('workspace_id', 'user_id', name='uq_workspace_member'),
    )

    @property
    def is_manager(self) -> bool:
        """Owner or admin of the workspace."""
        return WorkspaceMemberRole(self.role) in MANAGER_ROLES

    def __repr__(self) -> str:
        """String representation of the WorkspaceMember model."""
        return f"<WorkspaceMember(workspace_id={self.workspace_id}, user_id={self.user_id}, role={self.role})>"
