"""
Board models.

This module defines the database models for boards and board-scoped members.
"""
from typing import Optional
from uuid import UUID

from kanban.core.models import BaseModelWithSoftDelete
from sqlalchemy import ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship


class Board(BaseModelWithSoftDelete):
    """Board model; belongs to exactly one workspace for its whole life."""

    __tablename__ = "boards"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Board name"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Board description"
    )

    workspace_id: Mapped[UUID] = mapped_column(
        ForeignKey("workspaces.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the owning workspace"
    )

    created_by_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="ID of the user who created the board"
    )

    # Optimistic concurrency counter, bumped on every UPDATE
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Row version"
    )

    # Relationships
    workspace = relationship("Workspace", lazy="raise_on_sql")
    created_by = relationship("User", lazy="raise_on_sql")

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """String representation of the Board model."""
        return f"<Board(id={self.id}, name='{self.name}', workspace_id={self.workspace_id})>"


class BoardMember(BaseModelWithSoftDelete):
    """Board-scoped access grant, independent of workspace membership."""

    __tablename__ = "board_members"

    board_id: Mapped[UUID] = mapped_column(
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="ID of the board"
    )

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        comment="ID of the user"
    )

    # Relationships
    board: Mapped["Board"] = relationship(lazy="raise_on_sql")
    user = relationship("User", lazy="raise_on_sql")

    __table_args__ = (
        UniqueConstraint('board_id', 'user_id', name='uq_board_member'),
    )

    def __repr__(self) -> str:
        return f"<BoardMember(board_id={self.board_id}, user_id={self.user_id})>"
