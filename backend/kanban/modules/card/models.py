"""
Card models.

This module defines cards and their many-to-many assignment to users.
"""
from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from kanban.core.models import Base, BaseModelWithSoftDelete
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, Table, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship


class CardPriority(str, Enum):
    """Card priority levels."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


card_assignees = Table(
    "card_assignees",
    Base.metadata,
    Column("card_id", ForeignKey("cards.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Card(BaseModelWithSoftDelete):
    """A unit of work; moves between lists of the same or another board."""

    __tablename__ = "cards"

    title: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Card title"
    )

    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
        comment="Card description"
    )

    # Mutable: reassigned when the card moves
    list_id: Mapped[UUID] = mapped_column(
        ForeignKey("lists.id", ondelete="CASCADE"),
        nullable=False,
        comment="ID of the containing list"
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Zero-based position among the list's cards"
    )

    priority: Mapped[CardPriority] = mapped_column(
        String(20),
        nullable=False,
        default=CardPriority.MEDIUM,
        comment="Card priority"
    )

    due_date: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        comment="Optional due date"
    )

    created_by_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
        comment="ID of the user who created the card"
    )

    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Row version"
    )

    # Relationships
    list = relationship("BoardList", lazy="raise_on_sql")
    created_by = relationship("User", lazy="raise_on_sql")
    assigned_users: Mapped[List["User"]] = relationship(  # noqa: F821
        "User",
        secondary=card_assignees,
        lazy="raise_on_sql",
    )

    __table_args__ = (
        Index("ix_cards_list_position", "list_id", "position"),
    )

    __mapper_args__ = {"version_id_col": version}

    @property
    def assignee_ids(self) -> List[UUID]:
        return [user.id for user in self.assigned_users]

    def __repr__(self) -> str:
        """String representation of the Card model."""
        return f"<Card(id={self.id}, title='{self.title}', list_id={self.list_id}, position={self.position})>"
