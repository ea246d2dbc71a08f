"""
List models.

Lists are the ordered columns of a board.
"""
from uuid import UUID

from kanban.core.models import BaseModelWithSoftDelete
from sqlalchemy import ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship


class BoardList(BaseModelWithSoftDelete):
    """A board column holding an ordered sequence of cards."""

    __tablename__ = "lists"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="List name"
    )

    board_id: Mapped[UUID] = mapped_column(
        ForeignKey("boards.id", ondelete="CASCADE"),
        nullable=False,
        comment="ID of the owning board"
    )

    position: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=0,
        comment="Zero-based position among the board's lists"
    )

    # Optimistic concurrency counter, bumped on every UPDATE
    version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Row version"
    )

    # Relationships
    board = relationship("Board", lazy="raise_on_sql")

    __table_args__ = (
        Index("ix_lists_board_position", "board_id", "position"),
    )

    __mapper_args__ = {"version_id_col": version}

    def __repr__(self) -> str:
        """String representation of the BoardList model."""
        return f"<BoardList(id={self.id}, name='{self.name}', position={self.position})>"
