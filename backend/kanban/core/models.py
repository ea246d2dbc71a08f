"""
Base database models with common fields and utilities.

This module provides:
- BaseModel with common fields (id, created_at, updated_at)
- Soft delete support shared by every board entity
- Helpers for filtering out logically deleted rows
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import DateTime, String, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def utcnow() -> datetime:
    """Timezone-aware current time used for engine-maintained timestamps."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all database models."""

    # Type annotation map for SQLAlchemy 2.0
    type_annotation_map = {
        str: String(255),  # Default string length
    }


class TimestampMixin:
    """Mixin for adding timestamp fields to models."""

    # Python-side defaults keep the values populated on the instance after a
    # flush, so async sessions never have to reload them.
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was created",
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utcnow,
        onupdate=utcnow,
        server_default=func.now(),
        nullable=False,
        doc="Timestamp when the record was last updated",
    )


class UUIDMixin:
    """Mixin for adding UUID primary key to models."""

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        nullable=False,
        doc="Unique identifier for the record",
    )


class SoftDeleteMixin:
    """Mixin for adding soft delete functionality to models."""

    deleted_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        default=None,
        doc="Timestamp when the record was soft deleted",
    )

    is_deleted: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        doc="Flag indicating if the record is soft deleted",
    )

    def soft_delete(self) -> None:
        """Mark the record as soft deleted."""
        self.is_deleted = True
        self.deleted_at = utcnow()

    def restore(self) -> None:
        """Restore a soft deleted record."""
        self.is_deleted = False
        self.deleted_at = None


class BaseModel(Base, UUIDMixin, TimestampMixin):
    """
    Base model class with common fields.

    All application models should inherit from this class to get:
    - UUID primary key (id)
    - Created timestamp (created_at)
    - Updated timestamp (updated_at)
    """

    __abstract__ = True

    def update_from_dict(self, data: Dict[str, Any], exclude: Optional[set] = None) -> None:
        """
        Update model instance from dictionary.

        Args:
            data: Dictionary with field names and values
            exclude: Set of field names to exclude from update
        """
        exclude = exclude or {"id", "created_at"}  # Protect immutable fields

        for key, value in data.items():
            if key not in exclude and hasattr(self, key):
                setattr(self, key, value)

    def __repr__(self) -> str:
        """String representation of the model."""
        class_name = self.__class__.__name__
        return f"<{class_name}(id={self.id})>"


class BaseModelWithSoftDelete(BaseModel, SoftDeleteMixin):
    """
    Base model class with soft delete functionality.

    Inherits all features from BaseModel and adds:
    - Soft delete timestamp (deleted_at)
    - Soft delete flag (is_deleted)
    - Soft delete methods (soft_delete, restore)

    Rows flagged as deleted are excluded from every lookup; use
    ``not_deleted`` when building queries.
    """

    __abstract__ = True


def not_deleted(*models: type[BaseModelWithSoftDelete]) -> list:
    """
    Build the "is not soft deleted" criteria for one or more models.

    Example:
        select(Card).join(Card.list).where(Card.id == card_id, *not_deleted(Card, BoardList))
    """
    return [model.is_deleted.is_(False) for model in models]
