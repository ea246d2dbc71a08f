"""
Card schemas.

This module defines Pydantic models for card requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from kanban.modules.auth.schemas import UserSummary
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import CardPriority


class CardCreate(BaseModel):
    """Schema for card creation."""

    list_id: UUID = Field(..., description="List the card is created in")
    title: str = Field(..., min_length=1, max_length=255, description="Card title")
    description: Optional[str] = Field(None, description="Card description")
    priority: CardPriority = Field(default=CardPriority.MEDIUM, description="Card priority")
    due_date: Optional[datetime] = Field(None, description="Optional due date")
    position: Optional[int] = Field(
        None,
        description="Index in the list; omitted means append, out-of-range values are clamped"
    )
    assigned_user_ids: List[UUID] = Field(default_factory=list, description="Users to assign")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v


class CardUpdate(BaseModel):
    """Schema for card updates. Position and list only change through a move."""

    title: Optional[str] = Field(None, min_length=1, max_length=255, description="New title")
    description: Optional[str] = Field(None, description="New description")
    priority: Optional[CardPriority] = Field(None, description="New priority")
    due_date: Optional[datetime] = Field(None, description="New due date")
    assigned_user_ids: Optional[List[UUID]] = Field(None, description="Replacement set of assignees")

    @field_validator('title')
    @classmethod
    def validate_title(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Title must not be blank")
        return v


class CardMove(BaseModel):
    """Schema for moving a card within its list or to another list."""

    target_list_id: UUID = Field(..., description="Destination list")
    new_position: int = Field(..., description="Index in the destination list; clamped into range")


class CardResponse(BaseModel):
    """Schema for card response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Card ID")
    list_id: UUID = Field(..., description="Containing list ID")
    title: str = Field(..., description="Card title")
    description: Optional[str] = Field(None, description="Card description")
    position: int = Field(..., description="Position in the list")
    priority: CardPriority = Field(..., description="Card priority")
    due_date: Optional[datetime] = Field(None, description="Due date")
    created_by_id: Optional[UUID] = Field(None, description="Creator user ID")
    assigned_users: List[UserSummary] = Field(default_factory=list, description="Assigned users")
    version: int = Field(..., description="Row version")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class CardListResponse(BaseModel):
    """Schema for the ordered cards of one list."""

    cards: List[CardResponse] = Field(..., description="Cards ordered by position")
    total: int = Field(..., description="Number of cards")
