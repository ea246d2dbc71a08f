"""
Board schemas.

This module defines Pydantic models for board requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from kanban.modules.board_list.schemas import ListResponse
from kanban.modules.card.schemas import CardResponse
from pydantic import BaseModel, ConfigDict, Field, field_validator


class BoardCreate(BaseModel):
    """Schema for board creation."""

    workspace_id: UUID = Field(..., description="Workspace the board belongs to")
    name: str = Field(..., min_length=1, max_length=255, description="Board name")
    description: Optional[str] = Field(None, max_length=1000, description="Board description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class BoardUpdate(BaseModel):
    """Schema for board updates. The workspace cannot be changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255, description="New board name")
    description: Optional[str] = Field(None, max_length=1000, description="New board description")


class BoardResponse(BaseModel):
    """Schema for board response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Board ID")
    workspace_id: UUID = Field(..., description="Owning workspace ID")
    name: str = Field(..., description="Board name")
    description: Optional[str] = Field(None, description="Board description")
    created_by_id: Optional[UUID] = Field(None, description="Creator user ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class ListWithCardsResponse(ListResponse):
    """A list together with its ordered cards."""

    cards: List[CardResponse] = Field(default_factory=list, description="Cards ordered by position")


class BoardDetailResponse(BoardResponse):
    """Full board view: ordered lists, each with ordered cards."""

    lists: List[ListWithCardsResponse] = Field(default_factory=list, description="Lists ordered by position")


class BoardListResponse(BaseModel):
    """Schema for the boards of one workspace."""

    boards: List[BoardResponse] = Field(..., description="Boards visible to the caller")
    total: int = Field(..., description="Number of boards returned")


class BoardMemberCreate(BaseModel):
    """Schema for granting board-scoped access."""

    user_id: UUID = Field(..., description="User ID to add")


class BoardMemberResponse(BaseModel):
    """Schema for board member response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Membership ID")
    board_id: UUID = Field(..., description="Board ID")
    user_id: UUID = Field(..., description="User ID")
    created_at: datetime = Field(..., description="Creation timestamp")
