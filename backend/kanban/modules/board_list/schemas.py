"""
List schemas.

This module defines Pydantic models for list requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ListCreate(BaseModel):
    """Schema for list creation."""

    board_id: UUID = Field(..., description="Board the list is created in")
    name: str = Field(..., min_length=1, max_length=255, description="List name")
    position: Optional[int] = Field(
        None,
        description="Index in the board; omitted means append, out-of-range values are clamped"
    )

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class ListUpdate(BaseModel):
    """Schema for list updates. Position only changes through a move."""

    name: Optional[str] = Field(None, min_length=1, max_length=255, description="New list name")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("Name must not be blank")
        return v


class ListMove(BaseModel):
    """Schema for moving a list within its board."""

    new_position: int = Field(..., description="Target index; clamped into range")


class ListResponse(BaseModel):
    """Schema for list response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="List ID")
    board_id: UUID = Field(..., description="Owning board ID")
    name: str = Field(..., description="List name")
    position: int = Field(..., description="Position in the board")
    version: int = Field(..., description="Row version")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class ListCollectionResponse(BaseModel):
    """Schema for the ordered lists of one board."""

    lists: List[ListResponse] = Field(..., description="Lists ordered by position")
    total: int = Field(..., description="Number of lists")
