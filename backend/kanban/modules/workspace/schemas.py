"""
Workspace schemas.

This module defines Pydantic models for workspace requests and responses.
"""
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .models import WorkspaceMemberRole


def _strip_name(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    value = value.strip()
    if not value:
        raise ValueError("Name must not be blank")
    return value


class WorkspaceCreate(BaseModel):
    """Schema for workspace creation."""

    name: str = Field(..., min_length=1, max_length=255, description="Workspace name")
    description: Optional[str] = Field(None, max_length=1000, description="Workspace description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _strip_name(v)


class WorkspaceUpdate(BaseModel):
    """Schema for workspace updates. The owner cannot be changed."""

    name: Optional[str] = Field(None, min_length=1, max_length=255, description="New workspace name")
    description: Optional[str] = Field(None, max_length=1000, description="New workspace description")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        return _strip_name(v)


class WorkspaceResponse(BaseModel):
    """Schema for workspace response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Workspace ID")
    name: str = Field(..., description="Workspace name")
    description: Optional[str] = Field(None, description="Workspace description")
    owner_id: UUID = Field(..., description="Owner user ID")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")


class WorkspaceMemberResponse(BaseModel):
    """Schema for workspace member response."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID = Field(..., description="Membership ID")
    workspace_id: UUID = Field(..., description="Workspace ID")
    user_id: UUID = Field(..., description="User ID")
    role: WorkspaceMemberRole = Field(..., description="Role in the workspace")
    created_at: datetime = Field(..., description="Creation timestamp")


class WorkspaceMemberCreate(BaseModel):
    """Schema for adding a member to workspace."""

    user_id: UUID = Field(..., description="User ID to add")
    role: WorkspaceMemberRole = Field(default=WorkspaceMemberRole.MEMBER, description="Role to assign")


class WorkspaceMemberUpdate(BaseModel):
    """Schema for changing a member's role."""

    role: WorkspaceMemberRole = Field(..., description="New role to assign")


class WorkspaceListResponse(BaseModel):
    """Schema for workspace list response."""

    workspaces: List[WorkspaceResponse] = Field(..., description="List of workspaces")
    total: int = Field(..., description="Number of workspaces returned")


class MessageResponse(BaseModel):
    """Schema for simple message responses."""

    message: str = Field(..., description="Response message")
    success: bool = Field(default=True, description="Whether operation was successful")
