"""
Workspace router.

This module provides API endpoints for workspace management.
"""
from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, status
from kanban.core.database import get_db_session
from kanban.modules.auth.dependencies import get_current_principal
from kanban.modules.auth.schemas import Principal
from sqlalchemy.ext.asyncio import AsyncSession

from .schemas import (
    MessageResponse,
    WorkspaceCreate,
    WorkspaceListResponse,
    WorkspaceMemberCreate,
    WorkspaceMemberResponse,
    WorkspaceMemberUpdate,
    WorkspaceResponse,
    WorkspaceUpdate,
)
from .service import WorkspaceService

router = APIRouter()


@router.post(
    "/workspaces",
    response_model=WorkspaceResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create new workspace",
    description="Create a new workspace. The creator becomes its owner.",
)
async def create_workspace(
    workspace_data: WorkspaceCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    """Create a new workspace."""
    workspace = await WorkspaceService(db).create_workspace(workspace_data, principal)
    return WorkspaceResponse.model_validate(workspace)


@router.get(
    "/workspaces",
    response_model=WorkspaceListResponse,
    summary="List workspaces",
    description="List the workspaces the caller owns or is a member of.",
)
async def list_workspaces(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    """List workspaces for the current user."""
    workspaces = await WorkspaceService(db).list_workspaces(principal)
    return WorkspaceListResponse(
        workspaces=[WorkspaceResponse.model_validate(ws) for ws in workspaces],
        total=len(workspaces),
    )


@router.get(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceResponse,
    summary="Get workspace details",
    description="Get a workspace. Requires membership.",
)
async def get_workspace(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    workspace = await WorkspaceService(db).get_workspace(workspace_id, principal)
    return WorkspaceResponse.model_validate(workspace)


@router.put(
    "/workspaces/{workspace_id}",
    response_model=WorkspaceResponse,
    summary="Update workspace",
    description="Update workspace name or description. Requires owner or admin role.",
)
async def update_workspace(
    workspace_id: UUID,
    workspace_data: WorkspaceUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    workspace = await WorkspaceService(db).update_workspace(workspace_id, workspace_data, principal)
    return WorkspaceResponse.model_validate(workspace)


@router.delete(
    "/workspaces/{workspace_id}",
    response_model=MessageResponse,
    summary="Delete workspace",
    description="Soft delete a workspace. Requires owner or admin role.",
)
async def delete_workspace(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    await WorkspaceService(db).delete_workspace(workspace_id, principal)
    return MessageResponse(message="Workspace deleted successfully")


@router.get(
    "/workspaces/{workspace_id}/members",
    response_model=List[WorkspaceMemberResponse],
    summary="List workspace members",
    description="List all members of the workspace. Requires membership.",
)
async def list_workspace_members(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    members = await WorkspaceService(db).list_members(workspace_id, principal)
    return [WorkspaceMemberResponse.model_validate(member) for member in members]


@router.post(
    "/workspaces/{workspace_id}/members",
    response_model=WorkspaceMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add workspace member",
    description="Add a user to the workspace as ADMIN or MEMBER. Requires owner or admin role.",
)
async def add_workspace_member(
    workspace_id: UUID,
    member_data: WorkspaceMemberCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    member = await WorkspaceService(db).add_member(workspace_id, member_data, principal)
    return WorkspaceMemberResponse.model_validate(member)


@router.put(
    "/workspaces/{workspace_id}/members/{user_id}",
    response_model=WorkspaceMemberResponse,
    summary="Update workspace member",
    description="Change a member's role. The owner's membership cannot be changed.",
)
async def update_workspace_member(
    workspace_id: UUID,
    user_id: UUID,
    member_data: WorkspaceMemberUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    member = await WorkspaceService(db).update_member_role(workspace_id, user_id, member_data, principal)
    return WorkspaceMemberResponse.model_validate(member)


@router.delete(
    "/workspaces/{workspace_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove workspace member",
    description="Remove a member from the workspace. The owner cannot be removed.",
)
async def remove_workspace_member(
    workspace_id: UUID,
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    await WorkspaceService(db).remove_member(workspace_id, user_id, principal)
    return MessageResponse(message="Member removed successfully")
