"""
Board router.

This module provides API endpoints for boards and board membership.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from kanban.core.database import get_db_session
from kanban.modules.auth.dependencies import get_current_principal
from kanban.modules.auth.schemas import Principal
from kanban.modules.workspace.schemas import MessageResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .schemas import (
    BoardCreate,
    BoardDetailResponse,
    BoardListResponse,
    BoardMemberCreate,
    BoardMemberResponse,
    BoardResponse,
    BoardUpdate,
)
from .service import BoardService

router = APIRouter()


@router.post(
    "/boards",
    response_model=BoardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create board",
    description="Create a board in a workspace. Requires owner or admin role in the workspace.",
)
async def create_board(
    board_data: BoardCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    board = await BoardService(db).create_board(board_data, principal)
    return BoardResponse.model_validate(board)


@router.get(
    "/boards/{board_id}",
    response_model=BoardDetailResponse,
    summary="Get board",
    description="Get a board with its ordered lists and cards. Requires board access.",
)
async def get_board(
    board_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    return await BoardService(db).get_board_detail(board_id, principal)


@router.get(
    "/workspaces/{workspace_id}/boards",
    response_model=BoardListResponse,
    summary="List boards of a workspace",
    description="List the boards of a workspace that the caller can access.",
)
async def list_boards(
    workspace_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    boards = await BoardService(db).list_boards(workspace_id, principal)
    return BoardListResponse(
        boards=[BoardResponse.model_validate(board) for board in boards],
        total=len(boards),
    )


@router.put(
    "/boards/{board_id}",
    response_model=BoardResponse,
    summary="Update board",
    description="Update board name or description. Requires owner or admin role in the workspace.",
)
async def update_board(
    board_id: UUID,
    board_data: BoardUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    board = await BoardService(db).update_board(board_id, board_data, principal)
    return BoardResponse.model_validate(board)


@router.delete(
    "/boards/{board_id}",
    response_model=MessageResponse,
    summary="Delete board",
    description="Soft delete a board. Requires owner or admin role in the workspace.",
)
async def delete_board(
    board_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    await BoardService(db).delete_board(board_id, principal)
    return MessageResponse(message="Board deleted successfully")


@router.post(
    "/boards/{board_id}/members",
    response_model=BoardMemberResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Add board member",
    description="Grant a user access to this board only.",
)
async def add_board_member(
    board_id: UUID,
    member_data: BoardMemberCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    member = await BoardService(db).add_member(board_id, member_data, principal)
    return BoardMemberResponse.model_validate(member)


@router.delete(
    "/boards/{board_id}/members/{user_id}",
    response_model=MessageResponse,
    summary="Remove board member",
    description="Revoke a user's board-scoped access.",
)
async def remove_board_member(
    board_id: UUID,
    user_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
):
    await BoardService(db).remove_member(board_id, user_id, principal)
    return MessageResponse(message="Board member removed successfully")
