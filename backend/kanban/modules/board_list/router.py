"""
List router.

This module provides API endpoints for the lists of a board.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from kanban.core.broadcast import Broadcaster, get_broadcaster
from kanban.core.database import get_db_session
from kanban.modules.auth.dependencies import get_current_principal
from kanban.modules.auth.schemas import Principal
from kanban.modules.workspace.schemas import MessageResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .schemas import ListCollectionResponse, ListCreate, ListMove, ListResponse, ListUpdate
from .service import ListService

router = APIRouter()


@router.post(
    "/lists",
    response_model=ListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create list",
    description="Create a list in a board. Requires owner or admin role in the workspace.",
)
async def create_list(
    list_data: ListCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    board_list = await ListService(db, broadcaster).create_list(list_data, principal)
    return ListResponse.model_validate(board_list)


@router.get(
    "/lists/{list_id}",
    response_model=ListResponse,
    summary="Get list",
)
async def get_list(
    list_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    board_list = await ListService(db, broadcaster).get_list(list_id, principal)
    return ListResponse.model_validate(board_list)


@router.get(
    "/boards/{board_id}/lists",
    response_model=ListCollectionResponse,
    summary="List the lists of a board",
    description="Lists ordered by position. Requires board access.",
)
async def list_lists(
    board_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    lists = await ListService(db, broadcaster).list_lists(board_id, principal)
    return ListCollectionResponse(
        lists=[ListResponse.model_validate(board_list) for board_list in lists],
        total=len(lists),
    )


@router.put(
    "/lists/{list_id}",
    response_model=ListResponse,
    summary="Update list",
    description="Rename a list. Use the move endpoint to change its position.",
)
async def update_list(
    list_id: UUID,
    list_data: ListUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    board_list = await ListService(db, broadcaster).update_list(list_id, list_data, principal)
    return ListResponse.model_validate(board_list)


@router.post(
    "/lists/{list_id}/move",
    response_model=ListResponse,
    summary="Move list",
    description="Move a list to a new position in its board. Requires owner or admin role in the workspace.",
)
async def move_list(
    list_id: UUID,
    move_data: ListMove,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    board_list = await ListService(db, broadcaster).move_list(list_id, move_data, principal)
    return ListResponse.model_validate(board_list)


@router.delete(
    "/lists/{list_id}",
    response_model=MessageResponse,
    summary="Delete list",
)
async def delete_list(
    list_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    await ListService(db, broadcaster).delete_list(list_id, principal)
    return MessageResponse(message="List deleted successfully")
