"""
Card router.

This module provides API endpoints for cards.
"""
from uuid import UUID

from fastapi import APIRouter, Depends, status
from kanban.core.broadcast import Broadcaster, get_broadcaster
from kanban.core.database import get_db_session
from kanban.modules.auth.dependencies import get_current_principal
from kanban.modules.auth.schemas import Principal
from kanban.modules.workspace.schemas import MessageResponse
from sqlalchemy.ext.asyncio import AsyncSession

from .schemas import CardCreate, CardListResponse, CardMove, CardResponse, CardUpdate
from .service import CardService

router = APIRouter()


@router.post(
    "/cards",
    response_model=CardResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create card",
    description="Create a card in a list. Without a position the card is appended.",
)
async def create_card(
    card_data: CardCreate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    card = await CardService(db, broadcaster).create_card(card_data, principal)
    return CardResponse.model_validate(card)


@router.get(
    "/cards/{card_id}",
    response_model=CardResponse,
    summary="Get card",
)
async def get_card(
    card_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    card = await CardService(db, broadcaster).get_card(card_id, principal)
    return CardResponse.model_validate(card)


@router.get(
    "/lists/{list_id}/cards",
    response_model=CardListResponse,
    summary="List the cards of a list",
    description="Cards ordered by position. Requires board access.",
)
async def list_cards(
    list_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    cards = await CardService(db, broadcaster).list_cards(list_id, principal)
    return CardListResponse(
        cards=[CardResponse.model_validate(card) for card in cards],
        total=len(cards),
    )


@router.put(
    "/cards/{card_id}",
    response_model=CardResponse,
    summary="Update card",
    description="Update card fields and assignees. Use the move endpoint to change list or position.",
)
async def update_card(
    card_id: UUID,
    card_data: CardUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    card = await CardService(db, broadcaster).update_card(card_id, card_data, principal)
    return CardResponse.model_validate(card)


@router.post(
    "/cards/{card_id}/move",
    response_model=CardResponse,
    summary="Move card",
    description="Move a card within its list or to another list.",
)
async def move_card(
    card_id: UUID,
    move_data: CardMove,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    card = await CardService(db, broadcaster).move_card(card_id, move_data, principal)
    return CardResponse.model_validate(card)


@router.delete(
    "/cards/{card_id}",
    response_model=MessageResponse,
    summary="Delete card",
    description="Soft delete a card. Only admins, the creator and assignees may delete.",
)
async def delete_card(
    card_id: UUID,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db_session),
    broadcaster: Broadcaster = Depends(get_broadcaster),
):
    await CardService(db, broadcaster).delete_card(card_id, principal)
    return MessageResponse(message="Card deleted successfully")
