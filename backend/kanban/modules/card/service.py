"""
Card service.

This module orchestrates card mutations: resolve the card and its ancestry,
authorize against it, apply the change (positions included) in the request
transaction, commit, and only then publish the board event.
"""
from typing import List, Optional
from uuid import UUID, uuid4

from kanban.core.ancestry import AncestryResolver
from kanban.core.broadcast import Broadcaster, BoardEventType
from kanban.core.database import commit_or_conflict
from kanban.core.models import not_deleted
from kanban.core.ordering import OrderingEngine
from kanban.core.permissions import PermissionService
from kanban.modules.auth.schemas import Principal
from kanban.modules.auth.service import AuthService
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from structlog import get_logger

from .models import Card
from .schemas import CardCreate, CardMove, CardResponse, CardUpdate

logger = get_logger(__name__)

ENTITY = "card"


class CardService:
    """Service class for card operations."""

    def __init__(self, db: AsyncSession, broadcaster: Broadcaster):
        """
        Initialize the card service.

        Args:
            db: Database session of the current request
            broadcaster: Broadcaster notified after each committed mutation
        """
        self.db = db
        self.broadcaster = broadcaster
        self.resolver = AncestryResolver(db)
        self.permissions = PermissionService(db)
        self.ordering = OrderingEngine(db)
        self.users = AuthService(db)

    async def create_card(self, card_data: CardCreate, principal: Principal) -> Card:
        """
        Create a card in a list.

        Args:
            card_data: Card creation data
            principal: Verified caller

        Returns:
            Created card

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors does not exist
            AccessDeniedException: If the caller has no access to the list's board
            ValidationException: If an assignee does not exist
        """
        board_list = await self.resolver.load_list(card_data.list_id)
        await self.permissions.verify_board_access(board_list.board_id, principal)

        assignees = await self.users.get_users_by_ids(card_data.assigned_user_ids)

        card = Card(
            id=uuid4(),
            list_id=board_list.id,
            title=card_data.title,
            description=card_data.description,
            priority=card_data.priority,
            due_date=card_data.due_date,
            created_by_id=principal.id,
        )
        card.list = board_list
        card.assigned_users = assignees

        await self.ordering.insert_card(card, card_data.position)
        self.db.add(card)
        await commit_or_conflict(self.db)

        logger.info(
            "Card created",
            card_id=str(card.id),
            list_id=str(board_list.id),
            position=card.position,
            user_id=str(principal.id),
        )
        self._publish(BoardEventType.CREATED, card, board_list.board_id, principal)
        return card

    async def get_card(self, card_id: UUID, principal: Principal) -> Card:
        """
        Get a card the caller can see.

        Raises:
            ResourceNotFoundException: If the card or one of its ancestors does not exist
            AccessDeniedException: If the caller has no access to the card's board
        """
        card = await self.resolver.load_card(card_id)
        await self.permissions.verify_board_access(card.list.board_id, principal)
        return card

    async def list_cards(self, list_id: UUID, principal: Principal) -> List[Card]:
        """
        Get the non-deleted cards of a list ordered by position.

        Args:
            list_id: List ID
            principal: Verified caller

        Returns:
            Cards ordered by position
        """
        board_list = await self.resolver.load_list(list_id)
        await self.permissions.verify_board_access(board_list.board_id, principal)

        result = await self.db.execute(
            select(Card)
            .options(selectinload(Card.assigned_users))
            .where(Card.list_id == list_id, *not_deleted(Card))
            .order_by(Card.position, Card.id)
        )
        return list(result.scalars().all())

    async def update_card(self, card_id: UUID, card_data: CardUpdate, principal: Principal) -> Card:
        """
        Update card fields. Position and list are left untouched.

        Raises:
            ResourceNotFoundException: If the card or one of its ancestors does not exist
            AccessDeniedException: If the caller may not edit the card
            ConflictException: If the card was changed concurrently
        """
        card = await self.resolver.load_card(card_id)
        await self.permissions.verify_can_edit_card(card_id, principal)

        update_data = card_data.model_dump(exclude_unset=True)
        assignee_ids: Optional[List[UUID]] = update_data.pop("assigned_user_ids", None)
        # Explicit nulls only clear nullable fields
        for field in ("title", "priority"):
            if update_data.get(field, "") is None:
                del update_data[field]

        card.update_from_dict(update_data, exclude={"id", "created_at", "list_id", "position"})
        if assignee_ids is not None:
            card.assigned_users = await self.users.get_users_by_ids(assignee_ids)

        await commit_or_conflict(self.db)

        logger.info("Card updated", card_id=str(card.id), fields=sorted(card_data.model_fields_set))
        self._publish(BoardEventType.UPDATED, card, card.list.board_id, principal)
        return card

    async def move_card(self, card_id: UUID, move_data: CardMove, principal: Principal) -> Card:
        """
        Move a card within its list or into another list, possibly on another board.

        Moving to the current list and position changes nothing and publishes
        nothing.

        Args:
            card_id: Card ID
            move_data: Destination list and position
            principal: Verified caller

        Returns:
            The card in its new place

        Raises:
            ResourceNotFoundException: If the card, the target list or an ancestor does not exist
            AccessDeniedException: If the caller may not edit the card or cannot access the target board
            ConflictException: If the group was reordered concurrently
        """
        card = await self.resolver.load_card(card_id)
        await self.permissions.verify_can_edit_card(card_id, principal)

        target_list = await self.resolver.load_list(move_data.target_list_id)
        await self.permissions.verify_board_access(target_list.board_id, principal)

        source_list_id = card.list_id
        source_board_id = card.list.board_id

        moved = await self.ordering.move_card(card, target_list, move_data.new_position)
        if not moved:
            logger.debug("Card move is a no-op", card_id=str(card.id))
            return card

        await commit_or_conflict(self.db)

        logger.info(
            "Card moved",
            card_id=str(card.id),
            from_list_id=str(source_list_id),
            to_list_id=str(target_list.id),
            position=card.position,
            user_id=str(principal.id),
        )
        self._publish(
            BoardEventType.MOVED, card, target_list.board_id, principal, previous_parent_id=source_list_id
        )
        if source_board_id != target_list.board_id:
            # Viewers of the source board must see the card leave
            self._publish(
                BoardEventType.MOVED, card, source_board_id, principal, previous_parent_id=source_list_id
            )
        return card

    async def delete_card(self, card_id: UUID, principal: Principal) -> None:
        """
        Soft delete a card. Sibling positions are left as they are.

        Raises:
            ResourceNotFoundException: If the card or one of its ancestors does not exist
            AccessDeniedException: If the caller is neither admin, creator nor assignee
        """
        card = await self.resolver.load_card(card_id)
        await self.permissions.verify_can_delete_card(card_id, principal)

        list_id = card.list_id
        board_id = card.list.board_id

        card.soft_delete()
        await commit_or_conflict(self.db)

        logger.info("Card deleted", card_id=str(card_id), list_id=str(list_id), user_id=str(principal.id))
        self.broadcaster.publish(
            board_id,
            BoardEventType.DELETED,
            entity=ENTITY,
            entity_id=card_id,
            previous_parent_id=list_id,
            actor=principal,
        )

    def _publish(
        self,
        event_type: BoardEventType,
        card: Card,
        board_id: UUID,
        principal: Principal,
        previous_parent_id: Optional[UUID] = None,
    ) -> None:
        self.broadcaster.publish(
            board_id,
            event_type,
            CardResponse.model_validate(card).model_dump(mode="json"),
            entity=ENTITY,
            entity_id=card.id,
            parent_id=card.list_id,
            previous_parent_id=previous_parent_id,
            actor=principal,
        )
