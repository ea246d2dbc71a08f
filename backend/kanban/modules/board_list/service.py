"""
List service.

This module provides business logic for the lists of a board. Structural
changes (create, move, rename, delete) are reserved to workspace owners
and admins.
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
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from .models import BoardList
from .schemas import ListCreate, ListMove, ListResponse, ListUpdate

logger = get_logger(__name__)

ENTITY = "list"


class ListService:
    """Service class for list operations."""

    def __init__(self, db: AsyncSession, broadcaster: Broadcaster):
        self.db = db
        self.broadcaster = broadcaster
        self.resolver = AncestryResolver(db)
        self.permissions = PermissionService(db)
        self.ordering = OrderingEngine(db)

    async def create_list(self, list_data: ListCreate, principal: Principal) -> BoardList:
        """
        Create a list in a board.

        Args:
            list_data: List creation data
            principal: Verified caller

        Returns:
            Created list

        Raises:
            ResourceNotFoundException: If the board or its workspace does not exist
            AccessDeniedException: If the caller does not manage the board's workspace
        """
        board = await self.resolver.load_board(list_data.board_id)
        await self.permissions.verify_workspace_owner_or_admin(board.workspace_id, principal)

        board_list = BoardList(id=uuid4(), board_id=board.id, name=list_data.name)
        board_list.board = board

        await self.ordering.insert_list(board_list, list_data.position)
        self.db.add(board_list)
        await commit_or_conflict(self.db)

        logger.info(
            "List created",
            list_id=str(board_list.id),
            board_id=str(board.id),
            position=board_list.position,
            user_id=str(principal.id),
        )
        self._publish(BoardEventType.CREATED, board_list, principal)
        return board_list

    async def get_list(self, list_id: UUID, principal: Principal) -> BoardList:
        """
        Get a list the caller can see.

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors does not exist
            AccessDeniedException: If the caller has no access to the board
        """
        board_list = await self.resolver.load_list(list_id)
        await self.permissions.verify_board_access(board_list.board_id, principal)
        return board_list

    async def list_lists(self, board_id: UUID, principal: Principal) -> List[BoardList]:
        """Get the non-deleted lists of a board ordered by position."""
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_board_access(board.id, principal)

        result = await self.db.execute(
            select(BoardList)
            .where(BoardList.board_id == board.id, *not_deleted(BoardList))
            .order_by(BoardList.position, BoardList.id)
        )
        return list(result.scalars().all())

    async def update_list(self, list_id: UUID, list_data: ListUpdate, principal: Principal) -> BoardList:
        """
        Rename a list. Position and board are left untouched.

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors does not exist
            AccessDeniedException: If the caller may not edit the list
            ConflictException: If the list was changed concurrently
        """
        board_list = await self.resolver.load_list(list_id)
        await self.permissions.verify_can_edit_list(list_id, principal)

        if list_data.name is not None:
            board_list.name = list_data.name

        await commit_or_conflict(self.db)

        logger.info("List updated", list_id=str(list_id), user_id=str(principal.id))
        self._publish(BoardEventType.UPDATED, board_list, principal)
        return board_list

    async def move_list(self, list_id: UUID, move_data: ListMove, principal: Principal) -> BoardList:
        """
        Move a list to a new position within its board.

        Args:
            list_id: List ID
            move_data: Target position
            principal: Verified caller

        Returns:
            The list in its new place

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors does not exist
            AccessDeniedException: If the caller does not manage the board's workspace
            ConflictException: If the board's lists were reordered concurrently
        """
        board_list = await self.resolver.load_list(list_id)
        await self.permissions.verify_workspace_owner_or_admin(board_list.board.workspace_id, principal)

        moved = await self.ordering.move_list(board_list, move_data.new_position)
        if not moved:
            logger.debug("List move is a no-op", list_id=str(list_id))
            return board_list

        await commit_or_conflict(self.db)

        logger.info(
            "List moved",
            list_id=str(list_id),
            board_id=str(board_list.board_id),
            position=board_list.position,
            user_id=str(principal.id),
        )
        self._publish(BoardEventType.MOVED, board_list, principal, previous_parent_id=board_list.board_id)
        return board_list

    async def delete_list(self, list_id: UUID, principal: Principal) -> None:
        """
        Soft delete a list. Its cards become unreachable with it; remaining
        lists keep their positions.

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors does not exist
            AccessDeniedException: If the caller may not delete the list
        """
        board_list = await self.resolver.load_list(list_id)
        await self.permissions.verify_can_delete_list(list_id, principal)

        board_id = board_list.board_id
        board_list.soft_delete()
        await commit_or_conflict(self.db)

        logger.info("List deleted", list_id=str(list_id), board_id=str(board_id), user_id=str(principal.id))
        self.broadcaster.publish(
            board_id,
            BoardEventType.DELETED,
            entity=ENTITY,
            entity_id=list_id,
            previous_parent_id=board_id,
            actor=principal,
        )

    def _publish(
        self,
        event_type: BoardEventType,
        board_list: BoardList,
        principal: Principal,
        previous_parent_id: Optional[UUID] = None,
    ) -> None:
        self.broadcaster.publish(
            board_list.board_id,
            event_type,
            ListResponse.model_validate(board_list).model_dump(mode="json"),
            entity=ENTITY,
            entity_id=board_list.id,
            parent_id=board_list.board_id,
            previous_parent_id=previous_parent_id,
            actor=principal,
        )
