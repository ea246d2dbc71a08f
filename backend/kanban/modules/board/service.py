"""
Board service.

This module provides business logic for boards and board-scoped membership.
"""
from collections import defaultdict
from typing import Dict, List
from uuid import UUID, uuid4

from kanban.core.ancestry import AncestryResolver
from kanban.core.database import commit_or_conflict
from kanban.core.exceptions import ConflictException, ResourceNotFoundException
from kanban.core.models import not_deleted
from kanban.core.permissions import PermissionService
from kanban.modules.auth.schemas import Principal
from kanban.modules.auth.service import AuthService
from kanban.modules.board_list.models import BoardList
from kanban.modules.board_list.schemas import ListResponse
from kanban.modules.card.models import Card
from kanban.modules.card.schemas import CardResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from structlog import get_logger

from .models import Board, BoardMember
from .schemas import (
    BoardCreate,
    BoardDetailResponse,
    BoardMemberCreate,
    BoardResponse,
    BoardUpdate,
    ListWithCardsResponse,
)

logger = get_logger(__name__)


class BoardService:
    """Service class for board operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.resolver = AncestryResolver(db)
        self.permissions = PermissionService(db)
        self.users = AuthService(db)

    async def create_board(self, board_data: BoardCreate, principal: Principal) -> Board:
        """
        Create a board in a workspace.

        Args:
            board_data: Board creation data
            principal: Verified caller

        Returns:
            Created board

        Raises:
            ResourceNotFoundException: If the workspace does not exist
            AccessDeniedException: If the caller is neither owner nor admin of the workspace
        """
        workspace = await self.resolver.load_workspace(board_data.workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)

        board = Board(
            id=uuid4(),
            workspace_id=workspace.id,
            name=board_data.name,
            description=board_data.description,
            created_by_id=principal.id,
        )
        board.workspace = workspace

        self.db.add(board)
        await commit_or_conflict(self.db)

        logger.info("Board created", board_id=str(board.id), workspace_id=str(workspace.id))
        return board

    async def get_board(self, board_id: UUID, principal: Principal) -> Board:
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_board_access(board.id, principal)
        return board

    async def get_board_detail(self, board_id: UUID, principal: Principal) -> BoardDetailResponse:
        """
        Get a board with its lists and cards, both ordered by position.

        Raises:
            ResourceNotFoundException: If the board or its workspace does not exist
            AccessDeniedException: If the caller has no access to the board
        """
        board = await self.get_board(board_id, principal)

        lists_result = await self.db.execute(
            select(BoardList)
            .where(BoardList.board_id == board.id, *not_deleted(BoardList))
            .order_by(BoardList.position, BoardList.id)
        )
        lists = list(lists_result.scalars().all())

        cards_by_list: Dict[UUID, List[Card]] = defaultdict(list)
        if lists:
            cards_result = await self.db.execute(
                select(Card)
                .options(selectinload(Card.assigned_users))
                .where(Card.list_id.in_([board_list.id for board_list in lists]), *not_deleted(Card))
                .order_by(Card.position, Card.id)
            )
            for card in cards_result.scalars().all():
                cards_by_list[card.list_id].append(card)

        return BoardDetailResponse(
            **BoardResponse.model_validate(board).model_dump(),
            lists=[
                ListWithCardsResponse(
                    **ListResponse.model_validate(board_list).model_dump(),
                    cards=[CardResponse.model_validate(card) for card in cards_by_list[board_list.id]],
                )
                for board_list in lists
            ],
        )

    async def list_boards(self, workspace_id: UUID, principal: Principal) -> List[Board]:
        """
        Get the boards of a workspace visible to the caller.

        Workspace members see every board; anyone else only sees boards they
        were added to directly.
        """
        workspace = await self.resolver.load_workspace(workspace_id)

        query = select(Board).where(Board.workspace_id == workspace.id, *not_deleted(Board))
        if not await self.permissions.has_workspace_access(workspace.id, principal):
            query = query.join(BoardMember, BoardMember.board_id == Board.id).where(
                BoardMember.user_id == principal.id,
                *not_deleted(BoardMember),
            )

        result = await self.db.execute(query.order_by(Board.created_at, Board.id))
        return list(result.scalars().all())

    async def update_board(self, board_id: UUID, board_data: BoardUpdate, principal: Principal) -> Board:
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_workspace_owner_or_admin(board.workspace_id, principal)

        update_data = board_data.model_dump(exclude_unset=True)
        if update_data.get("name", "") is None:
            del update_data["name"]
        board.update_from_dict(update_data, exclude={"id", "created_at", "workspace_id"})

        await commit_or_conflict(self.db)
        logger.info("Board updated", board_id=str(board_id), user_id=str(principal.id))
        return board

    async def delete_board(self, board_id: UUID, principal: Principal) -> None:
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_workspace_owner_or_admin(board.workspace_id, principal)

        board.soft_delete()
        await commit_or_conflict(self.db)
        logger.info("Board deleted", board_id=str(board_id), user_id=str(principal.id))

    async def add_member(self, board_id: UUID, member_data: BoardMemberCreate, principal: Principal) -> BoardMember:
        """
        Grant a user board-scoped access.

        Raises:
            AccessDeniedException: If the caller is neither owner nor admin of the workspace
            ValidationException: If the user does not exist
            ConflictException: If the user is already a board member
        """
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_workspace_owner_or_admin(board.workspace_id, principal)
        await self.users.get_users_by_ids([member_data.user_id])

        result = await self.db.execute(
            select(BoardMember).where(
                BoardMember.board_id == board.id,
                BoardMember.user_id == member_data.user_id,
            )
        )
        member = result.scalar_one_or_none()

        if member is not None and not member.is_deleted:
            raise ConflictException(
                "User is already a member of this board",
                details={"user_id": str(member_data.user_id)}
            )

        if member is None:
            member = BoardMember(board_id=board.id, user_id=member_data.user_id)
            self.db.add(member)
        else:
            member.restore()

        await commit_or_conflict(self.db)
        logger.info("Board member added", board_id=str(board_id), member_user_id=str(member_data.user_id))
        return member

    async def remove_member(self, board_id: UUID, user_id: UUID, principal: Principal) -> None:
        board = await self.resolver.load_board(board_id)
        await self.permissions.verify_workspace_owner_or_admin(board.workspace_id, principal)

        member = await self.permissions.get_board_membership(board.id, user_id)
        if member is None:
            raise ResourceNotFoundException("BoardMember", user_id)

        member.soft_delete()
        await commit_or_conflict(self.db)
        logger.info("Board member removed", board_id=str(board_id), member_user_id=str(user_id))
