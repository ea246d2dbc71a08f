"""
Ancestry resolution for the workspace > board > list > card hierarchy.

Every lookup returns the entity with its whole ancestor chain loaded in a
single statement. A missing or soft-deleted entity, or a missing or
soft-deleted ancestor, raises ResourceNotFoundException; callers never see
a partially populated chain.
"""
from uuid import UUID

from kanban.core.exceptions import ResourceNotFoundException
from kanban.core.models import not_deleted
from kanban.modules.board.models import Board
from kanban.modules.board_list.models import BoardList
from kanban.modules.card.models import Card
from kanban.modules.workspace.models import Workspace
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import contains_eager, selectinload
from structlog import get_logger

logger = get_logger(__name__)


class AncestryResolver:
    """Loads entities together with their ancestors using the caller's session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def load_workspace(self, workspace_id: UUID) -> Workspace:
        result = await self.db.execute(
            select(Workspace).where(Workspace.id == workspace_id, *not_deleted(Workspace))
        )
        workspace = result.scalar_one_or_none()
        if workspace is None:
            raise ResourceNotFoundException("Workspace", workspace_id)
        return workspace

    async def load_board(self, board_id: UUID) -> Board:
        """
        Load a board with its workspace.

        Raises:
            ResourceNotFoundException: If the board or its workspace is missing or deleted
        """
        result = await self.db.execute(
            select(Board)
            .join(Board.workspace)
            .options(contains_eager(Board.workspace))
            .where(Board.id == board_id, *not_deleted(Board, Workspace))
        )
        board = result.scalar_one_or_none()
        if board is None:
            logger.debug("Board or its workspace not found", board_id=str(board_id))
            raise ResourceNotFoundException("Board", board_id)
        return board

    async def load_list(self, list_id: UUID) -> BoardList:
        """
        Load a list with its board and workspace.

        Raises:
            ResourceNotFoundException: If the list or one of its ancestors is missing or deleted
        """
        result = await self.db.execute(
            select(BoardList)
            .join(BoardList.board)
            .join(Board.workspace)
            .options(
                contains_eager(BoardList.board).contains_eager(Board.workspace)
            )
            .where(BoardList.id == list_id, *not_deleted(BoardList, Board, Workspace))
        )
        board_list = result.scalar_one_or_none()
        if board_list is None:
            logger.debug("List or its ancestors not found", list_id=str(list_id))
            raise ResourceNotFoundException("List", list_id)
        return board_list

    async def load_card(self, card_id: UUID) -> Card:
        """
        Load a card with its assignees, list, board and workspace.

        Raises:
            ResourceNotFoundException: If the card or one of its ancestors is missing or deleted
        """
        result = await self.db.execute(
            select(Card)
            .join(Card.list)
            .join(BoardList.board)
            .join(Board.workspace)
            .options(
                contains_eager(Card.list)
                .contains_eager(BoardList.board)
                .contains_eager(Board.workspace),
                selectinload(Card.assigned_users),
            )
            .where(Card.id == card_id, *not_deleted(Card, BoardList, Board, Workspace))
        )
        card = result.scalar_one_or_none()
        if card is None:
            logger.debug("Card or its ancestors not found", card_id=str(card_id))
            raise ResourceNotFoundException("Card", card_id)
        return card

    async def resolve_board_for_list(self, list_id: UUID) -> Board:
        """Return the board owning a list, with its workspace loaded."""
        board_list = await self.load_list(list_id)
        return board_list.board

    async def resolve_workspace_for_board(self, board_id: UUID) -> Workspace:
        """Return the workspace owning a board."""
        board = await self.load_board(board_id)
        return board.workspace

    async def resolve_list_for_card(self, card_id: UUID) -> BoardList:
        """Return the list currently holding a card, with its board loaded."""
        card = await self.load_card(card_id)
        return card.list
