"""
Ordering engine for lists within a board and cards within a list.

Non-deleted siblings keep a dense, zero-based position sequence after every
move. A move loads the whole target group under row locks, splices the
moving entity in at the clamped target index and renumbers the group in a
single flush. Appends and inserts lock the parent row as well, so two
concurrent writers never hand out the same position. Deletes never
renumber; gaps left by them close on the next move in that group.
"""
from typing import List, Optional, Sequence, TypeVar, Union
from uuid import UUID

from kanban.core.exceptions import ConflictException
from kanban.core.metrics import record_position_rewrites
from kanban.core.models import not_deleted, utcnow
from kanban.modules.board.models import Board
from kanban.modules.board_list.models import BoardList
from kanban.modules.card.models import Card
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError
from structlog import get_logger

logger = get_logger(__name__)

Positioned = TypeVar("Positioned", BoardList, Card)


def clamp_position(target: int, size: int) -> int:
    """Clamp a requested index into ``[0, size]``."""
    return max(0, min(target, size))


def reorder(siblings: Sequence[Positioned], moving: Positioned, target_position: int) -> List[Positioned]:
    """
    Compute the new order of a sibling group.

    Args:
        siblings: Current group ordered by position; may or may not contain ``moving``
        moving: Entity being inserted or moved
        target_position: Requested index, clamped into ``[0, len(group without moving)]``

    Returns:
        The group in its new order, ``moving`` included exactly once
    """
    ordered = [sibling for sibling in siblings if sibling.id != moving.id]
    ordered.insert(clamp_position(target_position, len(ordered)), moving)
    return ordered


def assign_positions(ordered: Sequence[Positioned]) -> int:
    """
    Set ``position = index`` on every entity.

    Returns:
        Number of entities whose position actually changed
    """
    changed = 0
    for index, entity in enumerate(ordered):
        if entity.position != index:
            entity.position = index
            changed += 1
    return changed


class OrderingEngine:
    """
    Persists position changes using the request's session.

    Every write to a sibling group first locks the group's parent row (the
    list for cards, the board for lists) and bumps its version. Writers of
    the same group are serialized by the lock; a writer that read the parent
    before another one committed fails its flush with a version mismatch.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_list(self, list_id: UUID) -> BoardList:
        """Lock the list row owning a card group."""
        result = await self.db.execute(
            select(BoardList).where(BoardList.id == list_id).with_for_update()
        )
        return result.scalar_one()

    async def lock_board(self, board_id: UUID) -> Board:
        """Lock the board row owning a list group."""
        result = await self.db.execute(
            select(Board).where(Board.id == board_id).with_for_update()
        )
        return result.scalar_one()

    async def next_card_position(self, list_id: UUID) -> int:
        """Position for a card appended to a list: max + 1, or 0 when empty."""
        result = await self.db.execute(
            select(func.max(Card.position)).where(Card.list_id == list_id, *not_deleted(Card))
        )
        current_max = result.scalar_one_or_none()
        return 0 if current_max is None else current_max + 1

    async def next_list_position(self, board_id: UUID) -> int:
        """Position for a list appended to a board: max + 1, or 0 when empty."""
        result = await self.db.execute(
            select(func.max(BoardList.position)).where(BoardList.board_id == board_id, *not_deleted(BoardList))
        )
        current_max = result.scalar_one_or_none()
        return 0 if current_max is None else current_max + 1

    async def card_siblings(self, list_id: UUID) -> List[Card]:
        """Non-deleted cards of a list in order, locked for update."""
        result = await self.db.execute(
            select(Card)
            .where(Card.list_id == list_id, *not_deleted(Card))
            .order_by(Card.position, Card.id)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def list_siblings(self, board_id: UUID) -> List[BoardList]:
        """Non-deleted lists of a board in order, locked for update."""
        result = await self.db.execute(
            select(BoardList)
            .where(BoardList.board_id == board_id, *not_deleted(BoardList))
            .order_by(BoardList.position, BoardList.id)
            .with_for_update()
        )
        return list(result.scalars().all())

    async def insert_card(self, card: Card, position: Optional[int] = None) -> None:
        """
        Place a new, not yet flushed card into its list.

        Without a position the card is appended. An explicit position is
        clamped and the following siblings shift down by one.
        """
        parent = await self.lock_list(card.list_id)
        if position is None:
            card.position = await self.next_card_position(card.list_id)
        else:
            siblings = await self.card_siblings(card.list_id)
            self._apply(reorder(siblings, card, position), "card")
        _touch(parent)

    async def insert_list(self, board_list: BoardList, position: Optional[int] = None) -> None:
        """Place a new, not yet flushed list into its board."""
        parent = await self.lock_board(board_list.board_id)
        if position is None:
            board_list.position = await self.next_list_position(board_list.board_id)
        else:
            siblings = await self.list_siblings(board_list.board_id)
            self._apply(reorder(siblings, board_list, position), "list")
        _touch(parent)

    async def move_card(self, card: Card, target_list: BoardList, target_position: int) -> bool:
        """
        Move a card inside its list or into another list.

        The source list is left as is when the card changes lists.

        Args:
            card: Card to move
            target_list: Destination list (may be the card's current list)
            target_position: Requested index in the destination list

        Returns:
            False when the move was a no-op and nothing was written

        Raises:
            ConflictException: If a concurrent writer changed one of the rows
        """
        if card.list_id == target_list.id and card.position == target_position:
            return False

        parent = await self.lock_list(target_list.id)
        siblings = await self.card_siblings(target_list.id)
        same_list = card.list_id == target_list.id
        if not same_list:
            card.list_id = target_list.id
            card.list = target_list

        changed = self._apply(reorder(siblings, card, target_position), "card")
        if same_list and not changed:
            return False

        _touch(parent)
        await self._flush()
        return True

    async def move_list(self, board_list: BoardList, target_position: int) -> bool:
        """
        Move a list within its board.

        Returns:
            False when the move was a no-op and nothing was written

        Raises:
            ConflictException: If a concurrent writer changed one of the rows
        """
        if board_list.position == target_position:
            return False

        parent = await self.lock_board(board_list.board_id)
        siblings = await self.list_siblings(board_list.board_id)
        if not self._apply(reorder(siblings, board_list, target_position), "list"):
            return False

        _touch(parent)
        await self._flush()
        return True

    def _apply(self, ordered: Sequence[Union[Card, BoardList]], entity: str) -> int:
        changed = assign_positions(ordered)
        record_position_rewrites(entity, changed)
        logger.debug("Positions reassigned", entity=entity, group_size=len(ordered), changed=changed)
        return changed

    async def _flush(self) -> None:
        try:
            await self.db.flush()
        except StaleDataError as e:
            await self.db.rollback()
            logger.warning("Concurrent reorder detected", error=str(e))
            raise ConflictException(
                "The item was modified by another request, reload and retry"
            )


def _touch(parent: Union[Board, BoardList]) -> None:
    # Any column change makes the flush bump and check the parent's version
    parent.updated_at = utcnow()
