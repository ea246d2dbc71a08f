"""
Permission engine.

This module answers "may this principal read or mutate this entity?" for
every level of the workspace > board > list > card hierarchy. Checks are
keyed on ancestry and fail closed: any entity or ancestor that cannot be
resolved means "deny".

Each ``verify_*`` method raises AccessDeniedException instead of returning
False, so services can authorize with a single awaited call before any
write.
"""
from typing import Optional
from uuid import UUID

from kanban.core.ancestry import AncestryResolver
from kanban.core.exceptions import AccessDeniedException, ResourceNotFoundException
from kanban.core.models import not_deleted
from kanban.modules.auth.schemas import Principal
from kanban.modules.board.models import BoardMember
from kanban.modules.workspace.models import (
    MANAGER_ROLES,
    Workspace,
    WorkspaceMember,
    WorkspaceMemberRole,
)
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

logger = get_logger(__name__)


class PermissionService:
    """
    Ancestry-based access checks.

    The service shares the caller's session, so a check and the mutation it
    guards see the same transactional snapshot.
    """

    def __init__(self, db: AsyncSession):
        """
        Initialize the permission service.

        Args:
            db: Database session of the current request
        """
        self.db = db
        self.resolver = AncestryResolver(db)

    @staticmethod
    def is_admin(principal: Principal) -> bool:
        """Global admins bypass every check."""
        return principal.is_admin

    async def get_workspace_membership(
        self, workspace_id: UUID, user_id: UUID
    ) -> Optional[WorkspaceMember]:
        """
        Get the non-deleted membership row of a user in a non-deleted workspace.

        Args:
            workspace_id: Workspace ID
            user_id: User ID

        Returns:
            WorkspaceMember if found, None otherwise
        """
        result = await self.db.execute(
            select(WorkspaceMember)
            .join(Workspace, Workspace.id == WorkspaceMember.workspace_id)
            .where(
                WorkspaceMember.workspace_id == workspace_id,
                WorkspaceMember.user_id == user_id,
                *not_deleted(WorkspaceMember, Workspace),
            )
        )
        return result.scalar_one_or_none()

    async def get_board_membership(self, board_id: UUID, user_id: UUID) -> Optional[BoardMember]:
        result = await self.db.execute(
            select(BoardMember).where(
                BoardMember.board_id == board_id,
                BoardMember.user_id == user_id,
                *not_deleted(BoardMember),
            )
        )
        return result.scalar_one_or_none()

    async def has_workspace_access(self, workspace_id: UUID, principal: Principal) -> bool:
        """
        Check whether the principal may read a workspace.

        Args:
            workspace_id: Workspace ID
            principal: Verified caller

        Returns:
            True for admins and for users holding a membership row
        """
        if self.is_admin(principal):
            return True

        membership = await self.get_workspace_membership(workspace_id, principal.id)
        return membership is not None

    async def has_board_access(self, board_id: UUID, principal: Principal) -> bool:
        """
        Check whether the principal may read a board and work on its cards.

        Access comes from a board membership or, failing that, from access to
        the board's workspace. A board whose workspace cannot be resolved is
        denied.
        """
        if self.is_admin(principal):
            return True

        try:
            workspace = await self.resolver.resolve_workspace_for_board(board_id)
        except ResourceNotFoundException:
            logger.debug("Board access denied, board unresolved", board_id=str(board_id))
            return False

        if await self.get_board_membership(board_id, principal.id) is not None:
            return True

        return await self.has_workspace_access(workspace.id, principal)

    async def is_workspace_owner_or_admin(self, workspace_id: UUID, principal: Principal) -> bool:
        """
        Check whether the principal manages a workspace.

        The owner qualifies even without a membership row. Members holding
        the OWNER or ADMIN role qualify as well.
        """
        if self.is_admin(principal):
            return True

        try:
            workspace = await self.resolver.load_workspace(workspace_id)
        except ResourceNotFoundException:
            return False

        if workspace.owner_id == principal.id:
            return True

        membership = await self.get_workspace_membership(workspace_id, principal.id)
        if membership is None:
            return False
        return WorkspaceMemberRole(membership.role) in MANAGER_ROLES

    async def can_edit_card(self, card_id: UUID, principal: Principal) -> bool:
        """
        Check whether the principal may edit or move a card.

        Creator and assignees may always edit; anyone else needs access to
        the card's board.
        """
        if self.is_admin(principal):
            return True

        try:
            card = await self.resolver.load_card(card_id)
        except ResourceNotFoundException:
            return False

        if card.created_by_id == principal.id or principal.id in card.assignee_ids:
            return True

        return await self.has_board_access(card.list.board_id, principal)

    async def can_delete_card(self, card_id: UUID, principal: Principal) -> bool:
        """
        Check whether the principal may delete a card.

        Only admins, the creator and assignees qualify; board access alone is
        not enough.
        """
        if self.is_admin(principal):
            return True

        try:
            card = await self.resolver.load_card(card_id)
        except ResourceNotFoundException:
            return False

        return card.created_by_id == principal.id or principal.id in card.assignee_ids

    async def can_edit_list(self, list_id: UUID, principal: Principal) -> bool:
        if self.is_admin(principal):
            return True

        try:
            board = await self.resolver.resolve_board_for_list(list_id)
        except ResourceNotFoundException:
            return False

        return await self.is_workspace_owner_or_admin(board.workspace_id, principal)

    async def can_delete_list(self, list_id: UUID, principal: Principal) -> bool:
        # Deleting requires the same rights as editing
        return await self.can_edit_list(list_id, principal)

    # Raising variants

    async def verify_admin(self, principal: Principal) -> None:
        if not self.is_admin(principal):
            self._deny(principal, "Administrator privileges required")

    async def verify_workspace_access(self, workspace_id: UUID, principal: Principal) -> None:
        """
        Raises:
            AccessDeniedException: If the principal cannot access the workspace
        """
        if not await self.has_workspace_access(workspace_id, principal):
            self._deny(principal, "You do not have access to this workspace", workspace_id=workspace_id)

    async def verify_board_access(self, board_id: UUID, principal: Principal) -> None:
        """
        Raises:
            AccessDeniedException: If the principal cannot access the board
        """
        if not await self.has_board_access(board_id, principal):
            self._deny(principal, "You do not have access to this board", board_id=board_id)

    async def verify_workspace_owner_or_admin(self, workspace_id: UUID, principal: Principal) -> None:
        """
        Raises:
            AccessDeniedException: If the principal is neither owner nor admin of the workspace
        """
        if not await self.is_workspace_owner_or_admin(workspace_id, principal):
            self._deny(
                principal,
                "Only workspace owners and admins can perform this action",
                workspace_id=workspace_id,
            )

    async def verify_can_edit_card(self, card_id: UUID, principal: Principal) -> None:
        if not await self.can_edit_card(card_id, principal):
            self._deny(principal, "You do not have permission to edit this card", card_id=card_id)

    async def verify_can_delete_card(self, card_id: UUID, principal: Principal) -> None:
        if not await self.can_delete_card(card_id, principal):
            self._deny(principal, "You do not have permission to delete this card", card_id=card_id)

    async def verify_can_edit_list(self, list_id: UUID, principal: Principal) -> None:
        if not await self.can_edit_list(list_id, principal):
            self._deny(principal, "You do not have permission to edit this list", list_id=list_id)

    async def verify_can_delete_list(self, list_id: UUID, principal: Principal) -> None:
        if not await self.can_delete_list(list_id, principal):
            self._deny(principal, "You do not have permission to delete this list", list_id=list_id)

    @staticmethod
    def _deny(principal: Principal, message: str, **target: UUID) -> None:
        logger.info(
            "Access denied",
            principal_id=str(principal.id),
            reason=message,
            **{key: str(value) for key, value in target.items()},
        )
        raise AccessDeniedException(message)
