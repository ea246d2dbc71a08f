"""
Workspace service.

This module provides business logic for workspace management.
"""
from typing import List
from uuid import UUID, uuid4

from kanban.core.ancestry import AncestryResolver
from kanban.core.database import commit_or_conflict
from kanban.core.exceptions import ConflictException, ResourceNotFoundException, ValidationException
from kanban.core.models import not_deleted
from kanban.core.permissions import PermissionService
from kanban.modules.auth.schemas import Principal
from kanban.modules.auth.service import AuthService
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

from .models import Workspace, WorkspaceMember, WorkspaceMemberRole
from .schemas import WorkspaceCreate, WorkspaceMemberCreate, WorkspaceMemberUpdate, WorkspaceUpdate

logger = get_logger(__name__)


class WorkspaceService:
    """Service class for workspace operations."""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.resolver = AncestryResolver(db)
        self.permissions = PermissionService(db)
        self.users = AuthService(db)

    async def create_workspace(self, workspace_data: WorkspaceCreate, principal: Principal) -> Workspace:
        """
        Create a new workspace.

        The caller becomes the owner and is mirrored as an OWNER member.

        Args:
            workspace_data: Workspace creation data
            principal: Verified caller

        Returns:
            Created workspace
        """
        workspace = Workspace(
            id=uuid4(),
            name=workspace_data.name,
            description=workspace_data.description,
            owner_id=principal.id,
        )
        owner_member = WorkspaceMember(
            workspace_id=workspace.id,
            user_id=principal.id,
            role=WorkspaceMemberRole.OWNER,
        )
        owner_member.workspace = workspace

        self.db.add_all([workspace, owner_member])
        await commit_or_conflict(self.db)

        logger.info("Workspace created", workspace_id=str(workspace.id), owner_id=str(principal.id))
        return workspace

    async def get_workspace(self, workspace_id: UUID, principal: Principal) -> Workspace:
        """
        Get a workspace the caller belongs to.

        Raises:
            ResourceNotFoundException: If the workspace does not exist
            AccessDeniedException: If the caller is not a member
        """
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_access(workspace.id, principal)
        return workspace

    async def list_workspaces(self, principal: Principal) -> List[Workspace]:
        """
        Get the workspaces the caller owns or is a member of.

        Args:
            principal: Verified caller

        Returns:
            List of workspaces, oldest first
        """
        member_of = select(WorkspaceMember.workspace_id).where(
            WorkspaceMember.user_id == principal.id,
            *not_deleted(WorkspaceMember),
        )
        result = await self.db.execute(
            select(Workspace)
            .where(
                or_(Workspace.owner_id == principal.id, Workspace.id.in_(member_of)),
                *not_deleted(Workspace),
            )
            .order_by(Workspace.created_at, Workspace.id)
        )
        return list(result.scalars().all())

    async def update_workspace(
        self, workspace_id: UUID, workspace_data: WorkspaceUpdate, principal: Principal
    ) -> Workspace:
        """
        Update workspace name or description.

        Raises:
            ResourceNotFoundException: If the workspace does not exist
            AccessDeniedException: If the caller is neither owner nor admin
        """
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)

        update_data = workspace_data.model_dump(exclude_unset=True)
        if update_data.get("name", "") is None:
            del update_data["name"]
        workspace.update_from_dict(update_data, exclude={"id", "created_at", "owner_id"})

        await commit_or_conflict(self.db)
        logger.info("Workspace updated", workspace_id=str(workspace_id), user_id=str(principal.id))
        return workspace

    async def delete_workspace(self, workspace_id: UUID, principal: Principal) -> None:
        """Soft delete a workspace; its boards, lists and cards become unreachable."""
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)

        workspace.soft_delete()
        await commit_or_conflict(self.db)
        logger.info("Workspace deleted", workspace_id=str(workspace_id), user_id=str(principal.id))

    async def list_members(self, workspace_id: UUID, principal: Principal) -> List[WorkspaceMember]:
        """Get the non-deleted members of a workspace."""
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_access(workspace.id, principal)

        result = await self.db.execute(
            select(WorkspaceMember)
            .where(WorkspaceMember.workspace_id == workspace.id, *not_deleted(WorkspaceMember))
            .order_by(WorkspaceMember.created_at, WorkspaceMember.id)
        )
        return list(result.scalars().all())

    async def add_member(
        self, workspace_id: UUID, member_data: WorkspaceMemberCreate, principal: Principal
    ) -> WorkspaceMember:
        """
        Add a user to a workspace.

        A previously removed member is restored with the new role.

        Args:
            workspace_id: Workspace ID
            member_data: User and role to add
            principal: Verified caller

        Returns:
            The membership row

        Raises:
            AccessDeniedException: If the caller is neither owner nor admin
            ValidationException: If the OWNER role is requested or the user does not exist
            ConflictException: If the user is already a member
        """
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)
        self._ensure_grantable(member_data.role)
        await self.users.get_users_by_ids([member_data.user_id])

        result = await self.db.execute(
            select(WorkspaceMember).where(
                WorkspaceMember.workspace_id == workspace.id,
                WorkspaceMember.user_id == member_data.user_id,
            )
        )
        member = result.scalar_one_or_none()

        if member is not None and not member.is_deleted:
            raise ConflictException(
                "User is already a member of this workspace",
                details={"user_id": str(member_data.user_id)}
            )

        if member is None:
            member = WorkspaceMember(
                workspace_id=workspace.id,
                user_id=member_data.user_id,
                role=member_data.role,
            )
            self.db.add(member)
        else:
            member.restore()
            member.role = member_data.role

        await commit_or_conflict(self.db)
        logger.info(
            "Workspace member added",
            workspace_id=str(workspace_id),
            member_user_id=str(member_data.user_id),
            role=WorkspaceMemberRole(member.role).value,
        )
        return member

    async def update_member_role(
        self,
        workspace_id: UUID,
        user_id: UUID,
        member_data: WorkspaceMemberUpdate,
        principal: Principal,
    ) -> WorkspaceMember:
        """
        Change the role of a member. The owner's row cannot be changed.

        Raises:
            ResourceNotFoundException: If the workspace or the membership does not exist
            AccessDeniedException: If the caller is neither owner nor admin
            ValidationException: If the target is the owner or the OWNER role is requested
        """
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)
        self._ensure_not_owner(workspace, user_id)
        self._ensure_grantable(member_data.role)

        member = await self._get_member(workspace.id, user_id)
        member.role = member_data.role

        await commit_or_conflict(self.db)
        logger.info(
            "Workspace member role changed",
            workspace_id=str(workspace_id),
            member_user_id=str(user_id),
            role=member_data.role.value,
        )
        return member

    async def remove_member(self, workspace_id: UUID, user_id: UUID, principal: Principal) -> None:
        """
        Remove a member from a workspace. The owner cannot be removed.

        Raises:
            ResourceNotFoundException: If the workspace or the membership does not exist
            AccessDeniedException: If the caller is neither owner nor admin
            ValidationException: If the target is the owner
        """
        workspace = await self.resolver.load_workspace(workspace_id)
        await self.permissions.verify_workspace_owner_or_admin(workspace.id, principal)
        self._ensure_not_owner(workspace, user_id)

        member = await self._get_member(workspace.id, user_id)
        member.soft_delete()

        await commit_or_conflict(self.db)
        logger.info("Workspace member removed", workspace_id=str(workspace_id), member_user_id=str(user_id))

    async def _get_member(self, workspace_id: UUID, user_id: UUID) -> WorkspaceMember:
        member = await self.permissions.get_workspace_membership(workspace_id, user_id)
        if member is None:
            raise ResourceNotFoundException("WorkspaceMember", user_id)
        return member

    @staticmethod
    def _ensure_grantable(role: WorkspaceMemberRole) -> None:
        if role == WorkspaceMemberRole.OWNER:
            raise ValidationException("The OWNER role cannot be granted", details={"role": role.value})

    @staticmethod
    def _ensure_not_owner(workspace: Workspace, user_id: UUID) -> None:
        if workspace.owner_id == user_id:
            raise ValidationException(
                "The workspace owner's membership cannot be changed",
                details={"user_id": str(user_id)}
            )
