"""
Tests for the permission engine.
"""
from uuid import uuid4

import pytest
from kanban.core.exceptions import AccessDeniedException
from kanban.core.permissions import PermissionService

pytestmark = pytest.mark.permissions


class TestWorkspacePermissions:
    """Test workspace level checks."""

    @pytest.mark.asyncio
    async def test_members_have_access(self, db_session, workspace, owner_user, member_user, principal_of):
        permissions = PermissionService(db_session)

        assert await permissions.has_workspace_access(workspace.id, principal_of(owner_user))
        assert await permissions.has_workspace_access(workspace.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_outsider_has_no_access(self, db_session, workspace, outsider_user, principal_of):
        permissions = PermissionService(db_session)

        assert not await permissions.has_workspace_access(workspace.id, principal_of(outsider_user))
        with pytest.raises(AccessDeniedException):
            await permissions.verify_workspace_access(workspace.id, principal_of(outsider_user))

    @pytest.mark.asyncio
    async def test_admin_bypasses_checks(self, db_session, workspace, admin_user, principal_of):
        permissions = PermissionService(db_session)
        admin = principal_of(admin_user)

        assert await permissions.has_workspace_access(workspace.id, admin)
        assert await permissions.is_workspace_owner_or_admin(workspace.id, admin)
        await permissions.verify_admin(admin)

    @pytest.mark.asyncio
    async def test_verify_admin_rejects_users(self, db_session, owner_user, principal_of):
        with pytest.raises(AccessDeniedException):
            await PermissionService(db_session).verify_admin(principal_of(owner_user))

    @pytest.mark.asyncio
    async def test_manager_roles(
        self, db_session, workspace, owner_user, manager_user, member_user, principal_of
    ):
        """OWNER and ADMIN members manage the workspace; MEMBER does not."""
        permissions = PermissionService(db_session)

        assert await permissions.is_workspace_owner_or_admin(workspace.id, principal_of(owner_user))
        assert await permissions.is_workspace_owner_or_admin(workspace.id, principal_of(manager_user))
        assert not await permissions.is_workspace_owner_or_admin(workspace.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_owner_without_membership_row(self, db_session, workspace, owner_user, principal_of):
        """The owner column alone is enough to manage the workspace."""
        permissions = PermissionService(db_session)
        membership = await permissions.get_workspace_membership(workspace.id, owner_user.id)
        membership.soft_delete()
        await db_session.commit()

        assert await permissions.is_workspace_owner_or_admin(workspace.id, principal_of(owner_user))
        await permissions.verify_workspace_owner_or_admin(workspace.id, principal_of(owner_user))

    @pytest.mark.asyncio
    async def test_removed_membership_denies(self, db_session, workspace, member_user, principal_of):
        permissions = PermissionService(db_session)
        membership = await permissions.get_workspace_membership(workspace.id, member_user.id)
        membership.soft_delete()
        await db_session.commit()

        assert not await permissions.has_workspace_access(workspace.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_deleted_workspace_denies(self, db_session, workspace, owner_user, member_user, principal_of):
        workspace.soft_delete()
        await db_session.commit()
        permissions = PermissionService(db_session)

        assert not await permissions.has_workspace_access(workspace.id, principal_of(member_user))
        assert not await permissions.is_workspace_owner_or_admin(workspace.id, principal_of(owner_user))

    @pytest.mark.asyncio
    async def test_unknown_workspace_denies(self, db_session, owner_user, principal_of):
        permissions = PermissionService(db_session)

        assert not await permissions.is_workspace_owner_or_admin(uuid4(), principal_of(owner_user))


class TestBoardPermissions:
    """Test board level checks."""

    @pytest.mark.asyncio
    async def test_workspace_member_has_board_access(self, db_session, board, member_user, principal_of):
        assert await PermissionService(db_session).has_board_access(board.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_board_member_has_board_access(self, db_session, board, workspace, guest_user, principal_of):
        """A board member reaches the board without seeing the workspace."""
        permissions = PermissionService(db_session)
        guest = principal_of(guest_user)

        assert await permissions.has_board_access(board.id, guest)
        assert not await permissions.has_workspace_access(workspace.id, guest)

    @pytest.mark.asyncio
    async def test_outsider_denied(self, db_session, board, outsider_user, principal_of):
        permissions = PermissionService(db_session)

        assert not await permissions.has_board_access(board.id, principal_of(outsider_user))
        with pytest.raises(AccessDeniedException):
            await permissions.verify_board_access(board.id, principal_of(outsider_user))

    @pytest.mark.asyncio
    async def test_deleted_board_denies_board_member(self, db_session, board, guest_user, principal_of):
        board.soft_delete()
        await db_session.commit()

        assert not await PermissionService(db_session).has_board_access(board.id, principal_of(guest_user))

    @pytest.mark.asyncio
    async def test_deleted_workspace_denies_board(self, db_session, board, workspace, member_user, principal_of):
        workspace.soft_delete()
        await db_session.commit()

        assert not await PermissionService(db_session).has_board_access(board.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_unknown_board_denies(self, db_session, member_user, principal_of):
        assert not await PermissionService(db_session).has_board_access(uuid4(), principal_of(member_user))


class TestCardPermissions:
    """Test card edit and delete rights."""

    @pytest.mark.asyncio
    async def test_member_can_edit_but_not_delete(self, db_session, lists, owner_user, member_user, make_card, principal_of):
        card = await make_card(lists[0], "C1", 0, created_by=owner_user)
        permissions = PermissionService(db_session)
        member = principal_of(member_user)

        assert await permissions.can_edit_card(card.id, member)
        assert not await permissions.can_delete_card(card.id, member)
        with pytest.raises(AccessDeniedException):
            await permissions.verify_can_delete_card(card.id, member)

    @pytest.mark.asyncio
    async def test_creator_can_delete(self, db_session, lists, member_user, make_card, principal_of):
        card = await make_card(lists[0], "C1", 0, created_by=member_user)

        assert await PermissionService(db_session).can_delete_card(card.id, principal_of(member_user))

    @pytest.mark.asyncio
    async def test_assignee_can_edit_and_delete_without_board_access(
        self, db_session, lists, owner_user, outsider_user, make_card, principal_of
    ):
        card = await make_card(lists[0], "C1", 0, created_by=owner_user, assignees=[outsider_user])
        permissions = PermissionService(db_session)
        assignee = principal_of(outsider_user)

        assert await permissions.can_edit_card(card.id, assignee)
        assert await permissions.can_delete_card(card.id, assignee)

    @pytest.mark.asyncio
    async def test_owner_cannot_delete_others_card(self, db_session, lists, member_user, owner_user, make_card, principal_of):
        """Managing the workspace does not grant card deletion."""
        card = await make_card(lists[0], "C1", 0, created_by=member_user)

        assert not await PermissionService(db_session).can_delete_card(card.id, principal_of(owner_user))

    @pytest.mark.asyncio
    async def test_admin_can_delete_any_card(self, db_session, lists, member_user, admin_user, make_card, principal_of):
        card = await make_card(lists[0], "C1", 0, created_by=member_user)

        assert await PermissionService(db_session).can_delete_card(card.id, principal_of(admin_user))

    @pytest.mark.asyncio
    async def test_outsider_cannot_edit(self, db_session, lists, owner_user, outsider_user, make_card, principal_of):
        card = await make_card(lists[0], "C1", 0, created_by=owner_user)

        with pytest.raises(AccessDeniedException):
            await PermissionService(db_session).verify_can_edit_card(card.id, principal_of(outsider_user))

    @pytest.mark.asyncio
    async def test_card_in_deleted_list_denies_creator(self, db_session, lists, member_user, make_card, principal_of):
        card = await make_card(lists[0], "C1", 0, created_by=member_user)
        lists[0].soft_delete()
        await db_session.commit()
        permissions = PermissionService(db_session)

        assert not await permissions.can_edit_card(card.id, principal_of(member_user))
        assert not await permissions.can_delete_card(card.id, principal_of(member_user))


class TestListPermissions:
    """Test list edit and delete rights."""

    @pytest.mark.asyncio
    async def test_managers_can_edit_lists(self, db_session, lists, owner_user, manager_user, principal_of):
        permissions = PermissionService(db_session)

        assert await permissions.can_edit_list(lists[0].id, principal_of(owner_user))
        assert await permissions.can_delete_list(lists[0].id, principal_of(manager_user))

    @pytest.mark.asyncio
    async def test_member_cannot_edit_lists(self, db_session, lists, member_user, principal_of):
        permissions = PermissionService(db_session)
        member = principal_of(member_user)

        assert not await permissions.can_edit_list(lists[0].id, member)
        with pytest.raises(AccessDeniedException):
            await permissions.verify_can_edit_list(lists[0].id, member)
        with pytest.raises(AccessDeniedException):
            await permissions.verify_can_delete_list(lists[0].id, member)

    @pytest.mark.asyncio
    async def test_deleted_list_denies(self, db_session, lists, owner_user, principal_of):
        lists[1].soft_delete()
        await db_session.commit()

        assert not await PermissionService(db_session).can_edit_list(lists[1].id, principal_of(owner_user))
