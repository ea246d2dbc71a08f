"""
Tests for the board service.
"""
from uuid import uuid4

import pytest
from kanban.core.exceptions import (
    AccessDeniedException,
    ConflictException,
    ResourceNotFoundException,
)
from kanban.modules.board.models import Board
from kanban.modules.board.schemas import BoardCreate, BoardMemberCreate, BoardUpdate
from kanban.modules.board.service import BoardService


class TestBoardService:
    """Test board operations."""

    @pytest.mark.asyncio
    async def test_manager_creates_board(self, db_session, workspace, manager_user, principal_of):
        board = await BoardService(db_session).create_board(
            BoardCreate(workspace_id=workspace.id, name="Roadmap"), principal_of(manager_user)
        )

        assert board.workspace_id == workspace.id
        assert board.created_by_id == manager_user.id

    @pytest.mark.asyncio
    async def test_member_cannot_create_board(self, db_session, workspace, member_user, principal_of):
        with pytest.raises(AccessDeniedException):
            await BoardService(db_session).create_board(
                BoardCreate(workspace_id=workspace.id, name="Roadmap"), principal_of(member_user)
            )

    @pytest.mark.asyncio
    async def test_create_in_missing_workspace(self, db_session, admin_user, principal_of):
        with pytest.raises(ResourceNotFoundException):
            await BoardService(db_session).create_board(
                BoardCreate(workspace_id=uuid4(), name="Roadmap"), principal_of(admin_user)
            )

    @pytest.mark.asyncio
    async def test_board_detail_is_ordered(
        self, db_session, board, lists, member_user, make_card, principal_of
    ):
        """Lists and the cards inside them come back in position order."""
        await make_card(lists[0], "Second", 1)
        await make_card(lists[0], "First", 0)
        await make_card(lists[2], "Only", 0)

        detail = await BoardService(db_session).get_board_detail(board.id, principal_of(member_user))

        assert [board_list.name for board_list in detail.lists] == ["L1", "L2", "L3"]
        assert [card.title for card in detail.lists[0].cards] == ["First", "Second"]
        assert detail.lists[1].cards == []
        assert [card.title for card in detail.lists[2].cards] == ["Only"]

    @pytest.mark.asyncio
    async def test_board_detail_hides_deleted(self, db_session, board, lists, member_user, make_card, principal_of):
        card = await make_card(lists[0], "Gone", 0)
        card.soft_delete()
        lists[1].soft_delete()
        await db_session.commit()

        detail = await BoardService(db_session).get_board_detail(board.id, principal_of(member_user))

        assert [board_list.name for board_list in detail.lists] == ["L1", "L3"]
        assert detail.lists[0].cards == []

    @pytest.mark.asyncio
    async def test_outsider_cannot_view_board(self, db_session, board, outsider_user, principal_of):
        with pytest.raises(AccessDeniedException):
            await BoardService(db_session).get_board_detail(board.id, principal_of(outsider_user))

    @pytest.mark.asyncio
    async def test_list_boards_visibility(
        self, db_session, workspace, board, owner_user, member_user, guest_user, principal_of
    ):
        """Workspace members see every board; board members only their own."""
        private = Board(id=uuid4(), workspace_id=workspace.id, name="Private", created_by_id=owner_user.id)
        db_session.add(private)
        await db_session.commit()
        service = BoardService(db_session)

        member_boards = await service.list_boards(workspace.id, principal_of(member_user))
        guest_boards = await service.list_boards(workspace.id, principal_of(guest_user))

        assert {b.id for b in member_boards} == {board.id, private.id}
        assert [b.id for b in guest_boards] == [board.id]

    @pytest.mark.asyncio
    async def test_update_and_delete_board(self, db_session, board, owner_user, principal_of):
        service = BoardService(db_session)
        owner = principal_of(owner_user)

        updated = await service.update_board(board.id, BoardUpdate(name="Renamed"), owner)
        assert updated.name == "Renamed"

        await service.delete_board(board.id, owner)
        with pytest.raises(ResourceNotFoundException):
            await service.get_board(board.id, owner)


class TestBoardMembers:
    """Test board-scoped membership."""

    @pytest.mark.asyncio
    async def test_add_board_member_grants_access(self, db_session, board, owner_user, outsider_user, principal_of):
        service = BoardService(db_session)

        await service.add_member(board.id, BoardMemberCreate(user_id=outsider_user.id), principal_of(owner_user))

        assert (await service.get_board(board.id, principal_of(outsider_user))).id == board.id

    @pytest.mark.asyncio
    async def test_duplicate_board_member(self, db_session, board, owner_user, guest_user, principal_of):
        with pytest.raises(ConflictException):
            await BoardService(db_session).add_member(
                board.id, BoardMemberCreate(user_id=guest_user.id), principal_of(owner_user)
            )

    @pytest.mark.asyncio
    async def test_remove_board_member(self, db_session, board, owner_user, guest_user, principal_of):
        service = BoardService(db_session)

        await service.remove_member(board.id, guest_user.id, principal_of(owner_user))

        with pytest.raises(AccessDeniedException):
            await service.get_board(board.id, principal_of(guest_user))

        member = await service.add_member(
            board.id, BoardMemberCreate(user_id=guest_user.id), principal_of(owner_user)
        )
        assert member.is_deleted is False

    @pytest.mark.asyncio
    async def test_member_cannot_manage_board_members(
        self, db_session, board, member_user, outsider_user, principal_of
    ):
        with pytest.raises(AccessDeniedException):
            await BoardService(db_session).add_member(
                board.id, BoardMemberCreate(user_id=outsider_user.id), principal_of(member_user)
            )
