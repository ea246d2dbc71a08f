"""
Shared test fixtures and utilities for the test suite.

This module provides common fixtures for database sessions, users and their
principals, a workspace with a board and three lists, and an in-memory
broadcaster.
"""
from typing import AsyncGenerator, List
from uuid import uuid4

import pytest
import pytest_asyncio
import kanban.modules  # noqa: F401
from kanban.core.broadcast import Broadcaster, InMemoryBackend
from kanban.core.models import Base
from kanban.modules.auth.models import User, UserRole
from kanban.modules.auth.schemas import Principal
from kanban.modules.board.models import Board, BoardMember
from kanban.modules.board_list.models import BoardList
from kanban.modules.card.models import Card
from kanban.modules.workspace.models import Workspace, WorkspaceMember, WorkspaceMemberRole
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Test database URL for in-memory SQLite
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={
            "check_same_thread": False,
        },
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session configured like the application's."""
    async_session = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest_asyncio.fixture
async def broadcaster() -> AsyncGenerator[Broadcaster, None]:
    """In-memory broadcaster, drained and closed after the test."""
    broadcaster = Broadcaster(InMemoryBackend(queue_size=50))
    yield broadcaster
    await broadcaster.close()


async def _create_user(db: AsyncSession, username: str, role: UserRole = UserRole.USER) -> User:
    user = User(
        id=uuid4(),
        username=username,
        email=f"{username}@example.com",
        full_name=f"{username.title()} User",
        role=role,
        is_active=True,
    )
    db.add(user)
    await db.commit()
    return user


@pytest_asyncio.fixture
async def admin_user(db_session: AsyncSession) -> User:
    """System administrator; bypasses every permission check."""
    return await _create_user(db_session, "admin", UserRole.ADMIN)


@pytest_asyncio.fixture
async def owner_user(db_session: AsyncSession) -> User:
    """Owner of the test workspace."""
    return await _create_user(db_session, "owner")


@pytest_asyncio.fixture
async def manager_user(db_session: AsyncSession) -> User:
    """Workspace member holding the ADMIN role."""
    return await _create_user(db_session, "manager")


@pytest_asyncio.fixture
async def member_user(db_session: AsyncSession) -> User:
    """Plain workspace member."""
    return await _create_user(db_session, "member")


@pytest_asyncio.fixture
async def guest_user(db_session: AsyncSession) -> User:
    """Board member without workspace membership."""
    return await _create_user(db_session, "guest")


@pytest_asyncio.fixture
async def outsider_user(db_session: AsyncSession) -> User:
    """User with no relation to the test workspace."""
    return await _create_user(db_session, "outsider")


@pytest.fixture
def principal_of():
    """Build the verified principal of a user."""
    return Principal.from_user


@pytest_asyncio.fixture
async def workspace(
    db_session: AsyncSession,
    owner_user: User,
    manager_user: User,
    member_user: User,
) -> Workspace:
    """
    Workspace owned by ``owner_user``.

    The owner is mirrored as an OWNER member, ``manager_user`` is an ADMIN
    and ``member_user`` a plain MEMBER.
    """
    workspace = Workspace(id=uuid4(), name="Test Workspace", owner_id=owner_user.id)
    db_session.add(workspace)
    await db_session.flush()

    for user, role in (
        (owner_user, WorkspaceMemberRole.OWNER),
        (manager_user, WorkspaceMemberRole.ADMIN),
        (member_user, WorkspaceMemberRole.MEMBER),
    ):
        db_session.add(WorkspaceMember(workspace_id=workspace.id, user_id=user.id, role=role))

    await db_session.commit()
    return workspace


@pytest_asyncio.fixture
async def board(db_session: AsyncSession, workspace: Workspace, owner_user: User, guest_user: User) -> Board:
    """Board in the test workspace; ``guest_user`` is a board member."""
    board = Board(
        id=uuid4(),
        workspace_id=workspace.id,
        name="Test Board",
        created_by_id=owner_user.id,
    )
    db_session.add(board)
    await db_session.flush()

    db_session.add(BoardMember(board_id=board.id, user_id=guest_user.id))
    await db_session.commit()
    return board


@pytest_asyncio.fixture
async def lists(db_session: AsyncSession, board: Board) -> List[BoardList]:
    """Three lists L1, L2, L3 at positions 0, 1, 2."""
    created = [
        BoardList(id=uuid4(), board_id=board.id, name=name, position=index)
        for index, name in enumerate(("L1", "L2", "L3"))
    ]
    db_session.add_all(created)
    await db_session.commit()
    return created


@pytest.fixture
def make_card(db_session: AsyncSession):
    """Factory inserting a card directly, bypassing the service."""

    async def _make_card(board_list: BoardList, title: str, position: int, created_by: User = None, assignees=()):
        card = Card(
            id=uuid4(),
            list_id=board_list.id,
            title=title,
            position=position,
            created_by_id=created_by.id if created_by else None,
        )
        card.assigned_users = list(assignees)
        db_session.add(card)
        await db_session.commit()
        return card

    return _make_card

