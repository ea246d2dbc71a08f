"""
Authentication service.

Resolves users and verified principals from the store.
"""
from typing import Iterable, List, Optional
from uuid import UUID

from kanban.core.exceptions import AuthenticationException, ValidationException
from kanban.core.security import TokenError, get_user_id_from_token
from kanban.modules.auth.models import User
from kanban.modules.auth.schemas import Principal
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from structlog import get_logger

logger = get_logger(__name__)


class AuthService:
    """Service class for user and principal lookups."""

    def __init__(self, db: AsyncSession):
        """
        Initialize the auth service.

        Args:
            db: Database session
        """
        self.db = db

    async def get_user_by_id(self, user_id: UUID) -> Optional[User]:
        """
        Get a non-deleted user by ID.

        Args:
            user_id: User ID

        Returns:
            User if found, None otherwise
        """
        result = await self.db.execute(
            select(User).where(User.id == user_id, User.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def get_users_by_ids(self, user_ids: Iterable[UUID]) -> List[User]:
        """
        Load several users at once, failing if any of them does not exist.

        Raises:
            ValidationException: If one of the ids does not match an active user
        """
        wanted = set(user_ids)
        if not wanted:
            return []

        result = await self.db.execute(
            select(User).where(
                User.id.in_(wanted),
                User.is_deleted.is_(False),
                User.is_active.is_(True),
            )
        )
        users = list(result.scalars().all())

        missing = wanted - {user.id for user in users}
        if missing:
            raise ValidationException(
                "Unknown user id(s)",
                details={"user_ids": sorted(str(user_id) for user_id in missing)}
            )
        return users

    async def resolve_principal(self, token: str) -> Principal:
        """
        Map a bearer token to a verified principal.

        Raises:
            AuthenticationException: If the token is invalid or the user is unknown or inactive
        """
        try:
            user_id = get_user_id_from_token(token)
        except TokenError as e:
            raise AuthenticationException(str(e))

        user = await self.get_user_by_id(user_id)
        if user is None:
            logger.warning("Token subject not found", user_id=str(user_id))
            raise AuthenticationException("Could not validate credentials")

        if not user.is_active:
            logger.warning("Inactive user attempted access", user_id=str(user_id))
            raise AuthenticationException("Inactive user")

        return Principal.from_user(user)
