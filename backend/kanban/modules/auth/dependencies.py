"""
Authentication dependencies.

This module provides the FastAPI dependency that turns the bearer token of
a request into a verified principal.
"""
from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from kanban.core.database import get_db_session
from kanban.core.exceptions import AuthenticationException
from kanban.core.logger import bind_request_context
from kanban.modules.auth.schemas import Principal
from kanban.modules.auth.service import AuthService
from sqlalchemy.ext.asyncio import AsyncSession

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Principal:
    """
    Resolve the verified principal for the current request.

    The principal is resolved once here and then passed explicitly to every
    service and permission check.

    Raises:
        AuthenticationException: If the token is missing or invalid
    """
    if credentials is None or not credentials.credentials:
        raise AuthenticationException()

    principal = await AuthService(db).resolve_principal(credentials.credentials)
    bind_request_context(principal_id=str(principal.id))
    return principal
