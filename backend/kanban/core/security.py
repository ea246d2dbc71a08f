"""
Security utilities for bearer token handling.

Tokens are issued by an external identity provider sharing the signing
key; this module only verifies them and extracts the subject. Token
creation is kept for local tooling and tests.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional
from uuid import UUID

import jwt
from kanban.core.config import get_settings
from structlog import get_logger

logger = get_logger(__name__)
settings = get_settings()


class SecurityError(Exception):
    """Base exception for security-related errors."""
    pass


class TokenError(SecurityError):
    """Exception raised for token-related errors."""
    pass


def create_access_token(
    data: Dict[str, Any],
    expires_delta: Optional[timedelta] = None
) -> str:
    """
    Create a JWT access token.

    Args:
        data: The claims to encode; ``sub`` must hold the user id
        expires_delta: Token expiration time delta

    Returns:
        The encoded JWT token

    Raises:
        TokenError: If token creation fails
    """
    try:
        to_encode = {
            key: str(value) if isinstance(value, UUID) else value
            for key, value in data.items()
        }

        now = datetime.now(timezone.utc)
        expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))

        to_encode.update({"exp": expire, "iat": now, "type": "access"})

        encoded_jwt = jwt.encode(
            to_encode,
            settings.secret_key,
            algorithm=settings.algorithm
        )

        logger.debug("Access token created", expires_at=expire.isoformat())
        return encoded_jwt

    except Exception as e:
        logger.error("Token creation failed", error=str(e))
        raise TokenError("Failed to create access token") from e


def decode_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate a JWT token.

    Args:
        token: The JWT token to decode

    Returns:
        The decoded token payload

    Raises:
        TokenError: If token is invalid or expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm]
        )
    except jwt.ExpiredSignatureError:
        logger.warning("Token has expired")
        raise TokenError("Token has expired")
    except jwt.InvalidTokenError as e:
        logger.warning("Invalid token", error=str(e))
        raise TokenError("Invalid token")

    if payload.get("type", "access") != "access":
        raise TokenError("Unexpected token type")

    return payload


def get_user_id_from_token(token: str) -> UUID:
    """
    Extract the subject user id from an access token.

    Raises:
        TokenError: If the token is invalid or carries no usable subject
    """
    payload = decode_token(token)
    subject = payload.get("sub")
    if not subject:
        raise TokenError("Token has no subject")

    try:
        return UUID(str(subject))
    except ValueError:
        raise TokenError("Token subject is not a user id")
