"""
Authentication module.

This module resolves verified principals from bearer tokens.
"""

from .models import User, UserRole
from .schemas import Principal, UserSummary

__all__ = [
    "User",
    "UserRole",
    "Principal",
    "UserSummary",
]
