"""
Workspace module.

This module handles workspaces, the tenant boundary, and their member roles.
"""

from .models import MANAGER_ROLES, Workspace, WorkspaceMember, WorkspaceMemberRole

__all__ = [
    "Workspace",
    "WorkspaceMember",
    "WorkspaceMemberRole",
    "MANAGER_ROLES",
]
