"""
Application modules package.

This package contains all the feature modules of the application.
"""

# Import all models to ensure they are registered with SQLAlchemy
from kanban.modules.auth.models import User
from kanban.modules.board.models import Board, BoardMember
from kanban.modules.board_list.models import BoardList
from kanban.modules.card.models import Card, card_assignees
from kanban.modules.workspace.models import Workspace, WorkspaceMember

__all__ = [
    "User",
    "Workspace",
    "WorkspaceMember",
    "Board",
    "BoardMember",
    "BoardList",
    "Card",
    "card_assignees",
]
