"""
Board module.

This module handles boards and board-scoped membership.
"""

from .models import Board, BoardMember

__all__ = ["Board", "BoardMember"]
