"""
List module.

This module handles the ordered lists of a board.
"""

from .models import BoardList

__all__ = ["BoardList"]
