"""
Card module.

This module handles cards, their ordering inside lists and their assignees.
"""

from .models import Card, CardPriority, card_assignees

__all__ = ["Card", "CardPriority", "card_assignees"]
