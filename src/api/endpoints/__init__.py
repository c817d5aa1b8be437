"""
API endpoint modules for DeckReview
"""

from src.api.endpoints import review, report

__all__ = ["review", "report"]
