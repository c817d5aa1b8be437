"""
API layer for DeckReview

Contains FastAPI routers for:
- Review session management
- Report retrieval
"""

from src.api.router import api_router

__all__ = ["api_router"]
