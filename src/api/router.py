"""
Main API router for DeckReview

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from src.api.endpoints import review, report

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    review.router,
    prefix="/review",
    tags=["Review"]
)

api_router.include_router(
    report.router,
    prefix="/report",
    tags=["Report"]
)
