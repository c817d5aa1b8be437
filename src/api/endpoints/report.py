"""
Report API endpoints

Handles:
- Report retrieval
- Spoken report summary
"""

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from src.api.dependencies import get_orchestrator
from src.core.report_generator import format_report_summary
from src.core.review_orchestrator import ReviewOrchestrator
from src.core.scoring import format_level_scores
from src.models.report import ReviewReport
from src.models.review import ReviewPhase, ReviewSession

router = APIRouter()


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class ReportSummaryResponse(BaseModel):
    """Condensed report response."""
    session_id: str
    average_score: float
    recommendation: str
    recommendation_text: str
    level_scores: str
    summary: str


# ============================================================================
# ENDPOINTS
# ============================================================================

def _completed_session(orchestrator: ReviewOrchestrator, session_id: str) -> ReviewSession:
    session = orchestrator.get_session(session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    if session.phase != ReviewPhase.COMPLETED or session.final_report is None:
        raise HTTPException(
            status_code=409,
            detail=f"Review not complete. Current phase: {session.phase.value}"
        )

    return session


@router.get("/{session_id}", response_model=ReviewReport)
async def get_report(
    session_id: str,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> ReviewReport:
    """
    Get the full review report.

    Available once the review is complete.
    """
    return _completed_session(orchestrator, session_id).final_report


@router.get("/{session_id}/summary", response_model=ReportSummaryResponse)
async def get_report_summary(
    session_id: str,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> ReportSummaryResponse:
    """Get a condensed report summary."""
    session = _completed_session(orchestrator, session_id)
    report = session.final_report

    return ReportSummaryResponse(
        session_id=session_id,
        average_score=report.average_score,
        recommendation=report.recommendation.value,
        recommendation_text=report.recommendation.display_text,
        level_scores=format_level_scores(report.level_scores),
        summary=format_report_summary(report, session.candidate.name),
    )
