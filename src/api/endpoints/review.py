"""
Review API endpoints

Handles review session lifecycle:
- Creating sessions
- Uploading the presentation
- Submitting spoken answers
- Session status
"""

import base64
import binascii
from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from src.api.dependencies import get_orchestrator
from src.core.review_orchestrator import ReviewEventError, ReviewOrchestrator
from src.models.presentation import PresentationUpload
from src.models.review import ReviewCandidate

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class SetupRequest(BaseModel):
    """Request model for review setup."""
    candidate_id: str = Field(..., min_length=1)
    name: str = "Candidate"
    email: str = ""
    project_title: str = "Project"
    project_description: str = ""
    room_name: str = ""


class UploadRequest(BaseModel):
    """Request model for a presentation upload."""
    filename: str = Field(..., min_length=1)
    content_base64: str


class AnswerRequest(BaseModel):
    """Request model for submitting an answer."""
    transcript: str


class EventResponse(BaseModel):
    """Outcome of a session event."""
    session_id: str
    phase: str
    messages: list[str]
    question_id: str | None = None
    question: str | None = None
    level: str
    questions_asked: int
    error: str | None = None


class SessionStatusResponse(BaseModel):
    """Response for session status."""
    session_id: str
    phase: str
    candidate_name: str
    project_title: str
    slide_count: int
    current_level: str
    current_question: str | None = None
    questions_asked: int
    evaluations: int
    error_count: int
    last_error: str | None = None
    last_ai_message: str
    duration_seconds: float


def _event_response(result: dict[str, Any]) -> EventResponse:
    return EventResponse(**result)


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.post("/setup", response_model=EventResponse)
async def setup_review(
    request: SetupRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> EventResponse:
    """
    Create a new review session.

    The candidate is greeted and asked to upload a presentation.
    """
    candidate = ReviewCandidate(
        id=request.candidate_id,
        name=request.name,
        email=request.email,
        project_title=request.project_title,
        project_description=request.project_description,
    )
    result = await orchestrator.create_session(candidate, room_name=request.room_name)
    return _event_response(result)


@router.post("/{session_id}/upload", response_model=EventResponse)
async def upload_presentation(
    session_id: str,
    request: UploadRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> EventResponse:
    """
    Upload the presentation (base64-encoded).

    Runs parsing, AI-content screening and question generation, and
    returns the first question.
    """
    try:
        content = base64.b64decode(request.content_base64, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(status_code=422, detail="content_base64 is not valid base64")

    upload = PresentationUpload(filename=request.filename, content=content)

    try:
        result = await orchestrator.upload_presentation(session_id, upload)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ReviewEventError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _event_response(result)


@router.post("/{session_id}/answer", response_model=EventResponse)
async def submit_answer(
    session_id: str,
    request: AnswerRequest,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> EventResponse:
    """
    Submit the transcript of a spoken answer.

    Returns the feedback line and the next question, or the closing
    summary once the review is complete.
    """
    try:
        result = await orchestrator.submit_answer(session_id, request.transcript)
    except KeyError:
        raise HTTPException(status_code=404, detail="Session not found")
    except ReviewEventError as e:
        raise HTTPException(status_code=409, detail=str(e))

    return _event_response(result)


@router.get("/{session_id}", response_model=SessionStatusResponse)
async def get_session_status(
    session_id: str,
    orchestrator: ReviewOrchestrator = Depends(get_orchestrator),
) -> SessionStatusResponse:
    """Get current session status."""
    session = orchestrator.get_session(session_id)

    if not session:
        raise HTTPException(status_code=404, detail="Session not found")

    return SessionStatusResponse(
        session_id=session.session_id,
        phase=session.phase.value,
        candidate_name=session.candidate.name,
        project_title=session.candidate.project_title,
        slide_count=len(session.slides),
        current_level=session.current_level.value,
        current_question=session.current_question.text if session.current_question else None,
        questions_asked=len(session.questions_asked),
        evaluations=len(session.evaluations),
        error_count=session.error_count,
        last_error=session.last_error,
        last_ai_message=session.last_ai_message,
        duration_seconds=session.get_duration_seconds(),
    )
