"""
Review session and phase models for DeckReview
"""

from datetime import datetime
from enum import Enum
from uuid import uuid4

from pydantic import BaseModel, Field

from src.models.evaluation import ReviewAnswer, ReviewEvaluation
from src.models.presentation import (
    AIDetectionReport,
    ParsedSlide,
    PresentationMetadata,
)
from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion
from src.models.report import ReviewReport


class ReviewPhase(str, Enum):
    """Review session state machine states."""

    # Setup
    INIT = "init"
    UPLOAD = "upload"  # Waiting for the presentation
    PARSING = "parsing"

    # Analysis
    AI_DETECTION = "ai_detection"
    QUESTION_GENERATION = "question_generation"

    # Question loop
    QUESTIONING = "questioning"

    # Wrap-up
    REPORT_GENERATION = "report_generation"
    COMPLETED = "completed"

    # Terminal failure
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (ReviewPhase.COMPLETED, ReviewPhase.ERROR)


class ReviewCandidate(BaseModel):
    """Candidate identity and declared project."""

    id: str = Field(..., min_length=1)
    name: str = Field(default="Candidate")
    email: str = ""
    project_title: str = Field(default="Project")
    project_description: str = ""


class ReviewTimeState(BaseModel):
    """Session timing."""

    started_at: datetime = Field(default_factory=datetime.utcnow)
    current_question_started_at: datetime | None = None
    ended_at: datetime | None = None
    total_duration_seconds: float = 0.0


class ReviewSession(BaseModel):
    """Complete review session state."""

    # Identification
    session_id: str = Field(default_factory=lambda: str(uuid4()))
    room_name: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)

    # State
    phase: ReviewPhase = Field(default=ReviewPhase.INIT)

    # Candidate
    candidate: ReviewCandidate

    # Presentation
    presentation_metadata: PresentationMetadata | None = None
    slides: list[ParsedSlide] = Field(default_factory=list)
    ai_detection: AIDetectionReport | None = None

    # Questions
    questions_pool: QuestionPool = Field(default_factory=QuestionPool)
    questions_asked: list[ReviewQuestion] = Field(default_factory=list)
    current_question: ReviewQuestion | None = None
    current_level: QuestionLevel = QuestionLevel.EASY

    # Answers & evaluations
    answers: list[ReviewAnswer] = Field(default_factory=list)
    evaluations: list[ReviewEvaluation] = Field(default_factory=list)

    # Report
    final_report: ReviewReport | None = None

    # Conversation
    last_ai_message: str = ""
    last_user_message: str = ""

    # Diagnostics
    error_count: int = 0
    last_error: str | None = None

    # Timing
    time: ReviewTimeState = Field(default_factory=ReviewTimeState)

    def get_duration_seconds(self) -> float:
        """Get session duration in seconds."""
        end = self.time.ended_at or datetime.utcnow()
        return (end - self.time.started_at).total_seconds()
