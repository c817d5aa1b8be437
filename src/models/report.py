"""
Report models for DeckReview

Defines the structure of the final project review report.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field

from src.models.presentation import AIDetectionReport, PresentationMetadata
from src.models.question import QuestionLevel


class Recommendation(str, Enum):
    """Final triage verdict."""

    PROCEED = "proceed"
    REVIEW = "review"
    REJECT = "reject"

    @property
    def display_text(self) -> str:
        """Human-readable verdict."""
        texts = {
            "proceed": "Proceed",
            "review": "Needs manual review",
            "reject": "Reject",
        }
        return texts.get(self.value, self.value)


class LevelScore(BaseModel):
    """Performance at one difficulty level."""

    asked: int = Field(default=0, ge=0)
    average_score: float = Field(default=0.0, ge=0, le=10)


class LevelScores(BaseModel):
    """Level-wise score breakdown."""

    easy: LevelScore = Field(default_factory=LevelScore)
    medium: LevelScore = Field(default_factory=LevelScore)
    hard: LevelScore = Field(default_factory=LevelScore)

    def for_level(self, level: QuestionLevel) -> LevelScore:
        """Get the score entry for a level."""
        return getattr(self, level.value)

    def total_asked(self) -> int:
        """Number of evaluated questions across all levels."""
        return self.easy.asked + self.medium.asked + self.hard.asked


class ReportAssessment(BaseModel):
    """Reviewer's qualitative read of the session, written at report time."""

    technical_understanding: float = Field(..., ge=1, le=10)
    project_ownership: float = Field(..., ge=1, le=10)
    communication_clarity: float = Field(..., ge=1, le=10)
    knowledge_gaps: list[str] = Field(default_factory=list)
    overall_assessment: str = Field(..., min_length=1)
    next_steps: list[str] = Field(default_factory=list)

    def dimension_scores(self) -> dict[str, float]:
        """Scores keyed by display name."""
        return {
            "Technical Understanding": self.technical_understanding,
            "Project Ownership": self.project_ownership,
            "Communication Clarity": self.communication_clarity,
        }


class ReviewReport(BaseModel):
    """Complete project review report."""

    # Metadata
    session_id: str
    candidate_name: str
    project_title: str
    generated_at: datetime = Field(default_factory=datetime.utcnow)

    # Presentation analysis
    presentation_metadata: PresentationMetadata
    ai_detection: AIDetectionReport | None = None

    # Question performance
    level_scores: LevelScores
    total_questions: int = Field(..., ge=0)
    average_score: float = Field(..., ge=0, le=10)
    concern_count: int = Field(default=0, ge=0)
    dimension_scores: dict[str, float] = Field(default_factory=dict)

    # Concerns
    ai_content_concerns: list[str] = Field(default_factory=list)
    knowledge_gaps: list[str] = Field(default_factory=list)

    # Verdict
    recommendation: Recommendation
    overall_assessment: str
    next_steps: list[str] = Field(default_factory=list)
