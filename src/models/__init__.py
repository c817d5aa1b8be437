"""
Data models and schemas for DeckReview

Contains Pydantic models for:
- Review sessions and phases
- Presentations and AI-content detection
- Questions, answers and evaluations
- Report data
"""

from src.models.review import (
    ReviewSession,
    ReviewPhase,
    ReviewCandidate,
    ReviewTimeState,
)
from src.models.presentation import (
    ParsedSlide,
    ParsedPresentation,
    PresentationMetadata,
    PresentationUpload,
    AIContentResult,
    AIDetectionSection,
    AIDetectionReport,
)
from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion
from src.models.evaluation import ReviewAnswer, ReviewEvaluation
from src.models.report import (
    ReviewReport,
    ReportAssessment,
    Recommendation,
    LevelScore,
    LevelScores,
)

__all__ = [
    # Session
    "ReviewSession",
    "ReviewPhase",
    "ReviewCandidate",
    "ReviewTimeState",
    # Presentation
    "ParsedSlide",
    "ParsedPresentation",
    "PresentationMetadata",
    "PresentationUpload",
    "AIContentResult",
    "AIDetectionSection",
    "AIDetectionReport",
    # Questions
    "QuestionLevel",
    "QuestionPool",
    "ReviewQuestion",
    # Evaluation
    "ReviewAnswer",
    "ReviewEvaluation",
    # Report
    "ReviewReport",
    "ReportAssessment",
    "Recommendation",
    "LevelScore",
    "LevelScores",
]
