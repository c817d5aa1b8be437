"""
Answer and evaluation models for DeckReview
"""

from datetime import datetime

from pydantic import BaseModel, Field


class ReviewAnswer(BaseModel):
    """A candidate's answer to one asked question."""

    question_id: str
    transcript: str = ""
    duration_seconds: float = Field(default=0.0, ge=0)
    timestamp: datetime = Field(default_factory=datetime.utcnow)


class ReviewEvaluation(BaseModel):
    """Scored judgment of one answer."""

    question_id: str
    score: float = Field(..., ge=0, le=10, description="Answer score (0-10)")
    feedback: str = Field(
        default="",
        description="Evaluator's note on the answer (not shown to the candidate)"
    )
    demonstrates_understanding: bool = False
    flagged_concerns: list[str] = Field(
        default_factory=list,
        description="Free-text concern tags raised by the evaluator"
    )
