"""
Question models for DeckReview
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class QuestionLevel(str, Enum):
    """Question difficulty levels, in the order they are asked."""

    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"


class ReviewQuestion(BaseModel):
    """A single review question generated from the presentation."""

    # Identification
    id: str = Field(..., description="Unique question ID within the pool")
    level: QuestionLevel = Field(..., description="Difficulty level")

    # Content
    text: str = Field(..., min_length=1, description="The question text")
    context: str = Field(
        default="",
        description="Slide content the question relates to"
    )

    # Evaluation guidance
    expected_points: list[str] = Field(
        default_factory=list,
        description="Key points expected in a good answer"
    )
    slide_reference: int | None = Field(
        default=None,
        description="Slide number the question is based on"
    )


class QuestionPool(BaseModel):
    """Generated questions bucketed by level, in insertion order."""

    easy: list[ReviewQuestion] = Field(default_factory=list)
    medium: list[ReviewQuestion] = Field(default_factory=list)
    hard: list[ReviewQuestion] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_ids(self) -> "QuestionPool":
        """Question ids must be unique across the whole pool."""
        ids = [q.id for q in self.easy + self.medium + self.hard]
        duplicates = sorted({i for i in ids if ids.count(i) > 1})
        if duplicates:
            raise ValueError(f"Duplicate question ids in pool: {', '.join(duplicates)}")
        return self

    def for_level(self, level: QuestionLevel) -> list[ReviewQuestion]:
        """Get the questions for a level."""
        return getattr(self, level.value)

    def total(self) -> int:
        """Total number of questions across all levels."""
        return len(self.easy) + len(self.medium) + len(self.hard)
