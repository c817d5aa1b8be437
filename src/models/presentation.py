"""
Presentation and AI-content detection models for DeckReview
"""

from enum import Enum

from pydantic import BaseModel, Field


class ParsedSlide(BaseModel):
    """Text extracted from one slide."""

    slide_number: int = Field(..., ge=1)
    title: str = ""
    content: str = ""
    bullets: list[str] = Field(default_factory=list)
    notes: str | None = None

    @property
    def text(self) -> str:
        """All slide text joined into one block."""
        parts = [self.title, self.content, *self.bullets]
        if self.notes:
            parts.append(self.notes)
        return "\n".join(p for p in parts if p)


class PresentationMetadata(BaseModel):
    """Metadata about the uploaded presentation."""

    filename: str
    slide_count: int = Field(..., ge=0)
    file_size: int = Field(default=0, ge=0)


class ParsedPresentation(BaseModel):
    """Result of parsing an uploaded presentation."""

    metadata: PresentationMetadata
    slides: list[ParsedSlide] = Field(default_factory=list)


class PresentationUpload(BaseModel):
    """Raw uploaded file as received from the transport layer."""

    filename: str = Field(..., min_length=1)
    content: bytes


class AIContentResult(str, Enum):
    """AI-generated content classification."""

    LIKELY_AI = "likely_ai"
    POSSIBLY_AI = "possibly_ai"
    LIKELY_HUMAN = "likely_human"
    UNCERTAIN = "uncertain"


class AIDetectionSection(BaseModel):
    """Detection result for one slide."""

    slide_number: int
    content: str
    result: AIContentResult
    confidence: float = Field(..., ge=0, le=100)
    indicators: list[str] = Field(default_factory=list)
    explanation: str = ""


class AIDetectionReport(BaseModel):
    """Overall AI-content detection summary for the presentation."""

    overall_result: AIContentResult
    overall_confidence: float = Field(..., ge=0, le=100)
    total_sections: int = 0
    ai_likely_sections: int = 0
    sections: list[AIDetectionSection] = Field(default_factory=list)
    summary: str = ""
