"""
Core business logic modules for DeckReview

Contains:
- Review Orchestrator: Session driver for the review state machine
- Phases: Transition functions for each review phase
- AI Reasoning: AI-content detection, question generation, evaluation
- Presentation Parser: Slide extraction from uploaded decks
- Report Generator: Final report synthesis
"""

from src.core.review_orchestrator import (
    ReviewOrchestrator,
    ReviewEventError,
    StateTransitionError,
)
from src.core.phases import ReviewCollaborators
from src.core.ai_reasoning import AIReasoningLayer, ReasoningError
from src.core.presentation_parser import PresentationParser, ParseError
from src.core.report_generator import ReportGenerator, format_report_summary

__all__ = [
    "ReviewOrchestrator",
    "ReviewEventError",
    "StateTransitionError",
    "ReviewCollaborators",
    "AIReasoningLayer",
    "ReasoningError",
    "PresentationParser",
    "ParseError",
    "ReportGenerator",
    "format_report_summary",
]
