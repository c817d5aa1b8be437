"""
AI prompt templates for DeckReview

Contains structured prompts for:
- AI-content detection
- Question generation
- Answer evaluation
- Final report assessment

and the fixed lines spoken to the candidate.
"""

from src.prompts.reviewer import ReviewerPrompts
from src.prompts.evaluator import EvaluatorPrompts
from src.prompts.report import ReportPrompts

__all__ = [
    "ReviewerPrompts",
    "EvaluatorPrompts",
    "ReportPrompts",
]
