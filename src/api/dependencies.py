"""
API Dependencies

Provides dependency injection for API endpoints.
Manages singleton instances of core components.
"""

from src.config.settings import get_settings
from src.core.ai_reasoning import AIReasoningLayer
from src.core.phases import ReviewCollaborators
from src.core.presentation_parser import PresentationParser
from src.core.report_generator import ReportGenerator
from src.core.review_orchestrator import ReviewOrchestrator


# ============================================================================
# SINGLETON INSTANCES
# ============================================================================

_orchestrator: ReviewOrchestrator | None = None


def get_orchestrator() -> ReviewOrchestrator:
    """
    Get the review orchestrator singleton.

    Lazily initializes all required components.
    """
    global _orchestrator

    if _orchestrator is None:
        settings = get_settings()
        ai_reasoning = AIReasoningLayer(settings)

        collaborators = ReviewCollaborators(
            parser=PresentationParser(),
            detector=ai_reasoning,
            generator=ai_reasoning,
            evaluator=ai_reasoning,
            report_generator=ReportGenerator(ai_reasoning),
            call_timeout_seconds=settings.collaborator_timeout_seconds,
            max_total_questions=settings.max_total_questions,
        )

        _orchestrator = ReviewOrchestrator(
            collaborators=collaborators,
            ai_reasoning=ai_reasoning,
            finished_session_ttl_seconds=settings.finished_session_ttl_seconds,
        )

    return _orchestrator


async def cleanup():
    """Cleanup resources on shutdown."""
    global _orchestrator

    if _orchestrator and _orchestrator.ai_reasoning:
        await _orchestrator.ai_reasoning.close()

    _orchestrator = None
