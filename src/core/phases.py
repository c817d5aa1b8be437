"""
Phase Transition Functions for DeckReview

Each phase reads the session and returns a delta: a dict of the
ReviewSession fields it wants changed. Phases never mutate the session
and perform at most one external call, bounded by the collaborator
deadline. Collaborator failures are turned into deltas here; nothing
is retried.

Phase order:
    initialize → (upload) → parse → detect → generate → ask ⇄ evaluate
    → transition_level → ... → report → close
"""

import asyncio
import logging
import random
from datetime import datetime
from typing import Any, Awaitable, Protocol, TypeVar

from src.core import question_pool, scoring
from src.core.report_generator import ReportGenerator, format_report_summary
from src.models.evaluation import ReviewAnswer, ReviewEvaluation
from src.models.presentation import (
    AIContentResult,
    AIDetectionReport,
    ParsedPresentation,
    ParsedSlide,
    PresentationUpload,
)
from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion
from src.models.review import ReviewPhase, ReviewSession
from src.prompts.reviewer import (
    CLOSING_MESSAGE,
    CONTINUE_MESSAGE,
    DETECTION_SKIPPED,
    GREETING,
    LEVEL_TRANSITION_MESSAGES,
    NO_PENDING_QUESTION,
    PRESENTATION_RECEIVED,
    QUESTIONS_READY,
    SESSION_ERROR,
    UPLOAD_ERROR,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

Delta = dict[str, Any]


# =============================================================================
# COLLABORATOR CONTRACTS
# =============================================================================

class PresentationParserProtocol(Protocol):
    async def parse(self, upload: PresentationUpload) -> ParsedPresentation: ...


class AIDetectorProtocol(Protocol):
    async def detect_ai_content(self, slides: list[ParsedSlide]) -> AIDetectionReport: ...


class QuestionGeneratorProtocol(Protocol):
    async def generate_questions(
        self, slides: list[ParsedSlide], project_title: str
    ) -> QuestionPool: ...


class AnswerEvaluatorProtocol(Protocol):
    async def evaluate_answer(
        self, question: ReviewQuestion, transcript: str
    ) -> ReviewEvaluation: ...


class ReviewCollaborators:
    """
    External services the phases depend on.

    The AI reasoning layer usually plays detector, generator and
    evaluator at once; tests pass separate fakes.
    """

    def __init__(
        self,
        parser: PresentationParserProtocol,
        detector: AIDetectorProtocol,
        generator: QuestionGeneratorProtocol,
        evaluator: AnswerEvaluatorProtocol,
        report_generator: ReportGenerator | None = None,
        call_timeout_seconds: float = 60.0,
        max_total_questions: int = 10,
        rng: random.Random | None = None,
    ):
        self.parser = parser
        self.detector = detector
        self.generator = generator
        self.evaluator = evaluator
        self.report_generator = report_generator or ReportGenerator()
        self.call_timeout_seconds = call_timeout_seconds
        self.max_total_questions = max_total_questions
        self.rng = rng


async def _call(services: ReviewCollaborators, awaitable: Awaitable[T]) -> T:
    """Await a collaborator call under the configured deadline."""
    return await asyncio.wait_for(awaitable, timeout=services.call_timeout_seconds)


def _describe(error: Exception) -> str:
    if isinstance(error, asyncio.TimeoutError):
        return "timed out"
    return str(error) or type(error).__name__


# =============================================================================
# SETUP
# =============================================================================

async def initialize_session(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Greet the candidate and wait for the presentation."""
    logger.info(f"Initializing review session {session.session_id}")

    return {
        "phase": ReviewPhase.UPLOAD,
        "last_ai_message": GREETING.format(name=session.candidate.name or "there"),
        "time": session.time.model_copy(update={"started_at": datetime.utcnow()}),
    }


async def parse_presentation(
    session: ReviewSession,
    services: ReviewCollaborators,
    upload: PresentationUpload | None,
) -> Delta:
    """
    Extract slides from the uploaded file.

    A missing file, a parser failure or a deck with no extractable
    slides all send the candidate back to upload with one more error
    counted.
    """
    logger.info(f"Parsing presentation for session {session.session_id}")

    def failed(reason: str) -> Delta:
        logger.error(f"Presentation parsing failed for {session.session_id}: {reason}")
        return {
            "phase": ReviewPhase.UPLOAD,
            "error_count": session.error_count + 1,
            "last_error": f"Failed to parse presentation: {reason}",
            "last_ai_message": UPLOAD_ERROR,
        }

    if upload is None or not upload.content:
        return failed("no file provided")

    try:
        parsed = await _call(services, services.parser.parse(upload))
    except Exception as e:
        return failed(_describe(e))

    if not parsed.slides:
        return failed("no extractable slides")

    logger.info(
        f"Parsed {parsed.metadata.filename}: {len(parsed.slides)} slides "
        f"({parsed.metadata.file_size} bytes)"
    )

    return {
        "phase": ReviewPhase.AI_DETECTION,
        "presentation_metadata": parsed.metadata,
        "slides": parsed.slides,
        "last_ai_message": PRESENTATION_RECEIVED.format(
            filename=parsed.metadata.filename,
            slide_count=parsed.metadata.slide_count,
        ),
    }


# =============================================================================
# ANALYSIS
# =============================================================================

async def detect_ai_content(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Screen slides for AI-generated text. Failure here is never fatal."""
    logger.info(f"Running AI content detection for session {session.session_id}")

    try:
        report = await _call(services, services.detector.detect_ai_content(session.slides))
    except Exception as e:
        logger.error(f"AI detection failed for {session.session_id}: {_describe(e)}")
        return {
            "phase": ReviewPhase.QUESTION_GENERATION,
            "ai_detection": None,
            "last_error": "AI detection failed, continuing with questions",
            "last_ai_message": DETECTION_SKIPPED,
        }

    logger.info(
        f"AI detection complete: {report.overall_result.value} "
        f"({report.overall_confidence:.0f}% confidence, "
        f"{report.ai_likely_sections}/{report.total_sections} sections flagged)"
    )
    if (
        report.overall_result == AIContentResult.LIKELY_AI
        and report.overall_confidence > scoring.AI_CONFIDENCE_REVIEW_THRESHOLD
    ):
        logger.warning(f"High AI content detected ({report.overall_confidence:.0f}%)")

    return {
        "phase": ReviewPhase.QUESTION_GENERATION,
        "ai_detection": report,
    }


async def generate_questions(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Build the tiered question pool. Without questions there is no review."""
    logger.info(f"Generating questions for session {session.session_id}")

    try:
        generated = await _call(
            services,
            services.generator.generate_questions(session.slides, session.candidate.project_title),
        )
        # Revalidate so a pool with repeated ids never reaches the question loop
        pool = QuestionPool.model_validate(generated.model_dump())
    except Exception as e:
        logger.error(f"Question generation failed for {session.session_id}: {_describe(e)}")
        return {
            "phase": ReviewPhase.ERROR,
            "last_error": f"Question generation failed: {_describe(e)}",
            "last_ai_message": SESSION_ERROR,
        }

    if pool.total() == 0:
        logger.error(f"Question generator returned no questions for {session.session_id}")
        return {
            "phase": ReviewPhase.ERROR,
            "last_error": "Question generation failed: no questions generated",
            "last_ai_message": SESSION_ERROR,
        }

    logger.info(
        f"Generated {pool.total()} questions "
        f"(easy={len(pool.easy)}, medium={len(pool.medium)}, hard={len(pool.hard)})"
    )

    return {
        "phase": ReviewPhase.QUESTIONING,
        "questions_pool": pool,
        "current_level": QuestionLevel.EASY,
        "last_ai_message": QUESTIONS_READY,
    }


# =============================================================================
# QUESTION LOOP
# =============================================================================

async def ask_question(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """
    Pose the next unasked question at the current level.

    Returns an empty delta when the level has nothing left to ask. If a
    question is already pending it is repeated, not replaced.
    """
    if session.current_question is not None:
        logger.info(f"Question {session.current_question.id} still pending, repeating it")
        return {"last_ai_message": session.current_question.text}

    level = session.current_level
    question = question_pool.next_question(
        session.questions_pool, level, session.questions_asked
    )
    if question is None:
        logger.info(f"No more {level.value} questions available")
        return {}

    message = question.text
    if question_pool.is_first_of_level(session.questions_asked, level):
        message = f"{LEVEL_TRANSITION_MESSAGES[level]} {question.text}"

    logger.info(f"Question {len(session.questions_asked) + 1}: {question.id}")

    return {
        "current_question": question,
        "last_ai_message": message,
        "time": session.time.model_copy(
            update={"current_question_started_at": datetime.utcnow()}
        ),
    }


async def evaluate_answer(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """
    Record and score the answer held in `last_user_message`.

    The answer and the question are always recorded; the evaluation is
    only appended when the evaluator succeeds.
    """
    question = session.current_question
    if question is None:
        logger.error(f"No current question to evaluate in session {session.session_id}")
        return {
            "last_error": "No current question to evaluate",
            "last_ai_message": NO_PENDING_QUESTION,
        }

    now = datetime.utcnow()
    started = session.time.current_question_started_at
    answer = ReviewAnswer(
        question_id=question.id,
        transcript=session.last_user_message,
        duration_seconds=max((now - started).total_seconds(), 0.0) if started else 0.0,
        timestamp=now,
    )

    recorded: Delta = {
        "answers": [*session.answers, answer],
        "questions_asked": [*session.questions_asked, question],
        "current_question": None,
    }

    try:
        evaluation = await _call(
            services,
            services.evaluator.evaluate_answer(question, session.last_user_message),
        )
    except Exception as e:
        logger.error(f"Evaluation failed for {question.id}: {_describe(e)}")
        return {
            **recorded,
            "last_error": "Evaluation failed, continuing...",
            "last_ai_message": CONTINUE_MESSAGE,
        }

    # Bind the evaluation to the question actually asked
    evaluation = evaluation.model_copy(update={"question_id": question.id})

    logger.info(f"Score for {question.id}: {evaluation.score}/10")
    if evaluation.flagged_concerns:
        logger.warning(f"Concerns for {question.id}: {evaluation.flagged_concerns}")

    return {
        **recorded,
        "evaluations": [*session.evaluations, evaluation],
        "last_ai_message": scoring.feedback_for(evaluation.score, services.rng),
    }


async def transition_level(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Advance the level once it is complete; finish after the last level."""
    asked = session.questions_asked

    if len(asked) >= services.max_total_questions:
        logger.info(f"Question limit reached ({len(asked)}), generating report")
        return {"phase": ReviewPhase.REPORT_GENERATION}

    level = session.current_level
    available = len(session.questions_pool.for_level(level))
    logger.info(
        f"Level {level.value}: "
        f"{question_pool.asked_at_level(asked, level)}/{available} asked"
    )

    if not question_pool.level_complete(level, asked, available):
        return {}

    upcoming = question_pool.next_level(level)
    if upcoming is None:
        logger.info("All levels complete, generating report")
        return {"phase": ReviewPhase.REPORT_GENERATION}

    logger.info(f"Advancing to {upcoming.value} level")
    return {"current_level": upcoming}


# =============================================================================
# WRAP-UP
# =============================================================================

async def generate_report(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Synthesize the final report and the spoken summary."""
    logger.info(f"Generating final report for session {session.session_id}")

    if session.presentation_metadata is None or session.candidate is None:
        return {
            "phase": ReviewPhase.ERROR,
            "last_error": "Missing required data for report",
            "last_ai_message": SESSION_ERROR,
        }

    try:
        report = await _call(services, services.report_generator.generate(session))
    except Exception as e:
        logger.error(f"Report generation failed for {session.session_id}: {_describe(e)}")
        return {
            "phase": ReviewPhase.ERROR,
            "last_error": f"Report generation failed: {_describe(e)}",
            "last_ai_message": SESSION_ERROR,
        }

    logger.info(
        f"Report ready: avg={report.average_score:.1f}, "
        f"recommendation={report.recommendation.value}"
    )

    return {
        "phase": ReviewPhase.COMPLETED,
        "final_report": report,
        "last_ai_message": format_report_summary(report, session.candidate.name),
    }


async def close_session(session: ReviewSession, services: ReviewCollaborators) -> Delta:
    """Stamp the end time and say goodbye."""
    ended_at = datetime.utcnow()
    duration = (ended_at - session.time.started_at).total_seconds()

    logger.info(
        f"Session {session.session_id} completed in {duration / 60:.1f} minutes, "
        f"{len(session.questions_asked)} questions answered"
    )

    return {
        "phase": ReviewPhase.COMPLETED,
        "last_ai_message": CLOSING_MESSAGE,
        "time": session.time.model_copy(
            update={"ended_at": ended_at, "total_duration_seconds": duration}
        ),
    }
