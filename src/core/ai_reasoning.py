"""
AI Reasoning Layer for DeckReview

Handles all AI-powered operations:
- AI-generated content detection on slides
- Level-wise question generation
- Answer evaluation
- Final report assessment

Uses a reasoning model for generation, evaluation and the report
assessment, and a fast model for per-slide screening. Integrated with
Langfuse for observability and tracing.
"""

import asyncio
import json
import logging
from typing import Any, Awaitable, TypeVar

import httpx
from langfuse import Langfuse
from pydantic import BaseModel, Field, ValidationError

from src.config.settings import Settings, get_settings
from src.models.evaluation import ReviewEvaluation
from src.models.presentation import (
    AIContentResult,
    AIDetectionReport,
    AIDetectionSection,
    ParsedSlide,
)
from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion
from src.models.report import LevelScores, ReportAssessment
from src.models.review import ReviewSession
from src.prompts.evaluator import EvaluatorPrompts
from src.prompts.report import ReportPrompts
from src.prompts.reviewer import ReviewerPrompts

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Stored excerpt length for screened slides
SECTION_EXCERPT_CHARS = 200


class ReasoningError(Exception):
    """Raised when an LLM call fails or returns unusable output."""
    pass


# =============================================================================
# LLM RESPONSE SCHEMAS
# =============================================================================

class _SectionVerdict(BaseModel):
    result: AIContentResult
    confidence: float = Field(..., ge=0, le=100)
    indicators: list[str] = Field(default_factory=list)
    explanation: str = ""


class _OverallVerdict(BaseModel):
    overall_result: AIContentResult
    overall_confidence: float = Field(..., ge=0, le=100)
    summary: str = ""


class _GeneratedQuestion(BaseModel):
    question: str = Field(..., min_length=1)
    context: str = ""
    expected_points: list[str] = Field(default_factory=list)
    slide_reference: int | None = None


class _GeneratedQuestions(BaseModel):
    questions: list[_GeneratedQuestion] = Field(default_factory=list)


class _AnswerVerdict(BaseModel):
    score: float = Field(..., ge=0, le=10)
    feedback: str = ""
    demonstrates_understanding: bool = False
    flagged_concerns: list[str] = Field(default_factory=list)


class AIReasoningLayer:
    """
    Central AI reasoning component over an OpenAI-compatible gateway.

    Model Selection:
    - Reasoning model: question generation, evaluation, report assessment
    - Fast model: per-slide AI-content screening and its summary

    Observability:
    - Langfuse spans per operation and per review session
    """

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        """
        Initialize AI reasoning layer.

        Args:
            settings: Settings to use (defaults to the cached settings)
            client: Preconfigured HTTP client, mainly for tests
        """
        self.settings = settings or get_settings()

        # HTTP client for API calls
        self.client = client or httpx.AsyncClient(
            base_url=self.settings.llm_host.rstrip("/"),
            headers={
                "Authorization": f"Bearer {self.settings.llm_token}",
                "Content-Type": "application/json",
            },
            timeout=self.settings.llm_request_timeout_seconds,
        )

        # Prompt templates
        self.reviewer_prompts = ReviewerPrompts()
        self.evaluator_prompts = EvaluatorPrompts()
        self.report_prompts = ReportPrompts()

        # Open session spans, keyed by session ID
        self._session_spans: dict[str, Any] = {}

        # Initialize Langfuse for observability
        self.langfuse = None
        if self.settings.langfuse_enabled:
            if self.settings.langfuse_secret_key and self.settings.langfuse_public_key:
                try:
                    self.langfuse = Langfuse(
                        secret_key=self.settings.langfuse_secret_key,
                        public_key=self.settings.langfuse_public_key,
                        host=self.settings.langfuse_base_url,
                    )
                    logger.info("Langfuse initialized for LLM observability")
                except Exception as e:
                    logger.warning(f"Failed to initialize Langfuse: {e}")
            else:
                logger.info("Langfuse keys not configured, tracing disabled")

    async def close(self):
        """Close the HTTP client and flush Langfuse."""
        await self.client.aclose()
        if self.langfuse:
            try:
                self.langfuse.flush()
            except Exception as e:
                logger.warning(f"Failed to flush Langfuse: {e}")

    # =========================================================================
    # TRACING
    # =========================================================================

    def _start_span(self, name: str, metadata: dict) -> Any:
        if not self.langfuse:
            return None
        try:
            return self.langfuse.start_span(name=name, metadata=metadata)
        except Exception as lf_err:
            logger.warning(f"Langfuse span start failed: {lf_err}")
            return None

    def _end_span(self, span: Any, output: dict) -> None:
        if not span:
            return
        try:
            span.end(output=output)
        except Exception as lf_err:
            logger.warning(f"Langfuse span end failed: {lf_err}")

    def start_review_trace(self, session_id: str, metadata: dict | None = None) -> None:
        """Open a span covering a whole review session."""
        span = self._start_span("project_review", {"session_id": session_id, **(metadata or {})})
        if span:
            self._session_spans[session_id] = span

    def end_review_trace(self, session_id: str, metadata: dict | None = None) -> None:
        """Close the session span, if one is open."""
        span = self._session_spans.pop(session_id, None)
        self._end_span(span, metadata or {})

    # =========================================================================
    # CORE AI OPERATIONS
    # =========================================================================

    def _extract_content(self, result: dict) -> str:
        """Extract text content from API response, handling list/dict formats."""
        content = result.get("choices", [{}])[0].get("message", {}).get("content", "")

        # Handle case where content is a list (multi-part response)
        if isinstance(content, list):
            text_parts = []
            for part in content:
                if isinstance(part, str):
                    text_parts.append(part)
                elif isinstance(part, dict) and "text" in part:
                    text_parts.append(part["text"])
            content = "".join(text_parts)

        return content if isinstance(content, str) else str(content)

    async def _call_model(
        self,
        endpoint: str,
        prompt: str,
        max_tokens: int,
        temperature: float,
    ) -> str:
        """
        Call a chat-completions endpoint.

        Raises:
            ReasoningError: On transport or HTTP status errors
        """
        payload = {
            "messages": [
                {"role": "user", "content": prompt}
            ],
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        try:
            response = await self.client.post(endpoint, json=payload)
            response.raise_for_status()
            return self._extract_content(response.json())
        except (httpx.HTTPError, ValueError, IndexError, AttributeError) as e:
            logger.error(f"LLM API error on {endpoint}: {e}")
            raise ReasoningError(f"LLM call failed: {e}") from e

    async def _call_reasoning_model(self, prompt: str, max_tokens: int = 2048) -> str:
        return await self._call_model(
            self.settings.reasoning_endpoint, prompt, max_tokens, temperature=0.7
        )

    async def _call_fast_model(self, prompt: str, max_tokens: int = 512) -> str:
        return await self._call_model(
            self.settings.fast_endpoint, prompt, max_tokens, temperature=0.2
        )

    def _parse_json(self, response: str, schema: type[BaseModel]) -> Any:
        """
        Parse the JSON object embedded in a model response.

        Raises:
            ReasoningError: If no valid object matching `schema` is found
        """
        json_start = response.find("{")
        json_end = response.rfind("}") + 1
        if json_start < 0 or json_end <= json_start:
            raise ReasoningError("Model response contained no JSON object")

        try:
            return schema.model_validate(json.loads(response[json_start:json_end]))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning(f"Failed to parse {schema.__name__} JSON: {e}")
            raise ReasoningError(f"Invalid model output: {e}") from e

    async def _gather_or_cancel(self, *coros: Awaitable[T]) -> list[T]:
        """
        Run LLM calls concurrently, in order.

        When one call fails the others are cancelled instead of being
        left to finish with their results discarded.
        """
        tasks = [asyncio.ensure_future(coro) for coro in coros]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    # =========================================================================
    # AI CONTENT DETECTION
    # =========================================================================

    async def _screen_slide(
        self,
        slide: ParsedSlide,
        content: str,
        limit: asyncio.Semaphore,
    ) -> AIDetectionSection:
        """Classify one slide's text."""
        async with limit:
            response = await self._call_fast_model(
                self.reviewer_prompts.detect_section_prompt(content)
            )
        verdict = self._parse_json(response, _SectionVerdict)

        excerpt = content[:SECTION_EXCERPT_CHARS]
        if len(content) > SECTION_EXCERPT_CHARS:
            excerpt += "..."

        return AIDetectionSection(
            slide_number=slide.slide_number,
            content=excerpt,
            result=verdict.result,
            confidence=verdict.confidence,
            indicators=verdict.indicators,
            explanation=verdict.explanation,
        )

    async def detect_ai_content(self, slides: list[ParsedSlide]) -> AIDetectionReport:
        """
        Screen slides for AI-generated text.

        Only slides with substantial text are analyzed. Those calls run
        concurrently, at most `detection_concurrency` at a time, and are
        followed by a summary call over the per-slide verdicts.

        Args:
            slides: Parsed slides

        Returns:
            AIDetectionReport

        Raises:
            ReasoningError: If any call fails
        """
        span = self._start_span("detect_ai_content", {"slide_count": len(slides)})
        sections: list[AIDetectionSection] = []

        screened = []
        for slide in slides:
            content = "\n".join(p for p in [slide.title, slide.content, *slide.bullets] if p)
            if len(content) > self.settings.min_detection_chars:
                screened.append((slide, content))

        limit = asyncio.Semaphore(max(self.settings.detection_concurrency, 1))

        try:
            sections = await self._gather_or_cancel(*(
                self._screen_slide(slide, content, limit) for slide, content in screened
            ))

            ai_likely = sum(
                1 for s in sections
                if s.result in (AIContentResult.LIKELY_AI, AIContentResult.POSSIBLY_AI)
            )

            if not sections:
                report = AIDetectionReport(
                    overall_result=AIContentResult.UNCERTAIN,
                    overall_confidence=0,
                    summary="No slide had enough text to screen",
                )
            else:
                summaries = "\n".join(
                    f"Slide {s.slide_number}: {s.result.value} ({s.confidence:.0f}% confidence)"
                    for s in sections
                )
                response = await self._call_fast_model(
                    self.reviewer_prompts.detect_overall_prompt(summaries)
                )
                overall = self._parse_json(response, _OverallVerdict)
                report = AIDetectionReport(
                    overall_result=overall.overall_result,
                    overall_confidence=overall.overall_confidence,
                    total_sections=len(sections),
                    ai_likely_sections=ai_likely,
                    sections=sections,
                    summary=overall.summary,
                )
        except ReasoningError as e:
            self._end_span(span, {"error": str(e), "sections_analyzed": len(sections)})
            raise

        logger.info(
            f"AI detection: {report.overall_result.value} "
            f"({report.ai_likely_sections}/{report.total_sections} sections flagged)"
        )
        self._end_span(span, {
            "overall_result": report.overall_result.value,
            "overall_confidence": report.overall_confidence,
            "sections_analyzed": report.total_sections,
        })
        return report

    # =========================================================================
    # QUESTION GENERATION
    # =========================================================================

    async def _generate_level(
        self,
        slides: list[ParsedSlide],
        project_title: str,
        level: QuestionLevel,
        count: int,
    ) -> list[ReviewQuestion]:
        """Generate the questions for one level."""
        logger.info(f"Generating {count} {level.value} questions")

        prompt = self.reviewer_prompts.generate_questions_prompt(
            slides, project_title, level, count
        )
        response = await self._call_reasoning_model(prompt)
        generated = self._parse_json(response, _GeneratedQuestions)

        return [
            ReviewQuestion(
                id=f"{level.value}-{idx + 1}",
                level=level,
                text=q.question,
                context=q.context,
                expected_points=q.expected_points,
                slide_reference=q.slide_reference,
            )
            for idx, q in enumerate(generated.questions)
        ]

    async def generate_questions(
        self,
        slides: list[ParsedSlide],
        project_title: str,
    ) -> QuestionPool:
        """
        Generate questions at every level, concurrently.

        Args:
            slides: Parsed slides
            project_title: Candidate's project title

        Returns:
            QuestionPool with ids like `easy-1`

        Raises:
            ReasoningError: If any level fails; the other levels are cancelled
        """
        span = self._start_span("generate_questions", {
            "project_title": project_title,
            "slide_count": len(slides),
        })

        try:
            easy, medium, hard = await self._gather_or_cancel(
                self._generate_level(
                    slides, project_title, QuestionLevel.EASY, self.settings.easy_question_count
                ),
                self._generate_level(
                    slides, project_title, QuestionLevel.MEDIUM, self.settings.medium_question_count
                ),
                self._generate_level(
                    slides, project_title, QuestionLevel.HARD, self.settings.hard_question_count
                ),
            )
            pool = QuestionPool(easy=easy, medium=medium, hard=hard)
        except ValidationError as e:
            self._end_span(span, {"error": str(e)})
            raise ReasoningError(f"Invalid question pool: {e}") from e
        except ReasoningError as e:
            self._end_span(span, {"error": str(e)})
            raise

        logger.info(
            f"Question generation complete: easy={len(easy)}, "
            f"medium={len(medium)}, hard={len(hard)}"
        )
        self._end_span(span, {"easy": len(easy), "medium": len(medium), "hard": len(hard)})
        return pool

    # =========================================================================
    # ANSWER EVALUATION
    # =========================================================================

    async def evaluate_answer(
        self,
        question: ReviewQuestion,
        transcript: str,
    ) -> ReviewEvaluation:
        """
        Evaluate a candidate's answer to a question.

        Args:
            question: The question that was asked
            transcript: Transcribed answer

        Returns:
            ReviewEvaluation

        Raises:
            ReasoningError: If the call fails or the output is invalid
        """
        logger.info(f"Evaluating answer to question: {question.id}")

        prompt = self.evaluator_prompts.generate_evaluation_prompt(
            question=question,
            transcript=transcript,
        )
        response = await self._call_reasoning_model(prompt, max_tokens=1024)
        verdict = self._parse_json(response, _AnswerVerdict)

        evaluation = ReviewEvaluation(
            question_id=question.id,
            score=verdict.score,
            feedback=verdict.feedback,
            demonstrates_understanding=verdict.demonstrates_understanding,
            flagged_concerns=verdict.flagged_concerns,
        )

        logger.info(f"Evaluation complete: {question.id} score={evaluation.score:.1f}")

        # Log score to Langfuse
        if self.langfuse:
            try:
                self.langfuse.create_score(
                    name="answer_score",
                    value=evaluation.score,
                    comment=f"Question: {question.id} ({question.level.value})",
                )
            except Exception as lf_err:
                logger.warning(f"Langfuse score failed: {lf_err}")

        return evaluation

    # =========================================================================
    # REPORT ASSESSMENT
    # =========================================================================

    async def assess_report(
        self,
        session: ReviewSession,
        level_scores: LevelScores,
        ai_detection: AIDetectionReport,
    ) -> ReportAssessment:
        """
        Write the qualitative part of the final report.

        Args:
            session: Session that has finished questioning
            level_scores: Aggregated level-wise scores
            ai_detection: Detection result (or its stand-in)

        Returns:
            ReportAssessment with dimension scores and narrative

        Raises:
            ReasoningError: If the call fails or the output is invalid
        """
        span = self._start_span("assess_report", {
            "session_id": session.session_id,
            "evaluations": len(session.evaluations),
        })

        prompt = self.report_prompts.generate_assessment_prompt(
            session, level_scores, ai_detection
        )
        try:
            response = await self._call_reasoning_model(prompt, max_tokens=1536)
            assessment = self._parse_json(response, ReportAssessment)
        except ReasoningError as e:
            self._end_span(span, {"error": str(e)})
            raise

        logger.info(
            f"Report assessment for {session.session_id}: "
            f"technical={assessment.technical_understanding:.1f}, "
            f"ownership={assessment.project_ownership:.1f}, "
            f"communication={assessment.communication_clarity:.1f}"
        )
        self._end_span(span, assessment.dimension_scores())
        return assessment
