import asyncio
import random

import pytest

from src.core.ai_reasoning import ReasoningError
from src.core.phases import ReviewCollaborators
from src.core.presentation_parser import ParseError
from src.core.review_orchestrator import ReviewOrchestrator
from src.models.evaluation import ReviewEvaluation
from src.models.presentation import (
    AIContentResult,
    AIDetectionReport,
    ParsedPresentation,
    ParsedSlide,
    PresentationMetadata,
    PresentationUpload,
)
from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion
from src.models.report import LevelScores, ReportAssessment
from src.models.review import ReviewCandidate, ReviewSession


def make_question(level: QuestionLevel, number: int) -> ReviewQuestion:
    return ReviewQuestion(
        id=f"{level.value}-{number}",
        level=level,
        text=f"{level.value.capitalize()} question {number}?",
        expected_points=["ownership"],
        slide_reference=1,
    )


def make_pool(easy: int = 5, medium: int = 5, hard: int = 3) -> QuestionPool:
    return QuestionPool(
        easy=[make_question(QuestionLevel.EASY, i + 1) for i in range(easy)],
        medium=[make_question(QuestionLevel.MEDIUM, i + 1) for i in range(medium)],
        hard=[make_question(QuestionLevel.HARD, i + 1) for i in range(hard)],
    )


class FakeParser:
    def __init__(self, presentation: ParsedPresentation):
        self.presentation = presentation
        self.error: Exception | None = None
        self.delay = 0.0
        self.calls = 0

    async def parse(self, upload: PresentationUpload) -> ParsedPresentation:
        self.calls += 1
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.presentation


class FakeDetector:
    def __init__(self, report: AIDetectionReport):
        self.report = report
        self.error: Exception | None = None
        self.calls = 0

    async def detect_ai_content(self, slides: list[ParsedSlide]) -> AIDetectionReport:
        self.calls += 1
        if self.error:
            raise self.error
        return self.report


class FakeGenerator:
    def __init__(self, pool: QuestionPool):
        self.pool = pool
        self.error: Exception | None = None
        self.calls = 0

    async def generate_questions(self, slides: list[ParsedSlide], project_title: str) -> QuestionPool:
        self.calls += 1
        if self.error:
            raise self.error
        return self.pool


class FakeEvaluator:
    """Scores every answer `score` unless told otherwise per question id."""

    def __init__(self):
        self.score = 7.0
        self.scores: dict[str, float] = {}
        self.concerns: dict[str, list[str]] = {}
        self.fail_on: set[str] = set()
        self.delay = 0.0
        self.calls: list[tuple[str, str]] = []
        self.active = 0
        self.max_active = 0

    async def evaluate_answer(self, question: ReviewQuestion, transcript: str) -> ReviewEvaluation:
        self.calls.append((question.id, transcript))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            if question.id in self.fail_on:
                raise ReasoningError("evaluator unavailable")
            return ReviewEvaluation(
                question_id=question.id,
                score=self.scores.get(question.id, self.score),
                feedback="ok",
                demonstrates_understanding=True,
                flagged_concerns=self.concerns.get(question.id, []),
            )
        finally:
            self.active -= 1


class FakeAssessor:
    """Stands in for the model-written part of the report."""

    def __init__(self):
        self.assessment = ReportAssessment(
            technical_understanding=8,
            project_ownership=7,
            communication_clarity=6,
            knowledge_gaps=["Monitoring of model drift"],
            overall_assessment="Clear ownership of the pipeline design.",
            next_steps=["Discuss drift monitoring in the next round"],
        )
        self.error: Exception | None = None
        self.calls = 0

    async def assess_report(
        self, session: ReviewSession, level_scores: LevelScores, ai_detection: AIDetectionReport
    ) -> ReportAssessment:
        self.calls += 1
        if self.error:
            raise self.error
        return self.assessment

@pytest.fixture
def slides() -> list[ParsedSlide]:
    return [
        ParsedSlide(
            slide_number=1,
            title="Fraud Detection Pipeline",
            content="Streaming pipeline that scores card transactions in real time",
            bullets=["Kafka ingestion", "Feature store"],
        ),
        ParsedSlide(
            slide_number=2,
            title="Model",
            content="Gradient boosted trees retrained nightly",
            bullets=["AUC 0.94 on holdout"],
        ),
        ParsedSlide(slide_number=3, title="Results", content="Cut chargebacks by 30%"),
    ]


@pytest.fixture
def presentation(slides) -> ParsedPresentation:
    return ParsedPresentation(
        metadata=PresentationMetadata(filename="fraud.pdf", slide_count=len(slides), file_size=2048),
        slides=slides,
    )


@pytest.fixture
def upload() -> PresentationUpload:
    return PresentationUpload(filename="fraud.pdf", content=b"%PDF-FAKE%")


@pytest.fixture
def detection_report() -> AIDetectionReport:
    return AIDetectionReport(
        overall_result=AIContentResult.LIKELY_HUMAN,
        overall_confidence=10,
        total_sections=2,
        ai_likely_sections=0,
        summary="Reads as the candidate's own writing",
    )


@pytest.fixture
def candidate() -> ReviewCandidate:
    return ReviewCandidate(id="cand-1", name="Priya", project_title="Fraud Detection")


@pytest.fixture
def session(candidate) -> ReviewSession:
    return ReviewSession(candidate=candidate)


@pytest.fixture
def parser(presentation) -> FakeParser:
    return FakeParser(presentation)


@pytest.fixture
def detector(detection_report) -> FakeDetector:
    return FakeDetector(detection_report)


@pytest.fixture
def generator() -> FakeGenerator:
    return FakeGenerator(make_pool())


@pytest.fixture
def evaluator() -> FakeEvaluator:
    return FakeEvaluator()


@pytest.fixture
def assessor() -> FakeAssessor:
    return FakeAssessor()


@pytest.fixture
def collaborators(parser, detector, generator, evaluator) -> ReviewCollaborators:
    return ReviewCollaborators(
        parser=parser,
        detector=detector,
        generator=generator,
        evaluator=evaluator,
        call_timeout_seconds=1.0,
        max_total_questions=10,
        rng=random.Random(0),
    )


@pytest.fixture
def orchestrator(collaborators) -> ReviewOrchestrator:
    return ReviewOrchestrator(collaborators=collaborators)


@pytest.fixture
def parse_error() -> ParseError:
    return ParseError("corrupt file")


@pytest.fixture
def pool_factory():
    return make_pool


@pytest.fixture
def question_factory():
    return make_question
