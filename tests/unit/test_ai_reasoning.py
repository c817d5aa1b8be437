"""Tests for the LLM-backed detector, generator, evaluator and report assessor."""

import asyncio
import json

import httpx
import pytest

from src.config.settings import Settings
from src.core.ai_reasoning import AIReasoningLayer, ReasoningError
from src.core.report_generator import default_ai_detection
from src.models.evaluation import ReviewEvaluation
from src.models.presentation import AIContentResult, ParsedSlide
from src.models.question import QuestionLevel
from src.models.report import LevelScores


def completion(content) -> dict:
    return {"choices": [{"message": {"role": "assistant", "content": content}}]}


class FakeGateway:
    """Routes chat-completion requests to canned replies by prompt content."""

    def __init__(self):
        self.requests: list[tuple[str, str]] = []
        self.replies: list[tuple[str, object]] = []
        self.status_code = 200

    def reply(self, marker: str, content) -> None:
        self.replies.append((marker, content))

    def handler(self, request: httpx.Request) -> httpx.Response:
        prompt = json.loads(request.content)["messages"][0]["content"]
        self.requests.append((request.url.path, prompt))
        if self.status_code != 200:
            return httpx.Response(self.status_code, json={"error": "unavailable"})
        for marker, content in self.replies:
            if marker in prompt:
                if not isinstance(content, (str, list)):
                    content = json.dumps(content)
                return httpx.Response(200, json=completion(content))
        return httpx.Response(200, json=completion("no idea"))


class SlowGateway(FakeGateway):
    """Answers after a delay, tracking how many requests overlap."""

    def __init__(self, delay: float, slow_marker: str = ""):
        super().__init__()
        self.delay = delay
        self.slow_marker = slow_marker
        self.active = 0
        self.max_active = 0
        self.finished: list[str] = []

    async def async_handler(self, request: httpx.Request) -> httpx.Response:
        prompt = json.loads(request.content)["messages"][0]["content"]
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if self.slow_marker in prompt:
                await asyncio.sleep(self.delay)
            response = self.handler(request)
            self.finished.append(prompt)
            return response
        finally:
            self.active -= 1


@pytest.fixture
def settings() -> Settings:
    return Settings(
        llm_host="http://llm.test",
        llm_token="token",
        langfuse_enabled=False,
        easy_question_count=2,
        medium_question_count=1,
        hard_question_count=1,
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def layer(settings, gateway) -> AIReasoningLayer:
    return make_layer(settings, gateway.handler)


def make_layer(settings: Settings, handler) -> AIReasoningLayer:
    client = httpx.AsyncClient(
        base_url=settings.llm_host,
        transport=httpx.MockTransport(handler),
    )
    return AIReasoningLayer(settings=settings, client=client)


def _questions(*texts: str) -> dict:
    return {
        "questions": [
            {"question": t, "context": "slide", "expected_points": ["p"], "slide_reference": 1}
            for t in texts
        ]
    }


@pytest.mark.asyncio
async def test_generate_questions_builds_pool(layer, gateway, settings, slides):
    gateway.reply("Generate 2 EASY", _questions("What does it do?", "Who uses it?"))
    gateway.reply("Generate 1 MEDIUM", _questions("How is it retrained?"))
    gateway.reply("Generate 1 HARD", _questions("What if Kafka lags?"))

    pool = await layer.generate_questions(slides, "Fraud Detection")

    assert [q.id for q in pool.easy] == ["easy-1", "easy-2"]
    assert [q.id for q in pool.medium] == ["medium-1"]
    assert pool.hard[0].level == QuestionLevel.HARD
    assert pool.hard[0].text == "What if Kafka lags?"
    assert pool.total() == 4
    assert {path for path, _ in gateway.requests} == {settings.reasoning_endpoint}
    assert all("Fraud Detection" in prompt for _, prompt in gateway.requests)


@pytest.mark.asyncio
async def test_generate_questions_fails_when_a_level_fails(layer, gateway, slides):
    gateway.reply("Generate 2 EASY", _questions("What does it do?"))
    gateway.reply("Generate 1 MEDIUM", "not json at all")
    gateway.reply("Generate 1 HARD", _questions("What if?"))

    with pytest.raises(ReasoningError):
        await layer.generate_questions(slides, "Fraud Detection")


@pytest.mark.asyncio
async def test_detection_screens_substantial_slides_only(layer, gateway, settings, slides):
    gateway.reply("Summarize the AI detection", {
        "overall_result": "possibly_ai",
        "overall_confidence": 55,
        "summary": "Some slides read as generated.",
    })
    gateway.reply("Fraud Detection Pipeline", {
        "result": "likely_ai", "confidence": 85, "indicators": ["generic"], "explanation": "x",
    })
    gateway.reply("Gradient boosted", {
        "result": "likely_human", "confidence": 70, "indicators": [], "explanation": "y",
    })

    report = await layer.detect_ai_content(slides)

    # Slide 3 is under the minimum length and is not screened
    assert [s.slide_number for s in report.sections] == [1, 2]
    assert report.total_sections == 2
    assert report.ai_likely_sections == 1
    assert report.overall_result == AIContentResult.POSSIBLY_AI
    assert report.overall_confidence == 55
    assert len(gateway.requests) == 3
    assert {path for path, _ in gateway.requests} == {settings.fast_endpoint}


@pytest.mark.asyncio
async def test_detection_truncates_stored_excerpt(layer, gateway):
    long_slide = ParsedSlide(slide_number=1, title="Long", content="word " * 100)
    gateway.reply("Summarize the AI detection", {
        "overall_result": "uncertain", "overall_confidence": 20, "summary": "",
    })
    gateway.reply("word word", {"result": "uncertain", "confidence": 20})

    report = await layer.detect_ai_content([long_slide])

    assert len(report.sections[0].content) == 203
    assert report.sections[0].content.endswith("...")


@pytest.mark.asyncio
async def test_detection_without_substantial_slides_makes_no_calls(layer, gateway):
    report = await layer.detect_ai_content([ParsedSlide(slide_number=1, title="Thanks!")])

    assert gateway.requests == []
    assert report.overall_result == AIContentResult.UNCERTAIN
    assert report.total_sections == 0


@pytest.mark.asyncio
async def test_evaluate_answer_parses_embedded_json(layer, gateway, question_factory):
    question = question_factory(QuestionLevel.MEDIUM, 2)
    gateway.reply("CANDIDATE'S ANSWER", (
        'Here is my evaluation: {"score": 6.5, "feedback": "decent", '
        '"demonstrates_understanding": true, "flagged_concerns": ["generic"]} Hope it helps.'
    ))

    evaluation = await layer.evaluate_answer(question, "We retrain nightly")

    assert evaluation.question_id == "medium-2"
    assert evaluation.score == 6.5
    assert evaluation.demonstrates_understanding is True
    assert evaluation.flagged_concerns == ["generic"]
    assert "We retrain nightly" in gateway.requests[0][1]


@pytest.mark.asyncio
async def test_evaluate_answer_accepts_multipart_content(layer, gateway, question_factory):
    gateway.reply("CANDIDATE'S ANSWER", [
        {"type": "text", "text": '{"score": 8, '},
        {"type": "text", "text": '"feedback": "good"}'},
    ])

    evaluation = await layer.evaluate_answer(question_factory(QuestionLevel.EASY, 1), "answer")

    assert evaluation.score == 8


@pytest.mark.asyncio
async def test_evaluate_answer_rejects_out_of_range_score(layer, gateway, question_factory):
    gateway.reply("CANDIDATE'S ANSWER", {"score": 42})

    with pytest.raises(ReasoningError):
        await layer.evaluate_answer(question_factory(QuestionLevel.EASY, 1), "answer")


@pytest.mark.asyncio
async def test_http_errors_become_reasoning_errors(layer, gateway, question_factory):
    gateway.status_code = 503

    with pytest.raises(ReasoningError):
        await layer.evaluate_answer(question_factory(QuestionLevel.EASY, 1), "answer")


@pytest.mark.asyncio
async def test_traces_are_noops_without_langfuse(layer):
    layer.start_review_trace("s-1", {"candidate_id": "c"})
    layer.end_review_trace("s-1", {"final_phase": "completed"})
    await layer.close()


@pytest.mark.asyncio
async def test_detection_screens_slides_concurrently(settings):
    settings = settings.model_copy(update={"detection_concurrency": 10})
    gateway = SlowGateway(delay=0.1)
    gateway.reply("Summarize the AI detection", {
        "overall_result": "likely_human", "overall_confidence": 70, "summary": "",
    })
    gateway.reply("=== TEXT ===", {"result": "likely_human", "confidence": 70})
    layer = make_layer(settings, gateway.async_handler)
    deck = [
        ParsedSlide(slide_number=n, title=f"Slide {n}", content="Detailed explanation " * 5)
        for n in range(1, 21)
    ]

    # One at a time this would need more than two seconds
    report = await asyncio.wait_for(layer.detect_ai_content(deck), timeout=1.0)

    assert report.total_sections == 20
    assert [s.slide_number for s in report.sections] == list(range(1, 21))
    assert 1 < gateway.max_active <= 10


@pytest.mark.asyncio
async def test_failed_level_cancels_other_generations(settings, slides):
    gateway = SlowGateway(delay=0.2, slow_marker="EASY")
    gateway.reply("Generate 1 MEDIUM", "not json at all")
    gateway.reply("Generate 1 HARD", _questions("What if?"))
    layer = make_layer(settings, gateway.async_handler)

    with pytest.raises(ReasoningError):
        await layer.generate_questions(slides, "Fraud Detection")
    await asyncio.sleep(0.3)

    assert not any("EASY" in prompt for prompt in gateway.finished)


@pytest.mark.asyncio
async def test_assess_report_returns_dimension_scores(layer, gateway, settings, session, question_factory):
    question = question_factory(QuestionLevel.MEDIUM, 1)
    session = session.model_copy(update={
        "questions_asked": [question],
        "evaluations": [
            ReviewEvaluation(question_id="medium-1", score=4, feedback="thin", flagged_concerns=["generic"]),
        ],
    })
    gateway.reply("final assessment report", {
        "technical_understanding": 5,
        "project_ownership": 4,
        "communication_clarity": 7,
        "knowledge_gaps": ["Retraining cadence"],
        "overall_assessment": "Knows the outline, not the details.",
        "next_steps": ["Ask for the training notebook"],
    })

    assessment = await layer.assess_report(session, LevelScores(), default_ai_detection())

    assert assessment.dimension_scores()["Project Ownership"] == 4
    assert assessment.overall_assessment == "Knows the outline, not the details."
    path, prompt = gateway.requests[0]
    assert path == settings.reasoning_endpoint
    assert "MEDIUM - Score: 4.0/10 - thin (concerns: generic)" in prompt
    assert "Fraud Detection" in prompt


@pytest.mark.asyncio
async def test_assess_report_rejects_out_of_range_scores(layer, gateway, session):
    gateway.reply("final assessment report", {
        "technical_understanding": 0,
        "project_ownership": 4,
        "communication_clarity": 7,
        "overall_assessment": "x",
    })

    with pytest.raises(ReasoningError):
        await layer.assess_report(session, LevelScores(), default_ai_detection())
