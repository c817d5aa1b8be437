"""
Report Generator for DeckReview

Generates the final project review report with:
- Average and level-wise scores
- AI-content concerns from slide screening
- Knowledge gaps from evaluator concerns
- Proceed / review / reject recommendation
- Next steps for the reviewer
"""

import logging
from datetime import datetime

from src.core import scoring
from src.models.presentation import AIContentResult, AIDetectionReport
from src.models.report import LevelScores, Recommendation, ReviewReport
from src.models.review import ReviewSession
from src.models.question import QuestionLevel

logger = logging.getLogger(__name__)


def default_ai_detection() -> AIDetectionReport:
    """Stand-in used when slide screening did not run or failed."""
    return AIDetectionReport(
        overall_result=AIContentResult.UNCERTAIN,
        overall_confidence=0,
        total_sections=0,
        ai_likely_sections=0,
        sections=[],
        summary="AI detection was not performed",
    )


class ReportGenerator:
    """
    Generates project review reports.

    Scores, concerns and the recommendation are always derived from the
    session itself. With an AI reasoning layer the narrative assessment,
    dimension scores and extra gaps and next steps come from the model;
    without one a short rule-based assessment is written instead.
    """

    def __init__(self, ai_reasoning=None):
        """
        Initialize report generator.

        Args:
            ai_reasoning: AI reasoning layer for the narrative assessment
        """
        self.ai_reasoning = ai_reasoning

    async def generate(self, session: ReviewSession) -> ReviewReport:
        """
        Generate the complete review report.

        Args:
            session: Session that has finished questioning

        Returns:
            Complete ReviewReport

        Raises:
            ValueError: If the presentation was never parsed
            ReasoningError: If the model assessment fails
        """
        if session.presentation_metadata is None:
            raise ValueError("Presentation metadata is missing")

        ai_detection = session.ai_detection or default_ai_detection()

        level_scores = scoring.scores_by_level(session.evaluations, session.questions_asked)
        avg_score = scoring.average_score(session.evaluations)
        concerns = scoring.concern_count(session.evaluations)

        recommendation = scoring.recommend(
            avg_score, concerns, ai_detection.overall_confidence
        )

        logger.info(
            f"Report for {session.session_id}: avg={avg_score:.1f}, "
            f"concerns={concerns}, ai_confidence={ai_detection.overall_confidence:.0f}% "
            f"-> {recommendation.value}"
        )

        knowledge_gaps = self._identify_knowledge_gaps(session)
        next_steps = self._generate_next_steps(recommendation, concerns, ai_detection)

        if self.ai_reasoning is not None:
            assessment = await self.ai_reasoning.assess_report(session, level_scores, ai_detection)
            overall_assessment = assessment.overall_assessment
            dimension_scores = assessment.dimension_scores()
            knowledge_gaps = list(dict.fromkeys(knowledge_gaps + assessment.knowledge_gaps))
            next_steps = list(dict.fromkeys(next_steps + assessment.next_steps))
        else:
            overall_assessment = self._assess(avg_score, level_scores, ai_detection)
            dimension_scores = {}

        return ReviewReport(
            session_id=session.session_id,
            candidate_name=session.candidate.name,
            project_title=session.candidate.project_title,
            generated_at=datetime.utcnow(),
            presentation_metadata=session.presentation_metadata,
            ai_detection=ai_detection,
            level_scores=level_scores,
            total_questions=len(session.evaluations),
            average_score=avg_score,
            concern_count=concerns,
            dimension_scores=dimension_scores,
            ai_content_concerns=self._identify_ai_concerns(ai_detection),
            knowledge_gaps=knowledge_gaps,
            recommendation=recommendation,
            overall_assessment=overall_assessment,
            next_steps=next_steps,
        )

    def _identify_ai_concerns(self, ai_detection: AIDetectionReport) -> list[str]:
        """List slides that read as AI-generated."""
        concerns = []

        for section in ai_detection.sections:
            if section.result in (AIContentResult.LIKELY_AI, AIContentResult.POSSIBLY_AI):
                concerns.append(
                    f"Slide {section.slide_number}: {section.result.value.replace('_', ' ')} "
                    f"({section.confidence:.0f}% confidence)"
                )

        return concerns

    def _identify_knowledge_gaps(self, session: ReviewSession) -> list[str]:
        """Collect evaluator concerns, deduplicated in the order raised."""
        gaps = []

        for evaluation in session.evaluations:
            gaps.extend(evaluation.flagged_concerns)

        # Questions answered without demonstrating understanding
        text_of = {q.id: q.text for q in session.questions_asked}
        for evaluation in session.evaluations:
            if evaluation.score < scoring.ADEQUATE_THRESHOLD and evaluation.question_id in text_of:
                gaps.append(f"Struggled with: {text_of[evaluation.question_id]}")

        return list(dict.fromkeys(gaps))

    def _assess(
        self,
        avg_score: float,
        level_scores: LevelScores,
        ai_detection: AIDetectionReport,
    ) -> str:
        """Write a short overall assessment."""
        if avg_score >= scoring.EXCELLENT_THRESHOLD:
            assessment = "The candidate showed strong ownership of the project and explained it in depth."
        elif avg_score >= scoring.GOOD_THRESHOLD:
            assessment = "The candidate demonstrated a solid understanding of the project."
        elif avg_score >= scoring.ADEQUATE_THRESHOLD:
            assessment = "The candidate knows the basics of the project but lacked depth in places."
        else:
            assessment = "The candidate struggled to explain key aspects of the project."

        answered = [
            level.value for level in QuestionLevel
            if level_scores.for_level(level).asked > 0
        ]
        if answered:
            hardest = answered[-1]
            assessment += (
                f" Questions reached {hardest} level, averaging "
                f"{level_scores.for_level(QuestionLevel(hardest)).average_score:.1f}/10 there."
            )

        if (
            ai_detection.overall_result in (AIContentResult.LIKELY_AI, AIContentResult.POSSIBLY_AI)
            and ai_detection.overall_confidence > 0
        ):
            assessment += (
                f" The presentation content appears {ai_detection.overall_result.value.replace('_', ' ')} "
                f"({ai_detection.overall_confidence:.0f}% confidence)."
            )

        return assessment

    def _generate_next_steps(
        self,
        recommendation: Recommendation,
        concerns: int,
        ai_detection: AIDetectionReport,
    ) -> list[str]:
        """Suggest what the reviewer should do next."""
        steps = []

        if ai_detection.overall_confidence > scoring.AI_CONFIDENCE_REVIEW_THRESHOLD:
            steps.append("Verify authorship of the presentation content with the candidate")
        if concerns >= scoring.CONCERN_REVIEW_THRESHOLD:
            steps.append("Review the flagged concerns from the question session")

        if recommendation == Recommendation.PROCEED:
            steps.append("Proceed to the next stage of evaluation")
        elif recommendation == Recommendation.REVIEW:
            steps.append("Schedule a follow-up discussion with a human reviewer")
        else:
            steps.append("Share feedback on the knowledge gaps identified")

        return steps


def format_report_summary(report: ReviewReport, candidate_name: str) -> str:
    """Render the report as the closing summary spoken to the candidate."""
    message = (
        f"Thank you for completing the project review, {candidate_name}!\n\n"
        f"Here's a quick summary:\n"
        f"- Questions answered: {report.level_scores.total_asked()}\n"
        f"- Overall score: {report.average_score:.1f}/10\n"
        f"- Recommendation: {report.recommendation.display_text}\n\n"
        f"{report.overall_assessment}"
    )

    if report.next_steps:
        steps = "\n".join(f"• {step}" for step in report.next_steps)
        message += f"\n\nNext steps:\n{steps}"

    return message
