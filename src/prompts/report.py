"""
AI Report Assessment Prompts

Contains the prompt for the reviewer's closing assessment, which adds
dimension scores and a narrative on top of the aggregated figures.
"""

from src.models.presentation import AIDetectionReport
from src.models.question import QuestionLevel
from src.models.report import LevelScores
from src.models.review import ReviewSession


class ReportPrompts:
    """
    Prompt templates for the final review assessment.

    The verdict itself is rule-based; the model only writes the
    qualitative parts of the report.
    """

    SYSTEM_CONTEXT = """You are generating a final assessment report for a project review session.

Consider:
1. AI content detection results - were significant portions AI-generated?
2. Question performance across difficulty levels
3. Any flagged concerns during questioning
4. Overall demonstration of project ownership

Be fair but thorough.
"""

    def generate_assessment_prompt(
        self,
        session: ReviewSession,
        level_scores: LevelScores,
        ai_detection: AIDetectionReport,
    ) -> str:
        """Generate prompt for the closing assessment."""

        level_of = {q.id: q.level for q in session.questions_asked}
        evaluation_lines = []
        for evaluation in session.evaluations:
            level = level_of.get(evaluation.question_id)
            label = level.value.upper() if level else "UNKNOWN"
            line = f"{label} - Score: {evaluation.score:.1f}/10 - {evaluation.feedback or 'no feedback'}"
            if evaluation.flagged_concerns:
                line += f" (concerns: {'; '.join(evaluation.flagged_concerns)})"
            evaluation_lines.append(line)

        performance = "\n".join(
            f"{level.value.capitalize()}: {level_scores.for_level(level).asked} questions, "
            f"avg {level_scores.for_level(level).average_score:.1f}/10"
            for level in QuestionLevel
        )

        prompt = f"""{self.SYSTEM_CONTEXT}
=== CANDIDATE ===
{session.candidate.name}

=== PROJECT ===
{session.candidate.project_title}

=== AI DETECTION SUMMARY ===
{ai_detection.summary or "(none)"}
Overall: {ai_detection.overall_result.value} ({ai_detection.overall_confidence:.0f}% confidence)
AI-likely sections: {ai_detection.ai_likely_sections}/{ai_detection.total_sections}

=== QUESTION PERFORMANCE ===
{performance}

=== DETAILED EVALUATIONS ===
{chr(10).join(evaluation_lines) or "(no answers were evaluated)"}

=== YOUR TASK ===
Generate the final assessment.

IMPORTANT: Output ONLY valid JSON, no preamble text. Start directly with {{

{{
    "technical_understanding": <1-10>,
    "project_ownership": <1-10>,
    "communication_clarity": <1-10>,
    "knowledge_gaps": ["gap 1"],
    "overall_assessment": "two or three sentences",
    "next_steps": ["step 1"]
}}"""

        return prompt
