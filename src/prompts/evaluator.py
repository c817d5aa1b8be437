"""
AI Evaluator Prompt Templates

Contains the structured prompt for scoring a candidate's answer about
their own project.
"""

from src.models.question import ReviewQuestion


class EvaluatorPrompts:
    """
    Prompt templates for AI evaluation of answers.

    Key principles:
    - Objective, rubric-based scoring
    - Flag signs that the candidate does not own the work
    """

    SYSTEM_CONTEXT = """You are evaluating a candidate's answer about their project.
"""

    SCORING_RUBRIC = """
=== SCORING RUBRIC (0-10 scale) ===
- 9-10: Excellent, deep understanding, provides insights beyond the presentation
- 7-8: Good, demonstrates clear ownership and understanding
- 5-6: Adequate, knows the basics but lacks depth
- 3-4: Weak, struggles to explain concepts
- 1-2: Poor, cannot answer or appears unfamiliar with content

=== FLAG CONCERNS IF ===
- Answer contradicts presentation content
- Candidate seems unfamiliar with their own project
- Answers are suspiciously vague or generic
- Technical terms used incorrectly
"""

    def generate_evaluation_prompt(
        self,
        question: ReviewQuestion,
        transcript: str,
    ) -> str:
        """Generate prompt for evaluating one answer."""

        expected = "\n".join(f"- {p}" for p in question.expected_points) or "- (none provided)"

        prompt = f"""{self.SYSTEM_CONTEXT}
{self.SCORING_RUBRIC}

=== QUESTION ({question.level.value} level) ===
{question.text}

=== CONTEXT FROM PRESENTATION ===
{question.context or "(none)"}

=== EXPECTED POINTS TO COVER ===
{expected}

=== CANDIDATE'S ANSWER ===
"{transcript}"

=== YOUR TASK ===
Evaluate this answer.

IMPORTANT: Output ONLY valid JSON, no preamble text. Start directly with {{

{{
    "score": <0-10>,
    "feedback": "one or two sentences",
    "demonstrates_understanding": true/false,
    "flagged_concerns": ["concern 1"]
}}"""

        return prompt
