"""
Project Reviewer Prompt Templates

Contains:
- Conversational lines spoken to the candidate
- AI-content detection prompts
- Level-wise question generation prompts

Spoken lines are plain sentences; they are passed to speech synthesis
as-is.
"""

from src.models.presentation import ParsedSlide
from src.models.question import QuestionLevel


# === SPOKEN LINES ===

LEVEL_TRANSITION_MESSAGES: dict[QuestionLevel, str] = {
    QuestionLevel.EASY: "Let's start with some basic questions about your project.",
    QuestionLevel.MEDIUM: "Great! Now let's dive a bit deeper into the technical details.",
    QuestionLevel.HARD: "Excellent! Now for some more challenging questions to test your expertise.",
}

FEEDBACK_MESSAGES: dict[str, list[str]] = {
    "excellent": [
        "Excellent explanation!",
        "Very thorough answer!",
        "Great, you clearly understand this well.",
    ],
    "good": [
        "Good, thank you.",
        "Nice explanation.",
        "That covers the key points well.",
    ],
    "adequate": [
        "I see, thank you for explaining.",
        "Okay, I understand.",
        "Thank you for your answer.",
    ],
    "weak": [
        "I understand. Let's continue.",
        "Okay, let's move on.",
        "Thank you, noted.",
    ],
}

GREETING = (
    "Hello {name}! Welcome to your project review session. "
    "I'll be reviewing your project presentation today. To get started, please upload your slides as a PowerPoint (.pptx) or PDF file. "
    "Once uploaded, I'll analyze the content and ask you questions to understand your project better."
)

PRESENTATION_RECEIVED = (
    'I\'ve received your presentation "{filename}" with {slide_count} slides. '
    "Let me analyze the content before we begin our discussion."
)

DETECTION_SKIPPED = "I couldn't finish screening your slides, but let's carry on with the questions."

QUESTIONS_READY = (
    "I've reviewed your presentation and prepared some questions. "
    "We'll start with some basic questions and then move to more detailed ones. "
    "Let's begin!"
)

CONTINUE_MESSAGE = "Thank you for your answer. Let's continue."

UPLOAD_ERROR = (
    "I'm having trouble reading your presentation. Could you please try uploading it again "
    "as a PowerPoint (.pptx) or PDF file?"
)

NO_ANSWER_HEARD = "Sorry, I didn't catch your answer. Could you please say that again?"

NO_PENDING_QUESTION = "Sorry, I lost track of the question. Let's continue."

SESSION_ERROR = (
    "I'm sorry, something went wrong on our side and we can't continue this "
    "review right now. Please contact your coordinator to reschedule."
)

CLOSING_MESSAGE = (
    "Thank you for participating in this project review session. "
    "Your detailed report will be available shortly. "
    "If you have any questions about the process, please reach out to your coordinator. "
    "Have a great day!"
)


class ReviewerPrompts:
    """
    Prompt templates for the presentation reviewer.

    Key principles:
    - Questions must test ownership, not recall of slides
    - Difficulty rises from facts to trade-offs and "what if" scenarios
    - All model output is requested as JSON
    """

    QUESTION_SYSTEM_CONTEXT = """You are an expert reviewer generating questions about a project presentation.

Your goal is to generate questions that will verify the candidate truly understands and owns this project.
Questions should test real knowledge, not just recall of slides.
"""

    LEVEL_INSTRUCTIONS: dict[QuestionLevel, str] = {
        QuestionLevel.EASY: """Generate EASY questions that:
- Ask about basic facts presented in the slides
- Require simple recall of information
- Can be answered in 1-2 sentences
- Test surface-level understanding""",
        QuestionLevel.MEDIUM: """Generate MEDIUM questions that:
- Ask about relationships between concepts
- Require explanation of methods or approaches
- Need 2-3 sentences to answer well
- Test understanding of 'how' and 'why'""",
        QuestionLevel.HARD: """Generate HARD questions that:
- Challenge assumptions or decisions made
- Ask about edge cases or limitations
- Require deep technical knowledge
- Test critical thinking and expertise
- Ask "what if" scenarios""",
    }

    DETECTION_SYSTEM_CONTEXT = """You are an expert at detecting AI-generated content.
Analyze the following text for signs of AI generation.

Look for:
- Unusually perfect grammar and structure
- Generic phrasing without specific details
- Lack of personal voice or unique insights
- Overuse of transitional phrases
- Perfect but surface-level explanations
- Missing real-world examples or anecdotes
- Repetitive sentence structures

Be objective and provide confidence levels.
"""

    def format_slides(self, slides: list[ParsedSlide]) -> str:
        """Render slides as numbered plain text."""
        return "\n\n".join(
            f"Slide {s.slide_number}: {s.text}" for s in slides
        )

    def generate_questions_prompt(
        self,
        slides: list[ParsedSlide],
        project_title: str,
        level: QuestionLevel,
        count: int,
    ) -> str:
        """Generate prompt for one level of questions."""

        prompt = f"""{self.QUESTION_SYSTEM_CONTEXT}
{self.LEVEL_INSTRUCTIONS[level]}

=== PROJECT ===
{project_title}

=== PRESENTATION CONTENT ===
{self.format_slides(slides)}

=== YOUR TASK ===
Generate {count} {level.value.upper()} level questions.

IMPORTANT: Output ONLY valid JSON, no preamble text. Start directly with {{

{{
    "questions": [
        {{
            "question": "the question to ask",
            "context": "the slide content it relates to",
            "expected_points": ["point 1", "point 2"],
            "slide_reference": <slide number>
        }}
    ]
}}"""

        return prompt

    def detect_section_prompt(self, content: str) -> str:
        """Generate prompt for screening one slide."""

        return f"""{self.DETECTION_SYSTEM_CONTEXT}
=== TEXT ===
{content}

Output ONLY valid JSON:
{{
    "result": "likely_ai|possibly_ai|likely_human|uncertain",
    "confidence": <0-100>,
    "indicators": ["indicator 1", "indicator 2"],
    "explanation": "short explanation"
}}"""

    def detect_overall_prompt(self, section_summaries: str) -> str:
        """Generate prompt summarizing per-slide detection results."""

        return f"""Summarize the AI detection analysis across all sections.

=== SECTION RESULTS ===
{section_summaries}

Provide an overall assessment. Output ONLY valid JSON:
{{
    "overall_result": "likely_ai|possibly_ai|likely_human|uncertain",
    "overall_confidence": <0-100>,
    "summary": "two or three sentences"
}}"""
