"""
Scoring & Leveling Policy for DeckReview

Pure functions over already-computed evaluations:
- Spoken feedback selection
- Average and per-level score aggregation
- Concern counting
- Final recommendation rule
"""

import random

from src.models.evaluation import ReviewEvaluation
from src.models.question import QuestionLevel, ReviewQuestion
from src.models.report import LevelScore, LevelScores, Recommendation
from src.prompts.reviewer import FEEDBACK_MESSAGES

# Score thresholds (0-10 scale)
EXCELLENT_THRESHOLD = 8
GOOD_THRESHOLD = 6
ADEQUATE_THRESHOLD = 4

# Recommendation gates
AI_CONFIDENCE_REVIEW_THRESHOLD = 80  # percent, strictly greater than
CONCERN_REVIEW_THRESHOLD = 3

_rng = random.Random()


def feedback_bucket(score: float) -> str:
    """Name of the feedback bucket for a score."""
    if score >= EXCELLENT_THRESHOLD:
        return "excellent"
    elif score >= GOOD_THRESHOLD:
        return "good"
    elif score >= ADEQUATE_THRESHOLD:
        return "adequate"
    return "weak"


def feedback_for(score: float, rng: random.Random | None = None) -> str:
    """
    Pick a spoken feedback line for a score.

    Args:
        score: Evaluation score (0-10)
        rng: Random source; pass a seeded instance for deterministic picks

    Returns:
        One message from the score's bucket
    """
    messages = FEEDBACK_MESSAGES[feedback_bucket(score)]
    return (rng or _rng).choice(messages)


def average_score(evaluations: list[ReviewEvaluation]) -> float:
    """Arithmetic mean of evaluation scores, 0 when there are none."""
    if not evaluations:
        return 0.0
    return sum(e.score for e in evaluations) / len(evaluations)


def scores_by_level(
    evaluations: list[ReviewEvaluation],
    questions_asked: list[ReviewQuestion],
) -> LevelScores:
    """
    Aggregate evaluations by the level of the question they answer.

    Evaluations whose question is not in `questions_asked` are ignored.
    """
    level_of = {q.id: q.level for q in questions_asked}
    scores: dict[QuestionLevel, list[float]] = {level: [] for level in QuestionLevel}

    for evaluation in evaluations:
        level = level_of.get(evaluation.question_id)
        if level is not None:
            scores[level].append(evaluation.score)

    return LevelScores(**{
        level.value: LevelScore(
            asked=len(values),
            average_score=sum(values) / len(values) if values else 0.0,
        )
        for level, values in scores.items()
    })


def concern_count(evaluations: list[ReviewEvaluation]) -> int:
    """Total number of flagged concerns across all evaluations."""
    return sum(len(e.flagged_concerns) for e in evaluations)


def recommend(
    avg_score: float,
    concerns: int,
    ai_confidence_percent: float,
) -> Recommendation:
    """
    Determine the final recommendation.

    Rules are checked in order and the first match wins, so a
    high-confidence AI-generated deck is always sent to review even when
    the answers scored well.
    """
    if ai_confidence_percent > AI_CONFIDENCE_REVIEW_THRESHOLD:
        return Recommendation.REVIEW
    if concerns >= CONCERN_REVIEW_THRESHOLD:
        return Recommendation.REVIEW
    if avg_score >= GOOD_THRESHOLD:
        return Recommendation.PROCEED
    elif avg_score >= ADEQUATE_THRESHOLD:
        return Recommendation.REVIEW
    return Recommendation.REJECT


def format_level_scores(level_scores: LevelScores) -> str:
    """Format level scores as readable lines."""
    lines = []
    for level in QuestionLevel:
        entry = level_scores.for_level(level)
        lines.append(
            f"{level.value.capitalize()}: {entry.average_score:.1f}/10 "
            f"({entry.asked} questions)"
        )
    return "\n".join(lines)
