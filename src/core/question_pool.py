"""
Question Pool Manager for DeckReview

Selects the next unasked question at a level and decides when a level
is done. Selection follows the pool's insertion order.
"""

from src.models.question import QuestionLevel, QuestionPool, ReviewQuestion

# Minimum questions to ask at each level before progressing
MIN_QUESTIONS_PER_LEVEL = 2

# Level progression order
LEVEL_PROGRESSION: dict[QuestionLevel, QuestionLevel | None] = {
    QuestionLevel.EASY: QuestionLevel.MEDIUM,
    QuestionLevel.MEDIUM: QuestionLevel.HARD,
    QuestionLevel.HARD: None,
}


def next_question(
    pool: QuestionPool,
    level: QuestionLevel,
    asked: list[ReviewQuestion],
) -> ReviewQuestion | None:
    """First question at `level` whose id has not been asked, else None."""
    asked_ids = {q.id for q in asked}
    for question in pool.for_level(level):
        if question.id not in asked_ids:
            return question
    return None


def is_first_of_level(asked: list[ReviewQuestion], level: QuestionLevel) -> bool:
    """True if no question at `level` has been asked yet."""
    return not any(q.level == level for q in asked)


def asked_at_level(asked: list[ReviewQuestion], level: QuestionLevel) -> int:
    return sum(1 for q in asked if q.level == level)


def level_complete(
    level: QuestionLevel,
    asked: list[ReviewQuestion],
    available: int,
) -> bool:
    """
    Check if a level is complete.

    A level is complete once the minimum has been asked, or once every
    available question at that level has been asked (even below the
    minimum).
    """
    count = asked_at_level(asked, level)
    return count >= MIN_QUESTIONS_PER_LEVEL or count >= available


def next_level(level: QuestionLevel) -> QuestionLevel | None:
    """Next level in the progression, None after the last one."""
    return LEVEL_PROGRESSION[level]


def all_levels_complete(pool: QuestionPool, asked: list[ReviewQuestion]) -> bool:
    """Check if every level is complete."""
    return all(
        level_complete(level, asked, len(pool.for_level(level)))
        for level in QuestionLevel
    )
