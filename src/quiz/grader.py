"""
Quiz Grader.

Compares each question's user answer against its correct answer and builds
an aggregate QuizResult. Comparison is case-insensitive and ignores
surrounding whitespace. Absent or wrongly shaped user answers grade as
incorrect; grading never raises and never mutates the questions.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any

from loguru import logger

from .models import AnswerVerdict, Question, QuestionType, QuizResult

Comparator = Callable[[Any, Any], bool]

# Comparator registry - populated by @register
COMPARATORS: dict[QuestionType, Comparator] = {}


def register(*question_types: QuestionType):
    """Decorator to register an answer comparator for question types."""
    def decorator(func: Comparator) -> Comparator:
        for question_type in question_types:
            COMPARATORS[question_type] = func
        return func
    return decorator


def normalize_answer(value: str) -> str:
    return value.strip().lower()


@register(QuestionType.MCQ, QuestionType.TRUE_FALSE, QuestionType.FILL_IN)
def compare_scalar(correct: Any, given: Any) -> bool:
    """Single string answers."""
    if not isinstance(correct, str) or not isinstance(given, str):
        return False
    return normalize_answer(correct) == normalize_answer(given)


@register(QuestionType.MATCH)
def compare_sequence(correct: Any, given: Any) -> bool:
    """Match answers: same length, equal position by position."""
    if not isinstance(correct, (list, tuple)) or not isinstance(given, (list, tuple)):
        # Scalar shapes on a match question still compare as strings
        return compare_scalar(correct, given)
    if len(correct) != len(given):
        return False
    return all(compare_scalar(c, g) for c, g in zip(correct, given))


def is_correct(question: Question) -> bool:
    """Grade a single question."""
    comparator = COMPARATORS.get(question.type, compare_scalar)
    return comparator(question.correct_answer, question.user_answer)


def calculate_score(correct: int, total: int) -> int:
    """Percentage rounded half up, 0 for an empty quiz."""
    if total <= 0:
        return 0
    return (200 * correct + total) // (2 * total)


def grade(questions: Sequence[Question]) -> QuizResult:
    """Grade questions in order and return a fresh QuizResult."""
    verdicts = tuple(
        AnswerVerdict(question_id=q.id, is_correct=is_correct(q)) for q in questions
    )
    correct = sum(1 for v in verdicts if v.is_correct)
    total = len(verdicts)
    score = calculate_score(correct, total)

    logger.debug(f"Graded {total} questions: {correct} correct ({score}%)")
    return QuizResult(
        total_questions=total,
        correct_answers=correct,
        score=score,
        answers=verdicts,
    )
