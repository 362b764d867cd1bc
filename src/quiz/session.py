"""
Quiz Session.

Application-level flow around a parsed quiz: recording answers, flagging
questions, practice-mode instant feedback and final submission.

Modes:
- practice: Each answer is checked as soon as it is recorded
- test: Answers are graded together on submit

When the timer is enabled the session reports the time left from start();
callers submit with allow_incomplete once it runs out.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Any

from loguru import logger
from pydantic import BaseModel, Field

from .grader import grade, is_correct
from .models import Question, QuizData, QuizResult
from .parser import parse_quiz_text


class QuizMode(str, Enum):
    """How answers are checked."""

    PRACTICE = "practice"  # Instant feedback
    TEST = "test"  # Grade at end


class QuizSettings(BaseModel):
    """User preferences for taking a quiz."""

    mode: QuizMode = QuizMode.TEST
    timer_enabled: bool = False
    timer_minutes: int = Field(default=10, ge=1, le=180)
    sound_enabled: bool = True


# =============================================================================
# Errors
# =============================================================================


class QuizError(Exception):
    """Base class for quiz session errors."""
    pass


class NoQuestionsError(QuizError):
    """Raised when quiz text yields no usable questions."""

    def __init__(self, quiz: QuizData):
        self.quiz = quiz
        super().__init__("No questions found. Please check your quiz format and try again.")


class IncompleteQuizError(QuizError):
    """Raised when submitting with unanswered questions."""

    def __init__(self, unanswered: int):
        self.unanswered = unanswered
        super().__init__(f"Please answer all questions ({unanswered} remaining)")


class UnknownQuestionError(QuizError):
    """Raised for a question id that is not part of the quiz."""

    def __init__(self, question_id: str):
        self.question_id = question_id
        super().__init__(f"Unknown question: {question_id}")


# =============================================================================
# Session
# =============================================================================


class QuizSession:
    """A single attempt at a parsed quiz."""

    def __init__(self, quiz: QuizData, settings: QuizSettings | None = None):
        self.quiz = quiz
        self.settings = settings or QuizSettings()
        self.result: QuizResult | None = None
        self.started_at: float | None = None

    @property
    def questions(self) -> list[Question]:
        return self.quiz.questions

    @property
    def is_practice(self) -> bool:
        return self.settings.mode == QuizMode.PRACTICE

    @property
    def is_graded(self) -> bool:
        return self.result is not None

    @property
    def unanswered(self) -> list[Question]:
        return [q for q in self.questions if not q.is_answered]

    @property
    def flagged(self) -> list[Question]:
        return [q for q in self.questions if q.is_flagged]

    @property
    def answered_count(self) -> int:
        return len(self.questions) - len(self.unanswered)

    @property
    def progress(self) -> float:
        """Fraction of questions answered (0.0-1.0)."""
        if not self.questions:
            return 0.0
        return self.answered_count / len(self.questions)

    def _get(self, question_id: str) -> Question:
        question = self.quiz.get_question(question_id)
        if question is None:
            raise UnknownQuestionError(question_id)
        return question

    # =========================================================================
    # Timer
    # =========================================================================

    @property
    def time_limit_seconds(self) -> int | None:
        if not self.settings.timer_enabled:
            return None
        return self.settings.timer_minutes * 60

    def start(self, now: float | None = None) -> None:
        """Start the clock. Times are time.monotonic() seconds."""
        self.started_at = time.monotonic() if now is None else now

    def time_remaining(self, now: float | None = None) -> float | None:
        """Seconds left, or None when untimed or not started."""
        limit = self.time_limit_seconds
        if limit is None or self.started_at is None:
            return None
        now = time.monotonic() if now is None else now
        return max(0.0, limit - (now - self.started_at))

    def is_time_up(self, now: float | None = None) -> bool:
        remaining = self.time_remaining(now)
        return remaining is not None and remaining <= 0

    def answer(self, question_id: str, answer: Any) -> bool | None:

        """
        Record a user answer.

        Returns:
            The verdict in practice mode, None in test mode
        """
        question = self._get(question_id)
        question.user_answer = answer

        if not self.is_practice:
            return None

        question.is_answered_correctly = is_correct(question)
        logger.debug(f"{question_id} answered ({'correct' if question.is_answered_correctly else 'incorrect'})")
        return question.is_answered_correctly

    def toggle_flag(self, question_id: str) -> bool:
        """Flip the review flag on a question and return its new state."""
        question = self._get(question_id)
        question.is_flagged = not question.is_flagged
        return question.is_flagged

    def submit(self, allow_incomplete: bool = False) -> QuizResult:
        """
        Grade the quiz and store each verdict on its question.

        Raises:
            IncompleteQuizError: If questions remain unanswered and
                allow_incomplete is False
        """
        remaining = len(self.unanswered)
        if remaining and not allow_incomplete:
            raise IncompleteQuizError(remaining)

        result = grade(self.questions)
        for question in self.questions:
            question.is_answered_correctly = result.verdict_for(question.id)

        self.result = result
        logger.info(f"Quiz submitted: {result.correct_answers}/{result.total_questions} ({result.score}%)")
        return result

    def reset(self) -> None:
        """Clear answers, flags, verdicts and the timer."""
        for question in self.questions:
            question.user_answer = None
            question.is_flagged = False
            question.is_answered_correctly = None
        self.result = None
        self.started_at = None


def load_session(text: str, settings: QuizSettings | None = None) -> QuizSession:
    """
    Parse text into a new session.

    Raises:
        NoQuestionsError: If nothing usable was parsed
    """
    quiz = parse_quiz_text(text)
    if not quiz.questions:
        raise NoQuestionsError(quiz)
    return QuizSession(quiz, settings)
