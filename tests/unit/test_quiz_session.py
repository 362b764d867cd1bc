"""
Unit tests for QuizSession.

Tests answering, flagging, practice-mode feedback and submission.
"""

import pytest
from pydantic import ValidationError

from src.quiz import (
    IncompleteQuizError,
    NoQuestionsError,
    ParseWarningCode,
    QuizMode,
    QuizSession,
    QuizSettings,
    UnknownQuestionError,
    load_session,
)


@pytest.fixture
def session(sample_quiz_text):
    return load_session(sample_quiz_text)


@pytest.fixture
def practice_session(sample_quiz_text):
    return load_session(sample_quiz_text, QuizSettings(mode=QuizMode.PRACTICE))


ALL_CORRECT = {
    "q1": "C",
    "q2": "true",
    "q3": "255.255.255.0",
    "q4": ["B", "A"],
}


class TestLoadSession:

    def test_loads_questions(self, session):
        assert len(session.questions) == 4
        assert session.settings.mode == QuizMode.TEST
        assert not session.is_graded

    def test_no_questions_raises_with_parse_result(self):
        with pytest.raises(NoQuestionsError) as exc_info:
            load_session("Question 1 of 1\nQ\nAnswer:")

        assert "check your quiz format" in str(exc_info.value)
        assert ParseWarningCode.MISSING_ANSWER in exc_info.value.quiz.warning_codes


class TestAnswering:

    def test_test_mode_defers_grading(self, session):
        assert session.answer("q1", "A") is None
        assert session.questions[0].user_answer == "A"
        assert session.questions[0].is_answered_correctly is None

    def test_practice_mode_instant_feedback(self, practice_session):
        assert practice_session.answer("q1", "c") is True
        assert practice_session.answer("q2", "False") is False
        assert practice_session.questions[1].is_answered_correctly is False

    def test_unknown_question(self, session):
        with pytest.raises(UnknownQuestionError):
            session.answer("q99", "A")

    def test_progress(self, session):
        assert session.progress == 0.0
        session.answer("q1", "A")
        session.answer("q4", ["B"])
        session.answer("q3", "   ")

        assert session.answered_count == 2
        assert session.progress == 0.5
        assert [q.id for q in session.unanswered] == ["q2", "q3"]

    def test_blank_match_answer_is_unanswered(self, session):
        session.answer("q4", ["", " "])
        assert "q4" in [q.id for q in session.unanswered]


class TestFlags:

    def test_toggle_flag(self, session):
        assert session.toggle_flag("q2") is True
        assert [q.id for q in session.flagged] == ["q2"]
        assert session.toggle_flag("q2") is False
        assert session.flagged == []

    def test_toggle_unknown_question(self, session):
        with pytest.raises(UnknownQuestionError):
            session.toggle_flag("nope")


class TestSubmit:

    def test_incomplete_quiz_rejected(self, session):
        session.answer("q1", "C")

        with pytest.raises(IncompleteQuizError) as exc_info:
            session.submit()

        assert exc_info.value.unanswered == 3
        assert not session.is_graded

    def test_submit_incomplete_when_allowed(self, session):
        session.answer("q1", "C")
        result = session.submit(allow_incomplete=True)

        assert result.correct_answers == 1
        assert result.score == 25
        assert session.questions[1].is_answered_correctly is False

    def test_submit_all_correct(self, session):
        for question_id, answer in ALL_CORRECT.items():
            session.answer(question_id, answer)

        result = session.submit()

        assert result.score == 100
        assert session.result is result
        assert all(q.is_answered_correctly for q in session.questions)

    def test_reset(self, session):
        for question_id, answer in ALL_CORRECT.items():
            session.answer(question_id, answer)
        session.toggle_flag("q1")
        session.submit()

        session.reset()

        assert session.result is None
        assert len(session.unanswered) == 4
        assert session.flagged == []
        assert all(q.is_answered_correctly is None for q in session.questions)


class TestTimer:

    @pytest.fixture
    def timed_session(self, sample_quiz_text):
        return load_session(sample_quiz_text, QuizSettings(timer_enabled=True, timer_minutes=2))

    def test_untimed_session_never_runs_out(self, session):
        session.start(now=0.0)

        assert session.time_limit_seconds is None
        assert session.time_remaining(now=10_000.0) is None
        assert session.is_time_up(now=10_000.0) is False

    def test_not_started(self, timed_session):
        assert timed_session.time_remaining() is None
        assert timed_session.is_time_up() is False

    def test_time_remaining_counts_down(self, timed_session):
        timed_session.start(now=100.0)

        assert timed_session.time_limit_seconds == 120
        assert timed_session.time_remaining(now=130.0) == 90.0
        assert timed_session.is_time_up(now=219.0) is False

    def test_time_up_at_limit(self, timed_session):
        timed_session.start(now=100.0)

        assert timed_session.time_remaining(now=500.0) == 0.0
        assert timed_session.is_time_up(now=220.0) is True

    def test_expired_quiz_submits_incomplete(self, timed_session):
        timed_session.start(now=0.0)
        timed_session.answer("q1", "C")

        assert timed_session.is_time_up(now=121.0)
        result = timed_session.submit(allow_incomplete=True)
        assert result.correct_answers == 1
        assert result.score == 25

    def test_reset_stops_timer(self, timed_session):
        timed_session.start(now=0.0)
        timed_session.reset()
        assert timed_session.started_at is None



class TestQuizSettings:

    def test_defaults(self):
        settings = QuizSettings()
        assert settings.mode == QuizMode.TEST
        assert settings.timer_enabled is False
        assert settings.timer_minutes == 10
        assert settings.sound_enabled is True

    @pytest.mark.parametrize("minutes", [0, 181])
    def test_timer_bounds(self, minutes):
        with pytest.raises(ValidationError):
            QuizSettings(timer_minutes=minutes)

    def test_session_defaults_settings(self, sample_quiz_text):
        from src.quiz import parse_quiz_text

        session = QuizSession(parse_quiz_text(sample_quiz_text))
        assert session.is_practice is False
