"""
Unit tests for the quiz grader.

Tests per-type answer comparison and score aggregation.
"""

import pytest

from src.quiz import (
    FillInQuestion,
    MatchQuestion,
    MCQOption,
    MCQQuestion,
    QuestionType,
    TrueFalseQuestion,
    grade,
    is_correct,
    parse_quiz_text,
)
from src.quiz.grader import COMPARATORS, calculate_score


def make_mcq(qid="q1", correct="B", user=None):
    return MCQQuestion(
        id=qid,
        question="What is 2+2?",
        correct_answer=correct,
        user_answer=user,
        options=[MCQOption("A", "3"), MCQOption("B", "4")],
    )


class TestComparatorRegistry:
    """Every question type has a comparator."""

    def test_all_types_registered(self):
        assert set(COMPARATORS) == set(QuestionType)


class TestScalarAnswers:
    """mcq, truefalse and fillin compare as trimmed, lowercased strings."""

    @pytest.mark.parametrize("user,expected", [
        ("B", True),
        ("b", True),
        ("  B ", True),
        ("A", False),
        ("", False),
        (None, False),
        (["B"], False),
    ])
    def test_mcq(self, user, expected):
        assert is_correct(make_mcq(user=user)) is expected

    def test_true_false_case_insensitive(self):
        question = TrueFalseQuestion(id="q1", question="Sky is blue", correct_answer="True")
        question.user_answer = "TRUE"
        assert is_correct(question) is True

    def test_fill_in_trims_both_sides(self):
        question = FillInQuestion(
            id="q1", question="Capital of France is ___", correct_answer=" Paris ", user_answer="paris"
        )
        assert is_correct(question) is True


class TestMatchAnswers:
    """match compares position by position."""

    @pytest.fixture
    def question(self):
        return MatchQuestion(id="q1", question="Match them", correct_answer=["B", "A"])

    @pytest.mark.parametrize("user,expected", [
        (["B", "A"], True),
        ([" b", "a "], True),
        (("B", "A"), True),
        (["A", "B"], False),
        (["B"], False),
        (["B", "A", "C"], False),
        ([], False),
        ("B, A", False),
        (None, False),
        (["B", None], False),
    ])
    def test_match(self, question, user, expected):
        question.user_answer = user
        assert is_correct(question) is expected


class TestGrade:
    """Aggregate results."""

    def test_empty_quiz(self):
        result = grade([])
        assert result.total_questions == 0
        assert result.correct_answers == 0
        assert result.score == 0
        assert result.answers == ()

    def test_verdicts_in_input_order(self):
        questions = [make_mcq("q2", user="B"), make_mcq("q1", user="A"), make_mcq("q3")]
        result = grade(questions)

        assert [v.question_id for v in result.answers] == ["q2", "q1", "q3"]
        assert [v.is_correct for v in result.answers] == [True, False, False]
        assert result.correct_answers == 1
        assert result.score == 33

    def test_grading_does_not_mutate_questions(self):
        question = make_mcq(user="B")
        before = question.to_dict()

        grade([question])

        assert question.to_dict() == before
        assert question.is_answered_correctly is None

    def test_each_run_returns_new_result(self):
        question = make_mcq(user="A")
        first = grade([question])
        question.user_answer = "B"
        second = grade([question])

        assert first.score == 0
        assert second.score == 100

    def test_verdict_lookup(self):
        result = grade([make_mcq("q1", user="B"), make_mcq("q2", user="A")])
        assert result.verdict_for("q1") is True
        assert result.verdict_for("q2") is False
        assert result.verdict_for("q9") is None

    def test_match_round_trip_from_parsed_text(self):
        quiz = parse_quiz_text(
            "Question 1 of 1 (Type: Match)\nMatch them\n1. Python\n2. SQL\nAnswer: 1:B 2:A"
        )
        question = quiz.questions[0]

        question.user_answer = ["B", "A"]
        assert grade(quiz.questions).answers[0].is_correct is True

        question.user_answer = ["A", "B"]
        assert grade(quiz.questions).answers[0].is_correct is False

    def test_correct_answer_always_grades_correct(self, sample_quiz_text):
        quiz = parse_quiz_text(sample_quiz_text)
        for question in quiz.questions:
            question.user_answer = question.correct_answer

        result = grade(quiz.questions)
        assert result.correct_answers == result.total_questions
        assert result.score == 100


class TestScore:
    """Percentages are rounded half up."""

    @pytest.mark.parametrize("correct,total,expected", [
        (0, 0, 0),
        (0, 3, 0),
        (1, 3, 33),
        (2, 3, 67),
        (1, 8, 13),  # 12.5
        (5, 8, 63),  # 62.5
        (1, 200, 1),  # 0.5
        (3, 3, 100),
    ])
    def test_calculate_score(self, correct, total, expected):
        assert calculate_score(correct, total) == expected

    def test_score_within_bounds(self):
        for total in range(1, 25):
            for correct in range(total + 1):
                assert 0 <= calculate_score(correct, total) <= 100
