"""
Quiz module: text-to-quiz parsing and grading.

This module provides:
- QuizParser / parse_quiz_text: Pasted text -> QuizData (questions + warnings)
- grade: Questions with user answers -> QuizResult
- QuizSession: Answering, flagging and submitting a parsed quiz

Question Types:
- mcq: Multiple choice (options A-D)
- truefalse: True/False
- fillin: Fill in the blank
- match: Match items, one answer per item
"""

from .grader import grade, is_correct
from .models import (
    AnswerVerdict,
    FillInQuestion,
    MatchQuestion,
    MCQOption,
    MCQQuestion,
    ParseWarning,
    ParseWarningCode,
    Question,
    QuestionType,
    QuizData,
    QuizResult,
    TrueFalseQuestion,
    question_class_for,
)
from .parser import QuizParser, parse_quiz_text
from .session import (
    IncompleteQuizError,
    NoQuestionsError,
    QuizError,
    QuizMode,
    QuizSession,
    QuizSettings,
    UnknownQuestionError,
    load_session,
)

__all__ = [
    # Parsing
    "QuizParser",
    "parse_quiz_text",
    # Grading
    "grade",
    "is_correct",
    # Models
    "AnswerVerdict",
    "FillInQuestion",
    "MatchQuestion",
    "MCQOption",
    "MCQQuestion",
    "ParseWarning",
    "ParseWarningCode",
    "Question",
    "QuestionType",
    "QuizData",
    "QuizResult",
    "TrueFalseQuestion",
    "question_class_for",
    # Sessions
    "IncompleteQuizError",
    "NoQuestionsError",
    "QuizError",
    "QuizMode",
    "QuizSession",
    "QuizSettings",
    "UnknownQuestionError",
    "load_session",
]
