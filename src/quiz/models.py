"""
Quiz data model shared by the parser, grader and session layers.

Questions are a tagged variant: one dataclass per QuestionType, with the
tag held at class level so a question's type cannot change once created.
Scalar types carry a string answer, MatchQuestion carries a list of strings.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, ClassVar


class QuestionType(str, Enum):
    """Supported question types."""

    MCQ = "mcq"
    TRUE_FALSE = "truefalse"
    FILL_IN = "fillin"
    MATCH = "match"


class ParseWarningCode(str, Enum):
    """Closed set of diagnostics the parser can report."""

    MISSING_QUESTION_TEXT = "missing_question_text"
    DUPLICATE_QUESTION_NUMBER = "duplicate_question_number"
    MISSING_ANSWER = "missing_answer"
    MCQ_OPTION_SHORTFALL = "mcq_option_shortfall"
    UNUSED_ANSWER_KEY_ENTRIES = "unused_answer_key_entries"
    COUNT_MISMATCH = "count_mismatch"
    ORPHAN_ANSWER = "orphan_answer"
    ORPHAN_OPTION = "orphan_option"
    INVALID_ANSWER_KEY_PAIR = "invalid_answer_key_pair"
    BLANK_MARKERS_COERCED_TO_MCQ = "blank_markers_coerced_to_mcq"


@dataclass
class MCQOption:
    """A lettered choice (A-D) of a multiple-choice question."""

    label: str
    text: str


# =============================================================================
# Questions
# =============================================================================


@dataclass
class Question:
    """
    Base question record.

    The parser fills id, question and correct_answer. The remaining fields
    belong to the consuming application (answers, flags, feedback).
    """

    type: ClassVar[QuestionType]

    id: str
    question: str
    correct_answer: Any
    user_answer: Any = None
    is_flagged: bool = False
    is_answered_correctly: bool | None = None
    explanation: str | None = None

    @property
    def is_answered(self) -> bool:
        """True when the user supplied a non-blank answer."""
        answer = self.user_answer
        if isinstance(answer, str):
            return bool(answer.strip())
        if isinstance(answer, (list, tuple)):
            return any(isinstance(a, str) and a.strip() for a in answer)
        return False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary, including the type tag."""
        data = asdict(self)
        data["type"] = self.type.value
        return data


@dataclass
class MCQQuestion(Question):
    correct_answer: str = ""
    user_answer: str | None = None
    options: list[MCQOption] = field(default_factory=list)

    type: ClassVar[QuestionType] = QuestionType.MCQ


@dataclass
class TrueFalseQuestion(Question):
    correct_answer: str = ""
    user_answer: str | None = None

    type: ClassVar[QuestionType] = QuestionType.TRUE_FALSE


@dataclass
class FillInQuestion(Question):
    correct_answer: str = ""
    user_answer: str | None = None

    type: ClassVar[QuestionType] = QuestionType.FILL_IN


@dataclass
class MatchQuestion(Question):
    """Matching question; one answer per matched item, in declaration order."""

    correct_answer: list[str] = field(default_factory=list)
    user_answer: list[str] | None = None

    type: ClassVar[QuestionType] = QuestionType.MATCH


QUESTION_CLASSES: dict[QuestionType, type[Question]] = {
    QuestionType.MCQ: MCQQuestion,
    QuestionType.TRUE_FALSE: TrueFalseQuestion,
    QuestionType.FILL_IN: FillInQuestion,
    QuestionType.MATCH: MatchQuestion,
}


def question_class_for(question_type: str | QuestionType) -> type[Question]:
    """Get the variant class for a question type."""
    return QUESTION_CLASSES[QuestionType(question_type)]


# =============================================================================
# Parse / Grade Results
# =============================================================================


@dataclass
class ParseWarning:
    """Advisory diagnostic describing something the parser worked around."""

    code: ParseWarningCode
    message: str
    details: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"code": self.code.value, "message": self.message, "details": self.details}


@dataclass
class QuizData:
    """Result of parsing quiz text."""

    questions: list[Question] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)
    title: str | None = None

    @property
    def warning_codes(self) -> list[ParseWarningCode]:
        return [w.code for w in self.warnings]

    def get_question(self, question_id: str) -> Question | None:
        for question in self.questions:
            if question.id == question_id:
                return question
        return None

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary for JSON export."""
        return {
            "title": self.title,
            "questions": [q.to_dict() for q in self.questions],
            "warnings": [w.to_dict() for w in self.warnings],
        }


@dataclass(frozen=True)
class AnswerVerdict:
    """Correctness of a single question."""

    question_id: str
    is_correct: bool


@dataclass(frozen=True)
class QuizResult:
    """Aggregate grading result. Produced fresh on every grading run."""

    total_questions: int
    correct_answers: int
    score: int  # 0-100, rounded half up
    answers: tuple[AnswerVerdict, ...] = ()

    def verdict_for(self, question_id: str) -> bool | None:
        """Look up a question's verdict. Returns None for unknown ids."""
        for verdict in self.answers:
            if verdict.question_id == question_id:
                return verdict.is_correct
        return None

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_questions": self.total_questions,
            "correct_answers": self.correct_answers,
            "score": self.score,
            "answers": [
                {"question_id": v.question_id, "is_correct": v.is_correct} for v in self.answers
            ],
        }
