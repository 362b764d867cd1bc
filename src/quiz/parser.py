"""
Quiz Text Parser.

Turns loosely formatted quiz text into typed questions plus a list of
diagnostics. The parser is tolerant: malformed input never raises, it
degrades into dropped questions and ParseWarning entries.

Input format:

    Question 1 of 3 (Type: MCQ)
    What is 2+2?
    A. 3
    B. 4
    Answer: B

    Answer Key: 2:True, 3:1:B 2:A

Processing order:
1. Extract the global answer key line (first "Answer Key:" line).
2. Pre-scan for the declared total ("Question n of N").
3. Line pass: headers, option lines and answer lines drive a question draft.
4. Drafts are finalized on the next header and at end of input.
5. Post-pass checks for unused key entries and count mismatch.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from loguru import logger

from .models import (
    MatchQuestion,
    MCQOption,
    ParseWarning,
    ParseWarningCode,
    Question,
    QuestionType,
    QuizData,
    question_class_for,
)

# Keyword -> type for explicit annotations, checked in order
TYPE_SYNONYMS: list[tuple[str, QuestionType]] = [
    ("mcq", QuestionType.MCQ),
    ("multiple", QuestionType.MCQ),
    ("true", QuestionType.TRUE_FALSE),
    ("fill", QuestionType.FILL_IN),
    ("match", QuestionType.MATCH),
]

# Whole-bracket tokens accepted as a leading prompt annotation, e.g. "[Fill-in]"
INLINE_TYPE_TOKENS: dict[str, QuestionType] = {
    "mcq": QuestionType.MCQ,
    "multiple choice": QuestionType.MCQ,
    "multiple-choice": QuestionType.MCQ,
    "true/false": QuestionType.TRUE_FALSE,
    "true or false": QuestionType.TRUE_FALSE,
    "t/f": QuestionType.TRUE_FALSE,
    "fill-in": QuestionType.FILL_IN,
    "fill in": QuestionType.FILL_IN,
    "fill in the blank": QuestionType.FILL_IN,
    "fill-in-the-blank": QuestionType.FILL_IN,
    "match": QuestionType.MATCH,
    "matching": QuestionType.MATCH,
}

BOOLEAN_ANSWERS = {"true", "false"}
MIN_MCQ_OPTIONS = 2


def resolve_type_keyword(kind: str) -> QuestionType | None:
    """Map an annotation such as "MCQ" or "True/False" to a QuestionType."""
    kind = kind.strip().lower()
    if not kind:
        return None
    for keyword, question_type in TYPE_SYNONYMS:
        if keyword in kind:
            return question_type
    return None


def resolve_inline_annotation(content: str) -> QuestionType | None:
    """Map a whole bracket body such as "Fill-in" to a type; partial words never match."""
    return INLINE_TYPE_TOKENS.get(" ".join(content.lower().split()))


def infer_type_from_prompt(prompt: str, has_blank_markers: bool) -> QuestionType:
    """Heuristic type guess from prompt content. Defaults to mcq."""
    lowered = prompt.lower()
    if "match the following" in lowered:
        return QuestionType.MATCH
    if "true or false" in lowered or "(t/f)" in lowered:
        return QuestionType.TRUE_FALSE
    if "fill in the blank" in lowered or has_blank_markers:
        return QuestionType.FILL_IN
    return QuestionType.MCQ


def parse_match_answer(value: str) -> list[str]:
    """
    Parse a match answer into one value per matched item.

    "1:B 2:A" -> ["B", "A"] (value component of each idx:value token)
    "B, A"    -> ["B", "A"]
    """
    if ":" in value:
        values = []
        for token in value.split():
            _, sep, tail = token.partition(":")
            value = tail if sep else token
            values.append(value.strip().strip(",").strip())
    else:
        values = [piece.strip() for piece in value.split(",")]
    return [v for v in values if v]


# =============================================================================
# Parse State
# =============================================================================


@dataclass
class QuestionDraft:
    """An in-progress question, not yet validated."""

    number: int
    prompt: str
    question_type: QuestionType
    initial_type: QuestionType
    has_blank_markers: bool = False
    options: list[MCQOption] = field(default_factory=list)
    correct_answer: str | list[str] | None = None

    @property
    def id(self) -> str:
        return f"q{self.number}"

    @property
    def label(self) -> str:
        return f"Question {self.number}"


@dataclass
class ParseState:
    """Everything a single parse call accumulates. Never shared between calls."""

    answer_key: dict[int, str] = field(default_factory=dict)
    declared_total: int | None = None
    draft: QuestionDraft | None = None
    question_number: int = 0
    seen_numbers: set[int] = field(default_factory=set)
    questions: list[Question] = field(default_factory=list)
    warnings: list[ParseWarning] = field(default_factory=list)

    def warn(self, code: ParseWarningCode, message: str, details: str | None = None) -> None:
        logger.debug(f"Parse warning {code.value}: {message} ({details})")
        self.warnings.append(ParseWarning(code=code, message=message, details=details))


# =============================================================================
# Parser
# =============================================================================


class QuizParser:
    """
    Line-oriented parser for pasted quiz text.

    Holds only compiled patterns, so a single instance can be reused and
    shared; all per-call state lives in a ParseState.
    """

    HEADER_PATTERN = re.compile(r"^Question\s+(\d+)\s+of\s+(\d+)", re.IGNORECASE)
    HEADER_TYPE_PATTERN = re.compile(r"\btype\s*:\s*([^)\]]+)", re.IGNORECASE)
    PROMPT_ANNOTATION_PATTERN = re.compile(
        r"^[\[(]\s*(?:type\s*:\s*)?([^\])]*)[\])]\s*", re.IGNORECASE
    )
    OPTION_PATTERN = re.compile(r"^([A-D])[.):]\s+(.+)", re.IGNORECASE)
    ANSWER_PREFIX = "answer:"
    ANSWER_KEY_PREFIX = "answer key:"
    BLANK_MARKER_PATTERN = re.compile(r"_{3,}")

    def parse(self, text: str) -> QuizData:
        """Parse raw quiz text into questions and warnings."""
        state = ParseState()
        lines = [line.strip() for line in (text or "").split("\n")]

        lines = self._extract_answer_key(lines, state)
        state.declared_total = self._scan_declared_total(lines)

        index = 0
        while index < len(lines):
            line = lines[index]
            index += 1
            if not line:
                continue

            if self.HEADER_PATTERN.match(line):
                self._finalize(state)
                prompt = lines[index] if index < len(lines) else ""
                index += 1
                self._start_question(line, prompt, state)
            elif self.OPTION_PATTERN.match(line):
                self._handle_option(line, state)
            elif line.lower().startswith(self.ANSWER_PREFIX):
                self._handle_answer(line, state)

        self._finalize(state)
        self._check_consistency(state)

        logger.info(
            f"Parsed {len(state.questions)} questions with {len(state.warnings)} warnings"
        )
        return QuizData(questions=state.questions, warnings=state.warnings)

    # =========================================================================
    # Pre-pass
    # =========================================================================

    def _extract_answer_key(self, lines: list[str], state: ParseState) -> list[str]:
        """Parse the first "Answer Key:" line and return the remaining lines."""
        for index, line in enumerate(lines):
            if line.lower().startswith(self.ANSWER_KEY_PREFIX):
                break
        else:
            return lines

        remainder = lines[index][len(self.ANSWER_KEY_PREFIX):].strip()
        for pair in (p.strip() for p in remainder.split(",")):
            if not pair:
                continue
            number_text, sep, answer = pair.partition(":")
            if not sep:
                state.warn(
                    ParseWarningCode.INVALID_ANSWER_KEY_PAIR,
                    "Found an answer key entry without a question number.",
                    pair,
                )
                continue
            answer = answer.strip()
            try:
                number = int(number_text.strip())
            except ValueError:
                number = None
            if number is None or not answer:
                state.warn(
                    ParseWarningCode.INVALID_ANSWER_KEY_PAIR,
                    "Found an incomplete entry in the answer key.",
                    pair,
                )
                continue
            state.answer_key[number] = answer

        return lines[:index] + lines[index + 1:]

    def _scan_declared_total(self, lines: list[str]) -> int | None:
        for line in lines:
            match = self.HEADER_PATTERN.match(line)
            if match:
                return int(match.group(2))
        return None

    # =========================================================================
    # Line Handlers
    # =========================================================================

    def _start_question(self, header: str, prompt: str, state: ParseState) -> None:
        """Open a new draft from a header line and the prompt line after it."""
        match = self.HEADER_PATTERN.match(header)
        state.question_number = int(match.group(1))

        explicit_type = None
        type_match = self.HEADER_TYPE_PATTERN.search(header)
        if type_match:
            explicit_type = resolve_type_keyword(type_match.group(1))

        prompt, inline_type = self._strip_prompt_annotation(prompt.strip())
        explicit_type = explicit_type or inline_type

        if not prompt:
            state.warn(
                ParseWarningCode.MISSING_QUESTION_TEXT,
                "A question header was found without a prompt.",
                f"Question {state.question_number}",
            )
            state.draft = None
            return

        has_blanks = bool(self.BLANK_MARKER_PATTERN.search(prompt))
        question_type = explicit_type or infer_type_from_prompt(prompt, has_blanks)
        state.draft = QuestionDraft(
            number=state.question_number,
            prompt=prompt,
            question_type=question_type,
            initial_type=question_type,
            has_blank_markers=has_blanks,
        )

    def _strip_prompt_annotation(self, prompt: str) -> tuple[str, QuestionType | None]:
        """Remove a leading "[MCQ]" / "(Type: Match)" style annotation."""
        match = self.PROMPT_ANNOTATION_PATTERN.match(prompt)
        if not match:
            return prompt, None
        question_type = resolve_inline_annotation(match.group(1))
        if question_type is None:
            return prompt, None
        return prompt[match.end():].strip(), question_type

    def _handle_option(self, line: str, state: ParseState) -> None:
        draft = state.draft
        if draft is None:
            state.warn(
                ParseWarningCode.ORPHAN_OPTION,
                "Choice text appeared before any question header.",
                line,
            )
            return
        if draft.question_type == QuestionType.MATCH:
            return

        match = self.OPTION_PATTERN.match(line)
        draft.options.append(MCQOption(label=match.group(1).upper(), text=match.group(2).strip()))
        # Option lines are conclusive evidence of multiple choice
        if draft.question_type != QuestionType.MCQ:
            logger.debug(f"{draft.label}: option line upgrades {draft.question_type.value} to mcq")
            draft.question_type = QuestionType.MCQ

    def _handle_answer(self, line: str, state: ParseState) -> None:
        draft = state.draft
        if draft is None:
            state.warn(
                ParseWarningCode.ORPHAN_ANSWER,
                "Answer text appeared before any question header.",
                line,
            )
            return

        answer = line[len(self.ANSWER_PREFIX):].strip()
        if not answer:
            state.warn(
                ParseWarningCode.MISSING_ANSWER,
                "An answer label was present but empty.",
                draft.prompt,
            )
            return

        if not draft.options and answer.lower() in BOOLEAN_ANSWERS:
            draft.question_type = QuestionType.TRUE_FALSE

        if draft.question_type == QuestionType.MATCH:
            draft.correct_answer = parse_match_answer(answer)
        else:
            draft.correct_answer = answer

    # =========================================================================
    # Finalize
    # =========================================================================

    def _finalize(self, state: ParseState) -> None:
        """Validate the pending draft and either emit or drop it."""
        draft, state.draft = state.draft, None
        if draft is None or not draft.prompt:
            return

        if draft.number in state.seen_numbers:
            state.warn(
                ParseWarningCode.DUPLICATE_QUESTION_NUMBER,
                "Found a duplicate question number. The later entry was skipped.",
                draft.label,
            )
            return

        if not draft.correct_answer and draft.number in state.answer_key:
            key_answer = state.answer_key[draft.number]
            if draft.question_type == QuestionType.MATCH:
                if ":" in key_answer:
                    draft.correct_answer = parse_match_answer(key_answer)
                else:
                    draft.correct_answer = key_answer.split()
            else:
                draft.correct_answer = key_answer

        if draft.has_blank_markers and len(draft.options) >= MIN_MCQ_OPTIONS:
            draft.question_type = QuestionType.MCQ
            if draft.initial_type != QuestionType.MCQ:
                state.warn(
                    ParseWarningCode.BLANK_MARKERS_COERCED_TO_MCQ,
                    "A prompt with blanks also listed options; it was treated as multiple choice.",
                    draft.label,
                )

        if not draft.correct_answer:
            state.warn(
                ParseWarningCode.MISSING_ANSWER,
                "A question was skipped because no answer was provided.",
                draft.prompt,
            )
            return

        if draft.question_type == QuestionType.MCQ and len(draft.options) < MIN_MCQ_OPTIONS:
            state.warn(
                ParseWarningCode.MCQ_OPTION_SHORTFALL,
                "Multiple-choice question missing options was removed.",
                draft.prompt,
            )
            return

        state.seen_numbers.add(draft.number)
        state.questions.append(self._build_question(draft))
        logger.debug(f"Accepted {draft.label} as {draft.question_type.value}")

    def _build_question(self, draft: QuestionDraft) -> Question:
        """Freeze a validated draft into its typed question variant."""
        question_cls = question_class_for(draft.question_type)
        answer = draft.correct_answer

        if question_cls is MatchQuestion:
            if isinstance(answer, str):
                answer = answer.split()
            return MatchQuestion(id=draft.id, question=draft.prompt, correct_answer=list(answer))

        if isinstance(answer, list):
            answer = ", ".join(answer)
        if draft.question_type == QuestionType.MCQ:
            return question_cls(
                id=draft.id,
                question=draft.prompt,
                correct_answer=answer,
                options=list(draft.options),
            )
        return question_cls(id=draft.id, question=draft.prompt, correct_answer=answer)

    def _check_consistency(self, state: ParseState) -> None:
        unused = [n for n in state.answer_key if n not in state.seen_numbers]
        if unused:
            state.warn(
                ParseWarningCode.UNUSED_ANSWER_KEY_ENTRIES,
                "Some answer key entries did not match any parsed question numbers.",
                ", ".join(str(n) for n in unused),
            )

        if state.declared_total is not None and len(state.questions) != state.declared_total:
            state.warn(
                ParseWarningCode.COUNT_MISMATCH,
                "The declared question count did not match what was parsed.",
                f"Expected {state.declared_total}, parsed {len(state.questions)}",
            )


def parse_quiz_text(text: str) -> QuizData:
    """Parse quiz text with a default parser."""
    return QuizParser().parse(text)
