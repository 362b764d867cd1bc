"""
Quiz Runner: Main CLI.

A Rich terminal interface for parsing, taking and grading pasted quizzes.

Commands:
- quiz parse     - Parse a quiz file and show questions and warnings
- quiz take      - Take a quiz interactively
- quiz grade     - Grade a quiz against a JSON answer file
- quiz template  - Show an LLM prompt for generating quizzes
- quiz settings  - Show or change quiz settings
- quiz reset     - Clear the saved quiz text
"""
from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text

from config import get_settings
from src.delivery.state_store import StateStore
from src.quiz import (
    IncompleteQuizError,
    MatchQuestion,
    MCQQuestion,
    NoQuestionsError,
    Question,
    QuestionType,
    QuizData,
    QuizMode,
    QuizResult,
    QuizSession,
    load_session,
    parse_quiz_text,
)


# =============================================================================
# CLI Setup
# =============================================================================

app = typer.Typer(
    name="quiz",
    help="Quiz Runner: parse, practice and grade pasted quizzes",
    no_args_is_help=True,
)
settings_app = typer.Typer(help="Show or change quiz settings", no_args_is_help=True)
app.add_typer(settings_app, name="settings")

console = Console()

FLAG_COMMAND = "/flag"

QUIZ_FORMAT_EXAMPLE = """\
Question 1 of 4 (Type: MCQ)
Which planet is closest to the sun?
A. Venus
B. Mercury
C. Earth
D. Mars
Answer: B

Question 2 of 4 (Type: True/False)
Water boils at 100 degrees Celsius at sea level.
Answer: True

Question 3 of 4 (Type: Fill-in)
The chemical symbol for gold is _____.
Answer: Au

Question 4 of 4 (Type: Match)
Match each country to its capital
1. France
2. Japan
A. Tokyo
B. Paris
Answer: 1:B 2:A
"""

QUIZ_TEMPLATE = f"""\
Create a quiz with 5-10 questions in exactly this format:

{QUIZ_FORMAT_EXAMPLE}
Rules:
- Start every question with "Question n of N", optionally followed by (Type: MCQ),
  (Type: True/False), (Type: Fill-in) or (Type: Match)
- Put the question text on the next line
- Label options A. to D.
- End each question with an "Answer:" line, or list answers on one final line:
  Answer Key: 1:B, 2:True, 3:Au, 4:1:B 2:A
"""


STYLES = {
    "correct": "bold green",
    "incorrect": "bold red",
    "question_type": {
        "mcq": "green",
        "truefalse": "yellow",
        "fillin": "magenta",
        "match": "cyan",
    },
}


def style_question_type(question_type: QuestionType) -> str:
    color = STYLES["question_type"].get(question_type.value, "white")
    return f"[{color}]{question_type.value}[/{color}]"


def get_store() -> StateStore:
    return StateStore(get_settings().state_db_path)


def read_quiz_file(path: Path) -> str:
    """Read quiz text, exiting with an error message on failure."""
    if not path.exists():
        console.print(f"[red]Error: Quiz file not found: {path}[/red]")
        raise typer.Exit(1)

    text = path.read_text(encoding="utf-8", errors="replace")
    limit = get_settings().max_quiz_chars
    if len(text) > limit:
        console.print(f"[red]Error: Quiz text is too long ({len(text)} > {limit} characters)[/red]")
        raise typer.Exit(1)
    return text


# =============================================================================
# Display Helpers
# =============================================================================

def display_warnings(quiz: QuizData) -> None:
    if not quiz.warnings:
        return

    table = Table(title=f"{len(quiz.warnings)} parse warnings", title_style="bold yellow")
    table.add_column("Code", style="yellow")
    table.add_column("Message")
    table.add_column("Details", style="dim")

    for warning in quiz.warnings:
        table.add_row(warning.code.value, warning.message, warning.details or "")

    console.print(table)


def display_questions(quiz: QuizData) -> None:
    table = Table(title=f"Parsed {len(quiz.questions)} questions")
    table.add_column("ID", style="cyan")
    table.add_column("Type")
    table.add_column("Question")
    table.add_column("Answer", style="green")

    for question in quiz.questions:
        answer = question.correct_answer
        if isinstance(answer, list):
            answer = ", ".join(answer)
        table.add_row(question.id, style_question_type(question.type), question.question, answer)

    console.print(table)


def display_question(question: Question, index: int, total: int, seconds_left: float | None = None) -> None:
    """Display a question prompt with its options."""
    header = f"Question {index}/{total}  |  {style_question_type(question.type)}"
    if question.is_flagged:
        header += "  |  [yellow]flagged[/yellow]"
    if seconds_left is not None:
        minutes, seconds = divmod(int(seconds_left), 60)
        header += f"  |  [dim]{minutes}:{seconds:02d} left[/dim]"

    content = question.question
    if isinstance(question, MCQQuestion):
        content += "\n\n" + "\n".join(f"  {o.label}. {o.text}" for o in question.options)

    console.print(Panel(content, title=header, title_align="left", border_style="cyan", padding=(1, 2)))


def display_feedback(question: Question) -> None:
    """Practice-mode feedback for a single answer."""
    answer = question.correct_answer
    if isinstance(answer, list):
        answer = ", ".join(answer)

    if question.is_answered_correctly:
        console.print("[green]✓ Correct![/green]")
    else:
        console.print(f"[red]✗ Incorrect.[/red] The correct answer is [bold]{answer}[/bold]")
    if question.explanation:
        console.print(f"[dim]{question.explanation}[/dim]")


def display_result(result: QuizResult) -> None:
    style = STYLES["correct"] if result.score >= 50 else STYLES["incorrect"]
    console.print(Panel(
        f"[bold]Quiz Complete![/bold]\n\n"
        f"Correct: {result.correct_answers}/{result.total_questions}\n"
        f"Score: [{style}]{result.score}%[/{style}]",
        title="Results",
        border_style="green",
    ))


def ring(session: QuizSession) -> None:
    """Terminal bell in place of sound effects."""
    if session.settings.sound_enabled:
        console.bell()


# =============================================================================
# Answer Input
# =============================================================================

def ask_answer(question: Question) -> Any:
    """Prompt for an answer in the shape the question type expects."""
    if isinstance(question, MCQQuestion):
        labels = [o.label for o in question.options]
        console.print(f"[dim]Enter choice ({'/'.join(labels)}), {FLAG_COMMAND} to flag[/dim]")
        response = Prompt.ask("Answer", default="").strip()
        return response if response == FLAG_COMMAND else response.upper()

    if question.type == QuestionType.TRUE_FALSE:
        console.print(f"[dim]T/F, {FLAG_COMMAND} to flag[/dim]")
        response = Prompt.ask("Answer", default="").strip()
        if response.lower() in ("t", "true"):
            return "True"
        if response.lower() in ("f", "false"):
            return "False"
        return response

    if isinstance(question, MatchQuestion):
        console.print(
            f"[dim]Enter {len(question.correct_answer)} answers separated by commas, "
            f"{FLAG_COMMAND} to flag[/dim]"
        )
        response = Prompt.ask("Answer", default="").strip()
        if response == FLAG_COMMAND:
            return response
        return [part.strip() for part in response.split(",") if part.strip()]

    console.print(f"[dim]Type your answer, {FLAG_COMMAND} to flag[/dim]")
    return Prompt.ask("Answer", default="").strip()


# =============================================================================
# Commands
# =============================================================================

@app.command()
def parse(
    quiz_file: Path = typer.Argument(..., help="Quiz text file"),
    as_json: bool = typer.Option(False, "--json", help="Print parsed quiz as JSON"),
) -> None:
    """Parse a quiz file and report questions and warnings."""
    text = read_quiz_file(quiz_file)
    quiz = parse_quiz_text(text)

    store = get_store()
    store.save_quiz_text(text)
    store.close()

    if as_json:
        console.print_json(json.dumps(quiz.to_dict()))
    else:
        display_questions(quiz)
        display_warnings(quiz)

    if not quiz.questions:
        console.print("[red]No questions found. Please check your quiz format and try again.[/red]")
        raise typer.Exit(1)


@app.command()
def take(
    quiz_file: Optional[Path] = typer.Argument(None, help="Quiz text file (defaults to the saved quiz)"),
    mode: Optional[QuizMode] = typer.Option(None, "--mode", "-m", help="Override the saved quiz mode"),
) -> None:
    """Take a quiz interactively."""
    text = read_quiz_file(quiz_file) if quiz_file is not None else None

    store = get_store()
    try:
        if text is not None:
            store.save_quiz_text(text)
        else:
            text = store.load_quiz_text()
        quiz_settings = store.load_settings(QuizMode(get_settings().default_quiz_mode))
    finally:
        store.close()

    if text is None:
        console.print("[red]Error: No saved quiz. Pass a quiz file.[/red]")
        raise typer.Exit(1)
    if mode is not None:
        quiz_settings = quiz_settings.model_copy(update={"mode": mode})

    try:
        session = load_session(text, quiz_settings)
    except NoQuestionsError as e:
        display_warnings(e.quiz)
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    console.print(f"\n[bold cyan]Quiz[/bold cyan]  {len(session.questions)} questions  |  mode: {quiz_settings.mode.value}")
    if quiz_settings.timer_enabled:
        console.print(f"[dim]Time limit: {quiz_settings.timer_minutes} minutes[/dim]")

    session.start()
    total = len(session.questions)
    for index, question in enumerate(session.questions, 1):
        if session.is_time_up():
            break
        display_question(question, index, total, session.time_remaining())
        answer = ask_answer(question)
        while answer == FLAG_COMMAND:
            flagged = session.toggle_flag(question.id)
            console.print("[yellow]Flagged for review[/yellow]" if flagged else "[dim]Flag removed[/dim]")
            answer = ask_answer(question)

        # Answers entered after the deadline do not count
        if session.is_time_up():
            break

        session.answer(question.id, answer)
        if session.is_practice and question.is_answered:
            display_feedback(question)
            ring(session)

    if session.flagged:
        console.print(f"\n[yellow]Flagged: {', '.join(q.id for q in session.flagged)}[/yellow]")

    if session.is_time_up():
        console.print("\n[bold yellow]Time's up![/bold yellow] Submitting your answers.")
        result = session.submit(allow_incomplete=True)
    else:
        try:
            result = session.submit()
        except IncompleteQuizError as e:
            console.print(f"[yellow]{e}[/yellow]")
            if not Confirm.ask("Submit anyway?", default=False):
                raise typer.Exit(0)
            result = session.submit(allow_incomplete=True)

    display_result(result)
    ring(session)



@app.command()
def grade(
    quiz_file: Path = typer.Argument(..., help="Quiz text file"),
    answers_file: Path = typer.Argument(..., help="JSON object mapping question id to answer"),
    as_json: bool = typer.Option(False, "--json", help="Print result as JSON"),
) -> None:
    """Grade a quiz against a file of answers."""
    text = read_quiz_file(quiz_file)
    if not answers_file.exists():
        console.print(f"[red]Error: Answers file not found: {answers_file}[/red]")
        raise typer.Exit(1)

    try:
        answers = json.loads(answers_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error: Invalid answers JSON: {e}[/red]")
        raise typer.Exit(1)
    if not isinstance(answers, dict):
        console.print("[red]Error: Answers JSON must be an object of question id to answer[/red]")
        raise typer.Exit(1)

    try:
        session = load_session(text)
    except NoQuestionsError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    for question in session.questions:
        if question.id in answers:
            session.answer(question.id, answers[question.id])

    unknown = sorted(set(answers) - {q.id for q in session.questions})
    if unknown:
        logger.warning(f"Ignoring answers for unknown questions: {', '.join(unknown)}")

    result = session.submit(allow_incomplete=True)

    if as_json:
        console.print_json(json.dumps(result.to_dict()))
        return

    table = Table()
    table.add_column("ID", style="cyan")
    table.add_column("Result")
    for verdict in result.answers:
        table.add_row(
            verdict.question_id,
            "[green]correct[/green]" if verdict.is_correct else "[red]incorrect[/red]",
        )
    console.print(table)
    display_result(result)


@app.command()
def template(
    raw: bool = typer.Option(False, "--raw", help="Print plain text for copying into an LLM prompt"),
) -> None:
    """Show a prompt that makes an LLM write quizzes in the supported format."""
    if raw:
        console.print(QUIZ_TEMPLATE, markup=False, highlight=False, soft_wrap=True)
        return

    console.print(Panel(
        Text(QUIZ_TEMPLATE),
        title="Generate Quizzes with AI",
        subtitle="plain text: quiz template --raw",
        border_style="cyan",
        padding=(1, 2),
    ))


@app.command()
def reset(

    confirm: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Clear the saved quiz text."""
    if not confirm and not Confirm.ask("Clear the saved quiz text?", default=False):
        raise typer.Exit(0)

    store = get_store()
    store.clear_quiz_text()
    store.close()
    console.print("[green]Saved quiz text cleared.[/green]")


@settings_app.command("show")
def settings_show() -> None:
    """Show the saved quiz settings."""
    store = get_store()
    quiz_settings = store.load_settings(QuizMode(get_settings().default_quiz_mode))
    store.close()

    table = Table(show_header=False, box=None)
    table.add_column("Setting", style="dim")
    table.add_column("Value", style="bold")
    table.add_row("Mode", quiz_settings.mode.value)
    table.add_row("Timer", "on" if quiz_settings.timer_enabled else "off")
    table.add_row("Timer minutes", str(quiz_settings.timer_minutes))
    table.add_row("Sound", "on" if quiz_settings.sound_enabled else "off")
    console.print(table)


@settings_app.command("set")
def settings_set(
    mode: Optional[QuizMode] = typer.Option(None, "--mode", "-m", help="practice or test"),
    timer: Optional[bool] = typer.Option(None, "--timer/--no-timer", help="Enable the quiz timer"),
    minutes: Optional[int] = typer.Option(None, "--minutes", min=1, max=180, help="Timer duration"),
    sound: Optional[bool] = typer.Option(None, "--sound/--no-sound", help="Enable sound effects"),
) -> None:
    """Change quiz settings."""
    store = get_store()
    quiz_settings = store.load_settings(QuizMode(get_settings().default_quiz_mode))

    updates = {
        "mode": mode,
        "timer_enabled": timer,
        "timer_minutes": minutes,
        "sound_enabled": sound,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    quiz_settings = quiz_settings.model_copy(update=updates)

    store.save_settings(quiz_settings)
    store.close()
    console.print("[green]Settings saved.[/green]")


# =============================================================================
# Entry Point
# =============================================================================

def main() -> None:
    """CLI entry point."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=get_settings().log_level,
        format="<level>{message}</level>",
    )

    app()


if __name__ == "__main__":
    main()
