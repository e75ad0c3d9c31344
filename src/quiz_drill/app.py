"""Interactive CLI application."""
import logging
import os
import sqlite3
from pathlib import Path

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Confirm, IntPrompt, Prompt
from rich.table import Table

from quiz_drill.dashboard import (
    get_completion_color, get_completion_label, get_study_stats, mastery_breakdown,
)
from quiz_drill.db import (
    DEFAULT_DB_PATH, clear_state, export_state, get_sample_size, init_db, load_state, save_state,
    set_setting,
)
from quiz_drill.importer import import_file
from quiz_drill.models import QuestionType, QuizError
from quiz_drill.queues import build_mistake_queue, build_normal_queue
from quiz_drill.session import OPTION_LETTERS, QuizSession
from quiz_drill.store import QuestionStore

console = Console()

# Distinct from any plausible answer text, fill-in-blank included.
EXIT_WORDS = (":q", ":menu")


class SessionExitRequested(Exception):
    """Raised when the user asks to leave a running session."""


def session_prompt(prompt: str, **kwargs) -> str:
    answer = Prompt.ask(prompt, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def configure_logging() -> None:
    level = os.environ.get("QUIZ_DRILL_LOG_LEVEL", "WARNING").upper()
    logging.basicConfig(
        level=level, format="%(message)s", handlers=[RichHandler(console=console, show_path=False)],
    )


def show_welcome():
    console.print(Panel(
        "[bold]Quiz Drill[/bold]\n[dim]Spreadsheet flashcards with mistake review[/dim]",
        title="Welcome", border_style="blue",
    ))


def show_menu():
    console.print("\n[bold]Commands:[/bold]")
    commands = [
        ("quiz", "Practice a random sample"),
        ("mistakes", "Review your mistake set"),
        ("dashboard", "Progress and stats"),
        ("import", "Load a question set (replaces current)"),
        ("export", "Save a JSON backup"),
        ("settings", "Change the practice sample size"),
        ("reset", "Clear all data"),
        ("quit", "Exit"),
    ]
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def show_question(session: QuizSession) -> None:
    q = session.current_question
    number = session.position + 1
    kind = {QuestionType.MULTIPLE: " (select all that apply)", QuestionType.BLANK: " (fill in the blank)"}
    console.print(f"[bold]Q{number}/{len(session.queue)}.[/bold] {q.prompt}[dim]{kind.get(q.type, '')}[/dim]\n")
    for letter, option in zip(OPTION_LETTERS, q.options):
        console.print(f"  [cyan]{letter})[/cyan] {option}")


def run_quiz_session(db_path: str, store: QuestionStore, queue: list, review: bool = False) -> tuple[int, int]:
    if not queue:
        message = "Your mistake set is empty!" if review else "No questions yet. Use 'import' first."
        console.print(f"[yellow]{message}[/yellow]")
        return 0, 0
    session = QuizSession(store, persist=lambda s: save_state(db_path, s))
    session.start(queue)
    title = "Mistake Review" if review else "Quiz"
    console.print(f"\n[bold]{title}[/bold] — {len(queue)} questions [dim](:q to stop)[/dim]\n")
    try:
        while True:
            show_question(session)
            answer = session_prompt("\nYour answer")
            result = session.submit(answer)
            if result.correct:
                console.print("[green]Correct![/green]")
            else:
                console.print(f"[red]Incorrect.[/red] Answer: [green]{result.expected}[/green]")
            console.print(f"[dim]{result.explanation}[/dim]")
            if result.encouragement:
                console.print(Panel(result.encouragement, border_style="magenta"))
            if review and session.current_question.id in store.mistake_ids:
                choice = session_prompt(
                    "[dim]Enter to continue, d if you know this now[/dim]", default="", show_default=False,
                )
                if choice.strip().lower() == "d":
                    session.dismiss_current()
                    console.print("[dim]Removed from mistake set.[/dim]")
            console.print()
            answered, correct = session.answered, session.correct
            if session.advance():
                break
    except SessionExitRequested:
        answered, correct = session.answered, session.correct
        session.exit()
        console.print("[dim]Session ended early. Progress so far is saved.[/dim]")
    if answered:
        console.print(f"[bold]Score: {correct}/{answered} ({correct/answered*100:.0f}%)[/bold]\n")
    return correct, answered


def cmd_quiz(db_path: str, store: QuestionStore):
    queue = build_normal_queue(store, sample_size=get_sample_size(db_path))
    run_quiz_session(db_path, store, queue)


def cmd_mistakes(db_path: str, store: QuestionStore):
    run_quiz_session(db_path, store, build_mistake_queue(store), review=True)


def cmd_dashboard(store: QuestionStore):
    stats = get_study_stats(store)
    rate = stats["completion_rate"]
    color = get_completion_color(rate)
    label = get_completion_label(rate)

    bar_filled = int(rate / 5)
    bar = f"[{color}]{'█' * bar_filled}{'░' * (20 - bar_filled)}[/{color}]"
    console.print(Panel(
        f"Completion: [bold]{rate}%[/bold] {bar} [{color}]{label}[/{color}]",
        title="Dashboard", border_style="blue",
    ))

    table = Table(title="Mastery")
    table.add_column("Level", style="cyan")
    table.add_column("Questions", justify="right")
    names = {-1: "Missed", 0: "Unseen", 1: "Learning", 2: "Familiar", 3: "Mastered"}
    for level, count in mastery_breakdown(store).items():
        table.add_row(names.get(level, str(level)), str(count))
    console.print(table)

    console.print(f"\n  Questions: [bold]{stats['total_questions']}[/bold]  |  "
                  f"Mistakes: [bold]{stats['mistake_count']}[/bold]  |  "
                  f"Answered: [bold]{stats['total_answered']}[/bold]  |  "
                  f"Accuracy: [bold]{stats['accuracy']}%[/bold]")


def cmd_import(db_path: str, store: QuestionStore):
    file_path = Prompt.ask("File path (.xlsx, .csv, .json, .yaml)")
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    if len(store) and not Confirm.ask("This replaces your current questions and mistakes. Continue?"):
        return
    result = import_file(db_path, store, file_path)
    skipped = f", {result['skipped']} rows skipped" if result["skipped"] else ""
    console.print(f"[green]Imported {result['imported']} questions from {result['filename']}{skipped}[/green]")


def cmd_export(store: QuestionStore):
    dest = Prompt.ask("Save backup to folder", default=".")
    path = export_state(store, dest)
    console.print(f"[green]Saved {path}[/green]")


def cmd_settings(db_path: str):
    size = IntPrompt.ask("Questions per practice run (0 = all)", default=get_sample_size(db_path))
    if size < 0:
        console.print("[red]Sample size cannot be negative.[/red]")
        return
    set_setting(db_path, "sample_size", str(size))
    console.print(f"[green]Practice runs will use {size or 'all'} questions.[/green]")


def cmd_reset(db_path: str, store: QuestionStore):
    if not Confirm.ask("[red]Delete all questions, mistakes and stats?[/red]"):
        return
    if not clear_state(db_path):
        console.print("[red]Could not clear saved data; nothing was changed.[/red]")
        return
    store.clear()
    console.print("[dim]All data cleared.[/dim]")


def main():
    configure_logging()
    db_path = DEFAULT_DB_PATH
    init_db(db_path)
    store = load_state(db_path)

    show_welcome()

    while True:
        show_menu()
        choice = Prompt.ask("\n[bold]>[/bold]", default="quiz").strip().lower()
        try:
            if choice == "quiz":
                cmd_quiz(db_path, store)
            elif choice == "mistakes":
                cmd_mistakes(db_path, store)
            elif choice == "dashboard":
                cmd_dashboard(store)
            elif choice == "import":
                cmd_import(db_path, store)
            elif choice == "export":
                cmd_export(store)
            elif choice == "settings":
                cmd_settings(db_path)
            elif choice == "reset":
                cmd_reset(db_path, store)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Keep practicing![/dim]")
                break
            else:
                console.print("[red]Unknown command. Try again.[/red]")
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except (QuizError, OSError, sqlite3.Error) as e:
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
