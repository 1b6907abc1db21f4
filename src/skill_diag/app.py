"""Interactive CLI application."""
import argparse
import logging
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from skill_diag.analytics import (
    get_accuracy_trend, get_category_accuracy, get_difficulty_distribution,
    get_overview_stats, get_recent_tests, get_topic_breakdown,
)
from skill_diag.config import Settings, load_settings
from skill_diag.db import init_db
from skill_diag.errors import (
    DuplicateUser, EmptyQuestionSet, IncompleteSubmission, PoolTooSmall,
    PoolUnavailable, QuestionValidationError, UnknownUser,
)
from skill_diag.importer import import_questions, write_template
from skill_diag.models import (
    CATEGORIES, OVERALL, ROLES, Question, ScoreReport, UserProfile,
)
from skill_diag.questions import (
    add_question, delete_question, list_questions, update_question,
)
from skill_diag.seed import is_seeded, seed_all
from skill_diag.session import load_cached_results, start_test, submit_test
from skill_diag.store import (
    count_completed_tests, fetch_latest_overall_snapshot, get_user_results,
)
from skill_diag.users import (
    delete_user, find_user_by_email, list_users, register_user, set_role,
)

console = Console()
logger = logging.getLogger(__name__)


class SessionExitRequested(Exception):
    """Raised when the user types 'q' or 'menu' during a test."""


EXIT_WORDS = ("q", "quit", "menu")


def session_prompt(message: str, **kwargs) -> str:
    """Prompt that raises SessionExitRequested on an exit word."""
    answer = Prompt.ask(message, **kwargs)
    if answer.strip().lower() in EXIT_WORDS:
        raise SessionExitRequested()
    return answer


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def show_welcome():
    console.print(Panel(
        "[bold]Skill Diagnostic Test[/bold]\n[dim]Find your strong and weak areas[/dim]",
        title="Welcome", border_style="blue",
    ))


def menu_commands(db_path: str, user: UserProfile) -> list[tuple[str, str]]:
    commands = [("test", "Take a diagnostic test")]
    if fetch_latest_overall_snapshot(db_path, user.user_id) is not None:
        commands += [("results", "Latest results"), ("history", "Past tests + topic breakdown")]
    if user.role == "admin":
        commands += [
            ("questions", "Manage question bank"),
            ("import", "Bulk import questions"),
            ("users", "Manage users and roles"),
            ("analytics", "Platform analytics"),
        ]
    commands.append(("quit", "Exit"))
    return commands


def show_menu(commands: list[tuple[str, str]]):
    console.print("\n[bold]Commands:[/bold]")
    for cmd, desc in commands:
        console.print(f"  [cyan]{cmd:<14}[/cyan] {desc}")


def sign_in(db_path: str) -> UserProfile:
    email = Prompt.ask("Email").strip()
    user = find_user_by_email(db_path, email)
    if user:
        console.print(f"[green]Welcome back, {user.name or user.email}![/green]")
        return user
    name = Prompt.ask("New here. Your name")
    # The first account on a fresh install administers it.
    role = "admin" if not list_users(db_path) else "student"
    user = register_user(db_path, name, email, role=role)
    console.print(f"[green]Registered {user.email} as {user.role}.[/green]")
    return user


def run_test_session(questions: list) -> list[str]:
    """Ask every question and return the selected option texts."""
    selections = []
    console.print(f"\n[bold]Diagnostic Test[/bold] — {len(questions)} questions "
                  "[dim](type q to abandon)[/dim]\n")
    for i, q in enumerate(questions, 1):
        console.print(f"[bold]Q{i}.[/bold] [dim]{q.category}[/dim] {q.prompt}\n")
        for n, option in enumerate(q.options, 1):
            console.print(f"  [cyan]{n})[/cyan] {option}")
        choices = [str(n) for n in range(1, len(q.options) + 1)]
        answer = session_prompt("\nYour answer", choices=choices + list(EXIT_WORDS))
        selections.append(q.options[int(answer) - 1])
        console.print()
    return selections


def show_report(report: ScoreReport):
    color = "green" if report.total_score >= 70 else "yellow" if report.total_score >= 50 else "red"
    console.print(Panel(
        f"[bold {color}]{report.total_score}%[/bold {color}]  "
        f"{report.total_correct}/{report.total_questions} correct",
        title="Your Results", border_style=color,
    ))
    table = Table(title="Category Breakdown")
    table.add_column("Category", style="cyan")
    table.add_column("Correct", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")
    status_color = {"strong": "green", "average": "yellow", "weak": "red"}
    for name, c in sorted(report.categories.items(), key=lambda item: item[1].percentage):
        sc = status_color[c.label]
        table.add_row(name, f"{c.correct}/{c.total}", f"{c.percentage}%", f"[{sc}]{c.label}[/{sc}]")
    console.print(table)
    if report.weak_topics:
        console.print(f"\n  [yellow]Focus on: {', '.join(report.weak_topics)}[/yellow]")


def cmd_test(db_path: str, user: UserProfile, settings: Settings):
    try:
        questions = start_test(db_path, user.user_id, settings)
    except PoolUnavailable:
        console.print("[red]Could not load questions right now. Please try again.[/red]")
        return
    except PoolTooSmall:
        console.print("[red]Not enough questions are available. Contact an administrator.[/red]")
        return

    try:
        selections = run_test_session(questions)
    except SessionExitRequested:
        console.print("[dim]Test abandoned. Nothing was saved.[/dim]")
        return

    try:
        report, outcome = submit_test(db_path, user.user_id, questions, selections, settings)
    except IncompleteSubmission as e:
        console.print(f"[yellow]Please answer every question ({len(e.missing)} missing).[/yellow]")
        return
    except EmptyQuestionSet:
        logger.exception("Submitted a test without questions")
        return
    show_report(report)
    if not outcome.ok:
        console.print(f"[yellow]Results shown but not fully saved: {outcome.first_error}[/yellow]")


def cmd_results(user: UserProfile, settings: Settings):
    report = load_cached_results(settings.results_cache, user.user_id)
    if report is None:
        console.print("[yellow]No results on this device yet. Take a test first.[/yellow]")
        return
    show_report(report)


def cmd_history(db_path: str, user: UserProfile):
    overall = [s for s in get_user_results(db_path, user.user_id) if s.category == OVERALL]
    taken = count_completed_tests(db_path, user.user_id)
    table = Table(title=f"Past Tests ({taken} taken)")
    table.add_column("Date")
    table.add_column("Score", justify="right")
    table.add_column("Weak")
    table.add_column("Strong")
    for s in overall:
        table.add_row(
            (s.created_at or "")[:16].replace("T", " "),
            f"{s.score}/{s.total_questions} ({s.accuracy}%)",
            ", ".join(s.weak_topics) or "-",
            ", ".join(s.strong_topics) or "-",
        )
    console.print(table)

    topics = get_topic_breakdown(db_path, user.user_id)
    if topics:
        console.print("\n[bold]Weakest Topics:[/bold]")
        for t in topics[:5]:
            console.print(f"  {t['percentage']:>3}%  {t['topic']} ({t['category']}) [dim]{t['label']}[/dim]")


def cmd_questions(db_path: str):
    action = Prompt.ask("Action", choices=["list", "add", "edit", "delete"], default="list")
    if action == "list":
        category = Prompt.ask("Category filter", choices=["all", *CATEGORIES], default="all")
        questions = list_questions(db_path, category=None if category == "all" else category)
        table = Table(title=f"Questions ({len(questions)})")
        table.add_column("ID", style="dim")
        table.add_column("Category", style="cyan")
        table.add_column("Topic")
        table.add_column("Difficulty")
        table.add_column("Question")
        for q in questions:
            table.add_row(q.id[:8], q.category, q.topic, q.difficulty, q.prompt)
        console.print(table)
    elif action == "add":
        category = Prompt.ask("Category", choices=list(CATEGORIES))
        topic = Prompt.ask("Topic")
        prompt = Prompt.ask("Question")
        options = [Prompt.ask(f"Option {letter}") for letter in "ABCD"]
        correct = Prompt.ask("Correct answer (exact option text)")
        difficulty = Prompt.ask("Difficulty", choices=["easy", "medium", "hard"], default="medium")
        try:
            add_question(db_path, category, topic, prompt, options, correct, difficulty)
        except QuestionValidationError as e:
            for msg in e.errors:
                console.print(f"[red]{msg}[/red]")
            return
        console.print("[green]Question added.[/green]")
    elif action == "edit":
        question = pick_question(db_path)
        if question is None:
            return
        category = Prompt.ask("Category", choices=list(CATEGORIES), default=question.category)
        topic = Prompt.ask("Topic", default=question.topic)
        prompt = Prompt.ask("Question", default=question.prompt)
        options = [
            Prompt.ask(f"Option {chr(ord('A') + i)}", default=option)
            for i, option in enumerate(question.options)
        ]
        correct = Prompt.ask("Correct answer (exact option text)", default=question.correct_answer)
        difficulty = Prompt.ask(
            "Difficulty", choices=["easy", "medium", "hard"], default=question.difficulty,
        )
        try:
            update_question(
                db_path, question.id, category=category, topic=topic, prompt=prompt,
                options=options, correct_answer=correct, difficulty=difficulty,
            )
        except QuestionValidationError as e:
            for msg in e.errors:
                console.print(f"[red]{msg}[/red]")
            return
        console.print("[green]Question updated.[/green]")
    else:
        question = pick_question(db_path)
        if question is None:
            return
        delete_question(db_path, question.id)
        console.print("[green]Question deleted.[/green]")


def pick_question(db_path: str) -> Optional[Question]:
    prefix = Prompt.ask("Question ID (prefix ok)")
    matches = [q for q in list_questions(db_path) if q.id.startswith(prefix)]
    if len(matches) != 1:
        console.print(f"[red]{len(matches)} questions match '{prefix}'.[/red]")
        return None
    return matches[0]


def cmd_import(db_path: str):
    file_path = Prompt.ask("File path (or 'template' to write a CSV template)")
    if file_path == "template":
        write_template("questions_template.csv")
        console.print("[green]Wrote questions_template.csv[/green]")
        return
    if not Path(file_path).exists():
        console.print(f"[red]File not found: {file_path}[/red]")
        return
    try:
        report = import_questions(db_path, file_path)
    except QuestionValidationError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print(f"[green]Imported {report.imported} question(s) from {report.filename}[/green]")
    for line, errors in report.skipped:
        console.print(f"  [yellow]Row {line} skipped:[/yellow] {'; '.join(errors)}")


def cmd_users(db_path: str, current: UserProfile):
    users = list_users(db_path)
    table = Table(title="Users")
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("Email")
    table.add_column("Role")
    for i, u in enumerate(users, 1):
        table.add_row(str(i), u.name, u.email, u.role)
    console.print(table)
    action = Prompt.ask("Action", choices=["role", "delete", "back"], default="back")
    if action == "back":
        return
    index = int(Prompt.ask("User #", choices=[str(i) for i in range(1, len(users) + 1)]))
    target = users[index - 1]
    try:
        if action == "role":
            role = Prompt.ask("New role", choices=list(ROLES))
            set_role(db_path, target.user_id, role)
            console.print(f"[green]{target.email} is now {role}.[/green]")
        elif target.user_id == current.user_id:
            console.print("[red]You cannot delete your own account.[/red]")
        else:
            delete_user(db_path, target.user_id)
            console.print(f"[green]Deleted {target.email}.[/green]")
    except UnknownUser:
        console.print("[red]That user no longer exists.[/red]")


def cmd_analytics(db_path: str):
    stats = get_overview_stats(db_path)
    console.print(f"\n  Users: [bold]{stats['total_users']}[/bold]  |  "
                  f"Questions: [bold]{stats['total_questions']}[/bold]  |  "
                  f"Tests: [bold]{stats['tests_taken']}[/bold]  |  "
                  f"Avg Accuracy: [bold]{stats['avg_accuracy']}%[/bold]\n")

    table = Table(title="Accuracy by Category")
    table.add_column("Category", style="cyan")
    table.add_column("Snapshots", justify="right")
    table.add_column("Avg Accuracy", justify="right")
    for c in get_category_accuracy(db_path):
        table.add_row(c["name"], str(c["tests"]), f"{c['avg_accuracy']}%")
    console.print(table)

    dist = get_difficulty_distribution(db_path)
    console.print("  Difficulty: " + "  ".join(f"{k.title()}: {v}" for k, v in dist.items()))
    trend = get_accuracy_trend(db_path)
    if trend:
        console.print("  Trend: " + " → ".join(f"{t['accuracy']}%" for t in trend))

    recent = get_recent_tests(db_path)
    if recent:
        console.print("\n[bold]Recent Tests:[/bold]")
        for r in recent:
            console.print(f"  {r['name'] or r['user_id'][:8]}: {r['score']}/{r['total_questions']} "
                          f"({r['accuracy']}%) [dim]{r['created_at'][:10]}[/dim]")


def _parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Skill diagnostic test")
    p.add_argument("--config", help="Path to a YAML settings file")
    p.add_argument("--verbose", action="store_true", help="Show debug logging")
    return p.parse_args(argv)


def main(argv=None):
    args = _parse_args(argv)
    configure_logging(args.verbose)
    settings = load_settings(args.config)
    db_path = settings.db_path
    init_db(db_path)
    first_run = not is_seeded(db_path)
    if first_run:
        console.print("[dim]Setting up for first use...[/dim]")
    seed_all(db_path)
    if first_run:
        console.print("[green]Ready![/green]\n")

    show_welcome()
    try:
        user = sign_in(db_path)
    except DuplicateUser as e:
        console.print(f"[red]{e}[/red]")
        return

    while True:
        commands = menu_commands(db_path, user)
        show_menu(commands)
        choice = Prompt.ask("\n[bold]>[/bold]", default="test").strip().lower()
        if choice not in {c for c, _ in commands} and choice not in ("exit", "q"):
            console.print("[red]Unknown command. Try again.[/red]")
            continue
        try:
            if choice == "test":
                cmd_test(db_path, user, settings)
            elif choice == "results":
                cmd_results(user, settings)
            elif choice == "history":
                cmd_history(db_path, user)
            elif choice == "questions":
                cmd_questions(db_path)
            elif choice == "import":
                cmd_import(db_path)
            elif choice == "users":
                cmd_users(db_path, user)
            elif choice == "analytics":
                cmd_analytics(db_path)
            elif choice in ("quit", "exit", "q"):
                console.print("[dim]Good luck![/dim]")
                break
        except KeyboardInterrupt:
            console.print("\n[dim]Use 'quit' to exit.[/dim]")
        except Exception as e:
            logger.debug("Command %s failed", choice, exc_info=True)
            console.print(f"[red]Error: {e}[/red]")


if __name__ == "__main__":
    main()
