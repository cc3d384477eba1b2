"""CLI commands for the gamify backend.

Commands:
- init-db: Create the database schema
- add-student: Register a student, mentor or admin
- students: List registered accounts
- award: Award XP for an action
- level: Show a student's level bar
- submit-test: Record a test score
- open: Register a material open (schedules revision 1)
- dojo: Show pending revisions
- complete-revision: Complete a revision
- leaderboard: Show the XP ranking
- serve: Run the HTTP API
"""

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console
from rich.table import Table

from gamify.config.app_config import load_app_config
from gamify.core.leaderboard import get_leaderboard
from gamify.core.revisions import (
    MATERIAL_TYPES,
    RevisionAlreadyCompletedError,
    RevisionNotFoundError,
    complete_revision,
    fetch_dojo_tabs,
    open_material,
)
from gamify.core.test_attempts import submit_test_score
from gamify.core.xp_award import AwardResult, award_xp, get_level
from gamify.core.xp_rules import XPEventType
from gamify.db.database import init_db
from gamify.db.students_repository import (
    StudentNotFoundError,
    get_all_students,
    get_student_by_name,
    insert_student,
)
from gamify.utils.validators import InvalidScoreError, validate_email

app = typer.Typer(
    name="gamify",
    help="Gamified learning backend: XP, levels, revisions and leaderboards.",
    no_args_is_help=True,
)

console = Console()


def _open_db() -> Path:
    """Initialize the configured database and return its path."""
    db_path = load_app_config().db_path
    init_db(db_path)
    return db_path


def _fail(message: str) -> NoReturn:
    console.print(f"[red]✗ {message}[/red]")
    raise typer.Exit(code=1)


def _print_award(result: AwardResult) -> None:
    if not result.success:
        console.print(f"[yellow]⏳ {result.message}[/yellow]")
        return
    if result.xp_earned == 0:
        console.print("[dim]No XP earned[/dim]")
        return

    console.print(
        f"[green]+{result.xp_earned} XP[/green]  total: {result.new_total_xp}  "
        f"level: {result.new_level}"
    )
    if result.leveled_up:
        console.print(f"[magenta bold]🎉 Level up! {result.old_level} → {result.new_level}[/magenta bold]")


@app.command(name="init-db")
def init_database() -> None:
    """Create the database schema."""
    db_path = _open_db()
    console.print(f"[green]✓ Database ready:[/green] {db_path}")


@app.command(name="add-student")
def add_student(
    name: str = typer.Argument(..., help="First name"),
    surname: str = typer.Option("", "--surname", "-s", help="Last name"),
    email: str = typer.Option("", "--email", "-e", help="Email address"),
    role: str = typer.Option("student", "--role", "-r", help="student, mentor or admin"),
) -> None:
    """Register a student, mentor or admin."""
    _open_db()

    if role not in ("student", "mentor", "admin"):
        _fail(f"Unknown role '{role}'")
    if not validate_email(email):
        _fail("Invalid email format")
    if get_student_by_name(name):
        _fail(f"Student with name '{name}' already exists")

    student = insert_student(name=name, surname=surname, email=email, role=role)
    console.print(f"[green]✓ Created {student.role}[/green] {student.student_id}: {student.full_name}")


@app.command(name="students")
def list_students(
    role: str = typer.Option(None, "--role", "-r", help="Filter by role"),
) -> None:
    """List registered accounts."""
    _open_db()
    students = get_all_students(role=role)

    if not students:
        console.print("[yellow]No students registered[/yellow]")
        console.print("  Use: gamify add-student <name>")
        return

    table = Table(title=f"Students ({len(students)})")
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Role")
    table.add_column("Email", style="dim")
    for s in students:
        table.add_row(s.student_id, s.full_name, s.role, s.email)
    console.print(table)


@app.command()
def award(
    student_id: str = typer.Argument(..., help="Student ID (e.g., stu01)"),
    event_type: XPEventType = typer.Argument(..., help="Action performed"),
    material_id: str = typer.Argument(..., help="Material the action was performed on"),
    topic_id: str = typer.Option("", "--topic", "-t", help="Topic ID"),
    score: int = typer.Option(None, "--score", help="Test score (0-20), for test_score"),
) -> None:
    """Award XP for an action."""
    _open_db()
    try:
        result = award_xp(event_type, material_id, student_id, topic_id=topic_id, score=score)
    except (StudentNotFoundError, InvalidScoreError) as e:
        _fail(str(e))

    _print_award(result)


@app.command()
def level(
    student_id: str = typer.Argument(..., help="Student ID"),
) -> None:
    """Show a student's level bar."""
    _open_db()
    try:
        bar = get_level(student_id)
    except StudentNotFoundError as e:
        _fail(str(e))

    filled = int(bar.progress_percent // 5)
    console.print(f"\n[bold]Level {bar.current_level}[/bold]  ({bar.total_points} XP)")
    console.print(f"  [{'█' * filled}{'░' * (20 - filled)}] {bar.progress_percent}%")
    console.print(f"  [dim]{bar.xp_to_next} XP to level {bar.next_level}[/dim]\n")


@app.command(name="submit-test")
def submit_test(
    student_id: str = typer.Argument(..., help="Student ID"),
    topic_id: str = typer.Argument(..., help="Topic ID"),
    material_id: str = typer.Argument(..., help="Test material ID"),
    score: int = typer.Argument(..., help="Score out of 20"),
) -> None:
    """Record a test score."""
    _open_db()
    try:
        result = submit_test_score(student_id, topic_id, material_id, score)
    except (StudentNotFoundError, InvalidScoreError) as e:
        _fail(str(e))

    attempt = result.attempt
    color = "green" if attempt.passed else "red"
    console.print(
        f"Attempt #{attempt.attempt_number}: {attempt.score}/{attempt.max_score} "
        f"[{color}]{attempt.result_label}[/{color}]"
    )
    console.print(f"  Topic status: {result.progress.status.value} ({result.progress.progress_percentage}%)")
    _print_award(result.award)


@app.command(name="open")
def open_study_material(
    student_id: str = typer.Argument(..., help="Student ID"),
    topic_id: str = typer.Argument(..., help="Topic ID"),
    material_type: str = typer.Argument(..., help="pdf, video or test"),
) -> None:
    """Register a material open (schedules revision 1 on first open)."""
    _open_db()
    if material_type not in MATERIAL_TYPES:
        _fail(f"Unknown material type '{material_type}'")

    try:
        entry, created = open_material(student_id, topic_id, material_type)
    except StudentNotFoundError as e:
        _fail(str(e))

    if created:
        console.print(f"[green]✓ Revision 1 scheduled[/green] for {entry.due_date[:10]}")
    else:
        console.print(f"[dim]Already scheduled: revision {entry.revision_number} due {entry.due_date[:10]}[/dim]")


@app.command()
def dojo(
    student_id: str = typer.Argument(..., help="Student ID"),
) -> None:
    """Show pending revisions: overdue, today and upcoming."""
    _open_db()
    try:
        tabs = fetch_dojo_tabs(student_id)
    except StudentNotFoundError as e:
        _fail(str(e))

    for title, color, entries in (
        ("Overdue", "red", tabs.overdue),
        ("Today", "yellow", tabs.today),
        ("Upcoming", "cyan", tabs.upcoming),
    ):
        console.print(f"\n[bold {color}]{title} ({len(entries)})[/bold {color}]")
        for e in entries:
            console.print(
                f"  {e.revision_id}  {e.topic_id} ({e.material_type}) "
                f"R{e.revision_number}  [dim]due {e.due_date[:10]}[/dim]"
            )
    console.print()


@app.command(name="complete-revision")
def complete_revision_command(
    student_id: str = typer.Argument(..., help="Student ID"),
    revision_id: str = typer.Argument(..., help="Revision ID (see: gamify dojo)"),
) -> None:
    """Complete a revision and schedule the next one."""
    _open_db()
    try:
        completion = complete_revision(revision_id, student_id)
    except (RevisionNotFoundError, RevisionAlreadyCompletedError) as e:
        _fail(str(e))

    console.print(f"[green]✓ Revision {completion.revision.revision_number} completed[/green]")
    if completion.next_revision:
        nxt = completion.next_revision
        console.print(f"  Next: revision {nxt.revision_number} due {nxt.due_date[:10]}")
    else:
        console.print("  [bold]All revisions done for this material[/bold]")
    _print_award(completion.award)


@app.command()
def leaderboard(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of entries"),
) -> None:
    """Show the XP ranking."""
    _open_db()
    entries = get_leaderboard(limit=limit)

    if not entries:
        console.print("[yellow]No students ranked yet[/yellow]")
        return

    medals = {1: "🥇", 2: "🥈", 3: "🥉"}
    table = Table(title="Leaderboard")
    table.add_column("#", justify="right")
    table.add_column("Student")
    table.add_column("Level", justify="right")
    table.add_column("XP", justify="right", style="bold")
    for e in entries:
        table.add_row(f"{medals.get(e.rank, '')}{e.rank}", e.name, str(e.level), str(e.total_xp))
    console.print(table)


@app.command()
def serve(
    host: str = typer.Option(None, "--host", help="Bind address"),
    port: int = typer.Option(None, "--port", "-p", help="Port"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    config = load_app_config()
    uvicorn.run(
        "gamify.web.api:app",
        host=host or config.api.host,
        port=port or config.api.port,
    )


if __name__ == "__main__":
    app()
