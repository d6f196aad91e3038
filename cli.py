import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from datetime import datetime, date

from revision_engine.database import SessionLocal, init_db
from revision_engine.exceptions import RevisionError
from revision_engine.logging_setup import configure_logging
from revision_engine.repositories import SqlCardRepository, SqlRevisionRepository
from revision_engine.schemas import ErrorType, FailureData, RevisionFilters, StatsPeriod, SuccessData
from revision_engine.service import RevisionService

app = typer.Typer(help="Revision CLI - adaptive spaced repetition for young learners")
console = Console()


@app.callback()
def main(log_level: Optional[str] = typer.Option(None, help="Log level (DEBUG, INFO, WARNING)")):
    configure_logging(log_level)


def get_service(db) -> RevisionService:
    return RevisionService(SqlCardRepository(db), SqlRevisionRepository(db))


def parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except ValueError:
        raise typer.BadParameter(f"'{value}' is not a date in YYYY-MM-DD format")


def print_revisions(items, title: str):
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    table.add_column("Student", justify="right")
    table.add_column("Competence", style="cyan")
    table.add_column("Due", style="yellow")
    table.add_column("Status", style="green")
    table.add_column("Failures", justify="right")
    table.add_column("Priority", style="red", justify="right")

    for item in items:
        table.add_row(
            str(item.revision.id),
            str(item.revision.student_id),
            item.revision.competence_code,
            item.due_label,
            item.status.value,
            str(item.revision.failure_count),
            str(item.effective_priority)
        )

    console.print(table)


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")


@app.command()
def record_failure(
    student_id: int = typer.Option(..., prompt="Student ID"),
    competence: str = typer.Option(..., prompt="Competence code (e.g., CP.FR.L1.1)"),
    exercise_id: int = typer.Option(..., prompt="Exercise ID"),
    time_spent: Optional[float] = typer.Option(None, help="Time spent in seconds"),
    error_type: Optional[ErrorType] = typer.Option(None, help="Kind of error"),
    difficulty: Optional[float] = typer.Option(None, help="Perceived difficulty 0-5"),
    on_date: Optional[str] = typer.Option(None, help="Attempt date (YYYY-MM-DD), default: today")
):
    """Record a failed exercise and schedule its revision"""
    db = SessionLocal()
    try:
        data = FailureData(
            exercise_id=exercise_id,
            competence_code=competence,
            time_spent_seconds=time_spent,
            error_type=error_type,
            perceived_difficulty=difficulty
        )
        outcome = get_service(db).record_failure(student_id, data, parse_date(on_date))

        console.print(f"[green]✓[/green] Failure recorded (quality: {outcome.quality}/5)")
        if outcome.next_due:
            print_revisions(outcome.next_due, "Next revisions")
    except RevisionError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()


@app.command()
def record_success(
    student_id: int = typer.Option(..., prompt="Student ID"),
    competence: str = typer.Option(..., prompt="Competence code (e.g., CP.FR.L1.1)"),
    exercise_id: int = typer.Option(..., prompt="Exercise ID"),
    time_spent: Optional[float] = typer.Option(None, help="Time spent in seconds"),
    score: Optional[float] = typer.Option(None, help="Score 0-100"),
    hints: Optional[int] = typer.Option(None, help="Number of hints used"),
    difficulty: Optional[float] = typer.Option(None, help="Exercise difficulty 0-5"),
    on_date: Optional[str] = typer.Option(None, help="Attempt date (YYYY-MM-DD), default: today")
):
    """Record a successful exercise"""
    db = SessionLocal()
    try:
        data = SuccessData(
            exercise_id=exercise_id,
            competence_code=competence,
            time_spent_seconds=time_spent,
            score=score,
            hints_used=hints,
            difficulty=difficulty
        )
        outcome = get_service(db).record_success(student_id, data, parse_date(on_date))

        console.print(f"[green]✓[/green] Success recorded (quality: {outcome.quality}/5)")
        if outcome.mastery_reached:
            console.print(f"  [bold green]Competence {competence} mastered![/bold green]")
        if outcome.remaining:
            print_revisions(outcome.remaining, "Remaining revisions")
    except RevisionError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()


@app.command()
def to_revise(
    student_id: int,
    limit: Optional[int] = typer.Option(None, help="Maximum number of revisions shown"),
    min_priority: Optional[int] = typer.Option(None, help="Minimum priority"),
    subject: Optional[str] = typer.Option(None, help="maths, francais or sciences"),
    on_date: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD), default: today")
):
    """List revisions due for a student, most urgent first"""
    db = SessionLocal()
    try:
        filters = RevisionFilters(limit=limit, min_priority=min_priority, subject=subject)
        result = get_service(db).get_exercises_to_revise(student_id, filters, parse_date(on_date))

        if not result.exercises:
            console.print(f"[yellow]Nothing to revise for student {student_id}[/yellow]")
        else:
            print_revisions(result.exercises, f"To revise ({result.shown}/{result.total})")

        if result.next_suggestion:
            suggestion = result.next_suggestion
            console.print(
                f"Next suggestion: [cyan]{suggestion.revision.competence_code}[/cyan] ({suggestion.due_label})"
            )
    finally:
        db.close()


@app.command()
def stats(
    student_id: int,
    period: StatsPeriod = typer.Option(StatsPeriod.WEEK, help="day, week or month"),
    on_date: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD), default: today")
):
    """View revision statistics for a student"""
    db = SessionLocal()
    try:
        result = get_service(db).get_revision_stats(student_id, period, parse_date(on_date))

        console.print(f"\n[bold]Revision statistics - student {student_id}[/bold]\n")
        console.print(f"  Pending: {result.pending} ({result.due_today} due today)")
        console.print(f"  Completed: {result.completed} ({result.completed_in_period} this {result.period.value})")
        console.print(f"  Cancelled: {result.cancelled}")
        console.print(f"  Total: {result.total}")
        console.print(f"  Trend: {result.trend.value}")
        console.print(f"  Success rate: {result.progress.success_rate:.0%}")
    finally:
        db.close()


@app.command()
def postpone(
    revision_id: int,
    new_date: str = typer.Option(..., prompt="New date (YYYY-MM-DD)"),
    reason: str = typer.Option(..., prompt="Reason")
):
    """Move a revision to a later date"""
    db = SessionLocal()
    try:
        outcome = get_service(db).postpone_revision(revision_id, parse_date(new_date), reason)
        console.print(
            f"[green]✓[/green] Revision {revision_id} moved to {outcome.new_date} "
            f"(postponed {outcome.postpone_count} times)"
        )
    except RevisionError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()


@app.command()
def cancel(revision_id: int, reason: Optional[str] = typer.Option(None, help="Why the revision is cancelled")):
    """Cancel a scheduled revision"""
    db = SessionLocal()
    try:
        outcome = get_service(db).cancel_revision(revision_id, reason)
        console.print(f"[green]✓[/green] Revision {revision_id} cancelled ({outcome.reason})")
    except RevisionError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)
    finally:
        db.close()


@app.command()
def queue(
    student_id: int,
    on_date: Optional[str] = typer.Option(None, help="Reference date (YYYY-MM-DD), default: today")
):
    """Show due competences and the 7-day review plan"""
    db = SessionLocal()
    try:
        schedule = get_service(db).get_study_schedule(student_id, parse_date(on_date))

        console.print(f"\n[bold]Due now ({len(schedule.due)})[/bold]")
        for card in schedule.due:
            console.print(f"  - {card.competence_code} (EF {card.easiness_factor:.2f})")

        table = Table(show_header=True, header_style="bold magenta")
        table.add_column("Date", style="cyan", width=12)
        table.add_column("Competences", style="green")
        for day, cards in schedule.schedule_7day.items():
            table.add_row(str(day), ", ".join(c.competence_code for c in cards) or "-")
        console.print(table)
    finally:
        db.close()


@app.command()
def progress(student_id: int):
    """View learning progress and recommendations"""
    db = SessionLocal()
    try:
        service = get_service(db)
        report = service.get_progress(student_id)

        console.print(f"\n[bold]Learning Progress - student {student_id}[/bold]\n")
        console.print(f"[cyan]Statistics:[/cyan]")
        console.print(f"  Competences tracked: {report.total_cards}")
        console.print(f"  Mastered: {report.mastered}")
        console.print(f"  Learning: {report.learning}")
        console.print(f"  Difficult: {report.difficult}")
        console.print(f"  Average easiness: {report.average_easiness:.2f}")
        console.print(f"  Average interval: {report.average_interval} days")

        recommendations = service.get_recommendations(student_id)
        if recommendations:
            console.print(f"\n[yellow]Recommendations:[/yellow]")
            for rec in recommendations:
                codes = f" ({', '.join(rec.competence_codes)})" if rec.competence_codes else ""
                console.print(f"  • [bold]{rec.action.value}[/bold]: {rec.reason}{codes}")
    finally:
        db.close()


@app.command()
def overdue():
    """List overdue revisions of every student"""
    db = SessionLocal()
    try:
        items = get_service(db).get_overdue_revisions()
        if not items:
            console.print("[green]No overdue revisions[/green]")
            return
        print_revisions(items, f"Overdue revisions ({len(items)})")
    finally:
        db.close()


@app.command()
def cleanup():
    """Delete completed and cancelled revisions past the retention window"""
    db = SessionLocal()
    try:
        deleted = get_service(db).cleanup_old_revisions()
        console.print(f"[green]✓[/green] Removed {deleted} old revisions")
    finally:
        db.close()


if __name__ == "__main__":
    app()
