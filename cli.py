import typer
from rich.console import Console
from rich.table import Table
from typing import Optional
from datetime import datetime, date, timedelta

from smartsched.database import SessionLocal, init_db
from smartsched.crud import (
    create_user, get_user, update_user,
    create_subject, get_active_subjects,
    create_topic, record_study_session
)
from smartsched.exceptions import SchedulerError, TaskNotFoundError
from smartsched.logging_config import configure_logging
from smartsched.schemas import UserCreate, SubjectCreate, TopicCreate, StudySessionCreate
from smartsched.scheduler import get_scheduler

app = typer.Typer(help="SmartSched CLI - priority-based study scheduling")
console = Console()


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, help="Log level (default from SMARTSCHED_LOG_LEVEL)"),
    verbose_sql: bool = typer.Option(False, help="Echo SQL statements")
):
    """Configure logging before any command runs"""
    configure_logging(log_level, verbose_sql=verbose_sql)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").date()


def _task_table(tasks, show_date: bool = False) -> Table:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("ID", style="dim", justify="right")
    if show_date:
        table.add_column("Date", style="cyan", width=12)
    table.add_column("Task", style="green")
    table.add_column("Subject", style="yellow")
    table.add_column("Duration", style="blue", justify="right")
    table.add_column("Priority", justify="right")
    table.add_column("Score", justify="right")
    table.add_column("Status")

    for task in tasks:
        row = [str(task.id)]
        if show_date:
            row.append(str(task.scheduled_date))
        row.extend([
            task.title,
            task.subject_name or "-",
            f"{task.estimated_minutes} min",
            str(task.priority),
            f"{task.priority_score:.2f}",
            task.status
        ])
        table.add_row(*row)
    return table


@app.command()
def init():
    """Initialize database tables"""
    init_db()
    console.print("[green]✓[/green] Database initialized successfully!")

@app.command()
def reset_db():
    """Delete all data and reinitialize database (WARNING: irreversible!)"""
    confirm = typer.confirm("⚠️  This will DELETE ALL DATA. Are you sure?")
    if not confirm:
        console.print("[yellow]Cancelled.[/yellow]")
        return

    from smartsched.database import engine, Base
    import smartsched.models  # noqa: F401
    console.print("[yellow]Dropping all tables...[/yellow]")
    Base.metadata.drop_all(bind=engine)
    console.print("[yellow]Recreating tables...[/yellow]")
    Base.metadata.create_all(bind=engine)
    console.print("[green]✓[/green] Database reset complete! All data deleted.")

@app.command()
def create_profile(
    name: str = typer.Option(..., prompt="Learner's name"),
    email: Optional[str] = typer.Option(None, help="Email address"),
    hours: float = typer.Option(4.0, prompt="Daily study hours"),
    study_time: str = typer.Option("morning", help="Preferred study time (morning/afternoon/evening/night)")
):
    """Create a new learner profile"""
    db = SessionLocal()
    try:
        user = create_user(db, UserCreate(
            name=name,
            email=email,
            daily_study_hours=hours,
            preferred_study_time=study_time
        ))
        console.print(f"[green]✓[/green] Profile created successfully! User ID: {user.id}")
        console.print(f"  Name: {user.name}")
        console.print(f"  Study budget: {user.daily_study_hours} h/day ({user.preferred_study_time})")
    finally:
        db.close()

@app.command()
def update_profile(
    user_id: int = typer.Option(..., prompt="User ID"),
    hours: Optional[float] = typer.Option(None, help="New daily study hours"),
    study_time: Optional[str] = typer.Option(None, help="New preferred study time")
):
    """Update learner study preferences"""
    db = SessionLocal()
    try:
        updates = {}
        if hours is not None:
            updates["daily_study_hours"] = hours
        if study_time:
            updates["preferred_study_time"] = study_time

        user = update_user(db, user_id, updates)
        if user:
            console.print(f"[green]✓[/green] Profile updated successfully!")
        else:
            console.print(f"[red]✗[/red] User ID {user_id} not found")
    finally:
        db.close()

@app.command()
def add_subject(
    user_id: int = typer.Option(..., prompt="User ID"),
    name: str = typer.Option(..., prompt="Subject name"),
    priority: int = typer.Option(3, min=1, max=5, help="Priority level 1-5"),
    exam_date: Optional[str] = typer.Option(None, help="Exam date (YYYY-MM-DD)")
):
    """Add a subject for a learner"""
    db = SessionLocal()
    try:
        if not get_user(db, user_id):
            console.print(f"[red]✗[/red] User ID {user_id} not found")
            return
        subject = create_subject(db, user_id, SubjectCreate(
            name=name,
            priority_level=priority,
            exam_date=_parse_date(exam_date)
        ))
        console.print(f"[green]✓[/green] Subject added! ID: {subject.id}")
    finally:
        db.close()

@app.command()
def add_topic(
    subject_id: int = typer.Option(..., prompt="Subject ID"),
    name: str = typer.Option(..., prompt="Topic name"),
    difficulty: str = typer.Option("medium", help="easy/medium/hard"),
    importance: int = typer.Option(3, min=1, max=5, help="Importance 1-5"),
    hours: Optional[float] = typer.Option(None, help="Estimated hours (default from difficulty)")
):
    """Add a topic to a subject"""
    db = SessionLocal()
    try:
        topic = create_topic(db, TopicCreate(
            subject_id=subject_id,
            name=name,
            difficulty=difficulty,
            importance=importance,
            estimated_hours=hours
        ))
        console.print(f"[green]✓[/green] Topic added! ID: {topic.id} ({topic.estimated_hours} h estimated)")
    finally:
        db.close()

@app.command()
def list_subjects(user_id: int):
    """List a learner's active subjects"""
    db = SessionLocal()
    try:
        subjects = get_active_subjects(db, user_id)
        console.print(f"\n[bold]Subjects for user {user_id}:[/bold]")
        for subject in subjects:
            exam = f", exam {subject.exam_date}" if subject.exam_date else ""
            console.print(f"  {subject.id}. {subject.name} (priority {subject.priority_level}{exam})")
    finally:
        db.close()

@app.command()
def log_session(
    user_id: int = typer.Option(..., prompt="User ID"),
    topic_id: int = typer.Option(..., prompt="Topic ID"),
    minutes: int = typer.Option(..., prompt="Minutes studied"),
    quality: Optional[int] = typer.Option(None, min=1, max=5, help="Quality rating 1-5"),
    started: Optional[str] = typer.Option(None, help="Start time (YYYY-MM-DD HH:MM), default: now"),
    notes: Optional[str] = typer.Option(None, help="Optional notes")
):
    """Record a completed study session for a topic"""
    db = SessionLocal()
    try:
        start_time = datetime.strptime(started, "%Y-%m-%d %H:%M") if started else datetime.now()
        session = record_study_session(db, user_id, StudySessionCreate(
            topic_id=topic_id,
            start_time=start_time,
            actual_minutes=minutes,
            quality_rating=quality,
            notes=notes
        ))
        console.print(f"[green]✓[/green] Session recorded! ID: {session.id}")
    finally:
        db.close()

@app.command()
def generate(
    user_id: int = typer.Option(..., prompt="User ID"),
    days: int = typer.Option(7, help="Number of days to plan")
):
    """Generate study tasks for the next N days"""
    result = get_scheduler().generate_schedule(user_id, days)
    if not result.success:
        console.print(f"[red]✗[/red] {result.message}")
        raise typer.Exit(code=1)

    console.print(f"\n[green]✓[/green] [bold]{result.message}[/bold]\n")
    console.print(_task_table(result.tasks, show_date=True))

@app.command()
def today(user_id: int):
    """View today's open tasks and progress"""
    scheduler = get_scheduler()
    tasks = scheduler.get_todays_tasks(user_id)
    stats = scheduler.get_schedule_stats(user_id)

    total = stats.today_pending + stats.today_completed
    percent = round(stats.today_completed / total * 100) if total else 0

    console.print(f"\n[bold]Today's Plan - {date.today():%A, %B %d, %Y}[/bold]")
    console.print(
        f"  {stats.today_completed} done, {stats.today_pending} pending, "
        f"{stats.today_skipped} skipped ({percent}% complete), "
        f"{stats.today_minutes_remaining} min remaining\n"
    )
    if not tasks:
        console.print("[yellow]Nothing scheduled for today.[/yellow]")
        return
    console.print(_task_table(tasks))

@app.command()
def week(
    user_id: int,
    start: Optional[str] = typer.Option(None, help="Any date in the week (YYYY-MM-DD). Default: this week")
):
    """View the weekly plan, Monday to Sunday"""
    anchor = _parse_date(start) or date.today()
    monday = anchor - timedelta(days=anchor.weekday())
    plan = get_scheduler().get_weekly_tasks(user_id, monday)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Day", style="cyan", width=14)
    table.add_column("Tasks", style="green")
    table.add_column("Total", style="blue", justify="right")

    for offset in range(7):
        day = monday + timedelta(days=offset)
        day_tasks = plan.tasks_by_date.get(day, [])
        label = f"{day:%a %d %b}" + (" *" if day == date.today() else "")
        table.add_row(
            label,
            "\n".join(f"[{task.status}] {task.title}" for task in day_tasks) or "-",
            f"{sum(task.estimated_minutes for task in day_tasks)} min"
        )

    console.print(f"\n[bold]Week of {monday:%b %d}[/bold]")
    console.print(table)

@app.command()
def priorities(user_id: int):
    """Show incomplete topics ranked by priority"""
    topics = get_scheduler().get_prioritized_topics(user_id)
    if not topics:
        console.print(f"[yellow]No incomplete topics for user {user_id}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("#", justify="right")
    table.add_column("Subject", style="cyan")
    table.add_column("Topic", style="green")
    table.add_column("Score", justify="right")
    table.add_column("Remaining", justify="right")
    table.add_column("Avg quality", justify="right")

    for rank, topic in enumerate(topics, 1):
        perf = topic.performance
        table.add_row(
            str(rank),
            topic.subject_name,
            topic.name,
            f"{topic.priority_score:.2f}",
            f"{topic.remaining_hours:.1f} h",
            f"{perf.avg_score:.0f}" if perf else "new"
        )
    console.print(table)

@app.command()
def complete(user_id: int, task_id: int):
    """Mark a task as completed"""
    try:
        result = get_scheduler().complete_task(user_id, task_id)
    except TaskNotFoundError:
        console.print(f"[red]✗[/red] Task {task_id} not found")
        raise typer.Exit(code=1)
    except SchedulerError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    if result.changed:
        console.print(f"[green]✓[/green] {result.message}")
    else:
        console.print(f"[yellow]{result.message}[/yellow]")

@app.command()
def skip(
    user_id: int,
    task_id: int,
    reason: str = typer.Option("", help="Why the task was skipped")
):
    """Skip a task and reschedule it with higher priority"""
    try:
        result = get_scheduler().skip_task(user_id, task_id, reason)
    except TaskNotFoundError:
        console.print(f"[red]✗[/red] Task {task_id} not found")
        raise typer.Exit(code=1)
    except SchedulerError as e:
        console.print(f"[red]✗[/red] {e}")
        raise typer.Exit(code=1)

    if result.changed:
        console.print(f"[green]✓[/green] {result.message}")
    else:
        console.print(f"[yellow]{result.message}[/yellow]")

@app.command()
def stats(user_id: int):
    """Show today's counters and the coming week's load"""
    summary = get_scheduler().get_schedule_stats(user_id)
    console.print(f"\n[bold]Schedule stats for user {user_id}[/bold]")
    console.print(f"  Today pending:   {summary.today_pending}")
    console.print(f"  Today completed: {summary.today_completed}")
    console.print(f"  Today skipped:   {summary.today_skipped}")
    console.print(f"  Minutes left:    {summary.today_minutes_remaining}")
    console.print(f"  Next 7 days:     {summary.week_tasks} tasks")

if __name__ == "__main__":
    app()
