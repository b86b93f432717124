"""Output formatters for timer state and session history."""

from __future__ import annotations

from datetime import datetime

from rich.markup import escape
from rich.table import Table

from focustimer.models.focus.history import SessionRecord
from focustimer.models.focus.engine import TimerSnapshot

from .console import get_console

console = get_console()

STATUS_STYLES = {
    "running": "cyan",
    "paused": "yellow",
    "idle": "dim",
}


def format_error(message: str) -> None:
    """Format and display an error message."""
    console.print(f"[bold red]Error:[/bold red] {message}")


def format_success(message: str) -> None:
    """Format and display a success message."""
    console.print(f"[bold green]Success:[/bold green] {message}")


def format_warning(message: str) -> None:
    """Format and display a warning message."""
    console.print(f"[bold yellow]Warning:[/bold yellow] {message}")


def format_info(message: str) -> None:
    """Format and display an info message."""
    console.print(f"[bold blue]Info:[/bold blue] {message}")


def format_session_date(value: str | datetime) -> str:
    """Short month/day/time, e.g. ``Mar 04, 14:30``."""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if value.tzinfo is not None:
        value = value.astimezone()
    return value.strftime("%b %d, %H:%M")


def format_status(snapshot: TimerSnapshot) -> None:
    """Print a short status block for the current timer."""
    color = STATUS_STYLES.get(snapshot.status, "white")
    console.print(
        f"[bold {color}]{snapshot.formatted}[/bold {color}]  "
        f"[{color}]{snapshot.status}[/{color}]"
    )
    console.print(f"Duration: {snapshot.selected_duration} minutes")
    console.print(f"Sound: {'on' if snapshot.sound_enabled else 'off'}")
    if snapshot.current_tasks:
        console.print("Tasks:")
        for task in snapshot.current_tasks:
            mark = "[green]✓[/green]" if task.completed else "○"
            console.print(f"  {mark} {escape(task.text)} [dim]({task.id[:8]})[/dim]")
    if snapshot.current_notes:
        console.print(f"Notes: [dim]{escape(snapshot.current_notes)}[/dim]")


def format_history_table(records: list[SessionRecord], title: str) -> Table:
    """Build the history table shown by ``focustimer history``."""
    table = Table(title=title, show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Date", style="cyan")
    table.add_column("Planned", justify="right")
    table.add_column("Actual", justify="right")
    table.add_column("Status", justify="center")
    table.add_column("Tasks")
    table.add_column("Notes", style="dim")

    for record in records:
        if record.completed:
            status = "[green]Completed[/green]"
        else:
            status = "[yellow]Started[/yellow]"
        actual = f"{record.actual_duration}m" if record.actual_duration > 0 else "-"
        tasks = ", ".join(task.text for task in record.tasks) or "-"
        table.add_row(
            record.id[:8],
            format_session_date(record.date),
            f"{record.planned_duration}m",
            actual,
            status,
            escape(tasks[:40]),
            escape((record.notes or "")[:40]),
        )

    return table
