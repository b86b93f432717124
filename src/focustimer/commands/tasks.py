"""Commands for the tasks attached to the current session."""

import typer
from rich.markup import escape

from focustimer.services.timer_service import get_timer_engine
from focustimer.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from focustimer.utils.ui.console import get_console
from focustimer.utils.ui.formatters import format_info, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Tasks for the current session", no_args_is_help=True)
console = get_console()


@app.command("list")
@command_wrapper
def list_tasks() -> None:
    """List the current tasks."""
    tasks = get_timer_engine().snapshot().current_tasks
    if not tasks:
        format_info("No tasks for this session")
        return
    for task in tasks:
        mark = "[green]✓[/green]" if task.completed else "○"
        console.print(f"{mark} {escape(task.text)} [dim]({task.id[:8]})[/dim]")


@app.command("add")
@command_wrapper
def add_task(text: str = typer.Argument(..., help="Task description")) -> None:
    """Add a task to the current session."""
    task = get_timer_engine().add_task(text)
    if task is None:
        raise AppError("Task text cannot be empty", exit_code=ERROR_INVALID_ARGS)
    format_success(f"Added task {task.id[:8]}")


def _resolve(task_id: str) -> str:
    matches = get_timer_engine().match_tasks(task_id)
    if not matches:
        raise AppError(f"Task not found: {task_id}", exit_code=ERROR_NOT_FOUND)
    if len(matches) > 1:
        raise AppError(
            f"Task ID '{task_id}' is ambiguous", exit_code=ERROR_INVALID_ARGS
        )
    return matches[0].id


@app.command("done")
@command_wrapper
def complete_task(task_id: str = typer.Argument(..., help="Task ID or prefix")) -> None:
    """Toggle a task's completed mark."""
    full_id = _resolve(task_id)
    get_timer_engine().toggle_task(full_id)
    format_success(f"Task {full_id[:8]} updated")


@app.command("remove")
@command_wrapper
def remove_task(task_id: str = typer.Argument(..., help="Task ID or prefix")) -> None:
    """Remove a task from the current session."""
    full_id = _resolve(task_id)
    get_timer_engine().remove_task(full_id)
    format_success(f"Task {full_id[:8]} removed")
