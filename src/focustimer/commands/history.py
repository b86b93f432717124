"""Session history commands."""

import typer

from focustimer.models.focus.exceptions import HistoryError
from focustimer.services.timer_service import get_timer_engine
from focustimer.utils.exit_codes import ERROR_NETWORK, ERROR_NOT_FOUND
from focustimer.utils.ui.console import get_console
from focustimer.utils.ui.formatters import (
    format_history_table,
    format_info,
    format_success,
    format_warning,
)

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Focus session history")
console = get_console()


def _history():
    history = get_timer_engine().history
    if history is None:
        raise AppError("Session history is not available")
    return history


@app.callback(invoke_without_command=True)
@command_wrapper
def show_history(
    ctx: typer.Context,
    show_all: bool = typer.Option(
        False, "--all", "-a", help="Include short abandoned sessions"
    ),
    limit: int | None = typer.Option(
        None, "--limit", "-n", min=1, help="Show at most N sessions"
    ),
) -> None:
    """Show recent focus sessions."""
    if ctx.invoked_subcommand is not None:
        return

    history = _history()
    try:
        records = history.list(include_hidden=show_all, limit=limit)
    except HistoryError as e:
        format_warning(f"{e}. Showing locally cached sessions.")
        records = history.cached(include_hidden=show_all, limit=limit)

    if not records:
        format_info("No focus sessions yet")
        return
    console.print(format_history_table(records, "Focus Sessions"))


@app.command("delete")
@command_wrapper
def delete_session(
    session_id: str = typer.Argument(..., help="Session ID or prefix"),
) -> None:
    """Delete a session from the history."""
    history = _history()
    try:
        records = history.list(include_hidden=True)
        matches = [r.id for r in records if r.id.startswith(session_id)]
        if len(matches) > 1:
            raise AppError(f"Session ID '{session_id}' is ambiguous")
        if not matches or not history.delete(matches[0]):
            raise AppError(
                f"Session not found: {session_id}", exit_code=ERROR_NOT_FOUND
            )
    except HistoryError as e:
        raise AppError(str(e), exit_code=ERROR_NETWORK) from e
    format_success(f"Deleted session {matches[0][:8]}")
