"""Timer commands: one-shot transitions and the interactive surfaces."""

import typer

from focustimer.models.config_models import MAX_DURATION, MIN_DURATION
from focustimer.models.focus.ui import TimerDisplay
from focustimer.services.config_service import get_config_service
from focustimer.services.timer_service import get_timer_engine
from focustimer.utils.exit_codes import ERROR_INVALID_ARGS
from focustimer.utils.ui.console import get_console
from focustimer.utils.ui.formatters import (
    format_info,
    format_status,
    format_success,
    format_warning,
)

from .decorators import AppError, command_wrapper


def _display(compact: bool) -> TimerDisplay:
    config = get_config_service().config
    return TimerDisplay(
        get_timer_engine(),
        get_console(color=config.output.color),
        compact=compact,
        refresh_per_second=config.timer.refresh_per_second,
    )


def _report(result: str) -> None:
    if result == "completed":
        format_success("Focus session completed")
    elif get_timer_engine().status != "idle":
        format_info("Timer keeps running. Use 'focustimer watch' to return to it.")


@command_wrapper
def start(
    duration: int | None = typer.Option(
        None,
        "--duration",
        "-d",
        min=MIN_DURATION,
        max=MAX_DURATION,
        help="Session length in minutes",
    ),
    detach: bool = typer.Option(
        False, "--detach", help="Start without opening the focus page"
    ),
) -> None:
    """Start a focus session."""
    engine = get_timer_engine()
    engine.refresh()
    if engine.status != "idle":
        raise AppError(
            f"Timer is already {engine.status}. Use 'focustimer reset' first.",
            exit_code=ERROR_INVALID_ARGS,
        )
    if duration is not None:
        engine.set_duration(duration)
    engine.start()

    if detach:
        snapshot = engine.snapshot()
        format_success(
            f"Focus session started: {snapshot.selected_duration} minutes"
        )
        return
    _report(_display(compact=False).run(exit_on_complete=True))


@command_wrapper
def pause() -> None:
    """Pause the running session."""
    engine = get_timer_engine()
    if engine.status != "running":
        raise AppError(
            f"Cannot pause: timer is {engine.status}", exit_code=ERROR_INVALID_ARGS
        )
    if not engine.pause():
        format_info("Session already finished")
        return
    format_success(f"Paused at {engine.snapshot().formatted}")


@command_wrapper
def resume() -> None:
    """Resume a paused session."""
    engine = get_timer_engine()
    if not engine.resume():
        raise AppError(
            f"Cannot resume: timer is {engine.status}", exit_code=ERROR_INVALID_ARGS
        )
    format_success(f"Resumed with {engine.snapshot().formatted} left")


@command_wrapper
def reset() -> None:
    """Stop the session and restore the full countdown."""
    engine = get_timer_engine()
    engine.refresh()
    engine.reset()
    format_success(f"Timer reset to {engine.snapshot().formatted}")


@command_wrapper
def status() -> None:
    """Show the current timer state."""
    format_status(get_timer_engine().refresh())


@command_wrapper
def watch(
    compact: bool = typer.Option(
        False, "--compact", "-c", help="Show the small dashboard widget"
    ),
) -> None:
    """Open a timer surface without changing the session."""
    _report(_display(compact=compact).run())


@command_wrapper
def duration(
    minutes: int = typer.Argument(
        ..., min=MIN_DURATION, max=MAX_DURATION, help="Session length in minutes"
    ),
) -> None:
    """Choose the session length."""
    engine = get_timer_engine()
    if not engine.set_duration(minutes):
        raise AppError(
            "Cannot change the duration while a session is active",
            exit_code=ERROR_INVALID_ARGS,
        )
    format_success(f"Duration set to {engine.snapshot().selected_duration} minutes")


@command_wrapper
def sound() -> None:
    """Toggle the completion sound."""
    enabled = get_timer_engine().toggle_sound()
    format_success(f"Sound {'on' if enabled else 'off'}")


@command_wrapper
def notes(
    text: str = typer.Argument(..., help="Notes for the current session"),
) -> None:
    """Set the notes saved with the session."""
    get_timer_engine().set_current_notes(text)
    if text:
        format_success("Notes updated")
    else:
        format_warning("Notes cleared")
