"""Configuration management commands."""

import json
from typing import Optional

import typer
from pydantic import ValidationError

from focustimer.services.config_service import get_config_service
from focustimer.utils.exit_codes import ERROR_INVALID_ARGS, ERROR_NOT_FOUND
from focustimer.utils.ui.console import get_console
from focustimer.utils.ui.formatters import format_error, format_success

from .decorators import AppError, command_wrapper

app = typer.Typer(help="Configuration management commands", no_args_is_help=True)
console = get_console()


@app.command("show")
@command_wrapper
def show_config() -> None:
    """Show the current configuration."""
    service = get_config_service()
    console.print(f"[dim]{service.config_path}[/dim]")
    console.print_json(service.config.model_dump_json())


@app.command("get")
@command_wrapper
def get_config(
    key: str = typer.Argument(
        ..., help="Configuration key (e.g., timer.default_duration)"
    ),
) -> None:
    """Get a configuration value."""
    try:
        value = get_config_service().get(key)
    except KeyError as e:
        raise AppError(
            f"Configuration key '{key}' not found", exit_code=ERROR_NOT_FOUND
        ) from e
    if hasattr(value, "model_dump"):
        console.print_json(json.dumps(value.model_dump()))
    else:
        console.print(value)


@app.command("set")
@command_wrapper
def set_config(
    key: str = typer.Argument(..., help="Configuration key (e.g., api.endpoint)"),
    value: str = typer.Argument(..., help="Configuration value"),
) -> None:
    """Set a configuration value."""
    service = get_config_service()
    try:
        service.set(key, value)
    except KeyError as e:
        raise AppError(
            f"Configuration key '{key}' not found", exit_code=ERROR_NOT_FOUND
        ) from e
    except ValidationError as e:
        message = e.errors()[0]["msg"]
        raise AppError(
            f"Invalid value for '{key}': {message}", exit_code=ERROR_INVALID_ARGS
        ) from e
    format_success(f"Configuration '{key}' set to '{service.get(key)}'")


@app.command("reset")
@command_wrapper
def reset_config(
    key: Optional[str] = typer.Argument(None, help="Configuration key to reset"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Reset configuration to defaults."""
    if not yes:
        msg = "entire configuration" if not key else f"'{key}'"
        if not typer.confirm(f"Are you sure you want to reset {msg}?"):
            format_error("Cancelled")
            raise typer.Exit(0)

    try:
        get_config_service().reset(key)
    except (KeyError, AttributeError) as e:
        raise AppError(
            f"Configuration key '{key}' not found", exit_code=ERROR_NOT_FOUND
        ) from e

    if key:
        format_success(f"Configuration '{key}' reset to default")
    else:
        format_success("Configuration reset to defaults")
