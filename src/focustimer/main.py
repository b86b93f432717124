"""Main entry point for the focustimer CLI."""

import typer

from focustimer import __version__
from focustimer.commands import config, history, tasks, timer
from focustimer.utils.ui.console import get_console

app = typer.Typer(
    name="focustimer",
    help="A focus timer for the terminal with session history",
    no_args_is_help=True,
)

console = get_console()

# Timer commands
app.command("start")(timer.start)
app.command("pause")(timer.pause)
app.command("resume")(timer.resume)
app.command("reset")(timer.reset)
app.command("status")(timer.status)
app.command("watch")(timer.watch)
app.command("duration")(timer.duration)
app.command("sound")(timer.sound)
app.command("notes")(timer.notes)

# Subcommands
app.add_typer(tasks.app, name="tasks", help="Tasks for the current session")
app.add_typer(history.app, name="history", help="Focus session history")
app.add_typer(config.app, name="config", help="Configuration management")


@app.command()
def version() -> None:
    """Show version information."""
    console.print(f"[bold]focustimer[/bold] version [cyan]{__version__}[/cyan]")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
