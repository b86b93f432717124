"""Notification side effects fired by the timer engine."""

from __future__ import annotations

from typing import Protocol

from rich.console import Console
from rich.panel import Panel


class NotificationSink(Protocol):
    """Presentation capabilities the engine needs from its host."""

    def play_sound(self) -> None: ...

    def show_toast(self, title: str, description: str) -> None: ...

    def set_host_title(self, text: str) -> None: ...

    def restore_host_title(self) -> None: ...


class ConsoleNotifier:
    """Terminal implementation: bell, a toast panel and the window title."""

    def __init__(self, console: Console | None = None, host_title: str = "focustimer"):
        self.console = console or Console()
        self.host_title = host_title

    def play_sound(self) -> None:
        self.console.bell()

    def show_toast(self, title: str, description: str) -> None:
        style = "red" if title.lower().startswith("error") else "green"
        self.console.print(
            Panel(
                f"[bold {style}]{title}[/bold {style}]\n{description}",
                border_style=style,
                padding=(0, 2),
            )
        )

    def set_host_title(self, text: str) -> None:
        self.console.set_window_title(text)

    def restore_host_title(self) -> None:
        self.console.set_window_title(self.host_title)
