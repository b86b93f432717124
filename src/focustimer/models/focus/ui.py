"""Terminal surfaces for the timer: the full focus page and the dashboard widget."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Literal, Protocol

from rich.align import Align
from rich.console import Console, Group, RenderableType
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.text import Text

from .engine import PRESET_DURATIONS, TimerEngine, TimerSnapshot
from .keyboard import KeyboardHandler

RunResult = Literal["completed", "quit", "interrupted"]

STATUS_COLORS = {"running": "cyan", "paused": "yellow", "idle": "green"}


class KeySource(Protocol):
    def __enter__(self) -> "KeySource": ...

    def __exit__(self, exc_type, exc_val, exc_tb) -> None: ...

    def get_key(self) -> str | None: ...

    def stop(self) -> None: ...


def progress_bar(progress: float, width: int = 40) -> str:
    filled = int(width * max(0.0, min(1.0, progress)))
    return "▓" * filled + "░" * (width - filled)


class TimerDisplay:
    """A surface bound to the shared engine.

    ``compact=True`` is the dashboard widget: countdown, progress and the
    start/pause/reset controls only. The full page adds duration presets,
    the session's tasks and notes.
    """

    def __init__(
        self,
        engine: TimerEngine,
        console: Console | None = None,
        *,
        compact: bool = False,
        refresh_per_second: int = 4,
        keyboard_factory: Callable[[], KeySource] = KeyboardHandler,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.engine = engine
        self.console = console or Console()
        self.compact = compact
        self.refresh_per_second = refresh_per_second
        self.keyboard_factory = keyboard_factory
        self.sleep = sleep
        self.snapshot = engine.snapshot()
        self._unsubscribe: Callable[[], None] | None = None
        self._completed = False

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """Subscribe to the engine and make sure a running timer is ticking."""
        if self._unsubscribe is None:
            self._unsubscribe = self.engine.subscribe(self._on_change)
        self.engine.ensure_ticking_if_needed()
        self.snapshot = self.engine.snapshot()

    def unmount(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _on_change(self, snapshot: TimerSnapshot) -> None:
        if self.snapshot.status == "running" and snapshot.status == "idle":
            self._completed = snapshot.remaining_seconds == 0
        self.snapshot = snapshot

    # ------------------------------------------------------------------
    # Input
    # ------------------------------------------------------------------

    def toggle(self) -> None:
        """Start, pause or resume depending on the current state."""
        status = self.engine.status
        if status == "idle":
            self.engine.start()
        elif status == "paused":
            self.engine.resume()
        else:
            self.engine.pause()

    def handle_key(self, key: str) -> bool:
        """Apply a keypress. Returns False when the surface should close."""
        if key == "q":
            return False
        if key in (" ", "p"):
            self.toggle()
        elif key == "r":
            self.engine.reset()
        elif key == "s":
            self.engine.toggle_sound()
        elif not self.compact and len(key) == 1 and key in "1234":
            self.engine.set_duration(PRESET_DURATIONS[int(key) - 1])
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self) -> RenderableType:
        if self.compact:
            return self.render_widget(self.snapshot)
        return self.render_page(self.snapshot)

    def render_widget(self, snapshot: TimerSnapshot) -> Panel:
        """Dashboard widget: countdown, progress and controls."""
        color = STATUS_COLORS[snapshot.status]
        body = Group(
            Text(snapshot.formatted, style=f"bold {color}", justify="center"),
            Text(progress_bar(snapshot.progress, 24), style="dim", justify="center"),
            Text(self._hints(snapshot), style="dim", justify="center"),
        )
        return Panel(body, title="Focus Timer", border_style=color, width=36)

    def render_page(self, snapshot: TimerSnapshot) -> Layout:
        """Full focus page."""
        layout = Layout()
        layout.split_column(
            Layout(name="header", size=3),
            Layout(name="body"),
            Layout(name="footer", size=3),
        )

        if snapshot.status == "paused":
            title, color = "PAUSED", "yellow"
        elif snapshot.status == "running":
            title, color = "Focus Mode", "cyan"
        else:
            title, color = "Ready", "green"
        layout["header"].update(
            Align.center(
                Text(title, style=f"bold {color}", justify="center"), vertical="middle"
            )
        )
        layout["body"].update(
            Align.center(self._page_body(snapshot), vertical="middle")
        )
        layout["footer"].update(
            Align.center(
                Text(self._hints(snapshot), style="dim", justify="center"),
                vertical="middle",
            )
        )
        return layout

    def _page_body(self, snapshot: TimerSnapshot) -> Group:
        components: list[RenderableType] = []

        for task in snapshot.current_tasks:
            mark = "✓" if task.completed else "○"
            style = "dim strike" if task.completed else "bold white"
            components.append(Text(f"{mark} {task.text[:50]}", style=style))
        if snapshot.current_tasks:
            components.append(Text(""))

        remaining = snapshot.remaining_seconds
        if snapshot.status == "paused":
            timer_color = "yellow"
        elif snapshot.status == "running" and remaining < 60:
            timer_color = "red"
        elif snapshot.status == "running" and remaining < 300:
            timer_color = "yellow"
        else:
            timer_color = "cyan"
        components.append(
            Text(snapshot.formatted, style=f"bold {timer_color}", justify="center")
        )
        components.append(Text(""))

        pct = int(snapshot.progress * 100)
        components.append(
            Text(f"{progress_bar(snapshot.progress)}  {pct}%", style="dim")
        )

        if not snapshot.is_active:
            presets = Text(justify="center")
            for i, minutes in enumerate(PRESET_DURATIONS, 1):
                style = "reverse" if minutes == snapshot.selected_duration else "dim"
                presets.append(f" [{i}] {minutes}m ", style=style)
            if snapshot.selected_duration not in PRESET_DURATIONS:
                presets.append(f" {snapshot.selected_duration}m ", style="reverse")
            components.append(Text(""))
            components.append(presets)

        if snapshot.current_notes:
            components.append(Text(""))
            components.append(Text(snapshot.current_notes[:200], style="italic dim"))

        sound = "on" if snapshot.sound_enabled else "off"
        components.append(Text(""))
        components.append(Text(f"Sound: {sound}", style="dim", justify="center"))
        return Group(*components)

    def _hints(self, snapshot: TimerSnapshot) -> str:
        if snapshot.status == "running":
            action = "'p' pause"
        elif snapshot.status == "paused":
            action = "'p' resume"
        else:
            action = "'p' start"
        hints = [action, "'r' reset", "'s' sound", "'q' quit"]
        if not self.compact and not snapshot.is_active:
            hints.insert(1, "'1-4' duration")
        return "  •  ".join(hints)

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(
        self, exit_on_complete: bool = False, max_frames: int | None = None
    ) -> RunResult:
        """Drive the engine's scheduler and redraw until the user quits.

        Leaving the surface never stops the timer; its state stays persisted
        and the next surface to mount picks the countdown back up.
        """
        self.mount()
        frames = 0
        try:
            with self.keyboard_factory() as keyboard, Live(
                self.render(),
                console=self.console,
                refresh_per_second=self.refresh_per_second,
                screen=not self.compact,
            ) as live:
                while max_frames is None or frames < max_frames:
                    frames += 1
                    key = keyboard.get_key()
                    if key is not None and not self.handle_key(key):
                        return "quit"

                    # Picks up pause/resume/reset done by another process
                    self.engine.ensure_ticking_if_needed()
                    self.engine.scheduler.run_pending()
                    live.update(self.render())

                    if self._completed and exit_on_complete:
                        return "completed"
                    self.sleep(self.frame_delay())
                return "quit"
        except KeyboardInterrupt:
            return "interrupted"
        finally:
            self.unmount()

    def frame_delay(self) -> float:
        """Seconds until the next redraw: the frame rate, or sooner if a tick is due."""
        delay = 1 / self.refresh_per_second
        due = self.engine.scheduler.seconds_until_next()
        if due is not None:
            delay = min(delay, due)
        return delay
