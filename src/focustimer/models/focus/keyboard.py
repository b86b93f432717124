"""Non-blocking single-key input for the timer surfaces."""

from __future__ import annotations

import sys
from typing import Optional


class KeyboardHandler:
    """Reads single keypresses without blocking.

    Uses cbreak mode on POSIX terminals and ``msvcrt`` on Windows. When stdin
    is not a terminal (pipes, test runners) :meth:`get_key` always returns None.
    """

    def __init__(self):
        self.fd: int | None = None
        self.old_settings = None
        self.msvcrt = None
        self._setup()

    def __enter__(self) -> "KeyboardHandler":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.stop()

    def _setup(self) -> None:
        if not sys.stdin.isatty():
            return
        try:
            import termios
            import tty
        except ImportError:
            try:
                import msvcrt
            except ImportError:
                return
            self.msvcrt = msvcrt
            return

        self.fd = sys.stdin.fileno()
        try:
            self.old_settings = termios.tcgetattr(self.fd)
            tty.setcbreak(self.fd)
        except termios.error:
            self.fd = None
            self.old_settings = None

    def get_key(self) -> Optional[str]:
        """Return the pressed key (lower-cased) or None if nothing is waiting."""
        if self.msvcrt is not None:
            if not self.msvcrt.kbhit():
                return None
            key = self.msvcrt.getch()
            if isinstance(key, bytes):
                key = key.decode("utf-8", errors="ignore")
            return key.lower()

        if self.fd is None:
            return None

        import select

        if select.select([sys.stdin], [], [], 0)[0]:
            return sys.stdin.read(1).lower()
        return None

    def stop(self) -> None:
        """Restore terminal settings."""
        if self.fd is not None and self.old_settings is not None:
            import termios

            termios.tcsetattr(self.fd, termios.TCSADRAIN, self.old_settings)
            self.old_settings = None
