"""Shared Rich console for focustimer output."""

from functools import lru_cache

from rich.console import Console


@lru_cache(maxsize=4)
def get_console(highlight: bool = True, color: bool = True) -> Console:
    """Return a cached Console; ``color=False`` disables styling entirely."""
    return Console(highlight=highlight, no_color=not color)
