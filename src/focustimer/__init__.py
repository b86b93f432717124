"""focustimer - a focus timer engine with a terminal dashboard."""

__version__ = "0.3.0"
