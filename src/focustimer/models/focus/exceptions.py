"""Custom exceptions for the focus timer."""


class FocusTimerError(Exception):
    """Base exception for all focustimer errors."""


class HistoryError(FocusTimerError):
    """Raised when a session record cannot be saved, listed or deleted."""


class RemoteHistoryError(HistoryError):
    """Raised when the remote history service rejects or fails a request."""


class StateStoreError(FocusTimerError):
    """Raised when the persisted timer state cannot be written."""
