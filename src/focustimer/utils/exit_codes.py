"""
Exit codes for the focustimer CLI.

Scripts wrapping the CLI can branch on these instead of parsing output.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or an operation not allowed in the current timer state
ERROR_INVALID_ARGS = 2

# Remote history service unreachable or returned an error
ERROR_NETWORK = 4

# Session record or task not found
ERROR_NOT_FOUND = 5


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_NETWORK: "ERROR_NETWORK",
        ERROR_NOT_FOUND: "ERROR_NOT_FOUND",
    }
    return code_names.get(code, f"UNKNOWN({code})")


def get_exit_code_description(code: int) -> str:
    """Get a human-readable description of an exit code."""
    descriptions = {
        SUCCESS: "Command executed successfully",
        ERROR_GENERAL: "A general error occurred",
        ERROR_INVALID_ARGS: "Invalid arguments or timer state",
        ERROR_NETWORK: "History service error - check connection",
        ERROR_NOT_FOUND: "Record not found",
    }
    return descriptions.get(code, "Unknown error")
