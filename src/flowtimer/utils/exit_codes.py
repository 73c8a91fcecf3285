"""
Exit codes for the Flow timer CLI.

Semantic exit codes so scripts wrapping the CLI can tell what happened.
"""

# Success
SUCCESS = 0

# General error (unspecified)
ERROR_GENERAL = 1

# Invalid arguments or validation error
ERROR_INVALID_ARGS = 2

# Command name not part of the timer protocol
ERROR_UNKNOWN_COMMAND = 3

# State store could not be opened, read or written
ERROR_STORAGE = 4


def get_exit_code_name(code: int) -> str:
    """Get the name of an exit code for display purposes."""
    code_names = {
        SUCCESS: "SUCCESS",
        ERROR_GENERAL: "ERROR_GENERAL",
        ERROR_INVALID_ARGS: "ERROR_INVALID_ARGS",
        ERROR_UNKNOWN_COMMAND: "ERROR_UNKNOWN_COMMAND",
        ERROR_STORAGE: "ERROR_STORAGE",
    }
    return code_names.get(code, f"UNKNOWN({code})")
