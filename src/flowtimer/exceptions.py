"""Application errors carrying a semantic exit code."""

from flowtimer.utils.exit_codes import (
    ERROR_GENERAL,
    ERROR_STORAGE,
    ERROR_UNKNOWN_COMMAND,
)


class AppError(Exception):
    """Custom application error with exit code."""

    def __init__(self, message: str, exit_code: int = ERROR_GENERAL):
        super().__init__(message)
        self.exit_code = exit_code


class UnknownCommandError(AppError):
    """Raised when a command name is not part of the timer protocol."""

    def __init__(self, name: str):
        super().__init__(f"Unknown command: {name!r}", exit_code=ERROR_UNKNOWN_COMMAND)
        self.name = name


class StorageError(AppError):
    """Raised when the state store cannot be read or written at all."""

    def __init__(self, message: str):
        super().__init__(message, exit_code=ERROR_STORAGE)
