"""Timer command protocol."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from flowtimer.exceptions import UnknownCommandError


class CommandName(str, Enum):
    """Every command the timer understands."""

    START = "START"
    STOP = "STOP"
    RESET = "RESET"
    UPDATE_SETTINGS = "UPDATE_SETTINGS"
    GET_STATUS = "GET_STATUS"


# Verbs some callers use for an existing command
COMMAND_ALIASES = {
    "PAUSE": CommandName.STOP,
}


@dataclass(frozen=True)
class Command:
    """A parsed command with its optional payload."""

    name: CommandName
    payload: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def parse(cls, action: str | CommandName, payload: dict[str, Any] | None = None) -> Command:
        """Normalize a command name (case, aliases) and attach *payload*.

        Raises:
            UnknownCommandError: If *action* is not a timer command.
        """
        if isinstance(action, CommandName):
            return cls(name=action, payload=dict(payload or {}))

        key = str(action).strip().upper()
        if key in COMMAND_ALIASES:
            name = COMMAND_ALIASES[key]
        else:
            try:
                name = CommandName(key)
            except ValueError as e:
                raise UnknownCommandError(str(action)) from e
        return cls(name=name, payload=dict(payload or {}))

    @classmethod
    def from_message(cls, message: dict[str, Any]) -> Command:
        """Parse a ``{"action": ..., "payload": ...}`` protocol message."""
        action = message.get("action")
        if not isinstance(action, (str, CommandName)):
            raise UnknownCommandError(repr(action))
        return cls.parse(action, message.get("payload"))
