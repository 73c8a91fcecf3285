"""Flow timer domain models.

Pydantic models for the persisted snapshot and configuration, plus the
command protocol types.
"""

from .commands import COMMAND_ALIASES, Command, CommandName
from .config_models import AppConfig, PhasePolicy
from .timer import HistoryEntry, Phase, TimerSettings, TimerSnapshot

__all__ = [
    "AppConfig",
    "COMMAND_ALIASES",
    "Command",
    "CommandName",
    "HistoryEntry",
    "Phase",
    "PhasePolicy",
    "TimerSettings",
    "TimerSnapshot",
]
