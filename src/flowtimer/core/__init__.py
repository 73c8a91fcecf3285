"""Timer engine and wake scheduling."""

from .engine import CancelWake, PhaseCompleted, ScheduleWake, TimerEngine, Transition
from .scheduler import Scheduler, StoreScheduler, WakeDispatcher

__all__ = [
    "CancelWake",
    "PhaseCompleted",
    "ScheduleWake",
    "Scheduler",
    "StoreScheduler",
    "TimerEngine",
    "Transition",
    "WakeDispatcher",
]
