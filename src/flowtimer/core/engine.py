"""Phase/session state machine for the focus/break timer.

The engine is pure: every method takes the current snapshot plus the wall
clock and returns a ``Transition`` describing the next snapshot, the history
entries to append and the side effects to run. Persisting and running those
effects is the router's job.

States:
    Idle(phase, remainingTime)  - isRunning is False
    Armed(phase, targetTime)    - isRunning is True
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from flowtimer.constants import (
    BREAK_DONE_MESSAGE,
    FOCUS_DONE_MESSAGE,
    TIMER_WAKE_NAME,
)
from flowtimer.models.commands import Command, CommandName
from flowtimer.models.config_models import PhasePolicy
from flowtimer.models.timer import HistoryEntry, Phase, TimerSettings, TimerSnapshot
from flowtimer.utils.clock import ms_to_iso
from flowtimer.utils.logger import get_logger


@dataclass(frozen=True)
class ScheduleWake:
    """Arm (or replace) the named wake at ``when`` (epoch ms)."""

    name: str
    when: int


@dataclass(frozen=True)
class CancelWake:
    """Drop the named wake if pending."""

    name: str


@dataclass(frozen=True)
class PhaseCompleted:
    """User-facing notification for a finished phase."""

    finished_phase: Phase
    message: str


Effect = Union[ScheduleWake, CancelWake, PhaseCompleted]


@dataclass
class Transition:
    """Result of applying a command or a wake to a snapshot."""

    snapshot: TimerSnapshot
    changed: bool = False
    history: list[HistoryEntry] = field(default_factory=list)
    effects: list[Effect] = field(default_factory=list)

    def then(self, other: Transition) -> Transition:
        """Chain *other* after this transition."""
        return Transition(
            snapshot=other.snapshot,
            changed=self.changed or other.changed,
            history=self.history + other.history,
            effects=self.effects + other.effects,
        )

    @property
    def notifications(self) -> list[PhaseCompleted]:
        return [e for e in self.effects if isinstance(e, PhaseCompleted)]


class TimerEngine:
    """Computes timer transitions for commands and scheduler wakes."""

    def __init__(
        self,
        policy: PhasePolicy = "auto_continue",
        wake_name: str = TIMER_WAKE_NAME,
    ):
        self.policy = policy
        self.wake_name = wake_name
        self.logger = get_logger("engine")
        self._handlers = {
            CommandName.START: self.start,
            CommandName.STOP: self.stop,
            CommandName.RESET: self.reset,
            CommandName.UPDATE_SETTINGS: self.update_settings,
            CommandName.GET_STATUS: self.get_status,
        }

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def apply(self, snapshot: TimerSnapshot, command: Command, now: int) -> Transition:
        """Apply *command*, first completing an interval whose deadline passed.

        GET_STATUS is a pure read and never completes anything; callers derive
        the live remaining time from ``targetTime``.
        """
        if command.name is CommandName.GET_STATUS:
            return self.get_status(snapshot, now)
        caught_up = self.reconcile(snapshot, now)
        handler = self._handlers[command.name]
        if command.name is CommandName.UPDATE_SETTINGS:
            result = handler(caught_up.snapshot, now, command.payload)
        else:
            result = handler(caught_up.snapshot, now)
        return caught_up.then(result)

    def handle_wake(self, snapshot: TimerSnapshot, name: str, now: int) -> Transition:
        """Process a scheduler wake, ignoring wakes that lost a race."""
        if name != self.wake_name:
            self.logger.debug("ignoring wake %r: not the timer wake", name)
            return Transition(snapshot)
        if not snapshot.is_armed:
            self.logger.debug("ignoring stale wake: timer is not running")
            return Transition(snapshot)
        if snapshot.target_time > now:
            # Fired early or for an older deadline; keep the current one armed
            self.logger.debug("wake before deadline, re-arming at %s", snapshot.target_time)
            return Transition(
                snapshot, effects=[ScheduleWake(self.wake_name, snapshot.target_time)]
            )
        return self.complete(snapshot, now)

    def reconcile(self, snapshot: TimerSnapshot, now: int) -> Transition:
        """Complete the running interval if its deadline has passed.

        At most one phase completes, stamped at *now*; intervals that would
        have elapsed while nothing was watching are not replayed.
        """
        if snapshot.is_armed and snapshot.target_time <= now:
            return self.complete(snapshot, now)
        return Transition(snapshot)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def start(self, snapshot: TimerSnapshot, now: int) -> Transition:
        if snapshot.is_running:
            return Transition(snapshot)

        remaining = snapshot.remaining_time
        if remaining <= 0:
            remaining = snapshot.settings.duration_ms(snapshot.phase)
        target = now + remaining

        self.logger.info(
            "timer started: phase=%s session=%d target=%d",
            snapshot.phase,
            snapshot.session_count,
            target,
        )
        new = snapshot.model_copy(
            update={"is_running": True, "target_time": target, "remaining_time": remaining}
        )
        return Transition(new, changed=True, effects=[ScheduleWake(self.wake_name, target)])

    def stop(self, snapshot: TimerSnapshot, now: int) -> Transition:
        if not snapshot.is_armed:
            return Transition(snapshot)

        remaining = max(0, snapshot.target_time - now)
        self.logger.info("timer paused: phase=%s remaining=%dms", snapshot.phase, remaining)
        new = snapshot.model_copy(
            update={"is_running": False, "target_time": None, "remaining_time": remaining}
        )
        return Transition(new, changed=True, effects=[CancelWake(self.wake_name)])

    def reset(self, snapshot: TimerSnapshot, now: int) -> Transition:
        self.logger.info("timer reset")
        new = TimerSnapshot.default(snapshot.settings)
        return Transition(new, changed=True, effects=[CancelWake(self.wake_name)])

    def update_settings(
        self, snapshot: TimerSnapshot, now: int, payload: dict[str, Any] | None = None
    ) -> Transition:
        settings = TimerSettings.from_payload(payload, snapshot.settings)
        update: dict[str, Any] = {
            "settings": settings,
            "session_count": min(snapshot.session_count, settings.sessions),
        }
        # An armed interval keeps its deadline; only idle time is resized
        if not snapshot.is_running:
            update["remaining_time"] = settings.duration_ms(snapshot.phase)

        self.logger.info(
            "settings updated: focus=%d break=%d sessions=%d",
            settings.focus,
            settings.break_,
            settings.sessions,
        )
        return Transition(snapshot.model_copy(update=update), changed=True)

    def get_status(self, snapshot: TimerSnapshot, now: int) -> Transition:
        return Transition(snapshot)

    # ------------------------------------------------------------------
    # Completion
    # ------------------------------------------------------------------

    def complete(self, snapshot: TimerSnapshot, now: int) -> Transition:
        """Finish the current phase at *now* and move to the next."""
        settings = snapshot.settings
        was_focus = snapshot.phase == "focus"

        history = []
        if was_focus:
            history.append(
                HistoryEntry(date=ms_to_iso(now), duration_minutes=settings.focus)
            )

        next_phase: Phase = "break" if was_focus else "focus"
        session_count = snapshot.session_count
        if not was_focus:
            session_count += 1
            if session_count > settings.sessions:
                session_count = 1

        remaining = settings.duration_ms(next_phase)
        effects: list[Effect] = []
        if self.policy == "auto_continue":
            target = now + remaining
            update = {"is_running": True, "target_time": target}
            effects.append(ScheduleWake(self.wake_name, target))
        else:
            update = {"is_running": False, "target_time": None}
        update.update(
            {"phase": next_phase, "session_count": session_count, "remaining_time": remaining}
        )

        effects.append(
            PhaseCompleted(
                finished_phase=snapshot.phase,
                message=FOCUS_DONE_MESSAGE if was_focus else BREAK_DONE_MESSAGE,
            )
        )
        self.logger.info(
            "phase completed: %s -> %s session=%d/%d",
            snapshot.phase,
            next_phase,
            session_count,
            settings.sessions,
        )
        return Transition(
            snapshot.model_copy(update=update),
            changed=True,
            history=history,
            effects=effects,
        )
