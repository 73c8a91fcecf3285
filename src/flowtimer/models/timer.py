"""Timer snapshot, settings and history entry models.

The snapshot is the only persisted timer entity. Field aliases match the
persisted JSON layout exactly (``isRunning``, ``targetTime`` ...), so a
snapshot round-trips through ``to_dict``/``from_dict`` unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from flowtimer.constants import (
    BREAK_MINUTES_RANGE,
    DEFAULT_BREAK_MINUTES,
    DEFAULT_FOCUS_MINUTES,
    DEFAULT_TOTAL_SESSIONS,
    FOCUS_MINUTES_RANGE,
    MS_PER_MINUTE,
    SESSIONS_RANGE,
)

Phase = Literal["focus", "break"]


def clamp(value: int, bounds: tuple[int, int]) -> int:
    """Clamp *value* into the inclusive *bounds*."""
    low, high = bounds
    return min(high, max(low, value))


def _coerce_int(value: Any, fallback: int) -> int:
    if isinstance(value, bool):
        return fallback
    try:
        return int(value)
    except (TypeError, ValueError):
        return fallback


class TimerSettings(BaseModel):
    """User-configurable durations (minutes) and session count."""

    model_config = ConfigDict(populate_by_name=True)

    focus: int = Field(default=DEFAULT_FOCUS_MINUTES)
    break_: int = Field(default=DEFAULT_BREAK_MINUTES, alias="break")
    sessions: int = Field(default=DEFAULT_TOTAL_SESSIONS)

    @field_validator("focus")
    @classmethod
    def _clamp_focus(cls, v: int) -> int:
        return clamp(v, FOCUS_MINUTES_RANGE)

    @field_validator("break_")
    @classmethod
    def _clamp_break(cls, v: int) -> int:
        return clamp(v, BREAK_MINUTES_RANGE)

    @field_validator("sessions")
    @classmethod
    def _clamp_sessions(cls, v: int) -> int:
        return clamp(v, SESSIONS_RANGE)

    @classmethod
    def from_payload(
        cls, payload: dict[str, Any] | None, current: TimerSettings
    ) -> TimerSettings:
        """Build settings from an UPDATE_SETTINGS payload.

        Out-of-range values are clamped; missing or non-numeric values keep
        the current setting.
        """
        payload = payload or {}
        return cls(
            focus=_coerce_int(payload.get("focus"), current.focus),
            break_=_coerce_int(payload.get("break"), current.break_),
            sessions=_coerce_int(payload.get("sessions"), current.sessions),
        )

    def minutes_for(self, phase: Phase) -> int:
        """Configured length of *phase* in minutes."""
        return self.focus if phase == "focus" else self.break_

    def duration_ms(self, phase: Phase) -> int:
        """Configured length of *phase* in milliseconds."""
        return self.minutes_for(phase) * MS_PER_MINUTE


class TimerSnapshot(BaseModel):
    """Complete persisted timer state at a point in time."""

    model_config = ConfigDict(populate_by_name=True)

    is_running: bool = Field(default=False, alias="isRunning")
    target_time: int | None = Field(default=None, alias="targetTime")
    remaining_time: int = Field(
        default=DEFAULT_FOCUS_MINUTES * MS_PER_MINUTE, alias="remainingTime"
    )
    phase: Phase = "focus"
    session_count: int = Field(default=1, alias="sessionCount")
    settings: TimerSettings = Field(default_factory=TimerSettings)

    @field_validator("remaining_time")
    @classmethod
    def _non_negative_remaining(cls, v: int) -> int:
        return max(0, v)

    @model_validator(mode="after")
    def _check_invariants(self) -> TimerSnapshot:
        if self.is_running != (self.target_time is not None):
            raise ValueError("isRunning must be true exactly when targetTime is set")
        self.session_count = clamp(self.session_count, (1, self.settings.sessions))
        return self

    @classmethod
    def default(cls, settings: TimerSettings | None = None) -> TimerSnapshot:
        """Idle focus snapshot at session 1 for *settings* (defaults if omitted)."""
        settings = settings or TimerSettings()
        return cls(
            remaining_time=settings.duration_ms("focus"),
            settings=settings,
        )

    @property
    def is_armed(self) -> bool:
        return self.is_running and self.target_time is not None

    def display_remaining(self, now: int) -> int:
        """Live time left in ms: derived from the deadline while armed."""
        if self.is_armed:
            return max(0, self.target_time - now)
        return self.remaining_time

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted (camelCase) dictionary."""
        return self.model_dump(by_alias=True)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TimerSnapshot:
        """Create from the persisted dictionary. Raises ValidationError if corrupt."""
        return cls.model_validate(data)


@dataclass(frozen=True)
class HistoryEntry:
    """One completed focus interval."""

    date: str  # ISO 8601
    duration_minutes: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {"date": self.date, "durationMinutes": self.duration_minutes}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> HistoryEntry:
        """Create from dictionary."""
        return cls(date=str(data["date"]), duration_minutes=int(data["durationMinutes"]))
