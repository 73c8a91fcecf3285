"""Configuration models for the Flow timer."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator

PhasePolicy = Literal["auto_continue", "auto_pause"]


class StorageConfig(BaseModel):
    """State store configuration."""

    db_path: str | None = Field(
        default=None, description="SQLite file; defaults to the user data dir"
    )


class TimerConfig(BaseModel):
    """Timer engine configuration."""

    phase_policy: PhasePolicy = Field(
        default="auto_continue",
        description="Arm the next phase automatically or pause after each phase",
    )
    poll_interval: float = Field(
        default=1.0, description="Seconds between wake checks in `flow run`"
    )

    @field_validator("poll_interval")
    @classmethod
    def validate_poll_interval(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("poll_interval must be positive")
        return v


class NotificationConfig(BaseModel):
    """Phase-end notification configuration."""

    enabled: bool = Field(default=True)
    bell: bool = Field(default=True)


class OutputConfig(BaseModel):
    """Output configuration."""

    format: Literal["pretty", "json"] = Field(default="pretty")


class AppConfig(BaseModel):
    """Main Flow timer configuration."""

    storage: StorageConfig = Field(default_factory=StorageConfig)
    timer: TimerConfig = Field(default_factory=TimerConfig)
    notifications: NotificationConfig = Field(default_factory=NotificationConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
