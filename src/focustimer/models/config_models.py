"""Configuration models for focustimer.

All settings live in a single ``config.json`` managed by
:class:`focustimer.services.config_service.ConfigService`.
"""

from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

MIN_DURATION = 1
MAX_DURATION = 180


class TimerConfig(BaseModel):
    """Countdown engine settings."""

    default_duration: int = Field(default=25, description="Minutes for a new session")
    sound_enabled: bool = Field(default=True)
    anchor_to_wall_clock: bool = Field(
        default=True,
        description="Derive remaining time from elapsed wall-clock time on each tick",
    )
    tick_interval: float = Field(default=1.0, gt=0)
    host_title: str = Field(default="focustimer")
    refresh_per_second: int = Field(default=4, ge=1)

    @field_validator("default_duration")
    @classmethod
    def clamp_duration(cls, v: int) -> int:
        """Keep the default inside the range the engine accepts."""
        return max(MIN_DURATION, min(MAX_DURATION, v))


class HistoryConfig(BaseModel):
    """Session history settings."""

    local_limit: int = Field(default=10, ge=1)
    retention_ratio: float = Field(default=0.5, ge=0.0, le=1.0)


class APIConfig(BaseModel):
    """Remote history service configuration."""

    endpoint: str | None = Field(default=None, description="REST base URL")
    key: str | None = Field(default=None, description="Service API key")
    timeout: int = Field(default=30)
    retry: int = Field(default=3)

    @property
    def enabled(self) -> bool:
        return bool(self.endpoint)


class OutputConfig(BaseModel):
    """Output configuration."""

    color: bool = Field(default=True)


class AppConfig(BaseModel):
    """Main focustimer configuration"""

    timer: TimerConfig = Field(default_factory=TimerConfig)
    history: HistoryConfig = Field(default_factory=HistoryConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
