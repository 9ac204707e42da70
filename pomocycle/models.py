"""Pydantic models — single source of truth for all data types."""

from __future__ import annotations

import enum
from datetime import timedelta

from pydantic import BaseModel, ConfigDict, Field


class Phase(str, enum.Enum):
    """The interval kinds a session cycles through."""

    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self is not Phase.FOCUS

    @property
    def label(self) -> str:
        return _PHASE_LABELS[self]


_PHASE_LABELS: dict[Phase, str] = {
    Phase.FOCUS: "Focus",
    Phase.SHORT_BREAK: "Short break",
    Phase.LONG_BREAK: "Long break",
}


class TimeUnit(str, enum.Enum):
    """Granularity applied to every configured duration."""

    SECONDS = "seconds"
    MINUTES = "minutes"

    @property
    def seconds(self) -> int:
        return 1 if self is TimeUnit.SECONDS else 60


class SessionConfig(BaseModel):
    """Configuration for one run of the timer. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    rounds: int = Field(default=3, gt=0)
    short: int = Field(default=5, ge=0)
    long: int = Field(default=15, ge=0)
    focus: int = Field(default=25, ge=0)
    auto: bool = False
    unit: TimeUnit = TimeUnit.MINUTES

    @classmethod
    def from_flags(
        cls,
        rounds: int = 3,
        short: int = 5,
        long: int = 15,
        focus: int = 25,
        auto: bool = False,
        seconds: bool = False,
    ) -> SessionConfig:
        """Build a config from command-line style flags."""
        unit = TimeUnit.SECONDS if seconds else TimeUnit.MINUTES
        return cls(rounds=rounds, short=short, long=long, focus=focus, auto=auto, unit=unit)

    def duration_for(self, phase: Phase) -> float:
        """Length of *phase* in seconds."""
        length = {
            Phase.FOCUS: self.focus,
            Phase.SHORT_BREAK: self.short,
            Phase.LONG_BREAK: self.long,
        }[phase]
        return float(length * self.unit.seconds)


class SessionStats(BaseModel):
    """Running totals for a session. Times are seconds on the session clock."""

    model_config = ConfigDict(validate_assignment=True)

    started_at: float = 0.0
    paused_time: float = Field(default=0.0, ge=0)
    focus_time: float = Field(default=0.0, ge=0)
    break_time: float = Field(default=0.0, ge=0)
    completed_rounds: int = Field(default=0, ge=0)


def format_duration(value: timedelta) -> str:
    """Render a duration as H:MM:SS, dropping sub-second noise."""
    total = max(0, int(value.total_seconds()))
    hours, rest = divmod(total, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours}:{minutes:02d}:{seconds:02d}"


class SessionReport(BaseModel):
    """Point-in-time snapshot of a session's statistics."""

    model_config = ConfigDict(frozen=True)

    focus_time: timedelta
    paused_time: timedelta
    break_time: timedelta
    total_time: timedelta
    completed_rounds: int = Field(ge=0)
    phase: Phase
    phase_elapsed: timedelta
    phase_remaining: timedelta
    paused: bool = False
    ended: bool = False

    def lines(self) -> list[str]:
        """One labeled line per statistic."""
        state = self.phase.label
        if self.paused:
            state += " (paused)"
        return [
            f"Time in focus: {format_duration(self.focus_time)}",
            f"Time spent paused: {format_duration(self.paused_time)}",
            f"Time spent in breaks: {format_duration(self.break_time)}",
            f"Total elapsed time: {format_duration(self.total_time)}",
            f"Completed rounds: {self.completed_rounds}",
            f"Current phase: {state}",
        ]

    def __str__(self) -> str:
        return "\n".join(self.lines())


class Command(str, enum.Enum):
    """Interactive commands read one line at a time from the terminal."""

    PROCEED = ""
    PAUSE = "p"
    RESUME = "r"
    STATS = "s"
    QUIT = "q"

    @classmethod
    def parse(cls, line: str) -> Command:
        """Trim and lowercase *line*. Raises ValueError for unknown input."""
        return cls(line.strip().lower())


class AppConfig(BaseModel):
    """Saved defaults for ``start`` (persisted to ~/.config/pomocycle/config.json)."""

    rounds: int = Field(default=3, gt=0)
    short: int = Field(default=5, ge=0)
    long: int = Field(default=15, ge=0)
    focus: int = Field(default=25, ge=0)
    auto: bool = False
    seconds: bool = False
    tick_interval: float = Field(default=1.0, gt=0, le=60)
