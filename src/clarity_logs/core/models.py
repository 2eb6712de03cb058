"""Core data models for structured logging and rotation."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class LogLevel(str, Enum):
    """Severity levels, lowest first."""

    DEBUG = "debug"
    INFO = "info"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"

    @property
    def severity(self) -> int:
        return _SEVERITY[self]


_SEVERITY = {
    LogLevel.DEBUG: 0,
    LogLevel.INFO: 1,
    LogLevel.SUCCESS: 2,
    LogLevel.WARNING: 3,
    LogLevel.ERROR: 4,
}


class Frequency(str, Enum):
    """Time-based rotation trigger."""

    NONE = "none"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


@dataclass(frozen=True, slots=True)
class LogEntry:
    """One logged event. Serialized as a single JSON line when persisted."""

    timestamp: datetime
    level: LogLevel
    name: str
    message: str
    args: tuple[Any, ...] = ()

    def render(self) -> str:
        """Return the message with positional args substituted."""
        if not self.args:
            return self.message
        try:
            return self.message % self.args
        except (TypeError, ValueError):
            # Placeholders don't line up with args: append them console-style.
            return " ".join([self.message, *(str(a) for a in self.args)])


@dataclass(frozen=True, slots=True)
class RotationConfig:
    """Rotation policy for one log stream (one base filename).

    Size and time triggers combine with OR: whichever fires first rotates.
    """

    max_size: int = 10 * 1024 * 1024
    max_files: int = 5
    compress: bool = True
    frequency: Frequency = Frequency.NONE
    rotate_hour: int = 0
    rotate_minute: int = 0
    rotate_day_of_week: int = 6  # 0=Monday .. 6=Sunday
    rotate_day_of_month: int = 1
    encrypt: bool = False

    def __post_init__(self) -> None:
        try:
            frequency = Frequency(self.frequency)
        except ValueError as exc:
            allowed = ", ".join(f.value for f in Frequency)
            raise ValueError(
                f"Invalid rotation frequency '{self.frequency}'. Allowed: {allowed}"
            ) from exc
        object.__setattr__(self, "frequency", frequency)

        if self.max_files < 1:
            raise ValueError("max_files must be >= 1")
        if self.max_size < 1:
            raise ValueError("max_size must be >= 1")
        if not 0 <= self.rotate_hour <= 23:
            raise ValueError("rotate_hour must be within 0..23")
        if not 0 <= self.rotate_minute <= 59:
            raise ValueError("rotate_minute must be within 0..59")
        if not 0 <= self.rotate_day_of_week <= 6:
            raise ValueError("rotate_day_of_week must be within 0..6 (Monday=0)")
        if not 1 <= self.rotate_day_of_month <= 31:
            raise ValueError("rotate_day_of_month must be within 1..31")


@dataclass(frozen=True, slots=True)
class LogFilter:
    """Query options shared by get/search/clear.

    level: exact severity match.
    name: glob over the logger name, ``*`` matches any run of characters.
    start/end: inclusive timestamp bounds (naive values are treated as UTC).
    limit: keep only the most recent N entries after the other filters.
    """

    level: LogLevel | None = None
    name: str | None = None
    start: datetime | None = None
    end: datetime | None = None
    limit: int | None = None

    def __post_init__(self) -> None:
        if self.level is not None:
            object.__setattr__(self, "level", LogLevel(self.level))
        if self.limit is not None and self.limit < 0:
            raise ValueError("limit must be >= 0")

    @property
    def has_time_range(self) -> bool:
        return self.start is not None or self.end is not None

    @property
    def is_empty(self) -> bool:
        return self.level is None and self.name is None and not self.has_time_range

