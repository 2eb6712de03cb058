"""Rotation decision logic (pure, no I/O)."""

from __future__ import annotations

import calendar
import logging
from datetime import datetime, timedelta

from .models import Frequency, RotationConfig

logger = logging.getLogger(__name__)


def _at_time(day: datetime, *, hour: int, minute: int) -> datetime:
    return day.replace(hour=hour, minute=minute, second=0, microsecond=0)


def _day_of_month(year: int, month: int, day: int) -> int:
    """Clamp a day-of-month to the month's length (e.g. 31 -> 30 in April)."""
    return min(day, calendar.monthrange(year, month)[1])


class RotationPolicy:
    """Decide when a stream should rotate.

    ``next_rotation_time`` is None for size-only streams.
    """

    def __init__(self, config: RotationConfig, *, now: datetime) -> None:
        self._config = config
        self.next_rotation_time: datetime | None = self.compute_next_rotation(now)

    @property
    def config(self) -> RotationConfig:
        return self._config

    def reset(self, now: datetime) -> None:
        self.next_rotation_time = self.compute_next_rotation(now)

    def compute_next_rotation(self, now: datetime) -> datetime | None:
        """Return the next scheduled rotation strictly after ``now``."""
        cfg = self._config
        hour, minute = cfg.rotate_hour, cfg.rotate_minute

        if cfg.frequency == Frequency.DAILY:
            candidate = _at_time(now, hour=hour, minute=minute)
            if candidate <= now:
                candidate += timedelta(days=1)
            return candidate

        if cfg.frequency == Frequency.WEEKLY:
            days_ahead = (cfg.rotate_day_of_week - now.weekday()) % 7
            candidate = _at_time(now, hour=hour, minute=minute) + timedelta(days=days_ahead)
            if candidate <= now:
                candidate += timedelta(days=7)
            return candidate

        if cfg.frequency == Frequency.MONTHLY:
            day = _day_of_month(now.year, now.month, cfg.rotate_day_of_month)
            candidate = _at_time(now.replace(day=day), hour=hour, minute=minute)
            if candidate <= now:
                year, month = (now.year + 1, 1) if now.month == 12 else (now.year, now.month + 1)
                day = _day_of_month(year, month, cfg.rotate_day_of_month)
                candidate = _at_time(
                    now.replace(year=year, month=month, day=day), hour=hour, minute=minute
                )
            return candidate

        return None

    def should_rotate(self, current_size: int, now: datetime) -> bool:
        """Return True when either trigger fires.

        A due time trigger advances ``next_rotation_time`` so the next call
        before the following period does not fire again.
        """
        time_due = False
        if self.next_rotation_time is not None and now >= self.next_rotation_time:
            time_due = True
            self.next_rotation_time = self.compute_next_rotation(now)
            logger.debug(
                "Time-based rotation due (next at %s)", self.next_rotation_time.isoformat()
            )

        size_due = current_size > 0 and current_size >= self._config.max_size
        return time_due or size_due
