from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path
from typing import Any

import pytest

from clarity_logs.core.codec import KeyRing
from clarity_logs.core.manager import LogManager
from clarity_logs.core.models import LogEntry, LogLevel, RotationConfig
from clarity_logs.core.rotator import LogRotator

BASE_TS = datetime(2025, 1, 1, 12, 0, 0, tzinfo=UTC)


class FakeClock:
    """Settable clock injected into LogRotator."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(BASE_TS)


@pytest.fixture
def log_dir(tmp_path: Path) -> Path:
    return tmp_path / "logs"


@pytest.fixture
def make_entry() -> Callable[..., LogEntry]:
    counter = {"n": 0}

    def _make(
        message: str = "hello",
        *args: Any,
        level: LogLevel = LogLevel.INFO,
        name: str = "app",
        timestamp: datetime | None = None,
    ) -> LogEntry:
        if timestamp is None:
            timestamp = BASE_TS + timedelta(seconds=counter["n"])
            counter["n"] += 1
        return LogEntry(timestamp=timestamp, level=level, name=name, message=message, args=args)

    return _make


@pytest.fixture
def make_rotator(log_dir: Path, clock: FakeClock) -> Callable[..., LogRotator]:
    def _make(
        config: RotationConfig | None = None,
        *,
        base_name: str = "app",
        key_ring: KeyRing | None = None,
    ) -> LogRotator:
        return LogRotator(log_dir, base_name, config, key_ring=key_ring, clock=clock)

    return _make


@pytest.fixture
def make_manager(make_rotator) -> Callable[..., LogManager]:
    def _make(config: RotationConfig | None = None, *, cache_size: int = 1000) -> LogManager:
        return LogManager(make_rotator(config), cache_size=cache_size)

    return _make
