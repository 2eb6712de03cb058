"""Structured logging with size and schedule based file rotation."""

from __future__ import annotations

from .config import ConfigStore, Settings, build_manager, load_settings
from .core import (
    Frequency,
    KeyRing,
    LogEntry,
    LogFilter,
    LogLevel,
    LogManager,
    LogRotator,
    RotationConfig,
)
from .logger import FingersCrossed, Logger

__all__ = [
    "ConfigStore",
    "Frequency",
    "KeyRing",
    "LogEntry",
    "LogFilter",
    "LogLevel",
    "LogManager",
    "LogRotator",
    "FingersCrossed",
    "Logger",
    "RotationConfig",
    "Settings",
    "build_manager",
    "load_settings",
]
