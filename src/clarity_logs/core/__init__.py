"""Rotation core: policy, naming, codecs, retention, rotator and manager."""

from __future__ import annotations

from .codec import AesGcmCodec, Codec, CodecError, GzipCodec, KeyRing
from .manager import LogManager
from .models import Frequency, LogEntry, LogFilter, LogLevel, RotationConfig
from .naming import RotatedFileNamer
from .policy import RotationPolicy
from .retention import RetentionEnforcer
from .rotator import LogRotator

__all__ = [
    "AesGcmCodec",
    "Codec",
    "CodecError",
    "Frequency",
    "GzipCodec",
    "KeyRing",
    "LogEntry",
    "LogFilter",
    "LogLevel",
    "LogManager",
    "LogRotator",
    "RetentionEnforcer",
    "RotatedFileNamer",
    "RotationConfig",
    "RotationPolicy",
]
