"""Leveled logger facade that feeds a LogManager."""

from __future__ import annotations

import sys
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, TextIO

from .core.manager import LogManager
from .core.models import LogEntry, LogLevel
from .formatters import Formatter, TextFormatter


@dataclass(frozen=True, slots=True)
class FingersCrossed:
    """Hold entries in memory until one at ``activation_level`` or above arrives.

    On activation the buffered entries are persisted in order, followed by the
    triggering entry. With ``stop_buffering`` the logger then passes every
    entry straight through; otherwise it starts buffering again. Only the
    newest ``buffer_size`` entries are held.
    """

    activation_level: LogLevel = LogLevel.ERROR
    buffer_size: int = 50
    stop_buffering: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "activation_level", LogLevel(self.activation_level))
        if self.buffer_size < 1:
            raise ValueError("buffer_size must be >= 1")


class Logger:
    """Create entries for one named source and persist them.

    Entries below ``level`` are dropped. With ``fingers_crossed`` the rest are
    buffered until an activating entry arrives (see ``FingersCrossed``). With ``echo`` each entry is also
    printed through ``formatter`` to ``stream`` (default: stdout, or stderr
    for warnings and errors). Persisting failures propagate to the caller.

    Example::

        log = Logger("parser", manager)
        await log.info("parsed %d tokens", 42)
        await log.extend("lexer").debug("state=%s", "start")
    """

    def __init__(
        self,
        name: str,
        manager: LogManager,
        *,
        level: LogLevel | str = LogLevel.INFO,
        formatter: Formatter | None = None,
        echo: bool = False,
        stream: TextIO | None = None,
        fingers_crossed: FingersCrossed | None = None,
    ) -> None:
        self.name = name
        self.manager = manager
        self.level = LogLevel(level)
        self.formatter = formatter or TextFormatter()
        self.echo = echo
        self.stream = stream
        self.fingers_crossed = fingers_crossed
        maxlen = fingers_crossed.buffer_size if fingers_crossed else None
        self._buffer: deque[LogEntry] = deque(maxlen=maxlen)
        self._activated = False

    def extend(self, domain: str) -> Logger:
        """Child logger named ``{name}:{domain}`` sharing manager and settings."""
        return Logger(
            f"{self.name}:{domain}",
            self.manager,
            level=self.level,
            formatter=self.formatter,
            echo=self.echo,
            stream=self.stream,
            fingers_crossed=self.fingers_crossed,
        )

    def is_enabled_for(self, level: LogLevel) -> bool:
        return level.severity >= self.level.severity

    @property
    def buffered_entries(self) -> list[LogEntry]:
        return list(self._buffer)

    async def flush_buffer(self) -> int:
        """Persist every buffered entry now. Returns how many were written."""
        count = 0
        while self._buffer:
            await self._emit(self._buffer.popleft())
            count += 1
        return count

    async def _emit(self, entry: LogEntry) -> None:
        if self.echo:
            print(self.formatter.format(entry), file=self.stream or console_stream(entry.level))
        await self.manager.add_entry(entry)

    async def log(self, level: LogLevel | str, message: Any, *args: Any) -> LogEntry | None:
        level = LogLevel(level)
        if not self.is_enabled_for(level):
            return None

        entry = LogEntry(
            timestamp=datetime.now(UTC),
            level=level,
            name=self.name,
            message=message if isinstance(message, str) else str(message),
            args=args,
        )
        fc = self.fingers_crossed
        if fc is None or self._activated:
            await self._emit(entry)
            return entry

        if level.severity < fc.activation_level.severity:
            # The deque drops the oldest entry once full.
            self._buffer.append(entry)
            return entry

        await self.flush_buffer()
        await self._emit(entry)
        self._activated = fc.stop_buffering
        return entry

    async def debug(self, message: Any, *args: Any) -> LogEntry | None:
        return await self.log(LogLevel.DEBUG, message, *args)

    async def info(self, message: Any, *args: Any) -> LogEntry | None:
        return await self.log(LogLevel.INFO, message, *args)

    async def success(self, message: Any, *args: Any) -> LogEntry | None:
        return await self.log(LogLevel.SUCCESS, message, *args)

    async def warning(self, message: Any, *args: Any) -> LogEntry | None:
        return await self.log(LogLevel.WARNING, message, *args)

    async def error(self, message: Any, *args: Any) -> LogEntry | None:
        return await self.log(LogLevel.ERROR, message, *args)


def console_stream(level: LogLevel) -> TextIO:
    """stderr for warnings and errors, stdout otherwise."""
    return sys.stderr if level.severity >= LogLevel.WARNING.severity else sys.stdout
