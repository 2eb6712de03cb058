"""Plain-text formatter."""

from __future__ import annotations

from dataclasses import dataclass

from ..core.models import LogEntry


@dataclass(frozen=True, slots=True)
class TextFormatter:
    """``{timestamp} [{name}] {LEVEL}: {message}``."""

    timestamps: bool = True

    def format(self, entry: LogEntry) -> str:
        line = f"[{entry.name}] {entry.level.value.upper()}: {entry.render()}"
        if self.timestamps:
            return f"{entry.timestamp.isoformat()} {line}"
        return line
