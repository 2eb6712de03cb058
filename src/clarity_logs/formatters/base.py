"""Formatter interface."""

from __future__ import annotations

from typing import Protocol

from ..core.models import LogEntry


class Formatter(Protocol):
    """Render a LogEntry for display or export."""

    def format(self, entry: LogEntry) -> str:
        """Return the display string for one entry (no trailing newline)."""
        ...
