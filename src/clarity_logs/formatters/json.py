"""JSON formatter (same shape as the persisted record)."""

from __future__ import annotations

import json
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any

from ..core.models import LogEntry
from ..core.serialization import entry_to_record


def entry_to_dict(entry: LogEntry) -> dict[str, Any]:
    """Convert a LogEntry into a JSON-serializable dict."""
    return entry_to_record(entry).model_dump(mode="json", exclude_none=True)


@dataclass(frozen=True, slots=True)
class JsonFormatter:
    """One compact JSON object per entry."""

    def format(self, entry: LogEntry) -> str:
        return json.dumps(entry_to_dict(entry), ensure_ascii=False)

    def format_many(self, entries: Iterable[LogEntry]) -> str:
        """Pretty JSON array, used for exports."""
        return json.dumps([entry_to_dict(e) for e in entries], indent=2, ensure_ascii=False)
