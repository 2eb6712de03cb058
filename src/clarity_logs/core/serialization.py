"""JSON-lines wire format for persisted entries."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .models import LogEntry, LogLevel

_JSON_SCALARS = (str, int, float, bool, type(None))


class LogRecord(BaseModel):
    """Schema of one persisted line."""

    model_config = ConfigDict(extra="ignore")

    timestamp: datetime = Field(description="ISO-8601 instant the entry was created.")
    level: LogLevel
    name: str = Field(description="Logical source, e.g. 'parser:lexer'.")
    message: str
    args: list[Any] | None = Field(default=None, description="Positional format arguments.")


def _jsonable(value: Any) -> Any:
    if isinstance(value, _JSON_SCALARS):
        return value
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, dict):
        return {str(k): _jsonable(v) for k, v in value.items()}
    return str(value)


def _ensure_aware(ts: datetime) -> datetime:
    if ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


def entry_to_record(entry: LogEntry) -> LogRecord:
    return LogRecord(
        timestamp=_ensure_aware(entry.timestamp),
        level=entry.level,
        name=entry.name,
        message=entry.message,
        args=[_jsonable(a) for a in entry.args] if entry.args else None,
    )


def record_to_entry(record: LogRecord) -> LogEntry:
    return LogEntry(
        timestamp=_ensure_aware(record.timestamp),
        level=record.level,
        name=record.name,
        message=record.message,
        args=tuple(record.args) if record.args else (),
    )


def serialize_entry(entry: LogEntry) -> str:
    """Serialize an entry as one newline-terminated JSON line."""
    return entry_to_record(entry).model_dump_json(exclude_none=True) + "\n"


def parse_line(line: str) -> LogEntry | None:
    """Parse one persisted line; None for blank or malformed input."""
    s = line.strip()
    if not s:
        return None
    try:
        record = LogRecord.model_validate_json(s)
    except ValidationError:
        return None
    return record_to_entry(record)
