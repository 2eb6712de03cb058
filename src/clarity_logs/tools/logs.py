"""MCP tool implementations.

This module contains the *implementation* behind the exposed MCP tools.
Keep this layer thin: validate inputs, translate them into manager calls, and
return JSON-serializable data structures.
"""

from __future__ import annotations

from typing import Any

from clarity_logs.core.manager import LogManager
from clarity_logs.core.models import LogEntry, LogFilter, LogLevel
from clarity_logs.core.time_window import resolve_time_window
from clarity_logs.formatters import entry_to_dict

DEFAULT_LIMIT = 200
HARD_LIMIT = 5000


def _parse_level(level: str | None) -> LogLevel | None:
    """Parse a user-supplied level name (case-insensitive)."""
    if level is None or not level.strip():
        return None
    try:
        return LogLevel(level.strip().lower())
    except ValueError as e:
        valid = ", ".join(lv.value for lv in LogLevel)
        raise ValueError(f"Unknown log level '{level}'. Valid values: {valid}.") from e


def _effective_limit(limit: int | None) -> int:
    if limit is None:
        return DEFAULT_LIMIT
    if limit <= 0:
        raise ValueError("limit must be > 0")
    return min(limit, HARD_LIMIT)


def _build_filter(
    *,
    level: str | None,
    name: str | None,
    since: str | None,
    until: str | None,
    date: str | None,
    hour: str | None,
    week: str | None,
    month: str | None,
    limit: int | None,
    hours_lookback: int | None = None,
) -> LogFilter:
    start, end = resolve_time_window(
        since=since,
        until=until,
        date_=date,
        hour=hour,
        week=week,
        month=month,
        hours_lookback=hours_lookback,
    )
    return LogFilter(level=_parse_level(level), name=name, start=start, end=end, limit=limit)


def _result(entries: list[LogEntry]) -> dict[str, Any]:
    return {"count": len(entries), "entries": [entry_to_dict(e) for e in entries]}


async def get_logs_impl(
    manager: LogManager,
    *,
    level: str | None = None,
    name: str | None = None,
    since: str | None = None,
    until: str | None = None,
    date: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    hours_lookback: int | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `get_logs` MCP tool (newest `limit` entries, oldest first)."""
    flt = _build_filter(
        level=level,
        name=name,
        since=since,
        until=until,
        date=date,
        hour=hour,
        week=week,
        month=month,
        hours_lookback=hours_lookback,
        limit=_effective_limit(limit),
    )
    return _result(await manager.get_logs(flt))


async def search_logs_impl(
    manager: LogManager,
    *,
    pattern: str,
    case_sensitive: bool = False,
    level: str | None = None,
    name: str | None = None,
    since: str | None = None,
    until: str | None = None,
    hours_lookback: int | None = None,
    limit: int | None = None,
) -> dict[str, Any]:
    """Implementation for the `search_logs` MCP tool."""
    if not pattern:
        raise ValueError("pattern must not be empty")
    flt = _build_filter(
        level=level,
        name=name,
        since=since,
        until=until,
        date=None,
        hour=None,
        week=None,
        month=None,
        hours_lookback=hours_lookback,
        limit=_effective_limit(limit),
    )
    return _result(await manager.search(pattern, flt, case_sensitive=case_sensitive))


async def clear_logs_impl(
    manager: LogManager,
    *,
    level: str | None = None,
    name: str | None = None,
    before: str | None = None,
) -> dict[str, Any]:
    """Implementation for the `clear_logs` MCP tool.

    With no arguments every entry is removed.
    """
    flt = _build_filter(
        level=level,
        name=name,
        since=None,
        until=before,
        date=None,
        hour=None,
        week=None,
        month=None,
        limit=None,
    )
    return {"removed": await manager.clear(flt)}


async def rotate_logs_impl(manager: LogManager) -> dict[str, Any]:
    """Implementation for the `rotate_logs` MCP tool."""
    rotated = await manager.rotate()
    return {"rotated": rotated is not None, "path": str(rotated) if rotated else None}
