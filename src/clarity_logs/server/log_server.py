"""MCP server entrypoint (stdio transport).

This module wires together:
- Tools: read, search, clear and rotate the configured log stream
- Resources: help text, the active rotation settings and the record schema

Run locally (stdio):
    python -m clarity_logs.server.log_server
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Any

from mcp.server.fastmcp import FastMCP

from clarity_logs.config import build_manager, configure_logging, load_settings
from clarity_logs.core.manager import LogManager
from clarity_logs.resources.registry import register_resources
from clarity_logs.tools.logs import (
    clear_logs_impl,
    get_logs_impl,
    rotate_logs_impl,
    search_logs_impl,
)

LOGGER = logging.getLogger(__name__)


def create_server(manager: LogManager) -> FastMCP:
    """Build a FastMCP server bound to one manager.

    The manager is initialized lazily on the first tool call, inside the
    server's event loop.
    """
    mcp = FastMCP("clarity-logs", json_response=True)
    ready = False

    async def _manager() -> LogManager:
        nonlocal ready
        if not ready:
            await manager.initialize()
            ready = True
        return manager

    register_resources(mcp, manager)

    @mcp.tool()
    async def get_logs(
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
        """Return the most recent log entries, oldest first.

        Parameters
        ----------
        level:
            Exact level to match (debug, info, success, warning, error).
        name:
            Logger name glob; '*' matches any run of characters (e.g., "parser:*").
        since/until:
            ISO-8601 datetimes (inclusive). If timezone is omitted, UTC is assumed.
        date/hour/week/month:
            Convenience selectors; only one may be used at a time.
            Examples: 2025-12-31, 2025-12-31T20, 2025-W52, 2025-12
        hours_lookback:
            Only entries from the last N hours. Ignored when a selector is given;
            takes precedence over since/until.
        limit:
            Maximum number of entries returned (hard-capped in the implementation).

        Returns
        -------
        dict:
            {"count": int, "entries": list[dict]}
        """
        return await get_logs_impl(
            await _manager(),
            level=level,
            name=name,
            since=since,
            until=until,
            date=date,
            hour=hour,
            week=week,
            month=month,
            hours_lookback=hours_lookback,
            limit=limit,
        )

    @mcp.tool()
    async def search_logs(
        pattern: str,
        case_sensitive: bool = False,
        level: str | None = None,
        name: str | None = None,
        since: str | None = None,
        until: str | None = None,
        hours_lookback: int | None = None,
        limit: int | None = None,
    ) -> dict[str, Any]:
        """Regex search over rendered messages and logger names.

        Returns {"count": int, "entries": list[dict]}.
        """
        return await search_logs_impl(
            await _manager(),
            pattern=pattern,
            case_sensitive=case_sensitive,
            level=level,
            name=name,
            since=since,
            until=until,
            hours_lookback=hours_lookback,
            limit=limit,
        )

    @mcp.tool()
    async def clear_logs(
        level: str | None = None,
        name: str | None = None,
        before: str | None = None,
    ) -> dict[str, Any]:
        """Remove entries matching every given criterion; all entries when none is given."""
        return await clear_logs_impl(await _manager(), level=level, name=name, before=before)

    @mcp.tool()
    async def rotate_logs() -> dict[str, Any]:
        """Rotate the live log file now. An empty live file is not rotated."""
        return await rotate_logs_impl(await _manager())

    return mcp


def main(argv: Sequence[str] | None = None) -> None:
    """Start the MCP server over stdio."""
    configure_logging()
    _ = argv or sys.argv[1:]
    manager = build_manager(load_settings())
    LOGGER.debug("Starting MCP server (transport=stdio, dir=%s)", manager.rotator.log_directory)
    create_server(manager).run(transport="stdio")


if __name__ == "__main__":
    main()
