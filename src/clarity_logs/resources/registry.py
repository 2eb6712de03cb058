"""MCP resource registry.

Resources are addressable by URI and can be fetched by the MCP client on demand.
"""

from __future__ import annotations

from typing import Any

from mcp.server.fastmcp import FastMCP

from clarity_logs.core.manager import LogManager
from clarity_logs.core.serialization import LogRecord


def register_resources(mcp: FastMCP, manager: LogManager) -> None:
    """Register resource handlers on the MCP server."""

    @mcp.resource("app://clarity/help")
    def help_resource() -> str:
        """Return a short list of available resource URIs."""
        return (
            "Resources:\n"
            "- app://clarity/help\n"
            "- app://clarity/config/rotation\n"
            "- app://clarity/schemas/log-record\n"
            "\nTools: get_logs, search_logs, clear_logs, rotate_logs\n"
            f"\nLog directory: {manager.rotator.log_directory}\n"
        )

    @mcp.resource("app://clarity/config/rotation")
    def rotation_config() -> dict[str, Any]:
        """Return the active rotation settings and the next scheduled rotation."""
        cfg = manager.rotator.config
        nxt = manager.rotator.next_rotation_time
        return {
            "base_name": manager.rotator.base_name,
            "current_file": str(manager.rotator.current_log_file),
            "max_size": cfg.max_size,
            "max_files": cfg.max_files,
            "compress": cfg.compress,
            "encrypt": cfg.encrypt,
            "frequency": cfg.frequency.value,
            "next_rotation_time": nxt.isoformat() if nxt is not None else None,
            "cache_size": manager.cache_size,
        }

    @mcp.resource("app://clarity/schemas/log-record")
    def log_record_schema() -> dict[str, Any]:
        """Return the JSON schema of one persisted log line."""
        return LogRecord.model_json_schema()
