"""Display and export formatters."""

from __future__ import annotations

from .base import Formatter
from .json import JsonFormatter, entry_to_dict
from .text import TextFormatter

__all__ = ["Formatter", "JsonFormatter", "TextFormatter", "entry_to_dict", "get_formatter"]


def get_formatter(fmt: str, *, timestamps: bool = True) -> Formatter:
    """Return a formatter by name ('text' or 'json')."""
    if fmt == "json":
        return JsonFormatter()
    if fmt == "text":
        return TextFormatter(timestamps=timestamps)
    raise ValueError(f"Unknown format '{fmt}'. Allowed: json, text")
