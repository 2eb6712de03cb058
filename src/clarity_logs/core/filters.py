"""Entry filtering shared by the cache and on-disk read paths."""

from __future__ import annotations

import re
from collections.abc import Iterable
from datetime import UTC, datetime
from functools import lru_cache

from .models import LogEntry, LogFilter


@lru_cache(maxsize=128)
def compile_name_pattern(glob: str) -> re.Pattern[str]:
    """Compile a name glob where ``*`` matches any run of characters.

    Every other character is matched literally, so user input cannot inject
    regex syntax. This is not a full glob engine (no ``?`` or ``[...]``).
    """
    return re.compile(".*".join(re.escape(part) for part in glob.split("*")))


def _aware(ts: datetime) -> datetime:
    return ts.replace(tzinfo=UTC) if ts.tzinfo is None else ts


def matches(entry: LogEntry, flt: LogFilter) -> bool:
    """Return True when the entry satisfies every criterion set in ``flt``."""
    if flt.level is not None and entry.level != flt.level:
        return False
    if flt.name is not None and not compile_name_pattern(flt.name).fullmatch(entry.name):
        return False
    if flt.start is not None and _aware(entry.timestamp) < _aware(flt.start):
        return False
    if flt.end is not None and _aware(entry.timestamp) > _aware(flt.end):
        return False
    return True


def apply_filter(entries: Iterable[LogEntry], flt: LogFilter) -> list[LogEntry]:
    """Filter entries (kept in input order) and keep the last ``limit``."""
    out = [e for e in entries if matches(e, flt)]
    if flt.limit is not None:
        out = out[-flt.limit :] if flt.limit else []
    return out
