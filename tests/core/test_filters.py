from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from clarity_logs.core.filters import apply_filter, compile_name_pattern, matches
from clarity_logs.core.models import LogEntry, LogFilter, LogLevel

T0 = datetime(2025, 1, 1, tzinfo=UTC)


def _entry(name: str = "app", level: LogLevel = LogLevel.INFO, offset: int = 0) -> LogEntry:
    return LogEntry(timestamp=T0 + timedelta(minutes=offset), level=level, name=name, message="m")


@pytest.mark.parametrize(
    ("glob", "name", "expected"),
    [
        ("parser:*", "parser:lexer", True),
        ("parser:*", "parser:token", True),
        ("parser:*", "server", False),
        ("*lexer", "parser:lexer", True),
        ("parser", "parser:lexer", False),
        ("a.b", "axb", False),
        ("(x)+", "(x)+", True),
    ],
)
def test_name_glob(glob: str, name: str, expected: bool) -> None:
    assert bool(compile_name_pattern(glob).fullmatch(name)) is expected


def test_matches_combines_criteria() -> None:
    flt = LogFilter(level=LogLevel.ERROR, name="db*")
    assert matches(_entry("db", LogLevel.ERROR), flt)
    assert not matches(_entry("db", LogLevel.INFO), flt)
    assert not matches(_entry("web", LogLevel.ERROR), flt)


def test_naive_bounds_are_utc() -> None:
    flt = LogFilter(start=datetime(2025, 1, 1, 0, 5), end=datetime(2025, 1, 1, 0, 10))
    kept = apply_filter([_entry(offset=m) for m in (4, 5, 10, 11)], flt)
    assert [e.timestamp.minute for e in kept] == [5, 10]


def test_apply_filter_limit_after_filtering() -> None:
    entries = [_entry(level=LogLevel.ERROR if i % 2 else LogLevel.INFO, offset=i) for i in range(6)]
    kept = apply_filter(entries, LogFilter(level="error", limit=2))
    assert [e.timestamp.minute for e in kept] == [3, 5]


def test_filter_validation() -> None:
    with pytest.raises(ValueError):
        LogFilter(limit=-1)
    with pytest.raises(ValueError):
        LogFilter(level="critical")
    assert LogFilter().is_empty
    assert not LogFilter(end=T0).is_empty
