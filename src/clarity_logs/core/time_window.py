"""Time-window selectors used by the CLI and the MCP tools.

Turns ``--date``/``--hour``/``--week``/``--month`` style selectors or explicit
ISO bounds into an inclusive UTC ``(start, end)`` pair for ``LogFilter``.
"""

from __future__ import annotations

import re
from datetime import UTC, date, datetime, timedelta

_HOUR_RE = re.compile(r"^(?P<d>\d{4}-\d{2}-\d{2})T(?P<h>\d{2})$")
_WEEK_RE = re.compile(r"^(?P<y>\d{4})-W(?P<w>\d{2})$")
_MONTH_RE = re.compile(r"^(?P<y>\d{4})-(?P<m>\d{2})$")

# Selectors produce half-open windows; LogFilter bounds are inclusive.
_EPSILON = timedelta(microseconds=1)


def parse_iso_dt(s: str) -> datetime:
    """Parse an ISO-8601 datetime, assuming UTC when no offset is given."""
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError as exc:
        raise ValueError(f"Invalid ISO-8601 datetime: '{s}'") from exc
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def _inclusive(start: datetime, end_exclusive: datetime) -> tuple[datetime, datetime]:
    return start, end_exclusive - _EPSILON


def range_for_date(s: str) -> tuple[datetime, datetime]:
    """UTC day, e.g. ``2025-12-31``."""
    d = date.fromisoformat(s)
    start = datetime(d.year, d.month, d.day, tzinfo=UTC)
    return _inclusive(start, start + timedelta(days=1))


def range_for_hour(s: str) -> tuple[datetime, datetime]:
    """UTC hour, e.g. ``2025-12-31T10``."""
    m = _HOUR_RE.match(s)
    if not m:
        raise ValueError("hour must look like YYYY-MM-DDTHH (e.g., 2025-12-31T10)")
    d = date.fromisoformat(m.group("d"))
    start = datetime(d.year, d.month, d.day, int(m.group("h")), tzinfo=UTC)
    return _inclusive(start, start + timedelta(hours=1))


def range_for_week(s: str) -> tuple[datetime, datetime]:
    """ISO week starting Monday, e.g. ``2025-W52``."""
    m = _WEEK_RE.match(s)
    if not m:
        raise ValueError("week must look like YYYY-Www (e.g., 2025-W52)")
    monday = date.fromisocalendar(int(m.group("y")), int(m.group("w")), 1)
    start = datetime(monday.year, monday.month, monday.day, tzinfo=UTC)
    return _inclusive(start, start + timedelta(days=7))


def range_for_month(s: str) -> tuple[datetime, datetime]:
    """Calendar month, e.g. ``2025-12``."""
    m = _MONTH_RE.match(s)
    if not m:
        raise ValueError("month must look like YYYY-MM (e.g., 2025-12)")
    y, mo = int(m.group("y")), int(m.group("m"))
    start = datetime(y, mo, 1, tzinfo=UTC)
    end = datetime(y + 1, 1, 1, tzinfo=UTC) if mo == 12 else datetime(y, mo + 1, 1, tzinfo=UTC)
    return _inclusive(start, end)


def resolve_time_window(
    *,
    since: str | None = None,
    until: str | None = None,
    date_: str | None = None,
    hour: str | None = None,
    week: str | None = None,
    month: str | None = None,
    hours_lookback: int | None = None,
    now: datetime | None = None,
) -> tuple[datetime | None, datetime | None]:
    """Resolve the window; selectors win over lookback, lookback over bounds."""
    selectors = [v for v in (date_, hour, week, month) if v]
    if len(selectors) > 1:
        raise ValueError("Use only one of date, hour, week or month.")

    if date_:
        return range_for_date(date_)
    if hour:
        return range_for_hour(hour)
    if week:
        return range_for_week(week)
    if month:
        return range_for_month(month)

    if hours_lookback is not None:
        if hours_lookback < 0:
            raise ValueError("hours_lookback must be >= 0")
        end = now or datetime.now(UTC)
        return end - timedelta(hours=hours_lookback), end

    start = parse_iso_dt(since) if since else None
    end = parse_iso_dt(until) if until else None
    if start is not None and end is not None and start > end:
        raise ValueError("since must be <= until")
    return start, end
