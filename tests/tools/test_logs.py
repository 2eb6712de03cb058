from __future__ import annotations

import pytest
import pytest_asyncio

from clarity_logs.core.models import LogLevel
from clarity_logs.tools.logs import (
    HARD_LIMIT,
    clear_logs_impl,
    get_logs_impl,
    rotate_logs_impl,
    search_logs_impl,
)


@pytest_asyncio.fixture
async def manager(make_manager, make_entry):
    m = make_manager()
    await m.initialize()
    await m.add_entry(make_entry("service started", name="api"))
    await m.add_entry(make_entry("retrying id=%s", "abc123", level=LogLevel.WARNING, name="api:http"))
    await m.add_entry(make_entry("upstream timeout", level=LogLevel.ERROR, name="api:http"))
    await m.add_entry(make_entry("cache warm", level=LogLevel.DEBUG, name="cache"))
    return m


@pytest.mark.asyncio
async def test_get_logs_impl_filters_and_serializes(manager) -> None:
    out = await get_logs_impl(manager, level="ERROR", name="api:*")

    assert out["count"] == 1
    entry = out["entries"][0]
    assert entry["level"] == "error"
    assert entry["name"] == "api:http"
    assert entry["message"] == "upstream timeout"
    assert entry["timestamp"].endswith("Z")


@pytest.mark.asyncio
async def test_get_logs_impl_date_selector(manager) -> None:
    out = await get_logs_impl(manager, date="2025-01-01")
    assert out["count"] == 4
    out = await get_logs_impl(manager, date="2025-01-02")
    assert out["count"] == 0


@pytest.mark.asyncio
async def test_get_logs_impl_limit_validation(manager) -> None:
    with pytest.raises(ValueError):
        await get_logs_impl(manager, limit=0)
    out = await get_logs_impl(manager, limit=HARD_LIMIT * 10)
    assert out["count"] == 4


@pytest.mark.asyncio
async def test_get_logs_impl_unknown_level(manager) -> None:
    with pytest.raises(ValueError, match="Unknown log level"):
        await get_logs_impl(manager, level="critical")


@pytest.mark.asyncio
async def test_search_logs_impl_keeps_args(manager) -> None:
    out = await search_logs_impl(manager, pattern="id=abc")

    assert out["count"] == 1
    assert out["entries"][0]["args"] == ["abc123"]


@pytest.mark.asyncio
async def test_search_logs_impl_requires_pattern(manager) -> None:
    with pytest.raises(ValueError):
        await search_logs_impl(manager, pattern="")


@pytest.mark.asyncio
async def test_clear_and_rotate_impl(manager) -> None:
    assert await clear_logs_impl(manager, level="debug") == {"removed": 1}

    rotated = await rotate_logs_impl(manager)
    assert rotated["rotated"] is True
    assert rotated["path"].endswith(".log.gz")

    assert await rotate_logs_impl(manager) == {"rotated": False, "path": None}
    out = await get_logs_impl(manager, limit=HARD_LIMIT)
    assert out["count"] == 3


@pytest.mark.asyncio
async def test_get_logs_impl_hours_lookback(manager) -> None:
    # Fixture entries are stamped 2025-01-01, well outside the last hour.
    assert (await get_logs_impl(manager, hours_lookback=1))["count"] == 0
    assert (await get_logs_impl(manager, hours_lookback=10**6))["count"] == 4

    with pytest.raises(ValueError, match="hours_lookback"):
        await get_logs_impl(manager, hours_lookback=-1)


@pytest.mark.asyncio
async def test_search_logs_impl_hours_lookback(manager) -> None:
    out = await search_logs_impl(manager, pattern="timeout", hours_lookback=10**6)
    assert out["count"] == 1
