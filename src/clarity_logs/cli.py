from __future__ import annotations

import argparse
import asyncio
import sys
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime
from pathlib import Path

from clarity_logs.config import (
    KEYS_ENV,
    ConfigStore,
    Settings,
    build_manager,
    configure_logging,
    load_settings,
)
from clarity_logs.core.codec import KeyRing
from clarity_logs.core.manager import LogManager
from clarity_logs.core.models import LogEntry, LogFilter, LogLevel
from clarity_logs.core.time_window import parse_iso_dt, resolve_time_window
from clarity_logs.formatters import JsonFormatter, get_formatter
from clarity_logs.logger import Logger

FOLLOW_INTERVAL_S = 1.0
# Lower bound that forces reads from disk instead of the recent-entries cache.
HISTORY_START = datetime.min.replace(tzinfo=UTC)


def _parse_level(s: str) -> LogLevel:
    try:
        return LogLevel(s.strip().lower())
    except ValueError as e:
        allowed = ", ".join(level.value for level in LogLevel)
        raise argparse.ArgumentTypeError(f"Invalid level. Allowed: {allowed}") from e


def _add_filter_args(p: argparse.ArgumentParser, *, with_window: bool = True) -> None:
    p.add_argument("--level", type=_parse_level, default=None, help="Exact level to match")
    p.add_argument("--name", default=None, help="Logger name glob, '*' matches anything")
    if not with_window:
        return
    p.add_argument("--since", default=None, help="ISO8601 start time (assumes UTC if tz missing)")
    p.add_argument("--until", default=None, help="ISO8601 end time (assumes UTC if tz missing)")
    p.add_argument("--date", default=None, help="YYYY-MM-DD (UTC day)")
    p.add_argument("--hour", default=None, help="YYYY-MM-DDTHH (UTC hour)")
    p.add_argument("--week", default=None, help="YYYY-Www (ISO week, UTC)")
    p.add_argument("--month", default=None, help="YYYY-MM (UTC month)")
    p.add_argument(
        "--hours", dest="hours_lookback", type=int, default=None, help="Only the last N hours"
    )


def _build_filter(args: argparse.Namespace, *, limit: int | None = None) -> LogFilter:
    start, end = resolve_time_window(
        since=getattr(args, "since", None),
        until=getattr(args, "until", None),
        date_=getattr(args, "date", None),
        hour=getattr(args, "hour", None),
        week=getattr(args, "week", None),
        month=getattr(args, "month", None),
        hours_lookback=getattr(args, "hours_lookback", None),
    )
    return LogFilter(level=args.level, name=args.name, start=start, end=end, limit=limit)


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="clarity", description="Inspect, search and manage logs.")
    p.add_argument("--config", default=None, help="Path to config.json (default: ~/.clarity/config.json)")
    p.add_argument("--log-dir", default=None, help="Override the log directory")
    sub = p.add_subparsers(dest="command", required=True)

    log_p = sub.add_parser("log", help="Write one entry")
    log_p.add_argument("message")
    log_p.add_argument("args", nargs="*", help="Positional values for %%-placeholders")
    log_p.add_argument("--level", type=_parse_level, default=LogLevel.INFO)
    log_p.add_argument("--name", default=None, help="Logger name (default: config default_name)")

    tail_p = sub.add_parser("tail", help="Show the most recent entries")
    _add_filter_args(tail_p, with_window=False)
    tail_p.add_argument("-n", "--lines", type=int, default=10)
    tail_p.add_argument("-f", "--follow", action="store_true", help="Keep printing new entries")

    search_p = sub.add_parser("search", help="Regex search over messages and names")
    search_p.add_argument("pattern")
    _add_filter_args(search_p)
    search_p.add_argument("--case-sensitive", action="store_true")
    search_p.add_argument("--max", dest="max_results", type=int, default=None)

    export_p = sub.add_parser("export", help="Export entries as JSON or text")
    _add_filter_args(export_p)
    export_p.add_argument("--format", choices=["json", "text"], default="json")
    export_p.add_argument("--output", "-o", default=None, help="Write to a file instead of stdout")

    clear_p = sub.add_parser("clear", help="Remove matching entries (all when no filter)")
    _add_filter_args(clear_p, with_window=False)
    clear_p.add_argument("--before", default=None, help="Only entries at or before this ISO8601 time")

    sub.add_parser("rotate", help="Rotate the live log file now")
    sub.add_parser(
        "keygen",
        help=f"Print a new hex encryption key; prepend it to {KEYS_ENV} to rotate keys",
    )

    config_p = sub.add_parser("config", help="Show or change settings")
    config_p.add_argument("action", choices=["get", "set", "list", "reset"])
    config_p.add_argument("key", nargs="?")
    config_p.add_argument("value", nargs="?")

    return p


def _print_entries(entries: Iterable[LogEntry], fmt: str) -> None:
    formatter = get_formatter(fmt)
    for e in entries:
        print(formatter.format(e))


async def _follow(manager: LogManager, flt: LogFilter, fmt: str) -> None:
    last = max((e.timestamp for e in manager.cached_entries), default=HISTORY_START)
    while True:
        await asyncio.sleep(FOLLOW_INTERVAL_S)
        # Re-read from disk so entries written by other processes show up.
        fresh = await manager.get_logs(
            LogFilter(level=flt.level, name=flt.name, start=last)
        )
        fresh = [e for e in fresh if e.timestamp > last]
        _print_entries(fresh, fmt)
        if fresh:
            last = fresh[-1].timestamp


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    manager = build_manager(settings)
    await manager.initialize()

    if args.command == "log":
        logger = Logger(args.name or settings.default_name, manager, level=LogLevel.DEBUG)
        await logger.log(args.level, args.message, *args.args)
        return 0

    if args.command == "tail":
        flt = LogFilter(level=args.level, name=args.name, limit=args.lines)
        _print_entries(await manager.get_logs(flt), settings.format)
        if args.follow:
            await _follow(manager, LogFilter(level=args.level, name=args.name), settings.format)
        return 0

    if args.command == "search":
        flt = _build_filter(args, limit=args.max_results)
        entries = await manager.search(args.pattern, flt, case_sensitive=args.case_sensitive)
        _print_entries(entries, settings.format)
        print(f"\nFound {len(entries)} matching entries.", file=sys.stderr)
        return 0

    if args.command == "export":
        flt = _build_filter(args)
        if not flt.has_time_range:
            # Exports cover the whole retained history, not only the cache.
            flt = LogFilter(level=flt.level, name=flt.name, start=HISTORY_START)
        entries = await manager.get_logs(flt)

        if args.format == "json":
            output = JsonFormatter().format_many(entries)
        else:
            output = "\n".join(get_formatter("text").format(e) for e in entries)

        if args.output:
            Path(args.output).write_text(output + "\n", encoding="utf-8")
            print(f"Exported {len(entries)} entries to {args.output}", file=sys.stderr)
        else:
            print(output)
        return 0

    if args.command == "clear":
        end = parse_iso_dt(args.before) if args.before else None
        flt = LogFilter(level=args.level, name=args.name, end=end)
        removed = await manager.clear(flt)
        print(f"Cleared {removed} entries.", file=sys.stderr)
        return 0

    if args.command == "rotate":
        rotated = await manager.rotate()
        if rotated is None:
            print("Nothing to rotate (live log is empty).", file=sys.stderr)
        else:
            print(f"Rotated to {rotated}")
        return 0

    raise ValueError(f"Unknown command '{args.command}'")


def _run_config(args: argparse.Namespace, store: ConfigStore) -> int:
    if args.action == "list":
        for key, value in store.list().items():
            print(f"{key} = {value}")
    elif args.action == "get":
        if not args.key:
            raise ValueError("config get requires a key")
        print(store.get(args.key))
    elif args.action == "set":
        if not args.key or args.value is None:
            raise ValueError("config set requires a key and a value")
        store.set(args.key, args.value)
        print(f"{args.key} = {store.get(args.key)}")
    else:
        store.reset()
        print("Configuration reset to defaults.")
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    configure_logging()
    p = build_parser()
    args = p.parse_args(argv)
    store = ConfigStore(args.config)

    try:
        if args.command == "config":
            return _run_config(args, store)
        if args.command == "keygen":
            print(KeyRing.generate_key().hex())
            return 0

        settings = load_settings(store)
        if args.log_dir:
            settings = settings.model_copy(update={"log_directory": args.log_dir})
        return asyncio.run(_run(args, settings))
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        return 130


if __name__ == "__main__":
    raise SystemExit(main())
