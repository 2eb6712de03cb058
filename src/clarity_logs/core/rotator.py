"""Log rotation and file management for a single log stream.

One ``LogRotator`` exclusively owns ``{log_directory}/{base_name}.log`` and its
rotated siblings. Writes and rotations are serialized through an
``asyncio.Lock``; reads never take the lock and may observe either side of a
concurrent rotation. There is no cross-process locking.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator, Callable
from datetime import UTC, datetime
from pathlib import Path

import aiofiles
import aiofiles.os

from .codec import (
    AesGcmCodec,
    Codec,
    CodecError,
    GzipCodec,
    KeyRing,
    decode_bytes,
    decode_chain,
)
from .models import LogEntry, RotationConfig
from .naming import RotatedFileNamer
from .policy import RotationPolicy
from .retention import RetentionEnforcer
from .serialization import parse_line, serialize_entry

logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def local_now() -> datetime:
    """Naive local wall-clock time.

    Schedules are computed on wall-clock fields, so a daily rotation stays at
    its configured hour across DST changes. A fixed UTC offset would drift by
    one hour until the next ``initialize``.
    """
    return datetime.now()


def _normalize_bound(ts: datetime | None) -> datetime | None:
    if ts is not None and ts.tzinfo is None:
        return ts.replace(tzinfo=UTC)
    return ts


class LogRotator:
    """Write, rotate, and read back one log stream."""

    def __init__(
        self,
        log_directory: str | Path,
        base_name: str = "app",
        config: RotationConfig | None = None,
        *,
        key_ring: KeyRing | None = None,
        clock: Clock = local_now,
    ) -> None:
        if not base_name or "/" in base_name or base_name.endswith(".log"):
            raise ValueError("base_name must be a bare stream name like 'app'")

        self.config = config or RotationConfig()
        if self.config.encrypt and key_ring is None:
            raise ValueError("encrypt is enabled but no key ring was provided")

        self.log_directory = Path(log_directory)
        self.namer = RotatedFileNamer(self.log_directory, base_name)
        self.current_log_file = self.namer.current_file
        self.current_size = 0

        self._clock = clock
        self._lock = asyncio.Lock()
        self._initialized = False
        self.policy = RotationPolicy(self.config, now=clock())
        self.retention = RetentionEnforcer(self.namer)

        self._gzip = GzipCodec()
        self._cipher = AesGcmCodec(key_ring) if key_ring is not None else None
        self._codecs: dict[str, Codec] = {self._gzip.suffix: self._gzip}
        if self._cipher is not None:
            self._codecs[self._cipher.suffix] = self._cipher

    @property
    def base_name(self) -> str:
        return self.namer.base_name

    @property
    def next_rotation_time(self) -> datetime | None:
        return self.policy.next_rotation_time

    async def initialize(self) -> None:
        """Create the directory and reconcile the size counter with disk."""
        await aiofiles.os.makedirs(self.log_directory, exist_ok=True)
        try:
            stat = await aiofiles.os.stat(self.current_log_file)
            self.current_size = stat.st_size
        except FileNotFoundError:
            self.current_size = 0
        self.policy.reset(self._clock())
        self._initialized = True
        logger.debug(
            "Initialized %s (size=%d, next rotation=%s)",
            self.current_log_file,
            self.current_size,
            self.policy.next_rotation_time,
        )

    async def write_log(self, entry: LogEntry) -> None:
        """Append one entry, rotating first when the policy says so.

        OSError from the append propagates; the size counter only advances
        after a successful write. A failed automatic rotation is logged and
        retried on the next check.
        """
        data = serialize_entry(entry).encode("utf-8")

        async with self._lock:
            if not self._initialized:
                await self.initialize()

            scheduled = self.policy.next_rotation_time
            if self.policy.should_rotate(self.current_size, self._clock()):
                try:
                    await self._rotate_locked()
                except (OSError, CodecError) as exc:
                    # Re-arm the schedule so the next write retries the rotation.
                    self.policy.next_rotation_time = scheduled
                    logger.warning("Rotation of %s failed: %s", self.current_log_file, exc)

            async with aiofiles.open(self.current_log_file, "ab") as f:
                await f.write(data)
            self.current_size += len(data)

    async def rotate(self) -> Path | None:
        """Rotate now. Returns the rotated path, or None if nothing to rotate."""
        async with self._lock:
            if not self._initialized:
                await self.initialize()
            return await self._rotate_locked()

    async def _rotate_locked(self) -> Path | None:
        try:
            async with aiofiles.open(self.current_log_file, "rb") as f:
                content = await f.read()
        except FileNotFoundError:
            self.current_size = 0
            return None
        if not content:
            self.current_size = 0
            return None

        payload = content
        suffix = ""
        if self.config.compress:
            try:
                payload = await asyncio.to_thread(self._gzip.encode, payload)
                suffix += self._gzip.suffix
            except CodecError as exc:
                logger.warning("Compression failed, keeping rotated file uncompressed: %s", exc)
                payload = content
        if self.config.encrypt and self._cipher is not None:
            payload = await asyncio.to_thread(self._cipher.encode, payload)
            suffix += self._cipher.suffix

        destination = await self.namer.next_name(self._clock(), suffix=suffix)

        if not suffix:
            await aiofiles.os.rename(self.current_log_file, destination)
        else:
            tmp = destination.with_name(destination.name + ".tmp")
            try:
                async with aiofiles.open(tmp, "wb") as f:
                    await f.write(payload)
                await aiofiles.os.replace(tmp, destination)
            except OSError:
                with contextlib.suppress(OSError):
                    await aiofiles.os.remove(tmp)
                raise

        try:
            await self._reset_live_file()
        except OSError:
            if suffix:
                # The archive is a copy of the live file; drop it so no entry is stored twice.
                with contextlib.suppress(OSError):
                    await aiofiles.os.remove(destination)
            raise
        self.current_size = 0
        logger.info("Rotated %s -> %s", self.current_log_file.name, destination.name)

        await self.retention.enforce(self.config.max_files, keep=destination)
        return destination

    async def _reset_live_file(self) -> None:
        """Recreate (or truncate) the live file."""
        async with aiofiles.open(self.current_log_file, "wb"):
            pass

    async def truncate(self) -> None:
        """Empty the live file and reset the size counter."""
        async with self._lock:
            await aiofiles.os.makedirs(self.log_directory, exist_ok=True)
            await self._reset_live_file()
            self.current_size = 0
            self._initialized = True

    async def remove_rotated(self) -> list[Path]:
        """Delete every rotated file of this stream."""
        removed: list[Path] = []
        async with self._lock:
            for path in await self.namer.list_rotated():
                try:
                    await aiofiles.os.remove(path)
                except OSError as exc:
                    logger.warning("Failed to delete rotated file %s: %s", path, exc)
                    continue
                removed.append(path)
        return removed

    async def _read_file(self, path: Path) -> bytes | None:
        try:
            async with aiofiles.open(path, "rb") as f:
                data = await f.read()
        except FileNotFoundError:
            return None
        except OSError as exc:
            logger.warning("Skipping unreadable log file %s: %s", path, exc)
            return None

        try:
            chain = decode_chain(path, self._codecs)
            if chain:
                data = await asyncio.to_thread(decode_bytes, data, chain)
        except CodecError as exc:
            logger.warning("Skipping undecodable log file %s: %s", path, exc)
            return None
        return data

    async def iter_logs(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        max_files: int | None = None,
        include_current: bool = True,
    ) -> AsyncIterator[LogEntry]:
        """Yield entries from the live file, then rotated files newest-first.

        Entries within a file keep their stored (oldest-first) order. Bounds
        are inclusive. Damaged files and lines are skipped, never raised.
        """
        start = _normalize_bound(start)
        end = _normalize_bound(end)
        if max_files is None:
            max_files = self.config.max_files
        if max_files < 0:
            raise ValueError("max_files must be >= 0")

        paths: list[Path] = []
        if include_current:
            paths.append(self.current_log_file)
        paths.extend((await self.namer.list_rotated())[:max_files])

        for path in paths:
            data = await self._read_file(path)
            if data is None:
                continue

            skipped = 0
            for line in data.decode("utf-8", errors="replace").split("\n"):
                if not line.strip():
                    continue
                entry = parse_line(line)
                if entry is None:
                    skipped += 1
                    continue
                if start is not None and entry.timestamp < start:
                    continue
                if end is not None and entry.timestamp > end:
                    continue
                yield entry

            if skipped:
                logger.warning("Skipped %d malformed line(s) in %s", skipped, path)

    async def read_logs(
        self,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        max_files: int | None = None,
        include_current: bool = True,
    ) -> list[LogEntry]:
        """Collect iter_logs into a list."""
        return [
            entry
            async for entry in self.iter_logs(
                start=start,
                end=end,
                max_files=max_files,
                include_current=include_current,
            )
        ]
