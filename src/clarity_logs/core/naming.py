"""Rotated file naming and enumeration.

Rotated files are named ``{base}.{YYYYmmdd-HHMM}.{index}.log`` with optional
``.gz`` / ``.enc`` suffixes. Fields are zero-padded so lexical order matches
chronological order for up to 999 rotations in one minute. Past that the index
simply grows a digit; ``list_rotated`` compares indices as integers, so its
ordering stays correct either way.
"""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

import aiofiles.os

TIMESTAMP_FORMAT = "%Y%m%d-%H%M"
INDEX_WIDTH = 3
LOG_SUFFIX = ".log"


class RotatedFileNamer:
    """Derive collision-free names for one base stream."""

    def __init__(self, directory: str | Path, base_name: str) -> None:
        self.directory = Path(directory)
        self.base_name = base_name
        # Matches the slot part of a name, including partially written files.
        self._slot_re = re.compile(
            rf"^{re.escape(base_name)}\.(?P<ts>\d{{8}}-\d{{4}})\.(?P<idx>\d+)\.log"
        )
        self._rotated_re = re.compile(self._slot_re.pattern + r"(?P<ext>(?:\.gz)?(?:\.enc)?)$")

    @property
    def current_file(self) -> Path:
        return self.directory / f"{self.base_name}{LOG_SUFFIX}"

    def _stem(self, ts: str, index: int) -> str:
        return f"{self.base_name}.{ts}.{index:0{INDEX_WIDTH}d}{LOG_SUFFIX}"

    def parse_name(self, path: str | Path) -> tuple[str, int] | None:
        """Return (timestamp, index) for a rotated file name, else None."""
        m = self._rotated_re.match(Path(path).name)
        if not m:
            return None
        return m.group("ts"), int(m.group("idx"))

    async def next_name(self, now: datetime, *, suffix: str = "") -> Path:
        """Return the next rotated path for ``now``.

        The index is one past the highest index already used for the same
        minute (any suffix variant counts), so later rotations always sort
        after earlier ones even when retention removed some of them.
        ``suffix`` is appended after ``.log`` (e.g. ``.gz``).
        """
        ts = now.strftime(TIMESTAMP_FORMAT)
        used = [0]
        for name in await aiofiles.os.listdir(self.directory):
            m = self._slot_re.match(name)
            if m and m.group("ts") == ts:
                used.append(int(m.group("idx")))
        return self.directory / (self._stem(ts, max(used) + 1) + suffix)

    async def list_rotated(self) -> list[Path]:
        """Rotated files for this base, newest first."""
        try:
            names = await aiofiles.os.listdir(self.directory)
        except FileNotFoundError:
            return []

        found: list[tuple[str, int, str]] = []
        for name in names:
            m = self._rotated_re.match(name)
            if m:
                found.append((m.group("ts"), int(m.group("idx")), name))

        found.sort(reverse=True)
        return [self.directory / name for _, _, name in found]
