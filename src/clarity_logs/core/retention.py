"""Retention: delete rotated files beyond the configured count."""

from __future__ import annotations

import logging
from pathlib import Path

import aiofiles.os

from .naming import RotatedFileNamer

logger = logging.getLogger(__name__)


class RetentionEnforcer:
    """Keep the newest ``max_files`` rotated files of a stream (best-effort)."""

    def __init__(self, namer: RotatedFileNamer) -> None:
        self._namer = namer

    async def enforce(self, max_files: int, *, keep: Path | None = None) -> list[Path]:
        """Delete the oldest rotated files so at most ``max_files`` remain.

        ``keep`` (the file just produced by a rotation) is never deleted.
        Returns the paths that were actually removed.
        """
        if max_files < 1:
            raise ValueError("max_files must be >= 1")

        rotated = await self._namer.list_rotated()
        if keep is not None and keep in rotated:
            rotated.remove(keep)
            rotated.insert(0, keep)

        removed: list[Path] = []
        for path in rotated[max_files:]:
            try:
                await aiofiles.os.remove(path)
            except FileNotFoundError:
                continue
            except OSError as exc:
                logger.warning("Failed to delete old log file %s: %s", path, exc)
                continue
            removed.append(path)
            logger.debug("Deleted rotated log file %s", path)
        return removed
