"""Filesystem persistence for the lyric task retry state."""

from __future__ import annotations

import asyncio
import json
import os
from pathlib import Path
import tempfile

from lyricsweep.logging import get_logger
from lyricsweep.state.models import RetryState

logger = get_logger(__name__)

STATE_FILE_NAME = "retry-state.json"


class RetryStateStore:
    """Load and atomically save :class:`RetryState` as a single JSON file.

    Neither operation raises for I/O or parse problems: ``load`` degrades to an
    empty state and ``save`` logs the failure. Cancellation still propagates.
    """

    def __init__(self, path: str | os.PathLike[str]) -> None:
        self._path = Path(path).expanduser()

    @property
    def path(self) -> Path:
        return self._path

    def exists(self) -> bool:
        return self._path.is_file()

    async def load(self) -> RetryState:
        try:
            return await asyncio.to_thread(self._read)
        except Exception as exc:
            logger.warning(
                "Failed to load lyrics retry state from %s. Using empty state.",
                self._path,
                exc_info=exc,
            )
            return RetryState()

    async def save(self, state: RetryState) -> bool:
        """Persist a snapshot of ``state``; return ``False`` if it was not written."""

        payload = state.snapshot().to_dict()
        try:
            await asyncio.to_thread(self._write, payload)
        except Exception as exc:
            logger.warning(
                "Failed to save lyrics retry state to %s.",
                self._path,
                exc_info=exc,
            )
            return False
        return True

    def _read(self) -> RetryState:
        if not self._path.exists():
            return RetryState()
        contents = self._path.read_text(encoding="utf-8")
        if not contents.strip():
            return RetryState()
        return RetryState.from_dict(json.loads(contents))

    def _write(self, payload: dict[str, object]) -> None:
        target_dir = self._path.parent
        target_dir.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=target_dir,
            prefix=f".{self._path.stem}.",
            suffix=".tmp",
        )
        tmp_path = Path(tmp_name)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(payload, handle, separators=(",", ":"))
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise


__all__ = ["RetryStateStore", "STATE_FILE_NAME"]
