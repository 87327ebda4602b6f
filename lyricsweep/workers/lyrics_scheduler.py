from __future__ import annotations

import asyncio
import contextlib

from lyricsweep.logging import get_logger
from lyricsweep.logging_events import log_event
from lyricsweep.workers.lyrics_task import LyricsDownloadTask, ProgressSink, RunSummary

logger = get_logger(__name__)

DEFAULT_INTERVAL_SECONDS = 86_400.0
MIN_INTERVAL_SECONDS = 60.0
DEFAULT_SHUTDOWN_GRACE_SECONDS = 10.0


class LyricsTaskScheduler:
    """Periodically execute :class:`LyricsDownloadTask`, one run at a time."""

    def __init__(
        self,
        task: LyricsDownloadTask,
        *,
        interval_seconds: float | None = None,
        shutdown_grace_seconds: float = DEFAULT_SHUTDOWN_GRACE_SECONDS,
        progress: ProgressSink | None = None,
    ) -> None:
        self._task_runner = task
        interval = float(interval_seconds or DEFAULT_INTERVAL_SECONDS)
        self._interval = max(interval, MIN_INTERVAL_SECONDS)
        self._grace = max(shutdown_grace_seconds, 0.0)
        self._progress = progress
        self._run_lock = asyncio.Lock()
        self._running = False
        self._task: asyncio.Task[None] | None = None
        self._stop_event = asyncio.Event()
        self._last_summary: RunSummary | None = None

    @property
    def interval_seconds(self) -> float:
        return self._interval

    @property
    def last_summary(self) -> RunSummary | None:
        return self._last_summary

    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._running = True
        self._stop_event = asyncio.Event()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        self._running = False
        self._stop_event.set()
        task = self._task
        if task is None:
            return
        try:
            await asyncio.wait_for(asyncio.shield(task), timeout=self._grace)
        except asyncio.TimeoutError:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        finally:
            self._task = None

    async def run_once(self) -> RunSummary | None:
        """Execute a single run unless another run is already in progress."""

        if self._run_lock.locked():
            logger.info("Lyrics task already running; skipping trigger")
            return None
        stop_event = self._stop_event if self._running else None
        async with self._run_lock:
            summary = await self._task_runner.run(self._progress, stop_event=stop_event)
        self._last_summary = summary
        return summary

    async def _run(self) -> None:
        log_event(
            logger,
            "worker.start",
            component="worker.lyrics",
            status="running",
            interval_s=int(self._interval),
        )
        try:
            while self._running and not self._stop_event.is_set():
                try:
                    await self.run_once()
                except asyncio.CancelledError:
                    if self._stop_event.is_set():
                        break
                    raise
                except Exception as exc:  # pragma: no cover
                    logger.exception("Lyrics task run failed: %s", exc)
                log_event(
                    logger,
                    "worker.tick",
                    component="worker.lyrics",
                    status="idle",
                    next_run_s=int(self._interval),
                )
                try:
                    await asyncio.wait_for(self._stop_event.wait(), timeout=self._interval)
                except asyncio.TimeoutError:
                    continue
        finally:
            self._running = False
            log_event(
                logger,
                "worker.stop",
                component="worker.lyrics",
                status="stopped",
            )


__all__ = ["LyricsTaskScheduler"]
