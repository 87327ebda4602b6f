"""Resumable lyric download/upgrade task over the library catalog."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
import contextlib
from dataclasses import asdict, dataclass
from datetime import UTC, datetime, timedelta
import logging
import time
from typing import Protocol

from lyricsweep.config import LyricsTaskConfig
from lyricsweep.core.backoff import GateDecision, RetryBackoffPolicy
from lyricsweep.core.pager import CursorPager, ItemSource, normalize_cursor
from lyricsweep.core.signature import compute_signature
from lyricsweep.core.types import ItemQuery, LibraryItem
from lyricsweep.logging import get_logger
from lyricsweep.logging_events import log_event
from lyricsweep.services.lyrics_enricher import EnrichmentKind, EnrichmentResult
from lyricsweep.state.models import RetryState
from lyricsweep.state.store import RetryStateStore

logger = get_logger(__name__)

ProgressSink = Callable[[float], None]

DEFAULT_TRIGGER_INTERVAL = timedelta(hours=24)


class Enricher(Protocol):
    async def enrich(self, item: LibraryItem) -> EnrichmentResult: ...


@dataclass(slots=True)
class RunSummary:
    """Per-run counters reported once the task finishes."""

    total_count: int = 0
    visited: int = 0
    attempted: int = 0
    missing_downloaded: int = 0
    upgraded_to_synced: int = 0
    already_synced_skipped: int = 0
    plain_no_synced_found: int = 0
    not_found: int = 0
    errors: int = 0
    backoff_skipped: int = 0
    non_audio_skipped: int = 0
    stale_entries_dropped: int = 0
    pruned_entries: int = 0
    state_flushes: int = 0
    cap_reached: bool = False
    stopped_early: bool = False
    cursor: int = 0
    elapsed_seconds: float = 0.0

    def describe(self) -> str:
        return (
            "Lyrics task complete. "
            f"Missing downloaded: {self.missing_downloaded}, "
            f"upgraded to synced: {self.upgraded_to_synced}, "
            f"already synced skipped: {self.already_synced_skipped}, "
            f"plain with no synced found: {self.plain_no_synced_found}, "
            f"not found: {self.not_found}, "
            f"errors: {self.errors}, "
            f"backoff skipped: {self.backoff_skipped}, "
            f"cap reached: {'yes' if self.cap_reached else 'no'}"
        )

    def as_log_fields(self) -> dict[str, int | float | bool]:
        fields = asdict(self)
        fields["elapsed_seconds"] = round(self.elapsed_seconds, 3)
        return fields


class LyricsDownloadTask:
    """Download missing lyrics and upgrade plain lyrics to synced ones.

    One call to :meth:`run` walks the catalog from the persisted cursor, gates
    each track through the adaptive backoff policy and persists retry state
    every ``flush_every`` mutations as well as on completion. The caller must
    ensure only one run executes at a time.
    """

    name = "Download and upgrade lyrics"
    key = "DLLyrics"
    description = "Download missing lyrics and upgrade plain lyrics to synced lyrics"

    def __init__(
        self,
        *,
        config: LyricsTaskConfig,
        item_source: ItemSource,
        enricher: Enricher,
        store: RetryStateStore,
        query: ItemQuery | None = None,
        now_fn: Callable[[], datetime] | None = None,
    ) -> None:
        self._config = config.sanitized()
        self._source = item_source
        self._enricher = enricher
        self._store = store
        self._query = query or ItemQuery()
        self._now = now_fn or (lambda: datetime.now(UTC))
        self._policy = RetryBackoffPolicy(schedule_days=self._config.backoff_schedule_days)

    @property
    def config(self) -> LyricsTaskConfig:
        return self._config

    @staticmethod
    def default_triggers() -> list[timedelta]:
        return [DEFAULT_TRIGGER_INTERVAL]

    async def run(
        self,
        progress: ProgressSink | None = None,
        *,
        stop_event: asyncio.Event | None = None,
    ) -> RunSummary:
        started = time.monotonic()
        report = progress or (lambda _value: None)
        summary = RunSummary()

        def check_cancelled() -> None:
            if stop_event is not None and stop_event.is_set():
                raise asyncio.CancelledError("lyrics task stop requested")

        check_cancelled()
        total = await asyncio.to_thread(self._source.count, self._query)
        summary.total_count = total
        if total <= 0:
            summary.elapsed_seconds = time.monotonic() - started
            log_event(logger, "lyrics.run.empty", total_count=0)
            report(100.0)
            return summary

        state = await self._load_state()
        mutations = self._prune(state, summary)
        start_cursor = normalize_cursor(state.cursor, total)
        log_event(
            logger,
            "lyrics.run.start",
            total_count=total,
            cursor=start_cursor,
            entries=len(state.entries),
            run_cap=self._config.max_tracks_per_run if self._config.enable_run_cap else None,
            adaptive_backoff=self._config.enable_adaptive_retry_backoff,
        )

        pager = CursorPager(
            self._source,
            self._query,
            total_count=total,
            start_cursor=start_cursor,
            page_size=self._config.page_size,
            check_cancelled=check_cancelled,
        )

        async with contextlib.aclosing(pager.iter_items()) as items:
            async for item in items:
                check_cancelled()
                if not item.is_audio:
                    summary.non_audio_skipped += 1
                    report(100.0 * (pager.visited + 1) / total)
                    continue
                if (
                    self._config.enable_run_cap
                    and summary.attempted >= self._config.max_tracks_per_run
                ):
                    summary.cap_reached = True
                    break

                mutations += await self._process_item(item, state, summary)
                report(100.0 * (pager.visited + 1) / total)

                if mutations >= self._config.flush_every:
                    state.cursor = (pager.cursor + 1) % pager.total_count
                    await self._flush(state, summary, reason="periodic")
                    mutations = 0

        summary.visited = pager.visited
        summary.stopped_early = pager.stopped_early
        summary.cursor = normalize_cursor(pager.cursor, total)
        state.cursor = summary.cursor
        await self._flush(state, summary, reason="final")

        summary.elapsed_seconds = time.monotonic() - started
        log_event(logger, "lyrics.run.complete", **summary.as_log_fields())
        logger.info(summary.describe())
        report(100.0)
        return summary

    async def _load_state(self) -> RetryState:
        fresh = not self._store.exists()
        state = await self._store.load()
        if fresh and self._config.legacy_state_cursor > 0:
            state.cursor = self._config.legacy_state_cursor
            logger.info("Seeded lyrics cursor from legacy configuration: %s", state.cursor)
        return state

    def _prune(self, state: RetryState, summary: RunSummary) -> int:
        pruned = self._policy.prune_expired(
            state.entries, self._now(), self._config.failure_state_ttl_days
        )
        summary.pruned_entries = pruned
        if pruned:
            log_event(
                logger,
                "lyrics.state.pruned",
                pruned=pruned,
                remaining=len(state.entries),
                ttl_days=self._config.failure_state_ttl_days,
            )
        return pruned

    async def _flush(self, state: RetryState, summary: RunSummary, *, reason: str) -> None:
        saved = await self._store.save(state)
        if saved:
            summary.state_flushes += 1
        log_event(
            logger,
            "lyrics.state.flush",
            level=logging.DEBUG,
            reason=reason,
            saved=saved,
            cursor=state.cursor,
            entries=len(state.entries),
        )

    async def _process_item(self, item: LibraryItem, state: RetryState, summary: RunSummary) -> int:
        """Attempt one audio item; return the number of retry-state mutations."""

        now = self._now()
        signature = compute_signature(item)
        adaptive = self._config.enable_adaptive_retry_backoff
        mutations = 0

        if adaptive:
            decision = self._policy.gate(state.entries, item.item_id, signature, now)
            if decision is GateDecision.ATTEMPT_STALE_DROPPED:
                summary.stale_entries_dropped += 1
                mutations += 1
                logger.debug("Dropped stale retry entry for %s", item.path)
            elif decision is GateDecision.SKIP_BACKOFF:
                summary.backoff_skipped += 1
                logger.debug("Skipping %s until backoff expires", item.path)
                return mutations

        summary.attempted += 1
        result = await self._attempt(item)
        self._count(result, summary)

        if not adaptive:
            return mutations
        if result.is_success:
            if self._policy.record_success(state.entries, item.item_id):
                mutations += 1
        elif result.is_no_result:
            self._policy.record_no_result(state.entries, item.item_id, signature, now)
            mutations += 1
        else:
            self._policy.record_error(state.entries, item.item_id, signature, now)
            mutations += 1
        return mutations

    async def _attempt(self, item: LibraryItem) -> EnrichmentResult:
        try:
            result = await self._enricher.enrich(item)
        except Exception as exc:
            logger.error("Error processing lyrics for %s", item.path, exc_info=exc)
            return EnrichmentResult.failed(f"{type(exc).__name__}: {exc}")
        if result.kind is EnrichmentKind.FAILED:
            logger.warning("Lyrics enrichment failed for %s: %s", item.path, result.reason)
        return result

    @staticmethod
    def _count(result: EnrichmentResult, summary: RunSummary) -> None:
        if result.kind is EnrichmentKind.DOWNLOADED:
            summary.missing_downloaded += 1
        elif result.kind is EnrichmentKind.UPGRADED:
            summary.upgraded_to_synced += 1
        elif result.kind is EnrichmentKind.ALREADY_SYNCED:
            summary.already_synced_skipped += 1
        elif result.kind is EnrichmentKind.NO_SYNCED_FOUND:
            summary.plain_no_synced_found += 1
        elif result.kind is EnrichmentKind.NOT_FOUND:
            summary.not_found += 1
        else:
            summary.errors += 1


__all__ = ["DEFAULT_TRIGGER_INTERVAL", "LyricsDownloadTask", "ProgressSink", "RunSummary"]
