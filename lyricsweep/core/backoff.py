"""Adaptive retry backoff decisions for per-track lyric lookups."""

from __future__ import annotations

from collections.abc import Iterable, MutableMapping
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from lyricsweep.state.models import RetryEntry, RetryOutcome

DEFAULT_BACKOFF_SCHEDULE_DAYS: tuple[int, ...] = (1, 3, 7, 30)
ERROR_RETRY_DELAY = timedelta(days=1)


def sanitize_backoff_schedule(values: Iterable[Any] | None) -> tuple[int, ...]:
    """Return an ascending, de-duplicated schedule of positive day counts.

    Entries that are not integers or are not strictly positive are dropped.
    An empty result falls back to :data:`DEFAULT_BACKOFF_SCHEDULE_DAYS`.
    """

    cleaned: set[int] = set()
    for value in values or ():
        if isinstance(value, bool):
            continue
        try:
            days = int(value)
        except (TypeError, ValueError):
            continue
        if days > 0:
            cleaned.add(days)
    if not cleaned:
        return DEFAULT_BACKOFF_SCHEDULE_DAYS
    return tuple(sorted(cleaned))


def backoff_index(consecutive_no_results: int, schedule_length: int) -> int:
    """Map a no-result streak (1-based) onto a schedule slot."""

    if schedule_length <= 0:
        raise ValueError("schedule_length must be positive")
    return min(max(consecutive_no_results, 1) - 1, schedule_length - 1)


class GateDecision(str, Enum):
    """Result of consulting the policy before attempting a track."""

    ATTEMPT = "attempt"
    ATTEMPT_STALE_DROPPED = "attempt_stale_dropped"
    SKIP_BACKOFF = "skip_backoff"


@dataclass(slots=True, frozen=True)
class RetryBackoffPolicy:
    """Pure state-machine rules applied to a mapping of retry entries.

    Every mutating method returns ``True`` when the mapping changed so callers
    can account mutations towards periodic persistence.
    """

    schedule_days: tuple[int, ...] = DEFAULT_BACKOFF_SCHEDULE_DAYS
    error_retry_delay: timedelta = ERROR_RETRY_DELAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "schedule_days", sanitize_backoff_schedule(self.schedule_days))

    def gate(
        self,
        entries: MutableMapping[str, RetryEntry],
        item_id: str,
        signature: str,
        now: datetime,
    ) -> GateDecision:
        """Decide whether ``item_id`` may be attempted at ``now``.

        A stored entry with a different signature is removed first so a
        changed track is always eligible.
        """

        entry = entries.get(item_id)
        if entry is None:
            return GateDecision.ATTEMPT
        if entry.track_signature != signature:
            del entries[item_id]
            return GateDecision.ATTEMPT_STALE_DROPPED
        if entry.next_retry_utc is not None and entry.next_retry_utc > now:
            return GateDecision.SKIP_BACKOFF
        return GateDecision.ATTEMPT

    def record_success(self, entries: MutableMapping[str, RetryEntry], item_id: str) -> bool:
        return entries.pop(item_id, None) is not None

    def record_no_result(
        self,
        entries: MutableMapping[str, RetryEntry],
        item_id: str,
        signature: str,
        now: datetime,
    ) -> RetryEntry:
        entry = entries.get(item_id)
        if entry is None:
            entry = RetryEntry(track_signature=signature, consecutive_no_result_count=1)
            entries[item_id] = entry
        else:
            entry.consecutive_no_result_count += 1

        index = backoff_index(entry.consecutive_no_result_count, len(self.schedule_days))
        entry.track_signature = signature
        entry.last_attempt_utc = now
        entry.last_outcome = RetryOutcome.NO_RESULT
        entry.next_retry_utc = now + timedelta(days=self.schedule_days[index])
        return entry

    def record_error(
        self,
        entries: MutableMapping[str, RetryEntry],
        item_id: str,
        signature: str,
        now: datetime,
    ) -> RetryEntry:
        entry = entries.get(item_id)
        if entry is None:
            entry = RetryEntry(track_signature=signature)
            entries[item_id] = entry

        entry.track_signature = signature
        entry.last_attempt_utc = now
        entry.last_outcome = RetryOutcome.ERROR
        entry.next_retry_utc = now + self.error_retry_delay
        return entry

    def prune_expired(
        self,
        entries: MutableMapping[str, RetryEntry],
        now: datetime,
        ttl_days: int,
    ) -> int:
        """Drop entries whose last attempt predates ``now - ttl_days``."""

        cutoff = now - timedelta(days=max(ttl_days, 1))
        expired = [
            item_id
            for item_id, entry in entries.items()
            if entry.last_attempt_utc is not None and entry.last_attempt_utc < cutoff
        ]
        for item_id in expired:
            del entries[item_id]
        return len(expired)


__all__ = [
    "DEFAULT_BACKOFF_SCHEDULE_DAYS",
    "ERROR_RETRY_DELAY",
    "GateDecision",
    "RetryBackoffPolicy",
    "backoff_index",
    "sanitize_backoff_schedule",
]
