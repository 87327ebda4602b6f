"""Three-step lyric enrichment: inspect existing, search, then fetch."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from lyricsweep.core.types import ExistingLyrics, LibraryItem, LyricsCandidate
from lyricsweep.logging import get_logger

logger = get_logger(__name__)


class LyricsProvider(Protocol):
    """Remote/local lyric capability used by :class:`LyricsEnricher`."""

    async def get_existing(self, item: LibraryItem) -> ExistingLyrics | None: ...

    async def search(self, item: LibraryItem, strict: bool) -> Sequence[LyricsCandidate]: ...

    async def fetch(self, item: LibraryItem, candidate_id: str) -> bool: ...


class EnrichmentKind(str, Enum):
    DOWNLOADED = "downloaded"
    UPGRADED = "upgraded"
    ALREADY_SYNCED = "already_synced"
    NOT_FOUND = "not_found"
    NO_SYNCED_FOUND = "no_synced_found"
    FAILED = "failed"


SUCCESS_KINDS = frozenset(
    {EnrichmentKind.DOWNLOADED, EnrichmentKind.UPGRADED, EnrichmentKind.ALREADY_SYNCED}
)
NO_RESULT_KINDS = frozenset({EnrichmentKind.NOT_FOUND, EnrichmentKind.NO_SYNCED_FOUND})


@dataclass(slots=True, frozen=True)
class EnrichmentResult:
    """Outcome of enriching one track."""

    kind: EnrichmentKind
    candidate_id: str | None = None
    reason: str | None = None

    @property
    def is_success(self) -> bool:
        return self.kind in SUCCESS_KINDS

    @property
    def is_no_result(self) -> bool:
        return self.kind in NO_RESULT_KINDS

    @classmethod
    def failed(cls, reason: str) -> "EnrichmentResult":
        return cls(kind=EnrichmentKind.FAILED, reason=reason)


def select_best_synced_candidate(
    candidates: Sequence[LyricsCandidate],
) -> LyricsCandidate | None:
    for candidate in candidates:
        if candidate.is_synced:
            return candidate
    return None


class LyricsEnricher:
    """Download missing lyrics and upgrade plain lyrics to synced ones."""

    def __init__(self, provider: LyricsProvider, *, strict_search: bool = True) -> None:
        self._provider = provider
        self._strict = strict_search

    async def enrich(self, item: LibraryItem) -> EnrichmentResult:
        existing = await self._provider.get_existing(item)

        if existing is None:
            logger.debug("Searching for lyrics for %s", item.path)
            candidates = await self._provider.search(item, self._strict)
            if not candidates:
                return EnrichmentResult(kind=EnrichmentKind.NOT_FOUND)
            best = candidates[0]
            logger.debug("Saving lyrics for %s", item.path)
            if not await self._provider.fetch(item, best.candidate_id):
                return EnrichmentResult.failed(f"candidate {best.candidate_id} could not be applied")
            return EnrichmentResult(kind=EnrichmentKind.DOWNLOADED, candidate_id=best.candidate_id)

        if existing.is_synced:
            return EnrichmentResult(kind=EnrichmentKind.ALREADY_SYNCED)

        logger.debug("Checking upgrade to synced lyrics for %s", item.path)
        candidates = await self._provider.search(item, self._strict)
        synced = select_best_synced_candidate(candidates)
        if synced is None:
            return EnrichmentResult(kind=EnrichmentKind.NO_SYNCED_FOUND)
        logger.debug("Upgrading to synced lyrics for %s", item.path)
        if not await self._provider.fetch(item, synced.candidate_id):
            return EnrichmentResult.failed(f"candidate {synced.candidate_id} could not be applied")
        return EnrichmentResult(kind=EnrichmentKind.UPGRADED, candidate_id=synced.candidate_id)


__all__ = [
    "EnrichmentKind",
    "EnrichmentResult",
    "LyricsEnricher",
    "LyricsProvider",
    "NO_RESULT_KINDS",
    "SUCCESS_KINDS",
    "select_best_synced_candidate",
]
