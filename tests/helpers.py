"""Shared builders and stubs for the lyricsweep test-suite."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime

from lyricsweep.core.types import ExistingLyrics, LibraryItem, LyricsCandidate
from lyricsweep.services.lyrics_enricher import EnrichmentKind, EnrichmentResult

FIXED_NOW = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)


class MutableClock:
    def __init__(self, now: datetime = FIXED_NOW) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_track(index: int, **overrides: object) -> LibraryItem:
    values: dict[str, object] = {
        "item_id": f"track-{index:04d}",
        "name": f"Song {index}",
        "path": f"/music/artist/album/{index:02d} - Song {index}.flac",
        "duration_seconds": 180.0 + index,
        "album": "Album",
        "artists": ("Artist",),
        "album_artists": ("Artist",),
    }
    values.update(overrides)
    return LibraryItem(**values)  # type: ignore[arg-type]


def make_tracks(count: int) -> list[LibraryItem]:
    return [make_track(index) for index in range(count)]


class StubEnricher:
    """Return scripted results per item id; default is ``NOT_FOUND``."""

    def __init__(
        self,
        results: dict[str, EnrichmentResult | BaseException] | None = None,
        *,
        default: EnrichmentResult | None = None,
    ) -> None:
        self.results = dict(results or {})
        self.default = default or EnrichmentResult(kind=EnrichmentKind.NOT_FOUND)
        self.calls: list[str] = []

    async def enrich(self, item: LibraryItem) -> EnrichmentResult:
        self.calls.append(item.item_id)
        outcome = self.results.get(item.item_id, self.default)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


@dataclass
class StubLyricsProvider:
    existing: dict[str, ExistingLyrics] = field(default_factory=dict)
    candidates: dict[str, Sequence[LyricsCandidate]] = field(default_factory=dict)
    fetch_result: bool = True
    search_calls: list[tuple[str, bool]] = field(default_factory=list)
    fetch_calls: list[tuple[str, str]] = field(default_factory=list)

    async def get_existing(self, item: LibraryItem) -> ExistingLyrics | None:
        return self.existing.get(item.item_id)

    async def search(self, item: LibraryItem, strict: bool) -> Sequence[LyricsCandidate]:
        self.search_calls.append((item.item_id, strict))
        return list(self.candidates.get(item.item_id, ()))

    async def fetch(self, item: LibraryItem, candidate_id: str) -> bool:
        self.fetch_calls.append((item.item_id, candidate_id))
        return self.fetch_result
