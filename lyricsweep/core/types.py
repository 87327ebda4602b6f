"""Shared value types for library items and lyric lookups."""

from __future__ import annotations

from dataclasses import dataclass, field

AUDIO_ITEM_TYPE = "Audio"
AUDIO_MEDIA_TYPE = "Audio"


@dataclass(slots=True, frozen=True)
class ItemQuery:
    """Catalog query describing the item set a run walks."""

    recursive: bool = True
    include_virtual: bool = False
    item_types: tuple[str, ...] = (AUDIO_ITEM_TYPE,)
    media_types: tuple[str, ...] = (AUDIO_MEDIA_TYPE,)


@dataclass(slots=True, frozen=True)
class LibraryItem:
    """One catalog entry as returned by an item source."""

    item_id: str
    name: str = ""
    path: str = ""
    item_type: str = AUDIO_ITEM_TYPE
    media_type: str = AUDIO_MEDIA_TYPE
    duration_seconds: float | None = None
    album: str | None = None
    artists: tuple[str, ...] = field(default_factory=tuple)
    album_artists: tuple[str, ...] = field(default_factory=tuple)
    is_virtual: bool = False

    @property
    def is_audio(self) -> bool:
        return self.item_type == AUDIO_ITEM_TYPE and not self.is_virtual


@dataclass(slots=True, frozen=True)
class ExistingLyrics:
    """Lyrics already attached to a track."""

    is_synced: bool
    path: str | None = None


@dataclass(slots=True, frozen=True)
class LyricsCandidate:
    """One ranked remote search hit."""

    candidate_id: str
    is_synced: bool
    title: str = ""
    artist: str = ""
    album: str = ""
    duration_seconds: float | None = None


__all__ = [
    "AUDIO_ITEM_TYPE",
    "AUDIO_MEDIA_TYPE",
    "ExistingLyrics",
    "ItemQuery",
    "LibraryItem",
    "LyricsCandidate",
]
