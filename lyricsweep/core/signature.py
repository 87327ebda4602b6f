"""Content fingerprints used to detect stale retry entries."""

from __future__ import annotations

from collections.abc import Iterable
import hashlib
from typing import Protocol

# ASCII record and unit separators; normalised metadata never contains them.
_SLOT_SEPARATOR = "\x1e"
_VALUE_SEPARATOR = "\x1f"
_MISSING = "\x00"


class TrackFields(Protocol):
    """Descriptive fields a track exposes for fingerprinting."""

    @property
    def name(self) -> str | None: ...

    @property
    def path(self) -> str | None: ...

    @property
    def duration_seconds(self) -> float | None: ...

    @property
    def album(self) -> str | None: ...

    @property
    def artists(self) -> Iterable[str]: ...

    @property
    def album_artists(self) -> Iterable[str]: ...


def _normalise_text(value: str | None) -> str:
    if value is None:
        return _MISSING
    return value.strip().lower()


def _normalise_duration(value: float | None) -> str:
    if value is None:
        return _MISSING
    return repr(float(value))


def _normalise_values(values: Iterable[str] | None) -> str:
    cleaned = [value.strip().lower() for value in values or () if value and value.strip()]
    return _VALUE_SEPARATOR.join(cleaned)


def compute_signature(track: TrackFields) -> str:
    """Return a SHA-256 hex digest of the track's normalised metadata."""

    slots = (
        _normalise_text(track.name),
        _normalise_text(track.path),
        _normalise_duration(track.duration_seconds),
        _normalise_text(track.album),
        _normalise_values(track.artists),
        _normalise_values(track.album_artists),
    )
    material = _SLOT_SEPARATOR.join(slots)
    return hashlib.sha256(material.encode("utf-8")).hexdigest()


__all__ = ["TrackFields", "compute_signature"]
