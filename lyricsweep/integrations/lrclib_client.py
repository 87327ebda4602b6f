"""Async HTTP client and lyrics provider backed by the lrclib.net API."""

from __future__ import annotations

import asyncio
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import httpx

from lyricsweep.core.types import ExistingLyrics, LibraryItem, LyricsCandidate
from lyricsweep.errors import (
    LyricsInvalidResponseError,
    LyricsProviderError,
    LyricsProviderHTTPError,
    LyricsProviderTimeoutError,
)
from lyricsweep.logging import get_logger
from lyricsweep.utils.lyrics_utils import (
    normalise_plain_lines,
    parse_lrc,
    read_existing_lyrics,
    render_lrc,
    save_lyrics_file,
)

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "lyricsweep (https://github.com/lyricsweep/lyricsweep)"
STRICT_DURATION_TOLERANCE_SECONDS = 2.0


@dataclass(slots=True)
class LrclibClient:
    """HTTPX based client for the public lrclib.net endpoints."""

    base_url: str = "https://lrclib.net"
    transport: httpx.AsyncBaseTransport | None = None
    timeout_seconds: float = 10.0
    user_agent: str = DEFAULT_USER_AGENT

    async def search(
        self,
        *,
        track_name: str,
        artist_name: str | None = None,
        album_name: str | None = None,
    ) -> list[Mapping[str, Any]]:
        params = _compact({
            "track_name": track_name,
            "artist_name": artist_name,
            "album_name": album_name,
        })
        response = await self._request("/api/search", params=params)
        payload = self._decode_json(response)
        if not isinstance(payload, list):
            raise LyricsInvalidResponseError("lrclib search returned unexpected payload")
        return [entry for entry in payload if isinstance(entry, Mapping)]

    async def get(
        self,
        *,
        track_name: str,
        artist_name: str,
        album_name: str,
        duration: float,
    ) -> Mapping[str, Any] | None:
        params = {
            "track_name": track_name,
            "artist_name": artist_name,
            "album_name": album_name,
            "duration": int(round(duration)),
        }
        response = await self._request("/api/get", params=params, allow_not_found=True)
        if response is None:
            return None
        return self._decode_record(response)

    async def get_by_id(self, record_id: str) -> Mapping[str, Any] | None:
        response = await self._request(f"/api/get/{record_id}", allow_not_found=True)
        if response is None:
            return None
        return self._decode_record(response)

    async def _request(
        self,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        allow_not_found: bool = False,
    ) -> httpx.Response | None:
        headers = {"Accept": "application/json", "User-Agent": self.user_agent}
        try:
            async with httpx.AsyncClient(
                base_url=self.base_url.rstrip("/"),
                timeout=httpx.Timeout(self.timeout_seconds, connect=min(self.timeout_seconds, 5.0)),
                headers=headers,
                transport=self.transport,
            ) as client:
                response = await client.get(path, params=params)
        except httpx.TimeoutException as exc:
            raise LyricsProviderTimeoutError() from exc
        except httpx.HTTPError as exc:
            raise LyricsProviderError(f"lrclib request failed: {exc}", retryable=True) from exc

        if response.status_code == httpx.codes.OK:
            return response
        if response.status_code == httpx.codes.NOT_FOUND and allow_not_found:
            return None

        body_preview = response.text[:200]
        if response.status_code == httpx.codes.TOO_MANY_REQUESTS:
            message = "lrclib rate limited the request"
        elif 500 <= response.status_code < 600:
            message = "lrclib returned a server error"
        else:
            message = "lrclib rejected the request"
        raise LyricsProviderHTTPError(
            response.status_code,
            message,
            headers=response.headers,
            body=body_preview,
        )

    @staticmethod
    def _decode_json(response: httpx.Response) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise LyricsInvalidResponseError("lrclib returned invalid JSON") from exc

    def _decode_record(self, response: httpx.Response) -> Mapping[str, Any]:
        payload = self._decode_json(response)
        if not isinstance(payload, Mapping):
            raise LyricsInvalidResponseError("lrclib returned unexpected payload")
        return payload


def _compact(params: Mapping[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in params.items() if value not in (None, "")}


def _text(value: Any) -> str:
    return value.strip() if isinstance(value, str) else ""


def _to_candidate(record: Mapping[str, Any]) -> LyricsCandidate | None:
    record_id = record.get("id")
    if record_id is None or isinstance(record_id, bool):
        return None
    synced = _text(record.get("syncedLyrics"))
    plain = _text(record.get("plainLyrics"))
    if not synced and not plain:
        return None
    duration = record.get("duration")
    return LyricsCandidate(
        candidate_id=str(record_id),
        is_synced=bool(synced),
        title=_text(record.get("trackName")),
        artist=_text(record.get("artistName")),
        album=_text(record.get("albumName")),
        duration_seconds=float(duration) if isinstance(duration, (int, float)) else None,
    )


class LrclibLyricsProvider:
    """Lyrics provider pairing local sidecar files with lrclib.net lookups."""

    def __init__(
        self,
        client: LrclibClient,
        *,
        exclude_artist_name: bool = False,
        exclude_album_name: bool = False,
    ) -> None:
        self._client = client
        self._exclude_artist = exclude_artist_name
        self._exclude_album = exclude_album_name

    async def get_existing(self, item: LibraryItem) -> ExistingLyrics | None:
        if not item.path:
            return None
        return await asyncio.to_thread(read_existing_lyrics, item.path)

    def _artist(self, item: LibraryItem) -> str | None:
        if self._exclude_artist:
            return None
        names = [name.strip() for name in item.artists or item.album_artists if name.strip()]
        return ", ".join(names) or None

    def _album(self, item: LibraryItem) -> str | None:
        if self._exclude_album:
            return None
        return (item.album or "").strip() or None

    async def search(self, item: LibraryItem, strict: bool) -> list[LyricsCandidate]:
        title = item.name.strip()
        if not title:
            return []
        artist = self._artist(item)
        album = self._album(item)

        if strict and artist and album and item.duration_seconds:
            record = await self._client.get(
                track_name=title,
                artist_name=artist,
                album_name=album,
                duration=item.duration_seconds,
            )
            candidate = _to_candidate(record) if record is not None else None
            return [candidate] if candidate is not None else []

        records = await self._client.search(track_name=title, artist_name=artist, album_name=album)
        candidates = [c for c in (_to_candidate(record) for record in records) if c is not None]
        if strict and item.duration_seconds:
            candidates = [
                candidate
                for candidate in candidates
                if candidate.duration_seconds is None
                or abs(candidate.duration_seconds - item.duration_seconds)
                <= STRICT_DURATION_TOLERANCE_SECONDS
            ]
        return candidates

    async def fetch(self, item: LibraryItem, candidate_id: str) -> bool:
        record = await self._client.get_by_id(candidate_id)
        if record is None or not item.path:
            return False

        synced = _text(record.get("syncedLyrics"))
        plain = _text(record.get("plainLyrics"))
        audio_path = Path(item.path)
        if synced and parse_lrc(synced):
            contents = render_lrc(
                parse_lrc(synced),
                title=_text(record.get("trackName")) or item.name,
                artist=_text(record.get("artistName")),
                album=_text(record.get("albumName")),
            )
            target = audio_path.with_suffix(".lrc")
        elif plain:
            contents = "\n".join(normalise_plain_lines(plain)) + "\n"
            target = audio_path.with_suffix(".txt")
        else:
            return False

        await asyncio.to_thread(save_lyrics_file, target, contents)
        logger.debug("Saved lyrics for %s to %s", item.path, target)
        return True


__all__ = ["LrclibClient", "LrclibLyricsProvider"]
