"""Utility helpers for reading and writing lyric sidecar files."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import os
from pathlib import Path
import re
import tempfile

from lyricsweep.core.types import ExistingLyrics

SYNCED_SUFFIX = ".lrc"
PLAIN_SUFFIXES = (".lrc", ".txt")

_LRC_LINE = re.compile(r"\[(\d{1,3}):(\d{2})(?:[.:](\d{1,3}))?\](.*)")


def sidecar_paths(audio_path: str | os.PathLike[str]) -> list[Path]:
    base = Path(audio_path)
    return [base.with_suffix(suffix) for suffix in PLAIN_SUFFIXES]


def parse_lrc(lrc: str) -> list[tuple[float, str]]:
    """Return ``(seconds, text)`` tuples for every timestamped LRC line."""

    lines: list[tuple[float, str]] = []
    for raw_line in lrc.splitlines():
        match = _LRC_LINE.match(raw_line.strip())
        if not match:
            continue
        minutes = int(match.group(1))
        seconds = int(match.group(2))
        fraction = match.group(3)
        sub_seconds = int(fraction) / (10 ** len(fraction)) if fraction else 0.0
        text = match.group(4).strip()
        lines.append((minutes * 60 + seconds + sub_seconds, text))
    lines.sort(key=lambda item: item[0])
    return lines


def is_synced_lyrics(text: str | None) -> bool:
    if not text:
        return False
    return bool(parse_lrc(text))


def read_existing_lyrics(audio_path: str | os.PathLike[str]) -> ExistingLyrics | None:
    """Inspect sidecar files next to ``audio_path``; synced files take precedence."""

    found_plain: Path | None = None
    for candidate in sidecar_paths(audio_path):
        if not candidate.is_file():
            continue
        try:
            contents = candidate.read_text(encoding="utf-8", errors="replace")
        except OSError:
            continue
        if not contents.strip():
            continue
        if candidate.suffix == SYNCED_SUFFIX and is_synced_lyrics(contents):
            return ExistingLyrics(is_synced=True, path=str(candidate))
        found_plain = found_plain or candidate
    if found_plain is None:
        return None
    return ExistingLyrics(is_synced=False, path=str(found_plain))


def _format_timestamp(seconds: float) -> str:
    seconds = max(0.0, seconds)
    minutes = int(seconds // 60)
    remainder = seconds - minutes * 60
    return f"[{minutes:02d}:{remainder:05.2f}]"


def render_lrc(
    lines: Sequence[tuple[float, str]],
    *,
    title: str = "",
    artist: str = "",
    album: str = "",
) -> str:
    header: list[str] = []
    if title:
        header.append(f"[ti:{title}]")
    if artist:
        header.append(f"[ar:{artist}]")
    if album:
        header.append(f"[al:{album}]")
    body = [f"{_format_timestamp(timestamp)}{text}" for timestamp, text in lines]
    return "\n".join([*header, *body]) + "\n"


def normalise_plain_lines(lyrics: str) -> Iterable[str]:
    for line in lyrics.splitlines():
        cleaned = line.strip()
        if cleaned:
            yield cleaned


def save_lyrics_file(path: str | os.PathLike[str], contents: str) -> Path:
    """Atomically persist lyric contents next to the audio file."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=f".{target.stem}.", suffix=".tmp")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(contents)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return target


__all__ = [
    "PLAIN_SUFFIXES",
    "SYNCED_SUFFIX",
    "is_synced_lyrics",
    "normalise_plain_lines",
    "parse_lrc",
    "read_existing_lyrics",
    "render_lrc",
    "save_lyrics_file",
    "sidecar_paths",
]
