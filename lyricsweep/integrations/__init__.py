"""External lyric provider integrations."""

from .lrclib_client import LrclibClient, LrclibLyricsProvider

__all__ = ["LrclibClient", "LrclibLyricsProvider"]
