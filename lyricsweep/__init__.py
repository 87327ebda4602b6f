"""Resumable lyric download and upgrade job for music libraries."""

__version__ = "0.3.0"
