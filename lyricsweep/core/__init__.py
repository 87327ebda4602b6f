"""Core processing primitives: signatures, backoff decisions and paging."""

from .backoff import GateDecision, RetryBackoffPolicy, sanitize_backoff_schedule
from .pager import CursorPager, ItemSource, normalize_cursor
from .signature import TrackFields, compute_signature
from .types import ExistingLyrics, ItemQuery, LibraryItem, LyricsCandidate

__all__ = [
    "CursorPager",
    "ExistingLyrics",
    "GateDecision",
    "ItemQuery",
    "ItemSource",
    "LibraryItem",
    "LyricsCandidate",
    "RetryBackoffPolicy",
    "TrackFields",
    "compute_signature",
    "normalize_cursor",
    "sanitize_backoff_schedule",
]
