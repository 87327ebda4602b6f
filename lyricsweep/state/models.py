"""Persisted retry and cursor state for lyric task runs."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from lyricsweep.logging import get_logger

logger = get_logger(__name__)

# Timestamps at or before this value are treated as "never set".
_ZERO_TIMESTAMP_YEAR = 1


class RetryOutcome(str, Enum):
    """Track processing outcomes recorded in retry state."""

    NONE = "None"
    NO_RESULT = "NoResult"
    DOWNLOADED = "Downloaded"
    UPGRADED = "Upgraded"
    ERROR = "Error"


def format_utc(value: datetime | None) -> str | None:
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


def parse_utc(value: Any) -> datetime | None:
    """Parse an ISO-8601 timestamp into an aware UTC datetime.

    ``None``, empty strings and the zero timestamp map to ``None``.
    """

    if value is None:
        return None
    if not isinstance(value, str):
        raise ValueError(f"timestamp must be a string, got {type(value).__name__}")
    text = value.strip()
    if not text:
        return None
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    parsed = parsed.astimezone(UTC)
    if parsed.year <= _ZERO_TIMESTAMP_YEAR:
        return None
    return parsed


@dataclass(slots=True)
class RetryEntry:
    """Retry bookkeeping for one track."""

    track_signature: str = ""
    consecutive_no_result_count: int = 0
    next_retry_utc: datetime | None = None
    last_attempt_utc: datetime | None = None
    last_outcome: RetryOutcome = RetryOutcome.NONE

    def to_dict(self) -> dict[str, Any]:
        return {
            "trackSignature": self.track_signature,
            "consecutiveNoResultCount": self.consecutive_no_result_count,
            "nextRetryUtc": format_utc(self.next_retry_utc),
            "lastAttemptUtc": format_utc(self.last_attempt_utc),
            "lastOutcome": self.last_outcome.value,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "RetryEntry":
        if not isinstance(payload, Mapping):
            raise ValueError("retry entry must be an object")
        signature = payload.get("trackSignature", "")
        if not isinstance(signature, str):
            raise ValueError("trackSignature must be a string")
        count = payload.get("consecutiveNoResultCount", 0)
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValueError("consecutiveNoResultCount must be an integer")
        return cls(
            track_signature=signature,
            consecutive_no_result_count=max(count, 0),
            next_retry_utc=parse_utc(payload.get("nextRetryUtc")),
            last_attempt_utc=parse_utc(payload.get("lastAttemptUtc")),
            last_outcome=RetryOutcome(payload.get("lastOutcome") or RetryOutcome.NONE.value),
        )


@dataclass(slots=True)
class RetryState:
    """Cursor plus retry entries keyed by stable track id."""

    cursor: int = 0
    entries: dict[str, RetryEntry] = field(default_factory=dict)

    def snapshot(self) -> "RetryState":
        """Return a deep copy safe to hand to the store."""

        return RetryState(
            cursor=self.cursor,
            entries={item_id: replace(entry) for item_id, entry in self.entries.items()},
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "cursor": self.cursor,
            "entries": {item_id: entry.to_dict() for item_id, entry in self.entries.items()},
        }

    @classmethod
    def from_dict(cls, payload: Any) -> "RetryState":
        if not isinstance(payload, Mapping):
            raise ValueError("retry state must be a JSON object")
        cursor = payload.get("cursor", 0)
        if isinstance(cursor, bool) or not isinstance(cursor, int):
            cursor = 0

        raw_entries = payload.get("entries") or {}
        if not isinstance(raw_entries, Mapping):
            raise ValueError("entries must be a JSON object")

        entries: dict[str, RetryEntry] = {}
        for item_id, raw_entry in raw_entries.items():
            try:
                entries[str(item_id)] = RetryEntry.from_dict(raw_entry)
            except ValueError as exc:
                logger.debug("Dropping malformed retry entry %s: %s", item_id, exc)
        return cls(cursor=cursor, entries=entries)


__all__ = ["RetryEntry", "RetryOutcome", "RetryState", "format_utc", "parse_utc"]
