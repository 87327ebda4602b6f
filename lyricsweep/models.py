"""Database models for the lyricsweep item catalog."""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, Float, Index, String

from lyricsweep.core.types import AUDIO_ITEM_TYPE, AUDIO_MEDIA_TYPE, LibraryItem
from lyricsweep.db import Base


def _utcnow() -> datetime:
    """Return a timezone-aware UTC timestamp for ORM defaults."""

    return datetime.now(UTC)


def _as_names(value: object) -> tuple[str, ...]:
    if not isinstance(value, list):
        return ()
    return tuple(str(entry) for entry in value if isinstance(entry, str))


class LibraryItemRecord(Base):
    __tablename__ = "library_items"

    id = Column(String(64), primary_key=True)
    parent_id = Column(String(64), nullable=True, index=True)
    name = Column(String(512), nullable=False, default="")
    path = Column(String(2048), nullable=False, default="")
    item_type = Column(String(32), nullable=False, default=AUDIO_ITEM_TYPE)
    media_type = Column(String(32), nullable=False, default=AUDIO_MEDIA_TYPE)
    duration_seconds = Column(Float, nullable=True)
    album = Column(String(512), nullable=True)
    artists = Column(JSON, nullable=False, default=list)
    album_artists = Column(JSON, nullable=False, default=list)
    is_virtual = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(
        DateTime(timezone=True),
        default=_utcnow,
        onupdate=_utcnow,
        nullable=False,
    )

    __table_args__ = (Index("ix_library_items_type_virtual", "item_type", "is_virtual"),)

    def to_item(self) -> LibraryItem:
        return LibraryItem(
            item_id=str(self.id),
            name=self.name or "",
            path=self.path or "",
            item_type=self.item_type or AUDIO_ITEM_TYPE,
            media_type=self.media_type or AUDIO_MEDIA_TYPE,
            duration_seconds=self.duration_seconds,
            album=self.album,
            artists=_as_names(self.artists),
            album_artists=_as_names(self.album_artists),
            is_virtual=bool(self.is_virtual),
        )


__all__ = ["LibraryItemRecord"]
