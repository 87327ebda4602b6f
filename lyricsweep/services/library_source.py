"""Item sources that expose the library catalog to the lyric task."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
import threading

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from lyricsweep.core.types import ItemQuery, LibraryItem
from lyricsweep.db import SessionFactory, run_in_session
from lyricsweep.models import LibraryItemRecord


def _apply_query(statement: Select, query: ItemQuery) -> Select:
    if not query.recursive:
        statement = statement.where(LibraryItemRecord.parent_id.is_(None))
    if not query.include_virtual:
        statement = statement.where(LibraryItemRecord.is_virtual.is_(False))
    if query.item_types:
        statement = statement.where(LibraryItemRecord.item_type.in_(query.item_types))
    if query.media_types:
        statement = statement.where(LibraryItemRecord.media_type.in_(query.media_types))
    return statement


class SqlAlchemyItemSource:
    """Catalog backed by the ``library_items`` table, ordered by item id."""

    def __init__(self, session_factory: SessionFactory) -> None:
        self._session_factory = session_factory

    def count(self, query: ItemQuery) -> int:
        def _count(session: Session) -> int:
            statement = _apply_query(select(func.count(LibraryItemRecord.id)), query)
            return int(session.execute(statement).scalar_one())

        return run_in_session(self._session_factory, _count)

    def page(self, query: ItemQuery, offset: int, limit: int) -> list[LibraryItem]:
        def _page(session: Session) -> list[LibraryItem]:
            statement = (
                _apply_query(select(LibraryItemRecord), query)
                .order_by(LibraryItemRecord.id)
                .offset(max(offset, 0))
                .limit(max(limit, 0))
            )
            return [record.to_item() for record in session.execute(statement).scalars()]

        return run_in_session(self._session_factory, _page)

    def upsert(self, items: Iterable[LibraryItem]) -> int:
        """Insert or update catalog rows; returns the number of rows written."""

        def _upsert(session: Session) -> int:
            written = 0
            for item in items:
                record = session.get(LibraryItemRecord, item.item_id)
                if record is None:
                    record = LibraryItemRecord(id=item.item_id)
                    session.add(record)
                record.name = item.name
                record.path = item.path
                record.item_type = item.item_type
                record.media_type = item.media_type
                record.duration_seconds = item.duration_seconds
                record.album = item.album
                record.artists = list(item.artists)
                record.album_artists = list(item.album_artists)
                record.is_virtual = item.is_virtual
                written += 1
            return written

        return run_in_session(self._session_factory, _upsert)


def _matches(item: LibraryItem, query: ItemQuery) -> bool:
    if not query.include_virtual and item.is_virtual:
        return False
    if query.item_types and item.item_type not in query.item_types:
        return False
    if query.media_types and item.media_type not in query.media_types:
        return False
    return True


class InMemoryItemSource:
    """List-backed catalog whose contents may be mutated between page calls."""

    def __init__(self, items: Sequence[LibraryItem] = (), *, apply_filters: bool = True) -> None:
        self._items = list(items)
        self._apply_filters = apply_filters
        self._lock = threading.Lock()
        self.page_calls: list[tuple[int, int]] = []

    @property
    def items(self) -> list[LibraryItem]:
        with self._lock:
            return list(self._items)

    def replace_items(self, items: Sequence[LibraryItem]) -> None:
        with self._lock:
            self._items = list(items)

    def _visible(self, query: ItemQuery) -> list[LibraryItem]:
        if not self._apply_filters:
            return list(self._items)
        return [item for item in self._items if _matches(item, query)]

    def count(self, query: ItemQuery) -> int:
        with self._lock:
            return len(self._visible(query))

    def page(self, query: ItemQuery, offset: int, limit: int) -> list[LibraryItem]:
        with self._lock:
            self.page_calls.append((offset, limit))
            visible = self._visible(query)
            return visible[max(offset, 0) : max(offset, 0) + max(limit, 0)]


__all__ = ["InMemoryItemSource", "SqlAlchemyItemSource"]
