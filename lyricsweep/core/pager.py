"""Resumable, wrap-around iteration over a paginated item collection."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncGenerator, AsyncIterator, Callable, Sequence
import logging
from typing import Protocol

from lyricsweep.core.types import ItemQuery, LibraryItem
from lyricsweep.logging import get_logger
from lyricsweep.logging_events import log_event

logger = get_logger(__name__)

DEFAULT_PAGE_SIZE = 100


class ItemSource(Protocol):
    """Catalog capability consumed by the pager."""

    def count(self, query: ItemQuery) -> int: ...

    def page(self, query: ItemQuery, offset: int, limit: int) -> Sequence[LibraryItem]: ...


def normalize_cursor(cursor: int, total_count: int) -> int:
    """Wrap ``cursor`` into ``[0, total_count)``; negative values restart at 0."""

    if total_count <= 0 or cursor < 0:
        return 0
    return cursor % total_count


class CursorPager:
    """Yield items from ``cursor`` onwards, wrapping once around the collection.

    ``total_count`` is a snapshot taken at run start. Iteration ends after
    ``total_count`` items were yielded, or earlier when a page comes back
    empty. A short page that ends before the cursor is the live tail of a
    shrunken collection: the live size replaces the snapshot and iteration
    wraps to the start. ``cursor`` always points at the next item that has
    not been handed to the consumer yet, except while the consumer holds the
    current item, when it points at it.
    """

    def __init__(
        self,
        source: ItemSource,
        query: ItemQuery,
        *,
        total_count: int,
        start_cursor: int = 0,
        page_size: int = DEFAULT_PAGE_SIZE,
        check_cancelled: Callable[[], None] | None = None,
    ) -> None:
        if page_size <= 0:
            raise ValueError("page_size must be positive")
        self._source = source
        self._query = query
        self._total = max(total_count, 0)
        self._page_size = page_size
        self._cursor = normalize_cursor(start_cursor, self._total)
        self._visited = 0
        self._stopped_early = False
        self._check_cancelled = check_cancelled or (lambda: None)

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def visited(self) -> int:
        return self._visited

    @property
    def total_count(self) -> int:
        return self._total

    @property
    def stopped_early(self) -> bool:
        return self._stopped_early

    def __aiter__(self) -> AsyncIterator[LibraryItem]:
        return self.iter_items()

    def iter_items(self) -> AsyncGenerator[LibraryItem, None]:
        """Return the underlying generator; close it to stop without advancing."""

        return self._iterate()

    async def _fetch(self, offset: int) -> Sequence[LibraryItem]:
        self._check_cancelled()
        items = await asyncio.to_thread(self._source.page, self._query, offset, self._page_size)
        return list(items or ())

    def _stop(self, page_start: int) -> None:
        self._stopped_early = True
        log_event(
            logger,
            "lyrics.pager.stop",
            level=logging.WARNING,
            reason="empty_page",
            cursor=self._cursor,
            page_start=page_start,
            visited=self._visited,
            total_count=self._total,
        )

    def _wrap_shrunk(self, live_total: int) -> None:
        log_event(
            logger,
            "lyrics.pager.shrunk",
            level=logging.WARNING,
            cursor=self._cursor,
            snapshot_total=self._total,
            live_total=live_total,
            visited=self._visited,
        )
        self._total = live_total
        self._cursor = 0

    async def _iterate(self) -> AsyncGenerator[LibraryItem, None]:
        while self._visited < self._total:
            page_start = self._cursor - (self._cursor % self._page_size)
            items = await self._fetch(page_start)
            if not items:
                self._stop(page_start)
                return

            offset = self._cursor - page_start
            if offset >= len(items):
                self._wrap_shrunk(page_start + len(items))
                continue

            for item in items[offset:]:
                if self._visited >= self._total:
                    return
                yield item
                self._visited += 1
                self._cursor = (self._cursor + 1) % self._total
                if self._cursor == 0:
                    break


__all__ = ["CursorPager", "DEFAULT_PAGE_SIZE", "ItemSource", "normalize_cursor"]
