from __future__ import annotations

import asyncio
import contextlib

import pytest

from lyricsweep.core.pager import CursorPager, normalize_cursor
from lyricsweep.core.types import ItemQuery, LibraryItem
from lyricsweep.services.library_source import InMemoryItemSource
from tests.helpers import make_tracks


async def _collect(pager: CursorPager) -> list[str]:
    return [item.item_id async for item in pager]


def _ids(indices: list[int]) -> list[str]:
    return [f"track-{index:04d}" for index in indices]


@pytest.mark.parametrize(
    "cursor, total, expected",
    [(0, 10, 0), (9, 10, 9), (10, 10, 0), (25, 10, 5), (-3, 10, 0), (5, 0, 0)],
)
def test_normalize_cursor(cursor: int, total: int, expected: int) -> None:
    assert normalize_cursor(cursor, total) == expected


@pytest.mark.parametrize("total", [1, 7, 100])
def test_advancing_total_times_returns_to_start(total: int) -> None:
    for start in range(total):
        cursor = start
        for _ in range(total):
            cursor = (cursor + 1) % total
        assert cursor == start


@pytest.mark.asyncio
async def test_full_cycle_from_zero() -> None:
    source = InMemoryItemSource(make_tracks(5))
    pager = CursorPager(source, ItemQuery(), total_count=5, page_size=2)

    assert await _collect(pager) == _ids([0, 1, 2, 3, 4])
    assert pager.visited == 5
    assert pager.cursor == 0
    assert pager.stopped_early is False
    assert source.page_calls == [(0, 2), (2, 2), (4, 2)]


@pytest.mark.asyncio
async def test_wraps_around_from_mid_page_cursor() -> None:
    source = InMemoryItemSource(make_tracks(7))
    pager = CursorPager(source, ItemQuery(), total_count=7, start_cursor=5, page_size=3)

    assert await _collect(pager) == _ids([5, 6, 0, 1, 2, 3, 4])
    assert pager.cursor == 5
    assert source.page_calls[0] == (3, 3)


@pytest.mark.asyncio
async def test_empty_page_stops_early() -> None:
    source = InMemoryItemSource(make_tracks(4))
    pager = CursorPager(source, ItemQuery(), total_count=10, start_cursor=6, page_size=3)

    assert await _collect(pager) == []
    assert pager.stopped_early is True
    assert pager.visited == 0
    assert pager.cursor == 6


@pytest.mark.asyncio
async def test_shrunk_collection_wraps_from_live_tail() -> None:
    source = InMemoryItemSource(make_tracks(10))
    pager = CursorPager(source, ItemQuery(), total_count=10, start_cursor=7, page_size=5)
    source.replace_items(make_tracks(6))

    assert await _collect(pager) == _ids([0, 1, 2, 3, 4, 5])
    assert pager.stopped_early is False
    assert pager.total_count == 6
    assert pager.cursor == 0
    assert source.page_calls == [(5, 5), (0, 5), (5, 5)]


@pytest.mark.asyncio
async def test_shrink_on_last_page_visits_head_once() -> None:
    source = InMemoryItemSource(make_tracks(250))
    pager = CursorPager(source, ItemQuery(), total_count=250, start_cursor=100, page_size=100)
    source.replace_items(make_tracks(249))

    seen = await _collect(pager)

    assert seen == _ids(list(range(100, 249)) + list(range(100)))
    assert len(set(seen)) == 249
    assert pager.visited == 249
    assert pager.stopped_early is False
    assert pager.cursor == 100


@pytest.mark.asyncio
async def test_collection_shrinking_mid_run_terminates() -> None:
    source = InMemoryItemSource(make_tracks(6))
    pager = CursorPager(source, ItemQuery(), total_count=6, page_size=2)

    seen: list[str] = []
    async for item in pager:
        seen.append(item.item_id)
        if len(seen) == 2:
            source.replace_items(make_tracks(3))

    assert seen == _ids([0, 1, 2])
    assert pager.stopped_early is False
    assert pager.visited == 3
    assert pager.cursor == 0


@pytest.mark.asyncio
async def test_grown_collection_is_bounded_by_snapshot() -> None:
    source = InMemoryItemSource(make_tracks(4))
    pager = CursorPager(source, ItemQuery(), total_count=4, start_cursor=2, page_size=10)
    source.replace_items(make_tracks(8))

    assert await _collect(pager) == _ids([2, 3, 0, 1])
    assert pager.visited == 4
    assert pager.cursor == 2


@pytest.mark.asyncio
async def test_closing_iteration_keeps_cursor_on_unconsumed_item() -> None:
    source = InMemoryItemSource(make_tracks(5))
    pager = CursorPager(source, ItemQuery(), total_count=5, start_cursor=1, page_size=2)

    async with contextlib.aclosing(pager.iter_items()) as items:
        async for item in items:
            if item.item_id == "track-0003":
                break

    assert pager.cursor == 3
    assert pager.visited == 2


@pytest.mark.asyncio
async def test_cancellation_checked_before_page_fetch() -> None:
    source = InMemoryItemSource(make_tracks(3))

    def _cancel() -> None:
        raise asyncio.CancelledError()

    pager = CursorPager(source, ItemQuery(), total_count=3, check_cancelled=_cancel)

    with pytest.raises(asyncio.CancelledError):
        await _collect(pager)
    assert source.page_calls == []


@pytest.mark.asyncio
async def test_zero_total_yields_nothing() -> None:
    source = InMemoryItemSource([])
    pager = CursorPager(source, ItemQuery(), total_count=0, start_cursor=4)

    assert await _collect(pager) == []
    assert pager.cursor == 0
    assert source.page_calls == []


def test_page_size_must_be_positive() -> None:
    with pytest.raises(ValueError):
        CursorPager(InMemoryItemSource([]), ItemQuery(), total_count=1, page_size=0)


def test_library_item_audio_filter() -> None:
    assert LibraryItem(item_id="a").is_audio is True
    assert LibraryItem(item_id="b", item_type="MusicVideo").is_audio is False
    assert LibraryItem(item_id="c", is_virtual=True).is_audio is False
