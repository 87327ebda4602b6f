"""Wire configuration, catalog, provider and store into a runnable task."""

from __future__ import annotations

from dataclasses import dataclass

import httpx

from lyricsweep.config import AppConfig
from lyricsweep.core.pager import ItemSource
from lyricsweep.db import build_engine, build_session_factory, init_db
from lyricsweep.integrations.lrclib_client import LrclibClient, LrclibLyricsProvider
from lyricsweep.services.library_source import SqlAlchemyItemSource
from lyricsweep.services.lyrics_enricher import LyricsEnricher
from lyricsweep.state.store import RetryStateStore
from lyricsweep.workers.lyrics_task import LyricsDownloadTask


@dataclass(slots=True)
class LyricsRuntime:
    task: LyricsDownloadTask
    store: RetryStateStore
    item_source: ItemSource


def build_item_source(config: AppConfig) -> SqlAlchemyItemSource:
    engine = build_engine(config.database.url)
    init_db(engine)
    return SqlAlchemyItemSource(build_session_factory(engine))


def build_runtime(
    config: AppConfig,
    *,
    item_source: ItemSource | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> LyricsRuntime:
    task_config = config.task
    source = item_source if item_source is not None else build_item_source(config)
    client = LrclibClient(
        base_url=config.lrclib.base_url,
        timeout_seconds=config.lrclib.timeout_seconds,
        transport=transport,
    )
    provider = LrclibLyricsProvider(
        client,
        exclude_artist_name=task_config.exclude_artist_name,
        exclude_album_name=task_config.exclude_album_name,
    )
    store = RetryStateStore(task_config.state_path)
    task = LyricsDownloadTask(
        config=task_config,
        item_source=source,
        enricher=LyricsEnricher(provider, strict_search=task_config.use_strict_search),
        store=store,
    )
    return LyricsRuntime(task=task, store=store, item_source=source)


__all__ = ["LyricsRuntime", "build_item_source", "build_runtime"]
