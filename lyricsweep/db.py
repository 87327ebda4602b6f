"""Database configuration and helper utilities."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager
import logging
from pathlib import Path
from typing import TypeVar

from sqlalchemy import Engine, create_engine
from sqlalchemy.engine import URL, make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker


class Base(DeclarativeBase):
    pass


metadata = Base.metadata

_logger = logging.getLogger(__name__)

T = TypeVar("T")

SessionFactory = Callable[[], Session]


def _synchronous_url(url: URL) -> URL:
    driver = url.drivername.lower()
    if driver in {"sqlite", "sqlite+aiosqlite"}:
        return url.set(drivername="sqlite+pysqlite")
    return url


def _database_file_path(url: URL) -> Path | None:
    database = url.database
    if not url.drivername.startswith("sqlite") or not database or database == ":memory:":
        return None
    path = Path(database)
    if not path.is_absolute():
        path = (Path.cwd() / path).resolve()
    return path


def build_engine(database_url: str) -> Engine:
    url = _synchronous_url(make_url(database_url))
    connect_args: dict[str, object] = {}
    if url.drivername.startswith("sqlite"):
        connect_args["check_same_thread"] = False
        path = _database_file_path(url)
        if path is not None:
            path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(url, future=True, connect_args=connect_args)


def build_session_factory(engine: Engine) -> sessionmaker[Session]:
    return sessionmaker(
        bind=engine,
        autoflush=False,
        autocommit=False,
        expire_on_commit=False,
    )


def init_db(engine: Engine) -> None:
    from lyricsweep import models  # noqa: F401

    Base.metadata.create_all(bind=engine, checkfirst=True)
    _logger.debug("Database schema ensured", extra={"event": "database.bootstrap"})


@contextmanager
def session_scope(factory: SessionFactory) -> Iterator[Session]:
    session = factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def run_in_session(factory: SessionFactory, func: Callable[[Session], T]) -> T:
    with session_scope(factory) as session:
        return func(session)


__all__ = [
    "Base",
    "SessionFactory",
    "build_engine",
    "build_session_factory",
    "init_db",
    "metadata",
    "run_in_session",
    "session_scope",
]
