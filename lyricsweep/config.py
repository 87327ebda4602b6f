"""Runtime configuration for the lyric download task."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
import os
from pathlib import Path
from typing import Any

from lyricsweep.core.backoff import DEFAULT_BACKOFF_SCHEDULE_DAYS, sanitize_backoff_schedule
from lyricsweep.core.pager import DEFAULT_PAGE_SIZE
from lyricsweep.state.store import STATE_FILE_NAME

DEFAULT_MAX_TRACKS_PER_RUN = 2000
MIN_MAX_TRACKS_PER_RUN = 100
DEFAULT_FAILURE_STATE_TTL_DAYS = 90
MIN_FAILURE_STATE_TTL_DAYS = 1
DEFAULT_FLUSH_EVERY = 25
DEFAULT_INTERVAL_HOURS = 24.0
DEFAULT_DATA_DIR = "./data"
DEFAULT_DATABASE_URL = "sqlite:///./lyricsweep.db"
DEFAULT_LRCLIB_BASE_URL = "https://lrclib.net"
DEFAULT_LRCLIB_TIMEOUT_SECONDS = 10.0
DEFAULT_LOG_LEVEL = "INFO"

_RUNTIME_ENV_CACHE: dict[str, str] | None = None


def _load_env_file(path: Path) -> dict[str, str]:
    try:
        contents = path.read_text(encoding="utf-8")
    except OSError:
        return {}
    env_values: dict[str, str] = {}
    for line in contents.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        key, sep, value = stripped.partition("=")
        if not sep:
            continue
        env_values[key.strip()] = value.strip().strip('"').strip("'")
    return env_values


def load_runtime_env(
    *,
    env_file: str | os.PathLike[str] | None = None,
    base_env: Mapping[str, str] | None = None,
) -> dict[str, str]:
    """Load runtime environment values applying .env before explicit environment."""

    env: dict[str, str] = {}
    source = dict(base_env if base_env is not None else os.environ)

    path = Path(env_file) if env_file is not None else Path(".env")
    if path.exists() and path.is_file():
        env.update(_load_env_file(path))

    env.update({key: str(value) for key, value in source.items() if value is not None})
    return env


def get_runtime_env() -> Mapping[str, str]:
    """Return the cached runtime environment mapping."""

    global _RUNTIME_ENV_CACHE
    if _RUNTIME_ENV_CACHE is None:
        _RUNTIME_ENV_CACHE = load_runtime_env()
    return _RUNTIME_ENV_CACHE


def override_runtime_env(runtime_env: Mapping[str, str] | None) -> None:
    """Override the cached runtime environment (primarily for testing)."""

    global _RUNTIME_ENV_CACHE
    if runtime_env is None:
        _RUNTIME_ENV_CACHE = None
    else:
        _RUNTIME_ENV_CACHE = dict(runtime_env)


def _as_bool(value: str | None, *, default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(value: str | None, *, default: int) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _as_float(value: str | None, *, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def _parse_list(value: str | None) -> list[str]:
    if value is None:
        return []
    candidates = value.replace("\n", ",").split(",")
    return [item.strip() for item in candidates if item.strip()]


def _parse_int_list(value: str | None) -> list[int]:
    parsed: list[int] = []
    for item in _parse_list(value):
        try:
            parsed.append(int(item))
        except ValueError:
            continue
    return parsed


def sanitize_max_tracks(value: int) -> int:
    if value <= 0:
        return DEFAULT_MAX_TRACKS_PER_RUN
    return max(value, MIN_MAX_TRACKS_PER_RUN)


def sanitize_ttl_days(value: int) -> int:
    if value <= 0:
        return DEFAULT_FAILURE_STATE_TTL_DAYS
    return max(value, MIN_FAILURE_STATE_TTL_DAYS)


@dataclass(slots=True, frozen=True)
class LyricsTaskConfig:
    """Options recognised by the lyric download task."""

    use_strict_search: bool = True
    exclude_artist_name: bool = False
    exclude_album_name: bool = False
    enable_adaptive_retry_backoff: bool = True
    enable_run_cap: bool = True
    max_tracks_per_run: int = DEFAULT_MAX_TRACKS_PER_RUN
    failure_state_ttl_days: int = DEFAULT_FAILURE_STATE_TTL_DAYS
    backoff_schedule_days: tuple[int, ...] = DEFAULT_BACKOFF_SCHEDULE_DAYS
    legacy_state_cursor: int = 0
    page_size: int = DEFAULT_PAGE_SIZE
    flush_every: int = DEFAULT_FLUSH_EVERY
    state_path: Path = Path(DEFAULT_DATA_DIR) / "plugins" / "lyrics" / STATE_FILE_NAME

    def sanitized(self) -> "LyricsTaskConfig":
        """Return a copy with invalid values replaced by safe defaults or floors."""

        max_tracks = self.max_tracks_per_run
        if self.enable_run_cap:
            max_tracks = sanitize_max_tracks(max_tracks)
        return replace(
            self,
            max_tracks_per_run=max_tracks,
            failure_state_ttl_days=sanitize_ttl_days(self.failure_state_ttl_days),
            backoff_schedule_days=sanitize_backoff_schedule(self.backoff_schedule_days),
            legacy_state_cursor=max(self.legacy_state_cursor, 0),
            page_size=max(self.page_size, 1),
            flush_every=max(self.flush_every, 1),
        )


@dataclass(slots=True, frozen=True)
class LrclibConfig:
    base_url: str
    timeout_seconds: float


@dataclass(slots=True, frozen=True)
class DatabaseConfig:
    url: str


@dataclass(slots=True, frozen=True)
class LoggingConfig:
    level: str
    log_file: str | None = None


@dataclass(slots=True, frozen=True)
class AppConfig:
    task: LyricsTaskConfig
    lrclib: LrclibConfig
    database: DatabaseConfig
    logging: LoggingConfig
    interval_hours: float


def _resolve_state_path(env: Mapping[str, Any]) -> Path:
    explicit = env.get("LYRICS_STATE_PATH")
    if explicit:
        return Path(str(explicit)).expanduser()
    data_dir = Path(str(env.get("LYRICS_DATA_DIR") or DEFAULT_DATA_DIR)).expanduser()
    return data_dir / "plugins" / "lyrics" / STATE_FILE_NAME


def load_task_config(env: Mapping[str, str] | None = None) -> LyricsTaskConfig:
    """Build the sanitised :class:`LyricsTaskConfig` from the runtime environment."""

    source = env if env is not None else get_runtime_env()
    schedule: Iterable[int] = _parse_int_list(source.get("LYRICS_BACKOFF_SCHEDULE_DAYS"))
    config = LyricsTaskConfig(
        use_strict_search=_as_bool(source.get("LYRICS_USE_STRICT_SEARCH"), default=True),
        exclude_artist_name=_as_bool(source.get("LYRICS_EXCLUDE_ARTIST_NAME"), default=False),
        exclude_album_name=_as_bool(source.get("LYRICS_EXCLUDE_ALBUM_NAME"), default=False),
        enable_adaptive_retry_backoff=_as_bool(
            source.get("LYRICS_ENABLE_ADAPTIVE_RETRY_BACKOFF"), default=True
        ),
        enable_run_cap=_as_bool(source.get("LYRICS_ENABLE_RUN_CAP"), default=True),
        max_tracks_per_run=_as_int(
            source.get("LYRICS_MAX_TRACKS_PER_RUN"), default=DEFAULT_MAX_TRACKS_PER_RUN
        ),
        failure_state_ttl_days=_as_int(
            source.get("LYRICS_FAILURE_STATE_TTL_DAYS"), default=DEFAULT_FAILURE_STATE_TTL_DAYS
        ),
        backoff_schedule_days=tuple(schedule),
        legacy_state_cursor=_as_int(source.get("LYRICS_STATE_CURSOR"), default=0),
        page_size=_as_int(source.get("LYRICS_PAGE_SIZE"), default=DEFAULT_PAGE_SIZE),
        flush_every=_as_int(source.get("LYRICS_FLUSH_EVERY"), default=DEFAULT_FLUSH_EVERY),
        state_path=_resolve_state_path(source),
    )
    return config.sanitized()


def load_config(env: Mapping[str, str] | None = None) -> AppConfig:
    source = env if env is not None else get_runtime_env()
    interval = _as_float(source.get("LYRICS_INTERVAL_HOURS"), default=DEFAULT_INTERVAL_HOURS)
    if interval <= 0:
        interval = DEFAULT_INTERVAL_HOURS
    timeout = _as_float(
        source.get("LRCLIB_TIMEOUT_SECONDS"), default=DEFAULT_LRCLIB_TIMEOUT_SECONDS
    )
    if timeout <= 0:
        timeout = DEFAULT_LRCLIB_TIMEOUT_SECONDS
    return AppConfig(
        task=load_task_config(source),
        lrclib=LrclibConfig(
            base_url=(source.get("LRCLIB_BASE_URL") or DEFAULT_LRCLIB_BASE_URL).rstrip("/"),
            timeout_seconds=timeout,
        ),
        database=DatabaseConfig(
            url=source.get("LYRICSWEEP_DATABASE_URL") or DEFAULT_DATABASE_URL
        ),
        logging=LoggingConfig(
            level=(source.get("LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper(),
            log_file=source.get("LOG_FILE") or None,
        ),
        interval_hours=interval,
    )


__all__ = [
    "AppConfig",
    "DatabaseConfig",
    "LoggingConfig",
    "LrclibConfig",
    "LyricsTaskConfig",
    "get_runtime_env",
    "load_config",
    "load_runtime_env",
    "load_task_config",
    "override_runtime_env",
    "sanitize_max_tracks",
    "sanitize_ttl_days",
]
