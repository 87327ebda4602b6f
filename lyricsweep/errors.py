"""Domain errors raised by lyricsweep collaborators."""

from __future__ import annotations

from collections.abc import Mapping


class LyricsError(RuntimeError):
    """Base exception for lyricsweep specific failures."""


class LyricsProviderError(LyricsError):
    """Raised when the remote lyrics provider could not serve a request."""

    def __init__(self, message: str, *, retryable: bool = False) -> None:
        super().__init__(message)
        self.retryable = retryable


class LyricsProviderTimeoutError(LyricsProviderError):
    """Raised when a provider request exceeded its timeout."""

    def __init__(self, message: str = "lyrics provider request timed out") -> None:
        super().__init__(message, retryable=True)


class LyricsInvalidResponseError(LyricsProviderError):
    """Raised when the provider payload cannot be decoded."""


class LyricsProviderHTTPError(LyricsProviderError):
    """Raised when the provider answered with an unexpected status code."""

    def __init__(
        self,
        status_code: int,
        message: str,
        *,
        headers: Mapping[str, str] | None = None,
        body: str | None = None,
    ) -> None:
        super().__init__(message, retryable=status_code >= 500 or status_code == 429)
        self.status_code = status_code
        self.headers = dict(headers or {})
        self.body = body


__all__ = [
    "LyricsError",
    "LyricsInvalidResponseError",
    "LyricsProviderError",
    "LyricsProviderHTTPError",
    "LyricsProviderTimeoutError",
]
