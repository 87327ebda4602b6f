"""Background worker exports."""

from .lyrics_scheduler import LyricsTaskScheduler
from .lyrics_task import LyricsDownloadTask, RunSummary

__all__ = ["LyricsDownloadTask", "LyricsTaskScheduler", "RunSummary"]
