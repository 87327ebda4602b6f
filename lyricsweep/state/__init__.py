"""Retry state model and persistence."""

from .models import RetryEntry, RetryOutcome, RetryState
from .store import RetryStateStore

__all__ = ["RetryEntry", "RetryOutcome", "RetryState", "RetryStateStore"]
