"""
Error taxonomy.

Fetch failures are recovered where they happen (stale cache, skipped
page or incident code). Storage failures always reach the caller.
"""

from __future__ import annotations

from typing import Optional


class StatusHistoryError(Exception):
    """Base class for all tracker errors."""


class TransientFetchError(StatusHistoryError):
    """Network error or non-success response from an upstream call."""

    def __init__(self, url: str, message: str, status: Optional[int] = None) -> None:
        super().__init__(f"{url}: {message}")
        self.url = url
        self.status = status


class InvalidIncidentError(StatusHistoryError, ValueError):
    """An upstream incident record is missing required fields."""


class StorageError(StatusHistoryError):
    """A write to the incident database failed."""
