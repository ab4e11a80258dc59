"""
Error taxonomy shared by the cache store, the remote client and the synchronizer.

Contract:
    NetworkError        transport failure (retryable)
    HTTPError           non-2xx response, carries status + message
    DecodeError         malformed payload
    CorruptCache        cached manifest present but unreadable (treated as absence)
    StorageError        filesystem failure other than "not found"
    VersionUnavailable  branch info without a commit sha
    SyncConflictError   operation rejected because a load is in progress
"""

from __future__ import annotations

from typing import Optional


class ContentError(Exception):
    """Base class for every content sync failure."""


class NetworkError(ContentError):
    pass


class HTTPError(ContentError):
    def __init__(self, status: int, message: Optional[str] = None) -> None:
        self.status = int(status)
        self.message = message
        super().__init__(f"Server error ({self.status}): {message or 'Unknown error'}")


class DecodeError(ContentError):
    pass


class CorruptCache(DecodeError):
    pass


class StorageError(ContentError):
    pass


class VersionUnavailable(ContentError):
    pass


class SyncConflictError(ContentError):
    pass
