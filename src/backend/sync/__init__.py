"""
Content synchronization: cache-vs-fetch decisions, version tracking, retry policy.
"""

from .synchronizer import DEFAULT_STALENESS_THRESHOLD_S, ContentSynchronizer

__all__ = [
    "DEFAULT_STALENESS_THRESHOLD_S",
    "ContentSynchronizer",
]
