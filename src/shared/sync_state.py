"""
Synchronizer state shared across backend modules and tests.

Lifecycle:
    Idle -> Loading -> Ready (idle with data) | Failed (idle with error)
"""

from __future__ import annotations

from enum import Enum


class SyncState(str, Enum):
    IDLE = "Idle"
    LOADING = "Loading"
    READY = "Ready"
    FAILED = "Failed"

    def is_busy(self) -> bool:
        return self is SyncState.LOADING
