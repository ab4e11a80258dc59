"""
UI-facing content facade.

Provides:
- ContentFacade: status flags, polling, video batch, local fallback
- create_content_router: HTTP status surface (FastAPI, imported lazily)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from .content_manager import (
    CacheInfo,
    ContentFacade,
    ContentState,
    VideoBatchResult,
)

if TYPE_CHECKING:
    from fastapi import APIRouter  # pragma: no cover


def create_content_router(*, facade: ContentFacade) -> "APIRouter":
    """
    Lazily import FastAPI router to keep non-web imports lightweight.
    """
    from .api import create_content_router as _create_content_router

    return _create_content_router(facade=facade)


__all__ = [
    "CacheInfo",
    "ContentFacade",
    "ContentState",
    "VideoBatchResult",
    "create_content_router",
]
