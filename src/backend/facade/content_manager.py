"""
UI-facing entry point for workout content.

Owns the user-visible status flags, publishes state snapshots to
subscribers, polls for remote updates while alive, and keeps the video
cache warm after a refresh.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Optional, Union

from src.backend.fs.storage import ContentCacheStore
from src.backend.sync.synchronizer import ContentSynchronizer
from src.shared.errors import ContentError, DecodeError, StorageError
from src.shared.manifest import WorkoutContainer, WorkoutExercise, WorkoutManifest, parse_manifest_bytes
from src.shared.stats.metrics import format_byte_count


DEFAULT_UPDATE_CHECK_INTERVAL_S = 1800.0
BUNDLED_VIDEO_EXTENSIONS = (".mp4", ".mov")

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CacheInfo:
    size_bytes: int
    size_description: str
    last_sync_timestamp: Optional[datetime] = None


@dataclass(frozen=True)
class ContentState:
    """Snapshot of everything the UI renders."""
    is_initializing: bool = False
    initialization_error: Optional[str] = None
    update_available: bool = False
    containers: tuple[WorkoutContainer, ...] = ()
    cache_size_description: str = "0 bytes"
    last_sync_timestamp: Optional[datetime] = None
    sync_state: str = "Idle"
    sync_error: Optional[str] = None


@dataclass
class VideoBatchResult:
    """Statistics for one background video download batch."""
    total: int = 0
    downloaded: int = 0
    skipped_cached: int = 0
    failed: int = 0
    failures: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "downloaded": self.downloaded,
            "skipped_cached": self.skipped_cached,
            "failed": self.failed,
        }


StateListener = Callable[[ContentState], None]


class ContentFacade:
    """
    Simple load / refresh / status API over the ContentSynchronizer.

    Usage:
        facade = ContentFacade(synchronizer=sync, store=store)
        async with facade:            # starts periodic update checks
            await facade.initialize()
            for container in facade.state.containers:
                ...

    initialize() and refresh() share one busy flag; overlapping calls are
    no-ops, not queued.
    """

    def __init__(
        self,
        *,
        synchronizer: ContentSynchronizer,
        store: ContentCacheStore,
        update_check_interval_s: float = DEFAULT_UPDATE_CHECK_INTERVAL_S,
        fallback_manifest_path: Optional[Path] = None,
        bundled_videos_dir: Optional[Path] = None,
        placeholder_video_path: Optional[Path] = None,
    ) -> None:
        """
        Args:
            synchronizer: The sync core.
            store: Cache store (read access for cache info and video lookup).
            update_check_interval_s: Period of the background update check.
            fallback_manifest_path: Host-bundled manifest used when loading fails.
            bundled_videos_dir: Host-bundled videos searched after the cache.
            placeholder_video_path: Asset returned when no video is available.
        """
        self._sync = synchronizer
        self._store = store
        self._update_check_interval_s = float(update_check_interval_s)
        self._fallback_manifest_path = Path(fallback_manifest_path) if fallback_manifest_path else None
        self._bundled_videos_dir = Path(bundled_videos_dir) if bundled_videos_dir else None
        self._placeholder_video_path = Path(placeholder_video_path) if placeholder_video_path else None

        self._is_initializing = False
        self._initialization_error: Optional[str] = None
        self._containers: tuple[WorkoutContainer, ...] = ()
        self._update_available = synchronizer.update_available

        self._listeners: list[StateListener] = []
        self._poll_task: Optional[asyncio.Task[None]] = None
        self._video_tasks: set[asyncio.Task[VideoBatchResult]] = set()
        self._unbind = synchronizer.add_listener(self._on_update_available)

    # ---------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------

    @property
    def is_initializing(self) -> bool:
        return self._is_initializing

    @property
    def initialization_error(self) -> Optional[str]:
        return self._initialization_error

    @property
    def update_available(self) -> bool:
        return self._update_available

    @property
    def containers(self) -> tuple[WorkoutContainer, ...]:
        return self._containers

    @property
    def state(self) -> ContentState:
        info = self.cache_info()
        return ContentState(
            is_initializing=self._is_initializing,
            initialization_error=self._initialization_error,
            update_available=self._update_available,
            containers=self._containers,
            cache_size_description=info.size_description,
            last_sync_timestamp=info.last_sync_timestamp,
            sync_state=self._sync.state.value,
            sync_error=str(self._sync.last_error) if self._sync.last_error is not None else None,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """
        Receive a ContentState snapshot after every state change. Returns an unsubscribe function.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ---------------------------------------------------------------------
    # Lifecycle
    # ---------------------------------------------------------------------

    def start(self) -> None:
        """Start periodic update checks (requires a running event loop)."""
        if self._poll_task is not None and not self._poll_task.done():
            return
        self._poll_task = asyncio.create_task(self._poll_updates(), name="content-update-poll")

    async def close(self) -> None:
        """Stop periodic update checks and detach from the synchronizer."""
        task = self._poll_task
        self._poll_task = None
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        self._unbind()

    async def __aenter__(self) -> "ContentFacade":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def initialize(self) -> None:
        """
        Load content (cached or fresh). Falls back to bundled content, and
        only reports an error when nothing could be loaded.
        """
        if self._is_initializing:
            logger.debug("Content load already in progress, skipping initialize")
            return

        self._is_initializing = True
        self._initialization_error = None
        self._publish()

        try:
            manifest = await self._sync.load_manifest()
            self._containers = manifest.containers
            logger.info("Content initialized successfully with %d workouts", len(manifest))
        except ContentError as exc:
            logger.warning("Failed to load workout content: %s", exc)
            fallback = self._load_fallback_manifest()
            if fallback is not None:
                self._containers = fallback.containers
                logger.info("Using bundled workout content (%d workouts)", len(fallback))
            else:
                self._initialization_error = f"Failed to load workout content: {exc}"
        finally:
            self._is_initializing = False
            self._publish()

    async def refresh(self) -> None:
        """
        Force a fresh download. On success, start caching every referenced video.
        """
        if self._is_initializing:
            logger.debug("Content load already in progress, skipping refresh")
            return

        self._is_initializing = True
        self._initialization_error = None
        self._publish()

        try:
            manifest = await self._sync.force_refresh()
        except ContentError as exc:
            logger.warning("Failed to refresh content: %s", exc)
            self._initialization_error = f"Failed to refresh content: {exc}"
        else:
            self._containers = manifest.containers
            self.download_all_videos()
        finally:
            self._is_initializing = False
            self._publish()

    async def check_for_updates(self) -> Optional[bool]:
        return await self._sync.check_for_updates()

    def cache_info(self) -> CacheInfo:
        try:
            size = self._store.total_cache_size_bytes()
            description = format_byte_count(size)
        except StorageError as exc:
            logger.warning("Failed to compute cache size: %s", exc)
            size, description = 0, "Unknown"
        return CacheInfo(
            size_bytes=size,
            size_description=description,
            last_sync_timestamp=self._store.read_metadata().last_sync_timestamp,
        )

    async def clear_cache(self) -> None:
        """Delete all cached content and metadata, then load again."""
        if self._is_initializing:
            logger.debug("Content load in progress, skipping cache clear")
            return

        try:
            self._sync.clear_cache()
        except ContentError as exc:
            logger.warning("Failed to clear cache: %s", exc)
            self._initialization_error = f"Failed to clear cache: {exc}"
            self._publish()
            return

        self._containers = ()
        self._publish()
        await self.initialize()

    def download_all_videos(self) -> "asyncio.Task[VideoBatchResult]":
        """
        Fire-and-forget sequential download of every referenced, uncached video.
        """
        files = WorkoutManifest(containers=self._containers).video_files()
        task = asyncio.create_task(self._download_videos(files), name="content-video-batch")
        self._video_tasks.add(task)
        task.add_done_callback(self._video_tasks.discard)
        return task

    def video_location(self, exercise: Union[WorkoutExercise, str, None]) -> Optional[Path]:
        """
        Playable file for an exercise: cached video, then bundled video, then placeholder.
        """
        name = exercise.video_file if isinstance(exercise, WorkoutExercise) else exercise
        if not name or not name.strip():
            logger.debug("No video file specified, using placeholder")
            return self._placeholder()

        name = name.strip()
        try:
            cached = self._store.video_path(name)
        except ValueError as exc:
            logger.warning("Invalid video reference %r: %s", name, exc)
            return self._placeholder()
        if cached.is_file():
            return cached

        if self._bundled_videos_dir is not None:
            stem = Path(name).stem if Path(name).suffix.lower() in BUNDLED_VIDEO_EXTENSIONS else name
            for ext in BUNDLED_VIDEO_EXTENSIONS:
                candidate = self._bundled_videos_dir / f"{stem}{ext}"
                if candidate.is_file():
                    return candidate

        logger.debug("No video found for %s, using placeholder", name)
        return self._placeholder()

    async def drain(self) -> None:
        """Wait for background video batches and version checks to finish."""
        while self._video_tasks:
            await asyncio.gather(*list(self._video_tasks), return_exceptions=True)
        await self._sync.drain()

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    async def _download_videos(self, files: list[str]) -> VideoBatchResult:
        result = VideoBatchResult(total=len(files))
        logger.info("Downloading %d videos for offline use", len(files))

        for idx, name in enumerate(files, start=1):
            try:
                if self._store.has_video(name):
                    result.skipped_cached += 1
                    logger.debug("Already cached (%d/%d): %s", idx, len(files), name)
                    continue
                await self._sync.ensure_video(name)
                result.downloaded += 1
                logger.info("Downloaded (%d/%d): %s", idx, len(files), name)
            except (ContentError, ValueError) as exc:
                result.failed += 1
                result.failures[name] = str(exc)
                logger.warning("Failed to download %s: %s", name, exc)

        logger.info("Video batch finished: %s", result.to_dict())
        self._publish()
        return result

    async def _poll_updates(self) -> None:
        while True:
            await asyncio.sleep(self._update_check_interval_s)
            try:
                await self.check_for_updates()
            except Exception:  # noqa: BLE001
                logger.exception("Periodic update check failed")

    def _load_fallback_manifest(self) -> Optional[WorkoutManifest]:
        path = self._fallback_manifest_path
        if path is None:
            return None
        try:
            return parse_manifest_bytes(path.read_bytes())
        except (OSError, DecodeError) as exc:
            logger.warning("Bundled workout content unavailable (%s): %s", path, exc)
            return None

    def _placeholder(self) -> Optional[Path]:
        path = self._placeholder_video_path
        if path is not None and path.is_file():
            return path
        return None

    def _on_update_available(self, value: bool) -> None:
        self._update_available = value
        self._publish()

    def _publish(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:  # noqa: BLE001
                logger.exception("content state listener failed")
