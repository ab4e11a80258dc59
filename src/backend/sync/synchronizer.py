from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Callable, Coroutine, Optional

from src.backend.fs.metadata import CacheMetadata, utc_now
from src.backend.fs.storage import ContentCacheStore
from src.backend.net.retry import RetryConfig, with_retry_async
from src.backend.remote.client import RemoteContentClient
from src.shared.errors import ContentError, CorruptCache, DecodeError, HTTPError, NetworkError, SyncConflictError
from src.shared.manifest import WorkoutManifest
from src.shared.stats.metrics import is_stale
from src.shared.sync_state import SyncState


DEFAULT_STALENESS_THRESHOLD_S = 3600.0

# Storage and conflict failures end a refresh at once
REFRESH_RETRY_ON = (NetworkError, HTTPError, DecodeError)

UpdateListener = Callable[[bool], None]

logger = logging.getLogger(__name__)


class ContentSynchronizer:
    """
    Decides cache-vs-fetch, tracks the remote version, and owns all retry policy.

    State machine (per manifest load):
        Idle -> Loading -> Ready | Failed

    - load_manifest: cache first; a stale cache schedules a background version check
    - force_refresh: clear everything, then fetch-and-cache with fixed-delay retries
    - check_for_updates: compare remote marker against stored version; never raises
    - update_content: fetch-and-cache plus persisting the remote version marker

    Only the store writes the filesystem; only the client talks to the network.
    """

    def __init__(
        self,
        *,
        store: ContentCacheStore,
        client: RemoteContentClient,
        retry: Optional[RetryConfig] = None,
        staleness_threshold_s: float = DEFAULT_STALENESS_THRESHOLD_S,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._store = store
        self._client = client
        self._retry = retry or RetryConfig()
        self._staleness_threshold_s = float(staleness_threshold_s)
        self._clock = clock or utc_now

        self._state = SyncState.IDLE
        self._manifest: Optional[WorkoutManifest] = None
        self._last_error: Optional[ContentError] = None
        self._checking = False
        self._update_available = store.read_metadata().update_available
        self._listeners: list[UpdateListener] = []
        self._background: set[asyncio.Task[Any]] = set()

    # ---------------------------------------------------------------------
    # State
    # ---------------------------------------------------------------------

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def manifest(self) -> Optional[WorkoutManifest]:
        return self._manifest

    @property
    def last_error(self) -> Optional[ContentError]:
        return self._last_error

    @property
    def update_available(self) -> bool:
        return self._update_available

    @property
    def last_sync_timestamp(self) -> Optional[datetime]:
        return self._store.read_metadata().last_sync_timestamp

    def is_stale(self) -> bool:
        return is_stale(
            self.last_sync_timestamp,
            self._staleness_threshold_s,
            now=self._clock(),
        )

    def add_listener(self, listener: UpdateListener) -> Callable[[], None]:
        """
        Register a callback for update-available changes. Returns an unsubscribe function.
        """
        self._listeners.append(listener)

        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------

    async def load_manifest(self) -> WorkoutManifest:
        """
        Return the cached manifest, or fetch and cache it when absent.

        Raises:
            SyncConflictError: another load/refresh is in progress.
            ContentError: the fetch-and-cache cycle failed (state becomes Failed).
        """
        self._begin_loading("load")
        try:
            cached = self._read_cached()
            if cached is not None:
                logger.info("Loaded manifest from cache (%d containers)", len(cached))
                self._finish_ready(cached)
                if self.is_stale():
                    self._spawn(self.check_for_updates(), name="content-stale-version-check")
                return cached

            logger.info("No cached manifest found, downloading")
            manifest = await self._fetch_and_cache()
        except ContentError as exc:
            self._finish_failed(exc)
            raise

        self._finish_ready(manifest)
        return manifest

    async def force_refresh(self) -> WorkoutManifest:
        """
        Clear the entire cache, then fetch-and-cache with fixed-delay retries.
        Only network, HTTP and decode failures are retried.

        Raises:
            SyncConflictError: a load/refresh is already in progress.
            ContentError: the final attempt failed.
        """
        self._begin_loading("refresh")
        try:
            self._clear_storage()
            manifest = await with_retry_async(
                self._fetch_and_cache,
                config=self._retry,
                retry_on=REFRESH_RETRY_ON,
                on_retry=self._log_retry,
            )
        except ContentError as exc:
            self._finish_failed(exc)
            raise

        self._finish_ready(manifest)
        self._set_update_available(False)
        logger.info("Content refreshed successfully with %d containers", len(manifest))
        return manifest

    async def update_content(self) -> WorkoutManifest:
        """
        Fetch-and-cache, then record the latest remote version marker.

        Raises:
            SyncConflictError: a load/refresh is already in progress.
            ContentError: fetching the manifest or the version marker failed.
        """
        self._begin_loading("update")
        try:
            manifest = await self._fetch_and_cache()
            latest = await self._client.fetch_latest_version_marker()

            def mutate(meta: CacheMetadata) -> CacheMetadata:
                meta.content_version = latest
                meta.last_sync_timestamp = self._clock()
                meta.update_available = False
                return meta

            self._store_update_metadata(mutate)
        except ContentError as exc:
            self._finish_failed(exc)
            raise

        self._finish_ready(manifest)
        self._set_update_available(False, persist=False)
        logger.info("Content updated to version %s", latest)
        return manifest

    async def check_for_updates(self) -> Optional[bool]:
        """
        Compare the remote version marker with the stored one.

        Returns:
            The new update-available flag, or None when skipped (a check is
            already running) or failed. Failures are logged and leave the flag
            unchanged.
        """
        if self._checking:
            logger.debug("Version check already in progress, skipping")
            return None

        self._checking = True
        try:
            latest = await self._client.fetch_latest_version_marker()
            current = self._store.read_metadata().current_version
            available = latest != current
            self._set_update_available(available)
            logger.info("Content version check: current=%s, latest=%s", current, latest)
            return available
        except ContentError as exc:
            logger.warning("Error checking for updates: %s", exc)
            return None
        finally:
            self._checking = False

    async def ensure_video(self, name: str) -> Path:
        """
        Cached path for a video, downloading it first when missing.

        Raises:
            ValueError: name is not a bare file name.
            ContentError: download or write failed.
        """
        if self._store.has_video(name):
            logger.debug("Video already cached: %s", name)
            return self._store.video_path(name)

        data = await self._client.fetch_video_bytes(name)
        path = self._store.write_video(name, data)
        logger.info("Video cached: %s (%d bytes)", path.name, len(data))
        return path

    def clear_cache(self) -> None:
        """
        Remove every cached file and all metadata.

        Raises:
            SyncConflictError: a load/refresh is in progress.
            StorageError: the cache could not be removed.
        """
        if self._state.is_busy():
            raise SyncConflictError("cannot clear the cache while content is loading")
        self._clear_storage()
        self._manifest = None
        self._last_error = None
        self._state = SyncState.IDLE

    async def drain(self) -> None:
        """Wait for background tasks (stale-cache version checks) to finish."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)

    # ---------------------------------------------------------------------
    # Internals
    # ---------------------------------------------------------------------

    def _begin_loading(self, operation: str) -> None:
        if self._state.is_busy():
            raise SyncConflictError(f"cannot {operation} content: a load is already in progress")
        self._state = SyncState.LOADING
        self._last_error = None

    def _finish_ready(self, manifest: WorkoutManifest) -> None:
        self._manifest = manifest
        self._state = SyncState.READY

    def _finish_failed(self, exc: ContentError) -> None:
        self._last_error = exc
        self._state = SyncState.FAILED
        logger.warning("Content load failed: %s", exc)

    def _read_cached(self) -> Optional[WorkoutManifest]:
        try:
            return self._store.read_manifest()
        except CorruptCache as exc:
            logger.warning("Discarding corrupt manifest cache: %s", exc)
            return None

    async def _fetch_and_cache(self) -> WorkoutManifest:
        fetched = await self._client.fetch_manifest()
        manifest = fetched.manifest
        self._store.write_manifest(fetched.data)

        def mutate(meta: CacheMetadata) -> CacheMetadata:
            meta.last_sync_timestamp = self._clock()
            return meta

        self._store_update_metadata(mutate)
        logger.info("Downloaded and cached %d containers", len(manifest))
        return manifest

    def _store_update_metadata(self, mutator: Callable[[CacheMetadata], CacheMetadata]) -> None:
        meta = mutator(self._store.read_metadata())
        self._store.write_metadata(meta)

    def _clear_storage(self) -> None:
        self._store.clear_all()
        self._set_update_available(False, persist=False)

    def _set_update_available(self, value: bool, *, persist: bool = True) -> None:
        if persist:
            def mutate(meta: CacheMetadata) -> CacheMetadata:
                meta.update_available = value
                return meta

            self._store_update_metadata(mutate)

        changed = value != self._update_available
        self._update_available = value
        if not changed:
            return
        for listener in list(self._listeners):
            try:
                listener(value)
            except Exception:  # noqa: BLE001
                logger.exception("update-available listener failed")

    def _spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> asyncio.Task[Any]:
        task = asyncio.create_task(coro, name=name)
        self._background.add(task)
        task.add_done_callback(self._on_background_done)
        return task

    def _on_background_done(self, task: asyncio.Task[Any]) -> None:
        self._background.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Background task %s failed: %s", task.get_name(), exc)

    @staticmethod
    def _log_retry(attempt: int, exc: BaseException, delay: float) -> None:
        logger.warning("Refresh attempt %d failed, retrying in %.2fs: %s", attempt + 1, delay, exc)
