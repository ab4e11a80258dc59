from __future__ import annotations

import logging
import time
from typing import Callable, NamedTuple, Optional

from src.backend.fs.hashing import matches_object
from src.backend.net.http import FetchFunc, decode_json_object, make_fetch
from src.shared.errors import DecodeError, VersionUnavailable
from src.shared.manifest import WorkoutManifest, parse_manifest_bytes
from src.shared.validators.video_name import normalize_video_name

from .endpoints import RepoConfig, with_cache_buster
from .lfs import is_lfs_pointer, parse_lfs_pointer


VERSION_MARKER_LENGTH = 8

GITHUB_API_HEADERS = {"Accept": "application/vnd.github+json"}

logger = logging.getLogger(__name__)


class FetchedManifest(NamedTuple):
    data: bytes                 # body exactly as served; this is what gets cached
    manifest: WorkoutManifest   # parsed and schema-checked form of data


class RemoteContentClient:
    """
    Network access to the content repository.

    No caching and no retries: every method makes exactly one attempt per
    request and raises NetworkError / HTTPError / DecodeError on failure.
    """

    def __init__(
        self,
        *,
        repo: Optional[RepoConfig] = None,
        fetch: Optional[FetchFunc] = None,
        clock: Optional[Callable[[], float]] = None,
    ) -> None:
        """
        Args:
            repo: Repository coordinates and endpoint bases.
            fetch: Async transport (url, headers) -> bytes; defaults to urllib.
            clock: Unix-time source for cache busting; defaults to time.time.
        """
        self._repo = repo or RepoConfig()
        self._fetch: FetchFunc = fetch or make_fetch()
        self._clock = clock or time.time

    @property
    def repo(self) -> RepoConfig:
        return self._repo

    async def fetch_manifest(self) -> FetchedManifest:
        """
        Download the manifest, bypassing edge caches, and validate it.

        The contents API is asked for the file's current `download_url`, which
        is then fetched with a time-derived `cache` query parameter.

        Returns:
            The raw body (what gets cached) together with its parsed form.

        Raises:
            DecodeError: metadata lacks `download_url`, or the body is not a
                valid array-of-containers manifest.
        """
        meta_url = self._repo.contents_url(self._repo.manifest_path)
        meta = decode_json_object(await self._fetch(meta_url, GITHUB_API_HEADERS), what="manifest metadata")

        download_url = meta.get("download_url")
        if not isinstance(download_url, str) or not download_url.strip():
            raise DecodeError("Failed to get download URL from repository metadata")

        fresh_url = with_cache_buster(download_url.strip(), int(self._clock()))
        logger.info("Downloading manifest from %s", fresh_url)
        data = await self._fetch(fresh_url, {})

        manifest = parse_manifest_bytes(data)
        logger.info("Downloaded manifest: %d bytes, %d containers", len(data), len(manifest))
        return FetchedManifest(data=data, manifest=manifest)

    async def fetch_manifest_bytes(self) -> bytes:
        """Validated raw manifest body (see fetch_manifest)."""
        return (await self.fetch_manifest()).data

    async def fetch_latest_version_marker(self) -> str:
        """
        Short prefix of the branch head commit sha.

        Raises:
            VersionUnavailable: response has no `commit.sha`.
        """
        data = await self._fetch(self._repo.branch_url(), GITHUB_API_HEADERS)
        payload = decode_json_object(data, what="branch info")

        commit = payload.get("commit")
        sha = commit.get("sha") if isinstance(commit, dict) else None
        if not isinstance(sha, str) or not sha.strip():
            raise VersionUnavailable(f"branch {self._repo.branch!r} has no commit sha")
        return sha.strip()[:VERSION_MARKER_LENGTH]

    async def fetch_video_bytes(self, file_name: str) -> bytes:
        """
        Download a video asset, resolving Git LFS pointer stubs.

        Returns real binary content: when the raw endpoint serves a pointer,
        the object is fetched from the LFS media endpoint and checked against
        the pointer's oid and size.

        Raises:
            ValueError: file_name is not a bare file name.
            DecodeError: unparseable pointer, or resolved bytes do not match it.
        """
        path = self._repo.video_path(normalize_video_name(file_name))
        data = await self._fetch(self._repo.raw_url(path), {})

        if not is_lfs_pointer(data):
            return data

        pointer = parse_lfs_pointer(data)
        media_url = self._repo.media_url(path)
        logger.info("Received LFS pointer for %s, downloading from %s", path, media_url)

        resolved = await self._fetch(media_url, {})
        if is_lfs_pointer(resolved):
            raise DecodeError(f"LFS media endpoint returned another pointer for {path}")
        if not matches_object(resolved, oid=pointer.oid, size=pointer.size):
            raise DecodeError(
                f"LFS object mismatch for {path}: expected sha256 {pointer.oid} "
                f"({pointer.size if pointer.size is not None else '?'} bytes), got {len(resolved)} bytes"
            )
        return resolved
