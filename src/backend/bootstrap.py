"""
Composition root: builds the content components from settings.

Every component is an explicit instance; tests substitute the client's
transport (or the client itself) instead of patching globals.
"""

from __future__ import annotations

from pathlib import Path
from typing import NamedTuple, Optional

from .facade.content_manager import ContentFacade
from .fs.metadata import MetadataStore
from .fs.storage import ContentCacheStore
from .net.http import FetchFunc, make_fetch
from .remote.client import RemoteContentClient
from .settings.models import ContentSettings
from .sync.synchronizer import ContentSynchronizer


class ContentComponents(NamedTuple):
    store: ContentCacheStore
    client: RemoteContentClient
    synchronizer: ContentSynchronizer
    facade: ContentFacade


def _resolve(raw: Optional[str], *, base_dir: Path) -> Optional[Path]:
    if not raw:
        return None
    p = Path(raw).expanduser()
    if not p.is_absolute():
        p = (base_dir / p).resolve()
    return p


def build_components(
    settings: ContentSettings,
    *,
    base_dir: Path,
    fetch: Optional[FetchFunc] = None,
) -> ContentComponents:
    """
    Wire store -> client -> synchronizer -> facade.

    Relative paths in settings are resolved against base_dir.
    """
    metadata = MetadataStore(path=_resolve(settings.metadata_path, base_dir=base_dir))
    store = ContentCacheStore(_resolve(settings.cache_root, base_dir=base_dir), metadata=metadata)
    client = RemoteContentClient(
        repo=settings.repo,
        fetch=fetch or make_fetch(timeout_s=settings.http_timeout_s),
    )
    synchronizer = ContentSynchronizer(
        store=store,
        client=client,
        retry=settings.get_retry(),
        staleness_threshold_s=settings.staleness_threshold_s,
    )
    facade = ContentFacade(
        synchronizer=synchronizer,
        store=store,
        update_check_interval_s=settings.update_check_interval_s,
        fallback_manifest_path=_resolve(settings.fallback_manifest_path, base_dir=base_dir),
        bundled_videos_dir=_resolve(settings.bundled_videos_dir, base_dir=base_dir),
        placeholder_video_path=_resolve(settings.placeholder_video_path, base_dir=base_dir),
    )
    return ContentComponents(store=store, client=client, synchronizer=synchronizer, facade=facade)
