from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Optional

from ..net.retry import RetryConfig
from ..remote.endpoints import RepoConfig


DEFAULT_CACHE_ROOT = "data/content"
DEFAULT_METADATA_PATH = "data/content_metadata.json"
DEFAULT_STALENESS_THRESHOLD_S = 3600.0
DEFAULT_UPDATE_CHECK_INTERVAL_S = 1800.0


def _float_or(value: Any, default: float, *, minimum: float = 0.0) -> float:
    try:
        return max(minimum, float(value))
    except (TypeError, ValueError):
        return default


def _optional_str(value: Any) -> Optional[str]:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return None


@dataclass
class ContentSettings:
    repo: RepoConfig = field(default_factory=RepoConfig)
    cache_root: str = DEFAULT_CACHE_ROOT
    metadata_path: str = DEFAULT_METADATA_PATH
    staleness_threshold_s: float = DEFAULT_STALENESS_THRESHOLD_S
    update_check_interval_s: float = DEFAULT_UPDATE_CHECK_INTERVAL_S
    retry: Optional[RetryConfig] = None
    http_timeout_s: Optional[float] = None
    fallback_manifest_path: Optional[str] = None
    bundled_videos_dir: Optional[str] = None
    placeholder_video_path: Optional[str] = None

    def get_retry(self) -> RetryConfig:
        """Get retry config, using defaults if not set."""
        return self.retry or RetryConfig()

    def to_persist_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "version": 1,
            "repo": self.repo.to_persist_dict(),
            "cache_root": self.cache_root,
            "metadata_path": self.metadata_path,
            "staleness_threshold_s": self.staleness_threshold_s,
            "update_check_interval_s": self.update_check_interval_s,
        }
        if self.retry is not None:
            data["retry"] = self.retry.to_persist_dict()
        if self.http_timeout_s is not None:
            data["http_timeout_s"] = self.http_timeout_s
        if self.fallback_manifest_path:
            data["fallback_manifest_path"] = self.fallback_manifest_path
        if self.bundled_videos_dir:
            data["bundled_videos_dir"] = self.bundled_videos_dir
        if self.placeholder_video_path:
            data["placeholder_video_path"] = self.placeholder_video_path
        return data

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "ContentSettings":
        raw_repo = data.get("repo")
        repo = RepoConfig.from_persist_dict(raw_repo) if isinstance(raw_repo, dict) else RepoConfig()

        raw_retry = data.get("retry")
        retry = None
        if isinstance(raw_retry, dict):
            retry = RetryConfig.from_persist_dict(raw_retry)

        raw_timeout = data.get("http_timeout_s")
        http_timeout_s = None
        if raw_timeout is not None:
            http_timeout_s = _float_or(raw_timeout, 0.0) or None

        return cls(
            repo=repo,
            cache_root=_optional_str(data.get("cache_root")) or DEFAULT_CACHE_ROOT,
            metadata_path=_optional_str(data.get("metadata_path")) or DEFAULT_METADATA_PATH,
            staleness_threshold_s=_float_or(data.get("staleness_threshold_s"), DEFAULT_STALENESS_THRESHOLD_S),
            update_check_interval_s=_float_or(
                data.get("update_check_interval_s"), DEFAULT_UPDATE_CHECK_INTERVAL_S, minimum=1.0
            ),
            retry=retry,
            http_timeout_s=http_timeout_s,
            fallback_manifest_path=_optional_str(data.get("fallback_manifest_path")),
            bundled_videos_dir=_optional_str(data.get("bundled_videos_dir")),
            placeholder_video_path=_optional_str(data.get("placeholder_video_path")),
        )
