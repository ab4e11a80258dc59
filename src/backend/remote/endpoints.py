"""
Content repository coordinates and endpoint URLs (GitHub).

Endpoints:
- contents API:  <api_base>/repos/<owner>/<name>/contents/<path>?ref=<branch>
- raw content:   <raw_base>/<owner>/<name>/<branch>/<path>
- branch info:   <api_base>/repos/<owner>/<name>/branches/<branch>
- LFS media:     <media_base>/media/<owner>/<name>/<branch>/<path>
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit


DEFAULT_OWNER = "banddude"
DEFAULT_REPO_NAME = "skate-fit-files"
DEFAULT_BRANCH = "main"
DEFAULT_MANIFEST_PATH = "workouts.json"
DEFAULT_VIDEOS_DIR = "videos"
DEFAULT_API_BASE = "https://api.github.com"
DEFAULT_RAW_BASE = "https://raw.githubusercontent.com"
DEFAULT_MEDIA_BASE = "https://media.githubusercontent.com"

CACHE_BUST_PARAM = "cache"


@dataclass(frozen=True)
class RepoConfig:
    owner: str = DEFAULT_OWNER
    name: str = DEFAULT_REPO_NAME
    branch: str = DEFAULT_BRANCH
    manifest_path: str = DEFAULT_MANIFEST_PATH
    videos_dir: str = DEFAULT_VIDEOS_DIR
    api_base: str = DEFAULT_API_BASE
    raw_base: str = DEFAULT_RAW_BASE
    media_base: str = DEFAULT_MEDIA_BASE

    def contents_url(self, path: str) -> str:
        query = urlencode({"ref": self.branch})
        return f"{self.api_base.rstrip('/')}/repos/{self.owner}/{self.name}/contents/{_quote_path(path)}?{query}"

    def raw_url(self, path: str) -> str:
        return f"{self.raw_base.rstrip('/')}/{self.owner}/{self.name}/{self.branch}/{_quote_path(path)}"

    def branch_url(self) -> str:
        return f"{self.api_base.rstrip('/')}/repos/{self.owner}/{self.name}/branches/{quote(self.branch, safe='')}"

    def media_url(self, path: str) -> str:
        return f"{self.media_base.rstrip('/')}/media/{self.owner}/{self.name}/{self.branch}/{_quote_path(path)}"

    def video_path(self, file_name: str) -> str:
        videos_dir = self.videos_dir.strip("/")
        return f"{videos_dir}/{file_name}" if videos_dir else file_name

    def to_persist_dict(self) -> dict[str, Any]:
        return {
            "owner": self.owner,
            "name": self.name,
            "branch": self.branch,
            "manifest_path": self.manifest_path,
            "videos_dir": self.videos_dir,
            "api_base": self.api_base,
            "raw_base": self.raw_base,
            "media_base": self.media_base,
        }

    @classmethod
    def from_persist_dict(cls, data: dict[str, Any]) -> "RepoConfig":
        def _str(key: str, default: str) -> str:
            value = data.get(key)
            return str(value).strip() if isinstance(value, str) and value.strip() else default

        return cls(
            owner=_str("owner", DEFAULT_OWNER),
            name=_str("name", DEFAULT_REPO_NAME),
            branch=_str("branch", DEFAULT_BRANCH),
            manifest_path=_str("manifest_path", DEFAULT_MANIFEST_PATH),
            videos_dir=_str("videos_dir", DEFAULT_VIDEOS_DIR),
            api_base=_str("api_base", DEFAULT_API_BASE),
            raw_base=_str("raw_base", DEFAULT_RAW_BASE),
            media_base=_str("media_base", DEFAULT_MEDIA_BASE),
        )


def _quote_path(path: str) -> str:
    return quote(path.lstrip("/"), safe="/")


def with_cache_buster(url: str, timestamp: int) -> str:
    """
    Append `cache=<timestamp>` to a URL, keeping any existing query.
    """
    parts = urlsplit(url)
    query = [(k, v) for k, v in parse_qsl(parts.query, keep_blank_values=True) if k != CACHE_BUST_PARAM]
    query.append((CACHE_BUST_PARAM, str(int(timestamp))))
    return urlunsplit((parts.scheme, parts.netloc, parts.path, urlencode(query), parts.fragment))
