"""
Tests for src/backend/remote/client.py

Covers:
- Manifest download via contents API download_url plus cache buster
- Version marker (8-char sha prefix)
- Video download with Git LFS pointer resolution and verification
"""

import asyncio
import hashlib
import json
import unittest

from src.backend.remote.client import RemoteContentClient
from src.backend.remote.endpoints import RepoConfig, with_cache_buster
from src.shared.errors import DecodeError, HTTPError, VersionUnavailable


REPO = RepoConfig(owner="acme", name="content", branch="main")
CONTENTS_URL = "https://api.github.com/repos/acme/content/contents/workouts.json?ref=main"
DOWNLOAD_URL = "https://raw.githubusercontent.com/acme/content/main/workouts.json"
BRANCH_URL = "https://api.github.com/repos/acme/content/branches/main"
RAW_VIDEO_URL = "https://raw.githubusercontent.com/acme/content/main/videos/squat.mp4"
MEDIA_VIDEO_URL = "https://media.githubusercontent.com/media/acme/content/main/videos/squat.mp4"

VIDEO = b"\x00\x00\x00\x18ftypmp42 real video bytes"
MANIFEST = json.dumps([{"name": "Core", "exercises": []}]).encode("utf-8")


def _pointer(data: bytes = VIDEO, size=None) -> bytes:
    return (
        "version https://git-lfs.github.com/spec/v1\n"
        f"oid sha256:{hashlib.sha256(data).hexdigest()}\n"
        f"size {len(data) if size is None else size}\n"
    ).encode("utf-8")


class FakeFetch:
    """Serves canned responses by URL and records every request."""

    def __init__(self, responses):
        self.responses = dict(responses)
        self.requests = []

    async def __call__(self, url, headers):
        self.requests.append((url, dict(headers)))
        if url not in self.responses:
            raise HTTPError(404, "Not Found")
        response = self.responses[url]
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses) -> tuple[RemoteContentClient, FakeFetch]:
    fetch = FakeFetch(responses)
    return RemoteContentClient(repo=REPO, fetch=fetch, clock=lambda: 1700000000.5), fetch


class TestEndpoints(unittest.TestCase):
    def test_urls(self):
        self.assertEqual(REPO.contents_url("workouts.json"), CONTENTS_URL)
        self.assertEqual(REPO.branch_url(), BRANCH_URL)
        self.assertEqual(REPO.raw_url(REPO.video_path("squat.mp4")), RAW_VIDEO_URL)
        self.assertEqual(REPO.media_url("videos/squat.mp4"), MEDIA_VIDEO_URL)

    def test_cache_buster_keeps_existing_query(self):
        self.assertEqual(with_cache_buster("https://x/y.json", 12), "https://x/y.json?cache=12")
        self.assertEqual(
            with_cache_buster("https://x/y.json?token=abc&cache=1", 12),
            "https://x/y.json?token=abc&cache=12",
        )

    def test_persist_dict_defaults(self):
        repo = RepoConfig.from_persist_dict({"owner": "  ", "branch": "dev"})
        self.assertEqual(repo.owner, "banddude")
        self.assertEqual(repo.branch, "dev")
        self.assertEqual(RepoConfig.from_persist_dict(REPO.to_persist_dict()), REPO)


class TestFetchManifest(unittest.TestCase):
    def test_downloads_with_cache_buster(self):
        client, fetch = _client(
            {
                CONTENTS_URL: json.dumps({"download_url": DOWNLOAD_URL}).encode(),
                DOWNLOAD_URL + "?cache=1700000000": MANIFEST,
            }
        )

        data = asyncio.run(client.fetch_manifest_bytes())

        self.assertEqual(data, MANIFEST)
        self.assertEqual([url for url, _ in fetch.requests], [CONTENTS_URL, DOWNLOAD_URL + "?cache=1700000000"])
        self.assertEqual(fetch.requests[0][1]["Accept"], "application/vnd.github+json")

    def test_fetch_manifest_returns_body_and_parsed_form(self):
        client, fetch = _client(
            {
                CONTENTS_URL: json.dumps({"download_url": DOWNLOAD_URL}).encode(),
                DOWNLOAD_URL + "?cache=1700000000": MANIFEST,
            }
        )

        fetched = asyncio.run(client.fetch_manifest())

        self.assertEqual(fetched.data, MANIFEST)
        self.assertEqual([c.name for c in fetched.manifest], ["Core"])
        self.assertEqual(len(fetch.requests), 2)

    def test_missing_download_url(self):
        client, _ = _client({CONTENTS_URL: b'{"name": "workouts.json"}'})
        with self.assertRaises(DecodeError):
            asyncio.run(client.fetch_manifest_bytes())

    def test_invalid_manifest_body(self):
        client, _ = _client(
            {
                CONTENTS_URL: json.dumps({"download_url": DOWNLOAD_URL}).encode(),
                DOWNLOAD_URL + "?cache=1700000000": b'{"not": "an array"}',
            }
        )
        with self.assertRaises(DecodeError):
            asyncio.run(client.fetch_manifest_bytes())

    def test_http_error_propagates(self):
        client, _ = _client({CONTENTS_URL: HTTPError(403, "API rate limit exceeded")})
        with self.assertRaises(HTTPError) as ctx:
            asyncio.run(client.fetch_manifest_bytes())
        self.assertEqual(ctx.exception.status, 403)


class TestVersionMarker(unittest.TestCase):
    def test_short_sha(self):
        client, _ = _client({BRANCH_URL: b'{"name": "main", "commit": {"sha": "0123456789abcdef"}}'})
        self.assertEqual(asyncio.run(client.fetch_latest_version_marker()), "01234567")

    def test_missing_sha(self):
        for body in (b'{"name": "main"}', b'{"commit": {}}', b'{"commit": {"sha": ""}}'):
            with self.subTest(body=body):
                client, _ = _client({BRANCH_URL: body})
                with self.assertRaises(VersionUnavailable):
                    asyncio.run(client.fetch_latest_version_marker())


class TestFetchVideo(unittest.TestCase):
    def test_plain_binary_returned_as_is(self):
        client, fetch = _client({RAW_VIDEO_URL: VIDEO})
        self.assertEqual(asyncio.run(client.fetch_video_bytes("squat.mp4")), VIDEO)
        self.assertEqual(len(fetch.requests), 1)

    def test_name_without_extension_gets_mp4(self):
        client, fetch = _client({RAW_VIDEO_URL: VIDEO})
        asyncio.run(client.fetch_video_bytes("squat"))
        self.assertEqual(fetch.requests[0][0], RAW_VIDEO_URL)

    def test_resolves_lfs_pointer(self):
        client, fetch = _client({RAW_VIDEO_URL: _pointer(), MEDIA_VIDEO_URL: VIDEO})

        data = asyncio.run(client.fetch_video_bytes("squat.mp4"))

        self.assertEqual(data, VIDEO)
        self.assertEqual([url for url, _ in fetch.requests], [RAW_VIDEO_URL, MEDIA_VIDEO_URL])

    def test_rejects_mismatched_object(self):
        client, _ = _client({RAW_VIDEO_URL: _pointer(), MEDIA_VIDEO_URL: b"something else"})
        with self.assertRaises(DecodeError):
            asyncio.run(client.fetch_video_bytes("squat.mp4"))

    def test_rejects_size_mismatch(self):
        client, _ = _client({RAW_VIDEO_URL: _pointer(size=len(VIDEO) + 1), MEDIA_VIDEO_URL: VIDEO})
        with self.assertRaises(DecodeError):
            asyncio.run(client.fetch_video_bytes("squat.mp4"))

    def test_media_endpoint_returning_pointer(self):
        client, _ = _client({RAW_VIDEO_URL: _pointer(), MEDIA_VIDEO_URL: _pointer()})
        with self.assertRaises(DecodeError):
            asyncio.run(client.fetch_video_bytes("squat.mp4"))

    def test_invalid_name_rejected_before_request(self):
        client, fetch = _client({})
        with self.assertRaises(ValueError):
            asyncio.run(client.fetch_video_bytes("../secrets"))
        self.assertEqual(fetch.requests, [])


if __name__ == "__main__":
    unittest.main()
