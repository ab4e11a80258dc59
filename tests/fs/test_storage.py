"""
Tests for src/backend/fs/storage.py

Covers:
- Manifest read/write (absent, valid, corrupt)
- Video paths and atomic writes
- Cache size and full clear (metadata reset included)
"""

import json
import tempfile
import unittest
from datetime import datetime, timezone
from pathlib import Path

from src.backend.fs.metadata import CacheMetadata, MetadataStore
from src.backend.fs.storage import ContentCacheStore
from src.shared.errors import CorruptCache


MANIFEST = [
    {
        "name": "Core",
        "exercises": [
            {
                "section": "Main",
                "move": "Squat",
                "description": "Bend knees",
                "json_file": "squat.json",
                "video_file": "squat.mp4",
                "beginner": "b",
                "intermediate": "i",
                "advanced": "a",
            }
        ],
    }
]


def _store(tmp_path: Path) -> ContentCacheStore:
    return ContentCacheStore(
        tmp_path / "content",
        metadata=MetadataStore(path=tmp_path / "content_metadata.json"),
    )


class TestManifestStorage(unittest.TestCase):
    def test_read_missing_manifest_returns_none(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            self.assertIsNone(store.read_manifest())
            self.assertFalse(store.has_manifest())

    def test_write_then_read_manifest(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            path = store.write_manifest(json.dumps(MANIFEST).encode("utf-8"))

            self.assertEqual(path.name, "manifest.json")
            manifest = store.read_manifest()
            self.assertEqual(len(manifest), 1)
            self.assertEqual(manifest.containers[0].name, "Core")
            self.assertEqual(manifest.containers[0].exercises[0].video_file, "squat.mp4")

    def test_write_leaves_no_temp_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            store.write_manifest(b"[]")
            store.write_manifest(json.dumps(MANIFEST).encode("utf-8"))

            names = [p.name for p in store.cache_root.iterdir()]
            self.assertEqual(names, ["manifest.json"])

    def test_corrupt_manifest_raises_corrupt_cache(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            store.write_manifest(b"{not json")

            with self.assertRaises(CorruptCache):
                store.read_manifest()

    def test_clear_manifest_keeps_videos(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            store.write_manifest(b"[]")
            store.write_video("squat.mp4", b"video")

            store.clear_manifest()
            store.clear_manifest()

            self.assertFalse(store.has_manifest())
            self.assertTrue(store.has_video("squat.mp4"))


class TestVideoStorage(unittest.TestCase):
    def test_video_path_is_under_videos_dir(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            path = store.video_path("squat.mp4")
            self.assertEqual(path.parent, store.paths.videos)
            self.assertEqual(path.name, "squat.mp4")

    def test_video_path_appends_default_extension(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            self.assertEqual(store.video_path("squat").name, "squat.mp4")

    def test_video_path_rejects_traversal(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            for bad in ("../escape.mp4", "a/b.mp4", "..", ""):
                with self.subTest(name=bad):
                    with self.assertRaises(ValueError):
                        store.video_path(bad)

    def test_write_video_creates_directory(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            self.assertFalse(store.paths.videos.exists())

            path = store.write_video("lunge.mov", b"\x00\x01\x02")

            self.assertTrue(store.has_video("lunge.mov"))
            self.assertEqual(path.read_bytes(), b"\x00\x01\x02")
            self.assertEqual([p.name for p in store.paths.videos.iterdir()], ["lunge.mov"])


class TestWholeCache(unittest.TestCase):
    def test_total_size_sums_nested_files(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            self.assertEqual(store.total_cache_size_bytes(), 0)

            store.write_manifest(b"[]")
            store.write_video("a.mp4", b"x" * 100)
            store.write_video("b.mp4", b"y" * 50)

            self.assertEqual(store.total_cache_size_bytes(), 152)

    def test_clear_all_removes_content_and_metadata(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            store.write_manifest(b"[]")
            store.write_video("a.mp4", b"x")
            store.write_metadata(
                CacheMetadata(
                    last_sync_timestamp=datetime(2026, 1, 1, tzinfo=timezone.utc),
                    content_version="abcd1234",
                    update_available=True,
                )
            )

            store.clear_all()

            self.assertTrue(store.cache_root.is_dir())
            self.assertEqual(list(store.cache_root.iterdir()), [])
            self.assertEqual(store.read_metadata(), CacheMetadata())
            self.assertEqual(store.total_cache_size_bytes(), 0)

    def test_clear_all_on_missing_root(self):
        with tempfile.TemporaryDirectory() as tmpdir:
            store = _store(Path(tmpdir))
            store.clear_all()
            self.assertTrue(store.cache_root.is_dir())


if __name__ == "__main__":
    unittest.main()
