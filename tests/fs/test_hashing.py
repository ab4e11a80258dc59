import hashlib
import unittest

from src.backend.fs.hashing import compute_bytes_hash, matches_object


class TestHashing(unittest.TestCase):
    def test_bytes_hash_is_sha256(self):
        self.assertEqual(compute_bytes_hash(b"abc"), hashlib.sha256(b"abc").hexdigest())

    def test_matches_object(self):
        data = b"video"
        oid = hashlib.sha256(data).hexdigest()
        self.assertTrue(matches_object(data, oid=oid))
        self.assertTrue(matches_object(data, oid=oid.upper(), size=5))
        self.assertFalse(matches_object(data, oid=oid, size=6))
        self.assertFalse(matches_object(b"other", oid=oid))


if __name__ == "__main__":
    unittest.main()
