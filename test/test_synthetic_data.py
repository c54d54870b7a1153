"""
Tests for the deterministic payload generator.
"""

import hashlib
import io
import os
import sys
import unittest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.synthetic_data import SyntheticDataSource, payload_digest, worker_source


class TestSyntheticDataSource(unittest.TestCase):

    def test_size(self):
        self.assertEqual(len(SyntheticDataSource(1, 200_000).read()), 200_000)
        self.assertEqual(SyntheticDataSource(1, 0).read(), b"")

    def test_same_seed_same_bytes(self):
        self.assertEqual(SyntheticDataSource(42, 100_000).read(),
                         SyntheticDataSource(42, 100_000).read())

    def test_different_seed_different_bytes(self):
        self.assertNotEqual(SyntheticDataSource(42, 1000).read(),
                            SyntheticDataSource(43, 1000).read())

    def test_read_size_does_not_change_content(self):
        """Reading in odd sized pieces yields the same stream."""
        whole = SyntheticDataSource(7, 150_000).read()

        source = SyntheticDataSource(7, 150_000)
        pieces = []
        while True:
            piece = source.read(12_345)
            if not piece:
                break
            pieces.append(piece)
        self.assertEqual(b"".join(pieces), whole)

        buffered = io.BufferedReader(SyntheticDataSource(7, 150_000))
        self.assertEqual(buffered.read(), whole)

    def test_blocks_match_read(self):
        source = SyntheticDataSource(3, 70_000)
        head = source.read(10)
        rest = b"".join(source.blocks())
        self.assertEqual(head + rest, SyntheticDataSource(3, 70_000).read())

    def test_negative_size(self):
        with self.assertRaises(ValueError):
            SyntheticDataSource(1, -1)

    def test_worker_source_offsets_seed(self):
        self.assertEqual(worker_source(10, 500, 3).read(), SyntheticDataSource(13, 500).read())

    def test_payload_digest(self):
        expected = hashlib.sha256(SyntheticDataSource(5, 99_999).read()).digest()
        self.assertEqual(payload_digest(5, 99_999), expected)


if __name__ == '__main__':
    unittest.main()
