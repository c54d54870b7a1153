"""
Deterministic pseudo-random payloads for uploads and download verification.
"""

import hashlib
import io
import random

from configuration import SYNTHETIC_CHUNK_SIZE, BYTES_PER_MB


class SyntheticDataSource(io.RawIOBase):
    """Readable binary stream of ``size`` pseudo-random bytes.

    The bytes depend only on ``seed`` and ``size``: two sources built with the
    same pair always produce identical content, however they are read.
    """

    def __init__(self, seed: int, size: int, chunk_size: int = SYNTHETIC_CHUNK_SIZE):
        super().__init__()
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        self.seed = seed
        self.size = size
        self._chunk_size = chunk_size
        self._rng = random.Random(seed)
        self._remaining = size
        self._buffer = b""

    def readable(self) -> bool:
        return True

    def _next_block(self) -> bytes:
        n = min(self._chunk_size, self._remaining)
        self._remaining -= n
        return self._rng.randbytes(n)

    def readinto(self, b) -> int:
        if not self._buffer:
            if self._remaining <= 0:
                return 0
            self._buffer = self._next_block()

        n = min(len(b), len(self._buffer))
        b[:n] = self._buffer[:n]
        self._buffer = self._buffer[n:]
        return n

    def blocks(self):
        """Yield the remaining content in generator-sized blocks."""
        if self._buffer:
            block, self._buffer = self._buffer, b""
            yield block
        while self._remaining > 0:
            yield self._next_block()


def worker_source(seed: int, size: int, worker_index: int) -> SyntheticDataSource:
    """Payload stream of one worker: the file test seed offset by its index."""
    return SyntheticDataSource(seed + worker_index, size)


def payload_digest(seed: int, size: int) -> bytes:
    """SHA-256 digest of the payload generated for ``seed`` and ``size``."""
    digest = hashlib.sha256()
    for block in SyntheticDataSource(seed, size).blocks():
        digest.update(block)
    return digest.digest()


def describe_size(size: int) -> str:
    """Human readable size used in log messages."""
    if size >= BYTES_PER_MB:
        return f"{size / BYTES_PER_MB:.1f} MB"
    return f"{size} B"
