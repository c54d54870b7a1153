"""
In-memory storage system used by the checker and CLI tests.
"""

import asyncio
import os
import sys
from typing import Dict, List, Optional, Set

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common.errors import StorageError
from systems.base import DownloadStream, ListObject, ObjectStorageSystem


class InMemoryStream(DownloadStream):
    """Download stream over bytes with optional read/close failures."""

    def __init__(self, data: bytes, read_error: Exception = None, close_error: Exception = None):
        self._data = data
        self._pos = 0
        self.read_error = read_error
        self.close_error = close_error
        self.closed = False

    async def read(self, amt: Optional[int] = None) -> bytes:
        await asyncio.sleep(0)
        if self.read_error is not None:
            raise self.read_error
        end = len(self._data) if amt is None else self._pos + amt
        chunk = self._data[self._pos:end]
        self._pos += len(chunk)
        return chunk

    async def close(self) -> None:
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


class InMemoryStorage(ObjectStorageSystem):
    """Storage system keeping objects in a dict.

    Attributes:
        objects: Stored object bodies by key
        calls: (method, key) tuples in call order
        fail_names: Keys whose upload, download or delete raises StorageError
        delay: Seconds every upload, download and delete sleeps first
        delays: Per-key delay overriding ``delay``
        cancelled: Number of calls that were cancelled while sleeping
    """

    def __init__(self, address: str = "127.0.0.1"):
        self.objects: Dict[str, bytes] = {}
        self.calls: List[tuple] = []
        self.fail_names: Set[str] = set()
        self.delay = 0.0
        self.delays: Dict[str, float] = {}
        self.cancelled = 0
        self.read_error: Optional[Exception] = None
        self.close_error: Optional[Exception] = None
        self.streams: List[InMemoryStream] = []
        self.address = address
        self.is_closed = False

    async def _pause(self, name: str):
        try:
            await asyncio.sleep(self.delays.get(name, self.delay))
        except asyncio.CancelledError:
            self.cancelled += 1
            raise

    def _check(self, method: str, name: str):
        self.calls.append((method, name))
        if name in self.fail_names:
            raise StorageError(f"failed to {method} file {name!r}: injected failure")

    async def list(self, prefix: str, recursive: bool = False) -> List[ListObject]:
        self.calls.append(("list", prefix))
        return [ListObject(key=k) for k in sorted(self.objects) if k.startswith(prefix)]

    async def upload(self, name: str, stream) -> None:
        await self._pause(name)
        self._check("upload", name)
        self.objects[name] = stream.read()

    async def download(self, name: str) -> DownloadStream:
        await self._pause(name)
        self._check("download", name)
        if name not in self.objects:
            raise StorageError(f"failed to download file {name!r}: no such key")
        stream = InMemoryStream(self.objects[name], self.read_error, self.close_error)
        self.streams.append(stream)
        return stream

    async def delete(self, name: str) -> None:
        await self._pause(name)
        self._check("delete", name)
        self.objects.pop(name, None)

    async def resolve_address(self) -> str:
        return self.address

    async def close(self) -> None:
        self.is_closed = True
