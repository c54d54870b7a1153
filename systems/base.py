"""
Async storage client interface and the S3-compatible implementation.
"""

import abc
import asyncio
import logging
from dataclasses import dataclass
from typing import BinaryIO, List, Optional
from urllib.parse import urlparse

import aioboto3
from boto3.s3.transfer import TransferConfig
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from common.errors import StorageError
from configuration import (
    S3_CONNECT_TIMEOUT_SECONDS,
    S3_READ_TIMEOUT_SECONDS,
    S3_MAX_ATTEMPTS,
    S3_MAX_POOL_CONNECTIONS,
    UPLOAD_MULTIPART_CHUNK_MB,
    UPLOAD_MAX_CONCURRENCY,
    BYTES_PER_MB,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ListObject:
    """An entry returned by ``list``: an object key or a common prefix."""

    key: str
    is_prefix: bool = False


class DownloadStream(abc.ABC):
    """Readable body of a downloaded object. Must always be closed."""

    @abc.abstractmethod
    async def read(self, amt: Optional[int] = None) -> bytes:
        """Read up to ``amt`` bytes; an empty result means end of stream."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release the underlying connection."""


class ObjectStorageSystem(abc.ABC):
    """Capability set every storage backend offers to the checker.

    Object names passed in are full keys; path prefixes are applied by the
    caller. Failures are raised as StorageError.
    """

    async def open(self) -> "ObjectStorageSystem":
        """Acquire network resources. The default implementation does nothing."""
        return self

    async def __aenter__(self):
        return await self.open()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @abc.abstractmethod
    async def list(self, prefix: str, recursive: bool = False) -> List[ListObject]:
        """List objects and prefixes below ``prefix``."""

    @abc.abstractmethod
    async def upload(self, name: str, stream: BinaryIO) -> None:
        """Upload everything readable from ``stream`` to ``name``."""

    @abc.abstractmethod
    async def download(self, name: str) -> DownloadStream:
        """Open ``name`` for streaming download."""

    @abc.abstractmethod
    async def delete(self, name: str) -> None:
        """Delete ``name``."""

    @abc.abstractmethod
    async def resolve_address(self) -> str:
        """Network address of the backend, or an empty string if unknown."""

    @abc.abstractmethod
    async def close(self) -> None:
        """Release every resource held by the client."""


class S3DownloadStream(DownloadStream):
    """DownloadStream over an aiobotocore StreamingBody."""

    def __init__(self, body):
        self._body = body

    async def read(self, amt: Optional[int] = None) -> bytes:
        return await self._body.read(amt)

    async def close(self) -> None:
        self._body.close()


class S3CompatibleSystem(ObjectStorageSystem):
    """Async S3 API client built on aioboto3.

    The client is created lazily by ``open`` (or the async context manager)
    and torn down by ``close``.
    """

    def __init__(self, endpoint: Optional[str], bucket_name: str, credentials: dict):
        self.endpoint = endpoint or None
        self.bucket_name = bucket_name
        self.credentials = credentials

        self._config = self._create_config()
        self._transfer_config = TransferConfig(
            multipart_chunksize=UPLOAD_MULTIPART_CHUNK_MB * BYTES_PER_MB,
            max_concurrency=UPLOAD_MAX_CONCURRENCY,
        )

        self.session = aioboto3.Session(
            aws_access_key_id=credentials.get("access_key_id"),
            aws_secret_access_key=credentials.get("secret_access_key"),
            region_name=credentials.get("region_name", "auto"),
        )

        self.client = None
        self._client_cm = None

        logger.debug(f"Initialized storage for {self.endpoint or 'default AWS endpoint'} "
                     f"bucket {bucket_name}")

    def _create_config(self) -> Config:
        """Create the botocore config shared by every request."""
        return Config(
            max_pool_connections=S3_MAX_POOL_CONNECTIONS,
            connect_timeout=S3_CONNECT_TIMEOUT_SECONDS,
            read_timeout=S3_READ_TIMEOUT_SECONDS,
            retries={
                'max_attempts': S3_MAX_ATTEMPTS,
                'mode': 'adaptive',
            },
            s3={
                'payload_signing_enabled': False,
                'addressing_style': self._addressing_style(),
            },
            tcp_keepalive=True,
        )

    def _addressing_style(self) -> str:
        return 'virtual'

    async def open(self) -> "S3CompatibleSystem":
        if self.client is None:
            self._client_cm = self.session.client(
                "s3",
                endpoint_url=self.endpoint,
                config=self._config,
            )
            self.client = await self._client_cm.__aenter__()
        return self

    async def close(self) -> None:
        if self._client_cm is not None:
            cm, self._client_cm, self.client = self._client_cm, None, None
            await cm.__aexit__(None, None, None)

    def _require_client(self):
        if self.client is None:
            raise RuntimeError("Storage client not initialized. Call open() or use async context manager.")
        return self.client

    async def list(self, prefix: str, recursive: bool = False) -> List[ListObject]:
        client = self._require_client()

        if prefix and not prefix.endswith("/"):
            prefix += "/"

        kwargs = {"Bucket": self.bucket_name, "Prefix": prefix}
        if not recursive:
            kwargs["Delimiter"] = "/"

        objects: List[ListObject] = []
        try:
            paginator = client.get_paginator("list_objects_v2")
            async for page in paginator.paginate(**kwargs):
                for common in page.get("CommonPrefixes", []):
                    objects.append(ListObject(key=common["Prefix"], is_prefix=True))
                for obj in page.get("Contents", []):
                    objects.append(ListObject(key=obj["Key"], is_prefix=False))
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to list {prefix!r}: {e}") from e
        return objects

    async def upload(self, name: str, stream: BinaryIO) -> None:
        client = self._require_client()
        try:
            await client.upload_fileobj(
                stream, self.bucket_name, name, Config=self._transfer_config
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to upload file {name!r}: {e}") from e

    async def download(self, name: str) -> DownloadStream:
        client = self._require_client()
        try:
            response = await client.get_object(Bucket=self.bucket_name, Key=name)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to download file {name!r}: {e}") from e
        return S3DownloadStream(response["Body"])

    async def delete(self, name: str) -> None:
        client = self._require_client()
        try:
            await client.delete_object(Bucket=self.bucket_name, Key=name)
        except (ClientError, BotoCoreError) as e:
            raise StorageError(f"failed to delete file {name!r}: {e}") from e

    async def resolve_address(self) -> str:
        if not self.endpoint:
            # Regional AWS endpoints resolve to a pool of addresses
            return ""

        parsed = urlparse(self.endpoint if "://" in self.endpoint else f"https://{self.endpoint}")
        host = parsed.hostname
        if not host:
            return ""
        port = parsed.port or (80 if parsed.scheme == "http" else 443)

        loop = asyncio.get_running_loop()
        try:
            infos = await loop.getaddrinfo(host, port)
        except OSError as e:
            raise StorageError(f"failed to resolve {host!r}: {e}") from e
        if not infos:
            return ""
        return infos[0][4][0]
