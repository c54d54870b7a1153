"""
AWS S3 object storage system implementation.
"""

from systems.base import S3CompatibleSystem
from common.errors import ConfigurationError
import logging

logger = logging.getLogger(__name__)


class AWSSystem(S3CompatibleSystem):
    """AWS S3 (or any S3 API service reached through an explicit address)."""

    def __init__(self, bucket_name: str, credentials: dict, endpoint: str = None):
        if not credentials.get("region_name"):
            raise ConfigurationError("region is required")

        super().__init__(
            endpoint=endpoint,
            bucket_name=bucket_name,
            credentials=credentials
        )
        logger.info(f"Initialized AWS S3 system for bucket {bucket_name}")
