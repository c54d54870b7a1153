"""
Cloudflare R2 object storage system implementation.
"""

from systems.base import S3CompatibleSystem
from common.errors import ConfigurationError
import logging

logger = logging.getLogger(__name__)


class R2System(S3CompatibleSystem):
    """Cloudflare R2 object storage system."""

    def __init__(self, bucket_name: str, credentials: dict, endpoint: str = None):
        if not endpoint:
            raise ConfigurationError("address is required for R2 endpoints")

        credentials = dict(credentials)
        credentials["region_name"] = "auto"

        super().__init__(
            endpoint=endpoint,
            bucket_name=bucket_name,
            credentials=credentials
        )
        logger.info(f"Initialized R2 system for bucket {bucket_name}")

    def _addressing_style(self) -> str:
        return 'path'
