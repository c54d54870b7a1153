"""
Factory module for creating storage systems and endpoints from configuration.
"""

import logging
from typing import List

# Suppress boto3/botocore logging before importing any boto3-related modules
logging.getLogger('botocore').setLevel(logging.CRITICAL)
logging.getLogger('botocore.credentials').setLevel(logging.CRITICAL)
logging.getLogger('boto3').setLevel(logging.CRITICAL)
logging.getLogger('aioboto3').setLevel(logging.CRITICAL)
logging.getLogger('aiobotocore').setLevel(logging.CRITICAL)
logging.getLogger('urllib3').setLevel(logging.CRITICAL)
logging.getLogger('s3transfer').setLevel(logging.CRITICAL)

from systems.r2 import R2System
from systems.aws import AWSSystem
from common.config_loader import PerfTestConfig, S3EndpointConfig
from common.models import Endpoint

logger = logging.getLogger(__name__)


def create_storage_system(storage_type: str, cfg: S3EndpointConfig):
    """Create and return the appropriate storage system based on type.

    Args:
        storage_type: Storage type ('r2' or 's3')
        cfg: Endpoint connection settings

    Returns:
        Storage system instance (R2System or AWSSystem), not yet opened

    Raises:
        ValueError: If storage_type is not supported
    """
    storage_type = storage_type.lower()

    credentials = {
        "access_key_id": cfg.access_key,
        "secret_access_key": cfg.secret_key,
    }

    if storage_type == "r2":
        return R2System(cfg.bucket, credentials, endpoint=cfg.address)

    elif storage_type == "s3":
        credentials["region_name"] = cfg.region
        return AWSSystem(cfg.bucket, credentials, endpoint=cfg.address or None)

    else:
        raise ValueError(f"Unsupported storage type: {storage_type}. Must be 'r2' or 's3'.")


async def open_endpoints(config: PerfTestConfig) -> List[Endpoint]:
    """Create and open a client for every configured endpoint.

    Endpoints are returned in config file order, S3 endpoints first. If any
    client fails to open, the ones already opened are closed again.
    """
    endpoints: List[Endpoint] = []
    sections = [("s3", config.s3_endpoints), ("r2", config.r2_endpoints)]
    try:
        for storage_type, endpoint_configs in sections:
            for endpoint_id, cfg in endpoint_configs.items():
                system = create_storage_system(storage_type, cfg)
                await system.open()
                endpoints.append(Endpoint(id=endpoint_id, client=system,
                                          path=cfg.path, bucket=cfg.bucket))
                logger.info(f"Opened {storage_type.upper()} endpoint {endpoint_id} "
                            f"(bucket {cfg.bucket})")
    except BaseException:
        await close_endpoints(endpoints)
        raise
    return endpoints


async def close_endpoints(endpoints: List[Endpoint]) -> None:
    """Close every endpoint's client, logging failures instead of raising."""
    for endpoint in endpoints:
        try:
            await endpoint.client.close()
        except Exception as e:
            logger.error(f"Failed to close endpoint {endpoint.id}: {e}")
