"""
Storage backends usable as benchmark endpoints.
"""

from .base import ObjectStorageSystem, DownloadStream, ListObject, S3CompatibleSystem
from .aws import AWSSystem
from .r2 import R2System

__all__ = [
    'ObjectStorageSystem', 'DownloadStream', 'ListObject',
    'S3CompatibleSystem', 'AWSSystem', 'R2System',
]
