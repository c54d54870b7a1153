"""
Configuration constants for the perftester storage benchmark.

This module contains the process-wide defaults including:
- Configuration file location and global operation timeout
- Synthetic payload and streaming chunk sizes
- S3 client tuning (timeouts, retries, multipart settings)
- Report formatting parameters
- Observability and export defaults
"""

import os

# =============================================================================
# CONFIGURATION FILE
# =============================================================================

# TOML file describing file tests, endpoints and monitoring
DEFAULT_CONFIG_PATH: str = os.getenv("PERFTESTER_CONFIG", "config.toml")

# Used when neither the config file nor a file test sets a timeout
DEFAULT_TIMEOUT_SECONDS: float = float(os.getenv("PERFTESTER_TIMEOUT_SECONDS", "600"))

# =============================================================================
# SYNTHETIC DATA AND STREAMING
# =============================================================================

# Block size of the deterministic payload generator. Changing it changes the
# generated bytes for a given seed.
SYNTHETIC_CHUNK_SIZE: int = 64 * 1024

# Read size used when hashing downloaded objects
DOWNLOAD_READ_SIZE: int = 1024 * 1024

# =============================================================================
# S3 CLIENT CONFIGURATION
# =============================================================================

S3_CONNECT_TIMEOUT_SECONDS: int = 10
S3_READ_TIMEOUT_SECONDS: int = 120
S3_MAX_ATTEMPTS: int = 3  # Retries are left to botocore, never to the checker
S3_MAX_POOL_CONNECTIONS: int = 100
UPLOAD_MULTIPART_CHUNK_MB: int = 16
UPLOAD_MAX_CONCURRENCY: int = 4

# =============================================================================
# REPORT FORMATTING
# =============================================================================

TABLE_PADDING: int = 5
HEADER_SEPARATOR: str = "-"
FILE_TITLE_PREFIX: str = "File: "
FILE_TITLE_BORDER: str = "*"

# =============================================================================
# UNIT CONVERSION
# =============================================================================

BYTES_PER_MB: int = 1024 * 1024
BITS_PER_BYTE: int = 8
BITS_PER_MEGABIT: int = 1_000_000

# =============================================================================
# OBSERVABILITY AND EXPORT
# =============================================================================

DEFAULT_PROMETHEUS_PORT: int = 9100
DEFAULT_OUTPUT_DIR: str = "results"
