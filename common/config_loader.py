"""
Loading of the TOML run configuration.

Layout::

    timeout = "5m"

    [filetest.<id>]
    size = 1048576
    numparallel = 4
    seed = 42
    timeout = "30s"

    [endpoint.s3.<id>]
    region, access_key, secret_key, bucket, path, address

    [endpoint.r2.<id>]
    access_key, secret_key, bucket, path, address

    [monitoring]
    address, instance_id

File test sizes must be positive and are checked here, so a config that
loads always gives the report a size for every file test it runs.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping

from common.duration_utils import parse_duration
from common.errors import ConfigurationError
from common.models import FileTest, ID
from configuration import DEFAULT_TIMEOUT_SECONDS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class S3EndpointConfig:
    """Connection settings of an S3 API endpoint."""

    bucket: str
    access_key: str
    secret_key: str
    region: str = ""
    path: str = ""
    address: str = ""


@dataclass(frozen=True)
class MonitoringConfig:
    address: str = ""
    instance_id: str = ""


@dataclass
class PerfTestConfig:
    """Everything a run needs, as read from the config file."""

    file_tests: Dict[ID, FileTest] = field(default_factory=dict)
    s3_endpoints: Dict[ID, S3EndpointConfig] = field(default_factory=dict)
    r2_endpoints: Dict[ID, S3EndpointConfig] = field(default_factory=dict)
    monitoring: MonitoringConfig = field(default_factory=MonitoringConfig)
    timeout: float = DEFAULT_TIMEOUT_SECONDS

    def file_test_sizes(self) -> Dict[ID, int]:
        """Map every file test to its payload size, as the report needs."""
        return {file_test_id: ft.size for file_test_id, ft in self.file_tests.items()}


def _table(raw: Mapping[str, Any], key: str, where: str) -> Mapping[str, Any]:
    value = raw.get(key, {})
    if not isinstance(value, Mapping):
        raise ConfigurationError(f"{where}{key} must be a table")
    return value


def _int(raw: Mapping[str, Any], key: str, where: str) -> int:
    value = raw.get(key, 0)
    if isinstance(value, bool) or not isinstance(value, int):
        raise ConfigurationError(f"{where}.{key} must be an integer, got {value!r}")
    return value


def _parse_file_test(file_test_id: str, raw: Mapping[str, Any]) -> FileTest:
    where = f"filetest.{file_test_id}"
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{where} must be a table")

    size = _int(raw, "size", where)
    if size <= 0:
        raise ConfigurationError(f"{where}.size must be positive", {"filetest": file_test_id})

    timeout = parse_duration(raw["timeout"]) if "timeout" in raw else 0.0

    return FileTest(
        size=size,
        num_parallel=_int(raw, "numparallel", where),
        seed=_int(raw, "seed", where),
        timeout=timeout,
    )


def _parse_endpoint(kind: str, endpoint_id: str, raw: Mapping[str, Any]) -> S3EndpointConfig:
    where = f"endpoint.{kind}.{endpoint_id}"
    if not isinstance(raw, Mapping):
        raise ConfigurationError(f"{where} must be a table")

    cfg = S3EndpointConfig(
        bucket=str(raw.get("bucket", "")),
        access_key=str(raw.get("access_key", "")),
        secret_key=str(raw.get("secret_key", "")),
        region=str(raw.get("region", "")),
        path=str(raw.get("path", "")),
        address=str(raw.get("address", "")),
    )

    required = ["bucket", "access_key", "secret_key"]
    if kind == "s3":
        required.insert(0, "region")
    else:
        required.append("address")

    for name in required:
        if not getattr(cfg, name):
            raise ConfigurationError(f"{where}: {name.replace('_', ' ')} is required",
                                     {"endpoint": endpoint_id})
    return cfg


def parse_config(raw: Mapping[str, Any]) -> PerfTestConfig:
    """Build a PerfTestConfig from already decoded TOML data.

    Raises:
        ConfigurationError: If a section is malformed or a required field is missing
    """
    config = PerfTestConfig()

    if "timeout" in raw:
        config.timeout = parse_duration(raw["timeout"])
    if config.timeout <= 0:
        config.timeout = DEFAULT_TIMEOUT_SECONDS

    for file_test_id, section in _table(raw, "filetest", "").items():
        config.file_tests[file_test_id] = _parse_file_test(file_test_id, section)

    endpoints = _table(raw, "endpoint", "")
    for endpoint_id, section in _table(endpoints, "s3", "endpoint.").items():
        config.s3_endpoints[endpoint_id] = _parse_endpoint("s3", endpoint_id, section)
    for endpoint_id, section in _table(endpoints, "r2", "endpoint.").items():
        config.r2_endpoints[endpoint_id] = _parse_endpoint("r2", endpoint_id, section)

    duplicated = set(config.s3_endpoints) & set(config.r2_endpoints)
    if duplicated:
        raise ConfigurationError(f"Endpoint ids used more than once: {', '.join(sorted(duplicated))}")

    monitoring = _table(raw, "monitoring", "")
    config.monitoring = MonitoringConfig(
        address=str(monitoring.get("address", "")),
        instance_id=str(monitoring.get("instance_id", "")),
    )

    return config


def load_config(path: str) -> PerfTestConfig:
    """Load and validate the TOML config file at ``path``.

    Raises:
        ConfigurationError: If the file is missing, unreadable or invalid
    """
    if not path:
        raise ConfigurationError("empty config path")

    config_path = Path(path)
    try:
        with config_path.open("rb") as f:
            raw = tomllib.load(f)
    except FileNotFoundError:
        raise ConfigurationError(f"Config file not found: {path}") from None
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(f"Failed to parse {path}: {e}") from e

    config = parse_config(raw)
    logger.info(
        f"Loaded {path}: {len(config.file_tests)} file tests, "
        f"{len(config.s3_endpoints) + len(config.r2_endpoints)} endpoints"
    )
    return config
