"""
Prometheus metrics exporter for perftester operations.
"""

import logging
from typing import Tuple

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from common.models import ID, Operation, Result
from configuration import DEFAULT_PROMETHEUS_PORT, BITS_PER_BYTE, BITS_PER_MEGABIT

logger = logging.getLogger(__name__)


def parse_listen_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional) into its parts."""
    host, sep, port = address.rpartition(":")
    if not sep:
        return address or "0.0.0.0", DEFAULT_PROMETHEUS_PORT
    try:
        return host or "0.0.0.0", int(port)
    except ValueError:
        raise ValueError(f"Invalid monitoring address: {address!r}") from None


class OperationMetricsExporter:
    """Exposes per-operation durations and outcomes to Prometheus."""

    def __init__(self, address: str = "", instance_id: str = "",
                 registry: CollectorRegistry = None):
        self.address = address
        self.instance_id = instance_id
        self.registry = registry or CollectorRegistry()
        self.server_started = False

        labels = ['instance', 'operation', 'filetest', 'endpoint']
        self.operations_total = Counter(
            'perftester_operations_total', 'Completed operations',
            labels + ['status'], registry=self.registry)
        self.operation_duration = Histogram(
            'perftester_operation_duration_seconds', 'Operation duration',
            labels, registry=self.registry)
        self.bytes_transferred = Counter(
            'perftester_bytes_transferred_total', 'Bytes moved by successful operations',
            labels, registry=self.registry)
        self.throughput = Gauge(
            'perftester_throughput_mbps', 'Throughput of the last successful operation',
            labels, registry=self.registry)

    def start_server(self):
        """Start the Prometheus HTTP server."""
        if not self.server_started:
            host, port = parse_listen_address(self.address)
            try:
                start_http_server(port, addr=host, registry=self.registry)
                self.server_started = True
                logger.info(f"Prometheus server started on {host}:{port}")
            except OSError as e:
                logger.error(f"Failed to start Prometheus server: {e}")

    def record_result(self, operation: Operation, file_test_id: ID, endpoint_id: ID,
                      result: Result, total_bytes: int):
        """Record the outcome of one operation."""
        labels = dict(instance=self.instance_id, operation=str(operation),
                      filetest=file_test_id, endpoint=endpoint_id)
        status = "error" if result.error else "ok"

        self.operations_total.labels(status=status, **labels).inc()
        self.operation_duration.labels(**labels).observe(result.duration)

        if result.error or operation == Operation.DELETE:
            return

        self.bytes_transferred.labels(**labels).inc(total_bytes)
        if result.duration > 0:
            mbps = total_bytes * BITS_PER_BYTE / BITS_PER_MEGABIT / result.duration
            self.throughput.labels(**labels).set(mbps)
