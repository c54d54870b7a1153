"""
Tests for building storage systems and endpoints from configuration.
"""

import os
import sys
import unittest
from unittest.mock import patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from common import storage_factory
from common.config_loader import PerfTestConfig, S3EndpointConfig
from common.errors import ConfigurationError, StorageError
from common.storage_factory import close_endpoints, create_storage_system, open_endpoints
from systems.aws import AWSSystem
from systems.r2 import R2System
from fake_storage import InMemoryStorage


def endpoint_config(**overrides):
    values = dict(bucket="bench", access_key="key", secret_key="secret",
                  region="eu-north-1", address="")
    values.update(overrides)
    return S3EndpointConfig(**values)


class TestCreateStorageSystem(unittest.TestCase):

    def test_s3(self):
        system = create_storage_system("s3", endpoint_config())
        self.assertIsInstance(system, AWSSystem)
        self.assertIsNone(system.endpoint)
        self.assertEqual(system.bucket_name, "bench")
        self.assertEqual(system._config.s3['addressing_style'], 'virtual')

    def test_s3_requires_region(self):
        with self.assertRaises(ConfigurationError):
            create_storage_system("s3", endpoint_config(region=""))

    def test_r2(self):
        system = create_storage_system("R2", endpoint_config(address="https://acct.r2.example"))
        self.assertIsInstance(system, R2System)
        self.assertEqual(system.endpoint, "https://acct.r2.example")
        self.assertEqual(system.credentials["region_name"], "auto")
        self.assertEqual(system._config.s3['addressing_style'], 'path')

    def test_r2_requires_address(self):
        with self.assertRaises(ConfigurationError):
            create_storage_system("r2", endpoint_config())

    def test_unsupported(self):
        with self.assertRaises(ValueError):
            create_storage_system("gcs", endpoint_config())


class TestUnopenedClient(unittest.IsolatedAsyncioTestCase):

    async def test_calls_before_open(self):
        system = create_storage_system("s3", endpoint_config())
        with self.assertRaises(RuntimeError):
            await system.delete("key")

    async def test_resolve_without_address(self):
        system = create_storage_system("s3", endpoint_config())
        self.assertEqual(await system.resolve_address(), "")


class TestOpenEndpoints(unittest.IsolatedAsyncioTestCase):

    def setUp(self):
        self.config = PerfTestConfig(
            s3_endpoints={"aws": endpoint_config(path="runs")},
            r2_endpoints={"r2": endpoint_config(address="https://acct.r2.example")},
        )

    async def test_endpoints_in_order(self):
        clients = [InMemoryStorage(), InMemoryStorage()]
        with patch.object(storage_factory, 'create_storage_system', side_effect=clients):
            endpoints = await open_endpoints(self.config)

        self.assertEqual([e.id for e in endpoints], ["aws", "r2"])
        self.assertEqual(endpoints[0].path, "runs")
        self.assertEqual(endpoints[0].bucket, "bench")
        self.assertIs(endpoints[1].client, clients[1])

    async def test_failure_closes_opened_clients(self):
        opened = InMemoryStorage()
        failing = InMemoryStorage()

        async def fail_open():
            raise StorageError("connection refused")
        failing.open = fail_open

        with patch.object(storage_factory, 'create_storage_system', side_effect=[opened, failing]):
            with self.assertRaises(StorageError):
                await open_endpoints(self.config)

        self.assertTrue(opened.is_closed)

    async def test_close_errors_are_logged(self):
        broken = InMemoryStorage()

        async def fail_close():
            raise StorageError("already gone")
        broken.close = fail_close
        healthy = InMemoryStorage()

        with self.assertLogs('common.storage_factory', level='ERROR'):
            await close_endpoints([
                storage_factory.Endpoint(id="broken", client=broken),
                storage_factory.Endpoint(id="healthy", client=healthy),
            ])

        self.assertTrue(healthy.is_closed)


if __name__ == '__main__':
    unittest.main()
