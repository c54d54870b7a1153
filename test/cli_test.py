"""
Tests for the perftester command line interface.
"""

import io
import os
import sys
import unittest
from contextlib import redirect_stdout
from unittest.mock import AsyncMock, patch

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import cli
from common.config_loader import PerfTestConfig
from common.errors import ConfigurationError, StorageError
from common.models import Endpoint, FileTest
from fake_storage import InMemoryStorage


class TestPerfTesterCLI(unittest.TestCase):

    def setUp(self):
        self.storage = InMemoryStorage(address="10.0.0.1")
        self.endpoints = [Endpoint(id="mem", client=self.storage, path="runs", bucket="bench")]
        self.config = PerfTestConfig(
            file_tests={"ft": FileTest(size=1000, num_parallel=2, seed=1)},
            timeout=10,
        )

        patches = [
            patch.object(cli, 'load_config', return_value=self.config),
            patch.object(cli, 'open_endpoints', AsyncMock(return_value=self.endpoints)),
        ]
        for p in patches:
            p.start()
            self.addCleanup(p.stop)

    def run_cli(self, *args):
        out = io.StringIO()
        with redirect_stdout(out):
            code = cli.PerfTesterCLI().run(list(args))
        return code, out.getvalue()

    def test_run_prints_report(self):
        code, output = self.run_cli('run', '--config', 'bench.toml')

        self.assertEqual(code, 0)
        cli.load_config.assert_called_once_with('bench.toml')
        self.assertIn("File: ft", output)
        for operation in ("Upload", "Download", "Delete"):
            self.assertIn(operation, output)
        self.assertNotIn("ERR", output)
        self.assertTrue(self.storage.is_closed)
        self.assertEqual(self.storage.objects, {})

    def test_run_reports_failures_and_still_succeeds(self):
        """Failed operations end up in the report, not in the exit code."""
        self.storage.fail_names.add("runs/ft0")

        code, output = self.run_cli('run')

        self.assertEqual(code, 0)
        self.assertIn("ERR", output)

    def test_run_config_error(self):
        cli.load_config.side_effect = ConfigurationError("Config file not found: x.toml")

        code, output = self.run_cli('run', '--config', 'x.toml')

        self.assertEqual(code, 1)
        self.assertEqual(output, "")

    def test_run_endpoint_open_error(self):
        cli.open_endpoints.side_effect = StorageError("no credentials")

        code, _ = self.run_cli('run')

        self.assertEqual(code, 1)

    def test_list(self):
        self.storage.objects = {"runs/a": b"1", "runs/b": b"2", "other/c": b"3"}

        code, output = self.run_cli('list', '--endpoint', 'mem')

        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["    runs/a", "    runs/b"])
        self.assertTrue(self.storage.is_closed)

    def test_list_with_prefix(self):
        self.storage.objects = {"runs/x/a": b"1", "runs/y/b": b"2"}

        code, output = self.run_cli('list', '--endpoint', 'mem', '--prefix', 'x')

        self.assertEqual(code, 0)
        self.assertEqual(output.splitlines(), ["    runs/x/a"])
        self.assertIn(("list", "runs/x"), self.storage.calls)

    def test_list_unknown_endpoint(self):
        code, output = self.run_cli('list', '--endpoint', 'nope')

        self.assertEqual(code, 1)
        self.assertEqual(output, "")
        self.assertTrue(self.storage.is_closed)

    def test_endpoints(self):
        code, output = self.run_cli('endpoints')

        self.assertEqual(code, 0)
        self.assertEqual(output, "mem\tbucket=bench\tpath=runs\taddress=10.0.0.1\n")

    def test_no_command(self):
        with redirect_stdout(io.StringIO()):
            self.assertEqual(cli.PerfTesterCLI().run([]), 1)


if __name__ == '__main__':
    unittest.main()
