"""
Upload, download and delete checks against every configured endpoint.

For each (file test, endpoint) pair the checker uploads ``num_parallel``
synthetic objects, downloads and verifies them, then deletes them. Every
operation is timed as a whole and reported as exactly one Result.
"""

import asyncio
import hashlib
import logging
import time
from typing import Awaitable, Callable, Dict, List, Mapping, Optional, Sequence

from common.duration_utils import format_duration
from common.errors import OperationTimeoutError, VerificationError, combine_errors
from common.models import ID, Endpoint, FileTest, Operation, Result
from common.synthetic_data import describe_size, payload_digest, worker_source
from configuration import DOWNLOAD_READ_SIZE

logger = logging.getLogger(__name__)

Worker = Callable[[int], Awaitable[None]]


def path_name(file_test_id: ID, worker_index: int) -> str:
    """Object name used by worker ``worker_index`` of a file test."""
    return f"{file_test_id}{worker_index}"


def _error_message(error: BaseException) -> str:
    return str(error) or type(error).__name__


class Checker:
    """Runs all operations of all file tests on all endpoints."""

    def __init__(self, reporter, endpoints: Sequence[Endpoint],
                 file_tests: Mapping[ID, FileTest], timeout: float,
                 metrics_exporter=None):
        """Initialize the checker.

        File tests are resolved once here, so every operation of a run sees the
        same seed, parallelism and timeout.

        Args:
            reporter: Receives every Result through ``submit``
            endpoints: Endpoints to check, in the order they are visited
            file_tests: File tests keyed by identifier
            timeout: Default per-operation timeout in seconds
            metrics_exporter: Optional exporter told about every Result
        """
        self.reporter = reporter
        self.endpoints: List[Endpoint] = list(endpoints)
        self.timeout = timeout
        self.metrics_exporter = metrics_exporter

        self.file_tests: Dict[ID, FileTest] = {
            file_test_id: file_test.resolve(timeout)
            for file_test_id, file_test in sorted(file_tests.items())
        }

        logger.info(f"Initialized checker with {len(self.file_tests)} file tests "
                    f"and {len(self.endpoints)} endpoints")

    async def run_checks(self) -> None:
        """Run every file test on every endpoint.

        Operation failures are recorded in their Result and do not stop the
        sweep. An error raised by the reporter aborts it.
        """
        for file_test_id in self.file_tests:
            for endpoint in self.endpoints:
                await self.run_check(file_test_id, endpoint)

    async def run_check(self, file_test_id: ID, endpoint: Endpoint) -> Dict[Operation, Result]:
        """Upload, download and delete one file test on one endpoint, in order."""
        file_test = self.file_tests[file_test_id]
        logger.info(
            f"Starting check: file test {file_test_id} on endpoint {endpoint.id} "
            f"({file_test.num_parallel} x {describe_size(file_test.size)}, "
            f"timeout {format_duration(file_test.timeout)})"
        )

        return {
            Operation.UPLOAD: await self.upload(file_test_id, endpoint),
            Operation.DOWNLOAD: await self.download(file_test_id, endpoint),
            Operation.DELETE: await self.delete(file_test_id, endpoint),
        }

    async def upload(self, file_test_id: ID, endpoint: Endpoint) -> Result:
        """Upload every worker's synthetic payload."""
        file_test = self.file_tests[file_test_id]

        async def worker(i: int) -> None:
            source = worker_source(file_test.seed, file_test.size, i)
            try:
                await endpoint.client.upload(endpoint.key_for(path_name(file_test_id, i)), source)
            finally:
                source.close()

        return await self._timed(Operation.UPLOAD, file_test_id, endpoint, worker)

    async def download(self, file_test_id: ID, endpoint: Endpoint) -> Result:
        """Download every worker's object and compare it with the expected payload."""
        file_test = self.file_tests[file_test_id]

        # Expected digests are computed before the clock starts
        expected_digests = [
            payload_digest(file_test.seed + i, file_test.size)
            for i in range(file_test.num_parallel)
        ]

        async def worker(i: int) -> None:
            stream = await endpoint.client.download(endpoint.key_for(path_name(file_test_id, i)))
            digest = hashlib.sha256()
            error: Optional[Exception] = None
            try:
                while True:
                    chunk = await stream.read(DOWNLOAD_READ_SIZE)
                    if not chunk:
                        break
                    digest.update(chunk)
            except Exception as e:
                error = e
                raise
            finally:
                try:
                    await stream.close()
                except Exception as close_error:
                    if error is None:
                        raise
                    raise combine_errors(error, close_error) from error

            actual = digest.digest()
            if actual != expected_digests[i]:
                raise VerificationError(
                    f"unexpected {file_test_id!r}/{i} file contents: expected sha256 digest "
                    f"{expected_digests[i].hex()}; got {actual.hex()}",
                    {"filetest": file_test_id, "worker": str(i)},
                )

        return await self._timed(Operation.DOWNLOAD, file_test_id, endpoint, worker)

    async def delete(self, file_test_id: ID, endpoint: Endpoint) -> Result:
        """Delete every worker's object."""

        async def worker(i: int) -> None:
            await endpoint.client.delete(endpoint.key_for(path_name(file_test_id, i)))

        return await self._timed(Operation.DELETE, file_test_id, endpoint, worker)

    async def _timed(self, operation: Operation, file_test_id: ID, endpoint: Endpoint,
                     worker: Worker) -> Result:
        """Run one operation's workers, time them and report the Result."""
        file_test = self.file_tests[file_test_id]
        logger.info(f"{operation}: file test {file_test_id}, endpoint {endpoint.id}")

        start_time = time.time()
        started = time.perf_counter()
        error = await self._run_parallel(file_test, worker)
        duration = time.perf_counter() - started

        if error is None:
            result = Result.succeeded(start_time, duration)
            logger.info(f"{operation} of {file_test_id} on {endpoint.id} "
                        f"finished in {format_duration(duration)}")
        else:
            result = Result.failed(start_time, duration, _error_message(error))
            logger.error(f"{operation} failed for file test {file_test_id} "
                         f"on endpoint {endpoint.id}: {result.error}")

        self.reporter.submit(operation, file_test_id, endpoint.id, result)

        if self.metrics_exporter is not None:
            self.metrics_exporter.record_result(operation, file_test_id, endpoint.id,
                                                result, file_test.size * file_test.num_parallel)

        return result

    async def _run_parallel(self, file_test: FileTest, worker: Worker) -> Optional[BaseException]:
        """Run ``worker(i)`` for every worker index and wait for all of them.

        Returns:
            The error of the lowest-indexed failed worker, a timeout error if
            the operation exceeded its timeout, or None
        """
        gathered = asyncio.gather(
            *(worker(i) for i in range(file_test.num_parallel)),
            return_exceptions=True,
        )
        try:
            outcomes = await asyncio.wait_for(gathered, timeout=file_test.timeout)
        except asyncio.TimeoutError:
            return OperationTimeoutError(
                f"operation cancelled after exceeding the configured duration "
                f"of {format_duration(file_test.timeout)}"
            )

        for outcome in outcomes:
            if isinstance(outcome, BaseException):
                return outcome
        return None
