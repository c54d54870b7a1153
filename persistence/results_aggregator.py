"""
Thread-safe aggregation of per-operation results.
"""

import threading
import logging
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional

from common.errors import ResultSubmissionError
from common.models import ID, Operation, Result, ResultKey

logger = logging.getLogger(__name__)


class ResultSnapshot:
    """Immutable point-in-time view of the result store."""

    def __init__(self, results: Mapping[ResultKey, Result]):
        self._results = MappingProxyType(dict(results))

    def get(self, file_test_id: ID, operation: Operation, endpoint_id: ID) -> Optional[Result]:
        """Result for the triple, or None when nothing was reported."""
        return self._results.get(ResultKey(file_test_id, operation, endpoint_id))

    def items(self):
        return self._results.items()

    def keys(self):
        return self._results.keys()

    def file_test_ids(self) -> List[ID]:
        return sorted({key.file_test_id for key in self._results})

    def endpoint_ids(self) -> List[ID]:
        return sorted({key.endpoint_id for key in self._results})

    def operations(self) -> List[Operation]:
        return sorted({key.operation for key in self._results})

    def __len__(self) -> int:
        return len(self._results)

    def __iter__(self) -> Iterator[ResultKey]:
        return iter(self._results)

    def __contains__(self, key) -> bool:
        return key in self._results


class ResultsAggregator:
    """Collects results reported by concurrent checks.

    Results are stored in one flat mapping keyed by (file test, operation,
    endpoint). Reporting the same triple twice keeps the last result.
    """

    def __init__(self, file_test_sizes: Optional[Mapping[ID, int]] = None):
        """Initialize the aggregator.

        Args:
            file_test_sizes: Payload size of every file test, used by
                ``format_results``
        """
        self.file_test_sizes: Dict[ID, int] = dict(file_test_sizes or {})
        self._results: Dict[ResultKey, Result] = {}
        self.lock = threading.Lock()

    def submit(self, operation: Operation, file_test_id: ID, endpoint_id: ID,
               result: Result) -> None:
        """Record the result of one operation.

        Args:
            operation: Operation that produced the result
            file_test_id: File test identifier
            endpoint_id: Endpoint identifier
            result: Outcome of the operation

        Raises:
            ResultSubmissionError: If any argument is malformed
        """
        if not isinstance(operation, Operation):
            raise ResultSubmissionError(f"Invalid operation: {operation!r}")
        if not isinstance(result, Result):
            raise ResultSubmissionError(f"Invalid result for {file_test_id}/{endpoint_id}: {result!r}")
        if not file_test_id or not endpoint_id:
            raise ResultSubmissionError(
                f"File test and endpoint ids are required, got {file_test_id!r}/{endpoint_id!r}"
            )

        key = ResultKey(file_test_id, operation, endpoint_id)
        with self.lock:
            self._results[key] = result

        logger.debug(f"Recorded {operation} result for {file_test_id} on {endpoint_id}: "
                     f"{'ok' if not result.error else result.error}")

    def snapshot(self) -> ResultSnapshot:
        """Return a consistent copy of everything reported so far."""
        with self.lock:
            return ResultSnapshot(self._results)

    def format_results(self) -> str:
        """Render the current results as the text report.

        Raises:
            ConfigurationError: If a reported file test has no known size
        """
        from visualization.text_report import format_results
        return format_results(self.snapshot(), self.file_test_sizes)

    def __len__(self) -> int:
        with self.lock:
            return len(self._results)
