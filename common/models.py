"""
Data structures shared by the checker, the aggregator and the report.
"""

import enum
import posixpath
import time
from dataclasses import dataclass, replace
from typing import Any, NamedTuple, Optional

# File test and endpoint identifiers are plain strings; they are compared and
# sorted with the normal string ordering.
ID = str


class Operation(enum.IntEnum):
    """Timed operation kinds, ordered the way they run and are reported."""

    UPLOAD = 0
    DOWNLOAD = 1
    DELETE = 2

    def __str__(self) -> str:
        return self.name.capitalize()

    def __format__(self, format_spec: str) -> str:
        return format(str(self), format_spec)

    @classmethod
    def from_string(cls, name: str) -> "Operation":
        """Parse a display name such as ``"Upload"`` back into an Operation."""
        try:
            return cls[name.strip().upper()]
        except KeyError:
            raise ValueError(f"Unknown operation: {name!r}") from None


@dataclass(frozen=True)
class FileTest:
    """A named workload: payload size, parallel sub-objects, seed and timeout.

    Attributes:
        size: Payload size of every sub-object in bytes
        num_parallel: Number of sub-objects handled concurrently
        seed: Base seed for the synthetic payload; worker i uses seed + i
        timeout: Per-operation timeout in seconds
    """

    size: int
    num_parallel: int = 0
    seed: int = 0
    timeout: float = 0.0

    def resolve(self, default_timeout: float, now_ns: Optional[int] = None) -> "FileTest":
        """Return a copy with every unset field filled in.

        Args:
            default_timeout: Timeout in seconds used when this test sets none
            now_ns: Clock value used for an unset seed (default: time.time_ns())

        Returns:
            Resolved FileTest
        """
        num_parallel = self.num_parallel if self.num_parallel > 0 else 1
        timeout = self.timeout if self.timeout > 0 else default_timeout
        seed = self.seed
        if seed <= 0:
            seed = now_ns if now_ns is not None else time.time_ns()
        return replace(self, num_parallel=num_parallel, timeout=timeout, seed=seed)


@dataclass
class Endpoint:
    """A configured storage target.

    The endpoint owns its client; whoever builds endpoints must close them.
    """

    id: ID
    client: Any
    path: str = ""
    bucket: str = ""

    def key_for(self, name: str) -> str:
        """Object key for ``name`` under this endpoint's path prefix."""
        if self.path:
            return posixpath.join(self.path, name)
        return name


@dataclass(frozen=True)
class Result:
    """Outcome of one operation against one endpoint.

    ``duration`` is in seconds and ``start_time`` is a Unix timestamp. A
    successful result has an empty ``error``.
    """

    start_time: float
    duration: float
    success: bool
    error: str = ""

    @classmethod
    def succeeded(cls, start_time: float, duration: float) -> "Result":
        return cls(start_time=start_time, duration=duration, success=True)

    @classmethod
    def failed(cls, start_time: float, duration: float, error: str) -> "Result":
        return cls(start_time=start_time, duration=duration, success=False,
                   error=error or "unknown error")


class ResultKey(NamedTuple):
    """Composite key of the result store."""

    file_test_id: ID
    operation: Operation
    endpoint_id: ID
