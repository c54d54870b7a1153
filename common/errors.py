"""Exception hierarchy for perftester."""

from __future__ import annotations

from typing import Dict, Optional


class PerfTesterError(Exception):
    """Base exception for all perftester errors."""

    def __init__(self, message: str, details: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ConfigurationError(PerfTesterError):
    """Raised when configuration is invalid or missing."""
    pass


class StorageError(PerfTesterError):
    """Raised when a storage client call fails."""
    pass


class VerificationError(PerfTesterError):
    """Raised when downloaded content does not match the uploaded payload."""
    pass


class OperationTimeoutError(PerfTesterError):
    """Raised when an operation runs longer than its configured timeout."""
    pass


class ResultSubmissionError(PerfTesterError):
    """Raised when the result aggregator rejects a submission."""
    pass


class TableFormatError(PerfTesterError):
    """Raised when table rows do not all have the same number of columns."""
    pass


def combine_errors(*errors: Optional[BaseException]) -> Optional[BaseException]:
    """Merge several optional errors into one.

    Returns None when every error is None, the error itself when exactly one is
    set, and otherwise a StorageError carrying all messages, chained to the
    first error.
    """
    present = [e for e in errors if e is not None]
    if not present:
        return None
    if len(present) == 1:
        return present[0]

    combined = StorageError("; ".join(str(e) for e in present))
    combined.__cause__ = present[0]
    return combined
