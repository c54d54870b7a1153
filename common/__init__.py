"""
Common utilities for perftester.
"""

from .models import ID, Operation, FileTest, Endpoint, Result, ResultKey
from .errors import PerfTesterError, ConfigurationError

__all__ = [
    'ID', 'Operation', 'FileTest', 'Endpoint', 'Result', 'ResultKey',
    'PerfTesterError', 'ConfigurationError',
]
