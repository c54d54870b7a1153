"""
Result storage for perftester.
"""

from .results_aggregator import ResultsAggregator, ResultSnapshot

__all__ = ['ResultsAggregator', 'ResultSnapshot']
