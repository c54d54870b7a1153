"""
Benchmark algorithms.
"""

from .checker import Checker, path_name

__all__ = ['Checker', 'path_name']
